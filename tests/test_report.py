"""Tests for JSON and console reports."""

import json
import pytest
from rich.console import Console
from snakesniff.analyzer.checker import FileReport
from snakesniff.analyzer.rules import ErrorCode, Finding
from snakesniff.report import (
    build_json_report,
    print_full_report,
    print_summary_report,
    render_json,
)


def make_finding(name, line, column, rule='LocalVariableSnakeCase', code='NotSnakeCase'):
    return Finding(
        position=line * 10, line=line, column=column, name=name,
        suggested_name=name.lower(), code=ErrorCode.NOT_SNAKE_CASE,
        rule=rule, code_string=code,
    )


@pytest.fixture
def reports():
    return [
        FileReport(path='src/a.php', findings=[
            make_finding('badOne', 3, 5),
            make_finding('badTwo', 7, 9, rule='VariableSnakeCase', code='VariableNotSnakeCase'),
        ]),
        FileReport(path='src/clean.php'),
        FileReport(path='src/broken.php', error='Could not read file as UTF-8 text'),
    ]


@pytest.fixture
def console():
    """Recording console wide enough to keep table rows on one line."""
    return Console(record=True, width=200, color_system=None)


class TestJsonReport:
    """PHP_CodeSniffer-compatible JSON."""

    def test_totals(self, reports):
        data = build_json_report(reports)
        assert data['totals'] == {'errors': 2, 'warnings': 0, 'fixable': 2}

    def test_file_entries(self, reports):
        files = build_json_report(reports)['files']
        assert set(files) == {'src/a.php', 'src/clean.php', 'src/broken.php'}
        assert files['src/clean.php'] == {'errors': 0, 'warnings': 0, 'messages': []}

        first = files['src/a.php']['messages'][0]
        assert first == {
            'message': 'Variable "$badOne" is not in snake_case format; try "$badone"',
            'source': 'SnakeSniff.NamingConventions.LocalVariableSnakeCase.NotSnakeCase',
            'severity': 5,
            'fixable': True,
            'type': 'ERROR',
            'line': 3,
            'column': 5,
        }

    def test_render_is_valid_json(self, reports):
        assert json.loads(render_json(reports)) == build_json_report(reports)


class TestConsoleReports:
    """Rich text reports."""

    def test_full_report(self, reports, console):
        print_full_report(reports, console)
        text = console.export_text()
        assert 'FILE: src/a.php' in text
        assert 'SnakeSniff.NamingConventions.VariableSnakeCase.VariableNotSnakeCase' in text
        assert 'src/clean.php' not in text
        assert 'Error: src/broken.php' in text
        assert '2 violation(s)' in text

    def test_summary_report(self, reports, console):
        print_summary_report(reports, console)
        text = console.export_text()
        assert 'src/a.php' in text
        assert 'unreadable' in text
        assert '2 violation(s) in 1 of 3 file(s)' in text

    def test_clean_totals(self, console):
        print_full_report([FileReport(path='ok.php')], console)
        assert 'No naming violations in 1 file(s)' in console.export_text()
