"""Tests for the snakesniff command line interface."""

import json
import shutil
import pytest
from pathlib import Path
from typer.testing import CliRunner
from snakesniff.config import __version__, reset_config
from snakesniff.main import app


FIXTURES_DIR = Path(__file__).parent / 'fixtures' / 'php'

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate every invocation from the caller's environment and .env files."""
    for name in ('SNAKESNIFF_RULES', 'SNAKESNIFF_EXTENSIONS', 'SNAKESNIFF_EXCLUDE_DIRS', 'SNAKESNIFF_STANDARD'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


class TestCheckCommand:
    """Test `snakesniff check`."""

    def test_clean_file_exits_zero(self):
        result = runner.invoke(app, ['check', str(FIXTURES_DIR / 'valid.php')])
        assert result.exit_code == 0
        assert 'No naming violations' in result.output

    def test_findings_exit_one(self):
        result = runner.invoke(app, ['check', str(FIXTURES_DIR / 'variable_naming.php')])
        assert result.exit_code == 1
        assert 'violation(s)' in result.output

    def test_json_report(self):
        target = FIXTURES_DIR / 'inherited_parameters.php'
        result = runner.invoke(app, ['check', str(target), '--report', 'json', '-r', 'local'])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data['totals'] == {'errors': 2, 'warnings': 0, 'fixable': 2}
        messages = data['files'][str(target)]['messages']
        assert [m['line'] for m in messages] == [23, 24]
        assert messages[0]['source'] == 'SnakeSniff.NamingConventions.LocalVariableSnakeCase.NotSnakeCase'

    def test_summary_report(self):
        result = runner.invoke(app, ['check', str(FIXTURES_DIR / 'project'), '--report', 'summary'])
        assert result.exit_code == 1
        assert 'of 2 file(s)' in result.output

    def test_rules_from_environment(self, monkeypatch):
        monkeypatch.setenv('SNAKESNIFF_RULES', 'parameter')
        result = runner.invoke(app, ['check', str(FIXTURES_DIR / 'properties.php'), '--report', 'json'])
        data = json.loads(result.stdout)
        assert data['totals']['errors'] == 1

    def test_extensions_option(self):
        result = runner.invoke(app, ['check', str(FIXTURES_DIR / 'project'), '--extensions', 'inc'])
        assert result.exit_code == 0

    def test_unknown_rule_exits_two(self):
        result = runner.invoke(app, ['check', str(FIXTURES_DIR / 'valid.php'), '-r', 'camel'])
        assert result.exit_code == 2
        assert 'Unknown rule' in result.output

    def test_missing_path_exits_two(self, tmp_path):
        result = runner.invoke(app, ['check', str(tmp_path / 'missing.php')])
        assert result.exit_code == 2
        assert 'Path not found' in result.output

    def test_unreadable_file_is_reported(self, tmp_path):
        bad = tmp_path / 'bad.php'
        bad.write_bytes(b"<?php\n$caf\xe9 = 1;\n")
        result = runner.invoke(app, ['check', str(bad)])
        assert result.exit_code == 0
        assert 'Could not read file' in result.output


class TestFixCommand:
    """Test `snakesniff fix`."""

    def test_fix_rewrites_file(self, tmp_path):
        target = tmp_path / 'calc.php'
        shutil.copy(FIXTURES_DIR / 'variable_naming.php', target)

        result = runner.invoke(app, ['fix', str(target)])
        assert result.exit_code == 0
        text = target.read_text(encoding='utf-8')
        assert '$sub_total = $item_price * 2;' in text
        assert '$innerValue' not in text

        assert runner.invoke(app, ['check', str(target)]).exit_code == 0

    def test_dry_run_leaves_file(self, tmp_path):
        target = tmp_path / 'calc.php'
        shutil.copy(FIXTURES_DIR / 'variable_naming.php', target)
        original = target.read_text(encoding='utf-8')

        result = runner.invoke(app, ['fix', str(target), '--dry-run', '-r', 'local'])
        assert result.exit_code == 0
        assert '$sub_total' in result.output
        assert 'Would fix 4 name(s)' in result.output
        assert target.read_text(encoding='utf-8') == original

    def test_fix_unknown_rule(self, tmp_path):
        result = runner.invoke(app, ['fix', str(tmp_path), '-r', 'nope'])
        assert result.exit_code == 2


class TestExplainCommand:
    """Test `snakesniff explain`."""

    def test_roles_table(self):
        result = runner.invoke(app, ['explain', str(FIXTURES_DIR / 'properties.php')])
        assert result.exit_code == 0
        for role in ('Property', 'StaticPropertyAccess', 'Parameter', 'Reserved'):
            assert role in result.output

    def test_declaration_mode(self):
        result = runner.invoke(app, ['explain', str(FIXTURES_DIR / 'variable_naming.php'), '--mode', 'declaration'])
        assert result.exit_code == 0
        assert 'LocalVariable' in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ['explain', str(tmp_path / 'nope.php')])
        assert result.exit_code == 2


def test_version():
    """--version prints the package version."""
    result = runner.invoke(app, ['--version'])
    assert result.exit_code == 0
    assert __version__ in result.output
