"""File discovery and rule execution over PHP sources."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .parser import PhpTokenizer
from .rules import DEFAULT_STANDARD, Finding, RuleEngine, RulePolicy
from .tokens import TokenStream

DEFAULT_EXCLUDE_DIRS = ('vendor', 'node_modules', '.git')


@dataclass
class FileReport:
    """Findings for one file."""
    path: str
    findings: List[Finding] = field(default_factory=list)
    stream: Optional[TokenStream] = None
    error: Optional[str] = None

    @property
    def error_count(self) -> int:
        return len(self.findings)

    @property
    def fixable_count(self) -> int:
        return sum(1 for f in self.findings if f.fixable)


class SnakeCaseChecker:
    """Runs the enabled naming rules over files or raw source."""

    def __init__(self, rules: Sequence[RulePolicy],
                 extensions: Optional[Iterable[str]] = None,
                 exclude_dirs: Optional[Iterable[str]] = None,
                 standard: str = DEFAULT_STANDARD):
        """Initialize checker.

        Args:
            rules: Policies to run, in reporting order
            extensions: File extensions to check (with or without the dot)
            exclude_dirs: Directory names skipped during discovery
            standard: Prefix used for finding source codes
        """
        self.engines = [RuleEngine(policy, standard) for policy in rules]
        if extensions is None:
            extensions = PhpTokenizer.SUPPORTED_EXTENSIONS
        self.extensions = tuple(
            ext.lower() if ext.startswith('.') else f".{ext.lower()}"
            for ext in extensions
        )
        self.exclude_dirs = set(exclude_dirs if exclude_dirs is not None else DEFAULT_EXCLUDE_DIRS)
        self.tokenizer = PhpTokenizer()

    def discover(self, paths: Iterable[str | Path]) -> List[Path]:
        """Collect the files to check.

        Files named directly are always included. Directories are walked
        recursively, skipping excluded directory names and non-PHP files.

        Args:
            paths: Files and/or directories

        Returns:
            Sorted, de-duplicated list of file paths

        Raises:
            FileNotFoundError: If a path does not exist
        """
        files = set()
        for path in paths:
            path = Path(path)
            if not path.exists():
                raise FileNotFoundError(f"Path not found: {path}")
            if path.is_file():
                files.add(path)
                continue

            for file_path in path.rglob('*'):
                if not file_path.is_file():
                    continue
                relative = file_path.relative_to(path)
                if any(part in self.exclude_dirs for part in relative.parts[:-1]):
                    continue
                if PhpTokenizer.supports(file_path, self.extensions):
                    files.add(file_path)

        return sorted(files)

    def check_stream(self, stream: TokenStream, path: str = '<source>') -> FileReport:
        findings = []
        for engine in self.engines:
            findings.extend(engine.process(stream))

        order = {engine.name: i for i, engine in enumerate(self.engines)}
        findings.sort(key=lambda f: (f.position, order[f.rule]))
        return FileReport(path=path, findings=findings, stream=stream)

    def check_source(self, source: bytes | str, path: str = '<source>') -> FileReport:
        """Tokenize and check in-memory source."""
        stream = self.tokenizer.tokenize(source, path=path)
        return self.check_stream(stream, path)

    def check_file(self, file_path: str | Path) -> FileReport:
        """Check a single file.

        Args:
            file_path: Path to a PHP file

        Returns:
            FileReport; error is set when the file cannot be read or decoded
        """
        stream = self.tokenizer.tokenize_file(file_path)
        if stream is None:
            return FileReport(path=str(file_path), error="Could not read file as UTF-8 text")
        return self.check_stream(stream, str(file_path))

    def check_paths(self, paths: Iterable[str | Path]) -> List[FileReport]:
        return [self.check_file(file_path) for file_path in self.discover(paths)]
