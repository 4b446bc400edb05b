"""Token-level rewriting for auto-fixable findings."""
from pathlib import Path
from typing import Dict, Iterable

from ..analyzer.rules import Finding, RuleEngine
from ..analyzer.tokens import TokenStream


class TokenFixer:
    """Replaces token texts in a stream and renders the result.

    The stream itself is never mutated; replacements are kept by position.
    """

    def __init__(self, stream: TokenStream):
        """Initialize fixer.

        Args:
            stream: Token stream the findings were produced from
        """
        self.stream = stream
        self.replacements: Dict[int, str] = {}

    def replace_token(self, pos: int, text: str) -> bool:
        """Schedule a replacement for one token.

        Returns:
            True if scheduled, False if the position is out of range or
            already has a replacement
        """
        if not self.stream.in_range(pos) or pos in self.replacements:
            return False
        self.replacements[pos] = text
        return True

    def apply(self, findings: Iterable[Finding]) -> int:
        """Schedule the rename for every fixable finding.

        Several rules may flag the same token; the first finding for a
        position wins.

        Args:
            findings: Findings for this stream

        Returns:
            Number of tokens scheduled for replacement
        """
        applied = 0
        for finding in findings:
            if not finding.fixable:
                continue
            if self.replace_token(finding.position, RuleEngine.fix_text(finding)):
                applied += 1
        return applied

    def render(self) -> str:
        return ''.join(self.replacements.get(token.index, token.text) for token in self.stream)

    @property
    def changed(self) -> bool:
        return any(self.stream[pos].text != text for pos, text in self.replacements.items())

    @classmethod
    def fix_file(cls, file_path: str | Path, stream: TokenStream, findings: Iterable[Finding]) -> int:
        """Apply findings and write the file back atomically.

        Args:
            file_path: File to rewrite
            stream: Token stream of the file's current content
            findings: Findings for the stream

        Returns:
            Number of tokens replaced (0 leaves the file untouched)

        Raises:
            OSError: If the file cannot be written
        """
        fixer = cls(stream)
        count = fixer.apply(findings)
        if count == 0 or not fixer.changed:
            return 0

        file_path = Path(file_path)
        # Write to temp file first for atomic operation
        temp_path = file_path.with_name(file_path.name + '.snakesniff.tmp')
        with open(temp_path, 'w', encoding='utf-8', newline='') as f:
            f.write(fixer.render())

        temp_path.replace(file_path)
        return count
