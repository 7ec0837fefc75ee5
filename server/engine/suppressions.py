"""
Suppression comments.

A line comment of the form

    import fs from 'fs'; // import-order: ignore[imports.order]

suppresses findings of matching rules that start on the same line.
Patterns are comma-separated and may use fnmatch globs (``imports.*``).
"""

import fnmatch
import re
from typing import Dict, List, Set, Tuple

_IGNORE_RE = re.compile(r'//\s*import-order:\s*ignore\s*\[\s*([^\]]+?)\s*\]', re.IGNORECASE)
_MALFORMED_RE = re.compile(r'//\s*import-order:\s*ignore\b(?!\s*\[[^\]]*\S[^\]]*\])', re.IGNORECASE)


class SuppressionParser:
    """Index of suppression comments in one file, keyed by 1-based line number."""

    def __init__(self, text: str):
        self.text = text
        self._bytes = text.encode('utf-8')
        self.line_suppressions: Dict[int, Set[str]] = {}

        for line_num, line in enumerate(text.split('\n'), 1):
            patterns = self._extract_suppression_patterns(line)
            if patterns:
                self.line_suppressions[line_num] = patterns

    def _extract_suppression_patterns(self, line: str) -> Set[str]:
        patterns = set()
        for match in _IGNORE_RE.finditer(line):
            for pattern in match.group(1).split(','):
                pattern = pattern.strip()
                if pattern:
                    patterns.add(pattern)
        return patterns

    def is_suppressed(self, rule_id: str, start_byte: int) -> bool:
        """Check if a finding of rule_id starting at start_byte is suppressed."""
        patterns = self.line_suppressions.get(self._byte_to_line(start_byte), ())
        return any(fnmatch.fnmatch(rule_id, pattern) for pattern in patterns)

    def _byte_to_line(self, byte_offset: int) -> int:
        """Convert byte offset to 1-based line number."""
        if byte_offset <= 0:
            return 1
        return self._bytes.count(b'\n', 0, byte_offset) + 1


def filter_suppressed_findings(findings: List, text: str) -> List:
    """Filter out suppressed findings from a list."""
    if not findings:
        return findings

    parser = SuppressionParser(text)
    if not parser.line_suppressions:
        return findings
    return [f for f in findings if not parser.is_suppressed(f.rule, f.start_byte)]


def validate_suppression_patterns(text: str) -> List[Tuple[int, str]]:
    """
    Report suppression comments that cannot match anything.

    Returns:
        List of (line_number, error_message) tuples
    """
    errors = []
    for line_num, line in enumerate(text.split('\n'), 1):
        if _MALFORMED_RE.search(line):
            errors.append((line_num, "Suppression comment needs a non-empty [rule] list"))
    return errors
