"""
Applying rule fixes to source text.

Every finding carries a list of Edit objects that together form one fix.
A pass merges each fix into a single replacement, applies the fixes that
do not touch each other and leaves the rest for the next pass, so a file
converges after a few re-analyses.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from .types import Edit, Finding

logger = logging.getLogger(__name__)

MAX_FIX_PASSES = 10


@dataclass
class FixResult:
    """Outcome of applying fixes to one text."""
    output: str
    applied: List[Finding] = field(default_factory=list)
    remaining: List[Finding] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.applied)


def apply_edits(text: str, edits: Iterable[Edit]) -> str:
    """
    Apply byte-offset edits to text.

    Edits are applied from the end of the file backwards so earlier
    offsets stay valid. Out-of-range edits are dropped with a warning.
    """
    data = text.encode('utf-8')
    original_len = len(data)

    # Stable sort: equal offsets keep their given order once reversed
    ordered = sorted(enumerate(edits), key=lambda item: (item[1].start_byte, item[1].end_byte, item[0]))

    for _, edit in reversed(ordered):
        if edit.start_byte < 0 or edit.end_byte > original_len or edit.start_byte > edit.end_byte:
            logger.warning("Skipping out-of-range edit %d..%d", edit.start_byte, edit.end_byte)
            continue
        data = data[:edit.start_byte] + edit.replacement.encode('utf-8') + data[edit.end_byte:]

    return data.decode('utf-8')


def merge_edits(text: str, edits: List[Edit]) -> Optional[Edit]:
    """
    Collapse one fix's edits into a single edit spanning all of them.

    Returns None for an empty list or when two edits of the same fix
    overlap, which would make the result ambiguous.
    """
    if not edits:
        return None
    if len(edits) == 1:
        return edits[0]

    ordered = sorted(edits, key=lambda e: (e.start_byte, e.end_byte))
    for previous, current in zip(ordered, ordered[1:]):
        if current.start_byte < previous.end_byte:
            return None

    data = text.encode('utf-8')
    start = ordered[0].start_byte
    end = max(e.end_byte for e in ordered)

    pieces = []
    cursor = start
    for edit in ordered:
        pieces.append(data[cursor:edit.start_byte].decode('utf-8'))
        pieces.append(edit.replacement)
        cursor = edit.end_byte
    pieces.append(data[cursor:end].decode('utf-8'))

    return Edit(start, end, "".join(pieces))


def apply_fixes(text: str, findings: Iterable[Finding]) -> FixResult:
    """
    Apply every non-conflicting fix in findings once.

    Fixes are taken in source order; a fix starting at or before the end
    of the last applied one is deferred to the next pass.
    """
    result = FixResult(output=text)
    candidates = []

    for finding in findings:
        merged = merge_edits(text, list(finding.autofix or []))
        if merged is None:
            result.remaining.append(finding)
        else:
            candidates.append((merged, finding))

    candidates.sort(key=lambda item: (item[0].start_byte, item[0].end_byte))

    chosen: List[Edit] = []
    last_end = -1
    for merged, finding in candidates:
        if merged.start_byte <= last_end:
            result.remaining.append(finding)
            continue
        chosen.append(merged)
        result.applied.append(finding)
        last_end = merged.end_byte

    if chosen:
        result.output = apply_edits(text, chosen)
    return result


def fix_text(text: str, analyze: Callable[[str], List[Finding]],
             max_passes: int = MAX_FIX_PASSES) -> FixResult:
    """
    Re-analyze and fix text until nothing fixable is left.

    Args:
        text: Source to fix
        analyze: Callable returning findings for a given text
        max_passes: Upper bound on analyze/apply rounds

    Returns:
        FixResult whose output is the final text, applied lists every
        fix applied over all passes and remaining holds the findings of
        the last analysis that were not fixed
    """
    current = text
    applied: List[Finding] = []
    findings: List[Finding] = []

    for pass_number in range(max_passes):
        findings = list(analyze(current))
        fixable = [f for f in findings if f.autofix]
        if not fixable:
            break

        step = apply_fixes(current, fixable)
        if not step.applied or step.output == current:
            break

        logger.debug("Fix pass %d applied %d fix(es)", pass_number + 1, len(step.applied))
        applied.extend(step.applied)
        current = step.output
    else:
        findings = list(analyze(current))

    return FixResult(output=current, applied=applied, remaining=findings)
