"""
Local heuristic checks over extracted assignment items.

Nothing is rejected; each item is annotated with human-readable warnings.
"""

import re
from typing import List, Optional, Tuple

from ..models.assignment_models import EnrichedAssignmentItem

SHORT_CONTENT_LENGTH = 20

_DISPLAY_MATH = re.compile(r"\$\$.*?\$\$", re.DOTALL)
_ESCAPED_DOLLAR = re.compile(r"\\\$")


def _normalize(content: str) -> str:
    return " ".join(content.split()).casefold()


def has_unbalanced_katex(content: str) -> Tuple[bool, bool]:
    """
    Check KaTeX delimiters.

    Returns:
        ``(display_unbalanced, inline_unbalanced)``: whether the ``$$`` count
        is odd, and whether an odd number of ``$`` remains once ``$$...$$``
        blocks are removed. Escaped ``\\$`` is ignored.
    """
    text = _ESCAPED_DOLLAR.sub("", content)
    display_unbalanced = text.count("$$") % 2 != 0
    inline_unbalanced = _DISPLAY_MATH.sub("", text).count("$") % 2 != 0
    return display_unbalanced, inline_unbalanced


def _find_duplicate(
    normalized: str, earlier: List[Tuple[str, int]]
) -> Optional[int]:
    for previous, order_num in earlier:
        if normalized == previous:
            return order_num
        if min(len(normalized), len(previous)) >= SHORT_CONTENT_LENGTH and (
            normalized in previous or previous in normalized
        ):
            return order_num
    return None


def validate_assignment_items(items: List[EnrichedAssignmentItem]) -> List[List[str]]:
    """
    Produce warnings for each item, aligned with ``items`` by position.

    Checks order-number gaps, empty content, a missing reference answer,
    unbalanced KaTeX delimiters, suspiciously short content and duplicates
    of earlier items (exact or substring match).
    """
    results: List[List[str]] = []
    earlier: List[Tuple[str, int]] = []

    for position, item in enumerate(items):
        warnings: List[str] = []
        content = item.content.strip()

        if position > 0:
            expected = items[position - 1].order_num + 1
            if item.order_num != expected:
                warnings.append(f"Question number gap: expected {expected}, got {item.order_num}")

        if not content:
            warnings.append("Empty question content")

        if not item.reference_answer.strip():
            warnings.append("No reference answer")

        display_unbalanced, inline_unbalanced = has_unbalanced_katex(item.content)
        if display_unbalanced:
            warnings.append("Possible broken KaTeX formula (unmatched $$)")
        elif inline_unbalanced:
            warnings.append("Possible broken KaTeX formula (unmatched $)")

        if 0 < len(content) < SHORT_CONTENT_LENGTH:
            warnings.append("Suspiciously short content")

        normalized = _normalize(content)
        if normalized:
            duplicate_of = _find_duplicate(normalized, earlier)
            if duplicate_of is not None:
                warnings.append(f"Possible duplicate of Q{duplicate_of}")
            earlier.append((normalized, item.order_num))

        results.append(warnings)

    return results


def apply_item_warnings(items: List[EnrichedAssignmentItem]) -> None:
    """Attach validation warnings to each item in place."""
    for item, warnings in zip(items, validate_assignment_items(items)):
        item.warnings = warnings
