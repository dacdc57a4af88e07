# src/headmap/metrics.py
from typing import Dict, Sequence

from .model import HeadingMetrics, HeadingNode, HeadingRecord


def count_by_level(headings: Sequence[HeadingRecord]) -> Dict[int, int]:
    """Counts headings per level; every level 1-6 is present in the result."""
    counts = {level: 0 for level in range(1, 7)}
    for heading in headings:
        counts[heading.level] += 1
    return counts


def _height(node: HeadingNode) -> int:
    if not node.children:
        return 0
    return max(_height(child) for child in node.children) + 1


def max_depth(node: HeadingNode) -> int:
    """
    Nesting depth of the outline, counted in heading-to-heading steps.

    A leaf heading has depth 0. The synthetic root is not a heading, so for
    the root the deepest top-level subtree is reported; a root without
    children returns 0. [H1, H2, H3, H2] therefore has depth 2.
    """
    if node.is_root:
        return max((_height(child) for child in node.children), default=0)
    return _height(node)


def build_metrics(headings: Sequence[HeadingRecord], root: HeadingNode) -> HeadingMetrics:
    counts = count_by_level(headings)
    return HeadingMetrics(
        total_headings=len(headings),
        max_depth=max_depth(root),
        **{f"h{level}_count": count for level, count in counts.items()},
    )
