# src/headmap/hierarchy.py
import logging
import re
from typing import Iterator, List, Sequence

from .model import HeadingNode, HeadingRecord, Issue, Severity

logger = logging.getLogger(__name__)

_SLUG_INVALID = re.compile(r'[^a-z0-9]+')

MIN_HEADING_LENGTH = 3
MAX_HEADING_LENGTH = 70


def generate_id(text: str) -> str:
    """Builds a URL-safe anchor id from heading text."""
    return _SLUG_INVALID.sub('-', text.lower()).strip('-')


def _make_root() -> HeadingNode:
    return HeadingNode(text="root", level=0, id="root")


def _node_issues(node: HeadingNode, parent: HeadingNode) -> List[Issue]:
    """Structural checks attached to a single outline node."""
    issues = []

    if not parent.is_root and node.level > parent.level + 1:
        skipped = ", ".join(f"H{lvl}" for lvl in range(parent.level + 1, node.level))
        issues.append(Issue(
            type="skipped_level",
            severity=Severity.CRITICAL,
            message=f"Heading skips from H{parent.level} to H{node.level}",
            recommendation=f"Add {skipped} before this heading",
        ))

    length = len(node.text)
    if length == 0:
        issues.append(Issue(
            type="empty_heading",
            severity=Severity.CRITICAL,
            message="Heading has no text content",
            recommendation="Add descriptive text to this heading or remove it",
        ))
    elif length < MIN_HEADING_LENGTH:
        issues.append(Issue(
            type="heading_too_short",
            severity=Severity.WARNING,
            message=f"Heading text is too short ({length} characters)",
            recommendation=f"Use more descriptive heading text (at least {MIN_HEADING_LENGTH} characters)",
        ))
    elif length > MAX_HEADING_LENGTH:
        issues.append(Issue(
            type="heading_too_long",
            severity=Severity.WARNING,
            message=f"Heading is too long ({length} characters)",
            recommendation=f"Consider shortening to under {MAX_HEADING_LENGTH} characters for better SEO",
        ))

    return issues


def build_hierarchy(headings: Sequence[HeadingRecord]) -> HeadingNode:
    """
    Builds the heading outline from a flat, document-ordered list of records.

    A stack holds the current ancestor chain, starting with the synthetic
    root (level 0). For each heading, ancestors with a level greater than or
    equal to its own are popped (the root never is), so the new node always
    lands under the nearest preceding heading with a smaller level.

    Args:
        headings: Records in document order.

    Returns:
        HeadingNode: The root node. Pre-order traversal of the tree yields the
                     headings in input order.
    """
    root = _make_root()
    stack: List[HeadingNode] = [root]

    for heading in headings:
        node = HeadingNode(
            text=heading.text,
            level=heading.level,
            id=generate_id(heading.text),
            raw_markup=heading.raw_markup,
        )

        while len(stack) > 1 and stack[-1].level >= node.level:
            stack.pop()

        parent = stack[-1]
        node.issues.extend(_node_issues(node, parent))
        parent.children.append(node)
        stack.append(node)

    logger.debug("Built outline with %d headings.", len(headings))
    return root


def iter_nodes(root: HeadingNode) -> Iterator[HeadingNode]:
    """Yields every node (root included) in pre-order."""
    yield root
    for child in root.children:
        yield from iter_nodes(child)


def flatten_hierarchy(root: HeadingNode) -> List[HeadingNode]:
    """Returns the non-root nodes in pre-order, i.e. in original document order."""
    return [node for node in iter_nodes(root) if not node.is_root]
