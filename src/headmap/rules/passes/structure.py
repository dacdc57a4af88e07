# src/headmap/rules/passes/structure.py
"""
Structural pass: heading order and heading copy, checked on the flat list
independently of the outline tree.
"""
from collections import Counter
from typing import Any, List, Mapping, Sequence

from headmap.model import HeadingRecord, Issue, Severity
from headmap.utils.lexicons import GENERIC_PHRASES
from ..core import RulePass, audit_spec

H1_MIN_LENGTH = 20
H1_MAX_LENGTH = 70
MIN_LENGTH = 3
MAX_LENGTH = 70
MAX_DEEP_HEADINGS = 5


def _h1_length_issue(text: str) -> List[Issue]:
    length = len(text)
    if length < H1_MIN_LENGTH:
        return [Issue(
            type="h1_length",
            severity=Severity.WARNING,
            message=f"H1 is too short ({length} chars, optimal range {H1_MIN_LENGTH}-{H1_MAX_LENGTH})",
            recommendation="Expand the H1 so it clearly describes the page topic",
        )]
    if length > H1_MAX_LENGTH:
        return [Issue(
            type="h1_length",
            severity=Severity.WARNING,
            message=f"H1 is too long ({length} chars, optimal range {H1_MIN_LENGTH}-{H1_MAX_LENGTH})",
            recommendation=f"Shorten the H1 to at most {H1_MAX_LENGTH} characters",
        )]
    return []


def _content_issues(heading: HeadingRecord) -> List[Issue]:
    """Length, generic wording, stuffing and capitalisation checks on non-empty text."""
    issues = []
    text = heading.text
    length = len(text)

    if length > MAX_LENGTH:
        issues.append(Issue(
            type="heading_too_long",
            severity=Severity.WARNING,
            message=f"{heading.label} is too long ({length} characters)",
            recommendation=f"Consider shortening to under {MAX_LENGTH} characters",
        ))
    elif length < MIN_LENGTH:
        issues.append(Issue(
            type="heading_too_short",
            severity=Severity.WARNING,
            message=f"{heading.label} is very short ({length} characters)",
            recommendation="Use more descriptive heading text",
        ))

    if text.lower() in GENERIC_PHRASES:
        issues.append(Issue(
            type="generic_heading",
            severity=Severity.WARNING,
            message=f'Generic heading text: "{text}"',
            recommendation="Use more specific, descriptive headings",
        ))

    word_counts = Counter(w for w in text.lower().split() if len(w) > 3)
    repeated = [word for word, count in word_counts.items() if count > 2]
    if repeated:
        issues.append(Issue(
            type="keyword_stuffing",
            severity=Severity.WARNING,
            message=f'Possible keyword stuffing detected: "{", ".join(repeated)}"',
            recommendation="Avoid repeating keywords too many times in a single heading",
        ))

    if length > 3 and text.isupper():
        issues.append(Issue(
            type="all_caps",
            severity=Severity.INFO,
            message=f'{heading.label} uses all capital letters: "{text}"',
            recommendation="Use proper title case for better readability and accessibility",
        ))

    return issues


# --- DOCUMENT RULES ---

@audit_spec(codes=[
    "no_headings", "missing_h1_start", "multiple_h1", "h1_length", "empty_heading", "heading_skipped",
    "heading_too_long", "heading_too_short", "generic_heading", "keyword_stuffing", "all_caps",
])
def check_heading_sequence(headings: Sequence[HeadingRecord], options: Mapping[str, Any]) -> List[Issue]:
    """
    Single left-to-right pass over the headings.

    Empty headings are reported and then skipped entirely: they neither get
    content checks nor become the reference level for skip detection.
    """
    if not headings:
        return [Issue(
            type="no_headings",
            severity=Severity.CRITICAL,
            message="No headings detected on page",
            recommendation="Add semantic heading tags (H1-H6) to structure your content",
        )]

    issues = []
    first = headings[0]
    if first.level != 1:
        issues.append(Issue(
            type="missing_h1_start",
            severity=Severity.CRITICAL,
            message=f"Page should start with H1, but starts with H{first.level}",
            recommendation="Add an H1 heading at the beginning of your content",
        ))

    previous_level = 0
    h1_count = 0

    for index, heading in enumerate(headings):
        if heading.level == 1:
            h1_count += 1
            if h1_count > 1:
                issues.append(Issue(
                    type="multiple_h1",
                    severity=Severity.WARNING,
                    message=f"Multiple H1 tags found ({h1_count} total)",
                    recommendation="Consider using only one H1 per page for clarity and SEO best practices",
                ))
            issues.extend(_h1_length_issue(heading.text))

        if not heading.text:
            issues.append(Issue(
                type="empty_heading",
                severity=Severity.CRITICAL,
                message=f"Empty {heading.label} tag at position {index + 1}",
                recommendation="Remove empty heading or add descriptive content",
            ))
            continue

        if previous_level > 0 and heading.level > previous_level + 1:
            skipped = ", ".join(f"H{lvl}" for lvl in range(previous_level + 1, heading.level))
            issues.append(Issue(
                type="heading_skipped",
                severity=Severity.CRITICAL,
                message=f"Heading level skipped from H{previous_level} to H{heading.level} (missing {skipped})",
                recommendation=f"Add {skipped} before {heading.label} for proper hierarchy",
            ))

        issues.extend(_content_issues(heading))
        previous_level = heading.level

    return issues


@audit_spec(codes=["missing_h1"])
def check_h1_present(headings: Sequence[HeadingRecord], options: Mapping[str, Any]) -> List[Issue]:
    if not headings or any(h.level == 1 for h in headings):
        return []
    return [Issue(
        type="missing_h1",
        severity=Severity.CRITICAL,
        message="Page has no H1 heading",
        recommendation="Add a descriptive H1 heading to identify the main topic",
    )]


@audit_spec(codes=["excessive_depth"])
def check_deep_levels(headings: Sequence[HeadingRecord], options: Mapping[str, Any]) -> List[Issue]:
    deep_count = sum(1 for h in headings if h.level >= 5)
    if deep_count <= MAX_DEEP_HEADINGS:
        return []
    return [Issue(
        type="excessive_depth",
        severity=Severity.WARNING,
        message=f"Excessive use of deep heading levels ({deep_count} H5/H6 tags)",
        recommendation="Consider simplifying your content structure - most content works well with H1-H4",
    )]


# --- PASS DEFINITION ---

DEFINITION = RulePass(
    name="structure",
    order=10,
    document_rules=[check_heading_sequence, check_h1_present, check_deep_levels],
)
