# src/headmap/rules/passes/accessibility.py
"""
Accessibility pass: how assistive technology perceives each heading, based
on the ARIA and visibility metadata supplied by the extractor.
"""
import re
from typing import Any, List, Mapping, Sequence

from headmap.model import HeadingRecord, Issue, Severity
from ..core import RulePass, audit_spec

HIDDEN_METHOD_LABELS = {
    "display-none": "display: none",
    "visibility-hidden": "visibility: hidden",
    "aria-hidden": 'aria-hidden="true"',
    "opacity-0": "opacity: 0",
    "off-screen": "screen reader only class",
}

_IMG_TAG = re.compile(r'<img\b[^>]*>', re.IGNORECASE)
_ALT_TEXT = re.compile(r'\balt\s*=\s*["\'][^"\']+["\']', re.IGNORECASE)


# --- HEADING RULES ---

@audit_spec(codes=["aria_hidden_heading", "hidden_heading", "screen_reader_only_heading"])
def check_hidden(heading: HeadingRecord, index: int) -> List[Issue]:
    """
    Rule: headings removed from the accessibility tree or from view.
    Screen-reader-only headings are intentional and only reported as info.
    """
    if heading.aria_hidden or heading.hidden_method == "aria-hidden":
        return [Issue(
            type="aria_hidden_heading",
            severity=Severity.WARNING,
            message=f'{heading.label} at position {index + 1} is hidden from screen readers (aria-hidden="true")',
            recommendation=(
                'Headings with aria-hidden="true" are invisible to screen readers, which can break navigation '
                "for assistive technology users. Only hide headings that are purely decorative."
            ),
        )]

    if not heading.is_hidden:
        return []

    method = heading.hidden_method or "off-screen"
    if method in ("display-none", "visibility-hidden"):
        return [Issue(
            type="hidden_heading",
            severity=Severity.WARNING,
            message=f"{heading.label} at position {index + 1} is visually hidden ({HIDDEN_METHOD_LABELS[method]})",
            recommendation=(
                "Visually hidden headings can confuse screen reader users who expect visible structure. "
                "If the heading is meant for assistive technology only, use a screen reader-only class instead."
            ),
        )]
    if method == "off-screen":
        return [Issue(
            type="screen_reader_only_heading",
            severity=Severity.INFO,
            message=f"{heading.label} at position {index + 1} is screen reader-only ({HIDDEN_METHOD_LABELS[method]})",
            recommendation=(
                "Screen reader-only headings can improve accessibility; make sure they add context "
                "that is missing from the visual design."
            ),
        )]
    return []


@audit_spec(codes=["aria_label_override", "aria_label_valid"])
def check_aria_label(heading: HeadingRecord, index: int) -> List[Issue]:
    if not heading.aria_label:
        return []
    if heading.text:
        return [Issue(
            type="aria_label_override",
            severity=Severity.WARNING,
            message=(
                f'{heading.label} "{heading.text}" has aria-label="{heading.aria_label}" '
                "which overrides the visible text"
            ),
            recommendation=(
                "The aria-label is announced instead of the visible text. Keep spoken and visible text "
                "consistent, or drop the aria-label."
            ),
        )]
    return [Issue(
        type="aria_label_valid",
        severity=Severity.INFO,
        message=f'{heading.label} uses aria-label="{heading.aria_label}" to provide accessible text',
        recommendation="Prefer visible heading text when possible for consistency across all users.",
    )]


@audit_spec(codes=["aria_labelledby_used"])
def check_aria_labelledby(heading: HeadingRecord, index: int) -> List[Issue]:
    if not heading.aria_labelledby:
        return []
    return [Issue(
        type="aria_labelledby_used",
        severity=Severity.INFO,
        message=f'{heading.label} at position {index + 1} uses aria-labelledby="{heading.aria_labelledby}"',
        recommendation=(
            f'Ensure the element with id="{heading.aria_labelledby}" exists; its text is announced '
            "instead of the heading's visible text."
        ),
    )]


@audit_spec(codes=["aria_level_mismatch"])
def check_aria_level(heading: HeadingRecord, index: int) -> List[Issue]:
    if heading.aria_level is None or heading.aria_level == heading.level:
        return []
    return [Issue(
        type="aria_level_mismatch",
        severity=Severity.CRITICAL,
        message=(
            f'{heading.label} has aria-level="{heading.aria_level}" which conflicts '
            f"with its semantic level ({heading.level})"
        ),
        recommendation="Use the heading tag that matches the intended level instead of overriding it with aria-level.",
    )]


@audit_spec(codes=["heading_role_override"])
def check_role(heading: HeadingRecord, index: int) -> List[Issue]:
    if not heading.role or heading.role == "heading":
        return []
    return [Issue(
        type="heading_role_override",
        severity=Severity.CRITICAL,
        message=f'{heading.label} has role="{heading.role}" which overrides its native heading semantics',
        recommendation="Remove the role attribute so screen readers recognize the element as a heading again.",
    )]


@audit_spec(codes=["empty_heading_no_aria"])
def check_empty_without_aria(heading: HeadingRecord, index: int) -> List[Issue]:
    if heading.text or heading.aria_label or heading.aria_labelledby:
        return []
    return [Issue(
        type="empty_heading_no_aria",
        severity=Severity.CRITICAL,
        message=f"{heading.label} at position {index + 1} is empty and has no aria-label or aria-labelledby",
        recommendation="Screen readers announce an empty heading. Add visible text or remove this heading.",
    )]


@audit_spec(codes=["image_heading_no_alt"])
def check_image_alt(heading: HeadingRecord, index: int) -> List[Issue]:
    if heading.text:
        return []
    images = _IMG_TAG.findall(heading.raw_markup)
    if not images or any(_ALT_TEXT.search(img) for img in images):
        return []
    return [Issue(
        type="image_heading_no_alt",
        severity=Severity.CRITICAL,
        message=f"{heading.label} at position {index + 1} contains an image without alt text",
        recommendation="Add descriptive alt text to the image or provide visible heading text.",
    )]


# --- DOCUMENT RULES ---

@audit_spec(codes=["all_headings_hidden", "most_headings_hidden"])
def check_hidden_ratio(headings: Sequence[HeadingRecord], options: Mapping[str, Any]) -> List[Issue]:
    total = len(headings)
    hidden_count = sum(1 for h in headings if h.hidden)

    if hidden_count > 0 and hidden_count == total:
        return [Issue(
            type="all_headings_hidden",
            severity=Severity.CRITICAL,
            message="All headings are hidden - the document has no accessible heading structure",
            recommendation="Screen readers rely on headings for navigation. Make at least the main headings visible.",
        )]
    if hidden_count > total * 0.5:
        return [Issue(
            type="most_headings_hidden",
            severity=Severity.WARNING,
            message=f"Over half of your headings ({hidden_count}/{total}) are hidden",
            recommendation="Review whether the hidden headings are necessary and useful to screen reader users.",
        )]
    return []


# --- PASS DEFINITION ---

DEFINITION = RulePass(
    name="accessibility",
    order=20,
    heading_rules=[
        check_hidden,
        check_aria_label,
        check_aria_labelledby,
        check_aria_level,
        check_role,
        check_empty_without_aria,
        check_image_alt,
    ],
    document_rules=[check_hidden_ratio],
)
