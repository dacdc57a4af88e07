# src/headmap/rules/passes/semantics.py
"""
Semantic-landmark pass: where headings sit relative to HTML5 sectioning
elements and ARIA landmarks.
"""
from typing import Any, List, Mapping, Sequence

from headmap.model import HeadingRecord, Issue, Severity
from ..core import RulePass, audit_spec

# Inline or interactive parents that must not contain a heading.
INAPPROPRIATE_PARENTS = frozenset({"button", "a", "label", "span", "strong", "em", "b", "i"})
SECTIONING_TAGS = frozenset({"article", "section"})
H1_LANDMARKS = frozenset({"main", "banner"})
MAX_DOM_DEPTH = 10


# --- HEADING RULES ---

@audit_spec(codes=["inappropriate_nesting"])
def check_nesting(heading: HeadingRecord, index: int) -> List[Issue]:
    parent = heading.parent_tag
    if parent not in INAPPROPRIATE_PARENTS:
        return []
    return [Issue(
        type="inappropriate_nesting",
        severity=Severity.CRITICAL,
        message=f"{heading.label} is nested inside a <{parent}> element",
        recommendation=(
            f"Headings should not be nested within <{parent}> elements. This is invalid HTML and "
            f"confuses screen readers. Move the heading outside the <{parent}>."
        ),
    )]


@audit_spec(codes=["missing_semantic_context"])
def check_semantic_context(heading: HeadingRecord, index: int) -> List[Issue]:
    if heading.level <= 1 or heading.parent_semantic_tag or heading.is_in_landmark:
        return []
    return [Issue(
        type="missing_semantic_context",
        severity=Severity.INFO,
        message=(
            f"{heading.label} at position {index + 1} is not wrapped in a semantic container "
            "(article, section, nav, etc.)"
        ),
        recommendation="Wrap related content in <article>, <section> or <nav> to give the document a clear outline.",
    )]


@audit_spec(codes=["h1_wrong_landmark"])
def check_h1_landmark(heading: HeadingRecord, index: int) -> List[Issue]:
    if heading.level != 1 or not heading.is_in_landmark or heading.landmark_type in H1_LANDMARKS:
        return []
    return [Issue(
        type="h1_wrong_landmark",
        severity=Severity.WARNING,
        message=f'H1 "{heading.text}" is inside a {heading.landmark_type} landmark instead of <main> or <header>',
        recommendation="Place the primary H1 in the main content area or the page header.",
    )]


@audit_spec(codes=["div_instead_of_section"])
def check_div_container(heading: HeadingRecord, index: int) -> List[Issue]:
    if heading.level <= 1 or heading.parent_semantic_tag != "div":
        return []
    return [Issue(
        type="div_instead_of_section",
        severity=Severity.INFO,
        message=f"{heading.label} is inside a <div> - consider using <section> or <article> instead",
        recommendation="Content introduced by a heading reads better to assistive technology inside <section> or <article>.",
    )]


# --- DOCUMENT RULES ---

@audit_spec(codes=["no_landmark_structure"])
def check_landmark_presence(headings: Sequence[HeadingRecord], options: Mapping[str, Any]) -> List[Issue]:
    if not headings or any(h.is_in_landmark for h in headings):
        return []
    return [Issue(
        type="no_landmark_structure",
        severity=Severity.WARNING,
        message="No headings are within HTML5 landmark elements (main, nav, header, footer, aside)",
        recommendation=(
            "Wrap main content in <main>, navigation in <nav> and site header/footer in <header> and <footer> "
            "so screen reader users can navigate by landmark."
        ),
    )]


@audit_spec(codes=["multiple_h1_sectioning"])
def check_multiple_h1_sectioning(headings: Sequence[HeadingRecord], options: Mapping[str, Any]) -> List[Issue]:
    h1_headings = [h for h in headings if h.level == 1]
    if len(h1_headings) <= 1:
        return []
    if not all(h.parent_semantic_tag in SECTIONING_TAGS for h in h1_headings):
        return []
    return [Issue(
        type="multiple_h1_sectioning",
        severity=Severity.INFO,
        message=(
            f"Found {len(h1_headings)} H1 tags, but they are properly scoped within "
            "different <article> or <section> elements"
        ),
        recommendation="HTML5 allows this, but many tools still expect a single H1. Consider H2-H6 for sub-sections.",
    )]


@audit_spec(codes=["missing_main_landmark", "missing_nav_landmark"])
def check_landmark_distribution(headings: Sequence[HeadingRecord], options: Mapping[str, Any]) -> List[Issue]:
    """Only evaluated when the page uses landmarks at all."""
    landmark_types = {h.landmark_type for h in headings if h.landmark_type}
    if not landmark_types:
        return []

    issues = []
    if "main" not in landmark_types and len(headings) > 3:
        issues.append(Issue(
            type="missing_main_landmark",
            severity=Severity.WARNING,
            message="No headings found within a <main> landmark",
            recommendation="Put the primary content in a <main> landmark so users can skip straight to it.",
        ))
    if "navigation" not in landmark_types and len(headings) > 5:
        issues.append(Issue(
            type="missing_nav_landmark",
            severity=Severity.INFO,
            message="No headings found within a <nav> landmark",
            recommendation="Wrap navigation menus in <nav> elements with descriptive headings.",
        ))
    return issues


@audit_spec(codes=["excessive_dom_depth"])
def check_dom_depth(headings: Sequence[HeadingRecord], options: Mapping[str, Any]) -> List[Issue]:
    deep = [h for h in headings if h.depth > MAX_DOM_DEPTH]
    if not deep:
        return []
    noun = "headings are" if len(deep) > 1 else "heading is"
    return [Issue(
        type="excessive_dom_depth",
        severity=Severity.INFO,
        message=f"{len(deep)} {noun} nested more than {MAX_DOM_DEPTH} levels deep in the DOM",
        recommendation="Simplify the HTML structure and use CSS for layout instead of nested wrappers.",
    )]


# --- PASS DEFINITION ---

DEFINITION = RulePass(
    name="semantics",
    order=30,
    heading_rules=[check_nesting, check_semantic_context, check_h1_landmark, check_div_container],
    document_rules=[
        check_landmark_presence,
        check_multiple_h1_sectioning,
        check_landmark_distribution,
        check_dom_depth,
    ],
)
