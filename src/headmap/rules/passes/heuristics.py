# src/headmap/rules/passes/heuristics.py
"""
Heuristic SEO/readability pass. Looks only at heading text; empty headings
are left to the structural pass.
"""
import logging
from typing import Any, List, Mapping, Optional, Sequence

from headmap.model import HeadingRecord, Issue, Severity
from headmap.utils.lexicons import POWER_WORDS
from headmap.utils.text_metrics import (
    analyze_sentiment,
    detect_power_words,
    find_similar_pairs,
    has_numbers,
    is_question_format,
    readability_score,
    stop_word_ratio,
)
from ..core import RulePass, audit_spec

logger = logging.getLogger(__name__)

LOW_READABILITY = 30
STOP_WORD_LIMIT = 50
SIMILARITY_THRESHOLD = 0.7
# Pairwise similarity is quadratic in the number of headings.
MAX_PAIRWISE_HEADINGS = 500


# --- HEADING RULES ---

@audit_spec(codes=["low_readability"])
def check_readability(heading: HeadingRecord, index: int) -> List[Issue]:
    if not heading.text:
        return []
    score = readability_score(heading.text)
    if score >= LOW_READABILITY:
        return []
    return [Issue(
        type="low_readability",
        severity=Severity.INFO,
        message=f'{heading.label} has low readability score ({score:.0f}): "{heading.text}"',
        recommendation="Simplify the heading text for better user understanding",
    )]


@audit_spec(codes=["question_format"])
def check_question_format(heading: HeadingRecord, index: int) -> List[Issue]:
    if heading.level < 2 or not heading.text or not is_question_format(heading.text):
        return []
    return [Issue(
        type="question_format",
        severity=Severity.INFO,
        message=f'Question-format heading detected: "{heading.text}"',
        recommendation="Good for featured snippets; answer the question directly in the content below.",
    )]


@audit_spec(codes=["no_power_words_h1"])
def check_power_words(heading: HeadingRecord, index: int) -> List[Issue]:
    if heading.level != 1 or not heading.text or detect_power_words(heading.text):
        return []
    return [Issue(
        type="no_power_words_h1",
        severity=Severity.INFO,
        message=f'H1 lacks power words for engagement: "{heading.text}"',
        recommendation=f"Consider adding power words like: {', '.join(POWER_WORDS[:5])}",
    )]


@audit_spec(codes=["numbered_heading"])
def check_numbers(heading: HeadingRecord, index: int) -> List[Issue]:
    if heading.level > 3 or not has_numbers(heading.text):
        return []
    return [Issue(
        type="numbered_heading",
        severity=Severity.INFO,
        message=f'Numbered heading detected: "{heading.text}"',
        recommendation="Numbered headings (lists) tend to perform well in search results.",
    )]


@audit_spec(codes=["too_many_stop_words"])
def check_stop_words(heading: HeadingRecord, index: int) -> List[Issue]:
    ratio = stop_word_ratio(heading.text)
    if ratio <= STOP_WORD_LIMIT:
        return []
    return [Issue(
        type="too_many_stop_words",
        severity=Severity.WARNING,
        message=f'{heading.label} contains {ratio:.0f}% stop words: "{heading.text}"',
        recommendation="Reduce common words and use more descriptive, keyword-rich terms",
    )]


@audit_spec(codes=["negative_sentiment_h1"])
def check_sentiment(heading: HeadingRecord, index: int) -> List[Issue]:
    if heading.level != 1 or not heading.text:
        return []
    if analyze_sentiment(heading.text).label != "negative":
        return []
    return [Issue(
        type="negative_sentiment_h1",
        severity=Severity.WARNING,
        message=f'H1 has negative sentiment: "{heading.text}"',
        recommendation="Consider using more positive or neutral language for main headings",
    )]


# --- DOCUMENT RULES ---

def _pairwise_limit(options: Mapping[str, Any]) -> Optional[int]:
    """The heading cap for the similarity check; None means no cap."""
    limit = options.get("max_pairwise_headings", MAX_PAIRWISE_HEADINGS)
    if limit is None:
        return None
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        logger.warning(
            "Ignoring invalid pairwise heading limit %r; using %d.", limit, MAX_PAIRWISE_HEADINGS
        )
        return MAX_PAIRWISE_HEADINGS
    return limit


@audit_spec(codes=["similar_headings"])
def check_similar_headings(headings: Sequence[HeadingRecord], options: Mapping[str, Any]) -> List[Issue]:
    """
    Rule: near-duplicate headings, compared pairwise (O(n^2)).
    Skipped for documents above the configured heading cap.
    """
    candidates = [h for h in headings if h.text]
    limit = _pairwise_limit(options)
    if limit is not None and len(candidates) > limit:
        logger.warning(
            "Skipping similarity check: %d headings exceed the pairwise limit of %d.",
            len(candidates), limit
        )
        return []

    issues = []
    pairs = find_similar_pairs([h.text for h in candidates], SIMILARITY_THRESHOLD)
    for i, j, similarity in pairs:
        issues.append(Issue(
            type="similar_headings",
            severity=Severity.WARNING,
            message=(
                f'Headings "{candidates[i].text}" and "{candidates[j].text}" '
                f"are {round(similarity * 100)}% similar"
            ),
            recommendation="Use unique, descriptive headings to avoid confusing users and search engines",
        ))
    return issues


# --- PASS DEFINITION ---

DEFINITION = RulePass(
    name="heuristics",
    order=40,
    heading_rules=[
        check_readability,
        check_question_format,
        check_power_words,
        check_numbers,
        check_stop_words,
        check_sentiment,
    ],
    document_rules=[check_similar_headings],
)
