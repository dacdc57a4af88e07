# src/headmap/validation.py
"""Per-pass entry points. Each returns a partial ValidationResult."""
from typing import Optional, Sequence

from .model import HeadingRecord, ValidationResult
from .rules.registry import RuleRegistry
from .rules.passes.heuristics import MAX_PAIRWISE_HEADINGS


def validate_structure(headings: Sequence[HeadingRecord]) -> ValidationResult:
    return RuleRegistry.get_pass("structure").run(headings)


def validate_accessibility(headings: Sequence[HeadingRecord]) -> ValidationResult:
    return RuleRegistry.get_pass("accessibility").run(headings)


def validate_semantics(headings: Sequence[HeadingRecord]) -> ValidationResult:
    return RuleRegistry.get_pass("semantics").run(headings)


def validate_heuristics(
        headings: Sequence[HeadingRecord],
        max_pairwise_headings: Optional[int] = MAX_PAIRWISE_HEADINGS
) -> ValidationResult:
    """Pass None as max_pairwise_headings to compare every pair regardless of size."""
    return RuleRegistry.get_pass("heuristics").run(
        headings, {"max_pairwise_headings": max_pairwise_headings}
    )
