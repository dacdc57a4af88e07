# src/headmap/analysis.py
import logging
from typing import Any, Dict, Optional, Sequence

from .hierarchy import build_hierarchy
from .metrics import build_metrics
from .model import AnalysisResult, HeadingRecord
from .rules.engine import ValidationEngine

logger = logging.getLogger(__name__)


def analyze_headings(
        headings: Sequence[HeadingRecord],
        options: Optional[Dict[str, Any]] = None
) -> AnalysisResult:
    """
    Runs the full single-document pipeline: outline, validation passes and
    metrics over the same heading list.

    Args:
        headings: Records in document order, as produced by an extractor.
        options: Rule options for the validation engine.

    Returns:
        AnalysisResult: The immutable aggregate for this document.
    """
    records = list(headings)
    hierarchy = build_hierarchy(records)
    validation = ValidationEngine(options=options).run(records)
    metrics = build_metrics(records, hierarchy)

    logger.debug(
        "Analyzed %d headings: %d errors, %d warnings, %d info.",
        len(records), len(validation.errors), len(validation.warnings), len(validation.info)
    )
    return AnalysisResult(
        headings=records,
        hierarchy=hierarchy,
        validation=validation,
        metrics=metrics,
    )
