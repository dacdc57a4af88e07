# src/headmap_batch/services/batch_stats_service.py
import logging

from headmap_batch.model import BatchState, BatchStats, JobStatus

logger = logging.getLogger(__name__)


def compute_batch_stats(state: BatchState) -> BatchStats:
    """
    Aggregates a batch state into summary statistics.

    Only completed jobs contribute heading and issue totals. A page counts as
    "with issues" when its validation holds at least one error or warning;
    info-level advisories are not counted.
    """
    completed = [job for job in state.jobs if job.status == JobStatus.COMPLETED and job.result is not None]
    failed_pages = sum(1 for job in state.jobs if job.status == JobStatus.FAILED)

    total_headings = 0
    total_errors = 0
    total_warnings = 0
    pages_with_issues = 0
    pages_without_h1 = 0
    pages_with_multiple_h1 = 0

    for job in completed:
        result = job.result
        errors = len(result.validation.errors)
        warnings = len(result.validation.warnings)

        total_headings += result.metrics.total_headings
        total_errors += errors
        total_warnings += warnings

        if errors or warnings:
            pages_with_issues += 1
        if result.metrics.h1_count == 0:
            pages_without_h1 += 1
        elif result.metrics.h1_count > 1:
            pages_with_multiple_h1 += 1

    completed_pages = len(completed)
    return BatchStats(
        total_pages=len(state.jobs),
        completed_pages=completed_pages,
        failed_pages=failed_pages,
        total_headings=total_headings,
        total_errors=total_errors,
        total_warnings=total_warnings,
        avg_headings_per_page=round(total_headings / completed_pages, 2) if completed_pages else 0.0,
        pages_with_issues=pages_with_issues,
        pages_with_issues_pct=round(pages_with_issues / completed_pages * 100, 1) if completed_pages else 0.0,
        pages_without_h1=pages_without_h1,
        pages_with_multiple_h1=pages_with_multiple_h1,
    )
