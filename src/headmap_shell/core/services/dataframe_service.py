# src/headmap_shell/core/services/dataframe_service.py
import logging
from collections import Counter

import pandas as pd

from headmap.model import AnalysisResult
from headmap_batch.model import BatchState, BatchStats, JobStatus

logger = logging.getLogger(__name__)

JOB_COLUMNS = ["id", "url", "status", "headings", "errors", "warnings", "info", "seconds", "error"]
ISSUE_COLUMNS = ["type", "severity", "pages", "occurrences"]
HEADING_COLUMNS = ["position", "tag", "text", "hidden", "landmark"]


class DataFrameService:
    """
    Turns analysis and batch results into pandas DataFrames for display.
    Stateless; every method builds a fresh frame from an immutable snapshot.
    """

    @staticmethod
    def jobs_frame(state: BatchState) -> pd.DataFrame:
        """One row per job, in input order."""
        rows = []
        for job in state.jobs:
            result = job.result
            seconds = None
            if job.started_at and job.completed_at:
                seconds = round((job.completed_at - job.started_at).total_seconds(), 2)
            rows.append({
                "id": job.id,
                "url": job.url,
                "status": job.status.value,
                "headings": result.metrics.total_headings if result else None,
                "errors": len(result.validation.errors) if result else None,
                "warnings": len(result.validation.warnings) if result else None,
                "info": len(result.validation.info) if result else None,
                "seconds": seconds,
                "error": job.error or "",
            })
        return pd.DataFrame(rows, columns=JOB_COLUMNS)

    @staticmethod
    def issues_frame(state: BatchState) -> pd.DataFrame:
        """
        Issue-code frequency over completed jobs: how many pages report each
        code and how often it occurs in total, most widespread first.
        """
        occurrences: Counter = Counter()
        pages: Counter = Counter()
        severities = {}

        for job in state.jobs:
            if job.status != JobStatus.COMPLETED or job.result is None:
                continue
            codes_on_page = set()
            for issue in job.result.validation.all_issues():
                occurrences[issue.type] += 1
                severities.setdefault(issue.type, issue.severity.value)
                codes_on_page.add(issue.type)
            pages.update(codes_on_page)

        if not occurrences:
            return pd.DataFrame(columns=ISSUE_COLUMNS)

        df = pd.DataFrame(
            [
                {"type": code, "severity": severities[code], "pages": pages[code], "occurrences": count}
                for code, count in occurrences.items()
            ],
            columns=ISSUE_COLUMNS,
        )
        return df.sort_values(["pages", "occurrences", "type"], ascending=[False, False, True]).reset_index(drop=True)

    @staticmethod
    def stats_frame(stats: BatchStats) -> pd.DataFrame:
        """Two-column metric/value view of the batch statistics."""
        return pd.DataFrame(list(stats.model_dump().items()), columns=["metric", "value"])

    @staticmethod
    def headings_frame(result: AnalysisResult) -> pd.DataFrame:
        rows = [
            {
                "position": h.position,
                "tag": h.tag,
                "text": h.text,
                "hidden": h.hidden,
                "landmark": h.landmark_type or "",
            }
            for h in result.headings
        ]
        return pd.DataFrame(rows, columns=HEADING_COLUMNS)
