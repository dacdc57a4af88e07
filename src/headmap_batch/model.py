# src/headmap_batch/model.py (Batch Layer)
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from headmap.model import AnalysisResult
from headmap_batch.exceptions import InvalidJobTransition

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


class BatchMode(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: Dict[JobStatus, Set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.ANALYZING},
    JobStatus.ANALYZING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


class BatchJob(BaseModel):
    """One URL of a batch and its progress through pending -> analyzing -> completed|failed."""
    id: str
    url: str
    status: JobStatus = JobStatus.PENDING
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    def transition(self, status: JobStatus) -> None:
        """Moves the job to a new status, stamping start/completion times."""
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidJobTransition(
                f"Job {self.id}: cannot move from '{self.status.value}' to '{status.value}'"
            )
        self.status = status
        if status == JobStatus.ANALYZING:
            self.started_at = _now()
        else:
            self.completed_at = _now()


class BatchState(BaseModel):
    """Aggregate state of one batch run. Only the BatchController writes to it."""
    jobs: List[BatchJob] = Field(default_factory=list)
    mode: BatchMode = BatchMode.IDLE
    is_running: bool = False
    is_paused: bool = False
    total_jobs: int = 0
    completed_jobs: int = 0
    failed_jobs: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def snapshot(self) -> "BatchState":
        """
        Copy whose jobs can be changed without touching this state. Analysis
        results are frozen models and are shared by reference.
        """
        return self.model_copy(update={"jobs": [job.model_copy() for job in self.jobs]})

    def get_job(self, job_id: str) -> BatchJob:
        for job in self.jobs:
            if job.id == job_id:
                return job
        raise KeyError(job_id)

    def count(self, status: JobStatus) -> int:
        return sum(1 for job in self.jobs if job.status == status)


class BatchStats(BaseModel):
    total_pages: int = 0
    completed_pages: int = 0
    failed_pages: int = 0
    total_headings: int = 0
    total_errors: int = 0
    total_warnings: int = 0
    avg_headings_per_page: float = 0.0
    pages_with_issues: int = 0
    pages_with_issues_pct: float = 0.0
    pages_without_h1: int = 0
    pages_with_multiple_h1: int = 0


class BatchSettings(BaseModel):
    concurrency: int = Field(default=3, ge=1)
    admission_delay: float = Field(default=0.5, ge=0, description="Seconds between consecutive job admissions.")
