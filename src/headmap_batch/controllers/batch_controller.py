# src/headmap_batch/controllers/batch_controller.py
import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Deque, Dict, Iterable, List, Optional, Sequence

from headmap.analysis import analyze_headings
from headmap.model import AnalysisResult, HeadingRecord
from headmap_batch.controllers.async_controller import AsyncController
from headmap_batch.exceptions import BatchAlreadyRunning, FetchCancelled
from headmap_batch.managers.progress_manager import ProgressManager
from headmap_batch.model import BatchJob, BatchMode, BatchSettings, BatchState, BatchStats, JobStatus
from headmap_batch.services.batch_stats_service import compute_batch_stats
from headmap_shell.core.managers.config_manager import config_manager

logger = logging.getLogger(__name__)

FetchFn = Callable[[str, asyncio.Event], Awaitable[str]]
ExtractFn = Callable[[str], Sequence[HeadingRecord]]
UpdateFn = Callable[[BatchState], None]


class BatchController(AsyncController):
    """
    Runs the analysis pipeline over a list of URLs with bounded concurrency.

    Jobs are admitted from a FIFO queue in input order, at most
    `settings.concurrency` at a time, with `settings.admission_delay` seconds
    between consecutive admissions. The scheduler sleeps on a single wake-up
    event that is set whenever a job settles or pause/resume/cancel is called.

    The controller is the only writer of its BatchState. Everyone else gets
    snapshots, either through `state`, the `on_update` callback or `start()`.
    """

    def __init__(
            self,
            fetch: FetchFn,
            extract: ExtractFn,
            settings: Optional[BatchSettings] = None,
            analysis_options: Optional[Dict[str, Any]] = None,
            show_progress: bool = False,
    ):
        """
        Args:
            fetch: Async callable (url, cancel_event) -> html. May raise; a
                FetchCancelled marks the job as cancelled.
            extract: Callable html -> heading records.
            settings: Concurrency and admission delay. Defaults come from the
                'batch' config section.
            analysis_options: Rule options passed to the validation engine.
            show_progress: Draw a tqdm bar while the batch runs.
        """
        super().__init__()
        self.fetch = fetch
        self.extract = extract
        self.settings = settings or BatchSettings(
            concurrency=config_manager.get_nested("batch.concurrency", 3),
            admission_delay=config_manager.get_nested("batch.admission_delay", 0.5),
        )
        self.analysis_options = analysis_options
        self.show_progress = show_progress

        self._state = BatchState()
        self._queue: Deque[BatchJob] = deque()
        self._resume_event = asyncio.Event()
        self._resume_event.set()
        self._wakeup = asyncio.Event()
        self._listeners: List[UpdateFn] = []
        self.progress_manager: Optional[ProgressManager] = None

        # Highest number of jobs analyzing at the same time in the last run.
        self.peak_in_flight = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> BatchState:
        return self._state.snapshot()

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    def get_stats(self) -> BatchStats:
        return compute_batch_stats(self._state)

    async def run(self, urls: Iterable[str], on_update: Optional[UpdateFn] = None) -> BatchState:
        """
        Runs a batch to a terminal mode (completed or cancelled).

        Args:
            urls: URLs in admission order. Each becomes one job.
            on_update: Called with a snapshot after every state change.

        Returns:
            BatchState: Snapshot of the final state.

        Raises:
            BatchAlreadyRunning: This controller is already running a batch.
        """
        if self._state.is_running:
            raise BatchAlreadyRunning("A batch is already running on this controller.")

        if on_update is not None:
            self._listeners.append(on_update)
        try:
            self._prepare(list(urls))
            try:
                await self._schedule()
            finally:
                if self._in_flight:
                    await self.shutdown()
                self._finish()
        finally:
            if on_update is not None:
                self._listeners.remove(on_update)

        return self.state

    async def start(self, urls: Iterable[str]) -> AsyncIterator[BatchState]:
        """Runs a batch and yields a snapshot after every state change."""
        updates: asyncio.Queue = asyncio.Queue()
        runner = asyncio.create_task(self.run(urls, on_update=updates.put_nowait))
        runner.add_done_callback(lambda _: updates.put_nowait(None))

        try:
            while True:
                snapshot = await updates.get()
                if snapshot is None:
                    break
                yield snapshot
            # Re-raises BatchAlreadyRunning and friends
            runner.result()
        finally:
            if not runner.done():
                self.cancel()
                await runner

    def pause(self) -> None:
        """Stops new admissions. Jobs already analyzing run to completion."""
        if not self._state.is_running or self._state.is_paused or self.cancel_event.is_set():
            return
        self._resume_event.clear()
        self._state.is_paused = True
        self._state.mode = BatchMode.PAUSED
        if self.progress_manager:
            self.progress_manager.set_paused(True)
        logger.info("Batch paused.")
        self._wakeup.set()
        self._notify()

    def resume(self) -> None:
        if not self._state.is_running or not self._state.is_paused:
            return
        self._resume_event.set()
        self._state.is_paused = False
        self._state.mode = BatchMode.RUNNING
        if self.progress_manager:
            self.progress_manager.set_paused(False)
        logger.info("Batch resumed.")
        self._wakeup.set()
        self._notify()

    def cancel(self) -> None:
        """
        Stops all future admissions and signals in-flight fetches to abort.
        Jobs that were never admitted stay pending.
        """
        if not self._state.is_running or self.cancel_event.is_set():
            return
        self.cancel_event.set()
        self._resume_event.set()
        self._state.is_paused = False
        self._state.mode = BatchMode.RUNNING
        if self.progress_manager:
            self.progress_manager.set_paused(False)
        logger.info("Batch cancellation requested.")
        self._wakeup.set()
        self._notify()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _prepare(self, urls: List[str]) -> None:
        self._reset_signals()
        self._resume_event = asyncio.Event()
        self._resume_event.set()
        self._wakeup = asyncio.Event()
        self.peak_in_flight = 0

        jobs = [BatchJob(id=f"job-{i + 1}", url=url) for i, url in enumerate(urls)]
        self._queue = deque(jobs)
        self._state = BatchState(
            jobs=jobs,
            mode=BatchMode.RUNNING,
            is_running=True,
            total_jobs=len(jobs),
            started_at=datetime.now(timezone.utc),
        )

        if self.show_progress:
            self.progress_manager = ProgressManager(total=len(jobs))

        logger.info(
            "Starting batch of %d URL(s) (concurrency=%d, delay=%.2fs).",
            len(jobs), self.settings.concurrency, self.settings.admission_delay
        )
        self._notify()

    def _can_admit(self) -> bool:
        return (
            bool(self._queue)
            and self._resume_event.is_set()
            and not self.cancel_event.is_set()
            and self.in_flight_count < self.settings.concurrency
        )

    def _has_work(self) -> bool:
        if self._in_flight:
            return True
        return bool(self._queue) and not self.cancel_event.is_set()

    async def _schedule(self) -> None:
        admitted_any = False

        while self._has_work():
            # Clear before checking, so a wake-up set after the check is not lost.
            self._wakeup.clear()

            if not self._can_admit():
                await self._wakeup.wait()
                continue

            if admitted_any and self.settings.admission_delay > 0:
                await self._admission_delay()
                if not self._can_admit():
                    continue

            self._admit(self._queue.popleft())
            admitted_any = True

    async def _admission_delay(self) -> None:
        """Sleeps for the admission delay, returning early on cancel."""
        try:
            await asyncio.wait_for(self.cancel_event.wait(), timeout=self.settings.admission_delay)
        except asyncio.TimeoutError:
            pass

    def _admit(self, job: BatchJob) -> None:
        job.transition(JobStatus.ANALYZING)
        task = asyncio.create_task(self._run_job(job), name=f"headmap-{job.id}")
        self._in_flight.add(task)
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight_count)
        task.add_done_callback(self._on_task_done)
        logger.debug("Admitted %s (%s). In flight: %d.", job.id, job.url, self.in_flight_count)
        self._notify()

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        self._wakeup.set()

    async def _run_job(self, job: BatchJob) -> None:
        try:
            html = await self.fetch(job.url, self.cancel_event)
            # Past this point the job is recorded even if a cancel arrives.
            headings = self.extract(html)
            result = analyze_headings(headings, self.analysis_options)
        except FetchCancelled:
            logger.debug("Fetch of %s cancelled.", job.url)
            self._settle(job, error="Cancelled")
        except Exception as e:
            logger.warning("Job %s (%s) failed: %s", job.id, job.url, e)
            self._settle(job, error=str(e) or type(e).__name__)
        else:
            self._settle(job, result=result)

    def _settle(self, job: BatchJob, result: Optional[AnalysisResult] = None, error: Optional[str] = None) -> None:
        """Terminal transition and counter update, with no await in between."""
        if error is None:
            job.result = result
            job.transition(JobStatus.COMPLETED)
            self._state.completed_jobs += 1
        else:
            job.error = error
            job.transition(JobStatus.FAILED)
            self._state.failed_jobs += 1

        if self.progress_manager:
            self.progress_manager.advance(self._state.completed_jobs, self._state.failed_jobs)
        self._notify()

    def _finish(self) -> None:
        cancelled = self.cancel_event.is_set()
        self._state.mode = BatchMode.CANCELLED if cancelled else BatchMode.COMPLETED
        self._state.is_running = False
        self._state.is_paused = False
        self._state.completed_at = datetime.now(timezone.utc)

        if self.progress_manager:
            self.progress_manager.close(self._state.completed_jobs, self._state.failed_jobs, cancelled=cancelled)
            self.progress_manager = None

        duration = (self._state.completed_at - self._state.started_at).total_seconds()
        settled = self._state.completed_jobs + self._state.failed_jobs
        pps = settled / duration if duration > 0 else 0
        logger.info(
            f"Batch {self._state.mode.value}. {self._state.completed_jobs} completed, "
            f"{self._state.failed_jobs} failed, {self._state.count(JobStatus.PENDING)} pending "
            f"in {duration:.2f}s ({pps:.2f} p/s)."
        )
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self._state.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Batch update listener raised.")
