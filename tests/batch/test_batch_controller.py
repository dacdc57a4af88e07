# tests/batch/test_batch_controller.py
import asyncio

import pytest

from headmap.model import HeadingRecord
from headmap_batch.controllers.batch_controller import BatchController
from headmap_batch.exceptions import BatchAlreadyRunning, FetchCancelled, FetchError
from headmap_batch.model import BatchMode, BatchSettings, JobStatus

URLS = [f"https://site{i}.test/" for i in range(1, 6)]


class FakeFetcher:
    """Serves a tiny document per URL after a delay and tracks concurrency."""

    def __init__(self, delay: float = 0.02, honour_cancel: bool = False, fail_on=()):
        self.delay = delay
        self.honour_cancel = honour_cancel
        self.fail_on = set(fail_on)
        self.active = 0
        self.max_seen = 0
        self.calls = []

    async def __call__(self, url: str, cancel_event: asyncio.Event) -> str:
        self.calls.append(url)
        self.active += 1
        self.max_seen = max(self.max_seen, self.active)
        try:
            if self.honour_cancel:
                try:
                    await asyncio.wait_for(cancel_event.wait(), timeout=self.delay)
                    raise FetchCancelled(url)
                except asyncio.TimeoutError:
                    pass
            else:
                await asyncio.sleep(self.delay)
            if url in self.fail_on:
                raise FetchError(url, "HTTP 404", 404)
            return f"Heading for {url}"
        finally:
            self.active -= 1


def extract(html: str):
    return [HeadingRecord(level=1, text=html)]


def _controller(fetcher, concurrency=2, delay=0.0, **kwargs):
    settings = BatchSettings(concurrency=concurrency, admission_delay=delay)
    return BatchController(fetch=fetcher, extract=extract, settings=settings, **kwargs)


def test_all_jobs_complete_in_order():
    fetcher = FakeFetcher()
    controller = _controller(fetcher)

    final = asyncio.run(controller.run(URLS))

    assert final.mode == BatchMode.COMPLETED
    assert not final.is_running
    assert final.completed_jobs == 5 and final.failed_jobs == 0
    assert [job.id for job in final.jobs] == [f"job-{i}" for i in range(1, 6)]
    assert fetcher.calls == URLS
    assert all(job.result.headings[0].text == f"Heading for {job.url}" for job in final.jobs)
    assert all(job.started_at <= job.completed_at for job in final.jobs)


def test_concurrency_limit_is_respected():
    fetcher = FakeFetcher(delay=0.05)
    controller = _controller(fetcher, concurrency=2)
    samples = []

    final = asyncio.run(controller.run(URLS[:4], on_update=lambda s: samples.append(s.count(JobStatus.ANALYZING))))

    assert max(samples) <= 2
    assert fetcher.max_seen == 2
    assert controller.peak_in_flight == 2
    assert final.completed_jobs + final.failed_jobs == 4


def test_counters_match_terminal_jobs_in_every_update():
    fetcher = FakeFetcher(fail_on={URLS[1]})
    controller = _controller(fetcher, concurrency=3)
    mismatches = []

    def check(snapshot):
        if snapshot.completed_jobs != snapshot.count(JobStatus.COMPLETED):
            mismatches.append(snapshot)
        if snapshot.failed_jobs != snapshot.count(JobStatus.FAILED):
            mismatches.append(snapshot)

    asyncio.run(controller.run(URLS, on_update=check))
    assert mismatches == []


def test_failed_fetch_is_recorded():
    fetcher = FakeFetcher(fail_on={URLS[0]})
    final = asyncio.run(_controller(fetcher).run(URLS[:2]))

    failed = final.get_job("job-1")
    assert failed.status == JobStatus.FAILED
    assert failed.error == f"Failed to fetch {URLS[0]}: HTTP 404"
    assert failed.result is None
    assert final.get_job("job-2").status == JobStatus.COMPLETED
    assert final.mode == BatchMode.COMPLETED


def test_extract_errors_fail_only_that_job():
    calls = {"n": 0}

    def flaky_extract(html):
        calls["n"] += 1
        if calls["n"] == 1:
            raise ValueError("unparseable document")
        return extract(html)

    controller = BatchController(
        fetch=FakeFetcher(), extract=flaky_extract, settings=BatchSettings(concurrency=1, admission_delay=0)
    )
    final = asyncio.run(controller.run(URLS[:3]))

    assert final.failed_jobs == 1 and final.completed_jobs == 2
    assert final.get_job("job-1").error == "unparseable document"


def test_pause_holds_admissions_until_resume():
    async def scenario():
        fetcher = FakeFetcher(delay=0.05)
        controller = _controller(fetcher, concurrency=1)
        runner = asyncio.create_task(controller.run(URLS[:3]))

        await asyncio.sleep(0.01)
        controller.pause()
        await asyncio.sleep(0.2)
        paused = controller.state

        controller.resume()
        final = await asyncio.wait_for(runner, timeout=2)
        return paused, final

    paused, final = asyncio.run(scenario())

    assert paused.mode == BatchMode.PAUSED
    assert paused.is_paused
    assert [job.status for job in paused.jobs] == [JobStatus.COMPLETED, JobStatus.PENDING, JobStatus.PENDING]
    assert final.mode == BatchMode.COMPLETED
    assert final.completed_jobs == 3


def test_cancel_lets_in_flight_jobs_finish_and_keeps_the_rest_pending():
    async def scenario():
        controller = _controller(FakeFetcher(delay=0.05), concurrency=2)
        runner = asyncio.create_task(controller.run(URLS))
        await asyncio.sleep(0.01)
        controller.cancel()
        return await asyncio.wait_for(runner, timeout=2)

    final = asyncio.run(scenario())

    assert final.mode == BatchMode.CANCELLED
    assert not final.is_running
    assert final.completed_jobs == 2
    assert final.count(JobStatus.PENDING) == 3
    assert all(job.result is None for job in final.jobs if job.status == JobStatus.PENDING)


def test_cancel_aware_fetches_are_marked_cancelled():
    async def scenario():
        controller = _controller(FakeFetcher(delay=5, honour_cancel=True), concurrency=2)
        runner = asyncio.create_task(controller.run(URLS[:3]))
        await asyncio.sleep(0.01)
        controller.cancel()
        return await asyncio.wait_for(runner, timeout=2)

    final = asyncio.run(scenario())

    assert final.mode == BatchMode.CANCELLED
    assert final.failed_jobs == 2
    assert [job.error for job in final.jobs[:2]] == ["Cancelled", "Cancelled"]
    assert final.jobs[2].status == JobStatus.PENDING


def test_cancel_while_paused_leaves_the_paused_mode():
    async def scenario():
        controller = _controller(FakeFetcher(delay=0.1), concurrency=1)
        runner = asyncio.create_task(controller.run(URLS[:3]))

        await asyncio.sleep(0.01)
        controller.pause()
        controller.cancel()
        settling = controller.state
        in_flight = controller.in_flight_count

        final = await asyncio.wait_for(runner, timeout=2)
        return settling, in_flight, final, controller.in_flight_count

    settling, in_flight, final, left_over = asyncio.run(scenario())

    assert settling.mode == BatchMode.RUNNING
    assert not settling.is_paused
    assert settling.is_running
    assert in_flight == 1
    assert left_over == 0
    assert final.mode == BatchMode.CANCELLED
    assert final.completed_jobs == 1
    assert final.count(JobStatus.PENDING) == 2


def test_cancel_interrupts_admission_delay():
    async def scenario():
        controller = _controller(FakeFetcher(delay=0), concurrency=2, delay=10)
        runner = asyncio.create_task(controller.run(URLS[:3]))
        await asyncio.sleep(0.05)
        controller.cancel()
        return await asyncio.wait_for(runner, timeout=2)

    final = asyncio.run(scenario())

    assert final.mode == BatchMode.CANCELLED
    assert final.completed_jobs == 1
    assert final.count(JobStatus.PENDING) == 2


def test_second_run_while_running_is_rejected():
    async def scenario():
        controller = _controller(FakeFetcher(delay=0.05))
        runner = asyncio.create_task(controller.run(URLS[:2]))
        await asyncio.sleep(0)
        try:
            with pytest.raises(BatchAlreadyRunning):
                await controller.run(URLS)
        finally:
            controller.cancel()
            await runner

    asyncio.run(scenario())


def test_controller_can_run_again_after_finishing():
    async def scenario():
        controller = _controller(FakeFetcher())
        await controller.run(URLS[:1])
        return await controller.run(URLS[1:3])

    final = asyncio.run(scenario())
    assert final.total_jobs == 2
    assert final.completed_jobs == 2
    assert [job.id for job in final.jobs] == ["job-1", "job-2"]


def test_start_yields_snapshots_until_done():
    async def scenario():
        controller = _controller(FakeFetcher())
        return [snapshot async for snapshot in controller.start(URLS[:2])]

    snapshots = asyncio.run(scenario())

    assert snapshots[0].mode == BatchMode.RUNNING
    assert snapshots[0].count(JobStatus.PENDING) == 2
    assert snapshots[-1].mode == BatchMode.COMPLETED
    assert snapshots[-1].completed_jobs == 2
    assert len({id(s) for s in snapshots}) == len(snapshots)


def test_snapshots_are_independent_of_controller_state():
    controller = _controller(FakeFetcher())
    final = asyncio.run(controller.run(URLS[:1]))

    final.jobs[0].error = "tampered"
    final.completed_jobs = 99

    assert controller.state.jobs[0].error is None
    assert controller.state.completed_jobs == 1
    assert final.jobs[0].result is controller.state.jobs[0].result


def test_controls_are_noops_when_idle():
    controller = _controller(FakeFetcher())
    controller.pause()
    controller.resume()
    controller.cancel()

    state = controller.state
    assert state.mode == BatchMode.IDLE
    assert not state.is_paused
    assert not controller.cancel_event.is_set()


def test_empty_batch_completes_immediately():
    final = asyncio.run(_controller(FakeFetcher()).run([]))
    assert final.mode == BatchMode.COMPLETED
    assert final.total_jobs == 0


def test_listener_errors_do_not_break_the_batch():
    def broken(_snapshot):
        raise RuntimeError("listener bug")

    final = asyncio.run(_controller(FakeFetcher()).run(URLS[:2], on_update=broken))
    assert final.completed_jobs == 2


def test_progress_bar_run(capsys):
    final = asyncio.run(_controller(FakeFetcher(), show_progress=True).run(URLS[:2]))
    assert final.completed_jobs == 2


def test_stats_from_controller():
    controller = _controller(FakeFetcher(fail_on={URLS[0]}))
    asyncio.run(controller.run(URLS[:3]))
    stats = controller.get_stats()

    assert stats.total_pages == 3
    assert stats.completed_pages == 2
    assert stats.failed_pages == 1
    assert stats.total_headings == 2
    assert stats.avg_headings_per_page == 1.0
