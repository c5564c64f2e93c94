import asyncio

import pytest

from dubhub.core.errors import AlreadyInProgress, InvalidState, NotFound
from dubhub.models import VideoStatus
from dubhub.services.catalog import Catalog
from dubhub.services.job_runner import JobRunner


async def settle():
    """let every ready task run until it blocks again"""
    for _ in range(5):
        await asyncio.sleep(0)


class TickGate:
    """stands in for asyncio.sleep so the test decides when each tick fires"""

    def __init__(self):
        self.queue = asyncio.Queue()

    async def sleep(self, seconds):
        await self.queue.get()

    async def tick(self, count=1):
        for _ in range(count):
            self.queue.put_nowait(None)
            await settle()


def make_runner():
    catalog = Catalog()
    record = catalog.create(
        stored_name="3f1c2b9e.mp4",
        original_name="sample.mp4",
        size_bytes=500_000,
        mime_type="video/mp4",
        title="Test",
    )
    gate = TickGate()
    runner = JobRunner(catalog, tick_seconds=1.0, progress_step=10, sleep=gate.sleep)
    return catalog, runner, gate, record.id


def test_job_walks_progress_to_completion():
    async def scenario():
        catalog, runner, gate, video_id = make_runner()

        started = runner.start(video_id)
        assert started.status == VideoStatus.PROCESSING
        snap = runner.snapshot(video_id)
        assert (snap.status, snap.progress, snap.dub_available) == (VideoStatus.PROCESSING, 0, False)

        seen = []
        for _ in range(10):
            await gate.tick()
            snap = runner.snapshot(video_id)
            seen.append((snap.progress, snap.status, snap.dub_available))

        assert [p for p, _, _ in seen] == list(range(10, 101, 10))
        assert all(s == VideoStatus.PROCESSING and not d for _, s, d in seen[:-1])
        assert seen[-1] == (100, VideoStatus.COMPLETED, True)

        record = catalog.get(video_id)
        assert record.dubbed_name == "hindi-dub-3f1c2b9e.mp4"
        assert not runner.is_running(video_id)

        # nothing is listening any more, the record stays as it was
        await gate.tick(3)
        assert catalog.get(video_id).model_dump() == record.model_dump()

    asyncio.run(scenario())


def test_start_while_processing_is_rejected():
    async def scenario():
        catalog, runner, gate, video_id = make_runner()
        runner.start(video_id)
        await gate.tick()
        before = catalog.get(video_id)

        with pytest.raises(AlreadyInProgress):
            runner.start(video_id)

        assert catalog.get(video_id).model_dump() == before.model_dump()
        assert runner.active_count() == 1
        await runner.shutdown()

    asyncio.run(scenario())


def test_start_after_completion_is_invalid():
    async def scenario():
        catalog, runner, gate, video_id = make_runner()
        runner.start(video_id)
        await gate.tick(10)

        with pytest.raises(InvalidState) as excinfo:
            runner.start(video_id)
        assert excinfo.type is InvalidState

    asyncio.run(scenario())


def test_start_unknown_video():
    async def scenario():
        _, runner, _, _ = make_runner()
        with pytest.raises(NotFound):
            runner.start("missing")
        assert runner.active_count() == 0

    asyncio.run(scenario())


def test_cancel_then_delete_stops_the_job():
    async def scenario():
        catalog, runner, gate, video_id = make_runner()
        runner.start(video_id)
        await gate.tick(3)
        assert runner.snapshot(video_id).progress == 30

        assert runner.cancel(video_id) is True
        catalog.delete(video_id)
        await gate.tick(10)

        assert video_id not in catalog
        assert len(catalog) == 0
        with pytest.raises(NotFound):
            runner.snapshot(video_id)
        assert runner.active_count() == 0
        assert runner.cancel(video_id) is False

    asyncio.run(scenario())


def test_tick_after_delete_does_not_resurrect():
    async def scenario():
        catalog, runner, gate, video_id = make_runner()
        runner.start(video_id)
        await gate.tick(2)

        # record goes away while the job still has a tick pending
        catalog.delete(video_id)
        await gate.tick()

        assert video_id not in catalog
        assert not runner.is_running(video_id)

    asyncio.run(scenario())


def test_cancel_from_another_thread():
    async def scenario():
        catalog, runner, gate, video_id = make_runner()
        runner.start(video_id)
        await gate.tick()

        assert await asyncio.to_thread(runner.cancel, video_id) is True
        await settle()
        await gate.tick(5)

        assert catalog.get(video_id).progress == 10
        assert runner.active_count() == 0

    asyncio.run(scenario())


def test_shutdown_cancels_all_jobs():
    async def scenario():
        catalog, runner, gate, first = make_runner()
        second = catalog.create(
            stored_name="other.mkv", original_name="other.mkv", size_bytes=1, mime_type="video/x-matroska"
        ).id
        runner.start(first)
        runner.start(second)
        assert runner.active_count() == 2

        await runner.shutdown()
        await gate.tick(5)

        assert runner.active_count() == 0
        assert catalog.get(first).progress == 0
        assert catalog.get(second).status == VideoStatus.PROCESSING

    asyncio.run(scenario())


def test_real_sleep_runs_to_completion():
    async def scenario():
        catalog = Catalog()
        video_id = catalog.create(
            stored_name="a.webm", original_name="a.webm", size_bytes=1, mime_type="video/webm"
        ).id
        runner = JobRunner(catalog, tick_seconds=0.001, progress_step=25)
        runner.start(video_id)
        for _ in range(1000):
            if not runner.is_running(video_id):
                break
            await asyncio.sleep(0.001)

        record = catalog.get(video_id)
        assert record.status == VideoStatus.COMPLETED
        assert record.progress == 100
        assert record.dub_available is True

    asyncio.run(scenario())


@pytest.mark.parametrize(
    "tick_seconds,step,expected",
    [(1.0, 10, "10 seconds"), (2.0, 30, "8 seconds"), (0.5, 10, "5 seconds")],
)
def test_estimated_time(tick_seconds, step, expected):
    runner = JobRunner(Catalog(), tick_seconds=tick_seconds, progress_step=step)
    assert runner.estimated_time() == expected
