import asyncio
import math
import threading
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from dubhub.core.errors import AlreadyInProgress, InvalidState, NotFound, handle_job_error
from dubhub.core.logging_config import get_logger
from dubhub.models import VideoRecord, VideoStatus
from dubhub.services.catalog import Catalog
from dubhub.services.filenames import dubbed_name_for

logger = get_logger(__name__)


@dataclass
class JobSnapshot:
    status: VideoStatus
    progress: int
    dub_available: bool


@dataclass
class DubJob:
    video_id: str
    loop: asyncio.AbstractEventLoop
    cancelled: threading.Event = field(default_factory=threading.Event)
    task: Optional[asyncio.Task] = None


class JobRunner:
    """
    runs the simulated dubbing job for a video as an asyncio task

    each tick adds `progress_step` percent to the record until it reaches 100,
    then the record is marked completed with its dubbed artifact name.
    at most one task exists per video id. deleting a video must go through
    cancel() first; every tick re-checks the job's cancellation token while
    holding the record lock, so a cancelled job never touches the catalog again.
    """

    def __init__(
        self,
        catalog: Catalog,
        tick_seconds: float = 1.0,
        progress_step: int = 10,
        dubbed_prefix: str = "hindi-dub-",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if progress_step <= 0:
            raise ValueError("progress_step must be positive")
        self.catalog = catalog
        self.tick_seconds = tick_seconds
        self.progress_step = progress_step
        self.dubbed_prefix = dubbed_prefix
        self._sleep = sleep
        self._jobs: dict[str, DubJob] = {}
        self._lock = threading.Lock()

    def start(self, video_id: str) -> VideoRecord:
        """
        move an uploaded video to processing and schedule its job

        must be called from the event loop that will run the job.
        raises NotFound, AlreadyInProgress or InvalidState.
        """
        loop = asyncio.get_running_loop()
        with self._lock:
            existing = self._jobs.get(video_id)
            if existing and existing.task and not existing.task.done():
                raise AlreadyInProgress("Dubbing is already in progress for this video")

            record = self.catalog.update(video_id, self._begin)

            job = DubJob(video_id=video_id, loop=loop)
            job.task = loop.create_task(self._run(job), name=f"dub-{video_id}")
            self._jobs[video_id] = job

        logger.info(f"dubbing started for video {video_id} ({record.title})")
        return record

    def cancel(self, video_id: str) -> bool:
        """stop the job for a video if one is active, safe to call from any thread"""
        with self._lock:
            job = self._jobs.pop(video_id, None)
        if job is None:
            return False
        job.cancelled.set()
        if job.task and not job.task.done():
            job.loop.call_soon_threadsafe(job.task.cancel)
        logger.info(f"dubbing cancelled for video {video_id}")
        return True

    def snapshot(self, video_id: str) -> JobSnapshot:
        record = self.catalog.get(video_id)
        return JobSnapshot(
            status=record.status,
            progress=record.progress,
            dub_available=record.dub_available,
        )

    def is_running(self, video_id: str) -> bool:
        with self._lock:
            job = self._jobs.get(video_id)
            return bool(job and job.task and not job.task.done())

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for job in self._jobs.values() if job.task and not job.task.done())

    def estimated_time(self) -> str:
        ticks = math.ceil(100 / self.progress_step)
        return f"{ticks * self.tick_seconds:g} seconds"

    async def shutdown(self):
        """cancel every running job and wait for the tasks to finish"""
        with self._lock:
            jobs = list(self._jobs.values())
            self._jobs.clear()
        for job in jobs:
            job.cancelled.set()
            if job.task:
                job.task.cancel()
        tasks = [job.task for job in jobs if job.task]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"stopped {len(tasks)} dubbing job(s)")

    def _begin(self, record: VideoRecord):
        if record.status == VideoStatus.PROCESSING:
            raise AlreadyInProgress("Dubbing is already in progress for this video")
        if record.status != VideoStatus.UPLOADED:
            raise InvalidState(f"Video cannot be dubbed while {record.status.value}")
        record.status = VideoStatus.PROCESSING
        record.progress = 0

    def _advance(self, record: VideoRecord, job: DubJob):
        # runs under the record lock
        if job.cancelled.is_set() or record.status != VideoStatus.PROCESSING:
            return
        record.progress = min(100, record.progress + self.progress_step)
        if record.progress >= 100:
            record.status = VideoStatus.COMPLETED
            record.dubbed_name = dubbed_name_for(record.stored_name, self.dubbed_prefix)
            record.dub_available = True

    async def _run(self, job: DubJob):
        try:
            while True:
                await self._sleep(self.tick_seconds)
                if job.cancelled.is_set():
                    return
                try:
                    record = self.catalog.update(job.video_id, lambda r: self._advance(r, job))
                except NotFound:
                    logger.info(f"video {job.video_id} is gone, dropping its dubbing job")
                    return
                if job.cancelled.is_set():
                    return
                if record.status != VideoStatus.PROCESSING:
                    if record.status == VideoStatus.COMPLETED:
                        logger.info(f"dubbing completed for video {job.video_id}: {record.dubbed_name}")
                    return
                logger.debug(f"video {job.video_id} dubbing at {record.progress}%")
        except asyncio.CancelledError:
            logger.debug(f"dubbing task for video {job.video_id} cancelled")
            raise
        except Exception as e:
            handle_job_error(job.video_id, e)
        finally:
            with self._lock:
                if self._jobs.get(job.video_id) is job:
                    del self._jobs[job.video_id]
