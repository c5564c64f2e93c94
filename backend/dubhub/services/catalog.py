import threading
from typing import Callable, Optional

from dubhub.core.errors import NotFound
from dubhub.core.logging_config import get_logger
from dubhub.models import VideoRecord, VideoStatus

logger = get_logger(__name__)


class Catalog:
    """
    in-memory registry of uploaded videos keyed by id

    owned by the application for the process lifetime, nothing is persisted.
    every record has its own lock so mutations for one id are serialized,
    and callers only ever get copies back.
    lock order is always record lock, then the registry lock.
    """

    def __init__(self):
        self._records: dict[str, VideoRecord] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def create(
        self,
        stored_name: str,
        original_name: str,
        size_bytes: int,
        mime_type: str,
        title: Optional[str] = None,
    ) -> VideoRecord:
        record = VideoRecord(
            stored_name=stored_name,
            original_name=original_name,
            title=(title or "").strip() or original_name,
            size_bytes=size_bytes,
            mime_type=mime_type,
        )
        with self._lock:
            if any(r.stored_name == stored_name for r in self._records.values()):
                raise ValueError(f"blob {stored_name} is already catalogued")
            self._records[record.id] = record
            self._locks[record.id] = threading.Lock()
        logger.info(f"catalogued video {record.id} ({record.title})")
        return record.model_copy()

    def list(self) -> list[VideoRecord]:
        with self._lock:
            records = list(self._records.values())
        # copy each under its own lock so no half-applied tick is observed
        snapshot = []
        for record in records:
            try:
                snapshot.append(self.get(record.id))
            except NotFound:
                continue
        return snapshot

    def get(self, video_id: str) -> VideoRecord:
        record, lock = self._entry(video_id)
        with lock:
            return record.model_copy()

    def update(self, video_id: str, mutator: Callable[[VideoRecord], None]) -> VideoRecord:
        """apply mutator to the live record while holding its lock, returns a copy"""
        record, lock = self._entry(video_id)
        with lock:
            self._check_current(video_id, record)
            mutator(record)
            return record.model_copy()

    def delete(self, video_id: str) -> VideoRecord:
        record, lock = self._entry(video_id)
        with lock:
            with self._lock:
                if self._records.get(video_id) is not record:
                    raise NotFound("Video not found")
                del self._records[video_id]
                del self._locks[video_id]
        logger.info(f"removed video {video_id} from catalog")
        return record.model_copy()

    def count_by_status(self) -> dict[str, int]:
        counts = {status.value: 0 for status in VideoStatus}
        for record in self.list():
            counts[record.status.value] += 1
        return counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, video_id: str) -> bool:
        with self._lock:
            return video_id in self._records

    def _entry(self, video_id: str) -> tuple[VideoRecord, threading.Lock]:
        with self._lock:
            record = self._records.get(video_id)
            if record is None:
                raise NotFound("Video not found")
            return record, self._locks[video_id]

    def _check_current(self, video_id: str, record: VideoRecord):
        # the record may have been deleted while we waited for its lock
        with self._lock:
            if self._records.get(video_id) is not record:
                raise NotFound("Video not found")
