import os
from typing import BinaryIO, NamedTuple, Optional

from dubhub.core.errors import InvalidFormat, PayloadTooLarge, StorageIOError
from dubhub.core.logging_config import get_logger
from dubhub.services.filenames import generate_stored_name, is_allowed_extension

logger = get_logger(__name__)

PARTIAL_SUFFIX = ".part"


class StoredBlob(NamedTuple):
    stored_name: str
    size_bytes: int


class BlobStore:
    """
    stores uploaded videos on local disk under generated unique names

    partial writes go to a scratch directory that is never served, and only
    a fully written blob within the size cap is moved into the videos dir
    """

    def __init__(
        self,
        root_dir: str,
        temp_dir: str,
        url_prefix: str = "/uploads/videos",
        max_bytes: int = 2 * 1024 * 1024 * 1024,
        allowed_extensions: Optional[list[str]] = None,
        chunk_size: int = 1024 * 1024,
    ):
        self.root_dir = root_dir
        self.temp_dir = temp_dir
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes
        self.allowed_extensions = allowed_extensions or [".mp4", ".avi", ".mov", ".mkv", ".webm"]
        self.chunk_size = chunk_size

    def ensure_dirs(self):
        os.makedirs(self.root_dir, exist_ok=True)
        os.makedirs(self.temp_dir, exist_ok=True)

    def store(self, stream: BinaryIO, original_filename: str, declared_size: Optional[int] = None) -> StoredBlob:
        """copy an upload stream into the store, returns the generated name and byte count"""
        if not is_allowed_extension(original_filename, self.allowed_extensions):
            raise InvalidFormat(
                f"Only video files are allowed ({', '.join(self.allowed_extensions)})"
            )
        if declared_size is not None and declared_size > self.max_bytes:
            raise PayloadTooLarge(self._too_large_message())

        try:
            self.ensure_dirs()
            stored_name, final_path = self._reserve_name(original_filename)
        except OSError as e:
            raise StorageIOError(f"could not prepare storage: {e}") from e
        partial_path = os.path.join(self.temp_dir, stored_name + PARTIAL_SUFFIX)

        written = 0
        try:
            with open(partial_path, "xb") as out:
                for chunk in iter(lambda: stream.read(self.chunk_size), b""):
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise PayloadTooLarge(self._too_large_message())
                    out.write(chunk)
            os.replace(partial_path, final_path)
        except PayloadTooLarge:
            self._discard(partial_path)
            logger.warning(f"rejected upload {original_filename}: over {self.max_bytes} bytes")
            raise
        except OSError as e:
            self._discard(partial_path)
            raise StorageIOError(f"failed to save uploaded file: {e}") from e

        logger.info(f"stored {original_filename} as {stored_name} ({written} bytes)")
        return StoredBlob(stored_name, written)

    def remove(self, stored_name: str) -> bool:
        """delete a blob, returns False when it was already gone"""
        path = self.path_for(stored_name)
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageIOError(f"failed to delete {stored_name}: {e}") from e
        logger.info(f"deleted blob {stored_name}")
        return True

    def url_for(self, stored_name: str) -> str:
        return f"{self.url_prefix}/{stored_name}"

    def path_for(self, stored_name: str) -> str:
        if not stored_name or os.path.basename(stored_name) != stored_name:
            raise ValueError(f"invalid blob name: {stored_name!r}")
        return os.path.join(self.root_dir, stored_name)

    def cleanup_partials(self) -> int:
        """remove partial files left behind by interrupted uploads"""
        removed = 0
        if not os.path.isdir(self.temp_dir):
            return removed
        for entry in os.scandir(self.temp_dir):
            if entry.is_file() and entry.name.endswith(PARTIAL_SUFFIX):
                self._discard(entry.path)
                removed += 1
        if removed:
            logger.info(f"removed {removed} partial upload(s) from {self.temp_dir}")
        return removed

    def disk_usage(self) -> int:
        """total bytes held by stored blobs"""
        total = 0
        if not os.path.isdir(self.root_dir):
            return total
        for entry in os.scandir(self.root_dir):
            if entry.is_file():
                total += entry.stat().st_size
        return total

    def _reserve_name(self, original_filename: str) -> tuple[str, str]:
        # a uuid4 clash is practically impossible but the name must never overwrite a blob
        while True:
            stored_name = generate_stored_name(original_filename)
            final_path = os.path.join(self.root_dir, stored_name)
            partial_path = os.path.join(self.temp_dir, stored_name + PARTIAL_SUFFIX)
            if not os.path.exists(final_path) and not os.path.exists(partial_path):
                return stored_name, final_path

    def _too_large_message(self) -> str:
        return f"File too large (max {self.max_bytes} bytes)"

    def _discard(self, path: str):
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"could not remove partial file {path}: {e}")
