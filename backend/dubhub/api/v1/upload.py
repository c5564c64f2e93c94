import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from dubhub.api.v1.schemas import UploadedVideo, UploadResponse
from dubhub.core.deps import get_blob_store, get_catalog
from dubhub.core.errors import DubHubException, MissingUpload, StorageIOError
from dubhub.core.logging_config import get_logger
from dubhub.services.blob_store import BlobStore
from dubhub.services.catalog import Catalog

logger = get_logger(__name__)

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload_video(
    video: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    catalog: Catalog = Depends(get_catalog),
    blobs: BlobStore = Depends(get_blob_store),
):
    """
    accept a multipart upload (field `video`, optional `title`) and catalog it

    the copy to disk runs on the threadpool so a large upload never blocks
    the event loop serving polls and other requests
    """
    if video is None or not video.filename:
        raise MissingUpload("No file uploaded")

    try:
        # the multipart body is already spooled by now, raw request size is capped at the proxy
        blob = await run_in_threadpool(blobs.store, video.file, video.filename, video.size)
    except DubHubException:
        raise
    except Exception as e:
        logger.error(f"upload of {video.filename} failed: {e}", exc_info=True)
        raise StorageIOError(f"Upload failed: {e}") from e

    mime_type = (
        video.content_type
        or mimetypes.guess_type(video.filename)[0]
        or "application/octet-stream"
    )

    try:
        record = catalog.create(
            stored_name=blob.stored_name,
            original_name=video.filename,
            size_bytes=blob.size_bytes,
            mime_type=mime_type,
            title=title,
        )
    except Exception:
        # never leave an uncatalogued blob behind
        blobs.remove(blob.stored_name)
        raise

    return UploadResponse(
        success=True,
        message="Video uploaded successfully",
        video=UploadedVideo(id=record.id, title=record.title, status=record.status),
    )
