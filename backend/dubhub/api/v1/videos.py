from fastapi import APIRouter, Depends

from dubhub.api.v1.schemas import DeleteResponse, VideoOut
from dubhub.core.deps import get_blob_store, get_catalog, get_job_runner
from dubhub.core.errors import StorageIOError
from dubhub.core.logging_config import get_logger
from dubhub.services.blob_store import BlobStore
from dubhub.services.catalog import Catalog
from dubhub.services.job_runner import JobRunner

logger = get_logger(__name__)

router = APIRouter()


@router.get("/videos", response_model=list[VideoOut])
def list_videos(
    catalog: Catalog = Depends(get_catalog),
    blobs: BlobStore = Depends(get_blob_store),
):
    """all videos in upload order"""
    return [VideoOut.from_record(r, blobs.url_for(r.stored_name)) for r in catalog.list()]


@router.get("/video/{video_id}", response_model=VideoOut)
def get_video(
    video_id: str,
    catalog: Catalog = Depends(get_catalog),
    blobs: BlobStore = Depends(get_blob_store),
):
    record = catalog.get(video_id)
    return VideoOut.from_record(record, blobs.url_for(record.stored_name))


@router.delete("/video/{video_id}", response_model=DeleteResponse)
def delete_video(
    video_id: str,
    catalog: Catalog = Depends(get_catalog),
    blobs: BlobStore = Depends(get_blob_store),
    jobs: JobRunner = Depends(get_job_runner),
):
    """
    delete a video, its running dubbing job and its stored file

    the job is cancelled before the record goes so no tick can touch it again.
    plain def so file removal and the record lock wait on the threadpool
    """
    jobs.cancel(video_id)
    record = catalog.delete(video_id)

    try:
        blobs.remove(record.stored_name)
    except StorageIOError as e:
        logger.warning(f"video {video_id} removed from catalog but its file remains: {e}")
        raise StorageIOError(
            f"Video removed from catalog but its file could not be deleted: {e}"
        ) from e

    return DeleteResponse(success=True, message="Video deleted successfully")
