from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from dubhub.core.deps import get_blob_store, get_catalog, get_job_runner
from dubhub.services.blob_store import BlobStore
from dubhub.services.catalog import Catalog
from dubhub.services.job_runner import JobRunner

router = APIRouter()


@router.get("/")
def health_check():
    """basic liveness check"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "dubhub-backend",
    }


@router.get("/metrics")
def get_metrics(
    catalog: Catalog = Depends(get_catalog),
    blobs: BlobStore = Depends(get_blob_store),
    jobs: JobRunner = Depends(get_job_runner),
):
    """video counts by status, running jobs and storage used"""
    by_status = catalog.count_by_status()
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "videos": {
            "total": sum(by_status.values()),
            **by_status,
        },
        "jobs": {
            "running": jobs.active_count(),
        },
        "storage": {
            "bytes": blobs.disk_usage(),
        },
    }
