from fastapi import Request

from dubhub.services.blob_store import BlobStore
from dubhub.services.catalog import Catalog
from dubhub.services.job_runner import JobRunner


def get_catalog(request: Request) -> Catalog:
    return request.app.state.catalog


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blobs


def get_job_runner(request: Request) -> JobRunner:
    return request.app.state.jobs
