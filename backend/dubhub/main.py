from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from dubhub.api.v1 import dub, health, upload, videos
from dubhub.core.config import Settings, settings as default_settings
from dubhub.core.errors import DubHubException
from dubhub.core.logging_config import get_logger
from dubhub.services.blob_store import BlobStore
from dubhub.services.catalog import Catalog
from dubhub.services.job_runner import JobRunner

logger = get_logger(__name__)


def create_app(settings: Settings = default_settings) -> FastAPI:
    """build the api with its own blob store, catalog and job runner"""
    blobs = BlobStore(
        root_dir=settings.VIDEOS_DIR,
        temp_dir=settings.UPLOAD_TEMP_DIR,
        url_prefix=settings.VIDEOS_URL_PREFIX,
        max_bytes=settings.MAX_UPLOAD_BYTES,
        allowed_extensions=settings.ALLOWED_EXTENSIONS,
        chunk_size=settings.UPLOAD_CHUNK_BYTES,
    )
    catalog = Catalog()
    jobs = JobRunner(
        catalog,
        tick_seconds=settings.DUB_TICK_SECONDS,
        progress_step=settings.DUB_PROGRESS_STEP,
        dubbed_prefix=settings.DUBBED_PREFIX,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        blobs.ensure_dirs()
        blobs.cleanup_partials()
        logger.info(f"upload directory: {blobs.root_dir}")
        yield
        await jobs.shutdown()

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.blobs = blobs
    app.state.catalog = catalog
    app.state.jobs = jobs

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DubHubException)
    async def dubhub_exception_handler(request: Request, exc: DubHubException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.get("/")
    def read_root():
        return {
            "message": f"{settings.PROJECT_NAME} API",
            "endpoints": {
                "upload": "POST /api/upload",
                "videos": "GET /api/videos",
                "video": "GET /api/video/{id}",
                "dubbing": "POST /api/dub/{id}",
                "progress": "GET /api/progress/{id}",
                "delete": "DELETE /api/video/{id}",
            },
        }

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(upload.router, prefix="/api", tags=["upload"])
    app.include_router(videos.router, prefix="/api", tags=["videos"])
    app.include_router(dub.router, prefix="/api", tags=["dubbing"])

    # stored blobs are served as-is, the directory is created on startup
    app.mount(
        settings.VIDEOS_URL_PREFIX,
        StaticFiles(directory=settings.VIDEOS_DIR, check_dir=False),
        name="videos",
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("dubhub.main:app", host="0.0.0.0", port=5000)
