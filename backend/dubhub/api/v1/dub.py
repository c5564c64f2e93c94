from fastapi import APIRouter, Depends

from dubhub.api.v1.schemas import DubResponse, ProgressResponse
from dubhub.core.deps import get_job_runner
from dubhub.services.job_runner import JobRunner

router = APIRouter()


@router.post("/dub/{video_id}", response_model=DubResponse)
async def request_dubbing(video_id: str, jobs: JobRunner = Depends(get_job_runner)):
    """start the dubbing job, returns immediately while the job runs in the background"""
    record = jobs.start(video_id)
    return DubResponse(
        success=True,
        message="Dubbing process started",
        video_id=record.id,
        estimated_time=jobs.estimated_time(),
    )


@router.get("/progress/{video_id}", response_model=ProgressResponse)
def get_progress(video_id: str, jobs: JobRunner = Depends(get_job_runner)):
    """polled by the client until status is completed"""
    snap = jobs.snapshot(video_id)
    return ProgressResponse(
        status=snap.status,
        progress=snap.progress,
        dub_available=snap.dub_available,
    )
