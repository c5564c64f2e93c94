from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from dubhub.models import VideoRecord, VideoStatus


class CamelModel(BaseModel):
    """response models are serialized with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoOut(CamelModel):
    id: str
    title: str
    original_name: str
    stored_name: str
    size_bytes: int
    mime_type: str
    created_at: datetime
    status: VideoStatus
    progress: int
    dub_available: bool
    dubbed_name: Optional[str] = None
    url: str

    @classmethod
    def from_record(cls, record: VideoRecord, url: str) -> "VideoOut":
        return cls(**record.model_dump(), url=url)


class UploadedVideo(CamelModel):
    id: str
    title: str
    status: VideoStatus


class UploadResponse(CamelModel):
    success: bool
    message: str
    video: UploadedVideo


class DubResponse(CamelModel):
    success: bool
    message: str
    video_id: str
    estimated_time: str


class ProgressResponse(CamelModel):
    status: VideoStatus
    progress: int
    dub_available: bool


class DeleteResponse(CamelModel):
    success: bool
    message: str
