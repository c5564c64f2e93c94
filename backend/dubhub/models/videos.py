from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field


class VideoStatus(str, Enum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VideoRecord(SQLModel):
    # in-memory only, the catalog is lost on restart
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    stored_name: str = Field(unique=True)  # <uuid><ext> inside the videos dir
    original_name: str
    title: str
    size_bytes: int = Field(ge=0)
    mime_type: str
    created_at: datetime = Field(default_factory=utcnow)
    status: VideoStatus = Field(default=VideoStatus.UPLOADED)
    progress: int = Field(default=0, ge=0, le=100)  # dubbing progress percent
    dub_available: bool = Field(default=False)
    dubbed_name: Optional[str] = Field(default=None, nullable=True)
