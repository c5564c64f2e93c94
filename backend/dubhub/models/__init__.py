from .videos import VideoRecord, VideoStatus

__all__ = ["VideoRecord", "VideoStatus"]
