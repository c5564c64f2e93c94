import logging

logger = logging.getLogger(__name__)


class DubHubException(Exception):
    """base exception for dub hub errors, carries the http status it maps to"""
    status_code = 500


class NotFound(DubHubException):
    """raised when no video exists for the requested id"""
    status_code = 404


class MissingUpload(DubHubException):
    """raised when an upload request carries no file"""
    status_code = 400


class InvalidFormat(DubHubException):
    """raised when the uploaded file extension is not an accepted video format"""
    status_code = 400


class PayloadTooLarge(DubHubException):
    """raised when an upload exceeds the size cap"""
    status_code = 413


class InvalidState(DubHubException):
    """raised when an action is not valid for the video's current status"""
    status_code = 400


class AlreadyInProgress(InvalidState):
    """raised when dubbing is requested for a video that is already being dubbed"""


class StorageIOError(DubHubException):
    """raised when a blob cannot be written or removed"""
    status_code = 500


def handle_job_error(video_id: str, error: Exception):
    """
    centralized error handler for dubbing jobs
    logs the error with traceback, the job task ends afterwards
    """
    logger.error(f"dubbing job for video {video_id} failed: {error}", exc_info=error)
