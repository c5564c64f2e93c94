import os
from uuid import uuid4


def file_extension(filename: str) -> str:
    """extension of the client filename including the dot, as given (may be empty)"""
    return os.path.splitext(os.path.basename(filename or ""))[1]


def is_allowed_extension(filename: str, allowed: list[str]) -> bool:
    ext = file_extension(filename).lower()
    return bool(ext) and ext in {a.lower() for a in allowed}


def generate_stored_name(filename: str) -> str:
    """
    generates a blob name: <uuid4><original extension>
    example: 3f1c2b9e-6d0a-4c57-9a43-0f5e2d8b71aa.mp4
    """
    return f"{uuid4()}{file_extension(filename)}"


def dubbed_name_for(stored_name: str, prefix: str = "hindi-dub-") -> str:
    return f"{prefix}{stored_name}"
