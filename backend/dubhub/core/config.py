import os

GIB = 1024 * 1024 * 1024


def _env_list(key: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(key, default).split(",") if item.strip()]


class Settings:
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Video Dub Hub")

    # storage paths
    DATA_DIR: str = os.getenv("DATA_DIR", "uploads")
    VIDEOS_URL_PREFIX: str = "/uploads/videos"

    # upload limits
    MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(2 * GIB)))
    UPLOAD_CHUNK_BYTES: int = int(os.getenv("UPLOAD_CHUNK_BYTES", str(1024 * 1024)))
    ALLOWED_EXTENSIONS: list[str] = _env_list("ALLOWED_EXTENSIONS", ".mp4,.avi,.mov,.mkv,.webm")

    # simulated dubbing job
    DUB_TICK_SECONDS: float = float(os.getenv("DUB_TICK_SECONDS", "1.0"))
    DUB_PROGRESS_STEP: int = int(os.getenv("DUB_PROGRESS_STEP", "10"))
    DUBBED_PREFIX: str = os.getenv("DUBBED_PREFIX", "hindi-dub-")

    CORS_ORIGINS: list[str] = _env_list("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "")

    # derived from DATA_DIR so an instance override moves everything with it
    @property
    def VIDEOS_DIR(self) -> str:
        return os.path.join(self.DATA_DIR, "videos")

    @property
    def UPLOAD_TEMP_DIR(self) -> str:
        return os.path.join(self.DATA_DIR, "tmp")


settings = Settings()
