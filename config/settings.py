# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment, JobStoreBackend
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(..., validation_alias="APP_ENV")
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")
    SERVER_URL: str = Field(..., validation_alias="SERVER_URL")

    # Job store
    JOB_STORE: JobStoreBackend = Field(
        default=JobStoreBackend.MEMORY, validation_alias="JOB_STORE"
    )
    PERSISTENCE_TTL_SECONDS: int = Field(
        default=24 * 60 * 60, validation_alias="PERSISTENCE_TTL_SECONDS"
    )

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(..., validation_alias="ALLOWED_ORIGIN")
    RATE_LIMIT_TIMES: int = Field(default=30, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")
    MAX_FILE_MB: int = Field(default=2000, validation_alias="MAX_FILE_MB")
    MAX_IMAGE_MB: int = Field(default=10, validation_alias="MAX_IMAGE_MB")
    MAX_FILES: int = Field(default=10, validation_alias="MAX_FILES")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # External URLS:
    DASHSCOPE_API_URL: str = (
        "https://dashscope-intl.aliyuncs.com/api/v1/services/aigc/image2video/video-synthesis"
    )
    DASHSCOPE_TASK_URL: str = "https://dashscope-intl.aliyuncs.com/api/v1/tasks"

    # Synthesis
    SYNTHESIS_MODEL: str = Field(
        default="wan2.2-animate-mix", validation_alias="SYNTHESIS_MODEL"
    )
    DEFAULT_MODE: str = Field(default="wan-std", validation_alias="DEFAULT_MODE")
    SUBMIT_TIMEOUT_SECONDS: float = 30.0
    POLL_INTERVAL_SECONDS: float = 15.0
    MAX_POLL_ATTEMPTS: int = 120
    DOWNLOAD_TIMEOUT_SECONDS: float = 300.0

    # Segmentation & scheduling
    CHUNK_DURATION_SECONDS: float = Field(
        default=60.0, validation_alias="CHUNK_DURATION_SECONDS"
    )
    LEGACY_CHUNK_DURATION_SECONDS: float = Field(
        default=15.0, validation_alias="LEGACY_CHUNK_DURATION_SECONDS"
    )
    MAX_CONCURRENT_SEGMENTS: int = Field(
        default=5, validation_alias="MAX_CONCURRENT_SEGMENTS"
    )
    LAUNCH_STAGGER_SECONDS: float = 0.2

    # Retry policy
    MAX_RETRIES: int = 3
    RETRY_DELAY_SECONDS: float = 5.0
    RETRYABLE_STATUS_CODES: list[int] = [429, 400]

    # Media directories
    MEDIA_ROOT: str = Field(default="media", validation_alias="MEDIA_ROOT")
    UPLOAD_DIR_NAME: str = "uploads"
    SEGMENTS_DIR_NAME: str = "chunks"
    OUTPUT_DIR_NAME: str = "outputs"

    # Logging knobs
    LOGGER_NAME: str = "segment-synth"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
