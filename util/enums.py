# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class JobStoreBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"


class RemoteTaskStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELED = "CANCELED"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    API_KEY_REQUIRED = ErrorInfo("API key is required", status.HTTP_400_BAD_REQUEST)
    IMAGE_REQUIRED = ErrorInfo(
        "Character image is required", status.HTTP_400_BAD_REQUEST
    )
    NO_FILES = ErrorInfo("No files uploaded", status.HTTP_400_BAD_REQUEST)
    NOT_AN_IMAGE = ErrorInfo(
        "Only image files are allowed", status.HTTP_400_BAD_REQUEST
    )
    TOO_MANY_FILES = ErrorInfo(
        "Too many files", status.HTTP_413_CONTENT_TOO_LARGE
    )
    JOB_NOT_FOUND = ErrorInfo("Job not found", status.HTTP_404_NOT_FOUND)
    FILE_NOT_FOUND = ErrorInfo("File not found", status.HTTP_404_NOT_FOUND)
