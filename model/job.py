# model/job.py
from datetime import datetime, timezone
from pydantic import BaseModel, Field
from util.types import FileStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


class FileTask(BaseModel):
    id: str
    filename: str
    originalName: str
    path: str  # local upload path or http(s) URL
    size: int = 0

    model_config = {"frozen": True}


class FileResult(BaseModel):
    fileId: str
    originalName: str
    status: FileStatus
    outputPath: str | None = None
    publicUrl: str | None = None
    error: str | None = None

    model_config = {"frozen": True}


class Job(BaseModel):
    id: str
    status: str = "processing"
    progress: float = 0.0
    totalSegments: int = 0
    processedSegments: int = 0
    currentFile: str | None = None
    files: list[FileTask] = Field(default_factory=list)
    results: list[FileResult] = Field(default_factory=list)
    error: str | None = None
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)

    def result_for(self, file_id: str) -> FileResult | None:
        return next((r for r in self.results if r.fileId == file_id), None)
