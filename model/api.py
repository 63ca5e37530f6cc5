# model/api.py
from pydantic import BaseModel, Field
from model.job import FileTask, Job


class UploadVideosResponse(BaseModel):
    success: bool = True
    files: list[FileTask]


class UploadImageResponse(BaseModel):
    success: bool = True
    imagePath: str
    imageUrl: str
    filename: str


class ProcessRequest(BaseModel):
    files: list[FileTask] = Field(default_factory=list)
    apiKey: str = ""
    characterImagePath: str = ""
    mode: str | None = None
    # Seconds per segment; omitted means the configured default
    chunkDuration: float | None = Field(default=None, gt=0)
    # Use the short legacy segment length when chunkDuration is omitted
    legacyChunks: bool = False


class ProcessResponse(BaseModel):
    success: bool = True
    jobId: str


class JobStatusResponse(BaseModel):
    success: bool = True
    job: Job
