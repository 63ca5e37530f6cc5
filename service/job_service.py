# service/job_service.py
import logging
import os
from typing import List, Optional, Sequence
from fastapi import UploadFile
from config.settings import settings
from core.entities import JobConfig
from core.pipeline import SegmentPipeline
from model.job import FileTask, Job
from repository.job_repository import JobRepository
from repository.media_repository import MediaRepository
from util.enums import ErrorMessage
from util.errors import AppError

logger = logging.getLogger(__name__)


def _chunk_duration(requested: Optional[float], legacy: bool) -> float:
    if requested:
        return requested
    if legacy:
        return settings.LEGACY_CHUNK_DURATION_SECONDS
    return settings.CHUNK_DURATION_SECONDS


class JobService:
    def __init__(
        self,
        jobs: JobRepository,
        media: MediaRepository,
        pipeline: SegmentPipeline,
    ) -> None:
        self._jobs = jobs
        self._media = media
        self._pipeline = pipeline

    # ---------------- Uploads ----------------

    async def register_uploads(self, files: Sequence[UploadFile]) -> List[FileTask]:
        if not files:
            raise AppError.of(ErrorMessage.NO_FILES)
        if len(files) > settings.MAX_FILES:
            raise AppError(
                f"Too many files. Maximum is {settings.MAX_FILES} files at once.",
                ErrorMessage.TOO_MANY_FILES.value.http_status,
            )
        max_bytes = settings.MAX_FILE_MB * 1024 * 1024
        tasks = [await self._media.save_video(f, max_bytes) for f in files]
        logger.info("upload.videos.ok count=%d", len(tasks))
        return tasks

    async def register_character_image(self, file: UploadFile) -> tuple[str, str, str]:
        """Returns (local path, public url, stored filename)."""
        if not (file.content_type or "").startswith("image/"):
            raise AppError.of(ErrorMessage.NOT_AN_IMAGE)
        path, filename = await self._media.save_image(
            file, settings.MAX_IMAGE_MB * 1024 * 1024
        )
        return path, self._media.image_url(path), filename

    # ---------------- Job control ----------------

    async def submit(
        self,
        files: Sequence[FileTask],
        reference_image: str,
        mode: Optional[str],
        api_key: str,
        chunk_duration: Optional[float] = None,
        legacy_chunks: bool = False,
    ) -> tuple[str, JobConfig]:
        """
        Validate and create the job. The caller schedules run_job() with the
        returned config; nothing is processed here.

        Chunk duration: explicit value, else the legacy 15s profile when
        `legacy_chunks` is set, else the configured default.
        """
        if not api_key:
            raise AppError.of(ErrorMessage.API_KEY_REQUIRED)
        if not reference_image:
            raise AppError.of(ErrorMessage.IMAGE_REQUIRED)
        if not files:
            raise AppError.of(ErrorMessage.NO_FILES)

        config = JobConfig(
            api_key=api_key,
            image_url=self._media.image_url(reference_image),
            mode=mode or settings.DEFAULT_MODE,
            chunk_duration=_chunk_duration(chunk_duration, legacy_chunks),
        )
        job = await self._jobs.create(files)
        logger.info(
            "job.created job=%s files=%d mode=%s chunk=%.1f",
            job.id,
            len(files),
            config.mode,
            config.chunk_duration,
        )
        return job.id, config

    async def run_job(self, job_id: str, files: Sequence[FileTask], config: JobConfig) -> None:
        await self._pipeline.run_job(job_id, files, config)

    async def get_status(self, job_id: str) -> Job:
        job = await self._jobs.get(job_id)
        if job is None:
            raise AppError.of(ErrorMessage.JOB_NOT_FOUND)
        return job

    async def get_result_location(self, job_id: str, file_id: str) -> str:
        job = await self.get_status(job_id)
        result = job.result_for(file_id)
        if result is None or not result.outputPath or not os.path.isfile(result.outputPath):
            raise AppError.of(ErrorMessage.FILE_NOT_FOUND)
        return result.outputPath
