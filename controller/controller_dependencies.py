# controller/controller_dependencies.py
from functools import lru_cache
from fastapi import HTTPException, Request
from config.settings import settings
from core.pipeline import SegmentPipeline
from repository.job_repository import get_job_repository
from repository.media_repository import MediaRepository
from service.job_service import JobService


@lru_cache(maxsize=1)
def get_media_repository() -> MediaRepository:
    media = MediaRepository()
    media.ensure_dirs()
    return media


def get_job_service() -> JobService:
    _jobs = get_job_repository()
    _media = get_media_repository()
    _pipeline = SegmentPipeline(jobs=_jobs, media=_media)
    return JobService(_jobs, _media, _pipeline)


def _too_large(max_mb: int) -> HTTPException:
    return HTTPException(
        status_code=413,
        detail={
            "ok": False,
            "error": "file_too_large",
            "maxMb": max_mb,
        },
    )


async def enforce_max_upload_size(request: Request) -> None:
    # Fast pre-check via Content-Length; per-file caps are enforced while writing
    max_bytes = settings.MAX_FILE_MB * settings.MAX_FILES * 1024 * 1024
    cl = request.headers.get("content-length")
    if cl and cl.isdigit() and int(cl) > max_bytes:
        raise _too_large(settings.MAX_FILE_MB)


async def enforce_max_image_size(request: Request) -> None:
    max_bytes = settings.MAX_IMAGE_MB * 1024 * 1024
    cl = request.headers.get("content-length")
    # Multipart framing adds a little on top of the image itself
    if cl and cl.isdigit() and int(cl) > max_bytes + 64 * 1024:
        raise _too_large(settings.MAX_IMAGE_MB)
