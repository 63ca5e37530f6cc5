# controller/upload_controller.py
from typing import List
from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from controller.controller_dependencies import (
    enforce_max_image_size,
    enforce_max_upload_size,
    get_job_service,
)
from model.api import UploadImageResponse, UploadVideosResponse
from service.job_service import JobService
from util.constants import InternalURIs

upload_router = APIRouter(
    dependencies=[
        Depends(
            RateLimiter(
                times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
            )
        )
    ]
)


@upload_router.post(
    InternalURIs.UPLOAD_VIDEOS,
    response_model=UploadVideosResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def upload_videos(
    videos: List[UploadFile] = File(...),
    service: JobService = Depends(get_job_service),
) -> UploadVideosResponse:
    files = await service.register_uploads(videos)
    return UploadVideosResponse(files=files)


@upload_router.post(
    InternalURIs.UPLOAD_CHARACTER_IMAGE,
    response_model=UploadImageResponse,
    dependencies=[Depends(enforce_max_image_size)],
)
async def upload_character_image(
    characterImage: UploadFile = File(...),
    service: JobService = Depends(get_job_service),
) -> UploadImageResponse:
    path, url, filename = await service.register_character_image(characterImage)
    return UploadImageResponse(imagePath=path, imageUrl=url, filename=filename)
