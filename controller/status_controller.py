# controller/status_controller.py
import os
from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from controller.controller_dependencies import get_job_service
from model.api import JobStatusResponse
from service.job_service import JobService
from util.constants import InternalURIs

# Polled by clients every few seconds: no rate limiter here.
status_router = APIRouter()


@status_router.get(InternalURIs.STATUS, response_model=JobStatusResponse)
async def get_status(
    job_id: str,
    service: JobService = Depends(get_job_service),
) -> JobStatusResponse:
    job = await service.get_status(job_id)
    return JobStatusResponse(job=job)


@status_router.get(InternalURIs.DOWNLOAD)
async def download(
    job_id: str,
    file_id: str,
    service: JobService = Depends(get_job_service),
) -> FileResponse:
    path = await service.get_result_location(job_id, file_id)
    return FileResponse(path, media_type="video/mp4", filename=os.path.basename(path))
