# controller/job_controller.py
from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from controller.controller_dependencies import get_job_service
from model.api import ProcessRequest, ProcessResponse
from service.job_service import JobService
from util.constants import InternalURIs

job_router = APIRouter(
    dependencies=[
        Depends(
            RateLimiter(
                times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
            )
        )
    ]
)


@job_router.post(InternalURIs.PROCESS, response_model=ProcessResponse)
async def process(
    payload: ProcessRequest,
    background_tasks: BackgroundTasks,
    service: JobService = Depends(get_job_service),
) -> ProcessResponse:
    job_id, config = await service.submit(
        files=payload.files,
        reference_image=payload.characterImagePath,
        mode=payload.mode,
        api_key=payload.apiKey,
        chunk_duration=payload.chunkDuration,
        legacy_chunks=payload.legacyChunks,
    )
    # Runs after the response is sent; clients follow up via the status route
    background_tasks.add_task(service.run_job, job_id, payload.files, config)
    return ProcessResponse(jobId=job_id)
