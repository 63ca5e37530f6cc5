# routes.py
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from controller.job_controller import job_router
from controller.status_controller import status_router
from controller.upload_controller import upload_router
from repository.media_repository import MediaRepository
from util.constants import StaticURIs


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(upload_router)
    app.include_router(job_router)
    app.include_router(status_router)


def mount_media(app: FastAPI, media: MediaRepository) -> None:
    """Serve stored media; the synthesis service fetches segments from here."""
    app.mount(StaticURIs.VIDEOS, StaticFiles(directory=media.upload_dir), name="videos")
    app.mount(StaticURIs.IMAGES, StaticFiles(directory=media.upload_dir), name="images")
    app.mount(
        StaticURIs.SEGMENTS, StaticFiles(directory=media.segments_dir), name="segments"
    )
    app.mount(StaticURIs.OUTPUTS, StaticFiles(directory=media.output_dir), name="outputs")
