import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from controller.controller_dependencies import get_job_service
from controller.status_controller import status_router
from core.pipeline import SegmentPipeline
from model.job import FileResult, FileTask
from service.job_service import JobService


@pytest.fixture
def client(jobs, media):
    app = FastAPI()
    app.include_router(status_router)
    service = JobService(jobs, media, SegmentPipeline(jobs=jobs, media=media))
    app.dependency_overrides[get_job_service] = lambda: service
    with TestClient(app) as c:
        yield c


def make_job(jobs, output_path=None):
    async def _make():
        job = await jobs.create(
            [FileTask(id="f0", filename="v0.mp4", originalName="clip.mp4", path="/u/v0.mp4")]
        )
        await jobs.increment_total_segments(job.id, 4)
        await jobs.increment_processed(job.id)
        if output_path:
            await jobs.append_result(
                job.id,
                FileResult(fileId="f0", originalName="clip.mp4", status="completed", outputPath=output_path),
            )
        return job.id

    return asyncio.run(_make())


def test_status_of_unknown_job_is_404(client):
    r = client.get("/api/v1/status/nope")
    assert r.status_code == 404
    assert r.json() == {"detail": "Job not found"}


def test_status_returns_snapshot(client, jobs):
    job_id = make_job(jobs)

    r = client.get(f"/api/v1/status/{job_id}")

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    job = body["job"]
    assert job["id"] == job_id
    assert job["status"] == "processing"
    assert job["totalSegments"] == 4
    assert job["processedSegments"] == 1
    assert job["progress"] == 25.0
    assert job["files"][0]["originalName"] == "clip.mp4"


def test_download_serves_merged_output(client, jobs, tmp_path):
    out = tmp_path / "f0_animated.mp4"
    out.write_bytes(b"final-video")
    job_id = make_job(jobs, str(out))

    r = client.get(f"/api/v1/download/{job_id}/f0")

    assert r.status_code == 200
    assert r.content == b"final-video"
    assert r.headers["content-type"] == "video/mp4"


def test_download_of_unknown_file_is_404(client, jobs):
    job_id = make_job(jobs)

    r = client.get(f"/api/v1/download/{job_id}/f0")
    assert r.status_code == 404
    assert r.json() == {"detail": "File not found"}
