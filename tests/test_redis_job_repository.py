import fakeredis
import pytest

import config.cache
from model.job import FileResult, FileTask
from repository.redis_job_repository import RedisJobRepository

pytestmark = pytest.mark.anyio

FILES = [FileTask(id="f0", filename="v0.mp4", originalName="clip.mp4", path="/u/v0.mp4", size=12)]


@pytest.fixture
async def redis(monkeypatch):
    client = fakeredis.FakeAsyncRedis()
    monkeypatch.setattr(config.cache, "_client", client)
    yield client
    await client.aclose()


@pytest.fixture
def store(redis):
    return RedisJobRepository(ttl_seconds=100)


async def test_create_then_get_round_trips(store):
    job = await store.create(FILES)

    snapshot = await store.get(job.id)
    assert snapshot.id == job.id
    assert snapshot.status == "processing"
    assert snapshot.progress == 0
    assert snapshot.totalSegments == 0
    assert snapshot.processedSegments == 0
    assert snapshot.currentFile is None
    assert snapshot.error is None
    assert snapshot.files == FILES
    assert snapshot.results == []


async def test_missing_job_is_none(store):
    assert await store.get("missing") is None
    assert await store.get("") is None


async def test_counters_use_hincrby_and_reads_clamp(store, redis):
    job = await store.create(FILES)
    await store.increment_total_segments(job.id, 3)
    for _ in range(4):
        await store.increment_processed(job.id)

    raw = await redis.hget(store._key(job.id), "processedSegments")
    assert raw == b"4"

    snapshot = await store.get(job.id)
    assert snapshot.totalSegments == 3
    assert snapshot.processedSegments == 3
    assert snapshot.progress == 100


async def test_progress_is_derived_from_counters(store):
    job = await store.create(FILES)
    await store.increment_total_segments(job.id, 4)
    await store.increment_processed(job.id)

    assert (await store.get(job.id)).progress == 25.0


async def test_negative_totals_are_rejected(store):
    job = await store.create(FILES)
    with pytest.raises(ValueError):
        await store.increment_total_segments(job.id, -2)


async def test_finalize_reports_full_progress(store):
    job = await store.create(FILES)
    await store.increment_total_segments(job.id, 5)
    await store.increment_processed(job.id)
    await store.finalize(job.id)

    snapshot = await store.get(job.id)
    assert snapshot.status == "completed"
    assert snapshot.progress == 100
    assert snapshot.processedSegments == 1


async def test_results_keep_append_order(store):
    job = await store.create(FILES)
    await store.set_current_file(job.id, "clip.mp4")
    await store.append_result(
        job.id, FileResult(fileId="a", originalName="a.mp4", status="error", error="boom")
    )
    await store.append_result(
        job.id,
        FileResult(fileId="b", originalName="b.mp4", status="completed", outputPath="/o/b.mp4"),
    )

    snapshot = await store.get(job.id)
    assert [r.fileId for r in snapshot.results] == ["a", "b"]
    assert snapshot.results[0].error == "boom"
    assert snapshot.result_for("b").outputPath == "/o/b.mp4"
    assert snapshot.currentFile == "clip.mp4"


async def test_set_error_marks_the_job(store):
    job = await store.create(FILES)
    await store.set_error(job.id, "worker crashed")

    snapshot = await store.get(job.id)
    assert snapshot.status == "error"
    assert snapshot.error == "worker crashed"


async def test_writes_refresh_ttl_on_both_keys(store, redis):
    job = await store.create(FILES)
    await store.append_result(
        job.id, FileResult(fileId="a", originalName="a.mp4", status="completed")
    )

    await redis.expire(store._key(job.id), 5)
    await redis.expire(store._results_key(job.id), 5)
    await store.set_status(job.id, "Merging chunks for clip.mp4...")

    assert 0 < await redis.ttl(store._key(job.id)) <= 100
    assert await redis.ttl(store._key(job.id)) > 5
    assert await redis.ttl(store._results_key(job.id)) > 5

    await redis.expire(store._key(job.id), 5)
    await store.increment_processed(job.id)
    assert await redis.ttl(store._key(job.id)) > 5
