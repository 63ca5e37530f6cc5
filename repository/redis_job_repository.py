# repository/redis_job_repository.py
import json
from datetime import datetime, timezone
from typing import Dict, Final, List, Optional, Sequence
from uuid import uuid4
from redis.asyncio import Redis
from config.cache import get_redis
from config.settings import settings
from model.job import FileResult, FileTask, Job
from repository.job_repository import COMPLETED_STATUS, ERROR_STATUS
from repository.namespaces import JOBS, RESULTS
from util.functions import progress_percent

KEY_PREFIX: Final[str] = JOBS


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RedisJobRepository:
    """
    Flow:
    - One hash per job for scalar fields; counters move with HINCRBY.
    - FileResults are RPUSHed to a sibling list so appends never rewrite the job.
    - Every write refreshes the TTL of both keys; idle jobs expire on their own.
    - progress is derived from the counters on read (100 once finalized).
    """

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = int(ttl_seconds)

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(job_id: str) -> str:
        return f"{KEY_PREFIX}:{job_id}"

    @staticmethod
    def _results_key(job_id: str) -> str:
        return f"{RESULTS}:{job_id}"

    async def _write(self, job_id: str, mapping: Dict[str, str]) -> None:
        r = await self._client()
        mapping = {**mapping, "updatedAt": _iso_now()}
        async with r.pipeline(transaction=True) as pipe:
            pipe.hset(self._key(job_id), mapping=mapping)
            pipe.expire(self._key(job_id), self._ttl)
            pipe.expire(self._results_key(job_id), self._ttl)
            await pipe.execute()

    # ---------------- Core CRUD ----------------

    async def create(self, files: Sequence[FileTask]) -> Job:
        job = Job(id=str(uuid4()), files=list(files))
        await self._write(
            job.id,
            {
                "id": job.id,
                "status": job.status,
                "totalSegments": "0",
                "processedSegments": "0",
                "finalized": "0",
                "currentFile": "",
                "error": "",
                "files": json.dumps([f.model_dump() for f in job.files]),
                "createdAt": job.createdAt.isoformat(),
            },
        )
        return job

    async def get(self, job_id: str) -> Optional[Job]:
        if not job_id:
            return None
        r = await self._client()
        h = await r.hgetall(self._key(job_id))
        if not h:
            return None
        raw_results = await r.lrange(self._results_key(job_id), 0, -1)

        def _s(key: str, default: str = "") -> str:
            v = h.get(key.encode("utf-8"), h.get(key))
            if v is None:
                return default
            return v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)

        results: List[FileResult] = [
            FileResult.model_validate_json(raw) for raw in raw_results or []
        ]
        total = int(_s("totalSegments", "0") or 0)
        processed = min(int(_s("processedSegments", "0") or 0), total)
        finalized = _s("finalized") == "1"

        return Job(
            id=_s("id") or job_id,
            status=_s("status") or "processing",
            progress=100.0 if finalized else progress_percent(processed, total),
            totalSegments=total,
            processedSegments=processed,
            currentFile=_s("currentFile") or None,
            files=[FileTask.model_validate(f) for f in json.loads(_s("files", "[]"))],
            results=results,
            error=_s("error") or None,
            createdAt=_s("createdAt") or _iso_now(),
            updatedAt=_s("updatedAt") or _iso_now(),
        )

    async def touch(self, job_id: str) -> bool:
        if not job_id:
            return False
        r = await self._client()
        await r.expire(self._results_key(job_id), self._ttl)
        return bool(await r.expire(self._key(job_id), self._ttl))

    # ---------------- Pipeline mutations ----------------

    async def set_status(self, job_id: str, status: str) -> None:
        await self._write(job_id, {"status": status})

    async def set_current_file(self, job_id: str, name: Optional[str]) -> None:
        await self._write(job_id, {"currentFile": name or ""})

    async def increment_total_segments(self, job_id: str, n: int) -> None:
        if n < 0:
            raise ValueError("segment totals only increase")
        r = await self._client()
        await r.hincrby(self._key(job_id), "totalSegments", n)
        await self.touch(job_id)

    async def increment_processed(self, job_id: str) -> None:
        # Reads clamp processed to total, so an overshoot is never visible
        r = await self._client()
        await r.hincrby(self._key(job_id), "processedSegments", 1)
        await self.touch(job_id)

    async def append_result(self, job_id: str, result: FileResult) -> None:
        r = await self._client()
        payload = result.model_dump_json(exclude_none=True).encode("utf-8")
        await r.rpush(self._results_key(job_id), payload)
        await self.touch(job_id)

    async def finalize(self, job_id: str) -> None:
        await self._write(job_id, {"status": COMPLETED_STATUS, "finalized": "1"})

    async def set_error(self, job_id: str, message: str) -> None:
        await self._write(job_id, {"status": ERROR_STATUS, "error": message})
