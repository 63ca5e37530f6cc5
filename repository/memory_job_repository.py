# repository/memory_job_repository.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Sequence
from uuid import uuid4
from config.settings import settings
from model.job import FileResult, FileTask, Job
from repository.job_repository import COMPLETED_STATUS, ERROR_STATUS
from util.functions import progress_percent

logger = logging.getLogger(__name__)


class InMemoryJobRepository:
    """
    Dict-backed job store for a single process.

    Flow:
    - Mutations never await, so each one is atomic on the event loop.
    - Jobs live until they have been idle (no update) for `ttl_seconds`.
    - Expired jobs are evicted lazily on create()/get(), so no sweeper task runs.
    - get() hands out copies; callers never hold the live record.
    """

    def __init__(self, ttl_seconds: int = settings.PERSISTENCE_TTL_SECONDS) -> None:
        self._ttl = timedelta(seconds=int(ttl_seconds))
        self._jobs: Dict[str, Job] = {}

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _evict_expired(self) -> None:
        cutoff = self._now() - self._ttl
        stale = [jid for jid, job in self._jobs.items() if job.updatedAt < cutoff]
        for jid in stale:
            del self._jobs[jid]
        if stale:
            logger.info("jobs.evicted count=%d", len(stale))

    def _update(self, job_id: str, mutate: Callable[[Job], None]) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning("jobs.update.missing job=%s", job_id)
            return
        mutate(job)
        job.updatedAt = self._now()

    # ---------------- Core CRUD ----------------

    async def create(self, files: Sequence[FileTask]) -> Job:
        self._evict_expired()
        job = Job(id=str(uuid4()), files=list(files))
        self._jobs[job.id] = job
        return job.model_copy(deep=True)

    async def get(self, job_id: str) -> Optional[Job]:
        if not job_id:
            return None
        self._evict_expired()
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    # ---------------- Pipeline mutations ----------------

    async def set_status(self, job_id: str, status: str) -> None:
        def _apply(job: Job) -> None:
            job.status = status

        self._update(job_id, _apply)

    async def set_current_file(self, job_id: str, name: Optional[str]) -> None:
        def _apply(job: Job) -> None:
            job.currentFile = name

        self._update(job_id, _apply)

    async def increment_total_segments(self, job_id: str, n: int) -> None:
        if n < 0:
            raise ValueError("segment totals only increase")

        def _apply(job: Job) -> None:
            job.totalSegments += n
            job.progress = progress_percent(job.processedSegments, job.totalSegments)

        self._update(job_id, _apply)

    async def increment_processed(self, job_id: str) -> None:
        def _apply(job: Job) -> None:
            if job.processedSegments >= job.totalSegments:
                logger.warning(
                    "jobs.processed.overflow job=%s processed=%d total=%d",
                    job.id,
                    job.processedSegments,
                    job.totalSegments,
                )
                return
            job.processedSegments += 1
            job.progress = progress_percent(job.processedSegments, job.totalSegments)

        self._update(job_id, _apply)

    async def append_result(self, job_id: str, result: FileResult) -> None:
        self._update(job_id, lambda job: job.results.append(result))

    async def finalize(self, job_id: str) -> None:
        def _apply(job: Job) -> None:
            job.status = COMPLETED_STATUS
            job.progress = 100.0

        self._update(job_id, _apply)

    async def set_error(self, job_id: str, message: str) -> None:
        def _apply(job: Job) -> None:
            job.status = ERROR_STATUS
            job.error = message

        self._update(job_id, _apply)
