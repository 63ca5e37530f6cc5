# repository/job_repository.py
from functools import lru_cache
from typing import Optional, Protocol, Sequence
from config.settings import settings
from model.job import FileResult, FileTask, Job
from util.enums import JobStoreBackend

COMPLETED_STATUS = "completed"
ERROR_STATUS = "error"


class JobRepository(Protocol):
    """
    Job tracker store. Every mutation is a single commutative update
    (counter increment, append, overwrite) so concurrent segment workers
    need no coordination beyond what the backing provides.
    """

    async def create(self, files: Sequence[FileTask]) -> Job: ...

    async def get(self, job_id: str) -> Optional[Job]: ...

    async def set_status(self, job_id: str, status: str) -> None: ...

    async def set_current_file(self, job_id: str, name: Optional[str]) -> None: ...

    async def increment_total_segments(self, job_id: str, n: int) -> None: ...

    async def increment_processed(self, job_id: str) -> None: ...

    async def append_result(self, job_id: str, result: FileResult) -> None: ...

    async def finalize(self, job_id: str) -> None: ...

    async def set_error(self, job_id: str, message: str) -> None: ...


@lru_cache(maxsize=1)
def get_job_repository() -> JobRepository:
    """Process-wide store chosen by settings.JOB_STORE."""
    if settings.JOB_STORE == JobStoreBackend.REDIS:
        from repository.redis_job_repository import RedisJobRepository

        return RedisJobRepository()

    from repository.memory_job_repository import InMemoryJobRepository

    return InMemoryJobRepository()
