"""
Shared fixtures. Environment defaults are set before any project module
imports config.settings, which exits the process on missing variables.
"""

import asyncio
import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("SERVER_URL", "http://testserver")
os.environ.setdefault("ALLOWED_ORIGIN", "http://localhost:3000")

import pytest

from repository.media_repository import MediaRepository
from repository.memory_job_repository import InMemoryJobRepository


class SleepRecorder:
    """Stands in for asyncio.sleep: records requested delays, yields once."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)

    @property
    def total(self) -> float:
        return sum(self.calls)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def poll_sleeper():
    return SleepRecorder()


@pytest.fixture
def jobs():
    return InMemoryJobRepository(ttl_seconds=3600)


@pytest.fixture
def media(tmp_path):
    repo = MediaRepository(root=str(tmp_path / "media"), public_base="http://testserver")
    repo.ensure_dirs()
    return repo
