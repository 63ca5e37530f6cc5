# core/synthesis_client.py
import asyncio
import logging
import os
from typing import Any, Dict, Optional
import httpx
from core.entities import RemoteTask
from core.errors import (
    DownloadError,
    SubmissionError,
    TaskCanceled,
    TaskFailed,
    TaskNotFound,
    TaskStatusError,
    TaskTimeout,
)
from util.enums import RemoteTaskStatus
from util.timing import timed
from util.types import SleepFn

logger = logging.getLogger(__name__)


def _body(r: httpx.Response) -> str:
    try:
        return r.text[:500]
    except Exception:
        return ""


def _parse_task(task_id: str, data: Dict[str, Any]) -> RemoteTask:
    output = data.get("output") or {}
    results = output.get("results") or {}
    return RemoteTask(
        task_id=output.get("task_id") or task_id,
        status=str(output.get("task_status") or "").upper(),
        video_url=results.get("video_url") if isinstance(results, dict) else None,
        message=output.get("message") or data.get("message"),
    )


class SynthesisClient:
    """
    Client for the asynchronous image-to-video synthesis API.

    Flow: submit() creates a remote task and returns its id; poll() checks the
    task every `poll_interval` seconds until it reaches a terminal state or
    `max_poll_attempts` checks have been made; download() streams the result.
    """

    def __init__(
        self,
        *,
        api_key: str,
        submit_url: str,
        task_url: str,
        model: str,
        submit_timeout: float = 30.0,
        poll_interval: float = 15.0,
        max_poll_attempts: int = 120,
        download_timeout: float = 300.0,
        sleep: SleepFn = asyncio.sleep,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._submit_url = submit_url
        self._task_url = task_url.rstrip("/")
        self._model = model
        self._submit_timeout = submit_timeout
        self._poll_interval = poll_interval
        self._max_poll_attempts = max_poll_attempts
        self._download_timeout = download_timeout
        self._sleep = sleep
        self._transport = transport

    def _client(self, timeout: float | httpx.Timeout) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def submit(self, segment_url: str, image_url: str, mode: str) -> str:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-DashScope-Async": "enable",
        }
        payload = {
            "model": self._model,
            "input": {"image_url": image_url, "video_url": segment_url},
            "parameters": {"mode": mode, "check_image": False},
        }
        try:
            async with self._client(self._submit_timeout) as client:
                r = await client.post(self._submit_url, headers=headers, json=payload)
        except httpx.RequestError as e:
            logger.error("synth.submit.request_error err=%s", type(e).__name__)
            raise SubmissionError(None, type(e).__name__) from e

        if r.status_code // 100 != 2:
            logger.warning("synth.submit.bad_status status=%d", r.status_code)
            raise SubmissionError(r.status_code, _body(r))

        try:
            task_id = (r.json().get("output") or {}).get("task_id")
        except ValueError:
            task_id = None
        if not task_id:
            raise SubmissionError(r.status_code, "response carried no task_id")

        logger.info("synth.submit.ok task=%s mode=%s", task_id, mode)
        return str(task_id)

    async def get_task(self, task_id: str) -> RemoteTask:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        async with self._client(self._submit_timeout) as client:
            r = await client.get(f"{self._task_url}/{task_id}", headers=headers)

        if r.status_code == 404:
            raise TaskNotFound(task_id)
        if r.status_code // 100 != 2:
            raise TaskStatusError(task_id, r.status_code, _body(r))
        try:
            data = r.json()
        except ValueError:
            data = {}
        return _parse_task(task_id, data)

    async def poll(self, task_id: str) -> str:
        """
        Wait for a terminal state and return the output video URL.
        Raises TaskFailed / TaskCanceled / TaskNotFound / TaskTimeout.
        """
        with timed(logger, "synth.poll", task=task_id):
            for attempt in range(1, self._max_poll_attempts + 1):
                task = await self.get_task(task_id)
                logger.debug(
                    "synth.poll.status task=%s status=%s attempt=%d",
                    task_id,
                    task.status,
                    attempt,
                )

                if task.status == RemoteTaskStatus.SUCCEEDED:
                    if not task.video_url:
                        raise TaskFailed("succeeded without a video_url")
                    return task.video_url
                if task.status == RemoteTaskStatus.FAILED:
                    raise TaskFailed(task.message or "Unknown error")
                if task.status == RemoteTaskStatus.CANCELED:
                    raise TaskCanceled(task_id)

                await self._sleep(self._poll_interval)

        raise TaskTimeout(task_id, self._max_poll_attempts * self._poll_interval)

    async def download(self, video_url: str, dest: str) -> str:
        tmp = dest + ".part"
        try:
            async with self._client(self._download_timeout) as client:
                async with client.stream("GET", video_url) as r:
                    if r.status_code // 100 != 2:
                        raise DownloadError(
                            f"Download of {video_url} failed ({r.status_code})",
                            r.status_code,
                        )
                    with open(tmp, "wb") as fh:
                        async for chunk in r.aiter_bytes():
                            fh.write(chunk)
            os.replace(tmp, dest)
        except httpx.RequestError as e:
            raise DownloadError(f"Download of {video_url} failed: {type(e).__name__}") from e
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)
        return dest
