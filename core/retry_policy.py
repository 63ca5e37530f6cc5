# core/retry_policy.py
import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Optional, TypeVar
from util.types import SleepFn

logger = logging.getLogger(__name__)

T = TypeVar("T")


def status_of(err: BaseException) -> Optional[int]:
    """HTTP status carried by a failure, if any."""
    code = getattr(err, "status_code", None)
    if code is None:
        response = getattr(err, "response", None)
        code = getattr(response, "status_code", None)
    return code if isinstance(code, int) else None


class RetryPolicy:
    """
    Re-runs a whole operation when it fails with a retryable HTTP status.

    Attempts are counted in an explicit loop: the first run plus at most
    `max_retries` re-runs, each preceded by a fixed `delay` pause.
    """

    def __init__(
        self,
        *,
        max_retries: int = 3,
        delay: float = 5.0,
        retryable_statuses: Iterable[int] = (429, 400),
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.max_retries = max_retries
        self.delay = delay
        self.retryable_statuses = frozenset(retryable_statuses)
        self._sleep = sleep

    def should_retry(self, err: BaseException, retries: int) -> bool:
        return retries < self.max_retries and status_of(err) in self.retryable_statuses

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        on_retry: Optional[Callable[[int, BaseException], None]] = None,
        label: str = "",
    ) -> T:
        retries = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                if not self.should_retry(e, retries):
                    raise
                retries += 1
                logger.warning(
                    "retry.scheduled %s status=%s attempt=%d/%d delay=%.1fs",
                    label,
                    status_of(e),
                    retries,
                    self.max_retries,
                    self.delay,
                )
                if on_retry is not None:
                    on_retry(retries, e)
                await self._sleep(self.delay)
