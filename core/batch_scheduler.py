# core/batch_scheduler.py
import asyncio
import logging
import math
from typing import Awaitable, Callable, List, Sequence
from core.entities import SegmentTask
from util.types import SleepFn

logger = logging.getLogger(__name__)

SegmentWorker = Callable[[SegmentTask], Awaitable[str]]


class BatchScheduler:
    """
    Drives segment tasks through `worker` in fixed-size sequential batches.

    - Every member of a batch starts concurrently, the i-th one after
      i * stagger seconds.
    - Batch k+1 starts only once every member of batch k has settled.
    - Output locations come back in task order, whatever order they finished in.
    - If any member failed, the first failure (by task order) is raised once
      its batch has settled; later batches never start.
    """

    def __init__(
        self,
        worker: SegmentWorker,
        *,
        batch_size: int = 5,
        stagger: float = 0.2,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._worker = worker
        self.batch_size = batch_size
        self.stagger = stagger
        self._sleep = sleep

    def batches(self, tasks: Sequence[SegmentTask]) -> List[Sequence[SegmentTask]]:
        return [
            tasks[i : i + self.batch_size] for i in range(0, len(tasks), self.batch_size)
        ]

    async def _launch(self, task: SegmentTask, position: int) -> str:
        if position and self.stagger > 0:
            await self._sleep(position * self.stagger)
        return await self._worker(task)

    async def run(self, tasks: Sequence[SegmentTask]) -> List[str]:
        ordered = sorted(tasks, key=lambda t: t.segment.index)
        outputs: List[str] = []
        total_batches = math.ceil(len(ordered) / self.batch_size)

        for number, batch in enumerate(self.batches(ordered), start=1):
            logger.info(
                "batch.start %d/%d size=%d first_index=%d",
                number,
                total_batches,
                len(batch),
                batch[0].segment.index,
            )
            settled = await asyncio.gather(
                *(self._launch(t, pos) for pos, t in enumerate(batch)),
                return_exceptions=True,
            )
            failures = [r for r in settled if isinstance(r, BaseException)]
            if failures:
                logger.error(
                    "batch.failed %d/%d failed=%d/%d",
                    number,
                    total_batches,
                    len(failures),
                    len(batch),
                )
                raise failures[0]
            outputs.extend(settled)  # type: ignore[arg-type]
            logger.info("batch.done %d/%d", number, total_batches)

        return outputs
