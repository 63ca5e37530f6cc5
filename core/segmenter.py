# core/segmenter.py
import asyncio
import logging
import math
import os
from typing import List, Tuple
import ffmpeg
from core.entities import Segment
from core.errors import SegmentationError
from util.timing import timed
from util.types import ProgressCallback

logger = logging.getLogger(__name__)


def segment_filename(index: int) -> str:
    return f"segment_{index}.mp4"


def _stderr(err: ffmpeg.Error) -> str:
    return err.stderr.decode("utf-8", "replace").strip()[-500:] if err.stderr else str(err)


class Segmenter:
    """
    Cuts a source video into fixed-duration, independently playable segments.

    Segments are re-encoded (libx264/aac) rather than stream-copied so every
    cut lands on a decodable frame. ffmpeg is blocking, so each call runs in a
    worker thread; segments are still produced one at a time, in index order.
    """

    def __init__(self, chunk_duration: float) -> None:
        if chunk_duration <= 0:
            raise ValueError("chunk_duration must be positive")
        self.chunk_duration = float(chunk_duration)

    def plan(self, duration: float) -> List[Tuple[int, float]]:
        """(index, start) for every segment of a source lasting `duration` seconds."""
        count = math.ceil(duration / self.chunk_duration)
        return [(i, i * self.chunk_duration) for i in range(count)]

    def _probe(self, source: str) -> float:
        if not os.path.isfile(source):
            raise SegmentationError(f"Source not found: {source}")
        try:
            info = ffmpeg.probe(source)
        except ffmpeg.Error as e:
            raise SegmentationError(f"Unreadable source {source}: {_stderr(e)}") from e
        try:
            duration = float(info["format"]["duration"])
        except (KeyError, TypeError, ValueError) as e:
            raise SegmentationError(f"No duration reported for {source}") from e
        if not math.isfinite(duration) or duration <= 0:
            raise SegmentationError(f"Invalid duration {duration} for {source}")
        return duration

    def _cut(self, source: str, dest: str, start: float, duration: float) -> None:
        try:
            (
                ffmpeg.input(source, ss=start)
                .output(dest, t=duration, vcodec="libx264", acodec="aac")
                .overwrite_output()
                .run(capture_stdout=True, capture_stderr=True)
            )
        except ffmpeg.Error as e:
            raise SegmentationError(
                f"Failed to cut segment at {start}s: {_stderr(e)}"
            ) from e

    async def probe_duration(self, source: str) -> float:
        return await asyncio.to_thread(self._probe, source)

    async def split(
        self,
        source: str,
        out_dir: str,
        file_id: str,
        on_progress: ProgressCallback = None,
    ) -> List[Segment]:
        duration = await self.probe_duration(source)
        plan = self.plan(duration)
        os.makedirs(out_dir, exist_ok=True)
        logger.info(
            "segment.plan file=%s duration=%.2f chunk=%.2f count=%d",
            file_id,
            duration,
            self.chunk_duration,
            len(plan),
        )

        segments: List[Segment] = []
        with timed(logger, "segment.split", file=file_id, count=len(plan)):
            for index, start in plan:
                dest = os.path.join(out_dir, segment_filename(index))
                # The final cut is truncated by the decoder at end of stream
                await asyncio.to_thread(
                    self._cut, source, dest, start, self.chunk_duration
                )
                segments.append(
                    Segment(
                        file_id=file_id,
                        index=index,
                        path=dest,
                        chunk_duration=self.chunk_duration,
                    )
                )
                logger.debug(
                    "segment.cut file=%s index=%d/%d start=%.2f",
                    file_id,
                    index + 1,
                    len(plan),
                    start,
                )
                if on_progress is not None:
                    on_progress(index + 1, len(plan))
        return segments
