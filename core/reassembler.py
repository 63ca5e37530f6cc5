# core/reassembler.py
import asyncio
import logging
import os
from typing import Sequence
import ffmpeg
from core.errors import MergeError
from util.timing import timed

logger = logging.getLogger(__name__)


def _manifest_line(path: str) -> str:
    # concat demuxer quoting: close the quote, escape, reopen
    escaped = os.path.abspath(path).replace("'", "'\\''")
    return f"file '{escaped}'"


class Reassembler:
    """Joins processed segments, in the given order, by stream copy."""

    def _concat(self, manifest: str, output_path: str) -> None:
        try:
            (
                ffmpeg.input(manifest, f="concat", safe=0)
                .output(output_path, c="copy")
                .overwrite_output()
                .run(capture_stdout=True, capture_stderr=True)
            )
        except ffmpeg.Error as e:
            detail = e.stderr.decode("utf-8", "replace").strip()[-500:] if e.stderr else str(e)
            raise MergeError(f"Concatenation failed: {detail}") from e

    async def merge(self, paths: Sequence[str], output_path: str) -> str:
        if not paths:
            raise MergeError("No segments to merge")
        missing = [p for p in paths if not os.path.isfile(p)]
        if missing:
            raise MergeError(f"Missing segment file(s): {', '.join(missing)}")

        out_dir = os.path.dirname(os.path.abspath(output_path))
        os.makedirs(out_dir, exist_ok=True)
        manifest = os.path.join(
            out_dir, f"{os.path.basename(output_path)}.concat.txt"
        )
        with open(manifest, "w", encoding="utf-8") as fh:
            fh.write("\n".join(_manifest_line(p) for p in paths) + "\n")

        try:
            with timed(logger, "merge", segments=len(paths)):
                await asyncio.to_thread(self._concat, manifest, output_path)
        finally:
            if os.path.exists(manifest):
                os.remove(manifest)

        logger.info("merge.ok output=%s", output_path)
        return output_path
