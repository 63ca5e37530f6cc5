# repository/media_repository.py
import logging
import os
import shutil
from typing import Optional, Tuple
from uuid import uuid4
import httpx
from fastapi import UploadFile, status
from config.settings import settings
from model.job import FileTask
from util.constants import StaticURIs
from util.errors import AppError
from util.functions import is_remote, join_url

logger = logging.getLogger(__name__)

READ_CHUNK = 1024 * 1024


class MediaRepository:
    """
    On-disk media owned by the service, and the public URLs it is served under.

    Layout under MEDIA_ROOT:
      uploads/           source videos and reference images   -> /files/videos, /files/images
      chunks/<fileId>/   per-file work dir (segments, outputs) -> /files/segments/<fileId>
      outputs/           merged results                        -> /files/outputs
    """

    def __init__(
        self,
        root: str = settings.MEDIA_ROOT,
        public_base: str = settings.SERVER_URL,
    ) -> None:
        self.root = os.path.abspath(root)
        self.public_base = public_base
        self.upload_dir = os.path.join(self.root, settings.UPLOAD_DIR_NAME)
        self.segments_dir = os.path.join(self.root, settings.SEGMENTS_DIR_NAME)
        self.output_dir = os.path.join(self.root, settings.OUTPUT_DIR_NAME)

    def ensure_dirs(self) -> None:
        for d in (self.upload_dir, self.segments_dir, self.output_dir):
            os.makedirs(d, exist_ok=True)

    # ---------------- Uploads ----------------

    async def _write_upload(self, file: UploadFile, dest: str, max_bytes: int) -> int:
        written = 0
        try:
            with open(dest, "wb") as fh:
                while True:
                    block = await file.read(READ_CHUNK)
                    if not block:
                        break
                    written += len(block)
                    if written > max_bytes:
                        raise AppError(
                            f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB per file.",
                            status.HTTP_413_CONTENT_TOO_LARGE,
                        )
                    fh.write(block)
        except BaseException:
            if os.path.exists(dest):
                os.remove(dest)
            raise
        return written

    async def save_video(self, file: UploadFile, max_bytes: int) -> FileTask:
        original = file.filename or "video.mp4"
        filename = f"{uuid4()}{os.path.splitext(original)[1] or '.mp4'}"
        dest = os.path.join(self.upload_dir, filename)
        size = await self._write_upload(file, dest, max_bytes)
        logger.info("upload.video.ok file=%s bytes=%d", filename, size)
        return FileTask(
            id=str(uuid4()),
            filename=filename,
            originalName=original,
            path=dest,
            size=size,
        )

    async def save_image(self, file: UploadFile, max_bytes: int) -> Tuple[str, str]:
        """Returns (local path, stored filename)."""
        original = file.filename or "character.png"
        filename = f"character_{uuid4()}{os.path.splitext(original)[1]}"
        dest = os.path.join(self.upload_dir, filename)
        size = await self._write_upload(file, dest, max_bytes)
        logger.info("upload.image.ok file=%s bytes=%d", filename, size)
        return dest, filename

    # ---------------- Public URLs ----------------

    def image_url(self, path_or_url: str) -> str:
        if is_remote(path_or_url):
            return path_or_url
        return join_url(self.public_base, StaticURIs.IMAGES, os.path.basename(path_or_url))

    def segment_url(self, path: str) -> str:
        rel = os.path.relpath(os.path.abspath(path), self.segments_dir)
        if rel.startswith(".."):
            raise ValueError(f"{path} is outside the segments directory")
        return join_url(self.public_base, StaticURIs.SEGMENTS, *rel.split(os.sep))

    def output_url(self, path: str) -> str:
        return join_url(self.public_base, StaticURIs.OUTPUTS, os.path.basename(path))

    # ---------------- Per-file work ----------------

    def work_dir(self, file_id: str) -> str:
        return os.path.join(self.segments_dir, file_id)

    def output_path(self, file_id: str) -> str:
        return os.path.join(self.output_dir, f"{file_id}_animated.mp4")

    def remove_work_dir(self, file_id: str) -> None:
        shutil.rmtree(self.work_dir(file_id), ignore_errors=True)

    async def resolve_source(
        self, file: FileTask, work_dir: str, timeout: Optional[float] = None
    ) -> str:
        """
        Local path of the source video. Remote sources are fetched into the
        work dir; local ones must be uploads we stored ourselves.
        """
        if is_remote(file.path):
            dest = os.path.join(work_dir, f"source{os.path.splitext(file.filename)[1] or '.mp4'}")
            async with httpx.AsyncClient(
                timeout=timeout or settings.DOWNLOAD_TIMEOUT_SECONDS,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", file.path) as r:
                    r.raise_for_status()
                    with open(dest, "wb") as fh:
                        async for chunk in r.aiter_bytes():
                            fh.write(chunk)
            logger.info("source.fetched file=%s", file.id)
            return dest

        return os.path.join(self.upload_dir, os.path.basename(file.filename))
