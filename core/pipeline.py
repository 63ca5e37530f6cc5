# core/pipeline.py
import asyncio
import logging
import os
from typing import Callable, List, Sequence
from config.settings import settings
from core.batch_scheduler import BatchScheduler
from core.entities import JobConfig, Segment, SegmentTask
from core.reassembler import Reassembler
from core.retry_policy import RetryPolicy
from core.segmenter import Segmenter
from core.synthesis_client import SynthesisClient
from model.job import FileResult, FileTask
from repository.job_repository import JobRepository
from repository.media_repository import MediaRepository
from util.timing import timed
from util.types import SleepFn

logger = logging.getLogger(__name__)

ClientFactory = Callable[[JobConfig], SynthesisClient]
SegmenterFactory = Callable[[float], Segmenter]


def default_client_factory(config: JobConfig) -> SynthesisClient:
    return SynthesisClient(
        api_key=config.api_key,
        submit_url=settings.DASHSCOPE_API_URL,
        task_url=settings.DASHSCOPE_TASK_URL,
        model=settings.SYNTHESIS_MODEL,
        submit_timeout=settings.SUBMIT_TIMEOUT_SECONDS,
        poll_interval=settings.POLL_INTERVAL_SECONDS,
        max_poll_attempts=settings.MAX_POLL_ATTEMPTS,
        download_timeout=settings.DOWNLOAD_TIMEOUT_SECONDS,
    )


def output_filename(index: int) -> str:
    return f"output_{index}.mp4"


class SegmentPipeline:
    """
    End-to-end processing of one job:
    1) for each file, in order: split -> synthesize segments in batches -> merge
    2) record one FileResult per file (a failing file never stops the others)
    3) finalize the job once every file has a result
    """

    def __init__(
        self,
        *,
        jobs: JobRepository,
        media: MediaRepository,
        client_factory: ClientFactory = default_client_factory,
        segmenter_factory: SegmenterFactory = Segmenter,
        reassembler: Reassembler | None = None,
        retry_policy: RetryPolicy | None = None,
        batch_size: int = settings.MAX_CONCURRENT_SEGMENTS,
        stagger: float = settings.LAUNCH_STAGGER_SECONDS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._jobs = jobs
        self._media = media
        self._client_factory = client_factory
        self._segmenter_factory = segmenter_factory
        self._reassembler = reassembler or Reassembler()
        self._retry = retry_policy or RetryPolicy(
            max_retries=settings.MAX_RETRIES,
            delay=settings.RETRY_DELAY_SECONDS,
            retryable_statuses=settings.RETRYABLE_STATUS_CODES,
            sleep=sleep,
        )
        self._batch_size = batch_size
        self._stagger = stagger
        self._sleep = sleep

    async def run_job(
        self, job_id: str, files: Sequence[FileTask], config: JobConfig
    ) -> None:
        """Background entry point: anything escaping run() marks the whole job as errored."""
        try:
            await self.run(job_id, files, config)
        except Exception as e:
            logger.exception("pipeline.job.error job=%s", job_id)
            await self._jobs.set_error(job_id, str(e))

    async def run(
        self, job_id: str, files: Sequence[FileTask], config: JobConfig
    ) -> None:
        logger.info(
            "pipeline.job.start job=%s files=%d mode=%s chunk=%.1f batch=%d",
            job_id,
            len(files),
            config.mode,
            config.chunk_duration,
            self._batch_size,
        )
        client = self._client_factory(config)
        for file in files:
            result = await self._process_file(job_id, file, config, client)
            await self._jobs.append_result(job_id, result)

        await self._jobs.finalize(job_id)
        logger.info("pipeline.job.done job=%s", job_id)

    async def _process_file(
        self,
        job_id: str,
        file: FileTask,
        config: JobConfig,
        client: SynthesisClient,
    ) -> FileResult:
        name = file.originalName
        work_dir = self._media.work_dir(file.id)
        await self._jobs.set_current_file(job_id, name)
        try:
            os.makedirs(work_dir, exist_ok=True)
            with timed(logger, "pipeline.file", job=job_id, file=file.id):
                source = await self._media.resolve_source(file, work_dir)

                await self._jobs.set_status(job_id, f"Splitting {name}...")
                segmenter = self._segmenter_factory(config.chunk_duration)
                segments = await segmenter.split(source, work_dir, file.id)
                await self._jobs.increment_total_segments(job_id, len(segments))

                await self._jobs.set_status(
                    job_id,
                    f"Processing {len(segments)} chunks in parallel for {name}...",
                )
                outputs = await self._synthesize(job_id, segments, config, client)

                await self._jobs.set_status(job_id, f"Merging chunks for {name}...")
                final_path = await self._reassembler.merge(
                    outputs, self._media.output_path(file.id)
                )

            logger.info("pipeline.file.ok job=%s file=%s", job_id, file.id)
            return FileResult(
                fileId=file.id,
                originalName=name,
                status="completed",
                outputPath=final_path,
                publicUrl=self._media.output_url(final_path),
            )
        except Exception as e:
            logger.error(
                "pipeline.file.error job=%s file=%s err=%s: %s",
                job_id,
                file.id,
                type(e).__name__,
                e,
            )
            return FileResult(
                fileId=file.id,
                originalName=name,
                status="error",
                error=str(e) or type(e).__name__,
            )
        finally:
            self._media.remove_work_dir(file.id)

    async def _synthesize(
        self,
        job_id: str,
        segments: List[Segment],
        config: JobConfig,
        client: SynthesisClient,
    ) -> List[str]:
        total = len(segments)

        async def round_trip(task: SegmentTask) -> str:
            task_id = await client.submit(task.url, config.image_url, config.mode)
            video_url = await client.poll(task_id)
            return await client.download(video_url, task.output_path)

        async def worker(task: SegmentTask) -> str:
            label = f"file={task.segment.file_id} index={task.segment.index + 1}/{total}"

            def on_retry(retries: int, err: BaseException) -> None:
                task.retries = retries

            path = await self._retry.run(
                lambda: round_trip(task), on_retry=on_retry, label=label
            )
            await self._jobs.increment_processed(job_id)
            logger.info("segment.done %s retries=%d", label, task.retries)
            return path

        tasks = [
            SegmentTask(
                segment=s,
                url=self._media.segment_url(s.path),
                output_path=os.path.join(
                    os.path.dirname(s.path), output_filename(s.index)
                ),
            )
            for s in segments
        ]
        scheduler = BatchScheduler(
            worker, batch_size=self._batch_size, stagger=self._stagger, sleep=self._sleep
        )
        return await scheduler.run(tasks)
