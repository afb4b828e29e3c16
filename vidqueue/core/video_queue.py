"""In-memory video processing queue.

Accepts video URLs, returns a job handle immediately and runs the
scrape -> ingest sequence as a background asyncio task. Callers discover
progress and failures by polling (get_job / get_user_jobs / get_active_jobs).

Job lifecycle:
    pending -> processing -> completed | failed

Every job starts processing as soon as it is added; there is no global
concurrency cap, so a burst of add_job calls becomes a burst of concurrent
outbound requests. Failed jobs are never retried by the queue; a retry is
a new add_job call.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, Optional

from vidqueue.core.exceptions import (
    ErrorKind,
    IngestionError,
    MissingMediaUrlError,
    ScrapeError,
    describe_error,
    error_kind,
)
from vidqueue.core.job import (
    JobResult,
    JobStatus,
    ProcessingStats,
    VideoProcessingJob,
    new_job_id,
)
from vidqueue.core.job_store import InMemoryJobStore, JobStore
from vidqueue.core.logger import get_job_logger
from vidqueue.core.sweeper import CleanupSweeper
from vidqueue.core.url_classifier import Platform, classify

if TYPE_CHECKING:
    import httpx

    from vidqueue.core.config import Config
    from vidqueue.core.ingestion import IngestionClient
    from vidqueue.core.scraper import ScrapedVideo, Scraper

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(hours=4)
DEFAULT_ACTIVE_WINDOW = timedelta(hours=1)
DEFAULT_CLEANUP_INTERVAL = 3600.0

SUCCESS_MESSAGE = "Video added successfully!"
FAILURE_MESSAGE = "Processing failed"
CANCELLED_MESSAGE = "Processing cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VideoQueue:
    """Background processing queue for submitted video URLs.

    Attributes:
        retention: Age after which terminal jobs are evicted by cleanup().
        active_window: How long a terminal job stays in get_active_jobs().
    """

    def __init__(
        self,
        scraper: "Scraper",
        ingestion: "IngestionClient",
        *,
        store: JobStore | None = None,
        clock: Callable[[], datetime] | None = None,
        retention: timedelta = DEFAULT_RETENTION,
        active_window: timedelta = DEFAULT_ACTIVE_WINDOW,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
    ):
        """Initialize the queue.

        Args:
            scraper: Resolves URLs into ScrapedVideo results.
            ingestion: Persists scraped videos (called with the internal credential).
            store: Job store; a fresh InMemoryJobStore if not provided.
            clock: Returns the current aware datetime (injectable for tests).
            retention: Terminal jobs at least this old are evicted by cleanup().
            active_window: Terminal jobs newer than this count as active.
            cleanup_interval: Seconds between sweeps once start() is called.
        """
        self._scraper = scraper
        self._ingestion = ingestion
        self._store = store if store is not None else InMemoryJobStore()
        self._clock = clock or _utcnow
        self.retention = retention
        self.active_window = active_window

        # Job IDs whose processing is currently running
        self._in_flight: set[str] = set()
        # Strong references to background tasks until they finish
        self._tasks: set[asyncio.Task] = set()
        self._sweeper = CleanupSweeper(self.cleanup, cleanup_interval)

    @classmethod
    def from_config(
        cls,
        config: "Config",
        *,
        client: Optional["httpx.AsyncClient"] = None,
        store: JobStore | None = None,
    ) -> "VideoQueue":
        """Build a queue wired to the HTTP collaborators described by config."""
        from vidqueue.core.ingestion import IngestionClient
        from vidqueue.core.scraper import UnifiedVideoScraper

        return cls(
            scraper=UnifiedVideoScraper(config.base_url, client=client),
            ingestion=IngestionClient(
                config.base_url, config.internal_api_secret, client=client
            ),
            store=store,
            retention=timedelta(hours=config.retention_hours),
            active_window=timedelta(minutes=config.active_window_minutes),
            cleanup_interval=config.cleanup_interval_seconds,
        )

    @property
    def store(self) -> JobStore:
        return self._store

    @property
    def sweeper(self) -> CleanupSweeper:
        return self._sweeper

    @property
    def in_flight(self) -> frozenset[str]:
        """IDs of jobs whose processing is running right now."""
        return frozenset(self._in_flight)

    # ── Public API ───────────────────────────────────────────────────

    def add_job(
        self, url: str, user_id: str, collection_id: str | None = None
    ) -> VideoProcessingJob:
        """Add a video to the queue and start processing it in the background.

        Must be called from code running on the event loop. Returns
        immediately; the same URL added twice yields two independent jobs.

        Args:
            url: Source video URL (expected to be pre-classified as supported).
            user_id: Owning user.
            collection_id: Optional target collection.

        Returns:
            Snapshot of the new job in pending state.

        Raises:
            RuntimeError: If no event loop is running.
        """
        loop = asyncio.get_running_loop()
        now = self._clock()
        job = VideoProcessingJob(
            id=new_job_id(now),
            url=url,
            user_id=user_id,
            collection_id=collection_id,
            started_at=now,
        )
        self._store.put(job)
        get_job_logger(__name__, job.id).info("Added job for URL: %s", url)

        task = loop.create_task(self.process_job(job.id), name=f"process-{job.id}")
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

        return job.snapshot()

    def get_job(self, job_id: str) -> VideoProcessingJob | None:
        """Look up a job by ID."""
        job = self._store.get(job_id)
        return job.snapshot() if job is not None else None

    def get_user_jobs(self, user_id: str) -> list[VideoProcessingJob]:
        """All jobs owned by a user, most recently started first."""
        jobs = [job for job in self._store.values() if job.user_id == user_id]
        return self._newest_first(jobs)

    def get_active_jobs(self) -> list[VideoProcessingJob]:
        """Jobs still relevant for notifications, most recent first.

        Active means pending, processing, or finished within active_window.
        """
        cutoff = self._clock() - self.active_window
        jobs = [
            job
            for job in self._store.values()
            if not job.status.is_terminal
            or (job.completed_at is not None and job.completed_at > cutoff)
        ]
        return self._newest_first(jobs)

    def get_stats(self) -> ProcessingStats:
        """Count jobs by status."""
        stats = ProcessingStats()
        for job in self._store.values():
            stats.total += 1
            if job.status is JobStatus.PENDING:
                stats.pending += 1
            elif job.status is JobStatus.PROCESSING:
                stats.processing += 1
            elif job.status is JobStatus.COMPLETED:
                stats.completed += 1
            elif job.status is JobStatus.FAILED:
                stats.failed += 1
        return stats

    def cleanup(self) -> int:
        """Evict terminal jobs that finished at least `retention` ago.

        Pending and processing jobs are never evicted, whatever their age.

        Returns:
            Number of jobs removed.
        """
        cutoff = self._clock() - self.retention
        cleaned = 0
        for job in self._store.values():
            if (
                job.status.is_terminal
                and job.completed_at is not None
                and job.completed_at <= cutoff
            ):
                self._store.delete(job.id)
                cleaned += 1

        if cleaned:
            logger.info("Cleaned up %d old jobs", cleaned)
        return cleaned

    # ── Lifecycle ────────────────────────────────────────────────────

    def start(self) -> None:
        """Start the periodic cleanup sweeper."""
        self._sweeper.start()

    async def drain(self) -> None:
        """Wait until every background task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def stop(self, timeout: float | None = None) -> None:
        """Stop the sweeper and wait for in-flight jobs.

        Args:
            timeout: Seconds to wait for in-flight jobs before cancelling
                them (None waits indefinitely). Cancelled jobs end failed.
        """
        await self._sweeper.stop()
        if not self._tasks:
            return

        logger.info("Waiting for %d in-flight jobs", len(self._tasks))
        _, pending = await asyncio.wait(list(self._tasks), timeout=timeout)
        if pending:
            logger.warning("Cancelling %d jobs still running at shutdown", len(pending))
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

    async def __aenter__(self) -> "VideoQueue":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ── Processing ───────────────────────────────────────────────────

    async def process_job(self, job_id: str) -> None:
        """Run scrape -> ingest for one job.

        Called by the background task spawned in add_job. Re-entrant calls
        for a job already in flight return immediately, and only pending
        jobs are processed. Every outcome ends in a terminal job state;
        nothing propagates to the caller except task cancellation.
        """
        if job_id in self._in_flight:
            logger.debug("Job %s already processing, skipping", job_id)
            return

        self._in_flight.add(job_id)
        try:
            job = self._store.get(job_id)
            if job is None or job.status is not JobStatus.PENDING:
                return
            await self._run(job)
        finally:
            self._in_flight.discard(job_id)

    async def _run(self, job: VideoProcessingJob) -> None:
        job_logger = get_job_logger(__name__, job.id)
        job_logger.info("Starting job")

        try:
            self._update(job, 10, "Starting...", status=JobStatus.PROCESSING)

            self._update(job, 25, "Extracting video metadata...")
            scraped = await self._scraper.scrape(job.url)
            if scraped is None:
                raise ScrapeError(_platform_of(job.url), "Scraper returned no data")

            self._update(job, 50, "Getting video download link...")
            if not scraped.video_url:
                raise MissingMediaUrlError(scraped.platform)

            self._update(job, 75, "Adding to collection...")
            response = await self._ingestion.add_video(job.snapshot(), scraped)
            if not response.success:
                raise IngestionError(response.error)

            self._complete(job, scraped, response.video_id)
            job_logger.info("Job completed")

        except asyncio.CancelledError:
            self._fail(job, CANCELLED_MESSAGE)
            job_logger.warning("Job cancelled")
            raise
        except Exception as e:
            kind = error_kind(e)
            self._fail(job, describe_error(e))
            job_logger.error(
                "Job failed: %s",
                e,
                exc_info=kind is ErrorKind.UNEXPECTED,
                extra={"error_kind": kind.value},
            )

    def _update(
        self,
        job: VideoProcessingJob,
        progress: int,
        message: str,
        *,
        status: JobStatus | None = None,
    ) -> None:
        if status is not None:
            job.status = status
        job.progress = progress
        job.message = message

    def _complete(
        self,
        job: VideoProcessingJob,
        scraped: "ScrapedVideo",
        video_id: str | None,
    ) -> None:
        job.result = JobResult(
            video_id=video_id or scraped.short_code,
            thumbnail_url=scraped.thumbnail_url or None,
            title=scraped.title or f"Video by @{scraped.author}",
            author=scraped.author,
            video_url=scraped.video_url,
        )
        job.status = JobStatus.COMPLETED
        job.progress = 100
        job.message = SUCCESS_MESSAGE
        job.completed_at = self._clock()

    def _fail(self, job: VideoProcessingJob, error: str) -> None:
        job.status = JobStatus.FAILED
        job.progress = 100
        job.message = FAILURE_MESSAGE
        job.error = error
        job.completed_at = self._clock()

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s crashed: %s", task.get_name(), exc)

    @staticmethod
    def _newest_first(jobs: list[VideoProcessingJob]) -> list[VideoProcessingJob]:
        jobs.sort(key=lambda job: job.started_at, reverse=True)
        return [job.snapshot() for job in jobs]


def _platform_of(url: str) -> str | None:
    platform = classify(url).platform
    return None if platform is Platform.UNKNOWN else platform.value
