"""Ingestion job orchestrator - drives batches of references into the object store."""

import threading
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from tubevault.application.chains import DownloaderChain, MetadataChain
from tubevault.application.dedup import DestinationSnapshot
from tubevault.application.estimator import estimate_remaining_ms
from tubevault.application.registry import JobRegistry
from tubevault.domain.exceptions import (
    ConfigurationError, InvalidBatchError, JobNotFoundError, MetadataError
)
from tubevault.domain.models import (
    ItemOutcome, Job, JobProgress, JobStatus, PipelineItem, VideoInfo, utcnow
)
from tubevault.domain.protocols import (
    ILogger, IMetricsCollector, IObjectStore, ITempStorage
)
from tubevault.domain.references import parse_reference
from tubevault.shared.logging import LoggerAdapter, get_logger
from tubevault.shared.metrics import MetricsCollector

DEFAULT_DOWNLOAD_TIMEOUT_MS = 180_000
VIDEO_CONTENT_TYPE = "video/mp4"

EMPTY_BATCH_MESSAGE = "videoUrls must be a non-empty array of YouTube URLs"
NON_STRING_BATCH_MESSAGE = "videoUrls must only contain strings"


def validate_batch(references: Sequence[str]) -> List[str]:
    """
    Check a submitted batch before any job is created.

    Raises:
        InvalidBatchError: If the batch is not a non-empty list of strings
    """
    if isinstance(references, (str, bytes)) or not isinstance(references, (list, tuple)):
        raise InvalidBatchError(EMPTY_BATCH_MESSAGE)
    if len(references) == 0:
        raise InvalidBatchError(EMPTY_BATCH_MESSAGE)
    if not all(isinstance(ref, str) for ref in references):
        raise InvalidBatchError(NON_STRING_BATCH_MESSAGE)
    return list(references)


@dataclass
class _RunStats:
    """Timing of successfully uploaded items within one job."""

    cumulative_ms: float = 0.0
    success_count: int = 0


class IngestOrchestrator:
    """Owns job lifecycle: accepts batches and runs each one as a background task."""

    def __init__(
        self,
        registry: JobRegistry,
        metadata_chain: MetadataChain,
        downloader_chain: DownloaderChain,
        object_store: IObjectStore,
        temp_storage: ITempStorage,
        default_bucket: Optional[str] = None,
        download_timeout_ms: int = DEFAULT_DOWNLOAD_TIMEOUT_MS,
        max_concurrent_jobs: int = 4,
        logger: Optional[ILogger] = None,
        metrics_factory: Callable[[], IMetricsCollector] = MetricsCollector,
        clock: Callable[[], float] = time.monotonic
    ):
        self._registry = registry
        self._metadata_chain = metadata_chain
        self._downloader_chain = downloader_chain
        self._object_store = object_store
        self._temp_storage = temp_storage
        self._default_bucket = default_bucket
        self._download_timeout_ms = download_timeout_ms
        self._logger = logger or LoggerAdapter(get_logger(__name__))
        self._metrics_factory = metrics_factory
        self._clock = clock

        self._executor = ThreadPoolExecutor(
            max_workers=max_concurrent_jobs, thread_name_prefix="ingest-job"
        )
        self._futures: Dict[str, Future] = {}
        self._futures_lock = threading.Lock()
        self._closed = False

    # ---------------- Submission ----------------

    def submit(self, references: Sequence[str], destination: Optional[str] = None) -> str:
        """
        Create a job for a batch and schedule its pipeline in the background.

        Args:
            references: Non-empty ordered sequence of video URLs
            destination: Bucket overriding the configured default

        Returns:
            The new job id; the caller polls the registry for progress

        Raises:
            InvalidBatchError: If the batch is empty or malformed
            ConfigurationError: If no destination bucket can be resolved
        """
        batch = validate_batch(references)

        bucket = destination or self._default_bucket
        if not bucket:
            raise ConfigurationError("No S3 bucket name configured or provided")

        if self._closed:
            raise RuntimeError("Orchestrator has been shut down")

        job = Job(id=str(uuid.uuid4()), progress=JobProgress(current=0, total=len(batch)))
        self._registry.add(job)

        try:
            future = self._executor.submit(self._run_pipeline, job.id, batch, bucket)
        except Exception as e:
            self._logger.error(f"[job {job.id}] Could not schedule pipeline: {e}")
            self._registry.update(job.id, lambda j: _mark_failed(j, f"Could not schedule job: {e}"))
            raise
        with self._futures_lock:
            self._futures[job.id] = future

        self._logger.info(f"[job {job.id}] Submitted {len(batch)} video(s) for s3://{bucket}")
        return job.id

    def wait(self, job_id: str, timeout: Optional[float] = None) -> Job:
        """
        Block until the pipeline task of a job has finished.

        Raises:
            JobNotFoundError: If the id was never issued
            concurrent.futures.TimeoutError: If timeout expires first
        """
        with self._futures_lock:
            future = self._futures.get(job_id)
        if future is None:
            raise JobNotFoundError(job_id)
        future.result(timeout=timeout)
        return self._registry.get(job_id)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs. With wait, block until running jobs finish and sweep leftover workspaces."""
        self._closed = True
        self._executor.shutdown(wait=wait)
        if wait:
            self._temp_storage.cleanup_all()

    # ---------------- Pipeline ----------------

    def _run_pipeline(self, job_id: str, references: List[str], bucket: str) -> None:
        """Background task for one job. Writes only to that job's registry entry."""
        metrics = self._metrics_factory()
        workspace: Optional[Path] = None

        try:
            self._registry.update(job_id, _mark_processing)

            # 1. Workspace (job-fatal if it cannot be created)
            workspace = self._temp_storage.create_workspace(job_id)

            # 2. Destination snapshot, taken once per job
            snapshot = self._take_snapshot(job_id, bucket)

            # 3. Items, strictly in input order
            stats = _RunStats()
            total = len(references)
            for index, reference in enumerate(references):
                item = self._process_item(job_id, reference, bucket, workspace, snapshot, metrics)
                self._record_item(job_id, index + 1, total, item, stats)

            final = self._registry.update(job_id, _mark_completed)
            self._logger.info(
                f"[job {job_id}] Completed: {len(final.urls)}/{total} video(s) available"
            )

        except Exception as e:
            self._logger.exception(f"[job {job_id}] Job failed: {e}")
            message = str(e) or e.__class__.__name__
            self._registry.update(job_id, lambda job: _mark_failed(job, message))

        finally:
            if workspace is not None:
                try:
                    self._temp_storage.cleanup(workspace)
                except Exception as e:
                    self._logger.error(f"[job {job_id}] Failed to clean up {workspace}: {e}")
            self._logger.info(f"[job {job_id}] Metrics: {metrics.format_summary()}")

    def _take_snapshot(self, job_id: str, bucket: str) -> DestinationSnapshot:
        try:
            objects = self._object_store.list_objects(bucket)
        except Exception as e:
            self._logger.warning(f"[job {job_id}] Failed to fetch existing files from S3: {e}")
            return DestinationSnapshot()

        self._logger.debug(f"[job {job_id}] {len(objects)} object(s) already in s3://{bucket}")
        return DestinationSnapshot.from_objects(objects)

    def _process_item(
        self,
        job_id: str,
        reference: str,
        bucket: str,
        workspace: Path,
        snapshot: DestinationSnapshot,
        metrics: IMetricsCollector
    ) -> PipelineItem:
        """Push one reference through validate, dedup, metadata, download and publish.

        Never raises: any failure becomes a FAILED outcome for this item only.
        """
        item = PipelineItem(reference=reference)
        started = self._clock()

        try:
            item.canonical_id = parse_reference(reference)

            dedup = snapshot.check(item.canonical_id)
            if dedup.present:
                item.url = self._object_store.public_url(bucket, dedup.key)
                item.outcome = ItemOutcome.DUPLICATE
                metrics.increment_counter("items_duplicate")
                self._logger.info(
                    f"[job {job_id}] Video already exists in S3, skipping: {reference} "
                    f"(ID: {item.canonical_id})"
                )
                return item

            item.metadata = self._fetch_metadata(job_id, item.canonical_id)

            item.local_path = workspace / dedup.key
            metrics.start_timer("download")
            try:
                self._downloader_chain.download(reference, item.local_path, self._download_timeout_ms)
            finally:
                metrics.stop_timer("download")

            metrics.start_timer("upload")
            try:
                item.url = self._object_store.put_file(
                    item.local_path, bucket, dedup.key, content_type=VIDEO_CONTENT_TYPE, public=True
                )
            finally:
                metrics.stop_timer("upload")

            snapshot.add(dedup.key)
            item.outcome = ItemOutcome.UPLOADED
            item.elapsed_ms = (self._clock() - started) * 1000
            metrics.increment_counter("items_uploaded")
            self._logger.info(f"[job {job_id}] Uploaded {reference} -> {item.url}")

            item.local_path.unlink(missing_ok=True)

        except Exception as e:
            item.outcome = ItemOutcome.FAILED
            item.error = str(e)
            metrics.increment_counter("items_failed")
            self._logger.warning(f"[job {job_id}] Error processing {reference}: {e}")

        return item

    def _fetch_metadata(self, job_id: str, video_id: str) -> Optional[VideoInfo]:
        # Best effort: only the raw bytes matter for the upload
        try:
            return self._metadata_chain.fetch(video_id)
        except MetadataError as e:
            self._logger.warning(
                f"[job {job_id}] Metadata unavailable for {video_id}, continuing with download: {e}"
            )
            return None

    def _record_item(
        self,
        job_id: str,
        position: int,
        total: int,
        item: PipelineItem,
        stats: _RunStats
    ) -> None:
        """Publish one item's result to the job: url, progress and estimate together."""
        if item.outcome == ItemOutcome.UPLOADED:
            stats.cumulative_ms += item.elapsed_ms
            stats.success_count += 1

        def apply(job: Job) -> None:
            if item.url:
                job.urls.append(item.url)
            job.progress = JobProgress(current=position, total=total)
            if position > 1:
                job.estimated_time_remaining_ms = estimate_remaining_ms(
                    stats.cumulative_ms, stats.success_count, position, total - position
                )

        self._registry.update(job_id, apply)


def _mark_processing(job: Job) -> None:
    job.status = JobStatus.PROCESSING


def _mark_completed(job: Job) -> None:
    job.status = JobStatus.COMPLETED
    job.progress = JobProgress(current=job.progress.total, total=job.progress.total)
    job.estimated_time_remaining_ms = 0
    job.completed_time = utcnow()


def _mark_failed(job: Job, message: str) -> None:
    job.status = JobStatus.FAILED
    job.error = message
    # Abandoned items count as attempted so every terminal job reports current == total
    job.progress = JobProgress(current=job.progress.total, total=job.progress.total)
    job.estimated_time_remaining_ms = 0
    job.completed_time = utcnow()
