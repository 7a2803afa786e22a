"""Unit tests for IngestOrchestrator."""

from unittest.mock import patch

import pytest

from tubevault.application.chains import DownloaderChain, MetadataChain
from tubevault.application.registry import JobRegistry
from tubevault.domain.exceptions import (
    ConfigurationError, DownloadError, InvalidBatchError, JobNotFoundError, MetadataError
)
from tubevault.domain.models import JobStatus
from tubevault.shared.metrics import MetricsCollector

URL_A = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
URL_B = "https://youtu.be/9bZkp7q19f0"
URL_C = "https://www.youtube.com/watch?v=kJQP7kiw5Fk"
BUCKET_URL = "https://test-bucket.s3.us-west-2.amazonaws.com/"


class RecordingRegistry(JobRegistry):
    """Registry keeping every snapshot a writer produced."""

    def __init__(self):
        super().__init__()
        self.history = []

    def update(self, job_id, mutate):
        snapshot = super().update(job_id, mutate)
        self.history.append(snapshot)
        return snapshot


class ExplodingMetrics(MetricsCollector):
    def increment_counter(self, name, amount=1):
        raise RuntimeError("metrics backend down")


def run(orchestrator, references, **kwargs):
    job_id = orchestrator.submit(references, **kwargs)
    return orchestrator.wait(job_id, timeout=10)


class TestSubmit:

    def test_returns_pending_job_immediately(self, make_orchestrator, registry):
        orchestrator = make_orchestrator()

        job_id = orchestrator.submit([URL_A])

        assert job_id in registry
        assert registry.get(job_id).progress.total == 1
        orchestrator.wait(job_id, timeout=10)

    @pytest.mark.parametrize("batch", [[], "https://youtu.be/dQw4w9WgXcQ", None])
    def test_rejects_empty_or_non_list_batch(self, make_orchestrator, registry, batch):
        orchestrator = make_orchestrator()

        with pytest.raises(InvalidBatchError, match="non-empty array"):
            orchestrator.submit(batch)

        assert len(registry) == 0

    def test_rejects_non_string_items(self, make_orchestrator, registry):
        with pytest.raises(InvalidBatchError, match="only contain strings"):
            make_orchestrator().submit([URL_A, 42])

        assert len(registry) == 0

    def test_requires_bucket(self, make_orchestrator, registry):
        orchestrator = make_orchestrator(default_bucket=None)

        with pytest.raises(ConfigurationError, match="No S3 bucket"):
            orchestrator.submit([URL_A])

        assert len(registry) == 0

    def test_destination_overrides_default_bucket(self, make_orchestrator, object_store):
        job = run(make_orchestrator(), [URL_A], destination="other-bucket")

        assert job.urls == ["https://other-bucket.s3.us-west-2.amazonaws.com/youtube_dQw4w9WgXcQ.mp4"]
        assert object_store.uploads[0][0] == "other-bucket"

    def test_submit_after_shutdown(self, make_orchestrator):
        orchestrator = make_orchestrator()
        orchestrator.shutdown()

        with pytest.raises(RuntimeError):
            orchestrator.submit([URL_A])

    def test_scheduling_failure_marks_job_failed(self, make_orchestrator):
        registry = RecordingRegistry()
        orchestrator = make_orchestrator(registry=registry)

        with patch.object(orchestrator._executor, "submit",
                          side_effect=RuntimeError("cannot schedule new futures")):
            with pytest.raises(RuntimeError, match="cannot schedule"):
                orchestrator.submit([URL_A, URL_B])

        assert len(registry) == 1
        job = registry.get(registry.history[-1].id)
        assert job.status == JobStatus.FAILED
        assert job.error == "Could not schedule job: cannot schedule new futures"
        assert job.progress.current == job.progress.total == 2
        assert job.completed_time is not None

    def test_shutdown_sweeps_leftover_workspaces(self, make_orchestrator, temp_storage):
        orchestrator = make_orchestrator()
        stale = temp_storage.create_workspace("stale-job")

        orchestrator.shutdown()

        assert not stale.exists()

    def test_wait_unknown_job(self, make_orchestrator):
        with pytest.raises(JobNotFoundError):
            make_orchestrator().wait("missing")


class TestPipeline:

    def test_uploads_new_videos_in_order(self, make_orchestrator, object_store, downloader):
        job = run(make_orchestrator(), [URL_A, URL_B])

        assert job.status == JobStatus.COMPLETED
        assert job.urls == [
            BUCKET_URL + "youtube_dQw4w9WgXcQ.mp4",
            BUCKET_URL + "youtube_9bZkp7q19f0.mp4",
        ]
        assert downloader.calls == [URL_A, URL_B]
        assert object_store.uploads == [
            ("test-bucket", "youtube_dQw4w9WgXcQ.mp4", "video/mp4", True),
            ("test-bucket", "youtube_9bZkp7q19f0.mp4", "video/mp4", True),
        ]
        assert job.progress.to_dict() == {"current": 2, "total": 2, "percentage": 100}
        assert job.estimated_time_remaining_ms == 0
        assert job.completed_time is not None

    def test_existing_object_is_not_downloaded(self, make_orchestrator, fakes, downloader):
        store = fakes.ObjectStore(existing={"youtube_dQw4w9WgXcQ.mp4": 100})

        job = run(make_orchestrator(object_store=store), [URL_A])

        assert job.status == JobStatus.COMPLETED
        assert job.urls == [BUCKET_URL + "youtube_dQw4w9WgXcQ.mp4"]
        assert downloader.calls == []
        assert store.uploads == []

    def test_duplicate_within_batch(self, make_orchestrator, object_store, downloader):
        job = run(make_orchestrator(), [URL_A, "https://youtu.be/dQw4w9WgXcQ"])

        assert downloader.calls == [URL_A]
        assert len(object_store.uploads) == 1
        assert job.urls == [BUCKET_URL + "youtube_dQw4w9WgXcQ.mp4"] * 2

    def test_invalid_reference_fails_only_that_item(self, make_orchestrator):
        job = run(make_orchestrator(), ["https://vimeo.com/1", URL_A])

        assert job.status == JobStatus.COMPLETED
        assert job.urls == [BUCKET_URL + "youtube_dQw4w9WgXcQ.mp4"]
        assert job.progress.current == 2

    def test_download_exhaustion_fails_only_that_item(self, make_orchestrator, fakes):
        broken = fakes.Downloader(error=DownloadError("403 Forbidden"))

        job = run(make_orchestrator(downloader_chain=DownloaderChain([broken])), [URL_A])

        assert job.status == JobStatus.COMPLETED
        assert job.urls == []
        assert job.progress.to_dict() == {"current": 1, "total": 1, "percentage": 100}

    def test_upload_failure_fails_only_that_item(self, make_orchestrator, fakes):
        store = fakes.ObjectStore(fail_uploads=True)

        job = run(make_orchestrator(object_store=store), [URL_A, URL_B])

        assert job.status == JobStatus.COMPLETED
        assert job.urls == []

    def test_metadata_failure_does_not_block_upload(self, make_orchestrator, fakes, downloader):
        chain = MetadataChain([fakes.MetadataProvider(error=MetadataError("quota exceeded"))])

        job = run(make_orchestrator(metadata_chain=chain), [URL_A])

        assert job.urls == [BUCKET_URL + "youtube_dQw4w9WgXcQ.mp4"]
        assert downloader.calls == [URL_A]

    def test_listing_failure_means_empty_snapshot(self, make_orchestrator, fakes, downloader):
        store = fakes.ObjectStore(existing={"youtube_dQw4w9WgXcQ.mp4": 100}, fail_listing=True)

        job = run(make_orchestrator(object_store=store), [URL_A])

        assert job.status == JobStatus.COMPLETED
        assert downloader.calls == [URL_A]
        assert len(store.uploads) == 1

    def test_workspace_removed_after_job(self, make_orchestrator, temp_storage):
        run(make_orchestrator(), [URL_A, "not a url"])

        assert len(temp_storage.created) == 1
        assert temp_storage.cleaned == temp_storage.created
        assert not temp_storage.created[0].exists()

    def test_workspace_failure_fails_job(self, make_orchestrator, fakes, tmp_path):
        storage = fakes.TempStorage(base_dir=tmp_path, fail_create=True)

        job = run(make_orchestrator(temp_storage=storage), [URL_A, URL_B])

        assert job.status == JobStatus.FAILED
        assert job.error == "disk full"
        assert job.urls == []
        assert job.progress.current == job.progress.total
        assert job.estimated_time_remaining_ms == 0
        assert job.completed_time is not None

    def test_fatal_error_mid_job_cleans_up(self, make_orchestrator, temp_storage):
        job = run(make_orchestrator(metrics_factory=ExplodingMetrics), [URL_A, URL_B])

        assert job.status == JobStatus.FAILED
        assert job.error == "metrics backend down"
        assert job.progress.current == job.progress.total
        assert not temp_storage.created[0].exists()


class TestProgress:

    def test_progress_is_monotonic_and_urls_never_exceed_current(self, make_orchestrator, fakes):
        registry = RecordingRegistry()
        store = fakes.ObjectStore(existing={"youtube_9bZkp7q19f0.mp4": 1})

        run(make_orchestrator(registry=registry, object_store=store), [URL_A, URL_B, "bad", URL_C])

        currents = [job.progress.current for job in registry.history]
        assert currents == sorted(currents)
        assert currents[-1] == 4
        for job in registry.history:
            assert len(job.urls) <= job.progress.current

    def test_estimate_averages_successful_items(self, make_orchestrator, fakes):
        registry = RecordingRegistry()

        run(make_orchestrator(registry=registry, clock=fakes.Clock(step=1.0)), [URL_A, URL_B, URL_C])

        # processing, three items, completed
        estimates = [job.estimated_time_remaining_ms for job in registry.history]
        assert estimates == [None, None, 1000.0, 0.0, 0]

    def test_duplicates_excluded_from_average(self, make_orchestrator, fakes):
        registry = RecordingRegistry()
        store = fakes.ObjectStore(existing={"youtube_9bZkp7q19f0.mp4": 1})

        run(
            make_orchestrator(registry=registry, object_store=store, clock=fakes.Clock(step=1.0)),
            [URL_A, URL_B, URL_C],
        )

        after_duplicate = registry.history[2]
        assert after_duplicate.progress.current == 2
        # one upload took 1000ms; the duplicate does not halve the average
        assert after_duplicate.estimated_time_remaining_ms == 1000.0
