import sys
import os
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Ensure src/ is on sys.path so 'tubevault' is importable without installing
SRC = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from tubevault.application.chains import DownloaderChain, MetadataChain  # noqa: E402
from tubevault.application.orchestrator import IngestOrchestrator  # noqa: E402
from tubevault.application.registry import JobRegistry  # noqa: E402
from tubevault.domain.exceptions import StorageError, UploadError  # noqa: E402
from tubevault.domain.models import StoredObject, VideoInfo  # noqa: E402
from tubevault.domain.references import watch_url  # noqa: E402
from tubevault.infrastructure.storage.temp_storage import TempStorage  # noqa: E402


class FakeMetadataProvider:
    def __init__(self, name: str = "fake_meta", error: Optional[Exception] = None):
        self.name = name
        self.error = error
        self.calls: List[str] = []

    def fetch(self, video_id: str) -> VideoInfo:
        self.calls.append(video_id)
        if self.error is not None:
            raise self.error
        return VideoInfo(id=video_id, title=f"Title {video_id}", url=watch_url(video_id), duration=42)


class FakeDownloader:
    def __init__(self, name: str = "fake_dl", error: Optional[Exception] = None,
                 content: bytes = b"video-bytes"):
        self.name = name
        self.error = error
        self.content = content
        self.calls: List[str] = []

    def download(self, reference: str, destination: Path, timeout_ms: int) -> Path:
        self.calls.append(reference)
        if self.error is not None:
            destination.write_bytes(b"partial")
            raise self.error
        destination.write_bytes(self.content)
        return destination


class InMemoryObjectStore:
    def __init__(self, existing: Optional[Dict[str, int]] = None, region: str = "us-west-2",
                 fail_listing: bool = False, fail_uploads: bool = False):
        self.region = region
        self.objects: Dict[str, Dict[str, int]] = {}
        self.fail_listing = fail_listing
        self.fail_uploads = fail_uploads
        self.uploads: List[tuple] = []
        for key, size in (existing or {}).items():
            self.objects.setdefault("test-bucket", {})[key] = size

    def list_objects(self, bucket: str, prefix: str = "") -> List[StoredObject]:
        if self.fail_listing:
            raise StorageError("listing unavailable")
        return [
            StoredObject(key=key, size=size, last_modified="2024-01-01T00:00:00+00:00")
            for key, size in sorted(self.objects.get(bucket, {}).items())
            if key.startswith(prefix)
        ]

    def put_file(self, local_path: Path, bucket: str, key: str,
                 content_type: str = "video/mp4", public: bool = True) -> str:
        if self.fail_uploads:
            raise UploadError("upload rejected")
        self.uploads.append((bucket, key, content_type, public))
        self.objects.setdefault(bucket, {})[key] = local_path.stat().st_size
        return self.public_url(bucket, key)

    def public_url(self, bucket: str, key: str) -> str:
        return f"https://{bucket}.s3.{self.region}.amazonaws.com/{key}"


class RecordingTempStorage(TempStorage):
    def __init__(self, base_dir: Path, fail_create: bool = False):
        super().__init__(base_dir=base_dir)
        self.fail_create = fail_create
        self.created: List[Path] = []
        self.cleaned: List[Path] = []

    def create_workspace(self, job_id: str) -> Path:
        if self.fail_create:
            raise OSError("disk full")
        workspace = super().create_workspace(job_id)
        self.created.append(workspace)
        return workspace

    def cleanup(self, workspace: Path) -> None:
        self.cleaned.append(workspace)
        super().cleanup(workspace)


class StepClock:
    """Monotonic clock advancing by a fixed step on every call."""

    def __init__(self, step: float = 1.0):
        self.step = step
        self.now = 0.0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def registry():
    return JobRegistry()


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
def temp_storage(tmp_path):
    return RecordingTempStorage(base_dir=tmp_path / "work")


@pytest.fixture
def metadata_provider():
    return FakeMetadataProvider()


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def make_orchestrator(registry, object_store, temp_storage, metadata_provider, downloader):
    """Build an orchestrator over fakes; keyword arguments override the defaults."""
    created = []

    def factory(**overrides) -> IngestOrchestrator:
        kwargs = dict(
            registry=registry,
            metadata_chain=MetadataChain([metadata_provider]),
            downloader_chain=DownloaderChain([downloader]),
            object_store=object_store,
            temp_storage=temp_storage,
            default_bucket="test-bucket",
            download_timeout_ms=1000,
            max_concurrent_jobs=2,
        )
        kwargs.update(overrides)
        orchestrator = IngestOrchestrator(**kwargs)
        created.append(orchestrator)
        return orchestrator

    yield factory

    for orchestrator in created:
        orchestrator.shutdown(wait=True)


@pytest.fixture
def fakes():
    """Fake collaborator classes for tests that need custom instances."""
    class Namespace:
        MetadataProvider = FakeMetadataProvider
        Downloader = FakeDownloader
        ObjectStore = InMemoryObjectStore
        TempStorage = RecordingTempStorage
        Clock = StepClock

    return Namespace
