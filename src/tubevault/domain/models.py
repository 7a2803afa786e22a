"""Domain models for the ingestion pipeline."""

import copy
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, List


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    """Lifecycle state of an ingestion job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class ItemOutcome(str, Enum):
    """Result of pushing one reference through the pipeline."""

    UPLOADED = "uploaded"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass
class JobProgress:
    """Item counts within a batch. The percentage is always derived."""

    current: int
    total: int

    def __post_init__(self):
        if self.total <= 0:
            raise ValueError("Total must be positive")
        if not 0 <= self.current <= self.total:
            raise ValueError(f"Current out of range: {self.current}/{self.total}")

    @property
    def percentage(self) -> int:
        # Half-up, so 12.5% reports as 13
        return int(math.floor(self.current / self.total * 100 + 0.5))

    def to_dict(self) -> Dict[str, int]:
        return {
            "current": self.current,
            "total": self.total,
            "percentage": self.percentage,
        }


@dataclass
class Job:
    """One batch-processing run, owned by the orchestrator for mutation."""

    id: str
    progress: JobProgress
    status: JobStatus = JobStatus.PENDING
    urls: List[str] = field(default_factory=list)
    error: Optional[str] = None
    start_time: datetime = field(default_factory=utcnow)
    completed_time: Optional[datetime] = None
    estimated_time_remaining_ms: Optional[float] = None

    def snapshot(self) -> "Job":
        """Return an independent copy safe to hand to readers."""
        return copy.deepcopy(self)

    def processing_time_ms(self, now: Optional[datetime] = None) -> float:
        end = self.completed_time or now or utcnow()
        return (end - self.start_time).total_seconds() * 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobId": self.id,
            "status": self.status.value,
            "urls": list(self.urls),
            "error": self.error,
            "startTime": self.start_time.isoformat(),
            "completedTime": self.completed_time.isoformat() if self.completed_time else None,
            "progress": self.progress.to_dict(),
            "estimatedTimeRemaining": self.estimated_time_remaining_ms,
        }


@dataclass
class PipelineItem:
    """Ephemeral state for one reference while it is being processed."""

    reference: str
    canonical_id: Optional[str] = None
    local_path: Optional[Path] = None
    outcome: Optional[ItemOutcome] = None
    url: Optional[str] = None
    error: Optional[str] = None
    metadata: Optional["VideoInfo"] = None
    elapsed_ms: float = 0.0


@dataclass
class Thumbnail:
    url: str
    width: Optional[int] = None
    height: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "width": self.width, "height": self.height}


@dataclass
class ChannelInfo:
    id: Optional[str] = None
    name: Optional[str] = None
    url: Optional[str] = None
    subscriber_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "subscriberCount": self.subscriber_count,
        }


@dataclass
class VideoInfo:
    """Descriptive attributes of a video, as returned by a metadata provider."""

    id: str
    title: str
    url: str
    duration: Optional[int] = None
    upload_date: Optional[str] = None
    view_count: Optional[int] = None
    like_count: Optional[int] = None
    dislike_count: Optional[int] = None
    comment_count: Optional[int] = None
    description: Optional[str] = None
    channel: ChannelInfo = field(default_factory=ChannelInfo)
    thumbnails: Optional[List[Thumbnail]] = None
    categories: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    is_live: Optional[bool] = None

    @staticmethod
    def placeholder_title(video_id: str) -> str:
        return f"YouTube Video ({video_id})"

    @classmethod
    def placeholder(cls, video_id: str, url: str) -> "VideoInfo":
        """Minimal record used when no provider could describe the video."""
        return cls(id=video_id, title=cls.placeholder_title(video_id), url=url)

    @property
    def is_placeholder(self) -> bool:
        return self.title == self.placeholder_title(self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "duration": self.duration,
            "uploadDate": self.upload_date,
            "viewCount": self.view_count,
            "likeCount": self.like_count,
            "dislikeCount": self.dislike_count,
            "commentCount": self.comment_count,
            "description": self.description,
            "channel": self.channel.to_dict(),
            "thumbnails": [t.to_dict() for t in self.thumbnails] if self.thumbnails else None,
            "categories": self.categories,
            "tags": self.tags,
            "isLive": self.is_live,
        }


@dataclass
class StoredObject:
    """Object metadata from a destination listing."""

    key: str
    size: int = 0
    last_modified: Optional[str] = None


@dataclass(frozen=True)
class DedupResult:
    """Whether a video already exists at its deterministic destination key."""

    present: bool
    key: str
