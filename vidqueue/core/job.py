"""Job data model for the video ingestion queue.

This module defines the core data structures used throughout the queue:
- JobStatus: State machine for a processing job
- JobResult: Payload attached to completed jobs
- VideoProcessingJob: One unit of asynchronous processing work
- ProcessingStats: Aggregate counts over the job store
"""

import uuid
from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class JobStatus(str, Enum):
    """Processing state for a job.

    Jobs move pending -> processing -> completed | failed.
    Terminal states are final.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass(frozen=True)
class JobResult:
    """Outcome of a completed job."""

    video_id: str
    thumbnail_url: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    video_url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "videoId": self.video_id,
            "thumbnailUrl": self.thumbnail_url,
            "title": self.title,
            "author": self.author,
            "videoUrl": self.video_url,
        }


@dataclass
class VideoProcessingJob:
    """A video submitted for scraping and ingestion.

    Required fields:
        id: Unique job ID, generated at creation
        url: Submitted source URL
        user_id: Owning user
        started_at: Creation timestamp

    The queue is the only writer of status, progress, message,
    completed_at, result and error.
    """

    id: str
    url: str
    user_id: str
    started_at: datetime
    collection_id: Optional[str] = None

    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    message: str = "Queued for processing..."
    completed_at: Optional[datetime] = None
    result: Optional[JobResult] = None
    error: Optional[str] = None

    def snapshot(self) -> "VideoProcessingJob":
        """Return a detached copy safe to hand to callers."""
        return VideoProcessingJob(**{f.name: getattr(self, f.name) for f in fields(self)})

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict with camelCase keys."""
        data: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "userId": self.user_id,
            "collectionId": self.collection_id,
            "status": self.status.value,
            "progress": self.progress,
            "message": self.message,
            "startedAt": self.started_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }
        if self.result is not None:
            data["result"] = self.result.to_dict()
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class ProcessingStats:
    """Snapshot of job counts by status."""

    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "pending": self.pending,
            "processing": self.processing,
            "completed": self.completed,
            "failed": self.failed,
        }


def new_job_id(now: datetime) -> str:
    """Generate a job ID from a timestamp plus a random suffix.

    Not cryptographically strong; unique enough for one process.
    """
    return f"video_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"
