"""Job storage for the video ingestion queue.

The queue receives its store by injection so tests can use isolated
instances and a durable backend can replace the in-memory one without
changing the queue. The only implementation shipped is in-memory: a
process restart loses every job.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from vidqueue.core.job import VideoProcessingJob


class JobStore(ABC):
    """Abstract job store keyed by job ID."""

    @abstractmethod
    def get(self, job_id: str) -> VideoProcessingJob | None:
        """Return the stored job, or None if unknown."""

    @abstractmethod
    def put(self, job: VideoProcessingJob) -> None:
        """Insert or replace a job."""

    @abstractmethod
    def delete(self, job_id: str) -> bool:
        """Remove a job. Returns True if it existed."""

    @abstractmethod
    def values(self) -> list[VideoProcessingJob]:
        """Return all stored jobs."""

    @abstractmethod
    def __len__(self) -> int: ...

    def __contains__(self, job_id: object) -> bool:
        return isinstance(job_id, str) and self.get(job_id) is not None

    def __iter__(self) -> Iterator[VideoProcessingJob]:
        return iter(self.values())


class InMemoryJobStore(JobStore):
    """Process-local, non-durable job store.

    Attributes:
        _jobs: Job ID -> job. Jobs are stored by reference and mutated
            in place by the queue.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, VideoProcessingJob] = {}

    def get(self, job_id: str) -> VideoProcessingJob | None:
        return self._jobs.get(job_id)

    def put(self, job: VideoProcessingJob) -> None:
        self._jobs[job.id] = job

    def delete(self, job_id: str) -> bool:
        return self._jobs.pop(job_id, None) is not None

    def values(self) -> list[VideoProcessingJob]:
        # Copy so callers can delete while iterating
        return list(self._jobs.values())

    def __len__(self) -> int:
        return len(self._jobs)
