"""
Background ingestion jobs.

Large archives are parsed off the request path: the caller gets a job handle
immediately and polls its status until it is completed or failed. Jobs are
never cancelled; once submitted they run to completion or failure.
"""

import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from history_sync.monitoring.logging import with_context

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    """Lifecycle of a background job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Job:
    """Snapshot of a job's state."""

    id: str
    status: JobStatus = JobStatus.PENDING
    result: Any = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=_utc_now)
    finished_at: Optional[datetime] = None

    @property
    def done(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            data["error"] = self.error
        if self.finished_at is not None:
            data["finished_at"] = self.finished_at.isoformat()
        return data


class JobQueue:
    """
    Thread-pool backed job runner with pollable status.

    Job records are replaced, never mutated, so a snapshot returned by
    ``get()`` stays consistent while the worker moves on.
    """

    def __init__(self, max_workers: int = 2):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="ingest-job"
        )
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Job:
        """
        Schedule ``fn(*args, **kwargs)`` and return its pending job.

        ``fn``'s return value becomes the job result; any exception it
        raises marks the job failed with the exception message.
        """
        job = Job(id=str(uuid.uuid4()))
        with self._lock:
            self._jobs[job.id] = job
        self._executor.submit(self._run, job.id, fn, args, kwargs)
        return job

    def get(self, job_id: str) -> Optional[Job]:
        """Current snapshot of a job, or None for unknown ids."""
        with self._lock:
            return self._jobs.get(job_id)

    def _update(self, job_id: str, **changes: Any) -> None:
        with self._lock:
            self._jobs[job_id] = replace(self._jobs[job_id], **changes)

    def _run(self, job_id: str, fn: Callable[..., Any], args, kwargs) -> None:
        log = with_context(logger, job_id=job_id)
        self._update(job_id, status=JobStatus.PROCESSING)
        try:
            result = fn(*args, **kwargs)
        except Exception as e:
            log.error(f"Job failed: {e}", exc_info=True)
            self._update(
                job_id,
                status=JobStatus.FAILED,
                error=str(e) or e.__class__.__name__,
                finished_at=_utc_now(),
            )
            return
        self._update(
            job_id, status=JobStatus.COMPLETED, result=result, finished_at=_utc_now()
        )
        log.info("Job completed")

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs; by default wait for running ones."""
        self._executor.shutdown(wait=wait)
