from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel

from contact_finder.schemas.contacts import BatchProgress, SiteResult


class JobStatus(StrEnum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


_FINISHED = (JobStatus.completed, JobStatus.failed, JobStatus.cancelled)


class Job(BaseModel):
    job_id: str
    status: JobStatus
    created_at: datetime
    finished_at: datetime | None = None
    progress: BatchProgress
    results: list[SiteResult] = []
    error: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.status in _FINISHED


class JobStore:
    """In-memory registry of batch scrape jobs and their live progress."""

    def __init__(self, max_jobs: int = 1000) -> None:
        self._jobs: dict[str, Job] = {}
        self._cancel_events: dict[str, asyncio.Event] = {}
        self._max_jobs = max_jobs

    def _evict(self) -> None:
        if len(self._jobs) <= self._max_jobs:
            return
        # Remove oldest finished jobs first
        candidates = sorted(
            (j for j in self._jobs.values() if j.is_finished),
            key=lambda j: j.created_at,
        )
        while len(self._jobs) > self._max_jobs and candidates:
            job_id = candidates.pop(0).job_id
            self._jobs.pop(job_id, None)
            self._cancel_events.pop(job_id, None)

    def create_job(self, total: int) -> Job:
        job = Job(
            job_id=uuid.uuid4().hex[:12],
            status=JobStatus.pending,
            created_at=datetime.now(timezone.utc),
            progress=BatchProgress(total=total),
        )
        self._jobs[job.job_id] = job
        self._cancel_events[job.job_id] = asyncio.Event()
        self._evict()
        return job

    def get_job(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def cancel_event(self, job_id: str) -> asyncio.Event | None:
        return self._cancel_events.get(job_id)

    def request_cancel(self, job_id: str) -> bool:
        """Ask a running job to stop dispatching URLs. False if it already finished."""
        job = self._jobs.get(job_id)
        event = self._cancel_events.get(job_id)
        if job is None or event is None or job.is_finished:
            return False
        event.set()
        return True

    def mark_running(self, job_id: str) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.running

    def update_progress(
        self, job_id: str, progress: BatchProgress, results: list[SiteResult]
    ) -> None:
        if job := self._jobs.get(job_id):
            job.progress = progress.model_copy()
            job.results = list(results)

    def mark_completed(
        self,
        job_id: str,
        progress: BatchProgress,
        results: list[SiteResult],
        cancelled: bool = False,
    ) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.cancelled if cancelled else JobStatus.completed
            job.progress = progress.model_copy()
            job.results = list(results)
            job.finished_at = datetime.now(timezone.utc)

    def mark_failed(self, job_id: str, error: str) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.failed
            job.error = error
            job.finished_at = datetime.now(timezone.utc)
