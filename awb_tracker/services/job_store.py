# services/job_store.py

"""
Job store - durable CRUD for jobs and their tracking results
"""

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from awb_tracker.core.errors import InvalidJobActionError, JobNotFoundError
from awb_tracker.models.job import ALLOWED_TRANSITIONS, Job, JobState
from awb_tracker.models.tracking import TrackResult, TrackResultCreate

logger = logging.getLogger(__name__)


class JobStore(ABC):
    """Storage contract used by the job engine and the API"""

    @abstractmethod
    async def create_job(self, filename: str) -> Job:
        ...

    @abstractmethod
    async def get_job(self, job_id: int) -> Optional[Job]:
        ...

    @abstractmethod
    async def list_jobs(self) -> List[Job]:
        ...

    @abstractmethod
    async def set_total(self, job_id: int, total_count: int) -> Job:
        ...

    @abstractmethod
    async def update_progress(self, job_id: int, processed_count: int) -> Job:
        ...

    @abstractmethod
    async def transition(
            self,
            job_id: int,
            status: JobState,
            allowed_from: Optional[Iterable[JobState]] = None
    ) -> Job:
        """Atomically move a job to ``status``.

        ``allowed_from`` defaults to the state machine's table. Raises
        InvalidJobActionError, leaving the job untouched, when the current
        status is not one of them.
        """

    @abstractmethod
    async def add_result(self, job_id: int, result: TrackResultCreate) -> TrackResult:
        ...

    @abstractmethod
    async def get_results(self, job_id: int) -> List[TrackResult]:
        ...


class InMemoryJobStore(JobStore):
    """Process-local store with auto-incrementing ids"""

    def __init__(self):
        self._jobs: Dict[int, Job] = {}
        self._results: Dict[int, List[TrackResult]] = {}
        self._job_ids = itertools.count(1)
        self._result_ids = itertools.count(1)
        self._lock = asyncio.Lock()

    def _require(self, job_id: int) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def _save(self, job: Job, **changes) -> Job:
        updated = job.model_copy(update={**changes, "updated_at": datetime.now()})
        self._jobs[job.id] = updated
        return updated

    async def create_job(self, filename: str) -> Job:
        async with self._lock:
            now = datetime.now()
            job = Job(
                id=next(self._job_ids),
                filename=filename,
                total_count=0,
                processed_count=0,
                status=JobState.PENDING,
                created_at=now,
                updated_at=now
            )
            self._jobs[job.id] = job
            self._results[job.id] = []
            logger.debug(f"Created job {job.id} for '{filename}'")
            return job

    async def get_job(self, job_id: int) -> Optional[Job]:
        async with self._lock:
            return self._jobs.get(job_id)

    async def list_jobs(self) -> List[Job]:
        async with self._lock:
            return list(self._jobs.values())

    async def set_total(self, job_id: int, total_count: int) -> Job:
        async with self._lock:
            job = self._require(job_id)
            if total_count < job.processed_count:
                raise ValueError(
                    f"Job {job_id}: total {total_count} below processed {job.processed_count}"
                )
            return self._save(job, total_count=total_count)

    async def update_progress(self, job_id: int, processed_count: int) -> Job:
        async with self._lock:
            job = self._require(job_id)
            if processed_count < job.processed_count:
                raise ValueError(
                    f"Job {job_id}: processed count cannot go back from "
                    f"{job.processed_count} to {processed_count}"
                )
            if processed_count > job.total_count:
                raise ValueError(
                    f"Job {job_id}: processed {processed_count} exceeds total {job.total_count}"
                )
            return self._save(job, processed_count=processed_count)

    async def transition(
            self,
            job_id: int,
            status: JobState,
            allowed_from: Optional[Iterable[JobState]] = None
    ) -> Job:
        async with self._lock:
            job = self._require(job_id)
            allowed = frozenset(allowed_from) if allowed_from is not None else ALLOWED_TRANSITIONS[status]
            if job.status not in allowed:
                raise InvalidJobActionError(
                    f"Job {job_id} cannot move from {job.status.value} to {status.value}"
                )
            logger.debug(f"Job {job_id}: {job.status.value} -> {status.value}")
            return self._save(job, status=status)

    async def add_result(self, job_id: int, result: TrackResultCreate) -> TrackResult:
        async with self._lock:
            self._require(job_id)
            stored = TrackResult(
                **result.model_dump(),
                id=next(self._result_ids),
                job_id=job_id,
                created_at=datetime.now()
            )
            self._results[job_id].append(stored)
            return stored

    async def get_results(self, job_id: int) -> List[TrackResult]:
        async with self._lock:
            self._require(job_id)
            return list(self._results.get(job_id, []))
