# models/job.py

"""
Job-related data models
"""

from pydantic import BaseModel, Field
from typing import Dict, FrozenSet
from enum import Enum
from datetime import datetime


class JobState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# Target state -> states it may be entered from
ALLOWED_TRANSITIONS: Dict[JobState, FrozenSet[JobState]] = {
    JobState.PROCESSING: frozenset({JobState.PENDING, JobState.PAUSED}),
    JobState.PAUSED: frozenset({JobState.PROCESSING}),
    JobState.COMPLETED: frozenset({JobState.PROCESSING}),
    JobState.CANCELLED: frozenset({JobState.PENDING, JobState.PROCESSING, JobState.PAUSED}),
    JobState.FAILED: frozenset({JobState.PENDING, JobState.PROCESSING, JobState.PAUSED}),
}


class JobAction(str, Enum):
    PAUSE = "pause"
    RESUME = "resume"
    CANCEL = "cancel"


ACTION_TARGETS: Dict[JobAction, JobState] = {
    JobAction.PAUSE: JobState.PAUSED,
    JobAction.RESUME: JobState.PROCESSING,
    JobAction.CANCEL: JobState.CANCELLED,
}

# Resume is narrower than the PROCESSING row above: a pending job is started by its worker
ACTION_SOURCES: Dict[JobAction, FrozenSet[JobState]] = {
    JobAction.PAUSE: frozenset({JobState.PROCESSING}),
    JobAction.RESUME: frozenset({JobState.PAUSED}),
    JobAction.CANCEL: ALLOWED_TRANSITIONS[JobState.CANCELLED],
}


class Job(BaseModel):
    id: int
    filename: str
    total_count: int = 0
    processed_count: int = 0
    status: JobState = JobState.PENDING
    created_at: datetime
    updated_at: datetime


class JobControlRequest(BaseModel):
    action: JobAction = Field(..., description="Control action (pause/resume/cancel)")


class JobControlResponse(BaseModel):
    job: Job
    message: str


class JobCreatedResponse(BaseModel):
    job_id: int
    message: str
