# models/events.py

"""
Event models pushed to live viewers over the event stream.

Every event carries the owning ``job_id``; viewers filter on it.
"""

from pydantic import BaseModel, Field
from typing import Annotated, Literal, Union
from enum import Enum

from awb_tracker.models.tracking import TrackResult


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARN = "warn"
    ERROR = "error"


class LogEvent(BaseModel):
    type: Literal["log"] = "log"
    job_id: int
    message: str
    level: LogLevel = LogLevel.INFO


class ProgressEvent(BaseModel):
    type: Literal["progress"] = "progress"
    job_id: int
    current: int
    total: int


class ResultEvent(BaseModel):
    type: Literal["result"] = "result"
    job_id: int
    data: TrackResult


class CompleteEvent(BaseModel):
    type: Literal["complete"] = "complete"
    job_id: int
    message: str


JobEvent = Annotated[
    Union[LogEvent, ProgressEvent, ResultEvent, CompleteEvent],
    Field(discriminator="type"),
]
