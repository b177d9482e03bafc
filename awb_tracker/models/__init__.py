# models/__init__.py

from .job import (
    JobState,
    JobAction,
    Job,
    JobControlRequest,
    JobControlResponse,
    JobCreatedResponse,
    ALLOWED_TRANSITIONS,
    ACTION_TARGETS,
    ACTION_SOURCES
)
from .tracking import (
    MawbParts,
    TrackRecord,
    TrackResultCreate,
    TrackResult,
    SingleTrackRequest,
    SingleTrackResponse,
    SheetExportRequest,
    SheetExportResponse
)
from .events import (
    LogLevel,
    LogEvent,
    ProgressEvent,
    ResultEvent,
    CompleteEvent,
    JobEvent
)

__all__ = [
    'JobState',
    'JobAction',
    'Job',
    'JobControlRequest',
    'JobControlResponse',
    'JobCreatedResponse',
    'ALLOWED_TRANSITIONS',
    'ACTION_TARGETS',
    'ACTION_SOURCES',
    'MawbParts',
    'TrackRecord',
    'TrackResultCreate',
    'TrackResult',
    'SingleTrackRequest',
    'SingleTrackResponse',
    'SheetExportRequest',
    'SheetExportResponse',
    'LogLevel',
    'LogEvent',
    'ProgressEvent',
    'ResultEvent',
    'CompleteEvent',
    'JobEvent'
]
