# core/errors.py

"""
Exception hierarchy shared by services and routers
"""


class TrackerError(Exception):
    """Base class for all tracker errors."""


class RowSourceError(TrackerError):
    """Raised when an uploaded file cannot be turned into rows."""


class TrackingLookupError(TrackerError):
    """Raised when the tracking site cannot resolve an identifier."""


class JobNotFoundError(TrackerError):
    def __init__(self, job_id: int):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class InvalidJobActionError(TrackerError):
    """Raised when a control action or transition does not fit the job's state."""


class ExportError(TrackerError):
    """Raised when results cannot be pushed to an external spreadsheet."""
