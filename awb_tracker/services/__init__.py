# services/__init__.py

from .broadcaster import EventBroadcaster, Subscription
from .export_service import GoogleSheetsExporter, build_results_workbook
from .identifier import split_mawb
from .job_control import JobControl
from .job_engine import JobEngine, Lookup
from .job_store import JobStore, InMemoryJobStore
from .row_source import RowSource

__all__ = [
    'EventBroadcaster',
    'Subscription',
    'GoogleSheetsExporter',
    'build_results_workbook',
    'split_mawb',
    'JobControl',
    'JobEngine',
    'Lookup',
    'JobStore',
    'InMemoryJobStore',
    'RowSource'
]
