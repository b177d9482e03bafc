# routers/dependencies.py

"""
Shared service instances for the routers
"""

from awb_tracker.scrapers.smartkargo_scraper import SmartKargoScraper
from awb_tracker.services.broadcaster import EventBroadcaster
from awb_tracker.services.export_service import GoogleSheetsExporter
from awb_tracker.services.job_engine import JobEngine, Lookup
from awb_tracker.services.job_store import InMemoryJobStore

job_store = InMemoryJobStore()
broadcaster = EventBroadcaster()
scraper = SmartKargoScraper()
job_engine = JobEngine(job_store, broadcaster, scraper.track)
sheets_exporter = GoogleSheetsExporter()


def get_job_engine() -> JobEngine:
    return job_engine


def get_broadcaster() -> EventBroadcaster:
    return broadcaster


def get_lookup() -> Lookup:
    return scraper.track


def get_sheets_exporter() -> GoogleSheetsExporter:
    return sheets_exporter
