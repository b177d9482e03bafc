# core/config.py

"""
Application Configuration
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    app_name: str = "AWB Batch Tracker"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API Settings
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 5000

    # Pacing between rows (milliseconds)
    default_delay_ms: int = 100
    min_delay_ms: int = 50
    max_delay_ms: int = 1000

    # Upload Settings
    identifier_column_hint: str = "MAWB"
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_extensions: List[str] = [".csv", ".xlsx", ".xls"]

    # Scraper Settings
    tracking_url: str = "https://airasia.smartkargo.com/FrmAWBTracking.aspx"
    headless: bool = True
    lookup_timeout_ms: int = 30000
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Event stream
    event_queue_size: int = 1000

    # Google Sheets export
    google_sheets_token: Optional[str] = None
    google_sheets_api_base: str = "https://sheets.googleapis.com/v4"
    google_sheets_range: str = "Sheet1!A1:J1000"

    class Config:
        env_prefix = "AWB_TRACKER_"
        case_sensitive = False


settings = Settings()


def clamp_delay(delay_ms: Optional[int], config: Settings = settings) -> int:
    """Clamp a requested pacing interval into the configured bounds"""
    if delay_ms is None:
        return config.default_delay_ms
    return max(config.min_delay_ms, min(config.max_delay_ms, int(delay_ms)))
