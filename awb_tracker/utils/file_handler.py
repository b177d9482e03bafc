# utils/file_handler.py

"""
File handling utilities
"""

from pathlib import Path
from typing import Iterable, Optional

from awb_tracker.core.config import settings


class UploadRejected(ValueError):
    """Uploaded file fails the extension or size checks"""


def validate_upload(
        filename: Optional[str],
        size: int,
        allowed_extensions: Optional[Iterable[str]] = None,
        max_bytes: Optional[int] = None
) -> str:
    """Check an upload's name and size, returning its lowercase extension"""
    allowed = [ext.lower() for ext in (allowed_extensions or settings.allowed_extensions)]
    limit = max_bytes or settings.max_upload_bytes

    if not filename:
        raise UploadRejected("No file uploaded")

    ext = Path(filename).suffix.lower()
    if ext not in allowed:
        raise UploadRejected("Only CSV and Excel files are allowed")

    if size == 0:
        raise UploadRejected("Uploaded file is empty")
    if size > limit:
        raise UploadRejected(f"File exceeds the {limit // (1024 * 1024)}MB limit")

    return ext


def export_filename(source_filename: str, extension: str = ".xlsx") -> str:
    """Download name for a job's export, safe for a Content-Disposition header"""
    stem = Path(source_filename).stem
    stem_safe = "".join(
        c for c in stem
        if c.isalnum() or c in (' ', '-', '_', '.')
    )[:60].strip() or "results"
    return f"AWB_Tracking_{stem_safe}{extension}"
