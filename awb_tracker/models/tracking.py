# models/tracking.py

"""
Tracking-related data models
"""

from pydantic import BaseModel, Field
from typing import NamedTuple, Optional
from datetime import datetime


class MawbParts(NamedTuple):
    prefix: str
    awb_no: str

    @property
    def is_valid(self) -> bool:
        return bool(self.prefix and self.awb_no)


class TrackRecord(BaseModel):
    """Fields scraped from the tracking site; None means not returned"""
    status: Optional[str] = None
    origin: Optional[str] = None
    dest: Optional[str] = None
    pcs: Optional[str] = None
    gross_wt: Optional[str] = None
    last_act: Optional[str] = None
    last_act_dt: Optional[str] = None
    do_url: Optional[str] = None


class TrackResultCreate(TrackRecord):
    mawb: str
    prefix: str
    awb_no: str


class TrackResult(TrackResultCreate):
    id: int
    job_id: int
    created_at: datetime


class SingleTrackRequest(BaseModel):
    mawb: str = Field(..., description="Air waybill number", min_length=1)


class SingleTrackResponse(TrackRecord):
    mawb: str
    prefix: str
    awb_no: str


class SheetExportRequest(BaseModel):
    spreadsheet_id: str = Field(..., description="Target Google spreadsheet id", min_length=1)


class SheetExportResponse(BaseModel):
    message: str
    rows_written: int
