# routers/track_router.py

"""
Tracking API Routes
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from awb_tracker.core.errors import (
    ExportError,
    InvalidJobActionError,
    JobNotFoundError,
    TrackingLookupError
)
from awb_tracker.models.job import (
    Job,
    JobAction,
    JobControlRequest,
    JobControlResponse,
    JobCreatedResponse
)
from awb_tracker.models.tracking import (
    SheetExportRequest,
    SheetExportResponse,
    SingleTrackRequest,
    SingleTrackResponse,
    TrackResult
)
from awb_tracker.routers.dependencies import get_job_engine, get_lookup, get_sheets_exporter
from awb_tracker.services.export_service import GoogleSheetsExporter, build_results_workbook
from awb_tracker.services.identifier import split_mawb
from awb_tracker.services.job_engine import JobEngine, Lookup
from awb_tracker.utils.file_handler import UploadRejected, export_filename, validate_upload

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/track", tags=["Tracking"])

ACTION_PAST_TENSE = {
    JobAction.PAUSE: "paused",
    JobAction.RESUME: "resumed",
    JobAction.CANCEL: "cancelled",
}

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("/single", response_model=SingleTrackResponse)
async def track_single(request: SingleTrackRequest, lookup: Lookup = Depends(get_lookup)):
    """Track one MAWB synchronously"""
    logger.info(f"POST /api/track/single - mawb='{request.mawb}'")

    parts = split_mawb(request.mawb)
    if not parts.is_valid:
        raise HTTPException(status_code=400, detail="Invalid MAWB format")

    try:
        record = await lookup(parts.prefix, parts.awb_no)
    except TrackingLookupError as e:
        logger.warning(f"Single lookup failed for '{request.mawb}': {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return SingleTrackResponse(
        mawb=request.mawb,
        prefix=parts.prefix,
        awb_no=parts.awb_no,
        **record.model_dump()
    )


@router.post("/file", response_model=JobCreatedResponse)
async def upload_file(
        file: UploadFile = File(...),
        delay: Optional[int] = Form(None, description="Pause between rows in ms (clamped to 50-1000)"),
        engine: JobEngine = Depends(get_job_engine)
):
    """Upload a CSV/Excel file and start tracking it as a background job"""
    content = await file.read()
    logger.info(f"POST /api/track/file - '{file.filename}' ({len(content)} bytes), delay={delay}")

    try:
        validate_upload(file.filename, len(content))
    except UploadRejected as e:
        raise HTTPException(status_code=400, detail=str(e))

    job = await engine.submit(file.filename, content, delay)

    return JobCreatedResponse(job_id=job.id, message="File processing started")


@router.get("/jobs", response_model=List[Job])
async def list_jobs(engine: JobEngine = Depends(get_job_engine)):
    """List all jobs"""
    return await engine.list_jobs()


@router.get("/jobs/{job_id}", response_model=Job)
async def get_job(job_id: int, engine: JobEngine = Depends(get_job_engine)):
    """Get a job's status and progress"""
    try:
        return await engine.get_job(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")


@router.post("/jobs/{job_id}/control", response_model=JobControlResponse)
async def control_job(
        job_id: int,
        request: JobControlRequest,
        engine: JobEngine = Depends(get_job_engine)
):
    """Pause, resume or cancel a job"""
    logger.info(f"POST /api/track/jobs/{job_id}/control - action={request.action.value}")

    try:
        job = await engine.control(job_id, request.action)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except InvalidJobActionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return JobControlResponse(job=job, message=f"Job {ACTION_PAST_TENSE[request.action]} successfully")


@router.get("/results/{job_id}", response_model=List[TrackResult])
async def get_results(job_id: int, engine: JobEngine = Depends(get_job_engine)):
    """Get a job's results in the order they were tracked"""
    try:
        return await engine.get_results(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")


@router.get("/results/{job_id}/excel")
async def export_excel(job_id: int, engine: JobEngine = Depends(get_job_engine)):
    """Download a job's results as an Excel file"""
    try:
        job = await engine.get_job(job_id)
        results = await engine.get_results(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")

    content = build_results_workbook(results)
    filename = export_filename(job.filename)

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.post("/results/{job_id}/gsheet", response_model=SheetExportResponse)
async def export_google_sheet(
        job_id: int,
        request: SheetExportRequest,
        engine: JobEngine = Depends(get_job_engine),
        exporter: GoogleSheetsExporter = Depends(get_sheets_exporter)
):
    """Push a job's results to a Google spreadsheet"""
    logger.info(f"POST /api/track/results/{job_id}/gsheet - spreadsheet={request.spreadsheet_id}")

    try:
        results = await engine.get_results(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")

    try:
        message = await exporter.export(request.spreadsheet_id, results)
    except ExportError as e:
        logger.error(f"Google Sheets export failed for job {job_id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return SheetExportResponse(message=message, rows_written=len(results))
