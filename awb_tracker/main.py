# main.py

"""
FastAPI AWB Batch Tracker - Main Entry Point
"""

import sys
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from awb_tracker.core.config import settings
from awb_tracker.routers import events_router, track_router
from awb_tracker.routers.dependencies import job_engine

# Fix for Windows asyncio + Playwright
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.app_name} {settings.app_version} starting")
    yield
    await job_engine.shutdown()
    logger.info(f"{settings.app_name} stopped")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(track_router.router)
app.include_router(events_router.router)


@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "endpoints": {
            "track_single": "/api/track/single",
            "track_file": "/api/track/file",
            "jobs": "/api/track/jobs",
            "job_control": "/api/track/jobs/{job_id}/control",
            "results": "/api/track/results/{job_id}",
            "excel_export": "/api/track/results/{job_id}/excel",
            "gsheet_export": "/api/track/results/{job_id}/gsheet",
            "events": "/ws",
            "health": "/health",
            "docs": "/docs"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "awb_tracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
