# routers/events_router.py

"""
Live event stream for the dashboard
"""

import asyncio
import json
import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from awb_tracker.routers.dependencies import get_broadcaster
from awb_tracker.services.broadcaster import EventBroadcaster

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Events"])

# A quiet connection gets a ping this often so dead sockets are noticed
PING_INTERVAL_SECONDS = 15.0


@router.websocket("/ws")
async def event_stream(websocket: WebSocket, broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    """Push every job event to the viewer; viewers filter on job_id"""
    subscription = broadcaster.subscribe()

    try:
        await websocket.accept()
        while True:
            try:
                event = await asyncio.wait_for(subscription.get(), timeout=PING_INTERVAL_SECONDS)
            except asyncio.TimeoutError:
                await websocket.send_text(json.dumps({"type": "ping"}))
                continue
            await websocket.send_text(event.model_dump_json())
    except WebSocketDisconnect:
        logger.debug("Viewer closed the event stream")
    except RuntimeError as e:
        # Starlette raises RuntimeError when sending on a closed socket
        logger.debug(f"Event stream closed: {e}")
    finally:
        broadcaster.unsubscribe(subscription)
