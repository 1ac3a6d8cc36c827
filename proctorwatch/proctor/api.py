"""
Proctoring API - FastAPI endpoints for exam proctoring

Endpoints:
- POST /api/proctor/sessions - Create a session and initialise detection
- POST /api/proctor/sessions/{session_id}/start - Start (or resume) monitoring
- POST /api/proctor/sessions/{session_id}/frame - Push a webcam frame
- POST /api/proctor/sessions/{session_id}/stop - Stop monitoring
- GET /api/proctor/sessions/{session_id} - Session and monitoring snapshot
- GET /api/proctor/sessions/{session_id}/summary - Score, grade and counts
- WS /api/proctor/sessions/{session_id}/events - Live violation events
"""

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import cv2
import numpy as np
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from .errors import InitializationError
from .models.model_loader import check_models
from .sampler import CameraFrameSource, FrameSampler
from .session import ProctorSession, SessionListener

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proctor", tags=["Proctoring"])


@dataclass
class _SessionEntry:
    session: ProctorSession
    camera_index: Optional[int] = None
    sampler: Optional[FrameSampler] = None


# In-memory session storage, sessions do not outlive the process
_sessions: Dict[str, _SessionEntry] = {}


def get_session_factory() -> Callable[..., ProctorSession]:
    """Dependency building new sessions; overridden in tests."""
    return ProctorSession


def _get_entry(session_id: str) -> _SessionEntry:
    entry = _sessions.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return entry


# ============== Request/Response Models ==============

class CreateSessionRequest(BaseModel):
    """Request to create a proctoring session"""
    candidate_name: str = Field("Anonymous Candidate", description="Candidate display name")
    camera_index: Optional[int] = Field(None, description="Sample a local camera instead of pushed frames")


class CreateSessionResponse(BaseModel):
    session_id: str
    status: str
    detector: Dict[str, Any]


class FrameRequest(BaseModel):
    """Webcam frame pushed by the client"""
    frame_base64: str = Field(..., description="Base64 encoded JPEG frame")


class FrameResponse(BaseModel):
    processed: bool
    integrity_score: int
    face_detected: bool
    objects_detected: List[str]
    violations: int


class MonitoringResponse(BaseModel):
    session_id: str
    is_recording: bool
    integrity_score: int
    total_duration: int


# ============== API Endpoints ==============

@router.post("/sessions", response_model=CreateSessionResponse)
async def create_session(
    request: CreateSessionRequest,
    session_factory: Callable[..., ProctorSession] = Depends(get_session_factory)
):
    """
    Create a proctoring session and bring up its detection back-end.
    """
    session = session_factory(candidate_name=request.candidate_name)

    try:
        await session.initialize()
    except InitializationError as e:
        logger.error(f"Failed to initialize detection for {session.id}: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    _sessions[session.id] = _SessionEntry(session=session, camera_index=request.camera_index)
    logger.info(f"Created proctoring session: {session.id}")

    return CreateSessionResponse(
        session_id=session.id,
        status="ready",
        detector=session.adapter.status()
    )


@router.post("/sessions/{session_id}/start", response_model=MonitoringResponse)
async def start_monitoring(session_id: str):
    """
    Start monitoring. Calling it again after stop resumes the same timeline.
    """
    entry = _get_entry(session_id)
    session = entry.session

    if entry.camera_index is not None and entry.sampler is None:
        source = CameraFrameSource(entry.camera_index)
        try:
            source.open()
        except RuntimeError as e:
            raise HTTPException(status_code=409, detail=str(e))
        entry.sampler = FrameSampler(session, source)

    session.start()
    if entry.sampler is not None:
        entry.sampler.start()

    return _monitoring_response(session)


@router.post("/sessions/{session_id}/stop", response_model=MonitoringResponse)
async def stop_monitoring(session_id: str):
    """
    Stop monitoring; pending debounce timers are cancelled.
    """
    entry = _get_entry(session_id)

    if entry.sampler is not None:
        await entry.sampler.stop()
        entry.sampler.source.release()
        entry.sampler = None

    entry.session.stop()
    return _monitoring_response(entry.session)


@router.post("/sessions/{session_id}/frame", response_model=FrameResponse)
async def push_frame(session_id: str, request: FrameRequest):
    """
    Process one webcam frame.

    Frames arriving while the previous one is still in detection are
    dropped (processed=false), as are frames sent while not recording.
    """
    session = _get_entry(session_id).session

    frame = _decode_frame(request.frame_base64)
    processed = await session.process_frame(frame)

    return FrameResponse(
        processed=processed,
        integrity_score=session.data.integrity_score,
        face_detected=session.status.face_detected,
        objects_detected=session.status.objects_detected,
        violations=len(session.data.violations)
    )


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    """Current SessionData and MonitoringStatus"""
    return _get_entry(session_id).session.snapshot()


@router.get("/sessions/{session_id}/summary")
async def get_summary(session_id: str):
    """Score, grade and per-type violation counts"""
    return _get_entry(session_id).session.summary()


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    """Discard a session and release its detector"""
    entry = _get_entry(session_id)
    if entry.sampler is not None:
        await entry.sampler.stop()
        entry.sampler.source.release()
    entry.session.close()
    del _sessions[session_id]
    return {"deleted": True, "session_id": session_id}


@router.websocket("/sessions/{session_id}/events")
async def session_events(websocket: WebSocket, session_id: str):
    """
    Push every violation of a session to the client as it is emitted.

    The client may send anything; it is ignored. The stream ends when the
    client disconnects or the session is deleted.
    """
    entry = _sessions.get(session_id)
    if entry is None:
        await websocket.close(code=4404)
        return

    await websocket.accept()

    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = entry.session.subscribe(_QueueListener(queue))

    # A client disconnect ends the stream even if no violation is ever sent
    receiver = asyncio.ensure_future(websocket.receive())
    try:
        while True:
            getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({receiver, getter}, return_when=asyncio.FIRST_COMPLETED)

            if getter not in done:
                getter.cancel()

            if receiver in done:
                if receiver.result()["type"] == "websocket.disconnect":
                    logger.info(f"Event stream closed for session {session_id}")
                    break
                receiver = asyncio.ensure_future(websocket.receive())

            if getter in done:
                payload = getter.result()
                if payload is _SESSION_CLOSED:
                    logger.info(f"Session {session_id} closed, ending event stream")
                    await websocket.close(code=1000)
                    break
                await websocket.send_json(payload)
    except WebSocketDisconnect:
        logger.info(f"Event stream closed for session {session_id}")
    finally:
        receiver.cancel()
        unsubscribe()


@router.get("/models-status")
async def get_models_status():
    """Check which ML models are available."""
    return check_models()


@router.get("/health")
async def health_check():
    """Health check for proctoring module"""
    return {
        "status": "healthy",
        "active_sessions": len(_sessions),
        "module": "proctoring"
    }


# ============== Helpers ==============

_SESSION_CLOSED = object()


class _QueueListener(SessionListener):
    def __init__(self, queue: asyncio.Queue):
        self.queue = queue

    def on_close(self):
        self.queue.put_nowait(_SESSION_CLOSED)

    def on_violation(self, event, snapshot):
        self.queue.put_nowait({
            "type": "violation",
            "violation": event.to_dict(),
            "integrity_score": snapshot["session"]["integrity_score"]
        })


def _decode_frame(frame_base64: str) -> np.ndarray:
    try:
        frame_bytes = base64.b64decode(frame_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="Invalid base64 frame")

    if not frame_bytes:
        raise HTTPException(status_code=400, detail="Empty frame")

    frame = cv2.imdecode(np.frombuffer(frame_bytes, dtype=np.uint8), cv2.IMREAD_COLOR)
    if frame is None:
        raise HTTPException(status_code=400, detail="Invalid frame data")
    return frame


def _monitoring_response(session: ProctorSession) -> MonitoringResponse:
    return MonitoringResponse(
        session_id=session.id,
        is_recording=session.is_recording,
        integrity_score=session.data.integrity_score,
        total_duration=session.data.total_duration
    )
