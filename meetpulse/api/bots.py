"""
Meeting session and participation analytics endpoints.

Registers sessions for meeting bots, serves the live state that the
console polls, and exposes participation snapshots and timelines over
REST and a WebSocket push channel.
"""

import asyncio
import json
import logging
import uuid
from typing import Any

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from meetpulse.api.deps import get_app_settings, get_engine, get_registry, get_session_or_404
from meetpulse.config import Settings
from meetpulse.engine.snapshot import ParticipationEngine
from meetpulse.models.participation import ParticipationSnapshot, SnapshotMode
from meetpulse.models.session import SessionCreate, SessionState
from meetpulse.store.session_store import MeetingSession, SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bots", tags=["Bots"])


# ── Helpers ────────────────────────────────────────────────────────────

def _snapshot(
    session: MeetingSession,
    engine: ParticipationEngine,
    mode: SnapshotMode = SnapshotMode.LIVE,
    window_size: int | None = None,
) -> ParticipationSnapshot:
    """Compute a snapshot over a point-in-time copy of the session log."""
    return engine.compute(
        session.utterance_log(),
        session_id=session.session_id,
        participants=session.participant_names(),
        mode=mode,
        window_size=window_size,
    )


# ── Sessions ──────────────────────────────────────────────────────────

@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Register a meeting session",
    description=(
        "Registers a session for a bot already provisioned with the meeting-bot provider. "
        "Webhook events are only accepted for registered bots."
    ),
)
async def create_session(
    payload: SessionCreate,
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, str]:
    bot_id = payload.bot_id or uuid.uuid4().hex
    session = await registry.create_session(bot_id, meeting_url=payload.meeting_url)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Session '{bot_id}' already exists.",
        )
    logger.info("Session registered | session=%s | meeting=%s", bot_id, payload.meeting_url)
    return {"bot_id": bot_id}


@router.get(
    "",
    summary="List active sessions",
    description="Returns all active session IDs and aggregate stats.",
)
async def list_sessions(registry: SessionRegistry = Depends(get_registry)) -> dict[str, Any]:
    """Return active session list and stats."""
    sessions = await registry.list_sessions()
    stats = await registry.get_stats()
    return {
        "sessions": sessions,
        **stats,
    }


@router.delete(
    "/{bot_id}",
    summary="Drop a session",
    description="Forgets the session and everything captured for it.",
)
async def delete_session(
    session: MeetingSession = Depends(get_session_or_404),
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, str]:
    await registry.remove_session(session.session_id)
    logger.info("Session removed | session=%s", session.session_id)
    return {"status": "deleted", "bot_id": session.session_id}


@router.get(
    "/{bot_id}/state",
    response_model=SessionState,
    summary="Get live session state",
    description="Returns transcript, partial transcript, participants, status and live participation.",
)
async def get_state(
    session: MeetingSession = Depends(get_session_or_404),
    engine: ParticipationEngine = Depends(get_engine),
) -> SessionState:
    """The payload the meeting console polls every second."""
    return SessionState(
        bot_id=session.session_id,
        meeting_url=session.meeting_url,
        status=session.status,
        transcripts=list(session.utterance_log()),
        partial_transcript=session.partial.text if session.partial else "",
        participants=dict(session.participants),
        participation=_snapshot(session, engine),
    )


# ── Participation ─────────────────────────────────────────────────────

@router.get(
    "/{bot_id}/participation",
    response_model=ParticipationSnapshot,
    summary="Get participation snapshot",
    description=(
        "Speaking shares, dominant and underrepresented speakers, interruptions, "
        "silences, turn-taking rate, balance verdict and timeline."
    ),
)
async def get_participation(
    session: MeetingSession = Depends(get_session_or_404),
    engine: ParticipationEngine = Depends(get_engine),
    mode: SnapshotMode = Query(
        default=SnapshotMode.LIVE,
        description="live uses the stricter underrepresentation threshold; summary the looser one.",
    ),
    window_size: int | None = Query(
        default=None,
        ge=0,
        le=500,
        description="Recent-window size in utterances (0 = whole call).",
    ),
) -> ParticipationSnapshot:
    return _snapshot(session, engine, mode=mode, window_size=window_size)


@router.get(
    "/{bot_id}/timeline",
    summary="Get speaking timeline",
    description="Per-speaker segments and silences normalized to 0–100% of the call.",
)
async def get_timeline(
    session: MeetingSession = Depends(get_session_or_404),
    engine: ParticipationEngine = Depends(get_engine),
) -> dict[str, Any]:
    """``timeline`` is null when no utterance carries timing."""
    timeline = _snapshot(session, engine).timeline
    return {
        "bot_id": session.session_id,
        "timeline": timeline.model_dump() if timeline else None,
    }


# ── WebSocket (Real-Time Push) ────────────────────────────────────────

@router.websocket("/{bot_id}/ws")
async def participation_websocket(
    websocket: WebSocket,
    bot_id: str,
    registry: SessionRegistry = Depends(get_registry),
    engine: ParticipationEngine = Depends(get_engine),
    settings: Settings = Depends(get_app_settings),
):
    """
    WebSocket endpoint for live participation streaming.

    On connect, sends the current snapshot. Then polls the session and
    pushes a fresh snapshot whenever the utterance log grows.

    The client can send ``{"action": "refresh"}`` to force a push.
    """
    await websocket.accept()
    session = await registry.get_session(bot_id)
    if session is None:
        await websocket.close(code=1008, reason="unknown session")
        return
    logger.info("WebSocket connected | session=%s", bot_id)

    last_key = None

    try:
        while True:
            force = False
            if last_key is not None:
                # Check for client messages (non-blocking)
                try:
                    data = await asyncio.wait_for(
                        websocket.receive_text(), timeout=settings.ws_poll_interval_sec
                    )
                    msg = json.loads(data)
                    if isinstance(msg, dict) and msg.get("action") == "refresh":
                        force = True
                        logger.info("WebSocket refresh requested | session=%s", bot_id)
                except asyncio.TimeoutError:
                    pass  # No client message, keep polling
                except json.JSONDecodeError:
                    logger.warning("WebSocket sent invalid JSON | session=%s", bot_id)

            key = session.analytics_key()
            if force or key != last_key:
                last_key = key
                snapshot = _snapshot(session, engine)
                await websocket.send_json(snapshot.model_dump(mode="json"))

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected | session=%s", bot_id)
    except Exception:
        logger.exception("WebSocket error | session=%s", bot_id)
        await websocket.close(code=1011)
