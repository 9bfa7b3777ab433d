"""
Shared FastAPI dependencies.

Settings, the session registry and the participation engine are created once by the
app factory and stored on ``app.state``; routes receive them from here.
"""

from fastapi import Depends, HTTPException, status
from fastapi.requests import HTTPConnection

from meetpulse.config import Settings
from meetpulse.engine.snapshot import ParticipationEngine
from meetpulse.store.session_store import MeetingSession, SessionRegistry


def get_app_settings(conn: HTTPConnection) -> Settings:
    return conn.app.state.settings


def get_registry(conn: HTTPConnection) -> SessionRegistry:
    return conn.app.state.registry


def get_engine(conn: HTTPConnection) -> ParticipationEngine:
    return conn.app.state.engine


async def get_session_or_404(
    bot_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> MeetingSession:
    """Retrieve a session or raise 404."""
    session = await registry.get_session(bot_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session '{bot_id}' not found.",
        )
    return session
