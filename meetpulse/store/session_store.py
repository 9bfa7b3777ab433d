"""
In-memory session registry for live meetings.

Each meeting bot gets a ``MeetingSession`` holding its append-only
utterance log, the single in-progress partial utterance, the participant
roster and the bot status. The ``SessionRegistry`` maps bot ids to
sessions. It is created by the app factory and handed to routes via
dependencies rather than living at module level.

Concurrency:
- The registry map is guarded by an ``asyncio.Lock``.
- Each session has its own lock, so writes to one meeting never wait on
  another meeting.
- Readers take ``utterance_log()``, a tuple copy, and compute over that.
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Any

from meetpulse.models.session import Participant, PartialUtterance, Utterance

# Speaker label used when the provider doesn't attribute a transcript
UNKNOWN_SPEAKER = "Unknown"


def normalize_participant(raw: dict[str, Any] | None) -> Participant | None:
    """
    Build a Participant from a provider participant payload.

    The id falls back through ``id``, ``participant_id``, ``user_id``,
    ``email`` and ``name``. A blank name becomes ``Participant <id>``.
    """
    if not raw:
        return None

    pid = "unknown"
    for key in ("id", "participant_id", "user_id", "email", "name"):
        value = raw.get(key)
        if value is not None and str(value) != "":
            pid = str(value)
            break

    name = (raw.get("name") or "").strip() or f"Participant {pid}"
    return Participant(
        id=pid,
        name=name,
        email=raw.get("email") or None,
        is_host=bool(raw.get("is_host")),
        platform=raw.get("platform") or None,
    )


@dataclass
class MeetingSession:
    """All state for one meeting bot."""

    session_id: str
    meeting_url: str | None = None
    status: str | None = None
    utterances: list[Utterance] = field(default_factory=list)
    partial: PartialUtterance | None = None
    participants: dict[str, Participant] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _seq: itertools.count = field(default_factory=lambda: itertools.count(1), repr=False)

    # ── Utterance log ──────────────────────────────────────────────────

    def append_utterance(
        self,
        speaker_name: str | None,
        text: str,
        start_sec: float | None = None,
        end_sec: float | None = None,
        speaker_id: str | None = None,
    ) -> Utterance:
        """
        Append a finalized utterance and return it.

        Clears the partial utterance when it belongs to the same speaker,
        or when either side has no speaker to compare.
        """
        speaker = (speaker_name or "").strip() or UNKNOWN_SPEAKER
        utterance = Utterance(
            id=f"{self.session_id}-{next(self._seq)}",
            speaker_id=speaker_id,
            speaker_name=speaker,
            text=text,
            start_sec=start_sec,
            end_sec=end_sec,
        )
        self.utterances.append(utterance)

        if self.partial is not None and (
            self.partial.speaker_name is None
            or speaker_name is None
            or self.partial.speaker_name == speaker
        ):
            self.partial = None
        return utterance

    def set_partial(self, text: str, speaker_name: str | None = None) -> None:
        """Replace the in-progress utterance wholesale."""
        self.partial = PartialUtterance(speaker_name=speaker_name, text=text)

    def utterance_log(self) -> tuple[Utterance, ...]:
        """Point-in-time copy of the log for analytics."""
        return tuple(self.utterances)

    # ── Roster ─────────────────────────────────────────────────────────

    def apply_participant_event(self, kind: str, raw: dict[str, Any] | None) -> Participant | None:
        """
        Update the roster from a participant event.

        ``kind`` is the event suffix: join, leave, update, speech_on or
        speech_off. Returns the affected participant, or None if the
        payload had no participant.
        """
        participant = normalize_participant(raw)
        if participant is None:
            return None

        existing = self.participants.get(participant.id)
        if kind in ("join", "update"):
            if existing is not None:
                participant = participant.model_copy(
                    update={"is_speaking": existing.is_speaking}
                )
            self.participants[participant.id] = participant
        elif kind == "leave":
            if existing is not None:
                self.participants[participant.id] = existing.model_copy(
                    update={"in_call": False, "is_speaking": False}
                )
        elif kind == "speech_on":
            if existing is None:
                self.participants[participant.id] = participant
            for pid, p in self.participants.items():
                self.participants[pid] = p.model_copy(
                    update={"is_speaking": pid == participant.id}
                )
        elif kind == "speech_off":
            if existing is not None:
                self.participants[participant.id] = existing.model_copy(
                    update={"is_speaking": False}
                )
        return self.participants.get(participant.id)

    def participant_names(self) -> list[str]:
        """Names of participants still in the call."""
        return [p.name for p in self.participants.values() if p.in_call]

    def analytics_key(self) -> tuple[int, tuple[str, ...]]:
        """Changes whenever a new snapshot could differ: new utterances or roster moves."""
        return len(self.utterances), tuple(self.participant_names())

    # ── Serialization ──────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        """Serialize session data for API responses."""
        return {
            "bot_id": self.session_id,
            "meeting_url": self.meeting_url,
            "status": self.status,
            "transcripts": [u.model_dump() for u in self.utterances],
            "partial_transcript": self.partial.text if self.partial else "",
            "participants": {
                pid: p.model_dump() for pid, p in self.participants.items()
            },
        }


class SessionRegistry:
    """
    In-memory registry of meeting sessions, keyed by bot id.

    An asyncio lock protects the map itself. Per-session writes go
    through ``MeetingSession.lock``.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, MeetingSession] = {}
        self._lock = asyncio.Lock()

    async def create_session(
        self, session_id: str, meeting_url: str | None = None
    ) -> MeetingSession | None:
        """Register a new session. Returns None if the id is already taken."""
        async with self._lock:
            if session_id in self._sessions:
                return None
            session = MeetingSession(session_id=session_id, meeting_url=meeting_url)
            self._sessions[session_id] = session
            return session

    async def get_or_create(self, session_id: str) -> MeetingSession:
        async with self._lock:
            if session_id not in self._sessions:
                self._sessions[session_id] = MeetingSession(session_id=session_id)
            return self._sessions[session_id]

    async def get_session(self, session_id: str) -> MeetingSession | None:
        """Retrieve a session, or None if it doesn't exist."""
        async with self._lock:
            return self._sessions.get(session_id)

    async def remove_session(self, session_id: str) -> bool:
        async with self._lock:
            return self._sessions.pop(session_id, None) is not None

    async def list_sessions(self) -> list[str]:
        """Return all active session IDs."""
        async with self._lock:
            return list(self._sessions.keys())

    async def get_stats(self) -> dict[str, Any]:
        """Return summary statistics across all sessions."""
        async with self._lock:
            return {
                "active_sessions": len(self._sessions),
                "total_utterances": sum(
                    len(s.utterances) for s in self._sessions.values()
                ),
            }
