"""
Models for per-meeting session state.

An ``Utterance`` is one finalized, speaker-attributed speech turn. The
session keeps them in arrival order and never edits them once appended,
which is what makes recomputing analytics from the full log safe.
"""

from pydantic import BaseModel, Field

from meetpulse.models.participation import ParticipationSnapshot


class Utterance(BaseModel):
    """A single finalized speech turn."""

    id: str
    speaker_id: str | None = None
    speaker_name: str = Field(
        ...,
        description="Display name, used as the aggregation key.",
    )
    text: str
    start_sec: float | None = Field(
        default=None,
        description="Seconds since recording start. Absent when the provider sent no timing.",
    )
    end_sec: float | None = None

    model_config = {"frozen": True}

    @property
    def word_count(self) -> int:
        """Number of non-empty whitespace-separated tokens."""
        return len(self.text.split())


class PartialUtterance(BaseModel):
    """The in-progress utterance currently being spoken. Never counted."""

    speaker_name: str | None = None
    text: str = ""


class Participant(BaseModel):
    """A meeting participant as reported by participant events."""

    id: str
    name: str
    email: str | None = None
    is_host: bool = False
    platform: str | None = None
    in_call: bool = True
    is_speaking: bool = False


class SessionCreate(BaseModel):
    """Request body for registering a meeting session."""

    meeting_url: str = Field(..., min_length=1)
    bot_id: str | None = Field(
        default=None,
        description="Bot id issued by the meeting-bot provider. Generated when omitted.",
    )


class SessionState(BaseModel):
    """Everything a polling client needs to render a live meeting."""

    bot_id: str
    meeting_url: str | None = None
    status: str | None = None
    transcripts: list[Utterance] = []
    partial_transcript: str = ""
    participants: dict[str, Participant] = Field(default_factory=dict)
    participation: ParticipationSnapshot | None = Field(
        default=None,
        description="Live participation analytics for the current transcript.",
    )
