"""
Pydantic models for participation analytics.

These are the derived, read-only outputs of the participation engine.
Every model is frozen, so fields cannot be reassigned. The dict and list
fields are ordinary containers; callers treat them as read-only. A
snapshot is built fresh for each query and superseded by the next one.
"""

from enum import Enum

from pydantic import BaseModel, Field

_FROZEN = {"frozen": True}


class BalanceStatus(str, Enum):
    """Coarse verdict on how balanced the dialogue is."""

    BALANCED = "balanced"
    NEEDS_ATTENTION = "needs_attention"


class SnapshotMode(str, Enum):
    """Which call site a snapshot is computed for."""

    LIVE = "live"
    SUMMARY = "summary"


class SpeakerShare(BaseModel):
    """One speaker's slice of the words spoken."""

    name: str
    word_count: int = 0
    share: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Fraction of total words (0.0–1.0).",
    )

    model_config = _FROZEN


class SilencePeriod(BaseModel):
    """A gap between two timestamped utterances longer than the silence minimum."""

    from_sec: float
    to_sec: float
    duration_sec: float

    model_config = _FROZEN


class WindowStats(BaseModel):
    """Speaking shares over the most recent utterances only."""

    size: int
    utterance_count: int = 0
    speaking_share: dict[str, float] = Field(default_factory=dict)
    dominant_speaker: str | None = None
    dominant_share: float | None = None

    model_config = _FROZEN


class RepetitionPattern(BaseModel):
    """A phrase a speaker keeps coming back to."""

    phrase: str
    count: int

    model_config = _FROZEN


class BalanceVerdict(BaseModel):
    status: BalanceStatus
    reasons: list[str] = []

    model_config = _FROZEN


class TimelineSegment(BaseModel):
    """A renderable span of speech, positioned as percentages of the call."""

    speaker: str
    start_sec: float
    end_sec: float
    start_pct: float = Field(..., ge=0.0, le=100.0)
    width_pct: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Visual width. May be widened past the true duration for renderability.",
    )
    text: str = Field(default="", description="Truncated excerpt for tooltips.")

    model_config = _FROZEN


class TimelineSilence(BaseModel):
    from_sec: float
    to_sec: float
    start_pct: float = Field(..., ge=0.0, le=100.0)
    width_pct: float = Field(..., ge=0.0, le=100.0)

    model_config = _FROZEN


class TimelineLane(BaseModel):
    """All segments for one speaker, for layered rendering."""

    speaker: str
    segments: list[TimelineSegment] = []

    model_config = _FROZEN


class Timeline(BaseModel):
    """Normalized timeline over ``[start_sec, end_sec]``."""

    start_sec: float
    end_sec: float
    span_sec: float
    lanes: list[TimelineLane] = []
    silences: list[TimelineSilence] = []

    model_config = _FROZEN


class ParticipationSnapshot(BaseModel):
    """
    Point-in-time participation analytics for one meeting session.

    Duration-based fields are ``None`` when the transcript carries no
    usable timing; word-share fields are always populated.
    """

    session_id: str
    mode: SnapshotMode = SnapshotMode.LIVE

    # Word shares
    total_words: int = 0
    total_turns: int = 0
    transitions: int = 0
    word_counts: dict[str, int] = Field(default_factory=dict)
    speaking_share: dict[str, float] = Field(default_factory=dict)
    dominant_speaker: str | None = None
    dominant_share: float | None = None
    window: WindowStats
    underrepresented: list[SpeakerShare] = []
    silent_participants: list[str] = []

    # Timing heuristics
    timing_available: bool = False
    interruptions: int = 0
    interruptions_by_speaker: dict[str, int] = Field(default_factory=dict)
    top_interrupter: str | None = None
    top_interruption_count: int = 0
    silences: list[SilencePeriod] = []
    longest_silence: SilencePeriod | None = None
    total_silence_sec: float | None = None
    silence_ratio: float | None = None
    turn_taking_per_min: float | None = None
    duration_sec: float | None = None

    repetitions: dict[str, RepetitionPattern] = Field(default_factory=dict)
    balance: BalanceVerdict
    timeline: Timeline | None = None

    model_config = _FROZEN
