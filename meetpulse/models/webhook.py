"""
Pydantic models for meeting-bot real-time webhook events.

Designed for resilience:
- every nested object is optional (the provider nests some events one
  level deeper than others)
- word timestamps may be absent
- extra fields are ignored (forward-compatible with payload changes)
"""

from typing import Any

from pydantic import BaseModel, Field


class WordTimestamp(BaseModel):
    relative: float | None = Field(
        default=None,
        description="Seconds since the recording started.",
    )

    model_config = {"extra": "ignore"}


class TranscriptWord(BaseModel):
    """One recognized word with optional timing."""

    text: str | None = None
    start_timestamp: WordTimestamp | None = None
    end_timestamp: WordTimestamp | None = None

    model_config = {"extra": "ignore"}


class EventBody(BaseModel):
    """The innermost ``data`` object carrying words, participant or status code."""

    words: list[TranscriptWord] = []
    participant: dict[str, Any] | None = None
    code: str | None = None

    model_config = {"extra": "ignore"}


class BotRef(BaseModel):
    id: str | int | None = None

    model_config = {"extra": "ignore"}


class RecordingRef(BaseModel):
    bot_id: str | int | None = None

    model_config = {"extra": "ignore"}


class EventData(BaseModel):
    """Outer ``data`` envelope: identifies the bot and wraps the event body."""

    data: EventBody | None = None
    bot: BotRef | None = None
    recording: RecordingRef | None = None
    bot_id: str | int | None = None

    # Some participant events put the body directly on the envelope
    participant: dict[str, Any] | None = None
    words: list[TranscriptWord] = []

    model_config = {"extra": "ignore"}

    def body(self) -> EventBody:
        """Return the event body, whichever level it was sent at."""
        if self.data is not None:
            return self.data
        return EventBody(words=self.words, participant=self.participant)


class RecallWebhookEvent(BaseModel):
    """
    Top-level real-time event posted by the meeting bot.

    Example::

        {
            "event": "transcript.data",
            "data": {
                "bot": {"id": "bot-123"},
                "data": {
                    "participant": {"id": 100, "name": "Alice"},
                    "words": [
                        {
                            "text": "hello",
                            "start_timestamp": {"relative": 0.0},
                            "end_timestamp": {"relative": 0.4}
                        }
                    ]
                }
            }
        }
    """

    event: str = Field(..., min_length=1)
    data: EventData = Field(default_factory=EventData)

    model_config = {"extra": "ignore"}

    @property
    def bot_id(self) -> str | None:
        """Resolve the bot id from wherever this event type carries it."""
        candidates = (
            self.data.bot.id if self.data.bot else None,
            self.data.recording.bot_id if self.data.recording else None,
            self.data.bot_id,
        )
        for candidate in candidates:
            if candidate is not None and str(candidate):
                return str(candidate)
        return None


class WebhookAck(BaseModel):
    """Acknowledgement returned for every delivered event."""

    ok: bool = True
