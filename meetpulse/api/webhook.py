"""
Meeting-bot real-time webhook receiver.

Accepts POST requests carrying transcript, partial transcript,
participant and bot status events, applies them to the matching session
in arrival order, and always acknowledges with a fast 200 OK.
"""

import logging

from fastapi import APIRouter, Depends, status

from meetpulse.api.deps import get_app_settings, get_registry
from meetpulse.config import Settings
from meetpulse.models.webhook import RecallWebhookEvent, TranscriptWord, WebhookAck
from meetpulse.store.session_store import MeetingSession, SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recall", tags=["Webhook"])


# ── Helpers ────────────────────────────────────────────────────────────

def _join_words(words: list[TranscriptWord]) -> str:
    return " ".join(w.text for w in words if w.text)


def _word_span(words: list[TranscriptWord]) -> tuple[float | None, float | None]:
    """Relative start of the first word and end of the last word, when present."""
    start = words[0].start_timestamp.relative if words[0].start_timestamp else None
    end = words[-1].end_timestamp.relative if words[-1].end_timestamp else None
    return start, end


def _speaker(participant: dict | None) -> tuple[str | None, str | None]:
    if not participant:
        return None, None
    pid = participant.get("id")
    name = (participant.get("name") or "").strip() or None
    return (str(pid) if pid is not None else None), name


def _apply_event(session: MeetingSession, event: RecallWebhookEvent) -> None:
    body = event.data.body()

    if event.event == "transcript.data":
        text = _join_words(body.words)
        if not text:
            return
        start, end = _word_span(body.words)
        speaker_id, speaker_name = _speaker(body.participant)
        utterance = session.append_utterance(
            speaker_name=speaker_name,
            text=text,
            start_sec=start,
            end_sec=end,
            speaker_id=speaker_id,
        )
        logger.debug(
            "Utterance appended | session=%s | id=%s | speaker=%s | words=%d",
            session.session_id,
            utterance.id,
            utterance.speaker_name,
            utterance.word_count,
        )

    elif event.event == "transcript.partial_data":
        text = _join_words(body.words)
        if not text:
            return
        _, speaker_name = _speaker(body.participant)
        session.set_partial(text, speaker_name=speaker_name)

    elif event.event.startswith("participant_events."):
        kind = event.event.split(".", 1)[1]
        session.apply_participant_event(kind, body.participant)

    elif event.event.startswith("bot."):
        session.status = body.code or event.event.split(".", 1)[1]
        logger.info("Bot status | session=%s | status=%s", session.session_id, session.status)


# ── Webhook ────────────────────────────────────────────────────────────

@router.post(
    "/webhook",
    response_model=WebhookAck,
    status_code=status.HTTP_200_OK,
    summary="Receive real-time meeting bot events",
    description=(
        "Accepts transcript, partial transcript, participant and status events. "
        "Events for unknown bots are acknowledged and dropped."
    ),
)
async def receive_webhook(
    event: RecallWebhookEvent,
    registry: SessionRegistry = Depends(get_registry),
    settings: Settings = Depends(get_app_settings),
) -> WebhookAck:
    """
    Handle an incoming webhook event.

    1. Resolve the bot id from the event envelope
    2. Look up the session (or create it when auto-registration is on)
    3. Apply the event under the session's write lock
    4. Return 200 OK regardless, so the provider never retries
    """
    bot_id = event.bot_id
    if bot_id is None:
        logger.warning("Webhook without bot id | event=%s", event.event)
        return WebhookAck()

    if settings.auto_register_sessions:
        session = await registry.get_or_create(bot_id)
    else:
        session = await registry.get_session(bot_id)
    if session is None:
        logger.info("Webhook for unknown session ignored | session=%s | event=%s", bot_id, event.event)
        return WebhookAck()

    async with session.lock:
        _apply_event(session, event)

    logger.info("Webhook received | session=%s | event=%s", bot_id, event.event)
    return WebhookAck()
