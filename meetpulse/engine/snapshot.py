"""
Participation analytics engine.

Composes the aggregate, windowed, repetition, balance and timeline
calculators into one frozen ``ParticipationSnapshot``.

Design:
- Pull-based. Every query recomputes from the full utterance log in
  O(n); nothing is cached between queries.
- Every calculator reads the same tuple, taken once at the start of
  ``compute``, so none of them can observe a log that changes
  mid-computation.
- Utterances with no words are dropped up front and take no part in
  any metric.
- The engine never raises for data-quality reasons. Missing data comes
  back as ``None`` or empty fields.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from meetpulse.config import Settings
from meetpulse.engine.aggregate import compute_aggregate
from meetpulse.engine.balance import BalanceThresholds, classify_balance
from meetpulse.engine.repetition import detect_repetitions
from meetpulse.engine.timeline import TimelineOptions, build_timeline
from meetpulse.engine.windowed import compute_windowed
from meetpulse.models.participation import ParticipationSnapshot, SnapshotMode
from meetpulse.models.session import Utterance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """Tunable thresholds for one snapshot computation."""

    recent_window_size: int = 8
    recent_window_sec: float | None = None
    interruption_gap_max_sec: float = 1.5
    silence_min_sec: float = 15.0
    underrepresented_share_threshold: float = 0.20
    dominant_share_alert_threshold: float = 0.6
    interruption_alert_ratio: float = 0.5
    interruption_alert_min_count: int = 3
    repetition_min_count: int = 3
    min_timeline_segment_width_pct: float = 0.5
    timeline_synthetic_duration_sec: float = 0.5
    timeline_merge_gap_sec: float = 0.5
    timeline_excerpt_chars: int = 120

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        mode: SnapshotMode = SnapshotMode.LIVE,
    ) -> "EngineConfig":
        """
        Build a config from application settings.

        Live diagnostics flag underrepresentation earlier than end-of-call
        summaries, so ``mode`` picks between the two thresholds.
        """
        if mode == SnapshotMode.SUMMARY:
            threshold = settings.summary_underrepresented_threshold
        else:
            threshold = settings.live_underrepresented_threshold
        return cls(
            recent_window_size=settings.recent_window_size,
            recent_window_sec=settings.recent_window_sec,
            interruption_gap_max_sec=settings.interruption_gap_max_sec,
            silence_min_sec=settings.silence_min_sec,
            underrepresented_share_threshold=threshold,
            dominant_share_alert_threshold=settings.dominant_share_alert_threshold,
            interruption_alert_ratio=settings.interruption_alert_ratio,
            interruption_alert_min_count=settings.interruption_alert_min_count,
            repetition_min_count=settings.repetition_min_count,
            min_timeline_segment_width_pct=settings.min_timeline_segment_width_pct,
            timeline_synthetic_duration_sec=settings.timeline_synthetic_duration_sec,
            timeline_merge_gap_sec=settings.timeline_merge_gap_sec,
            timeline_excerpt_chars=settings.timeline_excerpt_chars,
        )


class ParticipationEngine:
    """
    Participation analytics over a meeting's utterance log.

    Holds one config per snapshot mode. Stateless otherwise, so a single
    instance can serve any number of sessions and concurrent queries.
    """

    def __init__(
        self,
        live: EngineConfig | None = None,
        summary: EngineConfig | None = None,
    ) -> None:
        self.configs: dict[SnapshotMode, EngineConfig] = {
            SnapshotMode.LIVE: live or EngineConfig(),
            SnapshotMode.SUMMARY: summary
            or EngineConfig(underrepresented_share_threshold=0.10),
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "ParticipationEngine":
        return cls(
            live=EngineConfig.from_settings(settings, SnapshotMode.LIVE),
            summary=EngineConfig.from_settings(settings, SnapshotMode.SUMMARY),
        )

    def compute(
        self,
        utterances: Iterable[Utterance],
        session_id: str = "",
        participants: Iterable[str] = (),
        mode: SnapshotMode = SnapshotMode.LIVE,
        window_size: int | None = None,
    ) -> ParticipationSnapshot:
        """
        Compute a participation snapshot.

        Args:
            utterances: The utterance log, in arrival order.
            session_id: Session identifier for the response.
            participants: Roster names. Those with no words yet are
                reported as silent participants.
            mode: Live diagnostics or end-of-call summary thresholds.
            window_size: Overrides the configured recent-window size.

        Returns:
            A frozen ParticipationSnapshot.
        """
        config = self.configs[mode]
        log = tuple(u for u in utterances if u.word_count > 0)
        size = config.recent_window_size if window_size is None else window_size

        aggregate = compute_aggregate(log, config.underrepresented_share_threshold)
        windowed = compute_windowed(
            log,
            window_size=size,
            window_sec=config.recent_window_sec,
            interruption_gap_max_sec=config.interruption_gap_max_sec,
            silence_min_sec=config.silence_min_sec,
        )

        silent: list[str] = []
        for name in participants:
            if name not in aggregate.word_counts and name not in silent:
                silent.append(name)

        balance = classify_balance(
            aggregate,
            windowed,
            silent_participants=silent,
            thresholds=BalanceThresholds(
                dominant_share=config.dominant_share_alert_threshold,
                interruption_ratio=config.interruption_alert_ratio,
                interruption_min_count=config.interruption_alert_min_count,
            ),
        )
        timeline = build_timeline(
            log,
            windowed.silences,
            TimelineOptions(
                min_width_pct=config.min_timeline_segment_width_pct,
                synthetic_duration_sec=config.timeline_synthetic_duration_sec,
                merge_gap_sec=config.timeline_merge_gap_sec,
                excerpt_chars=config.timeline_excerpt_chars,
            ),
        )

        logger.debug(
            "Participation computed | session=%s | mode=%s | utterances=%d | words=%d | balance=%s",
            session_id,
            mode.value,
            len(log),
            aggregate.total_words,
            balance.status.value,
        )

        return ParticipationSnapshot(
            session_id=session_id,
            mode=mode,
            total_words=aggregate.total_words,
            total_turns=len(log),
            transitions=windowed.transitions,
            word_counts=aggregate.word_counts,
            speaking_share=aggregate.speaking_share,
            dominant_speaker=aggregate.dominant_speaker,
            dominant_share=aggregate.dominant_share,
            window=windowed.window,
            underrepresented=aggregate.underrepresented,
            silent_participants=silent,
            timing_available=windowed.timing_available,
            interruptions=windowed.interruptions,
            interruptions_by_speaker=windowed.interruptions_by_speaker,
            top_interrupter=windowed.top_interrupter,
            top_interruption_count=windowed.top_interruption_count,
            silences=windowed.silences,
            longest_silence=windowed.longest_silence,
            total_silence_sec=windowed.total_silence_sec,
            silence_ratio=windowed.silence_ratio,
            turn_taking_per_min=windowed.turn_taking_per_min,
            duration_sec=windowed.duration_sec,
            repetitions=detect_repetitions(log, config.repetition_min_count),
            balance=balance,
            timeline=timeline,
        )
