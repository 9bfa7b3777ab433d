"""
Balance classifier.

Turns aggregate and windowed signals into a coarse verdict with
human-readable reasons. Any single trigger is enough to flag the call.
The classifier reads no clock and keeps no state, so the same inputs
always give the same verdict.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from meetpulse.engine.aggregate import AggregateMetrics
from meetpulse.engine.windowed import WindowedSignals
from meetpulse.models.participation import BalanceStatus, BalanceVerdict


@dataclass(frozen=True)
class BalanceThresholds:
    dominant_share: float = 0.6
    interruption_ratio: float = 0.5
    interruption_min_count: int = 3


def classify_balance(
    aggregate: AggregateMetrics,
    windowed: WindowedSignals,
    silent_participants: Iterable[str] = (),
    thresholds: BalanceThresholds = BalanceThresholds(),
) -> BalanceVerdict:
    """
    Classify the dialogue as balanced or needing attention.

    Args:
        aggregate: Whole-call word shares and underrepresented speakers.
        windowed: Recent-window shares and interruption counts.
        silent_participants: Roster names with no words yet. They count
            as "other speakers" for the dominance trigger.
        thresholds: Alert thresholds.
    """
    reasons: list[str] = []

    known_speakers = set(aggregate.word_counts) | set(silent_participants)
    window = windowed.window
    if (
        window.dominant_speaker is not None
        and window.dominant_share is not None
        and window.dominant_share > thresholds.dominant_share
        and len(known_speakers - {window.dominant_speaker}) >= 1
    ):
        reasons.append(
            f"{window.dominant_speaker} is dominating the recent conversation "
            f"({window.dominant_share:.0%} of the last {window.utterance_count} turns' words)."
        )

    if aggregate.underrepresented:
        names = ", ".join(
            f"{s.name} ({s.share:.0%})" for s in aggregate.underrepresented
        )
        reasons.append(f"Underrepresented voices: {names}.")

    if (
        windowed.transitions > 0
        and windowed.interruptions >= thresholds.interruption_min_count
        and windowed.interruptions / windowed.transitions > thresholds.interruption_ratio
    ):
        reasons.append(
            f"Frequent interruptions: {windowed.interruptions} of "
            f"{windowed.transitions} speaker changes had almost no pause."
        )

    status = BalanceStatus.NEEDS_ATTENTION if reasons else BalanceStatus.BALANCED
    return BalanceVerdict(status=status, reasons=reasons)
