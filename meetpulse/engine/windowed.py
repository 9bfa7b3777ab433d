"""
Recency-biased and timing-based participation signals.

Design:
- The recent window recomputes word shares over only the last N
  utterances. The whole-call dominant speaker is a poor proxy for who
  is holding the floor right now.
- A transition is an adjacent pair of utterances whose speaker differs.
- Interruptions are a heuristic. No speech-overlap signal exists, so a
  transition whose hand-off gap falls within ``[0, interruption_gap_max_sec]``
  is counted, which conflates fast turn-taking with interrupting. The
  count is attributed to the later speaker.
- Any gap between one utterance's end and the next one's start longer
  than ``silence_min_sec`` is a silence period. An utterance without an
  end time cannot open a silence.
- Turn-taking rate counts only transitions between two timestamped
  utterances, over the timed span of the call.
- Without timestamps every duration-based signal is ``None`` (or empty),
  never a fabricated zero.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from meetpulse.engine.aggregate import count_words, dominant, word_shares
from meetpulse.models.participation import SilencePeriod, WindowStats
from meetpulse.models.session import Utterance


@dataclass(frozen=True)
class WindowedSignals:
    window: WindowStats
    transitions: int = 0
    timing_available: bool = False
    interruptions: int = 0
    interruptions_by_speaker: dict[str, int] = field(default_factory=dict)
    top_interrupter: str | None = None
    top_interruption_count: int = 0
    silences: list[SilencePeriod] = field(default_factory=list)
    longest_silence: SilencePeriod | None = None
    total_silence_sec: float | None = None
    silence_ratio: float | None = None
    duration_sec: float | None = None
    turn_taking_per_min: float | None = None


# ── Building blocks ───────────────────────────────────────────────────

def recent_window(
    utterances: Sequence[Utterance],
    window_size: int,
    window_sec: float | None = None,
) -> list[Utterance]:
    """
    Return the most recent utterances.

    Args:
        window_size: If > 0, keep only the last N utterances.
                     If 0, keep all of them.
        window_sec: If set, additionally drop timestamped utterances that
                    started more than this many seconds before the latest
                    timestamp in the log. Untimed utterances are kept.
    """
    recent = list(utterances)
    if window_size > 0:
        recent = recent[-window_size:]

    if window_sec is not None:
        latest = _latest_time(utterances)
        if latest is not None:
            cutoff = latest - window_sec
            recent = [
                u for u in recent
                if u.start_sec is None or u.start_sec >= cutoff
            ]
    return recent


def window_stats(recent: Sequence[Utterance], size: int) -> WindowStats:
    shares = word_shares(count_words(recent))
    speaker, share = dominant(shares)
    return WindowStats(
        size=size,
        utterance_count=len(recent),
        speaking_share=shares,
        dominant_speaker=speaker,
        dominant_share=share,
    )


def count_transitions(utterances: Sequence[Utterance]) -> int:
    return sum(
        1 for prev, nxt in zip(utterances, utterances[1:])
        if prev.speaker_name != nxt.speaker_name
    )


def count_timed_transitions(utterances: Sequence[Utterance]) -> int:
    """Transitions where both sides carry a start time."""
    return sum(
        1 for prev, nxt in zip(utterances, utterances[1:])
        if prev.speaker_name != nxt.speaker_name
        and prev.start_sec is not None
        and nxt.start_sec is not None
    )


def handoff_gap(prev: Utterance, nxt: Utterance) -> float | None:
    """
    Seconds between ``prev`` finishing and ``nxt`` starting.

    Falls back to start-to-start when ``prev`` has no end time.
    ``None`` when either side lacks the timing needed.
    """
    if nxt.start_sec is None:
        return None
    if prev.end_sec is not None:
        return nxt.start_sec - prev.end_sec
    if prev.start_sec is not None:
        return nxt.start_sec - prev.start_sec
    return None


def silence_gap(prev: Utterance, nxt: Utterance) -> float | None:
    """Seconds from ``prev`` ending to ``nxt`` starting. Needs both ends known."""
    if prev.end_sec is None or nxt.start_sec is None:
        return None
    return nxt.start_sec - prev.end_sec


def call_duration(utterances: Sequence[Utterance]) -> float | None:
    """Elapsed seconds from the first start to the last end, or None without timing."""
    timed = [u for u in utterances if u.start_sec is not None]
    if not timed:
        return None
    start = min(u.start_sec for u in timed)
    end = max(u.end_sec if u.end_sec is not None else u.start_sec for u in timed)
    return max(0.0, end - start)


def _latest_time(utterances: Sequence[Utterance]) -> float | None:
    latest: float | None = None
    for u in utterances:
        for value in (u.start_sec, u.end_sec):
            if value is not None and (latest is None or value > latest):
                latest = value
    return latest


# ── Heuristics ────────────────────────────────────────────────────────

def detect_interruptions(
    utterances: Sequence[Utterance],
    gap_max_sec: float,
) -> dict[str, int]:
    """Interruptions per interrupting speaker, in first-interruption order."""
    by_speaker: dict[str, int] = {}
    for prev, nxt in zip(utterances, utterances[1:]):
        if prev.speaker_name == nxt.speaker_name:
            continue
        gap = handoff_gap(prev, nxt)
        if gap is None or not 0.0 <= gap <= gap_max_sec:
            continue
        by_speaker[nxt.speaker_name] = by_speaker.get(nxt.speaker_name, 0) + 1
    return by_speaker


def detect_silences(
    utterances: Sequence[Utterance],
    silence_min_sec: float,
) -> list[SilencePeriod]:
    """Gaps longer than ``silence_min_sec`` between one utterance ending and the next starting."""
    silences: list[SilencePeriod] = []
    for prev, nxt in zip(utterances, utterances[1:]):
        gap = silence_gap(prev, nxt)
        if gap is None or gap <= silence_min_sec:
            continue
        silences.append(
            SilencePeriod(from_sec=prev.end_sec, to_sec=nxt.start_sec, duration_sec=gap)
        )
    return silences


def _longest(silences: Sequence[SilencePeriod]) -> SilencePeriod | None:
    longest: SilencePeriod | None = None
    for period in silences:
        if longest is None or period.duration_sec > longest.duration_sec:
            longest = period
    return longest


# ── Entry point ───────────────────────────────────────────────────────

def compute_windowed(
    utterances: Sequence[Utterance],
    window_size: int = 8,
    window_sec: float | None = None,
    interruption_gap_max_sec: float = 1.5,
    silence_min_sec: float = 15.0,
) -> WindowedSignals:
    """
    Compute recent-window shares, turn-taking, interruption and silence signals.

    Args:
        utterances: The utterance log, in arrival order.
        window_size: Utterance count for the recent window (0 = whole log).
        window_sec: Optional time bound for the recent window.
        interruption_gap_max_sec: Largest hand-off gap still counted as an interruption.
        silence_min_sec: Gaps strictly longer than this are silence periods.

    Returns:
        WindowedSignals. Duration-based fields are ``None`` when no
        utterance carries a start time.
    """
    recent = recent_window(utterances, window_size, window_sec)
    window = window_stats(recent, window_size)
    transitions = count_transitions(utterances)

    duration = call_duration(utterances)
    if duration is None:
        return WindowedSignals(window=window, transitions=transitions)

    by_speaker = detect_interruptions(utterances, interruption_gap_max_sec)
    top_interrupter, top_count = None, 0
    for speaker, count in by_speaker.items():
        if count > top_count:
            top_interrupter, top_count = speaker, count

    silences = detect_silences(utterances, silence_min_sec)
    total_silence = sum(s.duration_sec for s in silences)

    timed_count = sum(1 for u in utterances if u.start_sec is not None)
    turn_rate = None
    if timed_count >= 2 and duration > 0:
        turn_rate = count_timed_transitions(utterances) / (duration / 60.0)

    return WindowedSignals(
        window=window,
        transitions=transitions,
        timing_available=True,
        interruptions=sum(by_speaker.values()),
        interruptions_by_speaker=by_speaker,
        top_interrupter=top_interrupter,
        top_interruption_count=top_count,
        silences=silences,
        longest_silence=_longest(silences),
        total_silence_sec=total_silence,
        silence_ratio=total_silence / duration if duration > 0 else None,
        duration_sec=duration,
        turn_taking_per_min=turn_rate,
    )
