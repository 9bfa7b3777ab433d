"""
Timeline segmenter.

Maps timestamped utterances onto a 0–100% coordinate space for
rendering. Everything here is presentation: the synthetic duration
given to utterances without an end time and the minimum segment width
never feed back into word shares or silence totals.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from meetpulse.models.participation import (
    SilencePeriod,
    Timeline,
    TimelineLane,
    TimelineSegment,
    TimelineSilence,
)
from meetpulse.models.session import Utterance


@dataclass(frozen=True)
class TimelineOptions:
    min_width_pct: float = 0.5
    synthetic_duration_sec: float = 0.5
    merge_gap_sec: float = 0.5
    excerpt_chars: int = 120


@dataclass
class _Span:
    speaker: str
    start: float
    end: float
    texts: list[str] = field(default_factory=list)


def _clip(pct: float) -> float:
    return min(100.0, max(0.0, pct))


def excerpt(text: str, limit: int) -> str:
    """Truncate ``text`` to ``limit`` characters, ending with an ellipsis when cut."""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: max(0, limit - 1)].rstrip() + "…"


def _collect_spans(utterances: Sequence[Utterance], options: TimelineOptions) -> list[_Span]:
    spans: list[_Span] = []
    for u in utterances:
        if u.start_sec is None:
            continue
        if u.end_sec is not None and u.end_sec > u.start_sec:
            end = u.end_sec
        else:
            end = u.start_sec + options.synthetic_duration_sec

        last = spans[-1] if spans else None
        if (
            last is not None
            and last.speaker == u.speaker_name
            and u.start_sec - last.end <= options.merge_gap_sec
        ):
            last.end = max(last.end, end)
            last.texts.append(u.text)
            continue
        spans.append(_Span(speaker=u.speaker_name, start=u.start_sec, end=end, texts=[u.text]))
    return spans


def _place(start: float, end: float, origin: float, span: float, min_width: float) -> tuple[float, float]:
    """Percent offset and visual width, widened to ``min_width`` and kept inside [0, 100]."""
    start_pct = _clip((start - origin) / span * 100.0)
    width_pct = min(100.0, max(_clip((end - start) / span * 100.0), min_width))
    if start_pct + width_pct > 100.0:
        start_pct = 100.0 - width_pct
    return round(start_pct, 4), round(width_pct, 4)


def build_timeline(
    utterances: Sequence[Utterance],
    silences: Sequence[SilencePeriod] = (),
    options: TimelineOptions = TimelineOptions(),
) -> Timeline | None:
    """
    Build a normalized per-speaker timeline.

    Args:
        utterances: The utterance log. Utterances without ``start_sec`` are skipped.
        silences: Silence periods to overlay, normalized to the same span.
        options: Rendering conventions.

    Returns:
        A Timeline, or ``None`` when no utterance is timestamped.
    """
    spans = _collect_spans(utterances, options)
    if not spans:
        return None

    origin = min(s.start for s in spans)
    end = max(s.end for s in spans)
    span = end - origin
    if span <= 0:
        span = 1.0  # only reachable with a zero synthetic duration

    lanes: dict[str, list[TimelineSegment]] = {}
    for s in spans:
        start_pct, width_pct = _place(s.start, s.end, origin, span, options.min_width_pct)
        lanes.setdefault(s.speaker, []).append(
            TimelineSegment(
                speaker=s.speaker,
                start_sec=s.start,
                end_sec=s.end,
                start_pct=start_pct,
                width_pct=width_pct,
                text=excerpt(" ".join(s.texts), options.excerpt_chars),
            )
        )

    overlays: list[TimelineSilence] = []
    for period in silences:
        start_pct = _clip((period.from_sec - origin) / span * 100.0)
        end_pct = _clip((period.to_sec - origin) / span * 100.0)
        overlays.append(
            TimelineSilence(
                from_sec=period.from_sec,
                to_sec=period.to_sec,
                start_pct=round(start_pct, 4),
                width_pct=round(max(0.0, end_pct - start_pct), 4),
            )
        )

    return Timeline(
        start_sec=origin,
        end_sec=end,
        span_sec=end - origin,
        lanes=[TimelineLane(speaker=name, segments=segs) for name, segs in lanes.items()],
        silences=overlays,
    )
