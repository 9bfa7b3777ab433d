"""
Unit tests for engine.timeline.
Tests normalization, minimum visual width, synthetic durations, merging,
silence overlays and excerpts.
"""
import pytest

from meetpulse.engine.timeline import TimelineOptions, build_timeline, excerpt
from meetpulse.models.participation import SilencePeriod
from meetpulse.models.session import Utterance


def _u(idx, speaker, text, start=None, end=None):
    return Utterance(id=str(idx), speaker_name=speaker, text=text, start_sec=start, end_sec=end)


def _segments(timeline):
    return [seg for lane in timeline.lanes for seg in lane.segments]


class TestNothingToRender:
    def test_no_timestamps_returns_none(self):
        assert build_timeline([_u(1, "A", "hello"), _u(2, "B", "hi")]) is None

    def test_empty_log_returns_none(self):
        assert build_timeline([]) is None


class TestNormalization:
    def test_two_speakers_split_the_span(self):
        timeline = build_timeline([_u(1, "A", "x", 0, 5), _u(2, "B", "y", 5, 10)])
        assert timeline.start_sec == 0
        assert timeline.end_sec == 10
        assert timeline.span_sec == 10
        a, b = _segments(timeline)
        assert (a.start_pct, a.width_pct) == (0.0, 50.0)
        assert (b.start_pct, b.width_pct) == (50.0, 50.0)

    def test_offset_origin(self):
        timeline = build_timeline([_u(1, "A", "x", 100, 101), _u(2, "B", "y", 102, 104)])
        b = timeline.lanes[1].segments[0]
        assert b.start_pct == pytest.approx(50.0)
        assert b.width_pct == pytest.approx(50.0)

    def test_lanes_grouped_by_first_appearance(self):
        log = [
            _u(1, "Bob", "x", 0, 1),
            _u(2, "Alice", "y", 2, 3),
            _u(3, "Bob", "z", 4, 5),
        ]
        timeline = build_timeline(log)
        assert [lane.speaker for lane in timeline.lanes] == ["Bob", "Alice"]
        assert len(timeline.lanes[0].segments) == 2


class TestRenderingConventions:
    def test_short_segment_widened(self):
        log = [_u(1, "A", "x", 0, 0.01), _u(2, "B", "y", 1, 100)]
        timeline = build_timeline(log, options=TimelineOptions(min_width_pct=2.0))
        a = timeline.lanes[0].segments[0]
        assert a.width_pct == 2.0
        # the true time span is untouched
        assert a.end_sec == 0.01

    def test_widened_segment_stays_inside_bounds(self):
        log = [_u(1, "A", "x", 0, 99.99), _u(2, "B", "y", 99.99, 100)]
        timeline = build_timeline(log, options=TimelineOptions(min_width_pct=5.0, merge_gap_sec=0))
        b = timeline.lanes[1].segments[0]
        assert b.width_pct == 5.0
        assert b.start_pct + b.width_pct <= 100.0 + 1e-9

    def test_missing_end_gets_synthetic_duration(self):
        timeline = build_timeline(
            [_u(1, "A", "x", 10)],
            options=TimelineOptions(synthetic_duration_sec=0.5),
        )
        seg = timeline.lanes[0].segments[0]
        assert seg.end_sec == 10.5
        assert (seg.start_pct, seg.width_pct) == (0.0, 100.0)

    def test_consecutive_same_speaker_segments_merge(self):
        log = [_u(1, "A", "first", 0, 1), _u(2, "A", "second", 1.2, 2), _u(3, "B", "x", 5, 6)]
        timeline = build_timeline(log, options=TimelineOptions(merge_gap_sec=0.5))
        a_segments = timeline.lanes[0].segments
        assert len(a_segments) == 1
        assert a_segments[0].end_sec == 2
        assert a_segments[0].text == "first second"

    def test_distant_same_speaker_segments_stay_apart(self):
        log = [_u(1, "A", "first", 0, 1), _u(2, "A", "second", 5, 6)]
        timeline = build_timeline(log, options=TimelineOptions(merge_gap_sec=0.5))
        assert len(timeline.lanes[0].segments) == 2


class TestSilenceOverlay:
    def test_silence_normalized_to_span(self):
        log = [_u(1, "A", "a", 0, 1), _u(2, "B", "b", 21, 22)]
        silences = [SilencePeriod(from_sec=1, to_sec=21, duration_sec=20)]
        timeline = build_timeline(log, silences)
        overlay = timeline.silences[0]
        assert overlay.start_pct == pytest.approx(100 / 22, abs=1e-3)
        assert overlay.width_pct == pytest.approx(2000 / 22, abs=1e-3)

    def test_silence_clipped(self):
        log = [_u(1, "A", "a", 10, 20)]
        silences = [SilencePeriod(from_sec=0, to_sec=50, duration_sec=50)]
        overlay = build_timeline(log, silences).silences[0]
        assert overlay.start_pct == 0.0
        assert overlay.width_pct == 100.0


class TestExcerpt:
    def test_short_text_unchanged(self):
        assert excerpt("hello  world", 20) == "hello world"

    def test_long_text_truncated(self):
        text = "word " * 50
        cut = excerpt(text, 20)
        assert len(cut) <= 20
        assert cut.endswith("…")

    def test_segment_text_bounded(self):
        log = [_u(1, "A", "blah " * 100, 0, 10)]
        timeline = build_timeline(log, options=TimelineOptions(excerpt_chars=30))
        assert len(timeline.lanes[0].segments[0].text) <= 30
