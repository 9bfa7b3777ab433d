"""
Unit tests for engine.snapshot.
Tests the assembled ParticipationSnapshot end to end: reference
scenarios, idempotence, degradation and per-mode thresholds.
"""
import pytest
from pydantic import ValidationError

from meetpulse.config import Settings
from meetpulse.engine.snapshot import EngineConfig, ParticipationEngine
from meetpulse.models.participation import BalanceStatus, SnapshotMode
from meetpulse.models.session import Utterance


def _u(idx, speaker, text, start=None, end=None):
    return Utterance(id=str(idx), speaker_name=speaker, text=text, start_sec=start, end_sec=end)


@pytest.fixture
def engine():
    return ParticipationEngine()


class TestScenarios:
    def test_scenario_a_quick_reply(self, engine):
        log = [
            _u(1, "Alice", "hello there", 0, 1),
            _u(2, "Bob", "hi Alice how are you", 1.2, 3),
        ]
        snap = engine.compute(log, session_id="bot-a")
        assert snap.session_id == "bot-a"
        assert snap.speaking_share == pytest.approx({"Alice": 2 / 7, "Bob": 5 / 7})
        assert snap.dominant_speaker == "Bob"
        assert snap.interruptions == 1
        assert snap.interruptions_by_speaker == {"Bob": 1}
        assert snap.total_turns == 2
        assert snap.transitions == 1
        assert snap.duration_sec == 3
        assert snap.turn_taking_per_min == pytest.approx(20.0)
        assert snap.timing_available is True

    def test_scenario_b_silence(self, engine):
        log = [_u(1, "Alice", "a", 0, 1), _u(2, "Bob", "b", 21, 22)]
        snap = engine.compute(log)
        assert len(snap.silences) == 1
        assert snap.silences[0].duration_sec == 20
        assert snap.longest_silence == snap.silences[0]
        assert snap.timeline.silences[0].from_sec == 1

    def test_scenario_c_single_speaker(self, engine):
        log = [_u(1, "Alice", "I will just keep talking"), _u(2, "Alice", "and talking")]
        snap = engine.compute(log)
        assert snap.underrepresented == []
        assert snap.dominant_share == 1.0
        assert snap.balance.status == BalanceStatus.BALANCED

    def test_scenario_c_with_silent_participant(self, engine):
        log = [_u(1, "Alice", "I will just keep talking")]
        snap = engine.compute(log, participants=["Alice", "Bob"])
        assert snap.underrepresented == []
        assert snap.silent_participants == ["Bob"]
        assert snap.balance.status == BalanceStatus.NEEDS_ATTENTION


class TestProperties:
    def test_shares_sum_to_one(self, engine):
        log = [_u(i, f"S{i % 3}", "w " * (i + 1)) for i in range(12)]
        snap = engine.compute(log)
        assert sum(snap.speaking_share.values()) == pytest.approx(1.0)

    def test_no_words_no_shares(self, engine):
        snap = engine.compute([_u(1, "Alice", "   ")])
        assert snap.speaking_share == {}
        assert snap.total_words == 0
        assert snap.total_turns == 0
        assert snap.dominant_speaker is None
        assert snap.window.dominant_speaker is None
        assert snap.balance.status == BalanceStatus.BALANCED

    def test_idempotent(self, engine):
        log = [
            _u(1, "Alice", "hello there", 0, 1),
            _u(2, "Bob", "hi Alice how are you", 1.2, 3),
            _u(3, "Carol", "sorry I was muted", 30, 32),
        ]
        first = engine.compute(log, session_id="s", participants=["Dan"])
        second = engine.compute(log, session_id="s", participants=["Dan"])
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_degradation_without_timestamps(self, engine):
        log = [_u(1, "Alice", "hello there"), _u(2, "Bob", "hi Alice how are you")]
        snap = engine.compute(log)
        assert snap.duration_sec is None
        assert snap.turn_taking_per_min is None
        assert snap.silences == []
        assert snap.longest_silence is None
        assert snap.interruptions == 0
        assert snap.timeline is None
        assert snap.timing_available is False
        assert snap.speaking_share != {}

    def test_appending_never_shrinks_speaker_count(self, engine):
        log = [_u(1, "Alice", "hello"), _u(2, "Bob", "hi there")]
        before = engine.compute(log)
        after = engine.compute(log + [_u(3, "Bob", "more words")])
        assert after.word_counts["Bob"] >= before.word_counts["Bob"]
        assert after.total_words >= before.total_words

    def test_snapshot_is_frozen(self, engine):
        snap = engine.compute([_u(1, "Alice", "hi")])
        with pytest.raises(ValidationError):
            snap.total_words = 99

    def test_accepts_any_iterable(self, engine):
        snap = engine.compute(u for u in [_u(1, "Alice", "hi"), _u(2, "Bob", "yo")])
        assert snap.total_turns == 2


class TestModes:
    def _log(self):
        # Bob holds 15% of the words
        return [
            _u(1, "Alice", " ".join(["w"] * 85)),
            _u(2, "Bob", " ".join(["w"] * 15)),
        ]

    def test_live_threshold_flags_bob(self, engine):
        snap = engine.compute(self._log(), mode=SnapshotMode.LIVE)
        assert [s.name for s in snap.underrepresented] == ["Bob"]
        assert snap.mode == SnapshotMode.LIVE

    def test_summary_threshold_does_not(self, engine):
        snap = engine.compute(self._log(), mode=SnapshotMode.SUMMARY)
        assert snap.underrepresented == []

    def test_window_size_override(self, engine):
        log = [_u(1, "Alice", "a b c d e f")] + [_u(i, "Bob", "x") for i in range(2, 5)]
        assert engine.compute(log, window_size=2).window.dominant_speaker == "Bob"
        assert engine.compute(log, window_size=0).window.dominant_speaker == "Alice"

    def test_config_from_settings(self):
        settings = Settings(
            live_underrepresented_threshold=0.25,
            summary_underrepresented_threshold=0.05,
            silence_min_sec=30,
        )
        live = EngineConfig.from_settings(settings, SnapshotMode.LIVE)
        summary = EngineConfig.from_settings(settings, SnapshotMode.SUMMARY)
        assert live.underrepresented_share_threshold == 0.25
        assert summary.underrepresented_share_threshold == 0.05
        assert live.silence_min_sec == 30

    def test_engine_from_settings(self):
        engine = ParticipationEngine.from_settings(Settings(silence_min_sec=5))
        log = [_u(1, "Alice", "a", 0, 1), _u(2, "Bob", "b", 8, 9)]
        assert len(engine.compute(log).silences) == 1


class TestPartialTiming:
    def test_untimed_turns_do_not_inflate_rate(self, engine):
        log = [_u(1, "Alice", "hello there", 0, 1), _u(2, "Bob", "hi Alice how are you", 1.2, 3)]
        log += [_u(i, name, "more words") for i, name in enumerate(["Alice", "Bob"] * 5, start=3)]
        snap = engine.compute(log)
        assert snap.timing_available is True
        assert snap.transitions == 11
        assert snap.duration_sec == 3
        assert snap.turn_taking_per_min == pytest.approx(20.0)
        assert snap.interruptions == 1
        assert snap.silences == []

    def test_open_ended_turn_is_not_silence(self, engine):
        log = [_u(1, "Alice", " ".join(["w"] * 60), 0), _u(2, "Bob", "ok", 20, 21)]
        snap = engine.compute(log)
        assert snap.silences == []
        assert snap.longest_silence is None
        assert snap.total_silence_sec == 0
        assert snap.duration_sec == 21
