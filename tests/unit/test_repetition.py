from meetpulse.engine.repetition import detect_repetitions, normalize_phrase
from meetpulse.models.session import Utterance


def _u(idx, speaker, text):
    return Utterance(id=str(idx), speaker_name=speaker, text=text)


def test_normalize_phrase_strips_case_and_punctuation():
    assert normalize_phrase("  Can you HEAR me?!  ") == "can you hear me"
    assert normalize_phrase("...") == ""


def test_reports_phrase_repeated_enough_times():
    log = [
        _u(1, "Alice", "Can you hear me?"),
        _u(2, "Bob", "yes"),
        _u(3, "Alice", "can you hear me"),
        _u(4, "Alice", "Can you hear me!"),
    ]
    patterns = detect_repetitions(log, min_count=3)
    assert set(patterns) == {"Alice"}
    assert patterns["Alice"].phrase == "can you hear me"
    assert patterns["Alice"].count == 3


def test_below_min_count_is_ignored():
    log = [_u(1, "Alice", "ok"), _u(2, "Alice", "ok")]
    assert detect_repetitions(log, min_count=3) == {}


def test_tie_keeps_first_phrase():
    log = [_u(1, "Bob", "right"), _u(2, "Bob", "sure"), _u(3, "Bob", "sure"), _u(4, "Bob", "right")]
    assert detect_repetitions(log, min_count=2)["Bob"].phrase == "right"
