"""Detect speakers who keep repeating the same phrase."""

import re
from collections.abc import Sequence

from meetpulse.models.participation import RepetitionPattern
from meetpulse.models.session import Utterance

_PUNCTUATION = re.compile(r"[^\w\s']+")


def normalize_phrase(text: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    return " ".join(_PUNCTUATION.sub(" ", text.lower()).split())


def detect_repetitions(
    utterances: Sequence[Utterance],
    min_count: int = 3,
) -> dict[str, RepetitionPattern]:
    """
    Return each speaker's most repeated utterance, if said at least ``min_count`` times.

    Ties go to the phrase the speaker said first.
    """
    phrases: dict[str, dict[str, int]] = {}
    for utterance in utterances:
        phrase = normalize_phrase(utterance.text)
        if not phrase:
            continue
        counts = phrases.setdefault(utterance.speaker_name, {})
        counts[phrase] = counts.get(phrase, 0) + 1

    patterns: dict[str, RepetitionPattern] = {}
    for speaker, counts in phrases.items():
        best_phrase, best_count = "", 0
        for phrase, count in counts.items():
            if count > best_count:
                best_phrase, best_count = phrase, count
        if best_count >= min_count:
            patterns[speaker] = RepetitionPattern(phrase=best_phrase, count=best_count)
    return patterns
