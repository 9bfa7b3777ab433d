"""
Whole-call word-share metrics.

Word counts are keyed by ``speaker_name`` in first-appearance order.
That order is also the tie-break for the dominant speaker: when two
speakers have the same share, the one heard first wins.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from meetpulse.models.participation import SpeakerShare
from meetpulse.models.session import Utterance


@dataclass(frozen=True)
class AggregateMetrics:
    """Word-based participation for the full log."""

    word_counts: dict[str, int] = field(default_factory=dict)
    total_words: int = 0
    speaking_share: dict[str, float] = field(default_factory=dict)
    dominant_speaker: str | None = None
    dominant_share: float | None = None
    underrepresented: list[SpeakerShare] = field(default_factory=list)


def count_words(utterances: Iterable[Utterance]) -> dict[str, int]:
    """Sum word counts per speaker. Utterances with no tokens are skipped."""
    counts: dict[str, int] = {}
    for utterance in utterances:
        words = utterance.word_count
        if words == 0:
            continue
        counts[utterance.speaker_name] = counts.get(utterance.speaker_name, 0) + words
    return counts


def word_shares(counts: dict[str, int]) -> dict[str, float]:
    """Each speaker's fraction of the total. Empty when nobody said anything."""
    total = sum(counts.values())
    if total == 0:
        return {}
    return {speaker: words / total for speaker, words in counts.items()}


def dominant(shares: dict[str, float]) -> tuple[str | None, float | None]:
    """Speaker with the largest share; the first one seen wins ties."""
    best_speaker: str | None = None
    best_share: float | None = None
    for speaker, share in shares.items():
        if best_share is None or share > best_share:
            best_speaker, best_share = speaker, share
    return best_speaker, best_share


def compute_aggregate(
    utterances: Sequence[Utterance],
    underrepresented_threshold: float,
) -> AggregateMetrics:
    """
    Compute whole-call word counts, shares and the dominant speaker.

    Args:
        utterances: The utterance log, in arrival order.
        underrepresented_threshold: Speakers whose share falls strictly
            below this value are reported as underrepresented. Only
            applied when at least two speakers have spoken, since a lone
            speaker has nobody to be underrepresented against.

    Returns:
        AggregateMetrics. All fields are empty / ``None`` for a log with
        no words.
    """
    counts = count_words(utterances)
    shares = word_shares(counts)
    dominant_speaker, dominant_share = dominant(shares)

    underrepresented: list[SpeakerShare] = []
    if len(shares) >= 2:
        underrepresented = [
            SpeakerShare(name=speaker, word_count=counts[speaker], share=share)
            for speaker, share in shares.items()
            if share < underrepresented_threshold
        ]

    return AggregateMetrics(
        word_counts=counts,
        total_words=sum(counts.values()),
        speaking_share=shares,
        dominant_speaker=dominant_speaker,
        dominant_share=dominant_share,
        underrepresented=underrepresented,
    )
