"""Resolve spoken answers to one of a question's options."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from typing import Optional, Sequence

DEFAULT_THRESHOLD = 0.7


@dataclass(frozen=True)
class Match:
    option: str
    score: float


def normalize_text(text: str) -> str:
    """Normalize text for comparison: strip and lowercase."""
    return text.strip().lower()


def _bigrams(text: str) -> Counter:
    return Counter(text[i : i + 2] for i in range(len(text) - 1))


def compare_two_strings(first: str, second: str) -> float:
    """Dice coefficient over character bigrams, in [0, 1].

    Whitespace is ignored. Identical strings score 1; anything shorter than
    two characters cannot share a bigram and scores 0.
    """
    first = re.sub(r"\s+", "", first)
    second = re.sub(r"\s+", "", second)

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    overlap = sum((_bigrams(first) & _bigrams(second)).values())
    return (2.0 * overlap) / (len(first) + len(second) - 2)


def score_options(utterance: str, options: Sequence[str]) -> list[float]:
    spoken = normalize_text(utterance)
    return [compare_two_strings(spoken, normalize_text(option)) for option in options]


def find_best_match(
    utterance: str,
    options: Sequence[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[Match]:
    """Pick the option closest to ``utterance``.

    Returns None when nothing reaches ``threshold``; the caller should
    re-prompt instead of guessing. Ties go to the earliest option.
    """
    if not normalize_text(utterance):
        return None

    best: Optional[Match] = None
    for option, score in zip(options, score_options(utterance, options)):
        if best is None or score > best.score:
            best = Match(option=option, score=score)

    if best is not None and best.score >= threshold:
        return best
    return None
