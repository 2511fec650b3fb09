# -*- coding: utf-8 -*-
"""
Structural similarity fallback for heavily reworded pastes.

When content words were rewritten but the passage kept its shape, a document
window with the paste's word count is scored on:
- character length closeness (weight 0.4)
- punctuation pattern, exact count of . ! ? , : ; (weight 0.3)
- word count closeness (weight 0.3)
"""

import logging
from itertools import accumulate
from typing import Optional

from .config import ReconcileConfig
from .fuzzy_matcher import WindowMatch
from .normalizer import DocumentIndex

logger = logging.getLogger(__name__)

PUNCTUATION_MARKS = frozenset(".!?,:;")


def count_punctuation(text: str) -> int:
    """Count sentence and clause punctuation marks."""
    return sum(1 for ch in text if ch in PUNCTUATION_MARKS)


def closeness(a: int, b: int) -> float:
    """1 - |a - b| / max(a, b); two zeros are identical."""
    longest = max(a, b)
    if not longest:
        return 1.0
    return 1.0 - abs(a - b) / longest


def structural_score(
    paste_length: int,
    paste_punctuation: int,
    paste_word_count: int,
    window_length: int,
    window_punctuation: int,
    window_word_count: int,
    weights: tuple[float, float, float] = (0.4, 0.3, 0.3),
) -> float:
    """Weighted structural similarity of a paste and a document window."""
    length_weight, punctuation_weight, word_weight = weights
    punctuation_similarity = 1.0 if paste_punctuation == window_punctuation else 0.5
    return (
        length_weight * closeness(paste_length, window_length)
        + punctuation_weight * punctuation_similarity
        + word_weight * closeness(paste_word_count, window_word_count)
    )


def find_structural_window(
    fragment: str,
    paste_word_count: int,
    index: DocumentIndex,
    config: ReconcileConfig,
) -> Optional[WindowMatch]:
    """
    Scan paste-length document windows for a structurally similar passage.

    Args:
        fragment: Normalized paste text.
        paste_word_count: Number of words in ``fragment``.
        index: Document lookup structures.
        config: Threshold, weights and selection policy.

    Returns:
        The accepted window, or None.
    """
    words = index.words
    size = paste_word_count
    if not size or len(words) < size:
        return None

    text = index.text
    # Punctuation prefix sums so each window is scored in constant time
    punct_prefix = [0, *accumulate(1 if ch in PUNCTUATION_MARKS else 0 for ch in text)]
    paste_length = len(fragment)
    paste_punctuation = count_punctuation(fragment)

    best: Optional[WindowMatch] = None
    for first in range(len(words) - size + 1):
        start = words[first].start
        end = words[first + size - 1].end
        score = structural_score(
            paste_length,
            paste_punctuation,
            size,
            end - start,
            punct_prefix[end] - punct_prefix[start],
            size,
            config.structural_weights,
        )
        if score < config.structural_threshold:
            continue
        match = WindowMatch(first, first + size, score)
        if not config.uses_best_match:
            return match
        if best is None or score > best.score:
            best = match
    if best is not None:
        logger.debug(f"Structural window accepted with score {best.score:.2f}")
    return best
