# -*- coding: utf-8 -*-
"""
Function-word position fallback.

Reworded passages often keep their grammatical skeleton. A document window
with the paste's word count is accepted when enough closed-class words
("the", "and", "of", ...) sit in the same slots as in the paste. This is the
weakest signal in the cascade and only runs when everything else failed.
"""

from typing import Optional, Sequence

from .config import ReconcileConfig
from .fuzzy_matcher import WindowMatch
from .normalizer import DocumentIndex


def aligned_function_words(
    paste_keys: Sequence[str],
    window_keys: Sequence[str],
    function_words: frozenset[str],
) -> int:
    """Count slots holding the same function word in both sequences."""
    return sum(
        1 for a, b in zip(paste_keys, window_keys)
        if a in function_words and a == b
    )


def find_positional_window(
    paste_keys: Sequence[str],
    index: DocumentIndex,
    config: ReconcileConfig,
) -> Optional[WindowMatch]:
    """
    Scan paste-length document windows for a matching function-word pattern.

    A window is accepted when the aligned count reaches
    ``positional_min_matches`` and exceeds ``positional_min_ratio`` of the
    window length. The score is the aligned share of the window.

    Args:
        paste_keys: Word keys of the pasted fragment.
        index: Document lookup structures.
        config: Function words, minimums and selection policy.

    Returns:
        The accepted window, or None.
    """
    size = len(paste_keys)
    doc_keys = index.word_keys
    if not size or len(doc_keys) < size:
        return None

    slots = [(i, key) for i, key in enumerate(paste_keys) if key in config.function_words]
    if len(slots) < config.positional_min_matches:
        return None

    best: Optional[WindowMatch] = None
    for first in range(len(doc_keys) - size + 1):
        aligned = sum(1 for i, key in slots if doc_keys[first + i] == key)
        if aligned < config.positional_min_matches or aligned <= config.positional_min_ratio * size:
            continue
        match = WindowMatch(first, first + size, aligned / size)
        if not config.uses_best_match:
            return match
        if best is None or match.score > best.score:
            best = match
    return best
