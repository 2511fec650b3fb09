# -*- coding: utf-8 -*-
"""
Spell-correction tolerant matching.

Students often fix a few typos after pasting. Two passes catch that:
1. Spell-corrected containment: known misspellings in the paste are replaced
   through the injected correction table and the result is searched literally.
2. Word-window comparison: a window as long as the paste slides over the
   document words; two words are equivalent when their Levenshtein distance
   is within the configured limit.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from .config import ReconcileConfig
from .exact_matcher import find_all_clean
from .normalizer import DocumentIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowMatch:
    """A document word window [first_word, last_word) and its score."""
    first_word: int
    last_word: int
    score: float


def words_equivalent(a: str, b: str, max_distance: int = 2) -> bool:
    """
    Check whether two word keys are equal up to a small edit distance.

    Args:
        a: First word key.
        b: Second word key.
        max_distance: Largest Levenshtein distance still counted as equal.

    Returns:
        True if identical or within ``max_distance`` edits.
    """
    if a == b:
        return True
    if abs(len(a) - len(b)) > max_distance:
        return False
    return Levenshtein.distance(a, b, score_cutoff=max_distance) <= max_distance


def sequence_similarity(a: Sequence[str], b: Sequence[str], max_distance: int = 2) -> float:
    """
    Position-by-position word equivalence of two word sequences.

    Args:
        a: Word keys of the first sequence.
        b: Word keys of the second sequence.
        max_distance: Edit distance tolerated per word.

    Returns:
        Equivalent positions divided by the longer sequence length.
    """
    longest = max(len(a), len(b))
    if not longest:
        return 0.0
    matches = sum(1 for x, y in zip(a, b) if words_equivalent(x, y, max_distance))
    return matches / longest


def apply_corrections(text: str, corrections: Mapping[str, str]) -> str:
    """Replace whole-word misspellings using the correction table."""
    if not text or not corrections:
        return text
    pattern = re.compile(
        r"\b(?:" + "|".join(re.escape(k) for k in sorted(corrections, key=len, reverse=True)) + r")\b",
        re.IGNORECASE,
    )
    return pattern.sub(lambda m: corrections.get(m.group().lower(), m.group()), text)


def find_spell_corrected(
    fragment: str,
    index: DocumentIndex,
    corrections: Mapping[str, str],
) -> Optional[tuple[int, int]]:
    """
    Search for the fragment after correcting known misspellings.

    Returns:
        Clean (start, end) of the first occurrence, or None when the table
        changes nothing or the corrected text is absent.
    """
    corrected = apply_corrections(fragment, corrections)
    if corrected == fragment:
        return None
    hits = find_all_clean(corrected, index)
    if hits:
        logger.debug(f"Spell-corrected match: {corrected[:50]}")
        return hits[0]
    return None


def find_fuzzy_window(
    paste_keys: Sequence[str],
    index: DocumentIndex,
    config: ReconcileConfig,
) -> Optional[WindowMatch]:
    """
    Slide a paste-length window over the document and compare word by word.

    Args:
        paste_keys: Word keys of the pasted fragment.
        index: Document lookup structures.
        config: Threshold, edit distance and selection policy.

    Returns:
        The accepted window, or None if no window reaches the threshold.
    """
    size = len(paste_keys)
    doc_keys = index.word_keys
    if not size or len(doc_keys) < size:
        return None

    # A window fails as soon as its mismatches exceed this budget
    mismatch_budget = size - math.ceil(round(config.fuzzy_threshold * size, 9))
    best: Optional[WindowMatch] = None

    for first in range(len(doc_keys) - size + 1):
        mismatches = 0
        for offset, key in enumerate(paste_keys):
            if not words_equivalent(key, doc_keys[first + offset], config.max_word_edit_distance):
                mismatches += 1
                if mismatches > mismatch_budget:
                    break
        else:
            score = (size - mismatches) / size
            if score < config.fuzzy_threshold:
                continue
            match = WindowMatch(first, first + size, score)
            if not config.uses_best_match:
                return match
            if best is None or score > best.score:
                best = match
                if score == 1.0:
                    break
    return best
