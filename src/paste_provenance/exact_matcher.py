# -*- coding: utf-8 -*-
"""
Exact (literal) matching of a pasted fragment.

Two lookups are tried in order:
1. Case-insensitive containment in the clean text
2. A markup-tolerant pattern over the raw markup, where the fragment's words
   may be separated by any inline tags as long as real whitespace remains

A raw-pattern hit is mapped back to clean offsets and verified word for word
against the fragment before it is accepted.
"""

import logging
import re
from typing import Iterable, Optional, Sequence

from .normalizer import DocumentIndex, fold_case, normalize_fragment

logger = logging.getLogger(__name__)

# Longest fragment (in words) turned into a tolerant pattern
MAX_PATTERN_WORDS = 400

_TAG = r"<[^<>]*>"
_SPACE = r"(?:\s|&nbsp;|&#160;)"

# Separator between two words: tags up to the first whitespace token, then
# any mix of whitespace and tags. Only one way to split a whitespace run, so
# a failed match backtracks linearly.
TOLERANT_SEPARATOR = rf"(?:{_TAG})*{_SPACE}(?:{_SPACE}|{_TAG})*"


def build_tolerant_pattern(fragment: str) -> Optional[re.Pattern]:
    """
    Build a case-insensitive pattern matching the fragment across inline markup.

    Args:
        fragment: Normalized fragment text.

    Returns:
        Compiled pattern, or None if no safe pattern can be built.
    """
    words = fragment.split()
    if not words:
        return None
    if len(words) > MAX_PATTERN_WORDS:
        logger.debug(f"Fragment too long for tolerant pattern ({len(words)} words)")
        return None
    pattern = TOLERANT_SEPARATOR.join(re.escape(word) for word in words)
    try:
        return re.compile(pattern, re.IGNORECASE)
    except (re.error, OverflowError, RecursionError) as e:
        logger.debug(f"Could not build tolerant pattern: {e}")
        return None


def _overlaps_any(start: int, end: int, claimed: Iterable[tuple[int, int]]) -> bool:
    return any(start < c_end and c_start < end for c_start, c_end in claimed)


def find_all_clean(fragment: str, index: DocumentIndex) -> list[tuple[int, int]]:
    """All non-overlapping case-insensitive occurrences in clean text."""
    needle = fold_case(fragment)
    if not needle:
        return []
    hits = []
    pos = index.folded.find(needle)
    while pos != -1:
        hits.append((pos, pos + len(needle)))
        pos = index.folded.find(needle, pos + len(needle))
    return hits


def find_all_raw(fragment: str, index: DocumentIndex) -> list[tuple[int, int]]:
    """
    Occurrences found with the markup-tolerant pattern, in clean offsets.

    Hits whose clean projection does not read as the fragment (e.g. matches
    inside attribute values) are discarded.
    """
    pattern = build_tolerant_pattern(fragment)
    if pattern is None:
        return []
    document = index.document
    expected = fold_case(fragment).split()
    hits = []
    for match in pattern.finditer(document.raw):
        start, end = document.position_map.to_clean(match.start(), match.end())
        if end <= start:
            continue
        if fold_case(normalize_fragment(document.text[start:end])).split() == expected:
            hits.append((start, end))
    return hits


def find_exact(
    fragment: str,
    index: DocumentIndex,
    claimed: Sequence[tuple[int, int]] = (),
) -> Optional[tuple[int, int]]:
    """
    Locate a pasted fragment literally in the document.

    When the fragment occurs several times, the first occurrence not already
    claimed by an earlier paste event wins, so repeated pastes of the same
    text claim successive occurrences.

    Args:
        fragment: Normalized fragment text.
        index: Document lookup structures.
        claimed: Clean ranges already claimed by earlier exact matches.

    Returns:
        Clean (start, end) of the chosen occurrence, or None.
    """
    hits = find_all_clean(fragment, index)
    if not hits:
        hits = find_all_raw(fragment, index)
        if hits:
            logger.debug("Exact match found only through markup-tolerant pattern")
    if not hits:
        return None
    for start, end in hits:
        if not _overlaps_any(start, end, claimed):
            return start, end
    return hits[0]
