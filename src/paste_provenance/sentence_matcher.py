# -*- coding: utf-8 -*-
"""
Sentence- and phrase-level matching for partially reworded pastes.

SENTENCE SIMILARITY:
Each paste sentence is compared position by position with every document
sentence using the same word equivalence as the fuzzy matcher.

PHRASE CONTAINMENT:
Fixed word windows of the paste (6 words, then 3) are searched literally in
the document. A 6-word hit is reported as a "chunk", a shorter one as a
"phrase".

A paste word covered by an accepted sentence or phrase is not evaluated
again by a shorter window, so each sub-unit is credited to one method.
"""

import logging
from typing import NamedTuple, Optional, Sequence

from .config import ReconcileConfig
from .fuzzy_matcher import sequence_similarity
from .models import Interval, MatchMethod
from .normalizer import DocumentIndex, WordToken, fold_case, split_sentences

logger = logging.getLogger(__name__)

# Phrases this long or longer are reported as chunks
CHUNK_MIN_WORDS = 6


class SubunitMatch(NamedTuple):
    """An accepted sub-unit: document interval plus the paste words it covers."""
    interval: Interval
    paste_words: range


def _best_sentence(
    keys: Sequence[str],
    index: DocumentIndex,
    config: ReconcileConfig,
) -> Optional[tuple[int, float]]:
    best: Optional[tuple[int, float]] = None
    for position, sentence in enumerate(index.sentences):
        if len(sentence.text) <= config.min_subunit_length:
            continue
        score = sequence_similarity(keys, index.sentence_keys[position], config.max_word_edit_distance)
        if score < config.sentence_threshold:
            continue
        if not config.uses_best_match:
            return position, score
        if best is None or score > best[1]:
            best = (position, score)
    return best


def match_sentences(
    fragment: str,
    paste_words: Sequence[WordToken],
    index: DocumentIndex,
    config: ReconcileConfig,
    event_index: int = 0,
) -> list[SubunitMatch]:
    """
    Match each paste sentence against the document sentences.

    Args:
        fragment: Normalized paste text the words were taken from.
        paste_words: Tokenized ``fragment``.
        index: Document lookup structures.
        config: Sentence threshold, sub-unit gate and policy.
        event_index: Index of the paste event, recorded on each interval.

    Returns:
        One SubunitMatch per accepted paste sentence.
    """
    matches = []
    for sentence in split_sentences(fragment):
        if len(sentence.text) <= config.min_subunit_length:
            continue
        word_range = range(
            next((i for i, w in enumerate(paste_words) if w.start >= sentence.start), len(paste_words)),
            next((i for i, w in enumerate(paste_words) if w.start >= sentence.end), len(paste_words)),
        )
        keys = [paste_words[i].key for i in word_range]
        if not keys:
            continue
        found = _best_sentence(keys, index, config)
        if found is None:
            continue
        position, score = found
        target = index.sentences[position]
        logger.debug(f"Sentence match ({score:.2f}): {target.text[:50]}")
        matches.append(SubunitMatch(
            interval=Interval(target.start, target.end, MatchMethod.SENTENCE, score, event_index),
            paste_words=word_range,
        ))
    return matches


def _find_on_word_boundary(needle: str, haystack: str) -> int:
    """First occurrence of needle not embedded inside a longer word."""
    pos = haystack.find(needle)
    while pos != -1:
        end = pos + len(needle)
        before_ok = pos == 0 or not haystack[pos - 1].isalnum()
        after_ok = end == len(haystack) or not haystack[end].isalnum()
        if before_ok and after_ok:
            return pos
        pos = haystack.find(needle, pos + 1)
    return -1


def match_phrases(
    fragment: str,
    paste_words: Sequence[WordToken],
    index: DocumentIndex,
    config: ReconcileConfig,
    covered: Optional[set[int]] = None,
    event_index: int = 0,
) -> list[SubunitMatch]:
    """
    Search fixed-size word windows of the paste literally in the document.

    Args:
        fragment: Normalized paste text the words were taken from.
        paste_words: Tokenized ``fragment``.
        index: Document lookup structures.
        config: Phrase sizes, sub-unit gate and confidence scale.
        covered: Paste word indices already credited to another sub-unit.
            Updated in place with the words of accepted phrases.
        event_index: Index of the paste event, recorded on each interval.

    Returns:
        One SubunitMatch per accepted phrase window.
    """
    covered = covered if covered is not None else set()
    matches = []
    for size in config.phrase_sizes:
        if size > len(paste_words):
            continue
        method = MatchMethod.CHUNK if size >= CHUNK_MIN_WORDS else MatchMethod.PHRASE
        confidence = min(1.0, size * config.phrase_confidence_per_word)
        for first in range(len(paste_words) - size + 1):
            word_range = range(first, first + size)
            if all(i in covered for i in word_range):
                continue
            phrase = fragment[paste_words[first].start:paste_words[first + size - 1].end]
            if len(phrase) <= config.min_subunit_length:
                continue
            pos = _find_on_word_boundary(fold_case(phrase), index.folded)
            if pos == -1:
                continue
            covered.update(word_range)
            matches.append(SubunitMatch(
                interval=Interval(pos, pos + len(phrase), method, confidence, event_index),
                paste_words=word_range,
            ))
    if matches:
        logger.debug(f"Phrase containment accepted {len(matches)} windows")
    return matches
