# -*- coding: utf-8 -*-
"""
Provenance reconciliation engine.

Given the current document markup and the paste log, finds which parts of the
document still correspond to pasted text and wraps them in highlight spans.

Per paste event the matchers run in fixed priority order:
1. Exact containment (clean text, then markup-tolerant raw pattern)
2. Spell-corrected containment, then fuzzy word windows
3. Sentence similarity and 6/3-word phrase containment
4. Structural window scan
5. Function-word position scan

Exact and fuzzy hits on the full text end the cascade for that event.
Sentences and phrases are evaluated as independent sub-units. The structural
and positional fallbacks only run when nothing else matched.

All intervals from all events are merged once by method priority and
annotated in a single pass. The engine keeps no state between calls.
"""

import logging
from typing import Any, Iterable, Optional

from .annotator import annotate
from .config import ReconcileConfig
from .exact_matcher import find_exact
from .fuzzy_matcher import WindowMatch, find_fuzzy_window, find_spell_corrected
from .intervals import merge_intervals
from .models import (
    EventOutcome,
    EventStatus,
    Interval,
    MatchCandidate,
    MatchMethod,
    PasteEvent,
    ReconcileReport,
    coerce_paste_events,
)
from .normalizer import DocumentIndex, normalize_document, normalize_fragment, tokenize_words
from .positional_matcher import find_positional_window
from .sentence_matcher import match_phrases, match_sentences
from .structural_matcher import find_structural_window

logger = logging.getLogger(__name__)

SPELL_CORRECTED_CONFIDENCE = 0.95


def _window_interval(
    window: WindowMatch,
    index: DocumentIndex,
    method: MatchMethod,
    event_index: int,
) -> Interval:
    start = index.words[window.first_word].start
    end = index.words[window.last_word - 1].end
    return Interval(start, end, method, window.score, event_index)


class ProvenanceReconciler:
    """
    Reconciles a paste log against the current document.

    Example:
        reconciler = ProvenanceReconciler(ReconcileConfig.conservative())
        report = reconciler.reconcile_with_report(markup, paste_log)
        print(report.get_summary())
    """

    def __init__(self, config: Optional[ReconcileConfig] = None):
        self.config = config or ReconcileConfig()

    def match_event(
        self,
        event_index: int,
        event: Optional[PasteEvent],
        index: DocumentIndex,
        claimed: list[tuple[int, int]],
    ) -> tuple[EventOutcome, list[Interval]]:
        """
        Run the matcher cascade for one paste event.

        Args:
            event_index: Position of the event in the paste log.
            event: The event, or None for an unusable log entry.
            index: Document lookup structures.
            claimed: Clean ranges claimed by earlier exact matches; updated.

        Returns:
            Tuple of (outcome, accepted intervals).
        """
        config = self.config
        fragment = normalize_fragment(event.text) if event else ""
        preview = fragment[:60]

        if not fragment:
            return EventOutcome(event_index, EventStatus.EMPTY), []
        if len(fragment) < config.min_paste_length:
            logger.debug(f"Skipping short paste {event_index}: {preview!r}")
            return EventOutcome(event_index, EventStatus.BELOW_MIN_LENGTH, preview), []

        intervals: list[Interval] = []

        hit = find_exact(fragment, index, claimed)
        if hit:
            claimed.append(hit)
            intervals.append(Interval(hit[0], hit[1], MatchMethod.EXACT, 1.0, event_index))
            return self._outcome(event_index, preview, intervals, index), intervals

        hit = find_spell_corrected(fragment, index, config.corrections)
        if hit:
            intervals.append(Interval(hit[0], hit[1], MatchMethod.FUZZY, SPELL_CORRECTED_CONFIDENCE, event_index))
            return self._outcome(event_index, preview, intervals, index), intervals

        paste_words = tokenize_words(fragment)
        paste_keys = [w.key for w in paste_words]

        window = find_fuzzy_window(paste_keys, index, config)
        if window:
            intervals.append(_window_interval(window, index, MatchMethod.FUZZY, event_index))
            return self._outcome(event_index, preview, intervals, index), intervals

        covered: set[int] = set()
        for match in match_sentences(fragment, paste_words, index, config, event_index):
            covered.update(match.paste_words)
            intervals.append(match.interval)
        for match in match_phrases(fragment, paste_words, index, config, covered, event_index):
            intervals.append(match.interval)
        if intervals:
            return self._outcome(event_index, preview, intervals, index), intervals

        if config.enable_structural:
            window = find_structural_window(fragment, len(paste_words), index, config)
            if window:
                intervals.append(_window_interval(window, index, MatchMethod.STRUCTURAL, event_index))
                return self._outcome(event_index, preview, intervals, index), intervals

        if config.enable_positional:
            window = find_positional_window(paste_keys, index, config)
            if window:
                intervals.append(_window_interval(window, index, MatchMethod.POSITIONAL, event_index))
                return self._outcome(event_index, preview, intervals, index), intervals

        logger.debug(f"No match for paste {event_index}: {preview!r}")
        return EventOutcome(event_index, EventStatus.UNMATCHED, preview), []

    @staticmethod
    def _outcome(
        event_index: int,
        preview: str,
        intervals: list[Interval],
        index: DocumentIndex,
    ) -> EventOutcome:
        methods: list[MatchMethod] = []
        for interval in intervals:
            if interval.method not in methods:
                methods.append(interval.method)
        logger.debug(
            f"Paste {event_index} matched via {', '.join(m.value for m in methods)}: {preview!r}"
        )
        return EventOutcome(
            event_index=event_index,
            status=EventStatus.MATCHED,
            text_preview=preview,
            methods=methods,
            candidates=[MatchCandidate.from_interval(iv, index.text) for iv in intervals],
        )

    def reconcile_with_report(
        self,
        document_markup: Optional[str],
        paste_events: Optional[Iterable[Any]],
    ) -> ReconcileReport:
        """
        Reconcile a paste log against a document and report the details.

        Never raises for any document or paste log: a failing event is
        recorded as FAILED and skipped; a failing annotation pass returns the
        markup unchanged.

        Args:
            document_markup: Current document markup; may be empty.
            paste_events: Paste log; PasteEvent objects, dicts or strings.

        Returns:
            ReconcileReport with annotated markup, spans and outcomes.
        """
        markup = document_markup if isinstance(document_markup, str) else ""
        events = coerce_paste_events(paste_events)
        report = ReconcileReport(annotated_markup=markup, paste_count=len(events))
        report.total_pasted_chars = sum(len(e.text) for e in events if e and isinstance(e.text, str))
        if not events:
            return report

        document = normalize_document(markup, self.config.highlight_class)
        index = DocumentIndex.build(document)
        report.clean_length = len(document.text)

        claimed: list[tuple[int, int]] = []
        accepted: list[Interval] = []
        for event_index, event in enumerate(events):
            try:
                outcome, intervals = self.match_event(event_index, event, index, claimed)
            except Exception as e:
                logger.error(f"Matching failed for paste {event_index}: {e}")
                outcome, intervals = EventOutcome(event_index, EventStatus.FAILED, error=str(e)), []
            report.outcomes.append(outcome)
            accepted.extend(intervals)

        merged = merge_intervals(accepted)
        try:
            report.annotated_markup, report.spans = annotate(document, merged, self.config)
        except Exception as e:
            logger.error(f"Annotation failed, returning document unchanged: {e}")
            report.annotated_markup, report.spans = markup, []
            return report

        report.flagged_chars = sum(iv.length for iv in merged)
        logger.info(f"Paste reconciliation: {report.get_summary()}")
        return report

    def reconcile(self, document_markup: Optional[str], paste_events: Optional[Iterable[Any]]) -> str:
        """Reconcile and return only the annotated markup."""
        return self.reconcile_with_report(document_markup, paste_events).annotated_markup


def reconcile(
    document_markup: Optional[str],
    paste_events: Optional[Iterable[Any]],
    config: Optional[ReconcileConfig] = None,
) -> str:
    """
    Annotate the pasted content still present in a document.

    Args:
        document_markup: Current document markup; may be empty.
        paste_events: Ordered paste log. Offsets in the entries are advisory
            and ignored; all matching is content based.
        config: Optional thresholds and highlight settings.

    Returns:
        The same markup with highlight wrappers inserted around detected
        fragments; safe to render in place of the original.
    """
    return ProvenanceReconciler(config).reconcile(document_markup, paste_events)
