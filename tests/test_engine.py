# -*- coding: utf-8 -*-
"""
End-to-end tests for provenance reconciliation.

Covers the documented scenarios plus the guarantees every caller relies on:
1. Short pastes are never flagged
2. Verbatim pastes are flagged via exact match
3. Reconciling twice changes nothing
4. Removing the markup of the output gives back the original text
5. Highlights never overlap
6. Reconciliation never raises
"""

import logging

import pytest
from bs4 import BeautifulSoup

from paste_provenance import engine
from paste_provenance.annotator import strip_highlights
from paste_provenance.config import ReconcileConfig
from paste_provenance.engine import ProvenanceReconciler, reconcile
from paste_provenance.models import EventStatus, MatchMethod, PasteEvent


def _visible_text(markup: str) -> str:
    return BeautifulSoup(markup, "html.parser").get_text()


def _highlight_count(markup: str) -> int:
    return markup.count('class="paste-highlight"')


# =============================================================================
# SCENARIOS
# =============================================================================

class TestScenarios:
    """The canonical detection scenarios."""

    def test_verbatim_paste_flagged_exact(self, fox_sentence):
        markup = (
            f"<p>Yesterday I wrote this. {fox_sentence}. Then I stopped.</p>"
        )
        report = ProvenanceReconciler().reconcile_with_report(markup, [fox_sentence])

        assert f">{fox_sentence}</span>" in report.annotated_markup
        assert 'data-paste-method="exact"' in report.annotated_markup
        assert report.outcomes[0].methods == [MatchMethod.EXACT]
        assert len(report.spans) == 1

    def test_edited_paste_flagged_fuzzy(self, fox_sentence):
        markup = "<p>The quick brown fox jumped over the lasy dog and runs away quickly today.</p>"
        report = ProvenanceReconciler().reconcile_with_report(markup, [fox_sentence])

        assert (
            ">The quick brown fox jumped over the lasy dog and runs away quickly today.</span>"
            in report.annotated_markup
        )
        assert 'data-paste-method="fuzzy"' in report.annotated_markup
        assert report.outcomes[0].methods == [MatchMethod.FUZZY]
        assert report.outcomes[0].candidates[0].confidence == 1.0

    def test_short_paste_never_flagged(self):
        markup = "<p>What a nice day it is.</p>"
        report = ProvenanceReconciler().reconcile_with_report(markup, ["nice day"])

        assert report.annotated_markup == markup
        assert report.outcomes[0].status == EventStatus.BELOW_MIN_LENGTH

    def test_two_disjoint_pastes(self, essay_markup, essay_events):
        report = ProvenanceReconciler().reconcile_with_report(essay_markup, essay_events)
        result = report.annotated_markup

        assert _highlight_count(result) == 2
        assert 'data-paste-event="0"' in result
        assert 'data-paste-event="1"' in result
        assert ">Pack my box with five dozen liquor jugs</span>" in result
        first, second = report.spans
        assert first.raw_end <= second.raw_start


# =============================================================================
# LENGTH GATE
# =============================================================================

class TestMinimumLength:
    """Pastes shorter than the minimum never produce a highlight."""

    def test_fourteen_characters_skipped(self):
        markup = "<p>The quick brown fox.</p>"
        assert reconcile(markup, ["quick brown fo"]) == markup

    def test_fifteen_characters_flagged(self):
        result = reconcile("<p>The quick brown fox.</p>", ["quick brown fox"])
        assert ">quick brown fox</span>" in result

    def test_gate_applies_after_whitespace_collapse(self):
        markup = "<p>The quick brown fox.</p>"
        assert reconcile(markup, ["  quick   brown \n fo "]) == markup

    def test_gate_measures_collapsed_text(self):
        markup = "<p>Say hello world to everyone.</p>"
        report = ProvenanceReconciler().reconcile_with_report(markup, ["hello     world     "])

        assert report.annotated_markup == markup
        assert report.outcomes[0].status == EventStatus.BELOW_MIN_LENGTH

    def test_configurable_gate(self):
        config = ReconcileConfig(min_paste_length=20)
        markup = "<p>The quick brown fox.</p>"
        assert reconcile(markup, ["quick brown fox"], config) == markup


# =============================================================================
# MATCHER CASCADE
# =============================================================================

class TestCascade:
    """Each stage is reached when the previous ones find nothing."""

    def test_whitespace_differences_still_exact(self):
        result = reconcile(
            "<p>The quick brown fox jumps over the dog.</p>",
            ["The quick\n brown   fox jumps"],
        )
        assert ">The quick brown fox jumps</span>" in result
        assert 'data-paste-method="exact"' in result

    def test_paste_across_inline_markup(self):
        markup = "<p>The <b>quick</b> brown fox jumps high.</p>"
        result = reconcile(markup, ["The quick brown fox jumps"])
        assert _highlight_count(result) == 3
        assert strip_highlights(result) == markup

    def test_spell_corrected_match(self):
        markup = "<p>I will definitely receive the package tomorrow morning.</p>"
        report = ProvenanceReconciler().reconcile_with_report(
            markup, ["I will definately recieve the package tomorrow"],
        )
        candidate = report.outcomes[0].candidates[0]
        assert candidate.method == MatchMethod.FUZZY
        assert candidate.confidence == pytest.approx(0.95)
        assert candidate.text == "I will definitely receive the package tomorrow"

    def test_sentence_match(self):
        markup = (
            "<p>Rivers carry sediment toward the sea. "
            "Later we discussed something else entirely today.</p>"
        )
        paste = "Rivers carry sediment toward the sea. Bananas are my favourite fruit of all time."
        report = ProvenanceReconciler().reconcile_with_report(markup, [paste])

        assert report.outcomes[0].methods == [MatchMethod.SENTENCE]
        assert ">Rivers carry sediment toward the sea.</span>" in report.annotated_markup
        assert _highlight_count(report.annotated_markup) == 1

    def test_phrase_match(self):
        markup = "<p>Biology class taught us the mitochondria is the powerhouse today.</p>"
        paste = "I think that the mitochondria is the powerhouse of the cell honestly"
        report = ProvenanceReconciler().reconcile_with_report(markup, [paste])

        assert report.outcomes[0].methods == [MatchMethod.PHRASE]
        assert ">the mitochondria is the powerhouse</span>" in report.annotated_markup

    def test_structural_match(self):
        markup = "<p>Tomatoes slowly ripen, while farmers wait.</p>"
        paste = "Xylophones quietly hum, while zebras dance."
        report = ProvenanceReconciler().reconcile_with_report(markup, [paste])
        assert report.outcomes[0].methods == [MatchMethod.STRUCTURAL]

    def test_conservative_preset_skips_structural(self):
        markup = "<p>Tomatoes slowly ripen, while farmers wait.</p>"
        paste = "Xylophones quietly hum, while zebras dance."
        report = ProvenanceReconciler(ReconcileConfig.conservative()).reconcile_with_report(markup, [paste])
        assert report.annotated_markup == markup
        assert report.outcomes[0].status == EventStatus.UNMATCHED

    def test_positional_match(self):
        markup = "<p>the rhinoceroses, on the hippopotamuses; with the crocodiles-and-alligators.</p>"
        report = ProvenanceReconciler().reconcile_with_report(markup, ["the a on the b with the c"])
        assert report.outcomes[0].methods == [MatchMethod.POSITIONAL]
        assert 'data-paste-method="positional"' in report.annotated_markup

    def test_repeated_paste_claims_next_occurrence(self):
        markup = "<p>alpha beta gamma delta epsilon.</p><p>alpha beta gamma delta epsilon.</p>"
        paste = "alpha beta gamma delta epsilon"
        report = ProvenanceReconciler().reconcile_with_report(markup, [paste, paste])

        assert [s.event_index for s in report.spans] == [0, 1]
        assert report.spans[0].raw_end <= report.spans[1].raw_start

    def test_unrelated_paste_unmatched(self):
        markup = "<p>Short.</p>"
        report = ProvenanceReconciler().reconcile_with_report(
            markup, ["This paste never made it into the final essay"],
        )
        assert report.annotated_markup == markup
        assert report.outcomes[0].status == EventStatus.UNMATCHED


# =============================================================================
# GUARANTEES
# =============================================================================

class TestGuarantees:
    """Idempotence, round trip and non-overlap."""

    def test_idempotent(self, essay_markup, essay_events):
        once = reconcile(essay_markup, essay_events)
        twice = reconcile(once, essay_events)
        assert twice == once

    def test_idempotent_for_fuzzy_matches(self, fox_sentence):
        markup = "<p>The quick brown fox jumped over the lasy dog and runs away quickly today.</p>"
        once = reconcile(markup, [fox_sentence])
        assert reconcile(once, [fox_sentence]) == once

    def test_visible_text_round_trips(self, essay_markup, essay_events):
        result = reconcile(essay_markup, essay_events)
        assert _visible_text(result) == _visible_text(essay_markup)
        assert strip_highlights(result) == essay_markup

    def test_highlights_never_overlap(self, essay_markup, essay_events, fox_sentence):
        events = essay_events + [fox_sentence, "brown fox jumps over the lazy", "old pallets and rope"]
        report = ProvenanceReconciler().reconcile_with_report(essay_markup, events)
        for left, right in zip(report.spans, report.spans[1:]):
            assert left.raw_end <= right.raw_start

    def test_offsets_are_ignored(self, fox_sentence):
        markup = f"<p>{fox_sentence}</p>"
        stale = PasteEvent(text=fox_sentence, captured_at_offset=9999, end_offset=10070)
        assert reconcile(markup, [stale]) == reconcile(markup, [fox_sentence])


# =============================================================================
# FAILURE HANDLING
# =============================================================================

class TestNeverRaises:
    """Any input yields markup; failures are contained per event."""

    @pytest.mark.parametrize("markup,events,expected", [
        (None, None, ""),
        ("", ["The quick brown fox jumps"], ""),
        ("<p>text</p>", None, "<p>text</p>"),
        ("<p>text</p>", 42, "<p>text</p>"),
        ("<p>text</p>", [None, 42, {"text": 5}, {}], "<p>text</p>"),
        ("<p>unclosed <b>bold text", ["unclosed bold text"], None),
    ])
    def test_odd_inputs(self, markup, events, expected):
        result = reconcile(markup, events)
        assert isinstance(result, str)
        if expected is not None:
            assert result == expected

    def test_event_failure_isolated(self, monkeypatch, caplog, fox_sentence):
        real_find_exact = engine.find_exact

        def flaky_find_exact(fragment, index, claimed=()):
            if fragment.startswith("Pack"):
                raise RuntimeError("boom")
            return real_find_exact(fragment, index, claimed)

        monkeypatch.setattr(engine, "find_exact", flaky_find_exact)
        markup = f"<p>{fox_sentence}.</p><p>Pack my box with five dozen liquor jugs.</p>"

        with caplog.at_level(logging.ERROR, logger="paste_provenance.engine"):
            report = ProvenanceReconciler().reconcile_with_report(
                markup, ["Pack my box with five dozen liquor jugs", fox_sentence],
            )

        assert report.outcomes[0].status == EventStatus.FAILED
        assert report.outcomes[0].error == "boom"
        assert report.outcomes[1].status == EventStatus.MATCHED
        assert _highlight_count(report.annotated_markup) == 1
        assert "Matching failed for paste 0" in caplog.text

    def test_annotation_failure_returns_original(self, monkeypatch, fox_sentence):
        def broken_annotate(*args, **kwargs):
            raise ValueError("bad map")

        monkeypatch.setattr(engine, "annotate", broken_annotate)
        markup = f"<p>{fox_sentence}</p>"
        assert reconcile(markup, [fox_sentence]) == markup


# =============================================================================
# REPORT
# =============================================================================

class TestReport:
    """Per-event outcomes and summary."""

    def test_summary(self, essay_markup, essay_events):
        report = ProvenanceReconciler().reconcile_with_report(essay_markup, essay_events)
        assert report.paste_count == 2
        assert report.matched_count == 2
        assert report.get_summary().startswith("2/2 paste events found in document, 2 highlights")
        assert 0 < report.coverage_ratio < 1

    def test_no_events(self):
        report = ProvenanceReconciler().reconcile_with_report("<p>x</p>", [])
        assert report.get_summary() == "No paste events recorded"
        assert report.outcomes == []

    def test_empty_entry_status(self):
        report = ProvenanceReconciler().reconcile_with_report("<p>x</p>", ["   ", None])
        assert [o.status for o in report.outcomes] == [EventStatus.EMPTY, EventStatus.EMPTY]

    def test_to_dict(self, essay_markup, essay_events):
        data = ProvenanceReconciler().reconcile_with_report(essay_markup, essay_events).to_dict()
        assert data["matched_count"] == 2
        assert [s["method"] for s in data["spans"]] == ["exact", "exact"]
        assert data["outcomes"][0]["status"] == "matched"
