# -*- coding: utf-8 -*-
"""
Tests for highlight insertion.

The annotator must only ever insert wrapper tags: removing them gives back
the original markup byte for byte.
"""

from paste_provenance.annotator import (
    CLOSE_TAG,
    annotate,
    build_open_tag,
    iter_span_tags,
    strip_highlights,
    text_runs,
)
from paste_provenance.config import ReconcileConfig
from paste_provenance.models import Interval, MatchMethod
from paste_provenance.normalizer import normalize_document


def _open(method: MatchMethod, event_index: int = 0) -> str:
    return build_open_tag(Interval(0, 1, method, 1.0, event_index), ReconcileConfig())


# =============================================================================
# WRAPPER TAGS
# =============================================================================

class TestOpenTag:
    def test_carries_method_and_rationale(self):
        tag = _open(MatchMethod.FUZZY, 4)
        assert tag.startswith('<span class="paste-highlight"')
        assert 'data-paste-method="fuzzy"' in tag
        assert 'data-paste-event="4"' in tag
        assert 'title="Copy-pasted content detected (spell-corrected)"' in tag
        assert 'style="' in tag

    def test_style_can_be_disabled(self):
        config = ReconcileConfig(highlight_style="", highlight_class="pasted")
        tag = build_open_tag(Interval(0, 1, MatchMethod.EXACT, 1.0), config)
        assert tag == (
            '<span class="pasted" data-paste-method="exact" data-paste-event="0" '
            'title="Copy-pasted content detected">'
        )


# =============================================================================
# TEXT RUNS
# =============================================================================

class TestTextRuns:
    """Intervals are split where markup interrupts the text."""

    def test_single_run(self):
        doc = normalize_document("<p>plain text here</p>")
        assert text_runs(doc, 0, 15) == [(0, 15)]

    def test_split_at_inline_tags(self):
        doc = normalize_document("The <b>quick</b> brown fox")
        assert text_runs(doc, 0, 19) == [(0, 3), (4, 9), (10, 19)]

    def test_split_at_block_boundary(self):
        doc = normalize_document("<p>one</p><p>two</p>")
        assert text_runs(doc, 0, 7) == [(0, 3), (4, 7)]

    def test_highlighted_text_skipped(self):
        doc = normalize_document('<span class="paste-highlight">copied</span> typed words')
        assert text_runs(doc, 0, len(doc.text)) == [(7, 18)]

    def test_punctuation_only_runs_dropped(self):
        doc = normalize_document("<b>!!</b> ok")
        assert text_runs(doc, 0, 2) == []

    def test_edge_spaces_trimmed(self):
        doc = normalize_document("one two three")
        assert text_runs(doc, 3, 8) == [(4, 7)]


# =============================================================================
# ANNOTATE
# =============================================================================

class TestAnnotate:
    """Single pass insertion of wrappers."""

    def test_wraps_interval(self):
        doc = normalize_document("<p>Hello world again</p>")
        markup, spans = annotate(doc, [Interval(6, 11, MatchMethod.EXACT, 1.0)])
        assert markup == f"<p>Hello {_open(MatchMethod.EXACT)}world{CLOSE_TAG} again</p>"
        assert len(spans) == 1
        assert spans[0].text == "world"
        assert spans[0].rationale == "Copy-pasted content detected"

    def test_one_wrapper_per_text_run(self):
        raw = "The <b>quick</b> brown fox"
        doc = normalize_document(raw)
        markup, spans = annotate(doc, [Interval(0, 19, MatchMethod.EXACT, 1.0)])
        tag = _open(MatchMethod.EXACT)
        assert markup == (
            f"{tag}The{CLOSE_TAG} <b>{tag}quick{CLOSE_TAG}</b> {tag}brown fox{CLOSE_TAG}"
        )
        assert [s.text for s in spans] == ["The", "quick", "brown fox"]
        assert strip_highlights(markup) == raw

    def test_entities_kept_whole(self):
        raw = "<p>Fish &amp; chips for dinner</p>"
        doc = normalize_document(raw)
        markup, spans = annotate(doc, [Interval(0, 12, MatchMethod.EXACT, 1.0)])
        assert spans[0].text == "Fish &amp; chips"
        assert strip_highlights(markup) == raw

    def test_no_intervals_returns_raw(self):
        doc = normalize_document("<p>untouched</p>")
        assert annotate(doc, []) == ("<p>untouched</p>", [])

    def test_multiple_intervals_in_order(self):
        raw = "<p>alpha beta gamma delta</p>"
        doc = normalize_document(raw)
        markup, spans = annotate(doc, [
            Interval(17, 22, MatchMethod.PHRASE, 0.36, 1),
            Interval(0, 5, MatchMethod.EXACT, 1.0, 0),
        ])
        assert [s.text for s in spans] == ["alpha", "delta"]
        assert [s.event_index for s in spans] == [0, 1]
        assert strip_highlights(markup) == raw

    def test_already_highlighted_not_rewrapped(self):
        raw = f"<p>{_open(MatchMethod.EXACT)}alpha beta{CLOSE_TAG} gamma</p>"
        doc = normalize_document(raw)
        markup, spans = annotate(doc, [Interval(0, 10, MatchMethod.EXACT, 1.0)])
        assert markup == raw
        assert spans == []


# =============================================================================
# STRIPPING
# =============================================================================

class TestStripHighlights:
    def test_other_spans_kept(self):
        markup = '<span class="x">a</span><span class="paste-highlight">b</span>'
        assert strip_highlights(markup) == '<span class="x">a</span>b'

    def test_nested_plain_span_inside_highlight(self):
        markup = '<span class="paste-highlight">a <span>b</span> c</span>'
        assert strip_highlights(markup) == "a <span>b</span> c"

    def test_no_highlights(self):
        assert strip_highlights("<p>plain</p>") == "<p>plain</p>"
        assert strip_highlights("") == ""

    def test_iter_span_tags_kinds(self):
        markup = '</span><span class="paste-highlight"><span>x</span></span>'
        kinds = [kind for _, _, kind in iter_span_tags(markup, "paste-highlight")]
        assert kinds == ["stray_close", "open_highlight", "open", "close", "close_highlight"]
