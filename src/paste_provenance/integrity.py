# -*- coding: utf-8 -*-
"""
Annotation integrity validation.

This module validates that an annotated document is a faithful,
non-destructive rendition of the original:
1. Removing the highlight wrappers gives back the original markup
2. The clean text of the annotated output equals that of the original
3. Highlight wrappers are balanced
4. Highlight wrappers are not nested

These checks catch cases where:
- Text was lost or duplicated while inserting wrappers
- A wrapper was opened but never closed (or closed twice)
- Already highlighted text was wrapped again
"""

from dataclasses import dataclass, field
from typing import Optional

from .annotator import iter_span_tags, strip_highlights
from .normalizer import strip_markup


@dataclass
class IntegrityIssue:
    """Represents a single annotation integrity issue."""
    severity: str  # "error" or "warning"
    category: str  # "content_changed", "text_mismatch", "marker_imbalance", etc.
    description: str
    span_text: Optional[str] = None


@dataclass
class AnnotationIntegrityReport:
    """Complete report of annotation integrity validation."""
    is_valid: bool
    issues: list[IntegrityIssue] = field(default_factory=list)

    # Summary flags
    content_preserved: bool = True
    text_round_trips: bool = True
    markers_balanced: bool = True

    # Statistics
    total_highlighted_spans: int = 0

    def add_error(self, category: str, description: str, **kwargs):
        """Add an error issue."""
        self.issues.append(IntegrityIssue(
            severity="error",
            category=category,
            description=description,
            **kwargs,
        ))
        self.is_valid = False

    def add_warning(self, category: str, description: str, **kwargs):
        """Add a warning issue."""
        self.issues.append(IntegrityIssue(
            severity="warning",
            category=category,
            description=description,
            **kwargs,
        ))

    def get_summary(self) -> str:
        """Get human-readable summary."""
        if self.is_valid:
            return f"Annotation integrity OK: {self.total_highlighted_spans} highlights"

        errors = [i for i in self.issues if i.severity == "error"]
        warnings = [i for i in self.issues if i.severity == "warning"]

        lines = [f"Annotation integrity FAILED: {len(errors)} errors, {len(warnings)} warnings"]
        for issue in errors[:5]:
            lines.append(f"  ERROR: {issue.description}")
        if len(errors) > 5:
            lines.append(f"  ... and {len(errors) - 5} more errors")

        return "\n".join(lines)


def extract_highlighted_spans(markup: str, highlight_class: str = "paste-highlight") -> list[str]:
    """
    Extract the inner markup of every outermost highlight wrapper.

    Args:
        markup: Annotated markup.
        highlight_class: Class identifying highlight wrappers.

    Returns:
        List of inner markup strings, in document order.
    """
    if not markup or highlight_class not in markup:
        return []

    result = []
    depth = 0
    inner_start = 0
    for start, end, kind in iter_span_tags(markup, highlight_class):
        if kind == "open_highlight":
            if depth == 0:
                inner_start = end
            depth += 1
        elif kind == "close_highlight":
            depth -= 1
            if depth == 0:
                result.append(markup[inner_start:start])
    return result


def validate_marker_balance(markup: str, highlight_class: str = "paste-highlight") -> tuple[bool, int, int]:
    """
    Check that every highlight wrapper is closed.

    Returns:
        Tuple of (is_balanced, open_count, close_count).
    """
    opens = 0
    closes = 0
    for _, _, kind in iter_span_tags(markup or "", highlight_class):
        if kind == "open_highlight":
            opens += 1
        elif kind == "close_highlight":
            closes += 1
    return opens == closes, opens, closes


def validate_no_nested_markers(markup: str, highlight_class: str = "paste-highlight") -> tuple[bool, int]:
    """
    Check that no highlight wrapper opens inside another.

    Returns:
        Tuple of (no_nesting, nested_count).
    """
    depth = 0
    nested = 0
    for _, _, kind in iter_span_tags(markup or "", highlight_class):
        if kind == "open_highlight":
            if depth:
                nested += 1
            depth += 1
        elif kind == "close_highlight":
            depth -= 1
    return nested == 0, nested


def run_annotation_integrity_check(
    original: str,
    annotated: str,
    highlight_class: str = "paste-highlight",
) -> AnnotationIntegrityReport:
    """
    Run complete annotation integrity validation.

    This is the main entry point for annotation validation.

    Args:
        original: Document markup before reconciliation.
        annotated: Markup returned by reconciliation.
        highlight_class: Class identifying highlight wrappers.

    Returns:
        AnnotationIntegrityReport with all findings.
    """
    original = original or ""
    annotated = annotated or ""
    report = AnnotationIntegrityReport(is_valid=True)
    report.total_highlighted_spans = len(extract_highlighted_spans(annotated, highlight_class))

    # Check 1: Only wrappers were inserted
    if strip_highlights(annotated, highlight_class) != strip_highlights(original, highlight_class):
        report.content_preserved = False
        report.add_error(
            "content_changed",
            "Markup differs from the original once highlights are removed",
        )

    # Check 2: Clean text round trip
    if strip_markup(annotated) != strip_markup(original):
        report.text_round_trips = False
        report.add_error(
            "text_mismatch",
            "Clean text of the annotated document differs from the original",
        )

    # Check 3: Balance
    balanced, opens, closes = validate_marker_balance(annotated, highlight_class)
    if not balanced:
        report.markers_balanced = False
        report.add_error(
            "marker_imbalance",
            f"Unbalanced highlights: {opens} opened, {closes} closed",
        )

    # Check 4: Nesting
    no_nesting, nested = validate_no_nested_markers(annotated, highlight_class)
    if not no_nesting:
        report.markers_balanced = False
        report.add_error(
            "marker_nesting",
            f"Nested highlights detected: {nested} occurrences",
        )

    if report.total_highlighted_spans and not strip_markup(original):
        report.add_warning("empty_original", "Highlights present but original has no text")

    return report


def get_annotation_summary(original: str, annotated: str, highlight_class: str = "paste-highlight") -> dict:
    """
    Get a summary of what the annotation flagged.

    Args:
        original: Document markup before reconciliation.
        annotated: Markup returned by reconciliation.
        highlight_class: Class identifying highlight wrappers.

    Returns:
        Dict with summary statistics.
    """
    clean_text = strip_markup(original)
    highlighted = [strip_markup(span) for span in extract_highlighted_spans(annotated, highlight_class)]
    highlighted_words = sum(len(span.split()) for span in highlighted)
    total_words = len(clean_text.split())

    return {
        "word_count": total_words,
        "highlighted_span_count": len(highlighted),
        "highlighted_word_count": highlighted_words,
        "highlighted_ratio": highlighted_words / max(1, total_words),
    }
