# -*- coding: utf-8 -*-
"""
Highlight insertion into the raw document.

Merged clean-text intervals are mapped through the position map and wrapped
in highlight spans in a single left-to-right pass.

Key guarantees:
- Only wrapper tags are inserted; every other character is preserved
- A wrapper never opens or closes inside a tag, and never straddles one:
  an interval crossing inline markup becomes one wrapper per text run
- Text already inside a highlight wrapper is never wrapped again
- Wrappers are pairwise disjoint
"""

import html
import logging
from typing import Iterable, Iterator, Optional

from .config import ReconcileConfig
from .models import AnnotatedSpan, Interval
from .normalizer import TAG_NAME_RE, TAG_RE, NormalizedDocument, is_highlight_tag

logger = logging.getLogger(__name__)


def build_open_tag(interval: Interval, config: ReconcileConfig) -> str:
    """Opening wrapper tag carrying the detection method and its rationale."""
    attrs = [
        f'class="{config.highlight_class}"',
        f'data-paste-method="{interval.method.value}"',
        f'data-paste-event="{interval.event_index}"',
        f'title="{html.escape(interval.method.rationale, quote=True)}"',
    ]
    if config.highlight_style:
        attrs.append(f'style="{html.escape(config.highlight_style, quote=True)}"')
    return "<span " + " ".join(attrs) + ">"


CLOSE_TAG = "</span>"


def text_runs(document: NormalizedDocument, clean_start: int, clean_end: int) -> list[tuple[int, int]]:
    """
    Split a clean interval into runs that can be wrapped safely.

    A run is a maximal sequence of clean characters that is contiguous in the
    raw markup (no tag in between) and not already highlighted. Edge spaces
    are trimmed and runs without any letter or digit are dropped.

    Args:
        document: The normalized document.
        clean_start: Interval start (clean offset).
        clean_end: Interval end (clean offset).

    Returns:
        List of clean (start, end) runs in order.
    """
    pm = document.position_map
    text = document.text
    runs: list[tuple[int, int]] = []
    run_start: Optional[int] = None
    last_end_raw = -1

    for i in range(max(0, clean_start), min(clean_end, len(text))):
        zero_width = pm.starts[i] == pm.ends[i]
        if zero_width or document.highlighted[i]:
            if run_start is not None:
                runs.append((run_start, i))
                run_start = None
            continue
        if run_start is not None and pm.starts[i] != last_end_raw:
            runs.append((run_start, i))
            run_start = None
        if run_start is None:
            run_start = i
        last_end_raw = pm.ends[i]
    if run_start is not None:
        runs.append((run_start, min(clean_end, len(text))))

    trimmed = []
    for start, end in runs:
        while start < end and text[start] == " ":
            start += 1
        while end > start and text[end - 1] == " ":
            end -= 1
        if end > start and any(ch.isalnum() for ch in text[start:end]):
            trimmed.append((start, end))
    return trimmed


def annotate(
    document: NormalizedDocument,
    intervals: Iterable[Interval],
    config: Optional[ReconcileConfig] = None,
) -> tuple[str, list[AnnotatedSpan]]:
    """
    Wrap disjoint clean-text intervals in highlight spans.

    Args:
        document: The normalized document (raw markup included).
        intervals: Disjoint intervals, e.g. from ``merge_intervals``.
        config: Highlight class and style.

    Returns:
        Tuple of (annotated markup, spans inserted).
    """
    config = config or ReconcileConfig()
    pm = document.position_map
    insertions: list[tuple[int, int, Interval]] = []

    for interval in intervals:
        for start, end in text_runs(document, interval.start, interval.end):
            insertions.append((pm.starts[start], pm.ends[end - 1], interval))

    if not insertions:
        return document.raw, []

    insertions.sort(key=lambda item: item[0])
    raw = document.raw
    pieces: list[str] = []
    spans: list[AnnotatedSpan] = []
    cursor = 0
    for raw_start, raw_end, interval in insertions:
        if raw_start < cursor:
            logger.warning(f"Skipping overlapping highlight at raw offset {raw_start}")
            continue
        pieces.append(raw[cursor:raw_start])
        pieces.append(build_open_tag(interval, config))
        pieces.append(raw[raw_start:raw_end])
        pieces.append(CLOSE_TAG)
        spans.append(AnnotatedSpan(
            raw_start=raw_start,
            raw_end=raw_end,
            text=raw[raw_start:raw_end],
            method=interval.method,
            confidence=interval.confidence,
            event_index=interval.event_index,
        ))
        cursor = raw_end
    pieces.append(raw[cursor:])
    return "".join(pieces), spans


def iter_span_tags(markup: str, highlight_class: str) -> Iterator[tuple[int, int, str]]:
    """
    Walk span tags, classifying each as open/close and highlight or not.

    Yields:
        (start, end, kind) with kind one of "open_highlight", "open",
        "close_highlight", "close", "stray_close".
    """
    stack: list[bool] = []
    for match in TAG_RE.finditer(markup):
        tag = match.group()
        name_match = TAG_NAME_RE.match(tag)
        if not name_match or name_match.group(2).lower() != "span" or tag.endswith("/>"):
            continue
        if name_match.group(1):
            if not stack:
                yield match.start(), match.end(), "stray_close"
                continue
            was_highlight = stack.pop()
            yield match.start(), match.end(), "close_highlight" if was_highlight else "close"
        else:
            is_highlight = is_highlight_tag(tag, highlight_class)
            stack.append(is_highlight)
            yield match.start(), match.end(), "open_highlight" if is_highlight else "open"


def strip_highlights(markup: str, highlight_class: str = "paste-highlight") -> str:
    """
    Remove highlight wrappers, keeping their content and all other markup.

    Args:
        markup: Possibly annotated markup.
        highlight_class: Class identifying highlight wrappers.

    Returns:
        Markup without highlight wrappers.
    """
    if not markup or highlight_class not in markup:
        return markup or ""
    pieces = []
    cursor = 0
    for start, end, kind in iter_span_tags(markup, highlight_class):
        if kind in ("open_highlight", "close_highlight"):
            pieces.append(markup[cursor:start])
            cursor = end
    pieces.append(markup[cursor:])
    return "".join(pieces)
