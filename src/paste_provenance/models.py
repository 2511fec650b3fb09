"""
Data models for paste provenance reconciliation.

This module defines the core data structures passed between the normalizer,
the matchers, the interval merge and the annotator.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional, Union


class MatchMethod(Enum):
    """Detection method that produced a match, in descending priority."""
    EXACT = "exact"
    FUZZY = "fuzzy"
    SENTENCE = "sentence"
    CHUNK = "chunk"
    PHRASE = "phrase"
    STRUCTURAL = "structural"
    POSITIONAL = "positional"

    @property
    def priority(self) -> int:
        """Lower value wins when intervals overlap."""
        return _METHOD_PRIORITY[self]

    @property
    def rationale(self) -> str:
        """Human-readable reason shown in the highlight tooltip."""
        return _METHOD_RATIONALE[self]


_METHOD_PRIORITY = {method: index for index, method in enumerate(MatchMethod)}

_METHOD_RATIONALE = {
    MatchMethod.EXACT: "Copy-pasted content detected",
    MatchMethod.FUZZY: "Copy-pasted content detected (spell-corrected)",
    MatchMethod.SENTENCE: "Copy-pasted content detected (similar sentence)",
    MatchMethod.CHUNK: "Copy-pasted content detected (matching passage)",
    MatchMethod.PHRASE: "Copy-pasted content detected (matching phrase)",
    MatchMethod.STRUCTURAL: "Copy-pasted content detected (structural match)",
    MatchMethod.POSITIONAL: "Copy-pasted content detected (word pattern match)",
}


class EventStatus(Enum):
    """Outcome of reconciling a single paste event."""
    MATCHED = "matched"
    UNMATCHED = "unmatched"
    BELOW_MIN_LENGTH = "below_min_length"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class PasteEvent:
    """A recorded paste, as captured by the editor.

    Offsets are best effort and may be stale relative to the current
    document; no matcher relies on them.
    """
    text: str
    captured_at_offset: Optional[int] = None
    end_offset: Optional[int] = None
    timestamp: Optional[Union[str, datetime]] = None


@dataclass(frozen=True)
class Interval:
    """A match over clean-text offsets [start, end)."""
    start: int
    end: int
    method: MatchMethod
    confidence: float
    event_index: int = 0

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass
class MatchCandidate:
    """A fragment accepted by a matcher, reported with its document text."""
    text: str
    method: MatchMethod
    confidence: float
    start: int
    end: int
    event_index: int = 0

    @classmethod
    def from_interval(cls, interval: Interval, clean_text: str) -> "MatchCandidate":
        return cls(
            text=clean_text[interval.start:interval.end],
            method=interval.method,
            confidence=interval.confidence,
            start=interval.start,
            end=interval.end,
            event_index=interval.event_index,
        )


@dataclass
class AnnotatedSpan:
    """A raw-document range wrapped in a highlight marker."""
    raw_start: int
    raw_end: int
    text: str
    method: MatchMethod
    confidence: float
    event_index: int = 0

    @property
    def rationale(self) -> str:
        return self.method.rationale


@dataclass
class EventOutcome:
    """Per-event reconciliation result."""
    event_index: int
    status: EventStatus
    text_preview: str = ""
    methods: list[MatchMethod] = field(default_factory=list)
    candidates: list[MatchCandidate] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_matched(self) -> bool:
        return self.status == EventStatus.MATCHED


@dataclass
class ReconcileReport:
    """Complete result of one reconciliation run."""
    annotated_markup: str
    spans: list[AnnotatedSpan] = field(default_factory=list)
    outcomes: list[EventOutcome] = field(default_factory=list)

    # Statistics
    paste_count: int = 0
    total_pasted_chars: int = 0
    clean_length: int = 0
    flagged_chars: int = 0

    @property
    def matched_count(self) -> int:
        return sum(1 for o in self.outcomes if o.is_matched)

    @property
    def coverage_ratio(self) -> float:
        """Share of the clean document covered by highlights."""
        return self.flagged_chars / max(1, self.clean_length)

    def get_summary(self) -> str:
        """Get human-readable summary."""
        if not self.paste_count:
            return "No paste events recorded"
        return (
            f"{self.matched_count}/{self.paste_count} paste events found in document, "
            f"{len(self.spans)} highlights, "
            f"{self.coverage_ratio:.1%} of text flagged"
        )

    def to_dict(self) -> dict:
        return {
            "paste_count": self.paste_count,
            "matched_count": self.matched_count,
            "total_pasted_chars": self.total_pasted_chars,
            "flagged_chars": self.flagged_chars,
            "coverage_ratio": round(self.coverage_ratio, 4),
            "spans": [
                {
                    "raw_start": s.raw_start,
                    "raw_end": s.raw_end,
                    "text": s.text,
                    "method": s.method.value,
                    "confidence": round(s.confidence, 4),
                    "event_index": s.event_index,
                }
                for s in self.spans
            ],
            "outcomes": [
                {
                    "event_index": o.event_index,
                    "status": o.status.value,
                    "methods": [m.value for m in o.methods],
                    "text_preview": o.text_preview,
                }
                for o in self.outcomes
            ],
        }


# Keys holding the pasted text, in lookup order
TEXT_KEYS = ("text", "content", "value")


def _first_int(item: dict, *keys: str) -> Optional[int]:
    for key in keys:
        value = item.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def coerce_paste_event(item: Any) -> Optional[PasteEvent]:
    """
    Convert one loosely-typed paste log entry into a PasteEvent.

    Editors have stored paste logs as bare strings or as objects keyed
    ``text``, ``content`` or ``value``, with optional ``startIndex``,
    ``endIndex`` and ``timestamp``.

    Args:
        item: A PasteEvent, a string, or a mapping.

    Returns:
        PasteEvent, or None when the entry carries no text.
    """
    if isinstance(item, PasteEvent):
        return item
    if isinstance(item, str):
        return PasteEvent(text=item)
    if isinstance(item, dict):
        key = next((k for k in TEXT_KEYS if k in item), None)
        text = item[key] if key is not None else ""
        if not isinstance(text, str):
            return None
        return PasteEvent(
            text=text,
            captured_at_offset=_first_int(item, "startIndex", "start_index", "captured_at_offset"),
            end_offset=_first_int(item, "endIndex", "end_index", "end_offset"),
            timestamp=item.get("timestamp"),
        )
    return None


def coerce_paste_events(items: Optional[Iterable[Any]]) -> list[Optional[PasteEvent]]:
    """Coerce a paste log, keeping positions so event indices stay stable."""
    if not items:
        return []
    if isinstance(items, (str, dict, PasteEvent)):
        items = [items]
    try:
        return [coerce_paste_event(item) for item in items]
    except TypeError:
        return []
