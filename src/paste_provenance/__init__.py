"""
Paste Provenance

Reconciles a log of pasted text fragments against the current, edited
document and highlights the spans that still carry pasted content:
- Strips markup into a clean projection with an offset map
- Matches each paste through exact, spell-corrected, fuzzy, sentence,
  phrase, structural and positional matchers
- Wraps accepted spans in idempotent, markup-safe highlight tags
"""

__version__ = "1.0.0"
__author__ = "Paste Provenance Team"

from .config import ReconcileConfig, MatchPolicy, COMMON_MISSPELLINGS

from .models import (
    PasteEvent,
    MatchMethod,
    MatchCandidate,
    Interval,
    AnnotatedSpan,
    EventStatus,
    EventOutcome,
    ReconcileReport,
    coerce_paste_event,
    coerce_paste_events,
)

from .normalizer import (
    NormalizedDocument,
    PositionMap,
    DocumentIndex,
    normalize_document,
    normalize_fragment,
    strip_markup,
)

from .intervals import merge_intervals

from .annotator import annotate, strip_highlights

from .engine import ProvenanceReconciler, reconcile

from .integrity import (
    AnnotationIntegrityReport,
    run_annotation_integrity_check,
    get_annotation_summary,
)

__all__ = [
    # Config
    "ReconcileConfig",
    "MatchPolicy",
    "COMMON_MISSPELLINGS",
    # Models
    "PasteEvent",
    "MatchMethod",
    "MatchCandidate",
    "Interval",
    "AnnotatedSpan",
    "EventStatus",
    "EventOutcome",
    "ReconcileReport",
    "coerce_paste_event",
    "coerce_paste_events",
    # Normalization
    "NormalizedDocument",
    "PositionMap",
    "DocumentIndex",
    "normalize_document",
    "normalize_fragment",
    "strip_markup",
    # Annotation
    "merge_intervals",
    "annotate",
    "strip_highlights",
    # Engine
    "ProvenanceReconciler",
    "reconcile",
    # Integrity
    "AnnotationIntegrityReport",
    "run_annotation_integrity_check",
    "get_annotation_summary",
]
