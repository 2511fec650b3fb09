# -*- coding: utf-8 -*-
"""
Centralized configuration for paste provenance reconciliation.

This module provides a unified configuration dataclass that controls every
threshold used by the matcher cascade, the match-selection policy, and the
shape of the highlight wrappers inserted by the annotator.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, Mapping


# Type alias for the window/sentence selection policy
# - "best": Rank every window above threshold and accept the highest scoring one.
# - "first": Accept the first window clearing the threshold, scanning left to right.
MatchPolicy = Literal["best", "first"]

# Detection methods in descending priority order
METHOD_ORDER = (
    "exact",
    "fuzzy",
    "sentence",
    "chunk",
    "phrase",
    "structural",
    "positional",
)

# High-frequency function words compared by the positional matcher
DEFAULT_FUNCTION_WORDS = frozenset({
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
})

# Common misspellings a student typically fixes after pasting.
# Keys are the misspelled form found in the paste, values the corrected form.
COMMON_MISSPELLINGS = MappingProxyType({
    "fealing": "feeling",
    "sandwitches": "sandwiches",
    "promissed": "promised",
    "probbably": "probably",
    "perfact": "perfect",
    "reminde": "remind",
    "teh": "the",
    "adn": "and",
    "recieve": "receive",
    "seperate": "separate",
    "definately": "definitely",
    "occured": "occurred",
    "necesary": "necessary",
    "beleive": "believe",
    "freind": "friend",
    "wierd": "weird",
})

DEFAULT_HIGHLIGHT_STYLE = (
    "background-color: #fecaca; border: 2px solid #f87171; color: #991b1b; "
    "font-weight: 600; padding: 2px 4px; border-radius: 3px;"
)


@dataclass
class ReconcileConfig:
    """
    Central configuration for provenance reconciliation behavior.

    Attributes:
        min_paste_length: Paste events whose normalized text is shorter than
            this never produce a match.
        min_subunit_length: Sentences and phrases must be longer than this
            to be evaluated on their own.

        fuzzy_threshold: Minimum word-window similarity for the fuzzy matcher.
        max_word_edit_distance: Two words within this Levenshtein distance
            count as equivalent.
        sentence_threshold: Minimum sentence similarity.
        phrase_sizes: Word counts of the literal phrase windows, longest first.
            A window of 6 or more words is reported as a "chunk".
        phrase_confidence_per_word: Phrase confidence grows linearly with
            its word count.

        structural_threshold: Minimum weighted structural score.
        structural_weights: Weights for (length, punctuation, word count).
        positional_min_matches: Minimum aligned function words.
        positional_min_ratio: Aligned function words must exceed this share
            of the window length.
        function_words: Closed word set compared by the positional matcher.

        match_policy: "best" or "first", see MatchPolicy.
        enable_structural: Run the structural matcher as a fallback.
        enable_positional: Run the positional matcher as a fallback.

        corrections: Read-only misspelling table applied to paste text before
            the spell-corrected containment test.

        highlight_class: CSS class identifying highlight wrappers. Also the
            marker used to detect already-annotated text.
        highlight_style: Inline style for the wrapper, empty for none.
    """

    # Gates
    min_paste_length: int = 15
    min_subunit_length: int = 10

    # Fuzzy word-window matching
    fuzzy_threshold: float = 0.75
    max_word_edit_distance: int = 2

    # Sentence and phrase matching
    sentence_threshold: float = 0.70
    phrase_sizes: tuple[int, ...] = (6, 3)
    phrase_confidence_per_word: float = 0.12

    # Structural and positional fallbacks
    structural_threshold: float = 0.60
    structural_weights: tuple[float, float, float] = (0.4, 0.3, 0.3)
    positional_min_matches: int = 3
    positional_min_ratio: float = 0.30
    function_words: frozenset[str] = DEFAULT_FUNCTION_WORDS

    # Selection policy and fallbacks
    match_policy: MatchPolicy = "best"
    enable_structural: bool = True
    enable_positional: bool = True

    # Injected misspelling table
    corrections: Mapping[str, str] = field(default_factory=lambda: COMMON_MISSPELLINGS)

    # Highlight wrapper
    highlight_class: str = "paste-highlight"
    highlight_style: str = DEFAULT_HIGHLIGHT_STYLE

    @property
    def uses_best_match(self) -> bool:
        """Check if windows are ranked rather than accepted on first hit."""
        return self.match_policy == "best"

    @property
    def enabled_methods(self) -> tuple[str, ...]:
        """Detection methods that can fire, in priority order."""
        disabled = set()
        if not self.enable_structural:
            disabled.add("structural")
        if not self.enable_positional:
            disabled.add("positional")
        return tuple(m for m in METHOD_ORDER if m not in disabled)

    def __post_init__(self):
        """Validate configuration values."""
        if self.match_policy not in ("best", "first"):
            raise ValueError(
                f"match_policy must be 'best' or 'first', got '{self.match_policy}'"
            )
        if self.min_paste_length < 1:
            raise ValueError(f"min_paste_length must be >= 1, got {self.min_paste_length}")
        if self.min_subunit_length < 0:
            raise ValueError(
                f"min_subunit_length must be >= 0, got {self.min_subunit_length}"
            )
        for name in ("fuzzy_threshold", "sentence_threshold", "structural_threshold",
                     "positional_min_ratio"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        if self.max_word_edit_distance < 0:
            raise ValueError(
                f"max_word_edit_distance must be >= 0, got {self.max_word_edit_distance}"
            )
        if not self.phrase_sizes or any(size < 2 for size in self.phrase_sizes):
            raise ValueError(f"phrase_sizes must be sizes >= 2, got {self.phrase_sizes}")
        if len(self.structural_weights) != 3 or abs(sum(self.structural_weights) - 1.0) > 1e-6:
            raise ValueError(
                f"structural_weights must be three weights summing to 1, "
                f"got {self.structural_weights}"
            )
        if self.positional_min_matches < 1:
            raise ValueError(
                f"positional_min_matches must be >= 1, got {self.positional_min_matches}"
            )
        if not self.highlight_class or not self.highlight_class.replace("-", "").replace("_", "").isalnum():
            raise ValueError(
                f"highlight_class must be a simple CSS class name, got '{self.highlight_class}'"
            )
        # Longest phrases first so shorter windows only fill remaining gaps
        self.phrase_sizes = tuple(sorted(set(self.phrase_sizes), reverse=True))
        self.function_words = frozenset(w.lower() for w in self.function_words)
        self.corrections = MappingProxyType(
            {k.lower(): v for k, v in self.corrections.items()}
        )

    @classmethod
    def default(cls, **overrides) -> "ReconcileConfig":
        """Create config with every matcher enabled.

        Args:
            **overrides: Override any config values (e.g., match_policy='first')

        Returns:
            ReconcileConfig with the full matcher cascade
        """
        return cls(**overrides)

    @classmethod
    def conservative(cls, **overrides) -> "ReconcileConfig":
        """Create config without the structural and positional fallbacks.

        Conservative mode only flags text with lexical evidence (exact,
        spell-corrected, word-window, sentence or phrase matches). Use it
        when false positives are costlier than missed detections.

        Args:
            **overrides: Override any config values

        Returns:
            ReconcileConfig with heuristic fallbacks disabled
        """
        defaults = {
            "enable_structural": False,
            "enable_positional": False,
        }
        defaults.update(overrides)
        return cls(**defaults)

    @classmethod
    def from_preset(cls, preset: str, **overrides) -> "ReconcileConfig":
        """Create config from a preset name ('default' or 'conservative')."""
        if preset == "default":
            return cls.default(**overrides)
        if preset == "conservative":
            return cls.conservative(**overrides)
        raise ValueError(f"preset must be 'default' or 'conservative', got '{preset}'")
