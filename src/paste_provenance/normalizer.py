# -*- coding: utf-8 -*-
"""
Markup normalization and offset mapping.

The engine matches in the *clean* coordinate space: markup stripped,
entities decoded, whitespace collapsed to single spaces and trimmed. Every
clean character remembers the raw range it came from, so matches found in
clean text can be mapped back and wrapped in the raw document without ever
touching the inside of a tag.

Key guarantees:
- Normalization is pure and deterministic
- Inline tags are zero width; block tags behave like whitespace
- A '<' that does not open a well-formed tag is literal text
- Text inside an existing highlight wrapper is flagged
"""

import html
import re
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from typing import Optional

# Tags: comments, doctype/declarations, and opening/closing elements.
# A '<' followed by anything else is literal text.
TAG_RE = re.compile(r"<(?:!--.*?--|![^<>]*|/?[A-Za-z][^<>]*)>", re.DOTALL)
TAG_NAME_RE = re.compile(r"<\s*(/?)\s*([A-Za-z][A-Za-z0-9]*)")
CLASS_ATTR_RE = re.compile(r"""\bclass\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+))""", re.IGNORECASE)

ENTITY_RE = re.compile(r"&(?:#[0-9]{1,7}|#[xX][0-9a-fA-F]{1,6}|[A-Za-z][A-Za-z0-9]{1,31});")

WORD_RE = re.compile(r"\S+")

# Sentence pieces: text up to and including a run of terminators
SENTENCE_RE = re.compile(r"[^.!?]+[.!?]*|[.!?]+")

WHITESPACE_RE = re.compile(r"\s+")

# Elements that visually separate text; treated as whitespace when stripped
BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl", "dt",
    "figcaption", "figure", "footer", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section", "table",
    "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
})

# Characters stripped from word edges before comparing words
WORD_EDGE_PUNCT = ".,;:!?\"'()[]{}<>*_-"

# Typographic punctuation folded to ASCII for comparison.
# All mappings are one character to one character so offsets survive.
PUNCT_FOLD_MAP = str.maketrans({
    "\u2019": "'",  # Right single quote
    "\u2018": "'",  # Left single quote
    "\u201B": "'",  # Single high-reversed-9 quotation mark
    "\u201C": '"',  # Left double quote
    "\u201D": '"',  # Right double quote
    "\u201F": '"',  # Double high-reversed-9 quotation mark
    "\u2013": "-",  # En dash
    "\u2014": "-",  # Em dash
})


@dataclass(frozen=True)
class WordToken:
    """A whitespace-delimited word with its offsets in the source text."""
    text: str
    start: int
    end: int
    key: str


@dataclass(frozen=True)
class TextSpan:
    """A slice of text with offsets, e.g. one sentence."""
    text: str
    start: int
    end: int


class PositionMap:
    """
    Maps clean-text offsets to raw-document offsets and back.

    ``starts[i]``/``ends[i]`` give the raw range clean character ``i`` was
    produced from. Collapsed whitespace maps to its raw run up to the first
    tag inside it, whitespace synthesized from a block tag maps to a zero-width range at the
    tag, and decoded entities map to the whole entity.
    """

    __slots__ = ("starts", "ends", "raw_length")

    def __init__(self, starts: list[int], ends: list[int], raw_length: int) -> None:
        self.starts = starts
        self.ends = ends
        self.raw_length = raw_length

    def __len__(self) -> int:
        return len(self.starts)

    def to_raw(self, clean_start: int, clean_end: int) -> tuple[int, int]:
        """Raw range covering clean characters [clean_start, clean_end)."""
        if clean_end <= clean_start or not self.starts:
            pos = self.starts[clean_start] if clean_start < len(self.starts) else self.raw_length
            return pos, pos
        return self.starts[clean_start], self.ends[clean_end - 1]

    def to_clean(self, raw_start: int, raw_end: int) -> tuple[int, int]:
        """Clean range of the characters produced inside raw [raw_start, raw_end)."""
        clean_start = bisect_right(self.ends, raw_start)
        clean_end = bisect_left(self.starts, raw_end)
        return clean_start, max(clean_start, clean_end)

    def is_contiguous(self, clean_index: int) -> bool:
        """True if clean char ``clean_index`` directly follows the previous one in raw."""
        if clean_index == 0:
            return False
        return self.ends[clean_index - 1] == self.starts[clean_index]


@dataclass
class NormalizedDocument:
    """Raw markup, its clean projection, and the mapping between them."""
    raw: str
    text: str
    position_map: PositionMap
    highlighted: list[bool] = field(default_factory=list)

    @property
    def folded(self) -> str:
        return fold_case(self.text)

    def raw_slice(self, clean_start: int, clean_end: int) -> str:
        raw_start, raw_end = self.position_map.to_raw(clean_start, clean_end)
        return self.raw[raw_start:raw_end]


def fold_case(text: str) -> str:
    """
    Lowercase text for comparison without changing its length.

    Characters whose lowercase form expands to several characters are kept
    as they are. Typographic quotes and dashes fold to ASCII.

    Args:
        text: Text to fold.

    Returns:
        Folded text with exactly ``len(text)`` characters.
    """
    if not text:
        return ""
    if text.isascii():
        return text.lower()
    chars = []
    for ch in text:
        low = ch.lower()
        chars.append(low if len(low) == 1 else ch)
    return "".join(chars).translate(PUNCT_FOLD_MAP)


def normalize_fragment(text: str) -> str:
    """Trim a pasted fragment and collapse internal whitespace runs."""
    if not text:
        return ""
    return WHITESPACE_RE.sub(" ", text).strip()


def word_key(token: str) -> str:
    """Comparison key for a word: folded case, edge punctuation removed."""
    folded = fold_case(token)
    stripped = folded.strip(WORD_EDGE_PUNCT)
    return stripped or folded


def tokenize_words(text: str) -> list[WordToken]:
    """
    Split text into whitespace-delimited words, keeping offsets.

    Args:
        text: Clean text or a normalized fragment.

    Returns:
        List of WordToken in order of appearance.
    """
    if not text:
        return []
    return [
        WordToken(text=m.group(), start=m.start(), end=m.end(), key=word_key(m.group()))
        for m in WORD_RE.finditer(text)
    ]


def split_sentences(text: str) -> list[TextSpan]:
    """
    Split text into sentences on '.', '!' and '?'.

    Terminators stay attached to their sentence; surrounding whitespace is
    excluded from the span.

    Args:
        text: Text to split.

    Returns:
        List of non-empty TextSpan.
    """
    if not text:
        return []
    result = []
    for match in SENTENCE_RE.finditer(text):
        piece = match.group()
        lead = len(piece) - len(piece.lstrip())
        trail = len(piece) - len(piece.rstrip())
        start = match.start() + lead
        end = match.end() - trail
        if end > start:
            result.append(TextSpan(text=text[start:end], start=start, end=end))
    return result


def is_highlight_tag(tag: str, highlight_class: Optional[str]) -> bool:
    """Check whether an opening tag carries the highlight class."""
    if not highlight_class:
        return False
    match = CLASS_ATTR_RE.search(tag)
    if not match:
        return False
    classes = next(g for g in match.groups() if g is not None)
    return highlight_class in classes.split()


def normalize_document(raw: str, highlight_class: Optional[str] = "paste-highlight") -> NormalizedDocument:
    """
    Strip markup from a document and build its clean projection.

    Args:
        raw: The document markup. May be empty or malformed.
        highlight_class: Class of existing highlight wrappers; characters
            inside such wrappers are flagged in ``highlighted``.

    Returns:
        NormalizedDocument with clean text and position map.
    """
    raw = raw or ""
    chars: list[str] = []
    starts: list[int] = []
    ends: list[int] = []
    highlighted: list[bool] = []

    # Whitespace run waiting to be emitted as a single space: (start, end, highlighted)
    pending_space: Optional[tuple[int, int, bool]] = None
    span_stack: list[bool] = []
    highlight_depth = 0

    def emit(ch: str, start: int, end: int) -> None:
        nonlocal pending_space
        if pending_space is not None:
            # Leading whitespace is dropped
            if chars:
                chars.append(" ")
                starts.append(pending_space[0])
                ends.append(pending_space[1])
                highlighted.append(pending_space[2])
            pending_space = None
        chars.append(ch)
        starts.append(start)
        ends.append(end)
        highlighted.append(highlight_depth > 0)

    def note_space(start: int, end: int) -> None:
        nonlocal pending_space
        if pending_space is None:
            pending_space = (start, end, highlight_depth > 0)
        elif pending_space[1] == start and end > start:
            # Contiguous whitespace extends the run; a tag in between does not
            pending_space = (pending_space[0], end, pending_space[2])

    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]

        if ch == "<":
            tag_match = TAG_RE.match(raw, i)
            if tag_match:
                tag = tag_match.group()
                name_match = TAG_NAME_RE.match(tag)
                if name_match:
                    closing = bool(name_match.group(1))
                    name = name_match.group(2).lower()
                    if name in BLOCK_TAGS:
                        note_space(i, i)
                    elif name == "span" and not tag.endswith("/>"):
                        if closing:
                            if span_stack and span_stack.pop():
                                highlight_depth -= 1
                        else:
                            is_highlight = is_highlight_tag(tag, highlight_class)
                            span_stack.append(is_highlight)
                            if is_highlight:
                                highlight_depth += 1
                i = tag_match.end()
                continue
            emit(ch, i, i + 1)
            i += 1
            continue

        if ch == "&":
            entity_match = ENTITY_RE.match(raw, i)
            if entity_match:
                entity = entity_match.group()
                decoded = html.unescape(entity)
                if decoded != entity:
                    end = entity_match.end()
                    for offset, dch in enumerate(decoded):
                        if dch.isspace():
                            note_space(i, end)
                        elif offset == 0:
                            emit(dch, i, end)
                        else:
                            emit(dch, end, end)
                    i = end
                    continue
            emit(ch, i, i + 1)
            i += 1
            continue

        if ch.isspace():
            note_space(i, i + 1)
        else:
            emit(ch, i, i + 1)
        i += 1

    return NormalizedDocument(
        raw=raw,
        text="".join(chars),
        position_map=PositionMap(starts, ends, n),
        highlighted=highlighted,
    )


def strip_markup(raw: str) -> str:
    """Clean-text projection of a markup string."""
    return normalize_document(raw).text


@dataclass
class DocumentIndex:
    """
    Per-call lookup structures shared by every matcher.

    Built once per reconciliation so the matcher cascade does not re-tokenize
    the document for each paste event.
    """
    document: NormalizedDocument
    folded: str
    words: list[WordToken]
    word_keys: list[str]
    sentences: list[TextSpan]
    sentence_keys: list[list[str]]

    @property
    def text(self) -> str:
        return self.document.text

    @classmethod
    def build(cls, document: NormalizedDocument) -> "DocumentIndex":
        sentences = split_sentences(document.text)
        words = tokenize_words(document.text)
        return cls(
            document=document,
            folded=fold_case(document.text),
            words=words,
            word_keys=[w.key for w in words],
            sentences=sentences,
            sentence_keys=[[w.key for w in tokenize_words(s.text)] for s in sentences],
        )
