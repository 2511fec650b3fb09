"""
Pytest fixtures and configuration for Paste Provenance tests.
"""

import json
from pathlib import Path

import pytest

from paste_provenance.config import ReconcileConfig
from paste_provenance.normalizer import DocumentIndex, normalize_document


FOX_SENTENCE = "The quick brown fox jumps over the lazy dog and runs away quickly today"


@pytest.fixture
def fox_sentence() -> str:
    """Pasted sentence used by the end-to-end scenarios."""
    return FOX_SENTENCE


@pytest.fixture
def default_config() -> ReconcileConfig:
    """Config with every matcher enabled."""
    return ReconcileConfig()


@pytest.fixture
def conservative_config() -> ReconcileConfig:
    """Config without the structural and positional fallbacks."""
    return ReconcileConfig.conservative()


@pytest.fixture
def build_index():
    """Factory building a DocumentIndex from markup."""
    def _build(markup: str) -> DocumentIndex:
        return DocumentIndex.build(normalize_document(markup))
    return _build


@pytest.fixture
def essay_markup() -> str:
    """A small essay with two pasted passages and typed text around them."""
    return (
        "<h1>My Summer</h1>"
        "<p>I spent most of July at the lake with my cousins.</p>"
        "<p>The quick brown fox jumps over the lazy dog and runs away quickly today.</p>"
        "<p>We built a raft out of <b>old pallets</b> and rope.</p>"
        "<p>Pack my box with five dozen liquor jugs.</p>"
    )


@pytest.fixture
def essay_events() -> list[dict]:
    """Paste log matching ``essay_markup``."""
    return [
        {"text": FOX_SENTENCE, "startIndex": 60, "endIndex": 131},
        {"text": "Pack my box with five dozen liquor jugs"},
    ]


@pytest.fixture
def essay_files(tmp_path: Path, essay_markup: str, essay_events: list[dict]) -> tuple[Path, Path]:
    """Write the essay and its paste log to disk."""
    doc_path = tmp_path / "essay.html"
    doc_path.write_text(essay_markup, encoding="utf-8")
    events_path = tmp_path / "pastes.json"
    events_path.write_text(json.dumps({"pastedContent": essay_events}), encoding="utf-8")
    return doc_path, events_path
