"""
FastAPI wrapper for Paste Provenance - Vercel Serverless Function.

This module exposes paste reconciliation as a REST API for deployment
on Vercel.
"""

import logging
from enum import Enum
from typing import Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from paste_provenance import __version__
from paste_provenance.config import ReconcileConfig
from paste_provenance.engine import ProvenanceReconciler
from paste_provenance.models import PasteEvent

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Paste Provenance API",
    description="Highlights pasted content that survives in an edited document",
    version=__version__,
)

# Enable CORS for all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class PresetEnum(str, Enum):
    """Matcher preset selection."""
    default = "default"
    conservative = "conservative"  # No structural or positional fallbacks


class PolicyEnum(str, Enum):
    """Window acceptance policy."""
    best = "best"
    first = "first"


class PasteEventInput(BaseModel):
    """Single paste log entry, as recorded by the editor."""
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., description="Pasted text")
    captured_at_offset: Optional[int] = Field(None, alias="startIndex")
    end_offset: Optional[int] = Field(None, alias="endIndex")
    timestamp: Optional[str] = None

    def to_event(self) -> PasteEvent:
        return PasteEvent(
            text=self.text,
            captured_at_offset=self.captured_at_offset,
            end_offset=self.end_offset,
            timestamp=self.timestamp,
        )


class ReconcileRequest(BaseModel):
    """Request model for reconciliation."""
    document: str = Field(..., description="Current document markup")
    paste_events: list[Union[PasteEventInput, str]] = Field(
        default_factory=list,
        description="Paste log in capture order; bare strings are accepted",
    )
    preset: PresetEnum = Field(PresetEnum.default, description="Matcher preset")
    policy: PolicyEnum = Field(PolicyEnum.best, description="Window acceptance policy")
    include_report: bool = Field(False, description="Include per-event outcomes and spans")


class ReconcileResponse(BaseModel):
    """Response model for reconciliation results."""
    success: bool
    message: str
    annotated_document: str
    matched_count: int = 0
    highlight_count: int = 0
    report: Optional[dict] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


@app.get("/", response_class=HTMLResponse)
async def root():
    """Landing page."""
    return HTMLResponse(content="<h1>Paste Provenance API</h1><p>Visit <a href='/docs'>/docs</a> for API documentation.</p>")


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__,
    )


@app.post("/api/reconcile", response_model=ReconcileResponse)
async def reconcile_document(request: ReconcileRequest):
    """
    Highlight pasted content in a document.

    Reconciles the paste log against the document and returns the markup
    with highlight wrappers inserted around detected fragments.
    """
    try:
        config = ReconcileConfig.from_preset(request.preset.value, match_policy=request.policy.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    events = [
        item.to_event() if isinstance(item, PasteEventInput) else item
        for item in request.paste_events
    ]
    result = ProvenanceReconciler(config).reconcile_with_report(request.document, events)
    logger.info(f"API reconcile: {result.get_summary()}")

    return ReconcileResponse(
        success=True,
        message=result.get_summary(),
        annotated_document=result.annotated_markup,
        matched_count=result.matched_count,
        highlight_count=len(result.spans),
        report=result.to_dict() if request.include_report else None,
    )


@app.get("/api/info")
async def api_info():
    """Get API information and usage instructions."""
    return {
        "name": "Paste Provenance API",
        "version": __version__,
        "description": "Highlights pasted content that survives in an edited document",
        "endpoints": {
            "GET /": "Landing page",
            "GET /api/health": "Health check",
            "POST /api/reconcile": "Annotate a document against its paste log",
            "GET /api/info": "This endpoint",
        },
        "documentation": "/docs",
        "openapi": "/openapi.json",
    }
