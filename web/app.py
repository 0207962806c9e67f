"""
FastAPI application exposing the portal listing engine.

The engine components are built once per application and shared by every
request; they hold no per-request state. Both assembly outcomes are
returned with HTTP 200: a partial-failure record is data, not an error.
"""

import os
from typing import Any, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from portal_core import (
    IdentityDeriver,
    LoggingErrorReporter,
    RecordAssembler,
    SourceClassifier,
    build_default_registry,
)
from utils.config import Config

# =============================================================================
# Environment Configuration
# =============================================================================

IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else []


# =============================================================================
# API Request Models
# =============================================================================

class ExtractRequest(BaseModel):
    """Request body for record assembly."""
    url: str
    source: Optional[str] = None
    data: Any = None


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()

    app = FastAPI(
        title="Portal Listing Engine",
        description="Canonical property records from UK portal listing payloads",
        version="0.1.0",
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=config.debug and not IS_PRODUCTION,
    )

    if ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    # Engine components: built once, read-only afterwards
    registry = build_default_registry()
    reporter = LoggingErrorReporter(history_size=config.error_history_size)
    classifier = SourceClassifier(registry, reporter)
    deriver = IdentityDeriver(registry, reporter)
    app.state.registry = registry
    app.state.reporter = reporter
    app.state.classifier = classifier
    app.state.deriver = deriver
    app.state.assembler = RecordAssembler(registry, reporter, classifier, deriver)

    @app.get("/health", include_in_schema=False)
    def health():
        """Health endpoint. No dependencies, no IO."""
        return {"status": "ok"}

    @app.get("/api/sources")
    def list_sources(request: Request):
        """Registered sources and their URL rules."""
        return [descriptor.to_dict() for descriptor in request.app.state.registry]

    @app.get("/api/classify")
    def classify(request: Request, url: str = Query(..., description="Listing URL")):
        """Source, listing-page flag and identity for a URL."""
        state = request.app.state
        source_id = state.classifier.identify_source(url)
        identity = state.deriver.derive_identity(url, source_id) if source_id else None
        return {
            "url": url,
            "source": source_id,
            "isListingPage": state.classifier.is_listing_page(url),
            "id": identity.canonical if identity else None,
        }

    @app.post("/api/extract")
    def extract(request: Request, body: ExtractRequest):
        """Assemble a canonical record from a raw payload."""
        record = request.app.state.assembler.assemble(body.data, body.url, source_id=body.source)
        return record.to_dict()

    @app.get("/api/errors")
    def recent_errors(request: Request, limit: int = Query(10, ge=1, le=500)):
        """Most recent scrubbed error reports."""
        history = request.app.state.reporter.get_error_history(limit)
        return [event.to_dict() for event in history]

    return app


# Create app instance for uvicorn
app = create_app()
