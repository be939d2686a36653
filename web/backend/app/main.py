"""FastAPI application for the Token Factory registry.

Provides REST API endpoints wrapping the tokenfactory package for:
- Owner lookup and administrator grants
- Token registration and lookup
- The token-created audit trail
"""

from __future__ import annotations

from fastapi import FastAPI

from tokenfactory import __version__
from web.backend.app.routers import admins, events, tokens

app = FastAPI(
    title="Token Factory API",
    description=(
        "REST API for the Token Factory registry. "
        "The calling principal is read from the X-Principal header."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(admins.router)
app.include_router(tokens.router)
app.include_router(events.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "Token Factory API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
