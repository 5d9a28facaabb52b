"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single shared HTTP client plus the process-wide
scraping session (exposed to routes via ``request.app.state.tools``).  On
shutdown it closes the client cleanly.

Routers
-------
All endpoint groups are mounted under their respective path prefix:

    /tools     : scrape_website
    /canlii    : CanLII case law, citator and legislation lookups
    /health    : liveness probe
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from canlii_mcp.tools import tool_context

from canlii_mcp.api.routers import canlii as canlii_router
from canlii_mcp.api.routers import scrape as scrape_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the shared HTTP client on startup and close it on shutdown."""
    async with tool_context() as ctx:
        app.state.tools = ctx
        yield


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="CanLII MCP API",
        description=(
            "REST mirror of the CanLII MCP tools: CanLII case law, citator and "
            "legislation lookups, and resilient web page text extraction. "
            "Always cite sourceUrl when presenting scraped content."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(scrape_router.router, prefix="/tools", tags=["tools"])
    app.include_router(canlii_router.router, prefix="/canlii", tags=["canlii"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Module-level instance used by uvicorn:
#   uvicorn canlii_mcp.api.app:app --reload
app = create_app()
