"""Scraping endpoint.

Routes
------
POST /tools/scrape_website    Body: {"url": "https://...", ...}    → scrape_website
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from canlii_mcp import tools
from canlii_mcp.scraper import ValidationError, validate_request

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScrapeWebsiteRequest(BaseModel):
    url: str
    excludeTags: Optional[str] = None
    includeTags: Optional[str] = None
    maxRedirects: Optional[int] = None
    userAgent: Optional[str] = None


class ScrapeWebsiteResponse(BaseModel):
    sourceUrl: str
    content: str
    scrapedAt: str
    note: str


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/scrape_website", response_model=ScrapeWebsiteResponse)
async def scrape_website_endpoint(
    body: ScrapeWebsiteRequest, request: Request
) -> dict[str, Any]:
    """Fetch a page with retries and return its extracted text.

    Malformed requests are rejected with 422 before any network activity;
    fetch and extraction failures come back as 502.
    """
    try:
        validate_request(body.model_dump())
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    result = await tools.scrape_website(
        request.app.state.tools,
        body.url,
        body.excludeTags,
        body.includeTags,
        body.maxRedirects,
        body.userAgent,
    )
    if "error" in result:
        raise HTTPException(status_code=502, detail=result["error"])
    return result
