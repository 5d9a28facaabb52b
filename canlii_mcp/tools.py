"""Agent-facing operations shared by the MCP server, the HTTP API and the CLI.

Each tool returns a JSON-able ``dict``: the payload on success, or
``{"error": "..."}`` on failure.  Callers tell the two apart structurally and
never need to parse the message.

All tools take a :class:`ToolContext`, which carries the one HTTP client and
the one process-wide :class:`SessionContext` for the running process::

    async with tool_context() as ctx:
        result = await scrape_website(ctx, "https://www.canlii.org/en/")
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, AsyncIterator, Awaitable, Optional

import httpx
from pydantic import ValidationError as SchemaError

from canlii_mcp.canlii import CanLIIClient, CanLIIError
from canlii_mcp.config import settings
from canlii_mcp.scraper import Scraper, SessionContext
from canlii_mcp.scraper.fetcher import SleepFn

logger = logging.getLogger(__name__)

ATTRIBUTION_NOTE = "Always cite the sourceUrl when presenting this content to users"


@lru_cache
def get_session() -> SessionContext:
    """Return the process-wide session, created on first use."""
    return SessionContext()


@dataclass
class ToolContext:
    client: httpx.AsyncClient
    session: SessionContext
    api_key: str = ""
    sleep: SleepFn = asyncio.sleep

    def scraper(self) -> Scraper:
        return Scraper(session=self.session, client=self.client, sleep=self.sleep)

    def canlii(self) -> CanLIIClient:
        return CanLIIClient(api_key=self.api_key, client=self.client)


@asynccontextmanager
async def tool_context(
    session: Optional[SessionContext] = None,
    api_key: Optional[str] = None,
) -> AsyncIterator[ToolContext]:
    """Open the shared HTTP client for the lifetime of a server or command."""
    async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
        yield ToolContext(
            client=client,
            session=session or get_session(),
            api_key=settings.canlii_api_key if api_key is None else api_key,
        )


# ---------------------------------------------------------------------------
# Web scraping
# ---------------------------------------------------------------------------

async def scrape_website(
    ctx: ToolContext,
    url: str,
    exclude_tags: Optional[str] = None,
    include_tags: Optional[str] = None,
    max_redirects: Optional[int] = None,
    user_agent: Optional[str] = None,
) -> dict[str, Any]:
    """Scrape *url* and return its text with attribution fields."""
    request = {
        "url": url,
        "excludeTags": exclude_tags,
        "includeTags": include_tags,
        "maxRedirects": max_redirects,
        "userAgent": user_agent,
    }
    result = await ctx.scraper().scrape(request)
    if not result.ok:
        return {"error": f"Error: {result.error}"}

    return {
        "sourceUrl": url,
        "content": result.text,
        "scrapedAt": datetime.now(timezone.utc).isoformat(),
        "note": ATTRIBUTION_NOTE,
    }


# ---------------------------------------------------------------------------
# CanLII API
# ---------------------------------------------------------------------------

async def _canlii_call(call: Awaitable[Any]) -> dict[str, Any]:
    try:
        record = await call
    except CanLIIError as exc:
        return {"error": str(exc)}
    except (SchemaError, httpx.HTTPError, ValueError) as exc:
        logger.warning("[canlii] call failed: %r", exc)
        return {"error": f"Error: {exc}"}
    return record.model_dump()


async def get_courts_and_tribunals(
    ctx: ToolContext, language: str, **date_filters: Optional[str]
) -> dict[str, Any]:
    return await _canlii_call(ctx.canlii().get_courts_and_tribunals(language, **date_filters))


async def get_case_law_decisions(
    ctx: ToolContext,
    language: str,
    database_id: str,
    offset: int,
    result_count: int,
    **date_filters: Optional[str],
) -> dict[str, Any]:
    return await _canlii_call(
        ctx.canlii().get_case_law_decisions(
            language, database_id, offset, result_count, **date_filters
        )
    )


async def get_case_metadata(
    ctx: ToolContext,
    language: str,
    database_id: str,
    case_id: str,
    **date_filters: Optional[str],
) -> dict[str, Any]:
    return await _canlii_call(
        ctx.canlii().get_case_metadata(language, database_id, case_id, **date_filters)
    )


async def get_case_citator(
    ctx: ToolContext,
    language: str,
    database_id: str,
    case_id: str,
    metadata_type: str,
    **date_filters: Optional[str],
) -> dict[str, Any]:
    return await _canlii_call(
        ctx.canlii().get_case_citator(
            language, database_id, case_id, metadata_type, **date_filters
        )
    )


async def get_legislation_databases(
    ctx: ToolContext, language: str, **date_filters: Optional[str]
) -> dict[str, Any]:
    return await _canlii_call(ctx.canlii().get_legislation_databases(language, **date_filters))


async def browse_legislation(
    ctx: ToolContext, language: str, database_id: str, **date_filters: Optional[str]
) -> dict[str, Any]:
    return await _canlii_call(
        ctx.canlii().browse_legislation(language, database_id, **date_filters)
    )


async def get_legislation_regulation_metadata(
    ctx: ToolContext, language: str, database_id: str, legislation_id: str
) -> dict[str, Any]:
    return await _canlii_call(
        ctx.canlii().get_legislation_regulation_metadata(language, database_id, legislation_id)
    )
