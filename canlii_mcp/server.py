"""MCP server exposing the CanLII and scraping tools to agents.

Run over stdio (the default for desktop agent hosts)::

    canlii-mcp serve

or over HTTP with ``--transport streamable-http`` / ``--transport sse``.
"""

import json
from contextlib import asynccontextmanager
from typing import Annotated, Any, AsyncIterator, Literal, Optional

from mcp.server.fastmcp import Context, FastMCP
from pydantic import Field

from canlii_mcp import tools
from canlii_mcp.canlii.schemas import DateFilters
from canlii_mcp.tools import ToolContext

Language = Annotated[
    Literal["en", "fr"],
    Field(description="The language option: 'en' for English or 'fr' for French"),
]
DatabaseId = Annotated[
    str,
    Field(description="The database identifier, e.g. 'csc-scc' or 'ons' (Ontario statutes)"),
]
CaseId = Annotated[
    str,
    Field(description="The case's unique identifier; generally the CanLII citation, e.g. '2008scc9'"),
]
Dates = Annotated[
    Optional[DateFilters],
    Field(description="Optional date bounds on publication, modification or decision date"),
]


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[ToolContext]:
    async with tools.tool_context() as ctx:
        yield ctx


mcp = FastMCP(
    "CanLII MCP",
    instructions=(
        "Canadian legal research tools backed by the CanLII API: courts and "
        "tribunals, case law decisions, case metadata, citator (cited cases, "
        "citing cases, cited legislation), legislation databases and "
        "legislation metadata. scrape_website extracts the text of any web "
        "page, including full CanLII decisions. When using scrape_website, "
        "always cite the source URL in your response for proper attribution "
        "and verification."
    ),
    lifespan=app_lifespan,
)


def _tool_ctx(ctx: Context) -> ToolContext:
    return ctx.request_context.lifespan_context


def _dump(result: dict[str, Any]) -> str:
    return json.dumps(result, indent=2, ensure_ascii=False)


def _dates(dates: Optional[DateFilters]) -> dict[str, str]:
    return dates.as_kwargs() if dates else {}


# ---------------------------------------------------------------------------
# Case law
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_courts_and_tribunals(
    language: Language, dateFilters: Dates = None, ctx: Context = None
) -> str:
    """List the courts and tribunals (case law databases) available on CanLII."""
    result = await tools.get_courts_and_tribunals(
        _tool_ctx(ctx), language, **_dates(dateFilters)
    )
    return _dump(result)


@mcp.tool()
async def get_case_law_decisions(
    language: Language,
    databaseId: DatabaseId,
    offset: Annotated[
        int,
        Field(ge=0, description="Record number to start from; 0 returns the most recently added decisions"),
    ],
    resultCount: Annotated[
        int, Field(ge=1, le=10000, description="Number of results to return (max 10,000)")
    ],
    dateFilters: Dates = None,
    ctx: Context = None,
) -> str:
    """List decisions from one court or tribunal database."""
    result = await tools.get_case_law_decisions(
        _tool_ctx(ctx), language, databaseId, offset, resultCount, **_dates(dateFilters)
    )
    return _dump(result)


@mcp.tool()
async def get_case_metadata(
    language: Language,
    databaseId: DatabaseId,
    caseId: CaseId,
    dateFilters: Dates = None,
    ctx: Context = None,
) -> str:
    """Get the metadata (URL, citation, decision date, keywords) of one decision."""
    result = await tools.get_case_metadata(
        _tool_ctx(ctx), language, databaseId, caseId, **_dates(dateFilters)
    )
    return _dump(result)


@mcp.tool()
async def get_case_citator(
    language: Language,
    databaseId: DatabaseId,
    caseId: CaseId,
    metadataType: Annotated[
        Literal["citedCases", "citingCases", "citedLegislations"],
        Field(
            description=(
                "citedCases (what this case cites), citingCases (what cases cite "
                "this case), or citedLegislations (what legislation this case cites)"
            )
        ),
    ],
    dateFilters: Dates = None,
    ctx: Context = None,
) -> str:
    """Get the citation graph around one decision."""
    result = await tools.get_case_citator(
        _tool_ctx(ctx), language, databaseId, caseId, metadataType, **_dates(dateFilters)
    )
    return _dump(result)


# ---------------------------------------------------------------------------
# Legislation
# ---------------------------------------------------------------------------


@mcp.tool()
async def get_legislation_databases(
    language: Language, dateFilters: Dates = None, ctx: Context = None
) -> str:
    """List the legislation databases (statutes, regulations) on CanLII."""
    result = await tools.get_legislation_databases(
        _tool_ctx(ctx), language, **_dates(dateFilters)
    )
    return _dump(result)


@mcp.tool()
async def browse_legislation(
    language: Language,
    databaseId: Annotated[
        str,
        Field(
            description=(
                "Generally the provincial or territorial two-letter code followed "
                "by 's' (statutes), 'r' (regulations) or 'a' (annual statutes)"
            )
        ),
    ],
    dateFilters: Dates = None,
    ctx: Context = None,
) -> str:
    """List the statutes or regulations in one legislation database."""
    result = await tools.browse_legislation(
        _tool_ctx(ctx), language, databaseId, **_dates(dateFilters)
    )
    return _dump(result)


@mcp.tool()
async def get_legislation_regulation_metadata(
    language: Language,
    databaseId: DatabaseId,
    legislationId: Annotated[str, Field(description="ID of the statute or regulation")],
    ctx: Context = None,
) -> str:
    """Get the metadata of one statute or regulation, including its parts."""
    result = await tools.get_legislation_regulation_metadata(
        _tool_ctx(ctx), language, databaseId, legislationId
    )
    return _dump(result)


# ---------------------------------------------------------------------------
# Web scraping
# ---------------------------------------------------------------------------


@mcp.tool()
async def scrape_website(
    url: Annotated[
        str,
        Field(
            description=(
                "The URL of the website to scrape text content from. When "
                "presenting scraped content you MUST include this source URL "
                "for attribution, e.g. 'According to [URL], ...'"
            )
        ),
    ],
    excludeTags: Annotated[
        Optional[str],
        Field(
            description=(
                "Comma-separated list of HTML tags to exclude, on top of the "
                "default script,style,nav,header,footer,aside"
            )
        ),
    ] = None,
    includeTags: Annotated[
        Optional[str],
        Field(description="Comma-separated list of HTML tags to include; only these are scraped"),
    ] = None,
    maxRedirects: Annotated[
        Optional[int], Field(description="Maximum number of redirects to follow (default: 10)")
    ] = None,
    userAgent: Annotated[
        Optional[str], Field(description="User agent string to send (default: desktop Chrome)")
    ] = None,
    ctx: Context = None,
) -> str:
    """Scrape the readable text of a web page and return it with its source URL."""
    result = await tools.scrape_website(
        _tool_ctx(ctx), url, excludeTags, includeTags, maxRedirects, userAgent
    )
    return _dump(result)


def run(transport: str = "stdio") -> None:
    """Start the MCP server on *transport* (stdio, sse or streamable-http)."""
    mcp.run(transport=transport)
