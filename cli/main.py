"""CanLII MCP CLI: entry-point for all operations.

Usage:
    python cli/main.py --help

Command groups:
    scrape    → fetch a page and print its extracted text
    canlii    → CanLII API lookups (case law, citator, legislation)
    serve     → run the MCP server (stdio / sse / streamable-http)
    api       → run the REST mirror under uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from canlii_mcp.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any working
# directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional

import typer

from canlii_mcp import tools
from canlii_mcp.logging_config import setup_logging

app = typer.Typer(
    name="canlii-mcp",
    help="CanLII MCP server and command-line tools.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (DEBUG, INFO, ...)."),
) -> None:
    """Configure logging before any command runs."""
    setup_logging(log_level)


def _run_tool(call: Callable[[tools.ToolContext], Awaitable[dict[str, Any]]]) -> dict[str, Any]:
    async def _go() -> dict[str, Any]:
        async with tools.tool_context() as ctx:
            return await call(ctx)

    return asyncio.run(_go())


def _echo_result(label: str, result: dict[str, Any]) -> None:
    if "error" in result:
        typer.echo(f"[{label}] {result['error']}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(result, indent=2, ensure_ascii=False))


def _date_filters(**filters: Optional[str]) -> dict[str, str]:
    return {k: v for k, v in filters.items() if v}


# ---------------------------------------------------------------------------
# Scrape
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: str = typer.Argument(..., help="URL to scrape."),
    exclude_tags: Optional[str] = typer.Option(None, "--exclude-tags", help="Comma-separated tags to drop."),
    include_tags: Optional[str] = typer.Option(None, "--include-tags", help="Comma-separated tags to keep."),
    max_redirects: Optional[int] = typer.Option(None, "--max-redirects", help="Redirects to follow (default 10)."),
    user_agent: Optional[str] = typer.Option(None, "--user-agent", help="User-Agent override."),
    as_json: bool = typer.Option(False, "--json", help="Print the full tool result as JSON."),
) -> None:
    """Scrape a URL and print extracted clean text to stdout."""
    typer.echo(f"[scrape] Fetching {url!r} …", err=True)
    result = _run_tool(
        lambda ctx: tools.scrape_website(
            ctx, url, exclude_tags, include_tags, max_redirects, user_agent
        )
    )
    if as_json or "error" in result:
        _echo_result("scrape", result)
        return

    typer.echo(f"[scrape] Source : {result['sourceUrl']}", err=True)
    typer.echo(f"[scrape] Words  : {len(result['content'].split())}", err=True)
    typer.echo(result["content"])


# ---------------------------------------------------------------------------
# CanLII lookups
# ---------------------------------------------------------------------------
canlii_app = typer.Typer(help="CanLII API lookups.", no_args_is_help=True)
app.add_typer(canlii_app, name="canlii")

_LANG = typer.Option("en", "--lang", help="Language: en | fr.")
_PUBLISHED_AFTER = typer.Option(None, "--published-after", help="YYYY-MM-DD.")
_PUBLISHED_BEFORE = typer.Option(None, "--published-before", help="YYYY-MM-DD.")
_DECIDED_AFTER = typer.Option(None, "--decided-after", help="YYYY-MM-DD.")
_DECIDED_BEFORE = typer.Option(None, "--decided-before", help="YYYY-MM-DD.")


@canlii_app.command("courts")
def canlii_courts(lang: str = _LANG) -> None:
    """List courts and tribunals."""
    _echo_result("canlii courts", _run_tool(
        lambda ctx: tools.get_courts_and_tribunals(ctx, lang)
    ))


@canlii_app.command("cases")
def canlii_cases(
    database_id: str = typer.Argument(..., help="Case database, e.g. csc-scc."),
    lang: str = _LANG,
    offset: int = typer.Option(0, help="Record number to start from."),
    count: int = typer.Option(20, help="Number of decisions (max 10000)."),
    published_after: Optional[str] = _PUBLISHED_AFTER,
    published_before: Optional[str] = _PUBLISHED_BEFORE,
    decided_after: Optional[str] = _DECIDED_AFTER,
    decided_before: Optional[str] = _DECIDED_BEFORE,
) -> None:
    """List decisions in a case database."""
    filters = _date_filters(
        publishedAfter=published_after,
        publishedBefore=published_before,
        decisionDateAfter=decided_after,
        decisionDateBefore=decided_before,
    )
    _echo_result("canlii cases", _run_tool(
        lambda ctx: tools.get_case_law_decisions(ctx, lang, database_id, offset, count, **filters)
    ))


@canlii_app.command("case")
def canlii_case(
    database_id: str = typer.Argument(..., help="Case database, e.g. csc-scc."),
    case_id: str = typer.Argument(..., help="Case ID, e.g. 2008scc9."),
    lang: str = _LANG,
) -> None:
    """Show the metadata of one decision."""
    _echo_result("canlii case", _run_tool(
        lambda ctx: tools.get_case_metadata(ctx, lang, database_id, case_id)
    ))


@canlii_app.command("citator")
def canlii_citator(
    database_id: str = typer.Argument(..., help="Case database, e.g. csc-scc."),
    case_id: str = typer.Argument(..., help="Case ID, e.g. 2008scc9."),
    metadata_type: str = typer.Option(
        "citedCases", "--type", help="citedCases | citingCases | citedLegislations."
    ),
    lang: str = _LANG,
) -> None:
    """Show what a decision cites, or what cites it."""
    _echo_result("canlii citator", _run_tool(
        lambda ctx: tools.get_case_citator(ctx, lang, database_id, case_id, metadata_type)
    ))


@canlii_app.command("legislation-dbs")
def canlii_legislation_dbs(lang: str = _LANG) -> None:
    """List legislation databases."""
    _echo_result("canlii legislation-dbs", _run_tool(
        lambda ctx: tools.get_legislation_databases(ctx, lang)
    ))


@canlii_app.command("legislation")
def canlii_legislation(
    database_id: str = typer.Argument(..., help="Legislation database, e.g. ons."),
    legislation_id: Optional[str] = typer.Argument(None, help="Statute or regulation ID."),
    lang: str = _LANG,
) -> None:
    """Browse a legislation database, or show one statute's metadata."""
    if legislation_id:
        result = _run_tool(
            lambda ctx: tools.get_legislation_regulation_metadata(
                ctx, lang, database_id, legislation_id
            )
        )
    else:
        result = _run_tool(lambda ctx: tools.browse_legislation(ctx, lang, database_id))
    _echo_result("canlii legislation", result)


# ---------------------------------------------------------------------------
# Servers
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    transport: str = typer.Option("stdio", help="stdio | sse | streamable-http."),
) -> None:
    """Run the MCP server."""
    from canlii_mcp.server import run

    if transport not in ("stdio", "sse", "streamable-http"):
        typer.echo(f"[serve] Unknown transport {transport!r}.", err=True)
        raise typer.Exit(1)
    run(transport)


@app.command("api")
def api(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Port."),
) -> None:
    """Run the REST API under uvicorn."""
    import uvicorn

    uvicorn.run("canlii_mcp.api.app:app", host=host, port=port)


if __name__ == "__main__":
    app()
