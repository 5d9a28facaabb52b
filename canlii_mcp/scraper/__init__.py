"""Scraper package: resilient fetch & text extraction."""

from canlii_mcp.scraper.errors import ExtractionError, ScraperError, ValidationError
from canlii_mcp.scraper.extractor import extract_text
from canlii_mcp.scraper.fetcher import build_headers, fetch_with_redirects
from canlii_mcp.scraper.models import FetchAttempt, ScrapeRequest, ScrapeResult
from canlii_mcp.scraper.retry import Scraper
from canlii_mcp.scraper.session import SessionContext
from canlii_mcp.scraper.validator import trim_tags, validate_request

__all__ = [
    "Scraper",
    "SessionContext",
    "ScrapeRequest",
    "ScrapeResult",
    "FetchAttempt",
    "validate_request",
    "trim_tags",
    "build_headers",
    "fetch_with_redirects",
    "extract_text",
    "ScraperError",
    "ValidationError",
    "ExtractionError",
]
