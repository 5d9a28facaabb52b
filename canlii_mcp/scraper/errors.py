"""Exceptions raised inside the scraper pipeline.

None of these escape :meth:`canlii_mcp.scraper.retry.Scraper.scrape`; they are
turned into :class:`~canlii_mcp.scraper.models.ScrapeResult` errors there.
"""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for scraper failures."""


class ValidationError(ScraperError):
    """The request failed validation before any network activity."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(f"Invalid request: {', '.join(errors)}")


class ExtractionError(ScraperError):
    """The fetched page yielded no usable text."""
