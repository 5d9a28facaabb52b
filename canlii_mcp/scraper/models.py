"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from canlii_mcp.config import settings


@dataclass
class ScrapeRequest:
    """A validated, normalised scrape request."""

    url: str
    exclude_tags: Optional[str] = None
    include_tags: Optional[str] = None
    max_redirects: int = field(default_factory=lambda: settings.max_redirects)
    user_agent: Optional[str] = None


@dataclass
class FetchAttempt:
    """One HTTP round trip, including any redirects that were followed."""

    response: httpx.Response
    headers: dict[str, str]
    redirects: List[str] = field(default_factory=list)

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def final_url(self) -> str:
        return str(self.response.url)


@dataclass
class ScrapeResult:
    """Either extracted ``text`` or an ``error`` message, never both."""

    text: Optional[str] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.error is None):
            raise ValueError("ScrapeResult needs exactly one of text or error")

    @property
    def ok(self) -> bool:
        return self.error is None
