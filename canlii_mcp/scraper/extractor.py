"""Content extraction: turns a fetched HTML body into normalised plain text."""

from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from canlii_mcp.scraper.errors import ExtractionError

# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

# Always stripped, before any caller-supplied exclusions.
NOISE_SELECTOR = "script, style, nav, header, footer, aside"

# Common main-content markers tried when no include selector matched.
CONTENT_SELECTOR = "main, article, .content, #content, .main"

_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _select(soup: BeautifulSoup, selector: str) -> list:
    try:
        return soup.select(selector)
    except SelectorSyntaxError as exc:
        raise ExtractionError(f"Invalid tag selector: {selector!r}") from exc


def _remove(soup: BeautifulSoup, selector: str) -> None:
    for tag in _select(soup, selector):
        # A parent matched earlier may already have taken this node with it.
        if not tag.decomposed:
            tag.decompose()


def _text_of(soup: BeautifulSoup, selector: str) -> str:
    return " ".join(tag.get_text(separator=" ") for tag in _select(soup, selector))


def normalize_text(raw: str) -> str:
    """Collapse whitespace runs (newlines and tabs included) to single spaces."""
    return _WHITESPACE.sub(" ", raw).strip()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_text(
    html: str,
    exclude_tags: Optional[str] = None,
    include_tags: Optional[str] = None,
) -> str:
    """Extract readable text from *html*.

    The default noise set is removed first, then anything matching
    *exclude_tags*.  Text is taken from *include_tags* when it matches
    something non-empty, otherwise from the main-content markers, otherwise
    from the whole remaining body.

    Raises:
        ExtractionError: If the page reduces to no text, or a selector is
            malformed.
    """
    soup = BeautifulSoup(html, "html.parser")

    _remove(soup, NOISE_SELECTOR)
    if exclude_tags:
        _remove(soup, exclude_tags)

    text = ""
    if include_tags:
        text = normalize_text(_text_of(soup, include_tags))
    if not text:
        text = normalize_text(_text_of(soup, CONTENT_SELECTOR))
    if not text:
        container = soup.body or soup
        text = normalize_text(container.get_text(separator=" "))

    if not text:
        raise ExtractionError("No text content found on the page")
    return text
