"""Request validation and tag-selector normalisation.

Nothing in this module touches the network: a request that fails here is
rejected before any session or fetch call is made.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from canlii_mcp.config import settings
from canlii_mcp.scraper.errors import ValidationError
from canlii_mcp.scraper.models import ScrapeRequest

MAX_TAGS_LENGTH = 256
_HTTP_PREFIXES = ("http://", "https://")


def trim_tags(tags: Optional[str]) -> Optional[str]:
    """Normalise a comma-separated tag list.

    Each segment is stripped and empty segments are dropped::

        >>> trim_tags("a, b ,, c")
        'a,b,c'

    ``None`` passes through unchanged.
    """
    if tags is None:
        return None
    return ",".join(t.strip() for t in tags.split(",") if t.strip())


def _pick(data: Mapping[str, Any], camel: str, snake: str) -> Any:
    # The tool surface speaks camelCase, Python callers snake_case.
    value = data.get(camel)
    return data.get(snake) if value is None else value


def _is_valid_url(url: Any) -> bool:
    if not isinstance(url, str) or not url.lower().startswith(_HTTP_PREFIXES):
        return False
    try:
        return bool(httpx.URL(url).host)
    except httpx.InvalidURL:
        return False


def _is_valid_tags(tags: Any) -> bool:
    return tags is None or (isinstance(tags, str) and len(tags) <= MAX_TAGS_LENGTH)


def validate_request(data: Any) -> ScrapeRequest:
    """Validate *data* and return a normalised :class:`ScrapeRequest`.

    Every rule is checked so the caller sees all violations at once.

    Raises:
        ValidationError: With the full list of error messages.
    """
    if not isinstance(data, Mapping):
        raise ValidationError(["Invalid request data"])

    url = data.get("url")
    exclude_tags = _pick(data, "excludeTags", "exclude_tags")
    include_tags = _pick(data, "includeTags", "include_tags")
    max_redirects = _pick(data, "maxRedirects", "max_redirects")
    user_agent = _pick(data, "userAgent", "user_agent")

    errors: list[str] = []
    if not _is_valid_url(url):
        errors.append("Invalid URL")
    if not _is_valid_tags(exclude_tags):
        errors.append("Invalid excludeTags")
    if not _is_valid_tags(include_tags):
        errors.append("Invalid includeTags")
    if max_redirects is not None and (
        isinstance(max_redirects, bool)
        or not isinstance(max_redirects, int)
        or max_redirects < 1
    ):
        errors.append("Invalid maxRedirects")
    if user_agent is not None and not isinstance(user_agent, str):
        errors.append("Invalid userAgent")

    if errors:
        raise ValidationError(errors)

    return ScrapeRequest(
        url=url,
        exclude_tags=trim_tags(exclude_tags) or None,
        include_tags=trim_tags(include_tags) or None,
        max_redirects=max_redirects or settings.max_redirects,
        user_agent=user_agent or None,
    )
