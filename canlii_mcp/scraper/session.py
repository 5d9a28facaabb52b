"""Cookie continuity for the one site that needs it.

CanLII hands out cookies on its home page.  A :class:`SessionContext`
captures them once and every later request to that host replays them.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from canlii_mcp.config import settings
from canlii_mcp.scraper.fetcher import build_headers

logger = logging.getLogger(__name__)


class SessionContext:
    """Write-once cookie store for a single origin.

    One instance is shared by every scrape in the process.  Concurrent
    callers may both see an empty store and both establish a session; the
    last one to finish wins, which only costs a redundant request.
    """

    def __init__(self, origin: Optional[str] = None, host: Optional[str] = None) -> None:
        self.origin = origin or settings.session_origin
        self.host = (host or settings.session_host).lower()
        self.cookies: List[str] = []

    @property
    def established(self) -> bool:
        return bool(self.cookies)

    def applies_to(self, url: str) -> bool:
        """Return ``True`` if *url* points at the session host or a subdomain."""
        try:
            host = httpx.URL(url).host.lower()
        except httpx.InvalidURL:
            return False
        return host == self.host or host.endswith("." + self.host)

    def cookie_header(self) -> Optional[str]:
        return "; ".join(self.cookies) if self.cookies else None

    async def ensure_session(self, client: httpx.AsyncClient) -> None:
        """Capture session cookies from the origin unless already held.

        Failures are logged and swallowed: scraping continues without cookies.
        """
        if self.established:
            return

        logger.info("[session] establishing session with %s", self.origin)
        try:
            response = await client.get(
                self.origin, headers=build_headers(), follow_redirects=True
            )
        except httpx.HTTPError as exc:
            logger.warning("[session] failed to establish session: %r", exc)
            return

        if not response.is_success:
            logger.warning("[session] origin answered %d; continuing without cookies",
                           response.status_code)
            return

        # Only the name=value pair is replayed; attributes like Path/Expires
        # belong to Set-Cookie, not Cookie.
        cookies = [
            raw.split(";", 1)[0].strip()
            for raw in response.headers.get_list("set-cookie")
            if raw.split(";", 1)[0].strip()
        ]
        if cookies:
            self.cookies = cookies
            logger.info("[session] session established (%d cookie(s))", len(cookies))
        else:
            logger.info("[session] origin set no cookies")
