"""HTTP fetcher that follows redirects by hand.

The transport's own redirect handling is disabled so the same browser-like
header set (including the session ``Cookie``) is sent on every hop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from canlii_mcp.config import settings
from canlii_mcp.scraper.models import FetchAttempt

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


def build_headers(
    user_agent: Optional[str] = None,
    cookie: Optional[str] = None,
) -> dict[str, str]:
    """Return the default browser header set.

    Args:
        user_agent: Overrides the configured User-Agent when given.
        cookie: Session cookie string, sent as ``Cookie`` when non-empty.
    """
    headers = {
        "User-Agent": user_agent or settings.user_agent,
        "Accept": (
            "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate, br",
        "DNT": "1",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "cross-site",
        "Sec-Fetch-User": "?1",
        "Cache-Control": "max-age=0",
        "Referer": settings.session_origin,
    }
    if cookie:
        headers["Cookie"] = cookie
    return headers


def _is_redirect(response: httpx.Response) -> bool:
    return 300 <= response.status_code < 400 and "location" in response.headers


async def fetch_with_redirects(
    client: httpx.AsyncClient,
    url: str,
    headers: dict[str, str],
    max_redirects: int,
    *,
    redirect_delay: Optional[float] = None,
    sleep: SleepFn = asyncio.sleep,
) -> FetchAttempt:
    """GET *url*, following up to *max_redirects* redirects manually.

    Relative ``Location`` values are resolved against the URL that produced
    them.  When the bound is reached while the server is still redirecting,
    the last 3xx response is returned as-is; interpreting it is the caller's
    job.
    """
    delay = settings.redirect_delay if redirect_delay is None else redirect_delay

    response = await client.get(url, headers=headers, follow_redirects=False)
    redirects: list[str] = []

    while _is_redirect(response) and len(redirects) < max_redirects:
        target = str(response.url.join(response.headers["location"]))
        await sleep(delay)
        logger.debug("[fetch] %s -> %s (%d)", response.url, target, response.status_code)
        response = await client.get(target, headers=headers, follow_redirects=False)
        redirects.append(target)

    if _is_redirect(response):
        logger.warning(
            "[fetch] stopped after %d redirect(s); last response is %d",
            len(redirects),
            response.status_code,
        )

    return FetchAttempt(response=response, headers=headers, redirects=redirects)
