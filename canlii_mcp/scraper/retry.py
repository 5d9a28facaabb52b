"""Retry controller: the single entry point for scraping a URL.

:class:`Scraper` validates the request, establishes a session when the target
host needs one, then makes a bounded number of fetch attempts with linear
backoff.  Each attempt is reduced to an :class:`AttemptOutcome`; the loop in
:meth:`Scraper.scrape` decides what to do next from that value alone.

Status handling
---------------
    2xx         success
    403         retryable ("access denied")
    429         retryable, with an extra rate-limit pause
    404         terminal, no further attempts
    other       retryable ("failed to fetch")
    transport   retryable, with an extra backoff pause
    bad URL     terminal (a URL the HTTP client cannot parse)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from canlii_mcp.config import Settings, settings as default_settings
from canlii_mcp.scraper.errors import ExtractionError, ValidationError
from canlii_mcp.scraper.extractor import extract_text
from canlii_mcp.scraper.fetcher import SleepFn, build_headers, fetch_with_redirects
from canlii_mcp.scraper.models import FetchAttempt, ScrapeRequest, ScrapeResult
from canlii_mcp.scraper.session import SessionContext
from canlii_mcp.scraper.validator import validate_request

logger = logging.getLogger(__name__)

ACCESS_DENIED = (
    "Access denied (403): the site may be blocking automated requests. "
    "Try again later."
)
RATE_LIMITED = "Rate limited (429): too many requests. Please wait before trying again."
NOT_FOUND = "Not found (404): the requested URL does not exist."
EXHAUSTED = "Failed to fetch after all retries"


@dataclass
class AttemptOutcome:
    """Result of a single fetch attempt."""

    attempt: Optional[FetchAttempt] = None
    error: Optional[str] = None
    retryable: bool = True
    extra_delay: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class Scraper:
    """Fetch a page with retries and return its extracted text.

    Args:
        session: Shared cookie store; a private one is created if omitted.
        client: An ``httpx.AsyncClient`` to reuse.  When omitted the scraper
            creates one and closes it in :meth:`aclose`.
        sleep: Awaitable used for every delay; tests pass a recorder.
        config: Settings override (defaults to the module singleton).
    """

    def __init__(
        self,
        session: Optional[SessionContext] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: SleepFn = asyncio.sleep,
        config: Optional[Settings] = None,
    ) -> None:
        self.config = config or default_settings
        self.session = session if session is not None else SessionContext()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=self.config.request_timeout)
        self._sleep = sleep

    async def __aenter__(self) -> "Scraper":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    # ------------------------------------------------------------------
    # Delays
    # ------------------------------------------------------------------

    def backoff_delay(self, attempt: int) -> float:
        """Pause before *attempt* (1-based): short first, then linear."""
        if attempt == 1:
            return self.config.first_attempt_delay
        return self.config.retry_base_delay * attempt

    # ------------------------------------------------------------------
    # Single attempt
    # ------------------------------------------------------------------

    def classify(self, fetched: FetchAttempt, attempt: int) -> AttemptOutcome:
        """Map the final response of an attempt to an outcome."""
        response = fetched.response
        status = response.status_code
        if response.is_success:
            return AttemptOutcome(attempt=fetched)
        if status == 403:
            return AttemptOutcome(attempt=fetched, error=ACCESS_DENIED)
        if status == 429:
            return AttemptOutcome(
                attempt=fetched,
                error=RATE_LIMITED,
                extra_delay=self.config.rate_limit_delay * attempt,
            )
        if status == 404:
            return AttemptOutcome(attempt=fetched, error=NOT_FOUND, retryable=False)
        return AttemptOutcome(
            attempt=fetched,
            error=f"Failed to fetch: {status} {response.reason_phrase}".rstrip(),
        )

    async def _attempt(self, request: ScrapeRequest, attempt: int) -> AttemptOutcome:
        headers = build_headers(request.user_agent, self.session.cookie_header())
        try:
            fetched = await fetch_with_redirects(
                self.client,
                request.url,
                headers,
                request.max_redirects,
                redirect_delay=self.config.redirect_delay,
                sleep=self._sleep,
            )
        except httpx.InvalidURL as exc:
            logger.warning("[scrape] unusable URL %r: %s", request.url, exc)
            return AttemptOutcome(error=f"Invalid URL: {exc}", retryable=False)
        except httpx.HTTPError as exc:
            logger.warning("[scrape] attempt %d failed: %r", attempt, exc)
            return AttemptOutcome(
                error=f"Request failed: {str(exc) or type(exc).__name__}",
                extra_delay=self.config.retry_base_delay * attempt,
            )
        return self.classify(fetched, attempt)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(self, request: ScrapeRequest) -> AttemptOutcome:
        """Run the retry loop and return the deciding outcome."""
        if self.session.applies_to(request.url) and not self.session.established:
            await self.session.ensure_session(self.client)

        max_attempts = self.config.max_attempts
        last: Optional[AttemptOutcome] = None

        for attempt in range(1, max_attempts + 1):
            logger.info("[scrape] attempt %d/%d for %s", attempt, max_attempts, request.url)
            await self._sleep(self.backoff_delay(attempt))

            outcome = await self._attempt(request, attempt)
            if outcome.ok:
                return outcome

            last = outcome
            if not outcome.retryable or attempt == max_attempts:
                return outcome
            if outcome.extra_delay:
                await self._sleep(outcome.extra_delay)

        return last or AttemptOutcome(error=EXHAUSTED, retryable=False)

    async def scrape(self, data: Any) -> ScrapeResult:
        """Validate, fetch and extract.

        *data* is either a :class:`ScrapeRequest` or a mapping accepted by
        :func:`~canlii_mcp.scraper.validator.validate_request`.  Never raises
        for scrape failures; the error is carried in the result.
        """
        if isinstance(data, ScrapeRequest):
            request = data
        else:
            try:
                request = validate_request(data)
            except ValidationError as exc:
                return ScrapeResult(error=str(exc))

        logger.info("[scrape] scraping %s", request.url)
        outcome = await self.fetch(request)
        if not outcome.ok or outcome.attempt is None:
            logger.warning("[scrape] giving up on %s: %s", request.url, outcome.error)
            return ScrapeResult(error=outcome.error or EXHAUSTED)

        html = outcome.attempt.response.text
        lowered = html.lower()
        if "<html" not in lowered and "<body" not in lowered:
            logger.warning("[scrape] response does not look like HTML: %.200r", html)

        try:
            text = extract_text(html, request.exclude_tags, request.include_tags)
        except ExtractionError as exc:
            return ScrapeResult(error=str(exc))
        return ScrapeResult(text=text)
