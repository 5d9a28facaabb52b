"""Tests for the scraper core (validate → session → fetch/retry → extract).

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made.
- Every :class:`Scraper` is given a recording ``sleep`` so backoff delays are
  asserted on instead of waited for.
- Delays come from an explicit :class:`Settings` so environment overrides
  cannot change the expected schedule.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest
import respx

from canlii_mcp.config import Settings
from canlii_mcp.scraper import (
    ExtractionError,
    ScrapeRequest,
    ScrapeResult,
    Scraper,
    SessionContext,
    ValidationError,
    build_headers,
    extract_text,
    fetch_with_redirects,
    trim_tags,
    validate_request,
)
from canlii_mcp.scraper.retry import ACCESS_DENIED, NOT_FOUND, RATE_LIMITED


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_SIMPLE_HTML = """\
<!DOCTYPE html>
<html>
<head><title>Test Page</title></head>
<body>
  <nav>Home | About</nav>
  <main>
    <p>This is the main content of the test page.</p>
    <p>It discusses the Charter and administrative law.</p>
  </main>
  <footer>Copyright</footer>
</body>
</html>
"""

_PAGE = "https://example.com/article"


class SleepRecorder:
    """Async stand-in for ``asyncio.sleep`` that only records delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def config() -> Settings:
    return Settings(
        session_origin="https://canlii.org/",
        session_host="canlii.org",
        max_attempts=3,
        first_attempt_delay=0.2,
        retry_base_delay=1.0,
        rate_limit_delay=2.0,
        redirect_delay=0.1,
        max_redirects=10,
    )


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
async def scraper(config, sleep):
    session = SessionContext(origin=config.session_origin, host=config.session_host)
    async with Scraper(session=session, sleep=sleep, config=config) as s:
        yield s


# ---------------------------------------------------------------------------
# trim_tags
# ---------------------------------------------------------------------------

class TestTrimTags:
    def test_trims_and_drops_empty_segments(self) -> None:
        assert trim_tags("a, b ,, c") == "a,b,c"

    def test_none_passes_through(self) -> None:
        assert trim_tags(None) is None

    def test_only_separators_gives_empty(self) -> None:
        assert trim_tags(" , ,") == ""

    @pytest.mark.parametrize("tags", ["p", " p , div ", "a,,b", "main, .content ,#x", ""])
    def test_idempotent(self, tags: str) -> None:
        once = trim_tags(tags)
        assert trim_tags(once) == once


# ---------------------------------------------------------------------------
# validate_request
# ---------------------------------------------------------------------------

class TestValidateRequest:
    def test_valid_request_is_normalised(self) -> None:
        req = validate_request(
            {"url": "https://example.com", "excludeTags": " nav , ,aside", "includeTags": "p, h1"}
        )
        assert isinstance(req, ScrapeRequest)
        assert req.url == "https://example.com"
        assert req.exclude_tags == "nav,aside"
        assert req.include_tags == "p,h1"

    def test_defaults(self) -> None:
        req = validate_request({"url": "http://example.com"})
        assert req.exclude_tags is None
        assert req.include_tags is None
        assert req.max_redirects >= 1
        assert req.user_agent is None

    def test_snake_case_keys_accepted(self) -> None:
        req = validate_request(
            {"url": "https://example.com", "include_tags": "p", "max_redirects": 3, "user_agent": "bot"}
        )
        assert req.include_tags == "p"
        assert req.max_redirects == 3
        assert req.user_agent == "bot"

    @pytest.mark.parametrize("url", ["ftp://example.com", "example.com", "", "httpx://x", None, 42])
    def test_rejects_non_http_urls(self, url) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_request({"url": url})
        assert exc_info.value.errors == ["Invalid URL"]

    @pytest.mark.parametrize("url", ["http://[::1", "http://exa\x00mple.com", "http://", "https:///path"])
    def test_rejects_unparseable_urls(self, url) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_request({"url": url})
        assert exc_info.value.errors == ["Invalid URL"]

    def test_accumulates_every_violation(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_request({"url": "nope", "excludeTags": "x" * 257, "includeTags": 5})
        assert exc_info.value.errors == [
            "Invalid URL",
            "Invalid excludeTags",
            "Invalid includeTags",
        ]
        assert str(exc_info.value).startswith("Invalid request: Invalid URL")

    def test_tag_length_limit_is_inclusive(self) -> None:
        req = validate_request({"url": "https://example.com", "excludeTags": "p" * 256})
        assert req.exclude_tags == "p" * 256

    def test_rejects_non_mapping(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_request("https://example.com")
        assert exc_info.value.errors == ["Invalid request data"]

    @pytest.mark.parametrize("value", [0, -1, True, "5", 1.5])
    def test_rejects_bad_max_redirects(self, value) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_request({"url": "https://example.com", "maxRedirects": value})
        assert exc_info.value.errors == ["Invalid maxRedirects"]

    def test_blank_tag_lists_are_absent(self) -> None:
        req = validate_request({"url": "https://example.com", "includeTags": " , "})
        assert req.include_tags is None


# ---------------------------------------------------------------------------
# ScrapeResult
# ---------------------------------------------------------------------------

class TestScrapeResult:
    def test_text_and_error_are_exclusive(self) -> None:
        with pytest.raises(ValueError):
            ScrapeResult(text="a", error="b")
        with pytest.raises(ValueError):
            ScrapeResult()

    def test_ok(self) -> None:
        assert ScrapeResult(text="a").ok
        assert not ScrapeResult(error="b").ok


# ---------------------------------------------------------------------------
# extract_text
# ---------------------------------------------------------------------------

class TestExtractText:
    def test_script_removed_by_default(self) -> None:
        assert extract_text("<body><script>x</script><p>Hello</p></body>") == "Hello"

    def test_default_noise_removed(self) -> None:
        html = (
            "<body><header>Top</header><nav>Menu</nav><aside>Ads</aside>"
            "<style>.a{}</style><p>Body text</p><footer>Bottom</footer></body>"
        )
        assert extract_text(html) == "Body text"

    def test_include_tags_concatenates_matches(self) -> None:
        text = extract_text("<body><div>skip</div><p>A</p><p>B</p></body>", include_tags="p")
        assert "A" in text
        assert "B" in text
        assert "skip" not in text

    def test_include_tags_keep_elements_separated(self) -> None:
        assert extract_text("<body><p>A</p><p>B</p></body>", include_tags="p") == "A B"

    def test_include_tags_take_precedence_over_main(self) -> None:
        html = "<body><main><p>Main</p></main><h1>Heading</h1></body>"
        assert extract_text(html, include_tags="h1") == "Heading"

    def test_exclude_applies_alongside_include(self) -> None:
        html = "<body><div><p>Keep</p><span>Drop</span></div></body>"
        assert extract_text(html, exclude_tags="span", include_tags="div") == "Keep"

    def test_exclude_tags_are_cumulative_with_defaults(self) -> None:
        html = "<body><script>s</script><p>Keep</p><table><tr><td>Drop</td></tr></table></body>"
        assert extract_text(html, exclude_tags="table") == "Keep"

    def test_unmatched_include_falls_back_to_content_region(self) -> None:
        html = "<body><div>Outside</div><article>Inside</article></body>"
        assert extract_text(html, include_tags="blockquote") == "Inside"

    def test_content_markers_by_class_and_id(self) -> None:
        assert extract_text('<body><div>x</div><div class="content">C</div></body>') == "C"
        assert extract_text('<body><div>x</div><div id="content">D</div></body>') == "D"

    def test_falls_back_to_body(self) -> None:
        assert extract_text("<html><body><div>Only <b>body</b></div></body></html>") == "Only body"

    def test_fragment_without_body(self) -> None:
        assert extract_text("<p>Loose fragment</p>") == "Loose fragment"

    def test_whitespace_is_normalised(self) -> None:
        html = "<body><p>  one\n\n\ttwo   three \n</p></body>"
        assert extract_text(html) == "one two three"

    def test_main_content_page(self) -> None:
        text = extract_text(_SIMPLE_HTML)
        assert text.startswith("This is the main content")
        assert "Home" not in text
        assert "Copyright" not in text

    def test_empty_after_stripping_is_an_error(self) -> None:
        with pytest.raises(ExtractionError, match="No text content"):
            extract_text("<body><script>x</script><nav>menu</nav>  \n\t </body>")

    def test_exclude_parent_and_child_together(self) -> None:
        html = "<body><div class='x'><span>gone</span></div><p>stay</p></body>"
        assert extract_text(html, exclude_tags="div,span") == "stay"

    def test_invalid_selector_is_an_extraction_error(self) -> None:
        with pytest.raises(ExtractionError, match="Invalid tag selector"):
            extract_text("<body><p>x</p></body>", include_tags="p[")


# ---------------------------------------------------------------------------
# build_headers
# ---------------------------------------------------------------------------

class TestBuildHeaders:
    def test_browser_headers_present(self) -> None:
        headers = build_headers()
        for name in (
            "User-Agent", "Accept", "Accept-Language", "Accept-Encoding", "DNT",
            "Connection", "Upgrade-Insecure-Requests", "Sec-Fetch-Dest",
            "Sec-Fetch-Mode", "Sec-Fetch-Site", "Sec-Fetch-User", "Cache-Control",
            "Referer",
        ):
            assert name in headers
        assert "Cookie" not in headers

    def test_user_agent_and_cookie_override(self) -> None:
        headers = build_headers(user_agent="TestBot/1.0", cookie="a=1; b=2")
        assert headers["User-Agent"] == "TestBot/1.0"
        assert headers["Cookie"] == "a=1; b=2"


# ---------------------------------------------------------------------------
# fetch_with_redirects
# ---------------------------------------------------------------------------

class TestFetchWithRedirects:
    async def test_follows_relative_redirect(self, sleep) -> None:
        with respx.mock:
            respx.get("https://example.com/old").mock(
                return_value=httpx.Response(301, headers={"Location": "/new"})
            )
            new = respx.get("https://example.com/new").mock(
                return_value=httpx.Response(200, text="ok")
            )
            async with httpx.AsyncClient() as client:
                fetched = await fetch_with_redirects(
                    client, "https://example.com/old", build_headers(), 10,
                    redirect_delay=0.1, sleep=sleep,
                )

        assert fetched.status_code == 200
        assert fetched.redirects == ["https://example.com/new"]
        assert fetched.final_url == "https://example.com/new"
        assert new.call_count == 1
        assert sleep.delays == [0.1]

    async def test_same_headers_sent_on_every_hop(self, sleep) -> None:
        headers = build_headers(user_agent="HopBot", cookie="sid=abc")
        with respx.mock:
            first = respx.get("https://a.example.com/").mock(
                return_value=httpx.Response(302, headers={"Location": "https://b.example.com/"})
            )
            second = respx.get("https://b.example.com/").mock(
                return_value=httpx.Response(200, text="ok")
            )
            async with httpx.AsyncClient() as client:
                await fetch_with_redirects(
                    client, "https://a.example.com/", headers, 10, sleep=sleep
                )

        for route in (first, second):
            request = route.calls.last.request
            assert request.headers["User-Agent"] == "HopBot"
            assert request.headers["Cookie"] == "sid=abc"

    async def test_stops_at_bound_and_returns_last_redirect(self, sleep) -> None:
        with respx.mock:
            loop = respx.get("https://example.com/loop").mock(
                return_value=httpx.Response(302, headers={"Location": "/loop"})
            )
            async with httpx.AsyncClient() as client:
                fetched = await fetch_with_redirects(
                    client, "https://example.com/loop", build_headers(), 2, sleep=sleep
                )

        assert fetched.status_code == 302
        assert len(fetched.redirects) == 2
        assert loop.call_count == 3

    async def test_redirect_without_location_is_returned(self, sleep) -> None:
        with respx.mock:
            respx.get(_PAGE).mock(return_value=httpx.Response(304))
            async with httpx.AsyncClient() as client:
                fetched = await fetch_with_redirects(
                    client, _PAGE, build_headers(), 10, sleep=sleep
                )

        assert fetched.status_code == 304
        assert fetched.redirects == []
        assert sleep.delays == []

    async def test_error_status_is_not_interpreted(self, sleep) -> None:
        with respx.mock:
            respx.get(_PAGE).mock(return_value=httpx.Response(500))
            async with httpx.AsyncClient() as client:
                fetched = await fetch_with_redirects(
                    client, _PAGE, build_headers(), 10, sleep=sleep
                )

        assert fetched.status_code == 500


# ---------------------------------------------------------------------------
# SessionContext
# ---------------------------------------------------------------------------

class TestSessionContext:
    def test_applies_to_session_host_and_subdomains(self) -> None:
        session = SessionContext(origin="https://canlii.org/", host="canlii.org")
        assert session.applies_to("https://canlii.org/en/")
        assert session.applies_to("https://www.canlii.org/en/ca/scc/")
        assert not session.applies_to("https://example.com/")
        assert not session.applies_to("https://notcanlii.org/")

    async def test_captures_cookie_pairs(self) -> None:
        session = SessionContext(origin="https://canlii.org/", host="canlii.org")
        with respx.mock:
            respx.get("https://canlii.org/").mock(
                return_value=httpx.Response(
                    200,
                    headers=[
                        ("Set-Cookie", "JSESSIONID=abc; Path=/; HttpOnly"),
                        ("Set-Cookie", "lang=en"),
                    ],
                )
            )
            async with httpx.AsyncClient() as client:
                await session.ensure_session(client)

        assert session.cookies == ["JSESSIONID=abc", "lang=en"]
        assert session.cookie_header() == "JSESSIONID=abc; lang=en"

    async def test_established_session_makes_no_request(self) -> None:
        session = SessionContext(origin="https://canlii.org/", host="canlii.org")
        session.cookies = ["sid=1"]
        with respx.mock(assert_all_called=False) as respx_mock:
            route = respx_mock.get("https://canlii.org/").mock(return_value=httpx.Response(200))
            async with httpx.AsyncClient() as client:
                await session.ensure_session(client)

        assert not route.called

    async def test_transport_failure_is_swallowed(self) -> None:
        session = SessionContext(origin="https://canlii.org/", host="canlii.org")
        with respx.mock:
            respx.get("https://canlii.org/").mock(side_effect=httpx.ConnectError("down"))
            async with httpx.AsyncClient() as client:
                await session.ensure_session(client)

        assert not session.established
        assert session.cookie_header() is None

    async def test_error_status_stores_nothing(self) -> None:
        session = SessionContext(origin="https://canlii.org/", host="canlii.org")
        with respx.mock:
            respx.get("https://canlii.org/").mock(
                return_value=httpx.Response(503, headers={"Set-Cookie": "a=1"})
            )
            async with httpx.AsyncClient() as client:
                await session.ensure_session(client)

        assert session.cookies == []


# ---------------------------------------------------------------------------
# Scraper (retry controller)
# ---------------------------------------------------------------------------

class TestScraper:
    async def test_success_returns_text(self, scraper, sleep) -> None:
        with respx.mock:
            respx.get(_PAGE).mock(return_value=httpx.Response(200, text=_SIMPLE_HTML))
            result = await scraper.scrape({"url": _PAGE})

        assert result.ok
        assert "main content" in result.text
        assert sleep.delays == [0.2]

    async def test_invalid_url_makes_no_network_call(self, scraper) -> None:
        with respx.mock(assert_all_called=False) as respx_mock:
            route = respx_mock.get(url__regex=r".*").mock(return_value=httpx.Response(200))
            result = await scraper.scrape({"url": "ftp://example.com/file"})

        assert not result.ok
        assert "Invalid URL" in result.error
        assert route.call_count == 0

    async def test_unparseable_url_is_reported_not_raised(self, scraper) -> None:
        with respx.mock(assert_all_called=False) as respx_mock:
            route = respx_mock.get(url__regex=r".*").mock(return_value=httpx.Response(200))
            result = await scraper.scrape({"url": "http://[::1"})

        assert result.error == "Invalid request: Invalid URL"
        assert route.call_count == 0

    async def test_unparseable_prevalidated_url_fails_once(self, scraper, sleep) -> None:
        result = await scraper.scrape(ScrapeRequest(url="http://[::1"))

        assert not result.ok
        assert result.error.startswith("Invalid URL:")
        assert sleep.delays == [0.2]

    async def test_404_fails_after_one_attempt(self, scraper, sleep) -> None:
        with respx.mock:
            route = respx.get(_PAGE).mock(return_value=httpx.Response(404))
            result = await scraper.scrape({"url": _PAGE})

        assert result.error == NOT_FOUND
        assert route.call_count == 1
        assert sleep.delays == [0.2]

    async def test_429_twice_then_success(self, scraper, sleep) -> None:
        with respx.mock:
            route = respx.get(_PAGE).mock(
                side_effect=[
                    httpx.Response(429),
                    httpx.Response(429),
                    httpx.Response(200, text="<html><body><p>Finally</p></body></html>"),
                ]
            )
            result = await scraper.scrape({"url": _PAGE})

        assert result.text == "Finally"
        assert route.call_count == 3
        # pre-attempt backoff interleaved with the longer rate-limit pauses
        assert sleep.delays == [0.2, 2.0, 2.0, 4.0, 3.0]

    async def test_429_on_every_attempt_fails(self, scraper) -> None:
        with respx.mock:
            respx.get(_PAGE).mock(return_value=httpx.Response(429))
            result = await scraper.scrape({"url": _PAGE})

        assert result.error == RATE_LIMITED

    async def test_403_fails_after_three_attempts(self, scraper, sleep) -> None:
        with respx.mock:
            route = respx.get(_PAGE).mock(return_value=httpx.Response(403))
            result = await scraper.scrape({"url": _PAGE})

        assert result.error == ACCESS_DENIED
        assert route.call_count == 3
        assert sleep.delays == [0.2, 2.0, 3.0]
        assert sleep.delays[1] > sleep.delays[0]
        assert sleep.delays[2] > sleep.delays[1]

    async def test_other_status_reports_code_and_reason(self, scraper) -> None:
        with respx.mock:
            route = respx.get(_PAGE).mock(return_value=httpx.Response(500))
            result = await scraper.scrape({"url": _PAGE})

        assert result.error == "Failed to fetch: 500 Internal Server Error"
        assert route.call_count == 3

    async def test_server_error_then_success(self, scraper) -> None:
        with respx.mock:
            respx.get(_PAGE).mock(
                side_effect=[httpx.Response(503), httpx.Response(200, text=_SIMPLE_HTML)]
            )
            result = await scraper.scrape({"url": _PAGE})

        assert result.ok

    async def test_transport_error_retried_then_reported(self, scraper, sleep) -> None:
        with respx.mock:
            route = respx.get(_PAGE).mock(side_effect=httpx.ConnectError("connection refused"))
            result = await scraper.scrape({"url": _PAGE})

        assert result.error == "Request failed: connection refused"
        assert route.call_count == 3
        assert sleep.delays == [0.2, 1.0, 2.0, 2.0, 3.0]

    async def test_transport_error_then_success(self, scraper) -> None:
        with respx.mock:
            respx.get(_PAGE).mock(
                side_effect=[
                    httpx.ReadTimeout("timed out"),
                    httpx.Response(200, text=_SIMPLE_HTML),
                ]
            )
            result = await scraper.scrape({"url": _PAGE})

        assert result.ok

    async def test_redirect_bound_hit_is_classified_and_retried(self, scraper) -> None:
        with respx.mock:
            loop = respx.get("https://example.com/loop").mock(
                return_value=httpx.Response(302, headers={"Location": "/loop"})
            )
            result = await scraper.scrape({"url": "https://example.com/loop", "maxRedirects": 1})

        assert result.error == "Failed to fetch: 302 Found"
        assert loop.call_count == 6  # 3 attempts × (first request + 1 redirect)

    async def test_extraction_failure_is_not_retried(self, scraper) -> None:
        with respx.mock:
            route = respx.get(_PAGE).mock(
                return_value=httpx.Response(200, text="<html><body><script>x</script></body></html>")
            )
            result = await scraper.scrape({"url": _PAGE})

        assert result.error == "No text content found on the page"
        assert route.call_count == 1

    async def test_tag_options_reach_extractor(self, scraper) -> None:
        html = "<html><body><h1>Title</h1><p>A</p><p class='ad'>Buy</p><p>B</p></body></html>"
        with respx.mock:
            respx.get(_PAGE).mock(return_value=httpx.Response(200, text=html))
            result = await scraper.scrape(
                {"url": _PAGE, "includeTags": "p", "excludeTags": ".ad"}
            )

        assert result.text == "A B"

    async def test_user_agent_override_is_sent(self, scraper) -> None:
        with respx.mock:
            route = respx.get(_PAGE).mock(return_value=httpx.Response(200, text=_SIMPLE_HTML))
            await scraper.scrape({"url": _PAGE, "userAgent": "LegalBot/2.0"})

        assert route.calls.last.request.headers["User-Agent"] == "LegalBot/2.0"

    async def test_canlii_url_establishes_session_once(self, scraper) -> None:
        doc = "https://www.canlii.org/en/ca/scc/doc/2008/2008scc9/2008scc9.html"
        with respx.mock:
            home = respx.get("https://canlii.org/").mock(
                return_value=httpx.Response(200, headers={"Set-Cookie": "sid=xyz; Path=/"})
            )
            page = respx.get(doc).mock(return_value=httpx.Response(200, text=_SIMPLE_HTML))
            first = await scraper.scrape({"url": doc})
            second = await scraper.scrape({"url": doc})

        assert first.ok and second.ok
        assert home.call_count == 1
        assert page.calls.last.request.headers["Cookie"] == "sid=xyz"

    async def test_unavailable_session_does_not_block(self, scraper) -> None:
        doc = "https://www.canlii.org/en/"
        with respx.mock:
            respx.get("https://canlii.org/").mock(side_effect=httpx.ConnectError("down"))
            page = respx.get(doc).mock(return_value=httpx.Response(200, text=_SIMPLE_HTML))
            result = await scraper.scrape({"url": doc})

        assert result.ok
        assert "Cookie" not in page.calls.last.request.headers

    async def test_other_hosts_skip_session(self, scraper) -> None:
        with respx.mock(assert_all_called=False) as respx_mock:
            home = respx_mock.get("https://canlii.org/").mock(return_value=httpx.Response(200))
            respx_mock.get(_PAGE).mock(return_value=httpx.Response(200, text=_SIMPLE_HTML))
            await scraper.scrape({"url": _PAGE})

        assert not home.called

    async def test_accepts_prevalidated_request(self, scraper) -> None:
        with respx.mock:
            respx.get(_PAGE).mock(return_value=httpx.Response(200, text=_SIMPLE_HTML))
            result = await scraper.scrape(ScrapeRequest(url=_PAGE, include_tags="p"))

        assert result.text.startswith("This is the main content")

    def test_backoff_grows_with_attempts(self, config) -> None:
        s = Scraper(session=SessionContext(), client=MagicMock(), config=config)
        delays = [s.backoff_delay(n) for n in (1, 2, 3)]
        assert delays == [0.2, 2.0, 3.0]
        assert delays == sorted(delays)
