"""Centralised settings for the CanLII MCP server.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # CanLII REST API
    # ------------------------------------------------------------------
    canlii_api_key: str = field(
        default_factory=lambda: os.environ.get("CANLII_API_KEY", "")
    )
    canlii_api_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "CANLII_API_BASE_URL", "https://api.canlii.org/v1"
        )
    )

    # ------------------------------------------------------------------
    # Session continuity (cookie capture for the CanLII website)
    # ------------------------------------------------------------------
    session_origin: str = field(
        default_factory=lambda: os.environ.get("SESSION_ORIGIN", "https://canlii.org/")
    )
    session_host: str = field(
        default_factory=lambda: os.environ.get("SESSION_HOST", "canlii.org")
    )

    # ------------------------------------------------------------------
    # Scraper
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    max_attempts: int = field(
        default_factory=lambda: int(os.environ.get("SCRAPE_MAX_ATTEMPTS", "3"))
    )
    first_attempt_delay: float = field(
        default_factory=lambda: float(os.environ.get("SCRAPE_FIRST_ATTEMPT_DELAY", "0.2"))
    )
    retry_base_delay: float = field(
        default_factory=lambda: float(os.environ.get("SCRAPE_RETRY_BASE_DELAY", "1.0"))
    )
    rate_limit_delay: float = field(
        default_factory=lambda: float(os.environ.get("SCRAPE_RATE_LIMIT_DELAY", "2.0"))
    )
    redirect_delay: float = field(
        default_factory=lambda: float(os.environ.get("SCRAPE_REDIRECT_DELAY", "0.1"))
    )
    max_redirects: int = field(
        default_factory=lambda: int(os.environ.get("SCRAPE_MAX_REDIRECTS", "10"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get("SCRAPE_USER_AGENT", DEFAULT_USER_AGENT)
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )


# Module-level singleton, import this everywhere:
#   from canlii_mcp.config import settings
settings = Settings()
