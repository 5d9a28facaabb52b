"""Logging setup shared by the CLI, the MCP server and the HTTP API.

Log records go to stderr: when the MCP server runs over stdio, stdout is the
protocol channel and must stay clean.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from canlii_mcp.config import settings

_DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure the root logger once for the whole process.

    Args:
        level: Level name such as ``"DEBUG"``; defaults to ``settings.log_level``.
        log_format: Custom format string (optional).
    """
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=log_format or _DEFAULT_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    # httpx logs every request at INFO; keep it to warnings.
    logging.getLogger("httpx").setLevel(logging.WARNING)
