"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from canlii_mcp.api import app

    uvicorn canlii_mcp.api:app --reload
"""

from canlii_mcp.api.app import app

__all__ = ["app"]
