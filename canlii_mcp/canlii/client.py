"""Thin async client for the CanLII REST API.

Every call builds a path and query string, issues one GET, and validates the
JSON body against the matching model in :mod:`canlii_mcp.canlii.schemas`.
Non-2xx answers raise :class:`CanLIIError` with a message naming what was
being fetched, e.g. ``"Error: Failed to fetch case metadata (404)"``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, TypeVar

import httpx
from pydantic import BaseModel

from canlii_mcp.canlii.schemas import (
    CITATOR_SCHEMAS,
    CaseDatabasesResponse,
    CaseMetadata,
    CasesResponse,
    LegislationDatabasesResponse,
    LegislationMetadata,
    LegislationsResponse,
)
from canlii_mcp.config import settings

logger = logging.getLogger(__name__)

LANGUAGES = ("en", "fr")
MAX_RESULT_COUNT = 10_000

# Optional filters accepted by most browse and citator endpoints.
DATE_FILTERS = (
    "publishedBefore",
    "publishedAfter",
    "modifiedBefore",
    "modifiedAfter",
    "changedBefore",
    "changedAfter",
    "decisionDateBefore",
    "decisionDateAfter",
)

ModelT = TypeVar("ModelT", bound=BaseModel)


class CanLIIError(Exception):
    """A CanLII call failed; ``str(exc)`` is safe to show to the agent."""


def build_date_params(filters: Mapping[str, Optional[str]]) -> dict[str, str]:
    """Keep the set date filters, in a stable order.

    Raises:
        ValueError: If *filters* holds a key that is not a known date filter.
    """
    unknown = set(filters) - set(DATE_FILTERS)
    if unknown:
        raise ValueError(f"Unknown date filter(s): {', '.join(sorted(unknown))}")
    return {name: filters[name] for name in DATE_FILTERS if filters.get(name)}


def _check_language(language: str) -> None:
    if language not in LANGUAGES:
        raise CanLIIError(f"Error: language must be one of {', '.join(LANGUAGES)}")


class CanLIIClient:
    """Query the CanLII API with a single API key.

    Args:
        api_key: CanLII API key; defaults to ``settings.canlii_api_key``.
        client: ``httpx.AsyncClient`` to reuse; one is created if omitted.
        base_url: API root, without trailing slash.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.canlii_api_key
        self.base_url = (base_url or settings.canlii_api_base_url).rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.request_timeout)

    async def __aenter__(self) -> "CanLIIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _get(
        self,
        path: str,
        model: type[ModelT],
        what: str,
        params: Optional[dict[str, str]] = None,
    ) -> ModelT:
        if not self.api_key:
            raise CanLIIError("Error: CANLII_API_KEY is not configured")

        query = {"api_key": self.api_key, **(params or {})}
        url = f"{self.base_url}/{path}"
        logger.debug("[canlii] GET %s", url)
        response = await self.client.get(url, params=query)
        if not response.is_success:
            logger.warning("[canlii] %s -> %d", path, response.status_code)
            raise CanLIIError(f"Error: Failed to fetch {what} ({response.status_code})")
        return model.model_validate(response.json())

    # ------------------------------------------------------------------
    # Case law
    # ------------------------------------------------------------------

    async def get_courts_and_tribunals(
        self, language: str, **date_filters: Optional[str]
    ) -> CaseDatabasesResponse:
        """List the case-law databases (courts and tribunals)."""
        _check_language(language)
        return await self._get(
            f"caseBrowse/{language}/",
            CaseDatabasesResponse,
            "databases",
            build_date_params(date_filters),
        )

    async def get_case_law_decisions(
        self,
        language: str,
        database_id: str,
        offset: int = 0,
        result_count: int = 100,
        **date_filters: Optional[str],
    ) -> CasesResponse:
        """List decisions in one database, most recently added first."""
        _check_language(language)
        if offset < 0:
            raise CanLIIError("Error: offset must not be negative")
        if not 1 <= result_count <= MAX_RESULT_COUNT:
            raise CanLIIError(f"Error: resultCount must be between 1 and {MAX_RESULT_COUNT}")
        params = {"offset": str(offset), "resultCount": str(result_count)}
        params.update(build_date_params(date_filters))
        return await self._get(
            f"caseBrowse/{language}/{database_id}/",
            CasesResponse,
            "case law decisions",
            params,
        )

    async def get_case_metadata(
        self, language: str, database_id: str, case_id: str, **date_filters: Optional[str]
    ) -> CaseMetadata:
        _check_language(language)
        return await self._get(
            f"caseBrowse/{language}/{database_id}/{case_id}/",
            CaseMetadata,
            "case metadata",
            build_date_params(date_filters),
        )

    async def get_case_citator(
        self,
        language: str,
        database_id: str,
        case_id: str,
        metadata_type: str,
        **date_filters: Optional[str],
    ) -> BaseModel:
        """Return what a case cites, or what cites it.

        *metadata_type* is ``citedCases``, ``citingCases`` or
        ``citedLegislations``; each has its own response shape.
        """
        _check_language(language)
        model = CITATOR_SCHEMAS.get(metadata_type)
        if model is None:
            raise CanLIIError(f"Error: Unknown metadataType: {metadata_type}")
        return await self._get(
            f"caseCitator/{language}/{database_id}/{case_id}/{metadata_type}",
            model,
            "case citator data",
            build_date_params(date_filters),
        )

    # ------------------------------------------------------------------
    # Legislation
    # ------------------------------------------------------------------

    async def get_legislation_databases(
        self, language: str, **date_filters: Optional[str]
    ) -> LegislationDatabasesResponse:
        _check_language(language)
        return await self._get(
            f"legislationBrowse/{language}/",
            LegislationDatabasesResponse,
            "legislation databases",
            build_date_params(date_filters),
        )

    async def browse_legislation(
        self, language: str, database_id: str, **date_filters: Optional[str]
    ) -> LegislationsResponse:
        _check_language(language)
        return await self._get(
            f"legislationBrowse/{language}/{database_id}/",
            LegislationsResponse,
            "legislation",
            build_date_params(date_filters),
        )

    async def get_legislation_regulation_metadata(
        self, language: str, database_id: str, legislation_id: str
    ) -> LegislationMetadata:
        _check_language(language)
        return await self._get(
            f"legislationBrowse/{language}/{database_id}/{legislation_id}/",
            LegislationMetadata,
            "legislation metadata",
        )
