"""CanLII lookup endpoints.

Routes
------
GET /canlii/{lang}/courts                                   → get_courts_and_tribunals
GET /canlii/{lang}/cases/{db}?offset=&resultCount=          → get_case_law_decisions
GET /canlii/{lang}/cases/{db}/{case_id}                     → get_case_metadata
GET /canlii/{lang}/citator/{db}/{case_id}/{metadata_type}   → get_case_citator
GET /canlii/{lang}/legislation                              → get_legislation_databases
GET /canlii/{lang}/legislation/{db}                         → browse_legislation
GET /canlii/{lang}/legislation/{db}/{legislation_id}        → get_legislation_regulation_metadata

Every route that the upstream API filters by date accepts the date filters
as query parameters (``publishedBefore`` … ``decisionDateAfter``).
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from canlii_mcp import tools
from canlii_mcp.canlii.client import MAX_RESULT_COUNT
from canlii_mcp.canlii.schemas import DateFilters

router = APIRouter()

Language = Literal["en", "fr"]
MetadataType = Literal["citedCases", "citingCases", "citedLegislations"]


def _unwrap(result: dict[str, Any]) -> dict[str, Any]:
    if "error" in result:
        raise HTTPException(status_code=502, detail=result["error"])
    return result


@router.get("/{language}/courts")
async def courts_and_tribunals(
    language: Language, request: Request, dates: DateFilters = Depends()
) -> dict[str, Any]:
    return _unwrap(
        await tools.get_courts_and_tribunals(
            request.app.state.tools, language, **dates.as_kwargs()
        )
    )


@router.get("/{language}/cases/{database_id}")
async def case_law_decisions(
    language: Language,
    database_id: str,
    request: Request,
    offset: int = Query(0, ge=0),
    resultCount: int = Query(100, ge=1, le=MAX_RESULT_COUNT),
    dates: DateFilters = Depends(),
) -> dict[str, Any]:
    return _unwrap(
        await tools.get_case_law_decisions(
            request.app.state.tools,
            language,
            database_id,
            offset,
            resultCount,
            **dates.as_kwargs(),
        )
    )


@router.get("/{language}/cases/{database_id}/{case_id}")
async def case_metadata(
    language: Language,
    database_id: str,
    case_id: str,
    request: Request,
    dates: DateFilters = Depends(),
) -> dict[str, Any]:
    return _unwrap(
        await tools.get_case_metadata(
            request.app.state.tools, language, database_id, case_id, **dates.as_kwargs()
        )
    )


@router.get("/{language}/citator/{database_id}/{case_id}/{metadata_type}")
async def case_citator(
    language: Language,
    database_id: str,
    case_id: str,
    metadata_type: MetadataType,
    request: Request,
    dates: DateFilters = Depends(),
) -> dict[str, Any]:
    return _unwrap(
        await tools.get_case_citator(
            request.app.state.tools,
            language,
            database_id,
            case_id,
            metadata_type,
            **dates.as_kwargs(),
        )
    )


@router.get("/{language}/legislation")
async def legislation_databases(
    language: Language, request: Request, dates: DateFilters = Depends()
) -> dict[str, Any]:
    return _unwrap(
        await tools.get_legislation_databases(
            request.app.state.tools, language, **dates.as_kwargs()
        )
    )


@router.get("/{language}/legislation/{database_id}")
async def legislation_in_database(
    language: Language,
    database_id: str,
    request: Request,
    dates: DateFilters = Depends(),
) -> dict[str, Any]:
    return _unwrap(
        await tools.browse_legislation(
            request.app.state.tools, language, database_id, **dates.as_kwargs()
        )
    )


@router.get("/{language}/legislation/{database_id}/{legislation_id}")
async def legislation_metadata(
    language: Language, database_id: str, legislation_id: str, request: Request
) -> dict[str, Any]:
    return _unwrap(
        await tools.get_legislation_regulation_metadata(
            request.app.state.tools, language, database_id, legislation_id
        )
    )
