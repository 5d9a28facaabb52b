"""Response shapes for the CanLII REST API (v1).

Responses are validated against these models before being handed to the
agent; unknown fields are dropped.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Request filters
# ---------------------------------------------------------------------------

_YMD = " (YYYY-MM-DD format)"


class DateFilters(BaseModel):
    """Optional date bounds accepted by the browse and citator endpoints."""

    publishedBefore: Optional[str] = Field(
        default=None, description="First published on CanLII before this date" + _YMD
    )
    publishedAfter: Optional[str] = Field(
        default=None, description="First published on CanLII after this date" + _YMD
    )
    modifiedBefore: Optional[str] = Field(
        default=None, description="Content last modified before this date" + _YMD
    )
    modifiedAfter: Optional[str] = Field(
        default=None, description="Content last modified after this date" + _YMD
    )
    changedBefore: Optional[str] = Field(
        default=None, description="Metadata or content last changed before this date" + _YMD
    )
    changedAfter: Optional[str] = Field(
        default=None, description="Metadata or content last changed after this date" + _YMD
    )
    decisionDateBefore: Optional[str] = Field(
        default=None, description="Decision dated before this date" + _YMD
    )
    decisionDateAfter: Optional[str] = Field(
        default=None, description="Decision dated after this date" + _YMD
    )

    def as_kwargs(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Case law
# ---------------------------------------------------------------------------


class CaseDatabase(BaseModel):
    databaseId: str
    jurisdiction: str
    name: str


class CaseDatabasesResponse(BaseModel):
    caseDatabases: list[CaseDatabase]


class CaseSummary(BaseModel):
    """A decision as listed by browse and citator calls.

    ``caseId`` is keyed by language, e.g. ``{"en": "2008scc9"}``.
    """

    databaseId: str
    caseId: dict[str, str]
    title: str
    citation: str


class CasesResponse(BaseModel):
    cases: list[CaseSummary]


class CaseMetadata(BaseModel):
    databaseId: str
    caseId: str
    url: str
    title: str
    citation: str
    language: str
    docketNumber: Optional[str] = None
    decisionDate: Optional[str] = None
    keywords: Optional[str] = None
    concatenatedId: Optional[str] = None


# ---------------------------------------------------------------------------
# Citator
# ---------------------------------------------------------------------------


class CitedCasesResponse(BaseModel):
    citedCases: list[CaseSummary]


class CitingCasesResponse(BaseModel):
    citingCases: list[CaseSummary]


class LegislationSummary(BaseModel):
    databaseId: str
    legislationId: str
    title: str
    citation: str
    type: str


class CitedLegislationsResponse(BaseModel):
    citedLegislations: list[LegislationSummary]


# ---------------------------------------------------------------------------
# Legislation
# ---------------------------------------------------------------------------


class LegislationDatabase(BaseModel):
    databaseId: str
    type: str
    jurisdiction: str
    name: str


class LegislationDatabasesResponse(BaseModel):
    legislationDatabases: list[LegislationDatabase]


class LegislationsResponse(BaseModel):
    legislations: list[LegislationSummary]


class LegislationPart(BaseModel):
    partId: str
    partName: str


class LegislationMetadata(BaseModel):
    legislationId: str
    url: str
    title: str
    citation: str
    type: str
    language: str
    dateScheme: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    repealed: Optional[str] = None
    content: list[LegislationPart] = []


CITATOR_SCHEMAS: dict[str, type[BaseModel]] = {
    "citedCases": CitedCasesResponse,
    "citingCases": CitingCasesResponse,
    "citedLegislations": CitedLegislationsResponse,
}
