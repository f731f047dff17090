"""Pydantic data models for the prospect discovery engine."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

ProductType = Literal["physical", "digital"]
QueryIntent = Literal["generic", "industry", "buyer_intent"]

MAX_SCORE = 99
SCRAPED_SCORE_FLOOR = 70


# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------

class ProductProfile(BaseModel):
    """A described product; built once per discovery request, then read-only."""
    model_config = ConfigDict(frozen=True)

    product_name: str
    description: str
    industry: str | None = None
    keywords: tuple[str, ...] = ()
    classification: ProductType = "digital"

    @field_validator("product_name", "description")
    @classmethod
    def require_text(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("industry", mode="before")
    @classmethod
    def blank_industry_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @property
    def is_physical(self) -> bool:
        return self.classification == "physical"


# ---------------------------------------------------------------------------
# Search models
# ---------------------------------------------------------------------------

class SearchQuery(BaseModel):
    """A single engine query produced by the planner."""
    model_config = ConfigDict(frozen=True)

    text: str
    industry: str | None = None
    intent: QueryIntent = "generic"


class RawResult(BaseModel):
    """One organic result parsed from an engine page."""
    title: str
    snippet: str = ""
    url: str = ""
    domain: str = ""
    engine: str
    query: SearchQuery
    rank: int = 0


# ---------------------------------------------------------------------------
# Provenance (tagged variants)
# ---------------------------------------------------------------------------

class ScrapedSource(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["scraped"] = "scraped"
    engines: tuple[str, ...] = ()
    queries: tuple[str, ...] = ()


class DirectorySource(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["directory"] = "directory"
    directory: str


class LLMSource(BaseModel):
    """Named by the text-generation service; not corroborated by any web page."""
    model_config = ConfigDict(frozen=True)
    kind: Literal["llm"] = "llm"
    provider: str = ""


class CuratedSource(BaseModel):
    """Taken from the bundled per-industry company table."""
    model_config = ConfigDict(frozen=True)
    kind: Literal["curated"] = "curated"
    category: str


class SyntheticSource(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["synthetic"] = "synthetic"
    reason: str = "insufficient_results"


CompanyProvenance = Annotated[
    Union[ScrapedSource, DirectorySource, LLMSource, CuratedSource, SyntheticSource],
    Field(discriminator="kind"),
]

# Provenance kinds backed by a page fetched during the run
WEB_SOURCED = ("scraped", "directory")


class VerifiedContact(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["verified"] = "verified"
    source: Literal["profile_search", "website", "website_email"]


class SyntheticContact(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["synthetic"] = "synthetic"
    reason: str = "insufficient_contacts"


ContactProvenance = Annotated[
    Union[VerifiedContact, SyntheticContact],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Candidate models
# ---------------------------------------------------------------------------

class CompanyMetadata(BaseModel):
    size_bracket: str | None = None
    year_founded: int | None = None
    publicly_traded: bool | None = None
    # Physical-product companies
    headquarters_region: str | None = None
    product_categories: list[str] = Field(default_factory=list)
    manufacturing_capabilities: bool | None = None
    distribution_network: str | None = None
    # Digital-product companies
    technology_stack: str | None = None
    business_model: str | None = None
    cloud_based: bool | None = None
    has_api: bool | None = None
    has_free_trial: bool | None = None


class CompanyCandidate(BaseModel):
    """A prospective buyer company."""
    name: str
    industry: str = ""
    description: str = ""
    website: str = ""
    relevance_score: int = 0
    raw_score: int = 0  # Score before cross-source aggregation
    has_buyer_intent: bool = False
    buyer_intent_query: bool = False
    aggregated_from: int = 1
    source_queries: list[str] = Field(default_factory=list)
    metadata: CompanyMetadata | None = None
    provenance: CompanyProvenance = Field(default_factory=ScrapedSource)

    # Filled by LLM refinement
    enhanced: bool = False
    ai_reason: str | None = None
    decision_maker: str | None = None
    implementation_timeline: str | None = None
    priority_prospect: bool = False

    @field_validator("relevance_score", "raw_score", mode="before")
    @classmethod
    def clamp_score(cls, v):
        try:
            v = int(round(float(v)))
        except (TypeError, ValueError):
            return 0
        return max(0, min(MAX_SCORE, v))

    @property
    def is_synthetic(self) -> bool:
        return self.provenance.kind == "synthetic"

    @property
    def is_web_sourced(self) -> bool:
        return self.provenance.kind in WEB_SOURCED

    @property
    def score_floor(self) -> int:
        return SCRAPED_SCORE_FLOOR if self.is_web_sourced else 0

    @property
    def name_key(self) -> str:
        return self.name.strip().lower()


class ContactCandidate(BaseModel):
    """A prospective decision-maker at a company."""
    name: str
    title: str = ""
    email: str = ""
    profile_url: str = ""
    seniority_weight: int = 0
    company_verified: bool = False
    provenance: ContactProvenance = Field(default_factory=SyntheticContact)

    @property
    def is_verified(self) -> bool:
        return self.provenance.kind == "verified"


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------

class ResultSet(BaseModel):
    """The full scored company list of one discovery run."""
    search_id: str
    context: str | None = None
    companies: list[CompanyCandidate] = Field(default_factory=list)
    target_industries: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)


class ResultPage(BaseModel):
    search_id: str
    page: int
    page_size: int
    companies: list[CompanyCandidate] = Field(default_factory=list)
    has_more: bool = False
    total_count: int = 0


class DiscoveryResult(BaseModel):
    """Outward payload of a discovery run (first page plus pagination handle)."""
    search_id: str
    companies: list[CompanyCandidate] = Field(default_factory=list)
    target_industries: list[str] = Field(default_factory=list)
    has_more: bool = False
    total_count: int = 0
    product: ProductProfile


class ContactResult(BaseModel):
    """Outward payload of contact discovery for one company."""
    company: str
    contacts: list[ContactCandidate] = Field(default_factory=list)
    provenance: dict[str, int] = Field(default_factory=dict)
