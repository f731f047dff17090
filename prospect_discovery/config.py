"""Configuration management via environment variables, .env file and lexicon data."""

from __future__ import annotations

import json
import os
import sys
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_LEXICONS_PATH = Path(__file__).parent / "data" / "lexicons.json"


class Config(BaseModel):
    """Application configuration loaded from environment."""

    # API keys (both optional: heuristics and static templates cover their absence)
    anthropic_api_key: str = ""
    openai_api_key: str = ""

    # Models
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    openai_model: str = "gpt-4o-mini"
    llm_max_tokens: int = 1500
    llm_temperature: float = 0.2

    # Query planning / industry identification
    max_planned_queries: int = 8
    query_llm_timeout: float = 15.0
    industries_per_run: int = 2
    queries_per_industry: int = 2

    # Search engines, tried in this order per query
    engines: list[str] = Field(default_factory=lambda: ["bing", "duckduckgo", "ddgs"])
    max_search_results: int = 20  # Per engine page

    # Fetching
    request_timeout: int = 20
    max_retries: int = 5
    backoff_base: float = 0.5
    backoff_max: float = 8.0
    breaker_threshold: int = 5
    breaker_cooldown: float = 60.0

    # Concurrency
    fetch_workers: int = 6
    engine_concurrency: int = 2

    # Per-request hard ceiling (seconds); partial results are returned past it
    request_deadline: float = 90.0

    # Candidate thresholds
    candidate_target: int = 15
    directory_threshold: int = 10
    min_real_companies: int = 5
    synthetic_company_count: int = 20
    aggregated_from_cap: int = 10

    # Company sourcing tiers besides web search
    llm_company_suggestions: bool = True
    llm_companies_skip_search: int = 8  # This many LLM suggestions make web search unnecessary
    curated_companies: bool = True
    curated_company_limit: int = 10

    # LLM refinement
    llm_refine_batch: int = 12
    llm_refine_limit: int = 24

    # Contacts
    contacts_per_company: int = 3
    profiles_per_role: int = 2

    # Pagination cache
    page_size: int = 10
    result_set_ttl_seconds: int = 1800
    max_result_sets: int = 256

    # Search result cache
    search_cache_ttl_days: int = 3
    cache_db_path: str = ".discovery_cache.db"

    # Optional override for the lexicon data file
    lexicons_path: str = ""

    @property
    def llm_configured(self) -> bool:
        return bool(self.anthropic_api_key or self.openai_api_key)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


def load_config() -> Config:
    """Load configuration from .env file and environment variables.

    Environment variables override .env values.
    Missing LLM keys are not fatal: the engine falls back to keyword
    heuristics and static query templates.
    """
    load_dotenv()

    anthropic_key = os.getenv("ANTHROPIC_API_KEY", "")
    openai_key = os.getenv("OPENAI_API_KEY", "")

    if not anthropic_key and not openai_key:
        print(
            "  Note: no ANTHROPIC_API_KEY or OPENAI_API_KEY set, using keyword heuristics only",
            file=sys.stderr,
        )

    engines = [
        e.strip().lower()
        for e in os.getenv("SEARCH_ENGINES", "bing,duckduckgo,ddgs").split(",")
        if e.strip()
    ]

    return Config(
        anthropic_api_key=anthropic_key,
        openai_api_key=openai_key,
        anthropic_model=os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5-20250929"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        query_llm_timeout=float(os.getenv("QUERY_LLM_TIMEOUT", "15")),
        engines=engines,
        request_timeout=int(os.getenv("REQUEST_TIMEOUT", "20")),
        max_retries=int(os.getenv("MAX_RETRIES", "5")),
        backoff_base=float(os.getenv("BACKOFF_BASE", "0.5")),
        backoff_max=float(os.getenv("BACKOFF_MAX", "8.0")),
        breaker_threshold=int(os.getenv("BREAKER_THRESHOLD", "5")),
        breaker_cooldown=float(os.getenv("BREAKER_COOLDOWN", "60")),
        fetch_workers=int(os.getenv("FETCH_WORKERS", "6")),
        engine_concurrency=int(os.getenv("ENGINE_CONCURRENCY", "2")),
        request_deadline=float(os.getenv("REQUEST_DEADLINE", "90")),
        min_real_companies=int(os.getenv("MIN_REAL_COMPANIES", "5")),
        synthetic_company_count=int(os.getenv("SYNTHETIC_COMPANY_COUNT", "20")),
        aggregated_from_cap=int(os.getenv("AGGREGATED_FROM_CAP", "10")),
        llm_company_suggestions=_env_flag("LLM_COMPANY_SUGGESTIONS", True),
        curated_companies=_env_flag("CURATED_COMPANIES", True),
        page_size=int(os.getenv("PAGE_SIZE", "10")),
        result_set_ttl_seconds=int(os.getenv("RESULT_SET_TTL_SECONDS", "1800")),
        search_cache_ttl_days=int(os.getenv("SEARCH_CACHE_TTL_DAYS", "3")),
        cache_db_path=os.getenv("CACHE_DB_PATH", ".discovery_cache.db"),
        lexicons_path=os.getenv("LEXICONS_PATH", ""),
    )


# ---------------------------------------------------------------------------
# Lexicon data (allow/deny lists, templates, name banks)
# ---------------------------------------------------------------------------

class QueryTemplate(BaseModel):
    text: str
    intent: str = "generic"
    industry_slot: int | None = None


class ClassLexicon(BaseModel):
    """Synthetic-naming vocabulary for one product classification."""
    prefixes: list[str]
    middles: list[str]
    suffixes: list[str]
    domain_extensions: list[str]
    domain_prefixes: list[str]
    domain_suffixes: list[str]
    strong_industries: list[str] = Field(default_factory=list)
    weak_industries: list[str] = Field(default_factory=list)
    descriptions: dict[str, list[str]] = Field(default_factory=dict)
    generic_descriptions: list[str] = Field(default_factory=list)


class SyntheticLexicon(BaseModel):
    physical: ClassLexicon
    digital: ClassLexicon
    surnames: list[str]
    filler_sentences: list[str]
    size_brackets: list[str]
    regions: list[str]
    product_categories: list[str]
    distribution_networks: list[str]
    tech_stacks: list[str]
    business_models: list[str]


class CuratedCompany(BaseModel):
    """A well-known company offered when too few are found for an industry."""
    name: str
    website: str
    description: str = ""
    score: int = 75


class PeopleLexicon(BaseModel):
    first_names: list[str]
    last_names: list[str]
    industry_titles: dict[str, list[str]] = Field(default_factory=dict)
    default_titles: list[str] = Field(default_factory=list)


class Lexicons(BaseModel):
    """Tunable vocabulary loaded from JSON so changes need no code release."""

    stopwords: list[str]
    tech_boost_words: list[str]
    physical_keywords: list[str]
    physical_definitive: list[str]
    digital_keywords: list[str]
    digital_definitive: list[str]
    industry_keywords: dict[str, list[str]]
    default_industries: list[str]
    hr_terms: list[str]
    query_templates: dict[str, list[QueryTemplate]]
    buyer_intent_query_markers: list[str]
    title_reject_terms: list[str]
    title_reject_pairs: list[list[str]]
    non_company_domains: list[str]
    domain_reject_substrings: list[str]
    domain_reject_suffixes: list[str]
    title_suffixes: list[str]
    title_separators: list[str]
    name_reject_terms: list[str]
    generic_name_prefixes: list[str]
    buyer_intent_signals: list[str]
    scoring_intent_keywords: list[str]
    enterprise_terms: list[str]
    seniority_weights: dict[str, int]
    leadership_roles: list[str]
    industry_roles: dict[str, list[str]]
    decision_roles: list[str]
    team_paths: list[str]
    team_selectors: list[str]
    likely_titles: dict[str, list[str]]
    general_titles: list[str]
    synthetic: SyntheticLexicon
    people: PeopleLexicon
    curated_companies: dict[str, list[CuratedCompany]] = Field(default_factory=dict)
    curated_default_category: str = "Technology"
    curated_category_terms: dict[str, list[str]] = Field(default_factory=dict)


@lru_cache(maxsize=8)
def _read_lexicons(path: str) -> Lexicons:
    with open(path, encoding="utf-8") as f:
        return Lexicons.model_validate(json.load(f))


def load_lexicons(path: str | None = None) -> Lexicons:
    """Load and validate the lexicon file (cached per path).

    Falls back to the LEXICONS_PATH environment variable, then to the
    bundled data file.
    """
    chosen = path or os.getenv("LEXICONS_PATH") or str(DEFAULT_LEXICONS_PATH)
    return _read_lexicons(chosen)
