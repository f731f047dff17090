"""Companies named directly by the LLM, tried before web search."""

from __future__ import annotations

import logging

from prospect_discovery.analysis.extraction import llm_json
from prospect_discovery.analysis.llm_client import get_active_provider
from prospect_discovery.analysis.prompts import COMPANY_PROMPT
from prospect_discovery.config import Config, Lexicons
from prospect_discovery.models import CompanyCandidate, LLMSource, ProductProfile
from prospect_discovery.search.engines import extract_domain
from prospect_discovery.search.filters import rejects_domain, rejects_name

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTED_SCORE = 75
MAX_SUGGESTIONS = 15


def _company_rows(data: dict) -> list:
    rows = data.get("companies")
    if isinstance(rows, list):
        return rows
    # Some models rename the key; take the first non-empty list
    for value in data.values():
        if isinstance(value, list) and value:
            return value
    return []


def _website(value) -> str:
    text = str(value or "").strip().lower()
    if not text:
        return ""
    if "://" not in text:
        text = "https://" + text
    return extract_domain(text).rstrip("/")


def _score(entry: dict) -> int:
    raw = entry.get("relevance_score", entry.get("relevanceScore", DEFAULT_SUGGESTED_SCORE))
    try:
        return int(round(float(raw)))
    except (TypeError, ValueError):
        return DEFAULT_SUGGESTED_SCORE


def parse_suggested_companies(
    data: dict,
    industries: list[str],
    lexicons: Lexicons,
    provider: str = "",
) -> list[CompanyCandidate]:
    """Turn a suggestion response into LLM-tagged candidates.

    Entries without a plausible company name are dropped. A website on a
    known non-company host (a social profile, a news site) is left blank.
    """
    fallback_industry = industries[0] if industries else ""
    companies: list[CompanyCandidate] = []
    for entry in _company_rows(data):
        if isinstance(entry, str):
            entry = {"name": entry}
        if not isinstance(entry, dict):
            continue
        name = " ".join(str(entry.get("name") or "").split())
        if not name or rejects_name(name, lexicons):
            continue
        website = _website(entry.get("website"))
        if website and rejects_domain(website, lexicons):
            website = ""
        reason = entry.get("fit_reason") or entry.get("fitReason")
        score = _score(entry)
        companies.append(CompanyCandidate(
            name=name,
            industry=str(entry.get("industry") or fallback_industry),
            description=str(entry.get("description") or ""),
            website=website,
            relevance_score=score,
            raw_score=score,
            ai_reason=str(reason) if reason else None,
            provenance=LLMSource(provider=provider),
        ))
    return companies[:MAX_SUGGESTIONS]


async def suggest_companies(
    profile: ProductProfile,
    industries: list[str],
    config: Config,
    lexicons: Lexicons,
    timeout: float | None = None,
) -> list[CompanyCandidate]:
    """Ask the LLM for target companies; empty list when unavailable or unusable."""
    if not config.llm_configured or not config.llm_company_suggestions:
        return []

    prompt = COMPANY_PROMPT.format(
        product_name=profile.product_name,
        description=profile.description,
        product_type=(
            "Physical product/hardware" if profile.is_physical
            else "Software/Digital product/Service"
        ),
        industries=", ".join(industries),
        keywords=", ".join(profile.keywords),
        count=MAX_SUGGESTIONS,
    )
    data = await llm_json(prompt, config, timeout=timeout)
    if not data:
        return []

    companies = parse_suggested_companies(data, industries, lexicons, provider=get_active_provider())
    logger.info("LLM suggested %d companies", len(companies))
    return companies
