"""Non-company rejection pipeline, title cleaning and base relevance scoring."""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from prospect_discovery.config import Lexicons
from prospect_discovery.models import (
    MAX_SCORE,
    SCRAPED_SCORE_FLOOR,
    CompanyCandidate,
    RawResult,
    ScrapedSource,
)

logger = logging.getLogger(__name__)

BASE_SCORE = 80
BUYER_QUERY_BONUS = 10
DOMAIN_KEYWORD_BONUS = 5
DOMAIN_KEYWORD_CAP = 15
SNIPPET_INTENT_BONUS = 7
RANK_PENALTY = 0.5

MIN_NAME_CHARS = 3
MAX_NAME_CHARS = 50
MAX_NAME_WORDS = 5
MIN_SNIPPET_CHARS = 30


@lru_cache(maxsize=512)
def _term_pattern(term: str) -> re.Pattern:
    return re.compile(r"\b" + re.escape(term) + r"\b", re.IGNORECASE)


def _has_term(text: str, term: str) -> bool:
    return bool(_term_pattern(term).search(text))


# ---------------------------------------------------------------------------
# Rejection rules (applied in order)
# ---------------------------------------------------------------------------

def rejects_title(title: str, lexicons: Lexicons) -> bool:
    """Titles of lists, guides, reviews and the like are not companies."""
    if any(_has_term(title, term) for term in lexicons.title_reject_terms):
        return True
    lowered = title.lower()
    return any(all(part in lowered for part in pair) for pair in lexicons.title_reject_pairs)


def rejects_domain(domain: str, lexicons: Lexicons) -> bool:
    """Known non-company hosts (social networks, news, analysts, aggregators)."""
    return any(
        domain == bad or domain.endswith("." + bad)
        for bad in lexicons.non_company_domains
    )


def rejects_domain_pattern(domain: str, lexicons: Lexicons) -> bool:
    if any(s in domain for s in lexicons.domain_reject_substrings):
        return True
    return any(
        domain == suffix or domain.endswith("." + suffix)
        for suffix in lexicons.domain_reject_suffixes
    )


def rejects_name(name: str, lexicons: Lexicons) -> bool:
    """Cleaned names that are too short, too long or generic."""
    if len(name) < MIN_NAME_CHARS or len(name) > MAX_NAME_CHARS:
        return True
    if len(name.split()) > MAX_NAME_WORDS:
        return True
    lowered = name.lower()
    if any(lowered == p or lowered.startswith(p + " ") for p in lexicons.generic_name_prefixes):
        return True
    return any(_has_term(name, term) for term in lexicons.name_reject_terms)


def clean_title(title: str, lexicons: Lexicons) -> str:
    """Strip site suffixes, then cut at the first separator."""
    name = " ".join(title.split())
    for suffix in lexicons.title_suffixes:
        if name.lower().endswith(suffix.lower()):
            name = name[: -len(suffix)]
    cut = len(name)
    for sep in lexicons.title_separators:
        idx = name.find(sep)
        if 0 < idx < cut:
            cut = idx
    return name[:cut].strip(" -|:–")


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def is_buyer_intent_query(result: RawResult, lexicons: Lexicons) -> bool:
    if result.query.intent == "buyer_intent":
        return True
    text = result.query.text.lower()
    return any(marker in text for marker in lexicons.buyer_intent_query_markers)


def has_snippet_intent(snippet: str, lexicons: Lexicons) -> bool:
    lowered = snippet.lower()
    return any(signal in lowered for signal in lexicons.buyer_intent_signals)


def base_score(
    result: RawResult,
    keywords: list[str] | tuple[str, ...],
    lexicons: Lexicons,
) -> int:
    """80 + intent and domain-overlap bonuses - rank penalty, clamped to [70, 99]."""
    score = float(BASE_SCORE)
    if is_buyer_intent_query(result, lexicons):
        score += BUYER_QUERY_BONUS

    label = result.domain.split(".")[0]
    overlap = sum(
        DOMAIN_KEYWORD_BONUS
        for kw in keywords
        if kw and " " not in kw and kw in label
    )
    score += min(DOMAIN_KEYWORD_CAP, overlap)

    if has_snippet_intent(result.snippet, lexicons):
        score += SNIPPET_INTENT_BONUS
    score -= result.rank * RANK_PENALTY

    return max(SCRAPED_SCORE_FLOOR, min(MAX_SCORE, round(score)))


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def to_candidate(
    result: RawResult,
    industry: str,
    keywords: list[str] | tuple[str, ...],
    lexicons: Lexicons,
) -> CompanyCandidate | None:
    """Run one result through the rejection pipeline; None when rejected."""
    if rejects_title(result.title, lexicons):
        return None
    if not result.domain or rejects_domain(result.domain, lexicons):
        return None
    if rejects_domain_pattern(result.domain, lexicons):
        return None

    name = clean_title(result.title, lexicons)
    if rejects_name(name, lexicons):
        return None

    description = result.snippet.strip()
    if len(description) < MIN_SNIPPET_CHARS:
        description = f"{name} is a company in the {industry} industry."

    score = base_score(result, keywords, lexicons)
    buyer_query = is_buyer_intent_query(result, lexicons)
    return CompanyCandidate(
        name=name,
        industry=industry,
        description=description,
        website=result.domain,
        relevance_score=score,
        raw_score=score,
        has_buyer_intent=buyer_query or has_snippet_intent(result.snippet, lexicons),
        buyer_intent_query=buyer_query,
        source_queries=[result.query.text],
        provenance=ScrapedSource(engines=(result.engine,), queries=(result.query.text,)),
    )


def filter_results(
    results: list[RawResult],
    industry: str,
    keywords: list[str] | tuple[str, ...],
    lexicons: Lexicons,
) -> list[CompanyCandidate]:
    """Turn raw engine results into company candidates, dropping non-company noise."""
    candidates = []
    for result in results:
        candidate = to_candidate(result, result.query.industry or industry, keywords, lexicons)
        if candidate is not None:
            candidates.append(candidate)
    logger.debug("Filter kept %d of %d results", len(candidates), len(results))
    return candidates
