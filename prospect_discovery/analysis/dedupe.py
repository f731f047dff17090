"""Cross-engine deduplication: merge candidates that name the same company."""

from __future__ import annotations

import logging

from prospect_discovery.models import MAX_SCORE, CompanyCandidate, ScrapedSource

logger = logging.getLogger(__name__)

MULTI_SOURCE_BONUS_CAP = 5
BUYER_QUERY_BONUS = 5
DESCRIPTION_REPLACE_RATIO = 1.5
NAME_PREFIX_CHARS = 5

_EVIDENCE_ORDER = ("scraped", "directory", "curated", "llm", "synthetic")


def _pick_website(members: list[CompanyCandidate], base: CompanyCandidate) -> str:
    """Prefer a domain that visibly belongs to the company name."""
    compact = "".join(ch for ch in base.name.lower() if ch.isalnum())
    prefix = compact[:NAME_PREFIX_CHARS]
    for member in members:
        domain = member.website.lower()
        if not domain:
            continue
        label = domain.split(".")[0].replace("-", "")
        if label and label in compact:
            return member.website
        if prefix and prefix in domain.replace("-", ""):
            return member.website
    return base.website


def _pick_description(members: list[CompanyCandidate], base: CompanyCandidate) -> str:
    description = base.description
    for member in members:
        if len(member.description) > len(description) * DESCRIPTION_REPLACE_RATIO:
            description = member.description
    return description


def _merge_provenance(members: list[CompanyCandidate], base: CompanyCandidate):
    """Strongest evidence wins: a scraped hit outranks a directory row or a suggestion."""
    strongest = min(members, key=lambda m: _EVIDENCE_ORDER.index(m.provenance.kind))
    if strongest.provenance.kind != "scraped":
        if strongest.provenance.kind == base.provenance.kind:
            return base.provenance
        return strongest.provenance
    engines: list[str] = []
    queries: list[str] = []
    for member in members:
        if isinstance(member.provenance, ScrapedSource):
            engines.extend(member.provenance.engines)
            queries.extend(member.provenance.queries)
    return ScrapedSource(
        engines=tuple(dict.fromkeys(engines)),
        queries=tuple(dict.fromkeys(queries)),
    )


def merge_group(members: list[CompanyCandidate], cap: int = 10) -> CompanyCandidate:
    """Merge records of one company into a single enriched record.

    The score is recomputed from `raw_score`, so merging an already merged
    record alone returns it unchanged.
    """
    base = members[0]
    for member in members[1:]:
        if member.raw_score > base.raw_score:
            base = member

    aggregated = min(cap, sum(m.aggregated_from for m in members))
    buyer_query = any(m.buyer_intent_query for m in members)
    raw = max(m.raw_score for m in members)

    score = raw + min(MULTI_SOURCE_BONUS_CAP, aggregated - 1)
    if buyer_query:
        score += BUYER_QUERY_BONUS

    return base.model_copy(update={
        "description": _pick_description(members, base),
        "website": _pick_website(members, base),
        "has_buyer_intent": any(m.has_buyer_intent for m in members),
        "buyer_intent_query": buyer_query,
        "aggregated_from": aggregated,
        "raw_score": raw,
        "relevance_score": min(MAX_SCORE, score),
        "source_queries": list(dict.fromkeys(q for m in members for q in m.source_queries)),
        "provenance": _merge_provenance(members, base),
    })


def deduplicate_companies(
    companies: list[CompanyCandidate],
    cap: int = 10,
) -> list[CompanyCandidate]:
    """Group by case-normalised name (first-seen order) and merge each group."""
    groups: dict[str, list[CompanyCandidate]] = {}
    for company in companies:
        key = company.name_key
        if not key:
            continue
        groups.setdefault(key, []).append(company)

    merged = [merge_group(members, cap) for members in groups.values()]
    if len(merged) < len(companies):
        logger.info("Deduplicated %d candidates into %d companies", len(companies), len(merged))
    return merged
