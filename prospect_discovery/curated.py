"""Well-known companies per industry, offered before synthetic fill."""

from __future__ import annotations

import logging
import re

from prospect_discovery.config import Lexicons
from prospect_discovery.models import CompanyCandidate, CuratedSource

logger = logging.getLogger(__name__)

# Below this many picks the default category is added as well
MIN_CURATED = 5


def match_category(industry: str, lexicons: Lexicons) -> str | None:
    """First table category with a term starting a word of the industry name.

    "Financial Services" matches the "financ" term of Finance, while
    "Biotechnology" does not match the "tech" term of Technology.
    """
    lowered = industry.lower()
    for category in lexicons.curated_companies:
        terms = lexicons.curated_category_terms.get(category) or [category.lower()]
        if any(re.search(r"\b" + re.escape(term), lowered) for term in terms):
            return category
    return None


def curated_companies(
    industries: list[str],
    lexicons: Lexicons,
    existing_names: set[str] | None = None,
    limit: int = 10,
) -> list[CompanyCandidate]:
    """Pick table entries for the target industries, in industry order.

    Stops at `limit` companies. When fewer than five match, the default
    category tops the list up.
    """
    table = lexicons.curated_companies
    taken = {n.strip().lower() for n in existing_names or ()}
    picked: list[CompanyCandidate] = []

    def take(category: str, industry: str) -> None:
        for entry in table.get(category, []):
            if len(picked) >= limit:
                return
            if entry.name.lower() in taken:
                continue
            taken.add(entry.name.lower())
            picked.append(CompanyCandidate(
                name=entry.name,
                industry=industry,
                description=entry.description,
                website=entry.website,
                relevance_score=entry.score,
                raw_score=entry.score,
                provenance=CuratedSource(category=category),
            ))

    for industry in industries:
        if len(picked) >= limit:
            break
        category = match_category(industry, lexicons)
        if category:
            take(category, industry)

    default = lexicons.curated_default_category
    if len(picked) < MIN_CURATED and default in table:
        take(default, default)

    if picked:
        logger.info("Added %d curated companies", len(picked))
    return picked
