"""Search query planning: LLM-generated queries with static template fallback."""

from __future__ import annotations

import logging
import re

from prospect_discovery.analysis.extraction import llm_json
from prospect_discovery.analysis.prompts import QUERY_PROMPT
from prospect_discovery.config import Config, Lexicons
from prospect_discovery.models import ProductProfile, SearchQuery

logger = logging.getLogger(__name__)

MIN_QUERIES = 3
MIN_QUERY_CHARS = 10
MIN_QUERY_WORDS = 2
_VALID_INTENTS = {"generic", "industry", "buyer_intent"}


def is_usable_query(text: str) -> bool:
    text = text.strip()
    return len(text) >= MIN_QUERY_CHARS and len(text.split()) >= MIN_QUERY_WORDS


def infer_intent(
    text: str, industries: list[str], lexicons: Lexicons,
) -> tuple[str, str | None]:
    """Guess (intent, industry) for a query that arrived without tags."""
    lowered = text.lower()
    if any(marker in lowered for marker in lexicons.buyer_intent_query_markers):
        return "buyer_intent", None
    for industry in industries:
        if industry.lower() in lowered:
            return "industry", industry
    return "generic", None


def is_hr_product(profile: ProductProfile, lexicons: Lexicons) -> bool:
    """HR/recruiting products get a specialised template set."""
    text = f" {profile.product_name} {profile.description} ".lower()
    if "recruitment" in profile.keywords or "hr" in profile.keywords:
        return True
    return any(term in text for term in lexicons.hr_terms)


def static_queries(
    profile: ProductProfile, industries: list[str], lexicons: Lexicons,
) -> list[SearchQuery]:
    """Build queries from the template set matching the product classification."""
    keywords = list(profile.keywords) or [
        w for w in re.findall(r"\w+", profile.product_name.lower()) if len(w) > 2
    ] or [profile.product_name.lower()]
    industry0 = industries[0] if industries else "enterprise"
    industry1 = industries[1] if len(industries) > 1 else industry0

    values = {
        "product": profile.product_name,
        "kw0": keywords[0],
        "kw_pair": " ".join(keywords[:2]),
        "industry0": industry0,
        "industry1": industry1,
        "hr_focus": (
            "AI for recruitment" if "ai" in profile.description.lower().split()
            else "recruiting software"
        ),
    }
    slots = [industry0, industry1]

    if profile.is_physical:
        templates = list(lexicons.query_templates.get("physical", []))
    else:
        templates = list(lexicons.query_templates.get("digital", []))
        if is_hr_product(profile, lexicons):
            templates = list(lexicons.query_templates.get("hr", [])) + templates

    queries = []
    for template in templates:
        intent = template.intent if template.intent in _VALID_INTENTS else "generic"
        industry = slots[template.industry_slot] if template.industry_slot is not None else None
        queries.append(SearchQuery(
            text=template.text.format_map(values),
            intent=intent,
            industry=industry,
        ))
    return queries


def parse_llm_queries(
    data: dict, industries: list[str], lexicons: Lexicons,
) -> list[SearchQuery]:
    """Read planner output; accepts tagged objects or plain strings."""
    raw = data.get("queries")
    if not isinstance(raw, list):
        # Accept the largest list anywhere in the object
        lists = [v for v in data.values() if isinstance(v, list)]
        raw = max(lists, key=len) if lists else []

    queries = []
    for item in raw:
        if isinstance(item, str):
            text, intent, industry = item, None, None
        elif isinstance(item, dict):
            text = item.get("query") or item.get("text") or ""
            intent = item.get("intent")
            industry = item.get("industry")
        else:
            continue
        if not isinstance(text, str) or not is_usable_query(text):
            continue
        if intent not in _VALID_INTENTS:
            intent, guessed = infer_intent(text, industries, lexicons)
            industry = industry or guessed
        queries.append(SearchQuery(
            text=text.strip(),
            intent=intent,
            industry=industry if isinstance(industry, str) and industry else None,
        ))
    return queries


def _dedupe(queries: list[SearchQuery]) -> list[SearchQuery]:
    seen: set[str] = set()
    unique = []
    for q in queries:
        key = " ".join(q.text.lower().split())
        if key not in seen:
            seen.add(key)
            unique.append(q)
    return unique


async def plan_queries(
    profile: ProductProfile,
    industries: list[str],
    config: Config,
    lexicons: Lexicons,
    timeout: float | None = None,
) -> list[SearchQuery]:
    """Build up to `max_planned_queries` search queries.

    Tries the LLM within `timeout` (default `query_llm_timeout`; zero skips
    it); on timeout, malformed output or fewer than 3 usable queries, falls
    back to static templates. Always returns at least 3 non-empty,
    multi-word queries.
    """
    generated: list[SearchQuery] = []
    if timeout is None:
        timeout = config.query_llm_timeout
    use_llm = config.llm_configured and timeout > 0

    if use_llm:
        prompt = QUERY_PROMPT.format(
            product_name=profile.product_name,
            description=profile.description,
            product_type=(
                "Physical product/hardware" if profile.is_physical
                else "Software/Digital product/Service"
            ),
            industries=", ".join(industries),
            top_industries=", ".join(industries[:2]),
            keywords=", ".join(profile.keywords),
        )
        data = await llm_json(prompt, config, timeout=timeout)
        if data:
            generated = _dedupe(parse_llm_queries(data, industries, lexicons))
            logger.info("LLM generated %d usable queries", len(generated))

    if len(generated) < MIN_QUERIES:
        if use_llm:
            logger.warning("Too few LLM queries (%d), using static templates", len(generated))
        generated = _dedupe(static_queries(profile, industries, lexicons))

    return generated[: max(MIN_QUERIES, config.max_planned_queries)]
