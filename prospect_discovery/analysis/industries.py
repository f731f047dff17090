"""Target industry identification: LLM first, keyword scoring as fallback."""

from __future__ import annotations

import logging

from prospect_discovery.analysis.extraction import llm_json
from prospect_discovery.analysis.prompts import INDUSTRY_PROMPT
from prospect_discovery.config import Config, Lexicons
from prospect_discovery.models import ProductProfile

logger = logging.getLogger(__name__)

MIN_INDUSTRIES = 5
MAX_INDUSTRIES = 7
MIN_LLM_INDUSTRIES = 3


def keyword_industries(profile: ProductProfile, lexicons: Lexicons) -> list[str]:
    """Rank the configured industries by keyword hits in the product text.

    Longer keywords weigh more (len/5, at least 1); hits that also appear in
    the product name get a 1.5x bonus. A user-supplied industry matching a
    category exactly adds 20, a partial match adds 10.
    """
    hint = (profile.industry or "").lower()
    name = profile.product_name.lower()
    text = f"{name} {profile.description.lower()} {hint}"

    scores: dict[str, float] = {}
    for industry, keywords in lexicons.industry_keywords.items():
        score = 0.0
        for keyword in keywords:
            if keyword in text:
                weight = max(1.0, len(keyword) / 5)
                score += weight
                if keyword in name:
                    score += weight * 1.5

        if hint and hint == industry.lower():
            score += 20
        elif hint and hint in industry.lower():
            score += 10

        if score > 0:
            scores[industry] = score

    ranked = [i for i, _ in sorted(scores.items(), key=lambda kv: -kv[1])][:MAX_INDUSTRIES]

    for default in lexicons.default_industries:
        if len(ranked) >= MIN_INDUSTRIES:
            break
        if default not in ranked:
            ranked.append(default)

    return ranked


async def identify_target_industries(
    profile: ProductProfile,
    config: Config,
    lexicons: Lexicons,
    timeout: float | None = None,
) -> list[str]:
    """Return 5-7 target industries for the product, most promising first.

    A zero `timeout` skips the LLM and goes straight to keyword analysis.
    """
    prompt = INDUSTRY_PROMPT.format(
        product_name=profile.product_name,
        description=profile.description,
        product_type=(
            "Physical product/hardware" if profile.is_physical
            else "Software/Digital product/Service"
        ),
        industry_hint=profile.industry or "none given",
    )
    if timeout is None:
        timeout = config.query_llm_timeout
    data = await llm_json(prompt, config, timeout=timeout) if timeout > 0 else None

    if data:
        raw = data.get("industries")
        if isinstance(raw, list):
            industries = list(dict.fromkeys(
                s.strip() for s in raw if isinstance(s, str) and s.strip()
            ))
            if len(industries) >= MIN_LLM_INDUSTRIES:
                logger.info("LLM identified %d target industries", len(industries))
                return industries[:MAX_INDUSTRIES]
        logger.warning("LLM industry response unusable, using keyword analysis")

    industries = keyword_industries(profile, lexicons)
    logger.info("Keyword analysis identified industries: %s", ", ".join(industries))
    return industries
