"""Relevance scoring: a deterministic heuristic pass plus optional LLM refinement."""

from __future__ import annotations

import asyncio
import logging

from prospect_discovery.analysis.extraction import llm_json
from prospect_discovery.analysis.prompts import RESCORE_COMPANY_BLOCK, RESCORE_PROMPT
from prospect_discovery.config import Config, Lexicons
from prospect_discovery.models import MAX_SCORE, CompanyCandidate, ProductProfile

logger = logging.getLogger(__name__)

INTENT_KEYWORD_POINTS = 2
KEYWORD_IN_DESCRIPTION = 3
KEYWORD_IN_NAME = 5
KEYWORD_IN_DOMAIN = 4
ENTERPRISE_TERM_POINTS = 1
NAME_DOMAIN_MATCH = 8
PRIORITY_THRESHOLD = 85


def clamp_to_band(company: CompanyCandidate, score: float) -> int:
    """Web-sourced records stay in [70, 99]; suggested, curated and synthetic ones in [0, 99]."""
    return max(company.score_floor, min(MAX_SCORE, int(round(score))))


def heuristic_bonus(
    company: CompanyCandidate,
    keywords: list[str] | tuple[str, ...],
    lexicons: Lexicons,
) -> int:
    """Points earned from description, name and domain signals."""
    description = company.description.lower()
    name = company.name.lower()
    domain = company.website.lower()
    label = domain.split(".")[0]

    bonus = 0
    bonus += INTENT_KEYWORD_POINTS * sum(
        1 for kw in lexicons.scoring_intent_keywords if kw in description
    )

    for kw in keywords:
        kw = kw.lower()
        if not kw:
            continue
        if kw in description:
            bonus += KEYWORD_IN_DESCRIPTION
        if kw in name:
            bonus += KEYWORD_IN_NAME
        if kw.replace(" ", "") in domain:
            bonus += KEYWORD_IN_DOMAIN

    bonus += ENTERPRISE_TERM_POINTS * sum(1 for t in lexicons.enterprise_terms if t in description)

    if label and any(len(w) > 3 and w in label for w in name.split()):
        bonus += NAME_DOMAIN_MATCH

    return bonus


def apply_heuristics(
    companies: list[CompanyCandidate],
    keywords: list[str] | tuple[str, ...],
    lexicons: Lexicons,
) -> list[CompanyCandidate]:
    """Add heuristic points to every candidate and clamp to its score band."""
    scored = []
    for company in companies:
        score = company.relevance_score + heuristic_bonus(company, keywords, lexicons)
        scored.append(company.model_copy(update={"relevance_score": clamp_to_band(company, score)}))
    return scored


# ---------------------------------------------------------------------------
# LLM refinement
# ---------------------------------------------------------------------------

def _format_batch(batch: list[CompanyCandidate]) -> str:
    return "\n\n".join(
        RESCORE_COMPANY_BLOCK.format(
            index=i,
            name=c.name,
            industry=c.industry or "Unknown",
            description=c.description[:400],
            website=c.website or "Unknown",
        )
        for i, c in enumerate(batch)
    )


def _apply_rescore(batch: list[CompanyCandidate], data: dict | None) -> list[CompanyCandidate]:
    """Overwrite scores and fields from one batch response; unmatched records are kept."""
    if not data or not isinstance(data.get("companies"), list):
        return batch

    updated = list(batch)
    for entry in data["companies"]:
        if not isinstance(entry, dict):
            continue
        try:
            index = int(entry.get("index"))
            score = float(entry.get("score"))
        except (TypeError, ValueError):
            continue
        if not 0 <= index < len(batch):
            continue
        company = batch[index]
        new_score = clamp_to_band(company, score)
        updated[index] = company.model_copy(update={
            "relevance_score": new_score,
            "enhanced": True,
            "ai_reason": str(entry.get("reason") or "") or None,
            "decision_maker": str(entry.get("decision_maker") or "") or None,
            "implementation_timeline": str(entry.get("timeline") or "") or None,
            "priority_prospect": new_score >= PRIORITY_THRESHOLD,
        })
    return updated


async def refine_with_llm(
    companies: list[CompanyCandidate],
    profile: ProductProfile,
    industries: list[str],
    config: Config,
    timeout: float | None = None,
) -> list[CompanyCandidate]:
    """Re-score the top candidates in batches via the LLM. Never raises.

    Only the first `llm_refine_limit` records are sent. Any batch that times
    out or returns unusable JSON keeps its heuristic scores.
    """
    if not config.llm_configured or not companies:
        return companies

    limit = min(len(companies), config.llm_refine_limit)
    head, tail = companies[:limit], companies[limit:]
    size = max(1, config.llm_refine_batch)
    batches = [head[i:i + size] for i in range(0, len(head), size)]

    async def run(batch: list[CompanyCandidate]) -> list[CompanyCandidate]:
        prompt = RESCORE_PROMPT.format(
            product_name=profile.product_name,
            description=profile.description,
            product_type=(
                "Physical product/hardware" if profile.is_physical
                else "Software/Digital product/Service"
            ),
            industries=", ".join(industries),
            keywords=", ".join(profile.keywords),
            companies=_format_batch(batch),
        )
        data = await llm_json(prompt, config, timeout=timeout)
        return _apply_rescore(batch, data)

    results = await asyncio.gather(*(run(b) for b in batches), return_exceptions=True)

    refined: list[CompanyCandidate] = []
    for batch, result in zip(batches, results):
        if isinstance(result, BaseException):
            logger.warning("LLM refinement batch failed (%s), keeping heuristic scores", result)
            refined.extend(batch)
        else:
            refined.extend(result)

    enhanced = sum(1 for c in refined if c.enhanced)
    logger.info("LLM refined %d of %d candidates", enhanced, len(refined))
    return refined + tail
