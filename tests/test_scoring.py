import asyncio

from prospect_discovery.analysis import scoring
from prospect_discovery.analysis.keywords import build_profile
from prospect_discovery.analysis.scoring import (
    apply_heuristics,
    clamp_to_band,
    heuristic_bonus,
    refine_with_llm,
)
from prospect_discovery.models import CompanyCandidate, CuratedSource, DirectorySource, LLMSource, ScrapedSource, SyntheticSource


def _company(name, score, website="", description="", synthetic=False):
    return CompanyCandidate(
        name=name,
        website=website,
        description=description,
        relevance_score=score,
        raw_score=score,
        provenance=SyntheticSource() if synthetic else ScrapedSource(),
    )


def _companies():
    return [
        _company("Acme Health", 80, "acmehealth.com", "A global healthcare leader seeking a scheduling solution"),
        _company("Globex", 75, "globex.io", "Retail chain"),
        _company("Fabricated Co", 40, "fab.com", "Placeholder", synthetic=True),
    ]


def test_heuristic_bonus_counts_signals(lexicons):
    company = _companies()[0]
    bonus = heuristic_bonus(company, ["scheduling", "health"], lexicons)
    # intent keywords (seeking, solution), keyword hits, enterprise terms, name/domain match
    assert bonus >= 2 * 2 + 3 + 3 + 5 + 4 + 8


def test_heuristics_keep_score_bands(lexicons):
    scored = apply_heuristics(_companies(), ["scheduling", "health"], lexicons)
    assert scored[0].relevance_score == 99
    assert 70 <= scored[1].relevance_score <= 99
    assert scored[2].relevance_score == 40


def test_clamp_to_band():
    scraped = _company("Acme", 80)
    synthetic = _company("Fake", 50, synthetic=True)
    assert clamp_to_band(scraped, 12) == 70
    assert clamp_to_band(scraped, 150) == 99
    assert clamp_to_band(synthetic, 12) == 12
    assert clamp_to_band(synthetic, -4) == 0


def test_refine_skipped_without_llm(config, lexicons):
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    companies = _companies()
    assert asyncio.run(refine_with_llm(companies, profile, ["Healthcare"], config)) == companies


def test_refine_applies_llm_scores(llm_config, lexicons, monkeypatch):
    async def fake_llm_json(prompt, config, timeout=None, max_tokens=None):
        return {"companies": [
            {"index": 0, "score": 91, "reason": "Runs 40 hospitals", "decision_maker": "COO",
             "timeline": "Q3"},
            {"index": 1, "score": 20},
            {"index": 7, "score": 99},
            {"index": "x", "score": 50},
        ]}

    monkeypatch.setattr(scoring, "llm_json", fake_llm_json)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    refined = asyncio.run(refine_with_llm(_companies(), profile, ["Healthcare"], llm_config))

    assert refined[0].relevance_score == 91
    assert refined[0].enhanced and refined[0].priority_prospect
    assert refined[0].decision_maker == "COO"
    assert refined[0].implementation_timeline == "Q3"
    assert refined[1].relevance_score == 70
    assert not refined[1].priority_prospect
    assert not refined[2].enhanced


def test_refine_never_raises(llm_config, lexicons, monkeypatch):
    async def broken_llm_json(prompt, config, timeout=None, max_tokens=None):
        raise RuntimeError("provider exploded")

    monkeypatch.setattr(scoring, "llm_json", broken_llm_json)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    companies = _companies()
    refined = asyncio.run(refine_with_llm(companies, profile, ["Healthcare"], llm_config))
    assert [c.relevance_score for c in refined] == [c.relevance_score for c in companies]


def test_refine_only_sends_the_head(llm_config, lexicons, monkeypatch):
    prompts = []

    async def fake_llm_json(prompt, config, timeout=None, max_tokens=None):
        prompts.append(prompt)
        return None

    monkeypatch.setattr(scoring, "llm_json", fake_llm_json)
    config = llm_config.model_copy(update={"llm_refine_batch": 2, "llm_refine_limit": 3})
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    companies = [_company(f"Company {i}", 80) for i in range(5)]

    refined = asyncio.run(refine_with_llm(companies, profile, ["Healthcare"], config))
    assert len(prompts) == 2
    assert refined == companies


def test_only_web_evidence_gets_the_score_floor():
    def with_source(provenance):
        return _company("Acme", 80).model_copy(update={"provenance": provenance})

    assert clamp_to_band(with_source(DirectorySource(directory="clutch")), 10) == 70
    assert clamp_to_band(with_source(LLMSource()), 10) == 10
    assert clamp_to_band(with_source(CuratedSource(category="Finance")), 10) == 10
