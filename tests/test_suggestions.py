import asyncio

from prospect_discovery.analysis import suggestions as suggestions_mod
from prospect_discovery.analysis.keywords import build_profile
from prospect_discovery.analysis.suggestions import (
    DEFAULT_SUGGESTED_SCORE,
    MAX_SUGGESTIONS,
    parse_suggested_companies,
    suggest_companies,
)

INDUSTRIES = ["Healthcare & Biotechnology", "Financial Services"]


def test_parses_company_rows(lexicons):
    data = {"companies": [
        {
            "name": "Mercy Health Partners",
            "industry": "Healthcare & Biotechnology",
            "description": "Regional hospital network",
            "website": "https://www.mercyhealth.com/about",
            "relevance_score": 88,
            "fit_reason": "Runs 30 clinics on paper schedules",
        },
    ]}
    [company] = parse_suggested_companies(data, INDUSTRIES, lexicons, provider="anthropic")

    assert company.name == "Mercy Health Partners"
    assert company.website == "mercyhealth.com"
    assert company.relevance_score == company.raw_score == 88
    assert company.ai_reason == "Runs 30 clinics on paper schedules"
    assert company.provenance.kind == "llm"
    assert company.provenance.provider == "anthropic"
    assert not company.is_web_sourced
    assert company.score_floor == 0


def test_accepts_renamed_keys_and_plain_names(lexicons):
    data = {"prospects": ["Mercy Health Partners", {"name": "Lakeside Bank", "relevanceScore": "71.6",
                                                   "fitReason": "Growing branch network"}]}
    companies = parse_suggested_companies(data, INDUSTRIES, lexicons)

    assert [c.name for c in companies] == ["Mercy Health Partners", "Lakeside Bank"]
    assert companies[0].industry == INDUSTRIES[0]
    assert companies[0].relevance_score == DEFAULT_SUGGESTED_SCORE
    assert companies[1].relevance_score == 72
    assert companies[1].ai_reason == "Growing branch network"


def test_bad_scores_use_the_default(lexicons):
    data = {"companies": [{"name": "Lakeside Bank", "relevance_score": "high"}]}
    [company] = parse_suggested_companies(data, INDUSTRIES, lexicons)
    assert company.relevance_score == DEFAULT_SUGGESTED_SCORE


def test_generic_names_are_dropped(lexicons):
    data = {"companies": ["AI Solutions", "Top 10 Hospitals", "", 42, "Lakeside Bank"]}
    companies = parse_suggested_companies(data, INDUSTRIES, lexicons)
    assert [c.name for c in companies] == ["Lakeside Bank"]


def test_social_profile_websites_are_blanked(lexicons):
    data = {"companies": [{"name": "Lakeside Bank", "website": "linkedin.com/company/lakeside"}]}
    [company] = parse_suggested_companies(data, INDUSTRIES, lexicons)
    assert company.website == ""


def test_suggestions_are_capped(lexicons):
    data = {"companies": [f"Lakeside Bank {chr(65 + i)}" for i in range(MAX_SUGGESTIONS + 5)]}
    assert len(parse_suggested_companies(data, INDUSTRIES, lexicons)) == MAX_SUGGESTIONS


def test_no_suggestions_without_llm(config, lexicons, monkeypatch):
    async def fail(*args, **kwargs):
        raise AssertionError("LLM must not be called")

    monkeypatch.setattr(suggestions_mod, "llm_json", fail)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    assert asyncio.run(suggest_companies(profile, INDUSTRIES, config, lexicons)) == []


def test_suggestions_can_be_switched_off(llm_config, lexicons, monkeypatch):
    async def fail(*args, **kwargs):
        raise AssertionError("LLM must not be called")

    monkeypatch.setattr(suggestions_mod, "llm_json", fail)
    config = llm_config.model_copy(update={"llm_company_suggestions": False})
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    assert asyncio.run(suggest_companies(profile, INDUSTRIES, config, lexicons)) == []


def test_suggest_companies_prompts_with_profile(llm_config, lexicons, monkeypatch):
    prompts = []

    async def fake_llm_json(prompt, config, timeout=None, max_tokens=None):
        prompts.append(prompt)
        return {"companies": [{"name": "Mercy Health Partners", "website": "mercyhealth.com"}]}

    monkeypatch.setattr(suggestions_mod, "llm_json", fake_llm_json)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    companies = asyncio.run(suggest_companies(profile, INDUSTRIES, llm_config, lexicons, timeout=2))

    assert [c.name for c in companies] == ["Mercy Health Partners"]
    assert "ClinicFlow" in prompts[0]
    assert "Healthcare & Biotechnology, Financial Services" in prompts[0]


def test_unusable_response_yields_nothing(llm_config, lexicons, monkeypatch):
    async def fake_llm_json(prompt, config, timeout=None, max_tokens=None):
        return None

    monkeypatch.setattr(suggestions_mod, "llm_json", fake_llm_json)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    assert asyncio.run(suggest_companies(profile, INDUSTRIES, llm_config, lexicons)) == []
