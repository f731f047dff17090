import asyncio

import pytest
from pydantic import ValidationError

from prospect_discovery.analysis.industries import (
    MAX_INDUSTRIES,
    MIN_INDUSTRIES,
    identify_target_industries,
    keyword_industries,
)
from prospect_discovery.analysis import industries as industries_mod
from prospect_discovery.analysis.keywords import build_profile, classify_product, extract_keywords


def test_steel_bracket_is_physical(lexicons):
    kind = classify_product(
        "Steel Bracket",
        "Heavy steel mounting bracket, 50 x 20 mm, ships with a 5 year warranty",
        lexicons,
    )
    assert kind == "physical"


def test_cloud_saas_is_digital(lexicons):
    kind = classify_product(
        "CloudPilot",
        "Cloud SaaS platform with an API and analytics dashboard for subscription businesses",
        lexicons,
    )
    assert kind == "digital"


@pytest.mark.parametrize("description, expected", [
    ("steel mounting bracket, dimensions 10x20cm, 2kg", "physical"),
    ("cloud SaaS dashboard with REST API", "digital"),
])
def test_short_descriptions_classify(lexicons, description, expected):
    assert classify_product("Orbis", description, lexicons) == expected
    assert build_profile("Orbis", description, lexicons).classification == expected


def test_no_signals_resolves_to_digital(lexicons):
    assert classify_product("Zorb", "Zorb zorb zorb", lexicons) == "digital"


def test_extract_keywords_is_deterministic(lexicons):
    text = "AI powered candidate screening automation for recruiting teams and recruiting agencies"
    first = extract_keywords(text, 5, lexicons)
    assert first == extract_keywords(text, 5, lexicons)
    assert len(first) <= 5
    assert "recruiting" in first


def test_extract_keywords_skips_short_and_stop_words(lexicons):
    keywords = extract_keywords("the and for api tool with your data", 5, lexicons)
    assert "the" not in keywords
    assert "api" not in keywords
    assert extract_keywords("anything", 0, lexicons) == []


def test_build_profile_rejects_blank_input(lexicons):
    with pytest.raises(ValidationError):
        build_profile("   ", "something real", lexicons)
    with pytest.raises(ValidationError):
        build_profile("Widget", "", lexicons)


def test_build_profile_fills_keywords_and_class(lexicons):
    profile = build_profile(
        "TalentAI", "AI screening software for recruitment teams", lexicons, industry="  ",
    )
    assert profile.industry is None
    assert profile.keywords
    assert profile.classification == "digital"


def test_keyword_industries_returns_five_to_seven(lexicons):
    profile = build_profile(
        "ClinicFlow", "Patient scheduling software for hospitals and clinics", lexicons,
    )
    industries = keyword_industries(profile, lexicons)
    assert MIN_INDUSTRIES <= len(industries) <= MAX_INDUSTRIES
    assert len(set(industries)) == len(industries)


def test_identify_industries_prefers_llm_list(llm_config, lexicons, monkeypatch):
    async def fake_llm_json(prompt, config, timeout=None, max_tokens=None):
        return {"industries": ["Healthcare", "Insurance", "Pharma", "Healthcare"]}

    monkeypatch.setattr(industries_mod, "llm_json", fake_llm_json)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)

    industries = asyncio.run(identify_target_industries(profile, llm_config, lexicons))
    assert industries == ["Healthcare", "Insurance", "Pharma"]


def test_identify_industries_falls_back_on_short_llm_list(llm_config, lexicons, monkeypatch):
    async def fake_llm_json(prompt, config, timeout=None, max_tokens=None):
        return {"industries": ["Healthcare"]}

    monkeypatch.setattr(industries_mod, "llm_json", fake_llm_json)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)

    industries = asyncio.run(identify_target_industries(profile, llm_config, lexicons))
    assert len(industries) >= MIN_INDUSTRIES


def test_identify_industries_skips_llm_without_time(llm_config, lexicons, monkeypatch):
    async def fail(*args, **kwargs):
        raise AssertionError("LLM must not be called")

    monkeypatch.setattr(industries_mod, "llm_json", fail)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)

    industries = asyncio.run(identify_target_industries(profile, llm_config, lexicons, timeout=0))
    assert industries == keyword_industries(profile, lexicons)
