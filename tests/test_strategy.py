import asyncio

from prospect_discovery.analysis.keywords import build_profile
from prospect_discovery.search import strategy
from prospect_discovery.search.strategy import (
    MIN_QUERIES,
    is_usable_query,
    parse_llm_queries,
    plan_queries,
    static_queries,
)

INDUSTRIES = ["Healthcare & Biotechnology", "Financial Services", "Software & Technology"]


def test_static_fallback_without_llm(config, lexicons):
    profile = build_profile("CloudPilot", "Cloud analytics platform for finance teams", lexicons)
    queries = asyncio.run(plan_queries(profile, INDUSTRIES, config, lexicons))

    assert len(queries) >= MIN_QUERIES
    assert all(is_usable_query(q.text) for q in queries)
    assert "{" not in " ".join(q.text for q in queries)
    assert any(q.intent == "buyer_intent" for q in queries)


def test_hr_products_use_hr_templates(lexicons):
    profile = build_profile("TalentAI", "AI screening for recruitment teams", lexicons)
    queries = static_queries(profile, INDUSTRIES, lexicons)
    assert "VP of HR" in queries[0].text
    assert "AI for recruitment" in queries[0].text


def test_physical_products_use_physical_templates(lexicons):
    profile = build_profile(
        "Steel Bracket", "Heavy steel mounting bracket, 50 x 20 mm", lexicons,
    )
    queries = static_queries(profile, INDUSTRIES, lexicons)
    assert any("manufacturer OR supplier" in q.text for q in queries)
    tagged = [q for q in queries if q.industry]
    assert tagged and all(q.industry in INDUSTRIES for q in tagged)


def test_llm_queries_are_parsed_and_tagged(llm_config, lexicons, monkeypatch):
    async def fake_llm_json(prompt, config, timeout=None, max_tokens=None):
        return {"queries": [
            {"query": "hospitals evaluating scheduling software", "intent": "buyer_intent"},
            "Healthcare & Biotechnology clinics patient scheduling",
            "fintech companies seeking analytics vendors",
            "x",
            {"query": "hospitals evaluating scheduling software", "intent": "buyer_intent"},
        ]}

    monkeypatch.setattr(strategy, "llm_json", fake_llm_json)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    queries = asyncio.run(plan_queries(profile, INDUSTRIES, llm_config, lexicons))

    assert [q.text for q in queries] == [
        "hospitals evaluating scheduling software",
        "Healthcare & Biotechnology clinics patient scheduling",
        "fintech companies seeking analytics vendors",
    ]
    assert queries[0].intent == "buyer_intent"
    assert queries[1].industry == "Healthcare & Biotechnology"
    assert queries[2].intent == "buyer_intent"


def test_too_few_llm_queries_fall_back_to_templates(llm_config, lexicons, monkeypatch):
    async def fake_llm_json(prompt, config, timeout=None, max_tokens=None):
        return {"queries": ["only one usable query here"]}

    monkeypatch.setattr(strategy, "llm_json", fake_llm_json)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    queries = asyncio.run(plan_queries(profile, INDUSTRIES, llm_config, lexicons))

    assert len(queries) >= MIN_QUERIES
    assert "only one usable query here" not in [q.text for q in queries]


def test_parse_llm_queries_accepts_any_list_key(lexicons):
    queries = parse_llm_queries(
        {"search_queries": ["first useful query", "second useful query"]}, INDUSTRIES, lexicons,
    )
    assert len(queries) == 2


def test_zero_timeout_skips_the_llm(llm_config, lexicons, monkeypatch):
    async def fail(*args, **kwargs):
        raise AssertionError("LLM must not be called")

    monkeypatch.setattr(strategy, "llm_json", fail)
    profile = build_profile("ClinicFlow", "Patient scheduling software", lexicons)
    queries = asyncio.run(plan_queries(profile, INDUSTRIES, llm_config, lexicons, timeout=0))
    assert len(queries) >= MIN_QUERIES
