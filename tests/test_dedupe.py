from prospect_discovery.analysis.dedupe import deduplicate_companies, merge_group
from prospect_discovery.models import CompanyCandidate, CuratedSource, DirectorySource, LLMSource, ScrapedSource


def _company(name, score=80, website="", description="", engine="bing", query="q1", buyer=False):
    return CompanyCandidate(
        name=name,
        website=website,
        description=description,
        relevance_score=score,
        raw_score=score,
        buyer_intent_query=buyer,
        has_buyer_intent=buyer,
        source_queries=[query],
        provenance=ScrapedSource(engines=(engine,), queries=(query,)),
    )


def test_case_insensitive_merge():
    merged = deduplicate_companies([
        _company("Acme Corp", 80, website="acmecorp.com"),
        _company("ACME CORP", 75, engine="duckduckgo", query="q2"),
        _company("Globex", 90),
    ])

    assert [c.name for c in merged] == ["Acme Corp", "Globex"]
    acme = merged[0]
    assert acme.aggregated_from == 2
    assert acme.relevance_score == 81
    assert acme.source_queries == ["q1", "q2"]
    assert acme.provenance.engines == ("bing", "duckduckgo")


def test_merge_is_idempotent():
    once = deduplicate_companies([
        _company("Acme Corp", 80, buyer=True),
        _company("acme corp", 82),
        _company("Acme Corp ", 70),
    ])
    twice = deduplicate_companies(once)
    assert once == twice
    assert twice[0].relevance_score == 82 + 2 + 5


def test_aggregation_is_capped():
    members = [_company("Acme", 80, query=f"q{i}") for i in range(15)]
    merged = merge_group(members, cap=10)
    assert merged.aggregated_from == 10
    assert merged.relevance_score == 85


def test_best_website_and_longest_description_win():
    merged = merge_group([
        _company("Initech Systems", 90, website="tech-news.com", description="Short blurb"),
        _company("Initech Systems", 80, website="initech.com",
                 description="Initech Systems builds payroll software for mid-sized companies."),
    ])
    assert merged.website == "initech.com"
    assert merged.description.startswith("Initech Systems builds")


def test_score_never_exceeds_ceiling():
    merged = merge_group([_company("Acme", 97, buyer=True), _company("Acme", 96)])
    assert merged.relevance_score == 99


def test_directory_provenance_is_kept():
    directory = CompanyCandidate(
        name="Globex", relevance_score=85, raw_score=85,
        provenance=DirectorySource(directory="industryweek"),
    )
    merged = deduplicate_companies([directory, _company("globex", 80)])
    assert merged[0].provenance.kind == "directory"
    assert merged[0].aggregated_from == 2


def test_scraped_evidence_outranks_a_suggestion():
    suggested = _company("Acme Corp", 88).model_copy(update={
        "provenance": LLMSource(provider="anthropic"), "ai_reason": "Fast-growing clinic chain",
    })
    [merged] = deduplicate_companies([suggested, _company("acme corp", 75)])

    assert merged.provenance.kind == "scraped"
    assert merged.provenance.engines == ("bing",)
    assert merged.is_web_sourced
    assert merged.ai_reason == "Fast-growing clinic chain"


def test_curated_outranks_llm_suggestion():
    curated = _company("Pfizer", 83).model_copy(update={"provenance": CuratedSource(category="Healthcare")})
    suggested = _company("pfizer", 90).model_copy(update={"provenance": LLMSource()})
    [merged] = deduplicate_companies([suggested, curated])

    assert merged.provenance == CuratedSource(category="Healthcare")
    assert not merged.is_web_sourced
