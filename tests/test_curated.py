import pytest

from prospect_discovery.curated import MIN_CURATED, curated_companies, match_category


@pytest.mark.parametrize("industry, category", [
    ("Financial Services", "Finance"),
    ("Healthcare & Biotechnology", "Healthcare"),
    ("Education & EdTech", "Education"),
    ("Software & Technology", "Technology"),
    ("E-commerce & Retail", "Retail"),
    ("Mining", None),
])
def test_match_category(lexicons, industry, category):
    assert match_category(industry, lexicons) == category


def test_companies_follow_industry_order(lexicons):
    companies = curated_companies(
        ["Financial Services", "Healthcare & Biotechnology"], lexicons, limit=7,
    )

    assert len(companies) == 7
    assert companies[0].name == "JPMorgan Chase"
    assert [c.industry for c in companies] == ["Financial Services"] * 5 + ["Healthcare & Biotechnology"] * 2
    assert all(c.provenance.kind == "curated" for c in companies)
    assert companies[5].provenance.category == "Healthcare"
    assert companies[0].relevance_score == companies[0].raw_score == 90
    assert not any(c.is_web_sourced for c in companies)


def test_known_names_are_skipped(lexicons):
    companies = curated_companies(["Financial Services"], lexicons, existing_names={"Goldman Sachs "})
    names = [c.name for c in companies]

    assert "Goldman Sachs" not in names
    # Four finance picks fall short, so the default category tops up
    assert len(names) == 4 + MIN_CURATED
    assert companies[-1].industry == lexicons.curated_default_category


def test_unmatched_industries_use_the_default(lexicons):
    companies = curated_companies(["Mining", "Forestry"], lexicons)
    assert len(companies) == MIN_CURATED
    assert {c.provenance.category for c in companies} == {"Technology"}


def test_default_is_not_repeated(lexicons):
    companies = curated_companies(["Software & Technology"], lexicons)
    assert [c.name for c in companies] == ["Microsoft", "Salesforce", "Adobe", "Oracle", "IBM"]


def test_empty_table_yields_nothing(lexicons):
    bare = lexicons.model_copy(update={"curated_companies": {}})
    assert curated_companies(["Financial Services"], bare) == []
