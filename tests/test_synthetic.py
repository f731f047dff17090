import random

from prospect_discovery.analysis.keywords import build_profile
from prospect_discovery.models import CompanyCandidate
from prospect_discovery.synthetic import SyntheticGenerator

INDUSTRIES = ["Healthcare & Biotechnology", "Financial Services", "Software & Technology"]


def test_seeded_generation_is_repeatable(lexicons):
    profile = build_profile("CloudPilot", "Cloud analytics platform", lexicons)
    first = SyntheticGenerator(lexicons, random.Random(7)).generate_companies(20, profile, INDUSTRIES)
    second = SyntheticGenerator(lexicons, random.Random(7)).generate_companies(20, profile, INDUSTRIES)
    assert first == second


def test_companies_are_marked_and_unique(lexicons, rng):
    profile = build_profile("CloudPilot", "Cloud analytics platform", lexicons)
    companies = SyntheticGenerator(lexicons, rng).generate_companies(
        20, profile, INDUSTRIES, existing_names={"Acme Corp"},
    )

    assert len(companies) == 20
    names = [c.name.lower() for c in companies]
    assert len(set(names)) == 20
    assert "acme corp" not in names
    for company in companies:
        assert company.is_synthetic
        assert company.provenance.reason == "insufficient_results"
        assert 0 <= company.relevance_score <= 99
        assert company.industry in INDUSTRIES
        assert "." in company.website
        assert company.metadata.technology_stack
        assert company.metadata.headquarters_region is None


def test_physical_products_get_physical_metadata(lexicons, rng):
    profile = build_profile("Steel Bracket", "Heavy steel mounting bracket, 50 x 20 mm", lexicons)
    companies = SyntheticGenerator(lexicons, rng).generate_companies(5, profile, INDUSTRIES)
    assert all(c.metadata.headquarters_region for c in companies)
    assert all(c.metadata.technology_stack is None for c in companies)


def test_contacts_are_synthetic_and_avoid_existing(lexicons, rng):
    company = CompanyCandidate(name="Acme", industry="Healthcare", website="acme.com")
    generator = SyntheticGenerator(lexicons, rng)
    contacts = generator.generate_contacts(
        company, 3, roles=["VP Operations"], existing={"jane doe"}, seniority=lambda t: 70,
    )

    assert len(contacts) == 3
    assert len({c.name for c in contacts}) == 3
    for contact in contacts:
        assert not contact.is_verified
        assert contact.title == "VP Operations"
        assert contact.email.endswith("@acme.com")
        assert contact.seniority_weight == 70
        assert contact.profile_url.startswith("https://www.linkedin.com/in/")
