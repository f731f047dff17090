"""Synthetic placeholder companies and contacts for when real discovery falls short.

Every record produced here carries SyntheticSource / SyntheticContact
provenance; nothing downstream may present it as verified.
"""

from __future__ import annotations

import logging
import random
import re

from prospect_discovery.config import ClassLexicon, Lexicons
from prospect_discovery.contacts.emails import generate_email
from prospect_discovery.models import (
    MAX_SCORE,
    CompanyCandidate,
    CompanyMetadata,
    ContactCandidate,
    ProductProfile,
    SyntheticContact,
    SyntheticSource,
)

logger = logging.getLogger(__name__)

BASE_SCORE = 65
STRONG_INDUSTRY_BONUS = 10
WEAK_INDUSTRY_BONUS = 5
SCORE_JITTER = 24
TOP_INDUSTRY_SHARE = 0.7
MAX_ATTEMPTS_PER_RECORD = 20


def _matches_any(industry: str, names: list[str]) -> bool:
    lowered = industry.lower()
    return any(n.lower() in lowered for n in names)


class SyntheticGenerator:
    """Procedural company and contact fabricator; pass a seeded rng for repeatability."""

    def __init__(self, lexicons: Lexicons, rng: random.Random | None = None):
        self.lexicons = lexicons
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Companies
    # ------------------------------------------------------------------

    def _company_name(self, words: ClassLexicon) -> str:
        pick = self.rng.choice
        pattern = self.rng.randrange(5)
        if pattern == 0:
            return f"{pick(words.prefixes)}{pick(words.middles)} {pick(words.suffixes)}"
        if pattern == 1:
            return f"{pick(words.prefixes)} {pick(words.suffixes)}"
        if pattern == 2:
            return f"{pick(words.prefixes)} & {pick(words.suffixes)}"
        if pattern == 3:
            return f"{pick(words.prefixes)}-{pick(words.middles)}"
        return f"{pick(self.lexicons.synthetic.surnames)} {pick(words.suffixes)}"

    def _domain(self, name: str, words: ClassLexicon) -> str:
        pick = self.rng.choice
        extension = pick(words.domain_extensions)
        tokens = [t for t in re.split(r"[\s\-&]+", name.lower()) if t]
        first = tokens[0] if tokens else "company"
        pattern = self.rng.randrange(5)
        if pattern == 0:
            return first + extension
        if pattern == 1:
            return "".join(tokens) + extension
        if pattern == 2:
            return "-".join(tokens) + extension
        if pattern == 3:
            return pick(words.domain_prefixes) + first + extension
        return first + pick(words.domain_suffixes) + extension

    def _industry(self, industries: list[str]) -> str:
        if not industries:
            return self.rng.choice(self.lexicons.default_industries)
        if self.rng.random() < TOP_INDUSTRY_SHARE:
            return self.rng.choice(industries[:3])
        return self.rng.choice(industries)

    def _description(self, industry: str, words: ClassLexicon) -> str:
        bank = next(
            (texts for key, texts in words.descriptions.items() if key.lower() in industry.lower()),
            None,
        )
        if bank:
            description = self.rng.choice(bank)
        elif words.generic_descriptions:
            description = self.rng.choice(words.generic_descriptions).format(industry=industry)
        else:
            description = f"Provides specialized solutions for {industry} businesses"
        if not description.endswith("."):
            description += "."
        if self.rng.random() < 0.5:
            description = f"{description} {self.rng.choice(self.lexicons.synthetic.filler_sentences)}"
        return description

    def _score(self, industry: str, words: ClassLexicon) -> int:
        score = BASE_SCORE
        if _matches_any(industry, words.strong_industries):
            score += STRONG_INDUSTRY_BONUS
        elif _matches_any(industry, words.weak_industries):
            score += WEAK_INDUSTRY_BONUS
        return min(MAX_SCORE, score + self.rng.randint(0, SCORE_JITTER))

    def _metadata(self, physical: bool) -> CompanyMetadata:
        bank = self.lexicons.synthetic
        rng = self.rng
        common = {
            "size_bracket": rng.choice(bank.size_brackets),
            "year_founded": 1960 + rng.randrange(60),
            "publicly_traded": rng.random() < 0.2,
        }
        if physical:
            return CompanyMetadata(
                **common,
                headquarters_region=rng.choice(bank.regions),
                product_categories=sorted(set(rng.sample(bank.product_categories, 2))),
                manufacturing_capabilities=rng.random() < 0.5,
                distribution_network=rng.choice(bank.distribution_networks),
            )
        return CompanyMetadata(
            **common,
            technology_stack=rng.choice(bank.tech_stacks),
            business_model=rng.choice(bank.business_models),
            cloud_based=rng.random() < 0.7,
            has_api=rng.random() < 0.6,
            has_free_trial=rng.random() < 0.7,
        )

    def generate_companies(
        self,
        count: int,
        profile: ProductProfile,
        industries: list[str],
        existing_names: set[str] | None = None,
    ) -> list[CompanyCandidate]:
        """Fabricate `count` companies whose names collide with nothing in `existing_names`."""
        words = self.lexicons.synthetic.physical if profile.is_physical else self.lexicons.synthetic.digital
        taken = {n.strip().lower() for n in (existing_names or set())}
        companies: list[CompanyCandidate] = []

        attempts = 0
        while len(companies) < count and attempts < count * MAX_ATTEMPTS_PER_RECORD:
            attempts += 1
            name = self._company_name(words)
            if name.lower() in taken:
                continue
            taken.add(name.lower())

            industry = self._industry(industries)
            score = self._score(industry, words)
            companies.append(CompanyCandidate(
                name=name,
                industry=industry,
                description=self._description(industry, words),
                website=self._domain(name, words),
                relevance_score=score,
                raw_score=score,
                has_buyer_intent=self.rng.random() < 0.6,
                metadata=self._metadata(profile.is_physical),
                provenance=SyntheticSource(),
            ))

        logger.info("Generated %d synthetic companies", len(companies))
        return companies

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    def _title(self, industry: str, roles: list[str] | None) -> str:
        if roles:
            return self.rng.choice(roles)
        people = self.lexicons.people
        for key, titles in people.industry_titles.items():
            if key.lower() in (industry or "").lower() and titles:
                return self.rng.choice(titles)
        return self.rng.choice(people.default_titles)

    def generate_contacts(
        self,
        company: CompanyCandidate,
        count: int,
        roles: list[str] | None = None,
        existing: set[str] | None = None,
        seniority=None,
    ) -> list[ContactCandidate]:
        """Fabricate `count` contacts with unique names not in `existing` (lowercased names).

        `seniority` is an optional callable mapping a title to its weight.
        """
        people = self.lexicons.people
        taken = {n.strip().lower() for n in (existing or set())}
        contacts: list[ContactCandidate] = []

        attempts = 0
        while len(contacts) < count and attempts < count * MAX_ATTEMPTS_PER_RECORD:
            attempts += 1
            first = self.rng.choice(people.first_names)
            last = self.rng.choice(people.last_names)
            name = f"{first} {last}"
            if name.lower() in taken:
                continue
            taken.add(name.lower())

            title = self._title(company.industry, roles)
            contacts.append(ContactCandidate(
                name=name,
                title=title,
                email=generate_email(name, company.website, self.rng),
                profile_url=(
                    f"https://www.linkedin.com/in/{first.lower()}-{last.lower()}"
                    f"-{self.rng.randint(100, 999)}/"
                ),
                seniority_weight=seniority(title) if seniority else 0,
                provenance=SyntheticContact(),
            ))

        return contacts
