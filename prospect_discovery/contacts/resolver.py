"""Contact resolution: profile search, then company website, then synthetic fill."""

from __future__ import annotations

import logging
import random
from functools import partial

from prospect_discovery.analysis.extraction import llm_json
from prospect_discovery.analysis.prompts import CONTACT_ROLES_PROMPT
from prospect_discovery.config import Config, Lexicons
from prospect_discovery.contacts.emails import generate_email
from prospect_discovery.contacts.profiles import SearchFn, search_profiles
from prospect_discovery.contacts.seniority import rank_contacts, seniority_weight
from prospect_discovery.contacts.website import scrape_company_site
from prospect_discovery.models import CompanyCandidate, ContactCandidate, ContactResult
from prospect_discovery.scrape.http_scraper import FetchClient
from prospect_discovery.synthetic import SyntheticGenerator

logger = logging.getLogger(__name__)


async def suggest_contact_roles(
    company: CompanyCandidate,
    config: Config,
    product_hint: str = "",
) -> list[str]:
    """Ask the LLM which titles own the purchase decision; empty list on any failure."""
    prompt = CONTACT_ROLES_PROMPT.format(
        company_name=company.name,
        industry=company.industry or "Unknown",
        product_hint=product_hint or company.ai_reason or "a B2B product",
    )
    data = await llm_json(prompt, config, timeout=config.query_llm_timeout, max_tokens=300)
    if not data or not isinstance(data.get("roles"), list):
        return []
    return [r.strip() for r in data["roles"] if isinstance(r, str) and r.strip()][:6]


def role_plan(
    industry: str,
    lexicons: Lexicons,
    suggested: list[str] | None = None,
) -> list[str]:
    """Search order: leadership, industry-specific, decision roles, then suggestions."""
    roles = list(lexicons.leadership_roles)
    lowered = (industry or "").lower()
    for key, titles in lexicons.industry_roles.items():
        if key in lowered:
            roles.extend(titles)
    roles.extend(lexicons.decision_roles)
    roles.extend(suggested or [])
    return list(dict.fromkeys(roles))


def merge_contacts(*groups: list[ContactCandidate]) -> list[ContactCandidate]:
    """Concatenate sources, dropping repeats by email or name (case-insensitive)."""
    merged: list[ContactCandidate] = []
    emails: set[str] = set()
    names: set[str] = set()
    for group in groups:
        for contact in group:
            email = contact.email.lower()
            name = contact.name.strip().lower()
            if (email and email in emails) or name in names:
                continue
            if email:
                emails.add(email)
            names.add(name)
            merged.append(contact)
    return merged


class ContactResolver:
    """Finds up to three decision-makers for a company, best first."""

    def __init__(
        self,
        config: Config,
        lexicons: Lexicons,
        fetch: FetchClient,
        search: SearchFn,
        rng: random.Random | None = None,
    ):
        self.config = config
        self.lexicons = lexicons
        self.fetch = fetch
        self.search = search
        self.rng = rng or random.Random()
        self.synthetic = SyntheticGenerator(lexicons, self.rng)
        self.weight_of = partial(seniority_weight, weights=lexicons.seniority_weights)

    async def resolve(
        self,
        company: CompanyCandidate,
        suggested_roles: list[str] | None = None,
        product_hint: str = "",
        found: list[ContactCandidate] | None = None,
    ) -> ContactResult:
        """Profile search, then the company site, then synthetic fill.

        Verified contacts are collected into `found` as they arrive; after a
        cancellation, `complete(company, found)` still yields a full result.
        """
        needed = self.config.contacts_per_company
        found = [] if found is None else found

        if suggested_roles is None and self.config.llm_configured:
            suggested_roles = await suggest_contact_roles(company, self.config, product_hint)
        roles = role_plan(company.industry, self.lexicons, suggested_roles)

        await search_profiles(
            company.name,
            roles,
            self.search,
            self.weight_of,
            needed=needed,
            per_role=self.config.profiles_per_role,
            found=found,
        )

        if len(found) < needed and company.website:
            from_site = await scrape_company_site(
                company.website,
                self.fetch,
                self.lexicons,
                company.industry,
                self.weight_of,
                needed=needed,
                rng=self.rng,
            )
            found[:] = merge_contacts(found, from_site)

        return self.complete(company, found, suggested_roles)

    def complete(
        self,
        company: CompanyCandidate,
        verified: list[ContactCandidate],
        suggested_roles: list[str] | None = None,
    ) -> ContactResult:
        """Fill missing emails, top up with synthetic contacts and rank."""
        needed = self.config.contacts_per_company
        verified = [
            c if c.email else c.model_copy(
                update={"email": generate_email(c.name, company.website, self.rng)},
            )
            for c in verified
        ]

        contacts = verified
        if len(verified) < needed:
            logger.info(
                "Only %d verified contacts at %s, adding synthetic ones", len(verified), company.name,
            )
            fabricated = self.synthetic.generate_contacts(
                company,
                needed - len(verified),
                roles=suggested_roles or None,
                existing={c.name for c in verified},
                seniority=self.weight_of,
            )
            contacts = merge_contacts(verified, fabricated)

        ranked = rank_contacts(contacts, limit=needed)
        verified_count = sum(1 for c in ranked if c.is_verified)
        return ContactResult(
            company=company.name,
            contacts=ranked,
            provenance={"verified": verified_count, "synthetic": len(ranked) - verified_count},
        )
