"""Decision-maker discovery through profile-network search (site:linkedin.com/in/)."""

from __future__ import annotations

import logging
import re
from typing import Awaitable, Callable

from prospect_discovery.models import ContactCandidate, RawResult, SearchQuery, VerifiedContact

logger = logging.getLogger(__name__)

SearchFn = Callable[[SearchQuery], Awaitable[list[RawResult]]]

_NAME_RE = re.compile(r"^[A-Z][A-Za-z'\-.]+(?:\s+[A-Z][A-Za-z'\-.]*){1,3}$")
_PROFILE_NOISE = re.compile(r"\b(linkedin|profile)\b", re.IGNORECASE)


def profile_query(company: str, role: str) -> SearchQuery:
    return SearchQuery(text=f'site:linkedin.com/in/ "{company}" {role}', intent="generic")


def is_person_name(name: str) -> bool:
    return bool(_NAME_RE.match(name)) and len(name) <= 40


def _title_from(part: str) -> str:
    part = part.strip()
    if " at " in part:
        part = part.split(" at ")[0]
    elif " | " in part:
        part = part.split(" | ")[0]
    return _PROFILE_NOISE.sub("", part).strip(" -|:,")


def parse_profile_title(text: str) -> tuple[str, str] | None:
    """Read (name, job title) from a profile result title.

    Handles "Name - Title - Company | LinkedIn", "Name | Title at Company"
    and "Name: Title at Company". Returns None when no person name is found.
    """
    text = " ".join(text.split())
    for sep in (" - ", " | ", ": "):
        if sep in text:
            parts = text.split(sep)
            name = parts[0].strip()
            title = _title_from(parts[1]) if len(parts) > 1 else ""
            break
    else:
        return None

    if not is_person_name(name):
        return None
    return name, title


def _is_profile_url(url: str) -> bool:
    return "linkedin.com/in/" in url.lower()


def contacts_from_results(
    results: list[RawResult],
    company: str,
    weight_of: Callable[[str], int],
    limit: int = 2,
) -> list[ContactCandidate]:
    """Turn profile search results into verified contacts."""
    company_lower = company.lower()
    contacts: list[ContactCandidate] = []
    for result in results:
        if len(contacts) >= limit:
            break
        if not _is_profile_url(result.url):
            continue
        parsed = parse_profile_title(result.title)
        if parsed is None:
            continue
        name, title = parsed
        if not title:
            continue
        mentions_company = company_lower in f"{result.title} {result.snippet}".lower()
        contacts.append(ContactCandidate(
            name=name,
            title=title,
            profile_url=result.url.split("?")[0],
            seniority_weight=weight_of(title),
            company_verified=mentions_company,
            provenance=VerifiedContact(source="profile_search"),
        ))
    return contacts


async def search_profiles(
    company: str,
    roles: list[str],
    search: SearchFn,
    weight_of: Callable[[str], int],
    needed: int = 3,
    per_role: int = 2,
    found: list[ContactCandidate] | None = None,
) -> list[ContactCandidate]:
    """Query roles in order until `needed` distinct people are found.

    Contacts are appended to `found` as each search returns, so a caller
    that cancels the search still holds everything found so far.
    """
    found = [] if found is None else found
    seen = {c.name.lower() for c in found}

    for role in roles:
        if len(found) >= needed:
            break
        results = await search(profile_query(company, role))
        for contact in contacts_from_results(results, company, weight_of, per_role):
            key = contact.name.lower()
            if key not in seen:
                seen.add(key)
                found.append(contact)

    logger.debug("Profile search found %d contacts at %s", len(found), company)
    return found
