"""Company-website scraping for team members and published email addresses.

Tries the usual about/team/leadership paths, reads name/title pairs from
team-member blocks and collects addresses at the company domain. When
a published address can be matched to a person, its format (first.last,
flast, ...) is reused for the other people found on the site.
"""

from __future__ import annotations

import logging
import random
import re
from collections import Counter
from typing import Callable

import trafilatura
from bs4 import BeautifulSoup

from prospect_discovery.config import Lexicons
from prospect_discovery.contacts.emails import (
    clean_domain,
    find_emails,
    format_email,
    generate_email,
    infer_format,
)
from prospect_discovery.contacts.profiles import is_person_name
from prospect_discovery.models import ContactCandidate, VerifiedContact
from prospect_discovery.scrape.http_scraper import FetchClient

logger = logging.getLogger(__name__)

NAME_SELECTOR = "h1, h2, h3, h4, h5, h6, strong, .name"
TITLE_SELECTOR = 'p, .title, .role, .position, [class*="title"], [class*="role"]'
EMAIL_CONTEXT_CHARS = 50

# Headings that look like names but are section labels
_NON_NAME_WORDS = {
    "our", "team", "about", "leadership", "contact", "us", "meet", "the",
    "management", "board", "company", "careers", "news", "services", "home",
}
# Lookahead so "Contact John Smith" also yields the overlapping "John Smith"
_CONTEXT_NAME_RE = re.compile(r"(?=\b([A-Z][a-z]+\s+[A-Z][a-z]+)\b)")


def page_text(html: str, url: str = "") -> str:
    """Main text of a page via trafilatura, falling back to tag stripping."""
    text = trafilatura.extract(
        html,
        include_tables=True,
        include_links=False,
        include_comments=False,
        favor_recall=True,
        url=url or None,
    )
    if not text or len(text) < 100:
        text = _basic_html_to_text(html)
    return text


def _basic_html_to_text(html: str) -> str:
    text = re.sub(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", "", html, flags=re.I | re.S)
    text = re.sub(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", "", text, flags=re.I | re.S)
    text = re.sub(r"<!--[\s\S]*?-->", "", text)
    text = re.sub(r"<[^>]+>", " ", text)
    text = text.replace("&nbsp;", " ").replace("&amp;", "&")
    text = re.sub(r"&[a-z]+;", " ", text, flags=re.I)
    return re.sub(r"\s+", " ", text).strip()


def likely_title(industry: str, lexicons: Lexicons, rng: random.Random) -> str:
    """A plausible title for a named person whose role the page did not show."""
    lowered = (industry or "").lower()
    for key, titles in lexicons.likely_titles.items():
        if key in lowered and titles:
            return rng.choice(titles)
    return rng.choice(lexicons.general_titles)


def _clean_person_name(text: str) -> str:
    return " ".join(text.split()).strip(" ,:-|")


def _is_member_name(name: str) -> bool:
    if not is_person_name(name):
        return False
    return not any(w.lower() in _NON_NAME_WORDS for w in name.split())


def _clean_title(text: str) -> str:
    text = " ".join(text.split())
    text = re.sub(r"^[^a-zA-Z]+", "", text)
    text = re.sub(r"[^a-zA-Z]+$", "", text)
    return text.strip()


def extract_team_members(html: str, selectors: list[str]) -> list[tuple[str, str, str]]:
    """Read (name, title, profile link) triples from team-member blocks."""
    soup = BeautifulSoup(html, "html.parser")
    members: list[tuple[str, str, str]] = []
    seen: set[str] = set()

    for selector in selectors:
        try:
            elements = soup.select(selector)
        except ValueError as e:
            logger.debug("Bad team selector %r: %s", selector, e)
            continue
        for element in elements:
            try:
                name_node = element.select_one(NAME_SELECTOR)
                name = _clean_person_name(name_node.get_text(" ", strip=True)) if name_node else ""
                if len(name) < 3 or not _is_member_name(name) or name.lower() in seen:
                    continue
                title_node = element.select_one(TITLE_SELECTOR)
                title = _clean_title(title_node.get_text(" ", strip=True)) if title_node else ""
                if title.lower() == name.lower() or len(title) > 80:
                    title = ""
                link = element.select_one('a[href*="linkedin.com"]')
                members.append((name, title, link.get("href", "") if link else ""))
                seen.add(name.lower())
            except (AttributeError, KeyError, TypeError) as e:
                logger.debug("Skipping malformed team member: %s", e)
    return members


def named_emails(html: str, text: str, domain: str) -> list[tuple[str, str]]:
    """(name, email) pairs where a "First Last" sits next to a company address."""
    pairs: list[tuple[str, str]] = []
    seen: set[str] = set()
    for email in find_emails(html, domain):
        for body in (text, html):
            idx = body.lower().find(email)
            if idx == -1:
                continue
            context = body[max(0, idx - EMAIL_CONTEXT_CHARS): idx + len(email) + EMAIL_CONTEXT_CHARS]
            for match in _CONTEXT_NAME_RE.finditer(context):
                name = match.group(1)
                if _is_member_name(name) and infer_format(email, name):
                    if email not in seen:
                        seen.add(email)
                        pairs.append((name, email))
                    break
            if email in seen:
                break
    return pairs


def dominant_format(pairs: list[tuple[str, str]]) -> str | None:
    """Most common address format among matched (name, email) pairs."""
    formats = Counter(f for f in (infer_format(e, n) for n, e in pairs) if f)
    return formats.most_common(1)[0][0] if formats else None


async def scrape_company_site(
    domain: str,
    fetch: FetchClient,
    lexicons: Lexicons,
    industry: str,
    weight_of: Callable[[str], int],
    needed: int = 3,
    rng: random.Random | None = None,
) -> list[ContactCandidate]:
    """Walk the team/about paths of a company site and return verified contacts."""
    rng = rng or random.Random()
    domain = clean_domain(domain)
    if domain == "example.com":
        return []

    members: dict[str, tuple[str, str, str]] = {}
    addressed: dict[str, tuple[str, str]] = {}

    for path in lexicons.team_paths:
        if len(members) + len(addressed) >= needed * 2:
            break
        url = f"https://{domain}{path}"
        html, error = await fetch.fetch_url(url, key="site")
        if not html:
            logger.debug("Skipping %s: %s", url, error)
            continue

        for name, title, link in extract_team_members(html, lexicons.team_selectors):
            members.setdefault(name.lower(), (name, title, link))

        for name, email in named_emails(html, page_text(html, url), domain):
            addressed.setdefault(name.lower(), (name, email))

    fmt = dominant_format(list(addressed.values()))
    if fmt:
        logger.debug("Email format at %s looks like %s", domain, fmt)

    contacts: list[ContactCandidate] = []
    for key, (name, title, link) in members.items():
        title = title if len(title) >= 3 else likely_title(industry, lexicons, rng)
        email = addressed[key][1] if key in addressed else None
        if not email and fmt:
            email = format_email(fmt, name, domain)
        contacts.append(ContactCandidate(
            name=name,
            title=title,
            email=email or generate_email(name, domain, rng),
            profile_url=link or f"https://www.linkedin.com/in/{'-'.join(name.lower().split())}/",
            seniority_weight=weight_of(title),
            company_verified=True,
            provenance=VerifiedContact(source="website"),
        ))

    for key, (name, email) in addressed.items():
        if key in members:
            continue
        title = likely_title(industry, lexicons, rng)
        contacts.append(ContactCandidate(
            name=name,
            title=title,
            email=email,
            seniority_weight=weight_of(title),
            company_verified=True,
            provenance=VerifiedContact(source="website_email"),
        ))

    logger.debug("Website scrape found %d contacts at %s", len(contacts), domain)
    return contacts
