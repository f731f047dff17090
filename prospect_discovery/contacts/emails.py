"""Email address generation, discovery on web pages and address pattern inference."""

from __future__ import annotations

import random
import re

FALLBACK_DOMAIN = "example.com"

# Address formats, as (name, template). Templates use f, l, fi, li, mi.
FORMATS: dict[str, str] = {
    "first.last": "{f}.{l}",
    "first": "{f}",
    "flast": "{fi}{l}",
    "last.first": "{l}.{f}",
    "firstl": "{f}{li}",
    "first-last": "{f}-{l}",
    "first_last": "{f}_{l}",
    "firstlast": "{f}{l}",
    "lastf": "{l}{fi}",
    "last": "{l}",
    "first.m.last": "{f}.{mi}.{l}",
    "firstmlast": "{f}{mi}{l}",
}


def clean_domain(domain: str | None) -> str:
    """Strip scheme, path and www; fall back to example.com when unusable."""
    domain = re.sub(r"^https?://", "", (domain or "").strip().lower()).split("/")[0]
    if domain.startswith("www."):
        domain = domain[4:]
    if len(domain) < 3 or "." not in domain:
        return FALLBACK_DOMAIN
    return domain


def _name_parts(name: str) -> list[str]:
    return re.sub(r"[^\w\s]", " ", name).lower().split()


def format_email(fmt: str, name: str, domain: str) -> str | None:
    """Render one named format for a person, or None when the name lacks a needed part."""
    parts = _name_parts(name)
    if not parts:
        return None
    first, last = parts[0], parts[-1]
    middle = parts[1][0] if len(parts) > 2 else ""
    template = FORMATS.get(fmt)
    if template is None or ("{mi}" in template and not middle):
        return None
    if len(parts) == 1 and "{l" in template:
        return None
    local = template.format(f=first, l=last, fi=first[0], li=last[0], mi=middle)
    return f"{local}@{clean_domain(domain)}"


def generate_email(name: str, domain: str | None, rng: random.Random | None = None) -> str:
    """Pick a plausible address for a person using weighted common formats."""
    rng = rng or random.Random()
    domain = clean_domain(domain)
    parts = _name_parts(name)
    if not parts:
        return f"info@{domain}"
    if len(parts) == 1:
        return f"{parts[0]}@{domain}"

    first, last = parts[0], parts[-1]
    weights = {
        "first.last": 20,
        "first": 10 if len(parts) == 2 and len(first) > 3 else 5,
        "flast": 15,
        "last.first": 8,
        "firstl": 10,
        "first-last": 3,
        "first_last": 5,
        "firstlast": 7,
        "lastf": 4,
        "last": 5 if len(last) > 4 else 2,
    }
    if len(parts) > 2:
        weights["first.m.last"] = 3
        weights["firstmlast"] = 2

    fmt = rng.choices(list(weights), weights=list(weights.values()))[0]
    return format_email(fmt, name, domain) or f"{first}.{last}@{domain}"


def find_emails(html: str, domain: str) -> list[str]:
    """All distinct addresses at the company domain found in raw page HTML."""
    domain = clean_domain(domain)
    if domain == FALLBACK_DOMAIN or not html:
        return []
    pattern = re.compile(r"[a-zA-Z0-9._%+-]+@" + re.escape(domain) + r"\b", re.IGNORECASE)
    return list(dict.fromkeys(m.lower() for m in pattern.findall(html)))


def infer_format(email: str, name: str) -> str | None:
    """Which named format produced this address for this person, if any."""
    local = email.split("@")[0].lower()
    domain = email.split("@")[-1]
    for fmt in FORMATS:
        candidate = format_email(fmt, name, domain)
        if candidate and candidate.split("@")[0] == local:
            return fmt
    return None
