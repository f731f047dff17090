"""Seniority weighting and final contact ranking."""

from __future__ import annotations

import re

from prospect_discovery.models import ContactCandidate

DEFAULT_WEIGHT = 10


def seniority_weight(title: str, weights: dict[str, int]) -> int:
    """Exact (case-insensitive) title match first, else the best partial match."""
    title = (title or "").strip().lower()
    if not title:
        return DEFAULT_WEIGHT

    lowered = {k.lower(): v for k, v in weights.items()}
    if title in lowered:
        return lowered[title]

    best = DEFAULT_WEIGHT
    for key, weight in lowered.items():
        if re.search(r"\b" + re.escape(key) + r"\b", title):
            best = max(best, weight)
    return best


def rank_contacts(contacts: list[ContactCandidate], limit: int = 3) -> list[ContactCandidate]:
    """Verified before synthetic, then by seniority (stable for equal keys)."""
    ranked = sorted(contacts, key=lambda c: (not c.is_verified, -c.seniority_weight))
    return ranked[:limit]
