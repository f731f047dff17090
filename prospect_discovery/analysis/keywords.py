"""Keyword extraction and physical-vs-digital product classification.

Both functions are deterministic: identical input always yields identical
output, which downstream naming and role lexicons rely on.
"""

from __future__ import annotations

import logging
import math
import re

from prospect_discovery.config import Lexicons
from prospect_discovery.models import ProductProfile, ProductType

logger = logging.getLogger(__name__)

# Literal measurements are strong physical-product signals (+3 each family)
DIMENSION_PATTERNS = [
    re.compile(r"\d+\s*(?:x|\*)\s*\d+"),
    re.compile(r"\d+\s*(?:mm|cm|m|inch|inches|ft|feet|meter|meters)\b", re.IGNORECASE),
    re.compile(r"\d+\s*(?:kg|lb|lbs|g|gram|grams|oz|ounce|ounces|pound|pounds)\b", re.IGNORECASE),
    re.compile(r"\d+\s*(?:gal|gallon|gallons|l|liter|liters|ml|milliliter|milliliters)\b", re.IGNORECASE),
]

DEFINITIVE_BONUS = 1.5
DIMENSION_BONUS = 3


def _normalize(text: str) -> list[str]:
    cleaned = re.sub(r"[^\w\s]", " ", text.lower())
    return cleaned.split()


def extract_keywords(text: str, count: int, lexicons: Lexicons) -> list[str]:
    """Return up to `count` weighted keywords: ~60% unigrams, ~40% bigrams."""
    if count <= 0:
        return []

    stopwords = set(lexicons.stopwords)
    boost = set(lexicons.tech_boost_words)
    tokens = _normalize(text)
    first_quarter = set(tokens[: len(tokens) // 4])

    # dicts keep insertion order, so sorted() ties stay first-seen
    word_scores: dict[str, int] = {}
    for word in tokens:
        if len(word) <= 3 or word in stopwords:
            continue
        score = word_scores.get(word, 0) + 1
        if word in boost:
            score += 2
        if word in first_quarter:
            score += 1
        word_scores[word] = score

    bigram_counts: dict[str, int] = {}
    for left, right in zip(tokens, tokens[1:]):
        if (
            len(left) > 3 and len(right) > 3
            and left not in stopwords and right not in stopwords
        ):
            bigram = f"{left} {right}"
            bigram_counts[bigram] = bigram_counts.get(bigram, 0) + 1

    ranked_words = [w for w, _ in sorted(word_scores.items(), key=lambda kv: -kv[1])]
    ranked_bigrams = [b for b, _ in sorted(bigram_counts.items(), key=lambda kv: -kv[1])]

    singles = ranked_words[: math.floor(count * 0.6)]
    pairs = ranked_bigrams[: math.ceil(count * 0.4)]
    combined = singles + pairs

    # Top up with further unigrams when bigrams are scarce
    if len(combined) < count:
        extra = ranked_words[len(singles): len(singles) + (count - len(combined))]
        combined.extend(extra)

    return combined[:count]


def product_type_scores(
    product_name: str, description: str, lexicons: Lexicons,
) -> tuple[float, float]:
    """Return (physical_score, digital_score) for the combined text."""
    text = f"{product_name} {description}".lower()

    physical = 0.0
    definitive = set(lexicons.physical_definitive)
    for keyword in dict.fromkeys(lexicons.physical_keywords):
        if keyword in text:
            physical += 1
            if keyword in definitive:
                physical += DEFINITIVE_BONUS

    for pattern in DIMENSION_PATTERNS:
        if pattern.search(text):
            physical += DIMENSION_BONUS

    digital = 0.0
    definitive = set(lexicons.digital_definitive)
    for keyword in dict.fromkeys(lexicons.digital_keywords):
        if keyword in text:
            digital += 1
            if keyword in definitive:
                digital += DEFINITIVE_BONUS

    return physical, digital


def classify_product(
    product_name: str, description: str, lexicons: Lexicons,
) -> ProductType:
    """Label a product physical or digital. Ties resolve to digital."""
    physical, digital = product_type_scores(product_name, description, lexicons)
    logger.debug("Product type scores: physical=%.1f digital=%.1f", physical, digital)
    return "physical" if physical > digital else "digital"


def build_profile(
    product_name: str,
    description: str,
    lexicons: Lexicons,
    industry: str | None = None,
    keyword_count: int = 5,
) -> ProductProfile:
    """Validate the input and derive keywords and classification.

    Raises pydantic.ValidationError for blank name or description, before
    any discovery work is attempted.
    """
    # Validate first so blank input never reaches the extractors
    base = ProductProfile(
        product_name=product_name, description=description, industry=industry,
    )
    keywords = extract_keywords(base.description, keyword_count, lexicons)
    if not keywords:
        keywords = extract_keywords(base.product_name, keyword_count, lexicons)
    classification = classify_product(base.product_name, base.description, lexicons)
    return base.model_copy(update={
        "keywords": tuple(keywords),
        "classification": classification,
    })
