"""Search engine and business directory page layouts, and their HTML parsers."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import parse_qs, quote, quote_plus, unquote, urlparse

from bs4 import BeautifulSoup

from prospect_discovery.models import (
    CompanyCandidate,
    DirectorySource,
    RawResult,
    SearchQuery,
)

logger = logging.getLogger(__name__)

MAX_RESULTS_PER_PAGE = 20
MAX_DIRECTORY_ROWS = 15
DIRECTORY_BASE_SCORE = 85


@dataclass(frozen=True)
class EngineSpec:
    name: str
    url_template: str
    result_selector: str
    title_selector: str
    snippet_selector: str
    link_selector: str


@dataclass(frozen=True)
class DirectorySpec:
    name: str
    url_template: str
    row_selector: str
    name_selector: str
    description_selector: str


ENGINES: dict[str, EngineSpec] = {
    "google": EngineSpec(
        name="google",
        url_template="https://www.google.com/search?q={q}&num=20",
        result_selector=".g",
        title_selector="h3",
        snippet_selector=".VwiC3b",
        link_selector="a",
    ),
    "bing": EngineSpec(
        name="bing",
        url_template="https://www.bing.com/search?q={q}&count=20",
        result_selector=".b_algo",
        title_selector="h2",
        snippet_selector=".b_caption p",
        link_selector="a",
    ),
    "duckduckgo": EngineSpec(
        name="duckduckgo",
        url_template="https://duckduckgo.com/html/?q={q}",
        result_selector=".result",
        title_selector=".result__title",
        snippet_selector=".result__snippet",
        link_selector=".result__url",
    ),
}

DIRECTORIES: dict[str, DirectorySpec] = {
    "corporateinformation": DirectorySpec(
        name="corporateinformation",
        url_template="https://www.corporateinformation.com/Top-{industry}-Companies.aspx",
        row_selector=".databasetable tr",
        name_selector="td:nth-child(1) a",
        description_selector="td:nth-child(2)",
    ),
    "industryweek": DirectorySpec(
        name="industryweek",
        url_template=(
            "https://www.industryweek.com/companies-executives/article/21130380/{industry}-companies"
        ),
        row_selector=".bullet-list-content li",
        name_selector="a",
        description_selector="p",
    ),
}


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

def search_url(engine: str, query: str) -> str:
    return ENGINES[engine].url_template.format(q=quote_plus(query))


def directory_url(directory: str, industry: str) -> str:
    return DIRECTORIES[directory].url_template.format(industry=quote(industry, safe=""))


def decode_link(href: str) -> str:
    """Resolve engine redirect links (Google /url?q=, DuckDuckGo uddg=) to the target URL."""
    href = (href or "").strip()
    if not href:
        return ""
    if href.startswith("//"):
        href = "https:" + href

    parsed = urlparse(href)
    params = parse_qs(parsed.query)
    if parsed.path == "/url" and "q" in params:
        return unquote(params["q"][0])
    if "uddg" in params:
        return unquote(params["uddg"][0])

    if not parsed.scheme and "." in href.split("/")[0]:
        # DuckDuckGo .result__url shows bare "example.com/path"
        return "https://" + href
    return href


def extract_domain(url: str) -> str:
    """Extract the host from a URL, lowercased and without a leading www."""
    try:
        host = urlparse(url).netloc.lower()
    except ValueError:
        return ""
    host = host.split("@")[-1].split(":")[0]
    return host[4:] if host.startswith("www.") else host


def _text(node) -> str:
    return " ".join(node.get_text(" ", strip=True).split()) if node else ""


# ---------------------------------------------------------------------------
# Engine result pages
# ---------------------------------------------------------------------------

def parse_engine_results(
    engine: str,
    html: str,
    query: SearchQuery,
    max_results: int = MAX_RESULTS_PER_PAGE,
) -> list[RawResult]:
    """Parse one engine result page into RawResults.

    Soft-block or captcha pages simply have no matching elements and yield
    an empty list. Malformed elements are skipped.
    """
    layout = ENGINES.get(engine)
    if layout is None or not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    results: list[RawResult] = []

    for element in soup.select(layout.result_selector):
        if len(results) >= max_results:
            break
        try:
            title = _text(element.select_one(layout.title_selector))
            if not title:
                continue
            link = element.select_one(layout.link_selector)
            href = (link.get("href") or _text(link)) if link else ""
            if not href:
                anchor = element.find("a", href=True)
                href = anchor["href"] if anchor else ""
            url = decode_link(href)
            if not url.startswith(("http://", "https://")):
                continue
            results.append(RawResult(
                title=title,
                snippet=_text(element.select_one(layout.snippet_selector)),
                url=url,
                domain=extract_domain(url),
                engine=engine,
                query=query,
                rank=len(results),
            ))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.debug("Skipping malformed %s result: %s", engine, e)

    logger.debug("%s returned %d results for '%s'", engine, len(results), query.text[:60])
    return results


def results_from_organic(
    engine: str,
    organic: list[dict],
    query: SearchQuery,
    max_results: int = MAX_RESULTS_PER_PAGE,
) -> list[RawResult]:
    """Convert normalised {link, title, snippet} dicts (API-backed engines) into RawResults."""
    results: list[RawResult] = []
    for item in organic[:max_results]:
        url = item.get("link", "")
        title = item.get("title", "")
        if not url or not title:
            continue
        results.append(RawResult(
            title=title,
            snippet=item.get("snippet", ""),
            url=url,
            domain=extract_domain(url),
            engine=engine,
            query=query,
            rank=len(results),
        ))
    return results


# ---------------------------------------------------------------------------
# Business directories
# ---------------------------------------------------------------------------

def _website_from_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower()) + ".com"


def parse_directory_results(
    directory: str,
    html: str,
    industry: str,
    max_rows: int = MAX_DIRECTORY_ROWS,
) -> list[CompanyCandidate]:
    """Read company rows from a directory page.

    Rows score 85 minus half a point per position. When a row has no outbound
    link the website is guessed from the name.
    """
    layout = DIRECTORIES.get(directory)
    if layout is None or not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    companies: list[CompanyCandidate] = []

    for row in soup.select(layout.row_selector):
        if len(companies) >= max_rows:
            break
        try:
            link = row.select_one(layout.name_selector)
            name = _text(link)
            if not name or len(name) < 2:
                continue
            href = decode_link(link.get("href", "")) if link else ""
            domain = extract_domain(href) if href.startswith("http") else ""
            if not domain or domain.endswith(layout.name + ".com"):
                domain = _website_from_name(name)

            description = _text(row.select_one(layout.description_selector))
            if len(description) < 30:
                description = f"{name} is a leading company in the {industry} industry."

            score = DIRECTORY_BASE_SCORE - len(companies) * 0.5
            companies.append(CompanyCandidate(
                name=name,
                industry=industry,
                description=description,
                website=domain,
                relevance_score=score,
                raw_score=score,
                provenance=DirectorySource(directory=directory),
            ))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.debug("Skipping malformed %s row: %s", directory, e)

    logger.debug("%s directory yielded %d companies for %s", directory, len(companies), industry)
    return companies
