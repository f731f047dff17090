"""Async discovery pipeline: product description in, ranked companies and contacts out."""

from __future__ import annotations

import asyncio
import logging
import random

from prospect_discovery.analysis.dedupe import deduplicate_companies
from prospect_discovery.analysis.industries import identify_target_industries
from prospect_discovery.analysis.keywords import build_profile
from prospect_discovery.analysis.scoring import apply_heuristics, refine_with_llm
from prospect_discovery.analysis.suggestions import suggest_companies
from prospect_discovery.cache.results import ResultSetCache
from prospect_discovery.cache.store import SearchCache
from prospect_discovery.config import Config, Lexicons, load_lexicons
from prospect_discovery.contacts.resolver import ContactResolver
from prospect_discovery.curated import curated_companies
from prospect_discovery.models import (
    CompanyCandidate,
    ContactCandidate,
    ContactResult,
    DiscoveryResult,
    ProductProfile,
    RawResult,
    ResultPage,
    SearchQuery,
)
from prospect_discovery.scrape.http_scraper import FetchClient, FetchError
from prospect_discovery.search.duckduckgo_client import reset_ddg_state, search_ddg
from prospect_discovery.search.engines import (
    DIRECTORIES,
    ENGINES,
    directory_url,
    parse_directory_results,
    parse_engine_results,
    results_from_organic,
    search_url,
)
from prospect_discovery.search.filters import filter_results
from prospect_discovery.search.strategy import plan_queries
from prospect_discovery.synthetic import SyntheticGenerator

logger = logging.getLogger(__name__)

# Below this many seconds of budget, optional phases are skipped
MIN_PHASE_SECONDS = 1.0


def _by_score(companies: list[CompanyCandidate]) -> list[CompanyCandidate]:
    return sorted(companies, key=lambda c: c.relevance_score, reverse=True)


class DiscoveryPipeline:
    """Orchestrates planning, multi-engine search, filtering, scoring and fallbacks.

    One instance can serve many concurrent requests: per-request state lives
    in local variables, and finished result sets go to the lock-guarded
    pagination cache.
    """

    def __init__(
        self,
        config: Config,
        lexicons: Lexicons | None = None,
        fetch: FetchClient | None = None,
        search_cache: SearchCache | None = None,
        results: ResultSetCache | None = None,
        rng: random.Random | None = None,
        use_search_cache: bool = True,
    ):
        self.config = config
        self.lexicons = lexicons or load_lexicons(config.lexicons_path or None)
        self.fetch = fetch or FetchClient(config)
        if search_cache is None and use_search_cache:
            search_cache = SearchCache(config.cache_db_path, config.search_cache_ttl_days)
        self.search_cache = search_cache
        self.results = results or ResultSetCache(
            config.result_set_ttl_seconds, config.max_result_sets,
        )
        self.rng = rng or random.Random()
        self.synthetic = SyntheticGenerator(self.lexicons, self.rng)
        self.resolver = ContactResolver(
            config, self.lexicons, self.fetch, self.search_any, rng=self.rng,
        )
        self.workers = asyncio.Semaphore(config.fetch_workers)

    # ------------------------------------------------------------------
    # Search primitives
    # ------------------------------------------------------------------

    async def run_search(self, engine: str, query: SearchQuery) -> list[RawResult]:
        """One (engine, query) pair. Raises FetchError when the engine is unreachable."""
        if self.search_cache is not None:
            cached = self.search_cache.get(engine, query.text)
            if cached:
                return results_from_organic(engine, cached, query, self.config.max_search_results)

        if engine == "ddgs":
            organic = await search_ddg(query.text, num_results=self.config.max_search_results)
            results = results_from_organic(engine, organic, query, self.config.max_search_results)
        elif engine in ENGINES:
            html = await self.fetch.get(search_url(engine, query.text), key=engine)
            results = parse_engine_results(engine, html, query, self.config.max_search_results)
        else:
            raise FetchError(f"unknown engine: {engine}")

        if self.search_cache is not None and results:
            self.search_cache.set(engine, query.text, [
                {"link": r.url, "title": r.title, "snippet": r.snippet, "position": r.rank + 1}
                for r in results
            ])
        return results

    async def search_any(self, query: SearchQuery) -> list[RawResult]:
        """Try engines in configured order; first non-empty result list wins."""
        for engine in self.config.engines:
            try:
                results = await self.run_search(engine, query)
            except FetchError as e:
                logger.warning("%s failed for '%s': %s", engine, query.text[:60], e)
                continue
            if results:
                return results
        return []

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def plan_jobs(
        self, queries: list[SearchQuery], industries: list[str],
    ) -> list[tuple[str, SearchQuery]]:
        """(engine, query) pairs: a few queries per top industry, times every engine."""
        picked: list[SearchQuery] = []
        used: set[str] = set()

        for industry in industries[: self.config.industries_per_run]:
            own = [q for q in queries if q.industry == industry and q.text not in used]
            rest = [q for q in queries if q.industry != industry and q.text not in used]
            for q in (own + rest)[: self.config.queries_per_industry]:
                used.add(q.text)
                text = q.text
                if industry.lower() not in text.lower():
                    text = f"{industry} {text}"
                picked.append(SearchQuery(text=text, industry=industry, intent=q.intent))

        if not picked:
            picked = list(queries)

        return [(engine, q) for q in picked for engine in self.config.engines]

    async def _collect(
        self,
        jobs: list[tuple[str, SearchQuery]],
        profile: ProductProfile,
        industries: list[str],
        timeout: float,
    ) -> list[CompanyCandidate]:
        """Fan out search jobs; stop at the candidate target or the deadline."""
        fallback_industry = industries[0] if industries else "General"

        async def run(engine: str, query: SearchQuery) -> list[CompanyCandidate]:
            async with self.workers:
                try:
                    results = await self.run_search(engine, query)
                except FetchError as e:
                    logger.warning("%s failed for '%s': %s", engine, query.text[:60], e)
                    return []
            return filter_results(results, fallback_industry, profile.keywords, self.lexicons)

        tasks = [asyncio.create_task(run(engine, query)) for engine, query in jobs]
        candidates: list[CompanyCandidate] = []
        try:
            for next_done in asyncio.as_completed(tasks, timeout=timeout):
                candidates.extend(await next_done)
                if len(candidates) >= self.config.candidate_target:
                    logger.info("Reached %d candidates, cancelling remaining searches", len(candidates))
                    break
        except asyncio.TimeoutError:
            logger.warning("Search deadline reached with %d candidates", len(candidates))
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        return candidates

    async def _directory_fallback(
        self, industries: list[str], timeout: float,
    ) -> list[CompanyCandidate]:
        """Scrape business directories for the top industries."""

        async def run(directory: str, industry: str) -> list[CompanyCandidate]:
            async with self.workers:
                try:
                    html = await self.fetch.get(directory_url(directory, industry), key=directory)
                except FetchError as e:
                    logger.warning("Directory %s failed for %s: %s", directory, industry, e)
                    return []
            return parse_directory_results(directory, html, industry)

        pairs = [
            (directory, industry)
            for industry in industries[: self.config.industries_per_run]
            for directory in DIRECTORIES
        ]
        try:
            batches = await asyncio.wait_for(
                asyncio.gather(*(run(d, i) for d, i in pairs)), timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Directory fallback hit the deadline")
            return []
        return [c for batch in batches for c in batch]

    async def discover(
        self,
        product_name: str,
        description: str,
        industry: str | None = None,
        context: str | None = None,
        deadline: float | None = None,
    ) -> DiscoveryResult:
        """Run a full discovery and return the first page plus a pagination handle.

        Raises pydantic.ValidationError for a blank name or description before
        any network work. After that the result is always a non-empty ranked
        list. Candidates come from LLM suggestions, web search and directories;
        when fewer than `min_real_companies` are backed by a fetched page, the
        curated table and then synthetic companies top the list up. Each tier
        keeps its own provenance kind.
        """
        profile = build_profile(product_name, description, self.lexicons, industry=industry)
        config = self.config

        loop = asyncio.get_running_loop()
        stop_at = loop.time() + (config.request_deadline if deadline is None else deadline)

        def remaining() -> float:
            return max(0.0, stop_at - loop.time())

        def llm_budget() -> float:
            """Time for one optional LLM call; zero once the deadline is close."""
            if remaining() <= MIN_PHASE_SECONDS:
                return 0.0
            return min(config.query_llm_timeout, remaining())

        logger.info(
            "Discovering prospects for %s (%s, keywords: %s)",
            profile.product_name, profile.classification, ", ".join(profile.keywords),
        )

        industries = await identify_target_industries(
            profile, config, self.lexicons, timeout=llm_budget(),
        )

        suggested: list[CompanyCandidate] = []
        if llm_budget() > 0:
            suggested = await suggest_companies(
                profile, industries, config, self.lexicons, timeout=llm_budget(),
            )

        found: list[CompanyCandidate] = []
        if len(suggested) >= config.llm_companies_skip_search:
            logger.info("LLM suggested %d companies, skipping web search", len(suggested))
        else:
            queries = await plan_queries(
                profile, industries, config, self.lexicons, timeout=llm_budget(),
            )
            if remaining() > MIN_PHASE_SECONDS:
                jobs = self.plan_jobs(queries, industries)
                found = await self._collect(jobs, profile, industries, remaining())

            if len(found) < config.directory_threshold and remaining() > MIN_PHASE_SECONDS:
                logger.info("Only %d candidates from search, trying directories", len(found))
                found.extend(await self._directory_fallback(industries, remaining()))

        companies = deduplicate_companies(suggested + found, cap=config.aggregated_from_cap)
        companies = apply_heuristics(companies, profile.keywords, self.lexicons)

        real = sum(1 for c in companies if c.is_web_sourced)
        if real < config.min_real_companies and config.curated_companies:
            curated = curated_companies(
                industries,
                self.lexicons,
                existing_names={c.name for c in companies},
                limit=config.curated_company_limit,
            )
            companies.extend(apply_heuristics(curated, profile.keywords, self.lexicons))

        companies = _by_score(companies)
        if companies and remaining() > MIN_PHASE_SECONDS:
            companies = await refine_with_llm(
                companies, profile, industries, config, timeout=remaining(),
            )

        if real < config.min_real_companies:
            logger.info(
                "Only %d real companies found, adding %d synthetic ones",
                real, config.synthetic_company_count,
            )
            companies.extend(self.synthetic.generate_companies(
                config.synthetic_company_count,
                profile,
                industries,
                existing_names={c.name for c in companies},
            ))

        companies = _by_score(companies)
        search_id = self.results.put(companies, industries, context=context)
        first = self.results.page(search_id, 0, config.page_size)

        return DiscoveryResult(
            search_id=search_id,
            companies=first.companies,
            target_industries=industries,
            has_more=first.has_more,
            total_count=first.total_count,
            product=profile,
        )

    def load_more(self, search_id: str, page: int, page_size: int | None = None) -> ResultPage:
        """Serve another page of a finished discovery run."""
        return self.results.page(search_id, page, page_size or self.config.page_size)

    # ------------------------------------------------------------------
    # Contacts
    # ------------------------------------------------------------------

    async def find_contacts(
        self,
        company: CompanyCandidate,
        suggested_roles: list[str] | None = None,
        product: ProductProfile | None = None,
        deadline: float | None = None,
    ) -> ContactResult:
        """Up to three decision-makers for a company, verified ones first."""
        hint = product.description if product else ""
        found: list[ContactCandidate] = []
        try:
            return await asyncio.wait_for(
                self.resolver.resolve(company, suggested_roles, product_hint=hint, found=found),
                timeout=self.config.request_deadline if deadline is None else deadline,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Contact resolution for %s hit the deadline with %d verified contacts",
                company.name, len(found),
            )
        return self.resolver.complete(company, list(found), suggested_roles)

    async def close(self) -> None:
        await self.fetch.close()
        if self.search_cache is not None:
            self.search_cache.close()
        reset_ddg_state()
