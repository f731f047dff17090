"""CLI entry point for the prospect discovery engine."""

from __future__ import annotations

import asyncio
import io
import json
import logging
import os
import random
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from prospect_discovery.analysis.llm_client import get_active_provider
from prospect_discovery.config import Config, load_config
from prospect_discovery.models import (
    CompanyCandidate,
    ContactResult,
    DiscoveryResult,
    ResultPage,
)
from prospect_discovery.pipeline import DiscoveryPipeline

# Fix Windows console encoding for Unicode output
if sys.platform == "win32":
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding="utf-8", errors="replace")
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")

console = Console(force_terminal=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=False)],
    )


def _source_label(company: CompanyCandidate) -> str:
    kind = company.provenance.kind
    if kind == "synthetic":
        return "[yellow]synthetic[/yellow]"
    if kind == "directory":
        return f"[cyan]{company.provenance.directory}[/cyan]"
    if kind == "llm":
        return "[magenta]LLM suggestion[/magenta]"
    if kind == "curated":
        return "[blue]curated[/blue]"
    return f"[green]scraped x{company.aggregated_from}[/green]"


def _companies_table(title: str, companies: list[CompanyCandidate], offset: int = 0) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Company", style="bold")
    table.add_column("Industry")
    table.add_column("Website")
    table.add_column("Score", justify="right")
    table.add_column("Intent", justify="center")
    table.add_column("Source")
    for i, c in enumerate(companies, start=offset + 1):
        score = f"[bold green]{c.relevance_score}[/bold green]" if c.priority_prospect else str(c.relevance_score)
        table.add_row(
            str(i),
            c.name,
            c.industry,
            c.website,
            score,
            "yes" if c.has_buyer_intent else "",
            _source_label(c),
        )
    return table


def _contacts_table(result: ContactResult) -> Table:
    table = Table(title=f"Contacts at {result.company}")
    table.add_column("Name", style="bold")
    table.add_column("Title")
    table.add_column("Email")
    table.add_column("Profile")
    table.add_column("Status")
    for c in result.contacts:
        status = "[green]verified[/green]" if c.is_verified else "[yellow]synthetic[/yellow]"
        table.add_row(c.name, c.title, c.email, c.profile_url, status)
    return table


def _apply_overrides(config: Config, page_size: int | None, deadline: float | None) -> None:
    if page_size:
        config.page_size = page_size
    if deadline:
        config.request_deadline = deadline


@click.group()
def main() -> None:
    """Find companies likely to buy a product, and the people to contact there."""


@main.command()
@click.argument("product_name")
@click.argument("description")
@click.option("--industry", "-i", default=None, help="Industry hint for the product")
@click.option("--page-size", default=None, type=int, help="Companies per page (default: 10)")
@click.option("--pages", default=1, type=int, help="Number of pages to print")
@click.option("--contacts", "contacts_for", default=0, type=int,
              help="Resolve contacts for the top N companies")
@click.option("--json-out", default=None, type=click.Path(dir_okay=False),
              help="Write the full result payload to this JSON file")
@click.option("--deadline", default=None, type=float, help="Hard time budget in seconds (default: 90)")
@click.option("--no-cache", is_flag=True, help="Ignore cached search engine results")
@click.option("--seed", default=None, type=int, help="Seed synthetic data for repeatable output")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose debug logging")
def discover(
    product_name: str,
    description: str,
    industry: str | None,
    page_size: int | None,
    pages: int,
    contacts_for: int,
    json_out: str | None,
    deadline: float | None,
    no_cache: bool,
    seed: int | None,
    verbose: bool,
) -> None:
    """Discover prospect companies for PRODUCT_NAME described by DESCRIPTION.

    Example: prospect-discovery discover "TalentAI" "AI screening for recruiters" --pages 2
    """
    _setup_logging(verbose)
    config = load_config()
    _apply_overrides(config, page_size, deadline)

    console.print(f"\n[bold green]Prospect discovery for {product_name}[/bold green]\n")

    async def run() -> tuple[DiscoveryResult, list[ResultPage], list[ContactResult]]:
        pipeline = DiscoveryPipeline(
            config,
            rng=random.Random(seed) if seed is not None else None,
            use_search_cache=not no_cache,
        )
        try:
            result = await pipeline.discover(product_name, description, industry=industry)
            more = []
            for page in range(1, max(1, pages)):
                next_page = pipeline.load_more(result.search_id, page)
                if not next_page.companies:
                    break
                more.append(next_page)
            contacts = []
            for company in result.companies[: max(0, contacts_for)]:
                contacts.append(await pipeline.find_contacts(company, product=result.product))
            return result, more, contacts
        finally:
            await pipeline.close()

    try:
        result, more, contacts = asyncio.run(run())
    except ValidationError as e:
        console.print(f"[red]Invalid product input:[/red] {e}")
        sys.exit(2)

    profile = result.product
    console.print(
        f"Classified as [bold]{profile.classification}[/bold]; "
        f"keywords: {', '.join(profile.keywords) or '-'}"
    )
    console.print(f"Target industries: {', '.join(result.target_industries)}\n")
    if verbose and config.llm_configured:
        console.print(f"[dim]LLM provider: {get_active_provider()}[/dim]")

    size = config.page_size
    console.print(_companies_table(f"Page 1 of {-(-result.total_count // size)}", result.companies))
    for page in more:
        console.print(_companies_table(f"Page {page.page + 1}", page.companies, offset=page.page * size))

    synthetic = sum(1 for c in result.companies if c.is_synthetic)
    console.print(f"\n  Total companies: {result.total_count}")
    if synthetic:
        console.print(f"  [yellow]Synthetic on first page: {synthetic} (not verified data)[/yellow]")

    for contact_result in contacts:
        console.print()
        console.print(_contacts_table(contact_result))

    if json_out:
        payload = {
            "result": result.model_dump(mode="json"),
            "pages": [p.model_dump(mode="json") for p in more],
            "contacts": [c.model_dump(mode="json") for c in contacts],
        }
        Path(json_out).write_text(json.dumps(payload, indent=2), encoding="utf-8")
        console.print(f"\n[bold]JSON written to {json_out}[/bold]")
    console.print()


@main.command()
@click.argument("company_name")
@click.option("--domain", "-d", default="", help="Company website domain")
@click.option("--industry", "-i", default="", help="Company industry")
@click.option("--role", "roles", multiple=True, help="Suggested role to search for (repeatable)")
@click.option("--deadline", default=None, type=float, help="Hard time budget in seconds (default: 90)")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose debug logging")
def contacts(
    company_name: str,
    domain: str,
    industry: str,
    roles: tuple[str, ...],
    deadline: float | None,
    verbose: bool,
) -> None:
    """Find decision-maker contacts at COMPANY_NAME."""
    _setup_logging(verbose)
    config = load_config()
    _apply_overrides(config, None, deadline)

    company = CompanyCandidate(name=company_name, industry=industry, website=domain)

    async def run() -> ContactResult:
        pipeline = DiscoveryPipeline(config)
        try:
            return await pipeline.find_contacts(company, suggested_roles=list(roles) or None)
        finally:
            await pipeline.close()

    result = asyncio.run(run())
    console.print()
    console.print(_contacts_table(result))
    console.print(
        f"\n  Verified: {result.provenance.get('verified', 0)}  "
        f"Synthetic: {result.provenance.get('synthetic', 0)}\n"
    )


if __name__ == "__main__":
    main()
