"""DuckDuckGo metasearch engine via the ddgs library (no API key, no HTML scraping)."""

from __future__ import annotations

import asyncio
import logging
import time

from ddgs import DDGS

from prospect_discovery.scrape.http_scraper import FetchError

logger = logging.getLogger(__name__)

_DDG_MIN_INTERVAL = 2.0  # seconds between requests
_DDG_REGION = "us-en"


class _Throttle:
    """One DDG request in flight at a time, spaced by a minimum interval.

    The lock is created lazily so it binds to whichever event loop first uses it.
    """

    def __init__(self, interval: float):
        self.interval = interval
        self.lock: asyncio.Lock | None = None
        self.last = 0.0

    async def __aenter__(self) -> "_Throttle":
        if self.lock is None:
            self.lock = asyncio.Lock()
        await self.lock.acquire()
        wait = self.interval - (time.monotonic() - self.last)
        if wait > 0:
            await asyncio.sleep(wait)
        return self

    async def __aexit__(self, *exc) -> None:
        self.last = time.monotonic()
        self.lock.release()


_throttle = _Throttle(_DDG_MIN_INTERVAL)


def reset_ddg_state() -> None:
    """Drop the lock and rate-limit clock (for a new event loop or tests)."""
    global _throttle
    _throttle = _Throttle(_DDG_MIN_INTERVAL)


def _is_rate_limited(error: Exception) -> bool:
    text = str(error)
    return "429" in text or "Too Many" in text or "Ratelimit" in type(error).__name__


def normalise_results(raw: list[dict]) -> list[dict]:
    """ddgs rows (href/title/body) to organic rows (link/title/snippet/position)."""
    rows = [item for item in raw if item.get("href")]
    return [
        {
            "link": item["href"],
            "title": item.get("title", ""),
            "snippet": item.get("body", ""),
            "position": position,
        }
        for position, item in enumerate(rows, start=1)
    ]


async def search_ddg(
    query: str,
    num_results: int = 20,
    max_retries: int = 2,
) -> list[dict]:
    """Search DuckDuckGo and return normalised organic results.

    Rate-limit responses are retried with a growing wait; any other failure
    raises FetchError so the caller can count the pair as empty.
    """
    for attempt in range(max_retries + 1):
        try:
            async with _throttle:
                raw = await asyncio.to_thread(_ddg_search_sync, query, num_results)
        except Exception as e:
            if not _is_rate_limited(e) or attempt == max_retries:
                raise FetchError(f"ddgs: {str(e)[:100]}") from e
            wait = _DDG_MIN_INTERVAL * (attempt + 2)
            logger.debug("DDG rate limit for '%s', retrying in %.1fs", query[:40], wait)
            await asyncio.sleep(wait)
            continue
        return normalise_results(raw)

    raise FetchError("ddgs: max retries exceeded")


def _ddg_search_sync(query: str, num_results: int) -> list[dict]:
    with DDGS() as ddgs:
        return list(ddgs.text(query, region=_DDG_REGION, max_results=num_results))
