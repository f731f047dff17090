"""Async HTTP fetch client with rotating browser identities, backoff and circuit breaking."""

from __future__ import annotations

import asyncio
import logging
import random
import time

import httpx

from prospect_discovery.config import Config

logger = logging.getLogger(__name__)

# Rotate through realistic user agents to avoid blocks
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:126.0) Gecko/20100101 Firefox/126.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.5 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36",
]

ACCEPT_LANGUAGES = ["en-US,en;q=0.9", "en-GB,en;q=0.8", "en-US,en;q=0.8,de;q=0.5"]
REFERERS = ["https://www.google.com/", "https://www.bing.com/", "https://duckduckgo.com/"]


class FetchError(Exception):
    """Raised when a URL could not be fetched after all retries."""


def get_identity() -> dict[str, str]:
    """Pick a random browser-like header set for one request."""
    return {
        "User-Agent": random.choice(USER_AGENTS),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": random.choice(ACCEPT_LANGUAGES),
        "Referer": random.choice(REFERERS),
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Upgrade-Insecure-Requests": "1",
    }


def backoff_delay(attempt: int, base: float, cap: float) -> float:
    """Capped exponential backoff with jitter in [delay/2, delay]."""
    delay = min(cap, base * (2 ** attempt))
    return random.uniform(delay / 2, delay)


class CircuitBreaker:
    """Opens after `threshold` consecutive failures; half-opens after `cooldown` seconds.

    Half-open admits a single trial request. Its success closes the breaker,
    its failure reopens it for another cooldown. A trial that never reports
    back (e.g. cancelled) is replaced by a new one after the cooldown.
    """

    def __init__(self, threshold: int = 5, cooldown: float = 60.0, clock=time.monotonic):
        self.threshold = threshold
        self.cooldown = cooldown
        self._clock = clock
        self.failures = 0
        self.opened_at: float | None = None
        self.half_open = False

    @property
    def is_open(self) -> bool:
        return self.opened_at is not None

    def allow_request(self) -> bool:
        if self.opened_at is None:
            return True
        if self._clock() - self.opened_at < self.cooldown:
            return False
        self.half_open = True
        self.opened_at = self._clock()
        return True

    def record_success(self) -> None:
        self.failures = 0
        self.opened_at = None
        self.half_open = False

    def record_failure(self) -> None:
        self.failures += 1
        if self.half_open or (self.failures >= self.threshold and self.opened_at is None):
            self.opened_at = self._clock()
            self.half_open = False


class FetchClient:
    """Shared HTTP client for search engines, directories and company sites.

    Every request is keyed (usually by engine name). Each key gets its own
    semaphore and circuit breaker so one blocked engine cannot starve the rest.
    """

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._client = httpx.AsyncClient(
            timeout=config.request_timeout,
            follow_redirects=True,
            max_redirects=5,
            verify=False,
            transport=transport,
        )
        self._breakers: dict[str, CircuitBreaker] = {}
        self._semaphores: dict[str, asyncio.Semaphore] = {}

    def breaker(self, key: str) -> CircuitBreaker:
        if key not in self._breakers:
            self._breakers[key] = CircuitBreaker(
                self.config.breaker_threshold, self.config.breaker_cooldown,
            )
        return self._breakers[key]

    def _semaphore(self, key: str) -> asyncio.Semaphore:
        if key not in self._semaphores:
            self._semaphores[key] = asyncio.Semaphore(self.config.engine_concurrency)
        return self._semaphores[key]

    async def get(self, url: str, key: str = "default") -> str:
        """Fetch a URL and return its body.

        Network errors and 5xx responses are retried with backoff up to
        `max_retries` attempts in total. Anything below 500 (including
        soft-block pages) is returned as content for the parser to judge.
        """
        breaker = self.breaker(key)
        if not breaker.allow_request():
            raise FetchError(f"{key}: circuit open")

        last_error = "no attempts made"
        attempts = max(1, self.config.max_retries)

        async with self._semaphore(key):
            for attempt in range(attempts):
                try:
                    response = await self._client.get(url, headers=get_identity())
                    if response.status_code < 500:
                        breaker.record_success()
                        return response.text
                    last_error = f"HTTP {response.status_code}"
                except httpx.TooManyRedirects:
                    breaker.record_failure()
                    raise FetchError(f"{key}: too many redirects for {url}")
                except httpx.HTTPError as e:
                    last_error = f"{type(e).__name__}: {str(e)[:100]}"

                breaker.record_failure()
                if breaker.is_open or attempt == attempts - 1:
                    break
                delay = backoff_delay(attempt, self.config.backoff_base, self.config.backoff_max)
                logger.debug(
                    "%s fetch failed (%s), retry %d in %.2fs", key, last_error, attempt + 1, delay,
                )
                await asyncio.sleep(delay)

        raise FetchError(f"{key}: {last_error}")

    async def fetch_url(self, url: str, key: str = "site") -> tuple[str | None, str | None]:
        """Fetch a URL and return (content, error_message).

        Returns (content, None) on success or (None, error_string) on failure.
        """
        try:
            return await self.get(url, key), None
        except FetchError as e:
            return None, str(e)

    async def close(self) -> None:
        await self._client.aclose()
