"""In-memory pagination cache of scored result sets, keyed by search id."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import OrderedDict

from prospect_discovery.models import CompanyCandidate, ResultPage, ResultSet

logger = logging.getLogger(__name__)


class ResultSetCache:
    """Thread-safe map of search_id -> ResultSet with TTL and size-bound eviction.

    A new set stored under a caller `context` (session, user) supersedes the
    previous set for that context instead of merging with it.
    """

    def __init__(self, ttl_seconds: float = 1800, max_entries: int = 256, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, tuple[float, ResultSet]] = OrderedDict()
        self._by_context: dict[str, str] = {}

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired()
            return len(self._entries)

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [sid for sid, (stored, _) in self._entries.items() if now - stored > self.ttl_seconds]
        for sid in expired:
            self._remove(sid)

    def _remove(self, search_id: str) -> None:
        _, result_set = self._entries.pop(search_id, (0.0, None))
        if result_set is not None and result_set.context:
            if self._by_context.get(result_set.context) == search_id:
                del self._by_context[result_set.context]

    def put(
        self,
        companies: list[CompanyCandidate],
        target_industries: list[str] | None = None,
        context: str | None = None,
    ) -> str:
        """Store a finished, sorted result list and return its search id."""
        search_id = uuid.uuid4().hex
        result_set = ResultSet(
            search_id=search_id,
            context=context,
            companies=list(companies),
            target_industries=list(target_industries or []),
        )
        with self._lock:
            self._evict_expired()
            if context and context in self._by_context:
                self._remove(self._by_context[context])
            self._entries[search_id] = (self._clock(), result_set)
            if context:
                self._by_context[context] = search_id
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                self._remove(oldest)
        logger.debug("Cached result set %s (%d companies)", search_id, len(companies))
        return search_id

    def get(self, search_id: str) -> ResultSet | None:
        with self._lock:
            self._evict_expired()
            entry = self._entries.get(search_id)
            return entry[1] if entry else None

    def page(self, search_id: str, page: int, page_size: int) -> ResultPage:
        """Return the 0-based page slice [page*size, (page+1)*size) of a stored set."""
        if page < 0:
            raise ValueError("page must be >= 0")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")

        result_set = self.get(search_id)
        if result_set is None:
            return ResultPage(search_id=search_id, page=page, page_size=page_size)

        total = len(result_set.companies)
        start = page * page_size
        end = start + page_size
        return ResultPage(
            search_id=search_id,
            page=page,
            page_size=page_size,
            companies=result_set.companies[start:end],
            has_more=end < total,
            total_count=total,
        )
