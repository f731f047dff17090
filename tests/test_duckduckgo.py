import asyncio

import pytest

from prospect_discovery.scrape.http_scraper import FetchError
from prospect_discovery.search import duckduckgo_client as ddg


@pytest.fixture(autouse=True)
def _no_wait(monkeypatch):
    monkeypatch.setattr(ddg, "_DDG_MIN_INTERVAL", 0)
    ddg.reset_ddg_state()
    monkeypatch.setattr(ddg._throttle, "interval", 0)


def test_normalise_results_skips_rows_without_link():
    rows = ddg.normalise_results([
        {"href": "https://acme.com", "title": "Acme", "body": "Widgets"},
        {"title": "No link"},
        {"href": "https://globex.com", "title": "Globex"},
    ])
    assert [r["link"] for r in rows] == ["https://acme.com", "https://globex.com"]
    assert [r["position"] for r in rows] == [1, 2]
    assert rows[0]["snippet"] == "Widgets"
    assert rows[1]["snippet"] == ""


def test_rate_limit_is_retried(monkeypatch):
    calls = []

    def flaky(query, num_results):
        calls.append(query)
        if len(calls) == 1:
            raise RuntimeError("202 Ratelimit: 429 Too Many Requests")
        return [{"href": "https://acme.com", "title": "Acme", "body": ""}]

    monkeypatch.setattr(ddg, "_ddg_search_sync", flaky)

    rows = asyncio.run(ddg.search_ddg("acme widgets"))
    assert len(calls) == 2
    assert rows[0]["link"] == "https://acme.com"


def test_other_errors_raise_fetch_error(monkeypatch):
    calls = []

    def broken(query, num_results):
        calls.append(query)
        raise RuntimeError("connection reset")

    monkeypatch.setattr(ddg, "_ddg_search_sync", broken)

    with pytest.raises(FetchError):
        asyncio.run(ddg.search_ddg("acme widgets"))
    assert len(calls) == 1


def test_persistent_rate_limit_gives_up(monkeypatch):
    calls = []

    def limited(query, num_results):
        calls.append(query)
        raise RuntimeError("429")

    monkeypatch.setattr(ddg, "_ddg_search_sync", limited)

    with pytest.raises(FetchError):
        asyncio.run(ddg.search_ddg("acme widgets", max_retries=2))
    assert len(calls) == 3
