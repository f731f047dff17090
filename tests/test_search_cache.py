from prospect_discovery.cache.store import SearchCache


def test_roundtrip_and_empty_skip(tmp_path):
    cache = SearchCache(str(tmp_path / "search.db"), max_age_days=3)
    organic = [{"link": "https://acme.com/", "title": "Acme", "snippet": "", "position": 1}]

    cache.set("bing", "acme scheduling", organic)
    cache.set("bing", "blocked query", [])

    assert cache.get("bing", "acme scheduling") == organic
    assert cache.get("duckduckgo", "acme scheduling") is None
    assert cache.get("bing", "blocked query") is None

    cache.clear()
    assert cache.get("bing", "acme scheduling") is None
    cache.close()

