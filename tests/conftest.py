import random

import pytest

from prospect_discovery.analysis.llm_client import reset_provider_state
from prospect_discovery.config import Config, load_lexicons
from prospect_discovery.search.duckduckgo_client import reset_ddg_state


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("LEXICONS_PATH", raising=False)
    monkeypatch.delenv("CURATED_COMPANIES", raising=False)
    monkeypatch.delenv("LLM_COMPANY_SUGGESTIONS", raising=False)
    reset_provider_state()
    reset_ddg_state()
    yield
    reset_ddg_state()


@pytest.fixture
def lexicons():
    return load_lexicons()


@pytest.fixture
def config(tmp_path):
    return Config(
        engines=["bing"],
        max_retries=3,
        backoff_base=0.001,
        backoff_max=0.002,
        request_deadline=10,
        query_llm_timeout=1,
        curated_companies=False,
        cache_db_path=str(tmp_path / "cache.db"),
    )


@pytest.fixture
def llm_config(config):
    return config.model_copy(update={"anthropic_api_key": "test-key"})


@pytest.fixture
def rng():
    return random.Random(1234)
