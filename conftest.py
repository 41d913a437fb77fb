"""Shared fixtures for the fastdict test suite."""
import pytest
from fastapi.testclient import TestClient

import cache
import limits
import lookup


class FakeLLM:
    """Stands in for the completion stream: yields `chunks`, then raises `error` if set."""

    def __init__(self):
        self.chunks = [
            "字典",
            "\n\n",
            "A dictionary is a reference book ",
            "that lists words in alphabetical order (字母顺序).",
        ]
        self.error = None
        self.calls = []

    async def stream(self, messages, model=None, client=None):
        self.calls.append(messages)
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    """Point the memo cache at a temp file and start every test empty."""
    monkeypatch.setattr(cache, "CACHE_FILE", tmp_path / "lookup_cache.json")
    cache.clear_cache()
    limits.reset_rate_limits()
    yield
    cache.clear_cache()
    limits.reset_rate_limits()


@pytest.fixture()
def fake_llm(monkeypatch):
    fake = FakeLLM()
    monkeypatch.setattr(lookup, "openai_stream", fake.stream)
    return fake


@pytest.fixture()
def client(fake_llm):
    from backend import app
    with TestClient(app) as test_client:
        yield test_client
