"""Tests for app startup/shutdown and asset lookup."""
import json
import sysconfig
from pathlib import Path

from fastapi.testclient import TestClient

import backend
import cache
import llm


def test_shutdown_saves_dirty_cache(fake_llm):
    with TestClient(backend.app) as client:
        assert client.get("/api/lookup", params={"query": "dictionary"}).status_code == 200
        assert cache.is_cache_dirty() is True
        assert not cache.CACHE_FILE.exists()

    data = json.loads(cache.CACHE_FILE.read_text())
    assert list(data.values()) == ["".join(fake_llm.chunks)]
    assert cache.is_cache_dirty() is False


def test_startup_loads_snapshot(fake_llm):
    key = cache.cache_key("dictionary", llm.OPENAI_MODEL)
    cache.CACHE_FILE.write_text(json.dumps({key: "字典\n\nFrom disk."}, ensure_ascii=False))

    with TestClient(backend.app) as client:
        d = client.get("/api/lookup", params={"query": "dictionary"}).json()
    assert d["cached"] is True
    assert d["definition"] == "From disk."
    assert fake_llm.calls == []


def test_static_dir_from_source_tree(monkeypatch):
    monkeypatch.delenv("FASTDICT_STATIC_DIR", raising=False)
    assert backend.find_static_dir() == Path(backend.__file__).parent / "static"


def test_static_dir_override(monkeypatch, tmp_path):
    monkeypatch.setenv("FASTDICT_STATIC_DIR", str(tmp_path))
    assert backend.find_static_dir() == tmp_path


def test_static_dir_after_install(monkeypatch, tmp_path):
    monkeypatch.delenv("FASTDICT_STATIC_DIR", raising=False)
    monkeypatch.setattr(backend, "__file__", str(tmp_path / "backend.py"))
    expected = Path(sysconfig.get_path("data")) / "share" / "fastdict" / "static"
    assert backend.find_static_dir() == expected
