"""Tests for cache-aware lookup streaming."""
import asyncio

import pytest

import lookup
from cache import cache_stats
from llm import LLMError
from lookup import Lookup, lookup_text, build_result


def _drain(lk: Lookup):
    async def _run():
        return [chunk async for chunk in lk.stream()]
    return asyncio.run(_run())


def test_chunks_arrive_in_order(fake_llm):
    lk = Lookup("dictionary")
    assert _drain(lk) == fake_llm.chunks
    assert lk.text == "".join(fake_llm.chunks)
    assert lk.cached is False
    assert lk.chunks == len(fake_llm.chunks)


def test_second_lookup_is_served_from_cache(fake_llm):
    first = asyncio.run(lookup_text("dictionary"))
    lk = Lookup("  dictionary ")
    chunks = _drain(lk)
    assert chunks == [first]
    assert lk.cached is True
    assert len(fake_llm.calls) == 1


def test_failed_stream_is_not_cached(fake_llm):
    fake_llm.chunks = ["字"]
    fake_llm.error = LLMError("upstream went away")
    with pytest.raises(LLMError):
        asyncio.run(lookup_text("dictionary"))
    assert cache_stats()["entries"] == 0

    fake_llm.error = None
    asyncio.run(lookup_text("dictionary"))
    assert len(fake_llm.calls) == 2


def test_empty_answer_is_not_cached(fake_llm):
    fake_llm.chunks = []
    assert asyncio.run(lookup_text("dictionary")) == ""
    assert cache_stats()["entries"] == 0


def test_prompt_follows_query_mode(fake_llm):
    asyncio.run(lookup_text("Where is the station?"))
    system, user = fake_llm.calls[0]
    assert "Output only the translation" in system["content"]
    assert user["content"] == "Look up: Where is the station?"


def test_traditional_script(fake_llm, monkeypatch):
    monkeypatch.setattr(lookup, "CHINESE_SCRIPT", "traditional")
    fake_llm.chunks = ["汉字"]
    assert asyncio.run(lookup_text("Chinese character")) == "漢字"


def test_build_result_for_word():
    text = "字典\n\nA dictionary is a reference book.\n"
    result = build_result("dictionary", text, cached=True)
    assert result["mode"] == "word"
    assert result["translation"] == "字典"
    assert result["definition"] == "A dictionary is a reference book."
    assert result["pinyin"] == "zì diǎn"
    assert result["cached"] is True
    assert result["text"] == text


def test_build_result_for_sentence():
    result = build_result("Where is the station?", "车站在哪里？")
    assert result["mode"] == "sentence"
    assert result["translation"] == "车站在哪里？"
    assert result["definition"] == ""
    assert result["pinyin"].startswith("chē zhàn")


def test_build_result_for_empty_text():
    result = build_result("dictionary", "")
    assert result["translation"] == ""
    assert result["definition"] == ""
    assert result["pinyin"] is None


def test_traditional_converts_phrases_split_across_chunks(fake_llm, monkeypatch):
    monkeypatch.setattr(lookup, "CHINESE_SCRIPT", "traditional")
    fake_llm.chunks = ["软", "件"]
    lk = Lookup("software")
    assert "".join(_drain(lk)) == "軟體"
    assert lk.text == "軟體"

    again = Lookup("software")
    assert _drain(again) == ["軟體"]
    assert again.cached is True


def test_traditional_streams_before_the_answer_ends(fake_llm, monkeypatch):
    monkeypatch.setattr(lookup, "CHINESE_SCRIPT", "traditional")
    fake_llm.chunks = ["这是我们的", "软件", "\n\n", "A program that runs on a computer."]
    chunks = _drain(Lookup("software"))
    assert len(chunks) > 1
    assert "".join(chunks) == "這是我們的軟體\n\nA program that runs on a computer."


def test_abandoned_stream_is_not_cached(fake_llm):
    async def _first_then_close():
        gen = Lookup("dictionary").stream()
        first = await gen.__anext__()
        await gen.aclose()
        return first

    assert asyncio.run(_first_then_close()) == fake_llm.chunks[0]
    assert cache_stats()["entries"] == 0
