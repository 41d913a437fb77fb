"""Cache-aware lookup streaming shared by the page and the API."""
import os
import time
from typing import AsyncIterator

from log import get_logger

logger = get_logger("fastdict.lookup")

from cache import cache_key, cache_get, cache_put, normalize_query
from llm import (
    OPENAI_MODEL,
    build_messages, lookup_mode, openai_stream,
    to_pinyin, to_traditional,
)

CHINESE_SCRIPT = os.environ.get("FASTDICT_CHINESE_SCRIPT", "simplified").lower()
TRADITIONAL_HOLDBACK = 4


class Lookup:
    """One lookup of one query.

    Iterate `stream()` to receive text chunks in arrival order. Once the
    stream is exhausted `text` holds the full result and `cached` tells
    whether it came from the memo cache.
    """

    def __init__(self, query: str):
        self.query = normalize_query(query)
        self.mode = lookup_mode(self.query)
        self.text = ""
        self.cached = False
        self.chunks = 0

    async def stream(self) -> AsyncIterator[str]:
        key = cache_key(self.query, OPENAI_MODEL, CHINESE_SCRIPT)
        cached = cache_get(key)
        if cached is not None:
            logger.info("lookup cache hit", extra={"component": "lookup", "query": self.query})
            self.cached = True
            self.text = cached
            self.chunks = 1
            yield cached
            return

        started = time.time()
        raw_parts = []
        emitted = ""
        async for chunk in openai_stream(build_messages(self.query)):
            raw_parts.append(chunk)
            if CHINESE_SCRIPT != "traditional":
                self.chunks += 1
                yield chunk
                continue
            # phrase conversion can rewrite the last few characters once more text arrives
            converted = to_traditional("".join(raw_parts))
            stable = converted[:max(0, len(converted) - TRADITIONAL_HOLDBACK)]
            if len(stable) > len(emitted) and stable.startswith(emitted):
                self.chunks += 1
                yield stable[len(emitted):]
                emitted = stable

        self.text = "".join(raw_parts)
        if CHINESE_SCRIPT == "traditional":
            self.text = to_traditional(self.text)
            if not self.text.startswith(emitted):
                logger.warning(
                    "traditional conversion rewrote streamed text",
                    extra={"component": "lookup", "query": self.query},
                )
            if len(self.text) > len(emitted):
                self.chunks += 1
                yield self.text[len(emitted):]

        if self.text.strip():
            cache_put(key, self.text)
        logger.info(
            "lookup complete",
            extra={
                "component": "lookup",
                "query": self.query,
                "mode": self.mode,
                "chunks": self.chunks,
                "duration_ms": round((time.time() - started) * 1000),
            },
        )


def lookup_stream(query: str) -> AsyncIterator[str]:
    return Lookup(query).stream()


async def lookup_text(query: str) -> str:
    parts = []
    async for chunk in lookup_stream(query):
        parts.append(chunk)
    return "".join(parts)


def build_result(query: str, text: str, cached: bool = False) -> dict:
    """Split a lookup's text into translation and definition."""
    query = normalize_query(query)
    mode = lookup_mode(query)
    lines = [line.strip() for line in text.strip().splitlines()]
    translation = next((line for line in lines if line), "")
    definition = ""
    if mode == "word" and translation:
        rest = lines[lines.index(translation) + 1:]
        definition = "\n".join(rest).strip()
    return {
        "query": query,
        "mode": mode,
        "text": text,
        "translation": translation,
        "definition": definition,
        "pinyin": to_pinyin(translation),
        "cached": cached,
    }
