"""LLM interaction (OpenAI-compatible chat completions), prompts, and Chinese post-processing."""
import os
import json
import re as _re
from typing import AsyncIterator, List, Optional, Tuple

from log import get_logger

logger = get_logger("fastdict.llm")

import httpx
from pypinyin import pinyin, Style as PinyinStyle
from opencc import OpenCC

# --- Config ---
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.environ.get("FASTDICT_OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
OPENAI_MODEL = os.environ.get("FASTDICT_MODEL", "gpt-4o-mini")
LLM_TIMEOUT = float(os.environ.get("FASTDICT_LLM_TIMEOUT", "60"))

SENTENCE_MIN_WORDS = 5

_s2twp = OpenCC('s2twp')

# --- Prompts ---
DICTIONARY_PROMPT = """Provide the Chinese translation and a brief definition. Keep it short and clear. For hard words in the definition, include their Chinese translation in brackets next to the word. Write each on two new lines.

Input: dictionary
Output:
字典

A dictionary is a reference book that lists words in alphabetical order (字母顺序) and provides their meanings, pronunciations, and other information.
"""

SENTENCE_PROMPT = """Translate the sentence into natural Chinese. Output only the translation, nothing else.

Input: Where is the nearest train station?
Output:
最近的火车站在哪里？
"""


class LLMError(Exception):
    """The completion API could not produce a stream."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# --- Query classification ---

def split_sentences(text: str) -> List[str]:
    parts = _re.split(r'(?<=[.!?。！？])\s*', text.strip())
    return [s.strip() for s in parts if s.strip()]


def is_sentence(query: str) -> bool:
    """Decide whether a query should be translated as a sentence rather than looked up."""
    text = query.strip()
    if not text:
        return False
    if len(split_sentences(text)) > 1:
        return True
    if text[-1] in ".!?。！？":
        return True
    return len(text.split()) >= SENTENCE_MIN_WORDS


def lookup_mode(query: str) -> str:
    return "sentence" if is_sentence(query) else "word"


def build_messages(query: str) -> list:
    system = SENTENCE_PROMPT if is_sentence(query) else DICTIONARY_PROMPT
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": f"Look up: {query}"},
    ]


# --- Chinese helpers ---

def contains_cjk(text: str) -> bool:
    return any('\u4e00' <= c <= '\u9fff' for c in text or "")


def to_pinyin(text: str) -> Optional[str]:
    if not contains_cjk(text):
        return None
    result = pinyin(text, style=PinyinStyle.TONE)
    return " ".join(p[0] for p in result if p[0].strip())


def to_traditional(text: str) -> str:
    return _s2twp.convert(text)


# --- Completion API ---

def parse_sse_line(line: str) -> Tuple[bool, str]:
    """Parse one line of the completion event stream.

    Returns (done, text). Blank lines, comments and events without content
    yield an empty string.
    """
    if not line or not line.startswith("data:"):
        return False, ""
    payload = line[5:].strip()
    if payload == "[DONE]":
        return True, ""
    if not payload:
        return False, ""
    try:
        obj = json.loads(payload)
    except json.JSONDecodeError:
        logger.warning("Skipping malformed stream event", extra={"component": "llm"})
        return False, ""
    parts = []
    for choice in obj.get("choices") or []:
        delta = choice.get("delta") or {}
        content = delta.get("content")
        if isinstance(content, str):
            parts.append(content)
    return False, "".join(parts)


async def openai_stream(messages: list, model: str = None,
                        client: Optional[httpx.AsyncClient] = None) -> AsyncIterator[str]:
    """Stream a chat completion and yield content deltas in arrival order."""
    if not OPENAI_API_KEY:
        raise LLMError("OPENAI_API_KEY is not set")
    if model is None:
        model = OPENAI_MODEL

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=LLM_TIMEOUT)
    try:
        async with client.stream(
            "POST",
            f"{OPENAI_BASE_URL}/chat/completions",
            headers={
                "Authorization": f"Bearer {OPENAI_API_KEY}",
                "Accept": "text/event-stream",
            },
            json={"model": model, "messages": messages, "stream": True},
        ) as resp:
            if resp.status_code != 200:
                await resp.aread()
                logger.error(
                    "Completion API error",
                    extra={"component": "llm", "status_code": resp.status_code, "model": model},
                )
                raise LLMError(f"Completion API returned {resp.status_code}", status_code=resp.status_code)
            async for line in resp.aiter_lines():
                done, text = parse_sse_line(line)
                if done:
                    break
                if text:
                    yield text
    except httpx.HTTPError as e:
        raise LLMError(f"Completion API unreachable: {e}") from e
    finally:
        if owns_client:
            await client.aclose()


async def check_openai_connectivity(client: Optional[httpx.AsyncClient] = None) -> bool:
    if not OPENAI_API_KEY:
        return False
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=10)
    try:
        resp = await client.get(
            f"{OPENAI_BASE_URL}/models",
            headers={"Authorization": f"Bearer {OPENAI_API_KEY}"},
        )
        return resp.status_code == 200
    except httpx.HTTPError:
        logger.warning("Completion API not reachable", extra={"component": "llm"})
        return False
    finally:
        if owns_client:
            await client.aclose()
