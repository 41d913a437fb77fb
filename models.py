"""Pydantic schemas and constants for fastdict."""
from typing import Optional
from pydantic import BaseModel

# --- Constants ---
MAX_QUERY_LEN = 200
SITE_TITLE = "𝒻𝒶𝓈𝓉 Dictionary"
SEARCH_PLACEHOLDER = "Look up a word/phrase..."


# --- Pydantic Models ---

class LookupResult(BaseModel):
    query: str
    mode: str               # "word" or "sentence"
    text: str               # full streamed text, as rendered
    translation: str        # first non-empty line
    definition: str = ""
    pinyin: Optional[str] = None
    cached: bool = False


class CacheStats(BaseModel):
    entries: int
    max: int
    hits: int
    misses: int


class HealthResponse(BaseModel):
    status: str
    model: str
    llm: dict
    cache: CacheStats
