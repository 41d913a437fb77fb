"""Lookup memo cache.

Lookups are cached forever: an entry is only dropped when the cache is full
and it is the least recently used. The cache is snapshotted to a JSON file so
that a restart does not pay for every lookup again.
"""
import json
import os
import time
import hashlib
import re as _re
from pathlib import Path
from collections import OrderedDict

from log import get_logger

logger = get_logger("fastdict.cache")

CACHE_MAX = int(os.environ.get("FASTDICT_CACHE_MAX", "5000"))
CACHE_FILE = Path(os.environ.get("FASTDICT_CACHE_FILE", str(Path(__file__).parent / "lookup_cache.json")))
CACHE_SAVE_INTERVAL = 60

_lookup_cache: OrderedDict = OrderedDict()  # key -> text
_cache_dirty = False
_cache_last_save = 0.0
_hits = 0
_misses = 0


def normalize_query(query: str) -> str:
    return _re.sub(r"\s+", " ", (query or "").strip())


def cache_key(query: str, model: str, script: str = "simplified") -> str:
    raw = f"{normalize_query(query).lower()}|{model}|{script}"
    return hashlib.sha256(raw.encode()).hexdigest()


def cache_get(key: str):
    global _hits, _misses
    text = _lookup_cache.get(key)
    if text is None:
        _misses += 1
        return None
    _hits += 1
    _lookup_cache.move_to_end(key)
    return text


def cache_put(key: str, text: str):
    global _cache_dirty
    _lookup_cache[key] = text
    _lookup_cache.move_to_end(key)
    while len(_lookup_cache) > CACHE_MAX:
        _lookup_cache.popitem(last=False)
    _cache_dirty = True
    _maybe_save_cache()


def load_cache():
    global _cache_last_save
    if CACHE_FILE.exists():
        try:
            data = json.loads(CACHE_FILE.read_text())
            loaded = 0
            for key, text in data.items():
                if loaded >= CACHE_MAX:
                    break
                if isinstance(text, str):
                    _lookup_cache[key] = text
                    loaded += 1
            logger.info("Loaded cache from disk", extra={"component": "cache", "count": loaded})
        except (OSError, ValueError, AttributeError):
            logger.exception("Failed to load cache file", extra={"component": "cache"})
            _lookup_cache.clear()
    _cache_last_save = time.time()


def save_cache():
    global _cache_dirty, _cache_last_save
    try:
        CACHE_FILE.write_text(json.dumps(dict(_lookup_cache), ensure_ascii=False))
        _cache_dirty = False
        _cache_last_save = time.time()
    except OSError:
        logger.exception("Failed to save cache", extra={"component": "cache"})


def _maybe_save_cache():
    if _cache_dirty and (time.time() - _cache_last_save) >= CACHE_SAVE_INTERVAL:
        save_cache()


def is_cache_dirty():
    return _cache_dirty


def clear_cache():
    global _cache_dirty, _hits, _misses
    _lookup_cache.clear()
    _cache_dirty = False
    _hits = 0
    _misses = 0


def cache_stats() -> dict:
    return {"entries": len(_lookup_cache), "max": CACHE_MAX, "hits": _hits, "misses": _misses}
