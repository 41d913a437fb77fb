"""Page and JSON route handlers for fastdict."""
import os
from typing import Optional

from log import get_logger

logger = get_logger("fastdict.routes")

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, StreamingResponse

from models import MAX_QUERY_LEN, LookupResult, HealthResponse
from cache import cache_stats, normalize_query
from limits import allow_request
from llm import OPENAI_MODEL, LLMError, check_openai_connectivity
from lookup import Lookup, build_result
from render import (
    ELLIPSIS,
    page_head, page_tail, result_open, result_close, result_error,
    filler, chunk_fragment,
)
from stream_routes import router as stream_router, STREAM_HEADERS, check_query

router = APIRouter()
router.include_router(stream_router)

FILLER_CHARS = int(os.environ.get("FASTDICT_FILLER_CHARS", "1024"))


@router.get("/", response_class=HTMLResponse, tags=["Page"], summary="Search page with streamed lookup")
async def search_page(request: Request, query: Optional[str] = None):
    query = normalize_query(query or "")
    if not query:
        return HTMLResponse(page_head() + page_tail())

    too_long = len(query) > MAX_QUERY_LEN
    allowed = True if too_long else allow_request(request)

    async def _generate():
        yield page_head()
        yield result_open(query)
        if too_long:
            yield result_error(f"Query too long (max {MAX_QUERY_LEN} characters)")
            yield result_close()
            yield page_tail()
            return
        if not allowed:
            yield result_error("Too many requests. Please wait a minute.")
            yield result_close()
            yield page_tail()
            return

        yield filler(FILLER_CHARS)
        yield ELLIPSIS
        lookup = Lookup(query)
        try:
            async for text in lookup.stream():
                yield chunk_fragment(text)
        except Exception:
            logger.exception("lookup page error", extra={"component": "page", "query": query})
            yield result_error()
            yield result_close()
            yield page_tail()
            return

        pinyin = None
        if lookup.mode == "word":
            pinyin = build_result(query, lookup.text)["pinyin"]
        yield result_close(pinyin)
        yield page_tail()

    return StreamingResponse(_generate(), media_type="text/html; charset=utf-8", headers=STREAM_HEADERS)


@router.get("/api/lookup", response_model=LookupResult, tags=["Lookup"], summary="Look up a word, phrase or sentence")
async def lookup(request: Request, query: Optional[str] = None):
    query = check_query(query)
    if not allow_request(request):
        raise HTTPException(429, "Too many requests. Please wait a minute.")

    lk = Lookup(query)
    parts = []
    try:
        async for text in lk.stream():
            parts.append(text)
    except LLMError as e:
        logger.error("lookup failed", extra={"component": "api", "query": query, "status_code": e.status_code})
        raise HTTPException(502, "LLM API error")
    return build_result(query, "".join(parts), cached=lk.cached)


@router.get("/api/health", response_model=HealthResponse, tags=["System"], summary="Service health")
async def health():
    reachable = await check_openai_connectivity()
    return {
        "status": "ok",
        "model": OPENAI_MODEL,
        "llm": {"reachable": reachable},
        "cache": cache_stats(),
    }
