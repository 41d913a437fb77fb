"""Streaming lookup API (server-sent events) for fastdict."""
import json
from typing import Optional

from log import get_logger

logger = get_logger("fastdict.stream_routes")

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from models import MAX_QUERY_LEN
from cache import normalize_query
from limits import allow_request
from lookup import Lookup, build_result

router = APIRouter()

STREAM_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}
LOOKUP_ERROR_MESSAGE = "Something went wrong."


def check_query(query: Optional[str]) -> str:
    """Normalize a query for the API, raising 400 when it is unusable."""
    query = normalize_query(query or "")
    if not query:
        raise HTTPException(400, "Query cannot be empty")
    if len(query) > MAX_QUERY_LEN:
        raise HTTPException(400, f"Query too long (max {MAX_QUERY_LEN} characters)")
    return query


def sse_event(payload: dict) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


@router.get("/api/lookup-stream", tags=["Lookup"], summary="Stream a lookup via SSE")
async def lookup_stream_events(request: Request, query: Optional[str] = None):
    """SSE version of /api/lookup: one `chunk` event per received piece of text."""
    query = check_query(query)
    if not allow_request(request):
        raise HTTPException(429, "Too many requests. Please wait a minute.")

    async def _generate():
        lookup = Lookup(query)
        yield sse_event({"type": "progress", "status": "looking up", "mode": lookup.mode})
        try:
            async for text in lookup.stream():
                yield sse_event({"type": "chunk", "text": text})
        except Exception:
            logger.exception("lookup-stream error", extra={"component": "api", "query": query})
            yield sse_event({"type": "error", "message": LOOKUP_ERROR_MESSAGE})
            return
        yield sse_event({"type": "result", "data": build_result(query, lookup.text, cached=lookup.cached)})

    return StreamingResponse(_generate(), media_type="text/event-stream", headers=STREAM_HEADERS)
