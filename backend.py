"""fastdict: look up a word or phrase and stream back a Chinese translation."""
import os
import sysconfig
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from log import get_logger
from cache import load_cache, save_cache, is_cache_dirty
from routes import router

logger = get_logger("fastdict.backend")


def find_static_dir() -> Path:
    """Locate the page assets: FASTDICT_STATIC_DIR, the source tree, then the installed data dir."""
    override = os.environ.get("FASTDICT_STATIC_DIR")
    if override:
        return Path(override)
    local = Path(__file__).parent / "static"
    if local.is_dir():
        return local
    return Path(sysconfig.get_path("data")) / "share" / "fastdict" / "static"


STATIC_DIR = find_static_dir()


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_cache()
    logger.info("fastdict started", extra={"component": "backend"})
    yield
    if is_cache_dirty():
        save_cache()


app = FastAPI(title="fastdict", lifespan=lifespan)
app.include_router(router)
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


def main():
    import uvicorn
    uvicorn.run(
        "backend:app",
        host=os.environ.get("FASTDICT_HOST", "127.0.0.1"),
        port=int(os.environ.get("FASTDICT_PORT", "8847")),
    )


if __name__ == "__main__":
    main()
