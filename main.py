"""Callout Coach – FastAPI application entry point."""

from __future__ import annotations

import logging
import sys

from fastapi import FastAPI

from callout_coach.config import settings
from callout_coach.routes.grading import router as grading_router

# --- Configure logging so callout_coach.* loggers are visible alongside uvicorn ---
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(levelname)s:    %(name)s - %(message)s",
    stream=sys.stdout,
    force=True,  # override uvicorn's config
)

log = logging.getLogger(__name__)

app = FastAPI(title="Callout Coach", version="0.1.0")

# --- Register routers ---
app.include_router(grading_router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "ok"}


log.info(
    "Grading with %s scorer, pass >= %d%%, auto-pause <= %d%%",
    "rich" if settings.use_rich_scorer else "overlap",
    settings.pass_threshold,
    settings.pause_threshold,
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
