# main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.providers import init_providers
from core.settings import get_settings

# Routers
from health.router import router as health_router
from jobs.router import router as jobs_router
from research.router import router as research_router
from video.router import router as video_router

logging.basicConfig(
    level=getattr(logging, get_settings().log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    providers = init_providers(app)
    log.info("Video model: %s", providers.settings.gemini.video_model)
    log.info("Research agent: %s", providers.settings.gemini.research_agent)
    yield


# ---------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------

app = FastAPI(
    title="Gemini Jobs",
    lifespan=lifespan,
)

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------

app.include_router(health_router)
app.include_router(jobs_router)
app.include_router(video_router)
app.include_router(research_router)


# ---------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------

@app.get("/")
async def root():
    return {"status": "ok", "message": "gemini-jobs running"}


# ---------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------

def run() -> None:
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
    )


if __name__ == "__main__":
    run()
