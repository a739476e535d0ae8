"""
TubeLens: Main FastAPI Application

Video story-structure analysis service.
"""
from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from app.core.config import get_settings
from app.core.database import init_db
from app.core.errors import TubeLensError
from app.core.logging import configure_logging
from app.models.models import SECTION_TYPES

settings = get_settings()

# ── Logging ──────────────────────────────────────────────────────────────

configure_logging(settings)
logger = structlog.get_logger()


# ── Lifespan ─────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hooks."""
    logger.info("Starting TubeLens", version=settings.app_version)

    # Fatal without an LLM credential
    settings.require_llm_provider()

    await init_db()

    logger.info(
        "TubeLens ready",
        primary_llm=settings.openai_model if settings.has_openai else None,
        secondary_llm=settings.groq_models if settings.has_groq else None,
    )

    yield

    logger.info("Shutting down TubeLens")


# ── App ──────────────────────────────────────────────────────────────────

app = FastAPI(
    title="TubeLens",
    description="Story-structure analysis for YouTube videos",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.exception_handler(TubeLensError)
async def tubelens_error_handler(request: Request, exc: TubeLensError):
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ── Routes ───────────────────────────────────────────────────────────────

from app.api.routes import analysis, videos

app.include_router(videos.router, prefix=settings.api_prefix)
app.include_router(analysis.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {
        "name": "TubeLens",
        "description": "Story-structure analysis for YouTube videos",
        "version": settings.app_version,
        "sections": [t.value for t in SECTION_TYPES],
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "llm_providers": [
            name for name, enabled in (("openai", settings.has_openai), ("groq", settings.has_groq))
            if enabled
        ],
    }
