"""FastAPI application — Quote Pricing API."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from quote_engine import __version__
from quote_engine.config import get_settings
from quote_engine.logging_config import setup_logging

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    yield


app = FastAPI(
    title="Quote Pricing API",
    description="Deterministic quote breakdowns and totals for events and catering quotes.",
    version=__version__,
    lifespan=lifespan,
)

# CORS: QUOTE_ENGINE_ALLOWED_ORIGINS="*" allows any origin
_origins_list = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

_allow_all = "*" in _origins_list

if _allow_all:
    ALLOWED_ORIGINS: list[str] = ["*"]
elif _origins_list:
    ALLOWED_ORIGINS = _origins_list
else:
    ALLOWED_ORIGINS = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=not _allow_all,  # credentials not allowed with wildcard
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

app.include_router(router)


@app.get("/")
async def root():
    return {
        "name": "Quote Pricing API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }
