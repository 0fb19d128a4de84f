"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from brand_forge.api.router import api_router
from brand_forge.config import get_settings
from brand_forge.db.client import get_supabase_client
from brand_forge.storage.objects import get_object_storage
from brand_forge.utils.logging import setup_logging

logger = structlog.get_logger()

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start up and shut down the application."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("brandforge.starting", port=settings.port)

    get_supabase_client()
    logger.info("brandforge.supabase_connected")

    if get_object_storage() is None:
        logger.warning("brandforge.object_storage_disabled")

    yield

    logger.info("brandforge.shutdown")


app = FastAPI(
    title="BrandForge",
    description="Brand profiles, guided onboarding and AI media generation",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Service info endpoint."""
    return {"service": "brandforge", "version": VERSION}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "brandforge", "version": VERSION}
