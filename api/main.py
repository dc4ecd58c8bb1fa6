"""
What's On Where API - FastAPI application.

Provides endpoints for:
- Searching movies, TV shows and people
- Title details with provider availability, IMDb ratings and streaming offers
- The Seven Degrees and Play Your Movies Right games
- Affiliate redirects, region selection and game-play analytics
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.deps import get_dev_region
from api.routers import affiliates, analytics, debug, people, pymr, region, search, seven_degrees, titles
from wow_backend.region import REGION_COOKIE, REGION_COOKIE_MAX_AGE, region_for_request

logger = logging.getLogger(__name__)

WEB_MANIFEST = {
    "name": "Whats on Where",
    "short_name": "WoW",
    "description": "Your one stop shop for streaming",
    "start_url": "/",
    "display": "standalone",
    "background_color": "#ffffff",
    "theme_color": "#000000",
    "icons": [
        {"src": "/icon.png", "sizes": "512x512", "type": "image/png", "purpose": "any"},
        {"src": "/icon.png", "sizes": "512x512", "type": "image/png", "purpose": "maskable"},
    ],
}


def get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from environment.
    Set CORS_ALLOW_ORIGINS as comma-separated list of origins.
    Example: CORS_ALLOW_ORIGINS=https://whatsonwhere.app,https://www.whatsonwhere.app
    """
    origins_str = os.getenv("CORS_ALLOW_ORIGINS", "")
    if not origins_str:
        return []
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting up What's On Where API...")
    yield
    logger.info("Shutting down What's On Where API...")


app = FastAPI(
    title="What's On Where API",
    description="Find where to watch movies and TV shows, plus a couple of movie games",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
# If no origins configured, allows all origins but disables credentials
cors_origins = get_cors_origins()
allow_credentials = len(cors_origins) > 0

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def region_cookie_middleware(request: Request, call_next):
    """Keep the `wow_region` cookie populated (query override, cookie, then edge headers)."""
    decision = region_for_request(
        query_region=request.query_params.get("region"),
        cookie_region=request.cookies.get(REGION_COOKIE),
        headers=request.headers,
        dev_region=get_dev_region(),
    )
    request.state.region = decision.region
    response = await call_next(request)

    # A handler that set the cookie itself (POST /api/region) wins.
    already_set = any(
        value.startswith(f"{REGION_COOKIE}=") for value in response.headers.getlist("set-cookie")
    )
    if decision.set_cookie and not already_set:
        response.set_cookie(REGION_COOKIE, decision.region, max_age=REGION_COOKIE_MAX_AGE, path="/")
    return response


# Include routers
app.include_router(search.router, prefix="/api")
app.include_router(titles.router, prefix="/api")
app.include_router(people.router, prefix="/api")
app.include_router(seven_degrees.router, prefix="/api")
app.include_router(pymr.router, prefix="/api")
app.include_router(region.router, prefix="/api")
app.include_router(analytics.router, prefix="/api")
app.include_router(debug.router, prefix="/api")
app.include_router(affiliates.router)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "wow-backend"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/manifest.webmanifest")
def manifest():
    """PWA manifest."""
    return WEB_MANIFEST
