"""
FastAPI application entry point for the HubAuditor API.

This module wires the service together: it configures logging and CORS,
creates the long-lived resources in the lifespan, and registers the API
routers.

Resources created at startup and stored on ``app.state``:
- db_pool: asyncpg connection pool
- http_client: shared httpx.AsyncClient for HubSpot calls
- generation_client: GenerationClient, or None when CLAUDE_API_KEY is unset

Endpoints receive them through hubauditor.core.dependencies, so tests can
swap any of them via ``app.dependency_overrides``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import asyncpg
import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hubauditor import __version__
from hubauditor.api import api_router
from hubauditor.core.config import get_settings
from hubauditor.core.database import close_db_pool, create_db_pool, init_schema
from hubauditor.services.generation_client import GenerationClient

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Create the database pool and, if enabled, the schema
        - Create the shared HTTP client
        - Create the generation client when an API key is configured

    On shutdown:
        - Close everything that was created
    """
    # Startup
    logger.info("HubAuditor API starting")
    app.state.db_pool = None
    try:
        app.state.db_pool = await create_db_pool(settings)
        if settings.auto_create_schema:
            await init_schema(app.state.db_pool)
    except (asyncpg.PostgresError, OSError) as e:
        logger.error(f"Failed to initialize database: {e}")
        # Continue startup; audits with a pasted token do not need the database

    app.state.http_client = httpx.AsyncClient(timeout=settings.hubspot_timeout_seconds)

    if settings.claude_api_key:
        app.state.generation_client = GenerationClient.from_settings(settings)
    else:
        app.state.generation_client = None
        logger.warning("CLAUDE_API_KEY is not set; audits will be rejected")

    yield

    # Shutdown
    logger.info("HubAuditor API shutting down")
    if app.state.generation_client is not None:
        await app.state.generation_client.close()
    await app.state.http_client.aclose()
    await close_db_pool(app.state.db_pool)
    logger.info("Resources released")


# Create FastAPI application
app = FastAPI(
    title="HubAuditor API",
    version=__version__,
    description=(
        "Audits HubSpot CRM data quality. Computes deterministic metrics, "
        "asks Claude for a written analysis and returns a structured report."
    ),
    lifespan=lifespan,
)

# The session cookie requires credentialed CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer health checks.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {
        "name": "HubAuditor API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hubauditor.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
