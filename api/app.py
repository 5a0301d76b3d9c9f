"""
FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from api.deps import get_field_hash
from api.routes import health, proofs, verify
from api.errors import (
    APIError,
    airdrop_error_handler,
    api_error_handler,
    generic_error_handler,
)
from core.schemas.errors import AirdropException


# Configure logging - respects AIRDROP_LOG_LEVEL env var
def _resolve_log_level() -> int:
    """Resolve log level from env var, defaulting to INFO."""
    raw = os.getenv("AIRDROP_LOG_LEVEL")
    return getattr(logging, (raw or "INFO").upper(), logging.INFO)


logging.basicConfig(
    level=_resolve_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Finish hash backend setup before the first request is served."""
    field_hash = await run_in_threadpool(get_field_hash)
    logger.info("Hash backend ready: %s", field_hash)
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Airdrop Tree API",
        description="""
HTTP API serving Merkle inclusion proofs for an airdrop claim tree.

## Endpoints

- **GET /health** - Health check
- **GET /root** - Current root and tree metadata
- **GET /proofs/{address}** - Circuit inputs for one claimant
- **POST /verify** - Verify a submitted inclusion proof

Field elements are decimal strings throughout.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(AirdropException, airdrop_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(proofs.router)
    app.include_router(verify.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
