"""FastAPI application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hexstats import __version__
from hexstats.api.v1 import router as api_router
from hexstats.core.config import get_settings
from hexstats.core.database import close_db, init_db
from hexstats.core.redis import close_redis
from hexstats.core.scheduler import start_scheduler, stop_scheduler
from hexstats.services.analysis.staking_analytics import (
    close_staking_analytics,
    get_staking_analytics,
)
from hexstats.services.data.availability import get_store_availability

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "Starting HEX staking analytics API",
        version=__version__,
        environment=get_settings().environment,
    )

    if await init_db():
        logger.info("Persistent store connected")
    else:
        logger.warning("Starting without persistent store, serving from remote subgraphs")

    # Registers the gate's promotion listener before the first probe
    get_staking_analytics()
    available = await get_store_availability().check()
    logger.info("Store availability checked", available=available)

    start_scheduler()

    yield

    logger.info("Shutting down...")
    stop_scheduler()
    await close_staking_analytics()
    await close_db()
    await close_redis()
    logger.info("Cleanup complete")


app = FastAPI(
    title="HEX Staking Analytics API",
    description="Active stakes, ending-soon windows and endstake timing for HEX on Ethereum and PulseChain",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "HEX Staking Analytics API",
        "version": __version__,
        "docs": "/api/docs",
        "health": "/api/v1/health",
    }
