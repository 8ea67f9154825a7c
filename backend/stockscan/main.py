"""
StockScan Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockscan.core.config import settings
from stockscan.core.logging_config import setup_logging
from stockscan.api.v1 import router as api_v1_router
from stockscan.services.screener import ScreenerService, get_screener_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging(settings.log_level)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    from stockscan.db.database import init_db, close_db
    await init_db()

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    StockScan Technical Screener API

    ## Architecture
    - **Data Source**: Reads daily BSE bars and annual financials
    - **Indicator Engine**: Twelve technical indicators (pure Python/NumPy)
    - **Decision Rules**: Five-level signal per indicator
    - **Aggregator**: Weighted vote over the selected indicators
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check(screener: ScreenerService = Depends(get_screener_service)):
    """Health check endpoint; degraded when the price database is unreachable."""
    data_source_ok = await screener.data_source.health_check()
    return {
        "status": "healthy" if data_source_ok else "degraded",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "data_source": screener.data_source.name,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "StockScan Backend API",
        "docs": "/docs",
        "health": "/health",
    }
