"""ADREPORT: FastAPI Application Entry Point.

Ad performance aggregation and reporting for social and local-search channels.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adreport.database import init_db, test_connection
from adreport.api.analytics_routes import router as analytics_router
from adreport.api.report_routes import admin_router as report_admin_router
from adreport.api.report_routes import router as report_router
from adreport.core.logging import get_logger

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 ADREPORT starting up...")
    if test_connection():
        init_db()
    else:
        logger.error("❌ Database NOT connected: endpoints will fail")
    yield
    logger.info("ADREPORT shut down")


app = FastAPI(
    title="ADREPORT",
    description="Aggregate Meta and Naver Place ad data into comparable, publishable performance reports.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(analytics_router)
app.include_router(report_admin_router)
app.include_router(report_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "adreport",
        "version": "1.0.0",
    }
