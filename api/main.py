"""
FastAPI application initialization
"""

from fastapi import FastAPI
from api.routes import health
from core.config import settings
from core.database import dispose_engine
from core.logging import sanitize_url, setup_logging
import logging
from api.middleware import RequestContextMiddleware

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="POI Importer Service",
    description="Health and status surface for the OpenChargeMap POI importer",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    setup_logging()
    logger.info("Starting POI Importer Service")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {sanitize_url(settings.DATABASE_URL)}")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down POI Importer Service")
    await dispose_engine()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "POI Importer Service",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }
