from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import logging

# Import database components
from kiosk_pricing.database.database import sync_engine, Base

# Import routers
from kiosk_pricing.modules.pricing.router import pricing_router

# Import models for table creation
import kiosk_pricing.modules.catalog.models
import kiosk_pricing.modules.promotions.models
import kiosk_pricing.modules.coupons.models

from kiosk_pricing.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Kiosk Pricing API",
    description="Pricing and promotion engine for POS and kiosk sales",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Add your POS / kiosk frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(pricing_router)

# Create database tables (only for development - use migrations in production)
if settings.ENVIRONMENT == "development":
    Base.metadata.create_all(bind=sync_engine)

@app.get("/")
async def read_root():
    return {
        "message": "Kiosk Pricing API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "currency": settings.CURRENCY_CODE
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}

@app.on_event("startup")
async def startup_event():
    logger.info("Kiosk Pricing API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"Store timezone: {settings.TIMEZONE}, currency: {settings.CURRENCY_CODE}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Kiosk Pricing API shutting down...")
