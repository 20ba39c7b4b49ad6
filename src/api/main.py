"""
FastAPI application for the energy contract pricing service.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import Config
from src.api.routes import (
    contracts,
    price_periods,
)

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title="Energy Contract Pricing",
    description="Monthly price and volume periodization for energy-supply contracts",
    version="1.0.0"
)

# CORS middleware for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(contracts.router)
app.include_router(price_periods.router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "app": "Energy Contract Pricing"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    from src.db.postgres import test_connection
    db_ok, db_msg = test_connection()
    return {
        "status": "healthy" if db_ok else "unhealthy",
        "database": db_msg
    }
