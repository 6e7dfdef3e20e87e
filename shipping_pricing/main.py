"""Shipping Pricing API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map PricingError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager
    - Every request logged once by the log_requests middleware

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py; main only registers them
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shipping_pricing.api.error_handlers import register_error_handlers
from shipping_pricing.api.routes import (
    adjustments, city_prices, health, prices, public_cities,
)
from shipping_pricing.config import get_settings
from shipping_pricing.infrastructure import database
from shipping_pricing.infrastructure.observability import log_requests, setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("Shipping Pricing API started")
    yield
    if database.db_manager:
        await database.db_manager.dispose()
    logger.info("Shipping Pricing API shutting down")


app = FastAPI(
    title="Shipping Pricing API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests)

# Routes: explicit registration; prices before city_prices so /prices/* never
# reaches a parameterised city-price route
app.include_router(health.router)
app.include_router(public_cities.router)
app.include_router(prices.router)
app.include_router(adjustments.router)
app.include_router(city_prices.router)

register_error_handlers(app)
