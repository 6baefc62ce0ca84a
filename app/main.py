"""
FastAPI Main Application
Market-adaptive ATM / Flazh template recommendations
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path
import logging
from typing import AsyncGenerator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import settings
from app.core.logging import setup_logging
from app.infrastructure.db.database import init_db, close_db
from app.domain.services.config_engine import ConfigEngine, EngineConfig

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent


def load_engine_config() -> EngineConfig:
    """
    Load engine.yml and apply environment overrides

    Raises:
        FileNotFoundError: Config file missing
        ValueError: Invalid configuration
    """
    config_dir = Path(settings.ENGINE_CONFIG_DIR)
    if not config_dir.is_absolute():
        config_dir = PROJECT_ROOT / config_dir

    config_engine = ConfigEngine(config_dir)
    config_engine.load_all()
    config = config_engine.engine_config
    logger.info(f"Engine config {config_engine.engine_version} loaded from {config_dir}")

    if settings.REPOSITORY_TIMEOUT_SECONDS is not None:
        config = replace(
            config,
            resolver=replace(
                config.resolver,
                repository_timeout_seconds=settings.REPOSITORY_TIMEOUT_SECONDS,
            ),
        )
    if settings.TIMEZONE is not None:
        try:
            ZoneInfo(settings.TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {settings.TIMEZONE!r}") from None
        config = replace(config, timezone=settings.TIMEZONE)

    return config


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown
    """
    setup_logging(settings.LOG_LEVEL, debug=settings.DEBUG)

    # ===================
    # STARTUP
    # ===================
    logger.info("=" * 60)
    logger.info("🚀 Starting Template Recommendation Engine")
    logger.info("=" * 60)

    logger.info("📊 Step 1/2: Initializing database...")
    await init_db()
    logger.info("✅ Database initialized")

    logger.info("⚙️  Step 2/2: Loading configuration...")
    app.state.engine_config = load_engine_config()
    logger.info("✅ Configuration loaded successfully")
    logger.info(f"   📈 Engine Version: {app.state.engine_config.version}")
    logger.info(f"   🕒 Exchange Timezone: {app.state.engine_config.timezone}")

    logger.info(f"🎯 API Server: http://{settings.API_HOST}:{settings.API_PORT}")

    yield

    # ===================
    # SHUTDOWN
    # ===================
    logger.info("🛑 Shutting down...")
    await close_db()
    logger.info("✅ Database connections closed")


# Create FastAPI app
app = FastAPI(
    title="Market-Adaptive Template Recommendation Engine",
    description="ATM and Flazh templates matched and tuned to current market conditions",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
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


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Market-Adaptive Template Recommendation Engine",
        "version": "1.0.0",
        "docs": "/docs"
    }


# Import and include routers
from app.api.routes import health, recommendations, market_conditions, templates

app.include_router(health.router, tags=["Health"])
app.include_router(recommendations.router, prefix="/api/v1/recommendations", tags=["Recommendations"])
app.include_router(market_conditions.router, prefix="/api/v1/market-conditions", tags=["Market Conditions"])
app.include_router(templates.router, prefix="/api/v1/templates", tags=["Templates"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
