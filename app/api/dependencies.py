"""
API Dependencies
Request-scoped construction of the recommendation engine
"""

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.database import get_db
from app.infrastructure.db.repositories.backtest_repository import SqlBacktestRepository
from app.infrastructure.db.repositories.template_repository import SqlTemplateRepository
from app.domain.services.config_engine import EngineConfig
from app.domain.services.recommendation_service import RecommendationService


def get_engine_config(request: Request) -> EngineConfig:
    """Engine configuration loaded at startup"""
    config = getattr(request.app.state, "engine_config", None)
    if config is None:
        raise HTTPException(status_code=500, detail="Configuration not loaded")
    return config


def get_template_repository(db: AsyncSession = Depends(get_db)) -> SqlTemplateRepository:
    return SqlTemplateRepository(db)


def get_recommendation_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
    config: EngineConfig = Depends(get_engine_config)
) -> RecommendationService:
    """One service per request; nothing is shared between requests"""
    return RecommendationService(
        template_repository=SqlTemplateRepository(db),
        performance_store=SqlBacktestRepository(db),
        clock=getattr(request.app.state, "clock", None),
        config=config,
    )
