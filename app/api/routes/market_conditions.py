"""
Market Conditions API Routes
Expose the current classification
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.api.dependencies import get_recommendation_service
from app.domain.models import RawMarketMetrics
from app.domain.schemas.recommendation import MarketConditionsResponse
from app.domain.services.recommendation_service import RecommendationService

router = APIRouter()


@router.get("", response_model=MarketConditionsResponse)
async def get_market_conditions(
    volatility: Optional[str] = Query(None),
    trend: Optional[str] = Query(None),
    volume: Optional[str] = Query(None),
    service: RecommendationService = Depends(get_recommendation_service)
):
    """Classify the market as of now"""
    conditions = service.current_conditions(
        RawMarketMetrics(volatility=volatility, trend=trend, volume=volume)
    )
    return MarketConditionsResponse.from_domain(conditions)
