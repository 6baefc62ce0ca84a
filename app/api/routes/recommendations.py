"""
Recommendation API Routes
Adjusted ATM / Flazh templates for current or explicit market conditions
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import logging

from app.api.dependencies import get_recommendation_service
from app.domain.models import RawMarketMetrics, TemplateType
from app.domain.schemas.recommendation import (
    CustomRecommendationRequest,
    MarketConditionsResponse,
    RecommendationPairResponse,
    RecommendationResponse,
)
from app.domain.services.recommendation_service import RecommendationService

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_type(value: str) -> TemplateType:
    try:
        return TemplateType.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("", response_model=RecommendationPairResponse)
async def get_recommendations(
    volatility: Optional[str] = Query(None, description="Volatility reading or LOW/MEDIUM/HIGH"),
    trend: Optional[str] = Query(None, description="Trend label, e.g. STRONG_UP"),
    volume: Optional[str] = Query(None, description="Relative volume ratio or LOW/NORMAL/HIGH"),
    service: RecommendationService = Depends(get_recommendation_service)
):
    """
    Get both Flazh and ATM recommendations for the current market
    """
    raw = RawMarketMetrics(volatility=volatility, trend=trend, volume=volume)
    conditions = service.current_conditions(raw)

    # Same session underneath; run sequentially
    flazh = await service.recommend(TemplateType.FLAZH, override_conditions=conditions)
    atm = await service.recommend(TemplateType.ATM, override_conditions=conditions)

    return RecommendationPairResponse(
        flazh=RecommendationResponse.from_domain(flazh),
        atm=RecommendationResponse.from_domain(atm),
        market_conditions=MarketConditionsResponse.from_domain(conditions),
    )


@router.post("/custom", response_model=RecommendationResponse)
async def get_custom_recommendation(
    request: CustomRecommendationRequest,
    service: RecommendationService = Depends(get_recommendation_service)
):
    """
    Get a recommendation for explicitly supplied market conditions
    """
    template_type = _parse_type(request.template_type)
    recommendation = await service.recommend(
        template_type,
        override_conditions=request.to_conditions(),
    )
    return RecommendationResponse.from_domain(recommendation)


@router.get("/{template_type}", response_model=RecommendationResponse)
async def get_recommendation(
    template_type: str,
    volatility: Optional[str] = Query(None, description="Volatility reading or LOW/MEDIUM/HIGH"),
    trend: Optional[str] = Query(None, description="Trend label, e.g. STRONG_UP"),
    volume: Optional[str] = Query(None, description="Relative volume ratio or LOW/NORMAL/HIGH"),
    service: RecommendationService = Depends(get_recommendation_service)
):
    """
    Get a recommendation of one template type for the current market
    """
    parsed = _parse_type(template_type)
    raw = RawMarketMetrics(volatility=volatility, trend=trend, volume=volume)

    recommendation = await service.recommend(parsed, raw_metrics=raw)

    logger.info(
        f"{parsed.value} recommendation: {recommendation.adjusted_template.name} "
        f"(tier={recommendation.tier.value}, score={recommendation.match_score})"
    )
    return RecommendationResponse.from_domain(recommendation)
