from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.domain.models import (
    DayOfWeek,
    MarketConditions,
    PerformanceMetrics,
    Recommendation,
    Template,
    TemplateType,
    TradingSession,
    Trend,
    VolatilityLevel,
    VolumeLevel,
)


class MarketConditionsResponse(BaseModel):
    session: Optional[TradingSession] = None
    volatility: Optional[VolatilityLevel] = None
    day_of_week: Optional[DayOfWeek] = None
    trend: Optional[Trend] = None
    volume: Optional[VolumeLevel] = None
    timestamp: Optional[datetime] = None
    warnings: List[str] = []

    @classmethod
    def from_domain(cls, conditions: MarketConditions) -> "MarketConditionsResponse":
        return cls(
            session=conditions.session,
            volatility=conditions.volatility,
            day_of_week=conditions.day_of_week,
            trend=conditions.trend,
            volume=conditions.volume,
            timestamp=conditions.timestamp,
            warnings=list(conditions.warnings),
        )


class TemplateResponse(BaseModel):
    id: Optional[int] = None
    template_type: TemplateType
    name: str
    description: Optional[str] = None
    conditions: MarketConditionsResponse
    parameters: Dict[str, Any]
    match_score: Optional[int] = None
    is_fallback: bool = False

    @classmethod
    def from_domain(cls, template: Template) -> "TemplateResponse":
        return cls(
            id=template.id,
            template_type=template.template_type,
            name=template.name,
            description=template.description,
            conditions=MarketConditionsResponse.from_domain(template.conditions),
            parameters=dict(template.parameters),
            match_score=template.match_score,
            is_fallback=template.is_fallback,
        )


class PerformanceMetricsResponse(BaseModel):
    win_rate: Optional[float] = None
    profit_factor: Optional[float] = None
    sample_size: int = 0
    average_rr: Optional[float] = None
    adjustment_factors: Optional[Dict[str, Optional[float]]] = None

    @classmethod
    def from_domain(cls, metrics: PerformanceMetrics) -> "PerformanceMetricsResponse":
        factors = metrics.adjustment_factors
        return cls(
            win_rate=metrics.win_rate,
            profit_factor=metrics.profit_factor,
            sample_size=metrics.sample_size,
            average_rr=metrics.average_rr,
            adjustment_factors=(
                {
                    "stop_loss": factors.stop_loss,
                    "target": factors.target,
                    "trailing_stop": factors.trailing_stop,
                }
                if factors is not None else None
            ),
        )


class RecommendationResponse(BaseModel):
    template_type: TemplateType
    template: TemplateResponse
    original_template: TemplateResponse
    market_conditions: MarketConditionsResponse
    tier: str
    is_fallback: bool
    match_score: int
    confidence: str
    performance_metrics: Optional[PerformanceMetricsResponse] = None
    warnings: List[str] = []

    @classmethod
    def from_domain(cls, recommendation: Recommendation) -> "RecommendationResponse":
        metrics = recommendation.performance_metrics
        return cls(
            template_type=recommendation.adjusted_template.template_type,
            template=TemplateResponse.from_domain(recommendation.adjusted_template),
            original_template=TemplateResponse.from_domain(recommendation.original_template),
            market_conditions=MarketConditionsResponse.from_domain(recommendation.market_conditions),
            tier=recommendation.tier.value,
            is_fallback=recommendation.is_fallback,
            match_score=recommendation.match_score,
            confidence=recommendation.confidence,
            performance_metrics=PerformanceMetricsResponse.from_domain(metrics) if metrics else None,
            warnings=list(recommendation.warnings),
        )


class RecommendationPairResponse(BaseModel):
    flazh: RecommendationResponse
    atm: RecommendationResponse
    market_conditions: MarketConditionsResponse


class CustomRecommendationRequest(BaseModel):
    """Explicit market conditions, bypassing classification"""
    template_type: str = Field(..., description="ATM or FLAZH")
    session: TradingSession
    volatility: VolatilityLevel
    day_of_week: Optional[DayOfWeek] = None
    trend: Optional[Trend] = None
    volume: Optional[VolumeLevel] = None

    def to_conditions(self) -> MarketConditions:
        return MarketConditions(
            session=self.session,
            volatility=self.volatility,
            day_of_week=self.day_of_week,
            trend=self.trend,
            volume=self.volume,
        )
