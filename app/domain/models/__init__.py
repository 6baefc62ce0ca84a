"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    DayOfWeek,
    ResolutionTier,
    TemplateType,
    TradingSession,
    Trend,
    VolatilityLevel,
    VolumeLevel,

    # Entities
    AdjustmentFactors,
    MarketConditions,
    PerformanceMetrics,
    RawMarketMetrics,
    Recommendation,
    Resolution,
    Template,
)

__all__ = [
    # Enums
    "DayOfWeek",
    "ResolutionTier",
    "TemplateType",
    "TradingSession",
    "Trend",
    "VolatilityLevel",
    "VolumeLevel",

    # Entities
    "AdjustmentFactors",
    "MarketConditions",
    "PerformanceMetrics",
    "RawMarketMetrics",
    "Recommendation",
    "Resolution",
    "Template",
]
