"""
Domain Models - Entities
Pure domain objects with no infrastructure dependencies
"""

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional


class TemplateType(str, Enum):
    """Strategy template family"""
    ATM = "ATM"
    FLAZH = "FLAZH"

    @classmethod
    def parse(cls, value: "TemplateType | str") -> "TemplateType":
        """Accept enum members or case-insensitive names ("Flazh", "atm")"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown template type: {value!r}") from None


class TradingSession(str, Enum):
    """Named slice of the trading day"""
    PRE_MARKET = "PRE_MARKET"
    LATE_MORNING = "LATE_MORNING"
    EARLY_AFTERNOON = "EARLY_AFTERNOON"
    PRE_CLOSE = "PRE_CLOSE"
    OVERNIGHT = "OVERNIGHT"
    AFTER_HOURS = "AFTER_HOURS"
    CLOSED = "CLOSED"
    UNKNOWN = "UNKNOWN"


class VolatilityLevel(str, Enum):
    """Coarse volatility bucket (NONE only on closed days)"""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    NONE = "NONE"


class DayOfWeek(str, Enum):
    """Trading weekday"""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"


class Trend(str, Enum):
    """Directional trend reading"""
    STRONG_DOWN = "STRONG_DOWN"
    DOWN = "DOWN"
    NEUTRAL = "NEUTRAL"
    UP = "UP"
    STRONG_UP = "STRONG_UP"

    @property
    def is_strong(self) -> bool:
        return self in (Trend.STRONG_DOWN, Trend.STRONG_UP)


class VolumeLevel(str, Enum):
    """Relative volume bucket"""
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"


class ResolutionTier(str, Enum):
    """Which selection tier produced a template"""
    EXACT = "EXACT"
    RELAXED = "RELAXED"
    DEGRADED_VOLATILITY = "DEGRADED_VOLATILITY"
    SESSION_ONLY = "SESSION_ONLY"
    BEST_EFFORT = "BEST_EFFORT"
    EXHAUSTION = "EXHAUSTION"
    FALLBACK = "FALLBACK"


@dataclass(frozen=True)
class RawMarketMetrics:
    """Loosely-typed market readings handed to the classifier"""
    volatility: Any = None
    trend: Any = None
    volume: Any = None


@dataclass(frozen=True)
class MarketConditions:
    """
    Market environment used both for the current request and as the
    condition tag a template was authored for.

    Optional fields are wildcards when absent.
    """
    session: Optional[TradingSession] = TradingSession.UNKNOWN
    volatility: Optional[VolatilityLevel] = VolatilityLevel.MEDIUM
    day_of_week: Optional[DayOfWeek] = None
    trend: Optional[Trend] = None
    volume: Optional[VolumeLevel] = None
    timestamp: Optional[datetime] = None
    warnings: tuple[str, ...] = field(default=(), compare=False)

    @property
    def is_trading_day(self) -> bool:
        return self.session != TradingSession.CLOSED

    @property
    def is_strong_trend(self) -> bool:
        return self.trend is not None and self.trend.is_strong


@dataclass(frozen=True)
class Template:
    """
    Stored strategy template (read-only from the engine's perspective).

    Adjustments produce new values through derive(); the stored
    instance is never mutated.
    """
    id: Optional[int]
    template_type: TemplateType
    name: str
    conditions: MarketConditions = field(default_factory=MarketConditions)
    parameters: Mapping[str, Any] = field(default_factory=dict)
    description: Optional[str] = None
    match_score: Optional[int] = None
    is_fallback: bool = False

    def __post_init__(self):
        if not self.name:
            raise ValueError("Template name cannot be empty")

    def with_match_score(self, score: int) -> "Template":
        """Copy carrying a transient match score"""
        return replace(self, match_score=score)

    def derive(self, **changes) -> "Template":
        """Deep copy with changes applied; parameters are never shared"""
        if "parameters" not in changes:
            changes["parameters"] = copy.deepcopy(dict(self.parameters))
        return replace(self, **changes)


@dataclass(frozen=True)
class AdjustmentFactors:
    """Multiplicative parameter scalars derived from backtests"""
    stop_loss: Optional[float] = 1.0
    target: Optional[float] = 1.0
    trailing_stop: Optional[float] = 1.0


@dataclass(frozen=True)
class PerformanceMetrics:
    """Backtest performance for a (time of day, session type, volatility) bucket"""
    win_rate: Optional[float] = None
    profit_factor: Optional[float] = None
    sample_size: int = 0
    average_rr: Optional[float] = None
    adjustment_factors: Optional[AdjustmentFactors] = None


@dataclass(frozen=True)
class Resolution:
    """Resolver output: the selected template and how it was found"""
    template: Template
    tier: ResolutionTier
    warnings: tuple[str, ...] = ()

    @property
    def is_fallback(self) -> bool:
        return self.tier == ResolutionTier.FALLBACK


@dataclass(frozen=True)
class Recommendation:
    """Final engine output returned to the API layer"""
    original_template: Template
    adjusted_template: Template
    market_conditions: MarketConditions
    tier: ResolutionTier
    is_fallback: bool
    match_score: int
    confidence: str
    performance_metrics: Optional[PerformanceMetrics] = None
    warnings: tuple[str, ...] = ()
