"""
Performance profile helpers

Maps market conditions onto the (time of day, session type, volatility
score) buckets backtests are aggregated by, and holds the volatility /
session adjustment tables applied to backtest-derived factors.
"""

from dataclasses import dataclass

from app.domain.models import (
    AdjustmentFactors,
    MarketConditions,
    TradingSession,
    VolatilityLevel,
)

MORNING = "Morning"
AFTERNOON = "Afternoon"
EVENING = "Evening"

REGULAR = "Regular"
HIGH_VOLATILITY = "High Volatility"
LOW_VOLATILITY = "Low Volatility"

_TIME_OF_DAY = {
    TradingSession.PRE_MARKET: MORNING,
    TradingSession.LATE_MORNING: MORNING,
    TradingSession.EARLY_AFTERNOON: AFTERNOON,
    TradingSession.PRE_CLOSE: AFTERNOON,
    TradingSession.AFTER_HOURS: EVENING,
    TradingSession.OVERNIGHT: EVENING,
}

_VOLATILITY_SCORE = {
    VolatilityLevel.HIGH: 8.0,
    VolatilityLevel.MEDIUM: 5.0,
    VolatilityLevel.LOW: 2.0,
}

DEFAULT_VOLATILITY_SCORE = 5.0


@dataclass(frozen=True)
class PerformanceBucket:
    """Lookup key for backtest performance"""
    time_of_day: str
    session_type: str
    volatility_score: float


def time_of_day_for(session: TradingSession) -> str:
    return _TIME_OF_DAY.get(session, AFTERNOON)


def session_type_for(volatility: VolatilityLevel) -> str:
    if volatility == VolatilityLevel.HIGH:
        return HIGH_VOLATILITY
    if volatility == VolatilityLevel.LOW:
        return LOW_VOLATILITY
    return REGULAR


def volatility_score_for(volatility: VolatilityLevel) -> float:
    """0-10 volatility score; fixed per category so results stay reproducible"""
    return _VOLATILITY_SCORE.get(volatility, DEFAULT_VOLATILITY_SCORE)


def bucket_for(conditions: MarketConditions) -> PerformanceBucket:
    return PerformanceBucket(
        time_of_day=time_of_day_for(conditions.session),
        session_type=session_type_for(conditions.volatility),
        volatility_score=volatility_score_for(conditions.volatility),
    )


def volatility_adjustments(volatility_score: float) -> AdjustmentFactors:
    """
    Stop / target / trailing scalars by volatility score

    Logic:
    - score > 7: wider stops, higher targets
    - score > 4: slight widening
    - otherwise: tighter, more conservative
    """
    if volatility_score > 7:
        return AdjustmentFactors(stop_loss=1.3, target=1.2, trailing_stop=1.15)
    if volatility_score > 4:
        return AdjustmentFactors(stop_loss=1.1, target=1.05, trailing_stop=1.05)
    return AdjustmentFactors(stop_loss=0.85, target=0.9, trailing_stop=0.95)


def session_adjustments(time_of_day: str) -> AdjustmentFactors:
    """Stop / target / trailing scalars by time of day"""
    if time_of_day == MORNING:
        return AdjustmentFactors(stop_loss=1.15, target=1.1, trailing_stop=1.05)
    if time_of_day == EVENING:
        return AdjustmentFactors(stop_loss=0.9, target=0.95, trailing_stop=0.95)
    return AdjustmentFactors(stop_loss=1.0, target=1.0, trailing_stop=1.0)


def combined_adjustments(time_of_day: str, volatility_score: float) -> AdjustmentFactors:
    """Multiply volatility and session scalars together"""
    vol = volatility_adjustments(volatility_score)
    ses = session_adjustments(time_of_day)
    return AdjustmentFactors(
        stop_loss=round(vol.stop_loss * ses.stop_loss, 4),
        target=round(vol.target * ses.target, 4),
        trailing_stop=round(vol.trailing_stop * ses.trailing_stop, 4),
    )


def confidence_for(match_score: int) -> str:
    """Human-readable confidence label for a 0-100 match score"""
    if match_score >= 80:
        return "high"
    if match_score >= 60:
        return "medium-high"
    if match_score >= 40:
        return "medium"
    if match_score >= 20:
        return "medium-low"
    return "low"
