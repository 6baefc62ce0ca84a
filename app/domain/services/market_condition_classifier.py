"""
MARKET CONDITION CLASSIFIER (ENGINE-1)
Derive structured market conditions from a timestamp and raw readings

RESPONSIBILITIES:
- Map exchange-local time to a trading session
- Bucket a numeric volatility reading
- Parse optional trend / volume readings
- NO TEMPLATE SELECTION, NO INDICATOR CALCULATION

RULES:
❌ Never raises on bad input
✅ Missing or malformed input degrades to defaults plus a warning
✅ Deterministic output
"""

import logging
import math
from datetime import datetime, time, tzinfo
from typing import Any, Mapping, Optional, Union

from app.domain.models import (
    DayOfWeek,
    MarketConditions,
    RawMarketMetrics,
    TradingSession,
    Trend,
    VolatilityLevel,
    VolumeLevel,
)
from app.utils.time import EXCHANGE_TZ, Clock, SystemClock, to_exchange

logger = logging.getLogger(__name__)


# Half-open [start, end) ranges in exchange-local time; a boundary
# minute belongs to the later bucket.
SESSION_TABLE: tuple[tuple[time, time, TradingSession], ...] = (
    (time(0, 0), time(4, 0), TradingSession.OVERNIGHT),
    (time(4, 0), time(10, 30), TradingSession.PRE_MARKET),
    (time(10, 30), time(12, 30), TradingSession.LATE_MORNING),
    (time(12, 30), time(14, 30), TradingSession.EARLY_AFTERNOON),
    (time(14, 30), time(16, 0), TradingSession.PRE_CLOSE),
    (time(16, 0), time(20, 0), TradingSession.AFTER_HOURS),
    (time(20, 0), time.max, TradingSession.OVERNIGHT),
)

WEEKDAYS = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
)

LOW_VOLATILITY_BELOW = 0.5
HIGH_VOLATILITY_ABOVE = 1.5

LOW_VOLUME_RATIO_BELOW = 0.8
HIGH_VOLUME_RATIO_ABOVE = 1.2

VOLUME_ALIASES = {
    "LOW": VolumeLevel.LOW,
    "LIGHT": VolumeLevel.LOW,
    "NORMAL": VolumeLevel.NORMAL,
    "AVERAGE": VolumeLevel.NORMAL,
    "MEDIUM": VolumeLevel.NORMAL,
    "HIGH": VolumeLevel.HIGH,
    "HEAVY": VolumeLevel.HIGH,
}

RawMetricsInput = Union[RawMarketMetrics, Mapping[str, Any], None]


class MarketConditionClassifier:
    """
    Market Condition Classifier
    Turns a timestamp plus raw readings into MarketConditions
    """

    def __init__(self, clock: Optional[Clock] = None, tz: tzinfo = EXCHANGE_TZ):
        """Initialize with an injectable clock and exchange timezone"""
        self.tz = tz
        self.clock = clock or SystemClock(tz)

    def classify_now(self, raw_metrics: RawMetricsInput = None) -> MarketConditions:
        """Classify the current instant from the injected clock"""
        return self.classify(self.clock.now(), raw_metrics)

    def classify(
        self,
        timestamp: Optional[datetime],
        raw_metrics: RawMetricsInput = None
    ) -> MarketConditions:
        """
        Classify market conditions for a given instant

        Args:
            timestamp: Instant to classify (naive = exchange-local)
            raw_metrics: Optional volatility / trend / volume readings

        Returns:
            MarketConditions (never raises)
        """
        warnings: list[str] = []

        if not isinstance(timestamp, datetime):
            warnings.append("Missing or malformed timestamp; session unknown")
            local = None
        else:
            local = to_exchange(timestamp, self.tz)

        if local is not None and local.weekday() >= 5:
            # Weekends never match session-specific templates
            return MarketConditions(
                session=TradingSession.CLOSED,
                volatility=VolatilityLevel.NONE,
                day_of_week=None,
                timestamp=local,
                warnings=tuple(warnings),
            )

        metrics = self._normalize_metrics(raw_metrics, warnings)

        session = self.session_for(local.time()) if local is not None else TradingSession.UNKNOWN
        day_of_week = WEEKDAYS[local.weekday()] if local is not None else None
        volatility = self._classify_volatility(metrics.volatility, warnings)
        trend = self._parse_trend(metrics.trend, warnings)
        volume = self._parse_volume(metrics.volume, warnings)

        for warning in warnings:
            logger.warning(f"Market classification degraded: {warning}")

        return MarketConditions(
            session=session,
            volatility=volatility,
            day_of_week=day_of_week,
            trend=trend,
            volume=volume,
            timestamp=local,
            warnings=tuple(warnings),
        )

    @staticmethod
    def session_for(local_time: time) -> TradingSession:
        """Map an exchange-local wall time to its session bucket"""
        for start, end, session in SESSION_TABLE:
            if start <= local_time < end:
                return session
        # time.max itself falls outside the last half-open range
        return TradingSession.OVERNIGHT

    @staticmethod
    def _normalize_metrics(raw_metrics: RawMetricsInput, warnings: list[str]) -> RawMarketMetrics:
        """Accept a RawMarketMetrics value or a plain mapping"""
        if raw_metrics is None:
            return RawMarketMetrics()
        if isinstance(raw_metrics, RawMarketMetrics):
            return raw_metrics
        if isinstance(raw_metrics, Mapping):
            return RawMarketMetrics(
                volatility=raw_metrics.get("volatility"),
                trend=raw_metrics.get("trend"),
                volume=raw_metrics.get("volume"),
            )
        warnings.append(f"Unsupported market metrics type: {type(raw_metrics).__name__}")
        return RawMarketMetrics()

    @staticmethod
    def _classify_volatility(reading: Any, warnings: list[str]) -> VolatilityLevel:
        """
        Bucket a volatility reading

        Logic:
        - LOW: reading < 0.5
        - MEDIUM: 0.5 <= reading <= 1.5 (or reading absent)
        - HIGH: reading > 1.5
        """
        if reading is None:
            return VolatilityLevel.MEDIUM

        if isinstance(reading, bool):
            warnings.append(f"Malformed volatility reading {reading!r}; using MEDIUM")
            return VolatilityLevel.MEDIUM

        if isinstance(reading, VolatilityLevel) and reading != VolatilityLevel.NONE:
            return reading

        if isinstance(reading, str):
            try:
                return VolatilityLevel(reading.strip().upper())
            except ValueError:
                pass

        try:
            value = float(reading)
        except (TypeError, ValueError):
            warnings.append(f"Malformed volatility reading {reading!r}; using MEDIUM")
            return VolatilityLevel.MEDIUM

        if math.isnan(value) or value < 0:
            warnings.append(f"Invalid volatility reading {reading!r}; using MEDIUM")
            return VolatilityLevel.MEDIUM

        if value < LOW_VOLATILITY_BELOW:
            return VolatilityLevel.LOW
        if value > HIGH_VOLATILITY_ABOVE:
            return VolatilityLevel.HIGH
        return VolatilityLevel.MEDIUM

    @staticmethod
    def _parse_trend(reading: Any, warnings: list[str]) -> Optional[Trend]:
        """Parse a trend label such as "strong up" or "neutral" """
        if reading is None or isinstance(reading, Trend):
            return reading
        if isinstance(reading, str):
            key = reading.strip().upper().replace("-", "_").replace(" ", "_")
            try:
                return Trend(key)
            except ValueError:
                pass
        warnings.append(f"Unrecognised trend reading {reading!r}; ignoring")
        return None

    @staticmethod
    def _parse_volume(reading: Any, warnings: list[str]) -> Optional[VolumeLevel]:
        """Parse a volume category or a relative-volume ratio"""
        if reading is None or isinstance(reading, VolumeLevel):
            return reading

        if isinstance(reading, str):
            level = VOLUME_ALIASES.get(reading.strip().upper())
            if level is not None:
                return level
            try:
                reading = float(reading)
            except ValueError:
                warnings.append(f"Unrecognised volume reading {reading!r}; ignoring")
                return None

        if isinstance(reading, bool) or not isinstance(reading, (int, float)):
            warnings.append(f"Unrecognised volume reading {reading!r}; ignoring")
            return None

        ratio = float(reading)
        if math.isnan(ratio) or ratio < 0:
            warnings.append(f"Invalid volume ratio {reading!r}; ignoring")
            return None
        if ratio < LOW_VOLUME_RATIO_BELOW:
            return VolumeLevel.LOW
        if ratio > HIGH_VOLUME_RATIO_ABOVE:
            return VolumeLevel.HIGH
        return VolumeLevel.NORMAL
