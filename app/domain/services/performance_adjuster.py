"""
PERFORMANCE-BASED ADJUSTER (ENGINE-4)
Rescale a selected template's parameters from backtest performance

RESPONSIBILITIES:
- Apply stop / target / trailing adjustment factors in integer ticks
- FLAZH: moving-average periods, ranges and filter multiplier tuning
- ATM: bracket width and calculation mode tuning

RULES:
❌ Never mutates the input template
❌ Never persists adjusted templates
✅ Degenerate factors (missing, zero, negative, NaN) become 1.0
✅ Every scaled tick field stays >= 1
"""

import logging
import math
from typing import Any, Dict, Iterable, MutableMapping, Optional, Protocol

from app.domain.models import (
    AdjustmentFactors,
    PerformanceMetrics,
    Template,
    TemplateType,
)
from app.domain.services.config_engine import AdjusterConfig
from app.domain.services.similarity_scorer import round_half_up

logger = logging.getLogger(__name__)


STOP_LOSS_FIELDS = ("stop_loss",)
TARGET_FIELDS = ("target",)
TRAILING_STOP_FIELDS = (
    "trailing_stop",
    "auto_break_even_plus",
    "auto_break_even_profit_trigger",
)

# (factor, floor) per moving average
HIGH_VOLATILITY_PERIODS = {
    "fast_period": (0.8, 3),
    "medium_period": (0.85, 6),
    "slow_period": (0.9, 10),
}
LOW_VOLATILITY_PERIODS = {
    "fast_period": 1.2,
    "medium_period": 1.15,
    "slow_period": 1.1,
}
RANGE_FIELDS = ("fast_range", "medium_range", "slow_range")

LOW_PROFIT_FACTOR = 1.3
HIGH_PROFIT_FACTOR = 1.8


class PerformanceStore(Protocol):
    """Protocol for backtest performance access - ASYNC"""

    async def get_metrics(
        self,
        time_of_day: str,
        session_type: str,
        volatility_score: float
    ) -> Optional[PerformanceMetrics]:
        """Get aggregated metrics for a performance bucket"""
        ...


class PerformanceAdjuster:
    """
    Performance-Based Adjuster
    Pure transformation: Template -> new Template
    """

    def __init__(self, config: Optional[AdjusterConfig] = None):
        """Initialize with adjustment bounds"""
        self.config = config or AdjusterConfig()

    def adjust(
        self,
        template: Template,
        performance_metrics: Optional[PerformanceMetrics],
        volatility_score: float
    ) -> Template:
        """
        Adjust template parameters based on performance metrics

        Args:
            template: Selected template (left untouched)
            performance_metrics: Backtest metrics, may be None
            volatility_score: 0-10 volatility score

        Returns:
            New Template; unchanged copy when there is nothing to apply
        """
        if performance_metrics is None or performance_metrics.adjustment_factors is None:
            return template.derive()

        factors = performance_metrics.adjustment_factors
        stop_loss_factor = self.sanitize_factor(factors.stop_loss)
        target_factor = self.sanitize_factor(factors.target)
        trailing_factor = self.sanitize_factor(factors.trailing_stop)

        adjusted = template.derive(name=f"{template.name}{self.config.enhanced_suffix}")
        params: Dict[str, Any] = adjusted.parameters  # fresh deep copy owned by `adjusted`

        for mapping in self._tick_mappings(params):
            self._scale_ticks(mapping, STOP_LOSS_FIELDS, stop_loss_factor)
            self._scale_ticks(mapping, TARGET_FIELDS, target_factor)
            self._scale_ticks(mapping, TRAILING_STOP_FIELDS, trailing_factor)

        if template.template_type == TemplateType.FLAZH:
            self._tune_flazh(params, performance_metrics, volatility_score)
        else:
            self._tune_atm(params, performance_metrics, volatility_score)

        logger.info(
            f"Adjusted {template.template_type.value} template '{template.name}' "
            f"(stop={stop_loss_factor:.2f}, target={target_factor:.2f}, "
            f"trail={trailing_factor:.2f}, volatility_score={volatility_score})"
        )
        return adjusted

    def sanitize_factor(self, factor: Any) -> float:
        """Guard a single factor: degenerate -> 1.0, otherwise clamp to bounds"""
        if not self._is_usable_factor(factor):
            return 1.0
        return min(max(float(factor), self.config.factor_floor), self.config.factor_ceiling)

    def degenerate_factors(self, performance_metrics: Optional[PerformanceMetrics]) -> list[str]:
        """Names of factors that will be replaced by 1.0"""
        if performance_metrics is None or performance_metrics.adjustment_factors is None:
            return []
        factors: AdjustmentFactors = performance_metrics.adjustment_factors
        return [
            name
            for name in ("stop_loss", "target", "trailing_stop")
            if not self._is_usable_factor(getattr(factors, name))
        ]

    @staticmethod
    def _is_usable_factor(factor: Any) -> bool:
        if factor is None or isinstance(factor, bool):
            return False
        try:
            value = float(factor)
        except (TypeError, ValueError):
            return False
        return math.isfinite(value) and value > 0

    @staticmethod
    def _tick_mappings(params: MutableMapping[str, Any]) -> Iterable[MutableMapping[str, Any]]:
        """Top-level params, every ATM bracket and its stop strategy"""
        yield params
        brackets = params.get("brackets")
        if isinstance(brackets, list):
            for bracket in brackets:
                if isinstance(bracket, dict):
                    yield bracket
                    stop_strategy = bracket.get("stop_strategy")
                    if isinstance(stop_strategy, dict):
                        yield stop_strategy

    def _scale_ticks(self, mapping: MutableMapping[str, Any], fields: Iterable[str], factor: float) -> None:
        for key in fields:
            value = mapping.get(key)
            if self._is_tick_value(value):
                mapping[key] = max(self.config.min_ticks, round_half_up(value * factor))

    @staticmethod
    def _is_tick_value(value: Any) -> bool:
        return (
            isinstance(value, (int, float))
            and not isinstance(value, bool)
            and math.isfinite(value)
            and value != 0
        )

    def _tune_flazh(
        self,
        params: MutableMapping[str, Any],
        metrics: PerformanceMetrics,
        volatility_score: float
    ) -> None:
        """
        Moving-average tuning

        Logic:
        - High volatility: shorter periods (floors 3/6/10)
        - Low volatility: longer periods (capped at period_ceiling)
        - Win rate > 60: tighter ranges, else wider
        - Profit factor < 1.3: stronger filter; > 1.8: weaker filter
        """
        cfg = self.config

        if volatility_score > cfg.high_volatility_score:
            for key, (factor, floor) in HIGH_VOLATILITY_PERIODS.items():
                if self._is_tick_value(params.get(key)):
                    params[key] = max(floor, round_half_up(params[key] * factor))
        elif volatility_score < cfg.low_volatility_score:
            for key, factor in LOW_VOLATILITY_PERIODS.items():
                if self._is_tick_value(params.get(key)):
                    params[key] = min(cfg.period_ceiling, round_half_up(params[key] * factor))

        if metrics.win_rate is not None:
            range_factor = 0.9 if metrics.win_rate > cfg.tight_range_win_rate else 1.1
            for key in RANGE_FIELDS:
                if self._is_tick_value(params.get(key)):
                    params[key] = max(cfg.min_ticks, round_half_up(params[key] * range_factor))

        multiplier = params.get("filter_multiplier")
        if metrics.profit_factor is not None and self._is_tick_value(multiplier):
            if metrics.profit_factor < LOW_PROFIT_FACTOR:
                multiplier = multiplier * 1.2
            elif metrics.profit_factor > HIGH_PROFIT_FACTOR:
                multiplier = multiplier * 0.9
            else:
                return
            params["filter_multiplier"] = min(
                cfg.filter_multiplier_max,
                max(cfg.filter_multiplier_min, round_half_up(multiplier)),
            )

    def _tune_atm(
        self,
        params: MutableMapping[str, Any],
        metrics: PerformanceMetrics,
        volatility_score: float
    ) -> None:
        """Bracket width from volatility, calculation mode from win rate"""
        cfg = self.config

        if volatility_score > cfg.wide_bracket_score:
            params["bracket_width"] = "Wide"
        elif volatility_score < cfg.narrow_bracket_score:
            params["bracket_width"] = "Narrow"
        else:
            params["bracket_width"] = "Standard"

        if metrics.win_rate is not None:
            params["calculation_mode"] = (
                "Percent" if metrics.win_rate > cfg.percent_mode_win_rate else "Ticks"
            )
