"""
FALLBACK TEMPLATE GENERATOR (ENGINE-5)
Synthesize a usable template when no stored template applies

RESPONSIBILITIES:
- Deterministic defaults keyed by volatility tier and trend strength
- Used as the resolver's terminal tier and on collaborator failure

RULES:
❌ No I/O, no randomness
❌ Generated templates are never persisted
✅ Same inputs always produce equal templates
"""

from typing import Any, Dict, Optional

from app.domain.models import (
    MarketConditions,
    Template,
    TemplateType,
    VolatilityLevel,
)


# (LOW, MEDIUM, HIGH)
FLAZH_DEFAULTS = {
    "stop_loss": (8, 12, 15),
    "target": (16, 24, 30),
    "trailing_stop": (4, 6, 8),
    "market_noise_filter": (30, 50, 70),
}

ATM_DEFAULTS = {
    "stop_loss": (6, 9, 12),
    "scalp_target": (10, 15, 20),
    "runner_target": (18, 25, 30),
    "break_even_trigger": (4, 6, 8),
    "bracket_width": ("Narrow", "Standard", "Wide"),
}

STRONG_TREND_RUNNER_EXTENSION = 1.5

_TIER_INDEX = {
    VolatilityLevel.LOW: 0,
    VolatilityLevel.MEDIUM: 1,
    VolatilityLevel.HIGH: 2,
}


class FallbackTemplateGenerator:
    """
    Fallback Template Generator
    Produces synthetic, clearly-flagged templates
    """

    def generate(
        self,
        template_type: TemplateType,
        conditions: Optional[MarketConditions] = None
    ) -> Template:
        """
        Generate a fallback template

        Args:
            template_type: ATM or FLAZH
            conditions: Market conditions (volatility and trend are used)

        Returns:
            Template flagged is_fallback with match_score 0
        """
        template_type = TemplateType.parse(template_type)
        conditions = conditions or MarketConditions()

        volatility = self._effective_volatility(conditions.volatility)
        tier = _TIER_INDEX[volatility]
        strong_trend = conditions.is_strong_trend

        if template_type == TemplateType.FLAZH:
            parameters = self._flazh_parameters(tier, strong_trend)
        else:
            parameters = self._atm_parameters(tier, strong_trend)

        return Template(
            id=None,
            template_type=template_type,
            name=f"Fallback {template_type.value} ({volatility.value.lower()} volatility)",
            conditions=MarketConditions(
                session=None,
                volatility=volatility,
                trend=conditions.trend,
            ),
            parameters=parameters,
            description="System-generated fallback template when no matching templates found",
            match_score=0,
            is_fallback=True,
        )

    @staticmethod
    def _effective_volatility(volatility: Optional[VolatilityLevel]) -> VolatilityLevel:
        if volatility in _TIER_INDEX:
            return volatility
        return VolatilityLevel.MEDIUM

    @staticmethod
    def _flazh_parameters(tier: int, strong_trend: bool) -> Dict[str, Any]:
        return {
            "stop_loss": FLAZH_DEFAULTS["stop_loss"][tier],
            "target": FLAZH_DEFAULTS["target"][tier],
            "trailing_stop": FLAZH_DEFAULTS["trailing_stop"][tier],
            "entry_filter": 50,
            "market_noise_filter": FLAZH_DEFAULTS["market_noise_filter"][tier],
            "trend_strength_threshold": 80 if strong_trend else 50,
            "fast_period": 5,
            "medium_period": 10,
            "slow_period": 20,
            "fast_range": 6,
            "medium_range": 12,
            "slow_range": 24,
            "filter_multiplier": 2,
        }

    @staticmethod
    def _atm_parameters(tier: int, strong_trend: bool) -> Dict[str, Any]:
        stop_loss = ATM_DEFAULTS["stop_loss"][tier]
        runner_target = ATM_DEFAULTS["runner_target"][tier]
        if strong_trend:
            runner_target = int(runner_target * STRONG_TREND_RUNNER_EXTENSION + 0.5)

        def bracket(target: int) -> Dict[str, Any]:
            return {
                "quantity": 1,
                "stop_loss": stop_loss,
                "target": target,
                "stop_strategy": {
                    "auto_break_even_profit_trigger": ATM_DEFAULTS["break_even_trigger"][tier],
                    "auto_break_even_plus": 1,
                },
            }

        return {
            "calculation_mode": "Ticks",
            "bracket_width": ATM_DEFAULTS["bracket_width"][tier],
            "brackets": [
                bracket(ATM_DEFAULTS["scalp_target"][tier]),
                bracket(runner_target),
            ],
        }
