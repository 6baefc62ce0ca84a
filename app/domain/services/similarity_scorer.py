"""
SIMILARITY SCORER (ENGINE-2)
Score how well a template's tagged conditions match the current market

RESPONSIBILITIES:
- Weighted per-field agreement (session, volatility, day of week, volume)
- Partial credit for neighbouring sessions / volatility levels
- Baseline score for sparsely tagged templates

RULES:
❌ No I/O
❌ Missing data is never penalized (wildcard fields are skipped)
✅ Pure function, score always in [0, 100]
"""

import math
from typing import Iterable, Optional

from app.domain.models import (
    MarketConditions,
    Template,
    TradingSession,
    VolatilityLevel,
)
from app.domain.services.config_engine import ScoringConfig


VOLATILITY_ORDER = {
    VolatilityLevel.LOW: 0,
    VolatilityLevel.MEDIUM: 1,
    VolatilityLevel.HIGH: 2,
}

MORNING_SESSIONS = frozenset({
    TradingSession.PRE_MARKET,
    TradingSession.LATE_MORNING,
})

AFTERNOON_EVENING_SESSIONS = frozenset({
    TradingSession.EARLY_AFTERNOON,
    TradingSession.PRE_CLOSE,
    TradingSession.AFTER_HOURS,
    TradingSession.OVERNIGHT,
})

SESSION_GROUPS = (MORNING_SESSIONS, AFTERNOON_EVENING_SESSIONS)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives"""
    return int(math.floor(value + 0.5))


class SimilarityScorer:
    """
    Similarity Scorer
    Weighted field agreement between two MarketConditions values
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        """Initialize with scoring weights"""
        self.config = config or ScoringConfig()

    def score(
        self,
        current: MarketConditions,
        template_conditions: Optional[MarketConditions]
    ) -> int:
        """
        Score template conditions against current conditions

        Args:
            current: Conditions of the request
            template_conditions: Conditions the template was tagged for

        Returns:
            Integer score in [0, 100]
        """
        if current is None or template_conditions is None:
            return self.config.sparse_baseline_score

        cfg = self.config
        earned = 0.0
        evaluated = 0.0

        session_credit = self._session_credit(current.session, template_conditions.session)
        if session_credit is not None:
            evaluated += cfg.session_weight
            earned += cfg.session_weight * session_credit

        volatility_credit = self._volatility_credit(current.volatility, template_conditions.volatility)
        if volatility_credit is not None:
            evaluated += cfg.volatility_weight
            earned += cfg.volatility_weight * volatility_credit

        if current.day_of_week is not None and template_conditions.day_of_week is not None:
            evaluated += cfg.day_of_week_weight
            if current.day_of_week == template_conditions.day_of_week:
                earned += cfg.day_of_week_weight

        if current.volume is not None and template_conditions.volume is not None:
            evaluated += cfg.volume_weight
            if current.volume == template_conditions.volume:
                earned += cfg.volume_weight

        # Sparse tags would otherwise look deceptively perfect
        if evaluated <= 0 or evaluated < cfg.total_weight * cfg.min_evaluated_ratio:
            return cfg.sparse_baseline_score

        score = round_half_up(earned / evaluated * 100)
        return max(0, min(100, score))

    def rank(self, current: MarketConditions, templates: Iterable[Template]) -> list[Template]:
        """
        Annotate templates with their score, best first

        Ties keep the incoming (repository) order.
        """
        scored = [t.with_match_score(self.score(current, t.conditions)) for t in templates]
        return sorted(scored, key=lambda t: t.match_score, reverse=True)

    def _session_credit(
        self,
        current: Optional[TradingSession],
        tagged: Optional[TradingSession]
    ) -> Optional[float]:
        """Credit share for the session field, None when not evaluable"""
        if current is None or tagged is None:
            return None
        if TradingSession.UNKNOWN in (current, tagged):
            return None
        if current == tagged:
            return 1.0
        for group in SESSION_GROUPS:
            if current in group and tagged in group:
                return self.config.partial_credit
        return 0.0

    def _volatility_credit(
        self,
        current: Optional[VolatilityLevel],
        tagged: Optional[VolatilityLevel]
    ) -> Optional[float]:
        """Credit share for the volatility field, None when not evaluable"""
        if current is None or tagged is None:
            return None
        if current == tagged:
            return 1.0
        if current in VOLATILITY_ORDER and tagged in VOLATILITY_ORDER:
            if abs(VOLATILITY_ORDER[current] - VOLATILITY_ORDER[tagged]) == 1:
                return self.config.partial_credit
        return 0.0
