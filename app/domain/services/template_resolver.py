"""
PROGRESSIVE SELECTION RESOLVER (ENGINE-3)
Find the best stored template for market conditions, relaxing criteria
tier by tier until something usable is found

TIERS:
1. EXACT               session + volatility + day of week
2. RELAXED             session + volatility, any-day templates
3. DEGRADED_VOLATILITY session + MEDIUM volatility, any-day templates
4. SESSION_ONLY        session, any-day templates
5. BEST_EFFORT         highest similarity score, accepted above threshold
6. EXHAUSTION          first template of the type
7. FALLBACK            synthesized template

RULES:
❌ Never raises for repository failures or timeouts
❌ No state carried between tiers besides the query inputs
✅ Always returns a template
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Optional, Protocol, TypeVar

from app.domain.models import (
    DayOfWeek,
    MarketConditions,
    Resolution,
    ResolutionTier,
    Template,
    TemplateType,
    TradingSession,
    VolatilityLevel,
)
from app.domain.services.config_engine import ResolverConfig
from app.domain.services.fallback_template_generator import FallbackTemplateGenerator
from app.domain.services.similarity_scorer import SimilarityScorer

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TemplateFilter:
    """
    Repository predicate

    None fields are not filtered on. unscheduled_only restricts the
    result to templates without a day-of-week tag.
    """
    session: Optional[TradingSession] = None
    volatility: Optional[VolatilityLevel] = None
    day_of_week: Optional[DayOfWeek] = None
    unscheduled_only: bool = False

    def matches(self, template: Template) -> bool:
        """In-memory evaluation, mirrors the SQL translation"""
        tagged = template.conditions
        if self.session is not None and tagged.session != self.session:
            return False
        if self.volatility is not None and tagged.volatility != self.volatility:
            return False
        if self.day_of_week is not None and tagged.day_of_week != self.day_of_week:
            return False
        if self.unscheduled_only and tagged.day_of_week is not None:
            return False
        return True


class TemplateRepository(Protocol):
    """Protocol for template data access - ASYNC"""

    async def find(self, template_type: TemplateType, predicate: TemplateFilter) -> list[Template]:
        """Get all templates of a type matching the predicate"""
        ...

    async def find_one(self, template_type: TemplateType, predicate: TemplateFilter) -> Optional[Template]:
        """Get the first template of a type matching the predicate"""
        ...

    async def all(self, template_type: TemplateType) -> list[Template]:
        """Get all templates of a type in natural order"""
        ...


class TemplateResolver:
    """
    Progressive Selection Resolver
    Ordered relaxation over the template repository
    """

    def __init__(
        self,
        repository: TemplateRepository,
        scorer: Optional[SimilarityScorer] = None,
        fallback_generator: Optional[FallbackTemplateGenerator] = None,
        config: Optional[ResolverConfig] = None
    ):
        """Initialize with repository and collaborators"""
        self.repository = repository
        self.scorer = scorer or SimilarityScorer()
        self.fallback_generator = fallback_generator or FallbackTemplateGenerator()
        self.config = config or ResolverConfig()

    async def resolve(self, template_type: TemplateType, conditions: MarketConditions) -> Template:
        """Resolve a template (never fails)"""
        resolution = await self.resolve_detailed(template_type, conditions)
        return resolution.template

    async def resolve_detailed(
        self,
        template_type: TemplateType,
        conditions: MarketConditions
    ) -> Resolution:
        """
        Resolve a template and report which tier produced it

        Args:
            template_type: ATM or FLAZH
            conditions: Current market conditions

        Returns:
            Resolution with template, tier and warnings
        """
        template_type = TemplateType.parse(template_type)

        try:
            resolution = await self._run_tiers(template_type, conditions)
        except asyncio.TimeoutError:
            logger.error(
                f"Template repository timed out after "
                f"{self.config.repository_timeout_seconds}s; using fallback {template_type.value} template"
            )
            return self._fallback(template_type, conditions, "Template repository timed out")
        except Exception as e:
            logger.error(f"Template repository query failed: {e}; using fallback {template_type.value} template")
            return self._fallback(template_type, conditions, "Template repository unavailable")

        if resolution is None:
            logger.warning(f"No stored {template_type.value} templates; using fallback")
            return self._fallback(template_type, conditions)

        logger.info(
            f"Resolved {template_type.value} template '{resolution.template.name}' "
            f"via {resolution.tier.value} tier (score={resolution.template.match_score})"
        )
        return resolution

    async def _run_tiers(
        self,
        template_type: TemplateType,
        conditions: MarketConditions
    ) -> Optional[Resolution]:
        """Try tiers 1-6 in order; None when the repository has nothing"""
        session = conditions.session
        volatility = conditions.volatility

        # Tiers 1-4 need a concrete session to query by
        if session is not None and session != TradingSession.UNKNOWN:
            if conditions.day_of_week is not None:
                found = await self._find_one(template_type, TemplateFilter(
                    session=session,
                    volatility=volatility,
                    day_of_week=conditions.day_of_week,
                ))
                if found:
                    return self._selected(found, ResolutionTier.EXACT, conditions)

            found = await self._find_one(template_type, TemplateFilter(
                session=session,
                volatility=volatility,
                unscheduled_only=True,
            ))
            if found:
                return self._selected(found, ResolutionTier.RELAXED, conditions)

            if volatility != VolatilityLevel.MEDIUM:
                found = await self._find_one(template_type, TemplateFilter(
                    session=session,
                    volatility=VolatilityLevel.MEDIUM,
                    unscheduled_only=True,
                ))
                if found:
                    return self._selected(found, ResolutionTier.DEGRADED_VOLATILITY, conditions)

            found = await self._find_one(template_type, TemplateFilter(
                session=session,
                unscheduled_only=True,
            ))
            if found:
                return self._selected(found, ResolutionTier.SESSION_ONLY, conditions)

        candidates = await self._bounded(self.repository.all(template_type))
        if not candidates:
            return None

        ranked = self.scorer.rank(conditions, candidates)
        best = ranked[0]
        if best.match_score > self.config.best_effort_min_score:
            return Resolution(template=best, tier=ResolutionTier.BEST_EFFORT)

        logger.info(
            f"Best {template_type.value} similarity {best.match_score} "
            f"<= {self.config.best_effort_min_score}; taking first stored template"
        )
        return self._selected(candidates[0], ResolutionTier.EXHAUSTION, conditions)

    async def _find_one(self, template_type: TemplateType, predicate: TemplateFilter) -> Optional[Template]:
        return await self._bounded(self.repository.find_one(template_type, predicate))

    async def _bounded(self, call: Awaitable[T]) -> T:
        return await asyncio.wait_for(call, timeout=self.config.repository_timeout_seconds)

    def _selected(self, template: Template, tier: ResolutionTier, conditions: MarketConditions) -> Resolution:
        score = self.scorer.score(conditions, template.conditions)
        return Resolution(template=template.with_match_score(score), tier=tier)

    def _fallback(
        self,
        template_type: TemplateType,
        conditions: MarketConditions,
        warning: Optional[str] = None
    ) -> Resolution:
        template = self.fallback_generator.generate(template_type, conditions)
        warnings = (warning,) if warning else ()
        return Resolution(template=template, tier=ResolutionTier.FALLBACK, warnings=warnings)
