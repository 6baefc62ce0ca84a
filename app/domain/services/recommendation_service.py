"""
RECOMMENDATION SERVICE (ENGINE-6)
Single entry point: market conditions -> template -> adjusted template

FLOW:
Classifier -> Resolver (Scorer + Repository) -> PerformanceStore -> Adjuster

RULES:
❌ No collaborator failure may prevent a Recommendation
❌ No shared mutable state between requests
✅ Degraded confidence reported via is_fallback / warnings
"""

import asyncio
import logging
from typing import Optional
from zoneinfo import ZoneInfo

from app.domain.models import (
    MarketConditions,
    PerformanceMetrics,
    Recommendation,
    Resolution,
    ResolutionTier,
    Template,
    TemplateType,
)
from app.domain.services.config_engine import EngineConfig
from app.domain.services.fallback_template_generator import FallbackTemplateGenerator
from app.domain.services.market_condition_classifier import (
    MarketConditionClassifier,
    RawMetricsInput,
)
from app.domain.services.performance_adjuster import PerformanceAdjuster, PerformanceStore
from app.domain.services.performance_profile import PerformanceBucket, bucket_for, confidence_for
from app.domain.services.similarity_scorer import SimilarityScorer
from app.domain.services.template_resolver import TemplateRepository, TemplateResolver
from app.utils.time import Clock

logger = logging.getLogger(__name__)


class RecommendationService:
    """
    Recommendation Service
    Request-scoped orchestration of the engine components
    """

    def __init__(
        self,
        template_repository: TemplateRepository,
        performance_store: PerformanceStore,
        clock: Optional[Clock] = None,
        config: Optional[EngineConfig] = None,
        classifier: Optional[MarketConditionClassifier] = None
    ):
        """Initialize with collaborators and engine configuration"""
        self.config = config or EngineConfig()
        self.performance_store = performance_store
        self.classifier = classifier or MarketConditionClassifier(
            clock=clock,
            tz=ZoneInfo(self.config.timezone),
        )
        self.fallback_generator = FallbackTemplateGenerator()
        self.adjuster = PerformanceAdjuster(self.config.adjuster)
        self.resolver = TemplateResolver(
            repository=template_repository,
            scorer=SimilarityScorer(self.config.scoring),
            fallback_generator=self.fallback_generator,
            config=self.config.resolver,
        )

    def current_conditions(self, raw_metrics: RawMetricsInput = None) -> MarketConditions:
        """Classify the current instant"""
        return self.classifier.classify_now(raw_metrics)

    async def recommend(
        self,
        template_type: TemplateType,
        override_conditions: Optional[MarketConditions] = None,
        raw_metrics: RawMetricsInput = None
    ) -> Recommendation:
        """
        Recommend a template for current (or overridden) market conditions

        Args:
            template_type: ATM or FLAZH
            override_conditions: Bypass classification when supplied
            raw_metrics: Readings handed to the classifier

        Returns:
            Recommendation (always)

        Raises:
            ValueError: Unknown template type
        """
        template_type = TemplateType.parse(template_type)
        conditions = override_conditions or self.current_conditions(raw_metrics)

        try:
            return await self._recommend(template_type, conditions)
        except Exception as e:
            logger.exception(f"Recommendation pipeline failed for {template_type.value}: {e}")
            template = self.fallback_generator.generate(template_type, conditions)
            return self._build(
                resolution=Resolution(template=template, tier=ResolutionTier.FALLBACK),
                adjusted=template.derive(),
                conditions=conditions,
                metrics=None,
                warnings=list(conditions.warnings) + ["Recommendation engine error; using fallback template"],
            )

    async def _recommend(self, template_type: TemplateType, conditions: MarketConditions) -> Recommendation:
        warnings = list(conditions.warnings)

        resolution = await self.resolver.resolve_detailed(template_type, conditions)
        warnings.extend(resolution.warnings)

        bucket = bucket_for(conditions)
        if conditions.is_trading_day:
            metrics = await self._fetch_metrics(bucket, warnings)
        else:
            # Backtest buckets only cover weekday sessions
            logger.info(f"Market closed; skipping performance adjustment for {template_type.value}")
            warnings.append("Market closed; template not adjusted")
            metrics = None

        for name in self.adjuster.degenerate_factors(metrics):
            warnings.append(f"Degenerate {name} adjustment factor ignored")

        adjusted = self.adjuster.adjust(resolution.template, metrics, bucket.volatility_score)

        return self._build(resolution, adjusted, conditions, metrics, warnings)

    async def _fetch_metrics(self, bucket: PerformanceBucket, warnings: list[str]) -> Optional[PerformanceMetrics]:
        """Performance lookup; failures degrade to an unadjusted template"""
        try:
            return await asyncio.wait_for(
                self.performance_store.get_metrics(
                    bucket.time_of_day,
                    bucket.session_type,
                    bucket.volatility_score,
                ),
                timeout=self.config.resolver.repository_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Performance store timed out for {bucket}; skipping adjustment")
            warnings.append("Performance data timed out; template not adjusted")
        except Exception as e:
            logger.warning(f"Performance store unavailable for {bucket}: {e}; skipping adjustment")
            warnings.append("Performance data unavailable; template not adjusted")
        return None

    @staticmethod
    def _build(
        resolution: Resolution,
        adjusted: Template,
        conditions: MarketConditions,
        metrics: Optional[PerformanceMetrics],
        warnings: list[str]
    ) -> Recommendation:
        template = resolution.template
        match_score = template.match_score or 0
        return Recommendation(
            original_template=template,
            adjusted_template=adjusted,
            market_conditions=conditions,
            tier=resolution.tier,
            is_fallback=resolution.is_fallback,
            match_score=match_score,
            confidence=confidence_for(match_score),
            performance_metrics=metrics,
            warnings=tuple(warnings),
        )
