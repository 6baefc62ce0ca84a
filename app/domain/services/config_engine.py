"""
CONFIG ENGINE (ENGINE-0)
Load, validate, and expose recommendation engine configuration

RESPONSIBILITIES:
- Load YAML configuration files
- Validate configuration integrity
- Expose read-only typed objects

RULES:
❌ No module-level caches of loaded config
❌ No silent defaults when the config file is missing
✅ Fail fast on invalid config
✅ Deterministic output
"""

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class ScoringConfig:
    """Similarity scorer weights and thresholds"""
    session_weight: float = 40
    volatility_weight: float = 40
    day_of_week_weight: float = 10
    volume_weight: float = 10
    partial_credit: float = 0.5
    min_evaluated_ratio: float = 0.5
    sparse_baseline_score: int = 20

    @property
    def total_weight(self) -> float:
        return (
            self.session_weight
            + self.volatility_weight
            + self.day_of_week_weight
            + self.volume_weight
        )


@dataclass(frozen=True)
class ResolverConfig:
    """Progressive selection settings"""
    best_effort_min_score: int = 40
    repository_timeout_seconds: float = 5.0


@dataclass(frozen=True)
class AdjusterConfig:
    """Performance-based adjustment bounds"""
    factor_floor: float = 0.5
    factor_ceiling: float = 2.0
    min_ticks: int = 1
    period_ceiling: int = 500
    high_volatility_score: float = 6
    low_volatility_score: float = 4
    wide_bracket_score: float = 7
    narrow_bracket_score: float = 3
    percent_mode_win_rate: float = 65
    tight_range_win_rate: float = 60
    filter_multiplier_min: int = 1
    filter_multiplier_max: int = 5
    enhanced_suffix: str = " (Enhanced)"


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration"""
    version: str = "dev"
    timezone: str = "America/New_York"
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    adjuster: AdjusterConfig = field(default_factory=AdjusterConfig)


class ConfigEngine:
    """
    Configuration Engine
    Single source of truth for engine configuration
    """

    CONFIG_FILE = "engine.yml"

    def __init__(self, config_dir: Path):
        """Initialize with config directory"""
        self.config_dir = Path(config_dir)
        self._engine_config: EngineConfig = None

    def load_all(self) -> None:
        """Load all configuration files"""
        self._load_engine_config()
        self._validate_all()

    def _load_engine_config(self) -> None:
        """Load engine settings from engine.yml"""
        engine_file = self.config_dir / self.CONFIG_FILE
        if not engine_file.exists():
            raise FileNotFoundError(f"Engine config not found: {engine_file}")

        with open(engine_file, 'r') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Invalid engine config format in {engine_file}")

        engine = data.get('engine', {})
        scoring = data.get('scoring', {})
        weights = scoring.get('weights', {})
        resolver = data.get('resolver', {})
        adjuster = data.get('adjuster', {})

        self._engine_config = EngineConfig(
            version=str(engine.get('version', EngineConfig.version)),
            timezone=engine.get('timezone', EngineConfig.timezone),
            scoring=ScoringConfig(
                session_weight=float(weights.get('session', 40)),
                volatility_weight=float(weights.get('volatility', 40)),
                day_of_week_weight=float(weights.get('day_of_week', 10)),
                volume_weight=float(weights.get('volume', 10)),
                partial_credit=float(scoring.get('partial_credit', 0.5)),
                min_evaluated_ratio=float(scoring.get('min_evaluated_ratio', 0.5)),
                sparse_baseline_score=int(scoring.get('sparse_baseline_score', 20)),
            ),
            resolver=ResolverConfig(
                best_effort_min_score=int(resolver.get('best_effort_min_score', 40)),
                repository_timeout_seconds=float(resolver.get('repository_timeout_seconds', 5.0)),
            ),
            adjuster=AdjusterConfig(**self._known_keys(AdjusterConfig, adjuster)),
        )

    @staticmethod
    def _known_keys(config_cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Reject unknown keys so typos fail at startup"""
        known = set(config_cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown {config_cls.__name__} keys: {sorted(unknown)}")
        return dict(data)

    def _validate_all(self) -> None:
        """Validate all configurations"""
        cfg = self._engine_config

        try:
            ZoneInfo(cfg.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {cfg.timezone!r}") from None

        weights = [
            cfg.scoring.session_weight,
            cfg.scoring.volatility_weight,
            cfg.scoring.day_of_week_weight,
            cfg.scoring.volume_weight,
        ]
        if any(w < 0 for w in weights) or cfg.scoring.total_weight <= 0:
            raise ValueError("Scoring weights must be non-negative with a positive total")
        if not 0 <= cfg.scoring.partial_credit <= 1:
            raise ValueError("partial_credit must be between 0 and 1")
        if not 0 <= cfg.scoring.min_evaluated_ratio <= 1:
            raise ValueError("min_evaluated_ratio must be between 0 and 1")
        if not 0 <= cfg.scoring.sparse_baseline_score <= 100:
            raise ValueError("sparse_baseline_score must be between 0 and 100")

        if not 0 <= cfg.resolver.best_effort_min_score <= 100:
            raise ValueError("best_effort_min_score must be between 0 and 100")
        if cfg.resolver.repository_timeout_seconds <= 0:
            raise ValueError("repository_timeout_seconds must be positive")

        adj = cfg.adjuster
        if not 0 < adj.factor_floor <= 1 <= adj.factor_ceiling:
            raise ValueError("Adjustment factor bounds must satisfy 0 < floor <= 1 <= ceiling")
        if adj.min_ticks < 1:
            raise ValueError("min_ticks must be at least 1")
        if adj.filter_multiplier_min > adj.filter_multiplier_max:
            raise ValueError("filter_multiplier_min cannot exceed filter_multiplier_max")
        if adj.low_volatility_score > adj.high_volatility_score:
            raise ValueError("low_volatility_score cannot exceed high_volatility_score")
        if adj.narrow_bracket_score > adj.wide_bracket_score:
            raise ValueError("narrow_bracket_score cannot exceed wide_bracket_score")

    # Public getters

    @property
    def engine_config(self) -> EngineConfig:
        """Get typed engine configuration"""
        if self._engine_config is None:
            raise RuntimeError("Config not loaded. Call load_all() first")
        return self._engine_config

    @property
    def engine_version(self) -> str:
        """Get configured engine version"""
        return self.engine_config.version
