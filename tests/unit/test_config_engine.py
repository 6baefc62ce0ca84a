from pathlib import Path

import pytest

from app.domain.services.config_engine import ConfigEngine, EngineConfig

CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


def write_config(tmp_path: Path, body: str) -> Path:
    (tmp_path / "engine.yml").write_text(body)
    return tmp_path


@pytest.mark.unit
def test_config_engine_loads_engine_yml():
    engine = ConfigEngine(CONFIG_DIR)
    engine.load_all()

    cfg = engine.engine_config
    assert engine.engine_version == "2025-Q2"
    assert cfg.timezone == "America/New_York"
    assert cfg.scoring.total_weight == 100
    assert cfg.scoring.session_weight == cfg.scoring.volatility_weight == 40
    assert cfg.resolver.best_effort_min_score == 40
    assert cfg.adjuster.factor_floor == 0.5
    assert cfg.adjuster.factor_ceiling == 2.0
    assert cfg.adjuster.enhanced_suffix == " (Enhanced)"


@pytest.mark.unit
def test_yaml_matches_dataclass_defaults():
    engine = ConfigEngine(CONFIG_DIR)
    engine.load_all()

    defaults = EngineConfig()
    assert engine.engine_config.scoring == defaults.scoring
    assert engine.engine_config.resolver == defaults.resolver
    assert engine.engine_config.adjuster == defaults.adjuster


@pytest.mark.unit
def test_access_before_load_fails():
    engine = ConfigEngine(CONFIG_DIR)

    with pytest.raises(RuntimeError, match="Config not loaded"):
        _ = engine.engine_config
    with pytest.raises(RuntimeError):
        _ = engine.engine_version


@pytest.mark.unit
def test_missing_config_fails_fast(tmp_path):
    engine = ConfigEngine(tmp_path)

    with pytest.raises(FileNotFoundError):
        engine.load_all()


@pytest.mark.unit
def test_empty_file_uses_defaults(tmp_path):
    engine = ConfigEngine(write_config(tmp_path, ""))
    engine.load_all()

    assert engine.engine_config.scoring.total_weight == 100
    assert engine.engine_version == EngineConfig.version


@pytest.mark.unit
@pytest.mark.parametrize("body,message", [
    ("scoring:\n  weights:\n    session: -5\n", "weights"),
    ("scoring:\n  partial_credit: 1.5\n", "partial_credit"),
    ("resolver:\n  repository_timeout_seconds: 0\n", "repository_timeout_seconds"),
    ("adjuster:\n  factor_floor: 1.5\n", "factor bounds"),
    ("adjuster:\n  min_ticks: 0\n", "min_ticks"),
    ("adjuster:\n  stop_loss_factr: 1.2\n", "Unknown AdjusterConfig keys"),
    ("engine:\n  timezone: Mars/Olympus\n", "Unknown timezone"),
    ("- just\n- a list\n", "Invalid engine config"),
])
def test_invalid_config_rejected(tmp_path, body, message):
    engine = ConfigEngine(write_config(tmp_path, body))

    with pytest.raises(ValueError, match=message):
        engine.load_all()
