"""
Unit Tests for PerformanceAdjuster
"""

import math

import pytest

from app.domain.models import (
    AdjustmentFactors,
    MarketConditions,
    PerformanceMetrics,
    TemplateType,
    VolatilityLevel,
)
from app.domain.services.fallback_template_generator import FallbackTemplateGenerator
from app.domain.services.performance_adjuster import PerformanceAdjuster
from tests.fakes import make_template


@pytest.fixture
def adjuster():
    return PerformanceAdjuster()


def metrics(stop_loss=1.0, target=1.0, trailing_stop=1.0, win_rate=None, profit_factor=None):
    return PerformanceMetrics(
        win_rate=win_rate,
        profit_factor=profit_factor,
        sample_size=10,
        adjustment_factors=AdjustmentFactors(stop_loss=stop_loss, target=target, trailing_stop=trailing_stop),
    )


def flazh_template(**params):
    defaults = {
        "stop_loss": 10,
        "target": 20,
        "trailing_stop": 5,
        "fast_period": 5,
        "medium_period": 10,
        "slow_period": 20,
        "fast_range": 6,
        "medium_range": 12,
        "slow_range": 24,
        "filter_multiplier": 3,
    }
    defaults.update(params)
    return make_template("Trend Rider", parameters=defaults, template_id=7)


def atm_template():
    return FallbackTemplateGenerator().generate(
        TemplateType.ATM, MarketConditions(volatility=VolatilityLevel.MEDIUM)
    )


@pytest.mark.unit
class TestNoOp:

    def test_no_metrics_returns_equal_copy(self, adjuster):
        template = flazh_template()
        adjusted = adjuster.adjust(template, None, 5.0)

        assert adjusted == template
        assert adjusted is not template
        assert adjusted.parameters is not template.parameters

    def test_metrics_without_factors_is_noop(self, adjuster):
        template = atm_template()
        adjusted = adjuster.adjust(template, PerformanceMetrics(win_rate=80.0), 9.0)

        assert adjusted == template


@pytest.mark.unit
class TestTickScaling:

    def test_factors_applied(self, adjuster):
        template = flazh_template()
        adjusted = adjuster.adjust(template, metrics(stop_loss=1.5, target=1.2, trailing_stop=0.8), 5.0)

        assert adjusted.parameters["stop_loss"] == 15
        assert adjusted.parameters["target"] == 24
        assert adjusted.parameters["trailing_stop"] == 4
        assert adjusted.name == "Trend Rider (Enhanced)"
        assert adjusted.id == template.id

    def test_input_template_not_mutated(self, adjuster):
        template = flazh_template()
        before = dict(template.parameters)

        adjuster.adjust(template, metrics(stop_loss=2.0, win_rate=90, profit_factor=1.0), 9.0)

        assert dict(template.parameters) == before
        assert template.name == "Trend Rider"

    @pytest.mark.parametrize("factor,expected", [
        (3.0, 20),
        (0.1, 5),
    ])
    def test_factors_clamped(self, adjuster, factor, expected):
        adjusted = adjuster.adjust(flazh_template(), metrics(stop_loss=factor), 5.0)
        assert adjusted.parameters["stop_loss"] == expected

    @pytest.mark.parametrize("factor", [x / 10 for x in range(1, 31)])
    def test_tick_floor(self, adjuster, factor):
        template = make_template("Tiny", parameters={"stop_loss": 1, "target": 1, "trailing_stop": 1})
        adjusted = adjuster.adjust(
            template,
            metrics(stop_loss=factor, target=factor, trailing_stop=factor),
            5.0,
        )

        for key in ("stop_loss", "target", "trailing_stop"):
            assert isinstance(adjusted.parameters[key], int)
            assert adjusted.parameters[key] >= 1

    @pytest.mark.parametrize("factor", [x / 10 for x in range(1, 31)])
    def test_tick_floor_atm_brackets(self, adjuster, factor):
        adjusted = adjuster.adjust(
            atm_template(),
            metrics(stop_loss=factor, target=factor, trailing_stop=factor),
            5.0,
        )

        for bracket in adjusted.parameters["brackets"]:
            assert bracket["stop_loss"] >= 1
            assert bracket["target"] >= 1
            assert bracket["stop_strategy"]["auto_break_even_profit_trigger"] >= 1
            assert bracket["stop_strategy"]["auto_break_even_plus"] >= 1

    def test_atm_bracket_scaling(self, adjuster):
        adjusted = adjuster.adjust(atm_template(), metrics(stop_loss=2.0, target=1.0, trailing_stop=0.5), 5.0)
        scalp, runner = adjusted.parameters["brackets"]

        assert scalp["stop_loss"] == runner["stop_loss"] == 18
        assert scalp["target"] == 15
        assert runner["target"] == 25
        assert scalp["stop_strategy"]["auto_break_even_profit_trigger"] == 3
        assert scalp["stop_strategy"]["auto_break_even_plus"] == 1

    def test_zero_and_missing_fields_skipped(self, adjuster):
        template = make_template("Sparse", parameters={"stop_loss": 0, "note": "manual"})
        adjusted = adjuster.adjust(template, metrics(stop_loss=2.0), 5.0)

        assert adjusted.parameters == {"stop_loss": 0, "note": "manual"}


@pytest.mark.unit
class TestDegenerateFactors:

    def test_degenerate_factors_become_identity(self, adjuster):
        template = flazh_template()
        adjusted = adjuster.adjust(
            template,
            metrics(stop_loss=0, target=float("nan"), trailing_stop=-1.0),
            5.0,
        )

        assert adjusted.parameters["stop_loss"] == 10
        assert adjusted.parameters["target"] == 20
        assert adjusted.parameters["trailing_stop"] == 5

    def test_degenerate_factor_names(self, adjuster):
        names = adjuster.degenerate_factors(metrics(stop_loss=None, target=float("inf"), trailing_stop=1.1))
        assert names == ["stop_loss", "target"]

    def test_no_degenerate_factors_without_metrics(self, adjuster):
        assert adjuster.degenerate_factors(None) == []

    @pytest.mark.parametrize("factor,expected", [
        (None, 1.0),
        (0, 1.0),
        (-2, 1.0),
        (float("nan"), 1.0),
        ("abc", 1.0),
        (True, 1.0),
        (1.3, 1.3),
        (10, 2.0),
        (0.2, 0.5),
    ])
    def test_sanitize_factor(self, adjuster, factor, expected):
        assert math.isclose(adjuster.sanitize_factor(factor), expected)


@pytest.mark.unit
class TestFlazhTuning:

    def test_high_volatility_shortens_periods(self, adjuster):
        adjusted = adjuster.adjust(flazh_template(medium_period=20), metrics(), 8.0)

        assert adjusted.parameters["fast_period"] == 4
        assert adjusted.parameters["medium_period"] == 17
        assert adjusted.parameters["slow_period"] == 18

    def test_period_floors(self, adjuster):
        template = flazh_template(fast_period=2, medium_period=4, slow_period=8)
        adjusted = adjuster.adjust(template, metrics(), 8.0)

        assert adjusted.parameters["fast_period"] == 3
        assert adjusted.parameters["medium_period"] == 6
        assert adjusted.parameters["slow_period"] == 10

    def test_low_volatility_lengthens_periods(self, adjuster):
        adjusted = adjuster.adjust(flazh_template(medium_period=20), metrics(), 2.0)

        assert adjusted.parameters["fast_period"] == 6
        assert adjusted.parameters["medium_period"] == 23
        assert adjusted.parameters["slow_period"] == 22

    def test_medium_volatility_keeps_periods(self, adjuster):
        adjusted = adjuster.adjust(flazh_template(), metrics(), 5.0)
        assert adjusted.parameters["fast_period"] == 5

    def test_high_win_rate_tightens_ranges(self, adjuster):
        adjusted = adjuster.adjust(flazh_template(), metrics(win_rate=70.0), 5.0)

        assert adjusted.parameters["fast_range"] == 5
        assert adjusted.parameters["medium_range"] == 11
        assert adjusted.parameters["slow_range"] == 22

    def test_low_win_rate_widens_ranges(self, adjuster):
        adjusted = adjuster.adjust(flazh_template(), metrics(win_rate=50.0), 5.0)

        assert adjusted.parameters["fast_range"] == 7
        assert adjusted.parameters["medium_range"] == 13
        assert adjusted.parameters["slow_range"] == 26

    @pytest.mark.parametrize("start,profit_factor,expected", [
        (3, 1.0, 4),
        (5, 1.0, 5),
        (3, 2.5, 3),
        (1, 2.5, 1),
        (3, 1.5, 3),
    ])
    def test_filter_multiplier(self, adjuster, start, profit_factor, expected):
        template = flazh_template(filter_multiplier=start)
        adjusted = adjuster.adjust(template, metrics(profit_factor=profit_factor), 5.0)

        assert adjusted.parameters["filter_multiplier"] == expected


@pytest.mark.unit
class TestAtmTuning:

    @pytest.mark.parametrize("score,width", [
        (8.0, "Wide"),
        (5.0, "Standard"),
        (2.0, "Narrow"),
    ])
    def test_bracket_width(self, adjuster, score, width):
        adjusted = adjuster.adjust(atm_template(), metrics(), score)
        assert adjusted.parameters["bracket_width"] == width

    @pytest.mark.parametrize("win_rate,mode", [
        (70.0, "Percent"),
        (65.0, "Ticks"),
        (40.0, "Ticks"),
    ])
    def test_calculation_mode(self, adjuster, win_rate, mode):
        adjusted = adjuster.adjust(atm_template(), metrics(win_rate=win_rate), 5.0)
        assert adjusted.parameters["calculation_mode"] == mode

    def test_adjusted_atm_keeps_fallback_flag(self, adjuster):
        adjusted = adjuster.adjust(atm_template(), metrics(), 5.0)

        assert adjusted.is_fallback
        assert adjusted.name.endswith("(Enhanced)")
