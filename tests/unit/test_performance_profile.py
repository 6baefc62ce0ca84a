import pytest

from app.domain.models import AdjustmentFactors, MarketConditions, TradingSession, VolatilityLevel
from app.domain.services.performance_profile import (
    AFTERNOON,
    EVENING,
    HIGH_VOLATILITY,
    LOW_VOLATILITY,
    MORNING,
    REGULAR,
    PerformanceBucket,
    bucket_for,
    combined_adjustments,
    confidence_for,
    session_adjustments,
    volatility_adjustments,
)


@pytest.mark.unit
class TestBuckets:

    @pytest.mark.parametrize("session,time_of_day", [
        (TradingSession.PRE_MARKET, MORNING),
        (TradingSession.LATE_MORNING, MORNING),
        (TradingSession.EARLY_AFTERNOON, AFTERNOON),
        (TradingSession.PRE_CLOSE, AFTERNOON),
        (TradingSession.AFTER_HOURS, EVENING),
        (TradingSession.OVERNIGHT, EVENING),
        (TradingSession.UNKNOWN, AFTERNOON),
        (None, AFTERNOON),
    ])
    def test_time_of_day(self, session, time_of_day):
        assert bucket_for(MarketConditions(session=session)).time_of_day == time_of_day

    def test_high_volatility_bucket(self):
        bucket = bucket_for(MarketConditions(
            session=TradingSession.PRE_MARKET,
            volatility=VolatilityLevel.HIGH,
        ))
        assert bucket == PerformanceBucket(MORNING, HIGH_VOLATILITY, 8.0)

    def test_low_volatility_bucket(self):
        bucket = bucket_for(MarketConditions(volatility=VolatilityLevel.LOW))

        assert bucket.session_type == LOW_VOLATILITY
        assert bucket.volatility_score == 2.0

    @pytest.mark.parametrize("volatility", [VolatilityLevel.MEDIUM, VolatilityLevel.NONE, None])
    def test_regular_bucket(self, volatility):
        bucket = bucket_for(MarketConditions(volatility=volatility))

        assert bucket.session_type == REGULAR
        assert bucket.volatility_score == 5.0


@pytest.mark.unit
class TestAdjustmentTables:

    def test_volatility_tables(self):
        assert volatility_adjustments(8.0) == AdjustmentFactors(1.3, 1.2, 1.15)
        assert volatility_adjustments(5.0) == AdjustmentFactors(1.1, 1.05, 1.05)
        assert volatility_adjustments(2.0) == AdjustmentFactors(0.85, 0.9, 0.95)

    def test_session_tables(self):
        assert session_adjustments(MORNING) == AdjustmentFactors(1.15, 1.1, 1.05)
        assert session_adjustments(AFTERNOON) == AdjustmentFactors(1.0, 1.0, 1.0)
        assert session_adjustments(EVENING) == AdjustmentFactors(0.9, 0.95, 0.95)

    def test_combined(self):
        factors = combined_adjustments(MORNING, 8.0)

        assert factors.stop_loss == pytest.approx(1.495)
        assert factors.target == pytest.approx(1.32)
        assert factors.trailing_stop == pytest.approx(1.2075)

    def test_combined_afternoon_is_volatility_only(self):
        assert combined_adjustments(AFTERNOON, 2.0) == AdjustmentFactors(0.85, 0.9, 0.95)


@pytest.mark.unit
@pytest.mark.parametrize("score,label", [
    (100, "high"),
    (80, "high"),
    (79, "medium-high"),
    (60, "medium-high"),
    (45, "medium"),
    (20, "medium-low"),
    (0, "low"),
])
def test_confidence_labels(score, label):
    assert confidence_for(score) == label
