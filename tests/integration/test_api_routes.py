import pytest

from app.domain.models import TemplateType, TradingSession, VolatilityLevel
from app.infrastructure.db.repositories.backtest_repository import SqlBacktestRepository
from app.infrastructure.db.repositories.template_repository import SqlTemplateRepository
from tests.fakes import make_template


async def seed(db_session, *templates):
    repo = SqlTemplateRepository(db_session)
    for template in templates:
        await repo.upsert_by_name(template)
    await db_session.commit()


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "engine_version": "2025-Q2"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ready(client):
    resp = await client.get("/ready")

    assert resp.status_code == 200
    assert resp.json()["db_connected"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_market_conditions(client):
    resp = await client.get("/api/v1/market-conditions", params={"volatility": "1.8", "volume": "0.5"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["session"] == "EARLY_AFTERNOON"
    assert data["day_of_week"] == "MONDAY"
    assert data["volatility"] == "HIGH"
    assert data["volume"] == "LOW"
    assert data["warnings"] == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_recommendation_fallback_on_empty_database(client):
    resp = await client.get("/api/v1/recommendations/flazh", params={"volatility": "1.0"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["template_type"] == "FLAZH"
    assert data["is_fallback"] is True
    assert data["tier"] == "FALLBACK"
    assert data["template"]["parameters"]["stop_loss"] == 12
    assert data["market_conditions"]["session"] == "EARLY_AFTERNOON"
    assert data["performance_metrics"] is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_template_type_is_422(client):
    resp = await client.get("/api/v1/recommendations/renko")
    assert resp.status_code == 422

    resp = await client.get("/api/v1/templates/renko")
    assert resp.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_recommendation_pair(client, db_session):
    await seed(
        db_session,
        make_template("Lunch", session=TradingSession.EARLY_AFTERNOON, volatility=VolatilityLevel.MEDIUM),
    )

    resp = await client.get("/api/v1/recommendations")

    assert resp.status_code == 200
    data = resp.json()
    assert data["flazh"]["template"]["name"] == "Lunch"
    assert data["flazh"]["tier"] == "RELAXED"
    assert data["flazh"]["confidence"] == "high"
    assert data["atm"]["is_fallback"] is True
    assert data["market_conditions"]["session"] == "EARLY_AFTERNOON"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_recommendation_adjusted_from_backtests(client, db_session):
    await seed(
        db_session,
        make_template("Lunch", session=TradingSession.EARLY_AFTERNOON, volatility=VolatilityLevel.MEDIUM),
    )
    await SqlBacktestRepository(db_session).add("lunch", "Afternoon", "Regular", 5.0, 10, 6, 600.0, 400.0)
    await db_session.commit()

    resp = await client.get("/api/v1/recommendations/FLAZH")

    assert resp.status_code == 200
    data = resp.json()
    assert data["template"]["name"] == "Lunch (Enhanced)"
    assert data["template"]["parameters"]["stop_loss"] == 11
    assert data["template"]["parameters"]["target"] == 21
    assert data["original_template"]["parameters"]["stop_loss"] == 10
    assert data["performance_metrics"]["win_rate"] == 60.0
    assert data["performance_metrics"]["profit_factor"] == 1.5


@pytest.mark.asyncio
@pytest.mark.integration
async def test_custom_recommendation(client, db_session):
    await seed(
        db_session,
        make_template(
            "Opening Scalper",
            template_type=TemplateType.ATM,
            session=TradingSession.PRE_MARKET,
            volatility=VolatilityLevel.HIGH,
            parameters={"calculation_mode": "Ticks", "brackets": []},
        ),
    )

    resp = await client.post("/api/v1/recommendations/custom", json={
        "template_type": "atm",
        "session": "PRE_MARKET",
        "volatility": "HIGH",
        "trend": "STRONG_UP",
    })

    assert resp.status_code == 200
    data = resp.json()
    assert data["template"]["name"] == "Opening Scalper"
    assert data["tier"] == "RELAXED"
    assert data["market_conditions"]["trend"] == "STRONG_UP"
    assert data["market_conditions"]["day_of_week"] is None


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("body", [
    {"template_type": "RENKO", "session": "PRE_MARKET", "volatility": "HIGH"},
    {"template_type": "ATM", "session": "LUNCH", "volatility": "HIGH"},
    {"template_type": "ATM", "volatility": "HIGH"},
])
async def test_custom_recommendation_validation(client, body):
    resp = await client.post("/api/v1/recommendations/custom", json=body)
    assert resp.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_templates(client, db_session):
    await seed(
        db_session,
        make_template("Quiet", template_type=TemplateType.ATM, volatility=VolatilityLevel.LOW),
        make_template("Lunch", session=TradingSession.EARLY_AFTERNOON),
    )

    resp = await client.get("/api/v1/templates/atm")

    assert resp.status_code == 200
    data = resp.json()
    assert [t["name"] for t in data] == ["Quiet"]
    assert data[0]["conditions"]["volatility"] == "LOW"
    assert data[0]["conditions"]["session"] is None
