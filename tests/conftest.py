from pathlib import Path
from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.db.database import Base, build_engine, build_session_factory, get_db
from app.infrastructure.db import models  # noqa: F401  (registers tables)
from app.api.routes import health, recommendations, market_conditions, templates
from app.domain.services.config_engine import ConfigEngine
from app.utils.time import FixedClock
from tests.fakes import MONDAY_1330

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


# Fixtures

@pytest.fixture()
def engine_config():
    config_engine = ConfigEngine(CONFIG_DIR)
    config_engine.load_all()
    return config_engine.engine_config


@pytest.fixture()
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    async with build_session_factory(db_engine)() as session:
        yield session


@pytest.fixture()
async def app(db_session, engine_config) -> FastAPI:
    app = FastAPI()
    app.include_router(health.router, tags=["Health"])
    app.include_router(recommendations.router, prefix="/api/v1/recommendations", tags=["Recommendations"])
    app.include_router(market_conditions.router, prefix="/api/v1/market-conditions", tags=["Market Conditions"])
    app.include_router(templates.router, prefix="/api/v1/templates", tags=["Templates"])

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    app.state.engine_config = engine_config
    app.state.clock = FixedClock(MONDAY_1330)

    return app


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
