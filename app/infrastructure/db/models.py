"""
Database Models (SQLAlchemy ORM)
Strategy templates and backtest results
"""

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Text,
    Enum as SQLEnum, Index, JSON, UniqueConstraint
)

from app.infrastructure.db.database import Base
from app.domain.models import (
    DayOfWeek,
    TemplateType,
    TradingSession,
    Trend,
    VolatilityLevel,
    VolumeLevel,
)
from app.utils.time import now_utc_naive


# Tables

class TemplateModel(Base):
    """Stored ATM / Flazh template with its condition tags"""
    __tablename__ = "strategy_template"

    id = Column(Integer, primary_key=True, autoincrement=True)
    template_type = Column(SQLEnum(TemplateType), nullable=False, index=True)
    name = Column(String(200), nullable=False)

    # Condition tags (NULL = wildcard)
    session = Column(SQLEnum(TradingSession), nullable=True)
    volatility = Column(SQLEnum(VolatilityLevel), nullable=True)
    day_of_week = Column(SQLEnum(DayOfWeek), nullable=True)
    trend = Column(SQLEnum(Trend), nullable=True)
    volume = Column(SQLEnum(VolumeLevel), nullable=True)

    description = Column(Text, nullable=True)
    parameters = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, nullable=False, default=now_utc_naive)
    updated_at = Column(DateTime, nullable=False, default=now_utc_naive, onupdate=now_utc_naive)

    __table_args__ = (
        UniqueConstraint('template_type', 'name', name='uq_template_type_name'),
        Index('idx_template_type_session', 'template_type', 'session'),
    )


class BacktestResultModel(Base):
    """Aggregated result of one backtest run"""
    __tablename__ = "backtest_result"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)

    # Bucket keys
    time_of_day = Column(String(20), nullable=False)
    session_type = Column(String(30), nullable=False)
    volatility_score = Column(Float, nullable=False)

    total_trades = Column(Integer, nullable=False)
    winning_trades = Column(Integer, nullable=False)
    gross_profit = Column(Float, nullable=False, default=0.0)
    gross_loss = Column(Float, nullable=False, default=0.0)
    average_rr = Column(Float, nullable=True)

    created_at = Column(DateTime, nullable=False, default=now_utc_naive)

    __table_args__ = (
        Index('idx_backtest_bucket', 'time_of_day', 'session_type'),
    )
