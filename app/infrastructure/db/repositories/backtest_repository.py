"""
Backtest Repository
Aggregates stored backtest results into performance metrics
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from app.infrastructure.db.models import BacktestResultModel
from app.domain.models import PerformanceMetrics
from app.domain.services.performance_profile import combined_adjustments

# Results within this distance of the requested volatility score count
VOLATILITY_SCORE_TOLERANCE = 2.0


class SqlBacktestRepository:
    """Repository for backtest results (PerformanceStore implementation)"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def add(
        self,
        name: str,
        time_of_day: str,
        session_type: str,
        volatility_score: float,
        total_trades: int,
        winning_trades: int,
        gross_profit: float,
        gross_loss: float,
        average_rr: Optional[float] = None
    ) -> int:
        """
        Store a backtest result

        Returns:
            ID of created row
        """
        if total_trades < 0 or winning_trades < 0 or winning_trades > total_trades:
            raise ValueError("winning_trades must be between 0 and total_trades")

        model = BacktestResultModel(
            name=name,
            time_of_day=time_of_day,
            session_type=session_type,
            volatility_score=volatility_score,
            total_trades=total_trades,
            winning_trades=winning_trades,
            gross_profit=gross_profit,
            gross_loss=abs(gross_loss),
            average_rr=average_rr,
        )
        self.session.add(model)
        await self.session.flush()

        return model.id

    async def get_metrics(
        self,
        time_of_day: str,
        session_type: str,
        volatility_score: float
    ) -> Optional[PerformanceMetrics]:
        """
        Aggregate backtests for a performance bucket

        Args:
            time_of_day: Morning / Afternoon / Evening
            session_type: Regular / High Volatility / Low Volatility
            volatility_score: 0-10 score

        Returns:
            PerformanceMetrics or None when no backtests match
        """
        result = await self.session.execute(
            select(BacktestResultModel).where(
                BacktestResultModel.time_of_day == time_of_day,
                BacktestResultModel.session_type == session_type,
                BacktestResultModel.volatility_score.between(
                    volatility_score - VOLATILITY_SCORE_TOLERANCE,
                    volatility_score + VOLATILITY_SCORE_TOLERANCE,
                ),
            )
        )
        rows = result.scalars().all()

        total_trades = sum(r.total_trades for r in rows)
        if total_trades == 0:
            return None

        winning_trades = sum(r.winning_trades for r in rows)
        gross_profit = sum(r.gross_profit for r in rows)
        gross_loss = sum(r.gross_loss for r in rows)

        rr_values = [r.average_rr for r in rows if r.average_rr is not None]
        average_rr = round(sum(rr_values) / len(rr_values), 2) if rr_values else None

        return PerformanceMetrics(
            win_rate=round(winning_trades / total_trades * 100, 1),
            profit_factor=round(gross_profit / gross_loss, 2) if gross_loss > 0 else None,
            sample_size=len(rows),
            average_rr=average_rr,
            adjustment_factors=combined_adjustments(time_of_day, volatility_score),
        )
