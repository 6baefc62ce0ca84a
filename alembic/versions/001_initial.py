# alembic/versions/001_initial.py

"""Initial schema

Revision ID: 001
Revises: 
Create Date: 2025-04-01
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


SESSIONS = (
    'PRE_MARKET', 'LATE_MORNING', 'EARLY_AFTERNOON', 'PRE_CLOSE',
    'OVERNIGHT', 'AFTER_HOURS', 'CLOSED', 'UNKNOWN',
)


def upgrade():
    # Create strategy_template table
    op.create_table('strategy_template',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('template_type', sa.Enum('ATM', 'FLAZH', name='templatetype'), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('session', sa.Enum(*SESSIONS, name='tradingsession'), nullable=True),
        sa.Column('volatility', sa.Enum('LOW', 'MEDIUM', 'HIGH', 'NONE', name='volatilitylevel'), nullable=True),
        sa.Column('day_of_week', sa.Enum(
            'MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', name='dayofweek'
        ), nullable=True),
        sa.Column('trend', sa.Enum(
            'STRONG_DOWN', 'DOWN', 'NEUTRAL', 'UP', 'STRONG_UP', name='trend'
        ), nullable=True),
        sa.Column('volume', sa.Enum('LOW', 'NORMAL', 'HIGH', name='volumelevel'), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parameters', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('template_type', 'name', name='uq_template_type_name')
    )
    op.create_index('ix_strategy_template_template_type', 'strategy_template', ['template_type'])
    op.create_index('idx_template_type_session', 'strategy_template', ['template_type', 'session'])

    # Create backtest_result table
    op.create_table('backtest_result',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('time_of_day', sa.String(length=20), nullable=False),
        sa.Column('session_type', sa.String(length=30), nullable=False),
        sa.Column('volatility_score', sa.Float(), nullable=False),
        sa.Column('total_trades', sa.Integer(), nullable=False),
        sa.Column('winning_trades', sa.Integer(), nullable=False),
        sa.Column('gross_profit', sa.Float(), nullable=False),
        sa.Column('gross_loss', sa.Float(), nullable=False),
        sa.Column('average_rr', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_backtest_bucket', 'backtest_result', ['time_of_day', 'session_type'])


def downgrade():
    op.drop_index('idx_backtest_bucket', table_name='backtest_result')
    op.drop_table('backtest_result')

    op.drop_index('idx_template_type_session', table_name='strategy_template')
    op.drop_index('ix_strategy_template_template_type', table_name='strategy_template')
    op.drop_table('strategy_template')

    for enum_name in ('volumelevel', 'trend', 'dayofweek', 'volatilitylevel', 'tradingsession', 'templatetype'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
