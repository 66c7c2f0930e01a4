"""
Модуль: Модели базы данных для Staking Pools Ledger
Описание: SQLAlchemy модели для хранения пулов и позиций вкладчиков
Автор: Staking Pools Team
"""

from sqlalchemy import Column, Integer, BigInteger, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from config.constants import AMOUNT_DIGITS

Base = declarative_base()


class UintAmount(TypeDecorator):
    """
    Неотрицательное целое произвольной длины (до uint256), хранится строкой.

    SQLite не держит Decimal без потерь, поэтому суммы не проходят через float.
    """
    impl = String(AMOUNT_DIGITS)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = int(value)
        if value < 0:
            raise ValueError(f"Amount cannot be negative: {value}")
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class PoolRecord(Base):
    """Модель пула наград; id совпадает с индексом пула в реестре"""
    __tablename__ = 'staking_pools'

    id = Column(Integer, primary_key=True, autoincrement=False)
    reward_rate = Column(UintAmount, nullable=False)
    stake_asset_id = Column(String(128), nullable=False, index=True)
    reward_asset_id = Column(String(128), nullable=False)
    reward_interval = Column(BigInteger, nullable=False)
    lock_period = Column(BigInteger, nullable=False, default=0)
    start_time = Column(BigInteger, nullable=False)
    end_time = Column(BigInteger, nullable=False)
    total_deposited = Column(UintAmount, nullable=False, default=0)
    total_reward_distributed = Column(UintAmount, nullable=False, default=0)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class PositionRecord(Base):
    """Модель позиции вкладчика в пуле"""
    __tablename__ = 'user_positions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    pool_id = Column(Integer, ForeignKey('staking_pools.id'), nullable=False)
    depositor = Column(String(128), nullable=False, index=True)
    deposited_amount = Column(UintAmount, nullable=False, default=0)
    last_claim_time = Column(BigInteger, nullable=False, default=0)
    last_deposit_time = Column(BigInteger, nullable=False, default=0)
    total_claimed = Column(UintAmount, nullable=False, default=0)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Одна позиция на пару (пул, вкладчик)
    __table_args__ = (
        Index('idx_position_key', 'pool_id', 'depositor', unique=True),
    )
