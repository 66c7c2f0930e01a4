"""
Staking Pools Ledger - Ledger Repository

Сохранение и загрузка состояния учета:
- все пулы и позиции пишутся одной транзакцией (upsert);
- загрузка восстанавливает реестр в порядке id пулов.

Автор: Staking Pools Team
Версия: 1.0.0
"""

from dataclasses import replace
from typing import Dict, List, Tuple

from sqlalchemy import select

from core.exceptions import LedgerInconsistency
from core.pool_registry import Pool, PoolRegistry
from core.user_ledger import UserLedger, UserPosition
from db.database import DatabaseManager
from db.models import PoolRecord, PositionRecord
from utils.logger import get_logger

logger = get_logger("LedgerRepository")


class LedgerRepository:
    """Снимок реестра пулов и позиций в БД"""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def save(self, registry: PoolRegistry, ledger: UserLedger) -> Tuple[int, int]:
        """
        Upsert всех пулов и позиций.

        Сохраняется копия состояния. Если копия противоречива (stake или
        unstake шел во время копирования), поднимается LedgerInconsistency
        и в БД ничего не пишется; сохранение повторяют, когда операций нет.

        Returns:
            Tuple[int, int]: (число пулов, число позиций)
        """
        pools = [replace(pool) for pool in registry.pools()]
        positions = [(key, replace(position)) for key, position in ledger.items()]
        self._check_snapshot(pools, positions)

        with self.db.get_session() as session:
            existing_pools: Dict[int, PoolRecord] = {
                rec.id: rec for rec in session.scalars(select(PoolRecord))
            }
            for pool_id, pool in enumerate(pools):
                record = existing_pools.get(pool_id)
                if record is None:
                    record = PoolRecord(id=pool_id)
                    session.add(record)
                record.reward_rate = pool.reward_rate
                record.stake_asset_id = pool.stake_asset_id
                record.reward_asset_id = pool.reward_asset_id
                record.reward_interval = pool.reward_interval
                record.lock_period = pool.lock_period
                record.start_time = pool.start_time
                record.end_time = pool.end_time
                record.total_deposited = pool.total_deposited
                record.total_reward_distributed = pool.total_reward_distributed

            # Позиции ссылаются на пулы
            session.flush()

            existing_positions: Dict[Tuple[int, str], PositionRecord] = {
                (rec.pool_id, rec.depositor): rec for rec in session.scalars(select(PositionRecord))
            }
            for (pool_id, depositor), position in positions:
                record = existing_positions.get((pool_id, depositor))
                if record is None:
                    record = PositionRecord(pool_id=pool_id, depositor=depositor)
                    session.add(record)
                record.deposited_amount = position.deposited_amount
                record.last_claim_time = position.last_claim_time
                record.last_deposit_time = position.last_deposit_time
                record.total_claimed = position.total_claimed

        logger.info(f"💾 Состояние сохранено: пулов {len(pools)}, позиций {len(positions)}")
        return len(pools), len(positions)

    def load(self) -> Tuple[PoolRegistry, UserLedger]:
        """Восстановление реестра и позиций из БД"""
        registry = PoolRegistry()
        ledger = UserLedger()

        with self.db.get_session() as session:
            for record in session.scalars(select(PoolRecord).order_by(PoolRecord.id)):
                pool = Pool(
                    reward_rate=record.reward_rate,
                    stake_asset_id=record.stake_asset_id,
                    reward_asset_id=record.reward_asset_id,
                    reward_interval=record.reward_interval,
                    lock_period=record.lock_period,
                    start_time=record.start_time,
                    end_time=record.end_time,
                    total_deposited=record.total_deposited,
                    total_reward_distributed=record.total_reward_distributed
                )
                restored_id = registry.restore_pool(pool)
                if restored_id != record.id:
                    raise LedgerInconsistency(f"Pool ids are not contiguous: expected {restored_id}, got {record.id}")

            for record in session.scalars(select(PositionRecord)):
                ledger.restore(record.pool_id, record.depositor, UserPosition(
                    deposited_amount=record.deposited_amount,
                    last_claim_time=record.last_claim_time,
                    last_deposit_time=record.last_deposit_time,
                    total_claimed=record.total_claimed
                ))

        logger.info(f"📂 Состояние загружено: пулов {registry.pool_count()}, позиций {len(ledger)}")
        return registry, ledger

    @staticmethod
    def _check_snapshot(pools: List[Pool], positions: List[Tuple[Tuple[int, str], UserPosition]]) -> None:
        totals: Dict[int, int] = {}
        for (pool_id, _), position in positions:
            totals[pool_id] = totals.get(pool_id, 0) + position.deposited_amount

        for pool_id, pool in enumerate(pools):
            if totals.get(pool_id, 0) != pool.total_deposited:
                raise LedgerInconsistency(
                    f"Snapshot of pool {pool_id} is torn: total_deposited={pool.total_deposited}, "
                    f"positions sum={totals.get(pool_id, 0)}"
                )
