"""
Модуль: Реестр пулов наград
Описание: Упорядоченная коллекция конфигураций пулов. Пулы только добавляются,
адресуются индексом и никогда не удаляются.
Автор: Staking Pools Team
"""

import threading
from dataclasses import dataclass, asdict, field
from typing import Dict, List, Any

from config.settings import get_settings
from core.exceptions import PoolNotFound, InvalidConfig, LedgerInconsistency
from utils.converters import format_duration
from utils.logger import get_logger
from utils.validators import (
    ValidationError, AmountValidator, TimeValidator, validate_identifier
)

logger = get_logger("PoolRegistry")


@dataclass
class PoolConfig:
    """
    Параметры пула, задаваемые администратором.

    reward_interval по умолчанию берется из настроек (default_reward_interval).
    """
    reward_rate: int
    stake_asset_id: str
    reward_asset_id: str
    end_time: int
    lock_period: int = 0
    reward_interval: int = field(default_factory=lambda: get_settings().default_reward_interval)

    def validate(self) -> None:
        """Проверка параметров; любая проблема превращается в InvalidConfig"""
        try:
            AmountValidator.validate_units(self.reward_rate, field="reward_rate")
            validate_identifier(self.stake_asset_id, "stake_asset_id")
            validate_identifier(self.reward_asset_id, "reward_asset_id")
            # reward_interval == 0 означает деление на ноль при расчете выплаты
            TimeValidator.validate_duration(self.reward_interval, allow_zero=False, field="reward_interval")
            TimeValidator.validate_duration(self.lock_period, field="lock_period")
            TimeValidator.validate_timestamp(self.end_time, field="end_time")
        except ValidationError as e:
            raise InvalidConfig(str(e)) from e


@dataclass
class Pool:
    """Пул наград"""
    reward_rate: int
    stake_asset_id: str
    reward_asset_id: str
    reward_interval: int
    lock_period: int
    start_time: int
    end_time: int
    total_deposited: int = 0
    total_reward_distributed: int = 0

    @property
    def stake_deadline(self) -> int:
        """Последний момент, когда депозит еще успевает отстоять lock_period"""
        return self.end_time - self.lock_period

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PoolRegistry:
    """Реестр пулов с атомарными счетчиками"""

    def __init__(self):
        self._pools: List[Pool] = []
        self._pool_locks: List[threading.Lock] = []
        self._registry_lock = threading.Lock()

    def create_pool(self, config: PoolConfig, now: int) -> int:
        """
        Добавление нового пула.

        Args:
            config: Параметры пула
            now: Текущее время, становится start_time

        Returns:
            int: id (индекс) созданного пула
        """
        config.validate()
        if config.end_time < now:
            raise InvalidConfig(f"end_time {config.end_time} is before start_time {now}")

        pool = Pool(
            reward_rate=config.reward_rate,
            stake_asset_id=config.stake_asset_id,
            reward_asset_id=config.reward_asset_id,
            reward_interval=config.reward_interval,
            lock_period=config.lock_period,
            start_time=now,
            end_time=config.end_time
        )

        with self._registry_lock:
            self._pools.append(pool)
            self._pool_locks.append(threading.Lock())
            pool_id = len(self._pools) - 1

        logger.info(f"🏊 Пул #{pool_id} создан: rate={pool.reward_rate}/{pool.reward_interval}s, "
                    f"lock={format_duration(pool.lock_period)}, окно [{pool.start_time}, {pool.end_time}]")
        return pool_id

    def update_pool(self, pool_id: int, config: PoolConfig) -> Pool:
        """Перезапись изменяемых полей; start_time, stake asset и счетчики не трогаются"""
        pool = self.get_pool(pool_id)
        config.validate()
        if config.end_time < pool.start_time:
            raise InvalidConfig(f"end_time {config.end_time} is before start_time {pool.start_time}")

        with self._pool_locks[pool_id]:
            pool.reward_rate = config.reward_rate
            pool.reward_asset_id = config.reward_asset_id
            pool.reward_interval = config.reward_interval
            pool.lock_period = config.lock_period
            pool.end_time = config.end_time

        if config.stake_asset_id != pool.stake_asset_id:
            logger.warning(f"⚠️ Пул #{pool_id}: stake_asset_id не изменяется, "
                           f"значение {config.stake_asset_id} проигнорировано")

        logger.info(f"🔧 Пул #{pool_id} обновлен")
        return pool

    def get_pool(self, pool_id: int) -> Pool:
        if isinstance(pool_id, bool) or not isinstance(pool_id, int) or not 0 <= pool_id < len(self._pools):
            raise PoolNotFound(pool_id)
        return self._pools[pool_id]

    def pool_count(self) -> int:
        return len(self._pools)

    def pool_ids(self) -> List[int]:
        return list(range(len(self._pools)))

    def pools(self) -> List[Pool]:
        """Пулы в порядке создания"""
        return list(self._pools)

    # Атомарные счетчики: разные пользователи одного пула меняют их параллельно

    def add_deposit(self, pool_id: int, amount: int) -> int:
        pool = self.get_pool(pool_id)
        with self._pool_locks[pool_id]:
            pool.total_deposited += amount
            return pool.total_deposited

    def remove_deposit(self, pool_id: int, amount: int) -> int:
        pool = self.get_pool(pool_id)
        with self._pool_locks[pool_id]:
            if amount > pool.total_deposited:
                raise LedgerInconsistency(f"Pool {pool_id} total_deposited would go negative")
            pool.total_deposited -= amount
            return pool.total_deposited

    def add_reward_distributed(self, pool_id: int, amount: int) -> int:
        pool = self.get_pool(pool_id)
        with self._pool_locks[pool_id]:
            pool.total_reward_distributed += amount
            return pool.total_reward_distributed

    def restore_pool(self, pool: Pool) -> int:
        """Добавление уже существующего пула при загрузке из БД"""
        with self._registry_lock:
            self._pools.append(pool)
            self._pool_locks.append(threading.Lock())
            return len(self._pools) - 1
