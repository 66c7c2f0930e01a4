"""
Модуль: Реестр позиций пользователей
Описание: Балансы и история выплат по ключу (pool_id, depositor).
Позиции создаются при первом депозите и никогда не удаляются.
"""

import threading
from dataclasses import dataclass, asdict
from typing import Dict, Iterator, List, Optional, Tuple, Any

from config.constants import NEVER_CLAIMED

PositionKey = Tuple[int, str]


@dataclass
class UserPosition:
    """Позиция вкладчика в одном пуле"""
    deposited_amount: int = 0
    last_claim_time: int = NEVER_CLAIMED
    last_deposit_time: int = 0
    total_claimed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class UserLedger:
    """Хранилище позиций с блокировкой на каждый ключ"""

    def __init__(self):
        self._positions: Dict[PositionKey, UserPosition] = {}
        self._key_locks: Dict[PositionKey, threading.RLock] = {}
        self._guard = threading.Lock()

    def get(self, pool_id: int, depositor: str) -> Optional[UserPosition]:
        return self._positions.get((pool_id, depositor))

    def get_or_create(self, pool_id: int, depositor: str) -> UserPosition:
        key = (pool_id, depositor)
        with self._guard:
            position = self._positions.get(key)
            if position is None:
                position = UserPosition()
                self._positions[key] = position
            return position

    def restore(self, pool_id: int, depositor: str, position: UserPosition) -> None:
        """Вставка позиции при загрузке из БД"""
        with self._guard:
            self._positions[(pool_id, depositor)] = position

    def key_lock(self, pool_id: int, depositor: str) -> threading.RLock:
        """
        Блокировка, сериализующая все операции над одной позицией.

        RLock: stake/unstake внутри себя вызывают claim по тому же ключу.
        """
        key = (pool_id, depositor)
        with self._guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._key_locks[key] = lock
            return lock

    def positions_for_pool(self, pool_id: int) -> Dict[str, UserPosition]:
        with self._guard:
            return {depositor: position
                    for (pid, depositor), position in self._positions.items()
                    if pid == pool_id}

    def positions_for_depositor(self, depositor: str) -> Dict[int, UserPosition]:
        with self._guard:
            return {pid: position
                    for (pid, who), position in self._positions.items()
                    if who == depositor}

    def total_for_pool(self, pool_id: int) -> int:
        return sum(p.deposited_amount for p in self.positions_for_pool(pool_id).values())

    def items(self) -> List[Tuple[PositionKey, UserPosition]]:
        with self._guard:
            return list(self._positions.items())

    def __len__(self) -> int:
        return len(self._positions)

    def __iter__(self) -> Iterator[PositionKey]:
        return iter([key for key, _ in self.items()])
