"""
Модуль: Custody контракт
Описание: Интерфейс внешнего сервиса, который реально перемещает активы,
и реализация в памяти для тестов и симуляций.
Автор: Staking Pools Team
"""

import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from utils.logger import get_logger

logger = get_logger("Custody")


@dataclass
class TransferResult:
    """Результат перевода; неуспешный перевод не оставляет следов"""
    success: bool
    asset_id: str
    party: str
    amount: int
    reference: Optional[str] = None  # хэш транзакции или внутренний id
    error: Optional[str] = None
    confirmed: bool = True  # False: отправлено, но receipt еще не получен
    timestamp: datetime = field(default_factory=datetime.now)


class CustodyService(ABC):
    """Внешний сервис хранения активов"""

    @abstractmethod
    def transfer_in(self, asset_id: str, sender: str, amount: int) -> TransferResult:
        """Принять amount единиц asset_id от sender"""

    @abstractmethod
    def transfer_out(self, asset_id: str, recipient: str, amount: int) -> TransferResult:
        """Отправить amount единиц asset_id получателю recipient"""


class InMemoryCustody(CustodyService):
    """
    Custody в памяти: книга балансов по (asset, holder) плюс резерв самого custody.

    Переводы без достаточного баланса отклоняются, ничего не меняя.
    """

    def __init__(self):
        self._balances: Dict[Tuple[str, str], int] = defaultdict(int)
        self._reserves: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()
        self._counter = 0
        self.history: List[TransferResult] = []

    def mint(self, asset_id: str, holder: str, amount: int) -> None:
        """Начислить внешний баланс держателю (вне учета пулов)"""
        with self._lock:
            self._balances[(asset_id, holder)] += amount

    def fund_reserve(self, asset_id: str, amount: int) -> None:
        """Пополнить резерв custody (например, бюджет наград)"""
        with self._lock:
            self._reserves[asset_id] += amount

    def balance_of(self, asset_id: str, holder: str) -> int:
        return self._balances.get((asset_id, holder), 0)

    def reserve_of(self, asset_id: str) -> int:
        return self._reserves.get(asset_id, 0)

    def _next_reference(self) -> str:
        self._counter += 1
        return f"mem-{self._counter}"

    def transfer_in(self, asset_id: str, sender: str, amount: int) -> TransferResult:
        with self._lock:
            available = self._balances.get((asset_id, sender), 0)
            if amount <= 0 or available < amount:
                result = TransferResult(False, asset_id, sender, amount,
                                        error=f"insufficient funds: {available} < {amount}")
            else:
                self._balances[(asset_id, sender)] = available - amount
                self._reserves[asset_id] += amount
                result = TransferResult(True, asset_id, sender, amount, reference=self._next_reference())
            self.history.append(result)

        logger.debug(f"🔁 IN {asset_id}: {sender} -> custody | {amount} | ok={result.success}")
        return result

    def transfer_out(self, asset_id: str, recipient: str, amount: int) -> TransferResult:
        with self._lock:
            reserve = self._reserves.get(asset_id, 0)
            if amount <= 0 or reserve < amount:
                result = TransferResult(False, asset_id, recipient, amount,
                                        error=f"insufficient reserve: {reserve} < {amount}")
            else:
                self._reserves[asset_id] = reserve - amount
                self._balances[(asset_id, recipient)] += amount
                result = TransferResult(True, asset_id, recipient, amount, reference=self._next_reference())
            self.history.append(result)

        logger.debug(f"🔁 OUT {asset_id}: custody -> {recipient} | {amount} | ok={result.success}")
        return result
