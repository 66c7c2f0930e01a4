"""
Модуль: Ошибки Staking Pools Ledger
Описание: Иерархия исключений движка учета. Все ошибки возвращаются
непосредственному вызывающему, внутри ядра ничего не повторяется.
"""

from typing import Optional


class StakingError(Exception):
    """Базовая ошибка учета стейкинга"""
    pass


class PoolNotFound(StakingError):
    """Пул с таким id не существует"""

    def __init__(self, pool_id: int):
        self.pool_id = pool_id
        super().__init__(f"Pool {pool_id} not found")


class InvalidConfig(StakingError):
    """Некорректные параметры пула"""
    pass


class InvalidAmount(StakingError):
    """Нулевая, отрицательная или превышающая баланс сумма"""
    pass


class InsufficientBalance(InvalidAmount):
    """Запрошено больше, чем лежит на позиции"""

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(f"Requested {requested}, available {available}")


class StakingClosed(StakingError):
    """Окно депозитов пула закрыто"""

    def __init__(self, pool_id: int, deadline: int, now: int):
        self.pool_id = pool_id
        self.deadline = deadline
        self.now = now
        super().__init__(f"Staking in pool {pool_id} closed at {deadline} (now {now})")


class StillLocked(StakingError):
    """Период блокировки депозита еще не истек"""

    def __init__(self, pool_id: int, unlock_time: int, now: int):
        self.pool_id = pool_id
        self.unlock_time = unlock_time
        self.now = now
        super().__init__(f"Deposit in pool {pool_id} locked until {unlock_time} (now {now})")


class TransferFailed(StakingError):
    """Custody отклонил перевод"""

    def __init__(self, asset_id: str, party: str, amount: int, reason: Optional[str] = None):
        self.asset_id = asset_id
        self.party = party
        self.amount = amount
        self.reason = reason
        super().__init__(f"Transfer of {amount} {asset_id} for {party} failed: {reason or 'declined'}")


class RecoveryForbidden(InvalidConfig):
    """Попытка вывести актив, который является депозитом пула"""
    pass


class LedgerInconsistency(StakingError):
    """total_deposited пула расходится с суммой позиций"""
    pass


class TransferOutcomeUnknown(StakingError):
    """
    Транзакция отправлена, но подтверждение не получено.

    Это не TransferFailed: перевод мог пройти, откатывать учет нельзя.
    По reference (хэш транзакции) нужна ручная сверка.
    """

    def __init__(self, asset_id: str, party: str, amount: int, reference: Optional[str], reason: Optional[str] = None):
        self.asset_id = asset_id
        self.party = party
        self.amount = amount
        self.reference = reference
        self.reason = reason
        super().__init__(f"Outcome of transfer {amount} {asset_id} for {party} is unknown "
                         f"(tx {reference}): {reason or 'no receipt'}")
