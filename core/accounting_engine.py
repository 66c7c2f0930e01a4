"""
Модуль: Движок учета стейкинга
Описание: Переходы stake / unstake / claim и формула выплаты поверх
реестра пулов и реестра позиций. Перемещение активов делегируется custody.

Ключевые свойства:
- награда считается по непересекающимся, смежным окнам времени;
- после end_time пула награда не растет;
- депозит нельзя вывести раньше last_deposit_time + lock_period;
- total_claimed и total_reward_distributed только растут.

Автор: Staking Pools Team
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.clock import Clock, SystemClock
from core.custody import CustodyService, TransferResult
from core.exceptions import (
    StakingError, InvalidAmount, InsufficientBalance, StakingClosed,
    StillLocked, TransferFailed, TransferOutcomeUnknown, RecoveryForbidden, LedgerInconsistency
)
from core.pool_registry import Pool, PoolConfig, PoolRegistry
from core.user_ledger import UserLedger, UserPosition
from utils.logger import get_logger, get_audit_logger
from utils.validators import ValidationError, AmountValidator

logger = get_logger("AccountingEngine")


@dataclass
class ClaimOutcome:
    """Результат claim по одному пулу в рамках claim_all"""
    pool_id: int
    amount: int = 0
    error: Optional[StakingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ClaimAllResult:
    """Сводка claim_all: частичный успех является штатным исходом"""
    depositor: str
    outcomes: List[ClaimOutcome] = field(default_factory=list)

    @property
    def claimed(self) -> List[ClaimOutcome]:
        return [o for o in self.outcomes if o.ok and o.amount > 0]

    @property
    def failed(self) -> List[ClaimOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def total_claimed(self) -> int:
        return sum(o.amount for o in self.outcomes if o.ok)

    @property
    def ok(self) -> bool:
        return not self.failed


def compute_payout(pool: Pool, position: Optional[UserPosition], now: int) -> int:
    """
    Начисленная, но не выплаченная награда на момент now.

    amount = deposited * (to - from) * rate // interval, где
    from = max(last_claim_time, last_deposit_time, start_time), to = min(now, end_time).
    Деление целочисленное: остаток всегда отбрасывается в пользу пула.
    """
    if position is None or position.deposited_amount == 0:
        return 0

    accrual_from = max(position.last_claim_time, position.last_deposit_time, pool.start_time)
    accrual_to = min(now, pool.end_time)
    if accrual_from >= accrual_to:
        return 0

    elapsed = accrual_to - accrual_from
    return position.deposited_amount * elapsed * pool.reward_rate // pool.reward_interval


class AccountingEngine:
    """
    Движок учета пулов наград.

    Операции над одной позицией (pool_id, depositor) сериализуются
    блокировкой ключа; операции над разными ключами независимы.
    """

    def __init__(self,
                 custody: CustodyService,
                 clock: Optional[Clock] = None,
                 registry: Optional[PoolRegistry] = None,
                 ledger: Optional[UserLedger] = None):
        self.custody = custody
        self.clock = clock or SystemClock()
        self.registry = registry if registry is not None else PoolRegistry()
        self.ledger = ledger if ledger is not None else UserLedger()
        self.audit = get_audit_logger()

        # Отправленные переводы без подтверждения, ожидают ручной сверки
        self.unresolved_transfers: List[TransferOutcomeUnknown] = []
        self._unresolved_lock = threading.Lock()

        logger.info(f"⚙️ Движок учета инициализирован, пулов: {self.registry.pool_count()}")

    # ------------------------------------------------------------------
    # Административные операции (авторизация проверяется снаружи)
    # ------------------------------------------------------------------

    def create_pool(self, config: PoolConfig) -> int:
        pool_id = self.registry.create_pool(config, self.clock.now())
        self.audit.log_pool_change("CREATED", pool_id, self.registry.get_pool(pool_id).to_dict())
        return pool_id

    def update_pool(self, pool_id: int, config: PoolConfig) -> Pool:
        pool = self.registry.update_pool(pool_id, config)
        self.audit.log_pool_change("UPDATED", pool_id, pool.to_dict())
        return pool

    def recover_asset(self, asset_id: str, recipient: str, amount: int) -> TransferResult:
        """Вывод постороннего актива, случайно оказавшегося в custody"""
        protected = {pool.stake_asset_id for pool in self.registry.pools()}
        if asset_id in protected:
            raise RecoveryForbidden(f"Asset {asset_id} is a staking asset and cannot be recovered")
        self._validate_amount(amount)

        result = self._transfer_out(asset_id, recipient, amount, "recover")
        logger.warning(f"🧹 Выведен посторонний актив {asset_id}: {amount} -> {recipient}")
        return result

    # ------------------------------------------------------------------
    # Запросы (без побочных эффектов)
    # ------------------------------------------------------------------

    def get_pool(self, pool_id: int) -> Pool:
        return self.registry.get_pool(pool_id)

    def get_position(self, pool_id: int, depositor: str) -> Optional[UserPosition]:
        self.registry.get_pool(pool_id)
        return self.ledger.get(pool_id, depositor)

    def pool_count(self) -> int:
        return self.registry.pool_count()

    def payout(self, pool_id: int, depositor: str) -> int:
        pool = self.registry.get_pool(pool_id)
        return compute_payout(pool, self.ledger.get(pool_id, depositor), self.clock.now())

    def pending_all(self, depositor: str) -> Dict[int, int]:
        """Невыплаченная награда по каждому пулу, где у вкладчика есть позиция"""
        now = self.clock.now()
        pending = {}
        for pool_id, position in sorted(self.ledger.positions_for_depositor(depositor).items()):
            pending[pool_id] = compute_payout(self.registry.get_pool(pool_id), position, now)
        return pending

    def unlock_time(self, pool_id: int, depositor: str) -> Optional[int]:
        pool = self.registry.get_pool(pool_id)
        position = self.ledger.get(pool_id, depositor)
        if position is None:
            return None
        return position.last_deposit_time + pool.lock_period

    def can_unstake(self, pool_id: int, depositor: str) -> bool:
        unlock_at = self.unlock_time(pool_id, depositor)
        if unlock_at is None:
            return False
        return self.clock.now() >= unlock_at

    def pool_summary(self, pool_id: int) -> Dict[str, Any]:
        """Сводка по пулу для отчетов"""
        pool = self.registry.get_pool(pool_id)
        now = self.clock.now()
        positions = self.ledger.positions_for_pool(pool_id)
        summary = pool.to_dict()
        summary.update({
            "pool_id": pool_id,
            "stake_deadline": pool.stake_deadline,
            "is_active": pool.start_time <= now <= pool.end_time,
            "accepts_deposits": now <= pool.stake_deadline,
            "depositors": len(positions),
            "active_depositors": sum(1 for p in positions.values() if p.deposited_amount > 0),
            "total_claimed": sum(p.total_claimed for p in positions.values())
        })
        return summary

    def check_invariants(self) -> bool:
        """total_deposited каждого пула должен совпадать с суммой позиций"""
        for pool_id, pool in enumerate(self.registry.pools()):
            ledger_total = self.ledger.total_for_pool(pool_id)
            if ledger_total != pool.total_deposited:
                raise LedgerInconsistency(
                    f"Pool {pool_id}: total_deposited={pool.total_deposited}, positions sum={ledger_total}"
                )
            for depositor, position in self.ledger.positions_for_pool(pool_id).items():
                if position.deposited_amount < 0:
                    raise LedgerInconsistency(f"Pool {pool_id}: negative balance for {depositor}")
        return True

    # ------------------------------------------------------------------
    # Переходы состояния
    # ------------------------------------------------------------------

    def stake(self, pool_id: int, depositor: str, amount: int) -> UserPosition:
        """
        Депозит amount единиц stake-актива в пул.

        Сначала custody принимает депозит, затем выплачивается накопленная
        награда, и только после этого фиксируется состояние. Если выплата
        награды не прошла, депозит возвращается и ничего не фиксируется.
        """
        pool = self.registry.get_pool(pool_id)
        self._validate_amount(amount)

        with self.ledger.key_lock(pool_id, depositor):
            now = self.clock.now()
            if now > pool.stake_deadline:
                raise StakingClosed(pool_id, pool.stake_deadline, now)

            existing = self.ledger.get(pool_id, depositor)
            pending = compute_payout(pool, existing, now)

            self._transfer_in(pool.stake_asset_id, depositor, amount, "stake")

            if pending > 0:
                try:
                    self._transfer_out(pool.reward_asset_id, depositor, pending, "claim")
                except TransferFailed:
                    self._refund_stake(pool, depositor, amount)
                    raise

            position = self.ledger.get_or_create(pool_id, depositor)
            if pending > 0:
                self._commit_claim(pool_id, depositor, position, pending, now)

            position.deposited_amount += amount
            position.last_deposit_time = now
            self.registry.add_deposit(pool_id, amount)

        self.audit.log_stake(pool_id, depositor, amount, position.deposited_amount)
        return position

    def unstake(self, pool_id: int, depositor: str, amount: int) -> UserPosition:
        """
        Вывод amount единиц депозита после окончания lock_period.

        Награда выплачивается и фиксируется до уменьшения баланса. Если
        custody не отдал депозит, баланс не меняется.
        """
        pool = self.registry.get_pool(pool_id)
        self._validate_amount(amount)

        # Позиции не удаляются: если ее нет сейчас, выводить нечего
        if self.ledger.get(pool_id, depositor) is None:
            raise InsufficientBalance(amount, 0)

        with self.ledger.key_lock(pool_id, depositor):
            now = self.clock.now()
            position = self.ledger.get(pool_id, depositor)
            if amount > position.deposited_amount:
                raise InsufficientBalance(amount, position.deposited_amount)

            unlock_at = position.last_deposit_time + pool.lock_period
            if now < unlock_at:
                raise StillLocked(pool_id, unlock_at, now)

            self._settle(pool_id, pool, position, depositor, now)

            self._transfer_out(pool.stake_asset_id, depositor, amount, "unstake")

            position.deposited_amount -= amount
            self.registry.remove_deposit(pool_id, amount)

        self.audit.log_unstake(pool_id, depositor, amount, position.deposited_amount)
        return position

    def claim(self, pool_id: int, depositor: str) -> int:
        """
        Выплата накопленной награды.

        Нулевая выплата успешна и ничего не меняет: last_claim_time не
        сдвигается, поэтому будущие начисления не теряются.
        """
        pool = self.registry.get_pool(pool_id)
        if self.ledger.get(pool_id, depositor) is None:
            return 0

        with self.ledger.key_lock(pool_id, depositor):
            now = self.clock.now()
            position = self.ledger.get(pool_id, depositor)
            return self._settle(pool_id, pool, position, depositor, now)

    def claim_all(self, depositor: str) -> ClaimAllResult:
        """claim по каждому пулу в порядке реестра; сбой одного пула не мешает остальным"""
        result = ClaimAllResult(depositor=depositor)

        for pool_id in self.registry.pool_ids():
            try:
                amount = self.claim(pool_id, depositor)
                result.outcomes.append(ClaimOutcome(pool_id=pool_id, amount=amount))
            except StakingError as e:
                logger.warning(f"⚠️ claim_all: пул #{pool_id} для {depositor} не выплачен: {e}")
                result.outcomes.append(ClaimOutcome(pool_id=pool_id, error=e))

        if result.failed:
            logger.warning(f"⚠️ claim_all {depositor}: выплачено {result.total_claimed}, "
                           f"сбоев: {len(result.failed)} ({[o.pool_id for o in result.failed]})")
        else:
            logger.info(f"✅ claim_all {depositor}: выплачено {result.total_claimed}")
        return result

    # ------------------------------------------------------------------
    # Внутренние шаги
    # ------------------------------------------------------------------

    def _settle(self, pool_id: int, pool: Pool, position: UserPosition, depositor: str, now: int) -> int:
        amount = compute_payout(pool, position, now)
        if amount <= 0:
            return 0

        self._transfer_out(pool.reward_asset_id, depositor, amount, "claim")
        self._commit_claim(pool_id, depositor, position, amount, now)
        return amount

    def _commit_claim(self, pool_id: int, depositor: str, position: UserPosition, amount: int, now: int) -> None:
        position.last_claim_time = now
        position.total_claimed += amount
        self.registry.add_reward_distributed(pool_id, amount)
        self.audit.log_claim(pool_id, depositor, amount, position.total_claimed)

    def _validate_amount(self, amount: int) -> int:
        try:
            return AmountValidator.validate_units(amount, allow_zero=False)
        except ValidationError as e:
            raise InvalidAmount(str(e)) from e

    def _transfer_in(self, asset_id: str, sender: str, amount: int, operation: str) -> TransferResult:
        try:
            result = self.custody.transfer_in(asset_id, sender, amount)
        except TransferOutcomeUnknown as e:
            # Депозит не зачисляется, пока custody не подтвердил поступление
            self._record_unresolved(operation, e)
            raise
        except Exception as e:
            self.audit.log_transfer_failure(operation, asset_id, sender, amount, str(e))
            raise TransferFailed(asset_id, sender, amount, str(e)) from e

        if not result.success:
            self.audit.log_transfer_failure(operation, asset_id, sender, amount, result.error or "declined")
            raise TransferFailed(asset_id, sender, amount, result.error)
        return result

    def _transfer_out(self, asset_id: str, recipient: str, amount: int, operation: str) -> TransferResult:
        try:
            result = self.custody.transfer_out(asset_id, recipient, amount)
        except TransferOutcomeUnknown as e:
            # Отправленная выплата считается состоявшейся: повторная отправка
            # того же окна наград или того же депозита недопустима
            self._record_unresolved(operation, e)
            return TransferResult(True, asset_id, recipient, amount,
                                  reference=e.reference, error=str(e), confirmed=False)
        except Exception as e:
            self.audit.log_transfer_failure(operation, asset_id, recipient, amount, str(e))
            raise TransferFailed(asset_id, recipient, amount, str(e)) from e

        if not result.success:
            self.audit.log_transfer_failure(operation, asset_id, recipient, amount, result.error or "declined")
            raise TransferFailed(asset_id, recipient, amount, result.error)
        return result

    def _record_unresolved(self, operation: str, error: TransferOutcomeUnknown) -> None:
        with self._unresolved_lock:
            self.unresolved_transfers.append(error)
        logger.critical(f"🚨 {operation}: исход перевода неизвестен, нужна сверка по {error.reference}: {error}")

    def _refund_stake(self, pool: Pool, depositor: str, amount: int) -> None:
        try:
            self._transfer_out(pool.stake_asset_id, depositor, amount, "refund")
            logger.warning(f"↩️ Депозит {amount} возвращен {depositor}: выплата награды не прошла")
        except TransferFailed as e:
            # Депозит остался в custody без записи в учете: нужна ручная сверка
            logger.critical(f"🚨 Не удалось вернуть депозит {amount} {pool.stake_asset_id} {depositor}: {e}")
