"""
Модуль core - Учет пулов наград Staking Pools Ledger
"""

from .pool_registry import Pool, PoolConfig, PoolRegistry
from .user_ledger import UserPosition, UserLedger
from .accounting_engine import AccountingEngine, ClaimOutcome, ClaimAllResult, compute_payout
from .custody import CustodyService, InMemoryCustody, TransferResult
from .clock import Clock, SystemClock, ManualClock
from .exceptions import (
    StakingError, PoolNotFound, InvalidConfig, InvalidAmount, InsufficientBalance,
    StakingClosed, StillLocked, TransferFailed, TransferOutcomeUnknown, RecoveryForbidden, LedgerInconsistency
)

__all__ = [
    'Pool',
    'PoolConfig',
    'PoolRegistry',
    'UserPosition',
    'UserLedger',
    'AccountingEngine',
    'ClaimOutcome',
    'ClaimAllResult',
    'compute_payout',
    'CustodyService',
    'InMemoryCustody',
    'TransferResult',
    'Clock',
    'SystemClock',
    'ManualClock',
    'StakingError',
    'PoolNotFound',
    'InvalidConfig',
    'InvalidAmount',
    'InsufficientBalance',
    'StakingClosed',
    'StillLocked',
    'TransferFailed',
    'TransferOutcomeUnknown',
    'RecoveryForbidden',
    'LedgerInconsistency'
]
