"""Staking Pools Ledger - Utilities"""

from .logger import get_logger, get_audit_logger, StakingLogger
from .validators import ValidationError, AddressValidator, AmountValidator, TimeValidator
from .converters import TokenConverter
from .retry import rpc_retry

__all__ = [
    'get_logger',
    'get_audit_logger',
    'StakingLogger',
    'ValidationError',
    'AddressValidator',
    'AmountValidator',
    'TimeValidator',
    'TokenConverter',
    'rpc_retry'
]
