"""
Модуль db - Хранение состояния Staking Pools Ledger
"""

from .models import Base, PoolRecord, PositionRecord
from .database import DatabaseManager, get_database_manager, initialize_database
from .ledger_repository import LedgerRepository

__all__ = [
    'Base',
    'PoolRecord',
    'PositionRecord',
    'DatabaseManager',
    'get_database_manager',
    'initialize_database',
    'LedgerRepository'
]
