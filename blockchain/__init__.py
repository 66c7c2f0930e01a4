"""
Модуль blockchain - Custody активов в сети через web3
"""

from .token_custody import TokenCustody

__all__ = [
    'TokenCustody'
]
