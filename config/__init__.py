"""
Модуль config - Настройки и константы Staking Pools Ledger
"""
