"""
Модуль: Валидаторы данных для Staking Pools Ledger
Описание: Валидация адресов, сумм в минимальных единицах и временных меток
Зависимости: web3
Автор: Staking Pools Team
"""

import re
from typing import Any

from web3 import Web3

from config.constants import ZERO_ADDRESS


class ValidationError(ValueError):
    """Ошибка валидации данных"""
    pass


class AddressValidator:
    """Валидатор Ethereum адресов"""

    @staticmethod
    def is_valid_address(address: str) -> bool:
        """Проверить корректность адреса"""
        if not isinstance(address, str):
            return False

        # Проверка формата 0x + 40 hex символов
        if not re.match(r'^0x[a-fA-F0-9]{40}$', address):
            return False

        try:
            return Web3.is_address(address)
        except Exception:
            return False

    @staticmethod
    def normalize_address(address: str) -> str:
        """Нормализовать адрес к checksum формату"""
        if not AddressValidator.is_valid_address(address):
            raise ValidationError(f"Invalid address format: {address}")

        return Web3.to_checksum_address(address)

    @staticmethod
    def is_zero_address(address: str) -> bool:
        """Проверить, является ли адрес нулевым"""
        try:
            return AddressValidator.normalize_address(address) == ZERO_ADDRESS
        except ValidationError:
            return False


class AmountValidator:
    """Валидатор сумм в минимальных единицах актива (целые числа)"""

    @staticmethod
    def validate_units(amount: Any, allow_zero: bool = True, field: str = "amount") -> int:
        """Проверить, что сумма целая и неотрицательная"""
        # bool наследуется от int, но суммой не является
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError(f"{field} must be an integer number of units: {amount!r}")

        if amount < 0:
            raise ValidationError(f"{field} cannot be negative: {amount}")

        if not allow_zero and amount == 0:
            raise ValidationError(f"{field} cannot be zero")

        return amount


class TimeValidator:
    """Валидатор временных данных"""

    @staticmethod
    def validate_timestamp(timestamp: Any, field: str = "timestamp") -> int:
        """Валидировать Unix timestamp (секунды)"""
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise ValidationError(f"{field} must be integer seconds: {timestamp!r}")

        if timestamp < 0:
            raise ValidationError(f"{field} cannot be negative: {timestamp}")

        return timestamp

    @staticmethod
    def validate_duration(seconds: Any, allow_zero: bool = True, field: str = "duration") -> int:
        """Валидировать длительность в секундах"""
        value = TimeValidator.validate_timestamp(seconds, field)
        if not allow_zero and value == 0:
            raise ValidationError(f"{field} must be greater than zero")
        return value


def validate_identifier(value: Any, field: str) -> str:
    """Непустой строковый идентификатор (id актива или вкладчика)"""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string: {value!r}")
    return value
