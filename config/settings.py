"""
Модуль: Настройки для Staking Pools Ledger
Описание: Pydantic класс для настроек с валидацией и загрузкой из .env
Зависимости: pydantic, pydantic-settings, python-dotenv
Автор: Staking Pools Team
"""

from typing import Literal
from pydantic import field_validator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    ZERO_ADDRESS, DEFAULT_REWARD_INTERVAL, DEFAULT_TOKEN_DECIMALS,
    DEFAULT_GAS_LIMIT_TRANSFER, DEFAULT_TX_TIMEOUT,
    RETRY_ATTEMPTS, RETRY_DELAY_BASE
)


class StakingSettings(BaseSettings):
    """Настройки для Staking Pools Ledger с валидацией"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # База данных
    database_url: str = Field(default="sqlite:///staking_pools.db", description="URL базы данных")
    debug_sql: bool = Field(default=False, description="Включить отладку SQL запросов")

    # Логирование
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO", description="Уровень логирования")
    log_file: str = Field(default="logs/staking_pools.log", description="Файл для логов")

    # Узел и custody аккаунт
    rpc_url: str = Field(default="http://127.0.0.1:8545", description="HTTP endpoint узла")
    chain_id: int = Field(default=1, description="ID сети")
    custody_address: str = Field(default=ZERO_ADDRESS, description="Адрес custody кошелька")
    custody_private_key: str = Field(default="", description="Приватный ключ custody кошелька")
    token_decimals: int = Field(default=DEFAULT_TOKEN_DECIMALS, description="Знаков после запятой у токенов")
    gas_limit_transfer: int = Field(default=DEFAULT_GAS_LIMIT_TRANSFER, description="Лимит газа для transfer")
    tx_timeout_seconds: int = Field(default=DEFAULT_TX_TIMEOUT, description="Ожидание receipt в секундах")
    connection_timeout: int = Field(default=30, description="Таймаут подключения в секундах")

    # Retry настройки (только для чтения RPC, не для отправки транзакций)
    retry_attempts: int = Field(default=RETRY_ATTEMPTS, description="Количество повторных попыток")
    retry_delay_base: float = Field(default=RETRY_DELAY_BASE, description="Базовая задержка retry в секундах")

    # Параметры пулов
    default_reward_interval: int = Field(default=DEFAULT_REWARD_INTERVAL, description="Интервал нормализации ставки")

    @field_validator("custody_address")
    @classmethod
    def validate_address(cls, v):
        """Валидация Ethereum адресов"""
        if not v.startswith("0x") or len(v) != 42:
            raise ValueError(f"Неверный формат адреса: {v}")
        try:
            int(v, 16)
        except ValueError:
            raise ValueError(f"Адрес содержит неверные hex символы: {v}")
        return v.lower()

    @field_validator("rpc_url")
    @classmethod
    def validate_urls(cls, v):
        """Валидация URL endpoints"""
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError(f"Неверный формат URL: {v}")
        return v

    @field_validator("default_reward_interval", "tx_timeout_seconds", "gas_limit_transfer")
    @classmethod
    def validate_positive(cls, v):
        """Проверка положительных чисел"""
        if v <= 0:
            raise ValueError(f"Значение должно быть больше 0: {v}")
        return v

    @field_validator("token_decimals")
    @classmethod
    def validate_decimals(cls, v):
        if v < 0 or v > 36:
            raise ValueError(f"Неразумное количество decimals: {v}")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v):
        if v < 1:
            raise ValueError(f"retry_attempts должен быть >= 1: {v}")
        return v

    def is_debug(self) -> bool:
        """Проверка debug режима"""
        return self.log_level == "DEBUG"

    def has_custody_key(self) -> bool:
        """Настроен ли ключ custody кошелька"""
        return bool(self.custody_private_key) and self.custody_address != ZERO_ADDRESS


# Глобальный экземпляр настроек
settings = StakingSettings()


def get_settings() -> StakingSettings:
    """Получить глобальный экземпляр настроек"""
    return settings


def create_test_settings(**overrides) -> StakingSettings:
    """Создать настройки для тестирования с переопределениями"""
    test_data = {
        "database_url": "sqlite:///:memory:",
        "log_level": "DEBUG",
        **overrides
    }
    return StakingSettings(**test_data)
