"""
Модуль: Система логирования для Staking Pools Ledger
Описание: Настройка логирования с ротацией файлов и форматированием
Зависимости: logging, pathlib
Автор: Staking Pools Team
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from config.settings import settings


class ColoredFormatter(logging.Formatter):
    """Цветной форматтер для консольного вывода"""

    # Цветовые коды ANSI
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m'  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        # Копия, чтобы цвет не попал в файловый хендлер
        record = logging.makeLogRecord(record.__dict__)
        log_color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{log_color}{record.levelname}{self.RESET}"
        return super().format(record)


class StakingLogger:
    """Централизованная система логирования для Staking Pools Ledger"""

    def __init__(self, name: str = "Staking", log_file: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, settings.log_level))

        # Предотвращаем дублирование хендлеров
        if self.logger.handlers:
            return

        log_file = log_file or settings.log_file
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_formatter = logging.Formatter(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = ColoredFormatter(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%H:%M:%S'
        )

        # Файловый хендлер с ротацией
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(file_formatter)
        file_handler.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(console_formatter)
        console_handler.setLevel(getattr(logging, settings.log_level))

        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)
        self.logger.propagate = False

    def get_logger(self) -> logging.Logger:
        """Получить настроенный логгер"""
        return self.logger

    def log_stake(self, pool_id: int, depositor: str, amount: int, balance: int):
        """Логирование депозита"""
        self.logger.info(f"📥 STAKE: pool={pool_id} | {depositor} | +{amount} | Balance: {balance}")

    def log_unstake(self, pool_id: int, depositor: str, amount: int, balance: int):
        """Логирование вывода депозита"""
        self.logger.info(f"📤 UNSTAKE: pool={pool_id} | {depositor} | -{amount} | Balance: {balance}")

    def log_claim(self, pool_id: int, depositor: str, amount: int, total_claimed: int):
        """Логирование выплат наград"""
        self.logger.info(f"💰 CLAIM: pool={pool_id} | {depositor} | Amount: {amount} | Total: {total_claimed}")

    def log_transfer_failure(self, operation: str, asset_id: str, party: str, amount: int, reason: str):
        """Логирование отказа custody"""
        self.logger.error(f"❌ TRANSFER FAILED: {operation} | asset={asset_id} | {party} | {amount} | {reason}")

    def log_pool_change(self, action: str, pool_id: int, details: dict):
        """Логирование административных изменений пула"""
        self.logger.warning(f"🛠️ POOL {action}: #{pool_id} | {details}")



def get_logger(name: str) -> logging.Logger:
    """Получить логгер для конкретного модуля"""
    module_logger = StakingLogger(f"Staking_{name}")
    return module_logger.get_logger()


def get_audit_logger() -> StakingLogger:
    """Логгер со специализированными методами для операций с позициями"""
    return StakingLogger("Staking_Audit")


def setup_logging_for_external_libs():
    """Настройка логирования для внешних библиотек"""
    # Устанавливаем уровень WARNING для шумных библиотек
    noisy_loggers = ['urllib3', 'requests', 'web3', 'sqlalchemy.engine']

    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


# Инициализация при импорте
setup_logging_for_external_libs()
