"""
Модуль: Константы проекта Staking Pools Ledger
Описание: Временные единицы, sentinel значения и ABI для работы с ERC-20 custody
Автор: Staking Pools Team
"""

from typing import Final

# Время (все значения в секундах)
SECONDS_PER_HOUR: Final[int] = 3600
SECONDS_PER_DAY: Final[int] = 86400
DEFAULT_REWARD_INTERVAL: Final[int] = SECONDS_PER_DAY

# Позиция, по которой ни разу не было выплаты
NEVER_CLAIMED: Final[int] = 0

# Адреса
ZERO_ADDRESS: Final[str] = "0x0000000000000000000000000000000000000000"

# Токены
DEFAULT_TOKEN_DECIMALS: Final[int] = 18
DEFAULT_TOKEN_SYMBOL: Final[str] = "STK"

# Транзакции custody
DEFAULT_GAS_LIMIT_TRANSFER: Final[int] = 100_000
DEFAULT_TX_TIMEOUT: Final[int] = 120
RETRY_ATTEMPTS: Final[int] = 5           # Количество повторных попыток для RPC чтения
RETRY_DELAY_BASE: Final[float] = 1.0     # Базовая задержка для retry (секунды)

# Numeric(78, 0) вмещает любое uint256
AMOUNT_DIGITS: Final[int] = 78

# Минимальный ERC-20 ABI: только то, что вызывает custody
ERC20_ABI: Final[list] = [
    {
        "constant": False,
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"}
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function"
    },
    {
        "constant": False,
        "inputs": [
            {"name": "_from", "type": "address"},
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"}
        ],
        "name": "transferFrom",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [
            {"name": "_owner", "type": "address"},
            {"name": "_spender", "type": "address"}
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function"
    }
]
