"""
Модуль: Конвертеры сумм для Staking Pools Ledger
Описание: Перевод минимальных единиц в токены, форматирование сумм и длительностей для логов и отчетов
Зависимости: decimal
Автор: Staking Pools Team
"""

from decimal import Decimal, ROUND_DOWN

from config.constants import DEFAULT_TOKEN_DECIMALS, DEFAULT_TOKEN_SYMBOL, SECONDS_PER_DAY, SECONDS_PER_HOUR


class TokenConverter:
    """Конвертер между токенами и минимальными единицами"""

    @staticmethod
    def from_units(units: int, decimals: int = DEFAULT_TOKEN_DECIMALS) -> Decimal:
        """
        Конвертировать минимальные единицы в токены

        Args:
            units: Количество в минимальных единицах
            decimals: Знаков после запятой у токена

        Returns:
            Decimal: Количество токенов
        """
        return Decimal(int(units)) / (Decimal(10) ** decimals)

    @staticmethod
    def format_units(units: int,
                     decimals: int = DEFAULT_TOKEN_DECIMALS,
                     symbol: str = DEFAULT_TOKEN_SYMBOL,
                     precision: int = 4) -> str:
        """Форматировать сумму для отображения"""
        amount = TokenConverter.from_units(units, decimals)
        rounded = amount.quantize(Decimal(10) ** -precision, rounding=ROUND_DOWN)
        formatted = f"{rounded:,}"
        return f"{formatted} {symbol}" if symbol else formatted


def format_duration(seconds: int) -> str:
    """Форматировать длительность: 1d 2h 3m 4s"""
    seconds = int(seconds)
    if seconds <= 0:
        return "0s"

    days, rest = divmod(seconds, SECONDS_PER_DAY)
    hours, rest = divmod(rest, SECONDS_PER_HOUR)
    minutes, secs = divmod(rest, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")
    return " ".join(parts)
