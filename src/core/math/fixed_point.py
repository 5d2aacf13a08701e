"""
Fixed-Point Math — целочисленная арифметика пула

Все экономические величины пула (цены, стоимости, комиссии, индексы)
хранятся как целые числа в фиксированной точности. Float запрещён:
разница в округлении меняет экономический результат операции.

Шкалы:
- PRECISION: доли и ставки комиссий (10**10 = 100%)
- VALUE_PRECISION: стоимость в USD (10**30 = 1 USD)
- LP_INITIAL_PRICE: стоимость одной share при bootstrap (value / share units)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Деление всегда усекает к нулю (как uint256 в исходной модели)
2. Деление на ноль — ошибка (ZeroDivisionError), без fallback
3. Значения вне [0, MAX_UINT256] не проходят validate_uint
"""

from typing import Final

# =============================================================================
# ШКАЛЫ ТОЧНОСТИ
# =============================================================================

# 100% для ставок комиссий, dao fee и процентных ставок
PRECISION: Final[int] = 10**10

# 1 USD в нормализованной стоимости
VALUE_PRECISION: Final[int] = 10**30

# Цена share при первом депозите: 1 USD = 10**18 share units
LP_INITIAL_PRICE: Final[int] = 10**12

# Верхняя граница беззнакового слова исходной модели
MAX_UINT256: Final[int] = 2**256 - 1


# =============================================================================
# УСЕКАЮЩЕЕ ДЕЛЕНИЕ
# =============================================================================


def div_trunc(numerator: int, denominator: int) -> int:
    """
    Целочисленное деление с усечением к нулю.

    Python `//` округляет к минус бесконечности; для отрицательных
    промежуточных значений это даёт другой результат, чем uint/int256.

    Examples:
        >>> div_trunc(7, 2)
        3
        >>> div_trunc(-7, 2)
        -3
    """
    if denominator == 0:
        raise ZeroDivisionError("fixed-point division by zero")

    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    a * b / denominator с усечением, без промежуточного округления.

    Args:
        a: Первый множитель
        b: Второй множитель
        denominator: Делитель (не ноль)

    Returns:
        trunc(a * b / denominator)
    """
    return div_trunc(a * b, denominator)


def frac(amount: int, numerator: int, denominator: int) -> int:
    """Доля amount * numerator / denominator (alias mul_div для ставок)."""
    return mul_div(amount, numerator, denominator)


# =============================================================================
# УТИЛИТЫ
# =============================================================================


def abs_diff(a: int, b: int) -> int:
    """Модуль разности |a - b|."""
    return a - b if a >= b else b - a


def zero_cap_sub(a: int, b: int) -> int:
    """Вычитание с отсечкой снизу: max(a - b, 0)."""
    return a - b if a > b else 0


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def is_uint(value: int) -> bool:
    """True если value — целое в диапазоне [0, MAX_UINT256]."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_UINT256


def validate_uint(value: int, name: str) -> None:
    """
    Валидация беззнакового fixed-point значения.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)

    Raises:
        TypeError: Если value не int (float/bool запрещены)
        ValueError: Если value < 0 или > MAX_UINT256
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")

    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")

    if value > MAX_UINT256:
        raise ValueError(f"{name} exceeds uint256 range, got {value}")
