"""PriceOracle — интерфейс цен и in-memory feed с нормализацией.

Цена нормализуется к VALUE_PRECISION независимо от decimals токена и
точности репортера:

    normalized = raw * VALUE_PRECISION // 10**token_decimals // 10**price_decimals

Так что amount (token units) * price = стоимость в VALUE_PRECISION.

Флаг use_high_rounding принимается интерфейсом, но FeedPriceOracle отдаёт
одну и ту же цену для обоих значений. Это задокументированный no-op, а не
bid/ask: один feed не даёт двух разных цен.
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Protocol, Sequence

from src.core.domain.pool_config import MAX_DECIMALS
from src.core.math.fixed_point import VALUE_PRECISION, validate_uint
from src.pool.errors import PriceUnavailable


class PriceOracle(Protocol):
    """Интерфейс oracle, который читает ядро пула."""

    def get_price(self, token: str, use_high_rounding: bool) -> int:
        ...

    def get_multiple_prices(self, tokens: Sequence[str], use_high_rounding: bool) -> list[int]:
        ...


def normalize_price(raw_price: int, token_decimals: int, price_decimals: int) -> int:
    """
    Нормализация raw цены репортера.

    Args:
        raw_price: Цена 1 целого токена с price_decimals знаками
        token_decimals: decimals токена
        price_decimals: decimals репортера

    Returns:
        Цена одной token unit в VALUE_PRECISION (усечение на каждом делении)

    Examples:
        >>> normalize_price(2000 * 10**8, 18, 8)  # ETH = 2000 USD
        2000000000000000
    """
    base_units = 10**token_decimals
    price_units = 10**price_decimals
    return raw_price * VALUE_PRECISION // base_units // price_units


@dataclass(frozen=True)
class TokenFeedConfig:
    token_decimals: int
    price_decimals: int


class FeedPriceOracle:
    """
    In-memory oracle: последняя опубликованная цена на токен.

    Агрегация и staleness — вне ядра; здесь только нормализация и хранение.
    """

    def __init__(self):
        self._feeds: dict[str, TokenFeedConfig] = {}
        self._prices: dict[str, int] = {}

    def configure_token(self, token: str, token_decimals: int, price_decimals: int) -> None:
        """Регистрация токена и точности его feed."""
        for name, value in (("token_decimals", token_decimals), ("price_decimals", price_decimals)):
            if not 0 <= value <= MAX_DECIMALS:
                raise ValueError(f"{name} must be in [0, {MAX_DECIMALS}], got {value}")
        self._feeds[token] = TokenFeedConfig(token_decimals, price_decimals)

    def post_price(self, token: str, raw_price: int) -> int:
        """
        Публикация raw цены.

        Returns:
            Нормализованная цена, сохранённая как last-known

        Raises:
            PriceUnavailable: Токен не сконфигурирован
            ValueError: Цена не положительная или нормализуется в ноль
        """
        normalized = self._normalize(token, raw_price)
        self._prices[token] = normalized
        return normalized

    def post_prices(self, raw_prices: Mapping[str, int]) -> None:
        """Пакетная публикация; при ошибке ни одна цена не сохраняется."""
        staged = {token: self._normalize(token, raw) for token, raw in raw_prices.items()}
        self._prices.update(staged)

    def _normalize(self, token: str, raw_price: int) -> int:
        feed = self._feeds.get(token)
        if feed is None:
            raise PriceUnavailable(f"no feed configured for {token}")

        validate_uint(raw_price, "raw_price")
        normalized = normalize_price(raw_price, feed.token_decimals, feed.price_decimals)
        if normalized == 0:
            raise ValueError(f"price for {token} normalizes to zero (raw={raw_price})")
        return normalized

    def get_price(self, token: str, use_high_rounding: bool) -> int:
        # use_high_rounding: no-op, см. docstring модуля
        price = self._prices.get(token)
        if price is None:
            raise PriceUnavailable(f"no price posted for {token}")
        return price

    def get_multiple_prices(self, tokens: Iterable[str], use_high_rounding: bool) -> list[int]:
        return [self.get_price(token, use_high_rounding) for token in tokens]
