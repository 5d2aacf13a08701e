"""ValuationEngine — AUM пула и сглаженная virtual pool value.

AUM(rounding) = Σ price(token, rounding) * pool_amount(token)

Цены берутся одним batched запросом к oracle. reserved_amount и
guaranteed_value в AUM не участвуют: ядро — упрощённое подмножество
leverage-aware оценки.

Отрицательный AUM или выход за uint256 — AUMInvariantViolation,
никакого clamp.
"""

from typing import Mapping

from src.core.domain.asset import AssetRecord
from src.core.math.fixed_point import MAX_UINT256
from src.pool.errors import AUMInvariantViolation
from src.pool.oracle import PriceOracle


class ValuationEngine:
    """Оценка стоимости резервов пула по ценам oracle."""

    def __init__(self, oracle: PriceOracle):
        self.oracle = oracle

    def aum(self, assets: Mapping[str, AssetRecord], use_high_rounding: bool) -> int:
        """
        Стоимость всех резервов при заданном округлении цены.

        Args:
            assets: token -> AssetRecord (все отслеживаемые токены)
            use_high_rounding: Округление цены вверх (True) или вниз (False)

        Returns:
            AUM в VALUE_PRECISION

        Raises:
            AUMInvariantViolation: AUM < 0 или > MAX_UINT256
            PriceUnavailable: Oracle не отдал цену
        """
        tokens = list(assets)
        if not tokens:
            return 0

        prices = self.oracle.get_multiple_prices(tokens, use_high_rounding)
        if len(prices) != len(tokens):
            raise ValueError(f"oracle returned {len(prices)} prices for {len(tokens)} tokens")

        value = sum(price * assets[token].pool_amount for token, price in zip(tokens, prices))

        if value < 0 or value > MAX_UINT256:
            raise AUMInvariantViolation(value, use_high_rounding)
        return value

    def virtual_value(self, assets: Mapping[str, AssetRecord]) -> int:
        """Среднее AUM при high и low округлении (знаменатель fee curve)."""
        return (self.aum(assets, True) + self.aum(assets, False)) // 2
