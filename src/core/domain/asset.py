"""
AssetRecord / TokenLedgerState — per-token состояние пула

Immutable Pydantic модели. Любое изменение создаёт новый экземпляр через
updated(), который заново прогоняет валидацию (model_copy её пропускает).
Записи неизменяемы, поэтому snapshot пула — это копия словарей, а откат —
восстановление этой копии.
"""

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ASSET RECORD
# =============================================================================


class AssetRecord(BaseModel):
    """
    Резервы одного whitelisted токена.

    Создаётся при whitelisting, никогда не удаляется.

    Инвариант: pool_amount >= reserved_amount (капитал под открытым
    leverage не может быть выведен).
    """

    pool_amount: int = Field(default=0, ge=0, description="Весь резерв токена (token units)")
    reserved_amount: int = Field(
        default=0, ge=0, description="Часть резерва под открытые leveraged позиции"
    )
    guaranteed_value: int = Field(
        default=0,
        ge=0,
        description="Зарезервировано для short PnL учёта; в AUM не участвует",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_reserve_floor(self) -> "AssetRecord":
        if self.pool_amount < self.reserved_amount:
            raise ValueError(
                f"pool_amount {self.pool_amount} below reserved_amount {self.reserved_amount}"
            )
        return self

    def updated(self, **changes: int) -> "AssetRecord":
        """Новый экземпляр с изменёнными полями (с валидацией)."""
        return AssetRecord(**{**self.model_dump(), **changes})

    @property
    def available_amount(self) -> int:
        """Часть резерва, не занятая leverage."""
        return self.pool_amount - self.reserved_amount


# =============================================================================
# TOKEN LEDGER STATE
# =============================================================================


class TokenLedgerState(BaseModel):
    """
    Бухгалтерия токена на стороне пула.

    - fee_reserve: накопленная комиссия протокола (выводит fee distributor)
    - tracked_balance: последний наблюдённый внешний баланс пула; реальная
      сумма депозита = balance_of(pool) - tracked_balance
    - borrow_index: монотонный кумулятивный процентный индекс (PRECISION)
    - last_accrual_time: якорь начисления, кратен accrual_interval;
      0 означает "ещё не начислялось"
    """

    fee_reserve: int = Field(default=0, ge=0)
    tracked_balance: int = Field(default=0, ge=0)
    borrow_index: int = Field(default=0, ge=0)
    last_accrual_time: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def updated(self, **changes: int) -> "TokenLedgerState":
        """Новый экземпляр с изменёнными полями (с валидацией)."""
        return TokenLedgerState(**{**self.model_dump(), **changes})
