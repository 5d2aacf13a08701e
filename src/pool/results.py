"""Результаты и котировки операций пула.

Мутирующие операции возвращают result со статусом вместо исключений:
ok=False несёт error_code из таксономии errors.py, состояние пула при этом
не изменено.
"""

from dataclasses import dataclass

from src.pool.errors import ErrorCategory, LiquidityErrorCode


# =============================================================================
# QUOTES
# =============================================================================


@dataclass(frozen=True)
class DepositQuote:
    """Расчёт депозита без изменения состояния."""

    token: str
    amount_in: int
    price: int  # low rounding
    fee_rate: int
    user_amount: int  # amount_in после комиссии, основа для share
    fee_amount: int
    dao_fee: int
    pool_value: int  # AUM high до депозита
    total_supply: int
    shares_out: int

    @property
    def pool_amount_increase(self) -> int:
        """Резерв растёт на всё, кроме доли протокола."""
        return self.amount_in - self.dao_fee


@dataclass(frozen=True)
class WithdrawQuote:
    """Расчёт вывода без изменения состояния."""

    token: str
    shares_in: int
    price: int  # high rounding
    pool_value: int  # AUM high до вывода
    total_supply: int
    value_owed: int
    gross_out: int
    fee_rate: int
    amount_out: int  # net, уходит получателю
    fee_amount: int
    dao_fee: int

    @property
    def pool_amount_decrease(self) -> int:
        return self.amount_out + self.dao_fee


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class _ResultBase:
    ok: bool
    error_code: LiquidityErrorCode | None
    details: str

    @property
    def error_category(self) -> ErrorCategory | None:
        return self.error_code.category if self.error_code is not None else None


@dataclass(frozen=True)
class DepositResult(_ResultBase):
    """Результат deposit."""

    amount_in: int = 0
    fee_amount: int = 0
    dao_fee: int = 0
    shares_out: int = 0
    borrow_index: int = 0

    @classmethod
    def failed(cls, code: LiquidityErrorCode, details: str) -> "DepositResult":
        return cls(ok=False, error_code=code, details=details)


@dataclass(frozen=True)
class WithdrawResult(_ResultBase):
    """Результат withdraw."""

    shares_in: int = 0
    gross_out: int = 0
    amount_out: int = 0
    fee_amount: int = 0
    dao_fee: int = 0
    borrow_index: int = 0

    @classmethod
    def failed(cls, code: LiquidityErrorCode, details: str) -> "WithdrawResult":
        return cls(ok=False, error_code=code, details=details)


@dataclass(frozen=True)
class FeeWithdrawResult(_ResultBase):
    """Результат вывода fee reserve."""

    amount: int = 0

    @classmethod
    def failed(cls, code: LiquidityErrorCode, details: str) -> "FeeWithdrawResult":
        return cls(ok=False, error_code=code, details=details)
