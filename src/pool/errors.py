"""Ошибки пула: таксономия, коды отказов и исключения внешних зависимостей.

Категории:
- INPUT_VALIDATION: ошибка вызывающего (zero amount, токен, slippage)
- INVARIANT_VIOLATION: операция нарушила бы инвариант пула
- EXTERNAL_DEPENDENCY: отказ oracle, share ledger, токена или hook

Обычные отказы возвращаются как значения (error_code в result).
Исключением остаётся только AUMInvariantViolation: отрицательный AUM
означает порчу данных выше по потоку, а не ошибку пользователя.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """Категория отказа операции."""

    INPUT_VALIDATION = "INPUT_VALIDATION"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    EXTERNAL_DEPENDENCY = "EXTERNAL_DEPENDENCY"


class LiquidityErrorCode(str, Enum):
    """Код отказа операции пула."""

    ZERO_AMOUNT = "ZERO_AMOUNT"
    UNKNOWN_TOKEN = "UNKNOWN_TOKEN"
    TOKEN_NOT_LISTED = "TOKEN_NOT_LISTED"
    SLIPPAGE_EXCEEDED = "SLIPPAGE_EXCEEDED"
    REENTRANT_CALL = "REENTRANT_CALL"
    FORBIDDEN_CALLER = "FORBIDDEN_CALLER"

    INSUFFICIENT_RESERVE = "INSUFFICIENT_RESERVE"

    TRANSFER_REJECTED = "TRANSFER_REJECTED"
    SHARE_LEDGER_REJECTED = "SHARE_LEDGER_REJECTED"
    PRICE_UNAVAILABLE = "PRICE_UNAVAILABLE"
    HOOK_FAILED = "HOOK_FAILED"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORY_BY_CODE[self]


_CATEGORY_BY_CODE = {
    LiquidityErrorCode.ZERO_AMOUNT: ErrorCategory.INPUT_VALIDATION,
    LiquidityErrorCode.UNKNOWN_TOKEN: ErrorCategory.INPUT_VALIDATION,
    LiquidityErrorCode.TOKEN_NOT_LISTED: ErrorCategory.INPUT_VALIDATION,
    LiquidityErrorCode.SLIPPAGE_EXCEEDED: ErrorCategory.INPUT_VALIDATION,
    LiquidityErrorCode.REENTRANT_CALL: ErrorCategory.INPUT_VALIDATION,
    LiquidityErrorCode.FORBIDDEN_CALLER: ErrorCategory.INPUT_VALIDATION,
    LiquidityErrorCode.INSUFFICIENT_RESERVE: ErrorCategory.INVARIANT_VIOLATION,
    LiquidityErrorCode.TRANSFER_REJECTED: ErrorCategory.EXTERNAL_DEPENDENCY,
    LiquidityErrorCode.SHARE_LEDGER_REJECTED: ErrorCategory.EXTERNAL_DEPENDENCY,
    LiquidityErrorCode.PRICE_UNAVAILABLE: ErrorCategory.EXTERNAL_DEPENDENCY,
    LiquidityErrorCode.HOOK_FAILED: ErrorCategory.EXTERNAL_DEPENDENCY,
}


# =============================================================================
# EXCEPTIONS
# =============================================================================


class AUMInvariantViolation(Exception):
    """
    Критическое нарушение: AUM отрицательный или вне uint256.

    Никогда не clamp-ится к нулю. Операция откатывается, исключение
    пробрасывается вызывающему как сигнал порчи данных.
    """

    def __init__(self, aum: int, use_high_rounding: bool):
        self.aum = aum
        self.use_high_rounding = use_high_rounding
        super().__init__(
            f"AUM invariant violated: aum={aum} (use_high_rounding={use_high_rounding})"
        )


class PriceUnavailable(Exception):
    """Oracle не может отдать цену токена."""


class TransferRejected(Exception):
    """Токен отклонил transfer / transfer_from (баланс, allowance)."""


class ShareLedgerError(Exception):
    """Share ledger отклонил mint / burn_from."""


class _OperationAborted(Exception):
    """Внутренний сигнал отказа операции: несёт код для result."""

    def __init__(self, code: LiquidityErrorCode, details: str):
        self.code = code
        self.details = details
        super().__init__(f"{code.value}: {details}")
