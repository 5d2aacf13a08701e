"""Liquidity pool — ядро депозитов, комиссий, процентов и оценки пула.

- FeeCurve: комиссия по отклонению от target weights
- InterestAccrual: borrow index по квантованным интервалам
- ValuationEngine: AUM и virtual pool value
- LiquidityEngine: атомарные deposit / withdraw
"""

from .errors import (
    AUMInvariantViolation,
    ErrorCategory,
    LiquidityErrorCode,
    PriceUnavailable,
    ShareLedgerError,
    TransferRejected,
)
from .event_log import EventLog
from .fee_curve import (
    FeeSplit,
    apply_fee_rate,
    calc_adjusted_fee_rate,
    calc_target_value,
    protocol_fee_cut,
    split_fee,
)
from .interest import InterestAccrualResult, accrue_interest, interval_start
from .liquidity_engine import LiquidityEngine, LiquidityHook
from .oracle import FeedPriceOracle, PriceOracle, normalize_price
from .results import (
    DepositQuote,
    DepositResult,
    FeeWithdrawResult,
    WithdrawQuote,
    WithdrawResult,
)
from .share_ledger import InMemoryShareLedger, ShareLedger
from .token import AssetToken, InMemoryToken
from .valuation import ValuationEngine

__all__ = [
    # Errors
    "AUMInvariantViolation",
    "ErrorCategory",
    "LiquidityErrorCode",
    "PriceUnavailable",
    "ShareLedgerError",
    "TransferRejected",
    # Fee curve
    "FeeSplit",
    "apply_fee_rate",
    "calc_adjusted_fee_rate",
    "calc_target_value",
    "protocol_fee_cut",
    "split_fee",
    # Interest
    "InterestAccrualResult",
    "accrue_interest",
    "interval_start",
    # Valuation
    "ValuationEngine",
    # Collaborators
    "AssetToken",
    "FeedPriceOracle",
    "InMemoryShareLedger",
    "InMemoryToken",
    "PriceOracle",
    "ShareLedger",
    "normalize_price",
    # Engine
    "EventLog",
    "LiquidityEngine",
    "LiquidityHook",
    "DepositQuote",
    "DepositResult",
    "FeeWithdrawResult",
    "WithdrawQuote",
    "WithdrawResult",
]
