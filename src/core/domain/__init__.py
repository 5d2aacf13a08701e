"""
Domain models and value objects.

Contains pool ledger records, pool configuration and liquidity events.
"""

from src.core.domain.asset import AssetRecord, TokenLedgerState
from src.core.domain.events import (
    FeeReserveWithdrawn,
    InterestAccrued,
    LiquidityAdded,
    LiquidityEvent,
    LiquidityRemoved,
)
from src.core.domain.pool_config import (
    DEFAULT_ACCRUAL_INTERVAL_SEC,
    MAX_BASE_FEE,
    MAX_DECIMALS,
    MAX_INTEREST_RATE,
    MAX_TAX_BASIS_POINTS,
    FeeParameters,
    InterestConfig,
    PoolConfig,
    TargetWeights,
    TokenConfig,
    load_pool_config,
)

__all__ = [
    # Ledger records
    "AssetRecord",
    "TokenLedgerState",
    # Config — Constants
    "DEFAULT_ACCRUAL_INTERVAL_SEC",
    "MAX_BASE_FEE",
    "MAX_DECIMALS",
    "MAX_INTEREST_RATE",
    "MAX_TAX_BASIS_POINTS",
    # Config — Models
    "FeeParameters",
    "InterestConfig",
    "PoolConfig",
    "TargetWeights",
    "TokenConfig",
    "load_pool_config",
    # Events
    "FeeReserveWithdrawn",
    "InterestAccrued",
    "LiquidityAdded",
    "LiquidityEvent",
    "LiquidityRemoved",
]
