"""
Core math modules для liquidity pool

Целочисленные fixed-point примитивы с детерминированным усечением.
"""

from src.core.math.fixed_point import (
    # Precision scales
    LP_INITIAL_PRICE,
    MAX_UINT256,
    PRECISION,
    VALUE_PRECISION,
    # Truncating division
    div_trunc,
    frac,
    mul_div,
    # Utilities
    abs_diff,
    zero_cap_sub,
    # Validation
    is_uint,
    validate_uint,
)

__all__ = [
    # Fixed point — Precision scales
    "LP_INITIAL_PRICE",
    "MAX_UINT256",
    "PRECISION",
    "VALUE_PRECISION",
    # Fixed point — Truncating division
    "div_trunc",
    "frac",
    "mul_div",
    # Fixed point — Utilities
    "abs_diff",
    "zero_cap_sub",
    # Fixed point — Validation
    "is_uint",
    "validate_uint",
]
