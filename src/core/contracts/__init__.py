"""
Contract Validation Module

Модуль для валидации JSON контрактов пула (события и конфигурация).
"""

from .validators import (
    LIQUIDITY_EVENT_SCHEMA,
    POOL_CONFIG_SCHEMA,
    ContractValidator,
    SchemaLoader,
    get_validator,
    validate_liquidity_event,
    validate_pool_config,
)

__all__ = [
    # Schema names
    "LIQUIDITY_EVENT_SCHEMA",
    "POOL_CONFIG_SCHEMA",
    # Classes
    "SchemaLoader",
    "ContractValidator",
    # Functions
    "get_validator",
    "validate_liquidity_event",
    "validate_pool_config",
]
