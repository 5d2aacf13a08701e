"""
PoolConfig — конфигурация пула (read-only для ядра)

Параметры комиссий, target weights, whitelist, процентная ставка и
интервал начисления, адрес fee distributor.

Ядро пула читает конфигурацию и не проверяет границы само: валидация —
ответственность конфигурационного слоя, т.е. этих моделей.
"""

import json
from pathlib import Path
from typing import Final

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.contracts.validators import validate_pool_config
from src.core.math.fixed_point import PRECISION


# =============================================================================
# ГРАНИЦЫ ПАРАМЕТРОВ
# =============================================================================

# Максимальная базовая комиссия add/remove liquidity (1%)
MAX_BASE_FEE: Final[int] = 10**8

# Максимальная крутизна надбавки/скидки за дисбаланс (1%)
MAX_TAX_BASIS_POINTS: Final[int] = 10**8

# Максимальная процентная ставка за один интервал (0.1%)
MAX_INTEREST_RATE: Final[int] = 10**7

# Максимальное число decimals токена / репортера цены
MAX_DECIMALS: Final[int] = 36

DEFAULT_ACCRUAL_INTERVAL_SEC: Final[int] = 3600


# =============================================================================
# NESTED MODELS
# =============================================================================


class FeeParameters(BaseModel):
    """Параметры комиссий add/remove liquidity."""

    base_fee: int = Field(..., ge=0, le=MAX_BASE_FEE, description="Базовая ставка (PRECISION)")
    tax_basis_points: int = Field(
        ..., ge=0, le=MAX_TAX_BASIS_POINTS, description="Крутизна надбавки/скидки (PRECISION)"
    )
    dao_fee: int = Field(
        ..., ge=0, le=PRECISION, description="Доля протокола в комиссии (PRECISION)"
    )

    model_config = {"frozen": True}


class TargetWeights(BaseModel):
    """
    Целевые веса токенов.

    Определяют желаемую долю токена в стоимости пула; используются только
    в fee curve и никогда не enforce-ятся напрямую.
    """

    weights: dict[str, int] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("weights")
    @classmethod
    def validate_non_negative(cls, v: dict[str, int]) -> dict[str, int]:
        for token, weight in v.items():
            if weight < 0:
                raise ValueError(f"target weight for {token} must be non-negative, got {weight}")
        return v

    @property
    def total_weight(self) -> int:
        return sum(self.weights.values())

    def weight_of(self, token: str) -> int:
        return self.weights.get(token, 0)


class InterestConfig(BaseModel):
    """Процентная ставка на зарезервированный капитал."""

    interest_rate: int = Field(
        ..., ge=0, le=MAX_INTEREST_RATE, description="Прирост индекса за интервал при 100% utilization"
    )
    accrual_interval: int = Field(
        default=DEFAULT_ACCRUAL_INTERVAL_SEC, ge=1, description="Квант времени начисления (сек)"
    )

    model_config = {"frozen": True}


class TokenConfig(BaseModel):
    """Whitelist запись токена."""

    decimals: int = Field(..., ge=0, le=MAX_DECIMALS)
    listed: bool = Field(default=True, description="Принимает ли токен депозиты")

    model_config = {"frozen": True}


# =============================================================================
# POOL CONFIG
# =============================================================================


class PoolConfig(BaseModel):
    """
    Полная конфигурация пула.

    tokens — whitelist (распознаваемые активы). Delisted токен (listed=False)
    остаётся в whitelist: вывод из него разрешён, депозит — нет.
    """

    tokens: dict[str, TokenConfig] = Field(..., min_length=1)
    fee: FeeParameters
    target_weights: TargetWeights = Field(default_factory=TargetWeights)
    interest: InterestConfig
    fee_distributor: str | None = Field(
        default=None, description="Кто может выводить fee reserve"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_weights_whitelisted(self) -> "PoolConfig":
        unknown = set(self.target_weights.weights) - set(self.tokens)
        if unknown:
            raise ValueError(f"target weights reference non-whitelisted tokens: {sorted(unknown)}")
        return self

    def is_whitelisted(self, token: str) -> bool:
        return token in self.tokens

    def is_listed(self, token: str) -> bool:
        token_config = self.tokens.get(token)
        return token_config is not None and token_config.listed

    @property
    def all_tokens(self) -> list[str]:
        """Whitelist в детерминированном порядке объявления."""
        return list(self.tokens)


# =============================================================================
# LOADING
# =============================================================================


def load_pool_config(path: str | Path) -> PoolConfig:
    """
    Загрузка конфигурации из JSON файла.

    Сначала проверяется контракт pool_config.json, затем строится модель.

    Raises:
        jsonschema.ValidationError: Если JSON не соответствует контракту
        pydantic.ValidationError: Если нарушены кросс-полевые ограничения
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    validate_pool_config(data)
    return PoolConfig.model_validate(data)
