"""
Liquidity events — записи ключевых экономических величин операций

Каждая мутирующая операция пула публикует событие для downstream
индексации. Модели совместимы с JSON Schema
(contracts/schema/liquidity_event.json).
"""

from typing import Literal, Union

from pydantic import BaseModel, Field


class _EventBase(BaseModel):
    schema_version: str = Field(default="1", pattern="^1$")
    ts: int = Field(..., ge=0, description="Время операции (unix, сек)")
    token: str = Field(..., min_length=1)

    model_config = {"frozen": True}


class LiquidityAdded(_EventBase):
    """Депозит: сколько зачислено, какая комиссия, сколько share выпущено."""

    event_type: Literal["liquidity_added"] = "liquidity_added"
    caller: str = Field(..., min_length=1)
    recipient: str = Field(..., min_length=1)
    amount_in: int = Field(..., ge=0, description="Реально зачисленная сумма (token units)")
    fee_rate: int = Field(..., ge=0)
    fee_amount: int = Field(..., ge=0, description="Полная комиссия (token units)")
    dao_fee: int = Field(..., ge=0, description="Доля протокола (token units)")
    shares_out: int = Field(..., ge=0)
    borrow_index: int = Field(..., ge=0)


class LiquidityRemoved(_EventBase):
    """Вывод: сколько share сожжено, сколько выплачено и удержано."""

    event_type: Literal["liquidity_removed"] = "liquidity_removed"
    caller: str = Field(..., min_length=1)
    recipient: str = Field(..., min_length=1)
    shares_in: int = Field(..., ge=0)
    gross_out: int = Field(..., ge=0)
    amount_out: int = Field(..., ge=0)
    fee_rate: int = Field(..., ge=0)
    fee_amount: int = Field(..., ge=0)
    dao_fee: int = Field(..., ge=0)
    borrow_index: int = Field(..., ge=0)


class InterestAccrued(_EventBase):
    """Новый borrow index после начисления за elapsed_intervals."""

    event_type: Literal["interest_accrued"] = "interest_accrued"
    borrow_index: int = Field(..., ge=0)
    last_accrual_time: int = Field(..., ge=0)
    elapsed_intervals: int = Field(..., ge=0)


class FeeReserveWithdrawn(_EventBase):
    """Вывод fee reserve fee distributor-ом."""

    event_type: Literal["fee_reserve_withdrawn"] = "fee_reserve_withdrawn"
    recipient: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)


LiquidityEvent = Union[LiquidityAdded, LiquidityRemoved, InterestAccrued, FeeReserveWithdrawn]
