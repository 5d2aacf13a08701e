"""
Тесты контракта liquidity_event.json и EventLog

Проверяемые инварианты:
1. Pydantic модели событий сериализуются в валидный по контракту JSON
2. Контракт отклоняет лишние поля, отрицательные суммы, неизвестный тип
3. EventLog не принимает событие, нарушающее контракт
4. Валидатор схемы создаётся один раз и разделяется между потребителями
"""

import logging

import jsonschema
import pytest

from src.core.contracts import (
    LIQUIDITY_EVENT_SCHEMA,
    POOL_CONFIG_SCHEMA,
    get_validator,
    validate_liquidity_event,
)
from src.core.domain.events import (
    FeeReserveWithdrawn,
    InterestAccrued,
    LiquidityAdded,
    LiquidityRemoved,
)
from src.pool.event_log import EventLog


def _added(**overrides):
    data = dict(
        ts=1_700_000_000,
        token="USDC",
        caller="alice",
        recipient="alice",
        amount_in=10**9,
        fee_rate=3 * 10**7,
        fee_amount=3 * 10**6,
        dao_fee=15 * 10**5,
        shares_out=997 * 10**18,
        borrow_index=0,
    )
    data.update(overrides)
    return LiquidityAdded(**data)


class TestEventModels:
    def test_all_event_types_match_contract(self):
        events = [
            _added(),
            LiquidityRemoved(
                ts=1, token="USDC", caller="a", recipient="b", shares_in=1, gross_out=2,
                amount_out=1, fee_rate=0, fee_amount=1, dao_fee=0, borrow_index=0,
            ),
            InterestAccrued(ts=1, token="USDC", borrow_index=5, last_accrual_time=0, elapsed_intervals=1),
            FeeReserveWithdrawn(ts=1, token="USDC", recipient="treasury", amount=10),
        ]
        for event in events:
            validate_liquidity_event(event.model_dump(mode="json"))

    def test_uint256_amounts_survive_serialization(self):
        payload = _added(shares_out=2**255).model_dump(mode="json")
        assert payload["shares_out"] == 2**255
        validate_liquidity_event(payload)


class TestContractRejections:
    def test_extra_field(self):
        payload = _added().model_dump(mode="json")
        payload["extra"] = 1
        with pytest.raises(jsonschema.ValidationError):
            validate_liquidity_event(payload)

    def test_negative_amount(self):
        payload = _added().model_dump(mode="json")
        payload["amount_in"] = -1
        with pytest.raises(jsonschema.ValidationError):
            validate_liquidity_event(payload)

    def test_unknown_event_type(self):
        payload = _added().model_dump(mode="json")
        payload["event_type"] = "liquidity_swapped"
        with pytest.raises(jsonschema.ValidationError):
            validate_liquidity_event(payload)

    def test_missing_field(self):
        payload = _added().model_dump(mode="json")
        del payload["shares_out"]
        with pytest.raises(jsonschema.ValidationError):
            validate_liquidity_event(payload)


class TestEventLog:
    def test_emit_and_query(self):
        log = EventLog()
        log.emit(_added())
        log.emit(FeeReserveWithdrawn(ts=1, token="USDC", recipient="treasury", amount=10))
        assert len(log) == 2
        assert [e.event_type for e in log.tail(1)] == ["fee_reserve_withdrawn"]
        assert len(log.of_type("liquidity_added")) == 1

    def test_tail_bounds(self):
        log = EventLog()
        log.emit(_added())
        assert log.tail(0) == []
        assert len(log.tail(10)) == 1

    def test_bounded(self):
        log = EventLog(maxlen=2)
        for ts in range(3):
            log.emit(_added(ts=ts))
        assert [e.ts for e in log.tail()] == [1, 2]

    def test_emit_logs_structured_record(self, caplog):
        caplog.set_level(logging.INFO, logger="src.pool.event_log")
        EventLog().emit(_added())
        record = caplog.records[-1]
        assert record.event == "pool.liquidity_added"
        assert record.payload["token"] == "USDC"

    def test_contract_violation_not_recorded(self):
        """model_construct обходит pydantic; контракт ловит нарушение."""
        log = EventLog()
        bad = LiquidityAdded.model_construct(**{**_added().model_dump(), "amount_in": -5})
        with pytest.raises(jsonschema.ValidationError):
            log.emit(bad)
        assert len(log) == 0


class TestContractValidators:
    def test_validator_shared_per_schema(self):
        assert get_validator(LIQUIDITY_EVENT_SCHEMA) is get_validator(LIQUIDITY_EVENT_SCHEMA)
        assert get_validator(LIQUIDITY_EVENT_SCHEMA) is not get_validator(POOL_CONFIG_SCHEMA)
        assert EventLog()._validator is get_validator(LIQUIDITY_EVENT_SCHEMA)

    def test_event_payload_is_not_a_pool_config(self):
        with pytest.raises(jsonschema.ValidationError):
            get_validator(POOL_CONFIG_SCHEMA).validate(_added().model_dump(mode="json"))

    def test_unknown_schema(self):
        with pytest.raises(FileNotFoundError):
            get_validator("liquidity_swap")
