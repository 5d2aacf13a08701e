"""EventLog — журнал событий пула для downstream индексации."""

import logging
from collections import deque
from typing import Optional

from src.core.contracts.validators import LIQUIDITY_EVENT_SCHEMA, get_validator
from src.core.domain.events import LiquidityEvent

logger = logging.getLogger(__name__)


class EventLog:
    """
    Ограниченный журнал событий.

    Каждое событие проверяется по контракту liquidity_event.json до
    добавления и дублируется в logging с structured extra.
    """

    def __init__(self, maxlen: Optional[int] = 10_000) -> None:
        self.events: deque = deque(maxlen=maxlen)
        self._validator = get_validator(LIQUIDITY_EVENT_SCHEMA)

    def emit(self, event: LiquidityEvent) -> None:
        payload = event.model_dump(mode="json")
        self._validator.validate(payload)
        self.events.append(event)
        logger.info(
            "Pool event %s",
            payload["event_type"],
            extra={"event": f"pool.{payload['event_type']}", "payload": payload},
        )

    def tail(self, n: int = 200) -> list:
        if n <= 0:
            return []
        if n >= len(self.events):
            return list(self.events)
        return list(self.events)[-n:]

    def of_type(self, event_type: str) -> list:
        return [e for e in self.events if e.event_type == event_type]

    def __len__(self) -> int:
        return len(self.events)
