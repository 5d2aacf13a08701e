"""ShareLedger — учёт fungible share токена пула.

Ядро не хранит балансы держателей: mint / burn_from / total_supply
полностью делегированы ledger-у.
"""

from typing import Protocol

from src.core.math.fixed_point import validate_uint
from src.pool.errors import ShareLedgerError


class ShareLedger(Protocol):
    """Интерфейс share ledger, который использует ядро пула."""

    def mint(self, to: str, amount: int) -> None:
        ...

    def burn_from(self, holder: str, amount: int) -> None:
        ...

    def total_supply(self) -> int:
        ...


class InMemoryShareLedger:
    """In-memory share токен с балансами держателей."""

    def __init__(self, symbol: str = "LP"):
        self.symbol = symbol
        self._balances: dict[str, int] = {}
        self._total_supply = 0

    def mint(self, to: str, amount: int) -> None:
        validate_uint(amount, "amount")
        self._balances[to] = self._balances.get(to, 0) + amount
        self._total_supply += amount

    def burn_from(self, holder: str, amount: int) -> None:
        """
        Сжигание share держателя.

        Raises:
            ShareLedgerError: Если баланс держателя меньше amount
        """
        validate_uint(amount, "amount")
        balance = self._balances.get(holder, 0)
        if balance < amount:
            raise ShareLedgerError(
                f"burn amount {amount} exceeds balance {balance} of {holder}"
            )
        self._balances[holder] = balance - amount
        self._total_supply -= amount

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)
