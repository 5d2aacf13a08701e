"""Asset transfer interface и in-memory ERC20-подобный токен.

Пул никогда не доверяет заявленной сумме депозита: он сверяет
balance_of(pool) со своим tracked_balance. InMemoryToken умеет удерживать
комиссию с перевода (non-standard токен) и вызывать callback во время
перевода (произвольный сторонний код).
"""

from typing import Callable, Protocol

from src.core.math.fixed_point import PRECISION, frac, validate_uint
from src.pool.errors import TransferRejected

TransferCallback = Callable[[str, str, int], None]


class AssetToken(Protocol):
    """Интерфейс переводов базового актива."""

    def balance_of(self, account: str) -> int:
        ...

    def transfer(self, sender: str, to: str, amount: int) -> None:
        ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        ...


class InMemoryToken:
    """
    In-memory токен с балансами и allowances.

    Args:
        symbol: Тикер
        decimals: decimals токена
        transfer_fee: Доля перевода, которая сгорает (PRECISION)
        on_transfer: Callback (sender, to, amount) после каждого перевода
    """

    def __init__(
        self,
        symbol: str,
        decimals: int = 18,
        transfer_fee: int = 0,
        on_transfer: TransferCallback | None = None,
    ):
        if not 0 <= transfer_fee <= PRECISION:
            raise ValueError(f"transfer_fee must be in [0, {PRECISION}], got {transfer_fee}")
        self.symbol = symbol
        self.decimals = decimals
        self.transfer_fee = transfer_fee
        self.on_transfer = on_transfer
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}

    def mint(self, to: str, amount: int) -> None:
        validate_uint(amount, "amount")
        self._balances[to] = self._balances.get(to, 0) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        validate_uint(amount, "amount")
        self._allowances[(owner, spender)] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def transfer(self, sender: str, to: str, amount: int) -> None:
        """
        Перевод от sender.

        Raises:
            TransferRejected: Недостаточный баланс
        """
        self._move(sender, to, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        """
        Перевод по allowance.

        Raises:
            TransferRejected: Недостаточный allowance или баланс
        """
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise TransferRejected(
                f"{self.symbol}: allowance {allowed} < {amount} ({owner} -> {spender})"
            )
        self._move(owner, to, amount)
        self._allowances[(owner, spender)] = allowed - amount

    def _move(self, sender: str, to: str, amount: int) -> None:
        validate_uint(amount, "amount")
        balance = self.balance_of(sender)
        if balance < amount:
            raise TransferRejected(f"{self.symbol}: balance {balance} < {amount} for {sender}")

        fee = frac(amount, self.transfer_fee, PRECISION)
        self._balances[sender] = balance - amount
        self._balances[to] = self.balance_of(to) + amount - fee

        if self.on_transfer is not None:
            self.on_transfer(sender, to, amount)
