"""LiquidityEngine — deposit / withdraw мульти-активного пула.

Порядок операции:
1. InterestAccrual по токену (индекс не должен устаревать между вызовами)
2. Цена токена + FeeCurve + ValuationEngine → размер операции
3. Мутация per-token ledger
4. Обновление virtual pool value
5. Share ledger (mint / burn) и перевод базового актива

Атомарность:
- Вся операция под одним exclusive lock (RLock на движок); повторный вход
  из того же потока (callback токена, hook) отклоняется с REENTRANT_CALL
- Перед операцией снимается snapshot ledger-а (записи immutable, поэтому
  достаточно копии словарей); при любом отказе snapshot восстанавливается
- Внешние эффекты, уже выполненные к моменту отказа (pull депозита, mint,
  burn), компенсируются в обратном порядке
- Withdraw коммитит всю бухгалтерию до исходящего перевода
- События буферизуются и попадают в EventLog только после коммита
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Mapping, Protocol

from src.core.domain.asset import AssetRecord, TokenLedgerState
from src.core.domain.events import (
    FeeReserveWithdrawn,
    InterestAccrued,
    LiquidityAdded,
    LiquidityEvent,
    LiquidityRemoved,
)
from src.core.domain.pool_config import PoolConfig
from src.core.math.fixed_point import LP_INITIAL_PRICE, div_trunc, mul_div, validate_uint
from src.pool.errors import (
    LiquidityErrorCode,
    PriceUnavailable,
    ShareLedgerError,
    TransferRejected,
    _OperationAborted,
)
from src.pool.event_log import EventLog
from src.pool.fee_curve import calc_adjusted_fee_rate, split_fee
from src.pool.interest import accrue_interest
from src.pool.oracle import PriceOracle
from src.pool.results import (
    DepositQuote,
    DepositResult,
    FeeWithdrawResult,
    WithdrawQuote,
    WithdrawResult,
)
from src.pool.share_ledger import ShareLedger
from src.pool.token import AssetToken
from src.pool.valuation import ValuationEngine

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class LiquidityHook(Protocol):
    """Hook, вызываемый после успешной операции (под lock-ом)."""

    def post_deposit(self, caller: str, token: str, amount_in: int, shares_out: int) -> None:
        ...

    def post_withdraw(self, caller: str, token: str, shares_in: int, amount_out: int) -> None:
        ...


def _system_clock() -> int:
    return int(time.time())


class LiquidityEngine:
    """
    Ядро пула ликвидности.

    Args:
        config: Конфигурация пула (whitelist, комиссии, веса, ставки)
        oracle: Источник цен
        share_ledger: Share токен пула
        tokens: token -> контракт базового актива (для каждого whitelisted токена)
        address: Идентификатор пула как держателя токенов
        clock: Источник текущего времени (unix, сек)
        hook: Опциональный post-operation hook
        event_log: Журнал событий (по умолчанию новый EventLog)
    """

    def __init__(
        self,
        config: PoolConfig,
        oracle: PriceOracle,
        share_ledger: ShareLedger,
        tokens: Mapping[str, AssetToken],
        address: str = "liquidity_pool",
        clock: Clock | None = None,
        hook: LiquidityHook | None = None,
        event_log: EventLog | None = None,
    ):
        missing = [t for t in config.all_tokens if t not in tokens]
        if missing:
            raise ValueError(f"no token contract for whitelisted tokens: {missing}")

        self.config = config
        self.oracle = oracle
        self.share_ledger = share_ledger
        self.tokens = dict(tokens)
        self.address = address
        self.clock = clock or _system_clock
        self.hook = hook
        self.event_log = event_log if event_log is not None else EventLog()

        self._valuation = ValuationEngine(oracle)
        self._assets: dict[str, AssetRecord] = {t: AssetRecord() for t in config.all_tokens}
        self._ledgers: dict[str, TokenLedgerState] = {
            t: TokenLedgerState() for t in config.all_tokens
        }
        self._virtual_pool_value = 0

        self._lock = threading.RLock()
        self._entered = False
        self._pending_events: list[LiquidityEvent] = []

    # =========================================================================
    # READ ACCESSORS
    # =========================================================================

    @property
    def virtual_pool_value(self) -> int:
        return self._virtual_pool_value

    def asset_record(self, token: str) -> AssetRecord:
        return self._assets[token]

    def ledger_state(self, token: str) -> TokenLedgerState:
        return self._ledgers[token]

    def get_pool_value(self, use_high_rounding: bool) -> int:
        """AUM пула при заданном округлении цены."""
        with self._lock:
            return self._valuation.aum(self._assets, use_high_rounding)

    def preview_deposit(self, token: str, amount: int) -> DepositQuote:
        """
        Котировка депозита без изменения состояния.

        Raises:
            ValueError: Токен не принимает депозиты
            PriceUnavailable: Нет цены
        """
        if not self.config.is_listed(token):
            raise ValueError(f"token {token} is not accepting deposits")
        with self._lock:
            try:
                return self._quote_deposit(token, amount)
            except _OperationAborted as e:
                raise PriceUnavailable(e.details) from e

    def preview_withdraw(self, token: str, shares_in: int) -> WithdrawQuote:
        """
        Котировка вывода без изменения состояния.

        Raises:
            ValueError: Токен не в whitelist или shares_in вне (0, total_supply]
            PriceUnavailable: Нет цены
        """
        if not self.config.is_whitelisted(token):
            raise ValueError(f"unknown token {token}")
        with self._lock:
            total_supply = self.share_ledger.total_supply()
            if not 0 < shares_in <= total_supply:
                raise ValueError(f"shares_in {shares_in} outside (0, {total_supply}]")
            try:
                return self._quote_withdraw(token, shares_in)
            except _OperationAborted as e:
                raise PriceUnavailable(e.details) from e

    # =========================================================================
    # MUTATING OPERATIONS
    # =========================================================================

    def accrue_interest(self, token: str) -> int:
        """
        Начисление процентов по токену.

        Returns:
            Текущий borrow index

        Raises:
            ValueError: Токен не в whitelist
            RuntimeError: Вызов изнутри другой операции пула
        """
        if not self.config.is_whitelisted(token):
            raise ValueError(f"unknown token {token}")
        try:
            with self._operation([]):
                return self._accrue(token)
        except _OperationAborted as e:
            raise RuntimeError(e.details) from e

    def deposit(
        self,
        caller: str,
        token: str,
        amount: int,
        min_shares_out: int,
        recipient: str,
    ) -> DepositResult:
        """
        Депозит токена в обмен на share.

        Средства забираются через transfer_from(caller); зачисляется реально
        пришедшая сумма (balance - tracked_balance), а не amount.

        Args:
            caller: Кто платит токеном
            token: Listed токен
            amount: Заявленная сумма (token units)
            min_shares_out: Минимум share, иначе SLIPPAGE_EXCEEDED
            recipient: Кому выпускаются share

        Returns:
            DepositResult; ok=False означает, что состояние не изменено
        """
        compensations: list[Callable[[], None]] = []
        try:
            with self._operation(compensations):
                return self._deposit(caller, token, amount, min_shares_out, recipient, compensations)
        except _OperationAborted as e:
            self._log_rejected("deposit", e, caller=caller, token=token, amount=amount)
            return DepositResult.failed(e.code, e.details)

    def withdraw(
        self,
        caller: str,
        token: str,
        shares_in: int,
        min_amount_out: int,
        recipient: str,
    ) -> WithdrawResult:
        """
        Вывод токена за share.

        Share сжигаются у caller, даже если получатель выплаты другой.
        Delisted токен выводить можно.

        Args:
            caller: Держатель share
            token: Whitelisted токен
            shares_in: Сколько share сжечь (> 0)
            min_amount_out: Минимум выплаты, иначе SLIPPAGE_EXCEEDED
            recipient: Кому уходит базовый актив

        Returns:
            WithdrawResult; ok=False означает, что состояние не изменено
        """
        compensations: list[Callable[[], None]] = []
        try:
            with self._operation(compensations):
                return self._withdraw(caller, token, shares_in, min_amount_out, recipient, compensations)
        except _OperationAborted as e:
            self._log_rejected("withdraw", e, caller=caller, token=token, shares_in=shares_in)
            return WithdrawResult.failed(e.code, e.details)

    def withdraw_fee_reserve(self, caller: str, token: str, recipient: str) -> FeeWithdrawResult:
        """Вывод накопленной комиссии протокола (только fee distributor)."""
        try:
            with self._operation([]):
                return self._withdraw_fee_reserve(caller, token, recipient)
        except _OperationAborted as e:
            self._log_rejected("withdraw_fee_reserve", e, caller=caller, token=token)
            return FeeWithdrawResult.failed(e.code, e.details)

    # =========================================================================
    # LEVERAGE-SIDE INTERFACE
    # =========================================================================

    def increase_reserved(self, token: str, amount: int) -> AssetRecord:
        """
        Резервирование капитала под открываемую позицию.

        Проценты начисляются до изменения utilization: прошедшие интервалы
        оплачиваются по прежнему reserved_amount.

        Raises:
            ValueError: Токен не в whitelist, amount <= 0 или reserved превысит pool_amount
            RuntimeError: Вызов изнутри другой операции пула
        """
        return self._change_reserved(token, amount, is_increase=True)

    def decrease_reserved(self, token: str, amount: int) -> AssetRecord:
        """
        Освобождение капитала закрытой позиции.

        Raises:
            ValueError: Токен не в whitelist, amount <= 0 или reserved уйдёт в минус
            RuntimeError: Вызов изнутри другой операции пула
        """
        return self._change_reserved(token, amount, is_increase=False)

    def _change_reserved(self, token: str, amount: int, is_increase: bool) -> AssetRecord:
        if not self.config.is_whitelisted(token):
            raise ValueError(f"unknown token {token}")
        validate_uint(amount, "amount")
        if amount == 0:
            raise ValueError("amount must be positive")

        delta = amount if is_increase else -amount
        try:
            with self._operation([]):
                self._accrue(token)
                asset = self._assets[token]
                self._assets[token] = asset.updated(reserved_amount=asset.reserved_amount + delta)
                return self._assets[token]
        except _OperationAborted as e:
            raise RuntimeError(e.details) from e

    # =========================================================================
    # OPERATION BODIES
    # =========================================================================

    def _deposit(
        self,
        caller: str,
        token: str,
        amount: int,
        min_shares_out: int,
        recipient: str,
        compensations: list[Callable[[], None]],
    ) -> DepositResult:
        # 1. Токен принимает депозиты
        if not self.config.is_listed(token):
            code = (
                LiquidityErrorCode.TOKEN_NOT_LISTED
                if self.config.is_whitelisted(token)
                else LiquidityErrorCode.UNKNOWN_TOKEN
            )
            raise _OperationAborted(code, f"token {token} is not accepting deposits")

        # 2. Pull + сверка реально пришедшей суммы
        asset_token = self.tokens[token]
        try:
            asset_token.transfer_from(self.address, caller, self.address, amount)
        except TransferRejected as e:
            raise _OperationAborted(LiquidityErrorCode.TRANSFER_REJECTED, str(e))

        balance = asset_token.balance_of(self.address)
        ledger = self._ledgers[token]
        amount_in = balance - ledger.tracked_balance
        if amount_in > 0:
            compensations.append(lambda: asset_token.transfer(self.address, caller, amount_in))
        self._ledgers[token] = ledger.updated(tracked_balance=balance)

        if amount_in <= 0:
            raise _OperationAborted(
                LiquidityErrorCode.ZERO_AMOUNT, f"no {token} received (requested {amount})"
            )

        # 3. Interest
        borrow_index = self._accrue(token)

        # 4. Размер операции
        quote = self._quote_deposit(token, amount_in)
        if quote.shares_out < min_shares_out:
            raise _OperationAborted(
                LiquidityErrorCode.SLIPPAGE_EXCEEDED,
                f"shares_out {quote.shares_out} < min_shares_out {min_shares_out}",
            )

        # 5. Бухгалтерия
        asset = self._assets[token]
        self._assets[token] = asset.updated(pool_amount=asset.pool_amount + quote.pool_amount_increase)
        ledger = self._ledgers[token]
        self._ledgers[token] = ledger.updated(fee_reserve=ledger.fee_reserve + quote.dao_fee)
        self._refresh_virtual_pool_value()

        # 6. Share
        try:
            self.share_ledger.mint(recipient, quote.shares_out)
        except ShareLedgerError as e:
            raise _OperationAborted(LiquidityErrorCode.SHARE_LEDGER_REJECTED, str(e))
        compensations.append(lambda: self.share_ledger.burn_from(recipient, quote.shares_out))

        if self.hook is not None:
            self._call_hook(self.hook.post_deposit, caller, token, amount_in, quote.shares_out)

        self._emit(
            LiquidityAdded(
                ts=self.clock(),
                token=token,
                caller=caller,
                recipient=recipient,
                amount_in=amount_in,
                fee_rate=quote.fee_rate,
                fee_amount=quote.fee_amount,
                dao_fee=quote.dao_fee,
                shares_out=quote.shares_out,
                borrow_index=borrow_index,
            )
        )
        return DepositResult(
            ok=True,
            error_code=None,
            details=(
                f"Deposit: {amount_in} {token} -> {quote.shares_out} shares, "
                f"fee_rate={quote.fee_rate}, dao_fee={quote.dao_fee}"
            ),
            amount_in=amount_in,
            fee_amount=quote.fee_amount,
            dao_fee=quote.dao_fee,
            shares_out=quote.shares_out,
            borrow_index=borrow_index,
        )

    def _withdraw(
        self,
        caller: str,
        token: str,
        shares_in: int,
        min_amount_out: int,
        recipient: str,
        compensations: list[Callable[[], None]],
    ) -> WithdrawResult:
        # 1. Валидация входа
        if shares_in <= 0:
            raise _OperationAborted(LiquidityErrorCode.ZERO_AMOUNT, "shares_in must be positive")
        if not self.config.is_whitelisted(token):
            raise _OperationAborted(LiquidityErrorCode.UNKNOWN_TOKEN, f"unknown token {token}")

        total_supply = self.share_ledger.total_supply()
        if shares_in > total_supply:
            raise _OperationAborted(
                LiquidityErrorCode.SHARE_LEDGER_REJECTED,
                f"shares_in {shares_in} exceeds total supply {total_supply}",
            )

        # 2. Interest
        borrow_index = self._accrue(token)

        # 3. Размер операции
        quote = self._quote_withdraw(token, shares_in)

        # 4. Капитал под leverage неприкосновенен (проверка до slippage)
        asset = self._assets[token]
        if asset.pool_amount - quote.pool_amount_decrease < asset.reserved_amount:
            raise _OperationAborted(
                LiquidityErrorCode.INSUFFICIENT_RESERVE,
                f"pool_amount {asset.pool_amount} - out {quote.pool_amount_decrease} "
                f"< reserved {asset.reserved_amount}",
            )

        if quote.amount_out < min_amount_out:
            raise _OperationAborted(
                LiquidityErrorCode.SLIPPAGE_EXCEEDED,
                f"amount_out {quote.amount_out} < min_amount_out {min_amount_out}",
            )

        # 5. Бухгалтерия целиком до исходящего перевода
        self._assets[token] = asset.updated(pool_amount=asset.pool_amount - quote.pool_amount_decrease)
        ledger = self._ledgers[token]
        self._ledgers[token] = ledger.updated(
            fee_reserve=ledger.fee_reserve + quote.dao_fee,
            tracked_balance=ledger.tracked_balance - quote.amount_out,
        )
        self._refresh_virtual_pool_value()

        # 6. Share и перевод
        try:
            self.share_ledger.burn_from(caller, shares_in)
        except ShareLedgerError as e:
            raise _OperationAborted(LiquidityErrorCode.SHARE_LEDGER_REJECTED, str(e))
        compensations.append(lambda: self.share_ledger.mint(caller, shares_in))

        if self.hook is not None:
            self._call_hook(self.hook.post_withdraw, caller, token, shares_in, quote.amount_out)

        # последний шаг: после перевода откатывать нечего
        try:
            self.tokens[token].transfer(self.address, recipient, quote.amount_out)
        except TransferRejected as e:
            raise _OperationAborted(LiquidityErrorCode.TRANSFER_REJECTED, str(e))

        self._emit(
            LiquidityRemoved(
                ts=self.clock(),
                token=token,
                caller=caller,
                recipient=recipient,
                shares_in=shares_in,
                gross_out=quote.gross_out,
                amount_out=quote.amount_out,
                fee_rate=quote.fee_rate,
                fee_amount=quote.fee_amount,
                dao_fee=quote.dao_fee,
                borrow_index=borrow_index,
            )
        )
        return WithdrawResult(
            ok=True,
            error_code=None,
            details=(
                f"Withdraw: {shares_in} shares -> {quote.amount_out} {token}, "
                f"fee_rate={quote.fee_rate}, dao_fee={quote.dao_fee}"
            ),
            shares_in=shares_in,
            gross_out=quote.gross_out,
            amount_out=quote.amount_out,
            fee_amount=quote.fee_amount,
            dao_fee=quote.dao_fee,
            borrow_index=borrow_index,
        )

    def _withdraw_fee_reserve(self, caller: str, token: str, recipient: str) -> FeeWithdrawResult:
        if self.config.fee_distributor is None or caller != self.config.fee_distributor:
            raise _OperationAborted(
                LiquidityErrorCode.FORBIDDEN_CALLER, f"{caller} is not the fee distributor"
            )
        if not self.config.is_whitelisted(token):
            raise _OperationAborted(LiquidityErrorCode.UNKNOWN_TOKEN, f"unknown token {token}")

        ledger = self._ledgers[token]
        amount = ledger.fee_reserve
        if amount == 0:
            raise _OperationAborted(LiquidityErrorCode.ZERO_AMOUNT, f"no {token} fee reserve")

        self._ledgers[token] = ledger.updated(
            fee_reserve=0, tracked_balance=ledger.tracked_balance - amount
        )
        try:
            self.tokens[token].transfer(self.address, recipient, amount)
        except TransferRejected as e:
            raise _OperationAborted(LiquidityErrorCode.TRANSFER_REJECTED, str(e))

        self._emit(
            FeeReserveWithdrawn(ts=self.clock(), token=token, recipient=recipient, amount=amount)
        )
        return FeeWithdrawResult(
            ok=True, error_code=None, details=f"Fee reserve: {amount} {token} -> {recipient}", amount=amount
        )

    # =========================================================================
    # SIZING
    # =========================================================================

    def _quote_deposit(self, token: str, amount_in: int) -> DepositQuote:
        # low rounding: депозит недооценивается с точки зрения вкладчика
        price = self._get_price(token, use_high_rounding=False)
        fee_rate = self._fee_rate(token, price, amount_in * price, is_increase=True)
        split = split_fee(amount_in, fee_rate, self.config.fee.dao_fee)

        pool_value = self._pool_value(use_high_rounding=True)
        total_supply = self.share_ledger.total_supply()
        if total_supply == 0 or pool_value == 0:
            shares_out = mul_div(split.net_amount, price, LP_INITIAL_PRICE)
        else:
            shares_out = div_trunc(split.net_amount * price * total_supply, pool_value)

        return DepositQuote(
            token=token,
            amount_in=amount_in,
            price=price,
            fee_rate=fee_rate,
            user_amount=split.net_amount,
            fee_amount=split.fee_amount,
            dao_fee=split.dao_fee,
            pool_value=pool_value,
            total_supply=total_supply,
            shares_out=shares_out,
        )

    def _quote_withdraw(self, token: str, shares_in: int) -> WithdrawQuote:
        # high rounding: вывод недооценивается с точки зрения выводящего
        price = self._get_price(token, use_high_rounding=True)
        pool_value = self._pool_value(use_high_rounding=True)
        total_supply = self.share_ledger.total_supply()

        value_owed = mul_div(shares_in, pool_value, total_supply)
        gross_out = div_trunc(value_owed, price)
        fee_rate = self._fee_rate(token, price, value_owed, is_increase=False)
        split = split_fee(gross_out, fee_rate, self.config.fee.dao_fee)

        return WithdrawQuote(
            token=token,
            shares_in=shares_in,
            price=price,
            pool_value=pool_value,
            total_supply=total_supply,
            value_owed=value_owed,
            gross_out=gross_out,
            fee_rate=fee_rate,
            amount_out=split.net_amount,
            fee_amount=split.fee_amount,
            dao_fee=split.dao_fee,
        )

    def _fee_rate(self, token: str, price: int, value_change: int, is_increase: bool) -> int:
        weights = self.config.target_weights
        fee = self.config.fee
        return calc_adjusted_fee_rate(
            target_weight=weights.weight_of(token),
            total_weight=weights.total_weight,
            virtual_pool_value=self._virtual_pool_value,
            price=price,
            pool_amount=self._assets[token].pool_amount,
            value_change=value_change,
            base_fee=fee.base_fee,
            tax_basis_points=fee.tax_basis_points,
            is_increase=is_increase,
        )

    def _get_price(self, token: str, use_high_rounding: bool) -> int:
        try:
            price = self.oracle.get_price(token, use_high_rounding)
        except PriceUnavailable as e:
            raise _OperationAborted(LiquidityErrorCode.PRICE_UNAVAILABLE, str(e))
        if price <= 0:
            raise _OperationAborted(
                LiquidityErrorCode.PRICE_UNAVAILABLE, f"non-positive price {price} for {token}"
            )
        return price

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _accrue(self, token: str) -> int:
        interest = self.config.interest
        result = accrue_interest(
            asset=self._assets[token],
            ledger=self._ledgers[token],
            now=self.clock(),
            interest_rate=interest.interest_rate,
            accrual_interval=interest.accrual_interval,
        )
        self._ledgers[token] = result.ledger

        if result.elapsed_intervals > 0:
            self._emit(
                InterestAccrued(
                    ts=self.clock(),
                    token=token,
                    borrow_index=result.borrow_index,
                    last_accrual_time=result.ledger.last_accrual_time,
                    elapsed_intervals=result.elapsed_intervals,
                )
            )
        return result.borrow_index

    def _pool_value(self, use_high_rounding: bool) -> int:
        try:
            return self._valuation.aum(self._assets, use_high_rounding)
        except PriceUnavailable as e:
            raise _OperationAborted(LiquidityErrorCode.PRICE_UNAVAILABLE, str(e))

    def _refresh_virtual_pool_value(self) -> None:
        try:
            self._virtual_pool_value = self._valuation.virtual_value(self._assets)
        except PriceUnavailable as e:
            raise _OperationAborted(LiquidityErrorCode.PRICE_UNAVAILABLE, str(e))

    def _call_hook(self, method: Callable[..., None], *args) -> None:
        try:
            method(*args)
        except Exception as e:
            raise _OperationAborted(LiquidityErrorCode.HOOK_FAILED, f"{type(e).__name__}: {e}")

    @contextmanager
    def _operation(self, compensations: list[Callable[[], None]]) -> Iterator[None]:
        """Exclusive lock + snapshot; откат и компенсации при любом отказе."""
        with self._lock:
            if self._entered:
                raise _OperationAborted(
                    LiquidityErrorCode.REENTRANT_CALL, "pool operation already in progress"
                )
            self._entered = True
            self._pending_events = []
            snapshot = (dict(self._assets), dict(self._ledgers), self._virtual_pool_value)
            try:
                yield
            except BaseException:
                self._assets, self._ledgers, self._virtual_pool_value = snapshot
                for compensate in reversed(compensations):
                    compensate()
                raise
            else:
                # события публикуются только для закоммиченной операции
                for event in self._pending_events:
                    self.event_log.emit(event)
            finally:
                self._entered = False
                self._pending_events = []

    def _emit(self, event: LiquidityEvent) -> None:
        self._pending_events.append(event)

    def _log_rejected(self, operation: str, error: _OperationAborted, **context) -> None:
        logger.warning(
            "%s rejected: %s",
            operation,
            error.details,
            extra={
                "event": f"pool.{operation}_rejected",
                "reason": error.code.value,
                "category": error.code.category.value,
                **context,
            },
        )
