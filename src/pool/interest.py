"""InterestAccrual — начисление borrow index дискретными интервалами.

    elapsed = (now - last_accrual_time) // accrual_interval
    borrow_index += elapsed * interest_rate * reserved_amount / pool_amount
    last_accrual_time += elapsed * accrual_interval

- Первое начисление или пустой резерв: якорь сбрасывается на начало
  текущего интервала, индекс не меняется
- elapsed == 0: no-op (идемпотентно внутри интервала)
- Остаток меньше интервала переносится, а не теряется
"""

from dataclasses import dataclass

from src.core.domain.asset import AssetRecord, TokenLedgerState
from src.core.math.fixed_point import div_trunc


@dataclass(frozen=True)
class InterestAccrualResult:
    """Результат начисления."""

    ledger: TokenLedgerState  # новое (или то же) состояние
    elapsed_intervals: int
    anchor_reset: bool  # якорь сброшен (первое начисление / пустой резерв)

    @property
    def borrow_index(self) -> int:
        return self.ledger.borrow_index

    @property
    def changed(self) -> bool:
        return self.elapsed_intervals > 0 or self.anchor_reset


def interval_start(now: int, accrual_interval: int) -> int:
    """Начало интервала, содержащего now."""
    return (now // accrual_interval) * accrual_interval


def accrue_interest(
    asset: AssetRecord,
    ledger: TokenLedgerState,
    now: int,
    interest_rate: int,
    accrual_interval: int,
) -> InterestAccrualResult:
    """
    Начисление процентов по токену.

    Args:
        asset: Резервы токена (pool_amount, reserved_amount)
        ledger: Текущее состояние токена (borrow_index, last_accrual_time)
        now: Текущее время (unix, сек)
        interest_rate: Прирост индекса за интервал при 100% utilization
        accrual_interval: Квант времени (сек)

    Returns:
        InterestAccrualResult; borrow_index никогда не убывает
    """
    if ledger.last_accrual_time == 0 or asset.pool_amount == 0:
        anchor = interval_start(now, accrual_interval)
        return InterestAccrualResult(
            ledger=ledger.updated(last_accrual_time=anchor),
            elapsed_intervals=0,
            anchor_reset=anchor != ledger.last_accrual_time,
        )

    # now < last_accrual_time (часы назад) даёт 0 интервалов, а не отрицательный прирост
    elapsed_intervals = max(div_trunc(now - ledger.last_accrual_time, accrual_interval), 0)
    if elapsed_intervals == 0:
        return InterestAccrualResult(ledger=ledger, elapsed_intervals=0, anchor_reset=False)

    index_delta = div_trunc(
        elapsed_intervals * interest_rate * asset.reserved_amount,
        asset.pool_amount,
    )
    new_ledger = ledger.updated(
        borrow_index=ledger.borrow_index + index_delta,
        last_accrual_time=ledger.last_accrual_time + elapsed_intervals * accrual_interval,
    )
    return InterestAccrualResult(
        ledger=new_ledger, elapsed_intervals=elapsed_intervals, anchor_reset=False
    )
