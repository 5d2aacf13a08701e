"""FeeCurve — ставка комиссии в зависимости от отклонения от target weight.

Операция, которая приближает стоимость токена к целевой, получает скидку
от base_fee; операция, которая удаляет от цели, платит надбавку,
насыщающуюся на tax_basis_points.

    target_value = target_weight / total_weight * virtual_pool_value
    current_value = price * pool_amount
    next_value = current_value ± value_change

    nextDiff < initDiff:  fee = base_fee - min(base_fee, tax * initDiff / target)
    иначе:                avgDiff = (initDiff + nextDiff) / 2
                          fee = base_fee + (tax если avgDiff >= target
                                            иначе tax * avgDiff / target)

Все величины — целые, деление усекает к нулю.
"""

from dataclasses import dataclass

from src.core.math.fixed_point import PRECISION, abs_diff, frac, mul_div, zero_cap_sub


@dataclass(frozen=True)
class FeeSplit:
    """Разбиение суммы на net и комиссию."""

    gross_amount: int
    net_amount: int  # gross * (PRECISION - fee_rate) / PRECISION
    fee_amount: int  # gross - net
    dao_fee: int  # доля протокола из fee_amount
    fee_rate: int


def calc_target_value(
    target_weight: int,
    total_weight: int,
    virtual_pool_value: int,
) -> int:
    """Целевая стоимость токена; 0 если весов нет."""
    if total_weight == 0 or target_weight == 0:
        return 0
    return mul_div(target_weight, virtual_pool_value, total_weight)


def calc_adjusted_fee_rate(
    target_weight: int,
    total_weight: int,
    virtual_pool_value: int,
    price: int,
    pool_amount: int,
    value_change: int,
    base_fee: int,
    tax_basis_points: int,
    is_increase: bool,
) -> int:
    """
    Ставка комиссии операции (PRECISION).

    Args:
        target_weight: Целевой вес токена
        total_weight: Сумма всех весов
        virtual_pool_value: Сглаженная стоимость пула (знаменатель отклонений)
        price: Цена токена (VALUE_PRECISION за token unit)
        pool_amount: Текущий резерв токена
        value_change: Модуль изменения стоимости токена в пуле
        base_fee: Базовая ставка
        tax_basis_points: Крутизна надбавки/скидки
        is_increase: True для депозита, False для вывода

    Returns:
        base_fee без изменений если target_value == 0; иначе скорректированная ставка
    """
    target_value = calc_target_value(target_weight, total_weight, virtual_pool_value)
    if target_value == 0:
        return base_fee

    current_value = price * pool_amount
    # next_value может уйти в минус при выводе больше резерва; модуль разности
    # остаётся корректным, а сам вывод отклонит проверка резерва
    next_value = current_value + value_change if is_increase else current_value - value_change

    init_diff = abs_diff(current_value, target_value)
    next_diff = abs_diff(next_value, target_value)

    if next_diff < init_diff:
        discount = mul_div(tax_basis_points, init_diff, target_value)
        return zero_cap_sub(base_fee, discount)

    avg_diff = (init_diff + next_diff) // 2
    if avg_diff >= target_value:
        surcharge = tax_basis_points
    else:
        surcharge = mul_div(tax_basis_points, avg_diff, target_value)
    return base_fee + surcharge


def apply_fee_rate(amount: int, fee_rate: int) -> int:
    """Net сумма после комиссии: amount * (PRECISION - fee_rate) / PRECISION."""
    return frac(amount, zero_cap_sub(PRECISION, fee_rate), PRECISION)


def protocol_fee_cut(fee_amount: int, dao_fee: int) -> int:
    """Доля протокола из комиссии; всегда <= fee_amount при dao_fee <= PRECISION."""
    return frac(fee_amount, dao_fee, PRECISION)


def split_fee(gross_amount: int, fee_rate: int, dao_fee: int) -> FeeSplit:
    """
    Разбиение gross суммы на net, комиссию и долю протокола.

    Оставшаяся часть комиссии (fee_amount - dao_fee) остаётся в пуле и
    достаётся держателям share.
    """
    net_amount = apply_fee_rate(gross_amount, fee_rate)
    fee_amount = gross_amount - net_amount
    return FeeSplit(
        gross_amount=gross_amount,
        net_amount=net_amount,
        fee_amount=fee_amount,
        dao_fee=protocol_fee_cut(fee_amount, dao_fee),
        fee_rate=fee_rate,
    )
