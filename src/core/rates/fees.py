"""
Fee calculation kernel (deterministic, integer-only).

One rate, one payment, one fee. Two rounding rules matter here:

- Flat fees with a ``Threshold`` decay by ``unit`` per whole ``duration``
  elapsed since the decay clock, and never below ``threshold.value``.
- Percent fees round in the fee recipient's favour: the truncated fee is
  bumped by one unit whenever scaling it back by the reciprocal rate falls
  short of the payment.
"""

from __future__ import annotations

import logging
from typing import Optional

from .errors import InvalidRateError, TemporalError
from .math import (
    UINT64_MAX,
    checked_add,
    checked_mul,
    checked_sub,
    inv_atomics,
    mul_atomics_floor,
    require_uint,
)
from .types import Coin, FlatRate, PercentRate, Rate, Threshold

logger = logging.getLogger(__name__)


def check_timestamps(current_timestamp: int, last_timestamp: int) -> None:
    """Fail unless the clock is unset or strictly advancing."""
    require_uint("current_timestamp", current_timestamp, UINT64_MAX)
    require_uint("last_timestamp", last_timestamp, UINT64_MAX)
    if last_timestamp != 0 and current_timestamp <= last_timestamp:
        raise TemporalError(current_timestamp, last_timestamp)


def decayed_amount(amount: int, threshold: Threshold, elapsed: int) -> int:
    """Flat amount after ``elapsed`` seconds of decay, floored at ``threshold.value``.

    Raises:
        InvalidRateError: ``threshold.duration`` is zero.
        RatesOverflowError: the decrement leaves the u64 domain.
        RatesUnderflowError: the decrement exceeds ``amount``.
    """
    if threshold.duration == 0:
        raise InvalidRateError("threshold duration must be positive")
    periods = elapsed // threshold.duration
    decrement = checked_mul(periods, threshold.unit, UINT64_MAX)
    decremented = checked_sub(amount, decrement)
    return max(decremented, threshold.value)


def percent_fee(amount: int, rate: PercentRate) -> int:
    """``floor(amount * percent)``, plus one unit if truncation favoured the payer."""
    atomics = rate.atomics
    if atomics is None or atomics <= 0 or rate.percent > 1:
        raise InvalidRateError(f"percent must be in (0, 1]: {rate.percent}")

    fee = mul_atomics_floor(amount, atomics)
    reversed_fee = mul_atomics_floor(fee, inv_atomics(atomics))
    if amount > reversed_fee:
        fee = checked_add(fee, 1)
    return fee


def calculate_fee(
    rate: Rate,
    payment: Coin,
    threshold: Optional[Threshold],
    current_timestamp: int,
    last_timestamp: int,
) -> Coin:
    """
    Compute the fee owed on ``payment`` under ``rate``.

    Flat fees are denominated in the rate's own denom; percent fees in the
    payment's denom. ``threshold`` is only consulted for flat rates, and only
    once the decay clock has been started (``last_timestamp != 0``).
    """
    check_timestamps(current_timestamp, last_timestamp)

    if isinstance(rate, FlatRate):
        amount = rate.coin.amount
        if threshold is not None and last_timestamp != 0:
            amount = decayed_amount(amount, threshold, current_timestamp - last_timestamp)
        fee = Coin(amount=amount, denom=rate.coin.denom)
    elif isinstance(rate, PercentRate):
        fee = Coin(amount=percent_fee(payment.amount, rate), denom=payment.denom)
    else:
        raise InvalidRateError(f"unsupported rate: {rate!r}")

    logger.debug(
        "fee_calculated",
        extra={
            "rate_kind": type(rate).__name__,
            "payment": str(payment),
            "fee": str(fee),
            "decayed": threshold is not None and last_timestamp != 0 and isinstance(rate, FlatRate),
        },
    )
    return fee
