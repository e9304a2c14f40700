"""Tests for src/core/rates/fees.py: single-payment fee calculation."""

from decimal import Decimal

import pytest

from src.core.rates import (
    Coin,
    InvalidRateError,
    PercentRate,
    RatesOverflowError,
    RatesUnderflowError,
    TemporalError,
    Threshold,
    calculate_fee,
    flat_rate,
    percent_rate,
)
from src.core.rates.fees import decayed_amount, percent_fee
from src.core.rates.math import UINT64_MAX, UINT128_MAX

THRESHOLD = Threshold(unit=2, duration=60, value=5)


# ---------------------------------------------------------------------------
# Flat / percent basics
# ---------------------------------------------------------------------------

class TestBasicFees:
    def test_percent_rounds_in_recipient_favour(self):
        fee = calculate_fee(percent_rate(4), Coin(amount=101, denom="uluna"), None, 0, 0)
        assert fee == Coin(amount=5, denom="uluna")

    def test_flat_ignores_payment(self):
        fee = calculate_fee(flat_rate(5, "uluna"), Coin(amount=125, denom="uluna"), None, 0, 0)
        assert fee == Coin(amount=5, denom="uluna")

    def test_flat_uses_own_denom(self):
        fee = calculate_fee(flat_rate(5, "uatom"), Coin(amount=125, denom="uluna"), None, 0, 0)
        assert fee == Coin(amount=5, denom="uatom")

    def test_percent_exact_no_bump(self):
        fee = calculate_fee(percent_rate(10), Coin(amount=100, denom="uusd"), None, 0, 0)
        assert fee == Coin(amount=10, denom="uusd")

    def test_percent_full(self):
        fee = calculate_fee(PercentRate(percent=Decimal("1")), Coin(amount=77, denom="uusd"), None, 0, 0)
        assert fee.amount == 77

    def test_percent_zero_payment(self):
        assert percent_fee(0, percent_rate(10)) == 0

    def test_percent_one_third(self):
        # floor(100 * 0.333...) = 33; 33 * inv = 99.0..., short of 100 -> 34
        rate = PercentRate(percent=Decimal("0.333333333333333333"))
        assert percent_fee(100, rate) == 34

    def test_percent_tiny_payment_rounds_up(self):
        # 1 unit at 10%: truncates to 0, bumped to 1
        assert percent_fee(1, percent_rate(10)) == 1


# ---------------------------------------------------------------------------
# Threshold decay
# ---------------------------------------------------------------------------

class TestThresholdDecay:
    def test_no_decay_before_first_evaluation(self):
        fee = calculate_fee(flat_rate(20, "uusd"), Coin(amount=100, denom="uusd"), THRESHOLD, 1_000, 0)
        assert fee.amount == 20

    def test_one_period(self):
        fee = calculate_fee(flat_rate(10, "uluna"), Coin(amount=100, denom="uluna"), THRESHOLD, 61, 1)
        assert fee == Coin(amount=8, denom="uluna")

    def test_partial_period_not_counted(self):
        fee = calculate_fee(flat_rate(10, "uluna"), Coin(amount=100, denom="uluna"), THRESHOLD, 101, 1)
        assert fee.amount == 8

    def test_floored_at_value(self):
        fee = calculate_fee(flat_rate(10, "uluna"), Coin(amount=100, denom="uluna"), THRESHOLD, 301, 1)
        assert fee.amount == 5

    def test_300s_elapsed(self):
        fee = calculate_fee(flat_rate(20, "uusd"), Coin(amount=100, denom="uusd"), THRESHOLD, 1_300, 1_000)
        assert fee.amount == 10

    def test_600s_elapsed_clamped(self):
        fee = calculate_fee(flat_rate(20, "uusd"), Coin(amount=100, denom="uusd"), THRESHOLD, 1_600, 1_000)
        assert fee.amount == 5

    def test_decrement_past_amount_underflows(self):
        # 20 - (900 / 60) * 2 = 20 - 30
        with pytest.raises(RatesUnderflowError):
            calculate_fee(flat_rate(20, "uusd"), Coin(amount=100, denom="uusd"), THRESHOLD, 1_900, 1_000)

    def test_decrement_overflow(self):
        t = Threshold(unit=UINT64_MAX, duration=1, value=0)
        with pytest.raises(RatesOverflowError):
            decayed_amount(UINT128_MAX, t, 2)

    def test_zero_duration_rejected(self):
        with pytest.raises(InvalidRateError):
            decayed_amount(20, Threshold(unit=1, duration=0, value=0), 10)

    def test_threshold_ignored_for_percent(self):
        fee = calculate_fee(percent_rate(10), Coin(amount=100, denom="uusd"), THRESHOLD, 10_000, 1)
        assert fee.amount == 10


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------

class TestPreconditions:
    def test_equal_timestamps_rejected(self):
        with pytest.raises(TemporalError):
            calculate_fee(flat_rate(5, "uusd"), Coin(amount=1, denom="uusd"), None, 100, 100)

    def test_backdated_rejected(self):
        with pytest.raises(TemporalError) as exc_info:
            calculate_fee(flat_rate(5, "uusd"), Coin(amount=1, denom="uusd"), None, 99, 100)
        assert exc_info.value.current_timestamp == 99
        assert exc_info.value.last_timestamp == 100

    def test_temporal_error_is_invalid_rate(self):
        with pytest.raises(InvalidRateError):
            calculate_fee(flat_rate(5, "uusd"), Coin(amount=1, denom="uusd"), None, 1, 2)

    def test_unvalidated_percent_rejected(self):
        with pytest.raises(InvalidRateError):
            calculate_fee(PercentRate(percent=Decimal("1.5")), Coin(amount=100, denom="uusd"), None, 0, 0)
        with pytest.raises(InvalidRateError):
            calculate_fee(PercentRate(percent=Decimal("0")), Coin(amount=100, denom="uusd"), None, 0, 0)

    def test_full_rate_at_max_amount_does_not_bump(self):
        rate = PercentRate(percent=Decimal("1"))
        assert percent_fee(UINT128_MAX, rate) == UINT128_MAX
