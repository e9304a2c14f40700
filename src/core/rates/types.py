"""Data types for the rates kernel.

All types are frozen dataclasses (immutable). Amounts are plain ints bounded by
the ledger's unsigned widths (see ``math.py``).

Units/conventions:
- ``Coin.amount`` is an integer count of the denomination's smallest unit.
- ``PercentRate.percent`` is a ``Decimal`` fraction in (0, 1], 18 fractional digits max.
- Timestamps are u64 seconds; ``0`` is the "never evaluated" sentinel.
- A token payment's denom is the token contract address.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, unique
from typing import Optional, Tuple, Union

from .errors import InvalidRateError
from .math import UINT64_MAX, UINT128_MAX, decimal_to_atomics, require_uint, shift_decimal

Address = str


def _require_str(name: str, value: object) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    return value


@dataclass(frozen=True)
class Coin:
    amount: int
    denom: str

    def __post_init__(self) -> None:
        require_uint("amount", self.amount, UINT128_MAX)
        _require_str("denom", self.denom)

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------

class Rate:
    """A fee specification: ``FlatRate`` or ``PercentRate``."""

    def is_non_zero(self) -> bool:
        raise NotImplementedError

    def validate(self) -> "Rate":
        """Return ``self`` if the rate is usable, else raise ``InvalidRateError``."""
        if not self.is_non_zero():
            raise InvalidRateError(f"rate must be non-zero: {self!r}")
        return self


@dataclass(frozen=True)
class FlatRate(Rate):
    coin: Coin

    def __post_init__(self) -> None:
        if not isinstance(self.coin, Coin):
            raise TypeError("coin must be a Coin")

    def is_non_zero(self) -> bool:
        return self.coin.amount != 0


@dataclass(frozen=True)
class PercentRate(Rate):
    percent: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.percent, Decimal):
            raise TypeError("percent must be a Decimal")

    @property
    def atomics(self) -> int | None:
        """The fraction scaled by 1e18, or None if it is not representable."""
        return decimal_to_atomics(self.percent)

    def is_non_zero(self) -> bool:
        return not self.percent.is_zero()

    def validate(self) -> "PercentRate":
        super().validate()
        atomics = self.atomics
        if atomics is None:
            raise InvalidRateError(f"percent must have at most 18 fractional digits: {self.percent}")
        if atomics < 0:
            raise InvalidRateError(f"percent must be positive: {self.percent}")
        if self.percent > 1:
            raise InvalidRateError(f"percent must not exceed one: {self.percent}")
        return self


def flat_rate(amount: int, denom: str) -> FlatRate:
    return FlatRate(coin=Coin(amount=amount, denom=denom))


def percent_rate(value: Union[int, str, Decimal]) -> PercentRate:
    """Percent rate from a value in percent, e.g. ``percent_rate(10)`` is 10%."""
    return PercentRate(percent=shift_decimal(Decimal(value), -2))


@dataclass(frozen=True)
class Threshold:
    """Time-based decay of a flat fee, floored at ``value``."""

    unit: int  # subtracted per elapsed period
    duration: int  # seconds per period
    value: int  # floor

    def __post_init__(self) -> None:
        require_uint("unit", self.unit, UINT64_MAX)
        require_uint("duration", self.duration, UINT64_MAX)
        require_uint("value", self.value, UINT128_MAX)


@dataclass(frozen=True)
class RateEntry:
    """One configured fee. ``threshold`` only applies to flat rates."""

    rate: Rate
    is_additive: bool
    recipients: Tuple[Address, ...]
    description: Optional[str] = None
    threshold: Optional[Threshold] = None

    def __post_init__(self) -> None:
        if not isinstance(self.rate, (FlatRate, PercentRate)):
            raise TypeError("rate must be a FlatRate or PercentRate")
        if not isinstance(self.is_additive, bool):
            raise TypeError("is_additive must be a bool")
        # Accept any sequence of addresses but store a tuple.
        object.__setattr__(self, "recipients", tuple(self.recipients))
        for r in self.recipients:
            if not isinstance(r, str):
                raise TypeError("recipients must be str addresses")
        if self.description is not None and not isinstance(self.description, str):
            raise TypeError("description must be a str")
        if self.threshold is not None and not isinstance(self.threshold, Threshold):
            raise TypeError("threshold must be a Threshold")


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NativePayment:
    """Native ledger asset payment."""

    coin: Coin

    def __post_init__(self) -> None:
        if not isinstance(self.coin, Coin):
            raise TypeError("coin must be a Coin")

    @property
    def amount(self) -> int:
        return self.coin.amount

    @property
    def denom(self) -> str:
        return self.coin.denom

    def with_amount(self, amount: int) -> "NativePayment":
        return NativePayment(coin=Coin(amount=amount, denom=self.coin.denom))


@dataclass(frozen=True)
class TokenPayment:
    """Token-contract payment; the balance lives in the contract at ``address``."""

    address: Address
    amount: int

    def __post_init__(self) -> None:
        _require_str("address", self.address)
        require_uint("amount", self.amount, UINT128_MAX)

    @property
    def denom(self) -> str:
        return self.address

    @property
    def coin(self) -> Coin:
        return Coin(amount=self.amount, denom=self.address)

    def with_amount(self, amount: int) -> "TokenPayment":
        return TokenPayment(address=self.address, amount=amount)


Payment = Union[NativePayment, TokenPayment]


# ---------------------------------------------------------------------------
# Instructions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BankSend:
    """Direct native-asset transfer."""

    to_address: Address
    amount: Coin


@dataclass(frozen=True)
class TokenTransfer:
    """``transfer`` executed on the token contract; moves an internal balance."""

    contract_addr: Address
    recipient: Address
    amount: int


@dataclass(frozen=True)
class UpdateSaleTimestamp:
    """Self-addressed instruction persisting the decay clock."""

    contract_addr: Address
    last_timestamp: int


Instruction = Union[BankSend, TokenTransfer, UpdateSaleTimestamp]


# ---------------------------------------------------------------------------
# Events / results
# ---------------------------------------------------------------------------

@unique
class EventKind(Enum):
    TAX = "tax"
    ROYALTY = "royalty"


@dataclass(frozen=True)
class AccountingEvent:
    kind: EventKind
    attributes: Tuple[Tuple[str, str], ...] = ()

    def get(self, key: str) -> list[str]:
        """All values recorded under ``key``, in emission order."""
        return [v for k, v in self.attributes if k == key]


@dataclass(frozen=True)
class DistributionResult:
    instructions: Tuple[Instruction, ...]
    events: Tuple[AccountingEvent, ...]
    leftover: Payment


@dataclass(frozen=True)
class RatesState:
    """Configured rate list plus the decay clock (0 = never evaluated)."""

    rates: Tuple[RateEntry, ...] = field(default_factory=tuple)
    last_timestamp: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "rates", tuple(self.rates))
        require_uint("last_timestamp", self.last_timestamp, UINT64_MAX)
