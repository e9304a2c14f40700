"""Pure integer arithmetic for the rates kernel.

Every helper operates on plain Python ints and enforces the unsigned bounds of
the host ledger explicitly: Python ints never wrap, so overflow has to be
detected by comparison rather than by the type.

Percent rates are evaluated in 18-digit fixed point (``DECIMAL_FRACTIONAL``).
Multiplication and reciprocal both floor, which is what the rounding policy in
``fees.py`` is defined against.
"""

from __future__ import annotations

from decimal import Decimal

from .errors import RatesOverflowError, RatesUnderflowError

UINT64_MAX: int = (1 << 64) - 1
UINT128_MAX: int = (1 << 128) - 1

DECIMAL_PLACES: int = 18
DECIMAL_FRACTIONAL: int = 10**DECIMAL_PLACES


def is_uint(value: object, bound: int) -> bool:
    """True when *value* is a non-bool int in ``[0, bound]``."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= bound


def require_uint(name: str, value: object, bound: int) -> int:
    """Return *value* unchanged or raise ``TypeError``/``ValueError``."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= value <= bound):
        raise ValueError(f"{name} must be in [0, {bound}]: {value}")
    return value


# -- Checked arithmetic --------------------------------------------------------

def checked_add(a: int, b: int, bound: int = UINT128_MAX) -> int:
    out = a + b
    if out > bound:
        raise RatesOverflowError(f"overflow: {a} + {b} exceeds {bound}")
    return out


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise RatesUnderflowError(f"underflow: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int, bound: int = UINT128_MAX) -> int:
    out = a * b
    if out > bound:
        raise RatesOverflowError(f"overflow: {a} * {b} exceeds {bound}")
    return out


# -- Fixed-point decimals ------------------------------------------------------

def shift_decimal(value: Decimal, places: int) -> Decimal:
    """Multiply *value* by ``10**places`` by moving the exponent only.

    Unlike ``scaleb`` or division this never rounds to the context precision.
    """
    if not value.is_finite():
        return value
    sign, digits, exponent = value.as_tuple()
    return Decimal((sign, digits, exponent + places))


def decimal_to_atomics(value: Decimal) -> int | None:
    """Scale *value* by 1e18. Returns None if it is not exactly representable."""
    if not value.is_finite():
        return None
    sign, digits, exponent = value.as_tuple()
    coefficient = int("".join(map(str, digits)) or "0")
    if coefficient == 0:
        return 0
    shift = exponent + DECIMAL_PLACES
    # Out of u128 range, or too small to scale to a whole unit.
    if value.adjusted() + DECIMAL_PLACES > 38 or -shift > len(digits):
        return None
    if shift >= 0:
        atomics = coefficient * 10**shift
    else:
        atomics, rest = divmod(coefficient, 10**-shift)
        if rest:
            return None
    return -atomics if sign else atomics


def mul_atomics_floor(amount: int, atomics: int) -> int:
    """``floor(amount * atomics / 1e18)``."""
    return (amount * atomics) // DECIMAL_FRACTIONAL


def inv_atomics(atomics: int) -> int:
    """Fixed-point reciprocal, floored: ``floor(1e18 * 1e18 / atomics)``.

    Callers guarantee ``atomics > 0``.
    """
    return (DECIMAL_FRACTIONAL * DECIMAL_FRACTIONAL) // atomics
