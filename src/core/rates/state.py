"""State construction and serialization for the rates kernel.

`initial_state()` returns a validated ``RatesState`` with the decay clock unset.

Dict format (JSON-compatible; u128 amounts as decimal strings, percent as a
decimal string so no float ever touches a rate):

    {"rate": {"flat": {"amount": "20", "denom": "uusd"}}, "is_additive": true,
     "description": "desc", "recipients": ["addr1"],
     "threshold": {"unit": 2, "duration": 60, "value": "5"}}

    {"rate": {"percent": {"percent": "0.1"}}, ...}

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s`.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from .distribution import validate_rates
from .math import UINT64_MAX, UINT128_MAX
from .types import (
    Coin,
    FlatRate,
    PercentRate,
    Rate,
    RateEntry,
    RatesState,
    Threshold,
)

RATE_ENTRY_FIELDS: tuple[str, ...] = tuple(RateEntry.__dataclass_fields__)


def initial_state(rates: Iterable[RateEntry] = ()) -> RatesState:
    """Validated rate list with ``last_timestamp == 0``."""
    return RatesState(rates=validate_rates(rates), last_timestamp=0)


# -- Scalars -----------------------------------------------------------------

def _parse_uint(name: str, value: Any, bound: int) -> int:
    if isinstance(value, bool):
        raise TypeError(f"{name} must be an int or decimal string, got bool")
    if isinstance(value, int):
        out = value
    elif isinstance(value, str) and value.isascii() and value.isdigit():
        out = int(value)
    else:
        raise TypeError(f"{name} must be an int or decimal string, got {type(value).__name__}")
    if out > bound:
        raise ValueError(f"{name} exceeds {bound}: {out}")
    return out


def _parse_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, float) or isinstance(value, bool):
        raise TypeError(f"{name} must be a decimal string, not {type(value).__name__}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{name} is not a decimal: {value!r}") from exc


# -- Rates -------------------------------------------------------------------

def rate_to_dict(rate: Rate) -> dict[str, Any]:
    if isinstance(rate, FlatRate):
        return {"flat": {"amount": str(rate.coin.amount), "denom": rate.coin.denom}}
    if isinstance(rate, PercentRate):
        return {"percent": {"percent": str(rate.percent)}}
    raise TypeError(f"unsupported rate: {rate!r}")


def rate_from_dict(d: Mapping[str, Any]) -> Rate:
    if len(d) != 1:
        raise ValueError(f"rate must have exactly one variant key, got {sorted(d)}")
    ((tag, body),) = d.items()
    if tag == "flat":
        return FlatRate(
            coin=Coin(amount=_parse_uint("amount", body["amount"], UINT128_MAX), denom=body["denom"])
        )
    if tag == "percent":
        return PercentRate(percent=_parse_decimal("percent", body["percent"]))
    raise ValueError(f"unknown rate variant: {tag!r}")


def threshold_to_dict(threshold: Threshold) -> dict[str, Any]:
    return {"unit": threshold.unit, "duration": threshold.duration, "value": str(threshold.value)}


def threshold_from_dict(d: Mapping[str, Any]) -> Threshold:
    return Threshold(
        unit=_parse_uint("unit", d["unit"], UINT64_MAX),
        duration=_parse_uint("duration", d["duration"], UINT64_MAX),
        value=_parse_uint("value", d["value"], UINT128_MAX),
    )


def _recipient_address(raw: Any) -> str:
    # Recipients may be plain addresses or {"address": ...} objects.
    if isinstance(raw, Mapping):
        raw = raw["address"]
    if not isinstance(raw, str):
        raise TypeError(f"recipient must be an address string, got {type(raw).__name__}")
    return raw


def rate_entry_to_dict(entry: RateEntry) -> dict[str, Any]:
    return {
        "rate": rate_to_dict(entry.rate),
        "is_additive": entry.is_additive,
        "description": entry.description,
        "recipients": list(entry.recipients),
        "threshold": threshold_to_dict(entry.threshold) if entry.threshold is not None else None,
    }


def rate_entry_from_dict(d: Mapping[str, Any]) -> RateEntry:
    """Deserialize one entry. Raises KeyError on missing ``rate``/``recipients``."""
    unknown = set(d) - set(RATE_ENTRY_FIELDS)
    if unknown:
        raise ValueError(f"unknown rate entry fields: {sorted(unknown)}")
    threshold = d.get("threshold")
    return RateEntry(
        rate=rate_from_dict(d["rate"]),
        is_additive=d.get("is_additive", False),
        description=d.get("description"),
        recipients=tuple(_recipient_address(r) for r in d["recipients"]),
        threshold=threshold_from_dict(threshold) if threshold is not None else None,
    )


# -- State -------------------------------------------------------------------

def state_to_dict(state: RatesState) -> dict[str, Any]:
    return {
        "rates": [rate_entry_to_dict(e) for e in state.rates],
        "last_timestamp": state.last_timestamp,
    }


def state_from_dict(d: Mapping[str, Any]) -> RatesState:
    """Deserialize and validate. Raises KeyError on missing fields."""
    rates = validate_rates(rate_entry_from_dict(e) for e in d["rates"])
    return RatesState(rates=rates, last_timestamp=_parse_uint("last_timestamp", d["last_timestamp"], UINT64_MAX))
