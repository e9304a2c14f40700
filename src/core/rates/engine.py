"""Dispatch-table engine for the rates module.

``step(state, params)`` is the single entry point for state changes. It:

1. Dispatches to the guard / update function for the action.
2. Validates the post-state (full rate-list validation).
3. Returns a ``StepResult`` (accepted with response attributes, or rejected
   with a reason).

Queries (``deducted_funds``, ``query_payments``) never change state; the
caller folds the returned ``UpdateSaleTimestamp`` back in with
``apply_instruction``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum, unique
from typing import Any, Callable, Optional, Tuple

from .distribution import distribute, validate_rates
from .errors import InvalidRateError, RatesError, TemporalError
from .math import UINT64_MAX, is_uint
from .state import state_to_dict
from .types import DistributionResult, Payment, RateEntry, RatesState, UpdateSaleTimestamp

logger = logging.getLogger(__name__)


@unique
class Action(Enum):
    UPDATE_RATES = "update_rates"
    UPDATE_SALE_TIMESTAMP = "update_sale_timestamp"


@dataclass(frozen=True)
class ActionParams:
    """Parameters for an action. Unused fields keep their defaults."""

    action: Action
    rates: Tuple[RateEntry, ...] = ()   # update_rates
    last_timestamp: int = 0             # update_sale_timestamp


@dataclass(frozen=True)
class StepResult:
    accepted: bool
    state: Optional[RatesState] = None
    attributes: Tuple[Tuple[str, str], ...] = ()
    rejection: Optional[str] = None
    error: Optional[RatesError] = None


GuardFn = Callable[[RatesState, ActionParams], bool]
UpdateFn = Callable[[RatesState, ActionParams], RatesState]


def guard_update_rates(state: RatesState, params: ActionParams) -> bool:
    return True


def apply_update_rates(state: RatesState, params: ActionParams) -> RatesState:
    return replace(state, rates=tuple(params.rates))


def guard_update_sale_timestamp(state: RatesState, params: ActionParams) -> bool:
    # The decay clock only moves forward.
    return is_uint(params.last_timestamp, UINT64_MAX) and params.last_timestamp >= state.last_timestamp


def apply_update_sale_timestamp(state: RatesState, params: ActionParams) -> RatesState:
    return replace(state, last_timestamp=params.last_timestamp)


_DISPATCH: dict[Action, tuple[GuardFn, UpdateFn]] = {
    Action.UPDATE_RATES: (guard_update_rates, apply_update_rates),
    Action.UPDATE_SALE_TIMESTAMP: (guard_update_sale_timestamp, apply_update_sale_timestamp),
}


def step(state: RatesState, params: ActionParams) -> StepResult:
    """Execute one action against the given state.

    Returns ``StepResult`` with ``accepted=True`` on success,
    or ``accepted=False`` with a ``rejection`` reason string.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return StepResult(accepted=False, rejection=f"unknown_action:{params.action}")

    guard_fn, update_fn = entry
    if not guard_fn(state, params):
        err: Optional[RatesError] = None
        if params.action is Action.UPDATE_SALE_TIMESTAMP:
            err = TemporalError(params.last_timestamp, state.last_timestamp)
        return StepResult(accepted=False, rejection="guard", error=err)

    new_state = update_fn(state, params)
    try:
        validate_rates(new_state.rates)
    except RatesError as exc:
        return StepResult(accepted=False, rejection=f"invalid_rates:{exc}", error=exc)

    logger.info("rates_step", extra={"action": params.action.value, "rate_count": len(new_state.rates)})
    return StepResult(
        accepted=True,
        state=new_state,
        attributes=(("action", params.action.value),),
    )


def step_or_raise(state: RatesState, params: ActionParams) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        InvalidRateError: the new rate list fails validation.
        TemporalError: the decay clock would move backwards.
    """
    result = step(state, params)
    if result.accepted:
        return result
    if result.error is not None:
        raise result.error
    raise InvalidRateError(result.rejection or "rejected")


def apply_instruction(state: RatesState, instruction: UpdateSaleTimestamp) -> RatesState:
    """Fold the engine's trailing timestamp instruction back into ``state``."""
    result = step_or_raise(
        state,
        ActionParams(action=Action.UPDATE_SALE_TIMESTAMP, last_timestamp=instruction.last_timestamp),
    )
    assert result.state is not None
    return result.state


def deducted_funds(
    state: RatesState,
    payment: Payment,
    current_timestamp: int,
    *,
    contract_address: str,
) -> DistributionResult:
    """Run ``distribute`` against the state's rates and decay clock."""
    return distribute(
        state.rates,
        payment,
        current_timestamp,
        state.last_timestamp,
        contract_address=contract_address,
    )


def query_payments(state: RatesState) -> dict[str, Any]:
    """``{"payments": [...], "last_timestamp": n}``."""
    d = state_to_dict(state)
    return {"payments": d["rates"], "last_timestamp": d["last_timestamp"]}
