"""`rates`: fee calculation and distribution kernel.

- deterministic, integer-only fee arithmetic (18-digit fixed point for percents),
- immutable values (frozen dataclasses),
- fail-closed validation with typed errors.

Public API:
- `calculate_fee(rate, payment, threshold, current_timestamp, last_timestamp) -> Coin`
- `distribute(rate_entries, payment, current_timestamp, last_timestamp, *, contract_address) -> DistributionResult`
- `validate_rates(rate_entries) -> tuple[RateEntry, ...]`
- `step(state, params) -> StepResult` / `step_or_raise(state, params)`
"""

from .distribution import distribute, split_among_recipients, validate_rates
from .encoding import result_digest, result_to_dict
from .engine import (
    Action,
    ActionParams,
    StepResult,
    apply_instruction,
    deducted_funds,
    query_payments,
    step,
    step_or_raise,
)
from .errors import (
    InvalidRateError,
    RatesArithmeticError,
    RatesError,
    RatesOverflowError,
    RatesUnderflowError,
    TemporalError,
)
from .fees import calculate_fee
from .state import initial_state, state_from_dict, state_to_dict
from .types import (
    AccountingEvent,
    BankSend,
    Coin,
    DistributionResult,
    EventKind,
    FlatRate,
    NativePayment,
    PercentRate,
    Rate,
    RateEntry,
    RatesState,
    Threshold,
    TokenPayment,
    TokenTransfer,
    UpdateSaleTimestamp,
    flat_rate,
    percent_rate,
)

__all__ = [
    "calculate_fee",
    "distribute",
    "split_among_recipients",
    "validate_rates",
    "result_digest",
    "result_to_dict",
    "Action",
    "ActionParams",
    "StepResult",
    "apply_instruction",
    "deducted_funds",
    "query_payments",
    "step",
    "step_or_raise",
    "initial_state",
    "state_from_dict",
    "state_to_dict",
    "AccountingEvent",
    "BankSend",
    "Coin",
    "DistributionResult",
    "EventKind",
    "FlatRate",
    "NativePayment",
    "PercentRate",
    "Rate",
    "RateEntry",
    "RatesState",
    "Threshold",
    "TokenPayment",
    "TokenTransfer",
    "UpdateSaleTimestamp",
    "flat_rate",
    "percent_rate",
    "InvalidRateError",
    "RatesArithmeticError",
    "RatesError",
    "RatesOverflowError",
    "RatesUnderflowError",
    "TemporalError",
]
