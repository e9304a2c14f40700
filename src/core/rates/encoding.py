"""
Deterministic encoding of distribution results.

These helpers exist for audit and replay checks: two evaluations with the same
inputs must produce byte-identical ``canonical_json_bytes`` and therefore the
same ``result_digest``. They are not the host's message envelope.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from .types import (
    AccountingEvent,
    BankSend,
    DistributionResult,
    Instruction,
    NativePayment,
    Payment,
    TokenPayment,
    TokenTransfer,
    UpdateSaleTimestamp,
)


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _reject_floats(v)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for hashing.

    Rules:
    - UTF-8
    - sort_keys=True
    - separators=(',', ':') (no whitespace)
    - allow_nan=False
    - floats rejected (to avoid representation ambiguity)
    """
    _reject_floats(value)
    text = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return text.encode("utf-8")


def payment_to_dict(payment: Payment) -> dict[str, Any]:
    if isinstance(payment, NativePayment):
        return {"native": {"amount": str(payment.amount), "denom": payment.denom}}
    if isinstance(payment, TokenPayment):
        return {"token": {"amount": str(payment.amount), "address": payment.address}}
    raise TypeError(f"unsupported payment: {payment!r}")


def instruction_to_dict(instruction: Instruction) -> dict[str, Any]:
    if isinstance(instruction, BankSend):
        return {
            "bank_send": {
                "to_address": instruction.to_address,
                "amount": [{"amount": str(instruction.amount.amount), "denom": instruction.amount.denom}],
            }
        }
    if isinstance(instruction, TokenTransfer):
        return {
            "token_transfer": {
                "contract_addr": instruction.contract_addr,
                "msg": {"transfer": {"recipient": instruction.recipient, "amount": str(instruction.amount)}},
            }
        }
    if isinstance(instruction, UpdateSaleTimestamp):
        return {
            "update_sale_timestamp": {
                "contract_addr": instruction.contract_addr,
                "last_timestamp": instruction.last_timestamp,
            }
        }
    raise TypeError(f"unsupported instruction: {instruction!r}")


def event_to_dict(event: AccountingEvent) -> dict[str, Any]:
    return {
        "type": event.kind.value,
        "attributes": [{"key": k, "value": v} for k, v in event.attributes],
    }


def result_to_dict(result: DistributionResult) -> dict[str, Any]:
    return {
        "msgs": [instruction_to_dict(i) for i in result.instructions],
        "events": [event_to_dict(e) for e in result.events],
        "leftover_funds": payment_to_dict(result.leftover),
    }


def result_digest(result: DistributionResult) -> str:
    """SHA-256 hex digest of the canonical encoding of ``result``."""
    return hashlib.sha256(canonical_json_bytes(result_to_dict(result))).hexdigest()
