"""
Rate distribution (functional core).

``distribute`` folds a configured list of ``RateEntry`` over one incoming
payment:

1. Compute each entry's fee (``fees.calculate_fee``).
2. Split it across the entry's recipients and emit one transfer per share.
3. Emit one accounting event per entry (``tax`` if additive, else ``royalty``).
4. Deduct non-additive fees from the leftover.
5. Append the self-addressed ``UpdateSaleTimestamp`` instruction.

The function is pure: instructions, events and leftover are accumulated
locally and only returned once every entry succeeded.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import InvalidRateError
from .fees import calculate_fee, check_timestamps
from .math import checked_sub
from .types import (
    AccountingEvent,
    BankSend,
    Coin,
    DistributionResult,
    EventKind,
    FlatRate,
    Instruction,
    NativePayment,
    Payment,
    RateEntry,
    TokenPayment,
    TokenTransfer,
    UpdateSaleTimestamp,
)

logger = logging.getLogger(__name__)

PAYMENT_SEPARATOR = "<"


def payment_attribute(recipient: str, amount: Coin) -> str:
    """``"<recipient><<amount><denom>"``, e.g. ``"recipient1<20uusd"``."""
    return f"{recipient}{PAYMENT_SEPARATOR}{amount}"


def validate_rate_entry(
    entry: RateEntry,
    *,
    max_recipients: Optional[int] = None,
) -> RateEntry:
    entry.rate.validate()
    if not entry.recipients:
        raise InvalidRateError("rate entry must have at least one recipient")
    if any(not r for r in entry.recipients):
        raise InvalidRateError("recipient address must be non-empty")
    if max_recipients is not None and len(entry.recipients) > max_recipients:
        raise InvalidRateError(f"too many recipients: {len(entry.recipients)} > {max_recipients}")
    if entry.threshold is not None and isinstance(entry.rate, FlatRate) and entry.threshold.duration == 0:
        raise InvalidRateError("threshold duration must be positive")
    return entry


def validate_rates(
    rate_entries: Iterable[RateEntry],
    *,
    max_entries: Optional[int] = None,
    max_recipients: Optional[int] = None,
) -> Tuple[RateEntry, ...]:
    """Validate a whole replacement rate list; any bad entry rejects all of it."""
    entries = tuple(rate_entries)
    if max_entries is not None and len(entries) > max_entries:
        raise InvalidRateError(f"too many rates: {len(entries)} > {max_entries}")
    for entry in entries:
        validate_rate_entry(entry, max_recipients=max_recipients)
    return entries


def split_among_recipients(amount: int, recipients: Sequence[str]) -> List[Tuple[str, int]]:
    """Equal integer shares; the remainder goes to the first recipient.

    Zero shares are returned too.
    """
    if not recipients:
        raise InvalidRateError("rate entry must have at least one recipient")
    share, remainder = divmod(amount, len(recipients))
    return [(r, share + remainder if i == 0 else share) for i, r in enumerate(recipients)]


def _transfer(payment: Payment, recipient: str, amount: Coin) -> Instruction:
    if isinstance(payment, NativePayment):
        return BankSend(to_address=recipient, amount=amount)
    # Token fees move inside the token contract named by the fee denom.
    return TokenTransfer(contract_addr=amount.denom, recipient=recipient, amount=amount.amount)


def distribute(
    rate_entries: Sequence[RateEntry],
    payment: Payment,
    current_timestamp: int,
    last_timestamp: int,
    *,
    contract_address: str,
) -> DistributionResult:
    """
    Apply every configured rate to ``payment``.

    Args:
        rate_entries: Configured rates, in evaluation order.
        payment: Incoming native or token payment.
        current_timestamp: Block time in seconds.
        last_timestamp: Stored decay clock (0 if never evaluated).
        contract_address: Address receiving the trailing timestamp update.

    Returns:
        ``DistributionResult`` with transfers + the timestamp update, one event
        per entry, and the leftover payment.

    Raises:
        InvalidRateError: invalid rate, or a deducted fee in a foreign denom.
        TemporalError: ``current_timestamp`` does not advance the clock.
        RatesArithmeticError: decay, rounding or leftover out of range.
    """
    if not isinstance(payment, (NativePayment, TokenPayment)):
        raise TypeError("payment must be a NativePayment or TokenPayment")
    if not contract_address:
        raise ValueError("contract_address must be non-empty")
    check_timestamps(current_timestamp, last_timestamp)

    instructions: List[Instruction] = []
    events: List[AccountingEvent] = []
    leftover = payment.amount
    base = payment.coin

    for entry in rate_entries:
        rate = entry.rate.validate()
        fee = calculate_fee(rate, base, entry.threshold, current_timestamp, last_timestamp)

        kind = EventKind.TAX if entry.is_additive else EventKind.ROYALTY
        attributes: List[Tuple[str, str]] = []
        if entry.description is not None:
            attributes.append(("description", entry.description))

        if not entry.is_additive:
            if fee.denom != payment.denom:
                raise InvalidRateError(
                    f"deducted fee denom {fee.denom!r} does not match payment denom {payment.denom!r}"
                )
            leftover = checked_sub(leftover, fee.amount)
            attributes.append(("deducted", str(fee)))

        for recipient, share in split_among_recipients(fee.amount, entry.recipients):
            amount = Coin(amount=share, denom=fee.denom)
            attributes.append(("payment", payment_attribute(recipient, amount)))
            instructions.append(_transfer(payment, recipient, amount))

        events.append(AccountingEvent(kind=kind, attributes=tuple(attributes)))

    instructions.append(UpdateSaleTimestamp(contract_addr=contract_address, last_timestamp=current_timestamp))

    result = DistributionResult(
        instructions=tuple(instructions),
        events=tuple(events),
        leftover=payment.with_amount(leftover),
    )
    logger.info(
        "rates_distributed",
        extra={
            "rate_count": len(events),
            "payment": str(base),
            "leftover": leftover,
            "instruction_count": len(result.instructions),
        },
    )
    return result
