#!/usr/bin/env python3
"""
Quote the fees a rates file charges on one payment.

Loads a YAML/JSON rates file, runs the distribution engine against a native
or token payment, and prints the transfer instructions, accounting events,
leftover and a determinism digest as JSON.

Example:
  python3 tools/rates_quote.py --rates rates.yaml --native 100uusd --now 1700000000
  python3 tools/rates_quote.py --rates rates.json --token cw20addr:100 --now 61 --last 1
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.core.rates import (
    Coin,
    NativePayment,
    RatesError,
    TokenPayment,
    distribute,
    result_digest,
    result_to_dict,
)
from src.core.rates.types import Payment
from src.integration.rates_config import config_from_env, load_rates_file

_NATIVE_RE = re.compile(r"^(\d+)([A-Za-z][A-Za-z0-9/:._-]*)$")


class QuoteError(Exception):
    pass


def parse_native(text: str) -> NativePayment:
    m = _NATIVE_RE.match(text.strip())
    if m is None:
        raise QuoteError(f"native payment must look like '100uusd', got {text!r}")
    return NativePayment(coin=Coin(amount=int(m.group(1)), denom=m.group(2)))


def parse_token(text: str) -> TokenPayment:
    address, sep, amount = text.strip().rpartition(":")
    if not sep or not address or not amount.isdigit():
        raise QuoteError(f"token payment must look like 'address:100', got {text!r}")
    return TokenPayment(address=address, amount=int(amount))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Quote rates (tax/royalty) for a payment.")
    p.add_argument("--rates", required=True, type=Path, help="Path to a YAML or JSON rates file")
    pay = p.add_mutually_exclusive_group(required=True)
    pay.add_argument("--native", help="Native payment, e.g. 100uusd")
    pay.add_argument("--token", help="Token payment as <contract address>:<amount>")
    p.add_argument("--now", required=True, type=int, help="Current block timestamp (seconds)")
    p.add_argument("--last", type=int, default=None, help="Decay clock override (default: the file's last_timestamp)")
    p.add_argument("--contract", default=None, help="Address for the timestamp update (default: RATES_CONTRACT_ADDRESS)")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    args = p.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), stream=sys.stderr)

    try:
        config = config_from_env()
        state = load_rates_file(args.rates, config)
        payment: Payment = parse_native(args.native) if args.native is not None else parse_token(args.token)
        result = distribute(
            state.rates,
            payment,
            args.now,
            state.last_timestamp if args.last is None else args.last,
            contract_address=args.contract or config.contract_address,
        )
    except (OSError, ValueError, TypeError, KeyError, QuoteError, RatesError) as exc:
        print(f"rates_quote error: {exc}", file=sys.stderr)
        return 2

    out = result_to_dict(result)
    out["digest"] = result_digest(result)
    print(json.dumps(out, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
