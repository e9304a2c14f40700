"""
Rates configuration: engine settings from the environment, rate lists from files.

Environment:
  - RATES_CONTRACT_ADDRESS: address that receives the trailing timestamp update
  - RATES_MAX_ENTRIES: max configured rates (DoS bound)
  - RATES_MAX_RECIPIENTS: max recipients per rate (DoS bound)

Rate files are YAML (``.yaml``/``.yml``) or JSON, holding either a list of rate
entries or a mapping with a ``rates`` list (and optionally ``last_timestamp``).
See ``src/core/rates/state.py`` for the entry format.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Tuple, Union

import yaml

from ..core.rates.distribution import validate_rates
from ..core.rates.state import rate_entry_from_dict, state_from_dict
from ..core.rates.types import RateEntry, RatesState

logger = logging.getLogger(__name__)

DEFAULT_CONTRACT_ADDRESS = "rates"
DEFAULT_MAX_ENTRIES = 64
DEFAULT_MAX_RECIPIENTS = 32


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return int(default)
    try:
        v = int(raw.strip())
    except ValueError:
        logger.warning("invalid_env_int", extra={"env_var": name, "raw": raw})
        return int(default)
    if v < lo:
        return int(lo)
    if v > hi:
        return int(hi)
    return int(v)


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


@dataclass(frozen=True)
class RatesEngineConfig:
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    # DoS limits, applied whenever a rate list is replaced.
    max_rate_entries: int = DEFAULT_MAX_ENTRIES
    max_recipients_per_entry: int = DEFAULT_MAX_RECIPIENTS

    def __post_init__(self) -> None:
        if not self.contract_address:
            raise ValueError("contract_address must be non-empty")
        if self.max_rate_entries < 0:
            raise ValueError(f"max_rate_entries must be non-negative: {self.max_rate_entries}")
        if self.max_recipients_per_entry < 1:
            raise ValueError(f"max_recipients_per_entry must be positive: {self.max_recipients_per_entry}")


def config_from_env() -> RatesEngineConfig:
    return RatesEngineConfig(
        contract_address=_env_str("RATES_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS),
        max_rate_entries=_env_int("RATES_MAX_ENTRIES", DEFAULT_MAX_ENTRIES, lo=0, hi=4096),
        max_recipients_per_entry=_env_int("RATES_MAX_RECIPIENTS", DEFAULT_MAX_RECIPIENTS, lo=1, hi=1024),
    )


def _read_document(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text)
    return json.loads(text)


def parse_rates_document(doc: Any, config: RatesEngineConfig) -> RatesState:
    """Build a validated ``RatesState`` from a parsed rates document."""
    if isinstance(doc, list):
        doc = {"rates": doc, "last_timestamp": 0}
    if not isinstance(doc, dict) or not isinstance(doc.get("rates"), list):
        raise ValueError("rates document must be a list or a mapping with a 'rates' list")
    state = state_from_dict({"rates": doc["rates"], "last_timestamp": doc.get("last_timestamp", 0)})
    validate_rates(
        state.rates,
        max_entries=config.max_rate_entries,
        max_recipients=config.max_recipients_per_entry,
    )
    return state


def load_rates_file(path: Union[str, Path], config: RatesEngineConfig) -> RatesState:
    """Load and validate a rates file (YAML or JSON)."""
    p = Path(path)
    try:
        doc = _read_document(p)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ValueError(f"invalid rates file {p}: {exc}") from exc
    state = parse_rates_document(doc, config)
    logger.info("rates_loaded", extra={"path": str(p), "rate_count": len(state.rates)})
    return state


def rate_entries_from_list(items: list[Any], config: RatesEngineConfig) -> Tuple[RateEntry, ...]:
    """Validate a raw ``update_rates`` payload against the config limits."""
    return validate_rates(
        (rate_entry_from_dict(d) for d in items),
        max_entries=config.max_rate_entries,
        max_recipients=config.max_recipients_per_entry,
    )
