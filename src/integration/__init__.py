"""
Host integration layer: engine settings and rate files
"""

from .rates_config import (
    RatesEngineConfig,
    config_from_env,
    load_rates_file,
    parse_rates_document,
    rate_entries_from_list,
)

__all__ = [
    "RatesEngineConfig",
    "config_from_env",
    "load_rates_file",
    "parse_rates_document",
    "rate_entries_from_list",
]
