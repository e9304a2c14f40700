"""
Core fee algorithms
"""

from .rates import (
    Coin,
    RateEntry,
    RatesState,
    calculate_fee,
    distribute,
    validate_rates,
)

__all__ = [
    "Coin",
    "RateEntry",
    "RatesState",
    "calculate_fee",
    "distribute",
    "validate_rates",
]
