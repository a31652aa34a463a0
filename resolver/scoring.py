"""
Rounding and clamping shared by every scoring step.

All integer results written on-chain go through round_half_up so that every
node produces the same value regardless of platform rounding defaults
(Python's round() is round-half-even).
"""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity."""
    return math.floor(value + 0.5)


def clamp_score(value: float, low: int = 0, high: int = 100) -> int:
    """Round half-up, then clamp into [low, high]."""
    return max(low, min(high, round_half_up(value)))


def short_address(address: str) -> str:
    """0x12345678... form used in progress output."""
    return f"{address[:10]}..."
