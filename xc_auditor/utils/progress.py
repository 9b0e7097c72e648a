"""
Rounding helpers for progress and score percentages.
"""
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (round() rounds halves to even)."""
    return int(math.floor(value + 0.5)) if value >= 0 else -int(math.floor(-value + 0.5))


def progress_percent(done: int, total: int, base: int, span: int) -> int:
    """Map done/total onto the [base, base + span] slice of overall progress."""
    if total <= 0:
        return base + span
    return base + round_half_up(span * done / total)
