"""
helpers.py — Numeric helpers shared by the aggregators.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import numpy as np


def round_half_up(value, digits: int = 2) -> float:
    """
    Round on the decimal representation, halves away from zero.
    round_half_up(2.675) == 2.68, unlike the builtin round().
    """
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if np.isnan(v) or np.isinf(v):
        return 0.0
    quantum = Decimal(1).scaleb(-digits)
    try:
        return float(Decimal(repr(v)).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return round(v, digits)


def _sanitize(obj):
    """Recursively coerce numpy/pandas scalars to JSON-safe Python types."""
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, (np.bool_,)):
        return bool(obj)
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        v = float(obj)
        return None if (np.isnan(v) or np.isinf(v)) else v
    return obj
