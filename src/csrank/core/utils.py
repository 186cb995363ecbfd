"""
Utility functions for CSRank Bridge.

This module provides:
- Tolerant value conversion for loosely-typed webhook payloads
- Half-up rounding for derived statistics
"""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

logger = logging.getLogger(__name__)


def safe_int(value: Any, default: int = 0) -> int:
    """Safely convert a value to int. Numeric strings like "16" or "16.0" are accepted."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        pass
    try:
        return int(float(value))
    except (ValueError, TypeError, OverflowError):
        return default


def safe_float(value: Any, default: float = 0.0) -> float:
    """Safely convert a value to a finite float."""
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (ValueError, TypeError):
        return default
    if not math.isfinite(result):
        return default
    return result


def safe_str(value: Any, default: str = "") -> str:
    """Safely convert a value to string."""
    if value is None:
        return default
    return str(value)


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round to a number of decimal places, halves away from zero.

    Python's round() uses banker's rounding, which would turn 0.125 into 0.12.
    """
    try:
        quantum = Decimal(1).scaleb(-digits)
        return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        logger.debug(f"Cannot round non-finite value {value!r}")
        return 0.0
