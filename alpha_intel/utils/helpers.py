"""
ALPHA INTEL — Common Utility Functions
"""
import math
from datetime import datetime, timezone
from typing import List, Optional


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def utc_timestamp() -> str:
    """Return current UTC timestamp as ISO string."""
    return utc_now().isoformat()


def epoch_millis() -> int:
    return int(utc_now().timestamp() * 1000)


def median(values: List[float]) -> float:
    """Midpoint of the sorted values; mean of the two middle ones for even lengths."""
    ordered = sorted(values)
    n = len(ordered)
    mid = n // 2
    if n % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def to_float(value) -> Optional[float]:
    """Coerce an upstream JSON number or numeric string, None if not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def signed_percent(value: float, decimals: int = 1) -> str:
    """Format a percentage change with an explicit sign, e.g. +1.2."""
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}"
