"""
Common utility helper functions.

This module provides reusable utility functions for profile construction,
target cleaning, range checks and share normalization used throughout
the application.
"""

import math
import logging
from typing import Dict, List, Optional, Sequence

from soapblend.utils.constants import FATTY_ACID_KEYS, PROPERTY_ALIASES

# Configure logging
logger = logging.getLogger(__name__)

# Float slack used when comparing shares against their bounds
_EPSILON = 1e-9


def init_fatty_acids() -> Dict[str, float]:
    """
    Create a fresh fatty acid profile initialized to zeros.

    Returns:
        Dict[str, float]: Every known fatty acid key mapped to 0.0
    """
    return {acid: 0.0 for acid in FATTY_ACID_KEYS}


def is_valid_target(value) -> bool:
    """Check if a target value is set (not None and not an empty string)."""
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def clean_target(target: Optional[Dict]) -> Dict[str, float]:
    """
    Drop unset entries from a sparse target and coerce values to float.

    Unspecified keys stay absent: they are unconstrained, not zero.

    Args:
        target: Sparse mapping of key -> desired value (may contain None/"")

    Returns:
        Dict[str, float]: Only the specified keys, as floats

    Raises:
        ValueError: If a specified value is not numeric
    """
    cleaned: Dict[str, float] = {}
    for key, value in (target or {}).items():
        if not is_valid_target(value):
            continue
        try:
            cleaned[key] = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Target value for '{key}' must be numeric, got {value!r}")
    return cleaned


def normalize_property_key(key: str) -> str:
    """
    Map an incoming property key onto its canonical spelling.

    Example:
        >>> normalize_property_key("lather-volume")
        "lather_volume"
    """
    key = key.strip().lower()
    return PROPERTY_ALIASES.get(key, key)


def normalize_property_keys(values: Optional[Dict]) -> Dict:
    """Return a copy of a property mapping with canonical keys."""
    return {normalize_property_key(k): v for k, v in (values or {}).items()}


def is_in_range(value: float, minimum: float, maximum: float) -> bool:
    """Check if a value is within an inclusive range."""
    return minimum <= value <= maximum


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves rounded up.

    Python's built-in round() uses banker's rounding, which would turn
    62.5 into 62. Shares are rounded half-up instead.
    """
    return int(math.floor(value + 0.5))


def fit_to_total(
    values: Sequence[float],
    total: float,
    min_share: Optional[float] = None,
    max_share: Optional[float] = None
) -> List[float]:
    """
    Rescale shares so they sum to a total while respecting bounds.

    Shares are first clamped to [min_share, max_share]; the remaining
    difference is then spread proportionally over the shares that still
    have room, re-clamping after each pass. Each pass pins at least one
    more share to a bound, so the loop ends in at most len(values) passes.

    When the bounds cannot be met (e.g. 2 shares capped at 40 each for a
    total of 100) plain proportional scaling is used and the total wins.

    Args:
        values: Current share values
        total: Sum the returned shares must reach
        min_share: Optional lower bound per share
        max_share: Optional upper bound per share

    Returns:
        List[float]: Adjusted shares in the same order
    """
    count = len(values)
    if count == 0:
        return []

    lower = min_share if min_share is not None else 0.0
    upper = max_share if max_share is not None else total

    if count * lower > total + _EPSILON or count * upper < total - _EPSILON:
        logger.debug(
            f"Bounds [{lower}, {upper}] infeasible for {count} shares "
            f"totalling {total}; scaling proportionally"
        )
        return _scale_proportionally(values, total)

    shares = [min(upper, max(lower, v)) for v in values]

    for _ in range(count + 1):
        difference = total - sum(shares)
        if abs(difference) < _EPSILON:
            break

        if difference > 0:
            movable = [i for i, s in enumerate(shares) if s < upper - _EPSILON]
        else:
            movable = [i for i, s in enumerate(shares) if s > lower + _EPSILON]
        if not movable:
            break

        pool = sum(shares[i] for i in movable)
        for i in movable:
            portion = shares[i] / pool if pool > 0 else 1.0 / len(movable)
            shares[i] = min(upper, max(lower, shares[i] + difference * portion))

    return shares


def _scale_proportionally(values: Sequence[float], total: float) -> List[float]:
    current = sum(values)
    if current <= 0:
        return [total / len(values)] * len(values)
    return [v / current * total for v in values]


def round_to_total(
    values: Sequence[float],
    total: float,
    min_share: Optional[float] = None,
    max_share: Optional[float] = None
) -> List[float]:
    """
    Round shares to integers and reconcile the rounding residual.

    The residual (total minus the rounded sum) is added to the largest
    rounded share; among equal maxima the first occurrence wins. If that
    would push the share outside its bounds, the next largest share that
    can absorb the residual is used instead.

    Args:
        values: Share values summing (approximately) to total
        total: Required sum of the rounded shares
        min_share: Optional lower bound per share
        max_share: Optional upper bound per share

    Returns:
        List[float]: Rounded shares summing exactly to total
    """
    rounded = [float(round_half_up(v)) for v in values]
    if not rounded:
        return rounded

    residual = total - sum(rounded)
    if residual == 0:
        return rounded

    lower = min_share if min_share is not None else float("-inf")
    upper = max_share if max_share is not None else float("inf")

    # sorted() is stable, so tied maxima keep their original order
    by_size = sorted(range(len(rounded)), key=lambda i: rounded[i], reverse=True)
    target_index = by_size[0]
    for i in by_size:
        if lower <= rounded[i] + residual <= upper:
            target_index = i
            break

    rounded[target_index] += residual
    return rounded


def format_share_summary(shares: Sequence, limit: int = 8) -> str:
    """
    Build a compact one-line description of a mixture for log messages.

    Example:
        >>> format_share_summary([Share(id="olive-oil", percentage=60), ...])
        "olive-oil 60%, coconut-oil 25%, castor-oil 15%"
    """
    parts = []
    for share in list(shares)[:limit]:
        parts.append(f"{share.id} {share.value:g}%")
    if len(shares) > limit:
        parts.append(f"... (+{len(shares) - limit} more)")
    return ", ".join(parts)
