"""
Input validation utilities.

This module provides validation functions for optimizer inputs. Malformed
shapes are programmer errors: they raise ValueError with a specific
message instead of producing an empty result.
"""

import logging
from typing import Dict, Iterable, Optional

from soapblend.utils.constants import FATTY_ACID_KEYS, PROPERTY_KEYS

# Configure logging
logger = logging.getLogger(__name__)


def validate_fatty_acid_target(target: Dict[str, float]) -> bool:
    """
    Validate a cleaned fatty acid target.

    Ensures every key is a known fatty acid and every value is a
    percentage between 0 and 100.

    Args:
        target: Sparse fatty acid target (already cleaned to floats)

    Returns:
        bool: True if valid

    Raises:
        ValueError: If validation fails with specific error message
    """
    unknown = [key for key in target if key not in FATTY_ACID_KEYS]
    if unknown:
        raise ValueError(
            f"Unknown fatty acid(s) in target: {', '.join(sorted(unknown))}. "
            f"Must be one of: {', '.join(FATTY_ACID_KEYS)}"
        )

    for key, value in target.items():
        if value < 0 or value > 100:
            raise ValueError(
                f"Target for '{key}' must be between 0 and 100, got {value}"
            )

    return True


def validate_property_target_keys(targets: Dict[str, float]) -> bool:
    """
    Validate that a property target only names known soap properties.

    Raises:
        ValueError: If an unknown property or a negative value is present
    """
    unknown = [key for key in targets if key not in PROPERTY_KEYS]
    if unknown:
        raise ValueError(
            f"Unknown propert(ies) in target: {', '.join(sorted(unknown))}. "
            f"Must be one of: {', '.join(PROPERTY_KEYS)}"
        )

    for key, value in targets.items():
        if value < 0:
            raise ValueError(f"Property target '{key}' cannot be negative, got {value}")

    return True


def validate_share_bounds(min_share: float, max_share: float) -> bool:
    """
    Validate per-share percentage bounds.

    Raises:
        ValueError: If bounds are negative, above 100 or inverted
    """
    if min_share < 0:
        raise ValueError(f"min_share cannot be negative, got {min_share}")

    if max_share > 100:
        raise ValueError(f"max_share cannot exceed 100, got {max_share}")

    if min_share >= max_share:
        raise ValueError(
            f"min_share ({min_share}) must be lower than max_share ({max_share})"
        )

    return True


def validate_search_settings(
    step_size: float,
    iterations: int,
    threshold: float
) -> bool:
    """
    Validate weight optimizer search settings.

    Raises:
        ValueError: If the step is not positive, the iteration cap is
            negative or the threshold is negative
    """
    if step_size <= 0:
        raise ValueError(f"step_size must be positive, got {step_size}")

    if iterations < 0:
        raise ValueError(f"iterations cannot be negative, got {iterations}")

    if threshold < 0:
        raise ValueError(f"threshold cannot be negative, got {threshold}")

    return True


def validate_count_range(min_count: int, max_count: int) -> bool:
    """
    Validate a fat count range for random blends.

    Raises:
        ValueError: If counts are below 1 or inverted
    """
    if min_count < 1:
        raise ValueError(f"min_count must be at least 1, got {min_count}")

    if max_count < min_count:
        raise ValueError(
            f"max_count ({max_count}) cannot be lower than min_count ({min_count})"
        )

    return True


def validate_whole_percentages(shares: Iterable) -> bool:
    """
    Validate that pinned shares are whole percentages.

    Random blends keep every share an integer, so the unlocked remainder
    must be an integer too.

    Raises:
        ValueError: If a share value has a fractional part
    """
    for share in shares:
        if not float(share.value).is_integer():
            raise ValueError(
                f"Locked share '{share.id}' must be a whole percentage, got {share.value:g}"
            )
    return True


def validate_unique_ids(ids: Iterable[str], label: str = "ids") -> bool:
    """
    Validate that a list of fat ids has no duplicates.

    Raises:
        ValueError: If an id appears more than once
    """
    seen = set()
    for fat_id in ids:
        if fat_id in seen:
            raise ValueError(f"Duplicate fat id '{fat_id}' in {label}")
        seen.add(fat_id)
    return True


def validate_max_size(max_size: Optional[int]) -> bool:
    """
    Validate the size cap of the greedy blend builder.

    Raises:
        ValueError: If the cap is below 1
    """
    if max_size is not None and max_size < 1:
        raise ValueError(f"max_size must be at least 1, got {max_size}")
    return True
