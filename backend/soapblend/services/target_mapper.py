"""
Inverse target mapper.

Soap properties are sums of fatty acids, so a property target does not
pin down a unique fatty acid target. These helpers pick one plausible
fatty acid target using fixed split ratios, and check a set of property
targets for combinations that no blend can reach.
"""

import logging
from typing import Dict, Mapping, Optional

from soapblend.utils.constants import HARDNESS_MOISTURIZING_TOTAL, PROPERTY_CONVERSION
from soapblend.utils.helpers import clean_target, normalize_property_keys, round_half_up
from soapblend.utils.validators import validate_property_target_keys

# Configure logging
logger = logging.getLogger(__name__)


def properties_to_fatty_acid_targets(property_targets: Mapping[str, float]) -> Dict[str, int]:
    """
    Convert soap property targets into an approximate fatty acid target.

    Properties are processed in a fixed order, each one reading what the
    earlier ones produced:
    - degreasing: lauric 70%, myristic 30%
    - hardness: whatever lauric + myristic leave over goes palmitic 60%,
      stearic 40% (skipped if nothing is left)
    - moisturizing: oleic 80%, linoleic 12%, linolenic 3%, and ricinoleic
      5% unless ricinoleic is already set
    - lather_volume: ricinoleic becomes volume - (lauric + myristic) when
      that is positive
    - lather_density: (density - ricinoleic) split palmitic 60%, stearic
      40%, only when neither palmitic nor stearic is set yet

    Args:
        property_targets: Sparse property targets (hyphenated keys accepted)

    Returns:
        Dict[str, int]: Sparse fatty acid target, values rounded half-up

    Raises:
        ValueError: If a key is not a soap property or a value is invalid

    Example:
        >>> properties_to_fatty_acid_targets({"degreasing": 20, "hardness": 40})
        {"lauric": 14, "myristic": 6, "palmitic": 12, "stearic": 8}
    """
    props = clean_target(normalize_property_keys(property_targets))
    validate_property_target_keys(props)

    ratio = PROPERTY_CONVERSION
    targets: Dict[str, int] = {}

    if "degreasing" in props:
        degreasing = props["degreasing"]
        targets["lauric"] = round_half_up(degreasing * ratio["DEGREASING_LAURIC_RATIO"])
        targets["myristic"] = round_half_up(degreasing * ratio["DEGREASING_MYRISTIC_RATIO"])

    if "hardness" in props:
        remaining = props["hardness"] - targets.get("lauric", 0) - targets.get("myristic", 0)
        if remaining > 0:
            targets["palmitic"] = round_half_up(remaining * ratio["HARDNESS_PALMITIC_RATIO"])
            targets["stearic"] = round_half_up(remaining * ratio["HARDNESS_STEARIC_RATIO"])

    if "moisturizing" in props:
        moisturizing = props["moisturizing"]
        targets["oleic"] = round_half_up(moisturizing * ratio["MOISTURIZING_OLEIC_RATIO"])
        if not targets.get("ricinoleic"):
            targets["ricinoleic"] = round_half_up(moisturizing * ratio["MOISTURIZING_RICINOLEIC_RATIO"])
        targets["linoleic"] = round_half_up(moisturizing * ratio["MOISTURIZING_LINOLEIC_RATIO"])
        targets["linolenic"] = round_half_up(moisturizing * ratio["MOISTURIZING_LINOLENIC_RATIO"])

    if "lather_volume" in props:
        needed = props["lather_volume"] - targets.get("lauric", 0) - targets.get("myristic", 0)
        if needed > 0:
            targets["ricinoleic"] = round_half_up(needed)

    if "lather_density" in props:
        remaining = props["lather_density"] - targets.get("ricinoleic", 0)
        if remaining > 0 and not targets.get("palmitic") and not targets.get("stearic"):
            targets["palmitic"] = round_half_up(remaining * ratio["HARDNESS_PALMITIC_RATIO"])
            targets["stearic"] = round_half_up(remaining * ratio["HARDNESS_STEARIC_RATIO"])

    logger.debug(f"Mapped property targets {props} to fatty acid targets {targets}")
    return targets


def validate_property_targets(targets: Mapping[str, float]) -> Optional[str]:
    """
    Check property targets for combinations no blend can reach.

    Rules, checked in order:
    1. hardness + moisturizing must fall within [85, 115] (saturated plus
       unsaturated acids make up roughly the whole blend)
    2. degreasing cannot exceed hardness (its acids are a subset)
    3. lather_volume cannot be below degreasing (it adds ricinoleic)

    Args:
        targets: Sparse property targets (hyphenated keys accepted)

    Returns:
        Optional[str]: The first violation as a readable message, or None
    """
    props = clean_target(normalize_property_keys(targets))
    hardness = props.get("hardness")
    degreasing = props.get("degreasing")
    moisturizing = props.get("moisturizing")
    lather_volume = props.get("lather_volume")

    if hardness is not None and moisturizing is not None:
        total = hardness + moisturizing
        low, high = HARDNESS_MOISTURIZING_TOTAL
        if total < low or total > high:
            return (
                f"Hardness + Moisturizing should be around 100 (you entered {total:g}). "
                f"These represent saturated + unsaturated fatty acids."
            )

    if degreasing is not None and hardness is not None and degreasing > hardness:
        return (
            f"Degreasing ({degreasing:g}) cannot exceed Hardness ({hardness:g}). "
            f"Degreasing is a subset of the fatty acids that contribute to hardness."
        )

    if lather_volume is not None and degreasing is not None and lather_volume < degreasing:
        return (
            f"Lather volume ({lather_volume:g}) should be at least Degreasing ({degreasing:g}). "
            f"Lather volume = Degreasing + ricinoleic."
        )

    return None
