"""
Composition model.

Pure functions mapping a mixture and the fat database to an aggregate
fatty acid profile, and from that profile to the derived soap properties.
Nothing here iterates or draws random numbers; the optimizers call these
functions thousands of times per run.
"""

import logging
from typing import Dict, Mapping, Sequence

from soapblend.models.fat import Fat
from soapblend.models.mixture import Share
from soapblend.utils.constants import FATTY_ACID_KEYS, PROPERTY_FATTY_ACIDS
from soapblend.utils.helpers import init_fatty_acids

# Configure logging
logger = logging.getLogger(__name__)


def aggregate(mixture: Sequence[Share], database: Mapping[str, Fat]) -> Dict[str, float]:
    """
    Calculate the share-weighted fatty acid profile of a mixture.

    Each share contributes with its percentage when set, otherwise with
    its weight. Shares naming a fat missing from the database are skipped
    and left out of the normalizing total.

    Args:
        mixture: Shares making up the blend
        database: Fat database keyed by id

    Returns:
        Dict[str, float]: All 14 fatty acids; all zero when the known
        shares total zero
    """
    return aggregate_values(
        [share.id for share in mixture],
        [share.value for share in mixture],
        database
    )


def aggregate_values(
    ids: Sequence[str],
    values: Sequence[float],
    database: Mapping[str, Fat]
) -> Dict[str, float]:
    """
    Same as aggregate() for parallel id/value sequences.

    The optimizers keep working shares as plain float lists and call this
    directly instead of building Share objects for every candidate.
    """
    profile = init_fatty_acids()

    known = [(database[fat_id], value) for fat_id, value in zip(ids, values) if fat_id in database]
    total = sum(value for _, value in known)
    if total <= 0:
        return profile

    for fat, value in known:
        fraction = value / total
        fatty_acids = fat.fatty_acids
        for acid in FATTY_ACID_KEYS:
            profile[acid] += fatty_acids[acid] * fraction

    return profile


def derive_properties(fatty_acids: Mapping[str, float]) -> Dict[str, float]:
    """
    Calculate soap properties from a fatty acid profile.

    Each property is the plain sum of its contributing acids:
    - hardness: caprylic, capric, lauric, myristic, palmitic, stearic,
      arachidic, behenic (saturated acids)
    - degreasing: caprylic, capric, lauric, myristic
    - moisturizing: palmitoleic, oleic, ricinoleic, linoleic, linolenic,
      erucic (unsaturated acids)
    - lather_volume: lauric, myristic, ricinoleic
    - lather_density: palmitic, stearic, ricinoleic

    Args:
        fatty_acids: Fatty acid profile (missing keys count as 0)

    Returns:
        Dict[str, float]: The five soap properties
    """
    return {
        prop: sum(fatty_acids.get(acid, 0.0) for acid in acids)
        for prop, acids in PROPERTY_FATTY_ACIDS.items()
    }


def _weighted_metadata(
    mixture: Sequence[Share],
    database: Mapping[str, Fat],
    field: str
) -> float:
    total = sum(share.value for share in mixture)
    if total <= 0:
        return 0.0

    average = 0.0
    for share in mixture:
        fat = database.get(share.id)
        if fat is None:
            continue
        average += (getattr(fat, field) or 0.0) * (share.value / total)
    return average


def calculate_iodine(mixture: Sequence[Share], database: Mapping[str, Fat]) -> float:
    """Share-weighted iodine value of a mixture (0 for unknown fats)."""
    return _weighted_metadata(mixture, database, "iodine")


def calculate_ins(mixture: Sequence[Share], database: Mapping[str, Fat]) -> float:
    """Share-weighted INS value of a mixture (0 for unknown fats)."""
    return _weighted_metadata(mixture, database, "ins")
