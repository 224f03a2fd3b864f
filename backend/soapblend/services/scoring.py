"""
Objective and scoring functions for blend optimization.

This module holds every number the optimizers rank by:
- profile_error: sum of squared differences on the specified target keys
  (the weight optimizer's objective, smaller is better)
- usefulness: heuristic per-fat score used only to order candidates
- match_quality: 0-100 summary of how close a profile is to a target
- range_score: credit for soap properties inside their recommended ranges,
  used when there is no numeric target at all

The bonus and penalty constants are heuristics, not derived from a
chemical model, so they are constructor arguments rather than literals.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from soapblend.models.fat import Fat
from soapblend.models.mixture import OptimizationResult, PropertyRange, Share
from soapblend.services.composition import aggregate, derive_properties
from soapblend.utils.constants import (
    PROFILE,
    PROPERTY_CORE_FATTY_ACIDS,
    PROPERTY_KEYS,
    PROPERTY_RANGES,
    SCORING_WEIGHTS
)
from soapblend.utils.helpers import clean_target, is_in_range, round_half_up

# Configure logging
logger = logging.getLogger(__name__)


DEFAULT_PROPERTY_RANGES: Dict[str, PropertyRange] = {
    prop: PropertyRange(min=low, max=high)
    for prop, (low, high) in PROPERTY_RANGES.items()
}


def profile_error(achieved: Mapping[str, float], target: Mapping[str, float]) -> float:
    """
    Sum of squared differences between a profile and a sparse target.

    Only the target's specified keys count; an empty target gives 0.

    Args:
        achieved: Fatty acid profile (missing keys count as 0)
        target: Sparse target; None/"" values are ignored

    Returns:
        float: Non-negative error
    """
    error = 0.0
    for key, target_value in clean_target(target).items():
        error += (target_value - achieved.get(key, 0.0)) ** 2
    return error


def all_properties_in_range(
    properties: Mapping[str, float],
    ranges: Optional[Mapping[str, PropertyRange]] = None,
    keys: Optional[List[str]] = None
) -> bool:
    """Check that every listed property lies inside its (inclusive) range."""
    ranges = ranges or DEFAULT_PROPERTY_RANGES
    for key in keys or PROPERTY_KEYS:
        band = ranges.get(key)
        if band is None or key not in properties:
            return False
        if not is_in_range(properties[key], band.min, band.max):
            return False
    return True


def properties_out_of_range(
    properties: Mapping[str, float],
    ranges: Optional[Mapping[str, PropertyRange]] = None
) -> List[str]:
    """List the soap properties that fall outside their ranges."""
    ranges = ranges or DEFAULT_PROPERTY_RANGES
    return [
        key for key in PROPERTY_KEYS
        if key in ranges and not is_in_range(properties.get(key, 0.0), ranges[key].min, ranges[key].max)
    ]


class BlendScorer:
    """
    Heuristic scoring for blend candidates.

    Attributes:
        not_worse_bonus: Flat credit when a fat would not worsen an
            exceeded target
        match_quality_factor: Points lost per unit of mean absolute deviation
        in_range_points: Range score for a property inside its range
        out_of_range_base: Range score ceiling for an out-of-range property
        out_of_range_decay: Points lost per unit of distance outside a range
        deficit_multiplier: Cupboard pre-filter credit per unit of deficit
        overshoot_safe_bonus: Cupboard pre-filter credit for not worsening
            an exceeded property
        progress_in_range_points: Cupboard step credit per in-range property
        progress_partial_points: Cupboard step credit ceiling for moving an
            out-of-range property towards its midpoint
        ranges: Property ranges used by the range-based scores
    """

    def __init__(
        self,
        not_worse_bonus: float = SCORING_WEIGHTS["NOT_WORSE_BONUS"],
        match_quality_factor: float = PROFILE["MATCH_QUALITY_FACTOR"],
        in_range_points: float = SCORING_WEIGHTS["IN_RANGE_POINTS"],
        out_of_range_base: float = SCORING_WEIGHTS["OUT_OF_RANGE_BASE"],
        out_of_range_decay: float = SCORING_WEIGHTS["OUT_OF_RANGE_DECAY"],
        deficit_multiplier: float = SCORING_WEIGHTS["DEFICIT_MULTIPLIER"],
        overshoot_safe_bonus: float = SCORING_WEIGHTS["OVERSHOOT_SAFE_BONUS"],
        progress_in_range_points: float = SCORING_WEIGHTS["PROGRESS_IN_RANGE_POINTS"],
        progress_partial_points: float = SCORING_WEIGHTS["PROGRESS_PARTIAL_POINTS"],
        ranges: Optional[Mapping[str, PropertyRange]] = None
    ):
        """Initialize the scorer with heuristic constants."""
        self.not_worse_bonus = not_worse_bonus
        self.match_quality_factor = match_quality_factor
        self.in_range_points = in_range_points
        self.out_of_range_base = out_of_range_base
        self.out_of_range_decay = out_of_range_decay
        self.deficit_multiplier = deficit_multiplier
        self.overshoot_safe_bonus = overshoot_safe_bonus
        self.progress_in_range_points = progress_in_range_points
        self.progress_partial_points = progress_partial_points
        self.ranges = dict(ranges or DEFAULT_PROPERTY_RANGES)

        logger.info(
            f"BlendScorer initialized with not_worse_bonus={self.not_worse_bonus}, "
            f"match_quality_factor={self.match_quality_factor}, "
            f"in_range_points={self.in_range_points}"
        )

    # ------------------------------------------------------------------
    # Target-based scores
    # ------------------------------------------------------------------

    def profile_error(self, achieved: Mapping[str, float], target: Mapping[str, float]) -> float:
        """See module-level profile_error()."""
        return profile_error(achieved, target)

    def usefulness(
        self,
        fat: Fat,
        target: Mapping[str, float],
        achieved: Optional[Mapping[str, float]] = None
    ) -> float:
        """
        Score how much a fat could help reach a target.

        Used only to order candidates, never to set shares. For each
        target key:
        - deficit (achieved below target): credit up to the smaller of
          the deficit and the fat's own content
        - already exceeded, fat content below target: flat bonus
        - already exceeded, fat content above target: penalty equal to
          the fat's overshoot of the target

        Args:
            fat: Candidate fat
            target: Sparse fatty acid target
            achieved: Current profile (empty when nothing is selected yet)

        Returns:
            float: Higher is more useful
        """
        achieved = achieved or {}
        score = 0.0

        for acid, target_value in clean_target(target).items():
            current = achieved.get(acid, 0.0)
            fat_value = fat.fatty_acids.get(acid, 0.0)
            deficit = target_value - current

            if deficit > 0 and fat_value > 0:
                score += min(deficit, fat_value)
            elif deficit < 0 and fat_value < target_value:
                score += self.not_worse_bonus
            elif deficit < 0 and fat_value > target_value:
                score -= fat_value - target_value

        return score

    def match_quality(self, achieved: Mapping[str, float], target: Mapping[str, float]) -> int:
        """
        Summarize closeness to a target on a 0-100 scale.

        100 minus the mean absolute deviation over the specified keys times
        match_quality_factor, rounded and clamped. An exact match (or an
        empty target) scores 100.
        """
        cleaned = clean_target(target)
        if not cleaned:
            return 100

        total_deviation = sum(
            abs(target_value - achieved.get(key, 0.0))
            for key, target_value in cleaned.items()
        )
        average_deviation = total_deviation / len(cleaned)
        quality = round_half_up(100 - average_deviation * self.match_quality_factor)
        return max(0, min(100, quality))

    # ------------------------------------------------------------------
    # Range-based scores
    # ------------------------------------------------------------------

    def range_score(
        self,
        properties: Mapping[str, float],
        ranges: Optional[Mapping[str, PropertyRange]] = None
    ) -> float:
        """
        Score how well properties sit inside their ranges.

        Each property inside its range earns in_range_points; outside, it
        earns out_of_range_base minus out_of_range_decay per unit of
        distance, floored at zero.
        """
        ranges = ranges or self.ranges
        score = 0.0

        for prop in PROPERTY_KEYS:
            band = ranges.get(prop)
            if band is None:
                continue
            value = properties.get(prop, 0.0)

            if is_in_range(value, band.min, band.max):
                score += self.in_range_points
            else:
                distance = band.min - value if value < band.min else value - band.max
                score += max(0.0, self.out_of_range_base - distance * self.out_of_range_decay)

        return score

    def all_in_range(self, properties: Mapping[str, float]) -> bool:
        """Check the scorer's ranges against a property set."""
        return all_properties_in_range(properties, self.ranges)

    def summarize(
        self,
        mixture: Sequence[Share],
        target: Mapping[str, float],
        database: Mapping[str, Fat]
    ) -> OptimizationResult:
        """
        Evaluate a finished mixture against a target.

        Args:
            mixture: Final shares, in output order
            target: Fatty acid target the mixture was built for
            database: Fat database

        Returns:
            OptimizationResult: Profile, properties and every score
        """
        achieved = aggregate(mixture, database)
        properties = derive_properties(achieved)
        return OptimizationResult(
            mixture=list(mixture),
            achieved=achieved,
            properties=properties,
            error=self.profile_error(achieved, target),
            match_quality=self.match_quality(achieved, target),
            range_score=self.range_score(properties),
            all_in_range=self.all_in_range(properties)
        )

    def property_improvement_score(self, fat: Fat, current_properties: Mapping[str, float]) -> float:
        """
        Score a fat's potential to pull out-of-range properties back in.

        Looks at the fat's content of each property's core acids:
        - property below range: credit for covering the gap
        - property above range: small bonus if the fat carries less than
          the overshoot, otherwise a penalty for adding to it

        Args:
            fat: Candidate fat
            current_properties: Properties of the blend being repaired

        Returns:
            float: Higher means more promising; <= 0 means unlikely to help
        """
        score = 0.0

        for prop, acids in PROPERTY_CORE_FATTY_ACIDS.items():
            band = self.ranges.get(prop)
            if band is None:
                continue

            current = current_properties.get(prop, 0.0)
            contribution = sum(fat.fatty_acids.get(acid, 0.0) for acid in acids)

            if current < band.min:
                score += min(band.min - current, contribution) * self.deficit_multiplier
            elif current > band.max:
                overshoot = current - band.max
                if contribution < overshoot:
                    score += self.overshoot_safe_bonus
                else:
                    score -= contribution - overshoot

        return score

    def range_progress_score(
        self,
        candidate_properties: Mapping[str, float],
        baseline_properties: Mapping[str, float]
    ) -> float:
        """
        Score a candidate blend by how many properties it brings in range.

        Each in-range property earns progress_in_range_points. An
        out-of-range property earns partial credit only if it moved closer
        to its range midpoint than the baseline was.
        """
        score = 0.0

        for prop in PROPERTY_KEYS:
            band = self.ranges.get(prop)
            if band is None:
                continue
            value = candidate_properties.get(prop, 0.0)

            if is_in_range(value, band.min, band.max):
                score += self.progress_in_range_points
                continue

            baseline_distance = abs(baseline_properties.get(prop, 0.0) - band.midpoint)
            new_distance = abs(value - band.midpoint)
            if baseline_distance > 0 and new_distance < baseline_distance:
                score += self.progress_partial_points * (1 - new_distance / baseline_distance)

        return score
