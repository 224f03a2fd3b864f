"""
Local weight optimizer.

Tunes the shares of a fixed set of fats so the blend's fatty acid profile
approaches a sparse target. The search is a discretized coordinate
descent over the 100% simplex:

1. Start from equal shares (100 / n each)
2. Each iteration, for every unordered pair (i, j) try moving step_size
   points from j to i and from i to j (clamped to the share bounds, then
   renormalized to 100)
3. Adopt the single best strictly improving candidate; stop when the
   error drops below the threshold, no candidate improves, or the
   iteration cap is reached
4. Clamp, renormalize and round to integers summing to exactly 100

Complexity: O(iterations * n^2) profile evaluations. The objective is
piecewise because of clamping, so there is no gradient to follow; every
candidate is a fresh copy of the share vector.
"""

import logging
from typing import List, Mapping, Optional, Sequence, Tuple

from soapblend.models.fat import Fat
from soapblend.models.mixture import Share
from soapblend.services.composition import aggregate_values
from soapblend.utils.constants import PROFILE
from soapblend.utils.helpers import clean_target, fit_to_total, round_to_total
from soapblend.utils.validators import (
    validate_fatty_acid_target,
    validate_search_settings,
    validate_share_bounds
)

# Configure logging
logger = logging.getLogger(__name__)


def squared_error(profile: Mapping[str, float], target_items: Sequence[Tuple[str, float]]) -> float:
    """Profile error against pre-cleaned (key, value) target pairs."""
    error = 0.0
    for key, target_value in target_items:
        error += (target_value - profile.get(key, 0.0)) ** 2
    return error


class WeightOptimizer:
    """
    Pairwise share optimizer for a fixed fat set.

    Attributes:
        min_share: Default lower bound per fat (percent)
        max_share: Default upper bound per fat (percent)
        step_size: Default percentage points moved per adjustment
        iterations: Default iteration cap
        threshold: Default convergence threshold on the profile error
    """

    def __init__(
        self,
        min_share: float = PROFILE["MIN_FAT_PERCENT"],
        max_share: float = PROFILE["MAX_FAT_PERCENT"],
        step_size: float = PROFILE["OPTIMIZER_STEP_SIZE"],
        iterations: int = PROFILE["OPTIMIZER_ITERATIONS"],
        threshold: float = PROFILE["CONVERGENCE_THRESHOLD"]
    ):
        """Initialize the optimizer with its default search settings."""
        validate_share_bounds(min_share, max_share)
        validate_search_settings(step_size, iterations, threshold)

        self.min_share = min_share
        self.max_share = max_share
        self.step_size = step_size
        self.iterations = int(iterations)
        self.threshold = threshold

        logger.info(
            f"WeightOptimizer initialized with bounds=[{self.min_share}, {self.max_share}], "
            f"step_size={self.step_size}, iterations={self.iterations}, "
            f"threshold={self.threshold}"
        )

    def optimize_weights(
        self,
        ids: Sequence[str],
        target: Mapping[str, float],
        database: Mapping[str, Fat],
        min_share: Optional[float] = None,
        max_share: Optional[float] = None,
        step_size: Optional[float] = None,
        iterations: Optional[int] = None,
        threshold: Optional[float] = None
    ) -> List[Share]:
        """
        Find shares for the given fats that minimize the profile error.

        Args:
            ids: Ordered fat ids to blend (order is kept in the output)
            target: Sparse fatty acid target
            database: Fat database
            min_share / max_share: Per-fat bounds (defaults from the optimizer)
            step_size: Points moved per pairwise adjustment
            iterations: Iteration cap
            threshold: Error considered good enough

        Returns:
            List[Share]: Integer percentages summing to 100, each within
            [min_share, max_share]; [] for no ids and a single 100% share
            for one id

        Raises:
            ValueError: If bounds or search settings are malformed
        """
        min_share = self.min_share if min_share is None else min_share
        max_share = self.max_share if max_share is None else max_share
        step_size = self.step_size if step_size is None else step_size
        iterations = self.iterations if iterations is None else int(iterations)
        threshold = self.threshold if threshold is None else threshold

        validate_share_bounds(min_share, max_share)
        validate_search_settings(step_size, iterations, threshold)

        ids = list(ids)
        count = len(ids)
        if count == 0:
            return []
        if count == 1:
            return [Share(id=ids[0], percentage=100.0)]

        cleaned = clean_target(target)
        validate_fatty_acid_target(cleaned)
        target_items = list(cleaned.items())

        shares = self.search(
            ids,
            [100.0 / count] * count,
            target_items,
            database,
            min_share,
            max_share,
            step_size,
            iterations,
            threshold
        )

        final = self.finalize_shares(shares, min_share, max_share)
        return [Share(id=fat_id, percentage=value) for fat_id, value in zip(ids, final)]

    def search(
        self,
        ids: List[str],
        shares: List[float],
        target_items: List[Tuple[str, float]],
        database: Mapping[str, Fat],
        min_share: float,
        max_share: float,
        step_size: float,
        iterations: int,
        threshold: float
    ) -> List[float]:
        """
        Run the pairwise best-improvement loop from a seed share vector.

        Returns:
            List[float]: Unrounded shares summing to 100
        """
        count = len(ids)
        current = list(shares)

        for iteration in range(iterations):
            current_error = squared_error(aggregate_values(ids, current, database), target_items)
            if current_error < threshold:
                logger.debug(f"Converged after {iteration} iteration(s), error={current_error:.4f}")
                break

            best_shares = current
            best_error = current_error

            for i in range(count):
                for j in range(i + 1, count):
                    for increase, decrease in ((i, j), (j, i)):
                        candidate = self.step_candidate(
                            current, increase, decrease, step_size, min_share, max_share
                        )
                        error = squared_error(aggregate_values(ids, candidate, database), target_items)
                        if error < best_error:
                            best_error = error
                            best_shares = candidate

            if best_error >= current_error:
                logger.debug(
                    f"Local optimum after {iteration} iteration(s), error={current_error:.4f}"
                )
                break
            current = best_shares

        return current

    @staticmethod
    def step_candidate(
        shares: Sequence[float],
        increase: int,
        decrease: int,
        step_size: float,
        min_share: float,
        max_share: float
    ) -> List[float]:
        """
        Copy a share vector with one entry raised and another lowered.

        Both moved entries are clamped to their bounds and the copy is
        renormalized to 100 within the bounds.
        """
        candidate = list(shares)
        candidate[increase] = min(max_share, candidate[increase] + step_size)
        candidate[decrease] = max(min_share, candidate[decrease] - step_size)
        return fit_to_total(candidate, 100.0, min_share, max_share)

    @staticmethod
    def finalize_shares(shares: Sequence[float], min_share: float, max_share: float) -> List[float]:
        """Clamp, renormalize to 100 and round to integers (residual to the largest share)."""
        fitted = fit_to_total(shares, 100.0, min_share, max_share)
        return round_to_total(fitted, 100.0, min_share, max_share)

