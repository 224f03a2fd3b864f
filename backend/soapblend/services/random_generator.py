"""
Random blend generator.

Produces a blend whose soap properties land inside every recommended
range, without any explicit target. Two bounded phases run in order:

1. Pure random: draw a random fat count and random fats, give them random
   shares, accept the first draw with all properties in range.
2. Optimized fallback: draw random fats again but let the weight
   optimizer set their shares against a balanced target profile.

The first in-range draw of either phase is returned immediately. If none
is found, the draw with the best range score across both phases is
returned, so callers must check all_in_range before presenting it.
"""

import logging
import math
import random
from typing import Iterable, List, Mapping, Optional, Sequence

from soapblend.models.fat import Fat
from soapblend.models.mixture import OptimizationResult, Share
from soapblend.services.scoring import BlendScorer
from soapblend.services.weight_optimizer import WeightOptimizer
from soapblend.utils.constants import BALANCED_TARGET, RANDOM_BLEND
from soapblend.utils.helpers import fit_to_total, format_share_summary, round_to_total
from soapblend.utils.validators import validate_count_range, validate_whole_percentages

# Configure logging
logger = logging.getLogger(__name__)


class RandomBlendGenerator:
    """
    Randomized search for an in-range blend.

    Attributes:
        weight_optimizer: Optimizer used by the fallback phase
        scorer: Scorer providing range scores
        rng: Random source (seed it for reproducible blends)
        balanced_target: Fatty acid target used by the fallback phase
    """

    def __init__(
        self,
        weight_optimizer: WeightOptimizer,
        scorer: BlendScorer,
        rng: Optional[random.Random] = None,
        balanced_target: Optional[Mapping[str, float]] = None
    ):
        """
        Initialize the generator.

        Args:
            weight_optimizer: Weight optimizer instance
            scorer: Blend scorer instance
            rng: Random source; a fresh unseeded one when omitted
            balanced_target: Override for the fallback target profile
        """
        self.weight_optimizer = weight_optimizer
        self.scorer = scorer
        self.rng = rng or random.Random()
        self.balanced_target = dict(balanced_target or BALANCED_TARGET)

        logger.info(
            f"RandomBlendGenerator initialized with balanced_target={self.balanced_target}"
        )

    def generate(
        self,
        database: Mapping[str, Fat],
        exclude: Iterable[str] = (),
        locked: Sequence[Share] = (),
        min_count: int = RANDOM_BLEND["MIN_FATS"],
        max_count: int = RANDOM_BLEND["MAX_FATS"],
        max_attempts: int = RANDOM_BLEND["MAX_ATTEMPTS"],
        fallback_attempts: int = RANDOM_BLEND["FALLBACK_ATTEMPTS"]
    ) -> Optional[OptimizationResult]:
        """
        Generate a blend with properties in the recommended ranges.

        Args:
            database: Fat database (read-only)
            exclude: Fat ids that must not be drawn
            locked: Pinned shares (percentages kept as given, listed first)
            min_count / max_count: Total fat count range, locked included
            max_attempts: Draws in the pure random phase
            fallback_attempts: Draws in the optimized fallback phase

        Returns:
            OptimizationResult: First in-range blend, else the best scoring
            draw; None when there are not enough eligible fats

        Raises:
            ValueError: If the count range is invalid, a locked percentage
                is not a whole number, or max_count fats cannot fill the
                unlocked remainder under the share cap
        """
        validate_count_range(min_count, max_count)
        validate_whole_percentages(locked)

        locked = [share.model_copy(update={"locked": True}) for share in locked]
        locked_ids = {share.id for share in locked}
        remaining = 100.0 - sum(share.value for share in locked)

        if locked and remaining <= 0:
            logger.info("Locked fats fill the whole blend; returning them unchanged")
            return self._evaluate(locked, database)

        excluded = set(exclude)
        available = [
            fat_id for fat_id in database
            if fat_id not in excluded and fat_id not in locked_ids
        ]

        min_share = self.weight_optimizer.min_share
        max_share = min(self.weight_optimizer.max_share, remaining)

        needed = max(0, min_count - len(locked))
        most = max_count - len(locked)
        # enough fats to reach the remainder without breaking the share cap
        fill = math.ceil(remaining / max_share - 1e-9)
        if fill > most:
            raise ValueError(
                f"max_count {max_count} cannot fill {remaining:g}% with shares of at most "
                f"{max_share:g}%; at least {fill + len(locked)} fats are needed"
            )
        needed = max(needed, fill)

        if len(available) < needed:
            logger.info(
                f"Only {len(available)} eligible fat(s), {needed} needed; no random blend"
            )
            return None

        best: Optional[OptimizationResult] = None

        for attempt in range(max_attempts):
            chosen = self._draw(available, needed, most)
            mixture = locked + self._random_shares(chosen, remaining, min_share, max_share)
            result = self._evaluate(mixture, database)

            if result.all_in_range:
                logger.info(f"Random phase hit all ranges on attempt {attempt + 1}")
                return result
            best = self._better(best, result)

        for attempt in range(fallback_attempts):
            chosen = self._draw(available, needed, most)
            mixture = self._optimized_shares(locked, chosen, database, remaining, min_share, max_share)
            result = self._evaluate(mixture, database)

            if result.all_in_range:
                logger.info(f"Optimized fallback hit all ranges on attempt {attempt + 1}")
                return result
            best = self._better(best, result)

        if best is not None:
            logger.info(
                f"No in-range blend found; best draw [{format_share_summary(best.mixture)}] "
                f"range_score={best.range_score}"
            )
        return best

    def _draw(self, available: Sequence[str], fewest: int, most: int) -> List[str]:
        count = self.rng.randint(fewest, most)
        shuffled = list(available)
        self.rng.shuffle(shuffled)
        return shuffled[:min(count, len(shuffled))]

    def _random_shares(
        self,
        ids: Sequence[str],
        total: float,
        min_share: float,
        max_share: float
    ) -> List[Share]:
        """Random shares for the drawn fats, scaled to the unlocked remainder."""
        if not ids:
            return []
        raw = [self.rng.uniform(min_share, max_share) for _ in ids]
        fitted = fit_to_total(raw, total, min_share, max_share)
        rounded = round_to_total(fitted, total, min_share, max_share)
        return [Share(id=fat_id, percentage=value) for fat_id, value in zip(ids, rounded)]

    def _optimized_shares(
        self,
        locked: List[Share],
        ids: Sequence[str],
        database: Mapping[str, Fat],
        total: float,
        min_share: float,
        max_share: float
    ) -> List[Share]:
        """Optimizer-chosen shares for the drawn fats, rescaled to the remainder."""
        optimized = self.weight_optimizer.optimize_weights(
            [share.id for share in locked] + list(ids), self.balanced_target, database
        )
        drawn = set(ids)
        free = [share for share in optimized if share.id in drawn]
        if not free:
            return list(locked)

        fitted = fit_to_total([share.value for share in free], total, min_share, max_share)
        rounded = round_to_total(fitted, total, min_share, max_share)
        return list(locked) + [
            Share(id=share.id, percentage=value) for share, value in zip(free, rounded)
        ]

    def _evaluate(self, mixture: List[Share], database: Mapping[str, Fat]) -> OptimizationResult:
        return self.scorer.summarize(mixture, self.balanced_target, database)

    @staticmethod
    def _better(
        best: Optional[OptimizationResult],
        candidate: OptimizationResult
    ) -> OptimizationResult:
        if best is None or candidate.range_score > best.range_score:
            return candidate
        return best
