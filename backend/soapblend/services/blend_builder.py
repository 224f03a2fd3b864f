"""
Greedy blend builder.

Chooses which fats go into a blend for a fatty acid target. Fats are
added one at a time: every remaining candidate is tried by optimizing the
weights of (selected + candidate), and the candidate with the largest
error reduction is committed. Building stops when the size cap is
reached or no candidate reduces the error any further.

Locked fats are members the caller pinned: they seed the selection, come
first in the output in their original order, and are tagged locked. Their
shares are still set by the weight optimizer.
"""

import logging
import math
from typing import Iterable, List, Mapping, Optional, Sequence

from soapblend.models.fat import Fat
from soapblend.models.mixture import OptimizationResult, Share
from soapblend.services.composition import aggregate
from soapblend.services.scoring import BlendScorer
from soapblend.services.weight_optimizer import WeightOptimizer, squared_error
from soapblend.utils.constants import PROFILE
from soapblend.utils.helpers import clean_target, format_share_summary
from soapblend.utils.validators import (
    validate_fatty_acid_target,
    validate_max_size,
    validate_share_bounds
)

# Configure logging
logger = logging.getLogger(__name__)


class BlendBuilder:
    """
    Greedy fat selection on top of the weight optimizer.

    Attributes:
        weight_optimizer: Optimizer used for every trial set
        scorer: Scorer used for candidate ranking and result summaries
        default_max_size: Size cap used when the caller gives none
    """

    def __init__(
        self,
        weight_optimizer: WeightOptimizer,
        scorer: BlendScorer,
        default_max_size: int = PROFILE["DEFAULT_MAX_FATS"]
    ):
        """
        Initialize the builder with its collaborators.

        Args:
            weight_optimizer: Weight optimizer instance
            scorer: Blend scorer instance
            default_max_size: Default maximum number of fats per blend
        """
        self.weight_optimizer = weight_optimizer
        self.scorer = scorer
        self.default_max_size = int(default_max_size)

        logger.info(f"BlendBuilder initialized with default_max_size={self.default_max_size}")

    def find_best_set(
        self,
        target: Mapping[str, float],
        database: Mapping[str, Fat],
        max_size: Optional[int] = None,
        exclude: Iterable[str] = (),
        require: Iterable[str] = (),
        locked: Sequence[Share] = (),
        min_share: Optional[float] = None,
        max_share: Optional[float] = None
    ) -> OptimizationResult:
        """
        Build the blend that best matches a fatty acid target.

        Algorithm:
        1. Seed the selection with locked ids, then required ids
        2. Rank the remaining pool once by usefulness against the profile
           of the locked shares (empty when nothing is locked)
        3. Repeatedly add the candidate whose optimized trial set lowers
           the error the most versus the optimized current selection
        4. Optimize the final set and put locked fats back in front

        Args:
            target: Sparse fatty acid target
            database: Fat database (read-only)
            max_size: Maximum number of fats including locked/required ones
            exclude: Fat ids that must not be selected
            require: Fat ids that must be part of the blend
            locked: Pinned shares; their ids lead the output
            min_share / max_share: Per-fat bounds for the weight optimizer

        Returns:
            OptimizationResult: Empty mixture when nothing could be selected
        """
        max_size = self.default_max_size if max_size is None else max_size
        validate_max_size(max_size)
        min_share = self.weight_optimizer.min_share if min_share is None else min_share
        max_share = self.weight_optimizer.max_share if max_share is None else max_share
        validate_share_bounds(min_share, max_share)

        target = clean_target(target)
        validate_fatty_acid_target(target)
        excluded = set(exclude)
        locked = list(locked)
        locked_ids = [share.id for share in locked]

        selected = self._seed_selection(locked_ids, require, database)
        pool = [
            fat for fat_id, fat in database.items()
            if fat_id not in excluded and fat_id not in selected
        ]

        ranked = self.rank_candidates(pool, target, locked, database)
        logger.info(
            f"Building blend: target={target}, seed={selected}, "
            f"pool={len(ranked)}, max_size={max_size}"
        )

        self._greedy_select(ranked, selected, max_size, target, database, min_share, max_share)

        return self.build_result(selected, locked_ids, target, database, min_share, max_share)

    def rank_candidates(
        self,
        pool: Sequence[Fat],
        target: Mapping[str, float],
        locked: Sequence[Share],
        database: Mapping[str, Fat]
    ) -> List[Fat]:
        """Order candidates by usefulness, most useful first (stable on ties)."""
        current = aggregate(locked, database) if locked else {}
        return sorted(
            pool,
            key=lambda fat: self.scorer.usefulness(fat, target, current),
            reverse=True
        )

    def _seed_selection(
        self,
        locked_ids: Sequence[str],
        require: Iterable[str],
        database: Mapping[str, Fat]
    ) -> List[str]:
        selected: List[str] = []
        for fat_id in list(locked_ids) + list(require):
            if fat_id in selected:
                continue
            if fat_id not in database:
                logger.warning(f"Skipping unknown fat '{fat_id}' in locked/required set")
                continue
            selected.append(fat_id)
        return selected

    def _selection_error(
        self,
        ids: Sequence[str],
        target: Mapping[str, float],
        database: Mapping[str, Fat],
        min_share: float,
        max_share: float
    ) -> float:
        if not ids:
            return math.inf
        mixture = self.weight_optimizer.optimize_weights(
            ids, target, database, min_share=min_share, max_share=max_share
        )
        return squared_error(aggregate(mixture, database), list(target.items()))

    def _greedy_select(
        self,
        ranked: List[Fat],
        selected: List[str],
        max_size: int,
        target: Mapping[str, float],
        database: Mapping[str, Fat],
        min_share: float,
        max_share: float
    ) -> None:
        """Grow selected in place, consuming committed fats from ranked."""
        while len(selected) < max_size and ranked:
            current_error = self._selection_error(selected, target, database, min_share, max_share)

            best_fat: Optional[Fat] = None
            best_improvement = -math.inf

            for fat in ranked:
                trial_error = self._selection_error(
                    selected + [fat.id], target, database, min_share, max_share
                )
                improvement = current_error - trial_error
                if improvement > best_improvement:
                    best_improvement = improvement
                    best_fat = fat

            if best_fat is None or best_improvement <= 0:
                logger.debug(f"No candidate improves the blend (best={best_improvement})")
                break

            logger.debug(f"Adding {best_fat.id} (improvement={best_improvement:.4f})")
            selected.append(best_fat.id)
            ranked.remove(best_fat)

    def build_result(
        self,
        selected: Sequence[str],
        locked_ids: Sequence[str],
        target: Mapping[str, float],
        database: Mapping[str, Fat],
        min_share: float,
        max_share: float
    ) -> OptimizationResult:
        """Optimize the final set and order it locked-first."""
        final = self.weight_optimizer.optimize_weights(
            selected, target, database, min_share=min_share, max_share=max_share
        )
        by_id = {share.id: share for share in final}

        ordered: List[Share] = []
        for fat_id in locked_ids:
            share = by_id.get(fat_id)
            if share is not None:
                ordered.append(share.model_copy(update={"locked": True}))
        locked_set = set(locked_ids)
        ordered.extend(share for share in final if share.id not in locked_set)

        result = self.scorer.summarize(ordered, target, database)

        if ordered:
            logger.info(
                f"Built blend [{format_share_summary(ordered)}] "
                f"error={result.error:.3f}, match_quality={result.match_quality}"
            )
        else:
            logger.info("No fats could be selected for the target")
        return result
