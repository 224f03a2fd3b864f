"""
Cupboard advisor.

Given fats a user already has (the base blend, by weight or percentage)
whose soap properties are out of range, suggest a few additional fats
that pull every property back into its recommended range.

The base blend is never re-weighted internally unless the caller allows
it. Every candidate addition is scored by running a nested optimizer
(optimize_cupboard_recipe) that starts from a 75/25 base/suggestion split
and then shifts percentage points between pairs of suggestions, accepting
a move only when it raises the property range score.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from soapblend.models.fat import Fat
from soapblend.models.mixture import CupboardResult, CupboardSuggestion, Share
from soapblend.services.composition import aggregate, aggregate_values, derive_properties
from soapblend.services.scoring import BlendScorer
from soapblend.utils.constants import CUPBOARD, PROFILE
from soapblend.utils.helpers import fit_to_total, format_share_summary, round_half_up

# Configure logging
logger = logging.getLogger(__name__)


class CupboardAdvisor:
    """
    Suggests additions to a fixed base blend.

    Attributes:
        scorer: Scorer providing range, progress and pre-filter scores
        min_share: Floor for an entry lowered by the nested search
        max_share: Cap for an entry raised by the nested search
        base_portion: Initial share of the base blend in the combined recipe
        suggestion_portion: Initial share split across the suggestions
        step_size: Points moved per nested search step
        iterations: Nested search iteration cap
    """

    def __init__(
        self,
        scorer: BlendScorer,
        min_share: float = PROFILE["MIN_FAT_PERCENT"],
        max_share: float = PROFILE["MAX_FAT_PERCENT"],
        base_portion: float = CUPBOARD["BASE_PORTION"],
        suggestion_portion: float = CUPBOARD["SUGGESTION_PORTION"],
        step_size: float = CUPBOARD["STEP_SIZE"],
        iterations: int = CUPBOARD["ITERATIONS"]
    ):
        self.scorer = scorer
        self.min_share = min_share
        self.max_share = max_share
        self.base_portion = base_portion
        self.suggestion_portion = suggestion_portion
        self.step_size = step_size
        self.iterations = int(iterations)

        logger.info(
            f"CupboardAdvisor initialized with split={self.base_portion}/{self.suggestion_portion}, "
            f"step_size={self.step_size}, iterations={self.iterations}"
        )

    def suggest_additions(
        self,
        base: Sequence[Share],
        database: Mapping[str, Fat],
        exclude: Iterable[str] = (),
        max_suggestions: int = CUPBOARD["MAX_SUGGESTIONS"],
        locked_suggestions: Sequence[Share] = (),
        allow_base_adjustment: bool = False,
        max_attempts: int = CUPBOARD["MAX_ATTEMPTS"]
    ) -> CupboardResult:
        """
        Suggest fats that bring a base blend's properties into range.

        Algorithm:
        1. Convert the base to percentages and compute its properties;
           return right away when it is already in range
        2. Keep only candidates whose pre-filter score is positive, best first
        3. Greedily add the candidate whose nested optimization scores
           highest on range progress; stop when everything is in range,
           the cap is reached, or the best candidate does not beat the
           previous selection
        4. Re-run the nested optimizer on the final selection and express
           each suggestion as a percentage and a weight to add

        Args:
            base: Fats on hand, with weights or percentages
            database: Fat database (read-only)
            exclude: Fat ids that must not be suggested
            max_suggestions: Cap on suggestions, locked ones included
            locked_suggestions: Additions the caller already committed to
            allow_base_adjustment: Let the nested search shift points
                between base fats
            max_attempts: Cap on greedy selection rounds

        Returns:
            CupboardResult: Suggestions with current and improved properties
        """
        if max_suggestions < 1:
            raise ValueError(f"max_suggestions must be at least 1, got {max_suggestions}")

        total_base_weight = sum(share.value for share in base)
        if total_base_weight <= 0:
            logger.info("Cupboard base is empty; nothing to suggest")
            return CupboardResult()

        base_recipe = [
            Share(id=share.id, percentage=share.value / total_base_weight * 100, locked=True)
            for share in base
        ]
        current_properties = derive_properties(aggregate(base_recipe, database))

        if self.scorer.all_in_range(current_properties):
            logger.info("Cupboard base is already in range")
            return CupboardResult(
                current_properties=current_properties,
                improved_properties=current_properties,
                all_in_range=True
            )

        candidates = self._rank_candidates(base_recipe, locked_suggestions, exclude, database, current_properties)
        selected = [share.id for share in locked_suggestions]

        best_score = self.scorer.range_progress_score(current_properties, current_properties)
        for _ in range(max_attempts):
            if len(selected) >= max_suggestions:
                break

            pick = self._best_addition(
                candidates, selected, base_recipe, database, current_properties, allow_base_adjustment
            )
            if pick is None:
                break

            fat_id, score, properties = pick
            if score <= best_score:
                logger.debug(f"Best candidate {fat_id} does not improve on {best_score:.2f}; stopping")
                break

            selected.append(fat_id)
            best_score = score
            logger.debug(f"Suggesting {fat_id} (progress score {score:.2f})")

            if self.scorer.all_in_range(properties):
                break

        if not selected:
            logger.info("No fat improves the cupboard blend")
            return CupboardResult(
                current_properties=current_properties,
                improved_properties=current_properties,
                all_in_range=False
            )

        final_recipe = self.optimize_cupboard_recipe(base_recipe, selected, database, allow_base_adjustment)
        improved_properties = derive_properties(aggregate(final_recipe, database))
        suggestions = self._to_suggestions(final_recipe, selected, total_base_weight)

        all_in_range = self.scorer.all_in_range(improved_properties)
        logger.info(
            f"Cupboard suggestions [{', '.join(s.id for s in suggestions)}] -> "
            f"[{format_share_summary(final_recipe)}], all_in_range={all_in_range}"
        )

        return CupboardResult(
            suggestions=suggestions,
            current_properties=current_properties,
            improved_properties=improved_properties,
            all_in_range=all_in_range
        )

    def optimize_cupboard_recipe(
        self,
        base_recipe: Sequence[Share],
        suggestions: Sequence[str],
        database: Mapping[str, Fat],
        allow_base_adjustment: bool = False
    ) -> List[Share]:
        """
        Combine a base recipe with suggested fats and tune the split.

        The base keeps its internal ratios and starts at base_portion of
        the total; the suggestions share suggestion_portion equally. The
        search then tries, for every pair of suggestions, moving step_size
        points each way and takes the first move that raises the range
        score. Base entries tagged locked stay out of the pairs unless base
        adjustment is allowed, so the base keeps the ratios of the user's
        weights.

        Args:
            base_recipe: Base fats with percentages summing to 100
            suggestions: Ids of the fats being added
            database: Fat database
            allow_base_adjustment: Whether base fats may trade points

        Returns:
            List[Share]: Base entries first (still locked unless adjustable), then
            suggestions; percentages rounded to one decimal
        """
        ids = [share.id for share in base_recipe] + list(suggestions)
        locked = [share.locked and not allow_base_adjustment for share in base_recipe]
        locked += [False] * len(suggestions)

        base_total = sum(share.value for share in base_recipe) or 1.0
        per_suggestion = self.suggestion_portion * 100 / len(suggestions) if suggestions else 0.0
        shares = [share.value / base_total * 100 * self.base_portion for share in base_recipe]
        shares += [per_suggestion] * len(suggestions)
        shares = fit_to_total(shares, 100.0)

        pairs = [
            (i, j)
            for i in range(len(ids))
            for j in range(i + 1, len(ids))
            if not (locked[i] or locked[j])
        ]

        for iteration in range(self.iterations):
            current_properties = derive_properties(aggregate_values(ids, shares, database))
            if self.scorer.all_in_range(current_properties):
                break
            current_score = self.scorer.range_score(current_properties)

            moved = self._first_improving_move(ids, shares, pairs, database, current_score)
            if moved is None:
                logger.debug(f"Nested search settled after {iteration} iteration(s)")
                break
            shares = moved

        return [
            Share(id=fat_id, percentage=round_half_up(value * 10) / 10, locked=is_locked)
            for fat_id, value, is_locked in zip(ids, shares, locked)
        ]

    def _first_improving_move(
        self,
        ids: List[str],
        shares: List[float],
        pairs: List[Tuple[int, int]],
        database: Mapping[str, Fat],
        current_score: float
    ) -> Optional[List[float]]:
        for i, j in pairs:
            up = self._shift(shares, i, j)
            down = self._shift(shares, j, i)
            up_score = self.scorer.range_score(derive_properties(aggregate_values(ids, up, database)))
            down_score = self.scorer.range_score(derive_properties(aggregate_values(ids, down, database)))

            if up_score > current_score and up_score >= down_score:
                return up
            if down_score > current_score:
                return down
        return None

    def _shift(self, shares: Sequence[float], increase: int, decrease: int) -> List[float]:
        candidate = list(shares)
        candidate[increase] = min(self.max_share, candidate[increase] + self.step_size)
        candidate[decrease] = max(self.min_share, candidate[decrease] - self.step_size)
        return fit_to_total(candidate, 100.0)

    def _rank_candidates(
        self,
        base_recipe: Sequence[Share],
        locked_suggestions: Sequence[Share],
        exclude: Iterable[str],
        database: Mapping[str, Fat],
        current_properties: Mapping[str, float]
    ) -> List[str]:
        """Ids of fats that could help, most promising first."""
        skip = set(exclude)
        skip.update(share.id for share in base_recipe)
        skip.update(share.id for share in locked_suggestions)

        scored = []
        for fat_id, fat in database.items():
            if fat_id in skip:
                continue
            score = self.scorer.property_improvement_score(fat, current_properties)
            if score > 0:
                scored.append((fat_id, score))

        scored.sort(key=lambda item: item[1], reverse=True)
        logger.debug(f"{len(scored)} cupboard candidate(s) pass the pre-filter")
        return [fat_id for fat_id, _ in scored]

    def _best_addition(
        self,
        candidates: Sequence[str],
        selected: Sequence[str],
        base_recipe: Sequence[Share],
        database: Mapping[str, Fat],
        current_properties: Mapping[str, float],
        allow_base_adjustment: bool
    ) -> Optional[Tuple[str, float, Dict[str, float]]]:
        best: Optional[Tuple[str, float, Dict[str, float]]] = None

        for fat_id in candidates:
            if fat_id in selected:
                continue
            recipe = self.optimize_cupboard_recipe(
                base_recipe, list(selected) + [fat_id], database, allow_base_adjustment
            )
            properties = derive_properties(aggregate(recipe, database))
            score = self.scorer.range_progress_score(properties, current_properties)
            if best is None or score > best[1]:
                best = (fat_id, score, properties)

        return best

    @staticmethod
    def _to_suggestions(
        recipe: Sequence[Share],
        selected: Sequence[str],
        total_base_weight: float
    ) -> List[CupboardSuggestion]:
        """Express suggestions as blend percentages and weights to add to the base."""
        by_id = {share.id: share.value for share in recipe}
        suggestion_percent = sum(by_id.get(fat_id, 0.0) for fat_id in selected)

        if 0 < suggestion_percent < 100:
            added_weight = total_base_weight * suggestion_percent / (100 - suggestion_percent)
        else:
            added_weight = 0.0

        suggestions = []
        for fat_id in selected:
            percentage = by_id.get(fat_id, 0.0)
            weight = 0.0
            if suggestion_percent > 0:
                weight = round_half_up(percentage / suggestion_percent * added_weight * 10) / 10
            suggestions.append(
                CupboardSuggestion(id=fat_id, percentage=round_half_up(percentage), weight=weight)
            )
        return suggestions
