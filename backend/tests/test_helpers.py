import pytest

from soapblend.utils.helpers import (
    clean_target,
    fit_to_total,
    format_share_summary,
    normalize_property_key,
    round_half_up,
    round_to_total
)
from soapblend.models.mixture import Share
from soapblend.utils.validators import (
    validate_count_range,
    validate_fatty_acid_target,
    validate_property_target_keys,
    validate_search_settings,
    validate_share_bounds,
    validate_unique_ids
)


class TestTargets:

    def test_clean_target_drops_unset_values(self):
        assert clean_target({"oleic": "40", "lauric": None, "stearic": ""}) == {"oleic": 40.0}

    def test_clean_target_keeps_explicit_zero(self):
        assert clean_target({"lauric": 0}) == {"lauric": 0.0}

    def test_clean_target_rejects_text(self):
        with pytest.raises(ValueError, match="numeric"):
            clean_target({"oleic": "plenty"})

    def test_property_aliases(self):
        assert normalize_property_key("Lather-Volume") == "lather_volume"
        assert normalize_property_key("hardness") == "hardness"


class TestRounding:

    @pytest.mark.parametrize("value, expected", [(62.5, 63), (2.5, 3), (2.49, 2), (0.0, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_residual_goes_to_first_largest(self):
        assert round_to_total([33.4, 33.3, 33.3], 100) == [34, 33, 33]

    def test_negative_residual(self):
        assert round_to_total([50.5, 49.5], 100) == [50, 50]

    def test_residual_skips_share_at_its_cap(self):
        assert round_to_total([80, 6.4, 6.4, 7.2], 100, 5, 80) == [80, 6, 6, 8]


class TestFitToTotal:

    def test_already_fitting(self):
        assert fit_to_total([50, 50], 100, 5, 80) == pytest.approx([50, 50])

    def test_clamps_and_redistributes(self):
        assert fit_to_total([90, 10], 100, 5, 80) == pytest.approx([80, 20])

    def test_raises_floor(self):
        shares = fit_to_total([97, 2, 1], 100, 5, 90)
        assert sum(shares) == pytest.approx(100)
        assert all(5 - 1e-9 <= s <= 90 + 1e-9 for s in shares)

    def test_infeasible_bounds_scale_proportionally(self):
        assert fit_to_total([50, 50], 100, 0, 40) == pytest.approx([50, 50])

    def test_scales_to_other_totals(self):
        assert fit_to_total([1, 3], 60) == pytest.approx([15, 45])

    def test_empty(self):
        assert fit_to_total([], 100) == []


class TestValidators:

    def test_unknown_fatty_acid(self):
        with pytest.raises(ValueError, match="Unknown fatty acid"):
            validate_fatty_acid_target({"omega": 10})

    def test_fatty_acid_out_of_bounds(self):
        with pytest.raises(ValueError, match="between 0 and 100"):
            validate_fatty_acid_target({"oleic": 120})

    def test_unknown_property(self):
        with pytest.raises(ValueError, match="Unknown propert"):
            validate_property_target_keys({"bubbles": 10})

    @pytest.mark.parametrize("low, high", [(-1, 80), (5, 101), (50, 50), (60, 40)])
    def test_bad_share_bounds(self, low, high):
        with pytest.raises(ValueError):
            validate_share_bounds(low, high)

    def test_non_positive_step(self):
        with pytest.raises(ValueError, match="step_size"):
            validate_search_settings(0, 100, 0.01)

    def test_count_range(self):
        assert validate_count_range(3, 3)
        with pytest.raises(ValueError):
            validate_count_range(4, 3)

    def test_duplicate_ids(self):
        with pytest.raises(ValueError, match="Duplicate"):
            validate_unique_ids(["olive", "olive"], "fat_ids")


def test_share_summary_truncates():
    shares = [Share(id=f"fat-{i}", percentage=10) for i in range(10)]
    summary = format_share_summary(shares, limit=2)
    assert summary == "fat-0 10%, fat-1 10%, ... (+8 more)"
