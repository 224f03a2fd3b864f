import pytest

from soapblend.models.mixture import PropertyRange, Share
from soapblend.services.scoring import (
    BlendScorer,
    all_properties_in_range,
    profile_error,
    properties_out_of_range
)

IN_RANGE = {
    "hardness": 40, "degreasing": 15, "moisturizing": 55,
    "lather_volume": 20, "lather_density": 30
}


class TestProfileError:

    def test_empty_target_is_zero(self):
        assert profile_error({"oleic": 42}, {}) == 0.0

    def test_only_specified_keys_count(self):
        assert profile_error({"oleic": 50, "lauric": 30}, {"oleic": 70}) == pytest.approx(400.0)

    def test_unset_values_are_ignored(self):
        assert profile_error({"oleic": 50}, {"oleic": 70, "lauric": None, "stearic": ""}) == pytest.approx(400.0)

    def test_missing_profile_keys_count_as_zero(self):
        assert profile_error({}, {"oleic": 3}) == pytest.approx(9.0)


class TestMatchQuality:

    def test_exact_match_scores_100(self, scorer):
        assert scorer.match_quality({"oleic": 70, "lauric": 10}, {"oleic": 70, "lauric": 10}) == 100

    def test_empty_target_scores_100(self, scorer):
        assert scorer.match_quality({"oleic": 70}, {}) == 100

    def test_average_deviation_times_factor(self, scorer):
        assert scorer.match_quality({"oleic": 60}, {"oleic": 70}) == 70

    def test_clamped_at_zero(self, scorer):
        assert scorer.match_quality({"oleic": 0}, {"oleic": 100}) == 0

    def test_monotone_in_deviation(self, scorer):
        target = {"oleic": 70}
        scores = [scorer.match_quality({"oleic": value}, target) for value in (70, 65, 60, 50, 40)]
        assert scores == sorted(scores, reverse=True)


class TestUsefulness:

    def test_deficit_credit_capped_by_fat_content(self, scorer, oleic_db):
        assert scorer.usefulness(oleic_db["fat-a"], {"oleic": 70}) == pytest.approx(70)
        assert scorer.usefulness(oleic_db["fat-a"], {"oleic": 70}, {"oleic": 40}) == pytest.approx(30)

    def test_fat_without_the_acid_scores_zero(self, scorer, oleic_db):
        assert scorer.usefulness(oleic_db["fat-b"], {"oleic": 70}) == 0

    def test_exceeded_target(self, scorer, oleic_db):
        achieved = {"oleic": 80}
        assert scorer.usefulness(oleic_db["fat-b"], {"oleic": 70}, achieved) == pytest.approx(5)
        assert scorer.usefulness(oleic_db["fat-a"], {"oleic": 70}, achieved) == pytest.approx(-30)


class TestRangeScores:

    def test_all_in_range(self, scorer):
        assert scorer.range_score(IN_RANGE) == pytest.approx(500)
        assert scorer.all_in_range(IN_RANGE)
        assert all_properties_in_range(IN_RANGE)
        assert properties_out_of_range(IN_RANGE) == []

    def test_out_of_range_decays_with_distance(self, scorer):
        properties = dict(IN_RANGE, hardness=20)
        assert scorer.range_score(properties) == pytest.approx(400 + 50 - 9 * 2)
        assert not scorer.all_in_range(properties)
        assert properties_out_of_range(properties) == ["hardness"]

    def test_far_out_of_range_floors_at_zero(self, scorer):
        assert scorer.range_score(dict(IN_RANGE, moisturizing=100)) == pytest.approx(400)

    def test_bounds_are_inclusive(self, scorer):
        assert scorer.all_in_range(dict(IN_RANGE, hardness=29, degreasing=22))

    def test_missing_property_is_not_in_range(self):
        properties = dict(IN_RANGE)
        del properties["lather_density"]
        assert not all_properties_in_range(properties)

    def test_custom_ranges(self):
        scorer = BlendScorer(ranges={"hardness": PropertyRange(min=0, max=10)})
        assert scorer.range_score({"hardness": 5}) == pytest.approx(100)


class TestCupboardScores:

    def test_deficit_credit(self, scorer, mini_db):
        properties = dict(IN_RANGE, hardness=20)
        # coconut carries 79 points of hardness acids, the gap is 9
        assert scorer.property_improvement_score(mini_db["coconut"], properties) == pytest.approx(18)
        assert scorer.property_improvement_score(mini_db["castor"], properties) == 0

    def test_overshoot(self, scorer, mini_db):
        properties = dict(IN_RANGE, moisturizing=80)
        assert scorer.property_improvement_score(mini_db["coconut"], properties) == pytest.approx(1)
        assert scorer.property_improvement_score(mini_db["olive"], properties) == pytest.approx(-70)

    def test_progress_score(self, scorer):
        baseline = dict(IN_RANGE, hardness=20)
        candidate = dict(IN_RANGE, hardness=25)
        expected = 4 * 20 + 10 * (1 - 16.5 / 21.5)
        assert scorer.range_progress_score(candidate, baseline) == pytest.approx(expected)
        assert scorer.range_progress_score(IN_RANGE, baseline) == pytest.approx(100)

    def test_moving_away_earns_nothing(self, scorer):
        baseline = dict(IN_RANGE, hardness=20)
        candidate = dict(IN_RANGE, hardness=15)
        assert scorer.range_progress_score(candidate, baseline) == pytest.approx(80)


class TestSummarize:

    def test_summary_fields(self, scorer, oleic_db):
        mixture = [Share(id="fat-a", percentage=70), Share(id="fat-b", percentage=30)]
        result = scorer.summarize(mixture, {"oleic": 70}, oleic_db)

        assert result.mixture == mixture
        assert result.achieved["oleic"] == pytest.approx(70)
        assert result.error == pytest.approx(0)
        assert result.match_quality == 100
        assert result.properties["moisturizing"] == pytest.approx(70)
        assert result.all_in_range is False
