import pytest

from soapblend.models.mixture import Share
from soapblend.services.composition import aggregate, aggregate_values
from soapblend.services.weight_optimizer import WeightOptimizer, squared_error


def percentages(shares):
    return [share.percentage for share in shares]


class TestTrivialSets:

    def test_no_ids(self, optimizer, oleic_db):
        assert optimizer.optimize_weights([], {"oleic": 70}, oleic_db) == []

    def test_single_id_gets_everything(self, optimizer, oleic_db):
        assert optimizer.optimize_weights(["fat-b"], {"oleic": 70}, oleic_db) == [
            Share(id="fat-b", percentage=100)
        ]

    def test_empty_target_keeps_equal_split(self, optimizer, mini_db):
        result = optimizer.optimize_weights(["olive", "coconut", "castor"], {}, mini_db)
        assert percentages(result) == [34, 33, 33]


class TestTwoFatOleic:

    def test_reaches_exact_target(self, optimizer, oleic_db):
        result = optimizer.optimize_weights(["fat-a", "fat-b"], {"oleic": 70}, oleic_db)
        assert percentages(result) == [70, 30]

    def test_stops_at_max_share(self, optimizer, oleic_db):
        result = optimizer.optimize_weights(["fat-a", "fat-b"], {"oleic": 90}, oleic_db)
        assert percentages(result) == [80, 20]

    def test_custom_bounds(self, optimizer, oleic_db):
        result = optimizer.optimize_weights(
            ["fat-a", "fat-b"], {"oleic": 90}, oleic_db, min_share=10, max_share=60
        )
        assert percentages(result) == [60, 40]

    def test_order_is_kept(self, optimizer, oleic_db):
        result = optimizer.optimize_weights(["fat-b", "fat-a"], {"oleic": 70}, oleic_db)
        assert [share.id for share in result] == ["fat-b", "fat-a"]
        assert percentages(result) == [30, 70]


class TestInvariants:

    TARGET = {"oleic": 45, "lauric": 15, "ricinoleic": 5, "stearic": 10}

    def test_sum_and_bounds(self, optimizer, mini_db):
        result = optimizer.optimize_weights(list(mini_db), self.TARGET, mini_db)

        values = percentages(result)
        assert sum(values) == 100
        assert all(5 <= value <= 80 for value in values)
        assert all(float(value).is_integer() for value in values)

    def test_never_worse_than_equal_split(self, optimizer, mini_db):
        ids = list(mini_db)
        result = optimizer.optimize_weights(ids, self.TARGET, mini_db)
        equal = [Share(id=fat_id, percentage=25) for fat_id in ids]

        items = list(self.TARGET.items())
        optimized_error = squared_error(aggregate(result, mini_db), items)
        equal_error = squared_error(aggregate(equal, mini_db), items)
        assert optimized_error <= equal_error

    def test_deterministic(self, optimizer, mini_db):
        first = optimizer.optimize_weights(list(mini_db), self.TARGET, mini_db)
        second = optimizer.optimize_weights(list(mini_db), self.TARGET, mini_db)
        assert first == second

    def test_target_is_not_mutated(self, optimizer, mini_db):
        target = dict(self.TARGET, linoleic=None)
        optimizer.optimize_weights(list(mini_db), target, mini_db)
        assert target == dict(self.TARGET, linoleic=None)


class TestValidation:

    def test_unknown_target_key(self, optimizer, oleic_db):
        with pytest.raises(ValueError, match="Unknown fatty acid"):
            optimizer.optimize_weights(["fat-a", "fat-b"], {"omega": 3}, oleic_db)

    def test_inverted_bounds(self, optimizer, oleic_db):
        with pytest.raises(ValueError):
            optimizer.optimize_weights(["fat-a", "fat-b"], {"oleic": 50}, oleic_db, min_share=60, max_share=40)

    def test_constructor_validates(self):
        with pytest.raises(ValueError):
            WeightOptimizer(step_size=0)


def test_step_candidate_moves_points():
    assert WeightOptimizer.step_candidate([50, 50], 0, 1, 2, 5, 80) == pytest.approx([52, 48])
    assert WeightOptimizer.step_candidate([80, 20], 0, 1, 2, 5, 80) == pytest.approx([80, 20])


def test_reseeding_with_own_output_does_not_worsen(optimizer, mini_db):
    ids = list(mini_db)
    target_items = list(TestInvariants.TARGET.items())
    first = percentages(optimizer.optimize_weights(ids, TestInvariants.TARGET, mini_db))

    reseeded = optimizer.search(ids, first, target_items, mini_db, 5, 80, 2, 100, 0.01)

    first_error = squared_error(aggregate_values(ids, first, mini_db), target_items)
    reseeded_error = squared_error(aggregate_values(ids, reseeded, mini_db), target_items)
    assert reseeded_error <= first_error + 1e-9
