import pytest

from soapblend.models.mixture import Share
from soapblend.services.composition import (
    aggregate,
    calculate_ins,
    calculate_iodine,
    derive_properties
)
from soapblend.utils.constants import FATTY_ACID_KEYS, PROPERTY_KEYS


class TestAggregate:

    def test_equal_percentages(self, oleic_db):
        profile = aggregate([Share(id="fat-a", percentage=50), Share(id="fat-b", percentage=50)], oleic_db)
        assert profile["oleic"] == pytest.approx(50.0)

    def test_weights_are_normalized(self, oleic_db):
        profile = aggregate([Share(id="fat-a", weight=300), Share(id="fat-b", weight=100)], oleic_db)
        assert profile["oleic"] == pytest.approx(75.0)

    def test_returns_every_fatty_acid(self, oleic_db):
        profile = aggregate([Share(id="fat-a", percentage=100)], oleic_db)
        assert set(profile) == set(FATTY_ACID_KEYS)

    def test_unknown_ids_are_left_out_of_the_total(self, oleic_db):
        profile = aggregate([Share(id="fat-a", percentage=50), Share(id="ghost", percentage=50)], oleic_db)
        assert profile["oleic"] == pytest.approx(100.0)

    def test_zero_total_gives_zero_profile(self, oleic_db):
        profile = aggregate([Share(id="fat-a", percentage=0)], oleic_db)
        assert all(value == 0.0 for value in profile.values())

    def test_empty_mixture(self, oleic_db):
        assert sum(aggregate([], oleic_db).values()) == 0.0

    def test_does_not_mutate_database(self, mini_db):
        before = dict(mini_db["olive"].fatty_acids)
        aggregate([Share(id="olive", percentage=60), Share(id="coconut", percentage=40)], mini_db)
        assert mini_db["olive"].fatty_acids == before


class TestDeriveProperties:

    def test_property_sums(self):
        profile = {
            "lauric": 10, "myristic": 5, "palmitic": 20, "stearic": 8,
            "oleic": 40, "linoleic": 10, "ricinoleic": 5
        }
        properties = derive_properties(profile)

        assert properties["hardness"] == pytest.approx(43)
        assert properties["degreasing"] == pytest.approx(15)
        assert properties["moisturizing"] == pytest.approx(55)
        assert properties["lather_volume"] == pytest.approx(20)
        assert properties["lather_density"] == pytest.approx(33)

    def test_missing_acids_count_as_zero(self):
        properties = derive_properties({})
        assert set(properties) == set(PROPERTY_KEYS)
        assert all(value == 0 for value in properties.values())

    def test_ricinoleic_feeds_three_properties(self):
        properties = derive_properties({"ricinoleic": 90})
        assert properties["moisturizing"] == 90
        assert properties["lather_volume"] == 90
        assert properties["lather_density"] == 90
        assert properties["hardness"] == 0


class TestMetadataAverages:

    def test_weighted_iodine_and_ins(self, soap_db):
        mixture = [Share(id="olive-oil", percentage=50), Share(id="coconut-oil", percentage=50)]
        assert calculate_iodine(mixture, soap_db) == pytest.approx((85 + 10) / 2)
        assert calculate_ins(mixture, soap_db) == pytest.approx((105 + 258) / 2)

    def test_empty_mixture_is_zero(self, soap_db):
        assert calculate_iodine([], soap_db) == 0.0
