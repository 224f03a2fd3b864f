import pytest

from soapblend.services.target_mapper import (
    properties_to_fatty_acid_targets,
    validate_property_targets
)


class TestPropertiesToFattyAcids:

    def test_degreasing_and_hardness(self):
        assert properties_to_fatty_acid_targets({"degreasing": 20, "hardness": 40}) == {
            "lauric": 14, "myristic": 6, "palmitic": 12, "stearic": 8
        }

    def test_all_properties(self):
        targets = properties_to_fatty_acid_targets({
            "hardness": 40,
            "degreasing": 15,
            "moisturizing": 55,
            "lather_volume": 20,
            "lather_density": 30
        })
        assert targets == {
            "lauric": 11,
            "myristic": 5,
            "palmitic": 14,
            "stearic": 10,
            "oleic": 44,
            "ricinoleic": 4,
            "linoleic": 7,
            "linolenic": 2
        }

    def test_lather_density_fills_palmitic_and_stearic(self):
        assert properties_to_fatty_acid_targets({"lather_density": 30}) == {"palmitic": 18, "stearic": 12}

    def test_lather_density_skipped_when_hardness_set_them(self):
        targets = properties_to_fatty_acid_targets({"hardness": 30, "lather_density": 45})
        assert targets == {"palmitic": 18, "stearic": 12}

    def test_hyphenated_keys(self):
        assert properties_to_fatty_acid_targets({"lather-volume": 12}) == {"ricinoleic": 12}

    def test_hardness_below_degreasing_adds_nothing(self):
        targets = properties_to_fatty_acid_targets({"degreasing": 20, "hardness": 10})
        assert "palmitic" not in targets
        assert "stearic" not in targets

    def test_unset_values_are_ignored(self):
        assert properties_to_fatty_acid_targets({"hardness": None, "degreasing": ""}) == {}

    def test_unknown_property(self):
        with pytest.raises(ValueError, match="Unknown propert"):
            properties_to_fatty_acid_targets({"creaminess": 20})


class TestValidatePropertyTargets:

    @pytest.mark.parametrize("hardness, moisturizing", [(40, 50), (35, 50), (50, 65)])
    def test_totals_inside_tolerance(self, hardness, moisturizing):
        assert validate_property_targets({"hardness": hardness, "moisturizing": moisturizing}) is None

    @pytest.mark.parametrize("hardness, moisturizing, total", [(34, 50, "84"), (50, 66, "116")])
    def test_totals_outside_tolerance(self, hardness, moisturizing, total):
        message = validate_property_targets({"hardness": hardness, "moisturizing": moisturizing})
        assert message.startswith("Hardness + Moisturizing should be around 100")
        assert f"you entered {total}" in message

    def test_degreasing_above_hardness(self):
        message = validate_property_targets({"hardness": 25, "degreasing": 30})
        assert message.startswith("Degreasing (30) cannot exceed Hardness (25)")

    def test_lather_volume_below_degreasing(self):
        message = validate_property_targets({"degreasing": 15, "lather-volume": 10})
        assert message.startswith("Lather volume (10) should be at least Degreasing (15)")

    def test_first_violation_wins(self):
        message = validate_property_targets({"hardness": 20, "moisturizing": 50, "degreasing": 30})
        assert message.startswith("Hardness + Moisturizing")

    def test_partial_targets_are_fine(self):
        assert validate_property_targets({"hardness": 80}) is None
        assert validate_property_targets({}) is None
