import json
from unittest.mock import Mock, patch

import pytest
import requests

from soapblend.models.fat import DietaryFilters
from soapblend.services.fat_database import (
    FatDatabaseError,
    FatDatabaseService,
    get_dietary_exclusions
)

OLIVE = {"name": "Olive Oil", "fatty_acids": {"palmitic": 14, "oleic": 69, "linoleic": 12}}
COCONUT = {"name": "Coconut Oil", "fatty_acids": {"lauric": 48, "myristic": 19}}


def http_response(status_code, payload=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    else:
        response.raise_for_status.return_value = None
    return response


class TestBundledData:

    def test_loads_every_fat(self, soap_db):
        assert len(soap_db) >= 20
        assert "olive-oil" in soap_db
        assert soap_db["olive-oil"].fatty_acids["oleic"] == pytest.approx(69)

    def test_every_fat_carries_all_fatty_acids(self, soap_db):
        assert all(len(fat.fatty_acids) == 14 for fat in soap_db.values())

    def test_list_is_sorted_by_name(self):
        names = [summary.name.lower() for summary in FatDatabaseService().list_fats()]
        assert names == sorted(names)

    def test_get_fat(self):
        service = FatDatabaseService()
        assert service.get_fat("coconut-oil").name
        assert service.get_fat("ghost") is None


class TestParse:

    def test_object_keyed_by_id(self):
        fats = FatDatabaseService.parse({"olive": OLIVE, "coconut": COCONUT})
        assert list(fats) == ["olive", "coconut"]
        assert fats["coconut"].fatty_acids["lauric"] == 48

    def test_list_of_entries(self):
        fats = FatDatabaseService.parse([{"id": "olive", **OLIVE}])
        assert fats["olive"].fatty_acids["caprylic"] == 0

    def test_duplicate_ids(self):
        with pytest.raises(FatDatabaseError, match="Duplicate"):
            FatDatabaseService.parse([{"id": "olive", **OLIVE}, {"id": "olive", **COCONUT}])

    def test_invalid_entry(self):
        with pytest.raises(FatDatabaseError, match="bad"):
            FatDatabaseService.parse({"bad": {"name": "Bad", "fatty_acids": {"omega": 3}}})

    def test_invalid_document(self):
        with pytest.raises(FatDatabaseError):
            FatDatabaseService.parse("olive")


class TestLocalFile:

    def test_reads_and_caches(self, tmp_path):
        path = tmp_path / "fats.json"
        path.write_text(json.dumps({"olive": OLIVE}))
        service = FatDatabaseService(data_path=str(path), data_url="")

        first = service.load()
        path.write_text(json.dumps({"coconut": COCONUT}))
        assert service.load() is first
        assert list(service.reload()) == ["coconut"]

    def test_missing_file(self, tmp_path):
        service = FatDatabaseService(data_path=str(tmp_path / "missing.json"), data_url="")
        with pytest.raises(FatDatabaseError, match="not found"):
            service.load()

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "fats.json"
        path.write_text("{not json")
        with pytest.raises(FatDatabaseError):
            FatDatabaseService(data_path=str(path), data_url="").load()


class TestRemoteSource:

    URL = "https://example.com/fats.json"

    def service(self):
        service = FatDatabaseService(data_url=self.URL)
        service.retry_delay = 0
        return service

    @patch("soapblend.services.fat_database.requests.get")
    def test_loads_remote_document(self, mock_get):
        mock_get.return_value = http_response(200, {"olive": OLIVE})
        fats = self.service().load()

        assert list(fats) == ["olive"]
        assert mock_get.call_args.args[0] == self.URL

    @patch("soapblend.services.fat_database.requests.get")
    def test_client_error_is_not_retried(self, mock_get):
        mock_get.return_value = http_response(404)
        with pytest.raises(FatDatabaseError, match="404"):
            self.service().load()
        assert mock_get.call_count == 1

    @patch("soapblend.services.fat_database.time.sleep")
    @patch("soapblend.services.fat_database.requests.get")
    def test_server_error_is_retried(self, mock_get, mock_sleep):
        mock_get.side_effect = [http_response(503), http_response(200, {"olive": OLIVE})]
        assert list(self.service().load()) == ["olive"]
        assert mock_get.call_count == 2

    @patch("soapblend.services.fat_database.time.sleep")
    @patch("soapblend.services.fat_database.requests.get")
    def test_gives_up_after_max_retries(self, mock_get, mock_sleep):
        mock_get.side_effect = requests.exceptions.ConnectionError()
        with pytest.raises(FatDatabaseError, match="unavailable"):
            self.service().load()
        assert mock_get.call_count == 4


class TestDietaryExclusions:

    def test_no_filters(self, flagged_db):
        assert get_dietary_exclusions(flagged_db) == set()
        assert get_dietary_exclusions(flagged_db, DietaryFilters()) == set()

    def test_animal_based(self, flagged_db):
        assert get_dietary_exclusions(flagged_db, DietaryFilters(animal_based=True)) == {"tallow"}

    def test_sourcing_concerns(self, flagged_db):
        excluded = get_dietary_exclusions(flagged_db, DietaryFilters(sourcing_concerns=True))
        assert excluded == {"palm", "cocoa"}

    def test_common_allergens(self, flagged_db):
        assert get_dietary_exclusions(flagged_db, DietaryFilters(common_allergens=True)) == {"almond"}

    def test_filters_combine(self, flagged_db):
        filters = DietaryFilters(animal_based=True, sourcing_concerns=True, common_allergens=True)
        assert get_dietary_exclusions(flagged_db, filters) == {"tallow", "palm", "cocoa", "almond"}
