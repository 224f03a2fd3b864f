"""
Fat database service.

This module loads the fat reference data the optimizers read from. The
data ships with the package as soapblend/data/fats.json; a remote JSON
document can be used instead by setting FATS_DATA_URL.

Accepted document shapes:
- an object keyed by fat id: {"olive-oil": {"name": ..., ...}, ...}
- a list of entries carrying their own "id"
"""

import json
import logging
import time
from pathlib import Path
from typing import Dict, List, Optional, Set

import requests
from pydantic import ValidationError

from soapblend.config import settings
from soapblend.models.fat import DietaryFilters, Fat, FatSummary

# Configure logging
logger = logging.getLogger(__name__)


class FatDatabaseError(Exception):
    """Raised when the fat database cannot be read or parsed."""


class FatDatabaseService:
    """
    Loads and caches the fat reference database.

    Attributes:
        data_path: Local JSON file with the fat database
        data_url: Remote JSON document (takes precedence over data_path)
        timeout: Request timeout in seconds for the remote document
        max_retries: Maximum number of retry attempts for failed requests
    """

    def __init__(
        self,
        data_path: Optional[str] = None,
        data_url: Optional[str] = None,
        timeout: Optional[int] = None
    ):
        """Initialize the service from arguments, falling back to settings."""
        self.data_path = Path(data_path or settings.FATS_DATA_PATH)
        self.data_url = data_url if data_url is not None else settings.FATS_DATA_URL
        self.timeout = timeout or settings.API_TIMEOUT
        self.max_retries = 3
        self.retry_delay = 1  # seconds
        self._fats: Optional[Dict[str, Fat]] = None

        logger.info(f"Fat database service initialized with source: {self.source}")

    @property
    def source(self) -> str:
        return self.data_url or str(self.data_path)

    def load(self) -> Dict[str, Fat]:
        """
        Return the fat database, reading it on first use.

        Returns:
            Dict[str, Fat]: Fats keyed by id, in document order

        Raises:
            FatDatabaseError: If the source cannot be read or an entry is invalid
        """
        if self._fats is None:
            raw = self._fetch_remote() if self.data_url else self._read_file()
            self._fats = self.parse(raw)
            logger.info(f"Loaded {len(self._fats)} fats from {self.source}")
        return self._fats

    def reload(self) -> Dict[str, Fat]:
        """Drop the cached database and read it again."""
        self._fats = None
        return self.load()

    def get_fat(self, fat_id: str) -> Optional[Fat]:
        """Look up a single fat by id."""
        return self.load().get(fat_id)

    def list_fats(self) -> List[FatSummary]:
        """Compact listing of every fat, sorted by display name."""
        summaries = [
            FatSummary(
                id=fat.id,
                name=fat.name,
                animal_based=fat.dietary.animal_based,
                common_allergen=fat.dietary.common_allergen,
                exotic=fat.exotic
            )
            for fat in self.load().values()
        ]
        return sorted(summaries, key=lambda summary: summary.name.lower())

    @staticmethod
    def parse(raw) -> Dict[str, Fat]:
        """
        Validate a raw fat document into Fat models.

        Args:
            raw: Decoded JSON document (object keyed by id, or list of entries)

        Returns:
            Dict[str, Fat]: Fats keyed by id

        Raises:
            FatDatabaseError: If the document shape or an entry is invalid
        """
        if isinstance(raw, dict):
            entries = [{**data, "id": data.get("id", fat_id)} for fat_id, data in raw.items()]
        elif isinstance(raw, list):
            entries = raw
        else:
            raise FatDatabaseError(
                f"Fat database must be an object or a list, got {type(raw).__name__}"
            )

        fats: Dict[str, Fat] = {}
        for entry in entries:
            try:
                fat = Fat(**entry)
            except (ValidationError, TypeError) as e:
                label = entry.get("id", "?") if isinstance(entry, dict) else "?"
                logger.error(f"Invalid fat entry '{label}': {str(e)}")
                raise FatDatabaseError(f"Invalid fat entry '{label}': {str(e)}")

            if fat.id in fats:
                raise FatDatabaseError(f"Duplicate fat id '{fat.id}'")
            fats[fat.id] = fat

        return fats

    def _read_file(self):
        try:
            with open(self.data_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            logger.error(f"Fat database file not found: {self.data_path}")
            raise FatDatabaseError(f"Fat database file not found: {self.data_path}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read fat database {self.data_path}: {str(e)}")
            raise FatDatabaseError(f"Failed to read fat database {self.data_path}: {str(e)}")

    def _fetch_remote(self, retry_count: int = 0):
        """
        Download the fat database with retry logic.

        Timeouts, connection errors and 5xx responses are retried with
        exponential backoff; 4xx responses and unparseable bodies fail
        immediately.
        """
        try:
            logger.debug(f"Fetching fat database from {self.data_url}")
            response = requests.get(
                self.data_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"}
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"HTTP error for {self.data_url}: {status}")
            if status is not None and 400 <= status < 500:
                raise FatDatabaseError(f"Fat database request failed with HTTP {status}")
            return self._retry(retry_count, f"HTTP {status}")

        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            logger.warning(f"Request to {self.data_url} failed: {type(e).__name__}")
            return self._retry(retry_count, type(e).__name__)

        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed for {self.data_url}: {str(e)}")
            raise FatDatabaseError(f"Fat database request failed: {str(e)}")

        except ValueError as e:
            logger.error(f"Failed to parse JSON response from {self.data_url}: {str(e)}")
            raise FatDatabaseError(f"Fat database response is not valid JSON: {str(e)}")

    def _retry(self, retry_count: int, reason: str):
        if retry_count >= self.max_retries:
            logger.error(f"Max retries ({self.max_retries}) exceeded for {self.data_url}")
            raise FatDatabaseError(
                f"Fat database unavailable after {self.max_retries} retries ({reason})"
            )

        wait_time = self.retry_delay * (2 ** retry_count)  # Exponential backoff
        logger.info(
            f"Retrying request (attempt {retry_count + 1}/{self.max_retries}) "
            f"after {wait_time}s due to {reason}"
        )
        time.sleep(wait_time)
        return self._fetch_remote(retry_count + 1)


def get_dietary_exclusions(database: Dict[str, Fat], filters: Optional[DietaryFilters] = None) -> Set[str]:
    """
    Collect the ids of fats ruled out by the user's dietary filters.

    A fat is excluded when any active filter matches it:
    - animal_based: the fat is animal-derived
    - sourcing_concerns: the fat has significant ethical concerns (any
      social or political concern, or two or more environmental ones)
    - common_allergens: the fat comes from a common allergen

    Args:
        database: Fat database
        filters: Active dietary filters (none active when omitted)

    Returns:
        Set[str]: Fat ids to exclude
    """
    filters = filters or DietaryFilters()
    exclusions: Set[str] = set()
    if not filters.any_active:
        return exclusions

    for fat_id, fat in database.items():
        if filters.animal_based and fat.dietary.animal_based:
            exclusions.add(fat_id)
        elif filters.sourcing_concerns and fat.ethical_concerns and fat.ethical_concerns.is_significant:
            exclusions.add(fat_id)
        elif filters.common_allergens and fat.dietary.common_allergen:
            exclusions.add(fat_id)

    logger.debug(f"Dietary filters {filters.model_dump()} exclude {len(exclusions)} fat(s)")
    return exclusions
