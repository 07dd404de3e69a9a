"""
Spoonacular API client.

Recipe information responses are cached in the spoonacular_recipes table
and re-used until they are older than the configured TTL.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import requests

from ..data.database import DatabaseInterface, SPOONACULAR_PREFIX
from ..errors import SpoonacularError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.spoonacular.com"
REQUEST_TIMEOUT = 10  # seconds


class SpoonacularClient:
    """Read-through cache over the Spoonacular recipe information endpoint."""

    def __init__(
        self,
        api_key: str,
        db: DatabaseInterface,
        base_url: str = DEFAULT_BASE_URL,
        ttl_hours: int = 24,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Spoonacular API key
            db: Database holding the response cache
            base_url: API root
            ttl_hours: How long a cached record is used before refetching
            session: Optional requests session (one is created if omitted)
        """
        self.api_key = api_key
        self.db = db
        self.base_url = base_url.rstrip("/")
        self.ttl = timedelta(hours=ttl_hours)
        self.session = session or requests.Session()

    @staticmethod
    def numeric_id(recipe_id: str) -> Optional[int]:
        """42 for "spoonacular-42" or "42"; None for any other ID."""
        recipe_id = str(recipe_id)
        if recipe_id.startswith(SPOONACULAR_PREFIX):
            recipe_id = recipe_id[len(SPOONACULAR_PREFIX):]
        return int(recipe_id) if recipe_id.isdigit() else None

    def get_recipe(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        """
        Get recipe information, from cache when fresh.

        Args:
            recipe_id: "spoonacular-<n>" or a bare numeric ID

        Returns:
            Recipe document, or None if the ID is not a Spoonacular ID or
            the API has no such recipe

        Raises:
            SpoonacularError: On network failures and non-404 HTTP errors
        """
        number = self.numeric_id(recipe_id)
        if number is None:
            return None

        cached = self.db.get_spoonacular_recipe(str(number), max_age=self.ttl)
        if cached is not None:
            return cached

        url = f"{self.base_url}/recipes/{number}/information"
        logger.info(f"Fetching Spoonacular recipe {number}")
        try:
            response = self.session.get(
                url,
                params={"apiKey": self.api_key, "includeNutrition": "false"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.exceptions.RequestException as e:
            raise SpoonacularError(f"Request for recipe {number} failed: {e}") from e

        if response.status_code == 404:
            logger.warning(f"Spoonacular has no recipe {number}")
            return None

        try:
            response.raise_for_status()
            record = response.json()
        except (requests.exceptions.HTTPError, ValueError) as e:
            raise SpoonacularError(f"Bad response for recipe {number}: {e}") from e

        record.setdefault("id", number)
        record["_id"] = f"{SPOONACULAR_PREFIX}{number}"
        self.db.save_spoonacular_recipe(record)
        return record
