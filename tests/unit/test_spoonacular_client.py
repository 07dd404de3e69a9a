"""
Unit tests for the Spoonacular client, with the HTTP layer mocked.
"""

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest
import requests

from smartplates.clients.spoonacular import SpoonacularClient
from smartplates.errors import SpoonacularError


def _response(status_code=200, payload=None):
    response = Mock(status_code=status_code)
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(str(status_code))
    return response


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def client(db, session):
    return SpoonacularClient(api_key="test-key", db=db, ttl_hours=24, session=session)


class TestGetRecipe:
    """Test cache-then-fetch behavior."""

    def test_fetches_and_caches(self, client, db, session, spoonacular_record):
        session.get.return_value = _response(payload=spoonacular_record)

        record = client.get_recipe("spoonacular-716429")

        assert record["title"] == "Pasta with Garlic"
        assert record["_id"] == "spoonacular-716429"
        url = session.get.call_args[0][0]
        assert url == "https://api.spoonacular.com/recipes/716429/information"
        assert session.get.call_args[1]["params"]["apiKey"] == "test-key"
        assert db.get_spoonacular_recipe("spoonacular-716429")["title"] == "Pasta with Garlic"

    def test_fresh_cache_skips_http(self, client, db, session, spoonacular_record):
        db.save_spoonacular_recipe(spoonacular_record)

        record = client.get_recipe("716429")

        assert record["title"] == "Pasta with Garlic"
        session.get.assert_not_called()

    def test_stale_cache_refetched(self, client, db, session, spoonacular_record):
        db.save_spoonacular_recipe(spoonacular_record, fetched_at=datetime.now() - timedelta(days=3))
        updated = dict(spoonacular_record, title="Pasta with Roasted Garlic")
        session.get.return_value = _response(payload=updated)

        record = client.get_recipe("716429")

        assert record["title"] == "Pasta with Roasted Garlic"
        session.get.assert_called_once()

    def test_not_found(self, client, session):
        session.get.return_value = _response(status_code=404)
        assert client.get_recipe("spoonacular-1") is None

    def test_non_spoonacular_id(self, client, session):
        assert client.get_recipe("rcp_salad") is None
        session.get.assert_not_called()

    def test_network_error(self, client, session):
        session.get.side_effect = requests.exceptions.ConnectionError("offline")

        with pytest.raises(SpoonacularError):
            client.get_recipe("716429")

    def test_server_error(self, client, session):
        session.get.return_value = _response(status_code=500)

        with pytest.raises(SpoonacularError):
            client.get_recipe("716429")

    def test_numeric_id(self):
        assert SpoonacularClient.numeric_id("spoonacular-42") == 42
        assert SpoonacularClient.numeric_id("42") == 42
        assert SpoonacularClient.numeric_id("ur_42") is None
