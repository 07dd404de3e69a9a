"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""

import pytest
import tempfile
import shutil

from smartplates.data.database import DatabaseInterface
from smartplates.data.models import MealPlan, MealSlot


@pytest.fixture
def temp_db_dir():
    """
    Create a temporary database directory for testing.

    This fixture is automatically cleaned up after each test.
    """
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def db(temp_db_dir):
    """
    Create a fresh DatabaseInterface for each test.

    Usage in tests:
        def test_something(db):
            db.save_meal_plan(...)
    """
    return DatabaseInterface(db_dir=temp_db_dir)


@pytest.fixture
def spoonacular_record():
    """Recipe information in the shape the Spoonacular API returns."""
    return {
        "id": 716429,
        "title": "Pasta with Garlic",
        "servings": 2,
        "extendedIngredients": [
            {"name": "tomato", "amount": 2, "unit": "piece", "aisle": "Produce",
             "original": "2 tomatoes"},
            {"name": "garlic", "amount": 3, "unit": "cloves", "aisle": "Produce",
             "original": "3 cloves garlic"},
            {"nameClean": "olive oil", "amount": 1, "unit": "tablespoon",
             "aisle": "Oil, Vinegar, Salad Dressing", "original": "1 tbsp olive oil"},
            {"name": "salt", "measures": {"metric": {"amount": 0.5, "unitShort": "tsp"}},
             "aisle": "Spices and Seasonings", "original": "1/2 tsp salt"},
        ],
    }


@pytest.fixture
def editorial_recipe():
    """Admin-uploaded recipe mixing dict and plain-string ingredients."""
    return {
        "id": "rcp_salad",
        "title": "Greek Salad",
        "ingredients": [
            {"name": "Tomato", "quantity": "3", "measurement": "pcs"},
            {"ingredient": "cucumber", "amount": 1},
            "feta cheese",
        ],
    }


@pytest.fixture
def user_recipe():
    """User-uploaded recipe."""
    return {
        "id": "ur_toast",
        "title": "Avocado Toast",
        "ingredients": [
            {"name": "avocado", "amount": 1, "unit": "pcs"},
            {"name": "bread", "amount": 2, "unit": "slices", "category": "Bakery"},
            {"name": "salt"},
        ],
    }


@pytest.fixture
def seeded_db(db, spoonacular_record, editorial_recipe, user_recipe):
    """Database holding one recipe of each source shape."""
    db.save_spoonacular_recipe(spoonacular_record)
    db.save_recipe(editorial_recipe)
    db.save_user_recipe(user_recipe, user_id="user-1")
    return db


@pytest.fixture
def sample_meal_plan(seeded_db):
    """Stored plan for the week of 2025-10-20 using all three recipes."""
    meal_plan = MealPlan.create_weekly("user-1", "2025-10-20")
    meal_plan.add_meal(0, "dinner", MealSlot(recipe_id="spoonacular-716429", recipe_name="Pasta with Garlic", servings=2))
    meal_plan.add_meal(1, "lunch", MealSlot(recipe_id="rcp_salad", recipe_name="Greek Salad"))
    meal_plan.add_meal(2, "breakfast", MealSlot(recipe_id="ur_toast", recipe_name="Avocado Toast"))
    seeded_db.save_meal_plan(meal_plan)
    return meal_plan
