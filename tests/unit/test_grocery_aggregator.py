"""
Unit tests for grocery list generation and the purchase checklist.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from smartplates.data.models import Ingredient, MealPlan, MealSlot, SavedGroceryList
from smartplates.errors import (
    GroceryItemNotFoundError,
    GroceryListNotFoundError,
    MealPlanNotFoundError,
)
from smartplates.grocery.aggregator import GroceryListGenerator, GroceryListOptions
from smartplates.grocery.sources import RecipeIngredientLookup, RecipeIngredients


@pytest.fixture
def generator(seeded_db):
    return GroceryListGenerator(seeded_db, max_workers=2)


def _recipe(title, *ingredients):
    return RecipeIngredients(
        recipe_id=title.lower(),
        title=title,
        kind="editorial",
        ingredients=[Ingredient(name=n, amount=a, unit=u) for n, a, u in ingredients],
    )


class TestGenerateList:
    """Test aggregation across the three recipe sources."""

    def test_same_name_quantities_are_summed(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        tomato = grocery_list.find_item("tomato")
        assert tomato.quantity == 5
        assert tomato.unit == "pcs"
        assert tomato.quantity_label() == "5 pcs"
        assert tomato.recipes == ["Pasta with Garlic", "Greek Salad"]

    def test_one_item_per_name(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        names = [item.name for item in grocery_list.items]
        assert len(names) == len(set(names))
        assert sorted(names) == sorted([
            "tomato", "garlic", "olive oil", "salt",
            "cucumber", "feta cheese", "avocado", "bread",
        ])

    def test_unknown_amounts_counted(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        salt = grocery_list.find_item("salt")
        assert salt.quantity == 0.5
        assert salt.unit == "tsp"
        assert salt.unknown_amounts == 1

        feta = grocery_list.find_item("feta cheese")
        assert feta.quantity_label() == "amount unknown"

    def test_list_metadata(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        assert grocery_list.id is not None
        assert grocery_list.name == "Grocery List for Week of 2025-10-20"
        assert grocery_list.meal_plan_id == sample_meal_plan.id
        assert grocery_list.user_id == "user-1"
        assert grocery_list.purchased_count == 0
        assert not grocery_list.is_completed

    def test_items_sorted_by_category_then_name(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        keys = [(item.category, item.name) for item in grocery_list.items]
        assert keys == sorted(keys)

    def test_list_is_stored(self, generator, seeded_db, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        stored = seeded_db.get_grocery_list(grocery_list.id)
        assert stored.items_count == grocery_list.items_count
        assert seeded_db.get_grocery_list_by_meal_plan(sample_meal_plan.id).id == grocery_list.id

    def test_unknown_meal_plan(self, generator):
        with pytest.raises(MealPlanNotFoundError):
            generator.generate_list("mp_missing")

    def test_empty_plan(self, generator, seeded_db):
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        seeded_db.save_meal_plan(meal_plan)

        grocery_list = generator.generate_list(meal_plan.id)

        assert grocery_list.items == []
        assert not grocery_list.is_completed

    def test_missing_recipe_contributes_nothing(self, generator, seeded_db):
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        meal_plan.add_meal(0, "dinner", MealSlot(recipe_id="rcp_salad"))
        meal_plan.add_meal(1, "dinner", MealSlot(recipe_id="rcp_gone"))
        seeded_db.save_meal_plan(meal_plan)

        grocery_list = generator.generate_list(meal_plan.id)

        assert {item.name for item in grocery_list.items} == {"tomato", "cucumber", "feta cheese"}

    def test_failing_lookup_is_skipped(self, seeded_db, sample_meal_plan):
        real = RecipeIngredientLookup.default(seeded_db)
        lookup = Mock()

        def fetch(recipe_id):
            if recipe_id == "ur_toast":
                raise RuntimeError("store unavailable")
            return real.fetch(recipe_id)

        lookup.fetch.side_effect = fetch
        generator = GroceryListGenerator(seeded_db, lookup=lookup)

        grocery_list = generator.generate_list(sample_meal_plan.id)

        assert grocery_list.find_item("avocado") is None
        assert grocery_list.find_item("tomato").quantity == 5

    def test_recipe_used_twice_is_fetched_once(self, seeded_db):
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        meal_plan.add_meal(0, "dinner", MealSlot(recipe_id="rcp_salad"))
        meal_plan.add_meal(3, "lunch", MealSlot(recipe_id="rcp_salad"))
        seeded_db.save_meal_plan(meal_plan)

        lookup = Mock(wraps=RecipeIngredientLookup.default(seeded_db))
        GroceryListGenerator(seeded_db, lookup=lookup).generate_list(meal_plan.id)

        lookup.fetch.assert_called_once_with("rcp_salad")

    def test_plain_string_ingredients_merge_across_sources(self, generator, seeded_db):
        seeded_db.save_recipe({"id": "rcp_frittata", "title": "Frittata", "ingredients": ["2 eggs"]})
        seeded_db.save_user_recipe(
            {"id": "ur_shakshuka", "title": "Shakshuka", "ingredients": ["3 Eggs"]}, user_id="user-1"
        )
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        meal_plan.add_meal(0, "breakfast", MealSlot(recipe_id="rcp_frittata"))
        meal_plan.add_meal(1, "breakfast", MealSlot(recipe_id="ur_shakshuka"))
        seeded_db.save_meal_plan(meal_plan)

        grocery_list = generator.generate_list(meal_plan.id)

        assert grocery_list.items_count == 1
        eggs = grocery_list.items[0]
        assert (eggs.name, eggs.quantity, eggs.unknown_amounts) == ("eggs", 5, 0)
        assert eggs.recipes == ["Frittata", "Shakshuka"]

    def test_repeated_recipe_scaled_by_planned_servings(self, generator, seeded_db):
        seeded_db.save_recipe({
            "id": "rcp_soup", "title": "Soup", "servings": 2,
            "ingredients": [{"name": "carrot", "amount": 2, "unit": "pcs"}],
        })
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        meal_plan.add_meal(0, "dinner", MealSlot(recipe_id="rcp_soup", servings=2))
        meal_plan.add_meal(1, "dinner", MealSlot(recipe_id="rcp_soup", servings=2))
        seeded_db.save_meal_plan(meal_plan)

        grocery_list = generator.generate_list(meal_plan.id)

        assert grocery_list.find_item("carrot").quantity == 4

    def test_fewer_servings_than_recipe_yield(self, generator, seeded_db):
        seeded_db.save_recipe({
            "id": "rcp_soup", "title": "Soup", "servings": 4,
            "ingredients": [{"name": "carrot", "amount": 2, "unit": "pcs"}],
        })
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        meal_plan.add_meal(0, "dinner", MealSlot(recipe_id="rcp_soup", servings=1))
        seeded_db.save_meal_plan(meal_plan)

        grocery_list = generator.generate_list(meal_plan.id)

        assert grocery_list.find_item("carrot").quantity == 0.5


class TestOptions:
    """Test the generation flags."""

    def test_exclude_staples(self, generator, sample_meal_plan):
        options = GroceryListOptions(exclude_staples=True)
        grocery_list = generator.generate_list(sample_meal_plan.id, options)

        names = {item.name for item in grocery_list.items}
        assert "salt" not in names
        assert "olive oil" not in names
        assert "tomato" in names

    def test_custom_staples(self, seeded_db, sample_meal_plan):
        generator = GroceryListGenerator(seeded_db, staples=["Tomato"])
        options = GroceryListOptions(exclude_staples=True)

        grocery_list = generator.generate_list(sample_meal_plan.id, options)

        assert grocery_list.find_item("tomato") is None
        assert grocery_list.find_item("salt") is not None

    def test_categorize_items(self, generator, sample_meal_plan):
        options = GroceryListOptions(categorize_items=True)
        grocery_list = generator.generate_list(sample_meal_plan.id, options)

        categories = grocery_list.categories
        assert {item.name for item in categories["Produce"]} == {
            "tomato", "garlic", "cucumber", "avocado",
        }
        assert [item.name for item in categories["Dairy"]] == ["feta cheese"]
        assert [item.name for item in categories["Bakery"]] == ["bread"]
        assert sum(len(items) for items in categories.values()) == grocery_list.items_count

    def test_uncategorized_list_has_no_sections(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)
        assert grocery_list.categories == {}

    def test_include_estimates(self, generator, sample_meal_plan):
        options = GroceryListOptions(include_estimates=True)
        grocery_list = generator.generate_list(sample_meal_plan.id, options)

        assert all(item.estimated_cost >= 0.25 for item in grocery_list.items)
        expected = round(sum(item.estimated_cost for item in grocery_list.items), 2)
        assert grocery_list.total_estimated_cost == pytest.approx(expected)

    def test_no_estimates_by_default(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        assert grocery_list.total_estimated_cost is None
        assert all(item.estimated_cost is None for item in grocery_list.items)


class TestBuildList:
    """Test unit handling without touching storage."""

    def test_incompatible_units_kept_as_note(self, generator):
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        recipes = [
            _recipe("Stew", ("Tomato", 2, "pcs")),
            _recipe("Sauce", ("tomato", 200, "grams")),
        ]

        grocery_list = generator.build_list(meal_plan, recipes, GroceryListOptions())

        assert grocery_list.items_count == 1
        tomato = grocery_list.items[0]
        assert (tomato.quantity, tomato.unit) == (2, "pcs")
        assert tomato.notes == "also 200 g"

    def test_compatible_units_converted(self, generator):
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        recipes = [
            _recipe("Roast", ("beef", 1, "lb")),
            _recipe("Chili", ("Beef", 453.592, "g")),
        ]

        grocery_list = generator.build_list(meal_plan, recipes, GroceryListOptions())

        beef = grocery_list.items[0]
        assert beef.unit == "lb"
        assert beef.quantity == 2.0

    def test_without_merging_units_split_items(self, generator):
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        recipes = [
            _recipe("Stew", ("Tomato", 2, "pcs")),
            _recipe("Sauce", ("tomato", 200, "g")),
            _recipe("Salad", ("tomato", 1, "piece")),
        ]
        options = GroceryListOptions(merge_similar_items=False)

        grocery_list = generator.build_list(meal_plan, recipes, options)

        by_name = {item.name: item for item in grocery_list.items}
        assert set(by_name) == {"tomato (pcs)", "tomato (g)"}
        assert by_name["tomato (pcs)"].quantity == 3
        assert by_name["tomato (g)"].quantity == 200

    def test_unknown_amounts_not_scaled(self, generator):
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        meal_plan.add_meal(0, "dinner", MealSlot(recipe_id="stew", servings=3))
        recipes = [_recipe("Stew", ("onion", 1, "pcs"), ("parsley", None, ""))]

        grocery_list = generator.build_list(meal_plan, recipes, GroceryListOptions())

        assert grocery_list.find_item("onion").quantity == 3
        parsley = grocery_list.find_item("parsley")
        assert (parsley.quantity, parsley.unknown_amounts) == (0, 1)

    def test_quantities_rounded(self, generator):
        meal_plan = MealPlan.create_weekly("user-1", "2025-11-03")
        recipes = [_recipe("Tea", ("sugar", 1 / 3, "tsp"))]

        grocery_list = generator.build_list(meal_plan, recipes, GroceryListOptions())

        assert grocery_list.items[0].quantity == 0.33


class TestToggleItem:
    """Test the purchase checklist."""

    def test_toggle_updates_counts(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        updated = generator.toggle_item(grocery_list.id, "Tomato", True)

        assert updated.find_item("tomato").is_purchased
        assert updated.purchased_count == 1
        assert generator.get_list(grocery_list.id).purchased_count == 1

    def test_toggle_is_idempotent(self, generator, seeded_db, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)
        generator.toggle_item(grocery_list.id, "tomato", True)
        first = seeded_db.get_grocery_list(grocery_list.id)

        again = generator.toggle_item(grocery_list.id, "tomato", True)
        second = seeded_db.get_grocery_list(grocery_list.id)

        assert again.purchased_count == 1
        assert second.last_updated == first.last_updated

    def test_toggle_back(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)
        generator.toggle_item(grocery_list.id, "tomato", True)

        updated = generator.toggle_item(grocery_list.id, "tomato", False)

        assert updated.purchased_count == 0

    def test_completed_when_all_purchased(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        for item in grocery_list.items:
            updated = generator.toggle_item(grocery_list.id, item.name, True)

        assert updated.is_completed
        assert updated.purchased_count == updated.items_count

    def test_unknown_item(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        with pytest.raises(GroceryItemNotFoundError):
            generator.toggle_item(grocery_list.id, "dragon fruit", True)

    def test_unknown_list(self, generator):
        with pytest.raises(GroceryListNotFoundError):
            generator.toggle_item("gl_missing", "tomato", True)

    def test_regenerate_keeps_id_and_purchases(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)
        generator.toggle_item(grocery_list.id, "tomato", True)

        regenerated = generator.generate_list(sample_meal_plan.id)

        assert regenerated.id == grocery_list.id
        assert regenerated.find_item("tomato").is_purchased
        assert regenerated.purchased_count == 1


class TestSavedLists:
    """Test named copies of lists."""

    def test_save_strips_name(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)

        saved = generator.save_named_list("user-1", " Week 1 ", grocery_list.items)

        assert saved.id is not None
        assert saved.name == "Week 1"
        stored = generator.list_saved("user-1")
        assert len(stored[0].items) == grocery_list.items_count

    def test_list_newest_first(self, generator, seeded_db):
        for day, name in ((1, "Older"), (2, "Newer")):
            seeded_db.save_named_grocery_list(SavedGroceryList(
                user_id="user-1", name=name, items=[], created_at=datetime(2025, 10, day),
            ))

        assert [s.name for s in generator.list_saved("user-1")] == ["Newer", "Older"]

    def test_only_owner_can_delete(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)
        saved = generator.save_named_list("user-1", "Week 1", grocery_list.items)

        assert not generator.delete_saved(saved.id, "someone-else")
        assert generator.delete_saved(saved.id, "user-1")
        assert generator.list_saved("user-1") == []


class TestExportList:
    """Test exporting a stored list."""

    def test_export_stored_list(self, generator, sample_meal_plan):
        grocery_list = generator.generate_list(sample_meal_plan.id)
        generator.toggle_item(grocery_list.id, "garlic", True)

        document = generator.export_list(grocery_list.id, "text")

        assert document.filename == "Grocery_List_for_Week_of_2025_10_20.txt"
        assert "[x] Garlic - 3 clove" in document.content.decode("utf-8")

    def test_export_unknown_list(self, generator):
        with pytest.raises(GroceryListNotFoundError):
            generator.export_list("gl_missing", "text")
