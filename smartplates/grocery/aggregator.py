"""
Grocery list generation from weekly meal plans.

Collects every recipe referenced by a plan, fetches the recipes'
ingredients (fanned out over a thread pool), and sums same-name
ingredients into one GroceryItem each. Also owns the checklist
operations on a stored list and the user's saved lists.
"""

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import get_settings
from ..data.database import DatabaseInterface
from ..data.models import GroceryItem, GroceryList, MealPlan, SavedGroceryList
from ..errors import GroceryItemNotFoundError, GroceryListNotFoundError, MealPlanNotFoundError
from .export import ExportedDocument, export_grocery_list
from .ingredients import (
    coerce_amount,
    display_name,
    estimate_cost,
    is_staple,
    normalize_name,
    normalize_unit,
    resolve_category,
    split_quantities,
)
from .sources import RecipeIngredientLookup, RecipeIngredients

logger = logging.getLogger(__name__)


@dataclass
class GroceryListOptions:
    """Flags controlling grocery list generation."""
    include_estimates: bool = False  # Attach per-item cost estimates
    categorize_items: bool = False  # Bucket items by store category
    merge_similar_items: bool = True  # One item per name, whatever the unit
    exclude_staples: bool = False  # Drop salt, pepper, oil, ...


@dataclass
class _Group:
    name: str
    category: str
    entries: List[Tuple[Optional[float], str]]
    recipes: "OrderedDict[str, None]"


class GroceryListGenerator:
    """Builds and maintains grocery lists for meal plans."""

    def __init__(
        self,
        db: DatabaseInterface,
        lookup: Optional[RecipeIngredientLookup] = None,
        staples: Optional[Iterable[str]] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize the generator.

        Args:
            db: Database interface instance
            lookup: Recipe ingredient lookup (defaults to the three local sources)
            staples: Ingredient names dropped by exclude_staples
            max_workers: Thread pool size for recipe lookups
        """
        settings = get_settings()
        self.db = db
        self.lookup = lookup or RecipeIngredientLookup.default(db)
        self.staples = tuple(staples) if staples is not None else settings.staples
        self.max_workers = max_workers or settings.lookup_workers

    # ==================== Generation ====================

    def generate_list(
        self, meal_plan_id: str, options: Optional[GroceryListOptions] = None
    ) -> GroceryList:
        """
        Generate (or regenerate) the grocery list for a meal plan and store it.

        Regenerating a plan's list keeps the list ID and carries the
        purchased flags forward by ingredient name.

        Args:
            meal_plan_id: ID of the meal plan
            options: Generation flags

        Returns:
            The stored GroceryList

        Raises:
            MealPlanNotFoundError: If the plan does not exist
        """
        options = options or GroceryListOptions()

        meal_plan = self.db.get_meal_plan(meal_plan_id)
        if not meal_plan:
            raise MealPlanNotFoundError(meal_plan_id)

        logger.info(f"Creating grocery list for meal plan {meal_plan_id}")

        recipes = self.fetch_ingredients(list(meal_plan.recipe_servings()))
        previous = self.db.get_grocery_list_by_meal_plan(meal_plan_id)

        grocery_list = self.build_list(meal_plan, recipes, options, previous=previous)
        if previous is not None:
            grocery_list.id = previous.id

        self.db.save_grocery_list(grocery_list)
        logger.info(
            f"Created grocery list {grocery_list.id} with {grocery_list.items_count} items "
            f"from {len(recipes)} recipes"
        )
        return grocery_list

    def fetch_ingredients(self, recipe_ids: List[str]) -> List[RecipeIngredients]:
        """
        Fetch ingredients for each recipe concurrently.

        Recipes that cannot be found, or whose lookup raises, are logged
        and left out.

        Returns:
            RecipeIngredients in the order of `recipe_ids`
        """
        if not recipe_ids:
            return []

        workers = max(1, min(self.max_workers, len(recipe_ids)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="recipe_lookup_") as executor:
            results = list(executor.map(self._safe_fetch, recipe_ids))

        return [found for found in results if found is not None]

    def _safe_fetch(self, recipe_id: str) -> Optional[RecipeIngredients]:
        try:
            return self.lookup.fetch(recipe_id)
        except Exception as e:
            logger.error(f"Skipping recipe {recipe_id}: {e}", exc_info=True)
            return None

    def build_list(
        self,
        meal_plan: MealPlan,
        recipes: List[RecipeIngredients],
        options: GroceryListOptions,
        previous: Optional[GroceryList] = None,
    ) -> GroceryList:
        """
        Aggregate fetched ingredients into a grocery list (no I/O).

        Each recipe's amounts are scaled by the servings planned for it
        across the week divided by the servings the recipe is written for.

        Args:
            meal_plan: Source plan (naming, ownership and planned servings)
            recipes: Fetched recipe ingredients
            options: Generation flags
            previous: Earlier list for the same plan, whose purchased
                flags are carried forward

        Returns:
            Unsaved GroceryList
        """
        groups = self._group(recipes, options, meal_plan.recipe_servings())

        purchased = set()
        if previous is not None:
            purchased = {item.name for item in previous.items if item.is_purchased}

        items = [self._to_item(group, options) for group in groups.values()]
        for item in items:
            item.is_purchased = item.name in purchased

        items.sort(key=lambda item: (item.category, item.name))

        total_cost = None
        if options.include_estimates:
            total_cost = round(sum(item.estimated_cost or 0.0 for item in items), 2)

        return GroceryList(
            name=f"Grocery List for {meal_plan.title}",
            items=items,
            meal_plan_id=meal_plan.id,
            user_id=meal_plan.user_id,
            categorized=options.categorize_items,
            total_estimated_cost=total_cost,
        )

    @staticmethod
    def _servings_factor(recipe: RecipeIngredients, planned: Dict[str, int]) -> float:
        wanted = planned.get(recipe.recipe_id)
        if not wanted:
            return 1.0
        return wanted / (recipe.servings or 1)

    def _group(
        self,
        recipes: List[RecipeIngredients],
        options: GroceryListOptions,
        planned: Dict[str, int],
    ) -> Dict[object, _Group]:
        groups: "OrderedDict[object, _Group]" = OrderedDict()
        units_by_name: Dict[str, set] = {}

        for recipe in recipes:
            factor = self._servings_factor(recipe, planned)
            for ingredient in recipe.ingredients:
                name = normalize_name(ingredient.name)
                if not name:
                    continue
                if options.exclude_staples and is_staple(name, self.staples):
                    continue

                unit = normalize_unit(ingredient.unit)
                amount = coerce_amount(ingredient.amount)
                if amount is not None:
                    amount *= factor
                key = name if options.merge_similar_items else (name, unit)

                group = groups.get(key)
                if group is None:
                    group = _Group(
                        name=name,
                        category=resolve_category(name, ingredient.category),
                        entries=[],
                        recipes=OrderedDict(),
                    )
                    groups[key] = group
                group.entries.append((amount, unit))
                group.recipes.setdefault(recipe.title, None)
                units_by_name.setdefault(name, set()).add(unit)

        if not options.merge_similar_items:
            # Same name in several units: the unit becomes part of the item name
            for key, group in groups.items():
                name, unit = key
                if len(units_by_name[name]) > 1:
                    group.name = f"{name} ({unit})" if unit else f"{name} (no unit)"

        return groups

    def _to_item(self, group: _Group, options: GroceryListOptions) -> GroceryItem:
        total, unit, extras, unknown = split_quantities(group.entries)

        notes = None
        if extras:
            notes = "also " + ", ".join(f"{qty:g} {extra_unit}".strip() for extra_unit, qty in extras.items())

        estimated = None
        if options.include_estimates:
            estimated = estimate_cost(group.category, total, unit)
            for extra_unit, qty in extras.items():
                estimated += estimate_cost(group.category, qty, extra_unit)
            estimated = round(estimated, 2)

        return GroceryItem(
            name=group.name,
            display_name=display_name(group.name),
            quantity=round(total, 2),
            unit=unit,
            category=group.category,
            recipes=list(group.recipes),
            estimated_cost=estimated,
            unknown_amounts=unknown,
            notes=notes,
        )

    # ==================== Checklist ====================

    def get_list(self, list_id: str) -> GroceryList:
        """
        Get a stored grocery list.

        Raises:
            GroceryListNotFoundError: If the list does not exist
        """
        grocery_list = self.db.get_grocery_list(list_id)
        if grocery_list is None:
            raise GroceryListNotFoundError(list_id)
        return grocery_list

    def toggle_item(self, list_id: str, item_name: str, purchased: bool) -> GroceryList:
        """
        Mark an item purchased or not purchased.

        Setting the value an item already has changes nothing and writes
        nothing.

        Args:
            list_id: Grocery list ID
            item_name: Item name (matched case-insensitively)
            purchased: New purchased state

        Returns:
            The updated GroceryList

        Raises:
            GroceryListNotFoundError: If the list does not exist
            GroceryItemNotFoundError: If no item has that name
        """
        grocery_list = self.get_list(list_id)

        item = grocery_list.find_item(item_name)
        if item is None:
            raise GroceryItemNotFoundError(item_name)

        if item.is_purchased == purchased:
            return grocery_list

        item.is_purchased = purchased
        grocery_list.last_updated = datetime.now()
        self.db.save_grocery_list(grocery_list)

        logger.info(
            f"Marked '{item.name}' {'purchased' if purchased else 'not purchased'} on {list_id} "
            f"({grocery_list.purchased_count}/{grocery_list.items_count})"
        )
        return grocery_list

    def export_list(self, list_id: str, export_format: str) -> ExportedDocument:
        """
        Render a stored list for download.

        Raises:
            GroceryListNotFoundError: If the list does not exist
            UnsupportedExportFormat: For formats other than text and pdf
        """
        return export_grocery_list(self.get_list(list_id), export_format)

    # ==================== Saved Lists ====================

    def save_named_list(self, user_id: str, name: str, items: List[GroceryItem]) -> SavedGroceryList:
        """Keep a named copy of a list for the user."""
        saved = SavedGroceryList(user_id=str(user_id), name=name.strip(), items=items)
        self.db.save_named_grocery_list(saved)
        return saved

    def list_saved(self, user_id: str) -> List[SavedGroceryList]:
        return self.db.get_saved_grocery_lists(user_id)

    def delete_saved(self, list_id: str, user_id: str) -> bool:
        return self.db.delete_saved_grocery_list(list_id, user_id)
