"""
Recipe ingredient sources.

A recipe ID in a meal plan can point at one of three differently shaped
records:
- external: Spoonacular API data, keyed "spoonacular-<n>" or by the bare number
- editorial: recipes uploaded by admins
- user: recipes uploaded by users

Each source knows how to find its record and coerce the record's
ingredients to the common Ingredient shape. RecipeIngredientLookup tries
them in that priority order and takes the first non-empty result.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..data.database import DatabaseInterface, SPOONACULAR_PREFIX
from ..data.models import DEFAULT_CATEGORY, Ingredient
from .ingredients import coerce_amount, parse_ingredient_text

logger = logging.getLogger(__name__)


@dataclass
class RecipeIngredients:
    """Ingredients of one recipe, tagged with the source that produced them."""
    recipe_id: str
    title: str
    kind: str  # "external", "editorial" or "user"
    ingredients: List[Ingredient] = field(default_factory=list)
    servings: Optional[float] = None  # Servings the ingredient amounts are written for


def is_external_id(recipe_id: str) -> bool:
    """True for "spoonacular-<n>" and bare numeric IDs."""
    recipe_id = str(recipe_id)
    return recipe_id.startswith(SPOONACULAR_PREFIX) or recipe_id.isdigit()


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


class RecipeIngredientSource:
    """Base class for one recipe storage shape."""

    kind = ""

    def __init__(self, db: DatabaseInterface):
        self.db = db

    def accepts(self, recipe_id: str) -> bool:
        return True

    def find_record(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def raw_ingredients(self, record: Dict[str, Any]) -> Sequence[Any]:
        return record.get("ingredients") or []

    def normalize(self, raw: Any) -> Ingredient:
        """
        Coerce one stored ingredient to the common shape.

        Editorial and user recipes store either plain strings or dicts
        with loosely named fields (name/ingredient, amount/quantity,
        unit/measurement).
        """
        if isinstance(raw, str):
            name, amount, unit = parse_ingredient_text(raw)
            return Ingredient(name=name, amount=amount, unit=unit, original=raw)

        name = _first(raw.get("name"), raw.get("ingredient")) or ""
        return Ingredient(
            name=str(name).strip(),
            amount=coerce_amount(_first(raw.get("amount"), raw.get("quantity"))),
            unit=str(_first(raw.get("unit"), raw.get("measurement")) or ""),
            category=_first(raw.get("category")) or DEFAULT_CATEGORY,
            original=_first(raw.get("original"), raw.get("name"), raw.get("ingredient")),
        )

    def fetch(self, recipe_id: str) -> Optional[RecipeIngredients]:
        """
        Look up a recipe and return its normalized ingredients.

        Returns:
            RecipeIngredients, or None if this source has no record or the
            record has no usable ingredients
        """
        if not self.accepts(recipe_id):
            return None

        record = self.find_record(recipe_id)
        if not record:
            return None

        ingredients = [self.normalize(raw) for raw in self.raw_ingredients(record)]
        ingredients = [ing for ing in ingredients if ing.name]
        if not ingredients:
            return None

        title = _first(record.get("title"), record.get("name")) or str(recipe_id)
        return RecipeIngredients(
            recipe_id=str(recipe_id),
            title=str(title),
            kind=self.kind,
            ingredients=ingredients,
            servings=coerce_amount(record.get("servings")) or None,
        )


class ExternalRecipeSource(RecipeIngredientSource):
    """Spoonacular records, read from the local cache or fetched through the client."""

    kind = "external"

    def __init__(self, db: DatabaseInterface, client=None):
        super().__init__(db)
        self.client = client

    def accepts(self, recipe_id: str) -> bool:
        return is_external_id(recipe_id)

    def find_record(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        if self.client is not None:
            return self.client.get_recipe(recipe_id)
        return self.db.get_spoonacular_recipe(recipe_id)

    def raw_ingredients(self, record: Dict[str, Any]) -> Sequence[Any]:
        return record.get("extendedIngredients") or []

    def normalize(self, raw: Dict[str, Any]) -> Ingredient:
        metric = (raw.get("measures") or {}).get("metric") or {}
        name = _first(raw.get("name"), raw.get("nameClean"), raw.get("original")) or ""
        return Ingredient(
            name=str(name).strip(),
            amount=coerce_amount(_first(raw.get("amount"), metric.get("amount"))),
            unit=str(_first(raw.get("unit"), metric.get("unitShort")) or ""),
            category=_first(raw.get("aisle")) or DEFAULT_CATEGORY,
            original=_first(raw.get("original"), raw.get("name")),
        )


class EditorialRecipeSource(RecipeIngredientSource):
    """Admin-uploaded recipes."""

    kind = "editorial"

    def find_record(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        return self.db.get_recipe(recipe_id)


class UserRecipeSource(RecipeIngredientSource):
    """User-uploaded recipes."""

    kind = "user"

    def find_record(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        return self.db.get_user_recipe(recipe_id)


class RecipeIngredientLookup:
    """Resolve a recipe ID against the sources in priority order."""

    def __init__(self, sources: Sequence[RecipeIngredientSource]):
        self.sources = list(sources)

    @classmethod
    def default(cls, db: DatabaseInterface, client=None) -> "RecipeIngredientLookup":
        """External, then editorial, then user recipes."""
        return cls([
            ExternalRecipeSource(db, client),
            EditorialRecipeSource(db),
            UserRecipeSource(db),
        ])

    def fetch(self, recipe_id: str) -> Optional[RecipeIngredients]:
        """
        Fetch a recipe's ingredients from the first source that has them.

        A source that raises is logged and the next one is tried.

        Args:
            recipe_id: Recipe ID as stored in a meal slot

        Returns:
            RecipeIngredients, or None if no source has the recipe
        """
        if not recipe_id:
            return None

        for source in self.sources:
            try:
                found = source.fetch(recipe_id)
            except Exception as e:
                logger.error(f"{source.kind} lookup failed for recipe {recipe_id}: {e}", exc_info=True)
                continue
            if found is not None:
                logger.debug(
                    f"Found {len(found.ingredients)} ingredients for {recipe_id} in {source.kind} recipes"
                )
                return found

        logger.warning(f"No ingredients found for recipe: {recipe_id}")
        return None
