"""
Exceptions raised by the SmartPlates core.

Not-found conditions inside aggregation are recovered locally (a missing
recipe contributes nothing); these exceptions cover the cases that callers
have to handle, such as an unknown grocery list or item.
"""


class SmartPlatesError(Exception):
    """Base class for all SmartPlates errors."""


class MealPlanNotFoundError(SmartPlatesError):
    """Raised when a meal plan ID does not resolve to a stored plan."""

    def __init__(self, meal_plan_id: str):
        self.meal_plan_id = meal_plan_id
        super().__init__(f"Meal plan not found: {meal_plan_id}")


class GroceryListNotFoundError(SmartPlatesError):
    """Raised when a grocery list ID does not resolve to a stored list."""

    def __init__(self, list_id: str):
        self.list_id = list_id
        super().__init__(f"Grocery list not found: {list_id}")


class GroceryItemNotFoundError(SmartPlatesError):
    """Raised when toggling an item name that is not on the list."""

    def __init__(self, item_name: str):
        self.item_name = item_name
        super().__init__(f"Item not found: {item_name}")


class UnsupportedExportFormat(SmartPlatesError):
    """Raised for export formats other than text and pdf."""

    def __init__(self, export_format: str):
        self.export_format = export_format
        super().__init__(f"Unsupported export format: {export_format}")


class SpoonacularError(SmartPlatesError):
    """Raised when the Spoonacular API cannot be reached or returns an error."""
