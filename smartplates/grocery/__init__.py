"""
Grocery list aggregation - recipe ingredient lookup, quantity merging and export.
"""

from .aggregator import GroceryListGenerator, GroceryListOptions
from .export import ExportedDocument, export_grocery_list, export_filename, render_text
from .sources import RecipeIngredientLookup, RecipeIngredients

__all__ = [
    "GroceryListGenerator",
    "GroceryListOptions",
    "ExportedDocument",
    "export_grocery_list",
    "export_filename",
    "render_text",
    "RecipeIngredientLookup",
    "RecipeIngredients",
]
