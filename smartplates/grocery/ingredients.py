"""
Ingredient normalization for grocery aggregation.

Names, amounts and units arrive in whatever shape the recipe source used.
Everything here maps them onto a comparable form: a lower-cased name key,
a float amount (or None), a canonical unit, a store category and an
estimated price.
"""

import re
from typing import Dict, Iterable, Optional, Tuple, Union

from ..data.models import DEFAULT_CATEGORY

_FRACTIONS = {
    "½": 0.5, "⅓": 1 / 3, "⅔": 2 / 3, "¼": 0.25, "¾": 0.75,
    "⅛": 0.125, "⅜": 0.375, "⅝": 0.625, "⅞": 0.875,
}

_MIXED_NUMBER = re.compile(r"^(\d+)\s+(\d+)/(\d+)$")
_FRACTION = re.compile(r"^(\d+)/(\d+)$")
# A comma followed by exactly three digits is a thousands separator, not a decimal
_DECIMAL = re.compile(r"^\d+(?:\.\d+|,\d{1,2})?$")
_THOUSANDS = re.compile(r"^\d{1,3}(?:,\d{3})+(?:\.\d+)?$")

# Leading quantity of a free-text ingredient line ("2 eggs", "1 1/2 cups flour", "½ lemon")
_LEADING_AMOUNT = re.compile(
    r"^(?P<amount>\d+\s+\d+/\d+|\d+/\d+|\d+(?:[.,]\d+)?\s*[½⅓⅔¼¾⅛⅜⅝⅞]?|[½⅓⅔¼¾⅛⅜⅝⅞])\s*(?P<rest>.*)$"
)

UNIT_ALIASES = {
    "": "",
    "piece": "pcs", "pieces": "pcs", "pc": "pcs", "pcs": "pcs", "whole": "pcs",
    "tablespoon": "tbsp", "tablespoons": "tbsp", "tbsp": "tbsp", "tbsps": "tbsp", "tbs": "tbsp",
    "teaspoon": "tsp", "teaspoons": "tsp", "tsp": "tsp", "tsps": "tsp",
    "cup": "cup", "cups": "cup", "c": "cup",
    "gram": "g", "grams": "g", "g": "g", "gr": "g",
    "kilogram": "kg", "kilograms": "kg", "kg": "kg",
    "ounce": "oz", "ounces": "oz", "oz": "oz",
    "pound": "lb", "pounds": "lb", "lb": "lb", "lbs": "lb",
    "milliliter": "ml", "milliliters": "ml", "millilitre": "ml", "ml": "ml",
    "liter": "l", "liters": "l", "litre": "l", "l": "l",
    "clove": "clove", "cloves": "clove",
    "can": "can", "cans": "can",
    "slice": "slice", "slices": "slice",
    "serving": "serving", "servings": "serving",
    "pinch": "pinch", "pinches": "pinch",
}

# Conversion factors to a base unit within each dimension
_MASS = {"g": 1.0, "kg": 1000.0, "oz": 28.3495, "lb": 453.592}
_VOLUME = {"ml": 1.0, "l": 1000.0, "tsp": 4.92892, "tbsp": 14.7868, "cup": 236.588}

# Keyword -> store category, checked in order
CATEGORY_KEYWORDS = (
    ("Frozen", ("frozen",)),
    ("Seafood", ("salmon", "fish", "shrimp", "cod", "tuna", "crab", "lobster", "prawn")),
    ("Produce", (
        "onion", "garlic", "tomato", "lettuce", "spinach", "carrot", "potato", "broccoli",
        "cucumber", "avocado", "lemon", "lime", "cilantro", "parsley", "basil", "mushroom",
        "apple", "banana", "zucchini", "celery", "ginger", "bell pepper", "eggplant",
    )),
    ("Spices", ("salt", "pepper", "cumin", "paprika", "oregano", "cinnamon", "thyme", "chili powder")),
    ("Meat", ("chicken", "beef", "pork", "turkey", "lamb", "sausage", "bacon", "ham", "duck", "ground")),
    ("Dairy", ("milk", "cheese", "butter", "cream", "yogurt", "egg")),
    ("Bakery", ("bread", "tortilla", "bun", "roll", "bagel", "baguette")),
    ("Pantry", (
        "flour", "sugar", "oil", "vinegar", "rice", "pasta", "beans", "stock", "broth",
        "sauce", "honey", "oats", "lentil", "noodle",
    )),
)

# Rough price in USD of one pricing unit, by category
CATEGORY_PRICES = {
    "Produce": 0.60,
    "Meat": 4.50,
    "Seafood": 6.00,
    "Dairy": 1.20,
    "Bakery": 2.50,
    "Frozen": 2.00,
    "Spices": 0.40,
    "Pantry": 0.80,
    DEFAULT_CATEGORY: 1.00,
}

# How many "pricing units" one unit of measure represents
_PRICE_SCALE = {
    "g": 0.01, "kg": 10.0, "oz": 0.28, "lb": 4.5,
    "ml": 0.01, "l": 10.0, "cup": 2.4, "tbsp": 0.15, "tsp": 0.05,
    "pinch": 0.01, "clove": 0.1, "slice": 0.25,
}

Amount = Union[int, float, str, None]


def normalize_name(name: Optional[str]) -> str:
    """
    Build the aggregation key for an ingredient name.

    Args:
        name: Raw name, e.g. "  Tomato " or "Red   Onion"

    Returns:
        Trimmed, lower-cased name with internal whitespace collapsed
    """
    if not name:
        return ""
    return " ".join(str(name).split()).lower()


def display_name(name: str) -> str:
    """Title-case a normalized name for display ("red onion" -> "Red Onion")."""
    return " ".join(word[:1].upper() + word[1:] for word in name.split())


def coerce_amount(value: Amount) -> Optional[float]:
    """
    Convert a recipe amount to a float.

    Handles numbers, numeric strings ("2", "2.5", "2,5"), fractions ("1/2"),
    mixed numbers ("1 1/2") and unicode fractions ("½", "1½").

    Returns:
        Float amount, or None when the value carries no usable number
        ("to taste", "", None, negative values)
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value >= 0 else None

    text = str(value).strip()
    if not text:
        return None

    for symbol, fraction in _FRACTIONS.items():
        if text.endswith(symbol):
            whole = text[:-len(symbol)].strip()
            if not whole:
                return fraction
            if whole.isdigit():
                return int(whole) + fraction
            return None

    if _DECIMAL.match(text):
        return float(text.replace(",", "."))

    if _THOUSANDS.match(text):
        return float(text.replace(",", ""))

    match = _FRACTION.match(text)
    if match:
        denominator = int(match.group(2))
        return int(match.group(1)) / denominator if denominator else None

    match = _MIXED_NUMBER.match(text)
    if match:
        denominator = int(match.group(3))
        if not denominator:
            return None
        return int(match.group(1)) + int(match.group(2)) / denominator

    return None


def normalize_unit(unit: Optional[str]) -> str:
    """Map a unit spelling onto its canonical short form ("Tablespoons" -> "tbsp")."""
    if not unit:
        return ""
    key = " ".join(str(unit).split()).lower().rstrip(".")
    return UNIT_ALIASES.get(key, key)


def parse_ingredient_text(text: str) -> Tuple[str, Optional[float], str]:
    """
    Split a free-text ingredient line into name, amount and unit.

    "2 eggs" -> ("eggs", 2.0, ""), "200 g of flour" -> ("flour", 200.0, "g").
    The word after the amount is only taken as a unit when it is a known
    unit spelling. Lines without a leading amount keep the whole text as
    the name and an unknown amount.
    """
    text = " ".join(str(text).split())
    match = _LEADING_AMOUNT.match(text)
    if not match or not match.group("rest"):
        return text, None, ""

    amount = coerce_amount(match.group("amount"))
    if amount is None:
        return text, None, ""

    rest = match.group("rest")
    unit = ""
    word, _, remainder = rest.partition(" ")
    if remainder and word.lower().rstrip(".") in UNIT_ALIASES:
        unit = normalize_unit(word)
        rest = remainder
    if rest.lower().startswith("of "):
        rest = rest[3:]

    return rest.strip(), amount, unit


def convert_amount(amount: float, from_unit: str, to_unit: str) -> Optional[float]:
    """
    Convert between units of the same dimension.

    Returns:
        Converted amount, or None if the units are not interchangeable
    """
    if from_unit == to_unit:
        return amount
    for table in (_MASS, _VOLUME):
        if from_unit in table and to_unit in table:
            return amount * table[from_unit] / table[to_unit]
    return None


def guess_category(name: str) -> str:
    """
    Guess a store category from an ingredient name.

    Args:
        name: Normalized ingredient name

    Returns:
        Category string, DEFAULT_CATEGORY when nothing matches
    """
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def resolve_category(name: str, source_category: Optional[str]) -> str:
    """Prefer the recipe source's own category; fall back to a name-based guess."""
    if source_category and source_category.strip() and source_category != DEFAULT_CATEGORY:
        return source_category.strip()
    return guess_category(name)


def is_staple(name: str, staples: Iterable[str]) -> bool:
    """True if the normalized name is one of the configured staples."""
    return normalize_name(name) in {normalize_name(s) for s in staples}


def estimate_cost(category: str, quantity: float, unit: str) -> float:
    """
    Estimate the shelf cost of an ingredient quantity.

    A heuristic, not a price lookup: a per-category base price scaled by
    how much of the unit the quantity represents.

    Args:
        category: Store category
        quantity: Total amount (0 when unknown)
        unit: Canonical unit

    Returns:
        Cost in dollars, rounded to cents (at least 0.25)
    """
    base = CATEGORY_PRICES.get(category, CATEGORY_PRICES[DEFAULT_CATEGORY])
    scale = _PRICE_SCALE.get(unit, 1.0)
    units = quantity * scale if quantity else 1.0
    return round(max(base * units, 0.25), 2)


def split_quantities(entries: Iterable[Tuple[Optional[float], str]]) -> Tuple[float, str, Dict[str, float], int]:
    """
    Sum (amount, unit) contributions into one quantity.

    The first unit with a numeric amount becomes the item unit; later
    contributions are converted to it when the dimension allows, otherwise
    they are kept per unit in the returned extras.

    Returns:
        (total, unit, extras_by_unit, unknown_count)
    """
    total = 0.0
    item_unit: Optional[str] = None
    extras: Dict[str, float] = {}
    unknown = 0

    for amount, unit in entries:
        if amount is None:
            unknown += 1
            continue
        if item_unit is None:
            item_unit = unit
        converted = convert_amount(amount, unit, item_unit)
        if converted is None:
            extras[unit] = extras.get(unit, 0.0) + amount
        else:
            total += converted

    return total, item_unit or "", extras, unknown
