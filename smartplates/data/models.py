"""
Data models for SmartPlates.

These models define the core entities used throughout the system:
- Ingredient: a recipe ingredient in the common normalized shape
- GroceryItem / GroceryList: aggregated shopping list with checklist state
- MealSlot / DayMeals / MealPlan: weekly meal planning
- SavedGroceryList: a named snapshot of a shopping list
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Dict, Any

from ..dates import DateLike, to_calendar_date_key, to_date, week_start

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snacks")
DEFAULT_CATEGORY = "General"


@dataclass
class Ingredient:
    """Recipe ingredient coerced to the common shape.

    Every recipe source (Spoonacular, editorial, user-authored) is
    normalized to this before aggregation.
    """
    name: str
    amount: Optional[float] = None  # None when the recipe gives no usable number
    unit: str = ""
    category: str = DEFAULT_CATEGORY
    original: Optional[str] = None  # Source text, e.g. "2 cups diced tomatoes"

    def __str__(self) -> str:
        """Human-readable ingredient string."""
        if self.amount is not None and self.unit:
            return f"{self.amount:g} {self.unit} {self.name}"
        elif self.amount is not None:
            return f"{self.amount:g} {self.name}"
        else:
            return self.name

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "amount": self.amount,
            "unit": self.unit,
            "category": self.category,
            "original": self.original,
        }


@dataclass
class GroceryItem:
    """One line of a grocery list, summed across every recipe that needs it."""

    name: str  # Normalized name, the aggregation key
    display_name: str
    quantity: float = 0.0
    unit: str = ""
    category: str = DEFAULT_CATEGORY
    recipes: List[str] = field(default_factory=list)  # Contributing recipe titles
    is_purchased: bool = False
    estimated_cost: Optional[float] = None
    unknown_amounts: int = 0  # Contributions with no numeric amount
    notes: Optional[str] = None

    def quantity_label(self) -> str:
        """Format quantity and unit for display.

        Returns:
            e.g. "5 pcs", "1.5 cup", "2 cup + amount unknown", "amount unknown"
        """
        parts = []
        if self.quantity or not self.unknown_amounts:
            if self.quantity == int(self.quantity):
                parts.append(f"{int(self.quantity)} {self.unit}".strip())
            else:
                parts.append(f"{self.quantity:g} {self.unit}".strip())
        if self.unknown_amounts:
            parts.append("amount unknown")
        return " + ".join(parts)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "display_name": self.display_name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category,
            "recipes": list(self.recipes),
            "is_purchased": self.is_purchased,
            "estimated_cost": self.estimated_cost,
            "unknown_amounts": self.unknown_amounts,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "GroceryItem":
        """Create GroceryItem from dictionary."""
        return cls(
            name=data["name"],
            display_name=data.get("display_name") or data["name"],
            quantity=float(data.get("quantity") or 0.0),
            unit=data.get("unit") or "",
            category=data.get("category") or DEFAULT_CATEGORY,
            recipes=list(data.get("recipes", [])),
            is_purchased=bool(data.get("is_purchased", False)),
            estimated_cost=data.get("estimated_cost"),
            unknown_amounts=int(data.get("unknown_amounts") or 0),
            notes=data.get("notes"),
        )


@dataclass
class GroceryList:
    """Shopping list generated from one meal plan.

    The counters are derived from `items` on every read, so they can never
    drift from the checklist state.
    """

    name: str
    items: List[GroceryItem]
    meal_plan_id: Optional[str] = None
    user_id: Optional[str] = None
    categorized: bool = False
    total_estimated_cost: Optional[float] = None
    generated_at: datetime = field(default_factory=datetime.now)
    last_updated: datetime = field(default_factory=datetime.now)
    id: Optional[str] = None

    @property
    def items_count(self) -> int:
        return len(self.items)

    @property
    def purchased_count(self) -> int:
        return sum(1 for item in self.items if item.is_purchased)

    @property
    def is_completed(self) -> bool:
        return self.items_count > 0 and self.purchased_count == self.items_count

    @property
    def categories(self) -> Dict[str, List[GroceryItem]]:
        """Items bucketed by category; empty unless the list is categorized."""
        if not self.categorized:
            return {}
        sections: Dict[str, List[GroceryItem]] = {}
        for item in self.items:
            sections.setdefault(item.category or DEFAULT_CATEGORY, []).append(item)
        return sections

    def find_item(self, name: str) -> Optional[GroceryItem]:
        """
        Find an item by name (case- and whitespace-insensitive).

        Args:
            name: Item name as shown or as normalized

        Returns:
            GroceryItem if found, None otherwise
        """
        key = " ".join(name.split()).lower()
        for item in self.items:
            if item.name == key or item.display_name.lower() == key:
                return item
        return None

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "meal_plan_id": self.meal_plan_id,
            "user_id": self.user_id,
            "items": [item.to_dict() for item in self.items],
            "categories": {
                category: [item.to_dict() for item in items]
                for category, items in self.categories.items()
            },
            "categorized": self.categorized,
            "items_count": self.items_count,
            "purchased_count": self.purchased_count,
            "is_completed": self.is_completed,
            "total_estimated_cost": self.total_estimated_cost,
            "generated_at": self.generated_at.isoformat(),
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "GroceryList":
        """Create GroceryList from dictionary."""
        return cls(
            id=data.get("id"),
            name=data["name"],
            meal_plan_id=data.get("meal_plan_id"),
            user_id=data.get("user_id"),
            items=[GroceryItem.from_dict(i) for i in data.get("items", [])],
            categorized=bool(data.get("categorized", False)),
            total_estimated_cost=data.get("total_estimated_cost"),
            generated_at=datetime.fromisoformat(data["generated_at"]),
            last_updated=datetime.fromisoformat(
                data.get("last_updated") or data["generated_at"]
            ),
        )


@dataclass
class SavedGroceryList:
    """A named copy of a shopping list kept by the user."""

    user_id: str
    name: str
    items: List[GroceryItem]
    created_at: datetime = field(default_factory=datetime.now)
    id: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class MealSlot:
    """A recipe placed in one meal-type bucket of one day."""

    recipe_id: Optional[str] = None
    recipe_name: Optional[str] = None
    image: Optional[str] = None
    servings: int = 1
    notes: Optional[str] = None
    cooking_time: Optional[int] = None  # Minutes
    prep_time: Optional[int] = None  # Minutes

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "recipe_id": self.recipe_id,
            "recipe_name": self.recipe_name,
            "image": self.image,
            "servings": self.servings,
            "notes": self.notes,
            "cooking_time": self.cooking_time,
            "prep_time": self.prep_time,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "MealSlot":
        """Create MealSlot from dictionary."""
        return cls(
            recipe_id=str(data["recipe_id"]) if data.get("recipe_id") is not None else None,
            recipe_name=data.get("recipe_name"),
            image=data.get("image"),
            servings=data.get("servings") or 1,
            notes=data.get("notes"),
            cooking_time=data.get("cooking_time"),
            prep_time=data.get("prep_time"),
        )


@dataclass
class DayMeals:
    """All meals for a single calendar date."""

    date: str  # ISO format, date or datetime: "2025-10-20"
    breakfast: List[MealSlot] = field(default_factory=list)
    lunch: List[MealSlot] = field(default_factory=list)
    dinner: List[MealSlot] = field(default_factory=list)
    snacks: List[MealSlot] = field(default_factory=list)
    daily_notes: Optional[str] = None

    @property
    def date_key(self) -> str:
        return to_calendar_date_key(self.date)

    def slots(self, meal_type: str) -> List[MealSlot]:
        """
        Get the meal list for a meal type.

        Raises:
            ValueError: If meal_type is not breakfast, lunch, dinner or snacks
        """
        if meal_type not in MEAL_TYPES:
            raise ValueError(f"Unknown meal type: {meal_type}")
        return getattr(self, meal_type)

    def meal_count(self) -> int:
        return sum(len(self.slots(meal_type)) for meal_type in MEAL_TYPES)

    def merged_with(self, other: "DayMeals") -> "DayMeals":
        """Concatenate each meal-type list of `other` after this one's."""
        return DayMeals(
            date=other.date,
            breakfast=self.breakfast + other.breakfast,
            lunch=self.lunch + other.lunch,
            dinner=self.dinner + other.dinner,
            snacks=self.snacks + other.snacks,
            daily_notes=self.daily_notes or other.daily_notes,
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {"date": self.date}
        for meal_type in MEAL_TYPES:
            data[meal_type] = [slot.to_dict() for slot in self.slots(meal_type)]
        data["daily_notes"] = self.daily_notes
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "DayMeals":
        """Create DayMeals from dictionary."""
        return cls(
            date=str(data["date"]),
            breakfast=[MealSlot.from_dict(m) for m in data.get("breakfast") or []],
            lunch=[MealSlot.from_dict(m) for m in data.get("lunch") or []],
            dinner=[MealSlot.from_dict(m) for m in data.get("dinner") or []],
            snacks=[MealSlot.from_dict(m) for m in data.get("snacks") or []],
            daily_notes=data.get("daily_notes"),
        )


@dataclass
class MealPlan:
    """Weekly meal plan: seven DayMeals starting on a Monday."""

    user_id: str
    week_start_date: str  # ISO format: "2025-10-20"
    days: List[DayMeals]
    title: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    id: Optional[str] = None

    def __post_init__(self):
        if not self.title:
            self.title = f"Week of {self.week_start_date}"

    @classmethod
    def create_weekly(cls, user_id: str, start: DateLike, title: Optional[str] = None) -> "MealPlan":
        """
        Create an empty weekly plan.

        Args:
            user_id: Owner of the plan
            start: Any date in the target week; moved back to its Monday
            title: Optional display title

        Returns:
            MealPlan with seven empty days
        """
        monday = week_start(start)
        days = [
            DayMeals(date=(monday + timedelta(days=i)).isoformat())
            for i in range(7)
        ]
        return cls(
            user_id=user_id,
            week_start_date=monday.isoformat(),
            days=days,
            title=title,
        )

    @property
    def week_end_date(self) -> str:
        return (to_date(self.week_start_date) + timedelta(days=6)).isoformat()

    def get_day_by_date(self, value: DateLike) -> Optional[DayMeals]:
        """Find the DayMeals for a calendar date, if this plan covers it."""
        key = to_calendar_date_key(value)
        for day in self.days:
            if day.date_key == key:
                return day
        return None

    def covers(self, value: DateLike) -> bool:
        return self.get_day_by_date(value) is not None

    def add_meal(self, day_index: int, meal_type: str, slot: MealSlot):
        """
        Append a meal to a day of the week.

        Args:
            day_index: 0 (Monday) through 6 (Sunday)
            meal_type: breakfast, lunch, dinner or snacks
            slot: Meal to add

        Raises:
            ValueError: If day_index is out of range or meal_type is unknown
        """
        if day_index < 0 or day_index >= 7:
            raise ValueError("Day index must be between 0 and 6")
        while len(self.days) <= day_index:
            offset = len(self.days)
            self.days.append(DayMeals(
                date=(to_date(self.week_start_date) + timedelta(days=offset)).isoformat()
            ))
        self.days[day_index].slots(meal_type).append(slot)
        self.updated_at = datetime.now()

    def remove_meal(self, day_index: int, meal_type: str, meal_index: int) -> Optional[MealSlot]:
        """
        Remove a meal from a day of the week.

        Returns:
            The removed MealSlot, or None if the index does not exist
        """
        if day_index < 0 or day_index >= len(self.days):
            return None
        slots = self.days[day_index].slots(meal_type)
        if meal_index < 0 or meal_index >= len(slots):
            return None
        self.updated_at = datetime.now()
        return slots.pop(meal_index)

    def total_meals(self) -> int:
        return sum(day.meal_count() for day in self.days)

    def recipe_ids(self) -> List[str]:
        """Distinct recipe IDs across every day and meal type, in plan order."""
        return list(self.recipe_servings())

    def recipe_servings(self) -> Dict[str, int]:
        """Total planned servings per recipe ID, summed over every slot using it."""
        totals: Dict[str, int] = {}
        for day in self.days:
            for meal_type in MEAL_TYPES:
                for slot in day.slots(meal_type):
                    if slot.recipe_id:
                        key = str(slot.recipe_id)
                        totals[key] = totals.get(key, 0) + (slot.servings or 1)
        return totals

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "week_start_date": self.week_start_date,
            "week_end_date": self.week_end_date,
            "days": [day.to_dict() for day in self.days],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "MealPlan":
        """Create MealPlan from dictionary."""
        return cls(
            id=data.get("id"),
            user_id=str(data["user_id"]),
            title=data.get("title"),
            week_start_date=to_calendar_date_key(data["week_start_date"]),
            days=[DayMeals.from_dict(d) for d in data.get("days", [])],
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else datetime.now(),
            updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else datetime.now(),
        )
