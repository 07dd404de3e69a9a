"""
Database interface for SmartPlates.

Manages one SQLite database (smartplates.db) holding:
- Recipe records in their three source shapes (Spoonacular cache,
  editorial recipes, user-authored recipes), stored as raw JSON documents
- Weekly meal plans
- Generated grocery lists and user-saved grocery lists
"""

import sqlite3
import json
import logging
import uuid
from typing import List, Optional, Dict, Any, Tuple
from datetime import datetime, timedelta
from pathlib import Path

from .models import MealPlan, GroceryList, GroceryItem, SavedGroceryList, DayMeals
from ..dates import DateLike, to_calendar_date_key, to_date

logger = logging.getLogger(__name__)

SPOONACULAR_PREFIX = "spoonacular-"


def _new_id(prefix: str, tag: str = "") -> str:
    suffix = uuid.uuid4().hex[:8]
    return f"{prefix}_{tag}_{suffix}" if tag else f"{prefix}_{suffix}"


class DatabaseInterface:
    """Interface for interacting with the SmartPlates SQLite database."""

    def __init__(self, db_dir: str = "data"):
        """
        Initialize database interface.

        Args:
            db_dir: Directory containing the database file
        """
        self.db_dir = Path(db_dir)
        self.db_dir.mkdir(parents=True, exist_ok=True)

        self.db_path = self.db_dir / "smartplates.db"

        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_database(self):
        """Initialize database schema."""
        with self._connect() as conn:
            cursor = conn.cursor()

            # Spoonacular API records (cached responses)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS spoonacular_recipes (
                    id TEXT PRIMARY KEY,
                    spoonacular_id INTEGER,
                    title TEXT,
                    data_json TEXT NOT NULL,
                    fetched_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_spoonacular_recipes_sid
                ON spoonacular_recipes(spoonacular_id)
            """)

            # Editorially authored recipes (admin uploads)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS recipes (
                    id TEXT PRIMARY KEY,
                    title TEXT,
                    data_json TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

            # User-authored recipes
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS user_recipes (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    title TEXT,
                    data_json TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

            # Weekly meal plans
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS meal_plans (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    week_start_date TEXT NOT NULL,
                    title TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    days_json TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_meal_plans_user_week
                ON meal_plans(user_id, week_start_date)
            """)

            # Generated grocery lists
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS grocery_lists (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    meal_plan_id TEXT,
                    name TEXT NOT NULL,
                    generated_at TEXT NOT NULL,
                    last_updated TEXT NOT NULL,
                    list_json TEXT NOT NULL
                )
            """)

            # Named lists saved by users
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS saved_grocery_lists (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    items_json TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

            conn.commit()

        logger.info(f"Initialized database at {self.db_path}")

    # ==================== Recipe Operations ====================

    def save_spoonacular_recipe(self, record: Dict[str, Any], fetched_at: Optional[datetime] = None) -> str:
        """
        Store a Spoonacular recipe document.

        Args:
            record: Recipe information as returned by the Spoonacular API
                (must carry a numeric "id")
            fetched_at: When the record was fetched (defaults to now)

        Returns:
            Stored ID in "spoonacular-<n>" form
        """
        spoonacular_id = int(record["id"])
        record_id = f"{SPOONACULAR_PREFIX}{spoonacular_id}"
        fetched_at = fetched_at or datetime.now()

        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO spoonacular_recipes
                (id, spoonacular_id, title, data_json, fetched_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record_id,
                    spoonacular_id,
                    record.get("title"),
                    json.dumps(record),
                    fetched_at.isoformat(),
                ),
            )
            conn.commit()

        return record_id

    def get_spoonacular_recipe(
        self, recipe_id: str, max_age: Optional[timedelta] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Get a cached Spoonacular recipe.

        Args:
            recipe_id: "spoonacular-<n>" or a bare numeric ID
            max_age: Ignore records fetched longer ago than this

        Returns:
            Recipe document or None if absent (or stale)
        """
        found = self._get_spoonacular_row(recipe_id)
        if found is None:
            return None

        record, fetched_at = found
        if max_age is not None and datetime.now() - fetched_at > max_age:
            logger.debug(f"Cached Spoonacular recipe {recipe_id} is stale")
            return None
        return record

    def _get_spoonacular_row(self, recipe_id: str) -> Optional[Tuple[Dict[str, Any], datetime]]:
        recipe_id = str(recipe_id)
        with self._connect() as conn:
            cursor = conn.cursor()

            if recipe_id.startswith(SPOONACULAR_PREFIX):
                cursor.execute(
                    "SELECT data_json, fetched_at FROM spoonacular_recipes WHERE id = ?",
                    (recipe_id,),
                )
            elif recipe_id.isdigit():
                cursor.execute(
                    """
                    SELECT data_json, fetched_at FROM spoonacular_recipes
                    WHERE id = ? OR spoonacular_id = ?
                    """,
                    (f"{SPOONACULAR_PREFIX}{recipe_id}", int(recipe_id)),
                )
            else:
                return None
            row = cursor.fetchone()

        if not row:
            return None
        return json.loads(row["data_json"]), datetime.fromisoformat(row["fetched_at"])

    def save_recipe(self, record: Dict[str, Any]) -> str:
        """Store an editorial recipe document; assigns an ID if missing."""
        record = dict(record)
        record.setdefault("id", _new_id("rcp"))

        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO recipes (id, title, data_json, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    str(record["id"]),
                    record.get("title"),
                    json.dumps(record),
                    datetime.now().isoformat(),
                ),
            )
            conn.commit()

        return str(record["id"])

    def get_recipe(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        """
        Get an editorial recipe by ID.

        Args:
            recipe_id: Recipe ID

        Returns:
            Recipe document or None if not found
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data_json FROM recipes WHERE id = ?", (str(recipe_id),)
            ).fetchone()

        if row:
            return json.loads(row["data_json"])
        return None

    def save_user_recipe(self, record: Dict[str, Any], user_id: str) -> str:
        """Store a user-authored recipe document; assigns an ID if missing."""
        record = dict(record)
        record.setdefault("id", _new_id("ur"))

        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO user_recipes (id, user_id, title, data_json, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(record["id"]),
                    str(user_id),
                    record.get("title"),
                    json.dumps(record),
                    datetime.now().isoformat(),
                ),
            )
            conn.commit()

        return str(record["id"])

    def get_user_recipe(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        """Get a user-authored recipe by ID, or None."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data_json FROM user_recipes WHERE id = ?", (str(recipe_id),)
            ).fetchone()

        if row:
            return json.loads(row["data_json"])
        return None

    # ==================== Meal Plan Operations ====================

    def save_meal_plan(self, meal_plan: MealPlan) -> str:
        """
        Save a meal plan to the database.

        Args:
            meal_plan: MealPlan object (ID assigned if missing)

        Returns:
            ID of saved meal plan
        """
        if not meal_plan.id:
            meal_plan.id = _new_id("mp", meal_plan.week_start_date)

        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO meal_plans
                (id, user_id, week_start_date, title, created_at, updated_at, days_json)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    meal_plan.id,
                    str(meal_plan.user_id),
                    meal_plan.week_start_date,
                    meal_plan.title,
                    meal_plan.created_at.isoformat(),
                    meal_plan.updated_at.isoformat(),
                    json.dumps([day.to_dict() for day in meal_plan.days]),
                ),
            )
            conn.commit()

        logger.info(f"Saved meal plan {meal_plan.id} with {meal_plan.total_meals()} meals")
        return meal_plan.id

    def _row_to_meal_plan(self, row: sqlite3.Row) -> MealPlan:
        return MealPlan(
            id=row["id"],
            user_id=row["user_id"],
            week_start_date=row["week_start_date"],
            title=row["title"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            days=[DayMeals.from_dict(d) for d in json.loads(row["days_json"])],
        )

    def get_meal_plan(self, plan_id: str, user_id: Optional[str] = None) -> Optional[MealPlan]:
        """
        Get a meal plan by ID.

        Args:
            plan_id: Meal plan ID
            user_id: Optional user ID filter (for security)

        Returns:
            MealPlan object or None
        """
        with self._connect() as conn:
            if user_id is not None:
                row = conn.execute(
                    "SELECT * FROM meal_plans WHERE id = ? AND user_id = ?",
                    (plan_id, str(user_id)),
                ).fetchone()
            else:
                row = conn.execute(
                    "SELECT * FROM meal_plans WHERE id = ?", (plan_id,)
                ).fetchone()

        if row:
            return self._row_to_meal_plan(row)
        return None

    def get_user_meal_plans(self, user_id: str) -> List[MealPlan]:
        """All meal plans for a user, oldest week first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM meal_plans WHERE user_id = ? ORDER BY week_start_date, created_at",
                (str(user_id),),
            ).fetchall()

        return [self._row_to_meal_plan(row) for row in rows]

    def get_meal_plans_in_range(self, user_id: str, start: DateLike, end: DateLike) -> List[MealPlan]:
        """
        Get plans whose week overlaps [start, end].

        Args:
            user_id: Plan owner
            start: First date of the range (inclusive)
            end: Last date of the range (inclusive)

        Returns:
            List of MealPlan objects ordered by week start
        """
        # A week starting up to six days before `start` still overlaps it
        lower = (to_date(start) - timedelta(days=6)).isoformat()
        upper = to_calendar_date_key(end)

        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM meal_plans
                WHERE user_id = ? AND week_start_date BETWEEN ? AND ?
                ORDER BY week_start_date, created_at
                """,
                (str(user_id), lower, upper),
            ).fetchall()

        return [self._row_to_meal_plan(row) for row in rows]

    def find_meal_plan_covering(self, user_id: str, value: DateLike) -> Optional[MealPlan]:
        """Return the first stored plan (by creation) that has a day for `value`."""
        for plan in self.get_meal_plans_in_range(user_id, value, value):
            if plan.covers(value):
                return plan
        return None

    def delete_meal_plan(self, plan_id: str, user_id: str) -> bool:
        """Delete a meal plan owned by `user_id`."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM meal_plans WHERE id = ? AND user_id = ?",
                (plan_id, str(user_id)),
            )
            conn.commit()
            return cursor.rowcount > 0

    # ==================== Grocery List Operations ====================

    def save_grocery_list(self, grocery_list: GroceryList) -> str:
        """
        Save a grocery list to the database.

        Args:
            grocery_list: GroceryList object (ID assigned if missing)

        Returns:
            ID of saved grocery list
        """
        if not grocery_list.id:
            grocery_list.id = _new_id("gl")

        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO grocery_lists
                (id, user_id, meal_plan_id, name, generated_at, last_updated, list_json)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    grocery_list.id,
                    grocery_list.user_id,
                    grocery_list.meal_plan_id,
                    grocery_list.name,
                    grocery_list.generated_at.isoformat(),
                    grocery_list.last_updated.isoformat(),
                    json.dumps(grocery_list.to_dict()),
                ),
            )
            conn.commit()

        logger.info(f"Saved grocery list {grocery_list.id}")
        return grocery_list.id

    def get_grocery_list(self, list_id: str) -> Optional[GroceryList]:
        """Get a grocery list by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, list_json FROM grocery_lists WHERE id = ?", (list_id,)
            ).fetchone()

        if row:
            grocery_list = GroceryList.from_dict(json.loads(row["list_json"]))
            grocery_list.id = row["id"]
            return grocery_list
        return None

    def get_grocery_list_by_meal_plan(self, meal_plan_id: str) -> Optional[GroceryList]:
        """
        Get the most recent grocery list generated for a meal plan.

        Args:
            meal_plan_id: Meal plan ID

        Returns:
            GroceryList object or None if not found
        """
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id FROM grocery_lists WHERE meal_plan_id = ?
                ORDER BY generated_at DESC LIMIT 1
                """,
                (meal_plan_id,),
            ).fetchone()

        if not row:
            return None
        return self.get_grocery_list(row["id"])

    # ==================== Saved Grocery List Operations ====================

    def save_named_grocery_list(self, saved: SavedGroceryList) -> str:
        """Store a user's named copy of a grocery list."""
        if not saved.id:
            saved.id = _new_id("sgl")

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO saved_grocery_lists (id, user_id, name, items_json, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    saved.id,
                    str(saved.user_id),
                    saved.name,
                    json.dumps([item.to_dict() for item in saved.items]),
                    saved.created_at.isoformat(),
                ),
            )
            conn.commit()

        return saved.id

    def get_saved_grocery_lists(self, user_id: str) -> List[SavedGroceryList]:
        """Saved lists for a user, most recent first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM saved_grocery_lists WHERE user_id = ? ORDER BY created_at DESC",
                (str(user_id),),
            ).fetchall()

        return [
            SavedGroceryList(
                id=row["id"],
                user_id=row["user_id"],
                name=row["name"],
                items=[GroceryItem.from_dict(i) for i in json.loads(row["items_json"])],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def delete_saved_grocery_list(self, list_id: str, user_id: str) -> bool:
        """Delete a saved list; only its owner may delete it."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM saved_grocery_lists WHERE id = ? AND user_id = ?",
                (list_id, str(user_id)),
            )
            conn.commit()
            return cursor.rowcount > 0
