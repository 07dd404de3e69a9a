"""
Async service layer for the API.

Wraps the synchronous grocery and calendar core with:
- Async execution via thread pool (SQLite and HTTP calls stay off the event loop)
- One shared DatabaseInterface and GroceryListGenerator per process
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Optional

from ...clients.spoonacular import SpoonacularClient
from ...config import Settings, get_settings
from ...data.database import DatabaseInterface
from ...grocery.aggregator import GroceryListGenerator
from ...grocery.sources import RecipeIngredientLookup
from ...planner.calendar_grid import MonthGrid
from ...planner.monthly_calendar import MonthlyCalendar

logger = logging.getLogger(__name__)

# Thread pool for running sync database operations
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="planner_")


class AsyncPlannerService:
    """Async wrapper around the database, the grocery generator and the calendar."""

    def __init__(self, db: DatabaseInterface, generator: Optional[GroceryListGenerator] = None):
        """
        Initialize the service.

        Args:
            db: Database interface instance
            generator: Grocery list generator (built over `db` if omitted)
        """
        self.db = db
        self.generator = generator or GroceryListGenerator(db)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AsyncPlannerService":
        """Build the service, wiring in the Spoonacular client when an API key is set."""
        db = DatabaseInterface(db_dir=settings.db_dir)

        client = None
        if settings.spoonacular_api_key:
            client = SpoonacularClient(
                api_key=settings.spoonacular_api_key,
                db=db,
                base_url=settings.spoonacular_base_url,
                ttl_hours=settings.spoonacular_cache_ttl_hours,
            )
        else:
            logger.info("SPOONACULAR_API_KEY not set, external recipes come from the local cache only")

        generator = GroceryListGenerator(
            db,
            lookup=RecipeIngredientLookup.default(db, client),
            staples=settings.staples,
            max_workers=settings.lookup_workers,
        )
        return cls(db, generator)

    async def run(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Run a blocking call on the thread pool."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(_executor, partial(func, *args, **kwargs))

    def render_month(
        self,
        user_id: str,
        year: int,
        month: int,
        selected: Optional[str] = None,
    ) -> MonthGrid:
        """Load the plans visible in a month's grid and reconcile them (blocking)."""
        monthly = MonthlyCalendar(year=year, month=month, selected=selected)
        start, end = monthly.visible_range()
        plans = self.db.get_meal_plans_in_range(user_id, start, end)
        return monthly.render(plans)


# Global service instance (set during app startup)
_planner_service: Optional[AsyncPlannerService] = None


def get_planner_service() -> AsyncPlannerService:
    """Get the global planner service instance, creating it from settings on first use."""
    global _planner_service
    if _planner_service is None:
        _planner_service = AsyncPlannerService.from_settings(get_settings())
    return _planner_service


def init_planner_service(settings: Optional[Settings] = None) -> AsyncPlannerService:
    """Initialize the global planner service."""
    global _planner_service
    _planner_service = AsyncPlannerService.from_settings(settings or get_settings())
    return _planner_service
