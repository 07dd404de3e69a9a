"""
Runtime configuration.

Values come from the process environment, with a `.env` file in the
working directory loaded first if present.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_STAPLES = (
    "salt",
    "pepper",
    "black pepper",
    "oil",
    "olive oil",
    "vegetable oil",
    "water",
    "sugar",
    "flour",
)


def _parse_staples(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return DEFAULT_STAPLES
    return tuple(s.strip().lower() for s in raw.split(",") if s.strip())


@dataclass(frozen=True)
class Settings:
    """Application settings."""

    db_dir: str = "data"
    spoonacular_api_key: Optional[str] = None
    spoonacular_base_url: str = "https://api.spoonacular.com"
    spoonacular_cache_ttl_hours: int = 24
    staples: Tuple[str, ...] = field(default=DEFAULT_STAPLES)
    lookup_workers: int = 8
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            db_dir=os.getenv("SMARTPLATES_DB_DIR", "data"),
            spoonacular_api_key=os.getenv("SPOONACULAR_API_KEY") or None,
            spoonacular_base_url=os.getenv(
                "SPOONACULAR_BASE_URL", "https://api.spoonacular.com"
            ),
            spoonacular_cache_ttl_hours=int(os.getenv("SPOONACULAR_CACHE_TTL_HOURS", "24")),
            staples=_parse_staples(os.getenv("SMARTPLATES_STAPLES")),
            lookup_workers=int(os.getenv("SMARTPLATES_LOOKUP_WORKERS", "8")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings.from_env()
