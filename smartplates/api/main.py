"""
FastAPI application for SmartPlates.

Serves grocery list generation and the monthly meal calendar over the
synchronous core, which runs on a thread pool.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import get_settings
from .services.planner_service import init_planner_service

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if os.getenv("DEBUG", "false").lower() == "true" else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Opens the database and wires the grocery generator (with the
    Spoonacular client when an API key is configured) before serving.
    """
    logger.info("Starting SmartPlates API...")

    settings = get_settings()
    init_planner_service(settings)
    logger.info(f"Services initialized (database in {settings.db_dir})")

    yield

    logger.info("SmartPlates API shutdown complete")


# Create FastAPI app with lifespan
app = FastAPI(
    title="SmartPlates API",
    description="Meal plan calendar and grocery list generation",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for load balancers and container orchestration.

    Returns 200 if the service is healthy.
    """
    return {"status": "healthy", "version": __version__}


# Import and include route modules
from .routes import grocery, plan

# Include API routers
app.include_router(grocery.router, prefix="/api", tags=["grocery"])
app.include_router(plan.router, prefix="/api", tags=["planning"])


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 5000))
    uvicorn.run(
        "smartplates.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=get_settings().debug,
        log_level="debug" if get_settings().debug else "info",
    )
