# cosynq/main.py
"""
Cosynq booking API application.

Run with:
    uvicorn cosynq.main:app --reload
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_V1_PREFIX, API_VERSION
from .database import init_db
from .errors import register_error_handlers
from .routes import bookings as bookings_v1
from .routes import health as health_routes
from .routes import spaces as spaces_v1

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"Starting {API_TITLE} v{API_VERSION} ({settings.environment})")
    init_db()
    yield
    logger.info(f"Shutting down {API_TITLE}")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    register_error_handlers(app)

    # Create API v1 router
    api_v1 = APIRouter(prefix=API_V1_PREFIX)
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(spaces_v1.router, prefix="/spaces")
    api_v1.include_router(health_routes.router)

    app.include_router(api_v1)
    app.include_router(health_routes.router)
    return app


app = create_app()
