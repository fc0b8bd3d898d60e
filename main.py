"""Application entry point for the FitTrack nutrition and onboarding API.

Defines the FastAPI app factory, middleware, exception handlers and the API
routers. The `lifespan` handler creates the service instances once (store,
food search, nutrition ledger, tour engine, notification sink) and keeps
them on `app.state` for the routes.
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.deps import get_store
from api.foods import router as foods_router
from api.notifications import router as notifications_router
from api.nutrition import router as nutrition_router
from api.tours import router as tours_router
from core.config import Settings, get_settings
from core.error_handlers import register_exception_handlers
from core.exceptions import StorageError
from core.logger import get_logger
from data.food_catalog import load_food_catalog
from database import ReadSessionLocal, WriteSessionLocal, init_db
from schemas.nutrition_schema import DailyGoals
from services.food_search import FoodSearchService
from services.notifications import NotificationCenter
from services.nutrition_ledger import InsightRules, NutritionLedger
from services.store import KeyValueStore, SqlKeyValueStore
from services.tour_engine import SelectorSetPresenter, TourEngine

logger = get_logger("main")


def build_services(app: FastAPI, settings: Settings, store: KeyValueStore, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
    """Create the service instances and attach them to `app.state`."""
    food_search = FoodSearchService(
        catalog=load_food_catalog(settings.food_catalog_path),
        api_url=settings.food_api_url,
        page_size=settings.food_api_page_size,
        timeout=settings.food_api_timeout,
        enabled=settings.food_api_enabled,
        transport=transport,
    )
    goals = DailyGoals(
        calories=settings.goal_calories,
        protein=settings.goal_protein,
        carbs=settings.goal_carbs,
        fat=settings.goal_fat,
        water=settings.goal_water_ml,
    )
    rules = InsightRules(
        protein_good_ratio=settings.protein_good_ratio,
        protein_low_ratio=settings.protein_low_ratio,
        hydration_good_ratio=settings.hydration_good_ratio,
    )
    notifier = NotificationCenter()
    presenter = SelectorSetPresenter()

    app.state.store = store
    app.state.notifier = notifier
    app.state.presenter = presenter
    app.state.ledger = NutritionLedger(
        store,
        goals=goals,
        food_search=food_search,
        rules=rules,
        max_water_serving_ml=settings.max_water_serving_ml,
    )
    app.state.tour_engine = TourEngine(
        store, presenter=presenter, notifier=notifier, new_user_pages=settings.new_user_pages
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration; defaults to environment-derived settings.
        store: Persistence store; defaults to the SQL-backed store (tables are
            created on startup).
        transport: Optional httpx transport for the remote food lookup.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Fastapi lifespan context: wire services before serving requests."""
        kv_store = store
        if kv_store is None:
            init_db()
            kv_store = SqlKeyValueStore(WriteSessionLocal, ReadSessionLocal)
        build_services(app, settings, kv_store, transport)
        logger.info("Services ready")
        yield

    app = FastAPI(title="FitTrack API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log incoming requests and their responses."""
        logger.info("%s %s", request.method, request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request error: %s %s", request.method, request.url.path)
            raise
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    @app.get("/health")
    def health(kv_store: KeyValueStore = Depends(get_store)):
        """Return basic health status and store connectivity.

        Raises:
            StorageError: If the store cannot be reached.
        """
        if not kv_store.ping():
            raise StorageError("Store health check failed")
        return {"status": "healthy", "store": "connected"}

    app.include_router(nutrition_router)
    app.include_router(foods_router)
    app.include_router(tours_router)
    app.include_router(notifications_router)
    return app


app = create_app()


if __name__ == "__main__":
    # Allow starting the app via `python ./main.py`
    try:
        import uvicorn
    except ImportError as exc:
        raise RuntimeError("uvicorn is required to run the app. Install with `pip install uvicorn[standard]`.") from exc

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
