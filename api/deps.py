"""Dependency helpers exposing the application's service instances to routes.

Services are created once in the app lifespan and kept on `app.state`; these
functions hand them to FastAPI endpoints through `Depends`.
"""

from datetime import date

from fastapi import Request

from core.exceptions import ValidationError
from services.notifications import NotificationCenter
from services.nutrition_ledger import NutritionLedger
from services.store import KeyValueStore
from services.tour_engine import SelectorSetPresenter, TourEngine


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_ledger(request: Request) -> NutritionLedger:
    return request.app.state.ledger


def get_tour_engine(request: Request) -> TourEngine:
    return request.app.state.tour_engine


def get_presenter(request: Request) -> SelectorSetPresenter:
    return request.app.state.presenter


def get_notifier(request: Request) -> NotificationCenter:
    return request.app.state.notifier


def parse_date_key(date_key: str) -> str:
    """Validate an ISO `YYYY-MM-DD` path parameter and return it normalized.

    Raises:
        ValidationError: If the value is not an ISO date.
    """
    try:
        return date.fromisoformat(date_key.strip()).isoformat()
    except ValueError:
        raise ValidationError(f"Invalid date '{date_key}', expected YYYY-MM-DD", field="date_key")
