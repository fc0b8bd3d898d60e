"""Shared pytest fixtures: in-memory stores, ledgers, tour engines and an API client."""

import httpx
import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from main import create_app
from services.notifications import NotificationCenter
from services.nutrition_ledger import NutritionLedger
from services.store import MemoryKeyValueStore
from services.tour_engine import SelectorSetPresenter, TourEngine
from data.tour_definitions import TOUR_DEFINITIONS

DASHBOARD_SELECTORS = [step["target_selector"] for step in TOUR_DEFINITIONS["dashboard"]]


def failing_transport() -> httpx.MockTransport:
    """Transport whose every request fails at the connection level."""
    def handler(request):
        raise httpx.ConnectError("network down", request=request)
    return httpx.MockTransport(handler)


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def ledger(store):
    return NutritionLedger(store)


@pytest.fixture
def notifier():
    return NotificationCenter()


@pytest.fixture
def presenter():
    """Presenter where every dashboard anchor is on the page."""
    return SelectorSetPresenter(DASHBOARD_SELECTORS)


@pytest.fixture
def engine(store, presenter, notifier):
    return TourEngine(store, presenter=presenter, notifier=notifier)


@pytest.fixture
def client():
    """API client wired with an in-memory store and an unreachable food API."""
    app = create_app(settings=Settings(), store=MemoryKeyValueStore(), transport=failing_transport())
    with TestClient(app) as c:
        yield c
