"""Test error handling functionality.

Verifies that custom exceptions are raised where requests are invalid or
the store cannot persist, and that they render as the standard error body.
"""
import pytest
from sqlalchemy.orm import sessionmaker

from api.deps import parse_date_key
from api.tours import get_tour
from core.exceptions import ConfigurationError, NotFoundError, StorageError, ValidationError
from database import build_engine
from services.nutrition_ledger import NutritionLedger
from services.store import MemoryKeyValueStore, SqlKeyValueStore
from services.tour_engine import TourEngine


@pytest.fixture
def tableless_store(tmp_path):
    """SQL store pointing at a database whose table was never created."""
    factory = sessionmaker(bind=build_engine(f"sqlite:///{tmp_path / 'empty.db'}"))
    return SqlKeyValueStore(factory)


def test_unknown_tour_raises_404():
    """Test that requesting a page without a tour raises NotFoundError."""
    with pytest.raises(NotFoundError) as exc_info:
        get_tour(page="settings", engine=TourEngine(MemoryKeyValueStore()))
    assert "Tour" in str(exc_info.value.message)
    assert exc_info.value.status_code == 404


def test_invalid_date_key_raises_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        parse_date_key("2024-13-45")
    assert "YYYY-MM-DD" in exc_info.value.message
    assert exc_info.value.status_code == 400
    assert exc_info.value.details == {"field": "date_key"}

    assert parse_date_key(" 2024-02-29 ") == "2024-02-29"


def test_store_write_failure_raises_storage_error(tableless_store):
    with pytest.raises(StorageError) as exc_info:
        tableless_store.set("nutrition_data", {})
    assert exc_info.value.status_code == 500
    assert exc_info.value.details == {"key": "nutrition_data"}


def test_store_read_failure_fails_open(tableless_store):
    assert tableless_store.get("nutrition_data", {}) == {}
    assert tableless_store.ping() is False
    assert NutritionLedger(tableless_store).day_keys() == []


def test_exception_classes_have_proper_attributes():
    """Test that custom exception classes have expected attributes."""
    exc = NotFoundError("Tour", "settings")
    assert exc.status_code == 404
    assert exc.message == "Tour 'settings' not found"
    assert exc.details == {"resource": "Tour", "id": "settings"}

    exc = ValidationError("Invalid input", field="amount_ml")
    assert exc.status_code == 400
    assert exc.details == {"field": "amount_ml"}

    exc = ConfigurationError("Food catalog not found", config_key="food_catalog_path")
    assert exc.status_code == 500
    assert exc.details == {"config_key": "food_catalog_path"}


def test_error_envelope_over_http(client):
    resp = client.get("/api/nutrition/days/not-a-date")
    assert resp.status_code == 400
    body = resp.json()["error"]
    assert body["status_code"] == 400
    assert body["details"] == {"field": "date_key"}

    resp = client.post("/api/nutrition/days/2024-03-01/water", json={"amount_ml": "lots"})
    assert resp.status_code == 422
    assert resp.json()["error"]["details"]["validation_errors"][0]["field"] == "body.amount_ml"
