"""Nutrition API router.

Exposes the nutrition ledger: day records with their derived metrics, food
and water logging, insights, range summaries and meal suggestions.
Out-of-range water amounts and other rejected inputs are not errors: the
unchanged day is returned.
"""

from fastapi import APIRouter, Depends
from typing import List, Optional

from api.deps import get_ledger, get_notifier, parse_date_key
from core.logger import get_logger
from schemas.nutrition_schema import (
    AddFoodRequest,
    AddSuggestionRequest,
    AddWaterRequest,
    DayResponse,
    Insight,
    MealSuggestion,
    RangeSummary,
)
from services.notifications import NotificationCenter
from services.nutrition_ledger import NutritionLedger

logger = get_logger("api.nutrition")
router = APIRouter(prefix="/api/nutrition", tags=["nutrition"])


def build_day_response(ledger: NutritionLedger, date_key: str) -> DayResponse:
    """Assemble a day record together with every metric derived from it."""
    totals = ledger.compute_totals(date_key)
    return DayResponse(
        date=date_key,
        record=ledger.get_day(date_key),
        totals=totals,
        percentages=ledger.compute_macro_percentages(totals, ledger.goals),
        meal_calories=ledger.compute_meal_calories(date_key),
        progress=ledger.compute_progress(date_key),
        goals=ledger.goals,
    )


@router.get("/days/{date_key}", response_model=DayResponse)
def get_day(date_key: str, ledger: NutritionLedger = Depends(get_ledger)):
    """Return the day's record, totals, macro split, per-meal calories and progress."""
    return build_day_response(ledger, parse_date_key(date_key))


@router.post("/days/{date_key}/foods", response_model=DayResponse)
def add_food(
    date_key: str,
    payload: AddFoodRequest,
    ledger: NutritionLedger = Depends(get_ledger),
    notifier: NotificationCenter = Depends(get_notifier),
):
    """Log a food under a meal slot and return the updated day."""
    key = parse_date_key(date_key)
    if ledger.add_food(key, payload.meal_slot, payload.food):
        notifier.notify(f"Added {payload.food.name} to {payload.meal_slot.value}!", "success")
    return build_day_response(ledger, key)


@router.post("/days/{date_key}/water", response_model=DayResponse)
def add_water(date_key: str, payload: AddWaterRequest, ledger: NutritionLedger = Depends(get_ledger)):
    """Log water; amounts outside 1..ceiling leave the day unchanged."""
    key = parse_date_key(date_key)
    ledger.add_water(key, payload.amount_ml)
    return build_day_response(ledger, key)


@router.get("/days/{date_key}/insights", response_model=List[Insight])
def get_insights(date_key: str, ledger: NutritionLedger = Depends(get_ledger)):
    return ledger.compute_insights(parse_date_key(date_key))


@router.get("/summary", response_model=RangeSummary)
def get_summary(start: str, end: Optional[str] = None, ledger: NutritionLedger = Depends(get_ledger)):
    """Totals and per-day averages over an inclusive date range (end defaults to start)."""
    start_key = parse_date_key(start)
    end_key = parse_date_key(end) if end else start_key
    return ledger.summarize_range(start_key, end_key)


@router.get("/suggestions", response_model=List[MealSuggestion])
def list_suggestions(ledger: NutritionLedger = Depends(get_ledger)):
    return ledger.meal_suggestions()


@router.post("/days/{date_key}/suggestions", response_model=DayResponse)
def add_suggestion(
    date_key: str,
    payload: AddSuggestionRequest,
    ledger: NutritionLedger = Depends(get_ledger),
    notifier: NotificationCenter = Depends(get_notifier),
):
    """Log a suggested meal to lunch."""
    key = parse_date_key(date_key)
    if ledger.add_suggestion(key, payload.name):
        notifier.notify(f"Added {payload.name} to lunch!", "success")
    return build_day_response(ledger, key)


@router.delete("", status_code=204)
def reset_ledger(ledger: NutritionLedger = Depends(get_ledger)):
    """Erase the whole nutrition ledger."""
    ledger.reset()
    logger.info("Ledger reset via API")
