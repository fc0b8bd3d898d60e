"""Pydantic schema package for domain types and request/response models."""

from .nutrition_schema import (
    MealSlot,
    FoodEntry,
    DayRecord,
    DailyGoals,
    MacroTotals,
    MacroPercentages,
    Insight,
    InsightKind,
)
from .tour_schema import TourStep, TourState, TooltipPosition

__all__ = [
    "MealSlot",
    "FoodEntry",
    "DayRecord",
    "DailyGoals",
    "MacroTotals",
    "MacroPercentages",
    "Insight",
    "InsightKind",
    "TourStep",
    "TourState",
    "TooltipPosition",
]
