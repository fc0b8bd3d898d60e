"""Schemas for the nutrition ledger: food entries, day records and derived metrics."""

import math
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MealSlot(str, Enum):
    """Meal slot a food entry is logged under."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACKS = "snacks"


def clamp_non_negative(value: Any) -> float:
    """Coerce a nutrient value to a finite float >= 0; anything unusable becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return max(0.0, number)


class FoodEntry(BaseModel):
    """A food as added to a meal slot; values are per serving as added."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, examples=["Chicken Breast"])
    calories: float = Field(0.0, examples=[165])
    protein: float = Field(0.0, examples=[31])
    carbs: float = Field(0.0, examples=[0])
    fat: float = Field(0.0, examples=[3.6])
    per: str = Field("serving", examples=["100g"], description="Serving label the values refer to")

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def _clamp(cls, value):
        return clamp_non_negative(value)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip() or "Unnamed food"


def _empty_meals() -> Dict[MealSlot, List[FoodEntry]]:
    return {slot: [] for slot in MealSlot}


class DayRecord(BaseModel):
    """All food and water logged for one calendar day."""

    meals: Dict[MealSlot, List[FoodEntry]] = Field(default_factory=_empty_meals)
    water: int = 0

    @field_validator("water", mode="before")
    @classmethod
    def _clamp_water(cls, value):
        return int(clamp_non_negative(value))

    @model_validator(mode="after")
    def _fill_slots(self):
        for slot in MealSlot:
            self.meals.setdefault(slot, [])
        return self

    def entries(self) -> List[FoodEntry]:
        """Every entry of the day, slot by slot in meal order."""
        return [entry for slot in MealSlot for entry in self.meals[slot]]


class DailyGoals(BaseModel):
    """Daily nutrition targets used for percentages and insights."""

    calories: float = 2200
    protein: float = 150
    carbs: float = 275
    fat: float = 73
    water: int = 3000


class MacroTotals(BaseModel):
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class MacroPercentages(BaseModel):
    """Share of total calories contributed by each macro, in whole percent."""

    carbs_pct: int = 0
    protein_pct: int = 0
    fat_pct: int = 0


class InsightKind(str, Enum):
    POSITIVE = "positive"
    WARNING = "warning"


class Insight(BaseModel):
    icon: str
    title: str
    description: str
    kind: InsightKind = InsightKind.POSITIVE


class DayProgress(BaseModel):
    """Progress toward calorie and water goals, both capped at 100%."""

    calorie_pct: float
    water_pct: float
    water_litres: float
    water_goal_litres: float


class DayTotals(BaseModel):
    date: str
    totals: MacroTotals
    water: int
    entry_count: int


class RangeSummary(BaseModel):
    start: str
    end: str
    days: List[DayTotals]
    totals: MacroTotals
    averages: MacroTotals
    average_water: float


class MealSuggestion(BaseModel):
    name: str
    description: str
    calories: float
    protein: float
    carbs: float
    fat: float
    image: str = ""


class AddFoodRequest(BaseModel):
    """Payload for logging a food under a meal slot."""

    meal_slot: MealSlot = Field(..., examples=["breakfast"])
    food: FoodEntry


class AddWaterRequest(BaseModel):
    """Payload for logging water; out-of-range amounts are ignored."""

    amount_ml: int = Field(..., examples=[250], description="Milliliters to add (1-2000)")


class AddSuggestionRequest(BaseModel):
    name: str = Field(..., examples=["Protein Smoothie"])


class DayResponse(BaseModel):
    """A day record with every metric derived from it."""

    date: str
    record: DayRecord
    totals: MacroTotals
    percentages: MacroPercentages
    meal_calories: Dict[MealSlot, float]
    progress: DayProgress
    goals: DailyGoals
