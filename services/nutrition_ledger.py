"""Nutrition ledger service.

Owns the day-keyed record of meals and water intake, and derives totals,
macro percentages, goal progress and rule-based insights from it.

Totals are never stored: every metric is recomputed from the logged
entries. The whole ledger is persisted under a single store key after every
mutation; a missing or corrupt ledger is loaded as empty.

Every access to the in-memory days holds one re-entrant lock. A mutation
the store refuses is rolled back in memory and reported as not applied.
"""

import math
import threading
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from core.exceptions import StorageError
from core.logger import get_logger
from data.meal_suggestions import MEAL_SUGGESTIONS
from schemas.nutrition_schema import (
    DailyGoals,
    DayProgress,
    DayRecord,
    DayTotals,
    FoodEntry,
    Insight,
    InsightKind,
    MacroPercentages,
    MacroTotals,
    MealSlot,
    MealSuggestion,
    RangeSummary,
)
from services.food_search import FoodSearchService, escape_display
from services.store import KeyValueStore

logger = get_logger("services.nutrition_ledger")

LEDGER_KEY = "nutrition_data"

KCAL_PER_GRAM = {"carbs": 4, "protein": 4, "fat": 9}

DateKey = Union[str, date, None]

__all__ = ["NutritionLedger", "InsightRules", "LEDGER_KEY", "escape_display", "round_half_up"]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (22.5 -> 23)."""
    return int(math.floor(value + 0.5))


def _pct(part: float, whole: float, cap: Optional[float] = None) -> float:
    if not whole or whole <= 0:
        return 0.0
    value = part / whole * 100
    return min(cap, value) if cap is not None else value


@dataclass(frozen=True)
class InsightRules:
    """Goal fractions at which insights fire."""

    protein_good_ratio: float = 0.9
    protein_low_ratio: float = 0.7
    hydration_good_ratio: float = 0.8


class NutritionLedger:
    """Per-day food and water log with derived nutrition metrics.

    Attributes:
        goals: Daily targets used for percentages and insights.
        rules: Insight thresholds.
        max_water_serving_ml: Largest single water amount accepted.
    """

    def __init__(
        self,
        store: KeyValueStore,
        goals: Optional[DailyGoals] = None,
        food_search: Optional[FoodSearchService] = None,
        rules: Optional[InsightRules] = None,
        max_water_serving_ml: int = 2000,
    ):
        self._store = store
        self.goals = goals or DailyGoals()
        self.rules = rules or InsightRules()
        self.max_water_serving_ml = max_water_serving_ml
        self._food_search = food_search
        self._lock = threading.RLock()
        self._days: Dict[str, DayRecord] = self._load()

    # -- persistence -----------------------------------------------------

    def _load(self) -> Dict[str, DayRecord]:
        raw = self._store.get(LEDGER_KEY, {})
        if not isinstance(raw, dict):
            logger.warning("Stored ledger is not a mapping (%s); starting empty", type(raw).__name__)
            return {}
        days = {}
        for key, payload in raw.items():
            try:
                days[key] = DayRecord.model_validate(payload)
            except SchemaValidationError as exc:
                logger.warning("Dropping unreadable day %r from stored ledger: %s", key, exc.error_count())
        logger.info("Loaded nutrition ledger with %s days", len(days))
        return days

    def _persist(self) -> None:
        with self._lock:
            payload = {key: record.model_dump(mode="json") for key, record in self._days.items()}
        self._store.set(LEDGER_KEY, payload)

    def _try_persist(self, key: str, created: bool) -> bool:
        """Persist the ledger; on a store failure forget a day created by this mutation.

        The caller undoes its own change to the day's record when this returns False.
        """
        try:
            self._persist()
        except StorageError:
            logger.error("Ledger not persisted; rolling back change to %s", key)
            if created:
                self._days.pop(key, None)
            return False
        return True

    @staticmethod
    def resolve_key(date_key: DateKey = None) -> str:
        """Return the ledger key for a date, defaulting to today."""
        if date_key is None:
            return date.today().isoformat()
        if isinstance(date_key, date):
            return date_key.isoformat()
        return str(date_key)

    def _peek(self, date_key: DateKey) -> DayRecord:
        """Existing record for `date_key`, or a detached empty one; never registers a day."""
        with self._lock:
            record = self._days.get(self.resolve_key(date_key))
            return record.model_copy(deep=True) if record is not None else DayRecord()

    # -- operations ------------------------------------------------------

    def get_or_create_day(self, date_key: DateKey = None) -> DayRecord:
        """Return the record for `date_key`, creating an empty one in memory if needed."""
        key = self.resolve_key(date_key)
        with self._lock:
            record = self._days.get(key)
            if record is None:
                record = DayRecord()
                self._days[key] = record
            return record

    def get_day(self, date_key: DateKey = None) -> DayRecord:
        """Read-only view of a day: a copy of its record, or an empty one. Never registers the day."""
        return self._peek(date_key)

    def add_food(self, date_key: DateKey, meal_slot: Union[MealSlot, str], entry: Union[FoodEntry, Dict[str, Any]]) -> bool:
        """Append `entry` to a meal slot and persist; invalid input is ignored.

        Returns:
            True if the entry was stored.
        """
        try:
            slot = MealSlot(meal_slot)
        except ValueError:
            logger.warning("Ignoring food for unknown meal slot %r", meal_slot)
            return False
        try:
            food = entry if isinstance(entry, FoodEntry) else FoodEntry.model_validate(entry)
        except SchemaValidationError:
            logger.warning("Ignoring malformed food entry for %s: %r", slot.value, entry)
            return False

        key = self.resolve_key(date_key)
        with self._lock:
            created = key not in self._days
            meals = self.get_or_create_day(key).meals[slot]
            meals.append(food)
            if not self._try_persist(key, created):
                meals.pop()
                return False
        logger.info("Added %s (%s kcal) to %s", food.name, food.calories, slot.value)
        return True

    def add_water(self, date_key: DateKey, amount_ml: Any) -> bool:
        """Add water to a day; amounts below 1 ml or above the serving ceiling are ignored.

        Accepted amounts are rounded to whole millilitres.
        """
        if isinstance(amount_ml, bool) or not isinstance(amount_ml, (int, float)):
            logger.warning("Ignoring non-numeric water amount %r", amount_ml)
            return False
        if not (1 <= amount_ml <= self.max_water_serving_ml):
            logger.warning("Ignoring water amount %s outside [1, %s]", amount_ml, self.max_water_serving_ml)
            return False

        amount = round_half_up(amount_ml)
        key = self.resolve_key(date_key)
        with self._lock:
            created = key not in self._days
            record = self.get_or_create_day(key)
            record.water += amount
            if not self._try_persist(key, created):
                record.water -= amount
                return False
        return True

    def compute_totals(self, date_key: DateKey = None) -> MacroTotals:
        """Sum every entry of the day across all meal slots."""
        totals = MacroTotals()
        for food in self._peek(date_key).entries():
            totals.calories += food.calories
            totals.protein += food.protein
            totals.carbs += food.carbs
            totals.fat += food.fat
        return totals

    @staticmethod
    def compute_macro_percentages(totals: MacroTotals, goals: Optional[DailyGoals] = None) -> MacroPercentages:
        """Percent of calories from each macro (4/4/9 kcal per gram); 0 when no calories.

        `goals` does not affect the split and is accepted for call-site symmetry
        with the other goal-relative metrics.
        """
        if totals.calories <= 0:
            return MacroPercentages()
        return MacroPercentages(
            carbs_pct=round_half_up(totals.carbs * KCAL_PER_GRAM["carbs"] / totals.calories * 100),
            protein_pct=round_half_up(totals.protein * KCAL_PER_GRAM["protein"] / totals.calories * 100),
            fat_pct=round_half_up(totals.fat * KCAL_PER_GRAM["fat"] / totals.calories * 100),
        )

    def compute_insights(self, date_key: DateKey = None) -> List[Insight]:
        """Threshold insights: protein rule first, hydration second."""
        totals = self.compute_totals(date_key)
        water = self._peek(date_key).water
        insights = []

        if totals.protein >= self.goals.protein * self.rules.protein_good_ratio:
            insights.append(Insight(
                icon="✅",
                title="Great protein intake!",
                description="You're meeting your daily protein goals consistently.",
                kind=InsightKind.POSITIVE,
            ))
        elif totals.protein < self.goals.protein * self.rules.protein_low_ratio:
            insights.append(Insight(
                icon="⚠️",
                title="Low protein intake",
                description="Consider adding more lean meats, eggs, or protein powder.",
                kind=InsightKind.WARNING,
            ))

        if water >= self.goals.water * self.rules.hydration_good_ratio:
            insights.append(Insight(
                icon="\U0001f4a7",
                title="Excellent hydration!",
                description="You're staying well hydrated throughout the day.",
                kind=InsightKind.POSITIVE,
            ))
        return insights

    async def search_food(self, query: str, client_key=None) -> List[FoodEntry]:
        """Catalog matches followed by remote matches; remote failures are swallowed."""
        if self._food_search is None:
            logger.warning("Food search requested but no search service is configured")
            return []
        return await self._food_search.search(query, client_key=client_key)

    # -- derived views ---------------------------------------------------

    def compute_meal_calories(self, date_key: DateKey = None) -> Dict[MealSlot, float]:
        record = self._peek(date_key)
        return {slot: sum(food.calories for food in record.meals[slot]) for slot in MealSlot}

    def compute_progress(self, date_key: DateKey = None) -> DayProgress:
        """Calorie and water progress toward the goals, capped at 100%."""
        totals = self.compute_totals(date_key)
        water = self._peek(date_key).water
        return DayProgress(
            calorie_pct=_pct(totals.calories, self.goals.calories, cap=100),
            water_pct=_pct(water, self.goals.water, cap=100),
            water_litres=round(water / 1000, 1),
            water_goal_litres=self.goals.water / 1000,
        )

    def summarize_range(self, start: DateKey, end: DateKey) -> RangeSummary:
        """Per-day totals, grand totals and per-logged-day averages for an inclusive range.

        Only days with logged food or water are counted; ISO date keys compare
        correctly as strings.
        """
        start_key, end_key = self.resolve_key(start), self.resolve_key(end)
        days = []
        grand = MacroTotals()
        water = 0
        with self._lock:
            in_range = [
                (key, record.model_copy(deep=True))
                for key, record in sorted(self._days.items())
                if start_key <= key <= end_key
            ]
        for key, record in in_range:
            if not record.water and not record.entries():
                continue
            totals = self.compute_totals(key)
            days.append(DayTotals(date=key, totals=totals, water=record.water, entry_count=len(record.entries())))
            grand.calories += totals.calories
            grand.protein += totals.protein
            grand.carbs += totals.carbs
            grand.fat += totals.fat
            water += record.water

        count = len(days)
        averages = MacroTotals()
        if count:
            averages = MacroTotals(
                calories=round(grand.calories / count, 1),
                protein=round(grand.protein / count, 1),
                carbs=round(grand.carbs / count, 1),
                fat=round(grand.fat / count, 1),
            )
        return RangeSummary(
            start=start_key,
            end=end_key,
            days=days,
            totals=grand,
            averages=averages,
            average_water=round(water / count, 1) if count else 0.0,
        )

    @staticmethod
    def meal_suggestions() -> List[MealSuggestion]:
        return [MealSuggestion(**item) for item in MEAL_SUGGESTIONS]

    def add_suggestion(self, date_key: DateKey, name: str) -> bool:
        """Log a known meal suggestion to lunch; unknown names are ignored."""
        for suggestion in self.meal_suggestions():
            if suggestion.name.casefold() == (name or "").strip().casefold():
                entry = FoodEntry(
                    name=suggestion.name,
                    calories=suggestion.calories,
                    protein=suggestion.protein,
                    carbs=suggestion.carbs,
                    fat=suggestion.fat,
                )
                return self.add_food(date_key, MealSlot.LUNCH, entry)
        logger.warning("Unknown meal suggestion %r", name)
        return False

    def reset(self) -> None:
        """Drop every logged day and remove the persisted ledger."""
        with self._lock:
            self._days = {}
            self._store.remove(LEDGER_KEY)
        logger.info("Nutrition ledger reset")

    def day_keys(self) -> List[str]:
        with self._lock:
            return sorted(self._days)
