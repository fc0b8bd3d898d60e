"""Tests for the nutrition ledger: totals, percentages, water, insights and persistence."""
import itertools
import math
from concurrent.futures import ThreadPoolExecutor

import pytest

from core.exceptions import StorageError
from schemas.nutrition_schema import DailyGoals, FoodEntry, InsightKind, MacroTotals, MealSlot
from services.nutrition_ledger import LEDGER_KEY, InsightRules, NutritionLedger
from services.store import MemoryKeyValueStore

DAY = "2024-03-01"

BREAKFAST = FoodEntry(name="Omelette", calories=300, protein=20, carbs=10, fat=5)
LUNCH = FoodEntry(name="Chicken Wrap", calories=500, protein=25, carbs=40, fat=20)


def test_scenario_totals_and_macro_split(ledger):
    """Two meals produce the expected totals and a 25/23/28 calorie split."""
    ledger.add_food(DAY, "breakfast", BREAKFAST)
    ledger.add_food(DAY, MealSlot.LUNCH, LUNCH)

    totals = ledger.compute_totals(DAY)
    assert totals == MacroTotals(calories=800, protein=45, carbs=50, fat=25)

    pct = ledger.compute_macro_percentages(totals, ledger.goals)
    assert pct.carbs_pct == 25
    assert pct.protein_pct == 23  # 22.5 rounds half up
    assert pct.fat_pct == 28


def test_totals_independent_of_order_and_slot():
    """Totals equal the field-wise sum of appended entries whatever the order or slot."""
    entries = [
        FoodEntry(name="A", calories=120, protein=3.5, carbs=20, fat=1),
        FoodEntry(name="B", calories=80, protein=10, carbs=0, fat=4.5),
        FoodEntry(name="C", calories=410, protein=22, carbs=35, fat=18),
    ]
    slots = list(MealSlot)
    expected = (610, 35.5, 55, 23.5)
    for order in itertools.permutations(entries):
        ledger = NutritionLedger(MemoryKeyValueStore())
        for i, entry in enumerate(order):
            ledger.add_food(DAY, slots[i % len(slots)], entry)
        t = ledger.compute_totals(DAY)
        assert (t.calories, t.protein, t.carbs, t.fat) == pytest.approx(expected)


def test_macro_percentages_zero_calories():
    pct = NutritionLedger.compute_macro_percentages(MacroTotals())
    assert (pct.carbs_pct, pct.protein_pct, pct.fat_pct) == (0, 0, 0)


def test_macro_percentages_never_nan():
    """Macros with zero calories (e.g. water-only foods) still give finite numbers."""
    pct = NutritionLedger.compute_macro_percentages(MacroTotals(calories=0, protein=10, carbs=5, fat=1))
    assert all(math.isfinite(v) for v in (pct.carbs_pct, pct.protein_pct, pct.fat_pct))


def test_negative_and_missing_values_are_clamped(ledger):
    ledger.add_food(DAY, "snacks", {"name": "Odd", "calories": -50, "protein": None, "carbs": "abc", "fat": 2})
    food = ledger.get_or_create_day(DAY).meals[MealSlot.SNACKS][0]
    assert (food.calories, food.protein, food.carbs, food.fat) == (0, 0, 0, 2)


def test_unknown_slot_and_malformed_entry_are_ignored(ledger, store):
    assert ledger.add_food(DAY, "brunch", BREAKFAST) is False
    assert ledger.add_food(DAY, "lunch", {"calories": 100}) is False
    assert ledger.compute_totals(DAY).calories == 0
    assert store.get(LEDGER_KEY) is None


def test_add_water_bounds(ledger):
    """Amounts <= 0 or above 2000 ml are rejected; valid amounts accumulate."""
    for bad in (0, -100, 2001, "500", None, True):
        assert ledger.add_water(DAY, bad) is False
    assert ledger.get_or_create_day(DAY).water == 0

    ledger.add_water(DAY, 500)
    ledger.add_water(DAY, 500)
    assert ledger.get_or_create_day(DAY).water == 1000

    assert ledger.add_water(DAY, 2000) is True
    assert ledger.get_or_create_day(DAY).water == 3000


def test_get_or_create_day_does_not_persist(ledger, store):
    record = ledger.get_or_create_day(DAY)
    assert record.water == 0
    assert all(record.meals[slot] == [] for slot in MealSlot)
    assert store.get(LEDGER_KEY) is None


def test_mutations_persist_and_reload(store):
    ledger = NutritionLedger(store)
    ledger.add_food(DAY, "dinner", LUNCH)
    ledger.add_water(DAY, 750)

    reloaded = NutritionLedger(store)
    assert reloaded.compute_totals(DAY).calories == 500
    assert reloaded.get_or_create_day(DAY).water == 750
    assert reloaded.get_or_create_day(DAY).meals[MealSlot.DINNER][0].name == "Chicken Wrap"


def test_corrupt_ledger_loads_empty():
    store = MemoryKeyValueStore({LEDGER_KEY: "<<corrupt>>"})
    ledger = NutritionLedger(store)
    assert ledger.day_keys() == []

    store = MemoryKeyValueStore()
    store.set(LEDGER_KEY, ["not", "a", "mapping"])
    assert NutritionLedger(store).day_keys() == []


def test_unreadable_day_is_dropped_others_kept():
    store = MemoryKeyValueStore()
    store.set(LEDGER_KEY, {
        "2024-01-01": {"meals": {"breakfast": [{"name": "Toast", "calories": 90}]}, "water": 200},
        "2024-01-02": {"meals": {"brunch": []}, "water": 0},
    })
    ledger = NutritionLedger(store)
    assert ledger.day_keys() == ["2024-01-01"]
    assert ledger.compute_totals("2024-01-01").calories == 90


def test_insights_thresholds():
    """Protein >= 90% is positive, < 70% a warning; water >= 80% is positive hydration."""
    goals = DailyGoals(protein=100, water=1000)

    ledger = NutritionLedger(MemoryKeyValueStore(), goals=goals)
    ledger.add_food(DAY, "lunch", FoodEntry(name="Steak", calories=600, protein=90))
    ledger.add_water(DAY, 800)
    insights = ledger.compute_insights(DAY)
    assert [i.title for i in insights] == ["Great protein intake!", "Excellent hydration!"]
    assert all(i.kind is InsightKind.POSITIVE for i in insights)

    ledger = NutritionLedger(MemoryKeyValueStore(), goals=goals)
    ledger.add_food(DAY, "lunch", FoodEntry(name="Salad", calories=200, protein=69))
    ledger.add_water(DAY, 799)
    insights = ledger.compute_insights(DAY)
    assert [i.title for i in insights] == ["Low protein intake"]
    assert insights[0].kind is InsightKind.WARNING

    ledger = NutritionLedger(MemoryKeyValueStore(), goals=goals)
    ledger.add_food(DAY, "lunch", FoodEntry(name="Rice", calories=300, protein=80))
    assert ledger.compute_insights(DAY) == []


def test_insight_rules_are_configurable():
    ledger = NutritionLedger(
        MemoryKeyValueStore(),
        goals=DailyGoals(protein=100, water=1000),
        rules=InsightRules(protein_good_ratio=0.5, protein_low_ratio=0.1, hydration_good_ratio=1.0),
    )
    ledger.add_food(DAY, "lunch", FoodEntry(name="Beans", calories=300, protein=55))
    ledger.add_water(DAY, 900)
    assert [i.title for i in ledger.compute_insights(DAY)] == ["Great protein intake!"]


def test_meal_calories_and_progress(ledger):
    ledger.add_food(DAY, "breakfast", BREAKFAST)
    ledger.add_food(DAY, "breakfast", FoodEntry(name="Coffee", calories=2))
    ledger.add_food(DAY, "snacks", FoodEntry(name="Bar", calories=200))
    ledger.add_water(DAY, 1500)

    meals = ledger.compute_meal_calories(DAY)
    assert meals[MealSlot.BREAKFAST] == 302
    assert meals[MealSlot.LUNCH] == 0
    assert meals[MealSlot.SNACKS] == 200

    progress = ledger.compute_progress(DAY)
    assert progress.calorie_pct == pytest.approx(502 / 2200 * 100)
    assert progress.water_pct == 50
    assert progress.water_litres == 1.5
    assert progress.water_goal_litres == 3.0


def test_progress_is_capped(ledger):
    for _ in range(3):
        ledger.add_food(DAY, "dinner", FoodEntry(name="Feast", calories=1000))
        ledger.add_water(DAY, 2000)
    progress = ledger.compute_progress(DAY)
    assert progress.calorie_pct == 100
    assert progress.water_pct == 100


def test_summarize_range(ledger):
    ledger.add_food("2024-03-01", "lunch", FoodEntry(name="A", calories=1000, protein=50))
    ledger.add_food("2024-03-03", "lunch", FoodEntry(name="B", calories=2000, protein=100))
    ledger.add_water("2024-03-03", 1000)
    ledger.add_food("2024-03-10", "lunch", FoodEntry(name="C", calories=5000))
    ledger.get_or_create_day("2024-03-02")

    summary = ledger.summarize_range("2024-03-01", "2024-03-07")
    assert [d.date for d in summary.days] == ["2024-03-01", "2024-03-03"]
    assert summary.totals.calories == 3000
    assert summary.averages.calories == 1500
    assert summary.averages.protein == 75
    assert summary.average_water == 500


def test_summarize_empty_range(ledger):
    summary = ledger.summarize_range("2020-01-01", "2020-01-31")
    assert summary.days == []
    assert summary.averages.calories == 0


def test_add_suggestion_goes_to_lunch(ledger):
    assert ledger.add_suggestion(DAY, "protein smoothie") is True
    lunch = ledger.get_or_create_day(DAY).meals[MealSlot.LUNCH]
    assert lunch[0].name == "Protein Smoothie"
    assert (lunch[0].calories, lunch[0].protein, lunch[0].carbs, lunch[0].fat) == (280, 25, 45, 15)

    assert ledger.add_suggestion(DAY, "Mystery Stew") is False
    assert len(ledger.meal_suggestions()) == 3


def test_reset_clears_ledger(ledger, store):
    ledger.add_food(DAY, "lunch", LUNCH)
    ledger.reset()
    assert ledger.day_keys() == []
    assert store.get(LEDGER_KEY) is None
    assert NutritionLedger(store).compute_totals(DAY).calories == 0


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose writes can be switched to fail like an unreachable database."""

    def __init__(self):
        super().__init__()
        self.failing = False

    def _write_raw(self, key, raw):
        if self.failing:
            raise StorageError("Failed to persist value", key=key)
        super()._write_raw(key, raw)


def test_concurrent_add_food_from_threads(store):
    """Many threads logging food at once all succeed and every day is persisted."""
    ledger = NutritionLedger(store)

    def log_days(worker):
        return [
            ledger.add_food(f"2024-{worker:02d}-{i:04d}", "lunch", FoodEntry(name="x", calories=1))
            for i in range(50)
        ]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(log_days, range(8)))

    assert all(all(r) for r in results)
    assert len(ledger.day_keys()) == 400
    assert len(NutritionLedger(store).day_keys()) == 400


def test_get_day_does_not_register(ledger, store):
    view = ledger.get_day("2024-05-05")
    view.water = 999
    assert ledger.day_keys() == []

    ledger.add_food(DAY, "lunch", LUNCH)
    assert list(store.get(LEDGER_KEY)) == [DAY]
    assert ledger.get_day(DAY).meals[MealSlot.LUNCH][0].name == "Chicken Wrap"


def test_failed_write_rolls_back():
    store = FlakyStore()
    ledger = NutritionLedger(store)
    ledger.add_water(DAY, 500)

    store.failing = True
    assert ledger.add_food(DAY, "lunch", LUNCH) is False
    assert ledger.add_water(DAY, 250) is False
    assert ledger.add_food("2024-03-02", "lunch", LUNCH) is False

    assert ledger.compute_totals(DAY).calories == 0
    assert ledger.get_day(DAY).water == 500
    assert ledger.day_keys() == [DAY]

    store.failing = False
    assert NutritionLedger(store).get_day(DAY).water == 500


def test_fractional_water_amounts(ledger):
    assert ledger.add_water(DAY, 0.4) is False
    assert ledger.add_water(DAY, 0.99) is False
    assert ledger.get_day(DAY).water == 0

    assert ledger.add_water(DAY, 1) is True
    assert ledger.add_water(DAY, 250.6) is True
    assert ledger.get_day(DAY).water == 252
