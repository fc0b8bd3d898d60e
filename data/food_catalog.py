"""Static food catalog used for the local phase of food search.

The catalog ships as `data/fixtures/foods.csv` (nutrients per 100 g / 100 ml)
and is parsed once with pandas. Rows with no name are skipped and nutrient
cells that are blank or non-numeric count as 0.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List
import logging
import math
import os

import pandas as pd

from core.exceptions import ConfigurationError
from schemas.nutrition_schema import FoodEntry

logger = logging.getLogger("data.food_catalog")

NUTRIENT_COLUMNS = ("calories", "protein", "carbs", "fat")


def _cell_number(val) -> float:
    """Return a float for a CSV cell, 0.0 for blanks, NaN and junk."""
    if val is None:
        return 0.0
    try:
        number = float(val)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


def parse_foods_csv(csv_path: str) -> List[FoodEntry]:
    """Parse the catalog CSV into `FoodEntry` objects, in file order.

    Args:
        csv_path: Path to the foods CSV file.

    Returns:
        List of catalog entries.

    Raises:
        ConfigurationError: If the file does not exist.
    """
    if not os.path.exists(csv_path):
        raise ConfigurationError(f"Food catalog not found: {csv_path}", config_key="food_catalog_path")

    logger.info("Parsing food catalog CSV: %s", csv_path)
    df = pd.read_csv(csv_path, encoding="utf-8")
    df = df.rename(columns=lambda s: s.strip().lower())

    foods = []
    for _, row in df.iterrows():
        name = row.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        per = row.get("per")
        foods.append(FoodEntry(
            name=name.strip(),
            per=per.strip() if isinstance(per, str) and per.strip() else "100g",
            **{col: _cell_number(row.get(col)) for col in NUTRIENT_COLUMNS},
        ))

    logger.info("Parsed %s foods from catalog", len(foods))
    return foods


@lru_cache(maxsize=8)
def load_food_catalog(csv_path: str) -> tuple:
    """Parse `csv_path` once and cache the result as an immutable tuple."""
    return tuple(parse_foods_csv(csv_path))
