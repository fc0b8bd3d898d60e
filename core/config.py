"""Application configuration loaded from environment variables.

All tunables of the nutrition ledger, food search and tour engine live here so
that goals and insight thresholds are treated as configuration rather than as
values baked into the services.
"""

import os
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class Settings(BaseSettings):
    """Application settings loaded from environment (prefix ``FITTRACK_``)."""

    model_config = SettingsConfigDict(env_prefix="FITTRACK_")

    # Database (read/write partition, same file by default)
    write_database_url: str = "sqlite:///fittrack.db"
    read_database_url: str = ""

    # Logging
    log_dir: str = os.path.join(BASE_DIR, "logs")
    log_level: str = "INFO"

    # Daily goals
    goal_calories: float = 2200
    goal_protein: float = 150
    goal_carbs: float = 275
    goal_fat: float = 73
    goal_water_ml: int = 3000

    # Insight thresholds, as fractions of the goal
    protein_good_ratio: float = 0.9
    protein_low_ratio: float = 0.7
    hydration_good_ratio: float = 0.8

    # Largest single water serving accepted
    max_water_serving_ml: int = 2000

    # Food search
    food_catalog_path: str = os.path.join(BASE_DIR, "data", "fixtures", "foods.csv")
    food_api_enabled: bool = True
    food_api_url: str = "https://world.openfoodfacts.org/cgi/search.pl"
    food_api_page_size: int = 10
    food_api_timeout: float = 10.0

    # Tours
    new_user_pages: List[str] = ["dashboard", "exercise", "nutrition", "analytics"]

    # CORS
    cors_origins: List[str] = ["*"]

    @property
    def effective_read_database_url(self) -> str:
        return self.read_database_url or self.write_database_url


@lru_cache
def get_settings() -> Settings:
    return Settings()
