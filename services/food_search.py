"""Two-phase food search: static catalog first, then Open Food Facts.

The local phase is a case-insensitive substring match against the static
catalog and always succeeds. The remote phase queries the Open Food Facts
search endpoint; any failure there (transport error, timeout, non-2xx
status, undecodable body) is logged and the local results are returned
alone.

Result policy:
- results are local-then-remote, de-duplicated by case-insensitive name with
  the first occurrence kept;
- every search takes a sequence number per caller (`client_key`), and a search
  whose remote phase resolves after a newer search by the same caller has
  started drops its remote results as stale. Searches by different callers
  never invalidate each other.
"""

import html
from typing import Any, Dict, Hashable, List, Optional, Sequence

import httpx

from core.logger import get_logger
from schemas.nutrition_schema import FoodEntry, clamp_non_negative

logger = get_logger("services.food_search")

UNKNOWN_FOOD = "Unknown Food"


class RemoteLookupError(Exception):
    """Raised internally when the remote catalog answers with something unusable."""


def escape_display(text: str) -> str:
    """Escape ``< > " ' &`` so a name can be embedded in markup."""
    if not isinstance(text, str):
        return text
    return html.escape(text, quote=True)


def product_to_entry(product: Dict[str, Any]) -> Optional[FoodEntry]:
    """Map an Open Food Facts product to a per-100g `FoodEntry`.

    Missing nutrient fields default to 0. Products without a usable name or
    with no calories are dropped (None).
    """
    if not isinstance(product, dict):
        return None
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict):
        nutriments = {}
    name = product.get("product_name")
    name = name.strip() if isinstance(name, str) else ""
    if not name or name == UNKNOWN_FOOD:
        return None

    calories = round(clamp_non_negative(nutriments.get("energy-kcal_100g")))
    if calories <= 0:
        return None
    return FoodEntry(
        name=escape_display(name),
        calories=calories,
        protein=round(clamp_non_negative(nutriments.get("proteins_100g")), 1),
        carbs=round(clamp_non_negative(nutriments.get("carbohydrates_100g")), 1),
        fat=round(clamp_non_negative(nutriments.get("fat_100g")), 1),
        per="100g",
    )


def dedupe_by_name(foods: Sequence[FoodEntry]) -> List[FoodEntry]:
    seen = set()
    out = []
    for food in foods:
        key = food.name.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(food)
    return out


class FoodSearchService:
    """Searches the static catalog and, optionally, the remote food database.

    Attributes:
        catalog: Static catalog entries used for the local phase.
        api_url: Open Food Facts search endpoint.
        enabled: When False the remote phase is skipped entirely.
    """

    def __init__(
        self,
        catalog: Sequence[FoodEntry],
        api_url: str,
        page_size: int = 10,
        timeout: float = 10.0,
        enabled: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.catalog = list(catalog)
        self.api_url = api_url
        self.page_size = page_size
        self.timeout = timeout
        self.enabled = enabled
        self._transport = transport
        self._sequences: Dict[Optional[Hashable], int] = {}

    def search_local(self, query: str) -> List[FoodEntry]:
        """Case-insensitive substring match against the catalog, in catalog order."""
        needle = (query or "").strip().casefold()
        if not needle:
            return []
        return [food for food in self.catalog if needle in food.name.casefold()]

    async def search_remote(self, query: str) -> List[FoodEntry]:
        """Query the remote database; raises on any failure."""
        params = {"search_terms": query, "json": 1, "page_size": self.page_size}
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport, follow_redirects=True
        ) as client:
            resp = await client.get(self.api_url, params=params, headers={"Accept": "application/json"})
        if not resp.is_success:
            raise RemoteLookupError(f"Food API returned HTTP {resp.status_code}")
        data = resp.json()
        products = data.get("products") if isinstance(data, dict) else None
        if not isinstance(products, list):
            return []
        foods = []
        for product in products:
            entry = product_to_entry(product)
            if entry is not None:
                foods.append(entry)
        return foods

    async def search(self, query: str, client_key: Optional[Hashable] = None) -> List[FoodEntry]:
        """Return local matches followed by remote matches, de-duplicated by name.

        Args:
            query: Food name to look for.
            client_key: Identifies the caller whose earlier searches this one supersedes.
        """
        query = (query or "").strip()
        if not query:
            return []

        ticket = self._sequences.get(client_key, 0) + 1
        self._sequences[client_key] = ticket
        local = self.search_local(query)
        if not self.enabled:
            return local

        try:
            remote = await self.search_remote(query)
        except (httpx.HTTPError, RemoteLookupError, ValueError) as exc:
            logger.warning("Remote food search failed for %r: %s", query, exc)
            return local

        if ticket != self._sequences.get(client_key):
            logger.info("Discarding stale remote results for %r", query)
            return local

        logger.debug("Food search %r: %s local, %s remote", query, len(local), len(remote))
        return dedupe_by_name(local + remote)
