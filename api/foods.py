"""Food search router.

Search is local catalog first, then the remote food database; remote
failures degrade to catalog-only results rather than an error. A newer
search from the same client (the `session` parameter, else the client
address) supersedes the remote phase of an older one.
"""

from fastapi import APIRouter, Depends, Query, Request
from typing import List, Optional

from api.deps import get_ledger
from core.logger import get_logger
from schemas.nutrition_schema import FoodEntry
from services.nutrition_ledger import NutritionLedger

logger = get_logger("api.foods")
router = APIRouter(prefix="/api/foods", tags=["foods"])


@router.get("/search", response_model=List[FoodEntry])
async def search_foods(
    request: Request,
    q: str = Query("", description="Food name to search for"),
    session: Optional[str] = Query(None, description="Client session id used to discard stale searches"),
    ledger: NutritionLedger = Depends(get_ledger),
):
    """Return catalog matches followed by remote matches, de-duplicated by name."""
    client_key = session or (request.client.host if request.client else None)
    results = await ledger.search_food(q, client_key=client_key)
    logger.info("Food search %r returned %s results", q, len(results))
    return results
