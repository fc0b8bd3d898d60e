"""Onboarding tour router.

The client reports which tour anchors exist on its page; the engine uses that
to skip missing steps and returns the step to highlight. Completion flags
persist across sessions.
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from api.deps import get_presenter, get_tour_engine
from core.exceptions import NotFoundError
from core.logger import get_logger
from schemas.tour_schema import (
    AutoStartRequest,
    PlacementRequest,
    PlacementResponse,
    StartTourRequest,
    TourNavigationRequest,
    TourStatusResponse,
    TourStep,
)
from services.tooltip_layout import compute_tooltip_position
from services.tour_engine import SelectorSetPresenter, TourEngine

logger = get_logger("api.tours")
router = APIRouter(prefix="/api/tours", tags=["tours"])


def _refresh(presenter: SelectorSetPresenter, payload: Optional[TourNavigationRequest]) -> None:
    if payload is not None and payload.available_selectors is not None:
        presenter.update(payload.available_selectors)


@router.get("/state", response_model=TourStatusResponse)
def get_state(engine: TourEngine = Depends(get_tour_engine)):
    return engine.status()


@router.get("/new-user")
def is_new_user(pages: Optional[List[str]] = Query(None), engine: TourEngine = Depends(get_tour_engine)):
    """Whether none of the given pages (default set when omitted) has a completed tour."""
    return {"new_user": engine.is_new_user(pages)}


@router.post("/start", response_model=TourStatusResponse)
def start_tour(
    payload: StartTourRequest,
    engine: TourEngine = Depends(get_tour_engine),
    presenter: SelectorSetPresenter = Depends(get_presenter),
):
    """Start a page's tour; completed or unknown pages leave the engine unchanged."""
    with engine.lock:
        presenter.update(payload.available_selectors)
        engine.start(payload.page)
        return engine.status()


@router.post("/auto-start", response_model=TourStatusResponse)
def auto_start_tour(
    payload: AutoStartRequest,
    engine: TourEngine = Depends(get_tour_engine),
    presenter: SelectorSetPresenter = Depends(get_presenter),
):
    """Start the tour for the page at `path`, for new users only."""
    with engine.lock:
        presenter.update(payload.available_selectors)
        engine.auto_start(payload.path)
        return engine.status()


@router.post("/next", response_model=TourStatusResponse)
def next_step(
    payload: Optional[TourNavigationRequest] = None,
    engine: TourEngine = Depends(get_tour_engine),
    presenter: SelectorSetPresenter = Depends(get_presenter),
):
    with engine.lock:
        _refresh(presenter, payload)
        engine.next()
        return engine.status()


@router.post("/previous", response_model=TourStatusResponse)
def previous_step(
    payload: Optional[TourNavigationRequest] = None,
    engine: TourEngine = Depends(get_tour_engine),
    presenter: SelectorSetPresenter = Depends(get_presenter),
):
    with engine.lock:
        _refresh(presenter, payload)
        engine.previous()
        return engine.status()


@router.post("/skip", response_model=TourStatusResponse)
def skip_tour(engine: TourEngine = Depends(get_tour_engine)):
    with engine.lock:
        engine.skip()
        return engine.status()


@router.post("/placement", response_model=PlacementResponse)
def tooltip_placement(payload: PlacementRequest):
    """Compute where to draw a step tooltip next to its element, clamped to the viewport."""
    return compute_tooltip_position(
        payload.element, payload.tooltip, payload.viewport, payload.position, payload.margin
    )


@router.get("/{page}", response_model=List[TourStep])
def get_tour(page: str, engine: TourEngine = Depends(get_tour_engine)):
    """Return the steps registered for a page.

    Raises:
        NotFoundError: If no tour is registered for the page.
    """
    steps = engine.steps_for(page)
    if not steps:
        raise NotFoundError("Tour", page)
    return steps


@router.delete("/{page}/completion", status_code=204)
def reset_tour(page: str, engine: TourEngine = Depends(get_tour_engine)):
    """Clear a page's completion flag so its tour can run again."""
    engine.reset_tour(page)
