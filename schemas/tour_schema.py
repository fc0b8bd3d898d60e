"""Schemas for onboarding tours and tooltip placement."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TooltipPosition(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


class TourStep(BaseModel):
    """One highlight step: which element to point at and what to say."""

    model_config = ConfigDict(frozen=True)

    target_selector: str
    title: str
    content: str
    preferred_position: TooltipPosition = TooltipPosition.BOTTOM


class TourState(str, Enum):
    """Engine state; COMPLETED and SKIPPED are only reported as the last outcome."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class TourStatusResponse(BaseModel):
    """Snapshot of the tour engine for the client."""

    state: TourState
    page: Optional[str] = None
    step_index: int = 0
    total_steps: int = 0
    step: Optional[TourStep] = None
    is_last: bool = False
    last_outcome: Optional[TourState] = None


class StartTourRequest(BaseModel):
    page: str = Field(..., examples=["dashboard"])
    available_selectors: List[str] = Field(
        default_factory=list,
        examples=[[".quick-stats", ".progress-section"]],
        description="Selectors of the elements present on the page",
    )


class AutoStartRequest(BaseModel):
    path: str = Field(..., examples=["/nutrition.html"])
    available_selectors: List[str] = Field(default_factory=list)


class TourNavigationRequest(BaseModel):
    """Optional refresh of the selectors present on the page before navigating."""

    available_selectors: Optional[List[str]] = None


class Rect(BaseModel):
    top: float
    left: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width


class Size(BaseModel):
    width: float
    height: float


class PlacementRequest(BaseModel):
    element: Rect
    tooltip: Size
    viewport: Size
    position: str = Field("bottom", examples=["top"])
    margin: float = 20


class PlacementResponse(BaseModel):
    top: float
    left: float
