"""Onboarding tour engine.

Walks a fixed, page-scoped sequence of highlight steps, one tour at a time.
Finishing a tour, naturally or by skipping, sets the page's persisted
completion flag so the tour never auto-replays.

States: IDLE -> RUNNING(step_index) -> COMPLETED | SKIPPED -> IDLE. The
terminal outcome is kept in `last_outcome` after the run state is released.

Steps whose anchor element is not on the page are skipped with a warning.
Skipping is an explicit loop bounded by the number of remaining steps.

Transitions hold the engine's re-entrant `lock`; callers that pair a presenter
update with a transition hold it across both.
"""

import threading
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from core.logger import get_logger
from data.tour_definitions import TOUR_DEFINITIONS
from schemas.tour_schema import TourState, TourStatusResponse, TourStep
from services.notifications import NotificationCenter
from services.store import KeyValueStore

logger = get_logger("services.tour_engine")

DEFAULT_NEW_USER_PAGES = ("dashboard", "exercise", "nutrition", "analytics")

COMPLETION_MESSAGE = "Tour completed! You can restart it anytime from the help menu."

# Checked in order; the first fragment found in the path wins.
PAGE_PATH_FRAGMENTS = ("exercise", "nutrition", "analytics", "calendar", "run-tracker")


def completion_key(page: str) -> str:
    return f"tour_{page}_completed"


def page_for_path(path: str) -> str:
    """Map a URL path to the page whose tour applies; defaults to dashboard."""
    path = path or ""
    for fragment in PAGE_PATH_FRAGMENTS:
        if fragment in path:
            return fragment
    return "dashboard"


class TourPresenter:
    """Presentation collaborator; the base class treats every anchor as present."""

    def has_anchor(self, selector: str) -> bool:
        return True

    def present(self, step: TourStep, index: int, total: int) -> None:
        """Highlight the step's element and show its tooltip."""

    def clear(self) -> None:
        """Remove highlights, overlay and tooltip."""


class SelectorSetPresenter(TourPresenter):
    """Presenter driven by the selectors a client reports as present on its page.

    Keeps the step currently on screen so it can be sent back to the client.
    """

    def __init__(self, selectors: Optional[Iterable[str]] = None):
        self.available = set(selectors or ())
        self.current: Optional[TourStep] = None

    def update(self, selectors: Iterable[str]) -> None:
        self.available = set(selectors)

    def has_anchor(self, selector):
        return selector in self.available

    def present(self, step, index, total):
        self.current = step

    def clear(self):
        self.current = None


class TourEngine:
    """Runs one onboarding tour at a time and persists per-page completion.

    Attributes:
        state: IDLE or RUNNING.
        page: Page of the running tour, None when idle.
        step_index: Index of the step on screen while running.
        last_outcome: COMPLETED or SKIPPED once a tour has finished.
        lock: Re-entrant lock serialising transitions.
    """

    def __init__(
        self,
        store: KeyValueStore,
        presenter: Optional[TourPresenter] = None,
        notifier: Optional[NotificationCenter] = None,
        tours: Optional[Mapping[str, Sequence[Union[TourStep, dict]]]] = None,
        new_user_pages: Optional[Iterable[str]] = None,
    ):
        self._store = store
        self._presenter = presenter or TourPresenter()
        self._notifier = notifier
        self.new_user_pages = tuple(new_user_pages or DEFAULT_NEW_USER_PAGES)
        self.lock = threading.RLock()
        self._tours: Dict[str, List[TourStep]] = {}
        for page, steps in (TOUR_DEFINITIONS if tours is None else tours).items():
            self.register_tour(page, steps)

        self.state = TourState.IDLE
        self.page: Optional[str] = None
        self.step_index = 0
        self.steps: List[TourStep] = []
        self.last_outcome: Optional[TourState] = None

    # -- registry and flags ------------------------------------------------

    def register_tour(self, page: str, steps: Sequence[Union[TourStep, dict]]) -> None:
        self._tours[page] = [s if isinstance(s, TourStep) else TourStep.model_validate(s) for s in steps]

    def steps_for(self, page: str) -> Optional[List[TourStep]]:
        steps = self._tours.get(page)
        return list(steps) if steps else None

    def is_completed(self, page: str) -> bool:
        return self._store.get(completion_key(page)) in (True, "true")

    def is_new_user(self, pages: Optional[Iterable[str]] = None) -> bool:
        """True when none of `pages` has a completed tour."""
        return not any(self.is_completed(page) for page in (pages or self.new_user_pages))

    def reset_tour(self, page: str) -> None:
        """Clear a page's completion flag so its tour can run again."""
        with self.lock:
            self._store.remove(completion_key(page))
            logger.info("Tour completion flag cleared for %s", page)

    # -- transitions ---------------------------------------------------------

    @property
    def current_step(self) -> Optional[TourStep]:
        if self.state is not TourState.RUNNING:
            return None
        return self.steps[self.step_index]

    def start(self, page: str = "dashboard") -> bool:
        """Start `page`'s tour unless it was completed, is unknown, or another tour runs.

        Returns:
            True if a tour was started.
        """
        with self.lock:
            if self.is_completed(page):
                logger.debug("Tour for %s already completed", page)
                return False
            if self.state is TourState.RUNNING:
                logger.warning("Tour for %s already running; ignoring start(%s)", self.page, page)
                return False
            steps = self.steps_for(page)
            if not steps:
                logger.warning("No tour defined for page: %s", page)
                return False

            self.page = page
            self.steps = steps
            self.step_index = 0
            self.state = TourState.RUNNING
            logger.info("Tour started for %s (%s steps)", page, len(steps))
            self._show_from(0)
            return True

    def next(self) -> None:
        """Advance one step; past the last step the tour completes."""
        with self.lock:
            if self.state is not TourState.RUNNING:
                return
            self._show_from(self.step_index + 1)

    def previous(self) -> None:
        """Go back to the nearest earlier step whose anchor is present; no-op at the first step."""
        with self.lock:
            if self.state is not TourState.RUNNING or self.step_index == 0:
                return
            for index in range(self.step_index - 1, -1, -1):
                step = self.steps[index]
                if self._presenter.has_anchor(step.target_selector):
                    self.step_index = index
                    self._presenter.present(step, index, len(self.steps))
                    return
                logger.warning("Element not found: %s", step.target_selector)

    def skip(self) -> None:
        with self.lock:
            if self.state is TourState.RUNNING:
                self._finish(TourState.SKIPPED)

    def complete(self) -> None:
        with self.lock:
            if self.state is TourState.RUNNING:
                self._finish(TourState.COMPLETED)

    def auto_start(self, path: str, pages: Optional[Iterable[str]] = None) -> bool:
        """Start the tour for `path`'s page, but only for users who finished no tour yet."""
        with self.lock:
            if not self.is_new_user(pages):
                return False
            return self.start(page_for_path(path))

    def status(self) -> TourStatusResponse:
        with self.lock:
            running = self.state is TourState.RUNNING
            return TourStatusResponse(
                state=self.state,
                page=self.page,
                step_index=self.step_index if running else 0,
                total_steps=len(self.steps),
                step=self.current_step,
                is_last=running and self.step_index == len(self.steps) - 1,
                last_outcome=self.last_outcome,
            )

    # -- internals -------------------------------------------------------------

    def _show_from(self, index: int) -> None:
        """Present the first step at or after `index` with an anchor, else complete."""
        for _ in range(max(len(self.steps) - index, 0)):
            step = self.steps[index]
            if self._presenter.has_anchor(step.target_selector):
                self.step_index = index
                self._presenter.present(step, index, len(self.steps))
                return
            logger.warning("Element not found: %s", step.target_selector)
            index += 1
        self._finish(TourState.COMPLETED)

    def _finish(self, outcome: TourState) -> None:
        page = self.page
        self._store.set(completion_key(page), True)
        self._presenter.clear()

        self.state = TourState.IDLE
        self.page = None
        self.steps = []
        self.step_index = 0
        self.last_outcome = outcome
        logger.info("Tour for %s %s", page, outcome.value)

        if self._notifier is not None:
            self._notifier.notify(COMPLETION_MESSAGE, "success")
