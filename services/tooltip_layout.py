"""Tooltip placement relative to a highlighted element.

`top`/`bottom` centre the tooltip horizontally on the element, `left`/`right`
centre it vertically; unknown positions behave like `bottom`. The result is
clamped so the tooltip keeps `margin` pixels from every viewport edge.
"""

from typing import Dict

from schemas.tour_schema import Rect, Size


def compute_tooltip_position(
    element: Rect,
    tooltip: Size,
    viewport: Size,
    position: str = "bottom",
    margin: float = 20,
) -> Dict[str, float]:
    """Return ``{"top", "left"}`` for the tooltip in viewport coordinates."""
    position = getattr(position, "value", position)
    centred_left = element.left + (element.width - tooltip.width) / 2
    centred_top = element.top + (element.height - tooltip.height) / 2

    if position == "top":
        top, left = element.top - tooltip.height - margin, centred_left
    elif position == "left":
        top, left = centred_top, element.left - tooltip.width - margin
    elif position == "right":
        top, left = centred_top, element.right + margin
    else:
        top, left = element.bottom + margin, centred_left

    # Lower bound wins when the tooltip is larger than the viewport.
    top = max(margin, min(top, viewport.height - tooltip.height - margin))
    left = max(margin, min(left, viewport.width - tooltip.width - margin))
    return {"top": top, "left": left}
