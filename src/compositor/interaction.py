"""Pointer interaction state for moving and resizing the intro page logo."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from .models import LogoPlacement

RESIZE_DIRECTIONS = ("n", "s", "e", "w", "ne", "nw", "se", "sw")


class InteractionMode(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


@dataclass
class LogoInteraction:
    """Tracks an in-progress logo drag or resize.

    Rendering layers read ``mode`` and ``cursor`` instead of mutating any
    global UI state.
    """

    mode: InteractionMode = InteractionMode.IDLE
    direction: Optional[str] = None
    start_x: float = 0
    start_y: float = 0
    start_placement: Optional[LogoPlacement] = None

    @property
    def active(self) -> bool:
        return self.mode != InteractionMode.IDLE

    @property
    def cursor(self) -> str:
        if self.mode == InteractionMode.DRAGGING:
            return "move"
        if self.mode == InteractionMode.RESIZING:
            return f"{self.direction}-resize"
        return ""

    def begin_drag(self, placement: LogoPlacement, x: float, y: float) -> None:
        self.mode = InteractionMode.DRAGGING
        self.direction = None
        self.start_x, self.start_y = x, y
        self.start_placement = replace(placement)

    def begin_resize(self, placement: LogoPlacement, direction: str, x: float, y: float) -> None:
        if direction not in RESIZE_DIRECTIONS:
            raise ValueError(f"Unknown resize direction: {direction}")
        self.mode = InteractionMode.RESIZING
        self.direction = direction
        self.start_x, self.start_y = x, y
        self.start_placement = replace(placement)

    def move(
        self, x: float, y: float, min_width: float = 50, min_height: float = 30
    ) -> Optional[LogoPlacement]:
        """Return the placement for the current pointer position, None when idle."""
        if not self.active or self.start_placement is None:
            return None

        start = self.start_placement
        dx = x - self.start_x
        dy = y - self.start_y

        if self.mode == InteractionMode.DRAGGING:
            return replace(start, left=start.left + dx, top=start.top + dy)

        width, height = start.width, start.height
        left, top = start.left, start.top
        # Edges named in the direction move; the opposite edges stay put
        if "e" in self.direction:
            width = max(min_width, start.width + dx)
        if "w" in self.direction:
            width = max(min_width, start.width - dx)
            left = start.left + (start.width - width)
        if "s" in self.direction:
            height = max(min_height, start.height + dy)
        if "n" in self.direction:
            height = max(min_height, start.height - dy)
            top = start.top + (start.height - height)
        return LogoPlacement(left=left, top=top, width=width, height=height)

    def end(self) -> None:
        self.mode = InteractionMode.IDLE
        self.direction = None
        self.start_placement = None
