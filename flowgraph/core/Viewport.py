"""
Canvas transform: screen coordinates <-> canvas coordinates under pan and zoom.

The host reports where the canvas layer sits on screen (``origin``); the zoom
factor is applied around that origin.
"""
import logging
from typing import NamedTuple, Tuple

from flowgraph.core import EventTypes as ev
from flowgraph.core.EventBus import EventBus
from flowgraph.core.GraphPrimitives import Point

logger = logging.getLogger(__name__)


class Rect(NamedTuple):
    """Screen-space bounding box of a rendered element."""
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0


class Viewport:
    def __init__(self,
                 bus: EventBus,
                 zoom_min: float = 0.5,
                 zoom_max: float = 1.6,
                 zoom_step: float = 0.1):
        if zoom_min <= 0 or zoom_min > zoom_max:
            raise ValueError(f"Invalid zoom bounds [{zoom_min}, {zoom_max}]")
        self.bus = bus
        self.zoom_min = zoom_min
        self.zoom_max = zoom_max
        self.zoom_step = zoom_step
        self.origin_x = 0.0
        self.origin_y = 0.0
        self.reset()

    def reset(self) -> None:
        self.zoom = 1.0
        self.zoom_last_value = 1.0
        self.canvas_x = 0.0
        self.canvas_y = 0.0

    # ------------------------------------------------------------------
    # Layout reported by the host
    # ------------------------------------------------------------------

    def set_origin(self, x: float, y: float) -> None:
        self.origin_x = x
        self.origin_y = y

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    def scale_factor(self) -> float:
        """Screen-to-canvas scale, `size / (size * zoom)` for any non-empty canvas."""
        return 1.0 / self.zoom

    def to_canvas(self, x: float, y: float) -> Point:
        f = self.scale_factor()
        return Point(x * f - self.origin_x * f, y * f - self.origin_y * f)

    def anchor_of(self, rect: Rect) -> Point:
        """Centre of a port element in canvas space.

        ``rect.width``/``rect.height`` are the element's unscaled layout size.
        """
        return Point(rect.width / 2 + (rect.x - self.origin_x) * self.scale_factor(),
                     rect.height / 2 + (rect.y - self.origin_y) * self.scale_factor())

    def reroute_anchor(self, rect: Rect, reroute_width: float = 6) -> Point:
        return Point((rect.x - self.origin_x) * self.scale_factor() + reroute_width,
                     (rect.y - self.origin_y) * self.scale_factor() + reroute_width)

    # ------------------------------------------------------------------
    # Pan / zoom
    # ------------------------------------------------------------------

    def translate(self, dx: float, dy: float) -> Tuple[float, float]:
        self.canvas_x += dx
        self.canvas_y += dy
        return self.canvas_x, self.canvas_y

    def zoom_in(self) -> bool:
        if self.zoom >= self.zoom_max:
            return False
        self._set_zoom(min(self.zoom + self.zoom_step, self.zoom_max))
        return True

    def zoom_out(self) -> bool:
        if self.zoom <= self.zoom_min:
            return False
        self._set_zoom(max(self.zoom - self.zoom_step, self.zoom_min))
        return True

    def zoom_reset(self) -> bool:
        if self.zoom == 1.0:
            return False
        self._set_zoom(1.0)
        return True

    def _set_zoom(self, value: float) -> None:
        self.zoom = round(value, 10)
        # Keep the pan translation proportional to the zoom level.
        self.canvas_x = self.canvas_x / self.zoom_last_value * self.zoom
        self.canvas_y = self.canvas_y / self.zoom_last_value * self.zoom
        self.zoom_last_value = self.zoom
        logger.debug(f"zoom -> {self.zoom}")
        self.bus.emit(ev.ZOOM, self.zoom)
