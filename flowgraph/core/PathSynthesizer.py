"""
Connection path geometry.

A connection is drawn as one or more cubic Bézier segments. Both control
points of a segment sit at the height of their own endpoint and are pushed
horizontally by ``|x1 - x0| * curvature``; the curve mode only decides the
direction of that push when the segment runs right-to-left.

Everything here is pure: coordinates come in already transformed to canvas
space and nothing touches the graph.
"""
import math
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

from flowgraph.core.GraphPrimitives import Point
from flowgraph.core.Types import CurveMode

# (sign of the first control offset, sign of the second) for x0 >= x1.
_BACKWARD_SIGNS = {
    CurveMode.SYMMETRIC: (1, 1),
    CurveMode.OPEN: (1, -1),
    CurveMode.CLOSE: (-1, 1),
    CurveMode.OTHER: (-1, -1),
}


def _fmt(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


class BezierSegment(NamedTuple):
    start: Point
    control1: Point
    control2: Point
    end: Point
    mode: CurveMode = CurveMode.SYMMETRIC

    def to_svg(self) -> str:
        return (f"M {_fmt(self.start.x)} {_fmt(self.start.y)} "
                f"C {_fmt(self.control1.x)} {_fmt(self.control1.y)} "
                f"{_fmt(self.control2.x)} {_fmt(self.control2.y)} "
                f"{_fmt(self.end.x)} {_fmt(self.end.y)}")

    def point_at(self, t: float) -> Point:
        u = 1.0 - t
        a, b, c, d = u * u * u, 3 * u * u * t, 3 * u * t * t, t * t * t
        return Point(a * self.start.x + b * self.control1.x + c * self.control2.x + d * self.end.x,
                     a * self.start.y + b * self.control1.y + c * self.control2.y + d * self.end.y)

    def distance_to(self, point: Tuple[float, float], samples: int = 32) -> float:
        """Approximate distance from ``point`` to the curve by sampling."""
        px, py = point
        return min(math.hypot(q.x - px, q.y - py)
                   for q in (self.point_at(i / samples) for i in range(samples + 1)))


def curve(p0: Tuple[float, float], p1: Tuple[float, float], curvature: float,
          mode: CurveMode = CurveMode.SYMMETRIC) -> BezierSegment:
    x0, y0 = p0
    x1, y1 = p1
    offset = abs(x1 - x0) * curvature
    s1, s2 = _BACKWARD_SIGNS[mode] if x0 >= x1 else (1, 1)
    return BezierSegment(Point(x0, y0),
                         Point(x0 + s1 * offset, y0),
                         Point(x1 - s2 * offset, y1),
                         Point(x1, y1),
                         mode)


def path(anchor_a: Tuple[float, float],
         anchor_b: Tuple[float, float],
         points: Sequence[Tuple[float, float]] = (),
         curvature_end: float = 0.5,
         curvature_mid: float = 0.5,
         curvature: Optional[float] = None) -> List[BezierSegment]:
    """Segments for a connection from output anchor ``a`` to input anchor ``b``.

    Without reroute points the connection is a single symmetric curve drawn
    with ``curvature`` (``curvature_end`` when omitted). With points, the
    first segment opens out of ``a``, the last closes into ``b``, both with
    ``curvature_end``, and the segments in between use ``curvature_mid``.
    """
    if not points:
        return [curve(anchor_a, anchor_b, curvature_end if curvature is None else curvature)]

    stops = list(points)
    segments = [curve(anchor_a, stops[0], curvature_end, CurveMode.OPEN)]
    for p, q in zip(stops, stops[1:]):
        segments.append(curve(p, q, curvature_mid, CurveMode.OTHER))
    segments.append(curve(stops[-1], anchor_b, curvature_end, CurveMode.CLOSE))
    return segments


def path_description(anchor_a: Tuple[float, float],
                     anchor_b: Tuple[float, float],
                     points: Sequence[Tuple[float, float]] = (),
                     curvature_end: float = 0.5,
                     curvature_mid: float = 0.5,
                     curvature: Optional[float] = None,
                     fix_curvature: bool = False) -> Union[str, List[str]]:
    """SVG path data: one string per segment when ``fix_curvature``, otherwise one joined string."""
    svg = [s.to_svg() for s in path(anchor_a, anchor_b, points, curvature_end, curvature_mid, curvature)]
    if fix_curvature:
        return svg
    return " ".join(svg)


def nearest_segment(segments: Sequence[BezierSegment], point: Tuple[float, float]) -> int:
    if not segments:
        raise ValueError("No segments to search")
    return min(range(len(segments)), key=lambda i: segments[i].distance_to(point))
