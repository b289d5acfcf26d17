"""
Geometry primitives for link routing.

All coordinates are world coordinates (unscaled, unpanned). Everything in
this module is pure: no function keeps state or mutates its arguments.

Provides:
- Point and Rect value types
- Segment/rectangle intersection for validating candidate paths
- Anchor point selection on card sides
- Helpers for converting between point lists and flat coordinate lists
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple


class Side(Enum):
    """Which side of a rectangle a connector attaches to."""

    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

    @property
    def is_horizontal(self) -> bool:
        """True for sides a connector leaves horizontally (left/right)."""
        return self in (Side.LEFT, Side.RIGHT)


@dataclass(frozen=True)
class Point:
    """A point in world coordinates."""

    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "Point":
        return cls(float(data["x"]), float(data["y"]))


@dataclass(frozen=True)
class Rect:
    """Axis-aligned bounding box of a card."""

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> Point:
        return Point(self.center_x, self.center_y)

    def expanded(self, margin: float) -> "Rect":
        """Return a new rect grown by margin on every side."""
        return Rect(
            self.x - margin,
            self.y - margin,
            self.width + margin * 2,
            self.height + margin * 2,
        )

    def contains_point(self, point: Point) -> bool:
        """Check if a point lies inside or on the boundary."""
        return self.x <= point.x <= self.x2 and self.y <= point.y <= self.y2

    def overlaps(self, other: "Rect") -> bool:
        """
        Check if two rects share interior area.

        Rects that only touch along an edge do not overlap. Identical rects
        always overlap, even when they have zero area.
        """
        if self == other:
            return True
        return (
            self.x < other.x2
            and other.x < self.x2
            and self.y < other.y2
            and other.y < self.y2
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "Rect":
        return cls(
            float(data["x"]),
            float(data["y"]),
            float(data["width"]),
            float(data["height"]),
        )


def _clip_segment(p1: Point, p2: Point, rect: Rect) -> Optional[Tuple[float, float]]:
    """
    Liang-Barsky clip of p1-p2 against rect with inclusive bounds.

    Returns the (enter, exit) parameters along the segment, or None when the
    segment misses the rect entirely.
    """
    dx = p2.x - p1.x
    dy = p2.y - p1.y
    t_enter = 0.0
    t_exit = 1.0

    for p, q in (
        (-dx, p1.x - rect.x),
        (dx, rect.x2 - p1.x),
        (-dy, p1.y - rect.y),
        (dy, rect.y2 - p1.y),
    ):
        if p == 0:
            # Parallel to this boundary: outside means no hit at all
            if q < 0:
                return None
            continue
        t = q / p
        if p < 0:
            if t > t_exit:
                return None
            t_enter = max(t_enter, t)
        else:
            if t < t_enter:
                return None
            t_exit = min(t_exit, t)

    return t_enter, t_exit


def intersects_segment_rect(p1: Point, p2: Point, rect: Rect) -> bool:
    """
    Check if the segment p1-p2 touches the interior or boundary of rect.

    A segment that only grazes an edge or corner counts as intersecting.
    A zero-length segment intersects when its single point lies in or on
    the rect.
    """
    return _clip_segment(p1, p2, rect) is not None


def segment_entry(p1: Point, p2: Point, rect: Rect) -> float:
    """
    Parameter (0..1) along p1-p2 where the segment first touches rect.

    Returns math.inf when the segment misses the rect.
    """
    clipped = _clip_segment(p1, p2, rect)
    if clipped is None:
        return math.inf
    return clipped[0]


def anchor_point(rect: Rect, side: Side) -> Point:
    """Get the midpoint of a rect side."""
    if side == Side.TOP:
        return Point(rect.center_x, rect.y)
    elif side == Side.BOTTOM:
        return Point(rect.center_x, rect.y2)
    elif side == Side.LEFT:
        return Point(rect.x, rect.center_y)
    else:  # right
        return Point(rect.x2, rect.center_y)


def select_sides(source: Rect, target: Rect) -> Tuple[Side, Side]:
    """
    Choose the exit side of source and the entry side of target.

    The axis with the larger centre delta wins. Equal deltas (including
    identical centres) resolve to a horizontal exit.
    """
    dx = target.center_x - source.center_x
    dy = target.center_y - source.center_y

    if abs(dx) >= abs(dy):
        if dx >= 0:
            return Side.RIGHT, Side.LEFT
        return Side.LEFT, Side.RIGHT

    if dy > 0:
        return Side.BOTTOM, Side.TOP
    return Side.TOP, Side.BOTTOM


def anchor_points(source: Rect, target: Rect) -> Tuple[Point, Point]:
    """Get the (start, end) anchors for a connector between two rects."""
    src_side, tgt_side = select_sides(source, target)
    return anchor_point(source, src_side), anchor_point(target, tgt_side)


def flatten(points: Sequence[Point]) -> List[float]:
    """Convert [Point, ...] to a flat [x0, y0, x1, y1, ...] list."""
    flat: List[float] = []
    for point in points:
        flat.append(point.x)
        flat.append(point.y)
    return flat


def unflatten(flat: Sequence[float]) -> List[Point]:
    """Convert a flat coordinate list back to points."""
    if len(flat) % 2:
        raise ValueError("flat coordinate list must have even length")
    return [Point(flat[i], flat[i + 1]) for i in range(0, len(flat), 2)]


def path_length(points: Sequence[Point]) -> float:
    """Total length of a polyline."""
    total = 0.0
    for a, b in zip(points, points[1:]):
        total += math.hypot(b.x - a.x, b.y - a.y)
    return total


def simplify_path(points: Sequence[Point]) -> List[Point]:
    """
    Remove duplicate consecutive points and collinear interior vertices.

    The first and last points are always kept, so a two-point path (even a
    degenerate one) comes back unchanged.
    """
    if len(points) <= 2:
        return list(points)

    deduped = [points[0]]
    for pt in points[1:]:
        if pt != deduped[-1]:
            deduped.append(pt)
    if len(deduped) == 1:
        return [points[0], points[-1]]

    simplified = [deduped[0]]
    for i in range(1, len(deduped) - 1):
        prev = simplified[-1]
        curr = deduped[i]
        next_pt = deduped[i + 1]

        same_x = prev.x == curr.x == next_pt.x
        same_y = prev.y == curr.y == next_pt.y
        if not (same_x or same_y):
            simplified.append(curr)

    simplified.append(deduped[-1])
    return simplified
