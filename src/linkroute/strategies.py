"""
Strategy evaluators for link routing.

Each strategy is one family of connector shapes. A strategy generates its
candidate paths in a fixed preference order (``*_candidates``) and its
evaluator returns the first candidate that clears every obstacle, or None
when no candidate does (``evaluate_*``).

Strategies, in the order the router tries them:
- straight: the direct segment between the anchors
- single-bend: an L through the corner formed by the two anchors
- double-bend: a Z through a channel beside the blocking obstacle, or a U
  passing over/under it
- detour: around the blocking obstacle's box, expanded by the clearance
  margin, shorter side first
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .geometry import (
    Point,
    Rect,
    intersects_segment_rect,
    path_length,
    segment_entry,
    simplify_path,
)

# =============================================================================
# ROUTING CONFIGURATION - Adjust these values to tune routing behavior
# =============================================================================

# Distance kept between a routed path and the edge of an obstacle it goes
# around. Matches the padded no-go zone drawn by the debug overlay.
CLEARANCE_MARGIN = 20

# =============================================================================

STRAIGHT = "straight"
SINGLE_BEND = "single-bend"
DOUBLE_BEND = "double-bend"
DETOUR = "detour"
FALLBACK = "fallback"
DIRECT = "direct"


@dataclass
class Candidate:
    """A candidate connector path produced by a strategy."""

    strategy: str
    label: str  # Which variant of the shape, e.g. "horizontal-first"
    points: List[Point]

    @property
    def description(self) -> str:
        return f"{self.strategy} ({self.label})"


Blocker = Tuple[int, Rect]


def find_blocker(points: Sequence[Point], obstacles: Sequence[Rect]) -> Optional[Blocker]:
    """
    Find the first obstacle crossed by a polyline.

    Segments are checked in path order and, within a segment, obstacles in
    list order.

    Returns:
        (obstacle index, obstacle rect), or None if the path is clear
    """
    for a, b in zip(points, points[1:]):
        for index, rect in enumerate(obstacles):
            if intersects_segment_rect(a, b, rect):
                return index, rect
    return None


def is_clear(points: Sequence[Point], obstacles: Sequence[Rect]) -> bool:
    """Check that no segment of the path crosses any obstacle."""
    return find_blocker(points, obstacles) is None


def nearest_blocker(
    start: Point, end: Point, obstacles: Sequence[Rect]
) -> Optional[Blocker]:
    """
    Find the obstacle crossed by the direct segment closest to start.

    Ties (same entry distance) go to the obstacle earliest in the list.
    """
    best: Optional[Blocker] = None
    best_t = float("inf")
    for index, rect in enumerate(obstacles):
        t = segment_entry(start, end, rect)
        if t < best_t:
            best = (index, rect)
            best_t = t
    return best


def primary_is_horizontal(start: Point, end: Point) -> bool:
    """Pick the primary axis from the anchor deltas; ties go horizontal."""
    return abs(end.x - start.x) >= abs(end.y - start.y)


def _first_clear(
    candidates: Sequence[Candidate], obstacles: Sequence[Rect]
) -> Optional[List[Point]]:
    for candidate in candidates:
        if is_clear(candidate.points, obstacles):
            return candidate.points
    return None


def _collect(
    strategy: str, shapes: Sequence[Tuple[str, List[Point]]]
) -> List[Candidate]:
    """Simplify shapes, dropping ones that collapse to a straight line or repeat."""
    candidates: List[Candidate] = []
    seen: List[List[Point]] = []
    for label, points in shapes:
        simplified = simplify_path(points)
        if len(simplified) <= 2 or simplified in seen:
            continue
        seen.append(simplified)
        candidates.append(Candidate(strategy, label, simplified))
    return candidates


def _fmt(value: float) -> str:
    return f"{value:g}"


# -----------------------------------------------------------------------------
# Straight
# -----------------------------------------------------------------------------


def straight_candidates(
    start: Point,
    end: Point,
    obstacles: Sequence[Rect] = (),
    margin: float = CLEARANCE_MARGIN,
    horizontal: Optional[bool] = None,
) -> List[Candidate]:
    """The straight strategy has exactly one shape: the direct segment."""
    return [Candidate(STRAIGHT, "direct segment", [start, end])]


def evaluate_straight(
    start: Point,
    end: Point,
    obstacles: Sequence[Rect],
    margin: float = CLEARANCE_MARGIN,
    horizontal: Optional[bool] = None,
) -> Optional[List[Point]]:
    """Return the two-point path if the direct segment is clear."""
    return _first_clear(straight_candidates(start, end), obstacles)


# -----------------------------------------------------------------------------
# Single bend (L)
# -----------------------------------------------------------------------------


def single_bend_candidates(
    start: Point,
    end: Point,
    obstacles: Sequence[Rect] = (),
    margin: float = CLEARANCE_MARGIN,
    horizontal: Optional[bool] = None,
) -> List[Candidate]:
    """
    L-shaped candidates, horizontal-first then vertical-first.

    When the anchors share an x or y coordinate there is no corner to bend
    at and no candidates are produced.
    """
    if start.x == end.x or start.y == end.y:
        return []
    return _collect(
        SINGLE_BEND,
        [
            ("horizontal-first", [start, Point(end.x, start.y), end]),
            ("vertical-first", [start, Point(start.x, end.y), end]),
        ],
    )


def evaluate_single_bend(
    start: Point,
    end: Point,
    obstacles: Sequence[Rect],
    margin: float = CLEARANCE_MARGIN,
    horizontal: Optional[bool] = None,
) -> Optional[List[Point]]:
    """Return the first L-shaped path that clears every obstacle."""
    return _first_clear(single_bend_candidates(start, end), obstacles)


# -----------------------------------------------------------------------------
# Double bend (Z / U)
# -----------------------------------------------------------------------------


def _channel_within(value: float, a: float, b: float) -> bool:
    """Check that a channel lies strictly between two coordinates."""
    return min(a, b) < value < max(a, b)


def double_bend_candidates(
    start: Point,
    end: Point,
    obstacles: Sequence[Rect],
    margin: float = CLEARANCE_MARGIN,
    horizontal: Optional[bool] = None,
) -> List[Candidate]:
    """
    Z and U shaped candidates around the obstacle blocking the direct path.

    For a horizontal primary axis, Z shapes run a vertical channel at the
    midpoint, then just before and just after the blocker (offset by the
    margin). U shapes run a horizontal channel above, then below, the
    blocker. A vertical primary axis is the same with x and y swapped.
    Channels that would backtrack past an anchor are skipped.
    """
    if start == end:
        return []
    if horizontal is None:
        horizontal = primary_is_horizontal(start, end)

    blocker = nearest_blocker(start, end, obstacles)
    shapes: List[Tuple[str, List[Point]]] = []

    if horizontal:
        channels = [("z-mid", (start.x + end.x) / 2)]
        if blocker is not None:
            _, rect = blocker
            channels.append(("z-before", rect.x - margin))
            channels.append(("z-after", rect.x2 + margin))
            if end.x < start.x:
                channels[1:] = [("z-before", rect.x2 + margin), ("z-after", rect.x - margin)]
        for label, mx in channels:
            if not _channel_within(mx, start.x, end.x):
                continue
            shapes.append(
                (
                    f"{label} x={_fmt(mx)}",
                    [start, Point(mx, start.y), Point(mx, end.y), end],
                )
            )
        if blocker is not None:
            _, rect = blocker
            for label, yc in (("u-above", rect.y - margin), ("u-below", rect.y2 + margin)):
                shapes.append(
                    (
                        f"{label} y={_fmt(yc)}",
                        [start, Point(start.x, yc), Point(end.x, yc), end],
                    )
                )
    else:
        channels = [("z-mid", (start.y + end.y) / 2)]
        if blocker is not None:
            _, rect = blocker
            channels.append(("z-before", rect.y - margin))
            channels.append(("z-after", rect.y2 + margin))
            if end.y < start.y:
                channels[1:] = [("z-before", rect.y2 + margin), ("z-after", rect.y - margin)]
        for label, my in channels:
            if not _channel_within(my, start.y, end.y):
                continue
            shapes.append(
                (
                    f"{label} y={_fmt(my)}",
                    [start, Point(start.x, my), Point(end.x, my), end],
                )
            )
        if blocker is not None:
            _, rect = blocker
            for label, xc in (("u-left", rect.x - margin), ("u-right", rect.x2 + margin)):
                shapes.append(
                    (
                        f"{label} x={_fmt(xc)}",
                        [start, Point(xc, start.y), Point(xc, end.y), end],
                    )
                )

    return _collect(DOUBLE_BEND, shapes)


def evaluate_double_bend(
    start: Point,
    end: Point,
    obstacles: Sequence[Rect],
    margin: float = CLEARANCE_MARGIN,
    horizontal: Optional[bool] = None,
) -> Optional[List[Point]]:
    """Return the first Z/U path that clears every obstacle."""
    return _first_clear(
        double_bend_candidates(start, end, obstacles, margin, horizontal), obstacles
    )


# -----------------------------------------------------------------------------
# Detour
# -----------------------------------------------------------------------------


def detour_candidates(
    start: Point,
    end: Point,
    obstacles: Sequence[Rect],
    margin: float = CLEARANCE_MARGIN,
    horizontal: Optional[bool] = None,
) -> List[Candidate]:
    """
    Paths hugging the nearest blocker's box, expanded by the margin.

    One candidate per lateral direction (above/below for a horizontal
    primary axis, left/right for a vertical one), ordered by total length.
    Equal lengths keep above/left first.
    """
    if start == end:
        return []
    blocker = nearest_blocker(start, end, obstacles)
    if blocker is None:
        return []
    if horizontal is None:
        horizontal = primary_is_horizontal(start, end)

    index, rect = blocker
    box = rect.expanded(margin)
    shapes: List[Tuple[str, List[Point]]] = []

    if horizontal:
        near_x, far_x = (box.x, box.x2) if end.x >= start.x else (box.x2, box.x)
        for side, yc in (("above", box.y), ("below", box.y2)):
            shapes.append(
                (
                    f"{side} obstacle #{index}",
                    [
                        start,
                        Point(near_x, start.y),
                        Point(near_x, yc),
                        Point(far_x, yc),
                        Point(far_x, end.y),
                        end,
                    ],
                )
            )
    else:
        near_y, far_y = (box.y, box.y2) if end.y >= start.y else (box.y2, box.y)
        for side, xc in (("left of", box.x), ("right of", box.x2)):
            shapes.append(
                (
                    f"{side} obstacle #{index}",
                    [
                        start,
                        Point(start.x, near_y),
                        Point(xc, near_y),
                        Point(xc, far_y),
                        Point(end.x, far_y),
                        end,
                    ],
                )
            )

    candidates = _collect(DETOUR, shapes)
    candidates.sort(key=lambda c: path_length(c.points))
    return candidates


def evaluate_detour(
    start: Point,
    end: Point,
    obstacles: Sequence[Rect],
    margin: float = CLEARANCE_MARGIN,
    horizontal: Optional[bool] = None,
) -> Optional[List[Point]]:
    """Return the shortest detour around the nearest blocker that is clear."""
    return _first_clear(
        detour_candidates(start, end, obstacles, margin, horizontal), obstacles
    )
