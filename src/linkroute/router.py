"""
Link routing orchestrator.

Runs the routing strategies as an explicit state machine:

    IDLE -> STRAIGHT_ATTEMPT -> BEND_ATTEMPT -> DETOUR_ATTEMPT -> RESOLVED

Each attempt state either resolves the route (its candidate cleared every
obstacle) or hands over to the next state. DETOUR_ATTEMPT always resolves,
falling back to an unvalidated Z/U candidate, and ultimately to the direct
two-point connector, so every call produces a path.

Every candidate tried is written to the call's decision trace and, when a
recorder is attached and enabled, to the recorder's in-flight session.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Union

from .debug import RoutingDebugRecorder
from .geometry import Point, Rect, anchor_point, flatten, select_sides
from .strategies import (
    CLEARANCE_MARGIN,
    DIRECT,
    FALLBACK,
    STRAIGHT,
    Candidate,
    detour_candidates,
    double_bend_candidates,
    find_blocker,
    single_bend_candidates,
)
from .tracer import RoutingStep

log = logging.getLogger(__name__)

ACCEPTED = "accepted"
REJECTED = "rejected"
INAPPLICABLE = "inapplicable"

OVERLAP_REASON = "source and target rectangles overlap"


class RoutingState(Enum):
    """States of the routing state machine."""

    IDLE = "idle"
    STRAIGHT_ATTEMPT = "straight_attempt"
    BEND_ATTEMPT = "bend_attempt"
    DETOUR_ATTEMPT = "detour_attempt"
    RESOLVED = "resolved"


_STATE_ORDER = [
    RoutingState.IDLE,
    RoutingState.STRAIGHT_ATTEMPT,
    RoutingState.BEND_ATTEMPT,
    RoutingState.DETOUR_ATTEMPT,
    RoutingState.RESOLVED,
]


def next_state(state: RoutingState, resolved: bool) -> RoutingState:
    """
    Transition predicate of the routing state machine.

    A resolved attempt ends the run; an unresolved one advances to the next
    attempt state. RESOLVED is terminal.
    """
    if resolved or state is RoutingState.RESOLVED:
        return RoutingState.RESOLVED
    return _STATE_ORDER[_STATE_ORDER.index(state) + 1]


class LinkStyle(Enum):
    """Connector style of a link."""

    STRAIGHT = "straight"
    ORTHOGONAL = "orthogonal"

    @classmethod
    def parse(cls, value: Union["LinkStyle", str]) -> "LinkStyle":
        """Accept a LinkStyle or its string value ("free" means straight)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text == "free":
            return cls.STRAIGHT
        for style in cls:
            if style.value == text:
                return style
        raise ValueError(f"unknown link style: {value!r}")


@dataclass
class RouteResult:
    """
    Outcome of one routing call.

    Attributes:
        points: Vertices of the chosen path (always at least two)
        strategy: Name of the strategy that produced it
        states: States visited, from IDLE to RESOLVED
        steps: Decision trace of this call
    """

    points: List[Point]
    strategy: str
    states: List[RoutingState] = field(default_factory=list)
    steps: List[RoutingStep] = field(default_factory=list)

    @property
    def start(self) -> Point:
        return self.points[0]

    @property
    def end(self) -> Point:
        return self.points[-1]

    def flat_points(self) -> List[float]:
        return flatten(self.points)


@dataclass
class _RouteContext:
    """Working state of a single routing call."""

    source: Rect
    target: Rect
    obstacles: Sequence[Rect]
    start: Point
    end: Point
    horizontal: bool
    identical: bool
    overlapping: bool
    style: LinkStyle
    route_around: bool
    states: List[RoutingState] = field(default_factory=list)
    steps: List[RoutingStep] = field(default_factory=list)
    double_bends: List[Candidate] = field(default_factory=list)
    points: List[Point] = field(default_factory=list)
    strategy: str = ""


def _describe_obstacle(index: int, rect: Rect) -> str:
    return (
        f"obstacle #{index} (x={rect.x:g}, y={rect.y:g}, "
        f"w={rect.width:g}, h={rect.height:g})"
    )


class LinkRouter:
    """
    Routes a single link between two card rects.

    The router holds no state between calls: identical inputs always give
    identical results, regardless of what was routed before.

    Example:
        >>> router = LinkRouter()
        >>> result = router.route(
        ...     "task-1", "task-2",
        ...     Rect(0, 0, 200, 120), Rect(400, 0, 200, 120),
        ...     [Rect(250, 0, 100, 120)],
        ... )
        >>> result.strategy
        'double-bend'
    """

    def __init__(
        self,
        recorder: Optional[RoutingDebugRecorder] = None,
        margin: float = CLEARANCE_MARGIN,
    ):
        """
        Initialize the router.

        Args:
            recorder: Optional recorder that receives every routing session
            margin: Clearance kept around obstacles when routing past them
        """
        self.recorder = recorder
        self.margin = margin
        self._handlers: Dict[RoutingState, Callable[[_RouteContext], bool]] = {
            RoutingState.IDLE: lambda ctx: False,
            RoutingState.STRAIGHT_ATTEMPT: self._attempt_straight,
            RoutingState.BEND_ATTEMPT: self._attempt_bends,
            RoutingState.DETOUR_ATTEMPT: self._attempt_detour,
        }

    def route(
        self,
        source_id: str,
        target_id: str,
        source: Rect,
        target: Rect,
        obstacles: Sequence[Rect],
        style: Union[LinkStyle, str] = LinkStyle.ORTHOGONAL,
        route_around: bool = True,
    ) -> RouteResult:
        """
        Compute the connector path for one link.

        Args:
            source_id: Id of the source card (for the decision trace)
            target_id: Id of the target card (for the decision trace)
            source: Source card rect
            target: Target card rect
            obstacles: Other card rects, excluding source and target
            style: LinkStyle or "straight"/"orthogonal"/"free"
            route_around: Whether to avoid obstacles at all

        Returns:
            RouteResult with the chosen path and strategy
        """
        style = LinkStyle.parse(style)
        obstacles = tuple(obstacles)
        identical = source == target
        overlapping = source.overlaps(target)

        src_side, tgt_side = select_sides(source, target)
        if identical:
            # Same rect: both anchors collapse onto its centre
            start, end = source.center, target.center
        else:
            start = anchor_point(source, src_side)
            end = anchor_point(target, tgt_side)

        ctx = _RouteContext(
            source=source,
            target=target,
            obstacles=obstacles,
            start=start,
            end=end,
            horizontal=src_side.is_horizontal,
            identical=identical,
            overlapping=overlapping,
            style=style,
            route_around=route_around,
        )

        if self.recorder is not None:
            self.recorder.start_session(source_id, target_id, start, end, obstacles)

        state = RoutingState.IDLE
        ctx.states.append(state)
        while state is not RoutingState.RESOLVED:
            resolved = self._handlers[state](ctx)
            state = next_state(state, resolved)
            ctx.states.append(state)

        result = RouteResult(
            points=ctx.points, strategy=ctx.strategy, states=ctx.states, steps=ctx.steps
        )

        if self.recorder is not None:
            self.recorder.end_session(result.flat_points(), result.strategy)

        log.debug(
            "Routed %s -> %s with %s (%d points, %d steps)",
            source_id,
            target_id,
            result.strategy,
            len(result.points),
            len(result.steps),
        )
        return result

    # -------------------------------------------------------------------------
    # Attempt states
    # -------------------------------------------------------------------------

    def _attempt_straight(self, ctx: _RouteContext) -> bool:
        direct = [ctx.start, ctx.end]
        ignore_obstacles = not ctx.route_around or ctx.style is LinkStyle.STRAIGHT

        if ctx.identical:
            if not ignore_obstacles:
                self._record(
                    ctx, f"{STRAIGHT} (direct segment)", INAPPLICABLE, direct,
                    rejected=True, reason=OVERLAP_REASON,
                )
            self._resolve(ctx, f"{DIRECT} (centre to centre)", direct, DIRECT)
            return True

        if ignore_obstacles:
            self._resolve(ctx, f"{STRAIGHT} (obstacles ignored)", direct, STRAIGHT)
            return True

        blocker = find_blocker(direct, ctx.obstacles)
        if blocker is None:
            self._resolve(ctx, f"{STRAIGHT} (direct segment)", direct, STRAIGHT)
            return True

        self._record(
            ctx, f"{STRAIGHT} (direct segment)", REJECTED, direct,
            rejected=True, reason=f"crosses {_describe_obstacle(*blocker)}",
        )
        return False

    def _attempt_bends(self, ctx: _RouteContext) -> bool:
        if ctx.overlapping:
            self._record(
                ctx, "single-bend / double-bend", INAPPLICABLE, None,
                rejected=True, reason=OVERLAP_REASON,
            )
            return False

        singles = single_bend_candidates(ctx.start, ctx.end)
        if not singles:
            self._record(
                ctx, "single-bend", INAPPLICABLE, None, rejected=True,
                reason="anchors share an axis, so there is no corner to bend at",
            )
        if self._try_candidates(ctx, singles):
            return True

        ctx.double_bends = double_bend_candidates(
            ctx.start, ctx.end, ctx.obstacles, self.margin, ctx.horizontal
        )
        if not ctx.double_bends:
            self._record(
                ctx, "double-bend", INAPPLICABLE, None, rejected=True,
                reason="no channel exists between the anchors",
            )
        return self._try_candidates(ctx, ctx.double_bends)

    def _attempt_detour(self, ctx: _RouteContext) -> bool:
        if ctx.overlapping:
            self._record(
                ctx, "detour", INAPPLICABLE, None, rejected=True, reason=OVERLAP_REASON
            )
            detours: List[Candidate] = []
        else:
            detours = detour_candidates(
                ctx.start, ctx.end, ctx.obstacles, self.margin, ctx.horizontal
            )
        if not detours and not ctx.overlapping:
            self._record(
                ctx, "detour", INAPPLICABLE, None, rejected=True,
                reason="no blocking obstacle to route around",
            )
        if self._try_candidates(ctx, detours):
            return True

        # Nothing cleared every obstacle: draw the best-looking shape anyway
        fallbacks = ctx.double_bends or detours
        if fallbacks:
            chosen = fallbacks[0]
            self._resolve(ctx, f"{FALLBACK} ({chosen.description})", chosen.points, FALLBACK)
        else:
            self._resolve(ctx, f"{DIRECT} (last resort)", [ctx.start, ctx.end], DIRECT)
        log.debug("No clear route found; using %s", ctx.strategy)
        return True

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _try_candidates(self, ctx: _RouteContext, candidates: Sequence[Candidate]) -> bool:
        """Accept the first clear candidate, recording each rejection."""
        for candidate in candidates:
            blocker = find_blocker(candidate.points, ctx.obstacles)
            if blocker is None:
                self._resolve(ctx, candidate.description, candidate.points, candidate.strategy)
                return True
            self._record(
                ctx, candidate.description, REJECTED, candidate.points,
                rejected=True, reason=f"crosses {_describe_obstacle(*blocker)}",
            )
        return False

    def _resolve(
        self, ctx: _RouteContext, description: str, points: List[Point], strategy: str
    ) -> None:
        decision = "fallback" if strategy == FALLBACK else ACCEPTED
        self._record(ctx, description, decision, points)
        ctx.points = list(points)
        ctx.strategy = strategy

    def _record(
        self,
        ctx: _RouteContext,
        description: str,
        decision: str,
        points: Optional[List[Point]],
        rejected: bool = False,
        reason: Optional[str] = None,
    ) -> None:
        flat = flatten(points) if points is not None else None
        ctx.steps.append(
            RoutingStep(
                step=len(ctx.steps) + 1,
                description=description,
                decision=decision,
                path_points=flat,
                rejected=rejected,
                reason=reason,
            )
        )
        if self.recorder is not None:
            self.recorder.add_step(description, decision, flat, rejected, reason)
