"""
linkroute - Orthogonal link routing for card canvases

Computes connector paths between cards on a canvas, steering around the
other cards in the way, and records why each path was chosen.

Example:
    >>> from linkroute import LinkRouter, Rect
    >>> router = LinkRouter()
    >>> result = router.route(
    ...     "task-1", "task-2",
    ...     Rect(0, 0, 200, 120), Rect(400, 0, 200, 120),
    ...     obstacles=[Rect(250, 0, 100, 120)],
    ... )
    >>> result.strategy, result.flat_points()

Debug Recording Example:
    >>> from linkroute import MemoryStore, RoutingDebugRecorder
    >>> recorder = RoutingDebugRecorder(MemoryStore())
    >>> recorder.enable()
    >>> router = LinkRouter(recorder=recorder)
    >>> router.route("a", "b", Rect(0, 0, 200, 120), Rect(400, 0, 200, 120), [])
    >>> print(recorder.get_latest_session().dump())
"""

from .adapter import (
    ConnectorDrawing,
    ConnectorRenderAdapter,
    LinkAction,
    LinkSpec,
    apply_link_action,
    card_rect,
)
from .debug import RoutingDebugRecorder, SessionMonitor
from .geometry import (
    Point,
    Rect,
    Side,
    anchor_point,
    anchor_points,
    intersects_segment_rect,
    select_sides,
)
from .png_renderer import SessionRenderer, render_session_to_png
from .router import LinkRouter, LinkStyle, RouteResult, RoutingState, next_state
from .storage import FileStore, KeyValueStore, MemoryStore
from .strategies import (
    CLEARANCE_MARGIN,
    evaluate_detour,
    evaluate_double_bend,
    evaluate_single_bend,
    evaluate_straight,
)
from .tracer import RoutingDebugSession, RoutingStep

__version__ = "0.3.0"

__all__ = [
    # Geometry
    "Point",
    "Rect",
    "Side",
    "anchor_point",
    "anchor_points",
    "intersects_segment_rect",
    "select_sides",
    # Strategies
    "CLEARANCE_MARGIN",
    "evaluate_straight",
    "evaluate_single_bend",
    "evaluate_double_bend",
    "evaluate_detour",
    # Router
    "LinkRouter",
    "LinkStyle",
    "RouteResult",
    "RoutingState",
    "next_state",
    # Debug/Tracing
    "RoutingDebugRecorder",
    "SessionMonitor",
    "RoutingDebugSession",
    "RoutingStep",
    "SessionRenderer",
    "render_session_to_png",
    # Storage
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    # Render adapter
    "ConnectorRenderAdapter",
    "ConnectorDrawing",
    "LinkSpec",
    "LinkAction",
    "apply_link_action",
    "card_rect",
]
