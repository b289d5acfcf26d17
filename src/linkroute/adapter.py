"""
Connector render adapter.

Bridges the card/link data layer and the canvas: for each link it gathers
the current card geometry, asks the router for a path, and returns the
drawable description a canvas line primitive needs (flat points plus stroke
attributes). Drawing itself happens elsewhere.

Link controls (select, style toggle, route-around toggle) are modelled as
LinkAction values; LinkAction.UNSET is the explicit "no action bound" case.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Mapping, Optional

from .geometry import Rect
from .router import LinkRouter, LinkStyle

# =============================================================================
# DRAWING CONFIGURATION
# =============================================================================

# Default card size in world units
CARD_WIDTH = 200
CARD_HEIGHT = 120

# Stroke
STROKE_NORMAL = "#6b7280"
STROKE_SELECTED = "#2196f3"
STROKE_WIDTH_NORMAL = 2
STROKE_WIDTH_SELECTED = 3
HIT_STROKE_WIDTH = 20  # Wider invisible stroke so thin links are easy to click

# Arrowhead
POINTER_LENGTH = 10
POINTER_WIDTH = 10

# =============================================================================


def card_rect(x: float, y: float, width: float = CARD_WIDTH, height: float = CARD_HEIGHT) -> Rect:
    """Snapshot a card's bounding box from its position."""
    return Rect(x, y, width, height)


@dataclass(frozen=True)
class LinkSpec:
    """A link between two cards, as stored by the data layer."""

    id: str
    source_id: str
    target_id: str
    link_style: LinkStyle = LinkStyle.STRAIGHT
    route_around: bool = False
    selected: bool = False


@dataclass
class ConnectorDrawing:
    """Everything the canvas needs to draw one connector."""

    link_id: str
    points: List[float]
    strategy: str
    stroke: str
    stroke_width: int
    pointer_length: int = POINTER_LENGTH
    pointer_width: int = POINTER_WIDTH
    hit_stroke_width: int = HIT_STROKE_WIDTH


class LinkAction(Enum):
    """Actions a link's controls can trigger."""

    UNSET = "unset"
    SELECT = "select"
    TOGGLE_STYLE = "toggle_style"
    TOGGLE_ROUTE_AROUND = "toggle_route_around"


def apply_link_action(link: LinkSpec, action: LinkAction) -> LinkSpec:
    """
    Return a copy of link with the action applied.

    UNSET leaves the link untouched.
    """
    if action is LinkAction.SELECT:
        return replace(link, selected=True)
    if action is LinkAction.TOGGLE_STYLE:
        style = (
            LinkStyle.STRAIGHT
            if link.link_style is LinkStyle.ORTHOGONAL
            else LinkStyle.ORTHOGONAL
        )
        return replace(link, link_style=style)
    if action is LinkAction.TOGGLE_ROUTE_AROUND:
        return replace(link, route_around=not link.route_around)
    return link


class ConnectorRenderAdapter:
    """
    Turns links into drawable connectors.

    Example:
        >>> adapter = ConnectorRenderAdapter(LinkRouter())
        >>> cards = {"a": card_rect(0, 0), "b": card_rect(400, 0)}
        >>> adapter.points_for(LinkSpec("l1", "a", "b"), cards)
        [200, 60.0, 400, 60.0]
    """

    def __init__(self, router: Optional[LinkRouter] = None):
        self.router = router or LinkRouter()

    def draw(self, link: LinkSpec, cards: Mapping[str, Rect]) -> Optional[ConnectorDrawing]:
        """
        Route a link against the current card layout.

        Args:
            link: The link to draw
            cards: Card id to bounding box, for every card on the canvas

        Returns:
            The drawing, or None if either end of the link has no card
        """
        source = cards.get(link.source_id)
        target = cards.get(link.target_id)
        if source is None or target is None:
            return None

        obstacles = [
            rect
            for card_id, rect in cards.items()
            if card_id not in (link.source_id, link.target_id)
        ]
        result = self.router.route(
            link.source_id,
            link.target_id,
            source,
            target,
            obstacles,
            style=link.link_style,
            route_around=link.route_around,
        )

        return ConnectorDrawing(
            link_id=link.id,
            points=result.flat_points(),
            strategy=result.strategy,
            stroke=STROKE_SELECTED if link.selected else STROKE_NORMAL,
            stroke_width=STROKE_WIDTH_SELECTED if link.selected else STROKE_WIDTH_NORMAL,
        )

    def draw_all(
        self, links: List[LinkSpec], cards: Mapping[str, Rect]
    ) -> Dict[str, ConnectorDrawing]:
        """Draw every link that has both ends on the canvas, keyed by link id."""
        drawings: Dict[str, ConnectorDrawing] = {}
        for link in links:
            drawing = self.draw(link, cards)
            if drawing is not None:
                drawings[link.id] = drawing
        return drawings

    def points_for(self, link: LinkSpec, cards: Mapping[str, Rect]) -> List[float]:
        """Flat points for a link; empty when it cannot be drawn."""
        drawing = self.draw(link, cards)
        return drawing.points if drawing is not None else []
