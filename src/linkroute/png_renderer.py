"""
PNG rendering of routing debug sessions.

Draws one recorded RoutingDebugSession so a routing decision can be
inspected visually: the obstacles with their padded no-go zones, every
rejected candidate, and the final path with its arrowhead.
"""

import math
from typing import List, Sequence, Tuple

from PIL import Image, ImageDraw

from .geometry import Point, unflatten
from .strategies import CLEARANCE_MARGIN
from .tracer import RoutingDebugSession


class SessionRenderer:
    """Renders routing sessions as PNG images."""

    def __init__(
        self,
        scale: int = 2,  # For high-resolution output
        margin: int = 40,
        padding: float = CLEARANCE_MARGIN,
        show_rejected: bool = True,
        show_padding: bool = True,
    ):
        self.scale = scale
        self.margin = margin
        self.padding = padding
        self.show_rejected = show_rejected
        self.show_padding = show_padding

        # Colors
        self.bg_color = (255, 255, 255)
        self.padding_fill = (255, 100, 100, 51)
        self.padding_outline = (255, 0, 0, 102)
        self.obstacle_fill = (255, 50, 50, 77)
        self.obstacle_outline = (200, 0, 0, 153)
        self.rejected_color = (240, 170, 170)
        self.line_color = (0, 0, 0)
        self.start_color = (16, 185, 129)
        self.end_color = (33, 150, 243)

        self._origin = (0.0, 0.0)

    def _world_bounds(self, session: RoutingDebugSession) -> Tuple[float, float, float, float]:
        """Bounding box (min_x, min_y, max_x, max_y) of everything drawn."""
        xs: List[float] = [session.start_point.x, session.end_point.x]
        ys: List[float] = [session.start_point.y, session.end_point.y]

        for rect in session.obstacles:
            padded = rect.expanded(self.padding)
            xs.extend((padded.x, padded.x2))
            ys.extend((padded.y, padded.y2))

        paths = [session.final_path] + [s.path_points or [] for s in session.steps]
        for flat in paths:
            xs.extend(flat[0::2])
            ys.extend(flat[1::2])

        return min(xs), min(ys), max(xs), max(ys)

    def _to_image(self, x: float, y: float) -> Tuple[float, float]:
        """Convert world coordinates to image pixels."""
        ox, oy = self._origin
        return (
            (x - ox + self.margin) * self.scale,
            (y - oy + self.margin) * self.scale,
        )

    def _image_points(self, points: Sequence[Point]) -> List[Tuple[float, float]]:
        return [self._to_image(p.x, p.y) for p in points]

    def render(
        self, session: RoutingDebugSession, output_path: str = "routing_session.png"
    ) -> str:
        """
        Render a session as a PNG image.

        Args:
            session: The recorded session to draw
            output_path: Path to save the PNG file

        Returns:
            Path to the saved PNG file
        """
        min_x, min_y, max_x, max_y = self._world_bounds(session)
        self._origin = (min_x, min_y)

        width = int(math.ceil((max_x - min_x + self.margin * 2) * self.scale))
        height = int(math.ceil((max_y - min_y + self.margin * 2) * self.scale))
        # Ensure minimum dimensions (scaled)
        width = max(width, 100 * self.scale)
        height = max(height, 100 * self.scale)

        img = Image.new("RGB", (width, height), self.bg_color)
        draw = ImageDraw.Draw(img, "RGBA")

        self._draw_obstacles(draw, session)

        if self.show_rejected:
            for step in session.rejected_steps():
                if step.path_points:
                    self._draw_path(
                        draw, unflatten(step.path_points), self.rejected_color, 1
                    )

        if len(session.final_path) >= 4:
            final = unflatten(session.final_path)
            self._draw_path(draw, final, self.line_color, 2)
            if final[-2] != final[-1]:
                self._draw_arrowhead(
                    draw, self._to_image(final[-2].x, final[-2].y),
                    self._to_image(final[-1].x, final[-1].y),
                )

        self._draw_marker(draw, session.start_point, self.start_color)
        self._draw_marker(draw, session.end_point, self.end_color)

        img.save(output_path, "PNG")
        return output_path

    def _draw_obstacles(self, draw: ImageDraw.ImageDraw, session: RoutingDebugSession):
        """Draw each obstacle over its padded no-go zone."""
        line_width = max(1, self.scale)
        for rect in session.obstacles:
            if self.show_padding:
                padded = rect.expanded(self.padding)
                draw.rectangle(
                    [self._to_image(padded.x, padded.y), self._to_image(padded.x2, padded.y2)],
                    fill=self.padding_fill,
                    outline=self.padding_outline,
                    width=1,
                )
            draw.rectangle(
                [self._to_image(rect.x, rect.y), self._to_image(rect.x2, rect.y2)],
                fill=self.obstacle_fill,
                outline=self.obstacle_outline,
                width=line_width,
            )

    def _draw_path(
        self,
        draw: ImageDraw.ImageDraw,
        points: Sequence[Point],
        color: Tuple[int, ...],
        weight: int,
    ):
        """Draw a polyline segment by segment."""
        line_width = max(1, weight * self.scale)
        pixels = self._image_points(points)
        for i in range(len(pixels) - 1):
            draw.line([pixels[i], pixels[i + 1]], fill=color, width=line_width)

    def _draw_marker(self, draw: ImageDraw.ImageDraw, point: Point, color: Tuple[int, ...]):
        r = 3 * self.scale
        x, y = self._to_image(point.x, point.y)
        draw.ellipse([x - r, y - r, x + r, y + r], fill=color)

    def _draw_arrowhead(
        self,
        draw: ImageDraw.ImageDraw,
        from_point: Tuple[float, float],
        to_point: Tuple[float, float],
    ):
        """Draw an arrowhead at the end of a line."""
        x1, y1 = from_point
        x2, y2 = to_point

        arrow_size = 8 * self.scale

        # Calculate angle
        angle = math.atan2(y2 - y1, x2 - x1)

        # Calculate arrowhead points
        angle1 = angle + math.pi * 0.8
        angle2 = angle - math.pi * 0.8

        ax1 = x2 + arrow_size * math.cos(angle1)
        ay1 = y2 + arrow_size * math.sin(angle1)
        ax2 = x2 + arrow_size * math.cos(angle2)
        ay2 = y2 + arrow_size * math.sin(angle2)

        # Draw filled arrowhead
        draw.polygon([(x2, y2), (ax1, ay1), (ax2, ay2)], fill=self.line_color)


def render_session_to_png(
    session: RoutingDebugSession, output_path: str = "routing_session.png", **kwargs
) -> str:
    """
    Convenience function to render a routing session to PNG.

    Args:
        session: The session to draw
        output_path: Path to save the PNG file
        **kwargs: Additional parameters for SessionRenderer

    Returns:
        Path to the saved PNG file
    """
    renderer = SessionRenderer(**kwargs)
    return renderer.render(session, output_path)
