"""
Decision tracing records for link routing.

Every routing call can be captured as a RoutingDebugSession: where the
connector starts and ends, which obstacles were in play, each candidate the
router tried (RoutingStep), and the path it finally chose.

This is primarily useful for:
1. Debugging routing choices (why did this link detour instead of bending?)
2. Writing targeted tests (asserting which strategies were rejected and why)
3. Visual inspection (see png_renderer.SessionRenderer)

Sessions serialize to plain dicts with camelCase keys so the persisted history
stays readable by any consumer of the JSON blob.

Usage:
    >>> recorder = RoutingDebugRecorder(MemoryStore())
    >>> recorder.enable()
    >>> router = LinkRouter(recorder=recorder)
    >>> router.route("a", "b", Rect(0, 0, 200, 120), Rect(400, 0, 200, 120), [])
    >>> print(recorder.get_latest_session().summary())
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .geometry import Point, Rect


def format_path(flat: Sequence[float]) -> str:
    """Format a flat coordinate list as "(x, y) → (x, y) → ..."."""
    coords = []
    for i in range(0, len(flat) - 1, 2):
        coords.append(f"({flat[i]:g}, {flat[i + 1]:g})")
    return " → ".join(coords)


def _flat_coords(values: Sequence[Any]) -> List[float]:
    """Read a persisted flat coordinate list; it must hold whole points."""
    if not isinstance(values, list):
        raise ValueError(f"expected a coordinate list, got {type(values).__name__}")
    coords = [float(v) for v in values]
    if len(coords) % 2:
        raise ValueError("flat coordinate list must have even length")
    return coords


@dataclass(frozen=True)
class RoutingStep:
    """
    Record of a single routing attempt.

    Attributes:
        step: Position in the session, starting at 1
        description: Strategy and shape variant, e.g. "single-bend (vertical-first)"
        decision: Outcome label ("accepted", "rejected", "inapplicable", "fallback")
        path_points: Flat coordinates of the candidate path, if there was one
        rejected: Whether the candidate was turned down
        reason: Why it was turned down (blocking obstacle, inapplicable shape)
    """

    step: int
    description: str
    decision: str
    path_points: Optional[List[float]] = None
    rejected: bool = False
    reason: Optional[str] = None

    def __str__(self) -> str:
        line = f"{self.step:3d}. {self.description}: {self.decision}"
        if self.reason:
            line += f" [{self.reason}]"
        if self.path_points:
            line += f"\n     {format_path(self.path_points)}"
        return line

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "description": self.description,
            "decision": self.decision,
            "pathPoints": list(self.path_points) if self.path_points is not None else None,
            "rejected": self.rejected,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoutingStep":
        points = data.get("pathPoints")
        rejected = data.get("rejected", False)
        if not isinstance(rejected, bool):
            raise ValueError(f"rejected must be a boolean, got {rejected!r}")
        reason = data.get("reason")
        if reason is not None and not isinstance(reason, str):
            raise ValueError(f"reason must be a string, got {reason!r}")
        return cls(
            step=int(data["step"]),
            description=str(data["description"]),
            decision=str(data["decision"]),
            path_points=_flat_coords(points) if points is not None else None,
            rejected=rejected,
            reason=reason,
        )


@dataclass
class RoutingDebugSession:
    """
    Complete record of one routing invocation.

    A session is opened when routing of a link begins, collects one
    RoutingStep per attempt, and is sealed with the final path and strategy.

    Attributes:
        source_id: Id of the source card
        target_id: Id of the target card
        timestamp: Milliseconds since the epoch when the session was opened
        start_point: Anchor the connector leaves from
        end_point: Anchor the connector arrives at
        obstacles: Snapshot of the obstacle rects
        steps: Attempts in the order they were made
        final_path: Flat coordinates of the chosen path
        final_strategy: Name of the strategy that produced it
    """

    source_id: str
    target_id: str
    timestamp: int
    start_point: Point
    end_point: Point
    obstacles: List[Rect] = field(default_factory=list)
    steps: List[RoutingStep] = field(default_factory=list)
    final_path: List[float] = field(default_factory=list)
    final_strategy: str = ""

    def add_step(
        self,
        description: str,
        decision: str,
        path_points: Optional[Sequence[float]] = None,
        rejected: bool = False,
        reason: Optional[str] = None,
    ) -> RoutingStep:
        """Append a step, numbering it after the existing ones."""
        step = RoutingStep(
            step=len(self.steps) + 1,
            description=description,
            decision=decision,
            path_points=list(path_points) if path_points is not None else None,
            rejected=rejected,
            reason=reason,
        )
        self.steps.append(step)
        return step

    def get_step(self, number: int) -> Optional[RoutingStep]:
        """Get a step by its 1-based number."""
        if 1 <= number <= len(self.steps):
            return self.steps[number - 1]
        return None

    def accepted_steps(self) -> List[RoutingStep]:
        return [s for s in self.steps if not s.rejected]

    def rejected_steps(self) -> List[RoutingStep]:
        return [s for s in self.steps if s.rejected]

    def get_steps_by_description(self, substring: str) -> List[RoutingStep]:
        """Get all steps whose description contains substring."""
        return [s for s in self.steps if substring in s.description]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceId": self.source_id,
            "targetId": self.target_id,
            "timestamp": self.timestamp,
            "startPoint": self.start_point.to_dict(),
            "endPoint": self.end_point.to_dict(),
            "obstacles": [r.to_dict() for r in self.obstacles],
            "steps": [s.to_dict() for s in self.steps],
            "finalPath": list(self.final_path),
            "finalStrategy": self.final_strategy,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoutingDebugSession":
        """
        Rebuild a session from its persisted form.

        Raises KeyError, TypeError or ValueError on malformed input; the
        recorder treats any of these as corrupt history.
        """
        return cls(
            source_id=str(data["sourceId"]),
            target_id=str(data["targetId"]),
            timestamp=int(data["timestamp"]),
            start_point=Point.from_dict(data["startPoint"]),
            end_point=Point.from_dict(data["endPoint"]),
            obstacles=[Rect.from_dict(r) for r in data["obstacles"]],
            steps=[RoutingStep.from_dict(s) for s in data["steps"]],
            final_path=_flat_coords(data["finalPath"]),
            final_strategy=str(data["finalStrategy"]),
        )

    def summary(self) -> str:
        """
        Generate a human-readable overview of the session.

        Mirrors the session overview of the debug viewer: ids, anchors,
        obstacle count, final strategy and step counts.
        """
        when = datetime.fromtimestamp(self.timestamp / 1000).strftime("%H:%M:%S")
        lines = [
            "=" * 60,
            "ROUTING SESSION SUMMARY",
            "=" * 60,
            "",
            f"Source ID: {self.source_id}",
            f"Target ID: {self.target_id}",
            f"Time: {when}",
            f"Start Point: ({self.start_point.x:g}, {self.start_point.y:g})",
            f"End Point: ({self.end_point.x:g}, {self.end_point.y:g})",
            f"Obstacles: {len(self.obstacles)}",
            f"Final Strategy: {self.final_strategy}",
            f"Final Path: {format_path(self.final_path)}",
            "",
            f"Steps: {len(self.steps)} "
            f"({len(self.rejected_steps())} rejected, "
            f"{len(self.accepted_steps())} accepted)",
        ]
        return "\n".join(lines)

    def dump(self) -> str:
        """
        Generate a complete dump: summary, every obstacle and every step.
        """
        lines = [self.summary(), "", "OBSTACLES:", "-" * 40]
        if not self.obstacles:
            lines.append("(none)")
        for idx, rect in enumerate(self.obstacles):
            lines.append(
                f"Obstacle {idx + 1}: x={rect.x:g}, y={rect.y:g}, "
                f"w={rect.width:g}, h={rect.height:g}"
            )

        lines.extend(["", "ROUTING STEPS:", "-" * 40])
        for step in self.steps:
            lines.append(str(step))

        return "\n".join(lines)

    def dump_to_file(self, filename: str) -> None:
        """Write the complete session dump to a file."""
        with open(filename, "w", encoding="utf-8") as f:
            f.write(self.dump())
