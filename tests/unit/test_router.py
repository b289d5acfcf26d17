"""Unit tests for the link router state machine."""

import pytest

from linkroute.geometry import Point, Rect, flatten
from linkroute.router import (
    ACCEPTED,
    INAPPLICABLE,
    OVERLAP_REASON,
    REJECTED,
    LinkRouter,
    LinkStyle,
    RouteResult,
    RoutingState,
    next_state,
)
from linkroute.strategies import double_bend_candidates, is_clear


class TestNextState:
    """Tests for the transition predicate."""

    def test_unresolved_advances(self):
        assert next_state(RoutingState.IDLE, False) is RoutingState.STRAIGHT_ATTEMPT
        assert next_state(RoutingState.STRAIGHT_ATTEMPT, False) is RoutingState.BEND_ATTEMPT
        assert next_state(RoutingState.BEND_ATTEMPT, False) is RoutingState.DETOUR_ATTEMPT
        assert next_state(RoutingState.DETOUR_ATTEMPT, False) is RoutingState.RESOLVED

    @pytest.mark.parametrize("state", list(RoutingState))
    def test_resolved_ends(self, state):
        assert next_state(state, True) is RoutingState.RESOLVED

    def test_resolved_is_terminal(self):
        assert next_state(RoutingState.RESOLVED, False) is RoutingState.RESOLVED


class TestLinkStyle:
    def test_parse_values(self):
        assert LinkStyle.parse("straight") is LinkStyle.STRAIGHT
        assert LinkStyle.parse("Orthogonal") is LinkStyle.ORTHOGONAL
        assert LinkStyle.parse(LinkStyle.ORTHOGONAL) is LinkStyle.ORTHOGONAL

    def test_free_means_straight(self):
        assert LinkStyle.parse("free") is LinkStyle.STRAIGHT

    def test_unknown_style(self):
        with pytest.raises(ValueError, match="unknown link style"):
            LinkStyle.parse("curvy")


class TestRouteResult:
    def test_accessors(self):
        result = RouteResult(points=[Point(0, 0), Point(10, 0)], strategy="straight")
        assert result.start == Point(0, 0)
        assert result.end == Point(10, 0)
        assert result.flat_points() == [0, 0, 10, 0]


class TestStraightRouting:
    """Routes that resolve in the straight attempt."""

    def test_no_obstacles(self, router, source_rect, target_rect):
        result = router.route("a", "b", source_rect, target_rect, [])

        assert result.strategy == "straight"
        assert result.points == [Point(200, 60), Point(400, 60)]
        assert result.states == [
            RoutingState.IDLE,
            RoutingState.STRAIGHT_ATTEMPT,
            RoutingState.RESOLVED,
        ]
        assert len(result.steps) == 1
        assert result.steps[0].decision == ACCEPTED
        assert not result.steps[0].rejected

    def test_route_around_disabled(self, router, source_rect, target_rect, blocking_obstacle):
        result = router.route(
            "a", "b", source_rect, target_rect, [blocking_obstacle], route_around=False
        )

        assert result.strategy == "straight"
        assert len(result.points) == 2
        assert len(result.steps) == 1
        assert "obstacles ignored" in result.steps[0].description

    @pytest.mark.parametrize("style", ["straight", "free", LinkStyle.STRAIGHT])
    def test_straight_style_ignores_obstacles(
        self, router, source_rect, target_rect, blocking_obstacle, style
    ):
        result = router.route(
            "a", "b", source_rect, target_rect, [blocking_obstacle], style=style
        )
        assert result.strategy == "straight"
        assert len(result.points) == 2

    def test_invalid_style(self, router, source_rect, target_rect):
        with pytest.raises(ValueError):
            router.route("a", "b", source_rect, target_rect, [], style="curvy")


class TestBendRouting:
    """Routes that resolve in the bend attempt."""

    def test_obstacle_between_cards(self, router, source_rect, target_rect, blocking_obstacle):
        result = router.route("a", "b", source_rect, target_rect, [blocking_obstacle])

        assert result.strategy == "double-bend"
        assert result.points == [
            Point(200, 60),
            Point(200, -20),
            Point(400, -20),
            Point(400, 60),
        ]
        assert is_clear(result.points, [blocking_obstacle])
        assert result.states == [
            RoutingState.IDLE,
            RoutingState.STRAIGHT_ATTEMPT,
            RoutingState.BEND_ATTEMPT,
            RoutingState.RESOLVED,
        ]

    def test_trace_of_obstacle_between_cards(
        self, router, source_rect, target_rect, blocking_obstacle
    ):
        steps = router.route("a", "b", source_rect, target_rect, [blocking_obstacle]).steps

        assert [s.step for s in steps] == [1, 2, 3]
        assert steps[0].decision == REJECTED
        assert "obstacle #0" in steps[0].reason
        assert steps[1].description == "single-bend"
        assert steps[1].decision == INAPPLICABLE
        assert steps[1].path_points is None
        assert steps[2].description == "double-bend (u-above y=-20)"
        assert steps[2].decision == ACCEPTED
        assert steps[2].path_points == [200, 60, 200, -20, 400, -20, 400, 60]

    def test_single_bend(self, router):
        source = Rect(0, 0, 200, 120)
        target = Rect(600, 200, 200, 120)
        obstacle = Rect(300, 100, 100, 100)
        result = router.route("a", "b", source, target, [obstacle])

        assert result.strategy == "single-bend"
        assert len(result.points) == 3
        assert is_clear(result.points, [obstacle])

    def test_vertical_routing(self, router):
        source = Rect(0, 0, 200, 120)
        target = Rect(0, 400, 200, 120)
        obstacle = Rect(0, 200, 200, 100)
        result = router.route("a", "b", source, target, [obstacle])

        assert result.strategy == "double-bend"
        assert result.points == [
            Point(100, 120),
            Point(-20, 120),
            Point(-20, 400),
            Point(100, 400),
        ]


class TestDetourRouting:
    def test_detour_when_bends_blocked(
        self, router, source_rect, target_rect, blocking_obstacle
    ):
        # Small cards pinning both U legs at x=200
        obstacles = [blocking_obstacle, Rect(195, -18, 10, 10), Rect(195, 128, 10, 10)]
        result = router.route("a", "b", source_rect, target_rect, obstacles)

        assert result.strategy == "detour"
        assert len(result.points) == 6
        assert is_clear(result.points, obstacles)
        assert result.states[-2:] == [RoutingState.DETOUR_ATTEMPT, RoutingState.RESOLVED]
        assert result.steps[-1].description == "detour (above obstacle #0)"


class TestFallbacks:
    """Routes where no candidate clears every obstacle."""

    def test_fallback_uses_first_double_bend(
        self, router, source_rect, target_rect, blocking_obstacle
    ):
        # An obstacle around the start anchor blocks every candidate
        obstacles = [blocking_obstacle, Rect(190, 50, 20, 20)]
        result = router.route("a", "b", source_rect, target_rect, obstacles)

        expected = double_bend_candidates(Point(200, 60), Point(400, 60), obstacles)[0]
        assert result.strategy == "fallback"
        assert result.points == expected.points
        last = result.steps[-1]
        assert last.decision == "fallback"
        assert not last.rejected
        assert last.path_points == flatten(expected.points)

    def test_direct_last_resort(self, router):
        source = Rect(0, 0, 200, 120)
        target = Rect(200, 0, 200, 120)
        obstacle = Rect(190, 50, 20, 20)
        result = router.route("a", "b", source, target, [obstacle])

        assert result.strategy == "direct"
        assert result.points == [Point(200, 60), Point(200, 60)]
        assert len(result.states) == 5

    def test_identical_rects(self, router, source_rect):
        result = router.route("a", "a", source_rect, source_rect, [])

        assert result.strategy == "direct"
        assert result.points == [Point(100, 60), Point(100, 60)]
        assert result.steps[0].decision == INAPPLICABLE
        assert result.steps[0].reason == OVERLAP_REASON
        assert result.steps[-1].decision == ACCEPTED

    @pytest.mark.parametrize(
        "style, route_around",
        [(LinkStyle.ORTHOGONAL, False), (LinkStyle.STRAIGHT, True)],
    )
    def test_identical_rects_ignoring_obstacles(self, router, source_rect, style, route_around):
        result = router.route(
            "a", "a", source_rect, source_rect, [Rect(90, 50, 20, 20)],
            style=style, route_around=route_around,
        )

        assert result.strategy == "direct"
        assert result.points == [Point(100, 60), Point(100, 60)]
        assert len(result.steps) == 1
        assert result.steps[0].decision == ACCEPTED
        assert result.states == [
            RoutingState.IDLE,
            RoutingState.STRAIGHT_ATTEMPT,
            RoutingState.RESOLVED,
        ]

    def test_partial_overlap_skips_bends_and_detour(self, router):
        source = Rect(0, 0, 200, 120)
        target = Rect(100, 0, 200, 120)
        obstacle = Rect(120, 50, 40, 20)
        result = router.route("a", "b", source, target, [obstacle])

        assert result.strategy == "direct"
        assert result.points == [Point(200, 60), Point(100, 60)]
        reasons = [s.reason for s in result.steps if s.decision == INAPPLICABLE]
        assert reasons == [OVERLAP_REASON, OVERLAP_REASON]

    def test_partial_overlap_without_blockers_is_straight(self, router):
        result = router.route("a", "b", Rect(0, 0, 200, 120), Rect(100, 0, 200, 120), [])
        assert result.strategy == "straight"


class TestRouterProperties:
    def test_deterministic(self, router, source_rect, target_rect, blocking_obstacle):
        first = router.route("a", "b", source_rect, target_rect, [blocking_obstacle])
        router.route("x", "y", Rect(0, 0, 10, 10), Rect(500, 500, 10, 10), [])
        second = router.route("a", "b", source_rect, target_rect, [blocking_obstacle])

        assert first.points == second.points
        assert first.strategy == second.strategy
        assert first.steps == second.steps

    def test_final_path_matches_last_step(
        self, router, source_rect, target_rect, blocking_obstacle
    ):
        result = router.route("a", "b", source_rect, target_rect, [blocking_obstacle])
        assert result.steps[-1].path_points == result.flat_points()

    def test_custom_margin(self, source_rect, target_rect, blocking_obstacle):
        router = LinkRouter(margin=40)
        result = router.route("a", "b", source_rect, target_rect, [blocking_obstacle])
        assert result.points[1] == Point(200, -40)
