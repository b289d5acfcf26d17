"""Unit tests for the connector render adapter."""

import pytest

from linkroute.adapter import (
    CARD_HEIGHT,
    CARD_WIDTH,
    HIT_STROKE_WIDTH,
    STROKE_NORMAL,
    STROKE_SELECTED,
    STROKE_WIDTH_NORMAL,
    STROKE_WIDTH_SELECTED,
    ConnectorRenderAdapter,
    LinkAction,
    LinkSpec,
    apply_link_action,
    card_rect,
)
from linkroute.geometry import Rect
from linkroute.router import LinkStyle


@pytest.fixture
def cards():
    return {
        "a": card_rect(0, 0),
        "b": card_rect(400, 0),
        "c": Rect(250, 0, 100, 120),
    }


@pytest.fixture
def adapter():
    return ConnectorRenderAdapter()


class TestCardRect:
    def test_default_size(self):
        assert card_rect(10, 20) == Rect(10, 20, CARD_WIDTH, CARD_HEIGHT)

    def test_custom_size(self):
        assert card_rect(0, 0, 50, 40) == Rect(0, 0, 50, 40)


class TestLinkActions:
    """Tests for apply_link_action."""

    def test_unset_is_a_no_op(self):
        link = LinkSpec("l1", "a", "b")
        assert apply_link_action(link, LinkAction.UNSET) is link

    def test_select(self):
        link = apply_link_action(LinkSpec("l1", "a", "b"), LinkAction.SELECT)
        assert link.selected

    def test_toggle_style(self):
        link = LinkSpec("l1", "a", "b")
        toggled = apply_link_action(link, LinkAction.TOGGLE_STYLE)
        assert toggled.link_style is LinkStyle.ORTHOGONAL
        assert apply_link_action(toggled, LinkAction.TOGGLE_STYLE).link_style is LinkStyle.STRAIGHT

    def test_toggle_route_around(self):
        link = apply_link_action(LinkSpec("l1", "a", "b"), LinkAction.TOGGLE_ROUTE_AROUND)
        assert link.route_around

    def test_original_untouched(self):
        link = LinkSpec("l1", "a", "b")
        apply_link_action(link, LinkAction.SELECT)
        assert not link.selected


class TestConnectorRenderAdapter:
    """Tests for ConnectorRenderAdapter."""

    def test_default_link_is_straight(self, adapter, cards):
        drawing = adapter.draw(LinkSpec("l1", "a", "b"), cards)

        assert drawing.link_id == "l1"
        assert drawing.strategy == "straight"
        assert drawing.points == [200, 60, 400, 60]
        assert drawing.stroke == STROKE_NORMAL
        assert drawing.stroke_width == STROKE_WIDTH_NORMAL
        assert drawing.hit_stroke_width == HIT_STROKE_WIDTH

    def test_route_around_avoids_other_cards(self, adapter, cards):
        link = LinkSpec("l1", "a", "b", LinkStyle.ORTHOGONAL, route_around=True)
        drawing = adapter.draw(link, cards)

        assert drawing.strategy == "double-bend"
        assert drawing.points == [200, 60, 200, -20, 400, -20, 400, 60]

    def test_endpoints_are_not_obstacles(self, adapter):
        cards = {"a": card_rect(0, 0), "b": card_rect(400, 0)}
        link = LinkSpec("l1", "a", "b", LinkStyle.ORTHOGONAL, route_around=True)
        assert adapter.draw(link, cards).strategy == "straight"

    def test_selected_stroke(self, adapter, cards):
        drawing = adapter.draw(LinkSpec("l1", "a", "b", selected=True), cards)
        assert drawing.stroke == STROKE_SELECTED
        assert drawing.stroke_width == STROKE_WIDTH_SELECTED

    def test_missing_card(self, adapter, cards):
        link = LinkSpec("l1", "a", "gone")
        assert adapter.draw(link, cards) is None
        assert adapter.points_for(link, cards) == []

    def test_draw_all_skips_undrawable_links(self, adapter, cards):
        links = [LinkSpec("l1", "a", "b"), LinkSpec("l2", "gone", "b"), LinkSpec("l3", "c", "a")]
        drawings = adapter.draw_all(links, cards)
        assert sorted(drawings) == ["l1", "l3"]

    def test_points_for(self, adapter, cards):
        assert adapter.points_for(LinkSpec("l1", "a", "b"), cards) == [200, 60, 400, 60]
