"""Unit tests for the terminals module."""

import pytest

from flowlink.models import Edge, RGB, Style, TerminalKind
from flowlink.terminals import (
    DecorationShape,
    TerminalDecorator,
    arrow_points,
    diamond_points,
)


@pytest.fixture
def decorator():
    return TerminalDecorator()


@pytest.fixture
def style():
    return Style(stroke_width=2, stroke_color=RGB(1.0, 0.0, 0.0))


class TestDecorate:
    """Tests for TerminalDecorator.decorate."""

    def test_none_yields_nothing(self, decorator, style):
        assert decorator.decorate((0, 0), TerminalKind.NONE, style, Edge.RIGHT) is None

    def test_baked_arrow_yields_nothing(self, decorator):
        style = Style(arrow_caps_in_line=True)
        assert decorator.decorate((0, 0), TerminalKind.ARROW, style, Edge.RIGHT) is None

    def test_baked_flag_only_affects_arrows(self, decorator):
        style = Style(arrow_caps_in_line=True)
        spec = decorator.decorate((0, 0), TerminalKind.CIRCLE, style, Edge.RIGHT)
        assert spec is not None

    def test_circle(self, decorator, style):
        spec = decorator.decorate((10, 20), TerminalKind.CIRCLE, style, Edge.LEFT)
        assert spec.shape == DecorationShape.ELLIPSE
        assert spec.size == 5
        assert spec.center == (10, 20)
        assert spec.fill == style.stroke_color
        bounds = spec.bounds()
        assert (bounds.x, bounds.y, bounds.width, bounds.height) == (7.5, 17.5, 5, 5)

    def test_square(self, decorator, style):
        spec = decorator.decorate((10, 20), TerminalKind.SQUARE, style, Edge.LEFT)
        assert spec.shape == DecorationShape.RECTANGLE
        assert spec.size == 5

    def test_diamond(self, decorator, style):
        spec = decorator.decorate((10, 20), TerminalKind.DIAMOND, style, Edge.TOP)
        assert spec.shape == DecorationShape.POLYGON
        assert spec.points == ((10, 17.5), (12.5, 20), (10, 22.5), (7.5, 20))

    def test_arrow_right(self, decorator, style):
        spec = decorator.decorate((50, 25), TerminalKind.ARROW, style, Edge.RIGHT)
        assert spec.shape == DecorationShape.POLYGON
        apex, left, right = spec.points
        assert apex == (54, 25)
        assert sorted([left, right]) == [
            pytest.approx((50, 21.8)),
            pytest.approx((50, 28.2)),
        ]

    @pytest.mark.parametrize(
        "edge,apex",
        [
            (Edge.RIGHT, (104, 100)),
            (Edge.LEFT, (96, 100)),
            (Edge.TOP, (100, 96)),
            (Edge.BOTTOM, (100, 104)),
        ],
    )
    def test_arrow_orientation_follows_edge(self, decorator, style, edge, apex):
        spec = decorator.decorate((100, 100), TerminalKind.ARROW, style, edge)
        assert spec.points[0] == apex
        assert spec.edge == edge

    def test_name_passed_through(self, decorator, style):
        spec = decorator.decorate((0, 0), TerminalKind.SQUARE, style, Edge.TOP, name="flow-1 end")
        assert spec.name == "flow-1 end"


class TestShapeHelpers:
    """Tests for the polygon helpers."""

    def test_diamond_points(self):
        assert diamond_points((0, 0), 1) == ((0, -1), (1, 0), (0, 1), (-1, 0))

    def test_arrow_base_width(self):
        apex, left, right = arrow_points((0, 0), Edge.BOTTOM, 4, 3)
        assert apex == (0, 4)
        assert abs(left[0] - right[0]) == 6
        assert left[1] == right[1] == 0

    def test_arrow_auto_edge_rejected(self):
        with pytest.raises(ValueError):
            arrow_points((0, 0), Edge.AUTO, 4, 3)
