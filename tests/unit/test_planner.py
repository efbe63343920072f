"""Unit tests for the planner module."""

import pytest

from flowlink.models import Edge, Style, TerminalKind
from flowlink.obstacles import ObstacleDetector
from flowlink.planner import (
    OBSTACLE_CLEARANCE,
    LineSpec,
    PathPlanner,
    Segment,
    StrokeCap,
    build_line_spec,
    build_vector_network,
    orthogonal_path,
)


ORTHO = Style(orthogonal=True, avoid_obstacles=False)
ORTHO_AVOID = Style(orthogonal=True, avoid_obstacles=True)


class TestOrthogonalPath:
    """Tests for the orthogonal route builder."""

    def test_horizontal_edges_two_bends(self):
        path = orthogonal_path((50, 25), (200, 125), Edge.RIGHT, Edge.LEFT)
        assert path == [(50, 25), (125, 25), (125, 125), (200, 125)]

    def test_vertical_edges_two_bends(self):
        path = orthogonal_path((25, 50), (125, 200), Edge.BOTTOM, Edge.TOP)
        assert path == [(25, 50), (25, 125), (125, 125), (125, 200)]

    def test_mixed_axes_start_horizontal(self):
        path = orthogonal_path((50, 25), (225, 200), Edge.RIGHT, Edge.TOP)
        assert path == [(50, 25), (225, 25), (225, 200)]

    def test_mixed_axes_start_vertical(self):
        path = orthogonal_path((25, 50), (200, 225), Edge.BOTTOM, Edge.LEFT)
        assert path == [(25, 50), (25, 225), (200, 225)]

    def test_midline_override(self):
        path = orthogonal_path((50, 25), (200, 125), Edge.RIGHT, Edge.LEFT, midline=175)
        assert path[1] == (175, 25)
        assert path[2] == (175, 125)


class TestPathPlanner:
    """Tests for PathPlanner.plan_path."""

    @pytest.fixture
    def planner(self):
        return PathPlanner()

    def test_straight_scenario(self, planner):
        style = Style(orthogonal=False, avoid_obstacles=False)
        path = planner.plan_path((0, 0), (100, 100), Edge.RIGHT, Edge.LEFT, style)
        assert path == [(0, 0), (100, 100)]

    def test_orthogonal_endpoints_exact(self, planner):
        start, end = (50.5, 25.25), (200.75, 130.125)
        path = planner.plan_path(start, end, Edge.RIGHT, Edge.LEFT, ORTHO)
        assert path[0] == start
        assert path[-1] == end

    @pytest.mark.parametrize(
        "start_edge,end_edge,bends",
        [
            (Edge.RIGHT, Edge.LEFT, 2),
            (Edge.BOTTOM, Edge.TOP, 2),
            (Edge.RIGHT, Edge.TOP, 1),
            (Edge.TOP, Edge.LEFT, 1),
        ],
    )
    def test_bend_count(self, planner, start_edge, end_edge, bends):
        path = planner.plan_path((0, 0), (100, 80), start_edge, end_edge, ORTHO)
        assert len(path) - 2 == bends

    def test_idempotent(self, planner):
        first = planner.plan_path((0, 0), (100, 80), Edge.RIGHT, Edge.LEFT, ORTHO)
        second = planner.plan_path((0, 0), (100, 80), Edge.RIGHT, Edge.LEFT, ORTHO)
        assert first == second

    def test_coincident_anchors_give_two_points(self, planner):
        path = planner.plan_path((10, 10), (10, 10), Edge.RIGHT, Edge.LEFT, ORTHO)
        assert path == [(10, 10), (10, 10)]

    def test_avoidance_without_detector_is_plain_route(self, planner):
        path = planner.plan_path((50, 25), (200, 25), Edge.RIGHT, Edge.LEFT, ORTHO_AVOID)
        assert path == [(50, 25), (125, 25), (125, 25), (200, 25)]


class TestObstacleAvoidance:
    """Tests for the clearance detour."""

    def test_no_obstacle_standard_route(self, side_by_side):
        planner = PathPlanner(ObstacleDetector(side_by_side))
        path = planner.plan_path(
            (50, 25), (200, 25), Edge.RIGHT, Edge.LEFT, ORTHO_AVOID, exclude_ids={"a", "b"}
        )
        assert path == [(50, 25), (125, 25), (125, 25), (200, 25)]

    def test_obstacle_shifts_midline(self, side_by_side):
        side_by_side.add_object("blocker", 100, 0, 20, 50)
        planner = PathPlanner(ObstacleDetector(side_by_side))
        plain = orthogonal_path((50, 25), (200, 25), Edge.RIGHT, Edge.LEFT)
        path = planner.plan_path(
            (50, 25), (200, 25), Edge.RIGHT, Edge.LEFT, ORTHO_AVOID, exclude_ids={"a", "b"}
        )
        assert path[0] == (50, 25)
        assert path[-1] == (200, 25)
        assert abs(path[1][0] - plain[1][0]) >= OBSTACLE_CLEARANCE
        # Obstacle center (110) is left of the midline (125): push right
        assert path[1] == (175, 25)

    def test_obstacle_right_of_midline_pushes_left(self, side_by_side):
        side_by_side.add_object("blocker", 140, 0, 20, 50)
        planner = PathPlanner(ObstacleDetector(side_by_side))
        path = planner.plan_path(
            (50, 25), (200, 25), Edge.RIGHT, Edge.LEFT, ORTHO_AVOID, exclude_ids={"a", "b"}
        )
        assert path[1] == (75, 25)

    def test_vertical_detour(self, stacked):
        stacked.add_object("blocker", 0, 100, 50, 20)
        planner = PathPlanner(ObstacleDetector(stacked))
        path = planner.plan_path(
            (25, 50), (25, 200), Edge.BOTTOM, Edge.TOP, ORTHO_AVOID, exclude_ids={"a", "b"}
        )
        assert path == [(25, 50), (25, 175), (25, 175), (25, 200)]

    def test_custom_clearance(self, side_by_side):
        side_by_side.add_object("blocker", 100, 0, 20, 50)
        planner = PathPlanner(ObstacleDetector(side_by_side), clearance=20)
        path = planner.plan_path(
            (50, 25), (200, 25), Edge.RIGHT, Edge.LEFT, ORTHO_AVOID, exclude_ids={"a", "b"}
        )
        assert path[1] == (145, 25)

    def test_narrow_gap_overshoots_far_anchor(self, scene):
        scene.add_object("blocker", 70, 0, 10, 50)
        planner = PathPlanner(ObstacleDetector(scene))
        path = planner.plan_path((50, 25), (100, 25), Edge.RIGHT, Edge.LEFT, ORTHO_AVOID)
        assert path == [(50, 25), (125, 25), (125, 25), (100, 25)]

    def test_straight_style_detours_around_obstacle(self, side_by_side):
        side_by_side.add_object("blocker", 100, 0, 20, 50)
        planner = PathPlanner(ObstacleDetector(side_by_side))
        style = Style(orthogonal=False, avoid_obstacles=True)
        path = planner.plan_path(
            (50, 25), (200, 25), Edge.RIGHT, Edge.LEFT, style, exclude_ids={"a", "b"}
        )
        assert len(path) == 4

    def test_disabled_avoidance_ignores_obstacle(self, side_by_side):
        side_by_side.add_object("blocker", 100, 0, 20, 50)
        planner = PathPlanner(ObstacleDetector(side_by_side))
        path = planner.plan_path(
            (50, 25), (200, 25), Edge.RIGHT, Edge.LEFT, ORTHO, exclude_ids={"a", "b"}
        )
        assert path[1] == (125, 25)

    def test_mixed_axes_keep_single_bend(self, scene):
        scene.add_object("blocker", 100, 0, 20, 50)
        planner = PathPlanner(ObstacleDetector(scene))
        path = planner.plan_path((50, 25), (225, 200), Edge.RIGHT, Edge.TOP, ORTHO_AVOID)
        assert path == [(50, 25), (225, 25), (225, 200)]


class TestVectorNetwork:
    """Tests for vector network construction."""

    POINTS = [(0, 0), (100, 0), (100, 100), (200, 100)]

    def test_vertices_and_segments(self):
        network = build_vector_network(self.POINTS, Style(corner_radius=0))
        assert network.points == self.POINTS
        assert network.segments == (Segment(0, 1), Segment(1, 2), Segment(2, 3))

    def test_tangents_neutral(self):
        network = build_vector_network(self.POINTS, Style())
        for segment in network.segments:
            assert segment.tangent_start == (0.0, 0.0)
            assert segment.tangent_end == (0.0, 0.0)

    def test_corner_radius_on_interior_only(self):
        network = build_vector_network(self.POINTS, Style(corner_radius=10))
        assert [v.corner_radius for v in network.vertices] == [0, 10, 10, 0]

    def test_caps_when_arrows_baked(self):
        style = Style(
            start_terminal=TerminalKind.ARROW,
            end_terminal=TerminalKind.ARROW,
            arrow_caps_in_line=True,
        )
        network = build_vector_network(self.POINTS, style)
        caps = [v.stroke_cap for v in network.vertices]
        assert caps == [StrokeCap.ARROW_LINES, StrokeCap.NONE, StrokeCap.NONE, StrokeCap.ARROW_LINES]

    def test_end_cap_only(self):
        style = Style(end_terminal=TerminalKind.ARROW, arrow_caps_in_line=True)
        network = build_vector_network(self.POINTS, style)
        assert network.vertices[0].stroke_cap == StrokeCap.NONE
        assert network.vertices[-1].stroke_cap == StrokeCap.ARROW_LINES

    def test_no_caps_for_separate_decorations(self):
        network = build_vector_network(self.POINTS, Style(end_terminal=TerminalKind.ARROW))
        assert all(v.stroke_cap == StrokeCap.NONE for v in network.vertices)

    def test_two_point_network(self):
        style = Style(end_terminal=TerminalKind.ARROW, arrow_caps_in_line=True)
        network = build_vector_network([(0, 0), (10, 10)], style)
        assert network.vertices[1].stroke_cap == StrokeCap.ARROW_LINES
        assert len(network.segments) == 1

    def test_too_few_points(self):
        with pytest.raises(ValueError):
            build_vector_network([(0, 0)], Style())

    def test_path_data(self):
        network = build_vector_network([(0, 0), (10.5, 0), (10.5, 20)], Style())
        assert network.to_path_data() == "M 0 0 L 10.5 0 L 10.5 20"

    def test_line_spec(self):
        style = Style(stroke_width=3)
        spec = build_line_spec("Flow: A → B", self.POINTS, style)
        assert isinstance(spec, LineSpec)
        assert spec.points == self.POINTS
        assert spec.stroke_width == 3
        assert spec.dash_pattern == ()
        bounds = spec.bounds()
        assert (bounds.x, bounds.y, bounds.width, bounds.height) == (0, 0, 200, 100)
