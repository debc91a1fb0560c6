import pytest

from flowgraph.core import PathSynthesizer
from flowgraph.core.GraphPrimitives import Point
from flowgraph.core.Types import CurveMode


class TestCurve:

    def test_symmetric_forward_curve(self):
        seg = PathSynthesizer.curve((0, 0), (100, 0), 0.5)
        assert seg.control1 == Point(50, 0)
        assert seg.control2 == Point(50, 0)

    def test_control_points_stay_at_endpoint_heights(self):
        seg = PathSynthesizer.curve((0, 10), (200, 90), 0.25)
        assert seg.control1 == Point(50, 10)
        assert seg.control2 == Point(150, 90)

    def test_forward_segments_ignore_mode(self):
        for mode in CurveMode:
            seg = PathSynthesizer.curve((0, 0), (100, 0), 0.5, mode)
            assert (seg.control1.x, seg.control2.x) == (50, 50)

    @pytest.mark.parametrize("mode, expected", [
        (CurveMode.SYMMETRIC, (150, -50)),
        (CurveMode.OPEN, (150, 50)),
        (CurveMode.CLOSE, (50, -50)),
        (CurveMode.OTHER, (50, 50)),
    ])
    def test_backward_tie_breaks(self, mode, expected):
        """x0 >= x1: the mode decides which way each control point is pushed."""
        seg = PathSynthesizer.curve((100, 0), (0, 0), 0.5, mode)
        assert (seg.control1.x, seg.control2.x) == expected

    def test_equal_x_counts_as_backward(self):
        seg = PathSynthesizer.curve((10, 0), (10, 50), 0.5, CurveMode.OPEN)
        assert seg.control1 == Point(10, 0)
        assert seg.control2 == Point(10, 50)

    def test_svg_rendering(self):
        seg = PathSynthesizer.curve((0, 0), (100, 20.5), 0.5)
        assert seg.to_svg() == "M 0 0 C 50 0 50 20.5 100 20.5"

    def test_point_at_endpoints(self):
        seg = PathSynthesizer.curve((0, 0), (100, 40), 0.5)
        assert seg.point_at(0) == Point(0, 0)
        assert seg.point_at(1) == Point(100, 40)


class TestPath:

    def test_no_points_single_symmetric_segment(self):
        segments = PathSynthesizer.path((0, 0), (100, 0), [], 0.5)
        assert len(segments) == 1
        assert segments[0].mode == CurveMode.SYMMETRIC
        assert segments[0].control1 == Point(50, 0)
        assert segments[0].control2 == Point(50, 0)

    def test_no_points_uses_base_curvature_when_given(self):
        seg = PathSynthesizer.path((0, 0), (100, 0), [], curvature_end=0.5, curvature=0.1)[0]
        assert seg.control1 == Point(10, 0)

    def test_single_point_open_then_close(self):
        segments = PathSynthesizer.path((0, 0), (100, 0), [(50, 50)], curvature_end=0.5, curvature_mid=0.9)
        assert [s.mode for s in segments] == [CurveMode.OPEN, CurveMode.CLOSE]
        assert segments[0].end == Point(50, 50)
        assert segments[1].start == Point(50, 50)
        # both use the end curvature
        assert segments[0].control1 == Point(25, 0)
        assert segments[1].control2 == Point(75, 0)

    def test_many_points_use_mid_curvature_inside(self):
        points = [(20, 0), (40, 10), (60, 10)]
        segments = PathSynthesizer.path((0, 0), (80, 0), points, curvature_end=0.5, curvature_mid=0.25)

        assert [s.mode for s in segments] == [CurveMode.OPEN, CurveMode.OTHER, CurveMode.OTHER, CurveMode.CLOSE]
        assert [s.start for s in segments] == [Point(0, 0), Point(20, 0), Point(40, 10), Point(60, 10)]
        assert [s.end for s in segments] == [Point(20, 0), Point(40, 10), Point(60, 10), Point(80, 0)]
        assert segments[1].control1 == Point(25, 0)
        assert segments[0].control1 == Point(10, 0)

    def test_backward_reroute_loop(self):
        """A point behind the source makes the first segment bulge out of the port."""
        segments = PathSynthesizer.path((100, 0), (200, 0), [(0, 50)], curvature_end=0.5)
        first, last = segments
        assert first.control1 == Point(150, 0)
        assert first.control2 == Point(50, 50)
        assert last.control1 == Point(100, 50)

    def test_description_joined_or_split(self):
        args = ((0, 0), (100, 0), [(50, 50)])
        joined = PathSynthesizer.path_description(*args)
        split = PathSynthesizer.path_description(*args, fix_curvature=True)

        assert isinstance(joined, str)
        assert split == [s.to_svg() for s in PathSynthesizer.path(*args)]
        assert joined == " ".join(split)

    def test_nearest_segment(self):
        segments = PathSynthesizer.path((0, 0), (300, 0), [(100, 0), (200, 0)])
        assert PathSynthesizer.nearest_segment(segments, (150, 5)) == 1
        assert PathSynthesizer.nearest_segment(segments, (290, -3)) == 2
