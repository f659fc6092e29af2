"""Tests for the polygon approximation strategies and chain."""

import math

import cv2
import numpy as np
import pytest

SQUARE_CORNERS = [(30, 20), (70, 20), (70, 60), (30, 60)]
RECT_CORNERS = [(60, 75), (139, 75), (139, 124), (60, 124)]


def _contour(img):
    from shapedetect.regions.extract import find_blobs

    blobs = find_blobs(img, min_region_pixels=20, min_boundary_points=8)
    assert len(blobs) == 1
    return blobs[0].contour


def _near_all(found, expected, tolerance):
    """Every expected corner has a found vertex within tolerance."""
    return all(
        min(math.hypot(fx - ex, fy - ey) for fx, fy in found) <= tolerance
        for ex, ey in expected
    )


class TestMoments:
    """Tests for the moment-based strategy."""

    def test_square_corners(self, square_image):
        """Test canonical-frame corners of an axis-aligned square."""
        from shapedetect.polygon.moments import moment_corners

        corners = moment_corners(_contour(square_image))

        assert corners == [(30, 20), (71, 20), (71, 61), (30, 61)]

    def test_rotated_rectangle(self, rotated_rectangle):
        """Test that a rotated rectangle is accepted with 4 corners."""
        from shapedetect.polygon.moments import moment_corners

        img = rotated_rectangle(200, (100, 100), 80, 50, 30)

        corners = moment_corners(_contour(img))

        assert corners is not None
        assert len(corners) == 4
        expected = cv2.boxPoints(((100.0, 100.0), (80.0, 50.0), 30.0))
        assert _near_all(corners, expected.tolist(), 3.0)

    def test_disk_rejected(self, disk_image):
        """Test that a disk reads as elliptical, not rectangular."""
        from shapedetect.polygon.moments import compute_moment_descriptor, moment_corners

        contour = _contour(disk_image)
        descriptor = compute_moment_descriptor(contour)

        assert descriptor.ellipse_residual < 0.1
        assert moment_corners(contour) is None

    def test_triangle_rejected(self):
        """Test that a triangle is too skewed."""
        from shapedetect.polygon.moments import compute_moment_descriptor, moment_corners

        img = np.zeros((150, 150), dtype=np.uint8)
        cv2.fillPoly(img, [np.array([[30, 110], [110, 110], [70, 41]], dtype=np.int32)], 255)
        contour = _contour(img)

        assert compute_moment_descriptor(contour).skew > 0.2
        assert moment_corners(contour) is None

    def test_square_residual(self, square_image):
        """Test the square descriptor values."""
        from shapedetect.polygon.moments import compute_moment_descriptor

        descriptor = compute_moment_descriptor(_contour(square_image))

        assert descriptor.angle == pytest.approx(0.0)
        assert descriptor.skew == pytest.approx(0.0, abs=1e-9)
        assert descriptor.ellipse_residual > 0.1
        for ratio in descriptor.moment_ratios:
            assert ratio == pytest.approx(1.0, abs=0.05)

    def test_degenerate_contour(self):
        """Test that too few points yield no descriptor."""
        from shapedetect.polygon.moments import compute_moment_descriptor

        assert compute_moment_descriptor([(0, 0), (1, 1), (2, 0)]) is None


class TestHough:
    """Tests for the line-pair intersection strategy."""

    def test_rectangle_corners(self, rectangle_image):
        """Test that four lines are found and intersected."""
        from shapedetect.polygon.hough import hough_corners

        corners = hough_corners(_contour(rectangle_image))

        assert corners is not None
        assert len(corners) == 4
        assert _near_all(corners, RECT_CORNERS, 3.0)

    def test_line_fit_and_intersection(self):
        """Test PCA line fitting and intersection."""
        from shapedetect.polygon.hough import fit_line_pca, intersect, is_perpendicular

        horizontal = fit_line_pca(np.array([[x, 5.0] for x in range(10)]))
        vertical = fit_line_pca(np.array([[3.0, y] for y in range(10)]))

        assert horizontal.rms == pytest.approx(0.0, abs=1e-9)
        assert horizontal.length == pytest.approx(9.0)
        assert is_perpendicular(horizontal, vertical)
        x, y = intersect(horizontal, vertical)
        assert x == pytest.approx(3.0)
        assert y == pytest.approx(5.0)

    def test_parallel_lines_do_not_intersect(self):
        """Test that parallel lines have no intersection."""
        from shapedetect.polygon.hough import fit_line_pca, intersect

        a = fit_line_pca(np.array([[x, 0.0] for x in range(10)]))
        b = fit_line_pca(np.array([[x, 4.0] for x in range(10)]))

        assert intersect(a, b) is None

    def test_disk_has_no_frame(self, disk_image):
        """Test that a disk yields no rectangle frame."""
        from shapedetect.polygon.hough import hough_corners

        assert hough_corners(_contour(disk_image)) is None


class TestCurvature:
    """Tests for the curvature-peak strategy."""

    def test_square_corners(self, square_image):
        """Test that the four corners are the curvature peaks."""
        from shapedetect.polygon.curvature import curvature_corners

        corners = curvature_corners(_contour(square_image))

        assert corners is not None
        assert len(corners) == 4
        assert _near_all(corners, SQUARE_CORNERS, 2.0)

    def test_disk_has_no_corners(self, disk_image):
        """Test that a smooth outline has no peaks."""
        from shapedetect.polygon.curvature import curvature_corners

        assert curvature_corners(_contour(disk_image)) is None


class TestDouglasPeucker:
    """Tests for the multi-epsilon Douglas-Peucker strategy."""

    def test_square_vertices(self, square_image):
        """Test that the square's corners survive simplification."""
        from shapedetect.polygon.douglas_peucker import dp_corners

        vertices = dp_corners(_contour(square_image), 0.05)

        assert vertices is not None
        assert 4 <= len(vertices) <= 12
        assert _near_all(vertices, SQUARE_CORNERS, 1.0)

    def test_simplify_closed_keeps_corners(self):
        """Test simplification of a densely sampled square."""
        from shapedetect.polygon.douglas_peucker import simplify_closed

        points = [(x, 0) for x in range(0, 20)] + [(20, y) for y in range(0, 20)]
        points += [(x, 20) for x in range(20, 0, -1)] + [(0, y) for y in range(20, 0, -1)]

        vertices = simplify_closed(points, 1.0)

        assert {(0, 0), (20, 0), (20, 20), (0, 20)}.issubset({tuple(v) for v in vertices.astype(int).tolist()})

    def test_too_few_points(self):
        """Test that tiny contours are skipped."""
        from shapedetect.polygon.douglas_peucker import dp_corners

        assert dp_corners([(0, 0), (1, 0), (1, 1)], 0.05) is None


class TestChain:
    """Tests for the strategy chain and corner reduction."""

    def test_quadrilateral_of_square(self, square_image):
        """Test that the chain yields four corners for a square."""
        from shapedetect.polygon.approximate import approximate_quadrilateral

        corners = approximate_quadrilateral(_contour(square_image), 0.05)

        assert corners is not None
        assert len(corners) == 4
        assert _near_all(corners, SQUARE_CORNERS, 1.5)

    def test_strategy_order(self):
        """Test that strategies are tried in a fixed order."""
        from shapedetect.polygon.approximate import strategy_chain

        names = [name for name, _ in strategy_chain(0.05)]

        assert names == ["moments", "hough", "curvature", "douglas_peucker", "convex_hull"]

    def test_cleanup_removes_duplicates(self):
        """Test exact-duplicate removal."""
        from shapedetect.polygon.approximate import cleanup_corners

        corners = [(0, 0), (0, 0), (10, 0), (10, 10), (0, 10)]

        assert cleanup_corners(corners, 1.0) == [(0, 0), (10, 0), (10, 10), (0, 10)]

    def test_cleanup_wraps(self):
        """Test that the last corner is merged into the first."""
        from shapedetect.polygon.approximate import cleanup_corners

        corners = [(0, 0), (10, 0), (10, 10), (0, 10), (0, 1)]

        assert cleanup_corners(corners, 64.0) == [(0, 0), (10, 0), (10, 10), (0, 10)]

    def test_reduce_to_four(self):
        """Test that the weakest hull corner is dropped."""
        from shapedetect.polygon.approximate import reduce_to_four

        points = [(0, 0), (10, -1), (20, 0), (20, 20), (0, 20)]

        assert reduce_to_four(points) == [(20, 20), (0, 20), (0, 0), (20, 0)]

    def test_hull_fallback_bounds(self):
        """Test the hull fallback vertex-count window."""
        from shapedetect.polygon.approximate import convex_hull_fallback

        assert convex_hull_fallback([(0, 0), (5, 0), (0, 5)]) is None
        assert len(convex_hull_fallback([(0, 0), (5, 0), (5, 5), (0, 5)])) == 4
