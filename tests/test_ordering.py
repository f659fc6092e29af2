"""Tests for boundary ordering."""

import random

import numpy as np


class TestSortBoundaryPoints:
    """Tests for sort_boundary_points."""

    def test_square_corners_order(self):
        """Test quadrant order around the centroid."""
        from shapedetect.contours.ordering import sort_boundary_points

        points = [(0, 0), (10, 0), (10, 10), (0, 10)]

        result = sort_boundary_points(points)

        assert result.tolist() == [[10, 10], [0, 10], [0, 0], [10, 0]]

    def test_order_independent_of_input_order(self):
        """Test that shuffled input gives the same order."""
        from shapedetect.contours.ordering import sort_boundary_points

        points = [(x, 0) for x in range(0, 20)] + [(19, y) for y in range(1, 20)]
        points += [(x, 19) for x in range(0, 19)] + [(0, y) for y in range(1, 19)]
        expected = sort_boundary_points(points).tolist()

        shuffled = list(points)
        random.Random(7).shuffle(shuffled)

        assert sort_boundary_points(shuffled).tolist() == expected

    def test_result_is_permutation(self):
        """Test that no point is lost or duplicated."""
        from shapedetect.contours.ordering import sort_boundary_points

        points = [(3, 7), (12, 2), (8, 15), (1, 1), (14, 9)]

        result = sort_boundary_points(points)

        assert sorted(map(tuple, result.tolist())) == sorted(points)

    def test_angle_increases_within_quadrant(self):
        """Test that points in one quadrant are ordered by angle."""
        from shapedetect.contours.ordering import sort_boundary_points

        # Centroid is (5, 5); all but the balancing point lie in quadrant 0
        points = [(10, 10), (10, 5), (5, 10), (-5, -5)]

        result = [tuple(p) for p in sort_boundary_points(points).tolist()]

        assert result.index((10, 5)) < result.index((10, 10)) < result.index((5, 10))

    def test_few_points_unchanged(self):
        """Test that fewer than 3 points are returned as given."""
        from shapedetect.contours.ordering import sort_boundary_points

        result = sort_boundary_points([(5, 1), (0, 0)])

        assert result.tolist() == [[5, 1], [0, 0]]
        assert result.dtype == np.int64
