"""End-to-end tests for rectangle detection."""

import math

import cv2
import numpy as np
import pytest


def _config(**rectangle):
    from shapedetect.config import DetectorConfig, with_overrides

    return with_overrides(DetectorConfig(), "rectangle", **rectangle)


class TestReferenceSquare:
    """Tests on the 41x41 reference square."""

    def test_single_candidate(self, square_image):
        """Test that exactly one rectangle is found with the right parameters."""
        from shapedetect.detect import detect_rectangles

        result = detect_rectangles(square_image, _config(min_area=200.0, max_area=8000.0))

        assert len(result) == 1
        rect = result[0]
        assert abs(rect.center.x - 50) <= 3
        assert abs(rect.center.y - 40) <= 3
        assert abs(rect.width - 40) <= 3
        assert abs(rect.height - 40) <= 3
        assert abs(rect.angle) < 0.05

    def test_idempotent(self, square_image):
        """Test that repeated calls return identical results."""
        from shapedetect.detect import detect_rectangles

        config = _config(min_area=200.0, max_area=8000.0)

        first = detect_rectangles(square_image, config)
        second = detect_rectangles(square_image, config)

        assert first == second

    def test_min_area_filter(self, square_image):
        """Test that raising min_area above the true area removes it."""
        from shapedetect.detect import detect_rectangles

        assert detect_rectangles(square_image, _config(min_area=2000.0, max_area=8000.0)) == []

    def test_max_area_filter(self, square_image):
        """Test that lowering max_area below the true area removes it."""
        from shapedetect.detect import detect_rectangles

        assert detect_rectangles(square_image, _config(min_area=200.0, max_area=1000.0)) == []

    def test_input_not_modified(self, square_image):
        """Test that detection leaves the caller's raster unchanged."""
        from shapedetect.detect import detect_rectangles

        before = square_image.copy()
        detect_rectangles(square_image, _config(min_area=200.0, max_area=8000.0))

        assert np.array_equal(before, square_image)


class TestRotation:
    """Rotation coverage of an 80x50 rectangle."""

    def test_rotation_coverage(self, rotated_rectangle):
        """Test detection across 0..180 degrees in 5 degree steps."""
        from shapedetect.detect import detect_rectangles

        config = _config(min_area=200.0, max_area=15000.0, approx_epsilon=0.015)

        detected = {}
        for angle in range(0, 181, 5):
            img = rotated_rectangle(300, (150, 150), 80, 50, angle)
            detected[angle] = len(detect_rectangles(img, config)) >= 1

        assert len(detected) == 37
        assert detected[0]
        assert detected[90]
        assert sum(detected.values()) >= 0.7 * 37

    @pytest.mark.parametrize("angle", [0, 90])
    def test_rotated_parameters(self, rotated_rectangle, angle):
        """Test recovered size and orientation of a rotated rectangle."""
        from shapedetect.detect import detect_rectangles

        img = rotated_rectangle(300, (150, 150), 80, 50, angle)

        result = detect_rectangles(img, _config(min_area=200.0, max_area=15000.0, approx_epsilon=0.015))

        assert len(result) == 1
        rect = result[0]
        assert abs(rect.center.x - 150) <= 3
        assert abs(rect.center.y - 150) <= 3
        assert abs(rect.width - 80) <= 4
        assert abs(rect.height - 50) <= 4
        assert abs(math.sin(rect.angle - math.radians(angle))) < 0.1


class TestDiscrimination:
    """Tests that non-rectangles are rejected."""

    def test_only_circles(self, circles_image):
        """Test that filled circles yield no rectangles."""
        from shapedetect.detect import detect_rectangles

        assert detect_rectangles(circles_image) == []

    def test_only_triangles(self, triangles_image):
        """Test that filled triangles yield no rectangles."""
        from shapedetect.detect import detect_rectangles

        assert detect_rectangles(triangles_image) == []

    def test_mixed_scene(self, mixed_image):
        """Test that only the rectangle is reported in a mixed scene."""
        from shapedetect.detect import detect_rectangles

        result = detect_rectangles(mixed_image)

        assert len(result) == 1
        assert abs(result[0].center.x - 65) <= 3
        assert abs(result[0].center.y - 90) <= 3


class TestManyRectangles:
    """Tests above the fan-out threshold."""

    def test_grid_of_squares(self):
        """Test that a grid of 12 squares is fully detected."""
        from shapedetect.detect import detect_rectangles

        img = np.zeros((300, 400), dtype=np.uint8)
        for row in range(3):
            for col in range(4):
                x = 20 + col * 90
                y = 20 + row * 90
                cv2.rectangle(img, (x, y), (x + 30, y + 30), 255, -1)

        result = detect_rectangles(img)

        assert len(result) == 12
        centers = {rect.center.as_tuple() for rect in result}
        assert (35, 35) in centers
        assert (305, 215) in centers


class TestMalformedInput:
    """Tests for malformed rasters."""

    def test_none(self):
        """Test None input."""
        from shapedetect.detect import detect_rectangles

        assert detect_rectangles(None) == []

    def test_empty(self):
        """Test an empty array."""
        from shapedetect.detect import detect_rectangles

        assert detect_rectangles(np.zeros((0, 10), dtype=np.uint8)) == []

    def test_ragged(self):
        """Test ragged nested lists."""
        from shapedetect.detect import detect_rectangles

        assert detect_rectangles([[0, 255], [255]]) == []

    def test_blank(self):
        """Test an all-background raster."""
        from shapedetect.detect import detect_rectangles

        assert detect_rectangles(np.zeros((50, 50), dtype=np.uint8)) == []

    def test_rgb_input(self, square_image):
        """Test that RGB input is handled like grayscale."""
        from shapedetect.detect import detect_rectangles

        rgb = cv2.cvtColor(square_image, cv2.COLOR_GRAY2RGB)

        result = detect_rectangles(rgb, _config(min_area=200.0, max_area=8000.0))

        assert len(result) == 1
