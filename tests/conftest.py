"""Pytest fixtures for shapedetect tests."""

import os
import tempfile

import cv2
import numpy as np
import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


def draw_rotated_rectangle(size, center, width, height, angle_deg):
    """Black canvas with one filled white rotated rectangle."""
    img = np.zeros((size, size), dtype=np.uint8)
    box = cv2.boxPoints(((float(center[0]), float(center[1])), (float(width), float(height)), float(angle_deg)))
    cv2.fillPoly(img, [np.round(box).astype(np.int32)], 255)
    return img


@pytest.fixture
def rotated_rectangle():
    """Factory for rotated-rectangle rasters."""
    return draw_rotated_rectangle


@pytest.fixture
def square_image():
    """100x100 black image with a filled white square at (30,20)-(70,60)."""
    img = np.zeros((100, 100), dtype=np.uint8)
    cv2.rectangle(img, (30, 20), (70, 60), 255, -1)
    return img


@pytest.fixture
def rectangle_image():
    """200x200 image with one filled 80x50 rectangle."""
    img = np.zeros((200, 200), dtype=np.uint8)
    cv2.rectangle(img, (60, 75), (139, 124), 255, -1)
    return img


@pytest.fixture
def circles_image():
    """Only filled circles."""
    img = np.zeros((200, 300), dtype=np.uint8)
    cv2.circle(img, (60, 60), 30, 255, -1)
    cv2.circle(img, (180, 70), 40, 255, -1)
    cv2.circle(img, (100, 150), 25, 255, -1)
    return img


@pytest.fixture
def triangles_image():
    """Only filled, roughly equilateral triangles."""
    img = np.zeros((200, 300), dtype=np.uint8)
    tri1 = np.array([[30, 150], [110, 150], [70, 81]], dtype=np.int32)
    tri2 = np.array([[160, 170], [260, 170], [210, 83]], dtype=np.int32)
    cv2.fillPoly(img, [tri1, tri2], 255)
    return img


@pytest.fixture
def disk_image():
    """One filled disk of radius 30 centered at (100, 90)."""
    img = np.zeros((200, 200), dtype=np.uint8)
    cv2.circle(img, (100, 90), 30, 255, -1)
    return img


@pytest.fixture
def mixed_image():
    """One rectangle and one disk, well separated."""
    img = np.zeros((200, 300), dtype=np.uint8)
    cv2.rectangle(img, (30, 40), (100, 140), 255, -1)
    cv2.circle(img, (210, 100), 35, 255, -1)
    return img


@pytest.fixture
def default_config():
    """Create default detector configuration."""
    from shapedetect.config import DetectorConfig
    return DetectorConfig()


@pytest.fixture
def synthetic_input_file(temp_dir, mixed_image):
    """Create a synthetic input file for integration tests."""
    path = os.path.join(temp_dir, "test_input.png")
    cv2.imwrite(path, mixed_image)
    return path
