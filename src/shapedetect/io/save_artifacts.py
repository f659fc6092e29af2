"""
Artifact saving utilities for shapedetect.

Handles writing detection JSON and overlay images.
"""

import json
import os

import cv2
import numpy as np

from shapedetect.tracer import get_tracer

RECTANGLE_COLOR = (0, 255, 0)  # BGR
CIRCLE_COLOR = (0, 0, 255)
CENTER_COLOR = (255, 0, 0)


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def save_image(img, path):
    """Save a BGR or grayscale image to disk."""
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))
    if not cv2.imwrite(path, img):
        raise ValueError(f"Failed to write image: {path}")
    tracer.event(f"Saved image: {path}")


def save_json(data, path, indent=2):
    """
    Save a dictionary or Pydantic model to JSON.
    """
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    # Handle Pydantic models
    if hasattr(data, "model_dump"):
        data = data.model_dump()

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)

    tracer.event(f"Saved JSON: {path}")


def draw_detections(gray, rectangles=(), circles=(), thickness=2):
    """
    Draw detected shapes over a grayscale raster.

    Rectangles are drawn as rotated boxes, circles as outlines with a center
    dot. Returns a new BGR image.
    """
    if gray.ndim == 2:
        overlay = cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
    else:
        overlay = gray.copy()

    for rect in rectangles:
        pts = np.round(np.array(rect.corners())).astype(np.int32)
        cv2.polylines(overlay, [pts], isClosed=True, color=RECTANGLE_COLOR, thickness=thickness)
        cv2.circle(overlay, rect.center.as_tuple(), 2, CENTER_COLOR, -1)

    for circle in circles:
        cv2.circle(overlay, circle.center.as_tuple(), circle.radius, CIRCLE_COLOR, thickness)
        cv2.circle(overlay, circle.center.as_tuple(), 2, CENTER_COLOR, -1)

    return overlay
