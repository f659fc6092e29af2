"""
Image loading utilities for shapedetect.

Reads image files as grayscale rasters for the detectors.
"""

import os

import cv2

from shapedetect.models import ImageMeta
from shapedetect.tracer import get_tracer, trace

SUPPORTED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".tiff", ".tif", ".bmp")


@trace(label="load_image")
def load_image(path):
    """
    Load an image from disk as a grayscale raster.

    Returns a tuple of (raster, metadata) where:
    - raster: uint8 numpy array (H, W)
    - metadata: ImageMeta with width, height, source_path

    Raises FileNotFoundError if path does not exist.
    Raises ValueError if image cannot be loaded.
    """
    tracer = get_tracer()

    if not os.path.exists(path):
        raise FileNotFoundError(f"Image not found: {path}")

    gray = cv2.imread(path, cv2.IMREAD_GRAYSCALE)

    if gray is None:
        raise ValueError(f"Failed to load image: {path}")

    height, width = gray.shape[:2]
    tracer.event(f"Loaded image: {width}x{height}")

    metadata = ImageMeta(
        width=width,
        height=height,
        source_path=os.path.abspath(path),
    )

    return gray, metadata


def validate_image_inputs(paths):
    """
    Validate that all input paths exist and are readable images.

    Returns a list of error messages (empty if all valid).
    """
    errors = []

    for path in paths:
        if not os.path.exists(path):
            errors.append(f"File not found: {path}")
            continue

        ext = os.path.splitext(path)[1].lower()
        if ext not in SUPPORTED_EXTENSIONS:
            errors.append(f"Unsupported image format: {path}")
            continue

        if cv2.imread(path, cv2.IMREAD_GRAYSCALE) is None:
            errors.append(f"Cannot read image: {path}")

    return errors
