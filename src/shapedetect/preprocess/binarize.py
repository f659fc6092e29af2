"""
Raster preparation and binarization variants.

Every variant returns a read-only uint8 raster with 255 for foreground
(bright) pixels and 0 for background. Detection runs several variants over
the same input and fuses their candidates.
"""

import math

import cv2
import numpy as np

from shapedetect.tracer import get_tracer

FOREGROUND = 255
BACKGROUND = 0


def as_raster(image):
    """
    Coerce an input image into a 2-D uint8 grayscale raster.

    Accepts 2-D arrays, RGB/RGBA arrays (converted to grayscale) and nested
    lists. Returns None for anything that cannot form a non-empty raster.
    """
    tracer = get_tracer()

    if image is None:
        return None

    try:
        arr = np.asarray(image)
    except (TypeError, ValueError):
        tracer.event("Raster rejected: not array-like", level="WARN")
        return None

    if arr.dtype == object or arr.size == 0:
        tracer.event("Raster rejected: empty or ragged", level="WARN")
        return None

    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]

    if arr.dtype == np.bool_:
        arr = arr.astype(np.uint8) * FOREGROUND
    elif arr.dtype != np.uint8:
        if not np.issubdtype(arr.dtype, np.number):
            return None
        arr = np.clip(arr, 0, 255).astype(np.uint8)

    if arr.ndim == 3 and arr.shape[2] == 3:
        arr = cv2.cvtColor(np.ascontiguousarray(arr), cv2.COLOR_RGB2GRAY)
    elif arr.ndim == 3 and arr.shape[2] == 4:
        arr = cv2.cvtColor(np.ascontiguousarray(arr), cv2.COLOR_RGBA2GRAY)
    elif arr.ndim != 2:
        tracer.event(f"Raster rejected: shape {arr.shape}", level="WARN")
        return None

    return np.ascontiguousarray(arr)


def threshold(gray, level=127):
    """Binarize: pixels strictly above level become foreground."""
    _, binary = cv2.threshold(gray, level, FOREGROUND, cv2.THRESH_BINARY)
    return binary


def gaussian_blur(gray, sigma):
    """Separable Gaussian blur with a 2*ceil(3*sigma)+1 kernel and clamped borders."""
    if sigma <= 0.1:
        return gray
    size = int(2 * math.ceil(3 * sigma) + 1)
    return cv2.GaussianBlur(gray, (size, size), sigma, borderType=cv2.BORDER_REPLICATE)


def sharpen(gray, amount=1.0, sigma=1.0):
    """Unsharp mask: boost the difference between the image and its blur."""
    blurred = gaussian_blur(gray, sigma)
    return cv2.addWeighted(gray, 1.0 + amount, blurred, -amount, 0)


def binarize_plain(gray, config):
    return threshold(gray, config.extraction.threshold)


def binarize_blurred(gray, config):
    """Blur before thresholding to suppress speckle on curved outlines."""
    blurred = gaussian_blur(gray, config.fusion.blur_sigma)
    return threshold(blurred, config.extraction.threshold)


def binarize_enhanced(gray, config):
    """Edge-enhanced binarization: sharpen, then threshold."""
    enhanced = sharpen(gray, config.fusion.sharpen_amount, config.fusion.blur_sigma)
    return threshold(enhanced, config.extraction.threshold)


def binarize_morphological(gray, config):
    """Threshold, then close small gaps and open away small specks."""
    binary = threshold(gray, config.extraction.threshold)
    kernel_size = max(1, int(config.fusion.morph_kernel))
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (kernel_size, kernel_size))

    closed = cv2.morphologyEx(binary, cv2.MORPH_CLOSE, kernel, iterations=1)
    return cv2.morphologyEx(closed, cv2.MORPH_OPEN, kernel, iterations=1)


VARIANTS = {
    "plain": binarize_plain,
    "blurred": binarize_blurred,
    "enhanced": binarize_enhanced,
    "morphological": binarize_morphological,
}


def preprocess_variant(gray, variant, config):
    """
    Run one named preprocessing variant.

    Returns a read-only binary raster, or None for an unknown variant name.
    """
    tracer = get_tracer()

    func = VARIANTS.get(variant)
    if func is None:
        tracer.event(f"Unknown preprocessing variant: {variant}", level="WARN")
        return None

    with tracer.span(f"binarize_{variant}", module="binarize"):
        binary = func(gray, config)
        tracer.event(f"Binary result: foreground_ratio={get_foreground_ratio(binary):.3f}", level="DEBUG")

    binary.setflags(write=False)
    return binary


def get_foreground_ratio(binary):
    """Calculate the ratio of foreground pixels in a binary raster."""
    return np.count_nonzero(binary) / binary.size
