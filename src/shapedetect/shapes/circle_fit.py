"""
Circular-blob fitting.

Round regions are fitted with the Kasa algebraic least-squares method on
their boundary points and scored by mean radial error.
"""

import math

import numpy as np

from shapedetect.models import CircleCandidate, Point
from shapedetect.tracer import get_tracer


def circularity(pixel_count, contour):
    """
    4 pi area / perimeter^2, clamped to 1.

    The perimeter is that of a circle through the boundary's mean radius
    about its centroid, so compact blobs score near 1 and thin or hollow
    ones score low.
    """
    pts = np.asarray(contour, dtype=np.float64).reshape(-1, 2)
    if len(pts) == 0 or pixel_count <= 0:
        return 0.0

    offsets = pts - pts.mean(axis=0)
    mean_radius = float(np.mean(np.hypot(offsets[:, 0], offsets[:, 1])))
    if mean_radius < 1e-9:
        return 0.0

    perimeter = 2.0 * math.pi * mean_radius
    return min(1.0, 4.0 * math.pi * pixel_count / (perimeter * perimeter))


def fit_circle_kasa(points):
    """
    Algebraic circle fit (Kasa method). Returns ((cx, cy), radius).

    Solves the 2x2 normal equations by Cramer's rule. A near-singular system
    falls back to the centroid and mean distance.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    n = len(pts)
    if n == 0:
        return (0.0, 0.0), 0.0

    x = pts[:, 0]
    y = pts[:, 1]
    sx, sy = x.sum(), y.sum()
    sxx, syy, sxy = (x * x).sum(), (y * y).sum(), (x * y).sum()
    sxxx, syyy = (x ** 3).sum(), (y ** 3).sum()
    sxyy, sxxy = (x * y * y).sum(), (x * x * y).sum()

    a = 2.0 * (n * sxx - sx * sx)
    b = 2.0 * (n * sxy - sx * sy)
    c = 2.0 * (n * syy - sy * sy)
    d = n * (sxxx + sxyy) - sx * (sxx + syy)
    e = n * (syyy + sxxy) - sy * (sxx + syy)

    det = a * c - b * b
    if abs(det) < 1e-9:
        cx, cy = float(x.mean()), float(y.mean())
    else:
        cx = float((d * c - e * b) / det)
        cy = float((a * e - b * d) / det)

    radius = float(np.mean(np.hypot(x - cx, y - cy)))
    return (cx, cy), radius


def _radii(points, center):
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return np.hypot(pts[:, 0] - center[0], pts[:, 1] - center[1])


def circle_fit_error(points, center, radius):
    """Mean absolute radial error of points against a circle."""
    radii = _radii(points, center)
    if len(radii) == 0:
        return float("inf")
    return float(np.mean(np.abs(radii - radius)))


def validate_circle(points, center, radius, config):
    """Radius within range and enough boundary points near the circle."""
    if radius < config.min_radius or radius > config.max_radius:
        return False

    radii = _radii(points, center)
    if len(radii) == 0:
        return False

    tolerance = max(config.min_inlier_tolerance, config.inlier_tolerance_ratio * radius)
    inliers = np.count_nonzero(np.abs(radii - radius) <= tolerance)
    return inliers >= config.inlier_fraction * len(radii)


def fit_circle_candidate(contour, pixel_count, config):
    """
    Fit and validate one blob as a circle.

    Args:
        contour: ordered boundary points of the blob
        pixel_count: number of pixels in the blob
        config: CircleConfig

    Returns:
        CircleCandidate, or None when any gate rejects the blob
    """
    tracer = get_tracer()

    roundness = circularity(pixel_count, contour)
    if roundness < config.circularity_threshold:
        tracer.event(f"Rejected circle: circularity {roundness:.3f}", level="DEBUG")
        return None

    (fx, fy), _ = fit_circle_kasa(contour)
    center = (int(math.floor(fx + 0.5)), int(math.floor(fy + 0.5)))

    radii = _radii(contour, center)
    mean_radius = float(radii.mean())
    if mean_radius <= 0:
        return None

    spread = float(radii.std()) / mean_radius
    if spread > config.max_radial_spread:
        tracer.event(f"Rejected circle: radial spread {spread:.3f}", level="DEBUG")
        return None

    radius = int(round(mean_radius))
    if radius <= 0 or not validate_circle(contour, center, radius, config):
        tracer.event(f"Rejected circle: validation failed r={radius}", level="DEBUG")
        return None

    confidence = max(0.0, 1.0 - circle_fit_error(contour, center, radius) / radius)
    if confidence < config.confidence_threshold:
        tracer.event(f"Rejected circle: confidence {confidence:.3f}", level="DEBUG")
        return None

    return CircleCandidate(
        center=Point(x=center[0], y=center[1]),
        radius=radius,
        confidence=min(1.0, confidence),
    )
