"""
Moment-based rectangle corners.

Central second- and third-order moments of the boundary points decide whether
an outline is rectangular, and a minimum-area bounding box in the canonical
frame gives its corners. Works at any rotation, including squares, whose
second moments carry no orientation.
"""

import math
from dataclasses import dataclass

import numpy as np

from shapedetect.contours.geometry import round_point, rotate_points
from shapedetect.tracer import get_tracer

# Accepted band for measured / predicted principal second moments
MIN_MOMENT_RATIO = 0.82
MAX_MOMENT_RATIO = 1.2
# Rotation-invariant third-order skewness; 0 for centrally symmetric outlines
MAX_SKEW = 0.2
MAX_ASPECT_RATIO = 20.0
MIN_HALF_EXTENT = 1.5
# Circles and ellipses fit their own moment ellipse almost exactly
MIN_ELLIPSE_RESIDUAL = 0.1
# Below this anisotropy the principal axis is unreliable
ISOTROPY_LIMIT = 0.15
CORNER_MARGIN = 0.5


@dataclass(frozen=True)
class MomentDescriptor:
    """Moment measurements of one outline in its canonical frame."""
    centroid: tuple
    angle: float
    bounds: tuple  # (u_min, u_max, v_min, v_max) relative to the centroid
    moment_ratios: tuple
    skew: float
    ellipse_residual: float

    @property
    def half_extents(self):
        u_min, u_max, v_min, v_max = self.bounds
        return (u_max - u_min) / 2.0, (v_max - v_min) / 2.0

    @property
    def aspect_ratio(self):
        a, b = self.half_extents
        short = min(a, b)
        if short <= 0:
            return float("inf")
        return max(a, b) / short


def _project(dx, dy, angles):
    cos_a = np.cos(angles)[:, None]
    sin_a = np.sin(angles)[:, None]
    u = dx[None, :] * cos_a + dy[None, :] * sin_a
    v = -dx[None, :] * sin_a + dy[None, :] * cos_a
    return u, v


def _min_area_angle(dx, dy, center_deg, half_range_deg, step_deg):
    """Search angles around center_deg for the smallest bounding box."""
    offsets = np.arange(-half_range_deg, half_range_deg + step_deg / 2.0, step_deg)
    angles = np.radians(center_deg + offsets)
    u, v = _project(dx, dy, angles)
    areas = (u.max(axis=1) - u.min(axis=1)) * (v.max(axis=1) - v.min(axis=1))
    return float(center_deg + offsets[int(np.argmin(areas))])


def _predicted_moments(a, b):
    """Second moments of a uniform rectangle outline with half-extents a, b."""
    total = a + b
    return (b * a * a + a ** 3 / 3.0) / total, (a * b * b + b ** 3 / 3.0) / total


def canonical_angle(dx, dy, mu20, mu02, mu11):
    """
    Orientation of the canonical frame in radians.

    Starts from 0.5 * atan2(2 mu11, mu20 - mu02) and refines it with a
    minimum-area bounding-box search. Nearly isotropic outlines get a full
    quarter-turn search instead.
    """
    trace_sum = mu20 + mu02
    spread = math.hypot((mu20 - mu02) / 2.0, mu11)
    anisotropy = 2.0 * spread / trace_sum if trace_sum > 0 else 0.0

    if anisotropy < ISOTROPY_LIMIT:
        coarse = _min_area_angle(dx, dy, 0.0, 45.0, 1.0)
        if coarse >= 45.0:
            coarse -= 90.0
        best = _min_area_angle(dx, dy, coarse, 1.0, 0.25)
    else:
        theta = math.degrees(0.5 * math.atan2(2.0 * mu11, mu20 - mu02))
        coarse = _min_area_angle(dx, dy, theta, 6.0, 0.5)
        best = _min_area_angle(dx, dy, coarse, 0.5, 0.125)

    return math.radians(best)


def compute_moment_descriptor(contour):
    """
    Measure an outline's moments in its canonical frame.

    Returns None when the contour is too small or degenerate.
    """
    pts = np.asarray(contour, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 4:
        return None

    cx, cy = pts.mean(axis=0)
    dx = pts[:, 0] - cx
    dy = pts[:, 1] - cy

    mu20 = float(np.mean(dx * dx))
    mu02 = float(np.mean(dy * dy))
    mu11 = float(np.mean(dx * dy))
    sigma_sq = mu20 + mu02
    if sigma_sq < 1e-9:
        return None

    angle = canonical_angle(dx, dy, mu20, mu02, mu11)
    u, v = _project(dx, dy, np.array([angle]))
    u = u[0]
    v = v[0]
    bounds = (float(u.min()), float(u.max()), float(v.min()), float(v.max()))

    a = (bounds[1] - bounds[0]) / 2.0
    b = (bounds[3] - bounds[2]) / 2.0
    lambda_u = float(np.mean(u * u))
    lambda_v = float(np.mean(v * v))

    if a > 0 and b > 0:
        pred_u, pred_v = _predicted_moments(a, b)
        ratios = (lambda_u / pred_u, lambda_v / pred_v)
    else:
        ratios = (0.0, 0.0)

    z = dx + 1j * dy
    third = abs(np.mean(z ** 3))
    mixed = abs(np.mean(z * z * np.conj(z)))
    skew = math.hypot(third, mixed) / sigma_sq ** 1.5

    if lambda_u > 1e-9 and lambda_v > 1e-9:
        ellipse = u * u / (2.0 * lambda_u) + v * v / (2.0 * lambda_v)
        residual = float(np.mean(np.abs(ellipse - 1.0)))
    else:
        residual = 0.0

    return MomentDescriptor(
        centroid=(float(cx), float(cy)),
        angle=angle,
        bounds=bounds,
        moment_ratios=ratios,
        skew=float(skew),
        ellipse_residual=residual,
    )


def is_rectangle_by_moments(descriptor):
    """Apply the moment gates; True when the outline reads as a rectangle."""
    tracer = get_tracer()

    if descriptor is None:
        return False

    ratio_u, ratio_v = descriptor.moment_ratios
    if not (MIN_MOMENT_RATIO <= ratio_u <= MAX_MOMENT_RATIO and
            MIN_MOMENT_RATIO <= ratio_v <= MAX_MOMENT_RATIO):
        tracer.event(f"Moment ratio out of band: {ratio_u:.3f}, {ratio_v:.3f}", level="DEBUG")
        return False

    if descriptor.skew > MAX_SKEW:
        tracer.event(f"Moment skew too high: {descriptor.skew:.3f}", level="DEBUG")
        return False

    if min(descriptor.half_extents) < MIN_HALF_EXTENT or descriptor.aspect_ratio > MAX_ASPECT_RATIO:
        tracer.event("Moment extents degenerate", level="DEBUG")
        return False

    if descriptor.ellipse_residual <= MIN_ELLIPSE_RESIDUAL:
        tracer.event(f"Outline is elliptical: residual={descriptor.ellipse_residual:.3f}", level="DEBUG")
        return False

    return True


def corners_from_moments(descriptor):
    """Bounding-box corners in the canonical frame, rotated back to pixels."""
    u_min, u_max, v_min, v_max = descriptor.bounds
    u_min -= CORNER_MARGIN
    v_min -= CORNER_MARGIN
    u_max += CORNER_MARGIN
    v_max += CORNER_MARGIN

    cx, cy = descriptor.centroid
    box = [
        (cx + u_min, cy + v_min),
        (cx + u_max, cy + v_min),
        (cx + u_max, cy + v_max),
        (cx + u_min, cy + v_max),
    ]
    rotated = rotate_points(box, descriptor.angle, descriptor.centroid)
    return [round_point(x, y) for x, y in rotated]


def moment_corners(contour):
    """Strategy: four corners from moments, or None if not rectangular."""
    descriptor = compute_moment_descriptor(contour)
    if not is_rectangle_by_moments(descriptor):
        return None
    return corners_from_moments(descriptor)
