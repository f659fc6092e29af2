"""
Planar geometry helpers shared by the polygon and shape modules.

Polygons and contours are closed: the last point connects back to the first.
All functions accept (N, 2) arrays or sequences of (x, y) pairs.
"""

import math

import numpy as np

EPSILON = 1e-9


def _as_float(points):
    return np.asarray(points, dtype=np.float64).reshape(-1, 2)


def signed_area(points):
    """Shoelace signed area of a closed polygon."""
    pts = _as_float(points)
    if len(pts) < 3:
        return 0.0
    x = pts[:, 0]
    y = pts[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def polygon_area(points):
    """Absolute shoelace area of a closed polygon."""
    return abs(signed_area(points))


def perimeter(points):
    """Length of a closed polygon, including the closing edge."""
    pts = _as_float(points)
    if len(pts) < 2:
        return 0.0
    diffs = np.roll(pts, -1, axis=0) - pts
    return float(np.sum(np.hypot(diffs[:, 0], diffs[:, 1])))


def contour_centroid(points):
    """
    Area-weighted centroid of a closed contour as floats.

    Falls back to the mean of the points when the enclosed area vanishes.
    """
    pts = _as_float(points)
    if len(pts) == 0:
        return 0.0, 0.0

    x = pts[:, 0]
    y = pts[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    cross = x * y_next - x_next * y
    area = 0.5 * float(np.sum(cross))

    if abs(area) < 1e-6:
        return float(x.mean()), float(y.mean())

    factor = 1.0 / (6.0 * area)
    cx = float(np.sum((x + x_next) * cross)) * factor
    cy = float(np.sum((y + y_next) * cross)) * factor
    return cx, cy


def cross(o, a, b):
    """Z component of (a - o) x (b - o)."""
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def convex_hull(points):
    """
    Monotone-chain convex hull.

    Returns hull vertices as (x, y) tuples in counter-clockwise order (in a
    y-up frame), without collinear points. Fewer than 3 points are returned
    as given.
    """
    pts = sorted(set((int(p[0]), int(p[1])) for p in points))
    if len(pts) < 3:
        return pts

    lower = []
    for p in pts:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper = []
    for p in reversed(pts):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    return lower[:-1] + upper[:-1]


def corner_angle(prev, current, nxt):
    """Angle in radians at current between the rays to prev and next."""
    v1 = (prev[0] - current[0], prev[1] - current[1])
    v2 = (nxt[0] - current[0], nxt[1] - current[1])
    n1 = math.hypot(*v1)
    n2 = math.hypot(*v2)
    if n1 < EPSILON or n2 < EPSILON:
        return 0.0
    cos_angle = (v1[0] * v2[0] + v1[1] * v2[1]) / (n1 * n2)
    return math.acos(max(-1.0, min(1.0, cos_angle)))


def corner_strength(prev, current, nxt):
    """
    Cheap corner score: cross^2 / (dot^2 + cross^2), i.e. sin^2 of the angle.

    Only meaningful for ranking; 1.0 at a right angle, 0.0 when straight.
    """
    dx1 = prev[0] - current[0]
    dy1 = prev[1] - current[1]
    dx2 = nxt[0] - current[0]
    dy2 = nxt[1] - current[1]
    dot = dx1 * dx2 + dy1 * dy2
    crs = dx1 * dy2 - dy1 * dx2
    denominator = dot * dot + crs * crs
    if denominator < 1e-10:
        return 0.0
    return (crs * crs) / denominator


def point_to_line_distance_squared(point, line_start, line_end):
    """Squared distance from point to the infinite line through two points."""
    a = line_end[1] - line_start[1]
    b = line_start[0] - line_end[0]
    c = line_end[0] * line_start[1] - line_start[0] * line_end[1]
    denominator = a * a + b * b
    if denominator == 0:
        dx = point[0] - line_start[0]
        dy = point[1] - line_start[1]
        return float(dx * dx + dy * dy)
    distance = a * point[0] + b * point[1] + c
    return float(distance * distance) / denominator


def outline_circularity(points):
    """
    Isoperimetric ratio perimeter^2 / (4 pi area) of a point set's convex hull.

    1.0 for a disk, about 1.27 for a square. Returns infinity for degenerate
    point sets.
    """
    hull = convex_hull(points)
    if len(hull) < 3:
        return float("inf")
    area = polygon_area(hull)
    if area < EPSILON:
        return float("inf")
    return perimeter(hull) ** 2 / (4.0 * math.pi * area)


def rotate_points(points, angle, center):
    """Rotate points by angle (radians) about center; returns float array."""
    pts = _as_float(points)
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    dx = pts[:, 0] - center[0]
    dy = pts[:, 1] - center[1]
    out = np.empty_like(pts)
    out[:, 0] = center[0] + dx * cos_a - dy * sin_a
    out[:, 1] = center[1] + dx * sin_a + dy * cos_a
    return out


def round_point(x, y):
    """Round half away from zero's cousin: floor(v + 0.5), as ints."""
    return int(math.floor(x + 0.5)), int(math.floor(y + 0.5))
