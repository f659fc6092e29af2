"""
Closed-contour simplification using the Ramer-Douglas-Peucker algorithm.

The contour is split at index 0 and the point farthest from it, and each half
is simplified against the infinite line through its endpoints using squared
distances. Tolerances are tried at increasing multiples of the base epsilon
until the outline collapses to a quadrilateral.
"""

import numpy as np

from shapedetect.contours.geometry import perimeter

EPSILON_MULTIPLIERS = (1.0, 1.5, 2.0, 3.0, 4.0)
MIN_TOLERANCE = 3.0
MAX_FALLBACK_VERTICES = 12


def _squared_line_distances(points, start, end):
    """Squared distances from points to the infinite line through start and end."""
    line_vec = end - start
    length_sq = float(np.dot(line_vec, line_vec))
    offsets = points - start

    if length_sq == 0:
        return np.sum(offsets * offsets, axis=1)

    crossed = offsets[:, 0] * line_vec[1] - offsets[:, 1] * line_vec[0]
    return crossed * crossed / length_sq


def rdp_mask(points, tolerance, start, end, mask):
    """
    Mark the vertices kept between start and end (inclusive) in mask.

    Uses an explicit stack of index ranges instead of recursion.
    """
    tolerance_sq = tolerance * tolerance
    stack = [(start, end)]

    while stack:
        lo, hi = stack.pop()
        if hi <= lo + 1:
            continue

        distances = _squared_line_distances(points[lo + 1:hi], points[lo], points[hi])
        max_idx = int(np.argmax(distances))
        if distances[max_idx] > tolerance_sq:
            split = lo + 1 + max_idx
            mask[split] = True
            stack.append((split, hi))
            stack.append((lo, split))


def simplify_closed(contour, tolerance):
    """
    Simplify a closed contour.

    Returns the kept vertices as an (M, 2) array in contour order.
    """
    pts = np.asarray(contour, dtype=np.float64).reshape(-1, 2)
    n = len(pts)
    if n < 3:
        return pts

    offsets = pts - pts[0]
    farthest = int(np.argmax(np.sum(offsets * offsets, axis=1)))
    if farthest == 0:
        return pts[:1]

    closed = np.vstack([pts, pts[:1]])
    mask = np.zeros(n + 1, dtype=bool)
    mask[0] = True
    mask[farthest] = True
    rdp_mask(closed, tolerance, 0, farthest, mask)
    rdp_mask(closed, tolerance, farthest, n, mask)

    return pts[mask[:n]]


def dp_corners(contour, epsilon):
    """
    Strategy: multi-epsilon Douglas-Peucker.

    The first multiplier giving exactly 4 vertices wins; otherwise the first
    giving 5 to 12 vertices is returned for reduction. None if neither.
    """
    pts = np.asarray(contour).reshape(-1, 2)
    if len(pts) < 4:
        return None

    length = perimeter(pts)
    fallback = None

    for multiplier in EPSILON_MULTIPLIERS:
        tolerance = max(epsilon * length * multiplier, MIN_TOLERANCE)
        vertices = simplify_closed(pts, tolerance)
        if len(vertices) == 4:
            return [(int(x), int(y)) for x, y in vertices]
        if fallback is None and 4 < len(vertices) <= MAX_FALLBACK_VERTICES:
            fallback = [(int(x), int(y)) for x, y in vertices]

    return fallback
