"""
Curvature-peak corner finder.

Discrete curvature at each contour point is the sine of the turn between the
incoming and outgoing chords of a fixed window. Corners are the separated
local maxima above a floor.
"""

import numpy as np

MIN_CURVATURE = 0.6
MAX_CORNERS = 8


def discrete_curvature(points, window):
    """|a x b| / (|a| |b|) with a = P[i] - P[i-k] and b = P[i+k] - P[i]."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    incoming = pts - np.roll(pts, window, axis=0)
    outgoing = np.roll(pts, -window, axis=0) - pts

    crossed = np.abs(incoming[:, 0] * outgoing[:, 1] - incoming[:, 1] * outgoing[:, 0])
    norms = np.hypot(incoming[:, 0], incoming[:, 1]) * np.hypot(outgoing[:, 0], outgoing[:, 1])

    curvature = np.zeros(len(pts))
    valid = norms > 1e-9
    curvature[valid] = crossed[valid] / norms[valid]
    return curvature


def _arc_distance(i, j, n):
    d = abs(i - j)
    return min(d, n - d)


def curvature_corners(contour):
    """
    Strategy: corners at curvature peaks.

    Returns between 4 and 8 points in contour order, or None.
    """
    pts = np.asarray(contour).reshape(-1, 2)
    n = len(pts)
    window = max(3, n // 32)
    if n < 4 * window:
        return None

    curvature = discrete_curvature(pts, window)
    before = np.roll(curvature, 1)
    after = np.roll(curvature, -1)
    peaks = np.flatnonzero((curvature >= MIN_CURVATURE) & (curvature >= before) & (curvature >= after))

    separation = max(window, n // 16)
    order = sorted(peaks.tolist(), key=lambda i: -curvature[i])

    kept = []
    for idx in order:
        if all(_arc_distance(idx, other, n) >= separation for other in kept):
            kept.append(idx)
            if len(kept) == MAX_CORNERS:
                break

    if len(kept) < 4:
        return None

    kept.sort()
    return [(int(pts[i][0]), int(pts[i][1])) for i in kept]
