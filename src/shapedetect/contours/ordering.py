"""
Boundary ordering.

Turns an unordered boundary point set into a closed contour by sorting around
the centroid: quadrant first, then the sign of the cross product within a
quadrant. No trigonometry is involved.
"""

import functools

import numpy as np


def _quadrant(dx, dy):
    if dx >= 0:
        return 0 if dy >= 0 else 3
    return 1 if dy >= 0 else 2


def sort_boundary_points(points):
    """
    Order points around their integer centroid.

    Accepts a sequence of (x, y) pairs or an (N, 2) array and returns an
    (N, 2) int array. Fewer than 3 points are returned unchanged.
    """
    pts = np.asarray(points, dtype=np.int64).reshape(-1, 2)
    if len(pts) < 3:
        return pts

    center_x = int(pts[:, 0].sum()) // len(pts)
    center_y = int(pts[:, 1].sum()) // len(pts)

    offsets = [(int(x) - center_x, int(y) - center_y) for x, y in pts]

    def compare(a, b):
        qa = _quadrant(*offsets[a])
        qb = _quadrant(*offsets[b])
        if qa != qb:
            return -1 if qa < qb else 1
        # A point on the centroid itself leads its quadrant
        at_a = offsets[a] == (0, 0)
        at_b = offsets[b] == (0, 0)
        if at_a != at_b:
            return -1 if at_a else 1
        cross = offsets[a][0] * offsets[b][1] - offsets[a][1] * offsets[b][0]
        if cross > 0:
            return -1
        if cross < 0:
            return 1
        return 0

    order = sorted(range(len(pts)), key=functools.cmp_to_key(compare))
    return pts[order]
