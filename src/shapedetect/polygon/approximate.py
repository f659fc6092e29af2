"""
Polygon approximation chain.

An ordered tuple of independent strategies, each mapping a contour to a
vertex list or None, is tried until one succeeds. The winning vertices are
cleaned of near-duplicates and reduced to four corners.
"""

import functools

from shapedetect.contours.geometry import convex_hull, corner_strength
from shapedetect.contours.ordering import sort_boundary_points
from shapedetect.polygon.curvature import curvature_corners
from shapedetect.polygon.douglas_peucker import dp_corners
from shapedetect.polygon.hough import hough_corners
from shapedetect.polygon.moments import moment_corners
from shapedetect.tracer import get_tracer

# Squared merge distances for near-duplicate corners
EXACT_DUPLICATE_SQ = 1.0
NEAR_DUPLICATE_SQ = 64.0

MIN_HULL_VERTICES = 4
MAX_HULL_VERTICES = 8


def convex_hull_fallback(contour):
    """Strategy: the contour's convex hull when it has 4 to 8 vertices."""
    hull = convex_hull(contour)
    if MIN_HULL_VERTICES <= len(hull) <= MAX_HULL_VERTICES:
        return hull
    return None


def strategy_chain(epsilon):
    """Strategies in the order they are tried, as (name, function) pairs."""
    return (
        ("moments", moment_corners),
        ("hough", hough_corners),
        ("curvature", curvature_corners),
        ("douglas_peucker", functools.partial(dp_corners, epsilon=epsilon)),
        ("convex_hull", convex_hull_fallback),
    )


def approximate_polygon(contour, epsilon):
    """
    Run the strategy chain on a contour.

    Returns the first vertex list with at least 4 points, or None.
    """
    tracer = get_tracer()

    if len(contour) < 4:
        return None

    for name, strategy in strategy_chain(epsilon):
        vertices = strategy(contour)
        if vertices is not None and len(vertices) >= 4:
            tracer.event(f"Polygon from {name}: {len(vertices)} vertices", level="DEBUG")
            return [(int(x), int(y)) for x, y in vertices]

    tracer.event("No strategy produced a polygon", level="DEBUG")
    return None


def _distance_sq(a, b):
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


def cleanup_corners(corners, min_distance_sq):
    """Drop corners closer than sqrt(min_distance_sq) to the previous kept one, wrapping."""
    cleaned = []
    for point in corners:
        if cleaned and _distance_sq(point, cleaned[-1]) < min_distance_sq:
            continue
        cleaned.append(point)

    while len(cleaned) > 1 and _distance_sq(cleaned[0], cleaned[-1]) < min_distance_sq:
        cleaned.pop()

    return cleaned


def reduce_to_four(points):
    """
    Reduce a vertex list to its four strongest convex corners.

    Corners are ranked by sin^2 of their hull angle; ties keep hull order.
    The result is reordered around its centroid.
    """
    hull = convex_hull(points)
    if len(hull) < 4:
        return hull

    chosen = hull
    if len(hull) > 4:
        n = len(hull)
        strengths = [corner_strength(hull[i - 1], hull[i], hull[(i + 1) % n]) for i in range(n)]
        strongest = sorted(range(n), key=lambda i: -strengths[i])[:4]
        chosen = [hull[i] for i in sorted(strongest)]

    return [tuple(p) for p in sort_boundary_points(chosen).tolist()]


def approximate_quadrilateral(contour, epsilon):
    """
    Approximate a contour by exactly four corners.

    Returns a list of 4 (x, y) tuples, or None.
    """
    raw = approximate_polygon(contour, epsilon)
    if raw is None:
        return None

    large = len(raw) > 4
    corners = cleanup_corners(raw, NEAR_DUPLICATE_SQ if large else EXACT_DUPLICATE_SQ)
    if len(corners) > 4:
        corners = reduce_to_four(corners)

    if len(corners) != 4:
        return None
    return [(int(x), int(y)) for x, y in corners]
