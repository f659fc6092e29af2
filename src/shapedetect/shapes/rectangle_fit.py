"""
Rectangle classification and parameter fitting.

A four-corner polygon is accepted as a rectangle only when its area, side
directions, corner angles and fill all agree, and when the outline it came
from is clearly not round.
"""

import math

from shapedetect.contours.geometry import (
    contour_centroid,
    corner_angle,
    outline_circularity,
    polygon_area,
    round_point,
)
from shapedetect.models import Point, RectangleCandidate, compute_bbox, normalize_angle
from shapedetect.polygon.approximate import approximate_quadrilateral
from shapedetect.tracer import get_tracer


def _unit_sides(corners):
    """Unit direction of each side, or None if any side has zero length."""
    sides = []
    for i in range(4):
        x0, y0 = corners[i]
        x1, y1 = corners[(i + 1) % 4]
        dx = x1 - x0
        dy = y1 - y0
        length = math.hypot(dx, dy)
        if length <= 0:
            return None
        sides.append((dx / length, dy / length))
    return sides


def classify_quadrilateral(corners, contour, config):
    """
    Decide whether four corners describe a rectangle.

    Args:
        corners: list of 4 (x, y) points in boundary order
        contour: the ordered outline the corners were derived from
        config: RectangleConfig

    Returns:
        True when every test passes
    """
    tracer = get_tracer()

    if len(corners) != 4:
        return False

    area = polygon_area(corners)
    if area < config.min_area or area > config.max_area:
        tracer.event(f"Rejected: area {area:.0f} outside [{config.min_area}, {config.max_area}]", level="DEBUG")
        return False

    sides = _unit_sides(corners)
    if sides is None:
        tracer.event("Rejected: zero-length side", level="DEBUG")
        return False

    for a, b in ((sides[0], sides[2]), (sides[1], sides[3])):
        dot = abs(a[0] * b[0] + a[1] * b[1])
        if abs(dot - 1.0) >= config.parallel_tolerance:
            tracer.event(f"Rejected: opposite sides not parallel (|dot|={dot:.2f})", level="DEBUG")
            return False

    raw_area = polygon_area(contour)
    if raw_area / area > config.max_area_ratio:
        tracer.event(f"Rejected: outline area ratio {raw_area / area:.2f}", level="DEBUG")
        return False

    roundness = outline_circularity(contour)
    if roundness < config.min_outline_circularity:
        tracer.event(f"Rejected: outline too round ({roundness:.3f})", level="DEBUG")
        return False

    deviations = [
        abs(corner_angle(corners[i - 1], corners[i], corners[(i + 1) % 4]) - math.pi / 2.0)
        for i in range(4)
    ]
    right_angles = sum(1 for d in deviations if d < config.corner_angle_tolerance)
    if right_angles < config.min_right_angles:
        tracer.event(f"Rejected: only {right_angles} right angles", level="DEBUG")
        return False
    if sum(deviations) / 4.0 > config.max_mean_angle_deviation:
        tracer.event("Rejected: corner angles too far from 90 degrees", level="DEBUG")
        return False

    x_min, y_min, x_max, y_max = compute_bbox(corners)
    bbox_area = (x_max - x_min) * (y_max - y_min)
    if bbox_area <= 0 or area / bbox_area < config.min_rectangularity:
        tracer.event("Rejected: rectangularity too low", level="DEBUG")
        return False

    return True


def fit_rectangle(corners, contour):
    """
    Extract rectangle parameters.

    The center is the area centroid of the full contour. Width is the longer
    of the two opposite-side average lengths; the angle follows that pair.
    """
    center_x, center_y = round_point(*contour_centroid(contour))

    edges = []
    for i in range(4):
        x0, y0 = corners[i]
        x1, y1 = corners[(i + 1) % 4]
        edges.append((x1 - x0, y1 - y0))

    lengths = [math.hypot(dx, dy) for dx, dy in edges]
    first_pair = (lengths[0] + lengths[2]) / 2.0
    second_pair = (lengths[1] + lengths[3]) / 2.0

    if first_pair >= second_pair:
        width, height, direction = first_pair, second_pair, edges[0]
    else:
        width, height, direction = second_pair, first_pair, edges[1]

    angle = normalize_angle(math.atan2(direction[1], direction[0]))
    return RectangleCandidate(
        center=Point(x=center_x, y=center_y),
        width=int(round(width)),
        height=int(round(height)),
        angle=angle,
    )


def rectangle_from_contour(contour, config):
    """Approximate, classify and fit one contour; None when rejected."""
    corners = approximate_quadrilateral(contour, config.approx_epsilon)
    if corners is None:
        return None
    if not classify_quadrilateral(corners, contour, config):
        return None
    return fit_rectangle(corners, contour)
