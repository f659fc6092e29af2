"""
Line-pair intersection corners.

Straight runs of the contour are found with total-least-squares line fits over
overlapping windows, merged into long lines, and four of them are assembled
into a rectangle frame: adjacent lines near-perpendicular, opposite lines
distinct parallels. The frame corners are the adjacent-line intersections.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from shapedetect.contours.geometry import convex_hull, perimeter, round_point

MAX_WINDOW_RMS = 1.5
MIN_WINDOW_FILL = 0.6  # window extent / (window points - 1)
MERGE_ANGLE_SIN = math.sin(math.radians(10.0))
MERGE_OFFSET = 3.0
MIN_LINE_LENGTH = 8.0
MIN_LINE_FRACTION = 0.08  # of hull perimeter
MAX_LINES = 8
PERPENDICULAR_COS = 0.15
PARALLEL_COS = 0.95
MIN_SEPARATION = 4.0
BBOX_SLACK = 0.1
# Rectangle outlines lie on their frame; round outlines only touch it
MAX_SUPPORT_DISTANCE = 1.5
MIN_SUPPORT_FRACTION = 0.75


@dataclass(frozen=True)
class FittedLine:
    """Infinite line through point along a unit direction."""
    point: Tuple[float, float]
    direction: Tuple[float, float]
    length: float
    rms: float

    @property
    def normal(self):
        return (-self.direction[1], self.direction[0])

    def distance_to(self, p) -> float:
        nx, ny = self.normal
        return abs((p[0] - self.point[0]) * nx + (p[1] - self.point[1]) * ny)


def fit_line_pca(points: np.ndarray) -> FittedLine:
    """Fit line using PCA (total least squares)."""
    mean = np.mean(points, axis=0)
    centered = points - mean

    _, _, vh = np.linalg.svd(centered, full_matrices=False)
    direction = vh[0]
    norm = np.linalg.norm(direction)
    direction = direction / norm if norm > 1e-9 else np.array([1.0, 0.0])

    along = centered @ direction
    across = centered @ np.array([-direction[1], direction[0]])
    rms = float(np.sqrt(np.mean(across * across)))
    length = float(along.max() - along.min())

    return FittedLine(
        point=(float(mean[0]), float(mean[1])),
        direction=(float(direction[0]), float(direction[1])),
        length=length,
        rms=rms,
    )


def _dot(l1: FittedLine, l2: FittedLine) -> float:
    return abs(l1.direction[0] * l2.direction[0] + l1.direction[1] * l2.direction[1])


def is_perpendicular(l1: FittedLine, l2: FittedLine) -> bool:
    return _dot(l1, l2) < PERPENDICULAR_COS


def is_parallel(l1: FittedLine, l2: FittedLine) -> bool:
    return _dot(l1, l2) > PARALLEL_COS


def intersect(l1: FittedLine, l2: FittedLine) -> Optional[Tuple[float, float]]:
    """Intersection of two infinite lines, or None when nearly parallel."""
    n1 = l1.normal
    n2 = l2.normal
    c1 = n1[0] * l1.point[0] + n1[1] * l1.point[1]
    c2 = n2[0] * l2.point[0] + n2[1] * l2.point[1]

    det = n1[0] * n2[1] - n1[1] * n2[0]
    if abs(det) < 1e-9:
        return None

    x = (c1 * n2[1] - c2 * n1[1]) / det
    y = (n1[0] * c2 - n2[0] * c1) / det
    return x, y


def window_segments(pts: np.ndarray) -> List[Tuple[FittedLine, np.ndarray]]:
    """Straight windows along the contour as (line, point indices) pairs."""
    n = len(pts)
    window = max(5, n // 24)
    step = max(1, window // 2)
    min_extent = MIN_WINDOW_FILL * (window - 1)

    segments = []
    for start in range(0, n, step):
        idx = (start + np.arange(window)) % n
        line = fit_line_pca(pts[idx])
        if line.rms <= MAX_WINDOW_RMS and line.length >= min_extent:
            segments.append((line, idx))
    return segments


def merge_segments(pts: np.ndarray, segments) -> List[FittedLine]:
    """Group collinear segments and refit each group over its union of points."""
    # Straightest windows seed the clusters
    segments = sorted(segments, key=lambda segment: segment[0].rms)

    clusters = []
    for line, idx in segments:
        for cluster in clusters:
            seed = cluster[0]
            crossed = abs(seed.direction[0] * line.direction[1] - seed.direction[1] * line.direction[0])
            if crossed < MERGE_ANGLE_SIN and seed.distance_to(line.point) < MERGE_OFFSET:
                cluster[1].update(idx.tolist())
                break
        else:
            clusters.append((line, set(idx.tolist())))

    lines = []
    for _, members in clusters:
        lines.append(fit_line_pca(pts[sorted(members)]))
    return lines


def assemble_frame(lines: List[FittedLine]) -> Optional[List[FittedLine]]:
    """Greedily pick four lines forming a rectangle frame, in boundary order."""
    for l1 in lines:
        for l2 in lines:
            if l2 is l1 or not is_perpendicular(l1, l2):
                continue
            for l3 in lines:
                if l3 is l1 or l3 is l2:
                    continue
                if not (is_perpendicular(l3, l2) and is_parallel(l3, l1)):
                    continue
                if l1.distance_to(l3.point) < MIN_SEPARATION:
                    continue
                for l4 in lines:
                    if l4 is l1 or l4 is l2 or l4 is l3:
                        continue
                    if not (is_perpendicular(l4, l3) and is_perpendicular(l4, l1) and is_parallel(l4, l2)):
                        continue
                    if l2.distance_to(l4.point) < MIN_SEPARATION:
                        continue
                    return [l1, l2, l3, l4]
    return None


def frame_support(pts: np.ndarray, frame: List[FittedLine]) -> float:
    """Fraction of contour points lying on one of the frame lines."""
    distances = np.full(len(pts), np.inf)
    for line in frame:
        nx, ny = line.normal
        offsets = np.abs((pts[:, 0] - line.point[0]) * nx + (pts[:, 1] - line.point[1]) * ny)
        distances = np.minimum(distances, offsets)
    return float(np.mean(distances <= MAX_SUPPORT_DISTANCE))


def hough_corners(contour):
    """
    Strategy: corners from four assembled lines.

    Returns 4 integer corners, or None when no frame is found or a corner
    lands well outside the contour's bounding box.
    """
    pts = np.asarray(contour, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 16:
        return None

    hull = convex_hull(pts)
    min_length = max(MIN_LINE_LENGTH, MIN_LINE_FRACTION * perimeter(hull))

    lines = merge_segments(pts, window_segments(pts))
    lines = [line for line in lines if line.length >= min_length]
    lines.sort(key=lambda line: -line.length)
    lines = lines[:MAX_LINES]
    if len(lines) < 4:
        return None

    frame = assemble_frame(lines)
    if frame is None or frame_support(pts, frame) < MIN_SUPPORT_FRACTION:
        return None

    x_min, y_min = pts.min(axis=0)
    x_max, y_max = pts.max(axis=0)
    slack = max(3.0, BBOX_SLACK * max(x_max - x_min, y_max - y_min))

    corners = []
    for first, second in zip(frame, frame[1:] + frame[:1]):
        corner = intersect(first, second)
        if corner is None:
            return None
        x, y = corner
        if not (x_min - slack <= x <= x_max + slack and y_min - slack <= y <= y_max + slack):
            return None
        corners.append(round_point(x, y))

    return corners
