"""
Duplicate suppression across preprocessing variants.

Candidates are visited largest first; a candidate is dropped when a kept one
has a nearby center and a comparable size.
"""

import math
from typing import List

from shapedetect.models import CircleCandidate, RectangleCandidate


def _center_distance(a, b) -> float:
    return math.hypot(a.center.x - b.center.x, a.center.y - b.center.y)


def _size_ratio(a: float, b: float) -> float:
    larger = max(a, b)
    if larger <= 0:
        return 0.0
    return min(a, b) / larger


def is_duplicate_rectangle(a: RectangleCandidate, b: RectangleCandidate,
                           fraction: float = 0.5, min_size_ratio: float = 0.5) -> bool:
    average_size = (a.size + b.size) / 2.0
    if _center_distance(a, b) >= fraction * average_size:
        return False
    return _size_ratio(a.size, b.size) > min_size_ratio


def is_duplicate_circle(a: CircleCandidate, b: CircleCandidate,
                        fraction: float = 0.7, min_size_ratio: float = 0.5) -> bool:
    if _center_distance(a, b) >= fraction * (a.radius + b.radius):
        return False
    return _size_ratio(a.radius, b.radius) > min_size_ratio


def dedup_rectangles(cands: List[RectangleCandidate], fraction: float = 0.5,
                     min_size_ratio: float = 0.5) -> List[RectangleCandidate]:
    if not cands:
        return []
    # largest first, stable among equal areas
    cands = sorted(cands, key=lambda c: c.area, reverse=True)
    keep: List[RectangleCandidate] = []
    for c in cands:
        if not any(is_duplicate_rectangle(k, c, fraction, min_size_ratio) for k in keep):
            keep.append(c)
    return keep


def dedup_circles(cands: List[CircleCandidate], fraction: float = 0.7,
                  min_size_ratio: float = 0.5) -> List[CircleCandidate]:
    if not cands:
        return []
    cands = sorted(cands, key=lambda c: c.radius, reverse=True)
    keep: List[CircleCandidate] = []
    for c in cands:
        if not any(is_duplicate_circle(k, c, fraction, min_size_ratio) for k in keep):
            keep.append(c)
    return keep
