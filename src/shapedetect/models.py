"""
Pydantic data models for shapedetect results.

Candidates are immutable values; a detection run returns plain lists of them.
"""

import math
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Point(BaseModel):
    """Integer pixel coordinate."""
    x: int
    y: int

    model_config = ConfigDict(frozen=True, extra="forbid")

    def as_tuple(self):
        return (self.x, self.y)


class RectangleCandidate(BaseModel):
    """A detected rectangle of arbitrary rotation."""
    center: Point
    width: int
    height: int
    angle: float = 0.0  # radians in (-pi, pi]

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def area(self):
        return self.width * self.height

    @property
    def size(self):
        """Average side length, used when comparing candidates."""
        return (self.width + self.height) / 2.0

    def corners(self):
        """Corner coordinates as floats, in drawing order."""
        cos_a = math.cos(self.angle)
        sin_a = math.sin(self.angle)
        half_w = self.width / 2.0
        half_h = self.height / 2.0
        result = []
        for du, dv in ((-half_w, -half_h), (half_w, -half_h), (half_w, half_h), (-half_w, half_h)):
            result.append([
                self.center.x + du * cos_a - dv * sin_a,
                self.center.y + du * sin_a + dv * cos_a,
            ])
        return result


class CircleCandidate(BaseModel):
    """A detected circular blob."""
    center: Point
    radius: int
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class ImageMeta(BaseModel):
    """Metadata for an input image."""
    width: int
    height: int
    source_path: str = ""

    model_config = ConfigDict(extra="forbid")


class DetectionReport(BaseModel):
    """Detection results for one image."""
    image_meta: ImageMeta
    rectangles: List[RectangleCandidate] = Field(default_factory=list)
    circles: List[CircleCandidate] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def shape_count(self):
        return len(self.rectangles) + len(self.circles)


def normalize_angle(angle):
    """Map an angle in radians into (-pi, pi]."""
    angle = math.fmod(angle, 2.0 * math.pi)
    if angle <= -math.pi:
        angle += 2.0 * math.pi
    elif angle > math.pi:
        angle -= 2.0 * math.pi
    return angle


def compute_bbox(points):
    """
    Compute bounding box from a list of [x, y] points.

    Returns [min_x, min_y, max_x, max_y].
    """
    if len(points) == 0:
        return [0.0, 0.0, 0.0, 0.0]

    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return [min(xs), min(ys), max(xs), max(ys)]
