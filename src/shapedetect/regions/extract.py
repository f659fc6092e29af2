"""
Connected-region extraction for binarized rasters.

Regions are grown with a scanline flood fill driven by an explicit work list
of row segments. Each region is reduced to its boundary pixels, which are
ordered into a closed contour for the downstream shape fitters.
"""

from dataclasses import dataclass

import numpy as np

from shapedetect.contours.ordering import sort_boundary_points
from shapedetect.preprocess.binarize import FOREGROUND
from shapedetect.tracer import get_tracer, trace


@dataclass(frozen=True)
class Blob:
    """One connected region: its ordered boundary contour and pixel count."""
    contour: np.ndarray
    pixel_count: int


def _mark_run(row, seen, x, width):
    """Extend a run around x over unvisited foreground; return its bounds."""
    left = x
    while left > 0 and row[left - 1] and not seen[left - 1]:
        left -= 1
    right = x
    while right < width - 1 and row[right + 1] and not seen[right + 1]:
        right += 1
    return left, right


def scanline_fill(foreground, visited, seed_x, seed_y):
    """
    Collect the 4-connected region containing a seed pixel.

    Runs are marked as soon as they are discovered, so every pixel is
    recorded exactly once.

    Args:
        foreground: list of rows of booleans
        visited: list of bytearrays, updated in place
        seed_x, seed_y: an unvisited foreground pixel

    Returns:
        list of (x, y) tuples in discovery order
    """
    height = len(foreground)
    width = len(foreground[0])
    pixels = []

    left, right = _mark_run(foreground[seed_y], visited[seed_y], seed_x, width)
    seen = visited[seed_y]
    for x in range(left, right + 1):
        seen[x] = 1
        pixels.append((x, seed_y))

    work = [(seed_y, left, right)]
    while work:
        y, left, right = work.pop()

        for ny in (y - 1, y + 1):
            if ny < 0 or ny >= height:
                continue
            row = foreground[ny]
            seen = visited[ny]

            x = left
            while x <= right:
                if not row[x] or seen[x]:
                    x += 1
                    continue

                run_left, run_right = _mark_run(row, seen, x, width)
                for rx in range(run_left, run_right + 1):
                    seen[rx] = 1
                    pixels.append((rx, ny))
                work.append((ny, run_left, run_right))
                x = run_right + 1

    return pixels


def extract_regions(binary, min_region_pixels=1):
    """
    Find all foreground regions of at least min_region_pixels pixels.

    Regions are returned in raster order of their first pixel.
    """
    height, width = binary.shape
    if height == 0 or width == 0:
        return []

    mask = binary == FOREGROUND
    foreground = mask.tolist()
    visited = [bytearray(width) for _ in range(height)]

    regions = []
    ys, xs = np.nonzero(mask)
    for y, x in zip(ys.tolist(), xs.tolist()):
        if visited[y][x]:
            continue
        region = scanline_fill(foreground, visited, x, y)
        if len(region) >= min_region_pixels:
            regions.append(region)

    return regions


def boundary_mask(binary):
    """
    Mark foreground pixels that touch background.

    A pixel is boundary when any of its 8 neighbors is background or lies
    outside the raster.
    """
    mask = binary == FOREGROUND
    padded = np.pad(mask, 1, mode="constant", constant_values=False)
    height, width = mask.shape

    interior = mask.copy()
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            interior &= padded[1 + dy:1 + dy + height, 1 + dx:1 + dx + width]

    return mask & ~interior


def extract_boundary(region, mask):
    """Keep the region points that are set in a boundary mask."""
    return [(x, y) for x, y in region if mask[y, x]]


@trace(label="find_blobs")
def find_blobs(binary, min_region_pixels, min_boundary_points):
    """
    Extract regions and turn each into an ordered boundary contour.

    Regions smaller than min_region_pixels, or whose boundary has fewer than
    min_boundary_points pixels, are dropped.
    """
    tracer = get_tracer()

    mask = boundary_mask(binary)
    regions = extract_regions(binary, min_region_pixels)

    blobs = []
    for region in regions:
        boundary = extract_boundary(region, mask)
        if len(boundary) < min_boundary_points:
            continue
        contour = sort_boundary_points(boundary)
        contour.setflags(write=False)
        blobs.append(Blob(contour=contour, pixel_count=len(region)))

    tracer.event(f"Found {len(blobs)} blobs in {len(regions)} regions")
    return blobs
