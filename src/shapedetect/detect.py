"""
Shape detection entry points.

Each detector runs several preprocessing variants over the same raster,
collects candidates from every variant in variant order, and deduplicates
the combined list. Both are pure functions of (raster, configuration).
"""

from shapedetect.config import DetectorConfig
from shapedetect.fusion.dedup import dedup_circles, dedup_rectangles
from shapedetect.parallel import map_contours
from shapedetect.preprocess.binarize import as_raster, preprocess_variant
from shapedetect.regions.extract import find_blobs
from shapedetect.shapes.circle_fit import fit_circle_candidate
from shapedetect.shapes.rectangle_fit import rectangle_from_contour
from shapedetect.tracer import get_tracer, trace


def _variant_blobs(gray, variant, config, min_region_pixels):
    binary = preprocess_variant(gray, variant, config)
    if binary is None:
        return []
    return find_blobs(binary, min_region_pixels, config.extraction.min_boundary_points)


@trace(label="detect_rectangles")
def detect_rectangles(image, config=None):
    """
    Detect rectangles of arbitrary rotation.

    Args:
        image: 2-D grayscale array, RGB(A) array or nested lists
        config: DetectorConfig (defaults when None)

    Returns:
        list of RectangleCandidate, largest first; empty for malformed input
    """
    tracer = get_tracer()
    config = config or DetectorConfig()

    gray = as_raster(image)
    if gray is None:
        return []

    rect_config = config.rectangle
    candidates = []

    for variant in config.fusion.rectangle_variants:
        with tracer.span(f"rectangles_{variant}", module="detect"):
            blobs = _variant_blobs(gray, variant, config, rect_config.min_region_pixels)
            found = map_contours(
                lambda blob: rectangle_from_contour(blob.contour, rect_config),
                blobs,
                min_items=config.parallel.min_items,
                max_workers=config.parallel.max_workers,
            )
            tracer.event(f"{len(found)} rectangles from {len(blobs)} blobs")
            candidates.extend(found)

    result = dedup_rectangles(
        candidates,
        fraction=config.fusion.rectangle_dedup_fraction,
        min_size_ratio=config.fusion.min_size_ratio,
    )
    tracer.event(f"Rectangles after dedup: {len(candidates)} -> {len(result)}")
    return result


@trace(label="detect_circles")
def detect_circles(image, config=None):
    """
    Detect filled circular blobs.

    Args:
        image: 2-D grayscale array, RGB(A) array or nested lists
        config: DetectorConfig (defaults when None)

    Returns:
        list of CircleCandidate, largest first; empty for malformed input
    """
    tracer = get_tracer()
    config = config or DetectorConfig()

    gray = as_raster(image)
    if gray is None:
        return []

    circle_config = config.circle
    candidates = []

    for variant in config.fusion.circle_variants:
        with tracer.span(f"circles_{variant}", module="detect"):
            blobs = _variant_blobs(gray, variant, config, circle_config.min_region_pixels)
            found = map_contours(
                lambda blob: fit_circle_candidate(blob.contour, blob.pixel_count, circle_config),
                blobs,
                min_items=config.parallel.min_items,
                max_workers=config.parallel.max_workers,
            )
            tracer.event(f"{len(found)} circles from {len(blobs)} blobs")
            candidates.extend(found)

    result = dedup_circles(
        candidates,
        fraction=config.fusion.circle_dedup_fraction,
        min_size_ratio=config.fusion.min_size_ratio,
    )
    tracer.event(f"Circles after dedup: {len(candidates)} -> {len(result)}")
    return result
