"""
Batch detection over image files.

Loads each input, runs both detectors and writes per-image results.
"""

import os

from shapedetect.config import load_config
from shapedetect.detect import detect_circles, detect_rectangles
from shapedetect.io.load_image import load_image, validate_image_inputs
from shapedetect.io.save_artifacts import draw_detections, ensure_dir, save_image, save_json
from shapedetect.models import DetectionReport
from shapedetect.tracer import get_tracer, trace


def detect_image(gray, meta, config):
    """Run both detectors on one raster and bundle the results."""
    return DetectionReport(
        image_meta=meta,
        rectangles=detect_rectangles(gray, config),
        circles=detect_circles(gray, config),
    )


@trace(label="run_detection")
def run_detection(input_paths, out_dir, config=None, config_path=None):
    """
    Detect shapes in every input image.

    Writes <stem>_detections.json and, when enabled, <stem>_overlay.png into
    out_dir for each input.

    Args:
        input_paths: list of input image file paths
        out_dir: output directory
        config: DetectorConfig object (optional)
        config_path: path to YAML config file (optional)

    Returns:
        list of DetectionReport, one per input
    """
    tracer = get_tracer()

    if config is None:
        config = load_config(config_path)

    errors = validate_image_inputs(input_paths)
    if errors:
        for error in errors:
            tracer.event(error, level="ERROR")
        raise ValueError(f"Input validation failed: {errors}")

    ensure_dir(out_dir)

    reports = []
    for path in input_paths:
        stem = os.path.splitext(os.path.basename(path))[0]

        with tracer.span("detect_image", module="pipeline", path=stem):
            gray, meta = load_image(path)
            report = detect_image(gray, meta, config)

            save_json(report, os.path.join(out_dir, f"{stem}_detections.json"))
            if config.output.write_overlay:
                overlay = draw_detections(
                    gray,
                    report.rectangles,
                    report.circles,
                    thickness=config.output.line_thickness,
                )
                save_image(overlay, os.path.join(out_dir, f"{stem}_overlay.png"))

            tracer.event(f"{stem}: {len(report.rectangles)} rectangles, {len(report.circles)} circles")

        reports.append(report)

    return reports
