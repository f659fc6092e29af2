"""
Configuration management for shapedetect.

Every section is a frozen dataclass: a configuration is built once and passed
into the stateless detection functions. Overrides produce a new value, so the
last value set before a detection call is the one that call sees.

Loads YAML configuration with sensible defaults for all detection stages.
"""

import dataclasses
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

import yaml


@dataclass(frozen=True)
class ExtractionConfig:
    """Configuration for binarization and region extraction."""
    threshold: int = 127  # pixels strictly above become foreground
    min_boundary_points: int = 8


@dataclass(frozen=True)
class RectangleConfig:
    """Configuration for the rectangle path."""
    min_area: float = 500.0
    max_area: float = 10000.0
    approx_epsilon: float = 0.05  # fraction of contour perimeter
    min_region_pixels: int = 50
    parallel_tolerance: float = 0.35
    max_area_ratio: float = 1.3  # raw contour area / polygon area
    min_outline_circularity: float = 1.2  # perimeter^2 / (4 pi area)
    corner_angle_tolerance: float = 1.0  # radians around pi/2
    min_right_angles: int = 2
    max_mean_angle_deviation: float = 0.7
    min_rectangularity: float = 0.2


@dataclass(frozen=True)
class CircleConfig:
    """Configuration for the circular-blob path."""
    min_radius: int = 10
    max_radius: int = 100
    circularity_threshold: float = 0.8
    confidence_threshold: float = 0.7
    min_region_pixels: int = 20
    inlier_fraction: float = 0.7
    inlier_tolerance_ratio: float = 0.15
    min_inlier_tolerance: float = 3.0
    max_radial_spread: float = 0.08  # std / mean of boundary radii


@dataclass(frozen=True)
class FusionConfig:
    """Configuration for preprocessing variants and deduplication."""
    rectangle_variants: Tuple[str, ...] = ("plain", "enhanced", "morphological")
    circle_variants: Tuple[str, ...] = ("blurred", "morphological")
    blur_sigma: float = 1.0
    sharpen_amount: float = 1.0
    morph_kernel: int = 3
    rectangle_dedup_fraction: float = 0.5
    circle_dedup_fraction: float = 0.7
    min_size_ratio: float = 0.5


@dataclass(frozen=True)
class ParallelConfig:
    """Configuration for per-contour fan-out."""
    min_items: int = 10  # fan out only above this many contours
    max_workers: int = 4


@dataclass(frozen=True)
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: Optional[str] = None
    json_output: bool = False


@dataclass(frozen=True)
class OutputConfig:
    """Configuration for result export."""
    write_overlay: bool = True
    line_thickness: int = 2


@dataclass(frozen=True)
class DetectorConfig:
    """Complete detector configuration."""
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    rectangle: RectangleConfig = field(default_factory=RectangleConfig)
    circle: CircleConfig = field(default_factory=CircleConfig)
    fusion: FusionConfig = field(default_factory=FusionConfig)
    parallel: ParallelConfig = field(default_factory=ParallelConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


SECTIONS = ("extraction", "rectangle", "circle", "fusion", "parallel", "tracing", "output")


def with_overrides(config, section, **values):
    """
    Return a copy of config with fields of one section replaced.

    No validation is performed; callers supply coherent ranges.
    """
    current = getattr(config, section)
    return dataclasses.replace(config, **{section: dataclasses.replace(current, **values)})


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = DetectorConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass, ignoring unknown keys."""
    for section in SECTIONS:
        if section not in yaml_data or not isinstance(yaml_data[section], dict):
            continue

        current = getattr(config, section)
        known = {f.name for f in dataclasses.fields(current)}
        values = {}
        for key, value in yaml_data[section].items():
            if key not in known:
                continue
            if isinstance(getattr(current, key), tuple) and isinstance(value, list):
                value = tuple(value)
            values[key] = value

        if values:
            config = with_overrides(config, section, **values)

    return config


def config_to_dict(config):
    """Convert a configuration to plain YAML-friendly data."""
    data = {}
    for section in SECTIONS:
        values = dataclasses.asdict(getattr(config, section))
        data[section] = {k: list(v) if isinstance(v, tuple) else v for k, v in values.items()}
    return data


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = config_to_dict(DetectorConfig())

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
