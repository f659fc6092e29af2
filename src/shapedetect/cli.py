"""
Command-line interface for shapedetect.

Provides commands for detecting shapes in images and writing a default config.
"""

import argparse
import sys

from shapedetect.config import save_default_config
from shapedetect.tracer import Tracer, get_tracer


def build_parser():
    """Build the argument parser with detect and init-config subcommands."""
    parser = argparse.ArgumentParser(
        prog="shapedetect",
        description="Find rectangles and filled circular blobs in raster images",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    detect_parser = subparsers.add_parser("detect", help="Detect shapes and write per-image results")
    detect_parser.add_argument("--inputs", "-i", nargs="+", required=True, metavar="IMAGE",
                               help="Images to scan (png, jpg, tif, bmp)")
    detect_parser.add_argument("--out", "-o", required=True,
                               help="Directory for <stem>_detections.json and overlays")
    detect_parser.add_argument("--config", "-c", default=None,
                               help="YAML file with detector thresholds")
    detect_parser.add_argument("--no-overlay", action="store_true",
                               help="Write detections JSON only")
    _add_trace_arguments(detect_parser)

    init_parser = subparsers.add_parser("init-config", help="Write the default detector thresholds as YAML")
    init_parser.add_argument("--out", "-o", default="shapedetect_config.yaml",
                             help="Destination YAML path")

    return parser


def _add_trace_arguments(parser):
    group = parser.add_argument_group("tracing")
    group.add_argument("--trace", action="store_true",
                       help="Trace detection stages to stderr (overrides the config file)")
    group.add_argument("--trace-level", default="INFO", choices=sorted(Tracer.LEVELS, key=Tracer.LEVELS.get),
                       help="Most verbose level to print")
    group.add_argument("--trace-file", default=None, help="Also write trace lines to this file")
    group.add_argument("--trace-json", action="store_true", help="Follow each trace line with a JSON record")


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "detect":
        return handle_detect(args)
    if args.command == "init-config":
        return handle_init_config(args)

    parser.print_help()
    return 0


def handle_detect(args):
    """Handle the detect command."""
    tracer = get_tracer()

    try:
        from shapedetect.config import load_config, with_overrides
        from shapedetect.pipeline import run_detection

        config = load_config(args.config)
        if args.no_overlay:
            config = with_overrides(config, "output", write_overlay=False)

        # Command-line flags take precedence over the config file
        if args.trace:
            config = with_overrides(
                config,
                "tracing",
                enabled=True,
                level=args.trace_level,
                file_path=args.trace_file,
                json_output=args.trace_json,
            )
        tracer.configure(config.tracing)

        with tracer.span("cli_detect", module="cli"):
            reports = run_detection(
                input_paths=args.inputs,
                out_dir=args.out,
                config=config,
            )

        print("\nDetection completed successfully.")
        for report in reports:
            print(f"  {report.image_meta.source_path}: "
                  f"{len(report.rectangles)} rectangles, {len(report.circles)} circles")
        print(f"\nOutputs saved to: {args.out}/")

        return 0

    except Exception as e:
        tracer.event(f"Detection failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1
    finally:
        tracer.close()


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
