#!/usr/bin/env python3
"""
tag-focal - estimate or validate a webcam's focal length with an AprilTag

    tag-focal calibrate --tag-distance 1.0 --tag-width 0.1 -p 3.45
    tag-focal validate  --tag-distance1 1.0 --tag-distance2 2.0 --tag-width 0.1 -p 3.45
    tag-focal search    --tag-distance1 1.0 --tag-distance2 2.0 --tag-width 0.1
    tag-focal cameras
"""
import argparse
import math
import sys
from pathlib import Path
from typing import List, Optional

from core.event_broker import EventBroker
from core.logger import logger, LogLevel
from vision.manager import CameraError, CameraManager
from vision.utils import parse_resolution
from vision.apriltag import AprilTagDetector, DetectorError, SUPPORTED_FAMILIES
from .calculator import FocalCalculator
from .config import (
    Mode, RunConfig, CalibrationInputs, get_capture_config, get_detector_config, get_log_level
)
from .console import OperatorConsole
from .pipeline import FocalPipeline

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}")
    if not math.isfinite(value) or value <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero, got {text}")
    return value


def non_negative_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}")
    if not math.isfinite(value) or value < 0:
        raise argparse.ArgumentTypeError(f"must be zero or more, got {text}")
    return value


def non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}")
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be zero or more, got {text}")
    return value


def resolution(text: str):
    try:
        return parse_resolution(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    capture = get_capture_config()
    detector = get_detector_config()

    parser.add_argument(
        "-c", "--camera-index",
        type=non_negative_int,
        default=capture.camera_index,
        help=f"The index of the camera to use as it appears to the OS. Default: {capture.camera_index}.",
    )
    parser.add_argument(
        "-w", "--with-delay",
        type=non_negative_float,
        default=0.0,
        help="Seconds to wait after Enter before capturing. Default: 0.",
    )
    parser.add_argument(
        "--resolution",
        type=resolution,
        default="max",
        help="Requested capture size as WIDTHxHEIGHT, 'max' for the largest mode the camera "
             "offers, or 'auto' for the driver default. Default: max.",
    )
    parser.add_argument(
        "--families",
        default=detector.families,
        help=f"Space separated tag families ({', '.join(SUPPORTED_FAMILIES)}). Default: {detector.families}.",
    )
    parser.add_argument(
        "--max-hamming",
        type=non_negative_int,
        default=detector.max_hamming,
        help=f"Ignore tags needing more corrected bits than this. Default: {detector.max_hamming}.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=capture.output_dir,
        help="Folder for the captured PNG frames. Default: current folder.",
    )
    parser.add_argument(
        "--annotate",
        action="store_true",
        help="Also save a copy of each frame with the detected tag outlined.",
    )
    _add_logging_arguments(parser)


def _add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Shortcut for --log-level DEBUG.",
    )
    parser.add_argument(
        "--log-level",
        default=get_log_level(),
        choices=list(LogLevel.ORDER),
        type=str.upper,
        help="Minimum level of log lines written to stderr. Default: WARNING.",
    )


def _add_tag_width(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--tag-width",
        type=positive_float,
        required=True,
        help="The width of the tag in meters.",
    )


def _add_pixel_width(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p", "--pixel-width",
        type=positive_float,
        required=True,
        help="Sensor pixel pitch in micrometers (e.g. 3.45).",
    )


def _add_two_distances(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--tag-distance1",
        type=positive_float,
        required=True,
        help="First tag's distance in meters.",
    )
    parser.add_argument(
        "--tag-distance2",
        type=positive_float,
        required=True,
        help="Second tag's distance in meters.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tag-focal",
        description="Estimate or validate camera focal length from AprilTag captures.",
    )
    try:
        _add_subcommands(parser)
    except ValueError as e:
        # Malformed TAG_FOCAL_* defaults
        parser.error(str(e))
    return parser


def _add_subcommands(parser: argparse.ArgumentParser) -> None:
    subparsers = parser.add_subparsers(dest="command", required=True)

    calibrate = subparsers.add_parser(
        Mode.CALIBRATE.value,
        help="Capture one frame and compute focal length from a known tag distance.",
    )
    calibrate.add_argument(
        "--tag-distance",
        type=positive_float,
        required=True,
        help="Tag's distance in meters.",
    )
    _add_tag_width(calibrate)
    _add_pixel_width(calibrate)
    _add_common_arguments(calibrate)

    validate = subparsers.add_parser(
        Mode.VALIDATE.value,
        help="Compute focal length from a first frame and check it on a second.",
    )
    _add_two_distances(validate)
    _add_tag_width(validate)
    _add_pixel_width(validate)
    _add_common_arguments(validate)

    search = subparsers.add_parser(
        Mode.SEARCH.value,
        help="Capture two frames, then try focal length guesses interactively.",
    )
    _add_two_distances(search)
    _add_tag_width(search)
    _add_common_arguments(search)

    cameras = subparsers.add_parser("cameras", help="List cameras OpenCV can open.")
    cameras.add_argument(
        "--max-index",
        type=non_negative_int,
        default=10,
        help="Probe camera indices below this. Default: 10.",
    )
    _add_logging_arguments(cameras)


def build_run_config(args: argparse.Namespace) -> RunConfig:
    mode = Mode(args.command)

    if mode is Mode.CALIBRATE:
        distances = (args.tag_distance,)
    else:
        distances = (args.tag_distance1, args.tag_distance2)

    pixel_width = getattr(args, "pixel_width", None)
    inputs = CalibrationInputs(
        tag_width_m=args.tag_width,
        tag_distances_m=distances,
        pixel_pitch_m=FocalCalculator.micrometers_to_meters(pixel_width) if pixel_width is not None else None,
    )

    capture = get_capture_config()
    capture.camera_index = args.camera_index
    capture.delay_s = args.with_delay
    capture.resolution = args.resolution
    capture.output_dir = args.output_dir
    capture.annotate = args.annotate

    detector = get_detector_config()
    detector.families = args.families
    detector.max_hamming = args.max_hamming

    return RunConfig(mode=mode, inputs=inputs, capture=capture, detector=detector)


def list_cameras(max_index: int, console: OperatorConsole) -> int:
    cameras = CameraManager().list_cameras(max_index)
    if not cameras:
        console.say("No cameras found")
        return EXIT_OK

    for cam in cameras:
        console.say(f"{cam['index']}: {cam['name']} {cam['width']}x{cam['height']} ({cam['backend']})")
    return EXIT_OK


def run(args: argparse.Namespace, console: Optional[OperatorConsole] = None) -> int:
    console = console or OperatorConsole()

    if args.command == "cameras":
        return list_cameras(args.max_index, console)

    config = build_run_config(args)
    detector = AprilTagDetector(
        families=config.detector.families,
        max_hamming=config.detector.max_hamming,
        quad_decimate=config.detector.quad_decimate,
        nthreads=config.detector.nthreads,
    )
    config.capture.output_dir.mkdir(parents=True, exist_ok=True)

    FocalPipeline(config, detector, console=console).run()
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger.set_level(LogLevel.DEBUG if args.verbose else args.log_level)
    EventBroker.get_default().set_logging(args.verbose)

    try:
        return run(args)
    except (CameraError, DetectorError, OSError) as e:
        logger.error(str(e), "tag-focal")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
