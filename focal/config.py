"""
Run configuration - dataclasses with defaults, environment overrides, boundary validation
"""
import math
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from core.logger import LogLevel
from vision.apriltag.detector import DEFAULT_FAMILIES
from vision.utils import MAX_RESOLUTION

ENV_PREFIX = "TAG_FOCAL_"


class Mode(Enum):
    CALIBRATE = "calibrate"      # one frame, focal length from a known distance
    VALIDATE = "validate"        # focal length from frame 1, checked against frame 2
    SEARCH = "search"            # two frames, interactive focal length guesses

    @property
    def frame_count(self) -> int:
        return 1 if self is Mode.CALIBRATE else 2


@dataclass
class DetectorConfig:
    families: str = DEFAULT_FAMILIES
    max_hamming: int = 1
    quad_decimate: float = 2.0
    nthreads: int = 1


@dataclass
class CaptureConfig:
    camera_index: int = 0
    delay_s: float = 0.0
    resolution: Optional[Tuple[int, int]] = MAX_RESOLUTION    # None keeps the driver default
    output_dir: Path = Path(".")
    annotate: bool = False


@dataclass(frozen=True)
class CalibrationInputs:
    """Operator constants, fixed for one run (meters)"""
    tag_width_m: float
    tag_distances_m: Tuple[float, ...]
    pixel_pitch_m: Optional[float] = None

    def __post_init__(self):
        values = [("tag width", self.tag_width_m)]
        values += [(f"tag distance {i}", d) for i, d in enumerate(self.tag_distances_m, 1)]
        if self.pixel_pitch_m is not None:
            values.append(("pixel pitch", self.pixel_pitch_m))

        for name, value in values:
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive number, got {value}")

        if not 1 <= len(self.tag_distances_m) <= 2:
            raise ValueError("One or two tag distances are required")


@dataclass
class RunConfig:
    mode: Mode
    inputs: CalibrationInputs
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)

    def __post_init__(self):
        if len(self.inputs.tag_distances_m) != self.mode.frame_count:
            raise ValueError(
                f"{self.mode.value} needs {self.mode.frame_count} tag distance(s), "
                f"got {len(self.inputs.tag_distances_m)}"
            )
        if self.mode in (Mode.CALIBRATE, Mode.VALIDATE) and self.inputs.pixel_pitch_m is None:
            raise ValueError(f"{self.mode.value} needs the sensor pixel pitch")
        if self.capture.delay_s < 0:
            raise ValueError("Capture delay cannot be negative")

    @property
    def frame_names(self) -> Tuple[str, ...]:
        if self.mode.frame_count == 1:
            return ("test.png",)
        return ("test1.png", "test2.png")


def _env(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    return value if value else None


def _env_number(name: str, cast, default):
    """Numeric override; ValueError names the variable when it does not parse"""
    value = _env(name)
    if value is None:
        return default
    try:
        return cast(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {value!r}") from None


def get_detector_config() -> DetectorConfig:
    """Detector configuration from environment or defaults"""
    config = DetectorConfig()

    config.families = _env("FAMILIES") or config.families
    config.max_hamming = _env_number("MAX_HAMMING", int, config.max_hamming)
    config.quad_decimate = _env_number("QUAD_DECIMATE", float, config.quad_decimate)
    config.nthreads = _env_number("NTHREADS", int, config.nthreads)

    return config


def get_capture_config() -> CaptureConfig:
    """Capture configuration from environment or defaults"""
    config = CaptureConfig()

    config.camera_index = _env_number("CAMERA_INDEX", int, config.camera_index)
    config.output_dir = Path(_env("OUTPUT_DIR") or config.output_dir)

    return config


def get_log_level(default: str = "WARNING") -> str:
    level = _env("LOG_LEVEL") or default
    try:
        return LogLevel.parse(level)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}LOG_LEVEL must be one of {', '.join(LogLevel.ORDER)}, got {level!r}") from None
