"""
Focal length and distance calculations - pure functions on detector output

Operation A: focal length from a tag at a known distance (similar triangles)
Operation B: apparent distance from a pose translation and its error against a reference
"""
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

MICROMETERS_PER_METER = 1_000_000


@dataclass(frozen=True)
class FocalLengthEstimate:
    average_side_px: float
    focal_length_m: float
    focal_length_px: float

    @property
    def focal_length_mm(self) -> float:
        return self.focal_length_m * 1000.0


@dataclass(frozen=True)
class DistanceCheck:
    apparent_distance_m: float
    reference_distance_m: Optional[float] = None
    error_pct: Optional[float] = None


def _require_positive(name: str, value: float):
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive number, got {value}")


class FocalCalculator:
    """Pure focal length / distance calculations - stateless"""

    @staticmethod
    def micrometers_to_meters(micrometers: float) -> float:
        return micrometers / MICROMETERS_PER_METER

    @staticmethod
    def average_side_length(corners) -> float:
        """Mean edge length of the closed 4-corner polygon, in the corners' units"""
        points = np.asarray(corners, dtype=np.float64)
        if points.shape != (4, 2):
            raise ValueError(f"Expected 4 corners of (x, y), got shape {points.shape}")

        closed = np.vstack([points, points[:1]])
        edges = np.diff(closed, axis=0)
        return float(np.hypot(edges[:, 0], edges[:, 1]).sum() / 4.0)

    @staticmethod
    def focal_length_from_distance(corners,
                                   tag_width_m: float,
                                   tag_distance_m: float,
                                   pixel_pitch_m: float) -> FocalLengthEstimate:
        _require_positive("Tag width", tag_width_m)
        _require_positive("Tag distance", tag_distance_m)
        _require_positive("Pixel pitch", pixel_pitch_m)

        side_px = FocalCalculator.average_side_length(corners)
        side_m = side_px * pixel_pitch_m
        focal_length_m = (side_m / tag_width_m) * tag_distance_m

        return FocalLengthEstimate(
            average_side_px=side_px,
            focal_length_m=focal_length_m,
            focal_length_px=focal_length_m / pixel_pitch_m
        )

    @staticmethod
    def apparent_distance(translation: Sequence[float]) -> float:
        x, y, z = (float(v) for v in np.asarray(translation, dtype=np.float64).reshape(3))
        return math.sqrt(x * x + y * y + z * z)

    @staticmethod
    def distance_error_percent(apparent_distance_m: float, reference_distance_m: float) -> float:
        _require_positive("Reference distance", reference_distance_m)
        return abs(apparent_distance_m - reference_distance_m) / reference_distance_m * 100.0

    @staticmethod
    def distance_check(translation: Sequence[float],
                       reference_distance_m: Optional[float] = None) -> DistanceCheck:
        apparent = FocalCalculator.apparent_distance(translation)

        if reference_distance_m is None:
            return DistanceCheck(apparent_distance_m=apparent)

        return DistanceCheck(
            apparent_distance_m=apparent,
            reference_distance_m=reference_distance_m,
            error_pct=FocalCalculator.distance_error_percent(apparent, reference_distance_m)
        )
