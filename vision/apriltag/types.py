import math
from dataclasses import dataclass, field
from typing import List, Tuple
import numpy as np


@dataclass(eq=False)
class TagDetection:
    tag_id: int
    family: str
    corners: np.ndarray
    center: Tuple[float, float]
    hamming: int = 0
    decision_margin: float = 0.0


@dataclass
class TagDetectionResult:
    frame_shape: Tuple[int, int]
    detections: List[TagDetection] = field(default_factory=list)


@dataclass(eq=False)
class TagPose:
    translation: np.ndarray
    rotation: np.ndarray


@dataclass(frozen=True)
class CameraIntrinsics:
    """Pinhole intrinsics with square pixels and the principal point at the image center"""
    fx: float
    fy: float
    cx: float
    cy: float

    @classmethod
    def for_image(cls, focal_px: float, width: int, height: int) -> 'CameraIntrinsics':
        if not math.isfinite(focal_px) or focal_px <= 0:
            raise ValueError(f"Focal length must be a positive number of pixels, got {focal_px}")
        return cls(fx=focal_px, fy=focal_px, cx=width / 2.0, cy=height / 2.0)

    def as_matrix(self) -> np.ndarray:
        return np.array([
            [self.fx, 0.0, self.cx],
            [0.0, self.fy, self.cy],
            [0.0, 0.0, 1.0]
        ], dtype=np.float64)
