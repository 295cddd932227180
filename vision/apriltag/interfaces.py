from abc import ABC, abstractmethod
from typing import Optional
import numpy as np
from ..image import GrayscaleImage
from .types import TagDetection, TagDetectionResult, TagPose, CameraIntrinsics


class ITagDetector(ABC):
    @abstractmethod
    def detect(self, image: GrayscaleImage) -> TagDetectionResult: pass

    @abstractmethod
    def estimate_pose(self, detection: TagDetection, tag_width_m: float,
                      intrinsics: CameraIntrinsics) -> Optional[TagPose]: pass


class ITagRenderer(ABC):
    @abstractmethod
    def render(self, frame: np.ndarray, result: TagDetectionResult) -> np.ndarray: pass
