from .detector import AprilTagDetector, DetectorError, DEFAULT_FAMILIES, SUPPORTED_FAMILIES
from .renderer import TagRenderer
from .calculator import TagGeometry
from .types import TagDetection, TagDetectionResult, TagPose, CameraIntrinsics
from .events import TagEvents
from .interfaces import ITagDetector, ITagRenderer

__all__ = [
    "AprilTagDetector",
    "DetectorError",
    "DEFAULT_FAMILIES",
    "SUPPORTED_FAMILIES",
    "TagRenderer",
    "TagGeometry",
    "TagDetection",
    "TagDetectionResult",
    "TagPose",
    "CameraIntrinsics",
    "TagEvents",
    "ITagDetector",
    "ITagRenderer",
]
