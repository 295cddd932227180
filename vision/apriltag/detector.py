import numpy as np
from typing import Optional, List
from pupil_apriltags import Detector
from core.event_broker import event_aware
from core.logger import log_aware, logged, LogLevel
from ..image import GrayscaleImage
from .interfaces import ITagDetector
from .types import TagDetection, TagDetectionResult, TagPose, CameraIntrinsics
from .events import TagEvents
from .calculator import TagGeometry


SUPPORTED_FAMILIES = (
    "tag16h5",
    "tag25h9",
    "tag36h11",
    "tagCircle21h7",
    "tagCircle49h12",
    "tagCustom48h12",
    "tagStandard41h12",
    "tagStandard52h13",
)

DEFAULT_FAMILIES = "tagStandard41h12 tag36h11"


class DetectorError(RuntimeError):
    """The underlying AprilTag detector could not be built or run"""


def parse_families(families: str) -> List[str]:
    names = families.replace(",", " ").split()
    if not names:
        raise DetectorError("At least one tag family is required")

    unknown = [name for name in names if name not in SUPPORTED_FAMILIES]
    if unknown:
        raise DetectorError(
            f"Unknown tag family {', '.join(unknown)}; choose from {', '.join(SUPPORTED_FAMILIES)}"
        )
    return names


@event_aware()
@log_aware("AprilTag")
class AprilTagDetector(ITagDetector):
    """AprilTag detector - detects, estimates pose, emits events (no rendering)"""

    def __init__(self, families: str = DEFAULT_FAMILIES, max_hamming: int = 1,
                 quad_decimate: float = 2.0, nthreads: int = 1):
        self.families = parse_families(families)
        self.max_hamming = max_hamming

        try:
            self._detector = Detector(
                families=" ".join(self.families),
                nthreads=nthreads,
                quad_decimate=quad_decimate,
                refine_edges=1,
            )
        except (RuntimeError, OSError, ValueError) as e:
            raise DetectorError(f"Failed to build AprilTag detector: {e}") from e

        self.geometry = TagGeometry()
        self.debug(f"Detector ready for {', '.join(self.families)} (max hamming {max_hamming})")

    @logged(LogLevel.DEBUG)
    def detect(self, image: GrayscaleImage) -> TagDetectionResult:
        pixels = np.ascontiguousarray(image.pixels, dtype=np.uint8)

        try:
            raw_detections = self._detector.detect(pixels)
        except (RuntimeError, ValueError) as e:
            self.emit(TagEvents.DETECTION_ERROR, str(e))
            raise DetectorError(f"AprilTag detection failed: {e}") from e

        detections = []
        for raw in raw_detections:
            if raw.hamming > self.max_hamming:
                self.debug(f"Ignoring tag {raw.tag_id} with {raw.hamming} corrected bits")
                continue
            detections.append(self._to_detection(raw))

        result = TagDetectionResult(frame_shape=(image.height, image.width), detections=detections)

        if detections:
            self.emit(TagEvents.TAGS_DETECTED, result)
        else:
            self.emit(TagEvents.NO_TAGS)
        return result

    def _to_detection(self, raw) -> TagDetection:
        corners = np.asarray(raw.corners, dtype=np.float64).reshape(4, 2)
        family = raw.tag_family.decode() if isinstance(raw.tag_family, bytes) else str(raw.tag_family)

        return TagDetection(
            tag_id=int(raw.tag_id),
            family=family,
            corners=corners,
            center=self.geometry.calculate_tag_center(corners),
            hamming=int(raw.hamming),
            decision_margin=float(raw.decision_margin)
        )

    def estimate_pose(self, detection: TagDetection, tag_width_m: float,
                      intrinsics: CameraIntrinsics) -> Optional[TagPose]:
        pose = self.geometry.calculate_tag_pose(detection.corners, tag_width_m, intrinsics)

        if pose is None:
            self.emit(TagEvents.POSE_FAILED, detection.tag_id)
        else:
            self.emit(TagEvents.POSE_ESTIMATED, detection.tag_id, pose)
        return pose
