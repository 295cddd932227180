import numpy as np
import cv2
from typing import Optional, Tuple

from .types import CameraIntrinsics, TagPose

# Collapsed quads (coincident or collinear corners) have no usable pose
MIN_QUAD_AREA_PX = 1.0


class TagGeometry:
    """Pure geometric calculations on detected tag corners - stateless"""

    @staticmethod
    def calculate_tag_center(corners: np.ndarray) -> Tuple[float, float]:
        center_x = corners[:, 0].mean()
        center_y = corners[:, 1].mean()
        return (float(center_x), float(center_y))

    @staticmethod
    def quad_area(corners: np.ndarray) -> float:
        """Shoelace area in square pixels"""
        x, y = corners[:, 0], corners[:, 1]
        return float(0.5 * abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))

    @staticmethod
    def tag_object_points(tag_width: float) -> np.ndarray:
        # AprilTag corner order, which is also the order SOLVEPNP_IPPE_SQUARE expects
        half_size = tag_width / 2.0
        return np.array([
            [-half_size,  half_size, 0],
            [ half_size,  half_size, 0],
            [ half_size, -half_size, 0],
            [-half_size, -half_size, 0]
        ], dtype=np.float64)

    @staticmethod
    def calculate_tag_pose(corners: np.ndarray,
                           tag_width: float,
                           intrinsics: CameraIntrinsics,
                           dist_coeffs: Optional[np.ndarray] = None) -> Optional[TagPose]:
        """Solve the tag pose; None when the solver gives no usable answer"""
        if dist_coeffs is None:
            dist_coeffs = np.zeros(5, dtype=np.float64)

        image_points = np.asarray(corners, dtype=np.float64).reshape(4, 1, 2)
        if TagGeometry.quad_area(image_points.reshape(4, 2)) < MIN_QUAD_AREA_PX:
            return None

        try:
            success, rvec, tvec = cv2.solvePnP(
                TagGeometry.tag_object_points(tag_width),
                image_points,
                intrinsics.as_matrix(),
                dist_coeffs,
                flags=cv2.SOLVEPNP_IPPE_SQUARE
            )
        except cv2.error:
            return None

        if not success:
            return None

        translation = np.asarray(tvec, dtype=np.float64).reshape(3)
        if not np.all(np.isfinite(translation)):
            return None

        return TagPose(translation=translation,
                       rotation=np.asarray(rvec, dtype=np.float64).reshape(3))
