"""
AprilTag detector tests on a synthetic, fronto-parallel tag36h11 frame
"""
import unittest
import sys
import os

import cv2
import numpy as np

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from core.event_broker import EventBroker
from vision.image import GrayscaleImage
from vision.apriltag import (
    AprilTagDetector, DetectorError, TagEvents, TagRenderer, CameraIntrinsics, TagGeometry
)
from vision.apriltag.detector import parse_families
from focal.calculator import FocalCalculator


WIDTH, HEIGHT = 640, 480
TAG_PX = 160


def synthetic_frame(tag_px: int = TAG_PX, tag_ids=(0,)) -> GrayscaleImage:
    """White frame with tag36h11 markers centered along the horizontal axis"""
    dictionary = cv2.aruco.getPredefinedDictionary(cv2.aruco.DICT_APRILTAG_36h11)
    canvas = np.full((HEIGHT, WIDTH), 255, dtype=np.uint8)

    slot = WIDTH // len(tag_ids)
    for i, tag_id in enumerate(tag_ids):
        marker = cv2.aruco.generateImageMarker(dictionary, tag_id, tag_px)
        x0 = slot * i + (slot - tag_px) // 2
        y0 = (HEIGHT - tag_px) // 2
        canvas[y0:y0 + tag_px, x0:x0 + tag_px] = marker
    return GrayscaleImage(canvas)


class TestParseFamilies(unittest.TestCase):

    def test_space_or_comma_separated(self):
        self.assertEqual(parse_families("tagStandard41h12 tag36h11"), ["tagStandard41h12", "tag36h11"])
        self.assertEqual(parse_families("tag36h11,tag25h9"), ["tag36h11", "tag25h9"])

    def test_unknown(self):
        with self.assertRaises(DetectorError):
            parse_families("tag36h11 tagBogus")

    def test_empty(self):
        with self.assertRaises(DetectorError):
            parse_families("  ")


class TestAprilTagDetector(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.detector = AprilTagDetector(families="tag36h11", quad_decimate=1.0)

    def test_single_tag(self):
        result = self.detector.detect(synthetic_frame())

        self.assertEqual(result.frame_shape, (HEIGHT, WIDTH))
        self.assertEqual(len(result.detections), 1)

        detection = result.detections[0]
        self.assertEqual(detection.family, "tag36h11")
        self.assertEqual(detection.corners.shape, (4, 2))
        self.assertAlmostEqual(detection.center[0], WIDTH / 2, delta=1.5)
        self.assertAlmostEqual(detection.center[1], HEIGHT / 2, delta=1.5)
        self.assertAlmostEqual(FocalCalculator.average_side_length(detection.corners), TAG_PX, delta=2.0)

    def test_multiple_tags(self):
        result = self.detector.detect(synthetic_frame(tag_px=120, tag_ids=(0, 1)))
        self.assertEqual(len(result.detections), 2)

    def test_blank_frame(self):
        broker = EventBroker.get_default()
        seen = []
        sub = broker.subscribe(TagEvents.NO_TAGS, lambda: seen.append(True))
        try:
            result = self.detector.detect(GrayscaleImage(np.full((HEIGHT, WIDTH), 255, np.uint8)))
        finally:
            broker.unsubscribe(TagEvents.NO_TAGS, sub)

        self.assertEqual(result.detections, [])
        self.assertEqual(seen, [True])

    def test_pose_distance_matches_pinhole(self):
        """A 0.1m tag spanning 160px at f=800px sits 0.5m away"""
        detection = self.detector.detect(synthetic_frame()).detections[0]
        intrinsics = CameraIntrinsics.for_image(800.0, WIDTH, HEIGHT)

        pose = self.detector.estimate_pose(detection, 0.1, intrinsics)

        self.assertIsNotNone(pose)
        self.assertEqual(pose.translation.shape, (3,))
        self.assertAlmostEqual(FocalCalculator.apparent_distance(pose.translation), 0.5, delta=0.01)

    def test_pose_scales_with_focal_length(self):
        detection = self.detector.detect(synthetic_frame()).detections[0]

        near = self.detector.estimate_pose(detection, 0.1, CameraIntrinsics.for_image(400.0, WIDTH, HEIGHT))
        far = self.detector.estimate_pose(detection, 0.1, CameraIntrinsics.for_image(800.0, WIDTH, HEIGHT))

        ratio = FocalCalculator.apparent_distance(far.translation) / FocalCalculator.apparent_distance(near.translation)
        self.assertAlmostEqual(ratio, 2.0, delta=0.02)

    def test_render(self):
        image = synthetic_frame()
        result = self.detector.detect(image)

        annotated = TagRenderer().render(image.pixels, result)

        self.assertEqual(annotated.shape, (HEIGHT, WIDTH, 3))
        self.assertEqual(image.pixels.ndim, 2)


class TestTagGeometry(unittest.TestCase):

    def test_intrinsics_for_image(self):
        intrinsics = CameraIntrinsics.for_image(812.5, 1280, 720)
        self.assertEqual((intrinsics.fx, intrinsics.fy, intrinsics.cx, intrinsics.cy), (812.5, 812.5, 640.0, 360.0))

    def test_intrinsics_reject_bad_focal(self):
        for focal in (0.0, -10.0, float("nan")):
            with self.subTest(focal=focal):
                with self.assertRaises(ValueError):
                    CameraIntrinsics.for_image(focal, 640, 480)

    def test_projected_square_round_trip(self):
        """Corners projected from a known pose recover that pose's distance"""
        intrinsics = CameraIntrinsics.for_image(600.0, WIDTH, HEIGHT)
        object_points = TagGeometry.tag_object_points(0.2)
        tvec = np.array([0.1, -0.05, 1.5])
        image_points, _ = cv2.projectPoints(object_points, np.zeros(3), tvec,
                                            intrinsics.as_matrix(), np.zeros(5))

        pose = TagGeometry.calculate_tag_pose(image_points.reshape(4, 2), 0.2, intrinsics)

        np.testing.assert_allclose(pose.translation, tvec, atol=1e-5)

    def test_degenerate_corners(self):
        intrinsics = CameraIntrinsics.for_image(600.0, WIDTH, HEIGHT)
        collapsed = {
            "coincident": np.zeros((4, 2)),
            "collinear": np.array([[0, 0], [10, 0], [20, 0], [30, 0]], dtype=np.float64),
        }
        for name, corners in collapsed.items():
            with self.subTest(name=name):
                self.assertIsNone(TagGeometry.calculate_tag_pose(corners, 0.2, intrinsics))

    def test_quad_area(self):
        square = np.array([[0, 0], [10, 0], [10, 10], [0, 10]], dtype=np.float64)
        self.assertAlmostEqual(TagGeometry.quad_area(square), 100.0)
        self.assertAlmostEqual(TagGeometry.quad_area(square[::-1]), 100.0)


if __name__ == '__main__':
    unittest.main()
