import cv2
import numpy as np
from typing import Tuple
from .interfaces import ITagRenderer
from .types import TagDetectionResult, TagDetection


class TagRenderer(ITagRenderer):
    """Renders AprilTag information on frames (no detection, only drawing)"""

    def __init__(self):
        self.show_boxes = True
        self.show_ids = True
        self.show_image_center = True

        self.box_color = (0, 255, 0)
        self.id_color = (255, 0, 0)
        self.center_color = (0, 255, 255)
        self.text_color = (255, 255, 255)

        self.font = cv2.FONT_HERSHEY_SIMPLEX
        self.font_scale = 0.5
        self.font_thickness = 2

    def render(self, frame: np.ndarray, result: TagDetectionResult) -> np.ndarray:
        """Draw onto a BGR copy of the frame"""
        output = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR) if frame.ndim == 2 else frame.copy()

        if self.show_image_center:
            height, width = result.frame_shape
            self._draw_image_center(output, (width / 2.0, height / 2.0))

        for detection in result.detections:
            if self.show_boxes:
                self._draw_box(output, detection)
            if self.show_ids:
                self._draw_id(output, detection)

        self._draw_stats(output, result)
        return output

    def _draw_image_center(self, frame: np.ndarray, center: Tuple[float, float]):
        cx, cy = int(center[0]), int(center[1])
        size = 20

        cv2.line(frame, (cx - size, cy), (cx + size, cy), self.center_color, 2)
        cv2.line(frame, (cx, cy - size), (cx, cy + size), self.center_color, 2)

    def _draw_box(self, frame: np.ndarray, detection: TagDetection):
        corners = detection.corners.astype(np.int32)
        cv2.polylines(frame, [corners], True, self.box_color, 2)
        # First corner marks the winding start
        cv2.circle(frame, tuple(int(v) for v in corners[0]), 4, self.id_color, -1)

    def _draw_id(self, frame: np.ndarray, detection: TagDetection):
        cx, cy = int(detection.center[0]), int(detection.center[1])
        text = f"{detection.family}:{detection.tag_id}"

        (tw, th), _ = cv2.getTextSize(text, self.font, self.font_scale, self.font_thickness)
        cv2.rectangle(frame, (cx - tw//2 - 5, cy - th - 10), (cx + tw//2 + 5, cy - 5), (0, 0, 0), -1)
        cv2.putText(frame, text, (cx - tw//2, cy - 10), self.font, self.font_scale, self.id_color, self.font_thickness)

    def _draw_stats(self, frame: np.ndarray, result: TagDetectionResult):
        text = f"Tags: {len(result.detections)}"
        cv2.putText(frame, text, (10, 30), self.font, 0.7, self.text_color, 2)
