# Utility functions for camera management
import cv2
import platform
from typing import Optional, Tuple


def get_optimal_camera_backend():
    """Get the optimal camera backend for current platform"""
    system = platform.system().lower()

    if system == "windows":
        return cv2.CAP_DSHOW
    elif system == "linux":
        return cv2.CAP_V4L2
    elif system == "darwin":  # macOS
        return cv2.CAP_AVFOUNDATION
    else:
        return cv2.CAP_ANY


# OpenCV clamps an oversized request to the largest mode the camera offers
MAX_RESOLUTION = (10000, 10000)


def parse_resolution(text: str) -> Optional[Tuple[int, int]]:
    """Parse 'WIDTHxHEIGHT' (e.g. 1920x1080), 'max' for the largest mode, or empty/'auto' for the driver default"""
    text = text.strip().lower()
    if text in ("", "auto"):
        return None
    if text == "max":
        return MAX_RESOLUTION

    parts = text.split("x")
    if len(parts) != 2:
        raise ValueError(f"Resolution must look like 1920x1080, got {text!r}")

    width, height = (int(p) for p in parts)
    if width <= 0 or height <= 0:
        raise ValueError(f"Resolution must be positive, got {text!r}")
    return width, height
