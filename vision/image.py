# Single in-memory image type shared by the frame source and the tag detector
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import cv2
import numpy as np


@dataclass(frozen=True, eq=False)
class GrayscaleImage:
    """8-bit luma image, row-major, height x width"""
    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.ndim != 2:
            raise ValueError(f"Grayscale image must be 2D, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Grayscale image must be uint8, got {self.pixels.dtype}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def data(self) -> bytes:
        return self.pixels.tobytes()

    @classmethod
    def from_bgr(cls, frame: np.ndarray) -> 'GrayscaleImage':
        """Convert an OpenCV frame (BGR, BGRA or already single channel)"""
        if frame.ndim == 2:
            gray = frame
        elif frame.shape[2] == 4:
            gray = cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
        else:
            gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        return cls(np.ascontiguousarray(gray, dtype=np.uint8))

    def save(self, path: Union[str, Path]) -> Path:
        """Write the image as PNG (or whatever the suffix names)"""
        return write_image(path, self.pixels)


def write_image(path: Union[str, Path], pixels: np.ndarray) -> Path:
    path = Path(path)
    try:
        written = cv2.imwrite(str(path), pixels)
    except cv2.error as e:
        raise OSError(f"Failed to write image to {path}: {e}") from e
    if not written:
        raise OSError(f"Failed to write image to {path}")
    return path
