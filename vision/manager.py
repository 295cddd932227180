# Camera Manager - Lean hardware management with explicit decorator application
import cv2
import numpy as np
from typing import Optional, Dict, Any, List, Tuple, Callable

from core.event_broker import event_aware
from core.logger import log_aware
from .interfaces import ICVConnection, ICVCapture, ICVHardware
from .events import CameraEvents
from .image import GrayscaleImage
from .utils import get_optimal_camera_backend


class CameraError(RuntimeError):
    """Camera could not be opened or did not deliver a frame"""


class CameraManagerCore(ICVConnection, ICVCapture, ICVHardware):
    """
    Core camera manager - pure hardware management
    No decorators applied - base implementation
    """

    def __init__(self, camera_id: int = 0, resolution: Optional[Tuple[int, int]] = None):
        self.camera_id = camera_id
        self.resolution = resolution
        self.cap = None
        self._is_connected = False

    @property
    def is_connected(self) -> bool:
        """Check if camera is currently connected"""
        return self._is_connected and self.cap is not None and self.cap.isOpened()

    def _emit(self, event_type: str, *args):
        if hasattr(self, 'emit'):
            self.emit(event_type, *args)

    def _log(self, message: str):
        if hasattr(self, 'info'):
            self.info(message)

    def list_cameras(self, max_index: int = 10) -> List[Dict[str, Any]]:
        """List available cameras by testing indices 0..max_index-1"""
        cameras = []

        for i in range(max_index):
            cap = cv2.VideoCapture(i)
            if cap.isOpened():
                ret, frame = cap.read()
                if ret and frame is not None:
                    cameras.append({
                        'index': i,
                        'name': f'Camera {i}',
                        'backend': self._get_backend_name(cap),
                        'width': int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                        'height': int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
                    })
            cap.release()

        return cameras

    def _get_backend_name(self, cap) -> str:
        """Get backend name from capture object"""
        try:
            backend = cap.getBackendName()
            return backend if backend else "Unknown"
        except cv2.error:
            return "Unknown"

    def connect(self) -> bool:
        """Connect to camera with platform-optimized backend"""
        try:
            # Try optimal backend first, fall back to default
            self.cap = cv2.VideoCapture(self.camera_id, get_optimal_camera_backend())
            if not self.cap.isOpened():
                self.cap = cv2.VideoCapture(self.camera_id)

            success = self.cap.isOpened()

            if success:
                if self.resolution is not None:
                    self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
                    self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])

                # Only the newest frame matters for a still capture
                self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

                # Test capture
                ret, frame = self.cap.read()
                success = bool(ret) and frame is not None

                if success and self.resolution is not None:
                    width, height = self.resolution
                    self._log(f"Requested {width}x{height}, camera delivers {frame.shape[1]}x{frame.shape[0]}")

            if not success:
                self.cap.release()
                self.cap = None

            self._is_connected = success
            self._emit(CameraEvents.CONNECTED, success)
            return success

        except cv2.error as e:
            self._emit(CameraEvents.ERROR, f"Failed to connect to camera {self.camera_id}: {e}")
            self._emit(CameraEvents.CONNECTED, False)
            self._is_connected = False
            return False

    def disconnect(self) -> None:
        """Disconnect camera"""
        if self.cap:
            self.cap.release()
            self.cap = None

        was_connected = self._is_connected
        self._is_connected = False

        if was_connected:
            self._emit(CameraEvents.DISCONNECTED)

    def capture_frame(self) -> Optional[np.ndarray]:
        """Capture a single frame"""
        if not self.cap or not self._is_connected:
            return None

        try:
            ret, frame = self.cap.read()
        except cv2.error as e:
            self._emit(CameraEvents.ERROR, f"Error capturing frame: {e}")
            return None

        if ret and frame is not None:
            self._emit(CameraEvents.FRAME_CAPTURED, frame.shape)
            return frame

        self._emit(CameraEvents.ERROR, "Failed to capture frame")
        return None

    def get_camera_info(self) -> Dict[str, Any]:
        """Get camera information"""
        info = {
            "camera_id": self.camera_id,
            "connected": self.is_connected,
            "resolution": self.resolution
        }

        if self.is_connected:
            info.update({
                "width": int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                "height": int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
                "fps": self.cap.get(cv2.CAP_PROP_FPS),
                "backend": self._get_backend_name(self.cap)
            })

        return info


# ============================================================================
# EXPLICIT DECORATOR APPLICATION
# ============================================================================

# CameraManager: base manager with event system and component logging
CameraManager = event_aware()(log_aware("Camera")(CameraManagerCore))


def grab_grayscale_frame(camera_id: int = 0,
                         resolution: Optional[Tuple[int, int]] = None,
                         manager_factory: Optional[Callable[..., CameraManagerCore]] = None) -> GrayscaleImage:
    """
    Open the camera, capture exactly one frame, release it, return luma.
    The camera is released before returning, also on failure.
    """
    factory = manager_factory or CameraManager
    manager = factory(camera_id=camera_id, resolution=resolution)

    if not manager.connect():
        raise CameraError(f"Failed to open camera {camera_id}")
    try:
        frame = manager.capture_frame()
    finally:
        manager.disconnect()

    if frame is None:
        raise CameraError(f"Camera {camera_id} did not deliver a frame")
    return GrayscaleImage.from_bgr(frame)
