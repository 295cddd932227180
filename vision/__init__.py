# Frame source exports
from .manager import CameraManager, CameraManagerCore, CameraError, grab_grayscale_frame
from .events import CameraEvents
from .image import GrayscaleImage
from .interfaces import ICVConnection, ICVCapture, ICVHardware

__all__ = [
    'CameraManager',            # Camera manager with events + logging
    'CameraManagerCore',
    'CameraError',
    'grab_grayscale_frame',     # Scoped single-frame capture
    'CameraEvents',
    'GrayscaleImage',
    'ICVConnection',
    'ICVCapture',
    'ICVHardware',
]
