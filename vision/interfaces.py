# Segregated interfaces for frame source components
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any, List

import numpy as np


class ICVConnection(ABC):
    """Interface for camera connection management"""

    @abstractmethod
    def connect(self) -> bool:
        """Connect to camera"""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from camera"""
        pass


class ICVCapture(ABC):
    """Interface for frame capture"""

    @abstractmethod
    def capture_frame(self) -> Optional[np.ndarray]:
        """Capture a single BGR frame from camera"""
        pass


class ICVHardware(ABC):
    """Interface for camera hardware enumeration and properties"""

    @abstractmethod
    def list_cameras(self, max_index: int = 10) -> List[Dict[str, Any]]:
        """List available cameras"""
        pass

    @abstractmethod
    def get_camera_info(self) -> Dict[str, Any]:
        """Get camera information"""
        pass
