"""Camera gate: the narrow seam between the morph core and the camera.

The core only reads a pose (position, forward, orientation). Outward it
reports whether camera controls must be locked and how fast the idle
auto-rotation should turn.
"""

from typing import Protocol

import numpy as np

from treemorph.morph.spatial import camera_basis, euler_from_matrix


class CameraPose(Protocol):
    def get_camera_position(self) -> np.ndarray: ...

    def get_camera_forward(self) -> np.ndarray: ...

    def get_camera_orientation(self) -> np.ndarray: ...


class FixedCamera:
    """A camera that sits still looking at a point. Handy headless."""

    def __init__(self, position=(0.0, 0.0, 35.0), target=(0.0, 0.0, 0.0)):
        self.position = np.asarray(position, dtype=np.float64)
        self.target = np.asarray(target, dtype=np.float64)

    def get_camera_position(self) -> np.ndarray:
        return self.position.copy()

    def get_camera_forward(self) -> np.ndarray:
        d = self.target - self.position
        return d / np.linalg.norm(d)

    def get_camera_orientation(self) -> np.ndarray:
        return euler_from_matrix(camera_basis(self.position, self.target))


class CameraGate:
    """Derives camera-control permissions from the shared app state."""

    def __init__(self, app_state, auto_rotate_clustered: float = 1.5,
                 auto_rotate_dispersed: float = 0.3):
        self._app_state = app_state
        self.auto_rotate_clustered = auto_rotate_clustered
        self.auto_rotate_dispersed = auto_rotate_dispersed

    def is_interaction_locked(self) -> bool:
        """True while an ornament holds the focus view."""
        return self._app_state.active_ornament_id is not None

    def auto_rotate_speed(self) -> float:
        if self.is_interaction_locked():
            return 0.0
        if self._app_state.is_dispersed:
            return self.auto_rotate_dispersed
        return self.auto_rotate_clustered
