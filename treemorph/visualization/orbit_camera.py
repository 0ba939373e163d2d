"""Orbit camera: drag to rotate, scroll to zoom, idle auto-rotation.

Angles follow the common orbit-controls convention: azimuth theta around +y
(0 looks down -z from +z), polar phi measured from +y. Auto-rotate speed
is in "turns per minute at speed 1.0" units, so 1.5 is a slow 1.5 rpm.
"""

import math

import numpy as np

from treemorph.morph.spatial import camera_basis, euler_from_matrix

_POLAR_EPS = 1e-6


def perspective(fov_deg: float, aspect: float, near: float, far: float) -> np.ndarray:
    f = 1.0 / math.tan(math.radians(fov_deg) / 2.0)
    return np.array([
        [f / aspect, 0.0, 0.0, 0.0],
        [0.0, f, 0.0, 0.0],
        [0.0, 0.0, (far + near) / (near - far), 2.0 * far * near / (near - far)],
        [0.0, 0.0, -1.0, 0.0],
    ])


class OrbitCamera:
    """Camera pose provider for the morph core, steered by mouse input."""

    def __init__(self, distance: float = 35.0, fov: float = 35.0,
                 min_distance: float = 10.0, max_distance: float = 60.0,
                 target=(0.0, 0.0, 0.0), near: float = 0.1, far: float = 1000.0):
        self.target = np.asarray(target, dtype=np.float64)
        self.distance = distance
        self.min_distance = min_distance
        self.max_distance = max_distance
        self.theta = 0.0
        self.phi = math.pi / 2.0
        self.fov = fov
        self.near = near
        self.far = far

        self.enabled = True
        self.auto_rotate = True
        self.auto_rotate_speed = 1.5
        self.rotate_speed = 1.0
        self.zoom_speed = 1.0

    # --- Pose ---

    @property
    def position(self) -> np.ndarray:
        sp = math.sin(self.phi)
        offset = np.array([
            self.distance * sp * math.sin(self.theta),
            self.distance * math.cos(self.phi),
            self.distance * sp * math.cos(self.theta),
        ])
        return self.target + offset

    def get_camera_position(self) -> np.ndarray:
        return self.position

    def get_camera_forward(self) -> np.ndarray:
        d = self.target - self.position
        return d / np.linalg.norm(d)

    def get_camera_orientation(self) -> np.ndarray:
        return euler_from_matrix(camera_basis(self.position, self.target))

    # --- Input ---

    def rotate(self, dx: float, dy: float, viewport_height: float):
        """Drag by (dx, dy) pixels; a full viewport height drag is one turn."""
        if not self.enabled or viewport_height <= 0:
            return
        self.theta -= 2.0 * math.pi * dx / viewport_height * self.rotate_speed
        self.phi -= 2.0 * math.pi * dy / viewport_height * self.rotate_speed
        self._clamp()

    def zoom(self, scroll: float):
        if not self.enabled:
            return
        self.distance *= 0.95 ** (scroll * self.zoom_speed)
        self._clamp()

    def apply_gate(self, gate):
        """Lock controls while an ornament is focused; pick the idle spin speed."""
        locked = gate.is_interaction_locked()
        self.enabled = not locked
        self.auto_rotate = not locked
        self.auto_rotate_speed = gate.auto_rotate_speed()

    def update(self, dt: float):
        if self.auto_rotate and dt > 0.0:
            self.theta -= 2.0 * math.pi / 60.0 * self.auto_rotate_speed * dt
            self.theta = math.fmod(self.theta, 2.0 * math.pi)

    def _clamp(self):
        self.phi = min(math.pi - _POLAR_EPS, max(_POLAR_EPS, self.phi))
        self.distance = min(self.max_distance, max(self.min_distance, self.distance))

    # --- Matrices ---

    def view_matrix(self) -> np.ndarray:
        rot = camera_basis(self.position, self.target)
        view = np.eye(4)
        view[:3, :3] = rot.T
        view[:3, 3] = -rot.T @ self.position
        return view

    def projection_matrix(self, aspect: float) -> np.ndarray:
        return perspective(self.fov, aspect, self.near, self.far)

    def screen_ray(self, x: float, y: float, width: float, height: float):
        """World-space (origin, direction) through window pixel (x, y)."""
        ndc_x = 2.0 * x / width - 1.0
        ndc_y = 1.0 - 2.0 * y / height
        inv = np.linalg.inv(self.projection_matrix(width / height) @ self.view_matrix())
        far = inv @ np.array([ndc_x, ndc_y, 1.0, 1.0])
        far = far[:3] / far[3]
        origin = self.position
        direction = far - origin
        return origin, direction / np.linalg.norm(direction)
