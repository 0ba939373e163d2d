"""Rotation helpers: Euler XYZ <-> matrix, look-at, camera forward.

Conventions follow the usual right-handed scene graph: y is up, a camera
looks down its local -z, and a plain object "looking at" a point turns its
local +z toward it (so a textured quad facing +z faces the viewer).
"""

import math

import numpy as np

UP = np.array([0.0, 1.0, 0.0])


def matrix_from_euler(euler) -> np.ndarray:
    """3x3 rotation matrix for Euler angles applied in XYZ order."""
    x, y, z = (float(v) for v in euler)
    a, b = math.cos(x), math.sin(x)
    c, d = math.cos(y), math.sin(y)
    e, f = math.cos(z), math.sin(z)
    ae, af, be, bf = a * e, a * f, b * e, b * f
    return np.array([
        [c * e, -c * f, d],
        [af + be * d, ae - bf * d, -b * c],
        [bf - ae * d, be + af * d, a * c],
    ])


def euler_from_matrix(m) -> np.ndarray:
    """Inverse of matrix_from_euler (XYZ order)."""
    m = np.asarray(m, dtype=np.float64)
    m13 = min(1.0, max(-1.0, m[0, 2]))
    y = math.asin(m13)
    if abs(m13) < 0.9999999:
        x = math.atan2(-m[1, 2], m[2, 2])
        z = math.atan2(-m[0, 1], m[0, 0])
    else:
        # Gimbal lock: fold z into x
        x = math.atan2(m[2, 1], m[1, 1])
        z = 0.0
    return np.array([x, y, z])


def look_rotation(from_pos, to_pos, up=UP) -> np.ndarray:
    """Rotation matrix whose +z axis points from `from_pos` toward `to_pos`."""
    z = np.asarray(to_pos, dtype=np.float64) - np.asarray(from_pos, dtype=np.float64)
    norm = np.linalg.norm(z)
    if norm == 0.0:
        return np.eye(3)
    z = z / norm
    x = np.cross(up, z)
    if np.linalg.norm(x) == 0.0:
        # Looking straight along up: nudge so the basis stays defined
        z = z + np.array([1e-4, 0.0, 0.0])
        z = z / np.linalg.norm(z)
        x = np.cross(up, z)
    x = x / np.linalg.norm(x)
    y = np.cross(z, x)
    return np.stack([x, y, z], axis=1)


def look_at_euler(from_pos, to_pos, up=UP) -> np.ndarray:
    """Euler XYZ that turns an object at `from_pos` to face `to_pos`."""
    return euler_from_matrix(look_rotation(from_pos, to_pos, up))


def camera_basis(position, target, up=UP) -> np.ndarray:
    """Camera rotation matrix: local -z points from position to target."""
    return look_rotation(target, position, up)


def forward_from_euler(euler) -> np.ndarray:
    """Direction a camera with this orientation is looking along."""
    return -matrix_from_euler(euler)[:, 2]


def ray_hits_cone(origin, direction, height: float, radius: float,
                  slack: float = 0.0) -> bool:
    """Rough hit test of a ray against an upright cone centred on the origin.

    Checks the ray's point of closest approach to the y axis, which is
    plenty for a click target the size of the tree.
    """
    o = np.asarray(origin, dtype=np.float64)
    d = np.asarray(direction, dtype=np.float64)
    d = d / np.linalg.norm(d)
    denom = d[0] * d[0] + d[2] * d[2]
    if denom < 1e-12:
        t = 0.0
    else:
        t = -(o[0] * d[0] + o[2] * d[2]) / denom
    if t < 0.0:
        return False
    p = o + d * t
    half = height / 2.0
    if not -half <= p[1] <= half:
        return False
    allowed = (1.0 - (p[1] + half) / height) * radius + slack
    return math.hypot(p[0], p[2]) <= allowed
