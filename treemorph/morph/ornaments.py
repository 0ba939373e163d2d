"""Interactive ornaments: idle / active / suppressed, with damped transforms.

Which ornament is active lives in exactly one place (the app state's
active_ornament_id). Each ornament's state is derived from that id every
time it changes and every tick, so two ornaments can never both believe
they are active.
"""

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from treemorph.config import MorphConfig
from treemorph.morph.damping import damp_angles, smooth_damp
from treemorph.morph.formation import EntityPool
from treemorph.morph.spatial import look_at_euler

# Below this scale an ornament counts as hidden and can't be clicked
_PICK_MIN_SCALE = 1e-3


class OrnamentState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    SUPPRESSED = "suppressed"


def derive_state(index: int, active_id: int | None) -> OrnamentState:
    if active_id is None:
        return OrnamentState.IDLE
    if active_id == index:
        return OrnamentState.ACTIVE
    return OrnamentState.SUPPRESSED


@dataclass(frozen=True)
class OrnamentTuning:
    smooth_time: float = 0.25
    focus_distance: float = 8.0
    focus_scale: float = 4.5
    rest_scale_clustered: float = 0.8
    rest_scale_dispersed: float = 1.5
    spin: float = 0.1

    @classmethod
    def from_config(cls, config: MorphConfig) -> "OrnamentTuning":
        return cls(
            smooth_time=config.smooth_time,
            focus_distance=config.focus_distance,
            focus_scale=config.focus_scale,
            rest_scale_clustered=config.rest_scale_clustered,
            rest_scale_dispersed=config.rest_scale_dispersed,
            spin=config.ornament_spin,
        )


class Transform:
    """Position, per-axis scale and Euler XYZ rotation."""
    __slots__ = ("position", "scale", "rotation")

    def __init__(self, position, scale, rotation=(0.0, 0.0, 0.0)):
        self.position = np.array(position, dtype=np.float64)
        self.scale = np.array(scale, dtype=np.float64)
        self.rotation = np.array(rotation, dtype=np.float64)

    def copy(self) -> "Transform":
        return Transform(self.position, self.scale, self.rotation)


class Ornament:
    """One clickable photo slot."""

    def __init__(self, index: int, formation_pos, dispersed_pos,
                 tuning: OrnamentTuning = OrnamentTuning(), image_slot: int = 0):
        self.index = index
        self.formation_pos = np.array(formation_pos, dtype=np.float64)
        self.formation_pos.flags.writeable = False
        self.dispersed_pos = np.array(dispersed_pos, dtype=np.float64)
        self.dispersed_pos.flags.writeable = False
        self.tuning = tuning
        self.image_slot = image_slot
        self.state = OrnamentState.IDLE

        s = tuning.rest_scale_clustered
        self.transform = Transform(self.formation_pos, (s, s, 1.0))
        self._position_velocity = np.zeros(3)
        self._scale_velocity = np.zeros(3)
        self._rotation_velocity = np.zeros(3)

    def destination(self, dispersed: bool, camera) -> tuple[np.ndarray, float]:
        """Where this ornament is heading and at what uniform scale."""
        t = self.tuning
        if self.state is OrnamentState.ACTIVE:
            # Recomputed from the live pose each tick so the photo follows the camera
            pos = camera.get_camera_position() + camera.get_camera_forward() * t.focus_distance
            return pos, t.focus_scale

        pos = self.dispersed_pos if dispersed else self.formation_pos
        if self.state is OrnamentState.SUPPRESSED:
            return pos, 0.0
        return pos, t.rest_scale_dispersed if dispersed else t.rest_scale_clustered

    def update(self, dt: float, dispersed: bool, camera):
        if dt <= 0.0:
            return
        tr = self.transform
        smooth = self.tuning.smooth_time
        dest, dest_scale = self.destination(dispersed, camera)

        tr.position, self._position_velocity = smooth_damp(
            tr.position, dest, self._position_velocity, smooth, dt)
        tr.scale, self._scale_velocity = smooth_damp(
            tr.scale, (dest_scale, dest_scale, 1.0), self._scale_velocity, smooth, dt)

        if self.state is OrnamentState.ACTIVE:
            tr.rotation, self._rotation_velocity = damp_angles(
                tr.rotation, camera.get_camera_orientation(),
                self._rotation_velocity, smooth, dt)
            return

        self._rotation_velocity = np.zeros(3)
        tr.rotation[1] = math.fmod(tr.rotation[1] + dt * self.tuning.spin, 2.0 * math.pi)
        if dispersed:
            # Billboard: face the viewer
            tr.rotation = look_at_euler(tr.position, camera.get_camera_position())


class OrnamentField:
    """All ornaments of one pool, updated together each tick."""

    def __init__(self, pool: EntityPool, tuning: OrnamentTuning = OrnamentTuning(),
                 image_slots: list[int] | None = None):
        if image_slots is not None and len(image_slots) != pool.count:
            raise ValueError(f"expected {pool.count} image slots, got {len(image_slots)}")
        self.pool = pool
        self.ornaments = [
            Ornament(i, pool.formation_a[i], pool.formation_b[i], tuning,
                     image_slots[i] if image_slots is not None else 0)
            for i in range(pool.count)
        ]

    def __len__(self):
        return len(self.ornaments)

    def __getitem__(self, index: int) -> Ornament:
        return self.ornaments[index]

    def __iter__(self):
        return iter(self.ornaments)

    def sync_states(self, active_id: int | None):
        for o in self.ornaments:
            o.state = derive_state(o.index, active_id)

    def states(self) -> list[OrnamentState]:
        return [o.state for o in self.ornaments]

    def tick(self, dt: float, dispersed: bool, active_id: int | None, camera):
        self.sync_states(active_id)
        for o in self.ornaments:
            o.update(dt, dispersed, camera)

    def transforms(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """(positions, scales, rotations) stacked as (N, 3) float32 arrays."""
        if not self.ornaments:
            empty = np.zeros((0, 3), dtype=np.float32)
            return empty, empty.copy(), empty.copy()
        pos = np.array([o.transform.position for o in self.ornaments], dtype=np.float32)
        scl = np.array([o.transform.scale for o in self.ornaments], dtype=np.float32)
        rot = np.array([o.transform.rotation for o in self.ornaments], dtype=np.float32)
        return pos, scl, rot

    def pick(self, origin, direction) -> int | None:
        """Nearest visible ornament hit by a ray, using bounding spheres."""
        origin = np.asarray(origin, dtype=np.float64)
        direction = np.asarray(direction, dtype=np.float64)
        direction = direction / np.linalg.norm(direction)
        best, best_t = None, math.inf
        for o in self.ornaments:
            size = max(o.transform.scale[0], o.transform.scale[1])
            if size < _PICK_MIN_SCALE:
                continue
            # Unit quad: half-diagonal
            radius = size * math.sqrt(0.5)
            to_center = o.transform.position - origin
            t = float(np.dot(to_center, direction))
            if t < 0.0:
                continue
            miss_sq = float(np.dot(to_center, to_center)) - t * t
            if miss_sq <= radius * radius and t < best_t:
                best, best_t = o.index, t
        return best


def assign_image_slots(slot_count: int, source_count: int) -> list[int]:
    """Slot i shows source image i mod source_count; sources are reused on purpose."""
    if slot_count < 0:
        raise ValueError(f"slot_count must be non-negative, got {slot_count}")
    if slot_count == 0:
        return []
    if source_count <= 0:
        raise ValueError("at least one image source is needed for a non-empty ornament pool")
    return [i % source_count for i in range(slot_count)]
