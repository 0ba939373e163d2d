"""Formation generator and dual-formation entity pools.

Every entity gets two target positions: a sample on a jittered cone
("clustered", the tree silhouette) and a sample inside a spherical shell
("dispersed"). Samples are drawn once when a pool is built and the arrays
are frozen afterwards.
"""

import colorsys
import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from treemorph.config import MorphConfig

logger = logging.getLogger(__name__)


class FormationKind(Enum):
    CLUSTERED = "clustered"
    DISPERSED = "dispersed"


@dataclass(frozen=True)
class FormationGeometry:
    """Shape constants for both formations."""
    height: float = 18.0
    radius: float = 7.5
    radius_jitter: float = 0.5
    shell_min_radius: float = 15.0
    shell_thickness: float = 25.0

    @classmethod
    def from_config(cls, config: MorphConfig) -> "FormationGeometry":
        return cls(
            height=config.height,
            radius=config.radius,
            radius_jitter=config.radius_jitter,
            shell_min_radius=config.shell_min_radius,
            shell_thickness=config.shell_thickness,
        )


def _clustered(rng: np.random.RandomState, geometry: FormationGeometry, size: int) -> np.ndarray:
    h = geometry.height
    y = rng.uniform(0.0, 1.0, size) * h - h / 2.0
    # 0 at the base, 1 at the tip
    normalized = (y + h / 2.0) / h
    r = (1.0 - normalized) * geometry.radius
    r = r + (rng.uniform(0.0, 1.0, size) - 0.5) * geometry.radius_jitter
    angle = rng.uniform(0.0, 2.0 * math.pi, size)
    return np.stack([np.cos(angle) * r, y, np.sin(angle) * r], axis=-1)


def _dispersed(rng: np.random.RandomState, geometry: FormationGeometry, size: int) -> np.ndarray:
    r = geometry.shell_min_radius + rng.uniform(0.0, 1.0, size) * geometry.shell_thickness
    theta = rng.uniform(0.0, 2.0 * math.pi, size)
    # acos(2u - 1) keeps the density uniform over the sphere (no polar bunching)
    phi = np.arccos(2.0 * rng.uniform(0.0, 1.0, size) - 1.0)
    sin_phi = np.sin(phi)
    return np.stack([
        r * sin_phi * np.cos(theta),
        r * sin_phi * np.sin(theta),
        r * np.cos(phi),
    ], axis=-1)


_SAMPLERS = {
    FormationKind.CLUSTERED: _clustered,
    FormationKind.DISPERSED: _dispersed,
}


def sample_position(index: int, count: int, kind: FormationKind,
                    rng: np.random.RandomState,
                    geometry: FormationGeometry = FormationGeometry()) -> np.ndarray:
    """Draw one position for entity `index` of a pool of `count`.

    The layout depends only on the geometry constants, so `index` and
    `count` are informational. Returns a float64 array of shape (3,).
    """
    if not 0 <= index < count:
        raise IndexError(f"index {index} outside pool of {count}")
    return _SAMPLERS[kind](rng, geometry, 1)[0]


def generate_formation(count: int, kind: FormationKind,
                       rng: np.random.RandomState,
                       geometry: FormationGeometry = FormationGeometry()) -> np.ndarray:
    """Draw `count` positions at once as an (count, 3) float32 array."""
    _check_count(count)
    if count == 0:
        return np.zeros((0, 3), dtype=np.float32)
    return _SAMPLERS[kind](rng, geometry, count).astype(np.float32)


def _check_count(count):
    if isinstance(count, bool) or not isinstance(count, (int, np.integer)):
        raise ValueError(f"count must be an integer, got {count!r}")
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")


def _freeze(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, dtype=np.float32, copy=True)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class EntityPool:
    """N entities with two frozen formations and optional per-entity colours."""
    formation_a: np.ndarray
    formation_b: np.ndarray
    colors: np.ndarray | None = None

    def __post_init__(self):
        a = _freeze(self.formation_a)
        b = _freeze(self.formation_b)
        if a.ndim != 2 or a.shape[1] != 3 or b.ndim != 2 or b.shape[1] != 3:
            raise ValueError(f"formations must be (N, 3), got {a.shape} and {b.shape}")
        if len(a) != len(b):
            raise ValueError(f"formation lengths differ: {len(a)} != {len(b)}")
        object.__setattr__(self, "formation_a", a)
        object.__setattr__(self, "formation_b", b)
        if self.colors is not None:
            col = _freeze(self.colors)
            if col.shape != a.shape:
                raise ValueError(f"colors must be {a.shape}, got {col.shape}")
            object.__setattr__(self, "colors", col)

    @property
    def count(self) -> int:
        return len(self.formation_a)

    def __len__(self):
        return self.count

    @classmethod
    def build(cls, count: int, rng: np.random.RandomState,
              geometry: FormationGeometry = FormationGeometry(),
              colors: np.ndarray | None = None) -> "EntityPool":
        """Sample both formations for `count` entities."""
        formation_a = generate_formation(count, FormationKind.CLUSTERED, rng, geometry)
        formation_b = generate_formation(count, FormationKind.DISPERSED, rng, geometry)
        return cls(formation_a, formation_b, colors)


# Light colours as sRGB 0-1
_LIGHT_RED = (1.0, 0x22 / 255.0, 0x22 / 255.0)
_LIGHT_GOLD = (1.0, 0xAA / 255.0, 0.0)


def particle_colors(foliage: int, lights: int, rng: np.random.RandomState) -> np.ndarray:
    """Green foliage followed by red/gold lights, (foliage + lights, 3) float32."""
    _check_count(foliage)
    _check_count(lights)
    col = np.zeros((foliage + lights, 3), dtype=np.float32)
    for i in range(foliage):
        col[i] = colorsys.hls_to_rgb(0.3, 0.3 + rng.uniform(0.0, 1.0) * 0.2, 0.8)
    if lights:
        red = rng.uniform(0.0, 1.0, lights) > 0.5
        col[foliage:] = np.where(red[:, None], _LIGHT_RED, _LIGHT_GOLD)
    return col


def build_particle_pool(config: MorphConfig, rng: np.random.RandomState) -> EntityPool:
    geometry = FormationGeometry.from_config(config)
    count = config.particle_count
    pool = EntityPool.build(count, rng, geometry,
                            colors=particle_colors(config.foliage, config.lights, rng))
    logger.info("[Morph] Particle pool: %d foliage + %d lights", config.foliage, config.lights)
    return pool
