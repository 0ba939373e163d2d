"""Decorative spheres and boxes that morph with the tree but can't be clicked."""

import logging
import math
from enum import IntEnum

import numpy as np

from treemorph.config import MorphConfig
from treemorph.morph.coordinator import MorphCoordinator
from treemorph.morph.formation import EntityPool, FormationGeometry

logger = logging.getLogger(__name__)


class ShapeKind(IntEnum):
    SPHERE = 0
    BOX = 1


class ShapeField:
    """Shape pool: positions from a MorphCoordinator, plus a constant tumble."""

    def __init__(self, pool: EntityPool, kinds: np.ndarray, scales: np.ndarray,
                 rate: float = 2.5, tumble: float = 0.5):
        if len(kinds) != pool.count or len(scales) != pool.count:
            raise ValueError("kinds and scales must match the pool size")
        self.coordinator = MorphCoordinator(pool, rate=rate)
        self.kinds = np.array(kinds, dtype=np.int32)
        self.kinds.flags.writeable = False
        self.scales = np.array(scales, dtype=np.float32)
        self.scales.flags.writeable = False
        self.tumble = tumble
        # Euler XYZ per shape; only x and y tumble
        self.rotations = np.zeros((pool.count, 3), dtype=np.float32)

    @classmethod
    def build(cls, config: MorphConfig, rng: np.random.RandomState) -> "ShapeField":
        count = config.shapes
        pool = EntityPool.build(count, rng, FormationGeometry.from_config(config))
        kinds = np.where(rng.uniform(0.0, 1.0, count) > 0.5, ShapeKind.SPHERE, ShapeKind.BOX)
        scales = rng.uniform(config.shape_scale_min, config.shape_scale_max, count)
        logger.info("[Morph] Shape pool: %d shapes", count)
        return cls(pool, kinds, scales, rate=config.mix_rate, tumble=config.shape_tumble)

    def __len__(self):
        return self.coordinator.pool.count

    @property
    def positions(self) -> np.ndarray:
        return self.coordinator.render_buffer

    def set_target(self, dispersed: bool):
        self.coordinator.set_target(dispersed)

    def tick(self, dt: float):
        if dt <= 0.0:
            return
        self.coordinator.tick(dt)
        self.rotations[:, :2] += np.float32(dt * self.tumble)
        np.fmod(self.rotations, np.float32(2.0 * math.pi), out=self.rotations)
