"""Morph coordinator: one blend scalar driving a whole entity pool.

The displayed positions are recomputed every tick from the pool's two frozen
formations. Nothing ever blends the render buffer into itself, so mix=0 and
mix=1 land exactly on the stored formations no matter how many times the
target flipped in between.
"""

import logging

import numpy as np

from treemorph.morph.damping import exp_smooth
from treemorph.morph.formation import EntityPool

logger = logging.getLogger(__name__)

# Once this close to the target the scalar snaps onto it
MIX_SNAP_EPSILON = 1e-5


class MorphState:
    """The blend scalar and the direction it is heading."""
    __slots__ = ("mix", "target_dispersed")

    def __init__(self, mix: float = 0.0, target_dispersed: bool = False):
        self.mix = mix
        self.target_dispersed = target_dispersed

    @property
    def target_mix(self) -> float:
        return 1.0 if self.target_dispersed else 0.0

    def advance(self, rate: float, dt: float):
        """Move mix toward its target. Monotonic, never overshoots."""
        if dt <= 0.0:
            return
        target = self.target_mix
        mix = exp_smooth(self.mix, target, rate, dt)
        if abs(target - mix) < MIX_SNAP_EPSILON:
            mix = target
        self.mix = min(1.0, max(0.0, mix))


class MorphCoordinator:
    """Owns a pool's MorphState and writes its render buffer each tick."""

    def __init__(self, pool: EntityPool, rate: float = 2.5,
                 spin_rate: float = 0.0, spin_falloff: float = 0.0):
        if rate <= 0:
            raise ValueError(f"rate must be positive, got {rate}")
        self.pool = pool
        self.rate = rate
        self.spin_rate = spin_rate
        self.spin_falloff = spin_falloff
        self.state = MorphState()
        # Pool-level yaw, applied by the renderer as a model transform
        self.rotation_y = 0.0
        self._render = np.array(pool.formation_a, dtype=np.float32, copy=True)

    @property
    def mix(self) -> float:
        return self.state.mix

    @property
    def render_buffer(self) -> np.ndarray:
        """Read-only view of the latest blended positions."""
        view = self._render.view()
        view.flags.writeable = False
        return view

    def set_target(self, dispersed: bool):
        if dispersed != self.state.target_dispersed:
            logger.debug("[Morph] Pool of %d heading %s", self.pool.count,
                         "dispersed" if dispersed else "clustered")
        self.state.target_dispersed = dispersed

    def set_mix(self, mix: float):
        """Jump the scalar directly (tools and tests) and refresh the buffer."""
        if not 0.0 <= mix <= 1.0:
            raise ValueError(f"mix must be within [0, 1], got {mix}")
        self.state.mix = float(mix)
        self._recompute()

    def tick(self, dt: float):
        if dt <= 0.0:
            return
        self.state.advance(self.rate, dt)
        self._recompute()
        # Spins faster when clustered
        self.rotation_y += dt * (self.spin_rate - self.state.mix * self.spin_falloff)

    def _recompute(self):
        mix = self.state.mix
        a = self.pool.formation_a
        b = self.pool.formation_b
        # a*(1-mix) + b*mix hits either endpoint bit-for-bit
        np.multiply(a, np.float32(1.0 - mix), out=self._render)
        self._render += b * np.float32(mix)
