"""Top-level controller: formation mode, the active ornament, and the tick.

All user input lands here (formation toggle, ornament click, tree click).
Each tick the particle pool, the shape pool and the ornaments are advanced
independently; none of them reads another's in-progress state.
"""

import logging
from enum import Enum

import numpy as np

from treemorph.config import MorphConfig
from treemorph.morph.camera import CameraGate
from treemorph.morph.coordinator import MorphCoordinator
from treemorph.morph.formation import EntityPool, FormationGeometry, build_particle_pool
from treemorph.morph.ornaments import OrnamentField, OrnamentTuning, assign_image_slots
from treemorph.morph.shapes import ShapeField

logger = logging.getLogger(__name__)


class FormationMode(Enum):
    CLUSTERED = "clustered"
    DISPERSED = "dispersed"


class AppState:
    """Process-wide interaction state. Mutated only by user input."""
    __slots__ = ("formation_mode", "active_ornament_id")

    def __init__(self):
        self.reset()

    def reset(self):
        self.formation_mode = FormationMode.CLUSTERED
        self.active_ornament_id: int | None = None

    @property
    def is_dispersed(self) -> bool:
        return self.formation_mode is FormationMode.DISPERSED


class SceneController:
    """Owns every pool plus the shared AppState."""

    def __init__(self, config: MorphConfig = MorphConfig(),
                 rng: np.random.RandomState | None = None,
                 image_source_count: int = 1):
        self.config = config
        if rng is None:
            rng = np.random.RandomState(config.seed)

        self.state = AppState()
        self.gate = CameraGate(self.state, config.auto_rotate_clustered,
                               config.auto_rotate_dispersed)

        self.particles = MorphCoordinator(
            build_particle_pool(config, rng), rate=config.mix_rate,
            spin_rate=config.spin_rate, spin_falloff=config.spin_falloff,
        )
        self.shapes = ShapeField.build(config, rng)

        ornament_pool = EntityPool.build(config.ornaments, rng, FormationGeometry.from_config(config))
        self.ornaments = OrnamentField(
            ornament_pool, OrnamentTuning.from_config(config),
            assign_image_slots(config.ornaments, image_source_count),
        )
        logger.info("[Morph] Scene ready: %d particles, %d shapes, %d ornaments",
                    len(self.particles.pool), len(self.shapes), len(self.ornaments))

    # --- User input ---

    def toggle_formation(self):
        """Flip clustered/dispersed. Always drops any focused ornament."""
        if self.state.is_dispersed:
            self.state.formation_mode = FormationMode.CLUSTERED
        else:
            self.state.formation_mode = FormationMode.DISPERSED
        self.state.active_ornament_id = None
        self._apply_mode()
        logger.debug("[Morph] Formation -> %s", self.state.formation_mode.value)

    def select(self, index: int):
        """Ornament click: focus it, or release it if it already has focus."""
        if not 0 <= index < len(self.ornaments):
            raise IndexError(f"ornament {index} outside pool of {len(self.ornaments)}")
        if not self.state.is_dispersed:
            return
        if self.state.active_ornament_id == index:
            self.state.active_ornament_id = None
        else:
            self.state.active_ornament_id = index
        self.ornaments.sync_states(self.state.active_ornament_id)
        logger.debug("[Morph] Active ornament -> %s", self.state.active_ornament_id)

    def click_tree(self):
        """Clicking the clustered tree opens the gallery."""
        if not self.state.is_dispersed:
            self.toggle_formation()

    def reset(self):
        self.state.reset()
        self._apply_mode()

    def _apply_mode(self):
        dispersed = self.state.is_dispersed
        self.particles.set_target(dispersed)
        self.shapes.set_target(dispersed)
        self.ornaments.sync_states(self.state.active_ornament_id)

    # --- Per frame ---

    def tick(self, dt: float, camera):
        if dt <= 0.0:
            return
        self.particles.tick(dt)
        self.shapes.tick(dt)
        self.ornaments.tick(dt, self.state.is_dispersed, self.state.active_ornament_id, camera)

    # --- Queries for the camera and overlay ---

    def is_interaction_locked(self) -> bool:
        return self.gate.is_interaction_locked()

    @property
    def show_toggle_button(self) -> bool:
        return self.state.active_ornament_id is None

    @property
    def toggle_label(self) -> str:
        return "Close Gallery" if self.state.is_dispersed else "Open Tree"

    @property
    def show_hint(self) -> bool:
        return self.state.is_dispersed and self.state.active_ornament_id is None

    @property
    def show_title(self) -> bool:
        return not self.state.is_dispersed

    @property
    def can_hover_tree(self) -> bool:
        return not self.state.is_dispersed

    @property
    def can_hover_ornaments(self) -> bool:
        return self.state.is_dispersed and self.state.active_ornament_id is None
