"""Scene configuration: built-in defaults + user JSON presets."""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace

logger = logging.getLogger(__name__)

PRESETS_DIR = os.path.join(
    os.path.dirname(os.path.dirname(__file__)),
    "assets", "presets",
)

# Fields that must be non-negative integers
COUNT_FIELDS = ("foliage", "lights", "ornaments", "shapes")

# Fields that must be strictly positive
_POSITIVE_FIELDS = (
    "height", "radius", "shell_thickness", "mix_rate", "smooth_time",
    "focus_distance", "fov", "min_distance", "max_distance",
)


@dataclass(frozen=True)
class MorphConfig:
    """Static constants read once when the scene is built."""

    # Pool sizes
    foliage: int = 6000
    lights: int = 2000
    ornaments: int = 80
    shapes: int = 250

    # Clustered formation (cone)
    height: float = 18.0
    radius: float = 7.5
    radius_jitter: float = 0.5

    # Dispersed formation (spherical shell)
    shell_min_radius: float = 15.0
    shell_thickness: float = 25.0

    # Morph scalar + pool spin
    mix_rate: float = 2.5
    spin_rate: float = 0.1
    spin_falloff: float = 0.08

    # Ornament damping + focus view
    smooth_time: float = 0.25
    focus_distance: float = 8.0
    focus_scale: float = 4.5
    rest_scale_clustered: float = 0.8
    rest_scale_dispersed: float = 1.5
    ornament_spin: float = 0.1

    # Shapes
    shape_tumble: float = 0.5
    shape_scale_min: float = 0.3
    shape_scale_max: float = 0.6

    # Camera
    camera_distance: float = 35.0
    fov: float = 35.0
    min_distance: float = 10.0
    max_distance: float = 60.0
    auto_rotate_clustered: float = 1.5
    auto_rotate_dispersed: float = 0.3

    title: str = "MERRY\nCHRISTMAS"
    seed: int | None = None

    def __post_init__(self):
        for name in COUNT_FIELDS:
            value = getattr(self, name)
            # bool is an int subclass but never a valid count
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        for name in _POSITIVE_FIELDS:
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.shell_min_radius < 0:
            raise ValueError("shell_min_radius must be non-negative")
        if self.shape_scale_max < self.shape_scale_min:
            raise ValueError("shape_scale_max must be >= shape_scale_min")
        if not self.min_distance <= self.camera_distance <= self.max_distance:
            raise ValueError(
                f"camera_distance {self.camera_distance} outside "
                f"[{self.min_distance}, {self.max_distance}]"
            )

    @property
    def particle_count(self) -> int:
        """Foliage and lights share one bulk pool."""
        return self.foliage + self.lights

    @classmethod
    def from_dict(cls, data: dict) -> "MorphConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict:
        return asdict(self)

    def with_overrides(self, **overrides) -> "MorphConfig":
        return replace(self, **overrides)


BUILTIN_PRESETS = {
    "Default": {},
    "Lite": {
        "foliage": 1500,
        "lights": 500,
        "ornaments": 24,
        "shapes": 60,
    },
    "Dense": {
        "foliage": 12000,
        "lights": 4000,
        "shapes": 400,
    },
    "Slow Motion": {
        "mix_rate": 1.0,
        "smooth_time": 0.6,
        "auto_rotate_clustered": 0.6,
    },
}


def load_preset(name: str) -> MorphConfig:
    """Resolve a built-in preset name or a user preset JSON in PRESETS_DIR."""
    if name in BUILTIN_PRESETS:
        return MorphConfig.from_dict(BUILTIN_PRESETS[name])
    path = os.path.join(PRESETS_DIR, f"{name}.json")
    if not os.path.isfile(path):
        raise ValueError(f"Unknown preset: {name}")
    return load_config(path)


def load_config(path: str) -> MorphConfig:
    """Load a config JSON file. Missing keys keep their defaults."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    config = MorphConfig.from_dict(data)
    logger.info("[Config] Loaded %s", path)
    return config


def save_config(path: str, config: MorphConfig):
    """Write a config as a user preset JSON file."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
