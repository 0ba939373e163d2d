"""Shared fixtures: seeded RNG, small configs, a fixed camera."""

import numpy as np
import pytest

from treemorph.config import MorphConfig
from treemorph.morph.camera import FixedCamera
from treemorph.morph.scene import SceneController


@pytest.fixture
def rng():
    return np.random.RandomState(1234)


@pytest.fixture
def small_config():
    return MorphConfig(foliage=40, lights=10, ornaments=3, shapes=6, seed=7)


@pytest.fixture
def camera():
    return FixedCamera(position=(0.0, 0.0, 35.0))


@pytest.fixture
def scene(small_config, rng):
    return SceneController(small_config, rng=rng, image_source_count=2)

