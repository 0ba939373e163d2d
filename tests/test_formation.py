"""Tests for formation sampling and frozen entity pools."""

import math

import numpy as np
import pytest

from treemorph.config import MorphConfig
from treemorph.morph.formation import (
    EntityPool,
    FormationGeometry,
    FormationKind,
    build_particle_pool,
    generate_formation,
    particle_colors,
    sample_position,
)

GEOMETRY = FormationGeometry()


class TestClusteredFormation:
    """Cone-shaped tree samples."""

    def test_heights_within_band(self, rng):
        """Every y lies in the band of height H centred on the origin."""
        pts = generate_formation(5000, FormationKind.CLUSTERED, rng)
        half = GEOMETRY.height / 2.0
        assert pts[:, 1].min() >= -half - 1e-4
        assert pts[:, 1].max() <= half + 1e-4

    def test_radius_shrinks_toward_tip(self, rng):
        """Horizontal radius follows the cone plus at most half the jitter."""
        pts = generate_formation(5000, FormationKind.CLUSTERED, rng).astype(np.float64)
        normalized = (pts[:, 1] + GEOMETRY.height / 2.0) / GEOMETRY.height
        bound = (1.0 - normalized) * GEOMETRY.radius + GEOMETRY.radius_jitter / 2.0
        radial = np.hypot(pts[:, 0], pts[:, 2])
        assert np.all(radial <= bound + 1e-3)

    def test_base_wider_than_tip(self, rng):
        """Points in the lower half spread wider than points in the upper half."""
        pts = generate_formation(5000, FormationKind.CLUSTERED, rng)
        radial = np.hypot(pts[:, 0], pts[:, 2])
        low = radial[pts[:, 1] < 0].mean()
        high = radial[pts[:, 1] > 0].mean()
        assert low > high * 2


class TestDispersedFormation:
    """Spherical shell samples."""

    def test_radius_within_shell(self, rng):
        """No sample lies inside the minimum radius or beyond the shell."""
        pts = generate_formation(5000, FormationKind.DISPERSED, rng).astype(np.float64)
        r = np.linalg.norm(pts, axis=1)
        assert r.min() >= GEOMETRY.shell_min_radius - 1e-3
        assert r.max() <= GEOMETRY.shell_min_radius + GEOMETRY.shell_thickness + 1e-3

    def test_polar_angle_is_uniform_on_sphere(self, rng):
        """Mean polar angle converges to pi/2 and mean cos(phi) to zero."""
        pts = generate_formation(20000, FormationKind.DISPERSED, rng).astype(np.float64)
        r = np.linalg.norm(pts, axis=1)
        cos_phi = pts[:, 2] / r
        phi = np.arccos(np.clip(cos_phi, -1.0, 1.0))
        assert abs(phi.mean() - math.pi / 2.0) < 0.02
        assert abs(cos_phi.mean()) < 0.02

    def test_no_polar_clustering(self, rng):
        """Uniform-on-sphere puts ~half the points within |cos(phi)| < 0.5."""
        pts = generate_formation(20000, FormationKind.DISPERSED, rng).astype(np.float64)
        cos_phi = pts[:, 2] / np.linalg.norm(pts, axis=1)
        frac = np.mean(np.abs(cos_phi) < 0.5)
        assert abs(frac - 0.5) < 0.02


class TestSampling:
    """Single samples and argument checks."""

    def test_sample_position_shape(self, rng):
        """A single sample is a 3-vector."""
        p = sample_position(2, 10, FormationKind.DISPERSED, rng)
        assert p.shape == (3,)

    def test_sample_index_outside_pool(self, rng):
        """Indices outside [0, count) are rejected."""
        with pytest.raises(IndexError):
            sample_position(10, 10, FormationKind.CLUSTERED, rng)

    def test_zero_count_is_empty(self, rng):
        """count=0 produces an empty (0, 3) formation."""
        pts = generate_formation(0, FormationKind.CLUSTERED, rng)
        assert pts.shape == (0, 3)

    @pytest.mark.parametrize("count", [-1, 2.5, True])
    def test_invalid_count(self, rng, count):
        """Counts must be non-negative integers."""
        with pytest.raises(ValueError):
            generate_formation(count, FormationKind.CLUSTERED, rng)


class TestEntityPool:
    """Frozen dual-formation pools."""

    def test_build_sizes(self, rng):
        """Both formations have one row per entity."""
        pool = EntityPool.build(25, rng)
        assert pool.count == 25
        assert pool.formation_a.shape == (25, 3)
        assert pool.formation_b.shape == (25, 3)

    def test_formations_are_read_only(self, rng):
        """Writing into a formation raises instead of silently drifting."""
        pool = EntityPool.build(5, rng)
        with pytest.raises(ValueError):
            pool.formation_a[0, 0] = 1.0
        with pytest.raises(ValueError):
            pool.formation_b[:] = 0.0

    def test_pool_copies_its_inputs(self):
        """Mutating the caller's arrays later does not reach the pool."""
        a = np.zeros((2, 3), dtype=np.float32)
        b = np.ones((2, 3), dtype=np.float32)
        pool = EntityPool(a, b)
        a[0, 0] = 99.0
        assert pool.formation_a[0, 0] == 0.0

    def test_mismatched_lengths(self):
        """Formations of different lengths are a construction error."""
        with pytest.raises(ValueError):
            EntityPool(np.zeros((3, 3)), np.zeros((4, 3)))

    def test_wrong_shape(self):
        """Formations must be (N, 3)."""
        with pytest.raises(ValueError):
            EntityPool(np.zeros((3, 2)), np.zeros((3, 2)))

    def test_empty_pool(self, rng):
        """An empty pool is valid."""
        pool = EntityPool.build(0, rng)
        assert len(pool) == 0


class TestParticleColors:
    """Foliage greens followed by red/gold lights."""

    def test_lights_are_red_or_gold(self, rng):
        """Every light colour is one of the two light colours."""
        col = particle_colors(100, 200, rng)
        lights = col[100:]
        red = np.all(np.isclose(lights, [1.0, 0x22 / 255.0, 0x22 / 255.0]), axis=1)
        gold = np.all(np.isclose(lights, [1.0, 0xAA / 255.0, 0.0]), axis=1)
        assert np.all(red | gold)
        assert red.any() and gold.any()

    def test_foliage_is_green(self, rng):
        """Foliage has green as its dominant channel."""
        col = particle_colors(100, 0, rng)
        assert np.all(col[:, 1] > col[:, 0])
        assert np.all(col[:, 1] > col[:, 2])

    def test_particle_pool_carries_colors(self, rng):
        """The bulk pool is foliage + lights long and has frozen colours."""
        cfg = MorphConfig(foliage=30, lights=12, ornaments=0, shapes=0)
        pool = build_particle_pool(cfg, rng)
        assert pool.count == 42
        assert pool.colors.shape == (42, 3)
        with pytest.raises(ValueError):
            pool.colors[0, 0] = 0.0
