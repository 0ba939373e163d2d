"""Tests for the morph scalar and the recomputed render buffer."""

import numpy as np
import pytest

from treemorph.morph.coordinator import MIX_SNAP_EPSILON, MorphCoordinator, MorphState
from treemorph.morph.formation import EntityPool

DT = 1.0 / 60.0


def _two_point_pool():
    a = np.array([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0]], dtype=np.float32)
    b = np.array([[10.0, 0.0, 0.0], [-1.0, -2.0, -3.0]], dtype=np.float32)
    return EntityPool(a, b)


class TestMorphState:
    """The scalar on its own."""

    def test_starts_clustered(self):
        """A fresh state sits at mix 0 heading clustered."""
        s = MorphState()
        assert s.mix == 0.0
        assert s.target_mix == 0.0

    def test_advance_moves_toward_target(self):
        """One step moves part of the way, never all of it."""
        s = MorphState(target_dispersed=True)
        s.advance(2.5, DT)
        assert 0.0 < s.mix < 1.0

    def test_huge_step_never_overshoots(self):
        """Even a multi-second frame lands within [0, 1]."""
        s = MorphState(target_dispersed=True)
        s.advance(2.5, 10.0)
        assert s.mix == 1.0
        s.target_dispersed = False
        s.advance(2.5, 10.0)
        assert s.mix == 0.0

    def test_snaps_when_close(self):
        """Within the snap epsilon the scalar lands exactly on the target."""
        s = MorphState(mix=1.0 - MIX_SNAP_EPSILON / 2, target_dispersed=True)
        s.advance(2.5, DT)
        assert s.mix == 1.0

    def test_non_positive_dt(self):
        """dt <= 0 leaves the scalar untouched."""
        s = MorphState(mix=0.3, target_dispersed=True)
        s.advance(2.5, 0.0)
        s.advance(2.5, -1.0)
        assert s.mix == 0.3


class TestMorphCoordinator:
    """Blending a pool between its two formations."""

    def test_rejects_non_positive_rate(self):
        """A zero rate would never reach the target."""
        with pytest.raises(ValueError):
            MorphCoordinator(_two_point_pool(), rate=0.0)

    def test_buffer_starts_at_clustered(self):
        """Before any tick the buffer equals formation A."""
        pool = _two_point_pool()
        coord = MorphCoordinator(pool)
        assert np.array_equal(coord.render_buffer, pool.formation_a)

    def test_half_mix_is_midpoint(self):
        """mix 0.5 between (0,0,0) and (10,0,0) renders (5,0,0)."""
        coord = MorphCoordinator(_two_point_pool())
        coord.set_mix(0.5)
        np.testing.assert_allclose(coord.render_buffer[0], [5.0, 0.0, 0.0], atol=1e-6)

    @pytest.mark.parametrize("mix", [0.0, 0.1, 0.25, 0.5, 0.75, 0.9, 1.0])
    def test_buffer_is_lerp(self, mix, rng):
        """Every row equals A + (B - A) * mix."""
        pool = EntityPool.build(200, rng)
        coord = MorphCoordinator(pool)
        coord.set_mix(mix)
        a = pool.formation_a.astype(np.float64)
        b = pool.formation_b.astype(np.float64)
        np.testing.assert_allclose(coord.render_buffer, a + (b - a) * mix, atol=1e-4)

    def test_set_mix_range(self):
        """mix outside [0, 1] is rejected."""
        coord = MorphCoordinator(_two_point_pool())
        with pytest.raises(ValueError):
            coord.set_mix(1.5)
        with pytest.raises(ValueError):
            coord.set_mix(-0.1)

    def test_monotonic_without_overshoot(self):
        """Heading dispersed, mix rises strictly each tick and stays <= 1."""
        coord = MorphCoordinator(_two_point_pool())
        coord.set_target(True)
        prev = coord.mix
        for _ in range(50):
            coord.tick(DT)
            assert coord.mix > prev
            assert coord.mix <= 1.0
            prev = coord.mix

    def test_exact_return_after_many_toggles(self, rng):
        """Flipping back and forth mid-transition never drifts the endpoints."""
        pool = EntityPool.build(500, rng)
        coord = MorphCoordinator(pool)
        for i in range(40):
            coord.set_target(i % 2 == 0)
            for _ in range(rng.randint(1, 30)):
                coord.tick(rng.uniform(0.001, 0.05))

        coord.set_target(False)
        for _ in range(600):
            coord.tick(DT)
        assert coord.mix == 0.0
        assert np.array_equal(coord.render_buffer, pool.formation_a)

        coord.set_target(True)
        for _ in range(600):
            coord.tick(DT)
        assert coord.mix == 1.0
        assert np.array_equal(coord.render_buffer, pool.formation_b)

    def test_formations_untouched_by_ticks(self, rng):
        """Ticking never writes into the stored formations."""
        pool = EntityPool.build(50, rng)
        a, b = pool.formation_a.copy(), pool.formation_b.copy()
        coord = MorphCoordinator(pool)
        coord.set_target(True)
        for _ in range(30):
            coord.tick(DT)
        assert np.array_equal(pool.formation_a, a)
        assert np.array_equal(pool.formation_b, b)

    def test_render_buffer_is_read_only(self):
        """Consumers get a view they cannot write through."""
        coord = MorphCoordinator(_two_point_pool())
        with pytest.raises(ValueError):
            coord.render_buffer[0, 0] = 1.0

    def test_spin_slows_when_dispersed(self):
        """Pool yaw advances at spin_rate - mix * spin_falloff."""
        coord = MorphCoordinator(_two_point_pool(), spin_rate=0.1, spin_falloff=0.08)
        coord.tick(1.0)
        clustered_step = coord.rotation_y
        assert clustered_step == pytest.approx(0.1)

        coord.set_mix(1.0)
        coord.set_target(True)
        before = coord.rotation_y
        coord.tick(1.0)
        assert coord.rotation_y - before == pytest.approx(0.02)

    def test_non_positive_dt_is_noop(self):
        """dt <= 0 changes neither the scalar nor the spin."""
        coord = MorphCoordinator(_two_point_pool(), spin_rate=0.1)
        coord.set_target(True)
        coord.tick(0.0)
        assert coord.mix == 0.0
        assert coord.rotation_y == 0.0

    def test_empty_pool(self, rng):
        """A pool of zero entities ticks without error."""
        coord = MorphCoordinator(EntityPool.build(0, rng))
        coord.set_target(True)
        coord.tick(DT)
        assert coord.render_buffer.shape == (0, 3)
