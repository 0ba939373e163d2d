"""Tests for exponential smoothing and the critically damped spring."""

import math

import numpy as np
import pytest

from treemorph.morph.damping import damp_angles, exp_smooth, smooth_damp, wrap_angle


class TestExpSmooth:

    def test_partial_step(self):
        """One second at rate 1 covers 1 - 1/e of the gap."""
        assert exp_smooth(0.0, 1.0, 1.0, 1.0) == pytest.approx(1.0 - math.exp(-1.0))

    def test_zero_dt(self):
        assert exp_smooth(0.4, 1.0, 2.5, 0.0) == 0.4


class TestSmoothDamp:
    """Critically damped approach with velocity state."""

    def test_approaches_without_overshoot(self):
        """Values rise monotonically toward the target and never pass it."""
        value, vel = np.zeros(1), np.zeros(1)
        prev = 0.0
        for _ in range(300):
            value, vel = smooth_damp(value, [10.0], vel, 0.25, 1.0 / 60.0)
            assert prev <= value[0] <= 10.0
            prev = value[0]
        assert value[0] == 10.0

    def test_approaches_from_above(self):
        """Same guarantee heading downward."""
        value, vel = np.array([5.0]), np.zeros(1)
        for _ in range(300):
            value, vel = smooth_damp(value, [-5.0], vel, 0.25, 1.0 / 60.0)
            assert value[0] >= -5.0
        assert value[0] == -5.0

    def test_snaps_within_eps(self):
        """Inside eps the value lands on the target with zero velocity."""
        value, vel = smooth_damp([1.0005], [1.0], [0.3], 0.25, 1.0 / 60.0)
        assert value[0] == 1.0
        assert vel[0] == 0.0

    def test_inputs_not_modified(self):
        """smooth_damp returns new arrays."""
        cur = np.array([0.0, 0.0, 0.0])
        vel = np.zeros(3)
        smooth_damp(cur, [1.0, 2.0, 3.0], vel, 0.25, 0.1)
        assert np.array_equal(cur, np.zeros(3))
        assert np.array_equal(vel, np.zeros(3))

    def test_zero_dt_keeps_value(self):
        value, vel = smooth_damp([2.0], [5.0], [1.0], 0.25, 0.0)
        assert value[0] == 2.0
        assert vel[0] == 1.0

    def test_frame_rate_independent(self):
        """Half a second at 30 fps and at 120 fps end up close together."""
        def run(fps):
            value, vel = np.zeros(1), np.zeros(1)
            for _ in range(fps // 2):
                value, vel = smooth_damp(value, [10.0], vel, 0.25, 1.0 / fps)
            return value[0]

        assert run(30) == pytest.approx(run(120), abs=0.2)


class TestAngles:

    def test_wrap_into_half_open_range(self):
        assert float(wrap_angle(1.5 * math.pi)) == pytest.approx(-0.5 * math.pi)
        assert float(wrap_angle(-1.5 * math.pi)) == pytest.approx(0.5 * math.pi)
        assert float(wrap_angle(0.25)) == pytest.approx(0.25)

    def test_damp_takes_short_arc(self):
        """From 3.0 toward -3.0 the angle increases through pi, not down through 0."""
        value, _ = damp_angles([3.0], [-3.0], [0.0], 0.25, 1.0 / 60.0)
        assert value[0] > 3.0

    def test_damp_reaches_equivalent_angle(self):
        """After settling the angle matches the target modulo a full turn."""
        value, vel = np.array([0.1]), np.zeros(1)
        for _ in range(300):
            value, vel = damp_angles(value, [2.0 * math.pi - 0.1], vel, 0.25, 1.0 / 60.0)
        assert float(wrap_angle(value[0] - (2.0 * math.pi - 0.1))) == pytest.approx(0.0, abs=1e-6)
