"""Frame-rate independent smoothing helpers.

`exp_smooth` is plain exponential approach (used for the morph scalar).
`smooth_damp` is a critically damped spring with velocity state, used for
ornament transforms: it never overshoots the destination and snaps once
within `eps`. `damp_angles` does the same on Euler angles, taking the
shortest arc per component.
"""

import math

import numpy as np

TWO_PI = 2.0 * math.pi


def exp_smooth(current: float, target: float, rate: float, dt: float) -> float:
    """Exponential smoothing toward target with a per-second rate."""
    if dt <= 0.0:
        return current
    alpha = 1.0 - math.exp(-rate * dt)
    return current + (target - current) * alpha


def _ease(x):
    # Pade approximation of exp(-x) from Game Programming Gems 4 (ch. 1.10)
    return 1.0 / (1.0 + x + 0.48 * x * x + 0.235 * x * x * x)


def smooth_damp(current, target, velocity, smooth_time: float, dt: float,
                eps: float = 1e-3):
    """Critically damped step of `current` toward `target`.

    All array arguments broadcast together. Returns (value, velocity) as new
    float64 arrays; the inputs are not modified.
    """
    current = np.asarray(current, dtype=np.float64)
    target = np.broadcast_to(np.asarray(target, dtype=np.float64), current.shape)
    velocity = np.broadcast_to(np.asarray(velocity, dtype=np.float64), current.shape)
    if dt <= 0.0:
        return current.copy(), velocity.copy()

    smooth_time = max(1e-4, smooth_time)
    omega = 2.0 / smooth_time
    t = _ease(omega * dt)

    change = current - target
    temp = (velocity + omega * change) * dt
    new_velocity = (velocity - omega * temp) * t
    output = target + (change + temp) * t

    # Clamp overshoot: if we crossed the destination, land on it
    overshot = (target - current > 0.0) == (output > target)
    output = np.where(overshot, target, output)
    new_velocity = np.where(overshot, 0.0, new_velocity)

    close = np.abs(current - target) <= eps
    output = np.where(close, target, output)
    new_velocity = np.where(close, 0.0, new_velocity)
    return output, new_velocity


def wrap_angle(delta):
    """Map an angle difference into (-pi, pi]."""
    delta = np.mod(np.asarray(delta, dtype=np.float64), TWO_PI)
    return np.where(delta > math.pi, delta - TWO_PI, delta)


def damp_angles(current, target, velocity, smooth_time: float, dt: float,
                eps: float = 1e-3):
    """smooth_damp on Euler angles along the shortest arc of each axis."""
    current = np.asarray(current, dtype=np.float64)
    nearest = current + wrap_angle(np.asarray(target, dtype=np.float64) - current)
    return smooth_damp(current, nearest, velocity, smooth_time, dt, eps)
