"""Visual-inertial odometry with noise, bias and a fixed publishing rate.

Positions are reported relative to where the vehicle started, so the
odometry always begins at zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from vehiclesim.common import quaternion_from_euler, quaternion_to_euler

_COVARIANCE_SIZE = 6


def _vec(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float).reshape(3)


def _diagonal_covariance(variance: float) -> Tuple[float, ...]:
    """Row-major 6x6 covariance with ``variance`` on the diagonal."""
    return tuple(float(v) for v in (np.eye(_COVARIANCE_SIZE) * variance).ravel())


@dataclass(frozen=True)
class OdometryMessage:
    """One odometry sample; ``orientation`` is a quaternion (w, x, y, z)."""

    time_usec: int
    position: np.ndarray
    orientation: np.ndarray
    linear_velocity: np.ndarray
    angular_velocity: np.ndarray
    pose_covariance: Tuple[float, ...]
    velocity_covariance: Tuple[float, ...]


class VisionOdometry:
    """Turns true vehicle state into noisy odometry at ``pub_rate`` Hz."""

    def __init__(
        self,
        start_position: Sequence[float],
        start_time: float,
        pub_rate: float,
        correlation_time: float,
        random_walk: float,
        noise_density: float,
        seed: Optional[int] = None,
    ) -> None:
        if pub_rate <= 0.0:
            raise ValueError("pub_rate must be positive")
        if correlation_time <= 0.0:
            raise ValueError("correlation_time must be positive")
        self.start_position = _vec(start_position)
        self.last_pub_time = float(start_time)
        self.pub_rate = float(pub_rate)
        self.correlation_time = float(correlation_time)
        self.random_walk = float(random_walk)
        self.noise_density = float(noise_density)
        self.bias = np.zeros(3)
        self._rng = np.random.default_rng(seed)

    def update(
        self,
        time: float,
        position: Sequence[float],
        orientation: Sequence[float],
        linear_velocity: Sequence[float],
        angular_velocity: Sequence[float],
    ) -> Optional[OdometryMessage]:
        """Odometry for the given world state, or None if not yet due.

        ``position`` and ``linear_velocity`` are in the world frame,
        ``angular_velocity`` in the body frame and ``orientation`` is a
        quaternion (w, x, y, z).
        """
        dt = float(time) - self.last_pub_time
        if dt <= 1.0 / self.pub_rate:
            return None

        sqrt_dt = math.sqrt(dt)
        nd = self.noise_density
        tau = self.correlation_time

        noise_pos = nd * sqrt_dt * self._rng.standard_normal(3)
        noise_linvel = nd * sqrt_dt * self._rng.standard_normal(3)

        sigma_b_g = self.random_walk
        sigma_b_g_d = math.sqrt(-sigma_b_g * sigma_b_g * tau / 2.0 * (math.exp(-2.0 * dt / tau) - 1.0))
        noise_angvel = sigma_b_g_d * sqrt_dt * self._rng.standard_normal(3)

        random_walk = self.random_walk * sqrt_dt * self._rng.standard_normal(3)
        self.bias = self.bias + random_walk * dt - self.bias / tau

        relative = _vec(position) - self.start_position
        rotation = quaternion_from_euler(*quaternion_to_euler(orientation))
        covariance = _diagonal_covariance(nd * nd)

        self.last_pub_time = float(time)
        return OdometryMessage(
            time_usec=int(float(time) * 1e6),
            position=relative + noise_pos + self.bias,
            orientation=rotation,
            linear_velocity=_vec(linear_velocity) + noise_linvel,
            angular_velocity=_vec(angular_velocity) + noise_angvel,
            pose_covariance=covariance,
            velocity_covariance=covariance,
        )