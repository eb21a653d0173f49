"""Hydrodynamics and buoyancy of an underwater vehicle.

Added-mass Coriolis terms and linear damping follow Fossen's marine craft
model. Buoyancy fades linearly as a centre of buoyancy rises through the
water surface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Tuple

import numpy as np

from vehiclesim.common import constrain, rotate_vector


def _vec(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float).reshape(3)


@dataclass
class BuoyancyLink:
    """Buoyancy force of one link acting at its centre of buoyancy.

    ``cob`` is given in the link frame, ``buoyancy_force`` in the world frame.
    """

    buoyancy_force: np.ndarray = field(default_factory=lambda: np.zeros(3))
    cob: np.ndarray = field(default_factory=lambda: np.zeros(3))
    height_scale_limit: float = 0.1

    def __post_init__(self) -> None:
        self.buoyancy_force = _vec(self.buoyancy_force)
        self.cob = _vec(self.cob)
        self.height_scale_limit = abs(float(self.height_scale_limit))
        if self.height_scale_limit == 0.0:
            raise ValueError("height_scale_limit must not be zero")

    @classmethod
    def from_compensation(
        cls,
        mass: float,
        gravity: Sequence[float],
        compensation: float = 0.0,
        cob: Sequence[float] = (0.0, 0.0, 0.0),
        height_scale_limit: float = 0.1,
    ) -> "BuoyancyLink":
        """Buoyancy that offsets ``compensation`` times the link's weight."""
        force = -compensation * mass * _vec(gravity)
        return cls(buoyancy_force=force, cob=_vec(cob), height_scale_limit=height_scale_limit)

    def force_at(self, position: Sequence[float], orientation: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
        """World-frame force and the world point it acts at for a link pose.

        ``orientation`` is a unit quaternion (w, x, y, z).
        """
        cob_world = _vec(position) + rotate_vector(orientation, self.cob)
        limit = self.height_scale_limit
        scale = abs((cob_world[2] - limit) / (2 * limit))
        if cob_world[2] > limit:
            scale = 0.0
        scale = constrain(scale, 0.0, 1.0)
        return self.buoyancy_force * scale, cob_world


class UuvHydrodynamics:
    """Damping and added-mass Coriolis loads in the body frame."""

    def __init__(
        self,
        added_mass_linear: Sequence[float] = (0.0, 0.0, 0.0),
        added_mass_angular: Sequence[float] = (0.0, 0.0, 0.0),
        damping_linear: Sequence[float] = (0.0, 0.0, 0.0),
        damping_angular: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> None:
        self.x_udot, self.y_vdot, self.z_wdot = _vec(added_mass_linear)
        self.k_pdot, self.m_qdot, self.n_rdot = _vec(added_mass_angular)
        self.damping_linear = -np.diag(_vec(damping_linear))
        self.damping_angular = -np.diag(_vec(damping_angular))

    def forces(self, linear_velocity: Sequence[float], angular_velocity: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
        """Body-frame force and torque for body-frame velocities."""
        lin = _vec(linear_velocity)
        ang = _vec(angular_velocity)
        u, v, w = lin
        p, q, r = ang

        c_force = np.array([
            [0.0, self.z_wdot * w, -self.y_vdot * v],
            [-self.z_wdot * w, 0.0, self.x_udot * u],
            [self.y_vdot * v, -self.x_udot * u, 0.0],
        ])
        c_torque = np.array([
            [0.0, self.n_rdot * r, -self.m_qdot * q],
            [-self.n_rdot * r, 0.0, self.k_pdot * p],
            [self.m_qdot * q, -self.k_pdot * p, 0.0],
        ])

        damping_force = self.damping_linear @ lin
        damping_torque = self.damping_angular @ ang
        coriolis_force = c_force @ ang
        coriolis_torque = c_force @ lin + c_torque @ ang
        return damping_force + coriolis_force, damping_torque + coriolis_torque