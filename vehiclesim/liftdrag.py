"""Lift, drag and pitching moment of an aerodynamic surface.

The model uses thin-airfoil lift and drag slopes, a linear post-stall
continuation, and a correction for sweep.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from vehiclesim.common import constrain, rotate_vector

_MIN_SPEED = 0.01


def _vec(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float).reshape(3)


def _normalized(v: np.ndarray) -> np.ndarray:
    """Unit vector along ``v``; a zero-length vector is returned unchanged."""
    norm = float(np.linalg.norm(v))
    if norm > 1e-6:
        return v / norm
    return v


def _corrected(v: np.ndarray) -> np.ndarray:
    """Replace NaN and infinite components with zero."""
    return np.nan_to_num(v, nan=0.0, posinf=0.0, neginf=0.0)


def _wrap_half_pi(angle: float) -> float:
    """Fold an angle into ``[-pi/2, pi/2]`` by steps of pi."""
    while abs(angle) > 0.5 * math.pi:
        angle = angle - math.pi if angle > 0 else angle + math.pi
    return angle


@dataclass
class LiftDragParams:
    """Aerodynamic coefficients and geometry of one surface."""

    cla: float = 1.0
    cda: float = 0.01
    cma: float = 0.0
    rho: float = 1.2041
    cp: Sequence[float] = (0.0, 0.0, 0.0)
    forward: Sequence[float] = (1.0, 0.0, 0.0)
    upward: Sequence[float] = (0.0, 0.0, 1.0)
    area: float = 1.0
    alpha0: float = 0.0
    alpha_stall: float = 0.5 * math.pi
    cla_stall: float = 0.0
    cda_stall: float = 1.0
    cma_stall: float = 0.0
    radial_symmetry: bool = False
    control_joint_rad_to_cl: float = 4.0
    cm_delta: float = 0.0


@dataclass(frozen=True)
class AeroResult:
    """Forces and coefficients from one evaluation, in the inertial frame."""

    force: np.ndarray
    moment: np.ndarray
    lift: np.ndarray
    drag: np.ndarray
    center: np.ndarray
    alpha: float
    sweep: float
    cl: float
    cd: float
    cm: float
    dynamic_pressure: float


@dataclass
class LiftDragModel:
    """Evaluates aerodynamic loads on a surface moving through air."""

    params: LiftDragParams
    wind: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __init__(self, params: Optional[LiftDragParams] = None) -> None:
        self.params = params if params is not None else LiftDragParams()
        self.wind = np.zeros(3)
        self._cp = _corrected(_vec(self.params.cp))
        self._forward = _normalized(_vec(self.params.forward))
        self._upward = _normalized(_vec(self.params.upward))

    def set_wind(self, velocity: Sequence[float]) -> None:
        """Set the wind velocity in the inertial frame."""
        self.wind = _vec(velocity)

    def _coefficient(self, alpha: float, slope: float, stall_slope: float, cos_sweep: float) -> float:
        stall = self.params.alpha_stall
        if alpha > stall:
            return (slope * stall + stall_slope * (alpha - stall)) * cos_sweep
        if alpha < -stall:
            return (-slope * stall + stall_slope * (alpha + stall)) * cos_sweep
        return slope * alpha * cos_sweep

    def compute(
        self,
        velocity: Sequence[float],
        rotation: Sequence[float],
        control_angle: Optional[float] = None,
    ) -> Optional[AeroResult]:
        """Loads for the surface moving at ``velocity`` with attitude ``rotation``.

        ``velocity`` is the inertial velocity at the centre of pressure and
        ``rotation`` a unit quaternion (w, x, y, z). ``control_angle`` is the
        control surface deflection in radians, or None without one. Returns
        None when the air-relative speed is negligible or the flow comes from
        behind the surface.
        """
        p = self.params
        vel = _vec(velocity) - self.wind
        if float(np.linalg.norm(vel)) <= _MIN_SPEED:
            return None
        vel_i = _normalized(vel)

        forward_i = rotate_vector(rotation, self._forward)
        if float(forward_i @ vel) <= 0.0:
            return None

        if p.radial_symmetry:
            tmp = np.cross(forward_i, vel_i)
            upward_i = _normalized(np.cross(forward_i, tmp))
        else:
            upward_i = rotate_vector(rotation, self._upward)

        spanwise_i = _normalized(np.cross(forward_i, upward_i))

        sin_sweep = constrain(float(spanwise_i @ vel_i), -1.0, 1.0)
        sweep = _wrap_half_pi(math.asin(sin_sweep))
        cos_sweep = math.sqrt(1.0 - math.sin(sweep) ** 2)

        vel_in_plane = vel - float(vel @ spanwise_i) * spanwise_i
        drag_dir = _normalized(-vel_in_plane)
        lift_dir = _normalized(np.cross(spanwise_i, vel_in_plane))
        moment_dir = spanwise_i

        cos_alpha = constrain(float(lift_dir @ upward_i), -1.0, 1.0)
        if float(lift_dir @ forward_i) >= 0.0:
            alpha = p.alpha0 + math.acos(cos_alpha)
        else:
            alpha = p.alpha0 - math.acos(cos_alpha)
        alpha = _wrap_half_pi(alpha)

        speed = float(np.linalg.norm(vel_in_plane))
        q = 0.5 * p.rho * speed * speed

        cl = self._coefficient(alpha, p.cla, p.cla_stall, cos_sweep)
        if alpha > p.alpha_stall:
            cl = max(0.0, cl)
        elif alpha < -p.alpha_stall:
            cl = min(0.0, cl)

        deflection = 0.0 if control_angle is None else float(control_angle)
        if control_angle is not None:
            cl += p.control_joint_rad_to_cl * deflection

        lift = cl * q * p.area * lift_dir

        cd = abs(self._coefficient(alpha, p.cda, p.cda_stall, cos_sweep))
        drag = cd * q * p.area * drag_dir

        cm = self._coefficient(alpha, p.cma, p.cma_stall, cos_sweep)
        if alpha > p.alpha_stall:
            cm = max(0.0, cm)
        elif alpha < -p.alpha_stall:
            cm = min(0.0, cm)
        cm += p.cm_delta * deflection

        moment = _corrected(cm * q * p.area * moment_dir)
        force = _corrected(lift + drag)

        return AeroResult(
            force=force,
            moment=moment,
            lift=lift,
            drag=drag,
            center=self._cp.copy(),
            alpha=alpha,
            sweep=sweep,
            cl=cl,
            cd=cd,
            cm=cm,
            dynamic_pressure=q,
        )