"""Shared math helpers: filters, angle conversions, quaternions and geodesy."""

from __future__ import annotations

import math
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, Generic, Optional, Sequence, Tuple, TypeVar

import numpy as np

T = TypeVar("T")

# Rotation between ENU and NED frames (symmetric), as (w, x, y, z).
Q_ENU_TO_NED = np.array([0.0, 0.70711, 0.70711, 0.0])
# Rotation between body FLU and body FRD frames (symmetric), as (w, x, y, z).
Q_FLU_TO_FRD = np.array([0.0, 1.0, 0.0, 0.0])

# Sensor X-axis unit vectors in the base_link frame.
DOWNWARD_ROTATION = np.array([0.0, 0.0, -1.0])
UPWARD_ROTATION = np.array([0.0, 0.0, 1.0])
BACKWARD_ROTATION = np.array([-1.0, 0.0, 0.0])
FORWARD_ROTATION = np.array([1.0, 0.0, 0.0])
LEFT_ROTATION = np.array([0.0, 1.0, 0.0])
RIGHT_ROTATION = np.array([0.0, -1.0, 0.0])

DEFAULT_HOME_LATITUDE = 47.397742 * math.pi / 180.0  # rad
DEFAULT_HOME_LONGITUDE = 8.545594 * math.pi / 180.0  # rad
DEFAULT_HOME_ALTITUDE = 488.0  # m

EARTH_RADIUS = 6353000.0  # m


class FirstOrderFilter(Generic[T]):
    """First order low-pass filter with separate rise and fall time constants.

    Discretised with zero-order hold:
    x(k+1) = exp(-dt/tau) * x(k) + (1 - exp(-dt/tau)) * u(k)
    """

    def __init__(self, time_constant_up: float, time_constant_down: float, initial_state: T) -> None:
        self.time_constant_up = time_constant_up
        self.time_constant_down = time_constant_down
        self.state = initial_state

    def update(self, input_state: T, sampling_time: float) -> T:
        """Filter one sample and return the new state."""
        tau = self.time_constant_up if input_state > self.state else self.time_constant_down
        alpha = math.exp(-sampling_time / tau)
        self.state = alpha * self.state + (1 - alpha) * input_state
        return self.state


def constrain(val, min_val, max_val):
    """Clamp ``val`` into ``[min_val, max_val]``."""
    if val < min_val:
        return min_val
    if val > max_val:
        return max_val
    return val


def degrees_360(angle_degrees: float) -> float:
    """Wrap an angle in degrees into ``[0, 360)``."""
    degrees_value = angle_degrees
    while degrees_value < 0.0:
        degrees_value += 360.0
    while degrees_value >= 360.0:
        degrees_value -= 360.0
    return degrees_value


def degrees(radians_value: float) -> float:
    """Convert radians to degrees."""
    return radians_value * 180.0 / math.pi


def radians(degrees_value: float) -> float:
    """Convert degrees to radians."""
    return degrees_value / 180.0 * math.pi


def quaternion_from_small_angle(theta: Sequence[float]) -> np.ndarray:
    """Quaternion (w, x, y, z) from a 3-element small-angle rotation vector."""
    theta = np.asarray(theta, dtype=float)
    if theta.shape != (3,):
        raise ValueError("theta must have exactly 3 elements")
    q_squared = float(theta @ theta) / 4.0
    if q_squared < 1:
        return np.array([math.sqrt(1 - q_squared), *(theta * 0.5)])
    w = 1.0 / math.sqrt(1 + q_squared)
    return np.array([w, *(theta * w * 0.5)])


def quaternion_from_euler(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """Unit quaternion (w, x, y, z) from roll, pitch, yaw in radians."""
    phi, the, psi = roll / 2.0, pitch / 2.0, yaw / 2.0
    cphi, sphi = math.cos(phi), math.sin(phi)
    cthe, sthe = math.cos(the), math.sin(the)
    cpsi, spsi = math.cos(psi), math.sin(psi)
    q = np.array([
        cphi * cthe * cpsi + sphi * sthe * spsi,
        sphi * cthe * cpsi - cphi * sthe * spsi,
        cphi * sthe * cpsi + sphi * cthe * spsi,
        cphi * cthe * spsi - sphi * sthe * cpsi,
    ])
    return q / np.linalg.norm(q)


def quaternion_to_euler(q: Sequence[float]) -> Tuple[float, float, float]:
    """Roll, pitch, yaw in radians of a quaternion (w, x, y, z)."""
    w, x, y, z = (float(c) for c in q)
    roll = math.atan2(2.0 * (w * x + y * z), 1.0 - 2.0 * (x * x + y * y))
    pitch = math.asin(constrain(2.0 * (w * y - z * x), -1.0, 1.0))
    yaw = math.atan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z))
    return roll, pitch, yaw


def rotate_vector(q: Sequence[float], v: Sequence[float]) -> np.ndarray:
    """Rotate vector ``v`` by the unit quaternion ``q`` (w, x, y, z)."""
    q = np.asarray(q, dtype=float)
    v = np.asarray(v, dtype=float)
    w, u = q[0], q[1:]
    uv = np.cross(u, v)
    return v + 2.0 * w * uv + 2.0 * np.cross(u, uv)


def reproject(pos: Sequence[float], lat_home: float, lon_home: float, alt_home: float) -> Tuple[float, float]:
    """Latitude and longitude (rad) of a local ENU position relative to home."""
    x_rad = pos[1] / EARTH_RADIUS  # north
    y_rad = pos[0] / EARTH_RADIUS  # east
    c = math.sqrt(x_rad * x_rad + y_rad * y_rad)
    if c == 0.0:
        return lat_home, lon_home
    sin_c, cos_c = math.sin(c), math.cos(c)
    lat_rad = math.asin(cos_c * math.sin(lat_home) + (x_rad * sin_c * math.cos(lat_home)) / c)
    lon_rad = lon_home + math.atan2(
        y_rad * sin_c,
        c * math.cos(lat_home) * cos_c - x_rad * math.sin(lat_home) * sin_c,
    )
    return lat_rad, lon_rad


def model_param(world_name: str, model_name: str, param: str, cast: Callable[[str], T] = float) -> Optional[T]:
    """Read a model parameter from ``<world_name>.xml``.

    Models without a ``name`` attribute hold common values; a model whose
    name matches ``model_name`` overrides them. Returns None when the file
    cannot be read or the parameter is not found.
    """
    path = Path(f"{world_name}.xml")
    try:
        root = ET.parse(path).getroot()
    except (OSError, ET.ParseError):
        return None

    found = None
    for model in root.findall("model"):
        attr_name = model.get("name")
        if attr_name is not None:
            if attr_name == model_name:
                specific = model.find(param)
                if specific is not None:
                    found = specific
                break
        else:
            found = model.find(param)

    if found is None or found.text is None:
        return None
    tokens = found.text.split()
    if not tokens:
        return None
    return cast(tokens[0])