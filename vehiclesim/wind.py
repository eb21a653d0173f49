"""Random wind with an optional gust window.

Wind speed and direction are drawn from normal distributions each time a
sample is published. Speed is taken as an absolute value and capped at a
maximum. During the gust window, a second independently drawn gust
velocity is added.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np


def _unit(values: Sequence[float]) -> np.ndarray:
    """Unit vector along ``values``; a zero vector is returned unchanged."""
    v = np.asarray(values, dtype=float).reshape(3)
    norm = float(np.linalg.norm(v))
    return v / norm if norm != 0.0 else v


@dataclass
class WindParams:
    """Statistics of the wind and of the gust, and the publishing rate."""

    velocity_mean: float = 0.0
    velocity_max: float = math.inf
    velocity_variance: float = 0.0
    direction_mean: Sequence[float] = (1.0, 0.0, 0.0)
    direction_variance: float = 0.0
    gust_start: float = 0.0
    gust_duration: float = 0.0
    gust_velocity_mean: float = 0.0
    gust_velocity_max: float = math.inf
    gust_velocity_variance: float = 0.0
    gust_direction_mean: Sequence[float] = (1.0, 0.0, 0.0)
    gust_direction_variance: float = 0.0
    publish_rate: float = 2.0
    frame_id: str = "world"

    def __post_init__(self) -> None:
        for name in (
            "velocity_variance",
            "direction_variance",
            "gust_velocity_variance",
            "gust_direction_variance",
        ):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must not be negative")

    @property
    def publish_interval(self) -> float:
        """Seconds between samples; zero disables publishing."""
        return 1.0 / self.publish_rate if self.publish_rate > 0.0 else 0.0


@dataclass(frozen=True)
class WindSample:
    """One published wind velocity."""

    frame_id: str
    time_usec: int
    velocity: np.ndarray


class WindGenerator:
    """Produces wind samples at the configured rate of simulation time."""

    def __init__(self, params: Optional[WindParams] = None, start_time: float = 0.0, seed: Optional[int] = None) -> None:
        self.params = params if params is not None else WindParams()
        self.last_time = float(start_time)
        self.gust_start = float(self.params.gust_start)
        self.gust_end = float(self.params.gust_start + self.params.gust_duration)
        self._direction_mean = _unit(self.params.direction_mean)
        self._gust_direction_mean = _unit(self.params.gust_direction_mean)
        streams = np.random.SeedSequence(seed).spawn(4)
        self._velocity_rng, self._direction_rng, self._gust_velocity_rng, self._gust_direction_rng = (
            np.random.default_rng(s) for s in streams
        )

    @staticmethod
    def _strength(rng: np.random.Generator, mean: float, variance: float, maximum: float) -> float:
        strength = abs(float(rng.normal(mean, math.sqrt(variance))))
        return maximum if strength > maximum else strength

    @staticmethod
    def _direction(rng: np.random.Generator, mean: np.ndarray, variance: float) -> np.ndarray:
        sigma = math.sqrt(variance)
        return np.array([rng.normal(component, sigma) for component in mean], dtype=float)

    def update(self, now: float) -> Optional[WindSample]:
        """Sample at simulation time ``now``, or None if not yet due."""
        p = self.params
        interval = p.publish_interval
        if now - self.last_time < interval or interval == 0.0:
            return None
        self.last_time = float(now)

        strength = self._strength(self._velocity_rng, p.velocity_mean, p.velocity_variance, p.velocity_max)
        direction = self._direction(self._direction_rng, self._direction_mean, p.direction_variance)
        wind = strength * direction

        gust = np.zeros(3)
        if self.gust_start <= now < self.gust_end:
            gust_strength = self._strength(
                self._gust_velocity_rng, p.gust_velocity_mean, p.gust_velocity_variance, p.gust_velocity_max
            )
            gust_direction = self._direction(
                self._gust_direction_rng, self._gust_direction_mean, p.gust_direction_variance
            )
            gust = gust_strength * gust_direction

        return WindSample(frame_id=p.frame_id, time_usec=int(now * 1e6), velocity=wind + gust)