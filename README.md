# vehiclesim

Physics and sensor models for simulated vehicles, usable without any
simulator host. Each model takes the vehicle state you give it (positions,
velocities, quaternions as `(w, x, y, z)`) and returns forces, torques or
sensor messages as numpy arrays and dataclasses.

## Modules

- `vehiclesim.common`: `FirstOrderFilter` (first order filter with separate
  rise and fall time constants), `constrain`, angle helpers (`degrees`,
  `radians`, `degrees_360`), quaternion helpers
  (`quaternion_from_small_angle`, `quaternion_from_euler`,
  `quaternion_to_euler`, `rotate_vector`), `reproject` for turning a local
  ENU position into latitude and longitude around a home point, and
  `model_param`, which reads a parameter for a named model from
  `<world_name>.xml` (unnamed `<model>` elements hold common values) and
  returns None when the file or parameter is missing.
- `vehiclesim.liftdrag`: `LiftDragModel` built from `LiftDragParams`.
  `compute(velocity, rotation, control_angle)` returns an `AeroResult`
  with force, moment, lift, drag, angle of attack, sweep and coefficients,
  including linear post-stall behaviour and control-surface deflection. It
  returns None when the air-relative speed is negligible or the flow comes
  from behind. `set_wind` sets the wind velocity subtracted from the
  vehicle's.
- `vehiclesim.wind`: `WindGenerator` built from `WindParams`. `update(now)`
  returns a `WindSample` at the configured publish rate (None when not yet
  due), drawing speed and direction from normal distributions and adding a
  gust inside the gust window. Pass `seed` for repeatable output.
- `vehiclesim.uuv`: `UuvHydrodynamics.forces` gives body-frame damping and
  added-mass Coriolis force and torque; `BuoyancyLink` (or
  `BuoyancyLink.from_compensation`) gives a buoyancy force that fades
  linearly as its centre of buoyancy rises through the water surface.
- `vehiclesim.vision`: `VisionOdometry.update` turns true state into an
  `OdometryMessage` with position relative to the start point, noise, a
  drifting bias and diagonal covariances, at a fixed rate.
- `vehiclesim.link`: `SimulatorLink`, configured by `LinkConfig`, opens UDP
  sockets (or a TCP listener) to an autopilot and, in HIL mode, UDP sockets
  to a ground control station and an SDK client. It provides `poll`,
  `poll_ground_stations`, `send`, `forward`, `close` and `on_sigint`, and
  works as a context manager. `resolve_address` checks IPv4 addresses and
  maps `INADDR_ANY` to `0.0.0.0`.

## What it does not do

- There is no MAVLink encoding or decoding. `SimulatorLink` takes a
  `parse(channel, data)` callable that splits bytes into packets and a
  `handle(packet)` callable that returns True for actuator controls; by
  default each datagram is one packet and nothing is handled.
- There is no magnetic field model, no surface vessel model and no
  collection of sensor readings into HIL sensor or GPS messages.
- There is no command-line program and no simulator integration: you call
  the models from your own loop.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
from vehiclesim.common import FirstOrderFilter
from vehiclesim.liftdrag import LiftDragModel
from vehiclesim.wind import WindGenerator, WindParams

motor = FirstOrderFilter(0.0125, 0.025, 0.0)
speed = motor.update(1000.0, 0.004)

wing = LiftDragModel()
result = wing.compute([10.0, 0.0, 1.0], [1.0, 0.0, 0.0, 0.0])
print(result.alpha, result.force)

wind = WindGenerator(WindParams(velocity_mean=3.0, velocity_variance=0.5), seed=1)
sample = wind.update(1.0)
print(sample.velocity)
```