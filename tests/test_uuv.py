import numpy as np
import pytest

from vehiclesim.uuv import BuoyancyLink, UuvHydrodynamics

IDENTITY = (1.0, 0.0, 0.0, 0.0)
GRAVITY = (0.0, 0.0, -9.81)


def link(**kwargs):
    return BuoyancyLink.from_compensation(10.0, GRAVITY, compensation=1.0, **kwargs)


def test_compensation_opposes_gravity():
    b = link()
    np.testing.assert_allclose(b.buoyancy_force, [0.0, 0.0, 10.0 * 9.81])


def test_fully_submerged_gives_full_force():
    b = link()
    force, point = b.force_at((0.0, 0.0, -1.0), IDENTITY)
    np.testing.assert_allclose(force, b.buoyancy_force)
    np.testing.assert_allclose(point, [0.0, 0.0, -1.0])


def test_above_surface_gives_no_force():
    force, _ = link().force_at((0.0, 0.0, 1.0), IDENTITY)
    np.testing.assert_allclose(force, np.zeros(3))


def test_at_surface_gives_half_force():
    b = link()
    force, _ = b.force_at((0.0, 0.0, 0.0), IDENTITY)
    np.testing.assert_allclose(force, 0.5 * b.buoyancy_force)


def test_cob_rotated_with_orientation():
    b = link(cob=(0.0, 0.0, 0.5))
    _, upright = b.force_at((0.0, 0.0, -1.0), IDENTITY)
    _, flipped = b.force_at((0.0, 0.0, -1.0), (0.0, 1.0, 0.0, 0.0))
    np.testing.assert_allclose(upright, [0.0, 0.0, -0.5])
    np.testing.assert_allclose(flipped, [0.0, 0.0, -1.5], atol=1e-12)


def test_negative_limit_taken_as_absolute():
    assert link(height_scale_limit=-0.3).height_scale_limit == pytest.approx(0.3)


def test_zero_limit_rejected():
    with pytest.raises(ValueError):
        link(height_scale_limit=0.0)


def test_zero_velocity_zero_load():
    model = UuvHydrodynamics((1, 2, 3), (4, 5, 6), (7, 8, 9), (1, 1, 1))
    force, torque = model.forces((0, 0, 0), (0, 0, 0))
    np.testing.assert_allclose(force, np.zeros(3))
    np.testing.assert_allclose(torque, np.zeros(3))


def test_linear_damping_opposes_velocity():
    model = UuvHydrodynamics(damping_linear=(2.0, 3.0, 4.0), damping_angular=(5.0, 6.0, 7.0))
    force, torque = model.forces((1.0, -1.0, 2.0), (1.0, 1.0, -1.0))
    np.testing.assert_allclose(force, [-2.0, 3.0, -8.0])
    np.testing.assert_allclose(torque, [-5.0, -6.0, 7.0])


def test_damping_is_linear_in_velocity():
    model = UuvHydrodynamics(damping_linear=(2.0, 3.0, 4.0), damping_angular=(5.0, 6.0, 7.0))
    f1, t1 = model.forces((0.3, 0.1, -0.2), (0.5, -0.4, 0.2))
    f2, t2 = model.forces((0.6, 0.2, -0.4), (1.0, -0.8, 0.4))
    np.testing.assert_allclose(f2, 2 * f1)
    np.testing.assert_allclose(t2, 2 * t1)


def test_coriolis_does_no_work():
    model = UuvHydrodynamics(added_mass_linear=(3.0, 5.0, 7.0))
    lin = np.array([0.4, -1.2, 0.7])
    ang = np.array([0.3, 0.9, -0.5])
    force, _ = model.forces(lin, ang)
    _, torque = model.forces(lin, (0.0, 0.0, 0.0))
    assert float(force @ ang) == pytest.approx(0.0, abs=1e-12)
    assert float(torque @ lin) == pytest.approx(0.0, abs=1e-12)


def test_pure_translation_has_no_coriolis_force():
    model = UuvHydrodynamics(added_mass_linear=(3.0, 5.0, 7.0), added_mass_angular=(1.0, 2.0, 3.0))
    force, _ = model.forces((1.0, 2.0, 3.0), (0.0, 0.0, 0.0))
    np.testing.assert_allclose(force, np.zeros(3))