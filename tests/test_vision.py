import math

import numpy as np
import pytest

from vehiclesim.common import quaternion_from_euler
from vehiclesim.vision import VisionOdometry

IDENTITY = (1.0, 0.0, 0.0, 0.0)


def noiseless(start=(0.0, 0.0, 0.0)):
    return VisionOdometry(start, 0.0, 30.0, 20.0, 0.0, 0.0, seed=1)


def test_not_due_returns_none():
    odom = noiseless()
    assert odom.update(0.01, (1, 2, 3), IDENTITY, (0, 0, 0), (0, 0, 0)) is None


def test_position_relative_to_start():
    odom = noiseless(start=(10.0, -5.0, 2.0))
    msg = odom.update(1.0, (11.0, -3.0, 5.0), IDENTITY, (0, 0, 0), (0, 0, 0))
    np.testing.assert_allclose(msg.position, [1.0, 2.0, 3.0])


def test_velocities_pass_through_without_noise():
    odom = noiseless()
    msg = odom.update(1.0, (0, 0, 0), IDENTITY, (1.5, -2.0, 0.5), (0.1, 0.2, -0.3))
    np.testing.assert_allclose(msg.linear_velocity, [1.5, -2.0, 0.5])
    np.testing.assert_allclose(msg.angular_velocity, [0.1, 0.2, -0.3])


def test_time_stamp_in_microseconds():
    odom = noiseless()
    msg = odom.update(2.5, (0, 0, 0), IDENTITY, (0, 0, 0), (0, 0, 0))
    assert msg.time_usec == 2500000


def test_orientation_preserved():
    q = quaternion_from_euler(0.1, -0.2, 0.7)
    odom = noiseless()
    msg = odom.update(1.0, (0, 0, 0), q, (0, 0, 0), (0, 0, 0))
    assert abs(float(np.dot(msg.orientation, q))) == pytest.approx(1.0)


def test_covariance_diagonal():
    odom = VisionOdometry((0, 0, 0), 0.0, 30.0, 20.0, 0.01, 0.5, seed=3)
    msg = odom.update(1.0, (0, 0, 0), IDENTITY, (0, 0, 0), (0, 0, 0))
    assert len(msg.pose_covariance) == 36
    assert msg.pose_covariance == msg.velocity_covariance
    for index, value in enumerate(msg.pose_covariance):
        expected = 0.25 if index in (0, 7, 14, 21, 28, 35) else 0.0
        assert value == pytest.approx(expected)


def test_publish_interval_advances():
    odom = noiseless()
    assert odom.update(1.0, (0, 0, 0), IDENTITY, (0, 0, 0), (0, 0, 0)) is not None
    assert odom.update(1.01, (0, 0, 0), IDENTITY, (0, 0, 0), (0, 0, 0)) is None
    assert odom.last_pub_time == 1.0


def test_seed_reproducible():
    args = ((0, 0, 0), 0.0, 30.0, 20.0, 0.01, 0.2)
    a = VisionOdometry(*args, seed=42).update(1.0, (1, 1, 1), IDENTITY, (1, 0, 0), (0, 0, 1))
    b = VisionOdometry(*args, seed=42).update(1.0, (1, 1, 1), IDENTITY, (1, 0, 0), (0, 0, 1))
    np.testing.assert_array_equal(a.position, b.position)
    np.testing.assert_array_equal(a.angular_velocity, b.angular_velocity)


def test_noise_perturbs_position():
    odom = VisionOdometry((0, 0, 0), 0.0, 30.0, 20.0, 0.0, 1.0, seed=5)
    msg = odom.update(1.0, (0, 0, 0), IDENTITY, (0, 0, 0), (0, 0, 0))
    assert float(np.linalg.norm(msg.position)) > 0.0
    assert math.isfinite(float(np.linalg.norm(msg.position)))


def test_bias_stays_zero_without_random_walk():
    odom = VisionOdometry((0, 0, 0), 0.0, 30.0, 20.0, 0.0, 0.3, seed=9)
    for t in (1.0, 2.0, 3.0):
        odom.update(t, (0, 0, 0), IDENTITY, (0, 0, 0), (0, 0, 0))
    np.testing.assert_array_equal(odom.bias, np.zeros(3))


@pytest.mark.parametrize("pub_rate, correlation_time", [(0.0, 20.0), (30.0, 0.0)])
def test_invalid_parameters(pub_rate, correlation_time):
    with pytest.raises(ValueError):
        VisionOdometry((0, 0, 0), 0.0, pub_rate, correlation_time, 0.0, 0.0)