import numpy as np
import pytest

from vehiclesim.wind import WindGenerator, WindParams


def steady(**kwargs):
    base = dict(velocity_mean=3.0, velocity_variance=0.0, direction_mean=(0.0, 2.0, 0.0), direction_variance=0.0)
    base.update(kwargs)
    return WindParams(**base)


def test_not_published_before_interval():
    gen = WindGenerator(steady(publish_rate=2.0), start_time=0.0, seed=1)
    assert gen.update(0.3) is None
    assert gen.update(0.6) is not None


def test_zero_rate_never_publishes():
    gen = WindGenerator(steady(publish_rate=0.0), seed=1)
    assert all(gen.update(t) is None for t in (1.0, 10.0, 100.0))


def test_deterministic_wind_uses_normalized_direction():
    gen = WindGenerator(steady(), seed=1)
    sample = gen.update(1.0)
    np.testing.assert_allclose(sample.velocity, [0.0, 3.0, 0.0])
    assert sample.frame_id == "world"
    assert sample.time_usec == 1_000_000


def test_negative_mean_gives_positive_strength():
    gen = WindGenerator(steady(velocity_mean=-3.0), seed=1)
    np.testing.assert_allclose(gen.update(1.0).velocity, [0.0, 3.0, 0.0])


def test_strength_capped_at_max():
    gen = WindGenerator(steady(velocity_mean=10.0, velocity_max=3.0), seed=1)
    assert np.linalg.norm(gen.update(1.0).velocity) == pytest.approx(3.0)


def test_gust_added_only_inside_window():
    params = steady(
        gust_start=2.0,
        gust_duration=1.0,
        gust_velocity_mean=3.0,
        gust_direction_mean=(0.0, 5.0, 0.0),
    )
    gen = WindGenerator(params, seed=1)
    before = gen.update(1.0).velocity
    during = gen.update(2.5).velocity
    after = gen.update(3.0).velocity
    np.testing.assert_allclose(before, [0.0, 3.0, 0.0])
    np.testing.assert_allclose(during, 2 * before)
    np.testing.assert_allclose(after, before)


def test_last_time_only_advances_on_publish():
    gen = WindGenerator(steady(publish_rate=1.0), start_time=0.0, seed=1)
    assert gen.update(0.9) is None
    assert gen.last_time == 0.0
    gen.update(1.5)
    assert gen.last_time == 1.5


def test_same_seed_same_samples():
    params = steady(velocity_variance=1.0, direction_variance=0.5)
    a = WindGenerator(params, seed=7)
    b = WindGenerator(params, seed=7)
    for t in (1.0, 2.0, 3.0):
        np.testing.assert_array_equal(a.update(t).velocity, b.update(t).velocity)


def test_negative_variance_rejected():
    with pytest.raises(ValueError):
        WindParams(velocity_variance=-1.0)