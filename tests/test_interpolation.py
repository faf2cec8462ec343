"""Tests for the reference linear interpolation."""

from __future__ import annotations

import pytest

from hapticfx.exceptions import InvalidArgumentError
from hapticfx.interpolation import evaluate, sample
from hapticfx.waveform import validate_keys


@pytest.fixture()
def keys():
    return validate_keys([(100, 0.2), (200, 1.0), (400, 0.0), (500, 0.6)])


def test_clamps_outside_key_range(keys) -> None:
    assert evaluate(keys, 0) == 0.2
    assert evaluate(keys, 100) == 0.2
    assert evaluate(keys, 500) == 0.6
    assert evaluate(keys, 10_000) == 0.6


def test_returns_exact_intensity_at_key_times(keys) -> None:
    for key in keys:
        assert evaluate(keys, key.time) == key.intensity


def test_interpolates_linearly_between_brackets(keys) -> None:
    assert evaluate(keys, 150) == pytest.approx(0.6)
    assert evaluate(keys, 300) == pytest.approx(0.5)
    assert evaluate(keys, 450) == pytest.approx(0.3)


def test_monotone_and_continuous_within_each_segment(keys) -> None:
    for a, b in zip(keys, keys[1:]):
        values = [evaluate(keys, a.time + (b.time - a.time) * step / 20) for step in range(21)]
        deltas = [after - before for before, after in zip(values, values[1:])]
        if b.intensity >= a.intensity:
            assert all(delta >= -1e-12 for delta in deltas)
        else:
            assert all(delta <= 1e-12 for delta in deltas)
        assert values[0] == pytest.approx(a.intensity)
        assert values[-1] == pytest.approx(b.intensity)
        assert evaluate(keys, b.time - 1e-6) == pytest.approx(b.intensity, abs=1e-6)


def test_single_key_is_constant() -> None:
    keys = validate_keys([(50, 0.4)], minimum=1)

    assert evaluate(keys, 0) == 0.4
    assert evaluate(keys, 99) == 0.4


def test_empty_keys_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        evaluate((), 10)


def test_sample_covers_full_range(keys) -> None:
    points = sample(keys, 150)

    assert points[0] == (100, 0.2)
    assert points[-1] == (500, 0.6)
    assert [time for time, _ in points] == [100, 250, 400, 500]
    with pytest.raises(InvalidArgumentError):
        sample(keys, 0)
