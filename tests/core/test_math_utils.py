"""Tests for math_utils module."""

import math

import numpy as np

from critterforge.core.math_utils import (
    vec2, as_vec2, length, distance, normalize, safe_normalize, perpendicular,
    cross2, dot2, rotate2, turn_angle, lerp, lerp_vec2, clamp, smoothstep,
    deg_to_rad, rad_to_deg,
)


def test_vec2():
    v = vec2(1, 2)
    assert v.shape == (2,)
    np.testing.assert_array_equal(v, [1, 2])


def test_as_vec2_copies():
    src = np.array([3.0, 4.0])
    v = as_vec2(src)
    v[0] = 0.0
    assert src[0] == 3.0
    np.testing.assert_array_equal(as_vec2((5, 6)), [5.0, 6.0])


def test_length_and_distance():
    assert length(vec2(3, 4)) == 5.0
    assert distance(vec2(1, 1), vec2(4, 5)) == 5.0


def test_normalize():
    np.testing.assert_array_almost_equal(normalize(vec2(3, 0)), [1, 0])


def test_normalize_zero():
    np.testing.assert_array_equal(normalize(vec2(0, 0)), [0, 0])


def test_safe_normalize_keeps_fallback():
    np.testing.assert_array_equal(safe_normalize(vec2(0, 0), (1.0, 0.0)), [1, 0])
    np.testing.assert_array_equal(safe_normalize(vec2(0, 0)), [0, 1])
    np.testing.assert_array_almost_equal(safe_normalize(vec2(0, -7), (1.0, 0.0)), [0, -1])


def test_perpendicular():
    np.testing.assert_array_equal(perpendicular(vec2(0, 1)), [-1, 0])
    assert dot2(perpendicular(vec2(2, 3)), vec2(2, 3)) == 0.0


def test_cross2_sign():
    assert cross2(vec2(1, 0), vec2(0, 1)) == 1.0
    assert cross2(vec2(1, 0), vec2(0, -1)) == -1.0
    assert cross2(vec2(2, 2), vec2(1, 1)) == 0.0


def test_rotate2_quarter_turn():
    np.testing.assert_array_almost_equal(rotate2(vec2(1, 0), math.pi / 2), [0, 1])


def test_turn_angle():
    assert turn_angle(vec2(1, 0), vec2(1, 0)) == 0.0
    assert abs(turn_angle(vec2(1, 0), vec2(0, 3)) - math.pi / 2) < 1e-12
    assert abs(turn_angle(vec2(1, 0), vec2(-1, 0)) - math.pi) < 1e-12


def test_turn_angle_degenerate():
    assert turn_angle(vec2(0, 0), vec2(1, 0)) == 0.0


def test_lerp():
    assert lerp(0, 10, 0.5) == 5
    np.testing.assert_array_equal(lerp_vec2(vec2(0, 0), vec2(10, 20), 0.5), [5, 10])


def test_clamp():
    assert clamp(5, 0, 10) == 5
    assert clamp(-1, 0, 10) == 0
    assert clamp(15, 0, 10) == 10


def test_smoothstep():
    assert smoothstep(0.0) == 0.0
    assert smoothstep(1.0) == 1.0
    assert smoothstep(0.5) == 0.5
    assert smoothstep(0.25) < 0.25


def test_deg_rad_roundtrip():
    assert abs(rad_to_deg(deg_to_rad(45.0)) - 45.0) < 1e-10
