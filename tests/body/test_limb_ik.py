"""Tests for the planar limb IK solver."""

import numpy as np
import pytest

from critterforge.body.limb_ik import LimbIK


def _segment_lengths(joints):
    return np.linalg.norm(np.diff(joints, axis=0), axis=1)


def test_initial_pose_straight_down():
    ik = LimbIK((5.0, 10.0), [10.0, 20.0])
    np.testing.assert_array_equal(ik.joints, [[5, 10], [5, 20], [5, 40]])
    assert ik.total_length == 30.0
    assert ik.segment_count == 2
    np.testing.assert_array_equal(ik.end_effector(), [5, 40])


class TestUnreachable:
    def test_laid_straight_toward_target(self):
        ik = LimbIK((0.0, 0.0), [10.0, 10.0, 10.0])
        joints = ik.solve((100.0, 0.0), (0.0, 0.0))
        np.testing.assert_allclose(joints, [[0, 0], [10, 0], [20, 0], [30, 0]])

    def test_two_bone_with_hint_still_extends(self):
        ik = LimbIK((0.0, 0.0), [15.0, 15.0])
        joints = ik.solve((0.0, -50.0), (0.0, 0.0), bend_hint=(20.0, 0.0))
        np.testing.assert_allclose(joints, [[0, 0], [0, -15], [0, -30]])


class TestTwoBone:
    def test_closed_form_solution(self):
        ik = LimbIK((0.0, 0.0), [15.0, 15.0])
        joints = ik.solve((20.0, 0.0), (0.0, 0.0), bend_hint=(10.0, -50.0))
        np.testing.assert_allclose(joints[0], [0, 0])
        np.testing.assert_allclose(joints[2], [20, 0])
        np.testing.assert_allclose(_segment_lengths(joints), [15, 15])
        np.testing.assert_allclose(joints[1], [10.0, -np.sqrt(125.0)])

    def test_hint_side_chooses_bend(self):
        ik = LimbIK((0.0, 0.0), [15.0, 15.0])
        joints = ik.solve((20.0, 0.0), (0.0, 0.0), bend_hint=(10.0, 50.0))
        assert joints[1][1] > 0

    def test_target_at_anchor_stays_finite(self):
        ik = LimbIK((0.0, 0.0), [15.0, 15.0])
        joints = ik.solve((0.0, 0.0), (0.0, 0.0), bend_hint=(10.0, 0.0))
        assert np.all(np.isfinite(joints))
        np.testing.assert_array_equal(joints[2], [0, 0])
        assert np.linalg.norm(joints[1]) == pytest.approx(15.0)

    def test_unequal_segments_clamped(self):
        ik = LimbIK((0.0, 0.0), [20.0, 5.0])
        joints = ik.solve((2.0, 0.0), (0.0, 0.0), bend_hint=(0.0, 10.0))
        assert np.all(np.isfinite(joints))
        assert np.linalg.norm(joints[1]) == pytest.approx(20.0)


class TestFabrik:
    def test_converges_without_hint(self):
        ik = LimbIK((0.0, 0.0), [10.0, 10.0, 10.0])
        joints = ik.solve((15.0, 15.0), (0.0, 0.0), iterations=50)
        np.testing.assert_array_equal(joints[0], [0, 0])
        assert np.linalg.norm(joints[-1] - [15.0, 15.0]) < 0.1
        np.testing.assert_allclose(_segment_lengths(joints), [10, 10, 10])

    def test_two_bone_without_hint_uses_fabrik(self):
        ik = LimbIK((0.0, 0.0), [15.0, 15.0])
        joints = ik.solve((20.0, 5.0), (0.0, 0.0), iterations=50)
        assert np.linalg.norm(joints[-1] - [20.0, 5.0]) < 0.1
        np.testing.assert_allclose(_segment_lengths(joints), [15, 15])

    def test_bend_hint_pulls_interior_joints(self):
        ik = LimbIK((0.0, 0.0), [10.0, 10.0, 10.0])
        joints = ik.solve((20.0, 0.0), (0.0, 0.0), bend_hint=(10.0, 30.0), bend_strength=0.5)
        np.testing.assert_array_equal(joints[0], [0, 0])
        assert joints[1][1] > 0
        np.testing.assert_allclose(_segment_lengths(joints), [10, 10, 10])

    def test_zero_strength_ignores_hint(self):
        hinted = LimbIK((0.0, 0.0), [10.0, 10.0, 10.0])
        plain = LimbIK((0.0, 0.0), [10.0, 10.0, 10.0])
        hinted.solve((15.0, 15.0), (0.0, 0.0), bend_hint=(-30.0, 30.0), bend_strength=0.0)
        plain.solve((15.0, 15.0), (0.0, 0.0))
        np.testing.assert_array_equal(hinted.joints, plain.joints)

    def test_moved_anchor(self):
        ik = LimbIK((0.0, 0.0), [10.0, 10.0, 10.0])
        joints = ik.solve((115.0, 215.0), (100.0, 200.0), iterations=50)
        np.testing.assert_array_equal(joints[0], [100, 200])
        assert np.linalg.norm(joints[-1] - [115.0, 215.0]) < 0.1
