"""Planar inverse kinematics for limb joint chains.

Three solve paths, tried in order:

1. Unreachable target -- the chain is laid straight along anchor->target.
2. Two segments with a bend hint -- closed-form law-of-cosines solve.
3. Otherwise -- FABRIK (forward and backward reaching) iterations, with
   interior joints biased toward the bend hint after every pass.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from critterforge.constants import (
    IK_BEND_STRENGTH,
    IK_ITERATIONS,
    IK_TOLERANCE,
    MIN_AXIS_LENGTH,
    TWO_BONE_EPSILON,
)
from critterforge.core.math_utils import Vec2, as_vec2, clamp, cross2, distance


class LimbIK:
    """Joint chain with fixed segment lengths.

    ``joints`` has ``len(segment_lengths) + 1`` rows; row 0 is the root
    (anchor) and the last row is the end effector (foot).
    """

    def __init__(self, origin, segment_lengths: Sequence[float]) -> None:
        self.lengths = np.asarray(segment_lengths, dtype=np.float64)
        self.total_length = float(self.lengths.sum())

        # Straight line downward from the origin
        ox, oy = as_vec2(origin)
        self.joints: NDArray[np.float64] = np.zeros((len(self.lengths) + 1, 2), dtype=np.float64)
        self.joints[:, 0] = ox
        self.joints[0, 1] = oy
        self.joints[1:, 1] = oy + np.cumsum(self.lengths)

    @property
    def segment_count(self) -> int:
        return len(self.lengths)

    def end_effector(self) -> Vec2:
        return self.joints[-1]

    def solve(
        self,
        target,
        anchor,
        bend_hint=None,
        bend_strength: float = IK_BEND_STRENGTH,
        iterations: int = IK_ITERATIONS,
    ) -> NDArray[np.float64]:
        """Place the joints so the root sits on *anchor* and the end
        effector reaches for *target*.

        Returns the joint array (owned by this solver, updated in place).
        """
        target = as_vec2(target)
        anchor = as_vec2(anchor)
        hint: Optional[Vec2] = None if bend_hint is None else as_vec2(bend_hint)

        dist = distance(anchor, target)
        if dist > self.total_length:
            self._extend_toward(target, anchor, dist)
            return self.joints

        if self.segment_count == 2 and hint is not None:
            self._solve_two_bone(target, anchor, hint)
            return self.joints

        joints = self.joints
        for _ in range(iterations):
            self._reach_backward(target)
            self._reach_forward(anchor)

            if hint is not None and bend_strength > 0:
                self._apply_bend_hint(anchor, target, hint, bend_strength)

            if distance(joints[-1], target) < IK_TOLERANCE:
                break

        return joints

    # ------------------------------------------------------------------
    # Solve paths
    # ------------------------------------------------------------------

    def _extend_toward(self, target: Vec2, anchor: Vec2, dist: float) -> None:
        """Lay the chain straight along the anchor->target ray."""
        direction = (target - anchor) / dist
        offsets = np.concatenate(([0.0], np.cumsum(self.lengths)))
        self.joints[:] = anchor + offsets[:, None] * direction

    def _solve_two_bone(self, target: Vec2, anchor: Vec2, hint: Vec2) -> None:
        len1, len2 = self.lengths
        delta = target - anchor
        dist = math.hypot(delta[0], delta[1])

        lo = abs(len1 - len2) + TWO_BONE_EPSILON
        hi = len1 + len2 - TWO_BONE_EPSILON
        clamped = clamp(dist, lo, hi)

        # Law of cosines: angle at the root between the root->target axis
        # and the first segment
        cos_angle = (len1 * len1 + clamped * clamped - len2 * len2) / (2.0 * len1 * clamped)
        angle = math.acos(clamp(cos_angle, -1.0, 1.0))

        if dist > 0.0:
            axis = delta / dist
        else:
            axis = self._current_axis()

        bend_sign = 1.0 if cross2(axis, hint - anchor) >= 0 else -1.0
        perp = np.array([-axis[1], axis[0]], dtype=np.float64) * bend_sign

        self.joints[0] = anchor
        self.joints[1] = anchor + (axis * math.cos(angle) + perp * math.sin(angle)) * len1
        self.joints[2] = target

    def _current_axis(self) -> Vec2:
        """Direction of the first segment, or straight down if collapsed."""
        seg = self.joints[1] - self.joints[0]
        n = math.hypot(seg[0], seg[1])
        if n == 0.0:
            return np.array([0.0, 1.0], dtype=np.float64)
        return seg / n

    def _reach_backward(self, target: Vec2) -> None:
        """Pin the end effector to the target and walk toward the root."""
        joints = self.joints
        joints[-1] = target
        for i in range(len(joints) - 2, -1, -1):
            d = joints[i] - joints[i + 1]
            dist = math.hypot(d[0], d[1])
            if dist > 0.0:
                joints[i] = joints[i + 1] + d * (self.lengths[i] / dist)

    def _reach_forward(self, anchor: Vec2) -> None:
        """Pin the root to the anchor and walk toward the end effector."""
        joints = self.joints
        joints[0] = anchor
        for i in range(len(joints) - 1):
            d = joints[i + 1] - joints[i]
            dist = math.hypot(d[0], d[1])
            if dist > 0.0:
                joints[i + 1] = joints[i] + d * (self.lengths[i] / dist)

    def _apply_bend_hint(self, anchor: Vec2, target: Vec2, hint: Vec2, strength: float) -> None:
        """Pull interior joints off the anchor-target axis toward *hint*."""
        joints = self.joints
        n = len(joints)
        if n < 2:
            return

        axis = target - anchor
        axis_len = math.hypot(axis[0], axis[1])
        if axis_len < MIN_AXIS_LENGTH:
            return
        axis = axis / axis_len

        for i in range(1, n - 1):
            prev, nxt = joints[i - 1], joints[i + 1]

            # Projection of the joint onto the anchor-target axis
            along = float(np.dot(joints[i] - anchor, axis))
            proj = anchor + axis * along

            to_hint = hint - proj
            to_hint_len = math.hypot(to_hint[0], to_hint[1])
            if to_hint_len < MIN_AXIS_LENGTH:
                continue

            # Largest sideways offset the two adjacent segments allow
            len1 = self.lengths[i - 1]
            half_span = distance(prev, nxt) / 2.0
            sq = len1 * len1 - half_span * half_span
            max_bulge = math.sqrt(sq) if sq > 0.0 else len1 * 0.5

            bulge = proj + to_hint / to_hint_len * max_bulge
            joints[i] = joints[i] * (1.0 - strength) + bulge * strength

            # Re-enforce the segment length from the previous joint
            d = joints[i] - prev
            dist = math.hypot(d[0], d[1])
            if dist > 0.0:
                joints[i] = prev + d * (len1 / dist)

        # Re-seat the end effector toward the target
        last_len = self.lengths[n - 2]
        d = target - joints[n - 2]
        dist = math.hypot(d[0], d[1])
        if dist > 0.0:
            joints[n - 1] = joints[n - 2] + d * (last_len / dist)
