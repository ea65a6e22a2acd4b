"""Per-limb footstep planner driving a LimbIK chain.

Each limb is a two-state machine:

  RESTING  -- foot planted; IK re-solved every tick toward the planted foot
  STEPPING -- foot travels from ``step_start`` to ``step_target`` along a
              smoothstep path with a sin(pi t) lift for ground clearance

A step starts when the planted foot ends up on the wrong side of the body
(or too close to the centerline) or when the limb is nearly fully extended.
Both checks run in that order and share the single STEPPING guard, so at
most one step is started per tick.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from critterforge.constants import (
    BEND_HINT_FRACTION,
    FORWARD_STEP_FRACTION,
    LIMB_BEND_STRENGTH,
    LIMB_MAX_WIDTH,
    LIMB_WIDTH_TAPER,
    MAX_STRIDE_FRACTION,
    MIN_SIDE_FRACTION,
    OVERREACH_FRACTION,
    REST_OFFSET_FRACTION,
    STEP_ARC_HEIGHT,
    STEP_MIRROR_FACTOR,
    STEP_RATE,
    WRONG_SIDE_FRACTION,
)
from critterforge.body.limb_ik import LimbIK
from critterforge.core.events import EventBus, EventType
from critterforge.core.math_utils import (
    Vec2, as_vec2, clamp, dot2, length, lerp_vec2, perpendicular, safe_normalize, smoothstep,
)

logger = logging.getLogger(__name__)


class StepState(Enum):
    RESTING = "resting"
    STEPPING = "stepping"


class LimbSide(Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def sign(self) -> float:
        """+1 for left, -1 for right (multiplies the body's perpendicular)."""
        return 1.0 if self is LimbSide.LEFT else -1.0


@dataclass
class LimbJoint:
    """Joint position with its rendered width."""
    position: Vec2
    width: float


class LimbController:
    """Footstep planner + IK driver for one limb.

    Parameters
    ----------
    attachment_index:
        Spine index the limb hangs from.
    side:
        Which side of the body the foot is planted on.
    segment_lengths:
        Lengths of the limb segments, root to foot.
    bend_strength:
        How strongly the interior joints are biased toward the bend hint.
    events:
        Optional bus receiving ``STEP_STARTED`` / ``STEP_LANDED``.
    """

    def __init__(
        self,
        attachment_index: int,
        side: LimbSide,
        segment_lengths: Sequence[float],
        bend_strength: float = LIMB_BEND_STRENGTH,
        max_width: float = LIMB_MAX_WIDTH,
        events: Optional[EventBus] = None,
    ) -> None:
        self.attachment_index = attachment_index
        self.side = side
        self.bend_strength = bend_strength
        self.events = events

        self.ik = LimbIK((0.0, 0.0), segment_lengths)
        self.reach = self.ik.total_length

        # Taper from max_width at the body to 30% of it at the foot
        n = len(self.ik.joints)
        self.joint_widths = [
            max_width * (1.0 - (i / (n - 1) if n > 1 else 0.0) * LIMB_WIDTH_TAPER)
            for i in range(n)
        ]

        self.state = StepState.RESTING
        self.step_progress = 0.0
        self.foot: Vec2 = np.zeros(2, dtype=np.float64)
        self.step_start: Vec2 = self.foot.copy()
        self.step_target: Vec2 = self.foot.copy()
        self.body_direction: Vec2 = np.array([0.0, 1.0], dtype=np.float64)

    @property
    def is_stepping(self) -> bool:
        return self.state is StepState.STEPPING

    def __repr__(self) -> str:
        return (f"LimbController(index={self.attachment_index}, side={self.side.value}, "
                f"state={self.state.value})")

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize_at_rest(self, attachment, body_direction) -> None:
        """Plant the foot perpendicular to the body at half reach."""
        attach = as_vec2(attachment)
        self.body_direction = safe_normalize(as_vec2(body_direction), self.body_direction)
        perp = perpendicular(self.body_direction)

        self.foot = attach + perp * (self.reach * REST_OFFSET_FRACTION * self.side.sign)
        self.step_start = self.foot.copy()
        self.step_target = self.foot.copy()
        self.state = StepState.RESTING
        self.step_progress = 0.0
        self.ik.solve(self.foot, attach, self._bend_hint(attach), self.bend_strength)

    # ------------------------------------------------------------------
    # Per-tick update
    # ------------------------------------------------------------------

    def update(self, attachment, body_direction) -> None:
        """Run the footstep planner, advance any step, and re-solve IK."""
        attach = as_vec2(attachment)
        self.body_direction = safe_normalize(as_vec2(body_direction), self.body_direction)
        direction = self.body_direction
        perp = perpendicular(direction)
        side = self.side.sign

        offset = self.foot - attach

        # Wrong side of the body, or too close to the centerline
        min_perp = self.reach * WRONG_SIDE_FRACTION
        if dot2(offset, perp) * side < min_perp and not self.is_stepping:
            target = self._plan_step(attach, offset, self.reach * FORWARD_STEP_FRACTION)
            self._start_step(target, "wrong_side")

        # Limb close to full extension
        if not self.is_stepping and length(offset) > self.reach * OVERREACH_FRACTION:
            target = self._plan_step(attach, offset, 0.0)
            self._start_step(target, "overreach")

        if self.is_stepping:
            self._advance_step()

        self.ik.solve(self.foot, attach, self._bend_hint(attach), self.bend_strength)

    def _plan_step(self, attach: Vec2, offset: Vec2, forward_bias: float) -> Vec2:
        """Landing spot: half reach out to the side, with the fore/aft offset
        mirrored so the foot lands ahead of where it lifted."""
        direction = self.body_direction
        perp = perpendicular(direction)
        side = self.side.sign

        along = dot2(offset, direction)
        max_stride = self.reach * MAX_STRIDE_FRACTION
        stride = clamp(-along * STEP_MIRROR_FACTOR + forward_bias, -max_stride, max_stride)

        target = attach + perp * (self.reach * REST_OFFSET_FRACTION * side) + direction * stride

        # Never land across the centerline
        if dot2(target - attach, perp) * side < 0:
            target = attach + perp * (self.reach * MIN_SIDE_FRACTION * side) + direction * stride
        return target

    def _start_step(self, target: Vec2, reason: str) -> None:
        self.state = StepState.STEPPING
        self.step_progress = 0.0
        self.step_start = self.foot.copy()
        self.step_target = target
        logger.debug("Limb %d/%s step (%s): (%.1f, %.1f) -> (%.1f, %.1f)",
                     self.attachment_index, self.side.value, reason,
                     self.step_start[0], self.step_start[1], target[0], target[1])
        if self.events is not None:
            self.events.publish(EventType.STEP_STARTED, limb=self, reason=reason,
                                start=self.step_start.copy(), target=target.copy())

    def _advance_step(self) -> None:
        self.step_progress += STEP_RATE
        if self.step_progress >= 1.0:
            self.step_progress = 1.0
            self.state = StepState.RESTING
            self.foot = self.step_target.copy()
            if self.events is not None:
                self.events.publish(EventType.STEP_LANDED, limb=self, position=self.foot.copy())
            return

        t = self.step_progress
        self.foot = lerp_vec2(self.step_start, self.step_target, smoothstep(t))
        self.foot[1] -= math.sin(t * math.pi) * STEP_ARC_HEIGHT  # -y is up

    def _bend_hint(self, attach: Vec2) -> Vec2:
        """Point outward and behind the limb midpoint, so joints bend back
        away from the direction of travel."""
        direction = self.body_direction
        perp = perpendicular(direction)
        mid = (attach + self.foot) / 2.0
        dist = self.reach * BEND_HINT_FRACTION
        return mid + perp * (dist * self.side.sign) - direction * dist

    # ------------------------------------------------------------------
    # Render-facing queries
    # ------------------------------------------------------------------

    def joints(self) -> NDArray[np.float64]:
        return self.ik.joints.copy()

    def joints_with_width(self) -> list[LimbJoint]:
        return [
            LimbJoint(position=self.ik.joints[i].copy(), width=w)
            for i, w in enumerate(self.joint_widths)
        ]

    def foot_position(self) -> Vec2:
        return self.foot.copy()
