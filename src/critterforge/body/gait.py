"""Gait coordinator: attaches limbs to the spine and feeds curvature back.

Call order per tick (after ``SpineChain.update``):
  1. Local tangent at each attachment index from the post-update spine
  2. Left/right anchors offset sideways by a fraction of the local width
  3. Each ``LimbController.update``
  4. Left/right foot alignment -> signed curvature influence, written to
     the spine for its next update
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from critterforge.constants import (
    CURVATURE_GAIN, LATERAL_ATTACH_FRACTION, LIMB_BEND_STRENGTH, LIMB_MAX_WIDTH,
)
from critterforge.body.limb_controller import LimbController, LimbSide
from critterforge.body.spine_chain import SpineChain
from critterforge.core.config import LimbConfig
from critterforge.core.events import EventBus
from critterforge.core.math_utils import Vec2, dot2, length, perpendicular, safe_normalize

logger = logging.getLogger(__name__)

DEFAULT_TANGENT = (0.0, 1.0)


def distribute_attachments(spine: SpineChain, pairs: int) -> list[int]:
    """Spread *pairs* attachment indices evenly over the body range."""
    body = spine.body_indices()
    if pairs <= 0 or not body:
        return []
    spacing = len(body) / pairs
    return [body[min(int(spacing * (k + 0.5)), len(body) - 1)] for k in range(pairs)]


class GaitCoordinator:
    """Owns the limbs and couples them to a ``SpineChain``."""

    def __init__(
        self,
        spine: SpineChain,
        pairs: int,
        segment_lengths: list[float],
        bend_strength: float = LIMB_BEND_STRENGTH,
        max_width: float = LIMB_MAX_WIDTH,
        events: Optional[EventBus] = None,
    ) -> None:
        self.spine = spine
        self.attachment_indices = distribute_attachments(spine, pairs)
        self.limbs: list[LimbController] = []
        for index in self.attachment_indices:
            for side in (LimbSide.LEFT, LimbSide.RIGHT):
                self.limbs.append(LimbController(
                    index, side, segment_lengths,
                    bend_strength=bend_strength, max_width=max_width, events=events,
                ))

        # Last per-attachment influence handed to the spine, for diagnostics
        self.last_influence: dict[int, float] = {}

        for limb in self.limbs:
            tangent = self.tangent_at(limb.attachment_index)
            limb.initialize_at_rest(self.anchor_for(limb, tangent), tangent)

        logger.debug("Gait: %d limbs at spine indices %s", len(self.limbs), self.attachment_indices)

    @classmethod
    def from_config(cls, spine: SpineChain, config: LimbConfig,
                    events: Optional[EventBus] = None) -> "GaitCoordinator":
        return cls(spine, config.pairs, config.segment_lengths,
                   bend_strength=config.bend_strength, max_width=config.max_width,
                   events=events)

    # ------------------------------------------------------------------
    # Geometry from the spine
    # ------------------------------------------------------------------

    def tangent_at(self, index: int) -> Vec2:
        """Unit direction toward the head at *index*, from its neighbors.

        Chain ends (and degenerate neighborhoods) fall back to (0, 1).
        """
        n = self.spine.num_points
        if index <= 0 or index >= n - 1:
            return np.array(DEFAULT_TANGENT, dtype=np.float64)
        pos = self.spine.positions
        return safe_normalize(pos[index - 1] - pos[index + 1], DEFAULT_TANGENT)

    def anchor_for(self, limb: LimbController, tangent: Vec2) -> Vec2:
        """Attachment point shifted sideways so left and right limbs differ."""
        i = limb.attachment_index
        offset = self.spine.widths[i] * LATERAL_ATTACH_FRACTION * limb.side.sign
        return self.spine.positions[i] + perpendicular(tangent) * offset

    # ------------------------------------------------------------------
    # Per-tick update
    # ------------------------------------------------------------------

    def update(self) -> None:
        """Drive every limb from the current spine and write back curvature."""
        signals: dict[int, dict[LimbSide, float]] = {}

        for limb in self.limbs:
            tangent = self.tangent_at(limb.attachment_index)
            anchor = self.anchor_for(limb, tangent)
            limb.update(anchor, tangent)

            foot_offset = limb.foot - anchor
            dist = length(foot_offset)
            alignment = dot2(foot_offset, tangent) / dist if dist > 0.0 else 0.0
            by_side = signals.setdefault(limb.attachment_index, {})
            by_side[limb.side] = by_side.get(limb.side, 0.0) + alignment

        self.last_influence = {}
        for index, by_side in signals.items():
            left = by_side.get(LimbSide.LEFT, 0.0)
            right = by_side.get(LimbSide.RIGHT, 0.0)
            influence = (left - right) * CURVATURE_GAIN
            self.spine.set_influence(index, influence)
            self.last_influence[index] = influence

    def limbs_at(self, index: int) -> list[LimbController]:
        return [limb for limb in self.limbs if limb.attachment_index == index]

    @property
    def stepping_count(self) -> int:
        return sum(1 for limb in self.limbs if limb.is_stepping)
