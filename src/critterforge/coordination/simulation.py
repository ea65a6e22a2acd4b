"""Per-tick simulation orchestrator for one creature.

Call order:
  1. Head target from the steering collaborator (optional per tick)
  2. Spine update (Verlet, constraints, undulation, drains last tick's
     curvature influence)
  3. Gait update (tangents from the post-update spine, limb planners + IK,
     new curvature influence for the next tick)
  4. FRAME_UPDATE event

The spine must finish before the gait reads it; the phases never overlap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from critterforge.body.gait import GaitCoordinator
from critterforge.body.limb_controller import LimbJoint, LimbSide
from critterforge.body.spine_chain import SpineChain, SpinePoint
from critterforge.core.config import CreatureConfig
from critterforge.core.config_loader import load_creature_config
from critterforge.core.events import EventBus, EventType
from critterforge.core.math_utils import Vec2

logger = logging.getLogger(__name__)


@dataclass
class LimbFrame:
    """Render snapshot of one limb."""
    attachment_index: int
    side: LimbSide
    joints: list[LimbJoint]
    foot: Vec2
    stepping: bool


@dataclass
class CreatureFrame:
    """Render snapshot of the whole creature after a tick."""
    frame: int
    spine: list[SpinePoint]
    limbs: list[LimbFrame]


class CreatureSimulation:
    """Owns a spine and its gait, and steps them in the required order."""

    def __init__(self, config: Optional[CreatureConfig] = None,
                 events: Optional[EventBus] = None) -> None:
        self.config = config if config is not None else CreatureConfig()
        self.events = events if events is not None else EventBus()
        self.spine = SpineChain.from_config(self.config)
        self.gait = GaitCoordinator.from_config(self.spine, self.config.limbs, events=self.events)
        self.frame_count = 0
        logger.info("Creature: %d spine points, %d limbs",
                    self.spine.num_points, len(self.gait.limbs))

    @classmethod
    def from_preset(cls, name: str, events: Optional[EventBus] = None) -> "CreatureSimulation":
        """Build from a preset under assets/config/creatures/.

        Falls back to the default config if the preset can't be loaded.
        """
        try:
            config = load_creature_config(name)
        except (FileNotFoundError, ValueError) as e:
            logger.warning("Creature preset %r unavailable, using defaults: %s", name, e)
            config = CreatureConfig()
        return cls(config, events=events)

    @property
    def head(self) -> Vec2:
        return self.spine.positions[0].copy()

    def step(self, head_target=None) -> None:
        """Advance one tick, optionally moving the head to *head_target*."""
        if head_target is not None:
            self.spine.set_head_position(float(head_target[0]), float(head_target[1]))
        self.spine.update()
        self.gait.update()
        self.frame_count += 1
        self.events.publish(EventType.FRAME_UPDATE, frame=self.frame_count)

    def run(self, head_path) -> None:
        """Step once per head target in *head_path*."""
        for target in head_path:
            self.step(target)

    def snapshot(self) -> CreatureFrame:
        limbs = [
            LimbFrame(
                attachment_index=limb.attachment_index,
                side=limb.side,
                joints=limb.joints_with_width(),
                foot=limb.foot_position(),
                stepping=limb.is_stepping,
            )
            for limb in self.gait.limbs
        ]
        return CreatureFrame(frame=self.frame_count, spine=self.spine.points(), limbs=limbs)

    def limb_joint_arrays(self) -> list[NDArray[np.float64]]:
        return [limb.joints() for limb in self.gait.limbs]
