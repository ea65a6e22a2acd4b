"""Spine chain: position-based dynamics for the creature's body.

An ordered chain of points integrated with Verlet (velocity is implicit in
``position - prev_position``) and relaxed each tick under two constraints:

* distance -- adjacent points stay ``segment_length`` apart
* angle    -- the turn between consecutive segments never exceeds ``max_angle``

Point 0 is pinned and driven externally through ``set_head_position``.
On top of the relaxation, a traveling sine wave (undulation) is blended in
while the head moves, and limbs can nudge local curvature through a
per-point influence accumulator that is drained once per ``update``.

This module has ZERO rendering imports; all math is done with NumPy.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from critterforge.constants import (
    CONSTRAINT_ITERATIONS,
    DEFAULT_FRICTION,
    DEFAULT_MAX_ANGLE_DEG,
    INFLUENCE_ROTATION_GAIN,
    INFLUENCE_THRESHOLD,
    UNDULATION_AMPLITUDE,
    UNDULATION_BLEND,
    UNDULATION_MIN_HEAD_SPEED,
    UNDULATION_PHASE_SPEED_CAP,
    UNDULATION_SPEED,
    UNDULATION_SPEED_NORM,
    UNDULATION_WAVELENGTH,
)
from critterforge.core.config import CreatureConfig, SegmentCounts, WidthSource, resolve_width
from critterforge.core.math_utils import (
    Vec2, as_vec2, clamp, cross2, deg_to_rad, dot2, rotate2, turn_angle,
)

logger = logging.getLogger(__name__)


class SegmentType(Enum):
    HEAD = "head"
    NECK = "neck"
    BODY = "body"


@dataclass
class SpinePoint:
    """Read-only snapshot of one spine point for rendering collaborators."""
    position: Vec2
    prev_position: Vec2
    pinned: bool
    width: float
    segment_type: SegmentType


class SpineChain:
    """Verlet-integrated chain of constrained points.

    Parameters
    ----------
    origin:
        Position of the head point.  The rest of the chain is laid out
        along +y, one ``segment_length`` apart.
    segments:
        Head/neck/body point counts.  Types are assigned by cumulative
        index ranges in that order.
    friction:
        Velocity retention per tick in (0, 1]; 1 means no damping.
    max_angle_deg:
        Largest allowed turn between consecutive segments.
    widths:
        Per-index list or ``(index, total) -> width`` generator.
    """

    def __init__(
        self,
        origin,
        segments: SegmentCounts,
        segment_length: float,
        friction: float = DEFAULT_FRICTION,
        max_angle_deg: float = DEFAULT_MAX_ANGLE_DEG,
        widths: WidthSource = None,
        iterations: int = CONSTRAINT_ITERATIONS,
    ) -> None:
        self.segments = segments
        self.segment_length = float(segment_length)
        self.friction = float(friction)
        self.max_angle = deg_to_rad(max_angle_deg)
        self.iterations = iterations

        # Undulation parameters and phase accumulator
        self.undulation_phase = 0.0
        self.undulation_speed = UNDULATION_SPEED
        self.undulation_amplitude = UNDULATION_AMPLITUDE
        self.undulation_wavelength = UNDULATION_WAVELENGTH

        n = segments.total
        ox, oy = as_vec2(origin)
        self.positions: NDArray[np.float64] = np.zeros((n, 2), dtype=np.float64)
        self.positions[:, 0] = ox
        self.positions[:, 1] = oy + np.arange(n) * self.segment_length
        self.prev_positions = self.positions.copy()

        self.pinned = np.zeros(n, dtype=bool)
        self.pinned[0] = True  # Head follows external input

        self.widths = np.array([resolve_width(widths, i, n) for i in range(n)], dtype=np.float64)
        self.segment_types: list[SegmentType] = []
        for i in range(n):
            if i < segments.head:
                self.segment_types.append(SegmentType.HEAD)
            elif i < segments.body_start:
                self.segment_types.append(SegmentType.NECK)
            else:
                self.segment_types.append(SegmentType.BODY)

        # Curvature influence written by the gait coordinator, drained in update()
        self._influence = np.zeros(n, dtype=np.float64)

    @classmethod
    def from_config(cls, config: CreatureConfig) -> "SpineChain":
        chain = cls(
            config.origin,
            config.segments,
            config.segment_length,
            friction=config.friction,
            max_angle_deg=config.max_angle_deg,
            widths=config.width_source(),
            iterations=config.constraint_iterations,
        )
        chain.undulation_amplitude = config.undulation.amplitude
        chain.undulation_speed = config.undulation.speed
        chain.undulation_wavelength = config.undulation.wavelength
        logger.debug("Spine: %d points (%d head, %d neck, %d body), segment %.1f",
                     chain.num_points, config.segments.head, config.segments.neck,
                     config.segments.body, chain.segment_length)
        return chain

    # ------------------------------------------------------------------
    # Layout queries
    # ------------------------------------------------------------------

    @property
    def num_points(self) -> int:
        return len(self.positions)

    @property
    def body_start_index(self) -> int:
        return self.segments.body_start

    def body_indices(self) -> list[int]:
        """Indices where limbs may attach (body range only)."""
        return list(range(self.body_start_index, self.num_points))

    @property
    def head_speed(self) -> float:
        v = self.positions[0] - self.prev_positions[0]
        return math.hypot(v[0], v[1])

    @property
    def influence(self) -> NDArray[np.float64]:
        """Copy of the pending curvature influence per point."""
        return self._influence.copy()

    def points(self) -> list[SpinePoint]:
        return [
            SpinePoint(
                position=self.positions[i].copy(),
                prev_position=self.prev_positions[i].copy(),
                pinned=bool(self.pinned[i]),
                width=float(self.widths[i]),
                segment_type=self.segment_types[i],
            )
            for i in range(self.num_points)
        ]

    def positions_list(self) -> list[tuple[float, float]]:
        return [(float(x), float(y)) for x, y in self.positions]

    # ------------------------------------------------------------------
    # External inputs
    # ------------------------------------------------------------------

    def set_head_position(self, x: float, y: float) -> None:
        """Move the pinned head, keeping its old position as velocity history."""
        self.prev_positions[0] = self.positions[0]
        self.positions[0] = (x, y)

    def set_influence(self, index: int, delta: float) -> None:
        """Accumulate curvature influence at *index*; out-of-range is a no-op."""
        if 0 <= index < self.num_points:
            self._influence[index] += delta

    # ------------------------------------------------------------------
    # Simulation step
    # ------------------------------------------------------------------

    def update(self, dt: float = 1.0) -> None:
        """Advance one tick: integrate, relax, undulate, apply influence."""
        head_speed = self.head_speed

        # Verlet: x' = x + (x - x_prev) * friction
        free = ~self.pinned
        velocity = (self.positions[free] - self.prev_positions[free]) * dt
        self.prev_positions[free] = self.positions[free]
        self.positions[free] += velocity * self.friction

        for _ in range(self.iterations):
            self._apply_distance_constraints()
            self._apply_angle_constraints()

        if head_speed > UNDULATION_MIN_HEAD_SPEED:
            self._apply_undulation(head_speed)

        # Influence is applied once per tick, outside the relaxation loop
        self._apply_curvature_influence()
        self._influence[:] = 0.0

    def _apply_distance_constraints(self) -> None:
        pos = self.positions
        pinned = self.pinned
        rest = self.segment_length
        for i in range(self.num_points - 1):
            dx = pos[i + 1, 0] - pos[i, 0]
            dy = pos[i + 1, 1] - pos[i, 1]
            dist = math.hypot(dx, dy)
            if dist == 0.0:
                continue

            # Each end moves by half the offset; pinned ends stay put
            percent = (rest - dist) / dist / 2.0
            ox, oy = dx * percent, dy * percent

            if not pinned[i]:
                pos[i, 0] -= ox
                pos[i, 1] -= oy
            if not pinned[i + 1]:
                pos[i + 1, 0] += ox
                pos[i + 1, 1] += oy

    def _apply_angle_constraints(self) -> None:
        pos = self.positions
        for i in range(1, self.num_points - 1):
            if self.pinned[i + 1]:
                continue
            v1 = pos[i] - pos[i - 1]
            v2 = pos[i + 1] - pos[i]
            len1 = math.hypot(v1[0], v1[1])
            len2 = math.hypot(v2[0], v2[1])
            if len1 == 0.0 or len2 == 0.0:
                continue

            cos_angle = dot2(v1, v2) / (len1 * len2)
            angle = math.acos(clamp(cos_angle, -1.0, 1.0))
            if angle <= self.max_angle:
                continue

            # Rotate the outgoing segment back toward the incoming one
            sign = -1.0 if cross2(v1, v2) > 0 else 1.0
            pos[i + 1] = pos[i] + rotate2(v2, (angle - self.max_angle) * sign)

    def _apply_undulation(self, head_speed: float) -> None:
        """Blend a lateral traveling wave into every non-head point."""
        self.undulation_phase += self.undulation_speed * min(head_speed, UNDULATION_PHASE_SPEED_CAP)
        self.positions += self._undulation_offsets(head_speed)

        # Lateral offsets stretch segments; restore lengths
        self._apply_distance_constraints()

    def _undulation_offsets(self, head_speed: float) -> NDArray[np.float64]:
        """Per-point wave displacement at the current phase.

        Tangents come from the positions before any offset is applied.
        """
        speed_factor = min(head_speed / UNDULATION_SPEED_NORM, 1.0)
        amplitude = self.undulation_amplitude * speed_factor * self.segment_length

        pos = self.positions
        n = self.num_points
        offsets = np.zeros_like(pos)
        for i in range(1, n):
            if self.pinned[i] or self.segment_types[i] is SegmentType.HEAD:
                continue

            # Local tangent from the neighbors (one-sided at the tail)
            nxt = pos[i + 1] if i + 1 < n else pos[i]
            tangent = nxt - pos[i - 1]
            tlen = math.hypot(tangent[0], tangent[1])
            if tlen == 0.0:
                continue
            perp_x, perp_y = -tangent[1] / tlen, tangent[0] / tlen

            t = i / (n - 1)
            phase_offset = t * 2.0 * math.pi * self.undulation_wavelength
            envelope = math.sin(math.pi * t)  # 0 at both ends
            wave = math.sin(self.undulation_phase - phase_offset) * envelope * amplitude

            offsets[i, 0] = perp_x * wave * UNDULATION_BLEND
            offsets[i, 1] = perp_y * wave * UNDULATION_BLEND
        return offsets

    def _apply_curvature_influence(self) -> None:
        pos = self.positions
        for i in range(self.body_start_index, self.num_points - 1):
            influence = self._influence[i]
            if abs(influence) <= INFLUENCE_THRESHOLD:
                continue
            if self.pinned[i + 1]:
                continue
            seg = pos[i + 1] - pos[i]
            if seg[0] == 0.0 and seg[1] == 0.0:
                continue
            pos[i + 1] = pos[i] + rotate2(seg, influence * INFLUENCE_ROTATION_GAIN)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def segment_lengths(self) -> NDArray[np.float64]:
        return np.linalg.norm(np.diff(self.positions, axis=0), axis=1)

    def turn_angles(self) -> NDArray[np.float64]:
        """Turn angle (radians) at each interior point."""
        angles = np.zeros(max(self.num_points - 2, 0), dtype=np.float64)
        for i in range(1, self.num_points - 1):
            angles[i - 1] = turn_angle(self.positions[i] - self.positions[i - 1],
                                       self.positions[i + 1] - self.positions[i])
        return angles

    def max_length_error(self) -> float:
        if self.num_points < 2:
            return 0.0
        return float(np.max(np.abs(self.segment_lengths() - self.segment_length)))
