"""Static creature configuration.

The simulation core trusts its inputs; this module is the layer that
checks them.  ``CreatureConfig.from_dict`` accepts preset dicts with either
snake_case or camelCase keys and raises ``ValueError`` for configurations
the core cannot run (zero segments, non-positive lengths, friction outside
(0, 1]).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Optional, Sequence, Union

from critterforge.constants import (
    CONSTRAINT_ITERATIONS,
    DEFAULT_FRICTION,
    DEFAULT_MAX_ANGLE_DEG,
    DEFAULT_POINT_WIDTH,
    LIMB_BEND_STRENGTH,
    LIMB_MAX_WIDTH,
    UNDULATION_AMPLITUDE,
    UNDULATION_SPEED,
    UNDULATION_WAVELENGTH,
)

WidthSource = Union[Sequence[float], Callable[[int, int], float], None]

# Mappings from preset camelCase to Python snake_case, per config section
_SPINE_KEYS = {
    "segmentLength": "segment_length", "maxAngle": "max_angle_deg",
    "maxAngleDegrees": "max_angle_deg", "constraintIterations": "constraint_iterations",
    "widthMax": "width_max", "widthMin": "width_min",
}
_SEGMENT_KEYS = {"headSegments": "head", "neckSegments": "neck", "bodySegments": "body"}
_UNDULATION_KEYS = {
    "undulationAmplitude": "amplitude", "undulationSpeed": "speed",
    "undulationWavelength": "wavelength",
}
_LIMB_KEYS = {
    "legPairs": "pairs", "limbPairs": "pairs",
    "legSegments": "segments", "limbSegments": "segments",
    "legSegmentLength": "segment_length", "limbSegmentLength": "segment_length",
    "segmentLength": "segment_length",
    "poleStrength": "bend_strength", "bendStrength": "bend_strength",
    "maxWidth": "max_width",
}


def _known(cls, d: dict[str, Any], key_map: dict[str, str]) -> dict[str, Any]:
    """Rename keys through *key_map* and drop anything *cls* doesn't define.

    Fields whose default is a number are converted to that number's type;
    values that don't convert raise ``ValueError``.
    """
    defaults = {f.name: f.default for f in fields(cls)}
    out = {}
    for key, value in d.items():
        key = key_map.get(key, key)
        if key not in defaults:
            continue
        default = defaults[key]
        if isinstance(default, (int, float)) and not isinstance(default, bool):
            try:
                value = type(default)(value)
            except (TypeError, ValueError) as e:
                raise ValueError(f"{cls.__name__}.{key}: expected a number, got {value!r}") from e
        out[key] = value
    return out


def _section(d: dict[str, Any], name: str, key_map: dict[str, str]) -> dict[str, Any]:
    """Merge a nested section dict with its flat camelCase top-level keys."""
    nested = d.get(name)
    if nested is not None and not isinstance(nested, dict):
        raise ValueError(f"Config section {name!r} must be an object, got {type(nested).__name__}")
    merged = dict(nested or {})
    merged.update({k: v for k, v in d.items() if k in key_map and k not in _SPINE_KEYS})
    return merged


def make_width_profile(max_width: float, min_width: float) -> Callable[[int, int], float]:
    """Width generator that swells from the head to a peak a third of the
    way down and tapers to *min_width* at the tail."""
    def profile(index: int, total: int) -> float:
        if total <= 1:
            return max_width
        t = index / (total - 1)
        if t < 1.0 / 3.0:
            return min_width + (max_width - min_width) * (0.6 + 1.2 * t)
        return min_width + (max_width - min_width) * (1.0 - t) * 1.5
    return profile


def resolve_width(widths: WidthSource, index: int, total: int) -> float:
    """Width of point *index* from an explicit list or a generator."""
    if callable(widths):
        return float(widths(index, total))
    if widths is not None and index < len(widths) and widths[index]:
        return float(widths[index])
    return DEFAULT_POINT_WIDTH


@dataclass
class SegmentCounts:
    """Number of spine points per segment type (head, then neck, then body)."""
    head: int = 1
    neck: int = 2
    body: int = 12

    @property
    def total(self) -> int:
        return self.head + self.neck + self.body

    @property
    def body_start(self) -> int:
        return self.head + self.neck


@dataclass
class UndulationConfig:
    amplitude: float = UNDULATION_AMPLITUDE
    speed: float = UNDULATION_SPEED
    wavelength: float = UNDULATION_WAVELENGTH


@dataclass
class LimbConfig:
    pairs: int = 2
    segments: int = 2
    segment_length: float = 30.0
    bend_strength: float = LIMB_BEND_STRENGTH
    max_width: float = LIMB_MAX_WIDTH

    @property
    def segment_lengths(self) -> list[float]:
        return [self.segment_length] * self.segments


@dataclass
class CreatureConfig:
    """Everything needed to build a spine plus its limbs."""
    origin: tuple[float, float] = (400.0, 100.0)
    segments: SegmentCounts = field(default_factory=SegmentCounts)
    segment_length: float = 20.0
    friction: float = DEFAULT_FRICTION
    max_angle_deg: float = DEFAULT_MAX_ANGLE_DEG
    constraint_iterations: int = CONSTRAINT_ITERATIONS

    # Explicit widths win over the generated profile
    widths: Optional[list[float]] = None
    width_max: float = 18.0
    width_min: float = 6.0

    undulation: UndulationConfig = field(default_factory=UndulationConfig)
    limbs: LimbConfig = field(default_factory=LimbConfig)

    def width_source(self) -> WidthSource:
        if self.widths is not None:
            return list(self.widths)
        return make_width_profile(self.width_max, self.width_min)

    def validate(self) -> None:
        """Raise ``ValueError`` if the config would break the simulation."""
        s = self.segments
        if min(s.head, s.neck, s.body) < 0:
            raise ValueError(f"Segment counts must be non-negative: {s}")
        if s.head < 1 or s.total < 2:
            raise ValueError(f"Spine needs a head point and at least 2 points: {s}")
        if self.segment_length <= 0:
            raise ValueError(f"segment_length must be positive, got {self.segment_length}")
        if not 0.0 < self.friction <= 1.0:
            raise ValueError(f"friction must be in (0, 1], got {self.friction}")
        if self.constraint_iterations < 1:
            raise ValueError("constraint_iterations must be at least 1")
        if self.limbs.pairs < 0:
            raise ValueError(f"limb pairs must be non-negative, got {self.limbs.pairs}")
        if self.limbs.pairs > 0:
            if s.body < 1:
                raise ValueError("Limbs need at least one body segment to attach to")
            if self.limbs.segments < 1 or self.limbs.segment_length <= 0:
                raise ValueError("Limbs need at least one segment of positive length")

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "CreatureConfig":
        """Build and validate a config from a preset dict.

        Segment counts, undulation and limb settings may be given either as
        nested dicts (``segments``, ``undulation``, ``limbs``) or flat at the
        top level using their camelCase names.
        """
        if not isinstance(d, dict):
            raise ValueError(f"Creature config must be an object, got {type(d).__name__}")
        top = _known(cls, d, _SPINE_KEYS)
        for nested in ("segments", "undulation", "limbs"):
            top.pop(nested, None)
        cfg = cls(**top)
        try:
            x, y = cfg.origin
            cfg.origin = (float(x), float(y))
        except (TypeError, ValueError) as e:
            raise ValueError(f"origin must be an [x, y] pair, got {cfg.origin!r}") from e
        if cfg.widths is not None:
            if not isinstance(cfg.widths, (list, tuple)):
                raise ValueError(f"widths must be a list, got {type(cfg.widths).__name__}")
            try:
                cfg.widths = [float(w or 0.0) for w in cfg.widths]
            except (TypeError, ValueError) as e:
                raise ValueError(f"widths must be numbers, got {cfg.widths!r}") from e

        cfg.segments = SegmentCounts(
            **_known(SegmentCounts, _section(d, "segments", _SEGMENT_KEYS), _SEGMENT_KEYS))
        cfg.undulation = UndulationConfig(
            **_known(UndulationConfig, _section(d, "undulation", _UNDULATION_KEYS), _UNDULATION_KEYS))
        cfg.limbs = LimbConfig(
            **_known(LimbConfig, _section(d, "limbs", _LIMB_KEYS), _LIMB_KEYS))

        cfg.validate()
        return cfg

    def to_dict(self) -> dict[str, Any]:
        """Nested snake_case dict that round-trips through ``from_dict``."""
        return {
            "origin": list(self.origin),
            "segments": {f.name: getattr(self.segments, f.name) for f in fields(SegmentCounts)},
            "segment_length": self.segment_length,
            "friction": self.friction,
            "max_angle_deg": self.max_angle_deg,
            "constraint_iterations": self.constraint_iterations,
            "widths": None if self.widths is None else list(self.widths),
            "width_max": self.width_max,
            "width_min": self.width_min,
            "undulation": {f.name: getattr(self.undulation, f.name) for f in fields(UndulationConfig)},
            "limbs": {f.name: getattr(self.limbs, f.name) for f in fields(LimbConfig)},
        }
