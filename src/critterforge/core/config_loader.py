"""JSON config file loading utilities."""

import json
from pathlib import Path
from typing import Any

from critterforge.constants import CREATURE_CONFIG_DIR
from critterforge.core.config import CreatureConfig


def load_json(path: Path) -> Any:
    """Load and return parsed JSON from a file."""
    with open(path) as f:
        return json.load(f)


def load_creature_preset(name: str) -> Any:
    """Load a raw creature preset from assets/config/creatures/.

    *name* may omit the ``.json`` suffix.
    """
    if not name.endswith(".json"):
        name = name + ".json"
    return load_json(CREATURE_CONFIG_DIR / name)


def load_creature_config(name: str) -> CreatureConfig:
    """Load and validate a creature preset into a ``CreatureConfig``."""
    return CreatureConfig.from_dict(load_creature_preset(name))


def list_creature_presets() -> list[str]:
    """Names of all presets shipped under assets/config/creatures/."""
    if not CREATURE_CONFIG_DIR.is_dir():
        return []
    return sorted(p.stem for p in CREATURE_CONFIG_DIR.glob("*.json"))
