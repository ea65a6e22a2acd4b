"""Tests for the per-tick creature simulation."""

import logging
import math

import numpy as np
import pytest

from critterforge.body.limb_controller import LimbSide
from critterforge.coordination.simulation import CreatureSimulation
from critterforge.core.config import CreatureConfig, LimbConfig
from critterforge.core.events import EventBus, EventType


def _circle(ticks, origin=(400.0, 100.0), radius=150.0):
    for tick in range(1, ticks + 1):
        a = tick * 0.02
        yield origin[0] + radius * (math.cos(a) - 1.0), origin[1] + radius * math.sin(a)


def test_default_creature():
    sim = CreatureSimulation()
    assert sim.spine.num_points == 15
    assert len(sim.gait.limbs) == 4
    assert sim.frame_count == 0
    np.testing.assert_array_equal(sim.head, [400.0, 100.0])


def test_step_moves_head_and_counts_frames():
    bus = EventBus()
    frames = []
    bus.subscribe(EventType.FRAME_UPDATE, lambda frame: frames.append(frame))
    sim = CreatureSimulation(events=bus)
    sim.step((400.0, 95.0))
    sim.step()
    sim.step((400.0, 90.0))
    assert frames == [1, 2, 3]
    np.testing.assert_array_equal(sim.head, [400.0, 90.0])


def test_gait_reads_post_update_spine():
    sim = CreatureSimulation()
    for target in _circle(30):
        sim.step(target)
        for limb in sim.gait.limbs:
            anchor = sim.gait.anchor_for(limb, sim.gait.tangent_at(limb.attachment_index))
            np.testing.assert_allclose(limb.joints()[0], anchor)


def test_circle_walk_stays_finite_and_steps():
    sim = CreatureSimulation()
    reasons = []
    sim.events.subscribe(EventType.STEP_STARTED, lambda limb, reason, start, target: reasons.append(reason))
    sim.run(_circle(300))
    assert sim.frame_count == 300
    assert np.all(np.isfinite(sim.spine.positions))
    for joints in sim.limb_joint_arrays():
        assert np.all(np.isfinite(joints))
    assert len(reasons) > 0
    assert set(reasons) <= {"wrong_side", "overreach"}


def test_limbless_creature():
    sim = CreatureSimulation(CreatureConfig(limbs=LimbConfig(pairs=0)))
    sim.run(_circle(20))
    assert sim.gait.limbs == []
    np.testing.assert_array_equal(sim.spine.influence, 0.0)


def test_snapshot():
    sim = CreatureSimulation()
    sim.step((405.0, 100.0))
    frame = sim.snapshot()
    assert frame.frame == 1
    assert len(frame.spine) == 15
    assert len(frame.limbs) == 4
    assert [lf.side for lf in frame.limbs[:2]] == [LimbSide.LEFT, LimbSide.RIGHT]
    for lf in frame.limbs:
        assert len(lf.joints) == 3
        assert lf.joints[0].width > lf.joints[-1].width
        np.testing.assert_array_equal(lf.foot, lf.joints[-1].position)


def test_from_preset():
    sim = CreatureSimulation.from_preset("salamander")
    assert sim.spine.max_angle == pytest.approx(np.radians(35.0))
    assert len(sim.gait.limbs) == 4


def test_from_preset_falls_back(caplog):
    with caplog.at_level(logging.WARNING):
        sim = CreatureSimulation.from_preset("no_such_creature")
    assert "unavailable" in caplog.text
    assert sim.config == CreatureConfig()


@pytest.mark.parametrize("contents", [
    '{"friction": "fast"}',
    '{"limbs": [1, 2]}',
    '[1, 2, 3]',
    '{"headSegments": "three"}',
    '{"bodySegments": ',
])
def test_from_preset_malformed_falls_back(tmp_path, monkeypatch, caplog, contents):
    (tmp_path / "broken.json").write_text(contents)
    monkeypatch.setattr("critterforge.core.config_loader.CREATURE_CONFIG_DIR", tmp_path)
    with caplog.at_level(logging.WARNING):
        sim = CreatureSimulation.from_preset("broken")
    assert "unavailable" in caplog.text
    assert sim.config == CreatureConfig()
    sim.step((405.0, 100.0))
