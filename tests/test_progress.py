"""
Tests for the progress simulator: bounded increments, stage advance, stop/complete/reset.
"""

from __future__ import annotations

import asyncio
import random

import pytest

from guardaio.analysis_engine.progress import (
    COMPLETE_PROGRESS,
    DEFAULT_STAGES,
    ProgressConfig,
    ProgressSimulator,
)


def test_default_config_values():
    cfg = ProgressConfig()
    assert cfg.tick_interval_sec == 0.4
    assert cfg.stage_interval_sec == 2.0
    assert cfg.ceiling == 90.0
    assert [s.name for s in cfg.stages] == ["Uploading", "Scanning", "AI Analysis", "Finalizing"]
    assert cfg.last_stage_index == len(DEFAULT_STAGES) - 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"tick_interval_sec": 0},
        {"min_increment": 5, "max_increment": 2},
        {"ceiling": 100},
        {"stages": ()},
    ],
)
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        ProgressConfig(**kwargs)


def test_step_progress_bounded_and_monotonic():
    sim = ProgressSimulator(rng=random.Random(7))
    values = []
    prev = 0.0
    for _ in range(60):
        value = sim.step_progress()
        increment = value - prev
        assert value >= prev
        assert value <= 90.0
        if value < 90.0:
            assert 2.0 <= increment <= 8.0
        values.append(value)
        prev = value
    assert values[-1] == 90.0


def test_step_stage_stops_at_last():
    sim = ProgressSimulator()
    for _ in range(10):
        sim.step_stage()
    assert sim.stage_index == 3
    assert sim.stage.name == "Finalizing"


def test_complete_and_reset():
    updates = []
    sim = ProgressSimulator(on_update=lambda p, s: updates.append((p, s)))
    sim.step_progress()
    sim.complete()
    assert (sim.progress, sim.stage_index) == (COMPLETE_PROGRESS, 3)
    assert updates[-1] == (100.0, 3)
    sim.reset()
    assert (sim.progress, sim.stage_index) == (0.0, 0)
    assert updates[-1] == (0.0, 0)


def test_callback_failure_is_contained():
    def boom(progress, stage):
        raise RuntimeError("ui gone")

    sim = ProgressSimulator(on_update=boom)
    assert sim.step_progress() > 0


def test_running_simulator_ticks_then_freezes_on_stop(fast_progress, rng):
    async def scenario():
        updates = []
        sim = ProgressSimulator(fast_progress, on_update=lambda p, s: updates.append((p, s)), rng=rng)
        sim.start()
        assert sim.running
        await asyncio.sleep(0.05)
        sim.stop()
        frozen = (sim.progress, sim.stage_index)
        count = len(updates)
        await asyncio.sleep(0.03)
        return updates, frozen, count, (sim.progress, sim.stage_index), sim.running

    updates, frozen, count, after, running = asyncio.run(scenario())
    assert not running
    assert after == frozen
    assert len(updates) == count
    assert frozen[0] > 0
    assert frozen[0] <= 90.0
    progresses = [p for p, _ in updates]
    assert progresses == sorted(progresses)
    stages = [s for _, s in updates]
    assert stages == sorted(stages)
    assert max(stages) <= 3


def test_start_requires_running_loop():
    with pytest.raises(RuntimeError):
        ProgressSimulator().start()
