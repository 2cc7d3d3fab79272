"""
Progress simulator: synthetic progress and stage signal while a result is pending.

Two asyncio tasks tick on the running loop: one raises progress by a random
increment every tick_interval_sec up to a soft ceiling below 100, the other
advances the stage index every stage_interval_sec up to the last stage. The
signal is cosmetic: complete() force-sets 100 / last stage when the real
result arrives, and a stopped simulator never mutates its values again.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Callable

from guardaio.guardaio_logging import get_logger

logger = get_logger(__name__)

DEFAULT_TICK_INTERVAL_SEC = 0.4
DEFAULT_STAGE_INTERVAL_SEC = 2.0
DEFAULT_MIN_INCREMENT = 2.0
DEFAULT_MAX_INCREMENT = 8.0
# Reserved headroom: simulated progress never pre-empts the real terminal signal.
DEFAULT_PROGRESS_CEILING = 90.0
COMPLETE_PROGRESS = 100.0


@dataclass(frozen=True)
class AnalysisStage:
    """Named step shown to the user while analysis runs."""

    name: str
    description: str


DEFAULT_STAGES: tuple[AnalysisStage, ...] = (
    AnalysisStage("Uploading", "Sending media to the analyzer"),
    AnalysisStage("Scanning", "Analyzing visual elements"),
    AnalysisStage("AI Analysis", "Deep learning detection"),
    AnalysisStage("Finalizing", "Generating report"),
)


@dataclass(frozen=True)
class ProgressConfig:
    """Timing and bounds of the simulated progress signal."""

    tick_interval_sec: float = DEFAULT_TICK_INTERVAL_SEC
    stage_interval_sec: float = DEFAULT_STAGE_INTERVAL_SEC
    min_increment: float = DEFAULT_MIN_INCREMENT
    max_increment: float = DEFAULT_MAX_INCREMENT
    ceiling: float = DEFAULT_PROGRESS_CEILING
    stages: tuple[AnalysisStage, ...] = field(default=DEFAULT_STAGES)

    def __post_init__(self) -> None:
        if self.tick_interval_sec <= 0 or self.stage_interval_sec <= 0:
            raise ValueError("tick and stage intervals must be positive")
        if not 0 < self.min_increment <= self.max_increment:
            raise ValueError("increments must satisfy 0 < min_increment <= max_increment")
        if not 0 < self.ceiling < COMPLETE_PROGRESS:
            raise ValueError("ceiling must be between 0 and 100 (exclusive)")
        if not self.stages:
            raise ValueError("at least one stage is required")

    @property
    def last_stage_index(self) -> int:
        return len(self.stages) - 1


ProgressCallback = Callable[[float, int], None]


class ProgressSimulator:
    """
    Drives progress/stage_index for one job while it is analyzing.

    Args:
        config: Intervals, increment range, ceiling and stage list.
        on_update: Optional callback(progress, stage_index), called after every change.
        rng: Random source for increments (inject a seeded random.Random in tests).
    """

    def __init__(
        self,
        config: ProgressConfig | None = None,
        *,
        on_update: ProgressCallback | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config or ProgressConfig()
        self._on_update = on_update
        self._rng = rng or random.Random()
        self._progress = 0.0
        self._stage_index = 0
        self._active = False
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def config(self) -> ProgressConfig:
        return self._config

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def stage_index(self) -> int:
        return self._stage_index

    @property
    def stage(self) -> AnalysisStage:
        return self._config.stages[self._stage_index]

    @property
    def running(self) -> bool:
        return self._active

    def start(self) -> None:
        """Start both tickers on the running event loop (values restart from 0)."""
        if self._active:
            return
        loop = asyncio.get_running_loop()
        self._progress = 0.0
        self._stage_index = 0
        self._active = True
        self._tasks = [
            loop.create_task(self._run_progress()),
            loop.create_task(self._run_stages()),
        ]
        self._emit()

    def stop(self) -> None:
        """Cancel both tickers; current values are kept."""
        self._active = False
        for task in self._tasks:
            if not task.done():
                task.cancel()
        self._tasks = []

    def complete(self) -> None:
        """Real result arrived: stop and force progress to 100 and the last stage."""
        self.stop()
        self._progress = COMPLETE_PROGRESS
        self._stage_index = self._config.last_stage_index
        self._emit()

    def reset(self) -> None:
        """Stop and return to progress 0, stage 0."""
        self.stop()
        self._progress = 0.0
        self._stage_index = 0
        self._emit()

    def step_progress(self) -> float:
        """Apply one progress tick; stays at the ceiling once reached."""
        cfg = self._config
        if self._progress < cfg.ceiling:
            increment = self._rng.uniform(cfg.min_increment, cfg.max_increment)
            self._progress = min(self._progress + increment, cfg.ceiling)
            self._emit()
        return self._progress

    def step_stage(self) -> int:
        """Apply one stage tick; stays at the last stage once reached."""
        if self._stage_index < self._config.last_stage_index:
            self._stage_index += 1
            self._emit()
        return self._stage_index

    async def _run_progress(self) -> None:
        while True:
            await asyncio.sleep(self._config.tick_interval_sec)
            if not self._active:
                return
            self.step_progress()

    async def _run_stages(self) -> None:
        while self._stage_index < self._config.last_stage_index:
            await asyncio.sleep(self._config.stage_interval_sec)
            if not self._active:
                return
            self.step_stage()

    def _emit(self) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(self._progress, self._stage_index)
        except Exception as e:
            logger.warning("progress_callback_failed", error=str(e))
