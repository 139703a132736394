"""Timer-driven mock sensor feed."""

from __future__ import annotations

import random
import time
from typing import Callable, Dict, Iterator, Optional

from models.records import SensorKind

DEFAULT_INTERVAL_SECONDS = 5.0

Snapshot = Dict[SensorKind, float]


class MockSensorFeed:
    """Emits a random raw snapshot of every sensor at a fixed interval."""

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError("Feed interval must not be negative.")
        self.interval = interval
        self._rng = rng or random.Random()
        self._sleep = sleep

    def sample(self) -> Snapshot:
        rng = self._rng
        return {
            SensorKind.water_level: rng.random() * 100,
            SensorKind.ph: rng.random() * 14,
            SensorKind.temperature: 15 + rng.random() * 25,
            SensorKind.turbidity: rng.random() * 10,
        }

    def stream(self, count: Optional[int] = None) -> Iterator[Snapshot]:
        """Yield ``count`` snapshots (forever when ``None``), pausing between them."""
        emitted = 0
        while count is None or emitted < count:
            if emitted:
                self._sleep(self.interval)
            yield self.sample()
            emitted += 1
