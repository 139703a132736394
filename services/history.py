"""Mock history windows used for charting until a real archive exists."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Tuple

from models.records import SensorKind, TimeRange

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class HistoryWindow:
    kind: SensorKind
    time_range: TimeRange
    labels: Tuple[str, ...]
    values: Tuple[float, ...]


def window_labels(time_range: TimeRange) -> Tuple[str, ...]:
    if time_range is TimeRange.day:
        return tuple(f"{hour:02d}:00" for hour in range(24))
    if time_range is TimeRange.week:
        return WEEKDAY_LABELS
    return tuple(str(day) for day in range(1, 31, 5))


def mock_history_value(kind: SensorKind, rng: random.Random) -> float:
    if kind is SensorKind.water_level:
        return float(int(rng.random() * 100))
    if kind is SensorKind.ph:
        return 6 + rng.random() * 3
    if kind is SensorKind.temperature:
        return 15 + rng.random() * 15
    return rng.random() * 10


def generate_mock_history(
    kind: SensorKind,
    time_range: TimeRange,
    rng: Optional[random.Random] = None,
) -> HistoryWindow:
    """Build one labelled window of plausible values for ``kind``."""
    generator = rng or random.Random()
    labels = window_labels(time_range)
    values = tuple(mock_history_value(kind, generator) for _ in labels)
    return HistoryWindow(kind=kind, time_range=time_range, labels=labels, values=values)
