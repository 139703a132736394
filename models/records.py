"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SensorKind(str, Enum):
    """Parameters measured in a reservoir."""

    water_level = "water_level"
    ph = "ph"
    temperature = "temperature"
    turbidity = "turbidity"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def unit(self) -> str:
        return _UNITS[self]

    @classmethod
    def parse(cls, text: str) -> "SensorKind":
        """Accept ``water_level``, ``waterLevel`` or ``WATER-LEVEL`` style names."""
        key = text.strip().lower().replace("_", "").replace("-", "").replace(" ", "")
        for kind in cls:
            if kind.value.replace("_", "") == key:
                return kind
        raise ValueError(f"Unknown sensor kind {text!r}.")


_LABELS = {
    SensorKind.water_level: "Water level",
    SensorKind.ph: "pH",
    SensorKind.temperature: "Temperature",
    SensorKind.turbidity: "Turbidity",
}

_UNITS = {
    SensorKind.water_level: "%",
    SensorKind.ph: "",
    SensorKind.temperature: "°C",
    SensorKind.turbidity: " NTU",
}


class Status(str, Enum):
    """Status band of an evaluated reading."""

    normal = "normal"
    warning = "warning"
    danger = "danger"


class TimeRange(str, Enum):
    """History windows offered for charting."""

    day = "day"
    week = "week"
    month = "month"


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A raw value classified into a status band, ready for display."""

    kind: SensorKind
    raw_value: float
    display_value: str
    status: Status


@dataclass(slots=True)
class HistoryPoint:
    """A single timestamped measurement parsed from an imported history."""

    kind: SensorKind
    timestamp: datetime
    value: float
