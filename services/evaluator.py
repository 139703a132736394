"""Classification of raw sensor values into status bands."""

from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal
from typing import Callable, Dict, List, Mapping

from models.records import SensorKind, SensorReading, Status

logger = logging.getLogger(__name__)

PLACEHOLDER = "—"

_WHOLE = Decimal(1)
_TENTH = Decimal("0.1")
# Magnitudes from here on print in exponent form, unrounded.
_EXPONENT_FORM_THRESHOLD = 1e21


def _water_level_status(value: float) -> Status:
    if value < 20:
        return Status.danger
    if value < 40:
        return Status.warning
    return Status.normal


def _ph_status(value: float) -> Status:
    if value < 6.5 or value > 8.5:
        return Status.danger
    if value < 7 or value > 8:
        return Status.warning
    return Status.normal


def _temperature_status(value: float) -> Status:
    if value < 10 or value > 30:
        return Status.danger
    if value < 15 or value > 25:
        return Status.warning
    return Status.normal


def _turbidity_status(value: float) -> Status:
    if value > 5:
        return Status.danger
    if value > 3:
        return Status.warning
    return Status.normal


_CLASSIFIERS: Dict[SensorKind, Callable[[float], Status]] = {
    SensorKind.water_level: _water_level_status,
    SensorKind.ph: _ph_status,
    SensorKind.temperature: _temperature_status,
    SensorKind.turbidity: _turbidity_status,
}


def _round_half_toward_ceiling(value: float) -> int:
    if value >= 0:
        return int(Decimal(value).quantize(_WHOLE, rounding=ROUND_HALF_UP))
    return -int(Decimal(-value).quantize(_WHOLE, rounding=ROUND_HALF_DOWN))


def format_value(kind: SensorKind, value: float) -> str:
    """Render a finite value the way dashboards show it.

    Water level is a whole percentage with ties rounded toward positive
    infinity; the other parameters keep one decimal place with ties rounded
    away from zero. Rounding works on the exact binary value of ``value``.
    """
    if abs(value) >= _EXPONENT_FORM_THRESHOLD:
        return repr(value)
    if kind is SensorKind.water_level:
        return str(_round_half_toward_ceiling(value))
    if value == 0:
        value = 0.0
    return str(Decimal(value).quantize(_TENTH, rounding=ROUND_HALF_UP))


def evaluate(kind: SensorKind, raw_value: float) -> SensorReading:
    """Classify ``raw_value`` for ``kind`` and build its display form."""
    value = float(raw_value)
    if not math.isfinite(value):
        logger.warning(
            "Non-finite reading classified as danger",
            extra={"sensor_kind": kind.value, "raw_value": value},
        )
        return SensorReading(
            kind=kind, raw_value=value, display_value=PLACEHOLDER, status=Status.danger
        )

    return SensorReading(
        kind=kind,
        raw_value=value,
        display_value=format_value(kind, value),
        status=_CLASSIFIERS[kind](value),
    )


def evaluate_snapshot(values: Mapping[SensorKind, float]) -> List[SensorReading]:
    """Evaluate every kind present in ``values``, in declaration order."""
    return [evaluate(kind, values[kind]) for kind in SensorKind if kind in values]
