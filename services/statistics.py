"""Descriptive statistics over a window of history samples."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence


class EmptyInputError(ValueError):
    """Raised when statistics are requested for zero samples."""

    def __init__(self) -> None:
        super().__init__("Cannot summarize an empty sample sequence.")


@dataclass(frozen=True)
class HistorySummary:
    """Computed statistics for one parameter over a time window."""

    count: int
    mean_value: float
    min_value: float
    max_value: float
    std_dev: float


def _materialize(samples: Iterable[float]) -> List[float]:
    values = [float(sample) for sample in samples]
    if not values:
        raise EmptyInputError()
    return values


def _total(values: Sequence[float]) -> float:
    # Plain left-to-right accumulation; builtin sum() compensates on 3.12+.
    total = 0.0
    for value in values:
        total += value
    return total


def mean(samples: Iterable[float]) -> float:
    values = _materialize(samples)
    return _total(values) / len(values)


def maximum(samples: Iterable[float]) -> float:
    return max(_materialize(samples))


def minimum(samples: Iterable[float]) -> float:
    return min(_materialize(samples))


def standard_deviation(samples: Iterable[float]) -> float:
    """Population standard deviation (divides by N)."""
    values = _materialize(samples)
    return _population_std(values, _total(values) / len(values))


def _population_std(values: Sequence[float], average: float) -> float:
    squares = 0.0
    for value in values:
        squares += (value - average) ** 2
    return math.sqrt(squares / len(values))


def summarize(samples: Iterable[float]) -> HistorySummary:
    """Compute mean, extrema and population standard deviation in two passes.

    Raises:
        EmptyInputError: ``samples`` yielded nothing.
    """
    values = _materialize(samples)
    average = _total(values) / len(values)
    return HistorySummary(
        count=len(values),
        mean_value=average,
        min_value=min(values),
        max_value=max(values),
        std_dev=_population_std(values, average),
    )
