"""Per-parameter aggregation of imported history points."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from models.records import HistoryPoint, SensorKind, Status
from services.evaluator import evaluate
from services.statistics import HistorySummary, summarize


@dataclass
class ParameterAggregate:
    """Statistics plus status band counts for one sensor kind."""

    summary: HistorySummary
    status_counts: Dict[Status, int] = field(default_factory=dict)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(self, points: Iterable[HistoryPoint]) -> Dict[SensorKind, ParameterAggregate]:
        grouped: Dict[SensorKind, List[float]] = {}
        for point in points:
            grouped.setdefault(point.kind, []).append(point.value)

        aggregates: Dict[SensorKind, ParameterAggregate] = {}
        for kind in SensorKind:
            values = grouped.get(kind)
            if not values:
                continue
            counts = Counter(evaluate(kind, value).status for value in values)
            aggregates[kind] = ParameterAggregate(
                summary=summarize(values),
                status_counts={status: counts[status] for status in Status if counts[status]},
            )
        return aggregates
