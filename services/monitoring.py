"""Live readings, anomaly alerts and user preferences."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Mapping, Optional
from uuid import uuid4

from app.schemas import (
    Alert,
    AlertStatus,
    LatestReadings,
    Preferences,
    ReadingOut,
    UserPreferences,
)
from datastore.document_table import DocumentTable, build_default_table
from models.records import SensorKind, SensorReading, Status
from services.evaluator import evaluate_snapshot
from services.session import SessionContext

logger = logging.getLogger(__name__)


def alert_message(reading: SensorReading) -> str:
    kind, value = reading.kind, reading.raw_value
    if not math.isfinite(value):
        return f"{kind.label} reading unavailable"
    if kind is SensorKind.water_level:
        return "Water level low"
    if kind is SensorKind.ph:
        return "pH abnormally low" if value < 7 else "pH abnormally high"
    if kind is SensorKind.temperature:
        return "Temperature low" if value < 15 else "Temperature high"
    return "Turbidity high"


class MonitoringService:
    def __init__(
        self,
        latest_table: DocumentTable[LatestReadings],
        alerts_table: DocumentTable[Alert],
        preferences_table: DocumentTable[UserPreferences],
    ) -> None:
        self.latest_table = latest_table
        self.alerts_table = alerts_table
        self.preferences_table = preferences_table

    def ingest(
        self, session: SessionContext, values: Mapping[SensorKind, float]
    ) -> LatestReadings:
        """Evaluate a snapshot, keep it as the latest one, and raise alerts."""
        readings = evaluate_snapshot(values)
        now = datetime.now(timezone.utc)
        snapshot = LatestReadings(
            user_id=session.user_id,
            recorded_at=now,
            readings=[ReadingOut.from_reading(reading) for reading in readings],
        )
        self.latest_table.put_item(snapshot)

        open_kinds = {
            alert.kind
            for alert in self.alerts_table.scan(
                lambda item: item.user_id == session.user_id
                and item.status is AlertStatus.unresolved
            )
        }
        for reading in readings:
            if reading.status is Status.normal or reading.kind in open_kinds:
                continue
            self._raise_alert(session, reading, now)
        return snapshot

    def latest(self, session: SessionContext) -> LatestReadings:
        snapshot = self.latest_table.get_item(session.user_id)
        if snapshot is None:
            raise KeyError(f"No readings recorded for user {session.user_id!r}.")
        return snapshot

    def list_alerts(
        self, session: SessionContext, status: Optional[AlertStatus] = None
    ) -> List[Alert]:
        alerts = self.alerts_table.scan(
            lambda item: item.user_id == session.user_id
            and (status is None or item.status is status)
        )
        return sorted(alerts, key=lambda alert: alert.raised_at, reverse=True)

    def resolve_alert(self, session: SessionContext, alert_id: str, comment: str = "") -> Alert:
        alert = self.alerts_table.get_item(alert_id)
        if alert is None or alert.user_id != session.user_id:
            raise KeyError(f"Alert {alert_id!r} not found.")
        resolved = alert.model_copy(
            update={"status": AlertStatus.resolved, "comment": comment.strip()}
        )
        self.alerts_table.put_item(resolved)
        logger.info("Alert resolved", extra={"user_id": session.user_id, "alert_id": alert_id})
        return resolved

    def get_preferences(self, session: SessionContext) -> Preferences:
        stored = self.preferences_table.get_item(session.user_id)
        if stored is None:
            return Preferences()
        return Preferences(offline_mode=stored.offline_mode, notifications=stored.notifications)

    def update_preferences(self, session: SessionContext, preferences: Preferences) -> Preferences:
        self.preferences_table.put_item(
            UserPreferences(user_id=session.user_id, **preferences.model_dump())
        )
        return preferences

    def _raise_alert(self, session: SessionContext, reading: SensorReading, now: datetime) -> None:
        alert = Alert(
            id=str(uuid4()),
            user_id=session.user_id,
            kind=reading.kind,
            severity=reading.status,
            message=alert_message(reading),
            raw_value=reading.raw_value,
            raised_at=now,
        )
        self.alerts_table.put_item(alert)
        logger.warning(
            alert.message,
            extra={
                "user_id": session.user_id,
                "alert_id": alert.id,
                "sensor_kind": reading.kind.value,
                "raw_value": reading.raw_value,
                "status": reading.status.value,
            },
        )


@lru_cache
def build_default_monitoring_service() -> MonitoringService:
    return MonitoringService(
        latest_table=build_default_table("latest_readings"),
        alerts_table=build_default_table("alerts"),
        preferences_table=build_default_table("preferences"),
    )
