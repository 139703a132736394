"""Reservoir registration and map placement."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional
from uuid import uuid4

from app.schemas import (
    Dimensions,
    Location,
    MapMarker,
    MapRegion,
    Reservoir,
    ReservoirCreate,
    ReservoirShape,
)
from datastore.document_table import DocumentTable, build_default_table
from services.session import SessionContext

logger = logging.getLogger(__name__)

DEFAULT_CENTER = Location(latitude=48.8566, longitude=2.3522)
LATITUDE_DELTA = 0.0922
LONGITUDE_DELTA = 0.0421
LITERS_PER_CUBIC_METER = 1000.0


def capacity_liters(shape: ReservoirShape, dimensions: Dimensions) -> Optional[float]:
    """Volume in litres for metre dimensions, or ``None`` when the shape is free-form."""
    if shape is ReservoirShape.rectangular:
        volume = dimensions.length * dimensions.width * dimensions.height
    elif shape is ReservoirShape.cylindrical:
        radius = dimensions.diameter / 2
        volume = math.pi * radius * radius * dimensions.height
    else:
        return None
    return volume * LITERS_PER_CUBIC_METER


def map_region(
    reservoir: Optional[Reservoir] = None,
    user_location: Optional[Location] = None,
) -> MapRegion:
    """Centre on the reservoir, else the user, else the default centre."""
    markers = []
    if reservoir is not None:
        markers.append(
            MapMarker(
                title=reservoir.name,
                latitude=reservoir.location.latitude,
                longitude=reservoir.location.longitude,
            )
        )
    if user_location is not None:
        markers.append(
            MapMarker(
                title="You are here",
                latitude=user_location.latitude,
                longitude=user_location.longitude,
            )
        )

    if reservoir is not None:
        center = reservoir.location
    elif user_location is not None:
        center = user_location
    else:
        center = DEFAULT_CENTER

    return MapRegion(
        latitude=center.latitude,
        longitude=center.longitude,
        latitude_delta=LATITUDE_DELTA,
        longitude_delta=LONGITUDE_DELTA,
        markers=markers,
    )


class ReservoirService:
    def __init__(self, table: DocumentTable[Reservoir]) -> None:
        self.table = table

    def register(self, session: SessionContext, payload: ReservoirCreate) -> Reservoir:
        reservoir = Reservoir(
            **payload.model_dump(),
            id=str(uuid4()),
            user_id=session.user_id,
            capacity_liters=capacity_liters(payload.shape, payload.dimensions),
            created_at=datetime.now(timezone.utc),
        )
        self.table.put_item(reservoir)
        logger.info(
            "Reservoir registered",
            extra={"user_id": session.user_id, "reservoir_id": reservoir.id},
        )
        return reservoir

    def get_for_user(self, session: SessionContext) -> Reservoir:
        reservoir = self.table.get_item(session.user_id)
        if reservoir is None:
            raise KeyError(f"No reservoir registered for user {session.user_id!r}.")
        return reservoir

    def find_for_user(self, session: SessionContext) -> Optional[Reservoir]:
        return self.table.get_item(session.user_id)

    def update_capacity(self, session: SessionContext, capacity: float) -> Reservoir:
        if not capacity > 0:
            raise ValueError("Capacity must be a positive number.")
        reservoir = self.get_for_user(session)
        updated = reservoir.model_copy(update={"capacity_liters": capacity})
        self.table.put_item(updated)
        return updated


@lru_cache
def build_default_reservoir_service() -> ReservoirService:
    return ReservoirService(table=build_default_table("reservoirs"))
