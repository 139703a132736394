from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from app.schemas import (
    Dimensions,
    Location,
    Reservoir,
    ReservoirCreate,
    ReservoirShape,
    UsageType,
)
from datastore.document_table import DocumentTable
from services.reservoirs import (
    DEFAULT_CENTER,
    LATITUDE_DELTA,
    LONGITUDE_DELTA,
    ReservoirService,
    capacity_liters,
    map_region,
)
from services.session import SessionContext


def _payload(**overrides) -> dict:
    payload = {
        "name": "North tank",
        "usage_type": "agricultural",
        "shape": "rectangular",
        "dimensions": {"length": 2, "width": 3, "height": 1.5, "diameter": 9},
        "critical_depth": 0.3,
        "location": {"latitude": 36.75, "longitude": 3.06},
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def service() -> ReservoirService:
    return ReservoirService(DocumentTable(name="reservoirs", model=Reservoir, key_field="user_id"))


def test_rectangular_capacity() -> None:
    dims = Dimensions(length=2, width=3, height=1.5)

    assert capacity_liters(ReservoirShape.rectangular, dims) == 9000.0


def test_cylindrical_capacity() -> None:
    dims = Dimensions(diameter=2, height=1)

    assert capacity_liters(ReservoirShape.cylindrical, dims) == pytest.approx(math.pi * 1000)


def test_other_shape_has_no_capacity() -> None:
    assert capacity_liters(ReservoirShape.other, Dimensions()) is None


def test_create_drops_dimensions_unused_by_shape() -> None:
    payload = ReservoirCreate.model_validate(_payload())

    assert payload.usage_type is UsageType.agricultural
    assert payload.dimensions.diameter is None
    assert payload.dimensions.length == 2


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": "   "},
        {"critical_depth": 0},
        {"dimensions": {"length": 2, "width": 3}},
        {"shape": "cylindrical", "dimensions": {"height": 2}},
        {"dimensions": {"length": -1, "width": 3, "height": 1}},
        {"location": {"latitude": 91, "longitude": 0}},
        {"location": {"latitude": 0, "longitude": -181}},
    ],
)
def test_invalid_reservoirs_are_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        ReservoirCreate.model_validate(_payload(**overrides))


def test_other_shape_needs_no_dimensions() -> None:
    payload = ReservoirCreate.model_validate(_payload(shape="other", dimensions={}))

    assert payload.shape is ReservoirShape.other


def test_register_and_fetch(service: ReservoirService) -> None:
    session = SessionContext(user_id="user-1")

    reservoir = service.register(session, ReservoirCreate.model_validate(_payload()))

    assert reservoir.user_id == "user-1"
    assert reservoir.capacity_liters == 9000.0
    assert reservoir.id
    assert service.get_for_user(session) == reservoir


def test_get_for_user_without_reservoir(service: ReservoirService) -> None:
    session = SessionContext(user_id="nobody")

    assert service.find_for_user(session) is None
    with pytest.raises(KeyError):
        service.get_for_user(session)


def test_update_capacity(service: ReservoirService) -> None:
    session = SessionContext(user_id="user-1")
    service.register(session, ReservoirCreate.model_validate(_payload()))

    updated = service.update_capacity(session, 12000)

    assert updated.capacity_liters == 12000
    assert service.get_for_user(session).capacity_liters == 12000
    with pytest.raises(ValueError):
        service.update_capacity(session, 0)


def test_map_region_prefers_reservoir(service: ReservoirService) -> None:
    reservoir = service.register(
        SessionContext(user_id="user-1"), ReservoirCreate.model_validate(_payload())
    )

    region = map_region(reservoir, Location(latitude=10, longitude=20))

    assert (region.latitude, region.longitude) == (36.75, 3.06)
    assert region.latitude_delta == LATITUDE_DELTA
    assert region.longitude_delta == LONGITUDE_DELTA
    assert [marker.title for marker in region.markers] == ["North tank", "You are here"]


def test_map_region_falls_back_to_user_then_default() -> None:
    user_region = map_region(None, Location(latitude=10, longitude=20))
    assert (user_region.latitude, user_region.longitude) == (10, 20)

    default_region = map_region()
    assert (default_region.latitude, default_region.longitude) == (
        DEFAULT_CENTER.latitude,
        DEFAULT_CENTER.longitude,
    )
    assert default_region.markers == []


def test_session_requires_user_id() -> None:
    assert SessionContext.from_user_id(" user-1 ").user_id == "user-1"
    with pytest.raises(PermissionError):
        SessionContext.from_user_id("  ")
    with pytest.raises(PermissionError):
        SessionContext.from_user_id(None)
