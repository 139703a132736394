"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models.records import SensorKind, SensorReading, Status, TimeRange


class ImportStatus(str, Enum):
    """History import lifecycle states exposed via the API."""

    uploaded = "uploaded"
    processing = "processing"
    processed = "processed"
    partial = "partial"
    failed = "failed"


class ImportUploadResponse(BaseModel):
    """Immediate response payload after accepting a history upload."""

    import_id: str = Field(..., description="Generated identifier for the uploaded history.")


class SummaryOut(BaseModel):
    count: int = Field(..., ge=1)
    mean_value: float
    min_value: float
    max_value: float
    std_dev: float


class ParameterSummary(SummaryOut):
    """Statistics and status band counts for one imported parameter."""

    status_counts: Dict[Status, int] = Field(default_factory=dict)


class RowError(BaseModel):
    """Details about a row that failed validation or parsing."""

    row_number: int = Field(..., ge=1)
    reason: str


class ImportResult(BaseModel):
    """Full record representing an imported history file."""

    import_id: str
    status: ImportStatus
    uploaded_at: datetime
    processed_at: Optional[datetime] = None
    processing_ms: Optional[int] = Field(
        default=None, description="Duration in milliseconds from start to finish."
    )
    summaries: Dict[SensorKind, ParameterSummary] = Field(default_factory=dict)
    errors: List[RowError] = Field(default_factory=list)


class EvaluateRequest(BaseModel):
    kind: SensorKind
    value: float


class ReadingOut(BaseModel):
    model_config = ConfigDict(ser_json_inf_nan="constants")

    kind: SensorKind
    raw_value: float
    display_value: str
    status: Status

    @classmethod
    def from_reading(cls, reading: SensorReading) -> "ReadingOut":
        return cls(
            kind=reading.kind,
            raw_value=reading.raw_value,
            display_value=reading.display_value,
            status=reading.status,
        )


class StatisticsRequest(BaseModel):
    samples: List[float]


class HistoryResponse(BaseModel):
    parameter: SensorKind
    range: TimeRange
    unit: str
    labels: List[str]
    values: List[float]
    summary: SummaryOut


class UsageType(str, Enum):
    domestic = "domestic"
    agricultural = "agricultural"
    industrial = "industrial"
    commercial = "commercial"
    other = "other"


class ReservoirShape(str, Enum):
    rectangular = "rectangular"
    cylindrical = "cylindrical"
    other = "other"


class Location(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Dimensions(BaseModel):
    """Reservoir dimensions in metres."""

    length: Optional[float] = Field(default=None, gt=0)
    width: Optional[float] = Field(default=None, gt=0)
    diameter: Optional[float] = Field(default=None, gt=0)
    height: Optional[float] = Field(default=None, gt=0)


_REQUIRED_DIMENSIONS = {
    ReservoirShape.rectangular: ("length", "width", "height"),
    ReservoirShape.cylindrical: ("diameter", "height"),
    ReservoirShape.other: (),
}


class ReservoirCreate(BaseModel):
    name: str
    usage_type: UsageType = UsageType.domestic
    shape: ReservoirShape = ReservoirShape.rectangular
    dimensions: Dimensions = Field(default_factory=Dimensions)
    critical_depth: float = Field(..., gt=0, description="Critical minimum depth in metres.")
    location: Location

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate:
            raise ValueError("Reservoir name is required")
        return candidate

    @model_validator(mode="after")
    def _dimensions_match_shape(self) -> "ReservoirCreate":
        required = _REQUIRED_DIMENSIONS[self.shape]
        missing = [name for name in required if getattr(self.dimensions, name) is None]
        if missing:
            raise ValueError(
                f"{self.shape.value} reservoirs require: {', '.join(missing)}"
            )
        self.dimensions = Dimensions(
            **{name: getattr(self.dimensions, name) for name in required}
        )
        return self


class Reservoir(ReservoirCreate):
    id: str
    user_id: str
    capacity_liters: Optional[float] = None
    created_at: datetime


class CapacityUpdate(BaseModel):
    capacity_liters: float = Field(..., gt=0)


class MapMarker(BaseModel):
    title: str
    latitude: float
    longitude: float


class MapRegion(BaseModel):
    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float
    markers: List[MapMarker] = Field(default_factory=list)


class ReadingSnapshotIn(BaseModel):
    """Raw values for one reading of every sensor."""

    water_level: float
    ph: float
    temperature: float
    turbidity: float

    def as_values(self) -> Dict[SensorKind, float]:
        return {kind: getattr(self, kind.value) for kind in SensorKind}


class LatestReadings(BaseModel):
    user_id: str
    recorded_at: datetime
    readings: List[ReadingOut]


class AlertStatus(str, Enum):
    unresolved = "unresolved"
    resolved = "resolved"


class Alert(BaseModel):
    model_config = ConfigDict(ser_json_inf_nan="constants")

    id: str
    user_id: str
    kind: SensorKind
    severity: Status
    message: str
    raw_value: float
    raised_at: datetime
    status: AlertStatus = AlertStatus.unresolved
    comment: str = ""


class ResolveRequest(BaseModel):
    comment: str = ""


class Preferences(BaseModel):
    offline_mode: bool = False
    notifications: bool = True


class UserPreferences(Preferences):
    user_id: str
