"""HTTP route definitions for the service."""

from __future__ import annotations

import random
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Header, HTTPException, Query, UploadFile, status

from app.schemas import (
    Alert,
    AlertStatus,
    CapacityUpdate,
    EvaluateRequest,
    HistoryResponse,
    ImportResult,
    ImportUploadResponse,
    LatestReadings,
    Location,
    MapRegion,
    Preferences,
    ReadingOut,
    ReadingSnapshotIn,
    Reservoir,
    ReservoirCreate,
    ResolveRequest,
    StatisticsRequest,
    SummaryOut,
)
from models.records import SensorKind, TimeRange
from services.evaluator import evaluate
from services.history import generate_mock_history
from services.importer import HistoryImportService, build_default_importer
from services.monitoring import MonitoringService, build_default_monitoring_service
from services.reservoirs import ReservoirService, build_default_reservoir_service, map_region
from services.session import SessionContext
from services.statistics import EmptyInputError, HistorySummary, summarize
from settings import get_settings

router = APIRouter()


def get_importer() -> HistoryImportService:
    return build_default_importer()


def get_reservoirs() -> ReservoirService:
    return build_default_reservoir_service()


def get_monitoring() -> MonitoringService:
    return build_default_monitoring_service()


def get_session(x_user_id: Optional[str] = Header(default=None)) -> SessionContext:
    try:
        return SessionContext.from_user_id(x_user_id)
    except PermissionError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0])


def _summary_out(summary: HistorySummary) -> SummaryOut:
    return SummaryOut(
        count=summary.count,
        mean_value=summary.mean_value,
        min_value=summary.min_value,
        max_value=summary.max_value,
        std_dev=summary.std_dev,
    )


@router.get("/health", summary="Health check endpoint.", status_code=status.HTTP_200_OK)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/", summary="Root endpoint mirrors health information.", status_code=status.HTTP_200_OK)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}


@router.post("/evaluate", response_model=ReadingOut, summary="Classify one raw sensor value.")
async def evaluate_reading(payload: EvaluateRequest) -> ReadingOut:
    return ReadingOut.from_reading(evaluate(payload.kind, payload.value))


@router.post(
    "/statistics",
    response_model=SummaryOut,
    summary="Mean, extrema and population standard deviation of samples.",
)
async def summarize_samples(payload: StatisticsRequest) -> SummaryOut:
    try:
        summary = summarize(payload.samples)
    except EmptyInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return _summary_out(summary)


@router.get("/history", response_model=HistoryResponse, summary="Mock history window with statistics.")
async def history_window(
    parameter: SensorKind = Query(SensorKind.water_level),
    time_range: TimeRange = Query(TimeRange.day, alias="range"),
    seed: Optional[int] = Query(None, description="Seed for reproducible mock values."),
) -> HistoryResponse:
    if seed is None:
        seed = get_settings().feed_seed
    window = generate_mock_history(parameter, time_range, random.Random(seed))
    return HistoryResponse(
        parameter=parameter,
        range=time_range,
        unit=parameter.unit,
        labels=list(window.labels),
        values=list(window.values),
        summary=_summary_out(summarize(window.values)),
    )


@router.post(
    "/imports",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ImportUploadResponse,
    summary="Upload a history CSV for asynchronous processing.",
)
async def upload_history(
    file: UploadFile = File(..., description="CSV with parameter, timestamp and value columns."),
    importer: HistoryImportService = Depends(get_importer),
) -> ImportUploadResponse:
    try:
        import_id = importer.enqueue(file.filename, file.file)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        await file.close()
    return ImportUploadResponse(import_id=import_id)


@router.get("/imports/{import_id}", response_model=ImportResult, summary="Fetch import status and summaries.")
async def get_import(
    import_id: str,
    importer: HistoryImportService = Depends(get_importer),
) -> ImportResult:
    try:
        return importer.fetch_result(import_id)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.post(
    "/reservoirs",
    status_code=status.HTTP_201_CREATED,
    response_model=Reservoir,
    summary="Register the current user's reservoir.",
)
async def register_reservoir(
    payload: ReservoirCreate,
    session: SessionContext = Depends(get_session),
    reservoirs: ReservoirService = Depends(get_reservoirs),
) -> Reservoir:
    return reservoirs.register(session, payload)


@router.get("/reservoirs/me", response_model=Reservoir, summary="Current user's reservoir.")
async def my_reservoir(
    session: SessionContext = Depends(get_session),
    reservoirs: ReservoirService = Depends(get_reservoirs),
) -> Reservoir:
    try:
        return reservoirs.get_for_user(session)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.patch("/reservoirs/me/capacity", response_model=Reservoir, summary="Override reservoir capacity.")
async def update_capacity(
    payload: CapacityUpdate,
    session: SessionContext = Depends(get_session),
    reservoirs: ReservoirService = Depends(get_reservoirs),
) -> Reservoir:
    try:
        return reservoirs.update_capacity(session, payload.capacity_liters)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.get("/map", response_model=MapRegion, summary="Region and markers to display on the map.")
async def get_map(
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    session: SessionContext = Depends(get_session),
    reservoirs: ReservoirService = Depends(get_reservoirs),
) -> MapRegion:
    user_location = None
    if latitude is not None and longitude is not None:
        user_location = Location(latitude=latitude, longitude=longitude)
    return map_region(reservoirs.find_for_user(session), user_location)


@router.post("/readings", response_model=LatestReadings, summary="Push a live sensor snapshot.")
async def push_readings(
    payload: ReadingSnapshotIn,
    session: SessionContext = Depends(get_session),
    monitoring: MonitoringService = Depends(get_monitoring),
) -> LatestReadings:
    return monitoring.ingest(session, payload.as_values())


@router.get("/readings/latest", response_model=LatestReadings, summary="Latest evaluated snapshot.")
async def latest_readings(
    session: SessionContext = Depends(get_session),
    monitoring: MonitoringService = Depends(get_monitoring),
) -> LatestReadings:
    try:
        return monitoring.latest(session)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.get("/alerts", response_model=List[Alert], summary="Alerts for the current user, newest first.")
async def list_alerts(
    alert_status: Optional[AlertStatus] = Query(None, alias="status"),
    session: SessionContext = Depends(get_session),
    monitoring: MonitoringService = Depends(get_monitoring),
) -> List[Alert]:
    return monitoring.list_alerts(session, alert_status)


@router.post("/alerts/{alert_id}/resolve", response_model=Alert, summary="Mark an alert as resolved.")
async def resolve_alert(
    alert_id: str,
    payload: ResolveRequest,
    session: SessionContext = Depends(get_session),
    monitoring: MonitoringService = Depends(get_monitoring),
) -> Alert:
    try:
        return monitoring.resolve_alert(session, alert_id, payload.comment)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.get("/preferences", response_model=Preferences, summary="Current user's preferences.")
async def get_preferences(
    session: SessionContext = Depends(get_session),
    monitoring: MonitoringService = Depends(get_monitoring),
) -> Preferences:
    return monitoring.get_preferences(session)


@router.put("/preferences", response_model=Preferences, summary="Replace the current user's preferences.")
async def put_preferences(
    payload: Preferences,
    session: SessionContext = Depends(get_session),
    monitoring: MonitoringService = Depends(get_monitoring),
) -> Preferences:
    return monitoring.update_preferences(session, payload)
