"""Background import of sensor history CSV files."""

from __future__ import annotations

import csv
import logging
import math
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import BinaryIO, Dict, List, Optional, Tuple
from uuid import uuid4

from app.schemas import ImportResult, ImportStatus, ParameterSummary, RowError
from datastore.document_table import DocumentTable, build_default_table
from models.records import HistoryPoint, SensorKind
from services.aggregator import Aggregator
from settings import get_settings
from storage.object_store import MockObjectStore, build_default_store

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("parameter", "timestamp", "value")


class _RowRejected(Exception):
    def __init__(self, reason: str, invalid_value: Optional[str] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.invalid_value = invalid_value


class HistoryImportService:
    """Coordinates upload storage, background parsing, and result retrieval."""

    def __init__(
        self,
        store: MockObjectStore,
        table: DocumentTable[ImportResult],
        aggregator: Aggregator,
        workers: int = 4,
    ) -> None:
        self.store = store
        self.table = table
        self.aggregator = aggregator
        self.executor = ThreadPoolExecutor(max_workers=workers)
        self._futures: Dict[str, Future[None]] = {}
        self._futures_lock = Lock()

    def enqueue(self, filename: Optional[str], stream: BinaryIO) -> str:
        """Persist uploaded bytes and schedule asynchronous parsing."""
        import_id = str(uuid4())
        key = f"{import_id}/{Path(filename or 'history.csv').name}"

        stream.seek(0)
        contents = stream.read()
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        if not contents:
            raise ValueError("Uploaded file is empty.")

        self.store.put_object(key, contents)

        uploaded_at = datetime.now(timezone.utc)
        self.table.put_item(
            ImportResult(import_id=import_id, status=ImportStatus.uploaded, uploaded_at=uploaded_at)
        )
        logger.info("History upload accepted", extra={"import_id": import_id, "object_key": key})

        future = self.executor.submit(
            self._process_file, import_id=import_id, key=key, uploaded_at=uploaded_at
        )
        with self._futures_lock:
            self._futures[import_id] = future
        future.add_done_callback(lambda _f, iid=import_id: self._clear_future(iid))
        return import_id

    def fetch_result(self, import_id: str) -> ImportResult:
        result = self.table.get_item(import_id)
        if result is None:
            raise KeyError(f"Import {import_id!r} not found.")
        return result

    def wait(self, import_id: str, timeout: Optional[float] = None) -> None:
        """Block until the import finishes; no-op once it is done."""
        with self._futures_lock:
            future = self._futures.get(import_id)
        if future is not None:
            future.result(timeout=timeout)

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)

    def _clear_future(self, import_id: str) -> None:
        with self._futures_lock:
            self._futures.pop(import_id, None)

    def _process_file(self, import_id: str, key: str, uploaded_at: datetime) -> None:
        start_time = time.perf_counter()
        self.table.put_item(
            ImportResult(import_id=import_id, status=ImportStatus.processing, uploaded_at=uploaded_at)
        )

        errors: List[RowError] = []
        summaries: Dict[SensorKind, ParameterSummary] = {}
        log_context = {"import_id": import_id, "object_key": key}

        try:
            with self.store.open_text_object(key) as handle:
                points = self._parse_rows(csv.DictReader(handle), errors, log_context)
            for kind, aggregate in self.aggregator.aggregate(points).items():
                summary = aggregate.summary
                summaries[kind] = ParameterSummary(
                    count=summary.count,
                    mean_value=summary.mean_value,
                    min_value=summary.min_value,
                    max_value=summary.max_value,
                    std_dev=summary.std_dev,
                    status_counts=dict(aggregate.status_counts),
                )

            if not summaries:
                status = ImportStatus.failed
                if not errors:
                    errors.append(RowError(row_number=1, reason="no readings found"))
            elif errors:
                status = ImportStatus.partial
            else:
                status = ImportStatus.processed
        except Exception as exc:
            logger.exception("History import failed", extra={**log_context, "reason": str(exc)})
            status = ImportStatus.failed
            errors.append(RowError(row_number=1, reason=str(exc)))
            summaries = {}

        processing_ms = int((time.perf_counter() - start_time) * 1000)
        self.table.put_item(
            ImportResult(
                import_id=import_id,
                status=status,
                uploaded_at=uploaded_at,
                processed_at=datetime.now(timezone.utc),
                processing_ms=processing_ms,
                summaries=summaries,
                errors=errors,
            )
        )
        logger.info(
            "History import finished",
            extra={
                **log_context,
                "status": status.value,
                "processing_ms": processing_ms,
                "error_count": len(errors),
                "row_count": sum(summary.count for summary in summaries.values()),
            },
        )

    def _parse_rows(
        self,
        reader: csv.DictReader,
        errors: List[RowError],
        log_context: Dict[str, str],
    ) -> List[HistoryPoint]:
        if not reader.fieldnames:
            raise ValueError("CSV file is missing a header row.")

        normalized = {name.lower().strip(): name for name in reader.fieldnames}
        missing = [column for column in REQUIRED_COLUMNS if column not in normalized]
        if missing:
            raise ValueError(f"CSV missing required columns: {', '.join(missing)}")
        columns = tuple(normalized[column] for column in REQUIRED_COLUMNS)

        points: List[HistoryPoint] = []
        for row_number, row in enumerate(reader, start=2):
            try:
                points.append(self._parse_row(row, columns))
            except _RowRejected as rejected:
                errors.append(RowError(row_number=row_number, reason=rejected.reason))
                logger.warning(
                    "Skipping row %d: %s",
                    row_number,
                    rejected.reason,
                    extra={
                        **log_context,
                        "row_number": row_number,
                        "reason": rejected.reason,
                        "invalid_value": rejected.invalid_value,
                    },
                )
        return points

    def _parse_row(self, row: Dict[str, Optional[str]], columns: Tuple[str, str, str]) -> HistoryPoint:
        parameter_col, timestamp_col, value_col = columns
        parameter_raw = (row.get(parameter_col) or "").strip()
        timestamp_raw = (row.get(timestamp_col) or "").strip()
        value_raw = (row.get(value_col) or "").strip()

        if not parameter_raw:
            raise _RowRejected("missing parameter")
        try:
            kind = SensorKind.parse(parameter_raw)
        except ValueError:
            raise _RowRejected("unknown parameter", parameter_raw) from None

        if not timestamp_raw:
            raise _RowRejected("missing timestamp")
        try:
            timestamp = self._parse_timestamp(timestamp_raw)
        except ValueError:
            raise _RowRejected("invalid timestamp", timestamp_raw) from None

        if not value_raw:
            raise _RowRejected("missing value")
        try:
            value = float(value_raw)
        except ValueError:
            raise _RowRejected("invalid numeric value", value_raw) from None
        if not math.isfinite(value):
            raise _RowRejected("invalid numeric value", value_raw)

        return HistoryPoint(kind=kind, timestamp=timestamp, value=value)

    @staticmethod
    def _parse_timestamp(value: str) -> datetime:
        candidate = value.strip()
        if not candidate:
            raise ValueError("Timestamp is empty.")

        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"

        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise ValueError("Invalid timestamp format") from exc

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)

        return parsed.astimezone(timezone.utc)


@lru_cache
def build_default_importer(workers: Optional[int] = None) -> HistoryImportService:
    """Factory that wires the importer with the default mocks."""
    return HistoryImportService(
        store=build_default_store(),
        table=build_default_table("imports"),
        aggregator=Aggregator(),
        workers=workers or get_settings().import_workers,
    )
