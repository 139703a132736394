from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import httpx
import pytest
from typer.testing import CliRunner

from cli.app import app
from models.records import SensorKind

RESERVOIR = {
    "id": "res-1",
    "user_id": "user-1",
    "name": "Village cistern",
    "usage_type": "domestic",
    "shape": "rectangular",
    "capacity_liters": 9000.0,
    "critical_depth": 0.5,
    "location": {"latitude": 33.5, "longitude": -7.6},
}


class StubClient:
    def __init__(self, config, upload_response: str = "import-123") -> None:
        self.config = config
        self.upload_response = upload_response
        self.uploaded_path: Path | None = None
        self.poll_calls: List[tuple[str, float, float]] = []
        self.pushed: List[Mapping[SensorKind, float]] = []
        self.resolved: List[tuple[str, str]] = []
        self.reservoir: Optional[Dict[str, Any]] = RESERVOIR
        self.offline = False
        self.result_payload: Dict[str, Any] = {
            "import_id": upload_response,
            "status": "partial",
            "uploaded_at": "2024-01-01T00:00:00Z",
            "processed_at": "2024-01-01T00:00:01Z",
            "processing_ms": 123,
            "summaries": {
                "ph": {
                    "count": 2,
                    "mean_value": 7.25,
                    "min_value": 7.0,
                    "max_value": 7.5,
                    "std_dev": 0.25,
                    "status_counts": {"normal": 2},
                }
            },
            "errors": [{"row_number": 4, "reason": "invalid numeric value"}],
        }
        self.closed = False

    def upload_file(self, path: Path) -> str:
        self.uploaded_path = path
        return self.upload_response

    def poll_result(self, import_id: str, interval: float, timeout: float) -> Dict[str, Any]:
        self.poll_calls.append((import_id, interval, timeout))
        return self.result_payload

    def get_result(self, import_id: str) -> Dict[str, Any]:
        payload = self.result_payload.copy()
        payload["import_id"] = import_id
        return payload

    def push_readings(self, values: Mapping[SensorKind, float]) -> Dict[str, Any]:
        self.pushed.append(values)
        return {
            "user_id": "user-1",
            "recorded_at": "2024-01-01T00:00:00Z",
            "readings": [
                {"kind": kind.value, "display_value": "1", "status": "normal"} for kind in values
            ],
        }

    def get_reservoir(self) -> Optional[Dict[str, Any]]:
        if self.offline:
            raise httpx.ConnectError("connection refused")
        return self.reservoir

    def list_alerts(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            {
                "id": "alert-1",
                "severity": "danger",
                "status": status or "unresolved",
                "raised_at": "2024-01-01T00:00:00Z",
                "message": "Water level low",
                "comment": "",
            }
        ]

    def resolve_alert(self, alert_id: str, comment: str) -> Dict[str, Any]:
        self.resolved.append((alert_id, comment))
        return {"id": alert_id, "status": "resolved", "comment": comment}

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_cache(monkeypatch, tmp_path) -> Path:
    path = tmp_path / "cache.json"
    monkeypatch.setenv("RESERVOIR_CACHE_PATH", str(path))
    return path


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)
    _install_stub(monkeypatch, client)
    return client


def test_evaluate_runs_locally(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["evaluate", "waterLevel", "35.5"])

    assert result.exit_code == 0
    assert "water_level: 36% WARNING" in result.stdout
    assert stub.closed is True


def test_evaluate_rejects_unknown_kind(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["evaluate", "salinity", "1"])

    assert result.exit_code != 0


def test_summarize_values(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["summarize", "10", "20", "30"])

    assert result.exit_code == 0
    assert "mean: 20.0" in result.stdout
    assert "max: 30.0" in result.stdout
    assert "min: 10.0" in result.stdout
    assert "std_dev: 8.2" in result.stdout


def test_summarize_without_values_prints_placeholders(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["summarize"])

    assert result.exit_code == 0
    assert "mean: —" in result.stdout
    assert "std_dev: —" in result.stdout


def test_upload_without_wait(runner: CliRunner, stub: StubClient, tmp_path) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("parameter,timestamp,value\nph,2024-01-01T00:00:00Z,7.0\n")

    result = runner.invoke(app, ["upload", str(csv_path)])

    assert result.exit_code == 0
    assert "Upload accepted" in result.stdout
    assert stub.uploaded_path == csv_path
    assert not stub.poll_calls
    assert stub.closed is True


def test_upload_with_wait(runner: CliRunner, stub: StubClient, tmp_path) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("parameter,timestamp,value\nph,2024-01-01T00:00:00Z,7.0\n")

    result = runner.invoke(
        app, ["upload", str(csv_path), "--wait", "--poll-interval", "0.1", "--timeout", "5"]
    )

    assert result.exit_code == 0
    assert "Import Result" in result.stdout
    assert "status_counts: normal=2" in result.stdout
    assert "row 4: invalid numeric value" in result.stdout
    assert stub.poll_calls == [("import-123", 0.1, 5.0)]


def test_result_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["result", "import-999"])

    assert result.exit_code == 0
    assert "import_id: import-999" in result.stdout
    assert "Summaries" in result.stdout
    assert "ph (count=2)" in result.stdout
    assert stub.closed is True


def test_simulate_local(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["simulate", "--local", "-n", "2", "--interval", "0", "--seed", "3"])

    assert result.exit_code == 0
    assert result.stdout.count("Local readings") == 2
    assert stub.pushed == []


def test_simulate_pushes_snapshots(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(
        app, ["--user", "user-1", "simulate", "-n", "2", "--interval", "0", "--seed", "3"]
    )

    assert result.exit_code == 0
    assert len(stub.pushed) == 2
    assert set(stub.pushed[0]) == set(SensorKind)
    assert stub.config.user_id == "user-1"


def test_reservoir_is_cached_for_offline_use(
    runner: CliRunner, stub: StubClient, isolated_cache: Path
) -> None:
    online = runner.invoke(app, ["--user", "user-1", "reservoir"])

    assert online.exit_code == 0
    assert "name: Village cistern" in online.stdout
    assert "capacity: 9000 L" in online.stdout
    assert json.loads(isolated_cache.read_text())["user-1"]["id"] == "res-1"

    stub.offline = True
    offline = runner.invoke(app, ["--user", "user-1", "reservoir"])

    assert offline.exit_code == 0
    assert "Reservoir (offline copy)" in offline.stdout
    assert "name: Village cistern" in offline.stdout


def test_reservoir_offline_without_cache_fails(runner: CliRunner, stub: StubClient) -> None:
    stub.offline = True

    result = runner.invoke(app, ["--user", "user-1", "reservoir"])

    assert result.exit_code == 1


def test_reservoir_not_registered(runner: CliRunner, stub: StubClient) -> None:
    stub.reservoir = None

    result = runner.invoke(app, ["--user", "user-1", "reservoir"])

    assert result.exit_code == 0
    assert "No reservoir registered." in result.stdout


def test_alerts_and_resolve(runner: CliRunner, stub: StubClient) -> None:
    listed = runner.invoke(app, ["--user", "user-1", "alerts"])

    assert listed.exit_code == 0
    assert "Water level low" in listed.stdout
    assert "id: alert-1" in listed.stdout

    resolved = runner.invoke(app, ["--user", "user-1", "resolve", "alert-1", "-c", "Refilled"])

    assert resolved.exit_code == 0
    assert "Alert alert-1 marked as resolved." in resolved.stdout
    assert stub.resolved == [("alert-1", "Refilled")]


def test_logout_clears_offline_copy(runner: CliRunner, stub: StubClient, isolated_cache: Path) -> None:
    runner.invoke(app, ["--user", "user-1", "reservoir"])

    first = runner.invoke(app, ["--user", "user-1", "logout"])
    second = runner.invoke(app, ["--user", "user-1", "logout"])

    assert "Offline data cleared." in first.stdout
    assert "No offline data stored." in second.stdout
    assert "user-1" not in json.loads(isolated_cache.read_text())
