from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, NoReturn, Optional

import httpx
import typer

from cli.config import CLIConfig
from models.records import SensorKind


class ApiClient:
    """Minimal HTTP client for the reservoir monitor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        headers = {"X-User-Id": config.user_id} if config.user_id else {}
        self._client = httpx.Client(base_url=config.base_url, timeout=30.0, headers=headers)

    def close(self) -> None:
        self._client.close()

    def upload_file(self, path: Path) -> str:
        if not path.exists():
            raise typer.BadParameter(f"File {path} does not exist.")
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")

        with path.open("rb") as handle:
            response = self._send(
                "POST", "/imports", files={"file": (path.name, handle, "text/csv")}
            )
        import_id = response.json().get("import_id")
        if not isinstance(import_id, str):
            raise typer.BadParameter("Unexpected response payload when uploading file.")
        return import_id

    def get_result(self, import_id: str) -> Dict[str, Any]:
        response = self._client.get(f"/imports/{import_id}")
        if response.status_code == 404:
            raise typer.BadParameter(f"Import {import_id} was not found.")
        return self._checked(response).json()

    def poll_result(self, import_id: str, interval: float, timeout: float) -> Dict[str, Any]:
        deadline = time.monotonic() + timeout
        last_payload: Dict[str, Any] | None = None
        while time.monotonic() <= deadline:
            last_payload = self.get_result(import_id)
            status = last_payload.get("status")
            if status not in {"uploaded", "processing"}:
                return last_payload
            time.sleep(interval)
        typer.secho(
            (
                f"Timed out waiting for import {import_id}. "
                f"Last status: {last_payload.get('status') if last_payload else 'unknown'}"
            ),
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    def push_readings(self, values: Mapping[SensorKind, float]) -> Dict[str, Any]:
        self._require_user()
        payload = {kind.value: value for kind, value in values.items()}
        return self._send("POST", "/readings", json=payload).json()

    def get_reservoir(self) -> Optional[Dict[str, Any]]:
        """Fetch the user's reservoir; ``None`` when none is registered.

        Connection failures propagate as ``httpx.TransportError``.
        """
        self._require_user()
        response = self._client.get("/reservoirs/me")
        if response.status_code == 404:
            return None
        return self._checked(response).json()

    def list_alerts(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        self._require_user()
        params = {"status": status} if status else None
        return self._send("GET", "/alerts", params=params).json()

    def resolve_alert(self, alert_id: str, comment: str) -> Dict[str, Any]:
        self._require_user()
        response = self._client.post(f"/alerts/{alert_id}/resolve", json={"comment": comment})
        if response.status_code == 404:
            raise typer.BadParameter(f"Alert {alert_id} was not found.")
        return self._checked(response).json()

    def _require_user(self) -> None:
        if not self._config.user_id:
            raise typer.BadParameter("A user id is required (--user or RESERVOIR_USER_ID).")

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        return self._checked(self._client.request(method, url, **kwargs))

    def _checked(self, response: httpx.Response) -> httpx.Response:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> NoReturn:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
