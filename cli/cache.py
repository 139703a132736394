from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional


class OfflineCache:
    """Last known reservoir per user, kept on disk for use without a connection."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self._read().get(user_id)

    def store(self, user_id: str, payload: Dict[str, Any]) -> None:
        data = self._read()
        data[user_id] = payload
        self._write(data)

    def clear(self, user_id: str) -> bool:
        data = self._read()
        if data.pop(user_id, None) is None:
            return False
        self._write(data)
        return True

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text() or "{}")
        except (OSError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True))
