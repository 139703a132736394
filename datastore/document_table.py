from __future__ import annotations
import json
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Generic, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

from app.schemas import Alert, ImportResult, LatestReadings, Reservoir, UserPreferences
from settings import get_settings

ModelT = TypeVar("ModelT", bound=BaseModel)


class DocumentTable(Generic[ModelT]):
    """Thread-safe keyed collection of pydantic documents, optionally saved as JSON."""

    def __init__(
        self,
        name: str,
        model: Type[ModelT],
        key_field: str,
        persistence_path: Optional[Path] = None,
    ) -> None:
        self.name = name
        self.model = model
        self.key_field = key_field
        self._items: Dict[str, ModelT] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_item(self, item: ModelT) -> None:
        key = getattr(item, self.key_field)
        with self._lock:
            self._items[key] = item.model_copy(deep=True)
            self._persist()

    def get_item(self, key: str) -> Optional[ModelT]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            return item.model_copy(deep=True)

    def scan(self, predicate: Optional[Callable[[ModelT], bool]] = None) -> list[ModelT]:
        """Return deep copies of stored documents, optionally filtered."""

        with self._lock:
            return [
                item.model_copy(deep=True)
                for item in self._items.values()
                if predicate is None or predicate(item)
            ]

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {key: item.model_dump(mode="json") for key, item in self._items.items()}
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        for key, payload in data.items():
            self._items[key] = self.model.model_validate(payload)


TABLE_SCHEMAS: Dict[str, Tuple[Type[BaseModel], str]] = {
    "reservoirs": (Reservoir, "user_id"),
    "alerts": (Alert, "id"),
    "imports": (ImportResult, "import_id"),
    "latest_readings": (LatestReadings, "user_id"),
    "preferences": (UserPreferences, "user_id"),
}


@lru_cache
def build_default_table(name: str, data_path: Optional[str] = None) -> DocumentTable:
    if name not in TABLE_SCHEMAS:
        raise KeyError(f"Unknown table {name!r}.")
    model, key_field = TABLE_SCHEMAS[name]
    settings = get_settings()
    root = settings.data_path if data_path is None else data_path
    persistence = Path(root) / f"{name}.json" if root else None
    return DocumentTable(name=name, model=model, key_field=key_field, persistence_path=persistence)
