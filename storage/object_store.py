from __future__ import annotations
import io
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterator, Optional, TextIO

from settings import get_settings


class MockObjectStore:
    """Stand-in for the hosted file storage that keeps uploaded histories."""

    def __init__(self, name: str, root_path: Optional[Path] = None) -> None:
        self.name = name
        self.root_path = root_path
        self._objects: Dict[str, bytes] = {}
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def put_object(self, key: str, data: bytes) -> None:
        with self._lock:
            if self.root_path:
                path = self.root_path / key
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)
            else:
                self._objects[key] = data

    def get_object(self, key: str) -> bytes:
        with self._lock:
            data = self._objects.get(key)
        if data is not None:
            return data

        path = self._path_for(key)
        if path is not None and path.exists():
            return path.read_bytes()
        raise self._missing(key)

    @contextmanager
    def open_text_object(
        self, key: str, encoding: str = "utf-8", newline: Optional[str] = ""
    ) -> Iterator[TextIO]:
        """Yield a streaming text handle for the stored object."""

        path = self._path_for(key)
        if path is not None:
            if not path.exists():
                raise self._missing(key)
            with path.open("r", encoding=encoding, newline=newline) as handle:
                yield handle
            return

        buffer = io.StringIO(self.get_object(key).decode(encoding), newline=newline)
        try:
            yield buffer
        finally:
            buffer.close()

    def _path_for(self, key: str) -> Optional[Path]:
        return self.root_path / key if self.root_path else None

    def _missing(self, key: str) -> KeyError:
        return KeyError(f"Object with key {key!r} not found in store {self.name!r}.")


@lru_cache
def build_default_store(
    name: Optional[str] = None,
    root_path: Optional[str] = None,
) -> MockObjectStore:
    settings = get_settings()
    store_name = settings.upload_bucket_name if name is None else name
    store_root = settings.upload_root_path if root_path is None else root_path
    path = Path(store_root) if store_root else None
    return MockObjectStore(name=store_name, root_path=path)
