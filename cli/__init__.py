"""Command line client for the reservoir monitor service."""

from importlib import import_module
from types import ModuleType

__all__ = []


# ``cli.app`` resolves to the module, not the Typer instance, so tests can
# monkeypatch names such as ``cli.app.ApiClient``.
def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)
