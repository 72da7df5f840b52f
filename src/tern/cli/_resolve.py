"""Locate the App a ``tern`` command line points at."""

import importlib
from typing import Any

from tern.app import App
from tern.config import AppConfig


def _build(target: Any, config: AppConfig | None, import_string: str) -> Any:
    """Call an app factory, passing *config* when there is one."""
    try:
        return target() if config is None else target(config)
    except Exception as exc:
        msg = f"App factory {import_string!r} failed: {exc}"
        raise TypeError(msg) from exc


def resolve_app(import_string: str, config: AppConfig | None = None) -> App:
    """Turn ``"package.module:name"`` into an App.

    ``name`` defaults to ``app``.  It may name an App instance, which is
    returned unchanged, or a factory, which is called with the resolved
    *config* (no arguments when *config* is ``None``) and must return one.

    Raises:
        ModuleNotFoundError: The module part cannot be imported.
        AttributeError: The module has no such name.
        TypeError: The name is neither an App nor a factory producing one.
    """
    module_name, _, attribute = import_string.partition(":")
    target = getattr(importlib.import_module(module_name), attribute or "app")

    if not isinstance(target, App) and callable(target):
        target = _build(target, config, import_string)

    if isinstance(target, App):
        return target

    msg = f"{import_string!r} is a {type(target).__name__}, not a tern.App instance"
    raise TypeError(msg)
