"""
Plugin loader for sinks and formatters: built-in registries plus Python
entry points.

Names are normalized (hyphens/underscores, case) and may be aliased. Built-ins
win over entry points when names collide.
"""

from __future__ import annotations

import importlib
import importlib.metadata
from typing import Any, Callable, Iterable, TypeVar

from ..core import diagnostics

T = TypeVar("T")

SINKS_GROUP = "relaylog.sinks"
FORMATTERS_GROUP = "relaylog.formatters"


def _normalize_plugin_name(name: str) -> str:
    return name.replace("-", "_").lower()


def _warn_on_name_mismatch(cls: type | Callable[..., Any]) -> None:
    """Emit a diagnostic when class.name and PLUGIN_METADATA['name'] disagree."""
    class_name = getattr(cls, "name", None)
    module_name = getattr(cls, "__module__", None)
    if not class_name or not isinstance(class_name, str) or not module_name:
        return
    try:
        mod = importlib.import_module(module_name)
    except ImportError:
        return
    metadata = getattr(mod, "PLUGIN_METADATA", None)
    if not isinstance(metadata, dict):
        return
    meta_name = metadata.get("name")
    if not isinstance(meta_name, str) or not meta_name:
        return
    if _normalize_plugin_name(class_name) != _normalize_plugin_name(meta_name):
        diagnostics.warn(
            "plugins",
            "plugin name mismatch",
            class_name=class_name,
            metadata_name=meta_name,
            plugin=getattr(cls, "__name__", str(cls)),
        )


# group -> name -> class
BUILTIN_SINKS: dict[str, type] = {}
BUILTIN_FORMATTERS: dict[str, type] = {}

# alias -> canonical name, per group
BUILTIN_ALIASES: dict[str, dict[str, str]] = {
    SINKS_GROUP: {},
    FORMATTERS_GROUP: {},
}


class PluginNotFoundError(Exception):
    """Plugin not found in built-ins or entry points."""


class PluginLoadError(Exception):
    """Plugin found but failed to load/instantiate."""


def register_builtin(
    group: str, name: str, cls: type, *, aliases: Iterable[str] | None = None
) -> None:
    """Register a built-in plugin class and optional aliases."""
    registry = _registry_for_group(group)
    if registry is None:
        raise ValueError(f"Unknown plugin group '{group}'")
    canonical = _normalize_plugin_name(name)
    registry[canonical] = cls
    if aliases:
        alias_map = BUILTIN_ALIASES.setdefault(group, {})
        for alias in aliases:
            alias_map[_normalize_plugin_name(alias)] = canonical


def load_plugin(group: str, name: str, config: dict[str, Any] | None = None) -> Any:
    """Instantiate a plugin by group and name with keyword config."""
    config = config or {}
    canonical = _normalize_plugin_name(name)
    registry = _registry_for_group(group) or {}
    target = BUILTIN_ALIASES.get(group, {}).get(canonical, canonical)
    if target in registry:
        return _instantiate(registry[target], config)

    try:
        for ep in importlib.metadata.entry_points().select(group=group):
            if _normalize_plugin_name(ep.name) == canonical:
                return _instantiate(ep.load(), config)
    except PluginLoadError:
        raise
    except Exception as exc:
        raise PluginLoadError(
            f"Failed to load plugin '{name}' from {group}: {exc}"
        ) from exc

    raise PluginNotFoundError(f"Plugin '{name}' not found in group '{group}'")


def list_available_plugins(group: str) -> list[str]:
    """List available plugin names (built-in + aliases + entry points)."""
    names: set[str] = set()
    names.update((_registry_for_group(group) or {}).keys())
    names.update(BUILTIN_ALIASES.get(group, {}).keys())
    try:
        for ep in importlib.metadata.entry_points().select(group=group):
            names.add(_normalize_plugin_name(ep.name))
    except Exception as exc:
        diagnostics.debug("plugins", "entry point discovery failed", error=str(exc))
    return sorted(names)


def _registry_for_group(group: str) -> dict[str, type] | None:
    return {
        SINKS_GROUP: BUILTIN_SINKS,
        FORMATTERS_GROUP: BUILTIN_FORMATTERS,
    }.get(group)


def _instantiate(cls: Callable[..., T] | type, config: dict[str, Any]) -> T:
    try:
        instance = cls(**config) if config else cls()
    except Exception as exc:
        diagnostics.warn(
            "plugins",
            "plugin instantiation failed",
            plugin=getattr(cls, "__name__", str(cls)),
            error=str(exc),
        )
        raise PluginLoadError(str(exc)) from exc
    _warn_on_name_mismatch(cls)
    return instance


__all__ = [
    "FORMATTERS_GROUP",
    "SINKS_GROUP",
    "PluginLoadError",
    "PluginNotFoundError",
    "list_available_plugins",
    "load_plugin",
    "register_builtin",
]
