"""
Plugin utilities for config parsing and name resolution.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def parse_plugin_config(
    model: type[ConfigT],
    config: ConfigT | dict[str, Any] | None = None,
    **kwargs: Any,
) -> ConfigT:
    """Build a config model from a model instance, a dict, or keyword args.

    Keyword arguments override keys of a dict config; combined with a model
    instance they produce an updated, re-validated copy.

    Raises:
        pydantic.ValidationError: If the merged values are invalid.
    """
    if isinstance(config, model):
        if not kwargs:
            return config
        merged = {**config.model_dump(), **kwargs}
        return model.model_validate(merged)
    data: dict[str, Any] = dict(config or {})
    data.update(kwargs)
    return model.model_validate(data)


def get_plugin_name(plugin: Any) -> str:
    """Get the canonical name of a sink or formatter.

    Resolution order:
    1. plugin.name attribute (if non-empty string)
    2. Class name (fallback)
    """
    name = getattr(plugin, "name", None)
    if name and isinstance(name, str) and name.strip():
        result: str = name.strip()
        return result
    cls = plugin if isinstance(plugin, type) else plugin.__class__
    class_name: str = cls.__name__
    return class_name
