"""Merge configuration sources into a validated :class:`PropcmdConfig`."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import PropcmdConfig

ENV_PREFIX = "PROPCMD__"


def resolve_with_precedence(
    *,
    defaults: PropcmdConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> PropcmdConfig:
    """Layer overrides on top of defaults: file, then environment, then CLI.

    Override mappings may be nested or use dotted keys such as
    ``"traversal.depth_level"``.

    Raises:
        ConfigError: If an override is malformed or the merged result fails validation.
    """
    merged = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for label, layer in layers:
        if layer is not None:
            merged = _deep_merge(merged, _expand_dotted(layer, label=label))

    try:
        return PropcmdConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: PropcmdConfig) -> Dict[str, str]:
    """Render every leaf setting as a ``PROPCMD__SECTION__KEY`` variable."""
    flat: Dict[str, str] = {}
    stack: list[tuple[list[str], Any]] = [([], config.model_dump(mode="python"))]
    while stack:
        path, node = stack.pop()
        if isinstance(node, dict):
            stack.extend((path + [str(key)], child) for key, child in node.items())
            continue
        name = ENV_PREFIX + "__".join(segment.upper() for segment in path)
        if isinstance(node, list):
            flat[name] = yaml.safe_dump(node, default_flow_style=True).strip()
        elif node is None:
            flat[name] = "null"
        else:
            flat[name] = str(node)
    return flat


def _expand_dotted(source: Mapping[str, Any], *, label: str) -> dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{label.capitalize()} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label.capitalize()} override keys must be strings.")
        *parents, leaf = key.split(".")
        node = expanded
        for segment in parents:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConfigError(
                    f"{label.capitalize()} override for {key} conflicts with existing value."
                )
            node = child
        if isinstance(value, MappingABC):
            existing = node.get(leaf)
            nested = _expand_dotted(value, label=label)
            node[leaf] = _deep_merge(existing, nested) if isinstance(existing, dict) else nested
        else:
            node[leaf] = value
    return expanded


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["ENV_PREFIX", "resolve_with_precedence", "flatten_for_env"]
