"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterator, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import DropdockConfig

ENV_PREFIX = "DROPDOCK__"


def resolve_with_precedence(
    *,
    defaults: DropdockConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> DropdockConfig:
    """Merge configuration layers; later layers win.

    The order is defaults, then the YAML file, then ``DROPDOCK__*`` environment
    variables, then explicit CLI overrides. Keys may be nested mappings or
    dotted paths such as ``"watch.debounce_seconds"``.

    Args:
        defaults: Baseline configuration.
        file_overrides: Values read from the configuration file.
        env_overrides: Values extracted from environment variables.
        cli_overrides: Values supplied on the command line.

    Returns:
        DropdockConfig: Validated configuration.

    Raises:
        ConfigError: If any layer is malformed or the result fails validation.
    """
    merged = defaults.model_dump(mode="python")
    layers = (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    )
    for name, layer in layers:
        if layer is None:
            continue
        merged = _deep_merge(merged, expand_dotted(layer, source_name=name))

    try:
        return DropdockConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: DropdockConfig) -> Dict[str, str]:
    """Render the config as ``DROPDOCK__SECTION__KEY`` environment assignments."""
    flat: Dict[str, str] = {}
    for path, value in _walk_leaves([], config.model_dump(mode="python")):
        key = ENV_PREFIX + "__".join(part.upper() for part in path)
        if isinstance(value, list):
            flat[key] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif value is None:
            flat[key] = "null"
        else:
            flat[key] = str(value)
    return flat


def env_to_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``DROPDOCK__`` variables into a nested override mapping.

    Values are parsed as YAML scalars so ``"0.5"`` becomes a float and
    ``"null"`` becomes ``None``; unparsable values are kept as raw strings.
    """
    overrides: dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        segments = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not segments:
            continue
        try:
            value: Any = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        set_nested(overrides, segments, value)
    return overrides


def set_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign ``value`` at ``path`` inside ``target``, creating mappings as needed.

    Raises:
        ConfigError: If a non-mapping value already sits on the path.
    """
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(f"Cannot assign into '{segment}' because it is not a mapping.")
        node = child
    node[path[-1]] = value


def expand_dotted(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    """Return ``source`` with dotted keys expanded into nested mappings."""
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source_name=source_name)
        path = key.split(".")
        existing = _lookup(result, path)
        if isinstance(existing, dict) and isinstance(value, dict):
            value = _deep_merge(existing, value)
        try:
            set_nested(result, path, value)
        except ConfigError as exc:
            raise ConfigError(
                f"{source_name.capitalize()} override for {key} conflicts with existing value."
            ) from exc
    return result


def _lookup(node: Mapping[str, Any], path: list[str]) -> Any:
    for segment in path:
        if not isinstance(node, MappingABC) or segment not in node:
            return None
        node = node[segment]
    return node


def _walk_leaves(prefix: list[str], value: Any) -> Iterator[tuple[list[str], Any]]:
    if isinstance(value, dict):
        for key, child in value.items():
            yield from _walk_leaves(prefix + [str(key)], child)
    else:
        yield prefix, value


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "ENV_PREFIX",
    "resolve_with_precedence",
    "flatten_for_env",
    "env_to_overrides",
    "expand_dotted",
    "set_nested",
]
