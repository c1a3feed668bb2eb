"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterable, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import RenamebotConfig

ENV_PREFIX = "RENAMEBOT__"


def resolve_with_precedence(
    *,
    defaults: RenamebotConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> RenamebotConfig:
    """Layer override sources on top of ``defaults`` and validate the result.

    Sources are applied in order file, environment, CLI; later sources win.

    Args:
        defaults: Baseline configuration.
        file_overrides: Mapping read from the YAML configuration file.
        env_overrides: Nested mapping derived from ``RENAMEBOT__`` variables.
        cli_overrides: Mapping keyed by dotted paths (``rename.action``).

    Returns:
        RenamebotConfig: Validated configuration.

    Raises:
        ConfigError: If an override is malformed or a value fails validation.
    """
    layers = (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    )
    merged = defaults.model_dump(mode="python")
    for source_name, layer in layers:
        if layer is None:
            continue
        merged = merge_mappings(merged, expand_dotted(layer, source_name=source_name))

    try:
        return RenamebotConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def parse_assignments(pairs: Iterable[str]) -> dict[str, Any]:
    """Parse ``key=value`` strings into a dotted-key override mapping.

    Values are interpreted as YAML literals so ``0.5`` and ``true`` keep their types.

    Args:
        pairs: Strings such as ``matching.threshold=0.7``.

    Returns:
        dict[str, Any]: Overrides suitable for ``cli_overrides``.

    Raises:
        ConfigError: If a pair has no ``=`` or an empty key.
    """
    overrides: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigError(f"Expected KEY=VALUE, got {pair!r}.")
        try:
            overrides[key] = yaml.safe_load(raw)
        except yaml.YAMLError:
            overrides[key] = raw
    return overrides


def flatten_for_env(config: RenamebotConfig) -> Dict[str, str]:
    """Render the config as ``RENAMEBOT__SECTION__KEY`` environment variables."""
    flat: Dict[str, str] = {}

    def _walk(prefix: list[str], value: Any) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _walk([*prefix, str(key)], child)
            return
        name = ENV_PREFIX + "__".join(part.upper() for part in prefix)
        if isinstance(value, list):
            flat[name] = yaml.safe_dump(value, default_flow_style=True).strip()
        elif value is None:
            flat[name] = "null"
        else:
            flat[name] = str(value)

    _walk([], config.model_dump(mode="python"))
    return flat


def expand_dotted(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    """Expand dotted keys (``a.b``) into nested dictionaries."""
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        segments = key.split(".")
        node = expanded
        for segment in segments[:-1]:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConfigError(
                    f"{source_name.capitalize()} override for {key} conflicts with existing value."
                )
            node = child
        leaf = segments[-1]
        if isinstance(value, MappingABC):
            nested = expand_dotted(value, source_name=source_name)
            current = node.get(leaf)
            node[leaf] = merge_mappings(current if isinstance(current, dict) else {}, nested)
        else:
            node[leaf] = value
    return expanded


def merge_mappings(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Return a deep copy of ``base`` with ``overrides`` merged in recursively."""
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = merge_mappings(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "ENV_PREFIX",
    "resolve_with_precedence",
    "parse_assignments",
    "flatten_for_env",
    "expand_dotted",
    "merge_mappings",
]
