"""Configuration management for renamebot."""

from __future__ import annotations

import logging
import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import RenamebotConfig
from .resolver import (
    ENV_PREFIX,
    flatten_for_env,
    merge_mappings,
    parse_assignments,
    resolve_with_precedence,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.renamebot/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # renamebot configuration file
    # Generated automatically; manage via `renamebot config edit` or `renamebot config set`.
    """
)


class ConfigManager:
    """Read, write and resolve the YAML configuration file."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> RenamebotConfig:
        """Resolve the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides supplied on the command line.
            include_env: Whether ``RENAMEBOT__`` environment variables apply.
            ensure_file: Create the file with defaults when it is missing.
            env_overrides: Explicit environment mapping used instead of ``os.environ``.

        Returns:
            RenamebotConfig: Validated configuration.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_source: Mapping[str, str] | None = None
        if include_env:
            env_source = env_overrides if env_overrides is not None else self._env

        return resolve_with_precedence(
            defaults=RenamebotConfig(),
            file_overrides=self._read_file(),
            env_overrides=self._extract_env(env_source) if env_source else None,
            cli_overrides=cli_overrides,
        )

    def save(self, config: RenamebotConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to disk with the generated header."""
        if isinstance(config, RenamebotConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create the configuration file with defaults if it does not exist."""
        if not self._config_path.exists():
            LOGGER.debug("Creating default configuration at %s", self._config_path)
            self._write_file(RenamebotConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def set_value(self, key: str, value: Any) -> RenamebotConfig:
        """Persist a single dotted ``key`` after validating the resulting config.

        Raises:
            ConfigError: If the key path is invalid or the value fails validation.
        """
        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise ConfigError("Configuration key must not be empty.")

        overrides = self._read_file()
        patch: dict[str, Any] = {}
        node = patch
        for segment in segments[:-1]:
            node = node.setdefault(segment, {})
        node[segments[-1]] = value
        updated = merge_mappings(overrides, patch)

        config = resolve_with_precedence(defaults=RenamebotConfig(), file_overrides=updated)
        self._write_file(updated)
        return config

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )

    def _extract_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for name, raw_value in env.items():
            if not name.startswith(ENV_PREFIX):
                continue
            dotted = ".".join(part.lower() for part in name[len(ENV_PREFIX) :].split("__"))
            if not dotted:
                continue
            try:
                overrides[dotted] = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                overrides[dotted] = raw_value
        return overrides


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "RenamebotConfig",
    "resolve_with_precedence",
    "parse_assignments",
    "flatten_for_env",
    "ConfigError",
]
