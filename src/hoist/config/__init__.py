"""Configuration management for Hoist."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import HoistConfig
from .resolver import (
    assign_path,
    flatten_for_env,
    parse_env,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.hoist/config.yaml")
CONFIG_PATH_ENV = "HOIST_CONFIG"
_CONFIG_HEADER = textwrap.dedent(
    """\
    # Hoist configuration file
    # Generated automatically; manage it with `hoist config set KEY --value VALUE`.
    """
)


class ConfigManager:
    """Load and persist configuration data, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._env = env if env is not None else os.environ
        if config_path is None and self._env.get(CONFIG_PATH_ENV):
            config_path = Path(self._env[CONFIG_PATH_ENV])
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()

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
    ) -> HoistConfig:
        """Load configuration data from disk, applying precedence rules."""
        if ensure_file:
            self.ensure_exists()

        env_data: Mapping[str, str] | None = None
        if include_env:
            env_data = env_overrides if env_overrides is not None else self._env

        return resolve_with_precedence(
            defaults=HoistConfig(),
            file_overrides=self._read_file(),
            env_overrides=parse_env(env_data) if env_data else None,
            cli_overrides=cli_overrides,
        )

    def save(self, config: HoistConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        if isinstance(config, HoistConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(HoistConfig().model_dump(mode="python"))
        return self._config_path

    def set_value(self, key: str, raw_value: str) -> HoistConfig:
        """Assign a dotted ``key`` in the config file after validating the result.

        Args:
            key: Dotted setting path such as ``planning.destination``.
            raw_value: YAML scalar text to store.

        Returns:
            HoistConfig: The configuration as it resolves from the updated file.

        Raises:
            ConfigError: If the key is malformed or the value fails validation.
        """
        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise ConfigError(
                "Configuration key must be a dotted path like 'planning.destination'."
            )
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Unable to parse value for {key}: {exc}") from exc

        data = self._read_file()
        assign_path(data, segments, value, source_name="file")
        resolved = resolve_with_precedence(defaults=HoistConfig(), file_overrides=data)
        self._write_file(data)
        return resolved

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

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
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{serialized}", encoding="utf-8"
        )


__all__ = [
    "ConfigManager",
    "CONFIG_PATH_ENV",
    "DEFAULT_CONFIG_PATH",
    "HoistConfig",
    "resolve_with_precedence",
    "flatten_for_env",
    "ConfigError",
]
