"""
User configuration management for flashdeck.

Settings come from, in order of precedence:
1. Environment variables (highest precedence)
2. Command-line provided config file
3. Config file in current directory
4. User's XDG config directory
5. Default values (lowest precedence)
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from flashdeck.config.models import UserConfigData
from flashdeck.core.errors import ConfigError


logger = logging.getLogger(__name__)

ENV_PREFIX = "FLASHDECK_"


class UserConfig:
    """Loads user configuration from YAML files and the environment."""

    def __init__(self, cli_config_path: str | Path | None = None) -> None:
        self._config_sources: dict[str, str] = {}
        self._config_path: Path | None = None
        self._cli_config_path = (
            Path(cli_config_path).expanduser().resolve() if cli_config_path else None
        )
        self._config_paths = self._generate_config_paths()
        self._load_config()

    @property
    def config_path(self) -> Path | None:
        """Path of the file the configuration was loaded from, if any."""
        return self._config_path

    @property
    def data(self) -> UserConfigData:
        return self._config

    def _generate_config_paths(self) -> list[Path]:
        config_paths = []

        if self._cli_config_path:
            config_paths.append(self._cli_config_path)

        config_paths.extend(
            [Path.cwd() / "flashdeck.yaml", Path.cwd() / ".flashdeck.yml"]
        )

        xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
        config_home = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
        config_paths.append(config_home / "flashdeck" / "config.yaml")

        return config_paths

    def _load_config(self) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Config search paths: %s", [str(p) for p in self._config_paths]
            )

        config_data: dict[str, Any] = {}
        if self._cli_config_path and not self._cli_config_path.exists():
            raise ConfigError(f"Config file not found: {self._cli_config_path}")

        for path in self._config_paths:
            if path.is_file():
                config_data = self._read_yaml(path)
                self._config_path = path
                self._config_sources.update(
                    {key: f"file:{path.name}" for key in config_data}
                )
                logger.debug("Loaded user configuration from %s", path)
                break
        else:
            logger.debug("No user configuration file found, using defaults")

        try:
            self._config = UserConfigData(**config_data)
        except ValidationError as e:
            raise ConfigError(
                f"Invalid configuration: {e}",
                context={"path": str(self._config_path) if self._config_path else None},
            ) from e

        for env_name in os.environ:
            if env_name.upper().startswith(ENV_PREFIX):
                key = env_name[len(ENV_PREFIX) :].lower()
                if key in UserConfigData.model_fields:
                    self._config_sources[key] = "environment"

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        try:
            content = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Malformed configuration file {path}: {e}", context={"path": str(path)}
            ) from e
        except OSError as e:
            raise ConfigError(
                f"Cannot read configuration file {path}: {e}", context={"path": str(path)}
            ) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(
                f"Configuration file {path} must contain a mapping",
                context={"path": str(path)},
            )
        return content

    def get_source(self, key: str) -> str:
        """Return where a setting came from: a file, the environment or default."""
        return self._config_sources.get(key, "default")

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self._config, key, default)


def create_user_config(cli_config_path: str | Path | None = None) -> UserConfig:
    """Create a UserConfig instance, optionally from a CLI supplied path."""
    return UserConfig(cli_config_path=cli_config_path)
