"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (DEVHELPER__WEB__PORT=8000)
  2. devhelper.yaml         (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The settings file is optional. The project registry (``projects.yml``) is a
separate document, see registry.py.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("devhelper")
_DEFAULT_REGISTRY_PATH = str(Path(_DEFAULT_CONFIG_DIR) / "projects.yml")


def _find_config_file() -> str | None:
    """Return the path of the first devhelper.yaml found, or None."""
    candidates = [
        Path("devhelper.yaml"),
        Path(_DEFAULT_CONFIG_DIR) / "devhelper.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class RegistrySettings(BaseModel):
    path: str = _DEFAULT_REGISTRY_PATH


class WebSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 7777
    auth_enabled: bool = False
    auth_key: str = ""
    # Non-localhost origins allowed to call the API, e.g. editor webviews
    allowed_origin_prefixes: list[str] = Field(default_factory=lambda: ["vscode-webview://"])


class WatcherSettings(BaseModel):
    enabled: bool = True
    # Stat polling instead of native events (network mounts, containers)
    polling: bool = False
    polling_interval_seconds: float = 1.0


class SearchSettings(BaseModel):
    max_results: int = 100


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: DEVHELPER__WEB__PORT=9090
        env_prefix="DEVHELPER__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    registry: RegistrySettings = RegistrySettings()
    web: WebSettings = WebSettings()
    watcher: WatcherSettings = WatcherSettings()
    search: SearchSettings = SearchSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def registry_path(self) -> Path:
        return Path(self.registry.path).expanduser()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
