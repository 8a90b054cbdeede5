# src/parlaypro/config.py
"""
Pydantic models for ParlayPro configuration.

``AppConfig`` is a pydantic-settings ``BaseSettings``: a TOML file supplies
the base values and environment variables override them, so a deployment
can run entirely from the environment.

Configuration files (first match wins):
    - Explicit path passed to ``load_config(path=...)``
    - ``$PARLAYPRO_CONFIG``
    - User config: ``~/.config/parlaypro/config.toml``

Environment variables:
    - Prefix: PARLAYPRO_
    - Nested keys use double underscores: PARLAYPRO_REMOTE__TIMEOUT_SECONDS
    - Well-known names are also honoured and take precedence: SUPABASE_URL,
      SUPABASE_ANON_KEY, GEMINI_API_KEY (or GOOGLE_API_KEY)

Example TOML::

    [storage]
    key_prefix = "parlaypro_cache_v1_"
    local_backend = "sqlite"

    [remote]
    url = "https://xyz.supabase.co"
    api_key = "..."

    [gemini]
    model = "gemini-2.5-flash"
"""

from __future__ import annotations

import logging
import os
import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, ValidationError, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
    TomlConfigSettingsSource,
)

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "PARLAYPRO_"
DEFAULT_CONFIG_PATH = Path("~/.config/parlaypro/config.toml")

# TOML file read by the next AppConfig() built on this context
_config_file: ContextVar[Path | None] = ContextVar("parlaypro_config_file", default=None)


# ==============================================================================
# Section Models
# ==============================================================================


class StorageConfig(BaseModel):
    """
    Local tier and cache policy settings.

    Attributes:
        key_prefix: Fixed prefix for every local key this service writes.
        local_backend: ``"sqlite"`` for a file-backed store, ``"memory"`` for
            a process-local store (tests, throwaway sessions).
        sqlite_path: Location of the SQLite file for the sqlite backend.
        max_local_bytes: Quota for the local tier (0 = unlimited).
        eviction_batch_size: Entries removed per quota-triggered eviction.
        matchup_ttl_seconds: Validity window of matchup analysis entries.
        schedule_ttl_seconds: Validity window of schedule entries.
    """

    key_prefix: str = Field(default="parlaypro_cache_v1_", min_length=1)
    local_backend: Literal["sqlite", "memory"] = Field(default="sqlite")
    sqlite_path: str = Field(default="~/.local/share/parlaypro/cache.db")
    max_local_bytes: int = Field(default=5 * 1024 * 1024, ge=0)
    eviction_batch_size: int = Field(default=5, ge=1, le=1000)
    matchup_ttl_seconds: float = Field(default=24 * 60 * 60, gt=0)
    schedule_ttl_seconds: float = Field(default=6 * 60 * 60, gt=0)


class RemoteStoreConfig(BaseModel):
    """Supabase (PostgREST) connection settings. Empty url/key = no remote tier."""

    url: str = Field(default="", description="Project URL, e.g. https://xyz.supabase.co")
    api_key: str = Field(default="", description="Anon or service key")
    timeout_seconds: float = Field(default=10.0, gt=0)
    matchup_table: str = Field(default="matchup_cache")
    schedule_table: str = Field(default="schedule_cache")

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.api_key)


class GeminiConfig(BaseModel):
    """Google Gemini settings for the matchup analyst."""

    api_key: str = Field(default="")
    model: str = Field(default="gemini-2.5-flash")
    use_search_grounding: bool = Field(default=True)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)


class LoggingConfig(BaseModel):
    """Mirrors the keys understood by ``parlaypro.logging_config``."""

    console_enabled: bool = False
    console_level: str = "WARNING"
    file_enabled: bool = False
    file_level: str = "DEBUG"
    file_directory: str = "~/.local/share/parlaypro/logs"
    display_min_level: str = "INFO"
    components: dict[str, str] = Field(default_factory=dict)


class AppConfig(BaseSettings):
    """
    Complete ParlayPro configuration.

    Sources, highest priority first: constructor arguments, environment
    variables, the TOML file selected by ``load_config``.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    remote: RemoteStoreConfig = Field(default_factory=RemoteStoreConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Well-known variable names, folded into the sections above
    supabase_url: str = Field(
        default="", validation_alias=AliasChoices("SUPABASE_URL"), exclude=True, repr=False
    )
    supabase_anon_key: str = Field(
        default="", validation_alias=AliasChoices("SUPABASE_ANON_KEY"), exclude=True, repr=False
    )
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
        exclude=True,
        repr=False,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=_config_file.get()),
        )

    @model_validator(mode="after")
    def _apply_well_known_names(self) -> AppConfig:
        if self.supabase_url.strip():
            self.remote.url = self.supabase_url.strip()
        if self.supabase_anon_key.strip():
            self.remote.api_key = self.supabase_anon_key.strip()
        if self.gemini_api_key.strip():
            self.gemini.api_key = self.gemini_api_key.strip()
        return self


# ==============================================================================
# Loading
# ==============================================================================


def _resolve_path(path: str | Path | None) -> Path | None:
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        return config_path

    candidate = os.environ.get(f"{ENV_PREFIX}CONFIG")
    config_path = Path(candidate).expanduser() if candidate else DEFAULT_CONFIG_PATH.expanduser()
    return config_path if config_path.is_file() else None


def load_config(path: str | Path | None = None) -> AppConfig:
    """
    Load configuration from TOML and the environment.

    Args:
        path: Explicit TOML file. Must exist when given.

    Returns:
        Validated AppConfig.

    Raises:
        ConfigError: Unreadable file or values that fail validation.
    """
    config_path = _resolve_path(path)
    token = _config_file.set(config_path)
    try:
        config = AppConfig()
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except (ValidationError, SettingsError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    finally:
        _config_file.reset(token)

    if config_path is not None:
        logger.debug("Loaded config from %s", config_path)
    return config
