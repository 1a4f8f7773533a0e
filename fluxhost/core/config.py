"""Unified configuration via pydantic-settings."""

from pathlib import Path

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fluxhost.exceptions import ConfigError


def default_community_plugins_path() -> Path:
    """Community plugins live in ``~/.fluxel/plugins`` on every platform."""
    return Path.home() / ".fluxel" / "plugins"


class HostConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FLUXHOST_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Workspace
    workspace_root: Path | None = None

    # Plugins
    community_plugins_path: Path = default_community_plugins_path()
    load_community_plugins: bool = True

    # Detection
    detection_confidence_threshold: float = 0.3

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None
    log_max_bytes: int = 10_485_760
    log_backup_count: int = 5

    @field_validator("workspace_root")
    @classmethod
    def resolve_workspace_root(cls, v: Path | None) -> Path | None:
        if v is None:
            return None
        resolved = v.expanduser().resolve()
        if not resolved.is_dir():
            raise ValueError(f"workspace root does not exist: {resolved}")
        return resolved

    @field_validator("community_plugins_path")
    @classmethod
    def expand_community_plugins_path(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("detection_confidence_threshold")
    @classmethod
    def check_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("detection_confidence_threshold must be within 0..1")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


def load_config(workspace_root: Path | str | None = None) -> HostConfig:
    """Build a ``HostConfig``, raising ``ConfigError`` with the validation details."""
    overrides = {} if workspace_root is None else {"workspace_root": Path(workspace_root)}
    try:
        return HostConfig(**overrides)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
