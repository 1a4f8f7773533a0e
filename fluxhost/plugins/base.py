"""Plugin protocol, manifest and registry records."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from fluxhost.plugins.context import PluginContext

ON_STARTUP = "onStartup"
WILDCARD = "*"
_EVENT_PREFIXES = ("onLanguage:", "onProject:", "onCommand:")


def on_language(language_id: str) -> str:
    return f"onLanguage:{language_id}"


def on_project(project_type: str) -> str:
    return f"onProject:{project_type}"


def on_command(command_id: str) -> str:
    return f"onCommand:{command_id}"


def is_valid_activation_event(event: str) -> bool:
    if event in (ON_STARTUP, WILDCARD):
        return True
    for prefix in _EVENT_PREFIXES:
        if event.startswith(prefix) and len(event) > len(prefix):
            return True
    return False


class PluginState(str, Enum):
    INACTIVE = "inactive"
    ACTIVATING = "activating"
    ACTIVE = "active"
    DEACTIVATING = "deactivating"
    ERROR = "error"


class PluginSource(str, Enum):
    CORE = "core"
    COMMUNITY = "community"


class PluginManifest(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    version: str
    description: str | None = None
    author: str | None = None
    repository: str | None = None
    activation_events: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    is_core: bool = False

    @field_validator("activation_events")
    @classmethod
    def check_activation_events(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for event in v:
            if not is_valid_activation_event(event):
                raise ValueError(f"invalid activation event: {event!r}")
        # Ordered set: keep first occurrence of each pattern.
        return tuple(dict.fromkeys(v))

    def matches(self, event: str) -> bool:
        """Exact-or-wildcard match; no prefix or glob semantics."""
        return event in self.activation_events or WILDCARD in self.activation_events

    @property
    def activates_on_startup(self) -> bool:
        return ON_STARTUP in self.activation_events or WILDCARD in self.activation_events


@runtime_checkable
class FluxelPlugin(Protocol):
    manifest: PluginManifest

    async def activate(self, context: PluginContext) -> None:
        """Called on activation: register capabilities through *context*."""
        ...


class RegisteredPlugin(BaseModel):
    """Mutable registry entry; state is changed by the activation coordinator only."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    manifest: PluginManifest
    state: PluginState = PluginState.INACTIVE
    instance: Any = None  # FluxelPlugin
    source: PluginSource = PluginSource.CORE
    path: Path | None = None
    error: str | None = None

    @property
    def id(self) -> str:
        return self.manifest.id


class ActivationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    plugin_id: str
    success: bool
    error: str | None = None
    activation_time_ms: float = 0.0


class PluginLoadResult(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    success: bool
    plugin_id: str | None = None
    plugin: Any = None  # FluxelPlugin
    error: str | None = None
