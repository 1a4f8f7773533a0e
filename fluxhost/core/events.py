"""Lightweight event bus for plugin lifecycle and detection events."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from fluxhost.core.disposable import CallbackDisposable

logger = structlog.get_logger()


class PluginEventType(str, Enum):
    PLUGIN_REGISTERED = "plugin:registered"
    PLUGIN_ACTIVATED = "plugin:activated"
    PLUGIN_DEACTIVATED = "plugin:deactivated"
    PLUGIN_ERROR = "plugin:error"
    PROJECT_DETECTED = "project:detected"


class PluginEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: PluginEventType
    plugin_id: str | None = None
    data: Any = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


# Listeners may be plain callables or coroutine functions.
EventListener = Callable[[PluginEvent], Awaitable[None] | None]


class EventBus:
    def __init__(self) -> None:
        self._listeners: dict[PluginEventType, list[EventListener]] = {
            event_type: [] for event_type in PluginEventType
        }

    def on(
        self, event_type: PluginEventType | str, listener: EventListener
    ) -> CallbackDisposable:
        key = PluginEventType(event_type)
        listeners = self._listeners[key]
        if listener not in listeners:
            listeners.append(listener)
        return CallbackDisposable(lambda: self.off(key, listener))

    def off(self, event_type: PluginEventType | str, listener: EventListener) -> None:
        listeners = self._listeners[PluginEventType(event_type)]
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event_type: PluginEventType | str) -> int:
        return len(self._listeners[PluginEventType(event_type)])

    async def emit(self, event: PluginEvent) -> None:
        # Snapshot so listeners can unsubscribe while being notified.
        for listener in list(self._listeners[event.type]):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "event_listener_error",
                    event_type=event.type.value,
                    plugin_id=event.plugin_id,
                    listener_name=getattr(listener, "__name__", repr(listener)),
                )

    def clear(self) -> None:
        for listeners in self._listeners.values():
            listeners.clear()
