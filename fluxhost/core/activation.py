"""Activation coordinator: per-plugin state machine and dependency resolution.

States move ``inactive -> activating -> active`` and
``active -> deactivating -> inactive``; any failure lands in ``error``, from
which the plugin may be activated again.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from fluxhost.core.events import EventBus, PluginEvent, PluginEventType
from fluxhost.exceptions import PluginError
from fluxhost.plugins.base import ActivationResult, PluginState, RegisteredPlugin
from fluxhost.plugins.context import PluginContext, dispose_plugin_context

if TYPE_CHECKING:
    from fluxhost.core.detection import ProjectDetector
    from fluxhost.core.disposable import Disposable
    from fluxhost.runtime import HostRuntime

logger = structlog.get_logger()

HOST_NOT_INITIALIZED = "Plugin host not initialized (Monaco not available)"
ALREADY_ACTIVATING = "Plugin is already activating"


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


class ActivationCoordinator:
    def __init__(
        self,
        plugins: dict[str, RegisteredPlugin],
        event_bus: EventBus,
        get_runtime: Callable[[], HostRuntime | None],
        get_workspace_root: Callable[[], Path | None],
        register_project_detector: Callable[[ProjectDetector], Disposable],
    ) -> None:
        self._plugins = plugins
        self._event_bus = event_bus
        self._get_runtime = get_runtime
        self._get_workspace_root = get_workspace_root
        self._register_project_detector = register_project_detector
        self._contexts: dict[str, PluginContext] = {}

    def get_context(self, plugin_id: str) -> PluginContext | None:
        return self._contexts.get(plugin_id)

    def _set_state(
        self, plugin_id: str, state: PluginState, error: str | None = None
    ) -> None:
        registered = self._plugins.get(plugin_id)
        if registered is not None:
            registered.state = state
            registered.error = error

    async def activate(
        self, plugin_id: str, _visiting: tuple[str, ...] = ()
    ) -> ActivationResult:
        start = time.monotonic()
        registered = self._plugins.get(plugin_id)

        if registered is None:
            return ActivationResult(
                plugin_id=plugin_id,
                success=False,
                error=f"Plugin {plugin_id} not found",
            )

        if registered.state == PluginState.ACTIVE:
            return ActivationResult(plugin_id=plugin_id, success=True)

        if registered.state == PluginState.ACTIVATING:
            return ActivationResult(
                plugin_id=plugin_id, success=False, error=ALREADY_ACTIVATING
            )

        runtime = self._get_runtime()
        if runtime is None:
            return ActivationResult(
                plugin_id=plugin_id, success=False, error=HOST_NOT_INITIALIZED
            )

        visiting = (*_visiting, plugin_id)
        for dep_id in registered.manifest.dependencies:
            dep = self._plugins.get(dep_id)
            if dep is not None and dep.state == PluginState.ACTIVE:
                continue
            if dep_id in visiting:
                cycle = " -> ".join((*visiting, dep_id))
                dep_result = ActivationResult(
                    plugin_id=dep_id,
                    success=False,
                    error=f"Circular dependency: {cycle}",
                )
            else:
                dep_result = await self.activate(dep_id, visiting)
            if not dep_result.success:
                # Dependent's state stays unchanged on dependency failure.
                logger.warning(
                    "plugin_dependency_failed",
                    plugin_id=plugin_id,
                    dependency=dep_id,
                    error=dep_result.error,
                )
                return ActivationResult(
                    plugin_id=plugin_id,
                    success=False,
                    error=f"Failed to activate dependency {dep_id}: {dep_result.error}",
                    activation_time_ms=_elapsed_ms(start),
                )

        self._set_state(plugin_id, PluginState.ACTIVATING)

        stale = self._contexts.pop(plugin_id, None)
        if stale is not None:
            # Left behind by an earlier failed activation or deactivation.
            dispose_plugin_context(stale)

        try:
            context = PluginContext(
                plugin_id,
                runtime,
                self._get_workspace_root,
                self._register_project_detector,
            )
            self._contexts[plugin_id] = context

            if registered.instance is None:
                raise PluginError(f"Plugin {plugin_id} has no instance to activate")
            await registered.instance.activate(context)
        except Exception as e:
            message = str(e) or type(e).__name__
            self._set_state(plugin_id, PluginState.ERROR, message)
            logger.exception("plugin_activation_failed", plugin_id=plugin_id)
            await self._event_bus.emit(
                PluginEvent(
                    type=PluginEventType.PLUGIN_ERROR,
                    plugin_id=plugin_id,
                    data={"error": message},
                )
            )
            return ActivationResult(
                plugin_id=plugin_id,
                success=False,
                error=message,
                activation_time_ms=_elapsed_ms(start),
            )

        self._set_state(plugin_id, PluginState.ACTIVE)
        activation_time_ms = _elapsed_ms(start)
        logger.info(
            "plugin_activated",
            plugin_id=plugin_id,
            activation_time_ms=round(activation_time_ms, 2),
        )
        await self._event_bus.emit(
            PluginEvent(
                type=PluginEventType.PLUGIN_ACTIVATED,
                plugin_id=plugin_id,
                data={"activation_time_ms": activation_time_ms},
            )
        )
        return ActivationResult(
            plugin_id=plugin_id, success=True, activation_time_ms=activation_time_ms
        )

    async def deactivate(self, plugin_id: str) -> None:
        registered = self._plugins.get(plugin_id)
        if registered is None or registered.state != PluginState.ACTIVE:
            return

        self._set_state(plugin_id, PluginState.DEACTIVATING)

        try:
            deactivate_hook = getattr(registered.instance, "deactivate", None)
            if deactivate_hook is not None:
                await deactivate_hook()

            context = self._contexts.pop(plugin_id, None)
            if context is not None:
                dispose_plugin_context(context)

            self._set_state(plugin_id, PluginState.INACTIVE)
            logger.info("plugin_deactivated", plugin_id=plugin_id)
            await self._event_bus.emit(
                PluginEvent(type=PluginEventType.PLUGIN_DEACTIVATED, plugin_id=plugin_id)
            )
        except Exception as e:
            self._set_state(plugin_id, PluginState.ERROR, str(e) or type(e).__name__)
            logger.exception("plugin_deactivation_failed", plugin_id=plugin_id)

    def clear(self) -> None:
        # Contexts left by failed activations or deactivations still hold registrations.
        for context in self._contexts.values():
            dispose_plugin_context(context)
        self._contexts.clear()
