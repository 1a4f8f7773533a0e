"""Plugin host: the single source of truth for plugin records and workspace state.

Composes the event bus, the project detection engine and the activation
coordinator. Construct one per application in ``fluxhost.app`` and pass it
around; there is no module-level instance.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from fluxhost.core.activation import ActivationCoordinator
from fluxhost.core.detection import DetectedProject, ProjectDetectionEngine
from fluxhost.core.events import EventBus, PluginEvent, PluginEventType
from fluxhost.plugins.base import (
    ActivationResult,
    PluginSource,
    PluginState,
    RegisteredPlugin,
    on_project,
)

if TYPE_CHECKING:
    from fluxhost.core.disposable import Disposable
    from fluxhost.core.events import EventListener
    from fluxhost.plugins.base import FluxelPlugin
    from fluxhost.plugins.context import PluginContext
    from fluxhost.runtime import HostRuntime

logger = structlog.get_logger()


class PluginHost:
    def __init__(self) -> None:
        self._plugins: dict[str, RegisteredPlugin] = {}
        self._event_bus = EventBus()
        self._runtime: HostRuntime | None = None
        self._workspace_root: Path | None = None
        self._initialized = False
        self._background_tasks: set[asyncio.Task[Any]] = set()

        self._detection = ProjectDetectionEngine(
            get_workspace_root=self.get_workspace_root,
            on_detected=self._on_project_detected,
            spawn=self._spawn,
        )
        self._coordinator = ActivationCoordinator(
            plugins=self._plugins,
            event_bus=self._event_bus,
            get_runtime=lambda: self._runtime,
            get_workspace_root=self.get_workspace_root,
            register_project_detector=self._detection.register_project_detector,
        )

    # -- setup ---------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def runtime(self) -> HostRuntime | None:
        return self._runtime

    def initialize(self, runtime: HostRuntime) -> None:
        if self._initialized:
            logger.warning("plugin_host_already_initialized")
            return
        self._runtime = runtime
        self._initialized = True
        logger.info("plugin_host_initialized")

    def set_workspace_root(self, root: Path | str | None) -> None:
        """Update the workspace root; a new non-null root re-runs detection in the background."""
        previous = self._workspace_root
        self._workspace_root = Path(root) if root is not None else None

        if self._workspace_root is not None and self._workspace_root != previous:
            logger.info("workspace_root_changed", workspace_root=str(self._workspace_root))
            self._spawn(self.detect_projects())

    def get_workspace_root(self) -> Path | None:
        return self._workspace_root

    # -- background work -----------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any] | None:
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            logger.warning("background_task_skipped_no_event_loop")
            return None
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for fire-and-forget activations and detections, including ones they start."""
        current = asyncio.current_task()
        while True:
            pending = [
                t for t in self._background_tasks if t is not current and not t.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # -- registration & lifecycle -------------------------------------------

    async def register(
        self,
        plugin: FluxelPlugin,
        source: PluginSource | str = PluginSource.CORE,
        path: Path | str | None = None,
    ) -> None:
        manifest = plugin.manifest
        if manifest.id in self._plugins:
            logger.warning("plugin_already_registered", plugin_id=manifest.id)
            return

        source = PluginSource(source)
        registered = RegisteredPlugin(
            manifest=manifest.model_copy(
                update={"is_core": source == PluginSource.CORE}
            ),
            instance=plugin,
            source=source,
            path=Path(path) if path is not None else None,
        )
        self._plugins[manifest.id] = registered
        logger.info("plugin_registered", plugin_id=manifest.id, source=source.value)

        await self._event_bus.emit(
            PluginEvent(
                type=PluginEventType.PLUGIN_REGISTERED,
                plugin_id=manifest.id,
                data=registered.manifest,
            )
        )

        if registered.manifest.activates_on_startup:
            self._spawn(self._activate_in_background(manifest.id))

    async def _activate_in_background(self, plugin_id: str) -> ActivationResult:
        result = await self.activate_plugin(plugin_id)
        if not result.success:
            logger.warning(
                "plugin_startup_activation_failed",
                plugin_id=plugin_id,
                error=result.error,
            )
        return result

    async def activate_plugin(self, plugin_id: str) -> ActivationResult:
        return await self._coordinator.activate(plugin_id)

    async def deactivate_plugin(self, plugin_id: str) -> None:
        await self._coordinator.deactivate(plugin_id)

    async def trigger_activation(self, event: str) -> None:
        matching = [
            plugin_id
            for plugin_id, p in self._plugins.items()
            if p.state == PluginState.INACTIVE and p.manifest.matches(event)
        ]
        if matching:
            logger.info(
                "activation_triggered", activation_event=event, plugin_ids=matching
            )
        for plugin_id in matching:
            await self.activate_plugin(plugin_id)

    # -- detection -----------------------------------------------------------

    async def _on_project_detected(self, project: DetectedProject) -> None:
        await self._event_bus.emit(
            PluginEvent(type=PluginEventType.PROJECT_DETECTED, data=project)
        )
        await self.trigger_activation(on_project(project.type))

    async def detect_projects(self) -> list[DetectedProject]:
        return await self._detection.detect_projects()

    def get_detected_projects(self) -> list[DetectedProject]:
        return self._detection.get_detected_projects()

    # -- reads ---------------------------------------------------------------

    def get_plugins(self) -> list[RegisteredPlugin]:
        return list(self._plugins.values())

    def get_plugin(self, plugin_id: str) -> RegisteredPlugin | None:
        return self._plugins.get(plugin_id)

    def get_plugin_context(self, plugin_id: str) -> PluginContext | None:
        return self._coordinator.get_context(plugin_id)

    def is_plugin_active(self, plugin_id: str) -> bool:
        plugin = self._plugins.get(plugin_id)
        return plugin is not None and plugin.state == PluginState.ACTIVE

    def on(
        self, event_type: PluginEventType | str, listener: EventListener
    ) -> Disposable:
        return self._event_bus.on(event_type, listener)

    # -- teardown ------------------------------------------------------------

    async def dispose(self) -> None:
        logger.info("plugin_host_disposing")

        active = [pid for pid, p in self._plugins.items() if p.state == PluginState.ACTIVE]
        for plugin_id in active:
            await self.deactivate_plugin(plugin_id)

        current = asyncio.current_task()
        for task in list(self._background_tasks):
            if task is not current:
                task.cancel()

        self._plugins.clear()
        self._coordinator.clear()
        self._detection.clear()
        self._event_bus.clear()
        self._runtime = None
        self._initialized = False

        logger.info("plugin_host_disposed", deactivated=len(active))
