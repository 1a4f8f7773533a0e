"""Plugin loader: feeds bundled (core) and on-disk (community) plugins into the host."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict

from fluxhost.plugins.base import PluginLoadResult, PluginSource
from fluxhost.plugins.discovery import CommunityPluginMeta, discover_community_plugins

if TYPE_CHECKING:
    from fluxhost.host import PluginHost
    from fluxhost.plugins.base import FluxelPlugin

logger = structlog.get_logger()

COMMUNITY_LOADING_NOT_IMPLEMENTED = "Community plugin loading not yet fully implemented"

DiscoverFn = Callable[[Path], list[CommunityPluginMeta]]


class LoadAllResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    core: list[PluginLoadResult]
    community: list[PluginLoadResult]


class PluginLoader:
    def __init__(
        self, host: PluginHost, discover: DiscoverFn = discover_community_plugins
    ) -> None:
        self._host = host
        self._discover = discover
        self._core_plugins: list[FluxelPlugin] = []
        self._community_plugins_path: Path | None = None

    def register_core_plugin(self, plugin: FluxelPlugin) -> None:
        plugin_id = plugin.manifest.id
        if any(p.manifest.id == plugin_id for p in self._core_plugins):
            logger.info("core_plugin_already_added", plugin_id=plugin_id)
            return
        self._core_plugins.append(plugin)
        logger.info("core_plugin_added", plugin_id=plugin_id)

    def get_core_plugins(self) -> list[FluxelPlugin]:
        return list(self._core_plugins)

    def set_community_plugins_path(self, path: Path | str) -> None:
        self._community_plugins_path = Path(path)
        logger.info("community_plugins_path_set", path=str(self._community_plugins_path))

    @property
    def community_plugins_path(self) -> Path | None:
        return self._community_plugins_path

    async def load_core_plugins(self) -> list[PluginLoadResult]:
        results: list[PluginLoadResult] = []
        for plugin in self._core_plugins:
            plugin_id = plugin.manifest.id
            try:
                await self._host.register(plugin, PluginSource.CORE)
                results.append(
                    PluginLoadResult(success=True, plugin_id=plugin_id, plugin=plugin)
                )
            except Exception as e:
                logger.exception("core_plugin_load_failed", plugin_id=plugin_id)
                results.append(
                    PluginLoadResult(success=False, plugin_id=plugin_id, error=str(e))
                )

        logger.info(
            "core_plugins_loaded",
            loaded=sum(r.success for r in results),
            total=len(self._core_plugins),
        )
        return results

    async def load_community_plugins(self) -> list[PluginLoadResult]:
        if self._community_plugins_path is None:
            logger.info("community_plugins_path_not_configured")
            return []

        try:
            metas = await asyncio.to_thread(self._discover, self._community_plugins_path)
        except Exception as e:
            logger.warning("community_plugin_discovery_unavailable", error=str(e))
            metas = []

        results = [await self._load_community_plugin(meta) for meta in metas]
        logger.info(
            "community_plugins_loaded",
            loaded=sum(r.success for r in results),
            total=len(metas),
        )
        return results

    async def _load_community_plugin(self, meta: CommunityPluginMeta) -> PluginLoadResult:
        # TODO: import the entry point (meta.main) once a loading strategy for
        # untrusted plugin code is chosen; until then discovery is metadata only.
        logger.warning(
            "community_plugin_loading_not_implemented",
            plugin_id=meta.id,
            path=str(meta.path),
        )
        return PluginLoadResult(
            success=False, plugin_id=meta.id, error=COMMUNITY_LOADING_NOT_IMPLEMENTED
        )

    async def load_all_plugins(self) -> LoadAllResult:
        core = await self.load_core_plugins()
        community = await self.load_community_plugins()
        return LoadAllResult(core=core, community=community)

    def clear(self) -> None:
        self._core_plugins.clear()
