"""Core plugins bundled with fluxhost.

To add one: create it under ``fluxhost/plugins/builtin/<name>/``, register it
in ``register_core_plugins`` and list its id in ``CORE_PLUGIN_IDS``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from fluxhost.plugins.builtin.s1api import S1APIPlugin

if TYPE_CHECKING:
    from fluxhost.plugins.loader import PluginLoader

logger = structlog.get_logger()

CORE_PLUGIN_IDS = ("fluxel.s1api",)


def register_core_plugins(loader: PluginLoader, *, detection_threshold: float = 0.3) -> None:
    loader.register_core_plugin(S1APIPlugin(detection_threshold))
    logger.info("core_plugins_registered", plugin_ids=list(CORE_PLUGIN_IDS))
