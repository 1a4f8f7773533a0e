"""S1API plugin: support for S1API (Schedule One) mod development.

Activates on ``onLanguage:csharp`` or ``onProject:s1api`` and registers a
project detector, token rules, completions and hover documentation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from fluxhost.plugins.builtin.s1api.detector import S1APIProjectDetector
from fluxhost.plugins.builtin.s1api.hover import register_s1api_hover
from fluxhost.plugins.builtin.s1api.intellisense import register_s1api_intellisense
from fluxhost.plugins.builtin.s1api.manifest import S1API_PLUGIN_MANIFEST
from fluxhost.plugins.builtin.s1api.syntax import register_s1api_syntax

if TYPE_CHECKING:
    from fluxhost.plugins.context import PluginContext

logger = structlog.get_logger()


class S1APIPlugin:
    manifest = S1API_PLUGIN_MANIFEST

    def __init__(self, detection_threshold: float = 0.3) -> None:
        self._detector = S1APIProjectDetector(detection_threshold)

    async def activate(self, context: PluginContext) -> None:
        context.log("Activating S1API plugin...")
        context.register_project_detector(self._detector)
        register_s1api_syntax(context)
        register_s1api_intellisense(context)
        register_s1api_hover(context)
        context.log("S1API plugin activated successfully")

    async def deactivate(self) -> None:
        # Registrations are released through the context's subscriptions.
        logger.info("s1api_plugin_deactivating")


__all__ = ["S1APIPlugin", "S1API_PLUGIN_MANIFEST"]
