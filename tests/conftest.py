"""Shared fixtures and stub plugins for testing."""

from __future__ import annotations

import inspect
import os
from collections.abc import Callable
from typing import Any

import pytest

from fluxhost.core.config import HostConfig
from fluxhost.core.detection import DetectedProject
from fluxhost.core.events import EventBus
from fluxhost.host import PluginHost
from fluxhost.plugins.base import PluginManifest
from fluxhost.plugins.features import HoverInfo, Position, TextDocument
from fluxhost.runtime import EditorRuntime


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep the developer's .env and FLUXHOST_* variables out of tests."""
    monkeypatch.setitem(HostConfig.model_config, "env_file", None)
    for key in list(os.environ):
        if key.startswith("FLUXHOST_"):
            monkeypatch.delenv(key, raising=False)


class StubPlugin:
    """In-memory plugin that records its lifecycle calls."""

    def __init__(
        self,
        plugin_id: str = "stub",
        *,
        activation_events: tuple[str, ...] = (),
        dependencies: tuple[str, ...] = (),
        on_activate: Callable[[Any], Any] | None = None,
        activate_error: Exception | None = None,
        deactivate_error: Exception | None = None,
        log: list[str] | None = None,
    ) -> None:
        self.manifest = PluginManifest(
            id=plugin_id,
            name=f"{plugin_id} plugin",
            version="1.0.0",
            activation_events=activation_events,
            dependencies=dependencies,
        )
        self.activate_calls = 0
        self.deactivate_calls = 0
        self.contexts: list[Any] = []
        self._on_activate = on_activate
        self._activate_error = activate_error
        self._deactivate_error = deactivate_error
        self._log = log if log is not None else []

    async def activate(self, context) -> None:
        self.activate_calls += 1
        self.contexts.append(context)
        self._log.append(f"activate:{self.manifest.id}")
        if self._on_activate is not None:
            result = self._on_activate(context)
            if inspect.isawaitable(result):
                await result
        if self._activate_error is not None:
            raise self._activate_error

    async def deactivate(self) -> None:
        self.deactivate_calls += 1
        self._log.append(f"deactivate:{self.manifest.id}")
        if self._deactivate_error is not None:
            raise self._deactivate_error


class StaticHoverProvider:
    def __init__(self, text: str = "docs") -> None:
        self.text = text
        self.calls = 0

    def provide_hover(self, document: TextDocument, position: Position) -> HoverInfo:
        self.calls += 1
        return HoverInfo(contents=[self.text])


class StaticDetector:
    def __init__(
        self,
        detector_id: str,
        project_type: str,
        *,
        confidence: float = 0.9,
        found: bool = True,
        error: Exception | None = None,
    ) -> None:
        self.id = detector_id
        self.project_type = project_type
        self.confidence = confidence
        self.found = found
        self.error = error
        self.calls = 0

    async def detect(self, workspace_root):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if not self.found:
            return None
        return DetectedProject(
            type=self.project_type,
            name=f"{self.project_type} project",
            confidence=self.confidence,
        )


@pytest.fixture
def make_plugin():
    return StubPlugin


@pytest.fixture
def make_detector():
    return StaticDetector


@pytest.fixture
def make_hover_provider():
    return StaticHoverProvider


@pytest.fixture
def runtime():
    return EditorRuntime()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def bare_host():
    return PluginHost()


@pytest.fixture
def host(runtime):
    h = PluginHost()
    h.initialize(runtime)
    return h


@pytest.fixture
def csharp_document():
    return TextDocument(
        uri="file:///ws/MyApp.cs",
        language_id="csharp",
        text="public class MyApp : PhoneApp\n{\n    var p = UIFactory.Panel(\n}\n",
    )
