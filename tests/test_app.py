"""Tests for the application bootstrap."""

from __future__ import annotations

import logging
import logging.handlers
from unittest.mock import patch

import pytest
import structlog

from fluxhost.app import Application, build_application, configure_logging, start_application
from fluxhost.core.config import HostConfig
from fluxhost.host import PluginHost
from fluxhost.plugins.loader import PluginLoader
from fluxhost.runtime import EditorRuntime

S1API_CSPROJ = '<Project><ItemGroup><PackageReference Include="S1API" /></ItemGroup></Project>'


def _patched_build_application(**kwargs):
    """Call build_application with logging setup patched to avoid side effects."""
    with patch("fluxhost.app.configure_logging"):
        return build_application(**kwargs)


@pytest.fixture
def config(tmp_path):
    return HostConfig(community_plugins_path=tmp_path / "community")


class TestBuildApplication:
    def test_returns_wired_application(self, config):
        app = _patched_build_application(config=config)

        assert isinstance(app, Application)
        assert isinstance(app.host, PluginHost)
        assert isinstance(app.loader, PluginLoader)
        assert isinstance(app.runtime, EditorRuntime)
        assert app.host.initialized is True
        assert app.host.runtime is app.runtime

    def test_core_plugins_registered(self, config):
        app = _patched_build_application(config=config)
        assert [p.manifest.id for p in app.loader.get_core_plugins()] == ["fluxel.s1api"]

    def test_community_path_configured(self, config, tmp_path):
        app = _patched_build_application(config=config)
        assert app.loader.community_plugins_path == tmp_path / "community"

    def test_community_loading_disabled(self, tmp_path):
        config = HostConfig(load_community_plugins=False)
        app = _patched_build_application(config=config)
        assert app.loader.community_plugins_path is None

    def test_custom_runtime_used(self, config):
        runtime = EditorRuntime()
        app = _patched_build_application(config=config, runtime=runtime)
        assert app.runtime is runtime

    def test_skip_logging_setup(self, config):
        with patch("fluxhost.app.configure_logging") as configure:
            build_application(config=config, setup_logging=False)
        configure.assert_not_called()

    def test_logging_configured_with_log_dir(self, tmp_path):
        config = HostConfig(log_dir=tmp_path / "logs", load_community_plugins=False)
        with patch("fluxhost.app.configure_logging") as configure:
            build_application(config=config)
        configure.assert_called_once_with(config, log_dir=tmp_path / "logs")


class TestStartApplication:
    @pytest.mark.asyncio
    async def test_loads_plugins_without_workspace(self, config):
        app = _patched_build_application(config=config)

        await start_application(app)

        assert [p.id for p in app.host.get_plugins()] == ["fluxel.s1api"]
        assert not app.host.is_plugin_active("fluxel.s1api")
        assert app.host.get_detected_projects() == []

    @pytest.mark.asyncio
    async def test_activation_event_and_detection(self, tmp_path):
        workspace = tmp_path / "mod"
        workspace.mkdir()
        (workspace / "MyMod.csproj").write_text(S1API_CSPROJ)
        config = HostConfig(workspace_root=workspace, load_community_plugins=False)
        app = _patched_build_application(config=config)

        await start_application(app, ["onLanguage:csharp"])

        assert app.host.is_plugin_active("fluxel.s1api")
        assert [p.type for p in app.host.get_detected_projects()] == ["s1api"]
        assert app.host.get_workspace_root() == workspace.resolve()


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_console_only(self, restore_logging):
        configure_logging(HostConfig(log_level="warning"))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1

    def test_rotating_file_handler(self, tmp_path, restore_logging):
        log_dir = tmp_path / "logs"

        configure_logging(HostConfig(log_max_bytes=1024, log_backup_count=2), log_dir=log_dir)

        root = logging.getLogger()
        file_handlers = [
            h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024
        assert file_handlers[0].backupCount == 2
        assert (log_dir / "fluxhost.log").exists()
