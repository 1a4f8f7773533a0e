"""Bootstrap: wires the runtime, host and loader together."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict

from fluxhost.core.config import HostConfig
from fluxhost.host import PluginHost
from fluxhost.plugins.builtin import register_core_plugins
from fluxhost.plugins.loader import PluginLoader
from fluxhost.runtime import EditorRuntime

logger = structlog.get_logger()


class Application(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    config: HostConfig
    runtime: EditorRuntime
    host: PluginHost
    loader: PluginLoader


def configure_logging(config: HostConfig, *, log_dir: Path | None = None) -> None:
    """Set up structlog with console output and optional rotating JSON file handler."""
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    root_logger = logging.getLogger()
    root_logger.setLevel(config.log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(),
        )
    )
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "fluxhost.log",
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
        )
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
            )
        )
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_application(
    config: HostConfig | None = None,
    *,
    runtime: EditorRuntime | None = None,
    setup_logging: bool = True,
) -> Application:
    if config is None:
        config = HostConfig()

    if setup_logging:
        configure_logging(config, log_dir=config.log_dir)

    runtime = runtime or EditorRuntime()
    host = PluginHost()
    host.initialize(runtime)

    loader = PluginLoader(host)
    register_core_plugins(loader, detection_threshold=config.detection_confidence_threshold)
    if config.load_community_plugins:
        loader.set_community_plugins_path(config.community_plugins_path)

    logger.info(
        "application_built",
        core_plugins=len(loader.get_core_plugins()),
        community_plugins_path=(
            str(loader.community_plugins_path) if loader.community_plugins_path else None
        ),
        log_level=config.log_level,
    )
    return Application(config=config, runtime=runtime, host=host, loader=loader)


async def start_application(
    app: Application, activation_events: list[str] | None = None
) -> None:
    """Load all plugins, point the host at the workspace and fire *activation_events*."""
    await app.loader.load_all_plugins()
    if app.config.workspace_root is not None:
        app.host.set_workspace_root(app.config.workspace_root)
    for event in activation_events or []:
        await app.host.trigger_activation(event)
    await app.host.wait_idle()
