"""CLI entry point: load plugins, run detection on a workspace, report the result.

Usage: ``fluxhost [WORKSPACE] [ACTIVATION_EVENT ...]``, e.g.
``fluxhost ~/mods/MyMod onLanguage:csharp``.
"""

import asyncio
import sys

import structlog

from fluxhost.app import Application, build_application, start_application
from fluxhost.core.config import load_config
from fluxhost.exceptions import ConfigError

logger = structlog.get_logger()


def _print_report(app: Application) -> None:
    host = app.host
    print(f"Workspace: {host.get_workspace_root() or '(none)'}")

    print("\nPlugins:")
    for plugin in host.get_plugins():
        line = f"  {plugin.id} {plugin.manifest.version} [{plugin.source.value}] {plugin.state.value}"
        if plugin.error:
            line += f" ({plugin.error})"
        print(line)

    projects = host.get_detected_projects()
    print("\nDetected projects:")
    if not projects:
        print("  (none)")
    for project in projects:
        print(f"  {project.type}: {project.name} (confidence {project.confidence:.2f})")


async def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    try:
        config = load_config(args[0] if args else None)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("Pass an existing workspace directory or set FLUXHOST_WORKSPACE_ROOT.", file=sys.stderr)
        sys.exit(1)

    app = build_application(config)
    try:
        await start_application(app, args[1:])
        _print_report(app)
    finally:
        logger.info("fluxhost_shutting_down")
        await app.host.dispose()
        app.runtime.dispose()


def run() -> None:
    asyncio.run(main())
