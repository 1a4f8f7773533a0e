"""Community plugin discovery: reads manifests from ``<plugins_path>/<plugin>/``.

Each plugin directory carries a ``plugin.json`` (``package.json`` is accepted
as a fallback). Only metadata is read here; nothing is imported or executed.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from fluxhost.exceptions import DiscoveryError

logger = structlog.get_logger()

MANIFEST_FILENAMES = ("plugin.json", "package.json")


class _ManifestFile(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = None
    name: str
    version: str
    description: str | None = None
    author: str | None = None
    main: str = "index.js"
    activation_events: list[str] = Field(default_factory=list)


class CommunityPluginMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    version: str
    description: str | None = None
    author: str | None = None
    main: str
    activation_events: list[str] = Field(default_factory=list)
    path: Path


def _find_manifest(plugin_dir: Path) -> Path | None:
    for filename in MANIFEST_FILENAMES:
        candidate = plugin_dir / filename
        if candidate.is_file():
            return candidate
    return None


def load_plugin_manifest(manifest_path: Path, plugin_dir: Path) -> CommunityPluginMeta | None:
    """Parse one manifest; returns None when it is unreadable or malformed."""
    try:
        raw = json.loads(manifest_path.read_text(encoding="utf-8"))
        manifest = _ManifestFile.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        logger.warning(
            "community_manifest_invalid", path=str(manifest_path), error=str(exc)
        )
        return None

    return CommunityPluginMeta(
        id=manifest.id or f"community.{plugin_dir.name}",
        name=manifest.name,
        version=manifest.version,
        description=manifest.description,
        author=manifest.author,
        main=manifest.main,
        activation_events=manifest.activation_events,
        path=plugin_dir,
    )


def discover_community_plugins(plugins_path: Path | str) -> list[CommunityPluginMeta]:
    """Scan *plugins_path* for plugin directories.

    A missing directory is created and yields no plugins. Raises
    ``DiscoveryError`` if the path is not a directory or cannot be read.
    """
    plugins_dir = Path(plugins_path)

    if not plugins_dir.exists():
        try:
            plugins_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DiscoveryError(f"Failed to create plugins directory: {e}") from e
        return []

    if not plugins_dir.is_dir():
        raise DiscoveryError(f"{plugins_dir} is not a directory")

    try:
        entries = sorted(plugins_dir.iterdir())
    except OSError as e:
        raise DiscoveryError(f"Failed to read plugins directory: {e}") from e

    plugins: list[CommunityPluginMeta] = []
    for entry in entries:
        if not entry.is_dir():
            continue
        manifest_path = _find_manifest(entry)
        if manifest_path is None:
            continue
        meta = load_plugin_manifest(manifest_path, entry)
        if meta is not None:
            plugins.append(meta)

    logger.info(
        "community_plugins_discovered",
        count=len(plugins),
        plugins_path=str(plugins_dir),
    )
    return plugins


def validate_plugin_directory(path: Path | str) -> bool:
    plugin_dir = Path(path)
    return plugin_dir.is_dir() and _find_manifest(plugin_dir) is not None
