"""S1API project detector.

Scores the workspace root on:
- S1API / MelonLoader references in ``.csproj`` files
- S1API namespaces, base classes and attributes in a sample of ``.cs`` files
- a ``MelonInfo.cs`` file
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

import structlog

from fluxhost.core.detection import DetectedProject
from fluxhost.plugins.builtin.s1api.manifest import S1API_PROJECT_TYPE

logger = structlog.get_logger()

_NUGET_PACKAGES = ("S1API", "S1API.Forked")
_ASSEMBLY_REFS = ("S1API.dll", "S1API")
_MELONLOADER = ("MelonLoader", "MelonMod", "MelonPlugin")
_NAMESPACES = (
    "S1API.PhoneApp",
    "S1API.Saveables",
    "S1API.PhoneCalls",
    "S1API.UI",
    "S1API.Internal",
)
_BASE_CLASSES = ("PhoneApp", "Saveable", "PhoneCallDefinition")

_SAVEABLE_FIELD = re.compile(r"\[SaveableField\s*\(")
_UIFACTORY_CALL = re.compile(r"UIFactory\.(Panel|Text|Button|Layout)")

MAX_SAMPLED_SOURCE_FILES = 5
MELON_INFO_FILENAME = "MelonInfo.cs"


def score_csproj(content: str) -> float:
    confidence = 0.0
    for pkg in _NUGET_PACKAGES:
        if re.search(rf"<PackageReference\s+Include=[\"']{re.escape(pkg)}[\"']", content, re.I):
            confidence += 0.5
    for asm in _ASSEMBLY_REFS:
        escaped = re.escape(asm)
        if re.search(rf"<Reference\s+Include=[\"']{escaped}[\"']|<HintPath>.*{escaped}", content, re.I):
            confidence += 0.4
    for ml in _MELONLOADER:
        escaped = re.escape(ml)
        if re.search(rf"<PackageReference\s+Include=[\"']{escaped}|<Reference\s+Include=[\"']{escaped}", content, re.I):
            confidence += 0.2
    return min(confidence, 1.0)


def score_csharp(content: str) -> float:
    confidence = 0.0
    for ns in _NAMESPACES:
        if re.search(rf"using\s+{re.escape(ns)}", content, re.I):
            confidence += 0.15
    for base_class in _BASE_CLASSES:
        if re.search(rf":\s*{base_class}\b", content, re.I):
            confidence += 0.25
    if _SAVEABLE_FIELD.search(content):
        confidence += 0.2
    if _UIFACTORY_CALL.search(content):
        confidence += 0.15
    return min(confidence, 1.0)


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def scan_workspace(workspace_root: Path, threshold: float) -> DetectedProject | None:
    try:
        files = sorted(p for p in workspace_root.iterdir() if p.is_file())
    except OSError:
        files = []

    csproj_files = [p for p in files if p.suffix == ".csproj"]
    cs_files = [p for p in files if p.suffix == ".cs"][:MAX_SAMPLED_SOURCE_FILES]

    total = 0.0
    checks = 0
    for path, scorer in [(p, score_csproj) for p in csproj_files] + [
        (p, score_csharp) for p in cs_files
    ]:
        content = _read(path)
        if content is None:
            continue
        score = scorer(content)
        if score > 0:
            total += score
            checks += 1

    if (workspace_root / MELON_INFO_FILENAME).exists():
        total += 0.3
        checks += 1

    confidence = min(total / checks, 1.0) if checks else 0.0
    if confidence < threshold:
        return None

    return DetectedProject(
        type=S1API_PROJECT_TYPE,
        name="S1API Mod Project",
        confidence=confidence,
        metadata={"csproj_count": len(csproj_files), "has_s1api_refs": total > 0},
    )


class S1APIProjectDetector:
    id = "s1api-detector"
    project_type = S1API_PROJECT_TYPE

    def __init__(self, threshold: float = 0.3) -> None:
        self.threshold = threshold

    async def detect(self, workspace_root: Path) -> DetectedProject | None:
        result = await asyncio.to_thread(scan_workspace, Path(workspace_root), self.threshold)
        logger.debug(
            "s1api_detection_finished",
            workspace_root=str(workspace_root),
            detected=result is not None,
        )
        return result
