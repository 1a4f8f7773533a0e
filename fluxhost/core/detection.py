"""Project detection: runs plugin-supplied detectors against the workspace root."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from fluxhost.core.disposable import CallbackDisposable

logger = structlog.get_logger()


class DetectedProject(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    name: str
    confidence: float = Field(ge=0.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class ProjectDetector(Protocol):
    id: str
    project_type: str

    async def detect(self, workspace_root: Path) -> DetectedProject | None: ...


DetectedCallback = Callable[[DetectedProject], Awaitable[None]]
TaskSpawner = Callable[[Coroutine[Any, Any, Any]], Any]


class ProjectDetectionEngine:
    """Holds detectors by id and at most one detected project per type."""

    def __init__(
        self,
        get_workspace_root: Callable[[], Path | None],
        on_detected: DetectedCallback,
        spawn: TaskSpawner,
    ) -> None:
        self._get_workspace_root = get_workspace_root
        self._on_detected = on_detected
        self._spawn = spawn
        self._detectors: dict[str, ProjectDetector] = {}
        self._detected: dict[str, DetectedProject] = {}

    @property
    def detectors(self) -> list[ProjectDetector]:
        return list(self._detectors.values())

    def register_project_detector(self, detector: ProjectDetector) -> CallbackDisposable:
        self._detectors[detector.id] = detector
        logger.info(
            "project_detector_registered",
            detector_id=detector.id,
            project_type=detector.project_type,
        )

        if self._get_workspace_root() is not None:
            self._spawn(self.run_detector(detector))

        def _unregister() -> None:
            if self._detectors.get(detector.id) is detector:
                del self._detectors[detector.id]
            self._detected.pop(detector.project_type, None)
            logger.info("project_detector_unregistered", detector_id=detector.id)

        return CallbackDisposable(_unregister)

    async def run_detector(self, detector: ProjectDetector) -> DetectedProject | None:
        workspace_root = self._get_workspace_root()
        if workspace_root is None:
            return None

        try:
            result = await detector.detect(workspace_root)
        except Exception:
            logger.exception("project_detector_failed", detector_id=detector.id)
            return None

        if result is None:
            return None

        self._detected[result.type] = result
        logger.info(
            "project_detected",
            project_type=result.type,
            confidence=result.confidence,
            detector_id=detector.id,
        )
        try:
            await self._on_detected(result)
        except Exception:
            logger.exception(
                "project_detected_handler_failed",
                project_type=result.type,
                detector_id=detector.id,
            )
        return result

    async def detect_projects(self) -> list[DetectedProject]:
        if self._get_workspace_root() is None:
            return []

        self._detected.clear()
        await asyncio.gather(*(self.run_detector(d) for d in self.detectors))
        return self.get_detected_projects()

    def get_detected_projects(self) -> list[DetectedProject]:
        return list(self._detected.values())

    def clear(self) -> None:
        self._detectors.clear()
        self._detected.clear()
