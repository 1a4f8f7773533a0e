"""Cleanup handles returned by every registration."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()


@runtime_checkable
class Disposable(Protocol):
    def dispose(self) -> None: ...


class CallbackDisposable:
    """Runs *callback* the first time it is disposed; later calls do nothing."""

    def __init__(self, callback: Callable[[], Any]) -> None:
        self._callback: Callable[[], Any] | None = callback

    @property
    def disposed(self) -> bool:
        return self._callback is None

    def dispose(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


def dispose_all(disposables: Iterable[Disposable], **log_context: Any) -> int:
    """Dispose every handle in order, logging failures instead of raising.

    Returns the number of handles whose ``dispose()`` raised.
    """
    failures = 0
    for disposable in list(disposables):
        try:
            disposable.dispose()
        except Exception:
            failures += 1
            logger.exception("disposable_dispose_failed", **log_context)
    return failures


def compose_disposables(
    disposables: Iterable[Disposable], **log_context: Any
) -> CallbackDisposable:
    captured = list(disposables)
    return CallbackDisposable(lambda: dispose_all(captured, **log_context))
