"""In-process editor runtime: the handle plugin capabilities are registered against.

Every registration lands in an arena keyed by an opaque integer handle and
tagged with its ``CapabilityKind``; the returned disposable removes exactly
that handle. Query methods fan a request out to the providers whose language
selector matches the document.
"""

from __future__ import annotations

import inspect
import itertools
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import structlog
from pydantic import BaseModel, ConfigDict

from fluxhost.core.disposable import CallbackDisposable
from fluxhost.exceptions import HostNotReadyError
from fluxhost.plugins.features import (
    CompletionItemKind,
    Position,
    Range,
    SignatureHelp,
    TextDocument,
)

logger = structlog.get_logger()


class CapabilityKind(str, Enum):
    HOVER = "hover"
    COMPLETION = "completion"
    SIGNATURE_HELP = "signature_help"


class MarkdownString(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    is_trusted: bool = True
    support_html: bool = False


class RuntimeHover(BaseModel):
    model_config = ConfigDict(frozen=True)

    contents: list[MarkdownString]
    range: Range | None = None


class CompletionSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    kind: CompletionItemKind
    insert_text: str
    is_snippet: bool = False
    documentation: MarkdownString | None = None
    detail: str | None = None
    sort_text: str | None = None
    filter_text: str | None = None


class CompletionList(BaseModel):
    model_config = ConfigDict(frozen=True)

    suggestions: list[CompletionSuggestion]


class TokenThemeRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    foreground: str | None = None
    font_style: str | None = None


# Runtime-native provider callables; plugin providers are adapted to these.
HoverCallback = Callable[[TextDocument, Position], Awaitable[RuntimeHover | None]]
CompletionCallback = Callable[
    [TextDocument, Position, str | None], Awaitable[CompletionList]
]
SignatureHelpCallback = Callable[
    [TextDocument, Position], Awaitable[SignatureHelp | None]
]


class Capability(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    handle: int
    kind: CapabilityKind
    language_selector: str
    callback: Callable[..., Awaitable[Any]]
    trigger_characters: tuple[str, ...] = ()


@runtime_checkable
class HostRuntime(Protocol):
    """What the plugin context needs from the editor it attaches to."""

    def register_hover_provider(
        self, language_selector: str, callback: HoverCallback
    ) -> CallbackDisposable: ...

    def register_completion_item_provider(
        self,
        language_selector: str,
        callback: CompletionCallback,
        trigger_characters: list[str] | None = None,
    ) -> CallbackDisposable: ...

    def register_signature_help_provider(
        self,
        language_selector: str,
        callback: SignatureHelpCallback,
        trigger_characters: list[str] | None = None,
    ) -> CallbackDisposable: ...

    def define_token_rules(
        self, language_id: str, rules: list[TokenThemeRule]
    ) -> None: ...


def _selector_matches(selector: str, language_id: str) -> bool:
    return selector == "*" or selector == language_id


class EditorRuntime:
    def __init__(self) -> None:
        self._arena: dict[int, Capability] = {}
        self._handles = itertools.count(1)
        self._token_rules: dict[str, list[TokenThemeRule]] = {}
        self._disposed = False

    # -- registration -------------------------------------------------------

    def _add(
        self,
        kind: CapabilityKind,
        language_selector: str,
        callback: Callable[..., Awaitable[Any]],
        trigger_characters: list[str] | None = None,
    ) -> CallbackDisposable:
        if self._disposed:
            raise HostNotReadyError("Editor runtime has been disposed")
        handle = next(self._handles)
        self._arena[handle] = Capability(
            handle=handle,
            kind=kind,
            language_selector=language_selector,
            callback=callback,
            trigger_characters=tuple(trigger_characters or ()),
        )
        logger.debug(
            "capability_registered",
            handle=handle,
            kind=kind.value,
            language_selector=language_selector,
        )
        return CallbackDisposable(lambda: self._remove(handle))

    def _remove(self, handle: int) -> None:
        capability = self._arena.pop(handle, None)
        if capability is not None:
            logger.debug(
                "capability_removed", handle=handle, kind=capability.kind.value
            )

    def register_hover_provider(
        self, language_selector: str, callback: HoverCallback
    ) -> CallbackDisposable:
        return self._add(CapabilityKind.HOVER, language_selector, callback)

    def register_completion_item_provider(
        self,
        language_selector: str,
        callback: CompletionCallback,
        trigger_characters: list[str] | None = None,
    ) -> CallbackDisposable:
        return self._add(
            CapabilityKind.COMPLETION, language_selector, callback, trigger_characters
        )

    def register_signature_help_provider(
        self,
        language_selector: str,
        callback: SignatureHelpCallback,
        trigger_characters: list[str] | None = None,
    ) -> CallbackDisposable:
        return self._add(
            CapabilityKind.SIGNATURE_HELP,
            language_selector,
            callback,
            trigger_characters,
        )

    def define_token_rules(self, language_id: str, rules: list[TokenThemeRule]) -> None:
        self._token_rules.setdefault(language_id, []).extend(rules)

    # -- reads ---------------------------------------------------------------

    def capabilities(
        self, kind: CapabilityKind | None = None, language_id: str | None = None
    ) -> list[Capability]:
        return [
            c
            for c in self._arena.values()
            if (kind is None or c.kind == kind)
            and (language_id is None or _selector_matches(c.language_selector, language_id))
        ]

    def token_rules(self, language_id: str) -> list[TokenThemeRule]:
        return list(self._token_rules.get(language_id, []))

    # -- queries -------------------------------------------------------------

    async def _call_each(
        self, kind: CapabilityKind, document: TextDocument, *args: Any
    ) -> list[Any]:
        results: list[Any] = []
        for capability in self.capabilities(kind, document.language_id):
            try:
                result = capability.callback(document, *args)
                if inspect.isawaitable(result):
                    result = await result
            except Exception:
                logger.exception(
                    "provider_failed",
                    handle=capability.handle,
                    kind=kind.value,
                    uri=document.uri,
                )
                continue
            if result is not None:
                results.append(result)
        return results

    async def provide_hover(
        self, document: TextDocument, position: Position
    ) -> list[RuntimeHover]:
        return await self._call_each(CapabilityKind.HOVER, document, position)

    async def provide_completions(
        self,
        document: TextDocument,
        position: Position,
        trigger_character: str | None = None,
    ) -> list[CompletionSuggestion]:
        lists = await self._call_each(
            CapabilityKind.COMPLETION, document, position, trigger_character
        )
        return [s for completion_list in lists for s in completion_list.suggestions]

    async def provide_signature_help(
        self, document: TextDocument, position: Position
    ) -> SignatureHelp | None:
        results = await self._call_each(
            CapabilityKind.SIGNATURE_HELP, document, position
        )
        return results[0] if results else None

    def dispose(self) -> None:
        self._arena.clear()
        self._token_rules.clear()
        self._disposed = True
