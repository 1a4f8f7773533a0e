"""Plugin context: the API surface a plugin receives on activation.

Every ``register_*`` method returns a disposable and also appends it to
``context.subscriptions``; ``dispose_plugin_context`` releases all of them at
deactivation so plugins never have to track their own handles.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import structlog

from fluxhost.core.disposable import (
    CallbackDisposable,
    Disposable,
    compose_disposables,
    dispose_all,
)
from fluxhost.runtime import (
    CompletionList,
    CompletionSuggestion,
    MarkdownString,
    RuntimeHover,
    TokenThemeRule,
)

if TYPE_CHECKING:
    from fluxhost.core.detection import ProjectDetector
    from fluxhost.plugins.features import (
        CompletionItem,
        CompletionProvider,
        HoverProvider,
        LanguageFeatureConfig,
        Position,
        SignatureHelp,
        SignatureHelpProvider,
        SyntaxRule,
        TextDocument,
    )
    from fluxhost.runtime import HostRuntime

logger = structlog.get_logger()

LogLevel = Literal["debug", "info", "warn", "error"]


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _to_suggestion(item: CompletionItem) -> CompletionSuggestion:
    return CompletionSuggestion(
        label=item.label,
        kind=item.kind,
        insert_text=item.insert_text,
        is_snippet=item.is_snippet,
        documentation=(
            MarkdownString(value=item.documentation) if item.documentation else None
        ),
        detail=item.detail,
        sort_text=item.sort_text,
        filter_text=item.filter_text,
    )


class PluginContext:
    def __init__(
        self,
        plugin_id: str,
        runtime: HostRuntime,
        get_workspace_root: Callable[[], Path | None],
        on_register_project_detector: Callable[[ProjectDetector], Disposable],
    ) -> None:
        self.plugin_id = plugin_id
        self.runtime = runtime
        self.subscriptions: list[Disposable] = []
        self._get_workspace_root = get_workspace_root
        self._on_register_project_detector = on_register_project_detector
        self._logger = structlog.get_logger().bind(plugin_id=plugin_id)

    def get_workspace_root(self) -> Path | None:
        return self._get_workspace_root()

    def _track(self, disposable: Disposable) -> Disposable:
        self.subscriptions.append(disposable)
        return disposable

    def register_language_features(self, config: LanguageFeatureConfig) -> Disposable:
        """Register whichever syntax/completion/hover/signature parts *config* has."""
        parts: list[Disposable] = []
        if config.syntax_rules:
            parts.append(
                self.register_syntax_highlighting(config.language_id, config.syntax_rules)
            )
        if config.completion_provider is not None:
            parts.append(
                self.register_completion_provider(
                    config.language_id, config.completion_provider
                )
            )
        if config.hover_provider is not None:
            parts.append(
                self.register_hover_provider(config.language_id, config.hover_provider)
            )
        if config.signature_help_provider is not None:
            parts.append(
                self.register_signature_help_provider(
                    config.language_id, config.signature_help_provider
                )
            )
        return self._track(compose_disposables(parts, plugin_id=self.plugin_id))

    def register_project_detector(self, detector: ProjectDetector) -> Disposable:
        return self._track(self._on_register_project_detector(detector))

    def register_hover_provider(
        self, language_selector: str, provider: HoverProvider
    ) -> Disposable:
        async def provide_hover(
            document: TextDocument, position: Position
        ) -> RuntimeHover | None:
            result = await _resolve(provider.provide_hover(document, position))
            if result is None:
                return None
            return RuntimeHover(
                contents=[
                    MarkdownString(value=content, support_html=True)
                    for content in result.contents
                ],
                range=result.range,
            )

        registration = self.runtime.register_hover_provider(
            language_selector, provide_hover
        )
        return self._track(CallbackDisposable(registration.dispose))

    def register_completion_provider(
        self, language_selector: str, provider: CompletionProvider
    ) -> Disposable:
        async def provide_completion_items(
            document: TextDocument, position: Position, trigger_character: str | None
        ) -> CompletionList:
            items = await _resolve(
                provider.provide_completion_items(document, position, trigger_character)
            )
            return CompletionList(suggestions=[_to_suggestion(i) for i in items or []])

        registration = self.runtime.register_completion_item_provider(
            language_selector,
            provide_completion_items,
            trigger_characters=list(getattr(provider, "trigger_characters", []) or []),
        )
        return self._track(CallbackDisposable(registration.dispose))

    def register_signature_help_provider(
        self, language_selector: str, provider: SignatureHelpProvider
    ) -> Disposable:
        async def provide_signature_help(
            document: TextDocument, position: Position
        ) -> SignatureHelp | None:
            return await _resolve(provider.provide_signature_help(document, position))

        registration = self.runtime.register_signature_help_provider(
            language_selector,
            provide_signature_help,
            trigger_characters=list(
                getattr(provider, "signature_help_trigger_characters", []) or []
            ),
        )
        return self._track(CallbackDisposable(registration.dispose))

    def register_syntax_highlighting(
        self, language_id: str, rules: list[SyntaxRule]
    ) -> Disposable:
        token_rules = [
            TokenThemeRule(
                token=rule.token,
                foreground=rule.foreground.lstrip("#"),
                font_style=rule.font_style,
            )
            for rule in rules
            if rule.foreground
        ]
        if token_rules:
            self.runtime.define_token_rules(language_id, token_rules)
            self._logger.info(
                "syntax_rules_registered",
                language_id=language_id,
                rule_count=len(token_rules),
            )

        # Theme token rules cannot be withdrawn from the runtime once defined.
        def _noop() -> None:
            self._logger.info("syntax_rules_not_removable", language_id=language_id)

        return self._track(CallbackDisposable(_noop))

    def log(self, message: str, level: LogLevel = "info") -> None:
        if level == "warn":
            self._logger.warning("plugin_log", message=message)
        elif level == "error":
            self._logger.error("plugin_log", message=message)
        elif level == "debug":
            self._logger.debug("plugin_log", message=message)
        else:
            self._logger.info("plugin_log", message=message)


def dispose_plugin_context(context: PluginContext) -> None:
    """Dispose all subscriptions, logging individual failures, and drain the list."""
    dispose_all(context.subscriptions, plugin_id=context.plugin_id)
    context.subscriptions.clear()
