"""Hover documentation for S1API types and members, linking to the official docs."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from fluxhost.plugins.features import HoverInfo, Range

if TYPE_CHECKING:
    from fluxhost.plugins.context import PluginContext
    from fluxhost.plugins.features import Position, TextDocument

S1API_DOCS_BASE = "https://ifbars.github.io/S1API/docs"


class DocEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: re.Pattern[str]
    title: str
    description: str
    doc_url: str | None = None
    example: str | None = None


def _doc(pattern: str, title: str, description: str, page: str, example: str | None = None) -> DocEntry:
    return DocEntry(
        pattern=re.compile(pattern),
        title=title,
        description=description,
        doc_url=f"{S1API_DOCS_BASE}/{page}",
        example=example,
    )


# Compound entries (``UIFactory.Panel``) come before their bare prefix.
S1API_DOCUMENTATION = [
    _doc(
        r"\bPhoneApp\b",
        "S1API.PhoneApp.PhoneApp",
        "Base class for creating phone applications in Schedule One. Derive from "
        "this class to create custom phone apps that appear on the in-game phone.",
        "phone-apps.html",
        "public class MyApp : PhoneApp { ... }",
    ),
    _doc(
        r"\bAppName\b",
        "PhoneApp.AppName",
        "Internal identifier for the phone app. Should be unique across all mods.",
        "phone-apps.html",
    ),
    _doc(
        r"\bAppTitle\b",
        "PhoneApp.AppTitle",
        "Display title shown in the phone app header.",
        "phone-apps.html",
    ),
    _doc(
        r"\bOnCreatedUI\b",
        "PhoneApp.OnCreatedUI(GameObject container)",
        "Called when the app UI should be built. Create your UI elements here using UIFactory.",
        "phone-apps.html",
    ),
    _doc(
        r"\bOnCreated\b",
        "PhoneApp.OnCreated()",
        "Called when the phone app instance is created. Store the Instance "
        "reference and initialize non-UI state here.",
        "phone-apps.html",
        "protected override void OnCreated() { base.OnCreated(); Instance = this; }",
    ),
    _doc(
        r"\bSaveableField\b",
        "[SaveableField] Attribute",
        "Marks a field for automatic persistence. The string parameter is the JSON key used for storage.",
        "save-system.html",
        '[SaveableField("player-notes")] private List<string> _notes = new();',
    ),
    _doc(
        r"\bSaveable\b",
        "S1API.Saveables.Saveable",
        "Base class for persistent mod data. Fields marked with [SaveableField] "
        "are saved and loaded per save slot.",
        "save-system.html",
    ),
    _doc(
        r"UIFactory\.Panel\b",
        "UIFactory.Panel()",
        "Creates a UI panel with background color. Use `fullAnchor: true` to "
        "stretch to fill the parent container.",
        "ui.html",
    ),
    _doc(
        r"UIFactory\.Text\b",
        "UIFactory.Text()",
        "Creates a text element with customizable font size and alignment.",
        "ui.html",
    ),
    _doc(
        r"UIFactory\.Button\b",
        "UIFactory.Button()",
        "Creates a clickable button with text label and click handler.",
        "ui.html",
    ),
    _doc(
        r"\bUIFactory\b",
        "S1API.UI.UIFactory",
        "Utility class for creating UI elements quickly and consistently.",
        "ui.html",
    ),
    _doc(
        r"\bPhoneCallDefinition\b",
        "S1API.PhoneCalls.PhoneCallDefinition",
        "Base class for defining scripted phone calls built from stages and triggers.",
        "phone-calls.html",
    ),
    _doc(
        r"\bQueueCall\b",
        "CallManager.QueueCall()",
        "Queues a phone call to be made to the player.",
        "phone-calls.html",
        "CallManager.QueueCall(new MyPhoneCall())",
    ),
    _doc(
        r"\bCallManager\b",
        "S1API.PhoneCalls.CallManager",
        "Static class for queueing and managing phone calls.",
        "phone-calls.html",
    ),
]


def find_documentation(word: str) -> DocEntry | None:
    for doc in S1API_DOCUMENTATION:
        if doc.pattern.search(word):
            return doc
    return None


def format_documentation(doc: DocEntry) -> list[str]:
    lines = [f"**{doc.title}**", "", doc.description]
    if doc.example:
        lines += ["", "```csharp", doc.example, "```"]
    if doc.doc_url:
        lines += ["", f"[View S1API Documentation]({doc.doc_url})"]
    return ["\n".join(lines)]


class S1APIHoverProvider:
    def provide_hover(self, document: TextDocument, position: Position) -> HoverInfo | None:
        word_info = document.word_at(position)
        if word_info is None:
            return None

        # "UIFactory.Panel" should resolve before plain "Panel".
        before = document.line_text(position.line)[: word_info.start_column - 1]
        compound = word_info.word
        if before.endswith("."):
            qualifier = before[:-1].split()[-1] if before[:-1].split() else ""
            compound = f"{qualifier}.{word_info.word}"

        doc = find_documentation(compound) or find_documentation(word_info.word)
        if doc is None:
            return None

        return HoverInfo(
            contents=format_documentation(doc),
            range=Range(
                start_line=position.line,
                start_column=word_info.start_column,
                end_line=position.line,
                end_column=word_info.end_column,
            ),
        )


def register_s1api_hover(context: PluginContext) -> None:
    context.register_hover_provider("csharp", S1APIHoverProvider())
    context.log("S1API hover documentation registered")
