"""S1API completions: PhoneApp overrides, lifecycle hooks, UIFactory and CallManager."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from fluxhost.plugins.features import CompletionItem, CompletionItemKind

if TYPE_CHECKING:
    from fluxhost.plugins.context import PluginContext
    from fluxhost.plugins.features import Position, TextDocument


def _snippet(
    label: str,
    kind: CompletionItemKind,
    insert_text: str,
    documentation: str,
    detail: str,
    sort_text: str,
) -> CompletionItem:
    return CompletionItem(
        label=label,
        kind=kind,
        insert_text=insert_text,
        is_snippet=True,
        documentation=documentation,
        detail=detail,
        sort_text=sort_text,
    )


def _override(name: str, placeholder: str, documentation: str) -> CompletionItem:
    return _snippet(
        name,
        CompletionItemKind.PROPERTY,
        f'protected override string {name} => "${{1:{placeholder}}}";',
        documentation,
        "S1API PhoneApp override",
        f"0_{name.lower()}",
    )


def _lifecycle(name: str, signature: str, body: str, documentation: str, detail: str, sort_text: str) -> CompletionItem:
    return _snippet(
        name,
        CompletionItemKind.METHOD,
        "\n".join([f"protected override void {signature}", "{", body, "\t$0", "}"]),
        documentation,
        detail,
        sort_text,
    )


S1API_COMPLETIONS = [
    _override("AppName", "MyApp", "The internal name of the phone app (used for identification)."),
    _override("AppTitle", "My App", "The display title shown in the phone app."),
    _override("IconLabel", "App", "The label shown under the app icon on the home screen."),
    _override("IconFileName", "icon.png", "The filename of the app icon (placed next to the mod DLL)."),
    _lifecycle(
        "OnCreated",
        "OnCreated()",
        "\tbase.OnCreated();",
        "Called when the phone app is created. Initialize instance references here.",
        "S1API PhoneApp lifecycle",
        "1_oncreated",
    ),
    _lifecycle(
        "OnCreatedUI",
        "OnCreatedUI(GameObject container)",
        "",
        "Called when the phone app UI should be created. Build your UI here.",
        "S1API PhoneApp lifecycle",
        "1_oncreatedui",
    ),
    _snippet(
        "UIFactory.Panel",
        CompletionItemKind.METHOD,
        'UIFactory.Panel("${1:PanelName}", ${2:parent}.transform, '
        "new Color(${3:0.1f}, ${4:0.1f}, ${5:0.1f}), fullAnchor: ${6:true})",
        "Creates a UI panel with the specified name, parent, color, and anchoring.",
        "S1API UIFactory",
        "2_panel",
    ),
    _snippet(
        "UIFactory.Text",
        CompletionItemKind.METHOD,
        'UIFactory.Text("${1:TextName}", "${2:Text content}", ${3:parent}.transform, '
        "${4:22}, TextAnchor.${5:MiddleCenter})",
        "Creates a text element with the specified content, size, and alignment.",
        "S1API UIFactory",
        "2_text",
    ),
    _snippet(
        "UIFactory.Button",
        CompletionItemKind.METHOD,
        'UIFactory.Button("${1:ButtonName}", "${2:Button Text}", ${3:parent}.transform, () => { $0 })',
        "Creates a button with the specified text and click handler.",
        "S1API UIFactory",
        "2_button",
    ),
    _snippet(
        "SaveableField",
        CompletionItemKind.SNIPPET,
        '[SaveableField("${1:field-key}")] private ${2:string} _${3:fieldName} = ${4:default};',
        "Marks a field to be automatically saved/loaded per save slot.",
        "S1API Saveables attribute",
        "3_saveablefield",
    ),
    _lifecycle(
        "OnLoaded",
        "OnLoaded()",
        "\t// Apply loaded data",
        "Called after saveable data is loaded from disk.",
        "S1API Saveable lifecycle",
        "3_onloaded",
    ),
    _lifecycle(
        "OnSaved",
        "OnSaved()",
        "\t// Flush caches before save",
        "Called before saveable data is written to disk.",
        "S1API Saveable lifecycle",
        "3_onsaved",
    ),
    _snippet(
        "CallManager.QueueCall",
        CompletionItemKind.METHOD,
        "CallManager.QueueCall(${1:callDefinition})",
        "Queues a phone call to be made to the player.",
        "S1API CallManager",
        "4_queuecall",
    ),
    _snippet(
        "using S1API",
        CompletionItemKind.SNIPPET,
        "using S1API.PhoneApp;\nusing S1API.UI;\nusing S1API.Saveables;",
        "Common S1API using statements for phone apps.",
        "S1API imports",
        "5_usings",
    ),
    _snippet(
        "S1API PhoneApp Template",
        CompletionItemKind.SNIPPET,
        "\n".join(
            [
                "using UnityEngine;",
                "using S1API.PhoneApp;",
                "using S1API.UI;",
                "",
                "public class ${1:MyApp} : PhoneApp",
                "{",
                "\tpublic static ${1:MyApp} Instance;",
                "",
                '\tprotected override string AppName => "${2:myapp}";',
                '\tprotected override string AppTitle => "${3:My App}";',
                '\tprotected override string IconLabel => "${4:App}";',
                '\tprotected override string IconFileName => "${5:icon.png}";',
                "",
                "\tprotected override void OnCreatedUI(GameObject container)",
                "\t{",
                "\t\t$0",
                "\t}",
                "}",
            ]
        ),
        "Complete S1API PhoneApp template with all required overrides and UI setup.",
        "S1API full template",
        "0_template",
    ),
]

_AFTER_OVERRIDE = re.compile(r"override\s+\w*$")
_AFTER_UIFACTORY = re.compile(r"UIFactory\.$")
_AFTER_CALLMANAGER = re.compile(r"CallManager\.$")
_IN_CLASS_HEADER = re.compile(r"class\s+\w+\s*:\s*\w*$")


class S1APICompletionProvider:
    trigger_characters = [".", "[", " "]

    def provide_completion_items(
        self,
        document: TextDocument,
        position: Position,
        trigger_character: str | None,
    ) -> list[CompletionItem]:
        text = document.text_before(position)
        stripped = text.strip()

        after_uifactory = bool(_AFTER_UIFACTORY.search(text))
        after_callmanager = bool(_AFTER_CALLMANAGER.search(text))

        items = S1API_COMPLETIONS
        if after_uifactory:
            items = [c for c in items if c.label.startswith("UIFactory.")]
        elif after_callmanager:
            items = [c for c in items if c.label.startswith("CallManager.")]
        elif _AFTER_OVERRIDE.search(text) or stripped.endswith(":"):
            items = [
                c
                for c in items
                if c.detail and ("override" in c.detail or "lifecycle" in c.detail)
            ]
        elif _IN_CLASS_HEADER.search(text):
            items = [c for c in items if c.detail and "template" in c.detail]

        if (stripped == "" or "using" in text) and not (after_uifactory or after_callmanager):
            templates = [
                c for c in S1API_COMPLETIONS if "Template" in c.label or c.label.startswith("using")
            ]
            items = templates + [c for c in items if c not in templates]

        return items


def register_s1api_intellisense(context: PluginContext) -> None:
    context.register_completion_provider("csharp", S1APICompletionProvider())
    context.log("S1API IntelliSense registered")
