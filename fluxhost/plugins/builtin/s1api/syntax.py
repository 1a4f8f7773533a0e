"""S1API token rules layered on top of the C# tokenizer."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fluxhost.plugins.features import SyntaxRule

if TYPE_CHECKING:
    from fluxhost.plugins.context import PluginContext

_TYPE_COLOR = "#4ec9b0"

S1API_SYNTAX_RULES = [
    SyntaxRule(
        token="namespace.s1api",
        regex=r"S1API\.(PhoneApp|Saveables|PhoneCalls|UI|Internal)\b",
        foreground="#4fc1ff",
    ),
    SyntaxRule(
        token="type.s1api.phoneapp",
        regex=r"\bPhoneApp\b",
        foreground=_TYPE_COLOR,
        font_style="bold",
    ),
    SyntaxRule(
        token="type.s1api.saveable",
        regex=r"\bSaveable\b",
        foreground=_TYPE_COLOR,
        font_style="bold",
    ),
    SyntaxRule(
        token="type.s1api.phonecall",
        regex=r"\bPhoneCallDefinition\b",
        foreground=_TYPE_COLOR,
        font_style="bold",
    ),
    SyntaxRule(token="annotation.s1api", regex=r"\[SaveableField\b", foreground="#dcdcaa"),
    SyntaxRule(
        token="method.s1api.uifactory",
        regex=r"UIFactory\.(Panel|Text|Button|Layout|List|Scroll)\b",
        foreground="#dcdcaa",
    ),
    SyntaxRule(
        token="property.s1api.override",
        regex=r"\b(AppName|AppTitle|IconLabel|IconFileName)\b",
        foreground="#9cdcfe",
    ),
    SyntaxRule(token="type.s1api.callmanager", regex=r"\bCallManager\b", foreground=_TYPE_COLOR),
]


def register_s1api_syntax(context: PluginContext) -> None:
    context.register_syntax_highlighting("csharp", S1API_SYNTAX_RULES)
    context.log("S1API syntax highlighting registered")
