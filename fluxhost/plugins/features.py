"""Language feature types shared by plugins and the editor runtime.

Positions are 1-based (line and column), matching the editor's model.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable
from enum import Enum
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

_WORD_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=1)
    column: int = Field(ge=1)


class Range(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_line: int
    start_column: int
    end_line: int
    end_column: int


class WordAtPosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    word: str
    start_column: int
    end_column: int


class TextDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str
    language_id: str
    text: str = ""

    def line_text(self, line: int) -> str:
        lines = self.text.splitlines()
        if 1 <= line <= len(lines):
            return lines[line - 1]
        return ""

    def text_before(self, position: Position) -> str:
        return self.line_text(position.line)[: position.column - 1]

    def word_at(self, position: Position) -> WordAtPosition | None:
        line = self.line_text(position.line)
        offset = position.column - 1
        for match in _WORD_RE.finditer(line):
            if match.start() <= offset <= match.end():
                return WordAtPosition(
                    word=match.group(0),
                    start_column=match.start() + 1,
                    end_column=match.end() + 1,
                )
        return None


class HoverInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    contents: list[str]
    range: Range | None = None


class CompletionItemKind(int, Enum):
    METHOD = 0
    FUNCTION = 1
    CONSTRUCTOR = 2
    FIELD = 3
    VARIABLE = 4
    CLASS = 5
    STRUCT = 6
    INTERFACE = 7
    MODULE = 8
    PROPERTY = 9
    EVENT = 10
    OPERATOR = 11
    UNIT = 12
    VALUE = 13
    CONSTANT = 14
    ENUM = 15
    ENUM_MEMBER = 16
    KEYWORD = 17
    TEXT = 18
    COLOR = 19
    FILE = 20
    REFERENCE = 21
    CUSTOMCOLOR = 22
    FOLDER = 23
    TYPE_PARAMETER = 24
    USER = 25
    ISSUE = 26
    SNIPPET = 27


class CompletionItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    kind: CompletionItemKind
    insert_text: str
    is_snippet: bool = False
    documentation: str | None = None
    detail: str | None = None
    sort_text: str | None = None
    filter_text: str | None = None


class ParameterInformation(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    documentation: str | None = None


class SignatureInformation(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    documentation: str | None = None
    parameters: list[ParameterInformation] = []


class SignatureHelp(BaseModel):
    model_config = ConfigDict(frozen=True)

    signatures: list[SignatureInformation]
    active_signature: int = 0
    active_parameter: int = 0


class SyntaxRule(BaseModel):
    """A tokenizer rule with optional theme colouring."""

    model_config = ConfigDict(frozen=True)

    token: str
    regex: re.Pattern[str]
    foreground: str | None = None
    font_style: Literal["italic", "bold", "underline"] | None = None

    @field_validator("regex", mode="before")
    @classmethod
    def compile_regex(cls, v: str | re.Pattern[str]) -> re.Pattern[str]:
        if isinstance(v, str):
            return re.compile(v)
        return v


@runtime_checkable
class HoverProvider(Protocol):
    def provide_hover(
        self, document: TextDocument, position: Position
    ) -> HoverInfo | None | Awaitable[HoverInfo | None]: ...


@runtime_checkable
class CompletionProvider(Protocol):
    trigger_characters: list[str]

    def provide_completion_items(
        self,
        document: TextDocument,
        position: Position,
        trigger_character: str | None,
    ) -> list[CompletionItem] | Awaitable[list[CompletionItem]]: ...


@runtime_checkable
class SignatureHelpProvider(Protocol):
    signature_help_trigger_characters: list[str]

    def provide_signature_help(
        self, document: TextDocument, position: Position
    ) -> SignatureHelp | None | Awaitable[SignatureHelp | None]: ...


class LanguageFeatureConfig(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    language_id: str
    syntax_rules: list[SyntaxRule] = []
    completion_provider: Any = None
    hover_provider: Any = None
    signature_help_provider: Any = None
