"""
Template section data model.

Sections are the unit of work between the lexer, the directive resolver and
the program synthesizer. They are immutable and carry the position they
came from so every generated line can be traced back to its template.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SectionKind(Enum):
    """Kinds of sections that reach the program synthesizer."""

    TEXT = "text"
    CODE = "code"
    EXPRESSION = "expression"


class ParseKind(Enum):
    """Kinds of sections produced by the lexer."""

    TEXT = "text"
    CODE = "code"
    EXPRESSION = "expression"
    DIRECTIVE = "directive"

    def to_section_kind(self) -> SectionKind:
        """Map a lexer kind to its synthesizer kind."""
        if self is ParseKind.DIRECTIVE:
            raise ValueError("Directive sections never reach the synthesizer")
        return SectionKind(self.value)


@dataclass(frozen=True)
class LexedSection:
    """A section as yielded by the lexer, before directives are resolved."""

    kind: ParseKind
    line: int
    column: int
    content: str


@dataclass(frozen=True)
class TemplateSection:
    """A text, code or expression section tied to its source file."""

    kind: SectionKind
    source_file: str
    line: int
    column: int
    content: str

    @classmethod
    def from_lexed(cls, section: LexedSection, source_file: str) -> "TemplateSection":
        return cls(section.kind.to_section_kind(), source_file, section.line, section.column, section.content)


@dataclass(frozen=True)
class ImportStatement:
    """A module import requested by an ``import`` directive."""

    module: str
    source_file: str
    line: int
    column: int

    def render(self) -> str:
        return f"import {self.module}  # from import directive of {self.source_file}({self.line},{self.column})"
