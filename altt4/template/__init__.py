"""
Template front end for altt4.

This package turns template text into the ordered section list consumed by
the program synthesizer: the tag lexer, the directive resolver and the
template/include source abstractions.
"""

from .sections import SectionKind, ParseKind, LexedSection, TemplateSection, ImportStatement
from .lexer import TagLexer, iter_sections
from .directives import DirectiveResolver, ResolvedTemplate, format_directive_error, split_directive
from .sources import (
    TemplateSource,
    FileSource,
    InMemorySource,
    build_include_lookup,
    discover_sources,
    file_name,
    has_extension,
)

__all__ = [
    "SectionKind",
    "ParseKind",
    "LexedSection",
    "TemplateSection",
    "ImportStatement",
    "TagLexer",
    "iter_sections",
    "DirectiveResolver",
    "ResolvedTemplate",
    "format_directive_error",
    "split_directive",
    "TemplateSource",
    "FileSource",
    "InMemorySource",
    "build_include_lookup",
    "discover_sources",
    "file_name",
    "has_extension",
]
