"""
Directive resolution for text templates.

The resolver walks the lexer output of a template, passes text, code and
expression sections through in document order and interprets ``<#@ ... #>``
directives:

* ``import namespace="module"`` adds an import to the generator program.
* ``include file="name.ttinc" [once="true"]`` splices the sections of an
  include file in place of the directive, recursively.
* ``AppendReferenceAssemblies`` / ``AppendGeneraterSource`` switch on the
  output annotations written after the rendered text.

Problems are recorded as single-line comments; a render with any directive
error produces only those comments and is never compiled.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Set

from ..utils.constants import (
    COMMENT_PREFIX,
    INCLUDE_FILE_EXTENSION,
    DirectiveErrorLabel,
    DirectiveName,
)
from ..utils.exceptions import DirectiveError
from ..utils.logging import get_logger
from ..utils.string_utils import collapse_newlines
from .lexer import iter_sections
from .sections import ImportStatement, LexedSection, ParseKind, TemplateSection
from .sources import IncludeLookup, TemplateSource

logger = get_logger(__name__)

_DIRECTIVE_NAME_RE = re.compile(r"[A-Za-z_]\w*")
_SHORTHAND_RE = re.compile(r'\A"(?P<value>[^"]*)"(?P<tail>.*)\Z', re.DOTALL)
_INCLUDE_ARGS_RE = re.compile(r'\Afile="(?P<file>.+?)"(?P<once>\s+once="true")?\s*\Z')
_MODULE_NAME_RE = re.compile(r"\A[A-Za-z_]\w*(\.[A-Za-z_]\w*)*\Z")

_IMPORT_PREFIX = 'namespace="'
_IMPORT_SUFFIX = '"'

# Argument name implied by the name="value" shorthand of each directive
_SHORTHAND_ARGUMENT = {
    DirectiveName.IMPORT.value: "namespace",
    DirectiveName.INCLUDE.value: "file",
}


@dataclass
class ResolvedTemplate:
    """Result of resolving every directive of one render."""

    sections: List[TemplateSection] = field(default_factory=list)
    imports: List[ImportStatement] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    append_reference_assemblies: bool = False
    append_generator_source: bool = False

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    def error_text(self) -> str:
        """Concatenated directive error comments."""
        return "".join(self.errors)


def format_directive_error(source_file: str, section: LexedSection, label: str) -> str:
    """Format one directive error as a single comment line."""
    return (
        f"{COMMENT_PREFIX}{source_file}({section.line},{section.column + 1}) "
        f"[{label}]: {collapse_newlines(section.content)}\n"
    )


def split_directive(content: str) -> Optional[tuple]:
    """
    Split directive content into its name and argument text.

    The ``name="value"`` shorthand is rewritten to the canonical
    ``name arg="value"`` form, so ``include="a.ttinc"`` and
    ``include="file=a.ttinc"`` both read as ``include file="a.ttinc"``.

    Returns:
        ``(name, arguments)`` or None when no directive name is present
    """
    content = content.lstrip(" ")
    match = _DIRECTIVE_NAME_RE.match(content)
    if not match:
        return None

    name = match.group(0)
    rest = content[match.end():]

    if rest.startswith("="):
        argument = _SHORTHAND_ARGUMENT.get(name)
        shorthand = _SHORTHAND_RE.match(rest[1:].strip())
        if argument is None or shorthand is None:
            return name, rest.strip()
        value = shorthand.group("value")
        if value.startswith(f"{argument}="):
            value = value[len(argument) + 1:]
        return name, f'{argument}="{value}"{shorthand.group("tail")}'.strip()

    if rest and not rest[0].isspace():
        return None

    return name, rest.strip()


class DirectiveResolver:
    """
    Resolves directives and include files for a single render.

    The once guard lives for the whole render; the cyclic guard is an
    immutable set that only holds the includes on the current inclusion
    path, so sibling includes never see each other.
    """

    def __init__(self, include_lookup: IncludeLookup, include_extension: str = INCLUDE_FILE_EXTENSION):
        """
        Initialize resolver.

        Args:
            include_lookup: Include candidates keyed by file name
            include_extension: Extension an included file name must end with
        """
        self.include_lookup = include_lookup
        self.include_extension = include_extension

    def resolve(self, text: str, source_file: str) -> ResolvedTemplate:
        """
        Resolve all directives of a top-level template.

        Args:
            text: Template text
            source_file: Path of the template, used in positions and comments

        Returns:
            ResolvedTemplate with the spliced section list
        """
        result = ResolvedTemplate()
        included_once: Set[TemplateSource] = set()
        self._extract_sections(text, source_file, frozenset(), included_once, result)

        if result.failed:
            logger.debug(f"{source_file}: {len(result.errors)} directive error(s)")
        else:
            logger.debug(f"{source_file}: resolved {len(result.sections)} sections, {len(result.imports)} imports")
        return result

    def _extract_sections(
        self,
        text: str,
        source_file: str,
        inclusion_path: FrozenSet[TemplateSource],
        included_once: Set[TemplateSource],
        result: ResolvedTemplate,
    ) -> None:
        for section in iter_sections(text):
            if section.kind is not ParseKind.DIRECTIVE:
                result.sections.append(TemplateSection.from_lexed(section, source_file))
                continue

            try:
                self._handle_directive(section, source_file, inclusion_path, included_once, result)
            except DirectiveError as e:
                result.errors.append(format_directive_error(source_file, section, e.message))

    def _handle_directive(
        self,
        section: LexedSection,
        source_file: str,
        inclusion_path: FrozenSet[TemplateSource],
        included_once: Set[TemplateSource],
        result: ResolvedTemplate,
    ) -> None:
        parts = split_directive(section.content)
        if parts is None:
            raise DirectiveError(DirectiveErrorLabel.UNKNOWN_DIRECTIVE.value)

        name, arguments = parts

        if name == DirectiveName.IMPORT.value:
            result.imports.append(self._parse_import(arguments, source_file, section))
        elif name == DirectiveName.INCLUDE.value:
            self._include(arguments, section, inclusion_path, included_once, result)
        elif name == DirectiveName.APPEND_REFERENCE_ASSEMBLIES.value:
            result.append_reference_assemblies = True
        elif name == DirectiveName.APPEND_GENERATER_SOURCE.value:
            result.append_generator_source = True
        else:
            raise DirectiveError(DirectiveErrorLabel.UNKNOWN_DIRECTIVE.value)

    @staticmethod
    def _parse_import(arguments: str, source_file: str, section: LexedSection) -> ImportStatement:
        if (
            len(arguments) < len(_IMPORT_PREFIX) + len(_IMPORT_SUFFIX)
            or not arguments.startswith(_IMPORT_PREFIX)
            or not arguments.endswith(_IMPORT_SUFFIX)
        ):
            raise DirectiveError(DirectiveErrorLabel.INVALID_IMPORT_DIRECTIVE.value)

        module = arguments[len(_IMPORT_PREFIX):len(arguments) - len(_IMPORT_SUFFIX)].strip(" ")
        if not _MODULE_NAME_RE.match(module):
            raise DirectiveError(DirectiveErrorLabel.INVALID_IMPORT_DIRECTIVE.value)

        return ImportStatement(module, source_file, section.line, section.column)

    def _include(
        self,
        arguments: str,
        section: LexedSection,
        inclusion_path: FrozenSet[TemplateSource],
        included_once: Set[TemplateSource],
        result: ResolvedTemplate,
    ) -> None:
        match = _INCLUDE_ARGS_RE.match(arguments) if arguments else None
        if match is None:
            raise DirectiveError(DirectiveErrorLabel.INVALID_INCLUDE_DIRECTIVE.value)

        include_name = match.group("file")
        once = match.group("once") is not None

        if not include_name.endswith(self.include_extension):
            raise DirectiveError(DirectiveErrorLabel.UNSUPPORTED_EXTENSION.value)

        candidates = self.include_lookup.get(include_name) or ()
        if len(candidates) == 0:
            raise DirectiveError(DirectiveErrorLabel.INCLUDE_FILE_NOT_FOUND.value)
        if len(candidates) > 1:
            raise DirectiveError(DirectiveErrorLabel.INCLUDE_FILE_DUPLICATED.value)

        include_file = candidates[0]

        is_first_include = include_file not in included_once
        included_once.add(include_file)

        if once and not is_first_include:
            logger.debug(f"Skipping {include_name}: already included once")
            return

        if include_file in inclusion_path:
            raise DirectiveError(DirectiveErrorLabel.CYCLIC_INCLUDE.value)

        label = DirectiveErrorLabel.INVALID_INCLUDE_DIRECTIVE.value
        try:
            include_text = include_file.get_text()
        except FileNotFoundError:
            raise DirectiveError(label, f'"{include_name}" is not found.')
        except PermissionError:
            raise DirectiveError(label, "permission error.")
        except (OSError, UnicodeDecodeError):
            raise DirectiveError(label, "io error.")

        if include_text is None:
            raise DirectiveError(DirectiveErrorLabel.MISSING_SOURCE_TEXT.value)

        logger.debug(f"Including {include_file.path}")
        self._extract_sections(
            include_text,
            include_file.path,
            inclusion_path | {include_file},
            included_once,
            result,
        )
