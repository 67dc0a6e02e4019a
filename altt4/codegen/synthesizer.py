"""
Generator program synthesis.

This module turns the resolved section list of a template into one
self-contained Python program. Executing ``GenClass().execute()`` of that
program returns the rendered text; running it as a script writes the text
to the path given as its first argument.

Every line emitted for a section carries a LineMarker, so compiler
locations inside the program can be traced back to the template or include
file the section came from.
"""

from __future__ import annotations

import io
import re
import tokenize
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..diagnostics.model import Diagnostic, Location, Severity
from ..template.sections import ImportStatement, SectionKind, TemplateSection
from ..utils.constants import (
    BLOCK_CONTINUATION_KEYWORDS,
    BLOCK_END_KEYWORD,
    BUILDER_NAME,
    CLASS_NAME,
    CODE_OPEN_WIDTH,
    DEFAULT_IMPORTS,
    EXPRESSION_OPEN_WIDTH,
    GENERATED_SOURCE_NAME,
    INVARIANT_LOCALE,
    METHOD_NAME,
)
from ..utils.logging import get_logger
from ..utils.string_utils import leading_width, split_lines
from .program_builder import LineMarker, ProgramBuilder

logger = get_logger(__name__)

_END_RE = re.compile(rf"\A{BLOCK_END_KEYWORD}\s*(#.*)?\Z")
_CONTINUATION_RE = re.compile(rf"\A({'|'.join(BLOCK_CONTINUATION_KEYWORDS)})\b")

_INSIGNIFICANT_TOKENS = frozenset({
    tokenize.NEWLINE,
    tokenize.NL,
    tokenize.COMMENT,
    tokenize.INDENT,
    tokenize.DEDENT,
    tokenize.ENDMARKER,
})

UNMATCHED_END_ID = "UnmatchedEnd"
EMPTY_EXPRESSION_ID = "EmptyExpression"


@dataclass
class SynthesizedProgram:
    """Generator program text plus the provenance of each of its lines."""

    source: str
    markers: List[Optional[LineMarker]]
    imports: List[ImportStatement] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    source_name: str = GENERATED_SOURCE_NAME

    def marker_for(self, line: int) -> Optional[LineMarker]:
        """Return the marker of 1-based program *line*, None if synthetic."""
        if 1 <= line <= len(self.markers):
            return self.markers[line - 1]
        return None

    @property
    def lines(self) -> List[str]:
        return self.source.split("\n")


@dataclass
class _CodeLayout:
    """A code section split into lines with their relative indentation."""

    raw_lines: List[str]
    texts: List[str]
    columns: List[int]
    relative: List[int]
    verbatim_rows: frozenset
    block_row: Optional[int]


def _scan_tokens(text: str) -> Tuple[frozenset, Optional[int]]:
    """
    Tokenize dedented code.

    Returns:
        Rows (0-based) that continue a multi-line token and must be kept
        verbatim, and the first row of the statement ending with ``:`` when
        the code leaves a block open.
    """
    verbatim = set()
    last_significant = None
    statement_row = None
    new_statement = True

    try:
        for token in tokenize.generate_tokens(io.StringIO(text).readline):
            if token.end[0] > token.start[0]:
                verbatim.update(range(token.start[0], token.end[0]))
            if token.type in (tokenize.NEWLINE, tokenize.INDENT, tokenize.DEDENT):
                new_statement = True
            if token.type in _INSIGNIFICANT_TOKENS:
                continue
            if new_statement:
                statement_row = token.start[0] - 1
                new_statement = False
            last_significant = (token, statement_row)
    except (tokenize.TokenError, SyntaxError):
        # Fragments such as an unbalanced bracket end the scan early;
        # the compiler reports them against the right line.
        pass

    block_row = None
    if last_significant is not None:
        token, row = last_significant
        if token.type == tokenize.OP and token.string == ":":
            block_row = row

    return frozenset(verbatim), block_row


def layout_code(section: TemplateSection) -> _CodeLayout:
    """
    Split a code section into lines and compute their indentation.

    The first line starts right after ``<#`` and keeps no indentation of its
    own; following lines keep their indentation relative to the least
    indented line of the section.
    """
    raw_lines = split_lines(section.content)
    head_column = section.column + CODE_OPEN_WIDTH

    texts: List[str] = []
    columns: List[int] = []
    for index, raw in enumerate(raw_lines):
        width = leading_width(raw)
        texts.append(raw[width:].rstrip())
        columns.append(head_column + width if index == 0 else width)

    present = [i for i, text in enumerate(texts) if text]
    head_present = bool(texts[0])
    body_columns = [columns[i] for i in present if i > 0]

    if head_present:
        base = min([columns[0]] + body_columns)
    else:
        base = min(body_columns) if body_columns else 0

    relative = []
    for index in range(len(texts)):
        if index == 0:
            relative.append(0)
        else:
            relative.append(max(0, columns[index] - base))

    dedented = "\n".join(" " * rel + text if text else "" for rel, text in zip(relative, texts)) + "\n"
    verbatim_rows, block_row = _scan_tokens(dedented)

    return _CodeLayout(raw_lines, texts, columns, relative, verbatim_rows, block_row)


class ProgramSynthesizer:
    """
    Synthesizes the generator program for a resolved template.

    Text sections become ``builder.write`` calls with the text as a string
    literal; expressions are written through ``str()``; code is emitted as
    Python statements. A code section ending with ``:`` opens a block that
    stays open for the following sections until ``<# end #>``; sections
    starting with ``else``, ``elif``, ``except`` or ``finally`` continue the
    open block.
    """

    def __init__(self):
        self.builder = ProgramBuilder()
        self._diagnostics: List[Diagnostic] = []

    def synthesize(
        self,
        sections: Sequence[TemplateSection],
        imports: Sequence[ImportStatement] = (),
        culture: Optional[str] = None,
    ) -> SynthesizedProgram:
        """
        Emit the generator program.

        Args:
            sections: Resolved text, code and expression sections in order
            imports: Imports requested by import directives
            culture: Locale name to activate, None for the invariant locale

        Returns:
            SynthesizedProgram with per-line provenance
        """
        self.builder.reset()
        self._diagnostics = []

        self._write_preamble(imports)
        self._begin_method()
        self._write_locale_setup(culture)

        for section in sections:
            if section.kind is SectionKind.TEXT:
                self._write_text(section)
            elif section.kind is SectionKind.EXPRESSION:
                self._write_expression(section)
            elif section.kind is SectionKind.CODE:
                self._write_code(section)
            else:
                raise ValueError(f"Unsupported section kind: {section.kind}")

        self._end_method()
        self._write_entry_point()

        source, markers = self.builder.build()
        logger.debug(f"Synthesized program for {len(sections)} sections ({len(markers)} lines)")
        return SynthesizedProgram(source, markers, list(imports), list(self._diagnostics))

    # ------------------------------------------------------------------
    # Fixed structure
    # ------------------------------------------------------------------

    def _write_preamble(self, imports: Sequence[ImportStatement]) -> None:
        for module in DEFAULT_IMPORTS:
            self.builder.add_line(f"import {module}  # default")
        for statement in imports:
            marker = LineMarker(statement.source_file, statement.line, statement.column)
            self.builder.add_line(statement.render(), marker)
        self.builder.add_blank_line()
        self.builder.add_blank_line()

    def _begin_method(self) -> None:
        self.builder.add_line(f"class {CLASS_NAME}:")
        self.builder.indent()
        self.builder.add_line(f"def {METHOD_NAME}(self):")
        self.builder.indent()
        self.builder.add_line(f"{BUILDER_NAME} = io.StringIO()")

    def _write_locale_setup(self, culture: Optional[str]) -> None:
        invariant = f"locale.setlocale(locale.LC_ALL, {INVARIANT_LOCALE!r})"
        if culture is None or not culture.strip():
            self.builder.add_line(invariant)
            return

        warning = (
            f"#warning The valid culture could not be resolved from {culture}. "
            f"This source is generated using the invariant culture.\n"
        )
        self.builder.add_line("try:")
        self.builder.indent()
        self.builder.add_line(f"locale.setlocale(locale.LC_ALL, {culture!r})")
        self.builder.dedent()
        self.builder.add_line("except locale.Error:")
        self.builder.indent()
        self.builder.add_line(invariant)
        self.builder.add_line(f"{BUILDER_NAME}.write({warning!r})")
        self.builder.dedent()

    def _end_method(self) -> None:
        self.builder.close_template_blocks()
        self.builder.add_line(f"return {BUILDER_NAME}.getvalue()")
        self.builder.dedent()
        self.builder.dedent()

    def _write_entry_point(self) -> None:
        self.builder.add_blank_line()
        self.builder.add_blank_line()
        self.builder.add_line("def main(argv=None):")
        self.builder.indent()
        self.builder.add_line("argv = sys.argv if argv is None else argv")
        self.builder.add_line("with open(argv[1], 'w', encoding='utf-8', newline='') as fp:")
        self.builder.indent()
        self.builder.add_line(f"fp.write({CLASS_NAME}().{METHOD_NAME}())")
        self.builder.dedent()
        self.builder.dedent()
        self.builder.add_blank_line()
        self.builder.add_blank_line()
        self.builder.add_line("if __name__ == '__main__':")
        self.builder.indent()
        self.builder.add_line("main()")
        self.builder.dedent()

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _write_text(self, section: TemplateSection) -> None:
        delta = section.column - self.builder.current_width
        marker = LineMarker(section.source_file, section.line, delta)
        self.builder.add_line(f"{BUILDER_NAME}.write({section.content!r})", marker)

    def _write_expression(self, section: TemplateSection) -> None:
        if not section.content.strip():
            self._report_empty_expression(section)
            return

        self.builder.add_line(f"{BUILDER_NAME}.write(str((")

        # Pad the expression to the column it occupies in the original file
        padding = " " * (section.column + EXPRESSION_OPEN_WIDTH)
        for offset, line in enumerate(split_lines(section.content)):
            marker = LineMarker(section.source_file, section.line + offset, 0)
            self.builder.add_raw_line((padding if offset == 0 else "") + line, marker)

        self.builder.add_raw_line(" " * self.builder.current_width + ")))")

    def _report_empty_expression(self, section: TemplateSection) -> None:
        marker = LineMarker(section.source_file, section.line, section.column - self.builder.current_width)
        self.builder.add_line("pass  # empty expression", marker)

        line = self.builder.line_count
        self._diagnostics.append(Diagnostic(
            EMPTY_EXPRESSION_ID,
            Severity.ERROR,
            "expression tag has no expression",
            Location(GENERATED_SOURCE_NAME, line, self.builder.current_width, line, self.builder.current_width + 4),
        ))

    def _write_code(self, section: TemplateSection) -> None:
        stripped = section.content.strip()
        if not stripped:
            return

        if _END_RE.match(stripped):
            self._close_block(section)
            return

        layout = layout_code(section)

        first_text = next(text for text in layout.texts if text)
        if _CONTINUATION_RE.match(first_text) and self.builder.template_block_depth > 0:
            self.builder.dedent()

        base_width = self.builder.current_width
        for row, raw in enumerate(layout.raw_lines):
            line_number = section.line + row
            if row in layout.verbatim_rows:
                self.builder.add_raw_line(raw, LineMarker(section.source_file, line_number, 0))
                continue

            text = layout.texts[row]
            if not text:
                continue

            emitted_column = base_width + layout.relative[row]
            marker = LineMarker(section.source_file, line_number, layout.columns[row] - emitted_column)
            self.builder.add_line(text, marker, extra_width=layout.relative[row])

        if layout.block_row is not None:
            width = base_width + layout.relative[layout.block_row] + len(self.builder.indent_str)
            self.builder.open_template_block(width)

    def _close_block(self, section: TemplateSection) -> None:
        if self.builder.template_block_depth > 0:
            self.builder.dedent()
            return

        # Keep a line for the stray "end" so its diagnostic has a location
        column = section.column + CODE_OPEN_WIDTH + leading_width(section.content)
        marker = LineMarker(section.source_file, section.line, column - self.builder.current_width)
        self.builder.add_line(f"pass  # {BLOCK_END_KEYWORD}", marker)

        line = self.builder.line_count
        self._diagnostics.append(Diagnostic(
            UNMATCHED_END_ID,
            Severity.ERROR,
            f"'{BLOCK_END_KEYWORD}' does not close any block opened by template code",
            Location(GENERATED_SOURCE_NAME, line, self.builder.current_width, line, self.builder.current_width + 4),
        ))
