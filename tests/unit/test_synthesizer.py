"""
Unit tests for generator program synthesis.

Tests the emitted program structure, block handling of code sections and
the line markers that map program lines back to template positions.
"""

import pytest

from altt4.codegen.program_builder import LineMarker, ProgramBuilder
from altt4.codegen.synthesizer import EMPTY_EXPRESSION_ID, ProgramSynthesizer, UNMATCHED_END_ID, layout_code
from altt4.template.directives import DirectiveResolver
from altt4.template.sections import SectionKind, TemplateSection

TEMPLATE = "/templates/main.sgtt"


def synthesize(text, culture=None):
    resolved = DirectiveResolver({}).resolve(text, TEMPLATE)
    return ProgramSynthesizer().synthesize(resolved.sections, resolved.imports, culture)


def run(program):
    namespace = {}
    exec(compile(program.source, program.source_name, "exec"), namespace)
    return namespace["GenClass"]().execute()


def line_of(program, fragment):
    for number, line in enumerate(program.lines, start=1):
        if fragment in line:
            return number
    raise AssertionError(f"{fragment!r} not in program")


class TestProgramBuilder:
    """Test the line builder."""

    def test_empty_block_gets_pass(self):
        """Closing a block without body adds pass."""
        builder = ProgramBuilder()
        builder.add_line("if x:").indent().dedent()
        source, markers = builder.build()

        assert source == "if x:\n    pass\n"
        assert markers == [None, None]

    def test_markers_follow_lines(self):
        """Every line keeps its marker."""
        builder = ProgramBuilder()
        marker = LineMarker("/t", 3, -2)
        builder.add_line("a = 1", marker).add_blank_line()

        assert builder.build()[1] == [marker, None]
        assert marker.original_column(4) == 2

    def test_template_blocks_tracked(self):
        """Only template blocks count towards the template block depth."""
        builder = ProgramBuilder()
        builder.indent().open_template_block(8)

        assert builder.template_block_depth == 1
        builder.close_template_blocks()
        assert builder.template_block_depth == 0
        assert builder.current_width == 4


class TestProgramStructure:
    """Test the fixed program structure."""

    def test_default_imports_and_entry_points(self):
        """The program imports defaults and defines GenClass and main."""
        program = synthesize("x")

        for module in ("sys", "io", "locale", "collections", "datetime", "math"):
            assert f"import {module}  # default" in program.lines
        assert "class GenClass:" in program.lines
        assert "    def execute(self):" in program.lines
        assert "def main(argv=None):" in program.lines
        assert "if __name__ == '__main__':" in program.lines

    def test_directive_imports_follow_defaults(self):
        """Directive imports are emitted after the default imports."""
        program = synthesize('<#@ import namespace="json" #>')

        assert line_of(program, "import json") > line_of(program, "import math")
        assert program.marker_for(line_of(program, "import json")) == LineMarker(TEMPLATE, 1, 0)

    def test_invariant_locale_without_culture(self):
        """Without a culture the invariant locale is forced."""
        program = synthesize("x")

        assert "        locale.setlocale(locale.LC_ALL, 'C')" in program.lines
        assert "except locale.Error:" not in program.source

    def test_culture_fallback_block(self):
        """A culture is attempted with a fallback to the invariant locale."""
        program = synthesize("x", culture="de_DE.UTF-8")

        assert "locale.setlocale(locale.LC_ALL, 'de_DE.UTF-8')" in program.source
        assert "except locale.Error:" in program.source
        assert "could not be resolved from de_DE.UTF-8" in program.source

    def test_synthetic_lines_have_no_marker(self):
        """Fixed structure lines carry no marker."""
        program = synthesize("x")

        assert program.marker_for(line_of(program, "class GenClass:")) is None
        assert program.marker_for(0) is None
        assert program.marker_for(len(program.markers) + 1) is None


class TestSections:
    """Test emission of text, expression and code sections."""

    def test_text_is_repr_literal(self):
        """Text is embedded as a string literal."""
        program = synthesize("it's \"quoted\"\n\\path")

        assert run(program) == "it's \"quoted\"\n\\path"

    def test_text_marker(self):
        """Text lines map to the section start."""
        program = synthesize("ab\ncd")
        line = line_of(program, "builder.write('ab\\ncd')")

        assert program.marker_for(line).line == 1

    def test_expression_padded_to_original_column(self):
        """Expression lines start at the column of the expression content."""
        program = synthesize('Hello <#= "World" #>!')
        line = line_of(program, '"World"')

        assert program.lines[line - 1] == ' ' * 9 + ' "World" '
        assert program.marker_for(line) == LineMarker(TEMPLATE, 1, 0)
        assert run(program) == "Hello World!"

    def test_multiline_expression(self):
        """Multi-line expressions keep every line."""
        program = synthesize("<#= 1 +\n  2 #>")

        assert run(program) == "3"
        assert program.marker_for(line_of(program, "  2 ")).line == 2

    def test_code_column_delta(self):
        """Code line markers map emitted columns to template columns."""
        program = synthesize("A\n  <#  value = 1 #><#= value #>")
        line = line_of(program, "value = 1")
        marker = program.marker_for(line)
        emitted_column = program.lines[line - 1].index("value")

        assert marker.line == 2
        assert marker.original_column(emitted_column) == 6

    def test_multiline_code_keeps_relative_indent(self):
        """Following lines keep their indentation relative to the section."""
        text = "<#\ndef shout(s):\n    return s.upper()\n#><#= shout('hi') #>"
        program = synthesize(text)

        assert run(program) == "HI"
        assert program.marker_for(line_of(program, "return s.upper()")).line == 3

    def test_multiline_string_kept_verbatim(self):
        """Continuation lines of a triple-quoted string are not re-indented."""
        text = '<#\nbanner = """one\n  two"""\n#><#= banner #>'

        assert run(synthesize(text)) == "one\n  two"

    def test_blank_code_section_ignored(self):
        """Whitespace-only code sections emit nothing."""
        assert run(synthesize("a<#   #>b")) == "ab"

    def test_empty_expression(self):
        """An expression tag with nothing in it is a synthesis diagnostic."""
        program = synthesize("a<#=  #>b")

        assert [d.id for d in program.diagnostics] == [EMPTY_EXPRESSION_ID]
        diagnostic = program.diagnostics[0]
        assert diagnostic.is_error
        marker = program.marker_for(diagnostic.location.line)
        assert marker.line == 1
        assert marker.original_column(diagnostic.location.column) == 1
        assert "str(()" not in program.source


class TestBlocks:
    """Test block handling across code sections."""

    def test_loop_block(self):
        """A section ending with a colon opens a block closed by end."""
        assert run(synthesize("<# for i in range(3): #><#= i #>,<# end #>.")) == "0,1,2,."

    def test_if_else(self):
        """else continues the enclosing block."""
        template = "<# flag = False #><# if flag: #>yes<# else: #>no<# end #>"

        assert run(synthesize(template)) == "no"

    def test_elif_chain(self):
        """elif sections dedent before emitting."""
        template = "<# n = 2 #><# if n == 1: #>one<# elif n == 2: #>two<# else: #>many<# end #>"

        assert run(synthesize(template)) == "two"

    def test_try_except(self):
        """except continues a try block."""
        template = "<# try: #><#= 1 / 0 #><# except ZeroDivisionError: #>div<# end #>"

        assert run(synthesize(template)) == "div"

    def test_nested_blocks(self):
        """Blocks nest."""
        template = "<# for i in range(2): #><# for j in range(2): #><#= i * j #><# end #>|<# end #>"

        assert run(synthesize(template)) == "00|01|"

    def test_empty_block_gets_pass(self):
        """A block without sections still compiles."""
        assert run(synthesize("<# if True: #><# end #>x")) == "x"

    def test_unclosed_block_closed_at_end(self):
        """Blocks left open are closed before the return."""
        assert run(synthesize("<# if True: #>open")) == "open"

    def test_end_with_comment(self):
        """end may carry a comment."""
        assert run(synthesize("<# if True: #>x<# end  # if #>")) == "x"

    def test_colon_inside_brackets_does_not_open_block(self):
        """Only a trailing colon opens a block."""
        assert run(synthesize("<# d = {1: 'a'} #><#= d[1] #>")) == "a"

    def test_unmatched_end(self):
        """An end without open block is a synthesis diagnostic."""
        program = synthesize("A\n<# end #>")

        assert len(program.diagnostics) == 1
        diagnostic = program.diagnostics[0]
        assert diagnostic.id == UNMATCHED_END_ID
        assert diagnostic.is_error
        assert program.marker_for(diagnostic.location.line).line == 2


class TestLayoutCode:
    """Test code section layout."""

    def test_head_line_and_body(self):
        """The head line has no relative indent and body lines keep theirs."""
        section = TemplateSection(SectionKind.CODE, TEMPLATE, 1, 4, " if x:\n        y = 1\n")
        layout = layout_code(section)

        assert layout.texts[:2] == ["if x:", "y = 1"]
        assert layout.relative[:2] == [0, 1]
        assert layout.columns[:2] == [7, 8]
        assert layout.block_row is None

    def test_trailing_colon_opens_block(self):
        """The statement row ending with a colon is reported."""
        section = TemplateSection(SectionKind.CODE, TEMPLATE, 1, 0, "\nx = 1\nwhile (x <\n       3):\n")
        layout = layout_code(section)

        assert layout.block_row == 2
