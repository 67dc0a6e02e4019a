"""
Unit tests for the tag lexer.

Tests section splitting, position tracking, escape handling and the
restartable section sequence.
"""

import pytest

from altt4.template.lexer import TagLexer, iter_sections
from altt4.template.sections import LexedSection, ParseKind


def kinds(text):
    return [s.kind for s in iter_sections(text)]


class TestSectionSplitting:
    """Test splitting text into sections."""

    def test_plain_text(self):
        """Text without tags is a single text section."""
        assert list(iter_sections("hello")) == [LexedSection(ParseKind.TEXT, 1, 0, "hello")]

    def test_empty_text(self):
        """Empty input produces no sections."""
        assert list(iter_sections("")) == []

    def test_expression_between_text(self):
        """Expression tags split the surrounding text."""
        sections = list(iter_sections('Hello <#= "World" #>!'))

        assert sections == [
            LexedSection(ParseKind.TEXT, 1, 0, "Hello "),
            LexedSection(ParseKind.EXPRESSION, 1, 6, ' "World" '),
            LexedSection(ParseKind.TEXT, 1, 20, "!"),
        ]

    def test_tag_kinds(self):
        """Third character selects expression, directive or code."""
        assert kinds("<#= a #><#@ b #><# c #>") == [
            ParseKind.EXPRESSION,
            ParseKind.DIRECTIVE,
            ParseKind.CODE,
        ]

    def test_adjacent_tags_produce_no_empty_text(self):
        """Nothing is emitted for the empty text between adjacent tags."""
        assert all(s.kind is not ParseKind.TEXT for s in iter_sections("<# a #><# b #>"))

    def test_empty_tag_produces_no_section(self):
        """A tag with empty content yields nothing."""
        assert list(iter_sections("<##>")) == []

    def test_unterminated_tag_flushed_as_its_kind(self):
        """Content of an unterminated tag is emitted with the tag kind."""
        sections = list(iter_sections("a<# x = 1"))

        assert sections[-1] == LexedSection(ParseKind.CODE, 1, 1, " x = 1")

    def test_close_marker_in_text_is_literal(self):
        """A close marker outside a tag is ordinary text."""
        assert list(iter_sections("a #> b")) == [LexedSection(ParseKind.TEXT, 1, 0, "a #> b")]


class TestPositions:
    """Test line and column tracking."""

    def test_positions_after_newlines(self):
        """Lines start at 1 and columns reset after a newline."""
        sections = list(iter_sections("ab\ncd<# x #>\n  <#= y #>"))

        assert (sections[1].line, sections[1].column) == (2, 2)
        assert (sections[3].line, sections[3].column) == (3, 2)

    def test_text_after_multiline_tag(self):
        """Text following a multi-line tag starts after the close marker."""
        sections = list(iter_sections("<#\nx = 1\n#>tail"))

        assert sections[-1] == LexedSection(ParseKind.TEXT, 3, 2, "tail")

    def test_sections_cover_input(self):
        """Concatenated contents plus markers reproduce the input length."""
        text = "a<# b #>c<#= d #>e<#@ f #>g"
        sections = list(iter_sections(text))

        markers = {ParseKind.TEXT: 0, ParseKind.CODE: 4, ParseKind.EXPRESSION: 5, ParseKind.DIRECTIVE: 5}
        assert sum(len(s.content) + markers[s.kind] for s in sections) == len(text)


class TestEscapes:
    """Test backslash escapes in front of tag markers."""

    @pytest.mark.parametrize("count", [1, 3, 5])
    def test_odd_count_keeps_marker_literal(self, count):
        """Odd counts leave the open marker literal and drop count // 2 backslashes."""
        text = "\\" * count + "<# x #>"
        sections = list(iter_sections(text))

        assert len(sections) == 1
        assert sections[0].kind is ParseKind.TEXT
        assert sections[0].content == "\\" * (count - count // 2) + "<# x #>"

    @pytest.mark.parametrize("count", [0, 2, 4])
    def test_even_count_opens_tag(self, count):
        """Even counts open the tag and collapse pairs into single backslashes."""
        text = "a" + "\\" * count + "<# x #>"
        sections = list(iter_sections(text))

        assert sections[0].content == "a" + "\\" * (count // 2)
        assert sections[-1] == LexedSection(ParseKind.CODE, 1, 1 + count, " x ")

    def test_escaped_close_marker_stays_in_code(self):
        """An escaped close marker is part of the tag content."""
        sections = list(iter_sections('<# s = "\\#>" #>'))

        assert sections == [LexedSection(ParseKind.CODE, 1, 0, ' s = "\\#>" ')]


class TestTagLexer:
    """Test the restartable lexer wrapper."""

    def test_iterating_twice_rescans(self):
        """Each iteration starts an independent scan."""
        lexer = TagLexer("a<#= b #>c")

        assert list(lexer) == list(lexer)
        assert len(lexer.tokenize()) == 3

    def test_iter_sections_is_lazy(self):
        """The scan yields sections before consuming the whole input."""
        sequence = iter_sections("a<# b #>c")

        assert next(sequence).content == "a"
