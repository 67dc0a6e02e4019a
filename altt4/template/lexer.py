"""
Tag lexer for text templates.

Splits template text into literal text, code (``<# #>``), expression
(``<#= #>``) and directive (``<#@ #>``) sections in a single left-to-right
scan, tracking the line and column where each section begins.

Backslashes directly in front of a tag marker act as escapes: every pair
collapses to one backslash, and an odd count leaves the marker as literal
content together with the unpaired backslash::

    1 backslash   + <#  ->  \\<#     (literal marker)
    2 backslashes + <#  ->  \\ + tag
    3 backslashes + <#  ->  \\\\<#    (literal marker)
"""

from __future__ import annotations

from typing import Iterator, List

from ..utils.constants import (
    CODE_OPEN_WIDTH,
    DIRECTIVE_MARK,
    ESCAPE_CHAR,
    EXPRESSION_MARK,
    EXPRESSION_OPEN_WIDTH,
    TAG_CLOSE,
    TAG_OPEN,
)
from ..utils.logging import get_logger
from .sections import LexedSection, ParseKind

logger = get_logger(__name__)

FIRST_LINE_NUMBER = 1
FIRST_COLUMN_NUMBER = 0


def _consume_leading_escapes(buffer: List[str]) -> bool:
    """
    Apply the escape rule to the characters in front of a tag marker.

    Removes ``count // 2`` trailing escape characters from *buffer*.

    Returns:
        True when the marker is a tag boundary (even escape count)
    """
    count = 0
    for ch in reversed(buffer):
        if ch != ESCAPE_CHAR:
            break
        count += 1

    remove_count = count // 2
    if remove_count:
        del buffer[-remove_count:]

    return count % 2 == 0


def _flush(buffer: List[str]) -> str:
    content = "".join(buffer)
    buffer.clear()
    return content


def iter_sections(text: str) -> Iterator[LexedSection]:
    """
    Lazily scan *text* into sections.

    Each call starts an independent scan. Sections cover the input without
    gaps: empty text between adjacent tags produces no section, and an
    unterminated tag at the end of input is flushed as its own kind.

    Args:
        text: Full text of one template or include file

    Yields:
        LexedSection in document order
    """
    mode = ParseKind.TEXT
    buffer: List[str] = []
    line = FIRST_LINE_NUMBER
    column = FIRST_COLUMN_NUMBER
    begin_line, begin_column = line, column
    length = len(text)
    i = 0

    while i < length:
        if mode is ParseKind.TEXT:
            if text.startswith(TAG_OPEN, i) and _consume_leading_escapes(buffer):
                content = _flush(buffer)
                if content:
                    yield LexedSection(mode, begin_line, begin_column, content)

                marker = text[i + 2] if i + 2 < length else ""
                if marker == EXPRESSION_MARK:
                    mode, width = ParseKind.EXPRESSION, EXPRESSION_OPEN_WIDTH
                elif marker == DIRECTIVE_MARK:
                    mode, width = ParseKind.DIRECTIVE, EXPRESSION_OPEN_WIDTH
                else:
                    mode, width = ParseKind.CODE, CODE_OPEN_WIDTH

                begin_line, begin_column = line, column
                i += width
                column += width
                continue
        elif text.startswith(TAG_CLOSE, i) and _consume_leading_escapes(buffer):
            content = _flush(buffer)
            if content:
                yield LexedSection(mode, begin_line, begin_column, content)

            mode = ParseKind.TEXT
            i += len(TAG_CLOSE)
            column += len(TAG_CLOSE)
            begin_line, begin_column = line, column
            continue

        ch = text[i]
        buffer.append(ch)
        if ch == "\n":
            line += 1
            column = FIRST_COLUMN_NUMBER
        else:
            column += 1
        i += 1

    content = _flush(buffer)
    if content:
        if mode is not ParseKind.TEXT:
            logger.debug(f"Unterminated {mode.value} tag starting at ({begin_line},{begin_column})")
        yield LexedSection(mode, begin_line, begin_column, content)


class TagLexer:
    """
    Restartable section sequence over one file's text.

    Iterating the lexer twice scans the text twice; nothing is cached.
    """

    def __init__(self, text: str):
        self.text = text

    def __iter__(self) -> Iterator[LexedSection]:
        return iter_sections(self.text)

    def tokenize(self) -> List[LexedSection]:
        """Scan the whole text eagerly."""
        sections = list(self)
        logger.debug(f"Tokenized text into {len(sections)} sections")
        return sections
