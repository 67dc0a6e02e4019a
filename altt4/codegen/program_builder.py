"""
Line builder for synthesized generator programs.

This module implements the builder used to emit the Python generator
program line by line, keeping an indentation stack for the blocks opened
by template code and a provenance marker for every emitted line.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..utils.constants import PROGRAM_INDENT
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineMarker:
    """
    Provenance of one emitted program line.

    ``column_delta`` converts a column of the emitted line into a column of
    the original file: ``original = emitted + column_delta``.
    """

    source_file: str
    line: int
    column_delta: int = 0

    def original_column(self, emitted_column: int) -> int:
        """Map a column of the emitted line back to the original file."""
        return max(0, emitted_column + self.column_delta)


@dataclass
class _Block:
    """An indentation level opened by the program or by template code."""

    width: int
    has_body: bool = False
    from_template: bool = False


class ProgramBuilder:
    """
    Builder for generator program text.

    Lines are added at the current indentation; each line may carry a
    LineMarker. Blocks opened by template code are tracked separately from
    the fixed class/method structure so that an unmatched ``end`` can be
    detected.
    """

    def __init__(self, indent_str: str = PROGRAM_INDENT):
        """Initialize the program builder."""
        self.indent_str = indent_str
        self._lines: List[str] = []
        self._markers: List[Optional[LineMarker]] = []
        self._blocks: List[_Block] = [_Block(0)]

    def reset(self) -> None:
        """Reset the builder for a new generation."""
        self._lines = []
        self._markers = []
        self._blocks = [_Block(0)]

    # ------------------------------------------------------------------
    # Indentation
    # ------------------------------------------------------------------

    @property
    def current_width(self) -> int:
        return self._blocks[-1].width

    @property
    def template_block_depth(self) -> int:
        """Number of open blocks that were opened by template code."""
        return sum(1 for block in self._blocks if block.from_template)

    def indent(self) -> 'ProgramBuilder':
        """Open a fixed program block one level deeper."""
        self._blocks.append(_Block(self.current_width + len(self.indent_str)))
        return self

    def open_template_block(self, width: int) -> 'ProgramBuilder':
        """Open a block started by template code at an explicit width."""
        self._blocks.append(_Block(width, from_template=True))
        return self

    def dedent(self) -> 'ProgramBuilder':
        """Close the innermost block, filling it with ``pass`` if empty."""
        block = self._blocks[-1]
        if not block.has_body:
            self.add_line("pass")
        self._blocks.pop()
        return self

    def close_template_blocks(self) -> 'ProgramBuilder':
        """Close every block opened by template code."""
        while self._blocks[-1].from_template:
            self.dedent()
        return self

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def add_line(self, text: str, marker: Optional[LineMarker] = None, extra_width: int = 0) -> 'ProgramBuilder':
        """Add a statement line at the current indentation."""
        width = self.current_width + extra_width
        self._lines.append(" " * width + text)
        self._markers.append(marker)
        self._blocks[-1].has_body = True
        return self

    def add_raw_line(self, text: str, marker: Optional[LineMarker] = None) -> 'ProgramBuilder':
        """Add a line verbatim, without indentation (continuation lines)."""
        self._lines.append(text)
        self._markers.append(marker)
        return self

    def add_blank_line(self) -> 'ProgramBuilder':
        """Add an empty line."""
        self._lines.append("")
        self._markers.append(None)
        return self

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def build(self) -> Tuple[str, List[Optional[LineMarker]]]:
        """Return the program text and the marker of every line."""
        source = "\n".join(self._lines) + "\n"
        logger.debug(f"Built generator program with {len(self._lines)} lines")
        return source, list(self._markers)
