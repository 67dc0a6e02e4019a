"""
Diagnostic remapping for failed generator programs.

Compiler diagnostics point into the synthesized program. This module traces
them back through the per-line markers to the template that produced the
offending line, and builds the fallback document written in place of the
rendered output when compilation fails.
"""

from __future__ import annotations

import bisect
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..utils.constants import COMMENT_PREFIX, GENERATED_SOURCE_NAME, INCLUDED_DIAGNOSTIC_PREFIX
from ..utils.logging import get_logger
from ..utils.string_utils import comment_text
from .model import Diagnostic, Location

if TYPE_CHECKING:
    from ..codegen.synthesizer import SynthesizedProgram

logger = get_logger(__name__)


@dataclass
class RemapResult:
    """Diagnostics to report and the fallback document for one template."""

    diagnostics: List[Diagnostic] = field(default_factory=list)
    fallback_text: str = ""


class _LineIndex:
    """Character offsets of line starts, for line/column to offset lookups."""

    def __init__(self, text: str):
        self.length = len(text)
        self.starts = [0]
        for index, ch in enumerate(text):
            if ch == "\n":
                self.starts.append(index + 1)

    def offset(self, line: int, column: int) -> int:
        if line < 1:
            return 0
        if line > len(self.starts):
            return self.length
        line_start = self.starts[line - 1]
        line_end = self.starts[line] - 1 if line < len(self.starts) else self.length
        return min(line_start + max(0, column), line_end)

    def position(self, offset: int) -> tuple:
        line = bisect.bisect_right(self.starts, offset)
        return line, offset - self.starts[line - 1]


class DiagnosticRemapper:
    """
    Remaps program diagnostics onto template locations.

    Three cases are distinguished by the marker of the program line a
    diagnostic points at:

    * no marker: the line was synthesized, the diagnostic is located in the
      fallback document where the commented program is shown;
    * marker in the top-level template: the exact original position;
    * marker in an include file: the include position is folded into the
      message and the diagnostic is anchored at the top of the template.
    """

    def __init__(self, template_path: str, template_text: str):
        """
        Initialize remapper.

        Args:
            template_path: Path of the top-level template
            template_text: Text of the top-level template
        """
        self.template_path = template_path
        self.template_text = template_text
        self._template_index = _LineIndex(template_text)

    def remap(self, program: "SynthesizedProgram", diagnostics: Sequence[Diagnostic]) -> RemapResult:
        """
        Remap every diagnostic and build the fallback document.

        Args:
            program: The program the diagnostics were reported against
            diagnostics: Compiler and synthesis diagnostics

        Returns:
            RemapResult with diagnostics in the original order
        """
        commented = comment_text(program.source.rstrip("\n"))
        fallback_index = _LineIndex(commented)

        listing = []
        remapped = []
        for diagnostic in diagnostics:
            fallback_location = self._fallback_location(diagnostic.location, fallback_index)
            listing.append(diagnostic.with_location(fallback_location).format())
            remapped.append(self._remap_one(diagnostic, program, fallback_location))

        template_name = os.path.basename(self.template_path)
        parts = [
            commented,
            "\n\n",
            f"#error Failed to compile the generator program built from {template_name}\n",
            "#if false\n",
        ]
        parts.extend(f"{line}\n" for line in listing)
        parts.append("#endif\n")

        logger.debug(f"Remapped {len(remapped)} diagnostics for {self.template_path}")
        return RemapResult(remapped, "".join(parts))

    def remap_diagnostics(self, program: "SynthesizedProgram", diagnostics: Sequence[Diagnostic]) -> List[Diagnostic]:
        """Remap diagnostics without keeping the fallback document."""
        return self.remap(program, diagnostics).diagnostics

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    @staticmethod
    def _fallback_location(location: Location, fallback_index: _LineIndex) -> Location:
        shift = len(COMMENT_PREFIX)
        column = location.column + shift
        end_column = location.end_column + shift if location.end_column is not None else None

        start = fallback_index.offset(location.line, column)
        length = 0
        if location.end_line is not None and end_column is not None:
            length = max(0, fallback_index.offset(location.end_line, end_column) - start)

        return Location(GENERATED_SOURCE_NAME, location.line, column, location.end_line, end_column, start, length)

    def _remap_one(self, diagnostic: Diagnostic, program: "SynthesizedProgram", fallback_location: Location) -> Diagnostic:
        location = diagnostic.location
        marker = program.marker_for(location.line) if location.path == program.source_name else None

        if marker is None:
            return diagnostic.with_location(fallback_location)

        if marker.source_file == self.template_path:
            return diagnostic.with_location(self._template_location(location, program))

        include_location = Location(marker.source_file, marker.line, marker.original_column(location.column))
        return Diagnostic(
            f"{INCLUDED_DIAGNOSTIC_PREFIX}{diagnostic.id}",
            diagnostic.severity,
            f"TemplateCompile{diagnostic.severity.title} {diagnostic.message} ({include_location.format()})",
            Location(self.template_path),
        )

    def _template_location(self, location: Location, program: "SynthesizedProgram") -> Location:
        marker = program.marker_for(location.line)
        line = marker.line
        column = marker.original_column(location.column)
        start = self._template_index.offset(line, column)

        end_line: Optional[int] = None
        end_column: Optional[int] = None
        length = 0

        end_marker = program.marker_for(location.end_line) if location.end_line is not None else None
        if end_marker is not None and end_marker.source_file == self.template_path and location.end_column is not None:
            end_line = end_marker.line
            end_column = end_marker.original_column(location.end_column)
            length = max(0, self._template_index.offset(end_line, end_column) - start)
            # Keep the end consistent with the clamped offset
            end_line, end_column = self._template_index.position(start + length)

        return Location(self.template_path, line, column, end_line, end_column, start, length)
