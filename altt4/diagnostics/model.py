"""
Diagnostic data model.

Diagnostics are produced by the synthesizer and the dynamic compiler
against the synthesized program, then remapped to template locations
before being reported to the host.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class Severity(Enum):
    """Diagnostic severity levels."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def title(self) -> str:
        """Capitalized name used in rewritten messages (``Error``)."""
        return self.value.capitalize()


@dataclass(frozen=True)
class Location:
    """
    A position inside a file.

    Lines are 1-based and columns 0-based, matching the lexer. ``start`` and
    ``length`` give the character span in the file text when it is known.
    """

    path: str
    line: int = 1
    column: int = 0
    end_line: Optional[int] = None
    end_column: Optional[int] = None
    start: int = 0
    length: int = 0

    def format(self) -> str:
        return f"{self.path}({self.line},{self.column + 1})"


@dataclass(frozen=True)
class Diagnostic:
    """A compiler or synthesis diagnostic."""

    id: str
    severity: Severity
    message: str
    location: Location

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def with_location(self, location: Location) -> "Diagnostic":
        return replace(self, location=location)

    def format(self) -> str:
        """Render the diagnostic the way compilers print them."""
        return f"{self.location.format()}: {self.severity.value} {self.id}: {self.message}"

    def __str__(self) -> str:
        return self.format()


def has_errors(diagnostics) -> bool:
    """Return True when any diagnostic is an error."""
    return any(d.is_error for d in diagnostics)
