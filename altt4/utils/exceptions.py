"""
Custom exception definitions.

This module defines the exception hierarchy for altt4-specific
errors and the fallback handling used when a generator program fails.
"""

import traceback
from typing import List, Optional

from .string_utils import comment_lines
from .logging import get_logger

logger = get_logger(__name__)


class Altt4Error(Exception):
    """
    Base exception for all altt4-related errors.

    This is the root exception class for all altt4-specific
    errors, providing common functionality and error handling.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize altt4 error.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class DirectiveError(Altt4Error):
    """
    Raised when a directive cannot be processed.

    The resolver records these as comment lines rather than letting
    them propagate; the label matches the comment label.
    """

    def __init__(self, label: str, message: str = ""):
        """
        Initialize directive error.

        Args:
            label: Directive error label (e.g. ``IncludeFileNotFound``)
            message: Optional extra description appended to the label
        """
        text = f"{label} {message}".strip()
        super().__init__(text, {'label': label})
        self.label = label


class CompilationError(Altt4Error):
    """
    Raised when the synthesized generator program fails to compile.

    Carries the program text and the diagnostics reported for it.
    """

    def __init__(self, message: str, program_source: str = "", diagnostics: Optional[List] = None):
        """
        Initialize compilation error.

        Args:
            message: Error description
            program_source: Synthesized program that failed to compile
            diagnostics: Diagnostics reported by the compiler
        """
        details = {}
        if program_source:
            details['source_length'] = len(program_source)
        if diagnostics:
            details['diagnostic_count'] = len(diagnostics)

        super().__init__(message, details)
        self.program_source = program_source
        self.diagnostics = list(diagnostics or [])


class ExecutionError(Altt4Error):
    """
    Raised when a compiled generator program fails while running.

    This is the runtime fault of the template itself, e.g. an exception
    thrown from an embedded expression.
    """

    def __init__(self, message: str, exception_text: str = "", exit_code: Optional[int] = None):
        """
        Initialize execution error.

        Args:
            message: Error description
            exception_text: Full description of the original failure
            exit_code: Optional exit code of an isolated process
        """
        details = {}
        if exit_code is not None:
            details['exit_code'] = exit_code

        super().__init__(message, details)
        self.exception_text = exception_text or message
        self.exit_code = exit_code


class RenderCancelledError(Altt4Error):
    """Raised when a render is cancelled between pipeline phases."""

    def __init__(self, phase: str):
        super().__init__(f"Render cancelled {phase}", {'phase': phase})
        self.phase = phase


class ConfigurationError(Altt4Error):
    """Raised when configuration values are invalid."""


def format_exception_text(error: BaseException) -> str:
    """Return the full traceback description of *error*."""
    if isinstance(error, ExecutionError):
        return error.exception_text
    return "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip("\n")


class FallbackHandler:
    """
    Turns generator program faults into fallback output.

    A faulting template still produces a file: every line of the exception
    description is written as a comment line in place of the rendered text.
    """

    def __init__(self):
        """Initialize fallback handler."""
        self._fallback_count = 0
        self._fallback_reasons = {}

    def should_fallback(self, error: Exception) -> bool:
        """
        Determine if error should be converted into fallback text.

        Args:
            error: Exception that occurred while loading or running a program

        Returns:
            True if the error is a soft failure, False if it must propagate
        """
        if isinstance(error, RenderCancelledError):
            return False

        return isinstance(error, Exception)

    def render_exception(self, error: BaseException, reason: str = "") -> str:
        """
        Render an exception as comment lines.

        Args:
            error: Exception raised by the generator program
            reason: Reason for fallback (for statistics and logging)

        Returns:
            Comment text, one ``// `` prefixed line per line of the description
        """
        self._fallback_count += 1

        reason = reason or type(error).__name__
        self._fallback_reasons[reason] = self._fallback_reasons.get(reason, 0) + 1

        logger.warning(f"Generator program failed, writing exception as comments (reason: {reason})")

        text = format_exception_text(error)
        return comment_lines(text)

    def get_fallback_stats(self) -> dict:
        """
        Get statistics about fallback usage.

        Returns:
            Dictionary containing fallback statistics
        """
        return {
            'total_fallbacks': self._fallback_count,
            'fallback_reasons': dict(self._fallback_reasons),
            'most_common_reason': max(self._fallback_reasons.items(),
                                      key=lambda x: x[1])[0] if self._fallback_reasons else None
        }

    def reset_stats(self) -> None:
        """Reset fallback statistics."""
        self._fallback_count = 0
        self._fallback_reasons.clear()


# Global fallback handler instance
_fallback_handler = FallbackHandler()


def get_fallback_handler() -> FallbackHandler:
    """Get the global fallback handler instance."""
    return _fallback_handler
