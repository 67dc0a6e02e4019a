"""
Unit tests for error handling.

This module tests the exception hierarchy and the fallback handler that
turns generator program faults into comment output.
"""

import pytest

from altt4.utils.exceptions import (
    Altt4Error,
    CompilationError,
    ConfigurationError,
    DirectiveError,
    ExecutionError,
    FallbackHandler,
    RenderCancelledError,
    format_exception_text,
    get_fallback_handler,
)


class TestAltt4Exceptions:
    """Test cases for custom exception classes."""

    def test_altt4_error_basic(self):
        """Test basic Altt4Error functionality."""
        error = Altt4Error("Test error message")

        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.details == {}

    def test_altt4_error_with_details(self):
        """Test Altt4Error with details."""
        error = Altt4Error("Test error", {"key1": "value1", "key2": 42})

        assert error.details == {"key1": "value1", "key2": 42}
        assert str(error) == "Test error (key1=value1, key2=42)"

    @pytest.mark.parametrize("error_type", [
        DirectiveError, CompilationError, ExecutionError, RenderCancelledError, ConfigurationError,
    ])
    def test_hierarchy(self, error_type):
        """Test every error derives from Altt4Error."""
        assert issubclass(error_type, Altt4Error)

    def test_directive_error(self):
        """Test DirectiveError combines label and description."""
        error = DirectiveError("InvalidIncludeDirective", "io error.")

        assert error.label == "InvalidIncludeDirective"
        assert error.message == "InvalidIncludeDirective io error."
        assert DirectiveError("CyclicInclude").message == "CyclicInclude"

    def test_compilation_error(self):
        """Test CompilationError keeps program source and diagnostics."""
        error = CompilationError("Compilation failed", "x = (", ["d1", "d2"])

        assert error.program_source == "x = ("
        assert error.diagnostics == ["d1", "d2"]
        assert error.details == {'source_length': 5, 'diagnostic_count': 2}

    def test_compilation_error_without_context(self):
        """Test CompilationError without program text."""
        error = CompilationError("Compilation failed")

        assert error.details == {}
        assert error.diagnostics == []

    def test_execution_error(self):
        """Test ExecutionError defaults its description to the message."""
        assert ExecutionError("boom").exception_text == "boom"

        error = ExecutionError("Generator process failed", "Traceback ...", 3)
        assert error.exception_text == "Traceback ..."
        assert error.exit_code == 3
        assert error.details == {'exit_code': 3}

    def test_render_cancelled_error(self):
        """Test RenderCancelledError records the phase."""
        error = RenderCancelledError("before loading the generator")

        assert error.phase == "before loading the generator"
        assert error.message == "Render cancelled before loading the generator"


class TestFormatExceptionText:
    """Test exception description formatting."""

    def test_traceback_text(self):
        """Test raised exceptions are described by their traceback."""
        try:
            raise ValueError("bad value")
        except ValueError as e:
            text = format_exception_text(e)

        assert text.startswith("Traceback (most recent call last):")
        assert text.endswith("ValueError: bad value")

    def test_execution_error_text(self):
        """Test ExecutionError uses its own description."""
        assert format_exception_text(ExecutionError("failed", "child trace")) == "child trace"


class TestFallbackHandler:
    """Test cases for FallbackHandler."""

    def test_should_fallback(self):
        """Test which errors fall back."""
        handler = FallbackHandler()

        assert handler.should_fallback(ValueError("x")) is True
        assert handler.should_fallback(ExecutionError("x")) is True
        assert handler.should_fallback(RenderCancelledError("after buffering the artifact")) is False

    def test_render_exception(self):
        """Test every line of the description becomes a comment line."""
        handler = FallbackHandler()

        text = handler.render_exception(ExecutionError("failed", "line one\r\nline two"))

        assert text == "// line one\n// line two\n"

    def test_fallback_stats(self):
        """Test fallbacks are counted per reason."""
        handler = FallbackHandler()
        handler.render_exception(ValueError("a"), "ValueError")
        handler.render_exception(ValueError("b"), "ValueError")
        handler.render_exception(KeyError("c"))

        stats = handler.get_fallback_stats()
        assert stats['total_fallbacks'] == 3
        assert stats['fallback_reasons'] == {'ValueError': 2, 'KeyError': 1}
        assert stats['most_common_reason'] == 'ValueError'

    def test_reset_stats(self):
        """Test resetting statistics."""
        handler = FallbackHandler()
        handler.render_exception(ValueError("a"))
        handler.reset_stats()

        stats = handler.get_fallback_stats()
        assert stats['total_fallbacks'] == 0
        assert stats['most_common_reason'] is None

    def test_global_handler(self):
        """Test the global handler is shared."""
        assert get_fallback_handler() is get_fallback_handler()
        assert isinstance(get_fallback_handler(), FallbackHandler)
