"""
Isolated execution of compiled generator programs.

This module runs a compiled artifact and returns the rendered text. Two
isolation modes are available:

* ``namespace`` loads the code into a fresh module that is never registered
  in ``sys.modules`` and discards it after the run.
* ``subprocess`` runs the program's script entry point in a separate
  interpreter, writing the rendered text to a temporary file.

Faults raised by the template itself never propagate: they are returned as
comment text describing the exception.
"""

from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import threading
import time
from dataclasses import dataclass
from typing import Optional

from ..utils.constants import DEFAULT_ISOLATION, DEFAULT_TIMEOUT_SECONDS, ISOLATION_MODES
from ..utils.exceptions import (
    ConfigurationError,
    ExecutionError,
    FallbackHandler,
    RenderCancelledError,
    format_exception_text,
    get_fallback_handler,
)
from ..utils.logging import get_logger
from .loader import CompiledArtifact, isolated_module

logger = get_logger(__name__)

# Loads the marshalled module code and runs it as __main__; the generated
# main() then writes to the path following the artifact path.
_RUNNER_SOURCE = (
    "import marshal, sys\n"
    "with open(sys.argv[1], 'rb') as fp:\n"
    "    code = marshal.load(fp)\n"
    "sys.argv = sys.argv[1:]\n"
    "exec(code, {'__name__': '__main__', '__file__': sys.argv[0]})\n"
)


@dataclass
class RenderOutcome:
    """Text produced by running a generator program."""

    text: str
    succeeded: bool = True
    exception_text: Optional[str] = None
    execution_time: float = 0.0


def _check_cancelled(cancel_event: Optional[threading.Event], phase: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise RenderCancelledError(phase)


class IsolatedExecutor:
    """
    Runs compiled generator programs in an isolated context.

    The isolated context is always torn down, whether the program succeeds,
    faults or the render is cancelled.
    """

    def __init__(
        self,
        isolation: str = DEFAULT_ISOLATION,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        fallback_handler: Optional[FallbackHandler] = None,
    ):
        """
        Initialize executor.

        Args:
            isolation: ``namespace`` or ``subprocess``
            timeout_seconds: Time limit for a subprocess run
            fallback_handler: Converts faults into comment text
        """
        if isolation not in ISOLATION_MODES:
            raise ConfigurationError(f"Invalid isolation mode: {isolation!r}")

        self.isolation = isolation
        self.timeout_seconds = timeout_seconds
        self.fallback_handler = fallback_handler or get_fallback_handler()

    def execute(self, artifact: CompiledArtifact, cancel_event: Optional[threading.Event] = None) -> RenderOutcome:
        """
        Run the generator program and capture its text.

        Args:
            artifact: Compiled generator program
            cancel_event: Event that cancels the render when set

        Returns:
            RenderOutcome with the rendered text, or the exception description
            as ``// `` comment lines when the program faults

        Raises:
            RenderCancelledError: If the render is cancelled
        """
        start_time = time.time()

        code_bytes = bytes(artifact.code_bytes)
        _check_cancelled(cancel_event, "after buffering the artifact")

        try:
            if self.isolation == "subprocess":
                text = self._run_in_subprocess(code_bytes, cancel_event)
            else:
                text = self._run_in_namespace(artifact, cancel_event)
        except Exception as e:
            if not self.fallback_handler.should_fallback(e):
                raise
            elapsed = time.time() - start_time
            logger.debug(f"Generator program faulted after {elapsed:.3f}s: {type(e).__name__}")
            return RenderOutcome(
                text=self.fallback_handler.render_exception(e, type(e).__name__),
                succeeded=False,
                exception_text=format_exception_text(e),
                execution_time=elapsed,
            )

        elapsed = time.time() - start_time
        logger.debug(f"Generator program produced {len(text)} characters in {elapsed:.3f}s")
        return RenderOutcome(text=text, execution_time=elapsed)

    def _run_in_namespace(self, artifact: CompiledArtifact, cancel_event: Optional[threading.Event]) -> str:
        _check_cancelled(cancel_event, "before loading the generator")

        with isolated_module(artifact) as module:
            _check_cancelled(cancel_event, "after loading the generator")

            generator_class = getattr(module, artifact.entry_class)
            try:
                text = getattr(generator_class(), artifact.entry_method)()
            except SystemExit as e:
                raise ExecutionError(f"Generator program exited with code {e.code}") from e

        if not isinstance(text, str):
            raise ExecutionError(f"Generator returned {type(text).__name__}, expected str")
        return text

    def _run_in_subprocess(self, code_bytes: bytes, cancel_event: Optional[threading.Event]) -> str:
        with tempfile.NamedTemporaryFile(mode='wb', suffix='.marshal', delete=False) as artifact_file:
            artifact_file.write(code_bytes)
            artifact_path = artifact_file.name

        with tempfile.NamedTemporaryFile(mode='w', suffix='.txt', delete=False) as output_file:
            output_path = output_file.name

        try:
            _check_cancelled(cancel_event, "before loading the generator")

            cmd = [sys.executable, "-c", _RUNNER_SOURCE, artifact_path, output_path]
            logger.debug(f"Running generator process: {sys.executable} -c <runner> {artifact_path} {output_path}")

            try:
                result = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout_seconds,
                    check=False,
                )
            except subprocess.TimeoutExpired as e:
                raise ExecutionError(f"Generator process timed out after {self.timeout_seconds} seconds") from e

            _check_cancelled(cancel_event, "after running the generator")

            if result.returncode != 0:
                raise ExecutionError(
                    f"Generator process failed with return code {result.returncode}",
                    exception_text=result.stderr.strip() or result.stdout.strip(),
                    exit_code=result.returncode,
                )

            with open(output_path, "r", encoding="utf-8", newline="") as fp:
                return fp.read()
        finally:
            for path in (artifact_path, output_path):
                try:
                    os.unlink(path)
                except OSError as e:
                    logger.debug(f"Failed to remove temporary file {path}: {e}")
