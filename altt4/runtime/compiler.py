"""
Dynamic compilation of generator programs.

This module compiles the synthesized program text with the interpreter's
own compiler into a marshalled code object, collecting syntax errors and
warnings as diagnostics located in the program.
"""

from __future__ import annotations

import importlib.util
import marshal
import os
import sys
import sysconfig
import time
import warnings
from dataclasses import dataclass, field
from typing import List, Optional

from ..codegen.synthesizer import SynthesizedProgram
from ..diagnostics.model import Diagnostic, Location, Severity, has_errors
from ..utils.constants import DEFAULT_OPTIMIZE_LEVEL
from ..utils.exceptions import CompilationError
from ..utils.logging import get_logger
from .loader import CompiledArtifact

logger = get_logger(__name__)

MODULE_NOT_FOUND_ID = "ModuleNotFound"

# Warnings the compiler emits for questionable source
_COMPILE_WARNINGS = (SyntaxWarning, DeprecationWarning)

_SITE_DIRS = ("site-packages", "dist-packages")


@dataclass
class CompileOutcome:
    """Result of compiling one generator program."""

    artifact: Optional[CompiledArtifact] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.artifact is not None

    def require_artifact(self, program_source: str = "") -> CompiledArtifact:
        """
        Return the artifact of a successful compilation.

        Raises:
            CompilationError: If compilation failed, carrying the diagnostics
        """
        if self.artifact is None:
            errors = sum(1 for d in self.diagnostics if d.is_error)
            raise CompilationError(
                f"Generator program failed to compile with {errors} error(s)",
                program_source,
                self.diagnostics,
            )
        return self.artifact


def _stdlib_dirs() -> List[str]:
    paths = sysconfig.get_paths()
    dirs = {os.path.realpath(paths[key]) for key in ("stdlib", "platstdlib") if key in paths}
    return sorted(dirs)


def _is_stdlib_file(path: str, stdlib_dirs: List[str]) -> bool:
    real = os.path.realpath(path)
    if any(part in _SITE_DIRS for part in real.split(os.sep)):
        return False
    return any(real.startswith(directory + os.sep) for directory in stdlib_dirs)


def collect_references() -> List[str]:
    """
    List the libraries a generator program can rely on.

    These are the top-level standard library modules already loaded in this
    interpreter: built-in modules and modules living under the standard
    library directory. Third-party packages are not included.

    Returns:
        Sorted module names
    """
    stdlib_dirs = _stdlib_dirs()
    references = []

    for name, module in list(sys.modules.items()):
        if module is None or "." in name or name.startswith("_"):
            continue
        if name in sys.builtin_module_names:
            references.append(name)
            continue
        path = getattr(module, "__file__", None)
        if path and _is_stdlib_file(path, stdlib_dirs):
            references.append(name)

    return sorted(references)


class DynamicCompiler:
    """
    Compiles synthesized generator programs.

    Compilation never imports anything: directive imports are only checked
    for resolvability when ``check_imports`` is set.
    """

    def __init__(self, optimize: int = DEFAULT_OPTIMIZE_LEVEL, check_imports: bool = True):
        """
        Initialize dynamic compiler.

        Args:
            optimize: Optimization level passed to ``compile()``
            check_imports: Report directive imports that cannot be resolved
        """
        self.optimize = optimize
        self.check_imports = check_imports

    def compile(self, program: SynthesizedProgram) -> CompileOutcome:
        """
        Compile a generator program.

        Args:
            program: Synthesized program with its synthesis diagnostics

        Returns:
            CompileOutcome holding the artifact, or the error diagnostics
        """
        start_time = time.time()
        diagnostics = list(program.diagnostics)

        code = None
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", SyntaxWarning)
            warnings.simplefilter("always", DeprecationWarning)
            try:
                code = compile(
                    program.source,
                    program.source_name,
                    "exec",
                    dont_inherit=True,
                    optimize=self.optimize,
                )
            except SyntaxError as e:
                diagnostics.append(self._syntax_error_diagnostic(e, program))
            except ValueError as e:
                # Source containing null bytes on older interpreters
                diagnostics.append(Diagnostic(type(e).__name__, Severity.ERROR, str(e), Location(program.source_name)))

        diagnostics.extend(self._warning_diagnostics(caught, program))

        if code is not None and self.check_imports:
            diagnostics.extend(self._check_imports(program))

        elapsed = time.time() - start_time
        if code is None or has_errors(diagnostics):
            logger.debug(f"Compilation failed with {len(diagnostics)} diagnostics in {elapsed:.3f}s")
            return CompileOutcome(None, diagnostics)

        artifact = CompiledArtifact(
            code_bytes=marshal.dumps(code),
            references=collect_references(),
            source_name=program.source_name,
            metadata={
                'optimize': self.optimize,
                'line_count': len(program.markers),
                'compilation_time': elapsed,
            },
        )
        logger.debug(f"Compiled generator program ({len(artifact.code_bytes)} bytes) in {elapsed:.3f}s")
        return CompileOutcome(artifact, diagnostics)

    @staticmethod
    def _syntax_error_diagnostic(error: SyntaxError, program: SynthesizedProgram) -> Diagnostic:
        line = error.lineno or 1
        column = (error.offset - 1) if error.offset else 0
        end_line = getattr(error, "end_lineno", None)
        end_offset = getattr(error, "end_offset", None)
        end_column = (end_offset - 1) if end_line is not None and end_offset else None

        return Diagnostic(
            type(error).__name__,
            Severity.ERROR,
            error.msg or str(error),
            Location(program.source_name, line, max(0, column), end_line, end_column),
        )

    @staticmethod
    def _warning_diagnostics(caught, program: SynthesizedProgram) -> List[Diagnostic]:
        diagnostics = []
        for warning in caught:
            if not issubclass(warning.category, _COMPILE_WARNINGS):
                continue
            if warning.filename != program.source_name:
                continue
            diagnostics.append(Diagnostic(
                warning.category.__name__,
                Severity.WARNING,
                str(warning.message),
                Location(program.source_name, warning.lineno or 1, 0),
            ))
        return diagnostics

    @staticmethod
    def _check_imports(program: SynthesizedProgram) -> List[Diagnostic]:
        diagnostics = []
        lines = program.lines

        for statement in program.imports:
            top_level = statement.module.split(".")[0]
            try:
                found = importlib.util.find_spec(top_level) is not None
            except (ImportError, ValueError):
                found = False

            if found:
                continue

            rendered = statement.render()
            line = lines.index(rendered) + 1 if rendered in lines else 1
            diagnostics.append(Diagnostic(
                MODULE_NOT_FOUND_ID,
                Severity.ERROR,
                f"No module named '{top_level}'",
                Location(program.source_name, line, 0, line, len(f"import {statement.module}")),
            ))

        return diagnostics
