"""
Runtime components for altt4.

This package compiles synthesized generator programs and runs them in an
isolated context.
"""

from .loader import CompiledArtifact, isolated_module
from .compiler import DynamicCompiler, CompileOutcome, collect_references, MODULE_NOT_FOUND_ID
from .executor import IsolatedExecutor, RenderOutcome

__all__ = [
    "CompiledArtifact",
    "isolated_module",
    "DynamicCompiler",
    "CompileOutcome",
    "collect_references",
    "MODULE_NOT_FOUND_ID",
    "IsolatedExecutor",
    "RenderOutcome",
]
