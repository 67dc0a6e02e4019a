"""
Diagnostics for altt4.

This package defines the diagnostic model and remaps diagnostics of the
synthesized program back onto template locations.
"""

from .model import Severity, Location, Diagnostic, has_errors
from .remapper import DiagnosticRemapper, RemapResult

__all__ = [
    "Severity",
    "Location",
    "Diagnostic",
    "has_errors",
    "DiagnosticRemapper",
    "RemapResult",
]
