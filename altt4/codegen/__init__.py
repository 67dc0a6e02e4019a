"""
Generator program synthesis for altt4.

This package emits the Python generator program for a resolved template
together with the per-line provenance used to remap diagnostics.
"""

from .program_builder import LineMarker, ProgramBuilder
from .synthesizer import EMPTY_EXPRESSION_ID, ProgramSynthesizer, SynthesizedProgram, UNMATCHED_END_ID, layout_code

__all__ = [
    "EMPTY_EXPRESSION_ID",
    "LineMarker",
    "ProgramBuilder",
    "ProgramSynthesizer",
    "SynthesizedProgram",
    "UNMATCHED_END_ID",
    "layout_code",
]
