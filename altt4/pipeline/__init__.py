"""
Rendering pipeline for altt4.

End-to-end rendering of templates: resolution, synthesis, compilation,
execution and output naming.
"""

from .generator import (
    TemplateGenerator,
    GeneratedSource,
    append_annotations,
    number_duplicates,
    output_name,
    render_template,
)

__all__ = [
    'TemplateGenerator',
    'GeneratedSource',
    'append_annotations',
    'number_duplicates',
    'output_name',
    'render_template',
]
