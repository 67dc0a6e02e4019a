"""
altt4: Text Template Transformation for Python

Renders text templates that mix literal text with embedded Python code,
expressions and directives. Each template is turned into a generator
program, compiled in-process and run in an isolated context.

Key Features:
- <# code #>, <#= expression #> and <#@ directive #> tags
- include files with once and cycle guards
- compiler diagnostics remapped onto template positions
- fallback documents instead of hard failures

Usage:
    from altt4 import render_template

    result = render_template('Hello <#= "World" #>!')
    print(result.text)  # Hello World!
"""

__version__ = "0.1.0"
__author__ = "altt4 Team"
__email__ = "altt4@example.com"

# Public API exports
from .pipeline import (
    TemplateGenerator,
    GeneratedSource,
    render_template,
)

from .template import (
    FileSource,
    InMemorySource,
    TemplateSource,
)

from .diagnostics import (
    Diagnostic,
    Severity,
    Location,
)

from .utils.config import (
    get_config,
    Altt4Config,
)

__all__ = [
    "TemplateGenerator",
    "GeneratedSource",
    "render_template",
    "FileSource",
    "InMemorySource",
    "TemplateSource",
    "Diagnostic",
    "Severity",
    "Location",
    "get_config",
    "Altt4Config",
]
