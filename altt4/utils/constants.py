"""
Constants for the altt4 template engine.

This module consolidates the tag markers, file extensions, generated program
names and diagnostic labels used across the project, providing a single
source of truth for them.
"""

from __future__ import annotations

from enum import Enum


# =============================================================================
# Tag Syntax
# =============================================================================

TAG_OPEN = "<#"
TAG_CLOSE = "#>"
EXPRESSION_MARK = "="
DIRECTIVE_MARK = "@"
ESCAPE_CHAR = "\\"

# Expression content starts after "<#=", code content after "<#"
EXPRESSION_OPEN_WIDTH = 3
CODE_OPEN_WIDTH = 2


# =============================================================================
# File Extensions
# =============================================================================

TEXT_TEMPLATE_EXTENSION = ".sgtt"
INCLUDE_FILE_EXTENSION = ".ttinc"
OUTPUT_FILE_EXTENSION = ".cs"


# =============================================================================
# Generated Program Layout
# =============================================================================

GENERATED_SOURCE_NAME = "TextTemplateSource.py"
GENERATED_MODULE_NAME = "altt4_generated"
CLASS_NAME = "GenClass"
METHOD_NAME = "execute"
BUILDER_NAME = "builder"
INVARIANT_LOCALE = "C"

DEFAULT_IMPORTS = (
    "sys",
    "io",
    "locale",
    "collections",
    "datetime",
    "math",
)

PROGRAM_INDENT = "    "

# Keywords that continue the enclosing block of a code section
BLOCK_CONTINUATION_KEYWORDS = ("else", "elif", "except", "finally")
BLOCK_END_KEYWORD = "end"


# =============================================================================
# Output Comments
# =============================================================================

COMMENT_PREFIX = "// "


class DirectiveName(Enum):
    """Directive names recognized inside <#@ ... #> tags."""

    IMPORT = "import"
    INCLUDE = "include"
    APPEND_REFERENCE_ASSEMBLIES = "AppendReferenceAssemblies"
    APPEND_GENERATER_SOURCE = "AppendGeneraterSource"


class DirectiveErrorLabel(Enum):
    """Labels written into directive error comments."""

    UNKNOWN_DIRECTIVE = "UnknownDirective"
    INVALID_IMPORT_DIRECTIVE = "InvalidImportDirective"
    INVALID_INCLUDE_DIRECTIVE = "InvalidIncludeDirective"
    UNSUPPORTED_EXTENSION = "UnsupportedExtension"
    INCLUDE_FILE_NOT_FOUND = "IncludeFileNotFound"
    INCLUDE_FILE_DUPLICATED = "IncludeFileDuplicated"
    CYCLIC_INCLUDE = "CyclicInclude"
    MISSING_SOURCE_TEXT = "MissingSourceText"


# Prefix for diagnostics re-issued from included files
INCLUDED_DIAGNOSTIC_PREFIX = "SGTT_"


# =============================================================================
# Configuration Defaults
# =============================================================================

DEFAULT_OPTIMIZE_LEVEL = 1
DEFAULT_TIMEOUT_SECONDS = 60
DEFAULT_ISOLATION = "namespace"
ISOLATION_MODES = ("namespace", "subprocess")
