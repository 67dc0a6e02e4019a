"""
Utils package for altt4.

This module provides the ambient pieces shared across the pipeline:
constants, logging, exceptions, configuration and text helpers.
"""

from .constants import *
from .string_utils import *

from .exceptions import (
    Altt4Error,
    DirectiveError,
    CompilationError,
    ExecutionError,
    RenderCancelledError,
    ConfigurationError,
    FallbackHandler,
    get_fallback_handler,
)

from .config import (
    Altt4Config,
    TemplateConfig,
    CompilationConfig,
    RuntimeConfig,
    LoggingConfig,
    DebugConfig,
    get_config,
    set_config,
    load_config,
)

from .debug_artifacts import DebugArtifactManager
from .logging import get_logger, setup_logging, Altt4Logger

__all__ = [
    # Exceptions
    "Altt4Error",
    "DirectiveError",
    "CompilationError",
    "ExecutionError",
    "RenderCancelledError",
    "ConfigurationError",
    "FallbackHandler",
    "get_fallback_handler",

    # Configuration
    "Altt4Config",
    "TemplateConfig",
    "CompilationConfig",
    "RuntimeConfig",
    "LoggingConfig",
    "DebugConfig",
    "get_config",
    "set_config",
    "load_config",

    # Debug artifacts
    "DebugArtifactManager",

    # Logging
    "get_logger",
    "setup_logging",
    "Altt4Logger",
]
