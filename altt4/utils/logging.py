"""
Logging configuration and utilities.

This module provides centralized logging configuration for the
altt4 package with appropriate formatting and levels.
"""

import logging
import os
from typing import Optional


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the altt4 package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
    """
    if level is None:
        level = os.environ.get("ALTT4_LOG_LEVEL", "WARNING")

    log_level = getattr(logging, level.upper(), logging.WARNING)
    if not isinstance(log_level, int):
        log_level = logging.WARNING

    logger = logging.getLogger("altt4")
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if name == "altt4" or name.startswith("altt4."):
        return logging.getLogger(name)
    return logging.getLogger(f"altt4.{name}")


class Altt4Logger:
    """
    Logging helpers for the template rendering pipeline.

    Each method covers one stage of a render so that messages stay
    consistent between the resolver, the compiler and the executor.
    """

    def __init__(self, name: str):
        """
        Initialize logger for specific component.

        Args:
            name: Component name for logging context
        """
        self.logger = get_logger(name)

    def log_render_start(self, template_path: str, include_count: int) -> None:
        """
        Log beginning of a template render.

        Args:
            template_path: Path of the top-level template
            include_count: Number of include files visible to the render
        """
        self.logger.info(f"Rendering {template_path} ({include_count} include candidates)")

    def log_directive_errors(self, template_path: str, error_count: int) -> None:
        """
        Log that directive resolution failed.

        Args:
            template_path: Path of the top-level template
            error_count: Number of directive error comments produced
        """
        self.logger.warning(
            f"Directive resolution failed for {template_path}: {error_count} error(s), skipping compilation"
        )

    def log_compile_failure(self, template_path: str, diagnostic_count: int) -> None:
        """
        Log a failed compilation of the synthesized program.

        Args:
            template_path: Path of the top-level template
            diagnostic_count: Number of compiler diagnostics
        """
        self.logger.warning(f"Generator program for {template_path} failed to compile ({diagnostic_count} diagnostics)")

    def log_fallback(self, template_path: str, reason: str) -> None:
        """
        Log that the rendered output was replaced by fallback text.

        Args:
            template_path: Path of the top-level template
            reason: Reason for fallback
        """
        self.logger.warning(f"Falling back for template '{template_path}': {reason}")

    def log_performance_metrics(self, compilation_time: float, execution_time: float) -> None:
        """
        Log performance metrics for monitoring.

        Args:
            compilation_time: Time spent in compilation (seconds)
            execution_time: Time spent in execution (seconds)
        """
        self.logger.debug(
            f"Performance: compilation={compilation_time:.3f}s, execution={execution_time:.3f}s"
        )


# Initialize logging on module import
setup_logging()
