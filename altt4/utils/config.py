"""
Configuration System for altt4.

This module provides a unified configuration interface for template
discovery, compilation of generator programs, isolated execution,
logging and debug artifacts.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .constants import (
    DEFAULT_ISOLATION,
    DEFAULT_OPTIMIZE_LEVEL,
    DEFAULT_TIMEOUT_SECONDS,
    INCLUDE_FILE_EXTENSION,
    ISOLATION_MODES,
    OUTPUT_FILE_EXTENSION,
    TEXT_TEMPLATE_EXTENSION,
)
from .exceptions import ConfigurationError
from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class TemplateConfig:
    """Template discovery configuration."""

    template_extension: str = TEXT_TEMPLATE_EXTENSION
    include_extension: str = INCLUDE_FILE_EXTENSION
    output_extension: str = OUTPUT_FILE_EXTENSION


@dataclass
class CompilationConfig:
    """Generator program compilation configuration."""

    optimize: int = DEFAULT_OPTIMIZE_LEVEL
    check_imports: bool = True


@dataclass
class RuntimeConfig:
    """Isolated execution configuration."""

    isolation: str = DEFAULT_ISOLATION
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    culture: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    enable_file_logging: bool = False
    log_file: str = "altt4.log"


@dataclass
class DebugConfig:
    """Debug artifact configuration."""

    enabled: bool = False
    artifact_dir: Optional[str] = None


class Altt4Config:
    """
    Unified configuration manager for altt4.

    Options are read from a single JSON or YAML file; a few environment
    variables override the file so build systems can pass values through
    without writing configuration.
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file. If None, uses default location.
        """
        self.config_file = self._get_config_file_path(config_file)
        self._config_data = self._load_config()

        self.template = self._create_template_config()
        self.compilation = self._create_compilation_config()
        self.runtime = self._create_runtime_config()
        self.logging = self._create_logging_config()
        self.debug = self._create_debug_config()

    def _get_config_file_path(self, config_file: Optional[str]) -> Path:
        """Get the configuration file path."""
        if config_file:
            return Path(config_file)

        env_file = os.getenv("ALTT4_CONFIG")
        if env_file:
            return Path(env_file)

        yaml_config = Path.cwd() / "altt4.yaml"
        json_config = Path.cwd() / "altt4.json"

        if yaml_config.exists():
            return yaml_config
        return json_config

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file (JSON or YAML)."""
        if not self.config_file.exists():
            logger.debug(f"Configuration file {self.config_file} not found, using defaults")
            return {}

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                if self.config_file.suffix.lower() in [".yaml", ".yml"]:
                    config_data = yaml.safe_load(f)
                else:
                    config_data = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to load configuration: {e}")
            return {}

        if not isinstance(config_data, dict):
            logger.error(f"Configuration in {self.config_file} must be a mapping, using defaults")
            return {}

        logger.info(f"Loaded configuration from {self.config_file}")
        return config_data

    def _create_template_config(self) -> TemplateConfig:
        """Create template configuration from loaded data."""
        template_data = self._config_data.get("template", {})

        return TemplateConfig(
            template_extension=template_data.get("template_extension", TEXT_TEMPLATE_EXTENSION),
            include_extension=template_data.get("include_extension", INCLUDE_FILE_EXTENSION),
            output_extension=template_data.get("output_extension", OUTPUT_FILE_EXTENSION),
        )

    def _create_compilation_config(self) -> CompilationConfig:
        """Create compilation configuration from loaded data."""
        comp_data = self._config_data.get("compilation", {})

        optimize = comp_data.get("optimize", DEFAULT_OPTIMIZE_LEVEL)
        if optimize not in (-1, 0, 1, 2):
            raise ConfigurationError(f"Invalid optimize level: {optimize!r}")

        return CompilationConfig(
            optimize=optimize,
            check_imports=comp_data.get("check_imports", True),
        )

    def _create_runtime_config(self) -> RuntimeConfig:
        """Create runtime configuration from loaded data."""
        runtime_data = self._config_data.get("runtime", {})

        isolation = os.getenv("ALTT4_ISOLATION") or runtime_data.get("isolation", DEFAULT_ISOLATION)
        if isolation not in ISOLATION_MODES:
            raise ConfigurationError(f"Invalid isolation mode: {isolation!r}", {'allowed': ", ".join(ISOLATION_MODES)})

        # Mirrors the build property used to pass the default culture through
        culture = os.getenv("ALTT4_CULTURE")
        if culture is None:
            culture = runtime_data.get("culture")
        if culture is not None:
            culture = culture.strip() or None

        return RuntimeConfig(
            isolation=isolation,
            timeout_seconds=runtime_data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
            culture=culture,
        )

    def _create_logging_config(self) -> LoggingConfig:
        """Create logging configuration from loaded data."""
        log_data = self._config_data.get("logging", {})

        return LoggingConfig(
            level=log_data.get("level", "WARNING"),
            enable_file_logging=log_data.get("enable_file_logging", False),
            log_file=log_data.get("log_file", "altt4.log"),
        )

    def _create_debug_config(self) -> DebugConfig:
        """Create debug configuration from loaded data."""
        debug_data = self._config_data.get("debug", {})

        env_enabled = os.getenv("ALTT4_DEBUG", "").lower() in ("1", "true", "yes")
        enabled = env_enabled or debug_data.get("enabled", False)

        return DebugConfig(
            enabled=enabled,
            artifact_dir=debug_data.get("artifact_dir"),
        )

    def is_debug_enabled(self) -> bool:
        """Check if debug mode is enabled."""
        return self.debug.enabled

    def to_dict(self) -> Dict[str, Any]:
        """Return the configuration as a plain dictionary."""
        return {
            "template": {
                "template_extension": self.template.template_extension,
                "include_extension": self.template.include_extension,
                "output_extension": self.template.output_extension,
            },
            "compilation": {
                "optimize": self.compilation.optimize,
                "check_imports": self.compilation.check_imports,
            },
            "runtime": {
                "isolation": self.runtime.isolation,
                "timeout_seconds": self.runtime.timeout_seconds,
                "culture": self.runtime.culture,
            },
            "logging": {
                "level": self.logging.level,
                "enable_file_logging": self.logging.enable_file_logging,
                "log_file": self.logging.log_file,
            },
            "debug": {
                "enabled": self.debug.enabled,
                "artifact_dir": self.debug.artifact_dir,
            },
        }

    def save_config(self) -> None:
        """Save current configuration to file."""
        config_data = self.to_dict()

        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                if self.config_file.suffix.lower() in [".yaml", ".yml"]:
                    yaml.safe_dump(config_data, f, sort_keys=False)
                else:
                    json.dump(config_data, f, indent=2)
            logger.info(f"Configuration saved to {self.config_file}")
        except OSError as e:
            logger.error(f"Failed to save configuration: {e}")


# Global configuration instance
_global_config: Optional[Altt4Config] = None


def get_config() -> Altt4Config:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = Altt4Config()
    return _global_config


def set_config(config: Optional[Altt4Config]) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def load_config(config_file: str) -> Altt4Config:
    """Load configuration from a specific file."""
    return Altt4Config(config_file)
