"""
Debug Artifacts Management for the template pipeline.

This module provides utilities for saving the synthesized generator
programs and their fallback documents while debugging templates.
"""

import re
from pathlib import Path
from typing import Optional

from .logging import get_logger

logger = get_logger(__name__)


class DebugArtifactManager:
    """Manages debugging artifacts for the template pipeline."""

    def __init__(self, debug_dir: Optional[str] = None):
        """
        Initialize debug artifact manager.

        Args:
            debug_dir: Directory for artifacts (``./debug_dir`` if None)
        """
        self.debug_dir = Path(debug_dir) if debug_dir else Path.cwd() / "debug_dir"
        self.debug_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Debug artifacts will be saved to: {self.debug_dir}")

    @staticmethod
    def _safe_name(hint_name: str) -> str:
        return re.sub(r"[^\w.\-]", "_", hint_name)

    def get_program_path(self, hint_name: str) -> Path:
        """Get path for a synthesized generator program."""
        return self.debug_dir / f"{self._safe_name(hint_name)}.generator.py"

    def get_fallback_path(self, hint_name: str) -> Path:
        """Get path for a fallback document."""
        return self.debug_dir / f"{self._safe_name(hint_name)}.fallback.txt"

    def save_program(self, hint_name: str, program_source: str) -> Path:
        """
        Save a synthesized generator program.

        Args:
            hint_name: Output name of the template being rendered
            program_source: Synthesized program text

        Returns:
            Path to saved file
        """
        file_path = self.get_program_path(hint_name)
        file_path.write_text(program_source, encoding="utf-8")

        logger.info(f"Saved generator program: {file_path}")
        return file_path

    def save_fallback(self, hint_name: str, fallback_text: str) -> Path:
        """Save the fallback document produced for a failed compilation."""
        file_path = self.get_fallback_path(hint_name)
        file_path.write_text(fallback_text, encoding="utf-8")

        logger.info(f"Saved fallback document: {file_path}")
        return file_path

    def list_artifacts(self) -> list:
        """List saved artifact paths."""
        return sorted(p for p in self.debug_dir.iterdir() if p.is_file())

    def clean_artifacts(self) -> int:
        """Remove every saved artifact and return how many were removed."""
        removed = 0
        for path in self.list_artifacts():
            path.unlink()
            removed += 1
        return removed
