"""
Compiled generator artifacts and their loading.

This module provides the artifact produced by the dynamic compiler and the
context manager that loads it into a throwaway module namespace.
"""

from __future__ import annotations

import locale
import marshal
import threading
import types
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List

from ..utils.constants import CLASS_NAME, GENERATED_MODULE_NAME, GENERATED_SOURCE_NAME, METHOD_NAME
from ..utils.logging import get_logger

logger = get_logger(__name__)

# The locale is process-wide; held from save to restore around each generator run
_locale_lock = threading.RLock()


@dataclass
class CompiledArtifact:
    """
    Represents a compiled generator program.

    The code object is kept marshalled, so the artifact is an inert byte
    buffer until it is loaded.
    """
    code_bytes: bytes                                   # marshal.dumps() of the module code
    references: List[str] = field(default_factory=list)  # Libraries visible at compile time
    source_name: str = GENERATED_SOURCE_NAME            # File name of the program in tracebacks
    entry_class: str = CLASS_NAME
    entry_method: str = METHOD_NAME
    metadata: dict = field(default_factory=dict)

    def is_valid(self) -> bool:
        """Check that the artifact holds code."""
        return bool(self.code_bytes)

    def load_code(self) -> types.CodeType:
        """Unmarshal the module code object."""
        return marshal.loads(self.code_bytes)


@contextmanager
def isolated_module(artifact: CompiledArtifact, name: str = GENERATED_MODULE_NAME) -> Iterator[types.ModuleType]:
    """
    Execute the artifact's module code in a fresh module.

    The module is never registered in ``sys.modules``. On exit the process
    locale is restored (the generator program changes it) and the module
    namespace is cleared so nothing keeps the generated classes alive.
    Loads in other threads wait until the current one has exited, so a
    program never observes a locale set by another program.

    Args:
        artifact: Compiled generator program
        name: ``__name__`` given to the module

    Yields:
        The populated module
    """
    module = types.ModuleType(name)
    module.__file__ = artifact.source_name

    with _locale_lock:
        saved_locale = locale.setlocale(locale.LC_ALL)
        try:
            exec(artifact.load_code(), module.__dict__)
            logger.debug(f"Loaded generator module {name}")
            yield module
        finally:
            try:
                locale.setlocale(locale.LC_ALL, saved_locale)
            except locale.Error as e:
                logger.warning(f"Failed to restore locale {saved_locale!r}: {e}")
            module.__dict__.clear()
