"""
Template and include file sources.

The host supplies template and include files as content providers: objects
with a path and a ``get_text()`` method. This module defines that protocol,
a filesystem and an in-memory implementation, and the file-name lookup the
directive resolver uses to find include candidates.
"""

from __future__ import annotations

import os
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ..utils.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class TemplateSource(Protocol):
    """A template or include file supplied by the host."""

    path: str

    def get_text(self) -> Optional[str]:
        """Return the file text, or None when the host has no text for it."""
        ...


@dataclass(frozen=True)
class FileSource:
    """A source backed by a file on disk, read on demand."""

    path: str
    encoding: str = "utf-8-sig"

    def get_text(self) -> Optional[str]:
        with open(self.path, "r", encoding=self.encoding) as fp:
            return fp.read()


@dataclass(frozen=True)
class InMemorySource:
    """A source whose text is already held in memory."""

    path: str
    text: Optional[str]

    def get_text(self) -> Optional[str]:
        return self.text


IncludeLookup = Mapping[str, Sequence[TemplateSource]]


def file_name(source: TemplateSource) -> str:
    """Return the file name (without directories) of *source*."""
    return os.path.basename(source.path)


def has_extension(source: TemplateSource, extension: str) -> bool:
    """Case-insensitive extension check on the source path."""
    return source.path.lower().endswith(extension.lower())


def build_include_lookup(sources: Iterable[TemplateSource], include_extension: str) -> Dict[str, List[TemplateSource]]:
    """
    Group include files by file name.

    Several physical files may share a name; the resolver reports such a
    name as duplicated when a template includes it.

    Args:
        sources: All files supplied by the host
        include_extension: Extension marking include files

    Returns:
        Mapping of file name to the candidate sources in discovery order
    """
    lookup: Dict[str, List[TemplateSource]] = defaultdict(list)
    for source in sources:
        if has_extension(source, include_extension):
            lookup[file_name(source)].append(source)
    logger.debug(f"Built include lookup with {len(lookup)} names")
    return dict(lookup)


def discover_sources(root: Path, extensions: Sequence[str]) -> List[FileSource]:
    """
    Find files under *root* ending with any of *extensions*.

    Discovery order is the sorted relative path order, which fixes the
    numbering of templates that share a file name.
    """
    lowered = tuple(ext.lower() for ext in extensions)
    found = [
        FileSource(str(path.resolve()))
        for path in sorted(root.rglob("*"))
        if path.is_file() and path.name.lower().endswith(lowered)
    ]
    logger.debug(f"Discovered {len(found)} files under {root}")
    return found
