"""
String Manipulation Utilities for altt4.

This module provides the small text helpers shared by the resolver, the
synthesizer and the remapper: comment formatting, newline collapsing and
line splitting.
"""

from __future__ import annotations

import re
from typing import List

from .constants import COMMENT_PREFIX

_NEWLINE_RE = re.compile(r"\r?\n")


# =============================================================================
# Comment Formatting
# =============================================================================

def comment_text(text: str, prefix: str = COMMENT_PREFIX) -> str:
    """
    Comment out *text* line by line.

    The prefix is written at the start and after every newline, so a text
    ending with a newline ends with a bare prefix.

    Args:
        text: Text to comment out
        prefix: Comment prefix to use

    Returns:
        Commented text, or an empty string for empty input
    """
    if not text:
        return ""
    return prefix + text.replace("\n", "\n" + prefix)


def comment_lines(text: str, prefix: str = COMMENT_PREFIX) -> str:
    """Prefix every line of *text* and terminate each with a newline."""
    return "".join(f"{prefix}{line}\n" for line in _NEWLINE_RE.split(text))


def collapse_newlines(text: str) -> str:
    """Collapse line breaks into single spaces and trim the result."""
    return _NEWLINE_RE.sub(" ", text).strip()


# =============================================================================
# Line Handling
# =============================================================================

def leading_width(line: str) -> int:
    """Return the number of leading spaces and tabs of *line*."""
    return len(line) - len(line.lstrip(" \t"))


def split_lines(text: str) -> List[str]:
    """Split *text* on ``\\n`` keeping a trailing empty line, dropping ``\\r``."""
    return [line.rstrip("\r") for line in text.split("\n")]
