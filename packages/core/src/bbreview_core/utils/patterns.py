"""Glob matching for repository paths.

The pattern language is deliberately small:
  - ``*``  any run of characters except ``/``
  - ``**`` any run of characters including ``/`` (spans directories)
  - ``?``  exactly one character except ``/``

Everything else is literal. There is no ``[abc]`` or ``{a,b}`` support, so
patterns copied from .gitignore files may need simplifying.
"""

from __future__ import annotations

import re
from functools import lru_cache

_GLOBSTAR = "\0GLOBSTAR\0"


def _normalize(value: str) -> str:
    return value.replace("\\", "/")


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    # re.escape leaves "*" and "?" escaped as "\*" and "\?"; swap them for
    # their regex equivalents after escaping everything else.
    escaped = re.escape(_normalize(pattern).replace("**", _GLOBSTAR))
    escaped = escaped.replace(r"\*", "[^/]*").replace(r"\?", "[^/]")
    return re.compile(escaped.replace(_GLOBSTAR, ".*"))


def matches(path: str, pattern: str) -> bool:
    """Return True if the whole of ``path`` matches ``pattern``."""
    return _compile(pattern).fullmatch(_normalize(path)) is not None


def should_include(path: str, include: list[str] | None = None, exclude: list[str] | None = None) -> bool:
    """Decide whether a path survives include/exclude filtering.

    Exclude always wins: a path matching any exclude pattern is dropped even
    if an include pattern also matches. With no include patterns every
    non-excluded path is kept.
    """
    if exclude and any(matches(path, p) for p in exclude):
        return False
    if include:
        return any(matches(path, p) for p in include)
    return True
