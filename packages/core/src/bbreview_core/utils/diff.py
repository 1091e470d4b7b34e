"""Unified diff filtering by file path.

Include/exclude lists arrive already resolved from the project config; this
module only knows about patterns, never about where they came from.
"""

from __future__ import annotations

import re

from bbreview_core.utils.patterns import should_include

# A chunk starts at each "diff --git" header; the lookahead keeps the header
# attached to the chunk that follows it.
_CHUNK_SPLIT_RE = re.compile(r"(?=^diff --git )", re.MULTILINE)
_HEADER_RE = re.compile(r"^diff --git a/(.+?) b/(.+)")


def split_diff(diff: str) -> list[str]:
    """Split a multi-file diff into per-file chunks, preserving every byte."""
    return [chunk for chunk in _CHUNK_SPLIT_RE.split(diff) if chunk]


def destination_path(chunk: str) -> str | None:
    """Return the ``b/`` path from a chunk's header, or None for non-file chunks."""
    match = _HEADER_RE.match(chunk)
    if not match:
        return None
    return match.group(2).rstrip("\r")


def filter_diff(diff: str, include: list[str] | None = None, exclude: list[str] | None = None) -> str:
    """Drop whole file chunks whose destination path fails the include/exclude check.

    Chunks without a recognisable header (e.g. preamble text before the first
    file) are kept as-is.
    """
    if not include and not exclude:
        return diff

    kept = []
    for chunk in split_diff(diff):
        path = destination_path(chunk)
        if path is None or should_include(path, include, exclude):
            kept.append(chunk)
    return "".join(kept)


def filter_files(files: list[str], include: list[str] | None = None, exclude: list[str] | None = None) -> list[str]:
    if not include and not exclude:
        return list(files)
    return [f for f in files if should_include(f, include, exclude)]
