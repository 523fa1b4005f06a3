"""Path strings — tokenizing and rebuilding ``/``-delimited paths.

Paths are always resolved from the root.  Empty segments are ignored,
so ``/a//b``, ``/a/b/`` and ``a/b`` all name the same node.  Nothing in
the tree stores a path string; paths are rebuilt from parent links
whenever one is needed, so a move never leaves a stale path behind.
"""

from __future__ import annotations

ROOT_PATH = "/"
SEPARATOR = "/"


def split_path(path: str) -> list[str]:
    """Split a path into its non-empty segments.

    Examples::

        "/foo/bar/baz.txt" → ["foo", "bar", "baz.txt"]
        "/a//b/"           → ["a", "b"]
        "/"                → []

    """
    return [part for part in path.split(SEPARATOR) if part]


def join_path(parts: list[str] | tuple[str, ...]) -> str:
    """Build an absolute path from segments (the inverse of ``split_path``)."""
    return SEPARATOR + SEPARATOR.join(parts)


def is_root(path: str) -> bool:
    """Return True if the path names the root directory."""
    return not split_path(path)


def is_within(path: str, ancestor: str) -> bool:
    """Return True if *path* equals *ancestor* or lies beneath it.

    Compares whole segments, so ``/ab`` is not within ``/a``.
    """
    parts = split_path(path)
    ancestor_parts = split_path(ancestor)
    return parts[: len(ancestor_parts)] == ancestor_parts
