"""File system subsystem — node arena, path resolution, and the facade.

Re-exports public symbols so callers can write::

    from permfs.fs import FileSystem, Offset
"""

from permfs.fs.filesystem import FileSystem
from permfs.fs.nodes import ListingEntry, NodeInfo, NodeKind
from permfs.fs.offset import Offset
from permfs.fs.paths import ROOT_PATH, join_path, split_path

__all__ = [
    "ROOT_PATH",
    "FileSystem",
    "ListingEntry",
    "NodeInfo",
    "NodeKind",
    "Offset",
    "join_path",
    "split_path",
]
