"""Tree nodes — directories and files.

A node is one of exactly two variants:

- **Directory** — owns ``children``, a ``dict[str, int]`` mapping child
  names to node ids.  Dicts keep insertion order, which is the listing
  order.  A directory never holds content.
- **File** — owns ``content`` (raw bytes).  A file has no children.

Both share a name, an owner, a parent id and a per-user permission map.
Nodes refer to each other by id only; the ``Tree`` arena owns every
node and is the only way to reach one.

Callers outside the engine only ever see ``NodeInfo`` snapshots, never
the live nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias
from enum import StrEnum


class NodeKind(StrEnum):
    """The variant a node belongs to."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass
class _NodeBase:
    """Attributes every node carries."""

    node_id: int
    name: str
    owner: str
    parent: int | None = None
    permissions: dict[str, str] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]

    def is_file(self) -> bool:
        """Return True for a file, False for a directory."""
        return False


@dataclass
class Directory(_NodeBase):
    """A node that owns named children and no content."""

    children: dict[str, int] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]

    @property
    def kind(self) -> NodeKind:
        """Return ``NodeKind.DIRECTORY``."""
        return NodeKind.DIRECTORY

    @property
    def size(self) -> int:
        """Return the number of direct children."""
        return len(self.children)


@dataclass
class File(_NodeBase):
    """A leaf node that owns a byte payload."""

    content: bytes = b""

    @property
    def kind(self) -> NodeKind:
        """Return ``NodeKind.FILE``."""
        return NodeKind.FILE

    @property
    def size(self) -> int:
        """Return the content length in bytes."""
        return len(self.content)

    def is_file(self) -> bool:
        """Return True."""
        return True


Node: TypeAlias = Directory | File


@dataclass(frozen=True)
class NodeInfo:
    """Read-only snapshot of a node (returned by stat and listings)."""

    path: str
    name: str
    kind: NodeKind
    owner: str
    size: int
    permissions: dict[str, str]

    @property
    def mode(self) -> str:
        """Return a Unix-style mode column, e.g. ``drwx`` or ``-rw-``.

        The three permission characters are the owner's own grant.
        """
        prefix = "d" if self.kind is NodeKind.DIRECTORY else "-"
        return prefix + self.permissions.get(self.owner, "---")


@dataclass(frozen=True)
class ListingEntry:
    """One line of a directory listing, machine-readable.

    ``depth`` is 0 for direct children of the listed directory.
    ``denied`` marks a directory whose contents the user could not read.
    """

    info: NodeInfo
    depth: int = 0
    denied: bool = False
