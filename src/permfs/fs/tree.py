"""The node arena and path resolution.

Every node lives in one table, ``dict[int, Node]``, addressed by a
stable id.  Directories map child names to ids and every node records
its parent id, so:

- a **move** is two dict edits plus a parent/name rewrite,
- a **delete** is a detach plus dropping the subtree's ids,
- a node's **path** is rebuilt by following parent ids up to the root.

The root (id 0 of each tree, name ``/``) is the only way in.  It is
created with the tree and can never be detached.

Path resolution walks from the root one segment at a time:

- a missing segment raises ``PathNotFound`` naming the missing prefix,
- a segment that is a file while more segments remain raises
  ``InvalidOperation`` (you cannot descend into a file).
"""

from __future__ import annotations

from collections.abc import Iterator
from itertools import count

from permfs.errors import InvalidOperation, InvariantViolation, PathNotFound
from permfs.fs.nodes import Directory, File, Node, NodeInfo
from permfs.fs.paths import ROOT_PATH, join_path, split_path


class Tree:
    """Arena of nodes rooted at a single directory named ``/``."""

    def __init__(self, *, root_owner: str, root_permission: str) -> None:
        """Create a tree holding only the root directory.

        Args:
            root_owner: Username that owns the root.
            root_permission: The owner's grant on the root.

        """
        self._ids = count(start=0)
        root = Directory(
            node_id=next(self._ids),
            name=ROOT_PATH,
            owner=root_owner,
            permissions={root_owner: root_permission},
        )
        self._nodes: dict[int, Node] = {root.node_id: root}
        self._root_id = root.node_id

    @property
    def root(self) -> Directory:
        """Return the root directory."""
        root = self._nodes[self._root_id]
        if not isinstance(root, Directory):  # pragma: no cover
            msg = "Root node is not a directory"
            raise InvariantViolation(msg)
        return root

    def __len__(self) -> int:
        """Return the number of live nodes, root included."""
        return len(self._nodes)

    # -- Resolution --------------------------------------------------------

    def resolve(self, path: str) -> Node:
        """Walk *path* from the root and return the node it names.

        Raises:
            PathNotFound: If a segment does not exist.
            InvalidOperation: If a file appears before the last segment.

        """
        return self.resolve_parts(split_path(path))

    def resolve_parts(self, parts: list[str]) -> Node:
        """Resolve already-split path segments (see ``resolve``)."""
        current: Node = self.root
        for i, part in enumerate(parts):
            if not isinstance(current, Directory):
                msg = f"Not a directory: {join_path(parts[:i])}"
                raise InvalidOperation(msg)
            child_id = current.children.get(part)
            if child_id is None:
                msg = f"Path not found: {join_path(parts[: i + 1])}"
                raise PathNotFound(msg)
            current = self._nodes[child_id]
        return current

    def resolve_parent(self, path: str) -> tuple[Directory, str]:
        """Return ``(parent_directory, leaf_name)`` for *path*.

        Only the parent chain has to exist; the leaf may or may not.

        Raises:
            InvalidOperation: If *path* is the root (it has no parent),
                or the parent is a file.
            PathNotFound: If the parent chain does not exist.

        """
        parts = split_path(path)
        if not parts:
            msg = "The root directory has no parent"
            raise InvalidOperation(msg)
        parent = self.resolve_parts(parts[:-1])
        if not isinstance(parent, Directory):
            msg = f"Not a directory: {join_path(parts[:-1])}"
            raise InvalidOperation(msg)
        return parent, parts[-1]

    def child(self, directory: Directory, name: str) -> Node | None:
        """Return the named child of *directory*, or None."""
        child_id = directory.children.get(name)
        return None if child_id is None else self._nodes[child_id]

    def children(self, directory: Directory) -> list[Node]:
        """Return the direct children of *directory* in insertion order."""
        return [self._nodes[child_id] for child_id in directory.children.values()]

    def path_of(self, node: Node) -> str:
        """Rebuild the absolute path of *node* from its parent links."""
        parts: list[str] = []
        current = node
        while current.parent is not None:
            parts.append(current.name)
            current = self._nodes[current.parent]
        return join_path(parts[::-1])

    # -- Structure ---------------------------------------------------------

    def new_directory(self, *, name: str, owner: str, permissions: dict[str, str]) -> Directory:
        """Allocate a detached directory node."""
        node = Directory(node_id=next(self._ids), name=name, owner=owner, permissions=permissions)
        self._nodes[node.node_id] = node
        return node

    def new_file(
        self, *, name: str, owner: str, permissions: dict[str, str], content: bytes = b""
    ) -> File:
        """Allocate a detached file node."""
        node = File(
            node_id=next(self._ids),
            name=name,
            owner=owner,
            permissions=permissions,
            content=content,
        )
        self._nodes[node.node_id] = node
        return node

    def attach(self, parent: Directory, node: Node, name: str) -> None:
        """Link a detached *node* into *parent* under *name*.

        Raises:
            InvariantViolation: If the name is taken, the node is still
                attached somewhere, or the link would create a cycle.

        """
        if name in parent.children:
            msg = f"Name already taken in {self.path_of(parent)}: {name}"
            raise InvariantViolation(msg)
        if node.parent is not None or node.node_id == self._root_id:
            msg = f"Node {node.node_id} is already attached"
            raise InvariantViolation(msg)
        if self.is_ancestor(node, parent):
            msg = f"Attaching {node.name} under {self.path_of(parent)} would create a cycle"
            raise InvariantViolation(msg)
        node.name = name
        node.parent = parent.node_id
        parent.children[name] = node.node_id

    def detach(self, node: Node) -> Directory:
        """Unlink *node* from its parent and return the former parent."""
        if node.parent is None:
            msg = "Cannot detach the root directory"
            raise InvariantViolation(msg)
        parent = self._nodes[node.parent]
        if not isinstance(parent, Directory):  # pragma: no cover
            msg = f"Parent of {node.name} is not a directory"
            raise InvariantViolation(msg)
        del parent.children[node.name]
        node.parent = None
        return parent

    def discard(self, node: Node) -> int:
        """Drop a detached node and its whole subtree from the arena.

        Returns:
            The number of nodes freed.

        """
        doomed = [n.node_id for n, _depth in self.walk(node)]
        for node_id in doomed:
            del self._nodes[node_id]
        return len(doomed)

    def walk(self, node: Node, *, depth: int = 0) -> Iterator[tuple[Node, int]]:
        """Yield ``(node, depth)`` for *node* and its subtree, depth-first.

        Pre-order: a directory is yielded before its children, and
        children come in insertion order.
        """
        stack: list[tuple[Node, int]] = [(node, depth)]
        while stack:
            current, level = stack.pop()
            yield current, level
            if isinstance(current, Directory):
                stack.extend((child, level + 1) for child in reversed(self.children(current)))

    def is_ancestor(self, ancestor: Node, node: Node) -> bool:
        """Return True if *ancestor* is *node* or lies on its parent chain."""
        current: Node | None = node
        while current is not None:
            if current.node_id == ancestor.node_id:
                return True
            current = None if current.parent is None else self._nodes[current.parent]
        return False

    def info(self, node: Node) -> NodeInfo:
        """Create a read-only snapshot of *node*."""
        return NodeInfo(
            path=self.path_of(node),
            name=node.name,
            kind=node.kind,
            owner=node.owner,
            size=node.size,
            permissions=dict(node.permissions),
        )
