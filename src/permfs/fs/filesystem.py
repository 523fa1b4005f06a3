"""The permission-checked file system — the single entry point.

``FileSystem`` composes the node arena (``Tree``), the user registry and
the audit log into the public operations:

- user management: ``add_user``, ``remove_user``,
- tree mutations: ``mkdir``, ``touch``, ``write``, ``rm``, ``mv``,
  ``cp``, ``chmod``,
- queries: ``read``, ``read_all``, ``ls``, ``ls_entries``, ``stat``,
  ``exists``.

Every operation takes the acting username explicitly.  The flow is
always the same: resolve the path(s), check the permission bits, then
edit the tree.  All checks run before the first edit, so a failing call
leaves the tree exactly as it found it.  Recursive ``rm`` and ``cp``
sweep the whole subtree for permissions before touching anything.

Nothing returned from here is a live node: queries hand out
``NodeInfo`` snapshots and copies of file content.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

from permfs.errors import (
    InvalidOperation,
    InvariantViolation,
    PathAlreadyExists,
    PathNotFound,
    PermissionError,  # noqa: A004
)
from permfs.fs.nodes import Directory, File, ListingEntry, Node, NodeInfo, NodeKind
from permfs.fs.paths import is_root, is_within, join_path, split_path
from permfs.fs.tree import Tree
from permfs.logging import Logger, LogLevel
from permfs.users import (
    FULL_ACCESS,
    ROOT_USER,
    Permission,
    User,
    UserRegistry,
    grants,
    has_permission,
    validate_permission,
)

if TYPE_CHECKING:
    from typing import TextIO

    from permfs.fs.offset import Offset

_INDENT = "  "


class FileSystem:
    """A hierarchical in-memory file system with per-user permissions.

    Starts with the ``root`` user and a root directory ``/`` owned by
    root.  Root bypasses every permission check.
    """

    def __init__(self) -> None:
        """Create a file system holding only ``/`` and the root user."""
        self._users = UserRegistry()
        self._logger = Logger()
        root = self._root_user()
        self._tree = Tree(root_owner=root.name, root_permission=root.permission)

    @property
    def logger(self) -> Logger:
        """Return the audit log."""
        return self._logger

    # -- Users ---------------------------------------------------------------

    def add_user(self, name: str, permission: str, home_path: str) -> User:
        """Register a user and prepare their home directory.

        The home directory is created by root if it does not exist yet.
        Either way, the user is granted *permission* on it.

        Args:
            name: Unique username.
            permission: Default permission string, e.g. ``"rwx"``.
            home_path: Absolute path of the home directory.

        Returns:
            The registered user.

        Raises:
            ValueError: If the name is taken or an argument is malformed.
            InvalidOperation: If *home_path* names (or passes through) a file.

        """
        user = User(name=name, permission=permission, home_path=join_path(split_path(home_path)))
        if user.name in self._users:
            msg = f"User '{user.name}' already exists"
            raise ValueError(msg)

        home = self._ensure_home(user.home_path)
        home.permissions[user.name] = user.permission
        self._users.add(user)
        self._log(LogLevel.INFO, f"User '{user.name}' added (home {user.home_path})", source="users")
        return user

    def remove_user(self, name: str) -> None:
        """Unregister a user.  Their nodes and grants stay in the tree.

        Raises:
            ValueError: If *name* is ``root`` or not registered.

        """
        self._users.remove(name)
        self._log(LogLevel.INFO, f"User '{name}' removed", source="users")

    def get_user(self, name: str) -> User | None:
        """Look up a registered user by name."""
        return self._users.get(name)

    def list_users(self) -> list[User]:
        """Return every registered user."""
        return self._users.list_users()

    def _root_user(self) -> User:
        root = self._users.get(ROOT_USER)
        if root is None:
            msg = "The root user is missing from the registry"
            raise InvariantViolation(msg)
        return root

    def _ensure_home(self, home_path: str) -> Directory:
        """Return the directory at *home_path*, creating it as root."""
        try:
            node = self._tree.resolve(home_path)
        except PathNotFound:
            return self._make_dirs(split_path(home_path), self._root_user())
        if not isinstance(node, Directory):
            msg = f"Home path is a file: {home_path}"
            raise InvalidOperation(msg)
        return node

    # -- Creation ------------------------------------------------------------

    def mkdir(self, path: str, user: str) -> None:
        """Create a directory and every missing directory above it.

        Existing directories along the way are traversed, not re-created,
        so calling ``mkdir`` twice is harmless.  ``mkdir("/")`` does nothing.

        Raises:
            PermissionError: If *user* cannot write to the deepest existing
                directory on the path.
            PathAlreadyExists: If the final segment is an existing file.
            InvalidOperation: If an intermediate segment is a file.

        """
        actor = self._actor(user)
        parts = split_path(path)
        if not parts:
            return
        try:
            existing = self._tree.resolve_parts(parts)
        except (PathNotFound, InvalidOperation):
            existing = None
        if existing is not None:
            if existing.is_file():
                msg = f"Path already exists: {join_path(parts)}"
                raise PathAlreadyExists(msg)
            return
        self._make_dirs(parts, actor)

    def touch(self, path: str, user: str) -> None:
        """Create an empty file, creating missing parent directories.

        Raises:
            InvalidOperation: If *path* is the root, ends with ``/``, or a
                segment above the file is a file.
            PermissionError: If *user* cannot write to the parent.
            PathAlreadyExists: If the name is already taken.

        """
        actor = self._actor(user)
        parts = split_path(path)
        if not parts or path.endswith("/"):
            msg = f"Not a file path: {path}"
            raise InvalidOperation(msg)
        parent_parts, name = parts[:-1], parts[-1]

        base, depth = self._existing_prefix(parent_parts)
        self._require(base, actor.name, Permission.WRITE)
        if depth == len(parent_parts):
            parent = base
        else:
            # The parent chain will be created by (and granted to) the actor.
            if actor.name != ROOT_USER and not grants(actor.permission, Permission.WRITE):
                self._deny(actor.name, Permission.WRITE, join_path(parent_parts))
            parent = self._make_dirs(parent_parts, actor)

        if name in parent.children:
            msg = f"Path already exists: {join_path(parts)}"
            raise PathAlreadyExists(msg)

        node = self._tree.new_file(
            name=name, owner=actor.name, permissions={actor.name: actor.permission}
        )
        self._tree.attach(parent, node, name)
        self._log(LogLevel.INFO, f"touch {join_path(parts)}", user=actor.name)

    def _existing_prefix(self, parts: list[str]) -> tuple[Directory, int]:
        """Walk the existing directories of *parts*.

        Returns:
            The deepest existing directory and how many segments it covers.

        Raises:
            InvalidOperation: If a segment along the way is a file.

        """
        current = self._tree.root
        for index, part in enumerate(parts):
            child = self._tree.child(current, part)
            if child is None:
                return current, index
            if not isinstance(child, Directory):
                msg = f"Not a directory: {join_path(parts[: index + 1])}"
                raise InvalidOperation(msg)
            current = child
        return current, len(parts)

    def _make_dirs(self, parts: list[str], actor: User) -> Directory:
        """Create the missing directories of *parts*, left to right.

        Only the deepest existing directory needs a write grant; the
        directories created below it belong to the actor.
        """
        current, depth = self._existing_prefix(parts)
        if depth == len(parts):
            return current
        self._require(current, actor.name, Permission.WRITE)
        for index in range(depth, len(parts)):
            node = self._tree.new_directory(
                name=parts[index],
                owner=actor.name,
                permissions={actor.name: actor.permission},
            )
            self._tree.attach(current, node, parts[index])
            self._log(LogLevel.INFO, f"mkdir {join_path(parts[: index + 1])}", user=actor.name)
            current = node
        return current

    # -- File content --------------------------------------------------------

    def write(self, path: str, user: str, append: bool, data: bytes) -> None:  # noqa: FBT001
        """Replace or extend a file's content.

        Args:
            path: Absolute path to a file.
            user: Acting username.
            append: Concatenate onto the content instead of replacing it.
            data: The bytes to write.

        Raises:
            InvalidOperation: If the path is a directory.
            PermissionError: If *user* lacks write on the file.

        """
        actor = self._actor(user)
        node = self._resolve_file(path)
        self._require(node, actor.name, Permission.WRITE)
        node.content = node.content + bytes(data) if append else bytes(data)
        verb = "append" if append else "write"
        self._log(LogLevel.INFO, f"{verb} {len(data)} bytes to {path}", user=actor.name)

    def read(self, path: str, user: str, buffer: bytearray | memoryview, offset: Offset) -> int:
        """Copy bytes from a file into *buffer*, starting at *offset*.

        The offset is clamped to the file size, and then advanced by the
        number of bytes copied.  Reading at or past the end is not an
        error; it copies nothing.

        Args:
            path: Absolute path to a file.
            user: Acting username.
            buffer: Writable buffer; at most ``len(buffer)`` bytes are copied.
            offset: Read position, updated in place.

        Returns:
            The number of bytes copied.

        Raises:
            InvalidOperation: If the path is a directory.
            PermissionError: If *user* lacks read on the file.

        """
        actor = self._actor(user)
        node = self._resolve_file(path)
        self._require(node, actor.name, Permission.READ)
        offset.clamp(node.size)
        if offset.value >= node.size:
            return 0
        chunk = node.content[offset.value : offset.value + len(buffer)]
        buffer[: len(chunk)] = chunk
        offset.advance(len(chunk))
        return len(chunk)

    def read_all(self, path: str, user: str) -> bytes:
        """Return a copy of a file's whole content (read permission required)."""
        actor = self._actor(user)
        node = self._resolve_file(path)
        self._require(node, actor.name, Permission.READ)
        return bytes(node.content)

    def _resolve_file(self, path: str) -> File:
        node = self._tree.resolve(path)
        if not isinstance(node, File):
            msg = f"Is a directory: {path}"
            raise InvalidOperation(msg)
        return node

    # -- Removal and relocation ----------------------------------------------

    def rm(self, path: str, user: str, recursive: bool = False) -> None:  # noqa: FBT001, FBT002
        """Remove a file or directory.

        A non-empty directory needs *recursive*; then every node in the
        subtree must be writable by *user*, or nothing is removed.

        Raises:
            PermissionError: If *path* is the root, or a node to remove is
                not writable by *user*.
            PathNotFound: If the path does not exist.
            InvalidOperation: If the directory is non-empty and not recursive.

        """
        actor = self._actor(user)
        if is_root(path):
            msg = "Cannot remove the root directory"
            raise PermissionError(msg)

        parent, name = self._tree.resolve_parent(path)
        target = self._tree.child(parent, name)
        if target is None:
            msg = f"Path not found: {join_path(split_path(path))}"
            raise PathNotFound(msg)
        self._require(target, actor.name, Permission.WRITE)

        if isinstance(target, Directory) and target.children:
            if not recursive:
                msg = f"Directory not empty: {self._tree.path_of(target)}"
                raise InvalidOperation(msg)
            for node, _depth in self._tree.walk(target):
                self._require(node, actor.name, Permission.WRITE)

        removed_path = self._tree.path_of(target)
        self._tree.detach(target)
        freed = self._tree.discard(target)
        self._log(LogLevel.INFO, f"rm {removed_path} ({freed} nodes)", user=actor.name)

    def mv(self, old_path: str, new_path: str, user: str) -> None:
        """Move (or rename) a node.

        The destination's parent must already exist and the destination
        name must be free.  Descendants move with the node.

        Raises:
            InvalidOperation: If moving the root, or moving a node into
                itself or one of its descendants.
            PathNotFound: If the source or destination parent is missing.
            PermissionError: If *user* lacks write on the source node.
            PathAlreadyExists: If the destination name is taken.

        """
        actor = self._actor(user)
        if is_root(old_path):
            msg = "Cannot move the root directory"
            raise InvalidOperation(msg)
        if is_within(new_path, old_path):
            msg = f"Cannot move {old_path} into itself"
            raise InvalidOperation(msg)

        source_parent, source_name = self._tree.resolve_parent(old_path)
        target = self._tree.child(source_parent, source_name)
        if target is None:
            msg = f"Path not found: {join_path(split_path(old_path))}"
            raise PathNotFound(msg)
        self._require(target, actor.name, Permission.WRITE)

        dest_parent, dest_name = self._tree.resolve_parent(new_path)
        if dest_name in dest_parent.children:
            msg = f"Path already exists: {join_path(split_path(new_path))}"
            raise PathAlreadyExists(msg)
        if self._tree.is_ancestor(target, dest_parent):
            msg = f"Cannot move {old_path} into itself"
            raise InvalidOperation(msg)

        self._tree.detach(target)
        self._tree.attach(dest_parent, target, dest_name)
        self._log(
            LogLevel.INFO, f"mv {old_path} -> {self._tree.path_of(target)}", user=actor.name
        )

    def cp(self, src_path: str, dst_path: str, user: str, recursive: bool = False) -> None:  # noqa: FBT001, FBT002
        """Copy a file or (recursively) a directory.

        If *dst_path* is an existing directory the copy goes inside it
        under the source's name; otherwise *dst_path* names the copy and
        its parent must exist.  Copies are owned by *user*, who gets
        ``rwx`` on each of them; the source's grants are not carried over.

        Raises:
            PathNotFound: If the source or the destination parent is missing.
            PermissionError: If *user* cannot read the source (or any node
                under it), cannot write to the destination directory, or the
                source is a directory and *recursive* is False.
            PathAlreadyExists: If the destination name is taken.
            InvalidOperation: If a directory would be copied into itself.

        """
        actor = self._actor(user)
        source = self._tree.resolve(src_path)
        dest_parent, dest_name = self._copy_target(source, dst_path)
        self._require(source, actor.name, Permission.READ)
        self._require(dest_parent, actor.name, Permission.WRITE)

        if isinstance(source, Directory):
            if not recursive:
                msg = f"Copying directory {src_path} requires recursive"
                raise PermissionError(msg)
            if self._tree.is_ancestor(source, dest_parent):
                msg = f"Cannot copy {src_path} into itself"
                raise InvalidOperation(msg)
            for node, _depth in self._tree.walk(source):
                self._require(node, actor.name, Permission.READ)

        if dest_name in dest_parent.children:
            taken = join_path([*split_path(self._tree.path_of(dest_parent)), dest_name])
            msg = f"Path already exists: {taken}"
            raise PathAlreadyExists(msg)

        clone = self._clone(source, actor.name)
        self._tree.attach(dest_parent, clone, dest_name)
        self._log(
            LogLevel.INFO, f"cp {src_path} -> {self._tree.path_of(clone)}", user=actor.name
        )

    def _copy_target(self, source: Node, dst_path: str) -> tuple[Directory, str]:
        """Work out the directory and name a copy of *source* lands at."""
        try:
            existing = self._tree.resolve(dst_path)
        except PathNotFound:
            existing = None
        if isinstance(existing, Directory):
            return existing, source.name
        if existing is not None:
            msg = f"Path already exists: {join_path(split_path(dst_path))}"
            raise PathAlreadyExists(msg)
        return self._tree.resolve_parent(dst_path)

    def _clone(self, source: Node, owner: str) -> Node:
        """Deep-copy *source* into a detached subtree owned by *owner*."""
        top = self._copy_node(source, owner)
        pending = [(source, top)]
        while pending:
            original, copy = pending.pop()
            if not isinstance(original, Directory) or not isinstance(copy, Directory):
                continue
            for child in self._tree.children(original):
                child_copy = self._copy_node(child, owner)
                self._tree.attach(copy, child_copy, child.name)
                pending.append((child, child_copy))
        return top

    def _copy_node(self, source: Node, owner: str) -> Node:
        """Allocate a detached copy of *source* alone, without children."""
        permissions = {owner: FULL_ACCESS}
        if isinstance(source, File):
            return self._tree.new_file(
                name=source.name,
                owner=owner,
                permissions=permissions,
                content=bytes(source.content),
            )
        return self._tree.new_directory(name=source.name, owner=owner, permissions=permissions)

    # -- Permissions ---------------------------------------------------------

    def chmod(self, path: str, user: str, target_user: str, permission: str) -> None:
        """Set *target_user*'s permission string on one node.

        Raises:
            ValueError: If *permission* is malformed or *target_user* is
                not registered.
            PermissionError: If *user* lacks write on the node.

        """
        actor = self._actor(user)
        validate_permission(permission)
        if target_user not in self._users:
            msg = f"User '{target_user}' not found"
            raise ValueError(msg)
        node = self._tree.resolve(path)
        self._require(node, actor.name, Permission.WRITE)
        node.permissions[target_user] = permission
        self._log(
            LogLevel.INFO,
            f"chmod {self._tree.path_of(node)} {target_user}={permission}",
            user=actor.name,
        )

    # -- Queries -------------------------------------------------------------

    def exists(self, path: str) -> bool:
        """Check whether a path names a node."""
        try:
            self._tree.resolve(path)
        except (PathNotFound, InvalidOperation):
            return False
        return True

    def stat(self, path: str, user: str) -> NodeInfo:
        """Return a snapshot of the node at *path* (read permission required).

        Raises:
            PathNotFound: If the path does not exist.
            PermissionError: If *user* cannot read the node.

        """
        actor = self._actor(user)
        node = self._tree.resolve(path)
        self._require(node, actor.name, Permission.READ)
        return self._tree.info(node)

    def ls_entries(
        self,
        path: str,
        user: str,
        recursive: bool = False,  # noqa: FBT001, FBT002
    ) -> list[ListingEntry]:
        """Return the listing of *path* as structured entries.

        Direct children come in insertion order.  With *recursive*, each
        readable subdirectory's entries follow it, one level deeper.  A
        subdirectory the user cannot read is listed with ``denied=True``
        and skipped; the rest of the listing continues.

        Raises:
            PermissionError: If *user* cannot read *path* itself.

        """
        actor = self._actor(user)
        node = self._tree.resolve(path)
        self._require(node, actor.name, Permission.READ)
        if isinstance(node, File):
            return [ListingEntry(info=self._tree.info(node))]
        return self._collect(node, actor.name, recursive=recursive)

    def _collect(
        self, directory: Directory, username: str, *, recursive: bool
    ) -> list[ListingEntry]:
        entries: list[ListingEntry] = []
        pending = [(child, 0) for child in reversed(self._tree.children(directory))]
        while pending:
            child, depth = pending.pop()
            info = self._tree.info(child)
            if not (recursive and isinstance(child, Directory)):
                entries.append(ListingEntry(info=info, depth=depth))
            elif has_permission(child.permissions, username, Permission.READ):
                entries.append(ListingEntry(info=info, depth=depth))
                pending.extend((c, depth + 1) for c in reversed(self._tree.children(child)))
            else:
                entries.append(ListingEntry(info=info, depth=depth, denied=True))
        return entries

    def ls(
        self,
        path: str,
        user: str,
        recursive: bool = False,  # noqa: FBT001, FBT002
        *,
        out: TextIO | None = None,
        quiet: bool = False,
    ) -> str:
        """Print and return a human-readable listing of *path*.

        One line per entry: mode, owner, size and name (directories get
        a trailing ``/``), indented two spaces per level.  The listing is
        printed to *out* (standard output by default) unless *quiet* is
        set, and returned either way.

        Raises:
            PermissionError: If *user* cannot read *path* itself.

        """
        lines: list[str] = []
        for entry in self.ls_entries(path, user, recursive):
            info = entry.info
            indent = _INDENT * entry.depth
            suffix = "/" if info.kind is NodeKind.DIRECTORY else ""
            lines.append(f"{indent}{info.mode} {info.owner} {info.size} {info.name}{suffix}")
            if entry.denied:
                lines.append(f"{indent}{_INDENT}(permission denied)")
        text = "\n".join(lines)
        if text and not quiet:
            print(text, file=out)  # noqa: T201
        return text

    # -- Helpers -------------------------------------------------------------

    def _actor(self, username: str) -> User:
        """Return the registered user acting on the tree."""
        user = self._users.get(username)
        if user is None:
            msg = f"Unknown user: {username}"
            raise PermissionError(msg)
        return user

    def _require(self, node: Node, username: str, bit: Permission) -> None:
        """Raise unless *username* holds *bit* on *node*."""
        if not has_permission(node.permissions, username, bit):
            self._deny(username, bit, self._tree.path_of(node))

    def _deny(self, username: str, bit: Permission, path: str) -> NoReturn:
        self._log(LogLevel.WARNING, f"{bit.name.lower()} denied on {path}", user=username)
        msg = f"User '{username}' lacks {bit.name.lower()} permission on {path}"
        raise PermissionError(msg)

    def _log(
        self, level: LogLevel, message: str, *, user: str = ROOT_USER, source: str = "fs"
    ) -> None:
        self._logger.log(level, message, source=source, user=user)
