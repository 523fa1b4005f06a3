"""Users and permissions — who may touch which node.

**User** — an identity with a unique ``name``, a default permission
    string and a home directory.  The default permission is what the
    user is granted on their home directory and on every node they
    create.

**UserRegistry** — the set of registered users, keyed by name.  The
    registry always contains ``root``, and ``root`` can never be removed.

**Permission strings** — exactly three characters, positionally
    ``{r,-}{w,-}{x,-}``.  A node stores one string per user; a user
    with no entry on a node has no rights on it.  There is no "other"
    class: absence means deny.  ``root`` bypasses every check.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

ROOT_USER = "root"
FULL_ACCESS = "rwx"


class Permission(StrEnum):
    """One capability bit, valued by the character that grants it."""

    READ = "r"
    WRITE = "w"
    EXECUTE = "x"

    @property
    def position(self) -> int:
        """Return the index of this bit inside a permission string."""
        return "rwx".index(self.value)


def validate_permission(permission: str) -> str:
    """Check that *permission* is a well-formed 3-character string.

    Args:
        permission: Candidate permission string, e.g. ``"rw-"``.

    Returns:
        The permission string, unchanged.

    Raises:
        ValueError: If the string is not three characters over
            ``{r,-}{w,-}{x,-}``.

    """
    if len(permission) != len(FULL_ACCESS) or any(
        char not in (bit, "-") for char, bit in zip(permission, FULL_ACCESS, strict=True)
    ):
        msg = f"Invalid permission string: {permission!r} (expected e.g. 'rwx', 'r--')"
        raise ValueError(msg)
    return permission


def grants(permission: str, bit: Permission) -> bool:
    """Return True if the permission string sets *bit*."""
    return permission[bit.position] == bit.value


def has_permission(permissions: Mapping[str, str], username: str, bit: Permission) -> bool:
    """Decide whether *username* holds *bit* on a node.

    Args:
        permissions: The node's explicit grants (username to string).
        username: The acting user.
        bit: The capability being requested.

    """
    if username == ROOT_USER:
        return True
    permission = permissions.get(username)
    if permission is None:
        return False
    return grants(permission, bit)


@dataclass(frozen=True)
class User:
    """A registered identity.

    Frozen: the name is the user's identity and the registry hands out
    the same object for the life of the session.
    """

    name: str
    permission: str = FULL_ACCESS
    home_path: str = "/"

    def __post_init__(self) -> None:
        """Validate the name and the default permission string."""
        if not self.name or "/" in self.name or any(c.isspace() for c in self.name):
            msg = f"Invalid username: {self.name!r}"
            raise ValueError(msg)
        validate_permission(self.permission)


class UserRegistry:
    """Registry of users — the file system's ``/etc/passwd``.

    Seeded with ``root`` (full access, home ``/``) on construction.
    """

    def __init__(self) -> None:
        """Create a registry holding only the root user."""
        self._users: dict[str, User] = {}
        self._users[ROOT_USER] = User(name=ROOT_USER, permission=FULL_ACCESS, home_path="/")

    def __contains__(self, name: object) -> bool:
        """Return True if a user with this name is registered."""
        return name in self._users

    def __len__(self) -> int:
        """Return the number of registered users."""
        return len(self._users)

    def add(self, user: User) -> User:
        """Register a new user.

        Raises:
            ValueError: If the name is already registered.

        """
        if user.name in self._users:
            msg = f"User '{user.name}' already exists"
            raise ValueError(msg)
        self._users[user.name] = user
        return user

    def remove(self, name: str) -> User:
        """Unregister a user and return it.

        Raises:
            ValueError: If the name is ``root`` or not registered.

        """
        if name == ROOT_USER:
            msg = "Cannot remove the root user"
            raise ValueError(msg)
        user = self._users.pop(name, None)
        if user is None:
            msg = f"User '{name}' not found"
            raise ValueError(msg)
        return user

    def get(self, name: str) -> User | None:
        """Look up a user by name, or None if not registered."""
        return self._users.get(name)

    def list_users(self) -> list[User]:
        """Return all registered users in registration order."""
        return list(self._users.values())
