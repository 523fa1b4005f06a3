"""Tests for users and permission strings.

A permission string is three positional characters over
``{r,-}{w,-}{x,-}``.  A node keeps one string per user; no entry means
no access, and root bypasses every check.
"""

import pytest

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


class TestPermissionStrings:
    """Verify parsing and evaluating permission strings."""

    @pytest.mark.parametrize("permission", ["rwx", "r--", "-w-", "--x", "---", "r-x"])
    def test_valid_strings(self, permission: str) -> None:
        """Every positional combination is accepted."""
        assert validate_permission(permission) == permission

    @pytest.mark.parametrize("permission", ["", "rw", "rwxr", "wrx", "RWX", "r w"])
    def test_invalid_strings(self, permission: str) -> None:
        """Wrong length, order, or alphabet is rejected."""
        with pytest.raises(ValueError, match="Invalid permission"):
            validate_permission(permission)

    def test_bit_positions(self) -> None:
        """Read, write, execute map to positions 0, 1, 2."""
        assert [p.position for p in Permission] == [0, 1, 2]

    def test_grants(self) -> None:
        """A bit is granted when its character is present."""
        assert grants("r-x", Permission.READ)
        assert not grants("r-x", Permission.WRITE)
        assert grants("r-x", Permission.EXECUTE)


class TestHasPermission:
    """Verify the access policy."""

    def test_explicit_grant(self) -> None:
        """An explicit grant is evaluated bit by bit."""
        perms = {"alice": "rw-"}
        assert has_permission(perms, "alice", Permission.WRITE)
        assert not has_permission(perms, "alice", Permission.EXECUTE)

    def test_absence_denies(self) -> None:
        """There is no "other" class: no entry, no access."""
        perms = {"alice": "rwx"}
        assert not has_permission(perms, "bob", Permission.READ)

    def test_root_bypasses(self) -> None:
        """Root holds every bit on every node."""
        assert has_permission({}, ROOT_USER, Permission.WRITE)
        assert has_permission({"root": "---"}, ROOT_USER, Permission.READ)


class TestUser:
    """Verify the user record."""

    def test_defaults(self) -> None:
        """A user defaults to full access on their home."""
        user = User(name="alice")
        assert user.permission == FULL_ACCESS

    def test_user_is_frozen(self) -> None:
        """Users are immutable."""
        user = User(name="alice", permission="r--", home_path="/home/alice")
        with pytest.raises(AttributeError):
            user.name = "mallory"  # type: ignore[misc]

    @pytest.mark.parametrize("name", ["", "a/b", "two words"])
    def test_invalid_names(self, name: str) -> None:
        """Names must be non-empty single path-free tokens."""
        with pytest.raises(ValueError, match="Invalid username"):
            User(name=name)


class TestUserRegistry:
    """Verify the registry."""

    def test_root_exists_by_default(self) -> None:
        """The root user is always registered."""
        registry = UserRegistry()
        root = registry.get(ROOT_USER)
        assert root is not None
        assert root.home_path == "/"
        assert len(registry) == 1

    def test_add_and_get(self) -> None:
        """Added users are retrievable by name."""
        registry = UserRegistry()
        alice = registry.add(User(name="alice"))
        assert registry.get("alice") is alice
        assert "alice" in registry

    def test_duplicate_rejected(self) -> None:
        """Names are unique."""
        registry = UserRegistry()
        registry.add(User(name="alice"))
        with pytest.raises(ValueError, match="already exists"):
            registry.add(User(name="alice", permission="r--"))
        alice = registry.get("alice")
        assert alice is not None
        assert alice.permission == FULL_ACCESS

    def test_remove(self) -> None:
        """Removed users are gone."""
        registry = UserRegistry()
        registry.add(User(name="alice"))
        registry.remove("alice")
        assert registry.get("alice") is None

    def test_remove_root_rejected(self) -> None:
        """Root can never be removed."""
        registry = UserRegistry()
        with pytest.raises(ValueError, match="root"):
            registry.remove(ROOT_USER)
        assert ROOT_USER in registry

    def test_remove_unknown_rejected(self) -> None:
        """Removing an unknown name fails."""
        registry = UserRegistry()
        with pytest.raises(ValueError, match="not found"):
            registry.remove("ghost")

    def test_list_users_in_order(self) -> None:
        """Users are listed in registration order."""
        registry = UserRegistry()
        registry.add(User(name="alice"))
        registry.add(User(name="bob"))
        assert [u.name for u in registry.list_users()] == ["root", "alice", "bob"]
