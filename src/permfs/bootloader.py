"""Bootloader — start a file system session from a users file.

A session starts in three stages:

1. **CONFIG** — read the users file (if one was given).
2. **USERS** — create the file system and register each user, creating
   their home directory on the way.
3. **READY** — the file system is handed to the shell.

The users file is line-oriented, one user per line::

    # username  home          permission
    alice       /home/alice   rwx
    bob         /home/bob     r--

Blank lines and ``#`` comments are ignored.  Any malformed line aborts
the boot with a ``BootError`` naming the line number.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from permfs.errors import FileSystemError
from permfs.fs.filesystem import FileSystem

if TYPE_CHECKING:
    from pathlib import Path

_FIELDS_PER_LINE = 3


class BootStage(StrEnum):
    """Represent the current phase of a session start."""

    CONFIG = "config"
    USERS = "users"
    READY = "ready"


@dataclass(frozen=True)
class UserEntry:
    """One parsed line of the users file."""

    name: str
    home_path: str
    permission: str
    line: int = 0


class BootError(RuntimeError):
    """Raise when a session cannot be started.

    Examples: unreadable users file, malformed line, duplicate user.
    """


def parse_users(text: str) -> list[UserEntry]:
    """Parse the contents of a users file.

    Raises:
        BootError: If a line does not have exactly three fields.

    """
    entries: list[UserEntry] = []
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        fields = line.split()
        if len(fields) != _FIELDS_PER_LINE:
            msg = f"Line {number}: expected 'username home_path permission', got {raw.strip()!r}"
            raise BootError(msg)
        name, home_path, permission = fields
        entries.append(UserEntry(name=name, home_path=home_path, permission=permission, line=number))
    return entries


def load_users(path: Path) -> list[UserEntry]:
    """Read and parse a users file.

    Raises:
        BootError: If the file cannot be read or is malformed.

    """
    try:
        text = path.read_text()
    except OSError as e:
        msg = f"Cannot read users file: {e}"
        raise BootError(msg) from e
    return parse_users(text)


class Bootloader:
    """Build a ready-to-use ``FileSystem``.

    Usage::

        bootloader = Bootloader(users_path=Path("users.txt"))
        fs = bootloader.boot()

    """

    def __init__(self, *, users_path: Path | None = None) -> None:
        """Create a bootloader with an optional users file."""
        self._users_path = users_path
        self._stage = BootStage.CONFIG
        self._boot_log: list[str] = []
        self._filesystem: FileSystem | None = None

    @property
    def stage(self) -> BootStage:
        """Return the current boot stage."""
        return self._stage

    @property
    def boot_log(self) -> list[str]:
        """Return the accumulated boot messages."""
        return list(self._boot_log)

    @property
    def filesystem(self) -> FileSystem | None:
        """Return the booted file system, or None before ``boot``."""
        return self._filesystem

    def boot(self) -> FileSystem:
        """Run every stage and return the file system.

        Raises:
            BootError: If the users file is unreadable, malformed, or a
                user cannot be registered.

        """
        self._stage = BootStage.CONFIG
        entries: list[UserEntry] = []
        if self._users_path is not None:
            entries = load_users(self._users_path)
            self._boot_log.append(f"[CONFIG] {self._users_path}: {len(entries)} users ... OK")
        else:
            self._boot_log.append("[CONFIG] No users file, root only ... OK")

        self._stage = BootStage.USERS
        fs = FileSystem()
        for entry in entries:
            try:
                fs.add_user(entry.name, entry.permission, entry.home_path)
            except (ValueError, FileSystemError) as e:
                msg = f"Line {entry.line}: cannot add user '{entry.name}': {e}"
                raise BootError(msg) from e
            self._boot_log.append(f"[USERS] {entry.name} -> {entry.home_path} ({entry.permission})")

        self._stage = BootStage.READY
        self._boot_log.append("[OK] File system ready")
        self._filesystem = fs
        return fs
