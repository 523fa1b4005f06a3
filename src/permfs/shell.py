"""The shell — command interpreter for the file system.

The shell reads a command string, splits it into a command name and
arguments, dispatches to a handler, and returns a string result.  Every
handler acts as the shell's current user, switched with ``su``.

Design choices:
    - **Returns strings, not prints.**  The REPL and the web UI decide
      how to display output.
    - **Command dispatch via a dict.**  Adding a command means writing a
      method and adding one dict entry.
    - **Errors become text.**  File system errors are rendered as
      ``Error: <message>`` so a session never dies on a bad command.
"""

from collections.abc import Callable
from typing import TypeAlias

from permfs.errors import FileSystemError
from permfs.fs.filesystem import FileSystem
from permfs.fs.offset import Offset
from permfs.users import ROOT_USER

# Type alias for a command handler: takes a list of args, returns output.
_Handler: TypeAlias = Callable[[list[str]], str]

_RECURSIVE_FLAGS = frozenset({"-r", "-R", "--recursive"})
_CAT_CHUNK = 64


def _split_recursive(args: list[str]) -> tuple[bool, list[str]]:
    """Strip recursive flags from *args*, reporting whether any was present."""
    rest = [a for a in args if a not in _RECURSIVE_FLAGS]
    return len(rest) != len(args), rest


class Shell:
    """Command interpreter bound to one file system session."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(self, *, fs: FileSystem, user: str = ROOT_USER) -> None:
        """Create a shell acting as *user*.

        Raises:
            ValueError: If *user* is not registered.

        """
        if fs.get_user(user) is None:
            msg = f"User '{user}' not found"
            raise ValueError(msg)
        self._fs = fs
        self._user = user
        self._history: list[str] = []

        # Command dispatch table — maps command names to handler methods.
        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "whoami": self._cmd_whoami,
            "su": self._cmd_su,
            "users": self._cmd_users,
            "adduser": self._cmd_adduser,
            "deluser": self._cmd_deluser,
            "mkdir": self._cmd_mkdir,
            "touch": self._cmd_touch,
            "write": self._cmd_write,
            "append": self._cmd_append,
            "cat": self._cmd_cat,
            "rm": self._cmd_rm,
            "mv": self._cmd_mv,
            "cp": self._cmd_cp,
            "chmod": self._cmd_chmod,
            "ls": self._cmd_ls,
            "stat": self._cmd_stat,
            "log": self._cmd_log,
            "history": self._cmd_history,
            "exit": self._cmd_exit,
        }

    @property
    def user(self) -> str:
        """Return the username commands currently run as."""
        return self._user

    @property
    def commands(self) -> list[str]:
        """Return the sorted command names."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute one command.

        Args:
            command: The raw command string (e.g. "ls -r /home").

        Returns:
            The command output, or an error message.

        """
        stripped = command.strip()
        if not stripped:
            return ""
        self._history.append(stripped)

        parts = stripped.split()
        name, args = parts[0], parts[1:]
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}"
        try:
            return handler(args)
        except (FileSystemError, ValueError) as e:
            return f"Error: {e}"

    def run_script(self, script: str) -> list[str]:
        """Execute each non-blank, non-comment line of *script*."""
        results: list[str] = []
        for raw in script.splitlines():
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            results.append(self.execute(line))
        return results

    # -- Session and users -------------------------------------------------

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        return "Available commands: " + ", ".join(self.commands)

    def _cmd_whoami(self, _args: list[str]) -> str:
        """Show the current user."""
        return self._user

    def _cmd_su(self, args: list[str]) -> str:
        """Switch to another registered user."""
        if not args:
            return "Usage: su <user>"
        if self._fs.get_user(args[0]) is None:
            return f"Error: User '{args[0]}' not found"
        self._user = args[0]
        return f"Switched to {self._user}"

    def _cmd_users(self, _args: list[str]) -> str:
        """List registered users."""
        lines = ["USER       PERM  HOME"]
        lines.extend(f"{u.name:<10} {u.permission}   {u.home_path}" for u in self._fs.list_users())
        return "\n".join(lines)

    def _cmd_adduser(self, args: list[str]) -> str:
        """Register a user (root only)."""
        if len(args) < 2:  # noqa: PLR2004
            return "Usage: adduser <name> <home> [perm]"
        if self._user != ROOT_USER:
            return "Error: only root can add users"
        permission = args[2] if len(args) > 2 else "rwx"  # noqa: PLR2004
        user = self._fs.add_user(args[0], permission, args[1])
        return f"User '{user.name}' created (home {user.home_path})"

    def _cmd_deluser(self, args: list[str]) -> str:
        """Unregister a user (root only)."""
        if not args:
            return "Usage: deluser <name>"
        if self._user != ROOT_USER:
            return "Error: only root can remove users"
        self._fs.remove_user(args[0])
        return f"User '{args[0]}' removed"

    # -- Tree commands -----------------------------------------------------

    def _cmd_mkdir(self, args: list[str]) -> str:
        """Create a directory (and any missing parents)."""
        if not args:
            return "Usage: mkdir <path>"
        self._fs.mkdir(args[0], self._user)
        return ""

    def _cmd_touch(self, args: list[str]) -> str:
        """Create an empty file."""
        if not args:
            return "Usage: touch <path>"
        self._fs.touch(args[0], self._user)
        return ""

    def _cmd_write(self, args: list[str]) -> str:
        """Replace a file's content."""
        if len(args) < 2:  # noqa: PLR2004
            return "Usage: write <path> <content...>"
        self._fs.write(args[0], self._user, False, " ".join(args[1:]).encode())  # noqa: FBT003
        return ""

    def _cmd_append(self, args: list[str]) -> str:
        """Append to a file's content."""
        if len(args) < 2:  # noqa: PLR2004
            return "Usage: append <path> <content...>"
        self._fs.write(args[0], self._user, True, " ".join(args[1:]).encode())  # noqa: FBT003
        return ""

    def _cmd_cat(self, args: list[str]) -> str:
        """Print a file, read in fixed-size chunks."""
        if not args:
            return "Usage: cat <path>"
        offset = Offset()
        buffer = bytearray(_CAT_CHUNK)
        chunks: list[bytes] = []
        while count := self._fs.read(args[0], self._user, buffer, offset):
            chunks.append(bytes(buffer[:count]))
        return b"".join(chunks).decode(errors="replace")

    def _cmd_rm(self, args: list[str]) -> str:
        """Remove a file or directory (``-r`` for non-empty directories)."""
        recursive, rest = _split_recursive(args)
        if not rest:
            return "Usage: rm [-r] <path>"
        self._fs.rm(rest[0], self._user, recursive)
        return ""

    def _cmd_mv(self, args: list[str]) -> str:
        """Move or rename a node."""
        if len(args) < 2:  # noqa: PLR2004
            return "Usage: mv <old> <new>"
        self._fs.mv(args[0], args[1], self._user)
        return ""

    def _cmd_cp(self, args: list[str]) -> str:
        """Copy a file, or a directory with ``-r``."""
        recursive, rest = _split_recursive(args)
        if len(rest) < 2:  # noqa: PLR2004
            return "Usage: cp [-r] <src> <dst>"
        self._fs.cp(rest[0], rest[1], self._user, recursive)
        return ""

    def _cmd_chmod(self, args: list[str]) -> str:
        """Set a user's permission string on a node."""
        if len(args) < 3:  # noqa: PLR2004
            return "Usage: chmod <path> <user> <perm>"
        self._fs.chmod(args[0], self._user, args[1], args[2])
        return ""

    def _cmd_ls(self, args: list[str]) -> str:
        """List a directory (``-r`` to descend)."""
        recursive, rest = _split_recursive(args)
        path = rest[0] if rest else "/"
        return self._fs.ls(path, self._user, recursive, quiet=True)

    def _cmd_stat(self, args: list[str]) -> str:
        """Show a node's metadata."""
        if not args:
            return "Usage: stat <path>"
        info = self._fs.stat(args[0], self._user)
        grants = ", ".join(f"{u}={p}" for u, p in info.permissions.items()) or "none"
        return "\n".join(
            [
                f"  Path: {info.path}",
                f"  Type: {info.kind}",
                f"  Owner: {info.owner}",
                f"  Size: {info.size}",
                f"  Grants: {grants}",
            ]
        )

    # -- Diagnostics -------------------------------------------------------

    def _cmd_log(self, args: list[str]) -> str:
        """Show the audit log: ``log``, ``log <user>`` or ``log clear`` (root only)."""
        logger = self._fs.logger
        if args and args[0] == "clear":
            if self._user != ROOT_USER:
                return "Error: only root can clear the log"
            logger.clear()
            return "Log cleared."
        entries = logger.filter(user=args[0]) if args else logger.entries
        return "\n".join(str(e) for e in entries) if entries else "No log entries."

    def _cmd_history(self, _args: list[str]) -> str:
        """Show command history."""
        if not self._history:
            return "No history."
        return "\n".join(f"  {i + 1}  {cmd}" for i, cmd in enumerate(self._history))

    def _cmd_exit(self, _args: list[str]) -> str:
        """Signal the REPL to stop."""
        return self.EXIT_SENTINEL
