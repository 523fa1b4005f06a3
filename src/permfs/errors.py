"""Error kinds surfaced by the file system.

Every tree operation either succeeds completely or raises one of the
errors below and leaves the tree untouched:

- **PathNotFound** — a path (or one of its prefixes) does not exist.
- **PathAlreadyExists** — a create/move/copy target is already taken.
- **PermissionError** — the acting user lacks a capability bit, or a
  structural guard (removing root) was hit.
- **InvalidOperation** — the request makes no sense for the node's kind
  (writing to a directory, descending into a file, ...).

``InvariantViolation`` is different: it signals an internal bug, not a
bad request, so it is a ``RuntimeError`` and not a ``FileSystemError``.
"""


class FileSystemError(Exception):
    """Base class for every caller-visible file system failure."""


class PathNotFound(FileSystemError):
    """Raised when a referenced path does not exist."""


class PathAlreadyExists(FileSystemError):
    """Raised when a creation, move, or copy target already exists."""


# Shadows the built-in on purpose, same as a Unix EACCES / EPERM.
class PermissionError(FileSystemError):  # noqa: A001
    """Raised when a user lacks permission for an operation."""


class InvalidOperation(FileSystemError):
    """Raised when an operation is invalid for the node's kind."""


class InvariantViolation(RuntimeError):
    """Raised when an internal invariant of the file system is broken."""
