"""Read cursor shared between successive ``read`` calls.

The caller owns the ``Offset``; ``FileSystem.read`` clamps it to the file
size, copies bytes from that position, and advances it by the number of
bytes copied.  Passing the same ``Offset`` again continues where the last
read stopped, like the offset of an open file description.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Offset:
    """A mutable byte position inside a file.

    Not frozen — reads advance ``value`` in place.
    """

    value: int = 0

    def __post_init__(self) -> None:
        """Reject negative offsets."""
        if self.value < 0:
            msg = f"Offset must be non-negative, got {self.value}"
            raise ValueError(msg)

    def clamp(self, size: int) -> None:
        """Pull the offset into ``[0, size]``."""
        self.value = max(0, min(self.value, size))

    def advance(self, count: int) -> None:
        """Move the offset forward by *count* bytes."""
        self.value += count
