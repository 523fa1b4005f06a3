"""Tests for path string helpers.

Paths are tokenized on ``/`` with empty segments ignored, so leading,
trailing and doubled slashes never matter.
"""

from permfs.fs.paths import is_root, is_within, join_path, split_path


class TestSplitPath:
    """Verify tokenizing."""

    def test_root_has_no_segments(self) -> None:
        """The root path splits into nothing."""
        assert split_path("/") == []

    def test_nested_path(self) -> None:
        """Each segment is returned in order."""
        assert split_path("/foo/bar/baz.txt") == ["foo", "bar", "baz.txt"]

    def test_empty_segments_ignored(self) -> None:
        """Doubled, leading, and trailing slashes are irrelevant."""
        assert split_path("/a//b/") == ["a", "b"]
        assert split_path("a/b") == ["a", "b"]


class TestJoinPath:
    """Verify rebuilding paths."""

    def test_join_path(self) -> None:
        """Segments are joined into an absolute path."""
        assert join_path(["a", "b"]) == "/a/b"
        assert join_path([]) == "/"


class TestPredicates:
    """Verify is_root and is_within."""

    def test_is_root(self) -> None:
        """Only paths without segments are the root."""
        assert is_root("/")
        assert is_root("//")
        assert not is_root("/a")

    def test_is_within_self(self) -> None:
        """A path is within itself."""
        assert is_within("/a", "/a")

    def test_is_within_descendant(self) -> None:
        """A descendant is within its ancestor."""
        assert is_within("/a/b/c", "/a")

    def test_is_within_compares_segments(self) -> None:
        """A sibling sharing a name prefix is not within."""
        assert not is_within("/ab", "/a")

    def test_everything_is_within_root(self) -> None:
        """The root contains every path."""
        assert is_within("/x/y", "/")
