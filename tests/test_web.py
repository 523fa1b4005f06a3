"""Tests for the HTTP front end.

Tests use ``pytest.importorskip`` so they are skipped gracefully when
Flask is not installed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

flask = pytest.importorskip("flask")

from permfs.web.app import create_app  # noqa: E402

if TYPE_CHECKING:
    from pathlib import Path

HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_FORBIDDEN = 403


def _create_client(users_path: Path | None = None) -> Any:
    """Create a test client from a fresh app."""
    app = create_app(users_path)
    app.config["TESTING"] = True
    return app.test_client()


class TestAppCreation:
    """Verify the app factory."""

    def test_create_app_returns_flask(self) -> None:
        """create_app should return a Flask application."""
        assert isinstance(create_app(), flask.Flask)

    def test_users_file_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """PERMFS_USERS points the app at a users file."""
        path = tmp_path / "users.txt"
        path.write_text("alice /home/alice rwx\n")
        monkeypatch.setenv("PERMFS_USERS", str(path))
        data = _create_client().get("/api/status").get_json()
        assert "alice" in data["users"]


class TestExecuteEndpoint:
    """Verify POST /api/execute."""

    def test_command_output(self) -> None:
        """Commands run and return their output."""
        client = _create_client()
        client.post("/api/execute", json={"command": "mkdir /docs"})
        response = client.post("/api/execute", json={"command": "ls /"})
        assert response.status_code == HTTP_OK
        data = response.get_json()
        assert "docs/" in data["output"]
        assert data["halted"] is False
        assert data["user"] == "root"

    def test_missing_command(self) -> None:
        """A body without 'command' is a bad request."""
        response = _create_client().post("/api/execute", json={})
        assert response.status_code == HTTP_BAD_REQUEST

    def test_exit_halts_session(self) -> None:
        """After exit, the session reports halted."""
        client = _create_client()
        assert client.post("/api/execute", json={"command": "exit"}).get_json()["halted"]
        after = client.post("/api/execute", json={"command": "ls /"}).get_json()
        assert after["halted"] is True
        assert client.get("/api/status").get_json()["running"] is False


class TestLsEndpoint:
    """Verify GET /api/ls."""

    def test_structured_listing(self) -> None:
        """Entries come back as JSON records."""
        client = _create_client()
        client.post("/api/execute", json={"command": "touch /docs/a.txt"})
        response = client.get("/api/ls", query_string={"path": "/", "recursive": "1"})
        assert response.status_code == HTTP_OK
        entries = response.get_json()["entries"]
        assert [(e["name"], e["depth"]) for e in entries] == [("docs", 0), ("a.txt", 1)]
        assert entries[0]["kind"] == "directory"

    def test_forbidden_listing(self, tmp_path: Path) -> None:
        """A denied listing is a 403."""
        path = tmp_path / "users.txt"
        path.write_text("alice /home/alice rwx\n")
        client = _create_client(path)
        client.post("/api/execute", json={"command": "su alice"})
        response = client.get("/api/ls", query_string={"path": "/"})
        assert response.status_code == HTTP_FORBIDDEN

    def test_missing_path(self) -> None:
        """A missing path is a 400."""
        response = _create_client().get("/api/ls", query_string={"path": "/nope"})
        assert response.status_code == HTTP_BAD_REQUEST


class TestCatEndpoint:
    """Verify GET /api/cat."""

    def test_file_content(self) -> None:
        """A readable file comes back as text."""
        client = _create_client()
        client.post("/api/execute", json={"command": "touch /motd"})
        client.post("/api/execute", json={"command": "write /motd hello there"})
        response = client.get("/api/cat", query_string={"path": "/motd"})
        assert response.status_code == HTTP_OK
        assert response.get_json()["content"] == "hello there"

    def test_forbidden_file(self, tmp_path: Path) -> None:
        """A file the shell user cannot read is a 403."""
        path = tmp_path / "users.txt"
        path.write_text("alice /home/alice rwx\n")
        client = _create_client(path)
        client.post("/api/execute", json={"command": "touch /secret"})
        client.post("/api/execute", json={"command": "su alice"})
        response = client.get("/api/cat", query_string={"path": "/secret"})
        assert response.status_code == HTTP_FORBIDDEN

    def test_directory_is_bad_request(self) -> None:
        """Directories have no content to return."""
        response = _create_client().get("/api/cat", query_string={"path": "/"})
        assert response.status_code == HTTP_BAD_REQUEST
