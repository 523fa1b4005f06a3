"""Flask application factory for the permfs web API.

The ``create_app`` function boots a file system session, creates a shell,
and returns a Flask app with four endpoints:

- ``POST /api/execute`` — execute a shell command and return JSON.
- ``GET /api/status`` — return the session state and current user.
- ``GET /api/ls`` — return a machine-readable listing as the shell user.
- ``GET /api/cat`` — return a file's content as the shell user.
"""

from __future__ import annotations

import os
from pathlib import Path

from flask import Flask, Response, jsonify, request

from permfs.bootloader import Bootloader
from permfs.errors import FileSystemError
from permfs.errors import PermissionError as FsPermissionError
from permfs.shell import Shell

_HTTP_BAD_REQUEST = 400
_HTTP_FORBIDDEN = 403
_USERS_ENV = "PERMFS_USERS"


def create_app(users_path: Path | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        users_path: Optional users file; defaults to ``$PERMFS_USERS``.

    Returns:
        A configured Flask application ready to serve.

    """
    if users_path is None and os.environ.get(_USERS_ENV):
        users_path = Path(os.environ[_USERS_ENV])
    bootloader = Bootloader(users_path=users_path)
    fs = bootloader.boot()
    shell = Shell(fs=fs)
    state = {"halted": False}

    app = Flask(__name__)
    app.config["BOOT_LOG"] = bootloader.boot_log

    @app.route("/api/execute", methods=["POST"])
    def execute() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Execute a shell command and return JSON output.

        Expects JSON body: ``{"command": "..."}``

        Returns:
            JSON with ``output``, ``user`` and ``halted`` fields.

        """
        data = request.get_json(silent=True)
        if data is None or "command" not in data:
            return jsonify({"error": "Missing 'command' field"}), _HTTP_BAD_REQUEST

        if state["halted"]:
            return jsonify({"output": "Session closed.", "user": shell.user, "halted": True})

        result = shell.execute(str(data["command"]))
        if result == Shell.EXIT_SENTINEL:
            state["halted"] = True
            return jsonify({"output": "Session closed.", "user": shell.user, "halted": True})
        return jsonify({"output": result, "user": shell.user, "halted": False})

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the session state and the shell's current user."""
        return jsonify(
            {
                "running": not state["halted"],
                "user": shell.user,
                "users": [u.name for u in fs.list_users()],
            }
        )

    @app.route("/api/ls")
    def ls() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Return a JSON listing of ``?path=`` (``&recursive=1`` to descend)."""
        path = request.args.get("path", "/")
        recursive = request.args.get("recursive", "0").lower() in {"1", "true", "yes"}
        try:
            entries = fs.ls_entries(path, shell.user, recursive)
        except FsPermissionError as e:
            return jsonify({"error": str(e)}), _HTTP_FORBIDDEN
        except FileSystemError as e:
            return jsonify({"error": str(e)}), _HTTP_BAD_REQUEST
        return jsonify(
            {
                "path": path,
                "entries": [
                    {
                        "path": e.info.path,
                        "name": e.info.name,
                        "kind": str(e.info.kind),
                        "owner": e.info.owner,
                        "size": e.info.size,
                        "mode": e.info.mode,
                        "depth": e.depth,
                        "denied": e.denied,
                    }
                    for e in entries
                ],
            }
        )

    @app.route("/api/cat")
    def cat() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Return the content of ``?path=`` decoded as UTF-8 text."""
        path = request.args.get("path", "")
        try:
            data = fs.read_all(path, shell.user)
        except FsPermissionError as e:
            return jsonify({"error": str(e)}), _HTTP_FORBIDDEN
        except FileSystemError as e:
            return jsonify({"error": str(e)}), _HTTP_BAD_REQUEST
        return jsonify({"path": path, "content": data.decode(errors="replace")})

    return app


def main() -> None:
    """Run the web API development server.

    This is the ``permfs-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
