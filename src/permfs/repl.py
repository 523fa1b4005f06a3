"""Interactive REPL (Read-Eval-Print Loop) for the file system.

The REPL boots a session via the bootloader, creates a shell, and loops:

    1. **Read** — display a prompt and read a command.
    2. **Eval** — pass it to ``shell.execute()``.
    3. **Print** — display the result.
    4. **Loop** — until ``exit`` or end of input.

The helpers (``build_prompt``, ``format_boot_log``, ``parse_args``) are
pure and testable; ``run()`` is the I/O entrypoint.
"""

import argparse
import readline  # noqa: F401  (line editing and history for input())
from pathlib import Path

from permfs.bootloader import BootError, Bootloader
from permfs.shell import Shell

_BANNER_WIDTH = 38


def format_boot_log(boot_log: list[str]) -> str:
    """Format the boot log into a displayable banner string."""
    border = "=" * _BANNER_WIDTH
    header = (
        f"\n  {border}\n            permfs v0.1.0\n"
        f"   A permission-checked file system\n  {border}\n\n"
    )
    body = "\n".join(f"  {msg}" for msg in boot_log)
    footer = "\nReady. Type 'help' for commands, 'exit' to quit.\n"
    return header + body + footer


def build_prompt(shell: Shell) -> str:
    """Build the prompt string, e.g. ``alice@permfs $ ``."""
    return f"{shell.user}@permfs $ "


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the ``permfs`` entry point."""
    parser = argparse.ArgumentParser(
        prog="permfs", description="Interactive permission-checked in-memory file system."
    )
    parser.add_argument(
        "users", nargs="?", type=Path, default=None, help="users file (name home perm per line)"
    )
    parser.add_argument("--user", default="root", help="user to start the session as")
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    """Boot a session and run the interactive REPL.

    Returns:
        The process exit status.

    """
    args = parse_args(argv)
    bootloader = Bootloader(users_path=args.users)
    try:
        fs = bootloader.boot()
        shell = Shell(fs=fs, user=args.user)
    except (BootError, ValueError) as e:
        print(f"Boot failed: {e}")  # noqa: T201
        return 1

    print(format_boot_log(bootloader.boot_log))  # noqa: T201
    try:
        while True:
            try:
                command = input(build_prompt(shell))
            except EOFError:
                # Ctrl+D — graceful exit
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201
    except KeyboardInterrupt:
        print("\nInterrupted.")  # noqa: T201
    finally:
        print("Session closed.")  # noqa: T201
    return 0


def main() -> None:
    """Console entry point for ``permfs``."""
    raise SystemExit(run())
