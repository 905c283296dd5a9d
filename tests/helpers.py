"""Command-string builders for tests that run real child processes."""

from __future__ import annotations

import shlex
import sys


def py(code: str) -> str:
    """Return a command string that runs ``code`` with the current interpreter."""
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


def append(marker: str, filename: str = "log.txt") -> str:
    return py(f'open("{filename}", "a").write("{marker}")')


def exit_with(code: int) -> str:
    return py(f"import sys; sys.exit({code})")
