"""GitHub workflow commands.

Thin wrappers around the `::debug::` / `::warning::` / `::error::` log
commands and the `GITHUB_PATH` file the runner reads between steps.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path


def _escape(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _command(name: str, message: str) -> None:
    print(f"::{name}::{_escape(message)}", file=sys.stderr)


def debug(message: str) -> None:
    """Debug."""
    _command("debug", message)


def warning(message: str) -> None:
    """Warning."""
    _command("warning", message)


def error(message: str) -> None:
    """Error."""
    _command("error", message)


def add_path(directory: str | Path) -> None:
    """Prepend a directory to PATH for this process and later workflow steps."""
    directory = str(directory)
    github_path = os.environ.get("GITHUB_PATH", "").strip()
    if github_path:
        with open(github_path, "a", encoding="utf-8") as handle:
            handle.write(f"{directory}\n")
    os.environ["PATH"] = f"{directory}{os.pathsep}{os.environ.get('PATH', '')}"


def set_failed(message: str, code: int = 1) -> None:
    """Report the failure and exit non-zero."""
    error(message)
    sys.exit(code)
