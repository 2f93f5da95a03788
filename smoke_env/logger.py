"""Progress logging for provisioning steps.

Lines are printed to the terminal through Rich and mirrored, without markup,
into a plain-text log artifact so CI runs keep a record of every step.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape

from .utils import console as default_console


class SmokeTestLogger:
    """Rich-console logger with an optional plain-text file mirror."""

    def __init__(self, log_path: Path | None = None, console: Console | None = None) -> None:
        self.log_path = log_path
        self.console = console or default_console

    def info(self, message: str) -> None:
        self._emit("INFO", message, "")

    def warn(self, message: str) -> None:
        self._emit("WARN", message, "bold yellow")

    def error(self, message: str) -> None:
        self._emit("ERROR", message, "bold red")

    def project_install_log(self, message: str) -> None:
        """Log a step that creates or installs a project."""
        self._emit("INSTALL", message, "cyan")

    def project_patching_log(self, message: str) -> None:
        """Log a step that patches files inside a generated project."""
        self._emit("PATCH", message, "magenta")

    def _emit(self, level: str, message: str, style: str) -> None:
        text = escape(message)
        self.console.print(f"[{style}]{text}[/{style}]" if style else text)
        if self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with self.log_path.open("a", encoding="utf-8") as fh:
                fh.write(f"[{level}] {message}\n")
