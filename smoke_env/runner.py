"""Capability interfaces for process execution and file access.

The provisioner never spawns a process or touches the disk directly; it goes
through a :class:`CommandRunner` and a :class:`FileStore`.  The default
implementations below talk to the real machine, while tests substitute
recording fakes.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from .errors import CommandError
from .utils import format_command, run_command


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished command."""

    args: str | list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""


class CommandRunner(Protocol):
    async def run(
        self,
        cmd: str | list[str],
        cwd: str | Path | None = None,
        *,
        input: str | None = None,
        capture: bool = True,
        log_file: Path | None = None,
    ) -> CommandResult:
        """Run *cmd* and return its result, raising ``CommandError`` on failure."""
        ...


class FileStore(Protocol):
    def exists(self, path: Path) -> bool: ...

    def read_text(self, path: Path) -> str: ...

    def write_text(self, path: Path, content: str) -> None: ...

    def append_text(self, path: Path, content: str) -> None: ...

    def copy_file(self, source: Path, destination: Path) -> None: ...

    def make_dir(self, path: Path) -> None: ...

    def remove_tree(self, path: Path) -> None: ...


# ---------------------------------------------------------------------------
# Real implementations
# ---------------------------------------------------------------------------


class SubprocessRunner:
    """Runs commands through :func:`smoke_env.utils.run_command`.

    When *log_file* is given, the command line and its captured output are
    appended to it.  A non-zero exit raises :class:`CommandError`.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    async def run(
        self,
        cmd: str | list[str],
        cwd: str | Path | None = None,
        *,
        input: str | None = None,
        capture: bool = True,
        log_file: Path | None = None,
    ) -> CommandResult:
        returncode, stdout, stderr = await run_command(
            cmd, cwd=cwd, timeout=self.timeout, capture=capture, input=input
        )
        cmd_str = format_command(cmd)
        if log_file is not None:
            _append_command_log(log_file, cmd_str, cwd, returncode, stdout, stderr)

        if returncode != 0:
            raise CommandError(
                f"Command failed (exit {returncode}): {cmd_str}\n{stderr}",
                command=cmd_str,
                returncode=returncode,
                stderr=stderr,
            )
        return CommandResult(args=cmd, returncode=returncode, stdout=stdout, stderr=stderr)


class LocalFileStore:
    """``FileStore`` backed by the local filesystem."""

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: Path, content: str) -> None:
        Path(path).write_text(content, encoding="utf-8")

    def append_text(self, path: Path, content: str) -> None:
        with Path(path).open("a", encoding="utf-8") as fh:
            fh.write(content)

    def copy_file(self, source: Path, destination: Path) -> None:
        # Overwrites the destination contents, like writing the fixture bytes over it.
        Path(destination).write_bytes(Path(source).read_bytes())

    def make_dir(self, path: Path) -> None:
        Path(path).mkdir()

    def remove_tree(self, path: Path) -> None:
        target = Path(path)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()


def _append_command_log(
    log_file: Path,
    cmd_str: str,
    cwd: str | Path | None,
    returncode: int,
    stdout: str,
    stderr: str,
) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).isoformat()
    lines = [f"[{stamp}] $ {cmd_str} (cwd: {cwd or '.'}, exit {returncode})"]
    if stdout:
        lines.append(stdout)
    if stderr:
        lines.append(stderr)
    with log_file.open("a", encoding="utf-8") as fh:
        fh.write("\n".join(lines) + "\n")
