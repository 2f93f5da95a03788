"""Shared pytest fixtures for the smoke-env test suite.

Provides reusable fixtures for:
- Temporary artifacts, resources and workspace directories
- Fixture files (entry points, launch.json, build.gradle)
- A recording ``FakeRunner`` that stands in for external commands
- A provisioner wired to the fakes with a silent console
- Mocked ``httpx.AsyncClient`` responses for the Expo versions manifest
"""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console

from smoke_env.config import SetupConfig
from smoke_env.errors import CommandError
from smoke_env.logger import SmokeTestLogger
from smoke_env.provisioner import EnvironmentProvisioner
from smoke_env.runner import CommandResult, LocalFileStore


# ---------------------------------------------------------------------------
# Fake command runner
# ---------------------------------------------------------------------------


class FakeRunner:
    """Records every command and returns canned results.

    Responses are matched by argument prefix; unmatched commands succeed
    with empty output.  ``on_run`` lets a test simulate side effects such as
    a scaffold command creating the workspace directory.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self._responses: list[tuple[tuple[str, ...], CommandResult]] = []
        self.on_run: Callable[[list[str], Path | None], None] | None = None

    def respond(
        self, prefix: list[str], stdout: str = "", returncode: int = 0, stderr: str = ""
    ) -> None:
        self._responses.append(
            (tuple(prefix), CommandResult(args=prefix, returncode=returncode, stdout=stdout, stderr=stderr))
        )

    @property
    def commands(self) -> list[str]:
        return [" ".join(call["args"]) for call in self.calls]

    async def run(
        self,
        cmd: str | list[str],
        cwd: str | Path | None = None,
        *,
        input: str | None = None,
        capture: bool = True,
        log_file: Path | None = None,
    ) -> CommandResult:
        args = cmd.split() if isinstance(cmd, str) else list(cmd)
        self.calls.append(
            {
                "args": args,
                "cwd": Path(cwd) if cwd else None,
                "input": input,
                "capture": capture,
                "log_file": log_file,
            }
        )
        if self.on_run is not None:
            self.on_run(args, Path(cwd) if cwd else None)

        for prefix, result in self._responses:
            if tuple(args[: len(prefix)]) == prefix:
                if result.returncode != 0:
                    raise CommandError(
                        f"Command failed (exit {result.returncode}): {' '.join(args)}",
                        command=" ".join(args),
                        returncode=result.returncode,
                        stderr=result.stderr,
                    )
                return CommandResult(
                    args=args, returncode=0, stdout=result.stdout, stderr=result.stderr
                )
        return CommandResult(args=args, returncode=0)


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


@pytest.fixture
def resources_dir(tmp_path: Path) -> Path:
    """Resources directory with the sample fixtures the provisioner copies."""
    resources = tmp_path / "resources"
    rn_sample = resources / "ReactNativeSample"
    hermes_sample = resources / "HermesReactNativeSample"
    expo_sample = resources / "ExpoSample"
    for directory in (rn_sample, hermes_sample, expo_sample):
        directory.mkdir(parents=True)

    (rn_sample / "App.js").write_text("// rn sample entry point\n", encoding="utf-8")
    (hermes_sample / "App.js").write_text("// hermes entry point\n", encoding="utf-8")
    (hermes_sample / "AppTestButton.js").write_text("// test button\n", encoding="utf-8")
    (hermes_sample / "build.gradle").write_text("project.ext.react = [enableHermes: true]\n", encoding="utf-8")
    (expo_sample / "App.tsx").write_text("// expo entry point\n", encoding="utf-8")
    (resources / "launch.json").write_text(json.dumps(sample_launch_config(), indent=4), encoding="utf-8")
    return resources


@pytest.fixture
def workspace_dir(resources_dir: Path) -> Path:
    """Path where scaffold commands create the test app (not created yet)."""
    return resources_dir / "latestRNApp"


def sample_launch_config() -> dict[str, Any]:
    return {
        "version": "0.2.0",
        "configurations": [
            {"name": "Debug Android", "request": "launch", "type": "reactnative", "platform": "android"},
            {"name": "Debug iOS", "request": "launch", "type": "reactnative", "platform": "ios"},
            {"name": "Attach to packager", "request": "attach", "type": "reactnative"},
        ],
    }


# ---------------------------------------------------------------------------
# Provisioner wiring
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def scaffolding_runner(fake_runner: FakeRunner, workspace_dir: Path) -> FakeRunner:
    """FakeRunner whose ``init`` commands create the workspace like a real scaffold."""

    def _create_workspace(args: list[str], cwd: Path | None) -> None:
        if "init" in args and not workspace_dir.exists():
            workspace_dir.mkdir(parents=True)
            (workspace_dir / "App.js").write_text("// generated\n", encoding="utf-8")
            (workspace_dir / "metro.config.js").write_text("module.exports = {};\n", encoding="utf-8")

    fake_runner.on_run = _create_workspace
    return fake_runner


@pytest.fixture
def quiet_console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=200)


@pytest.fixture
def setup_config(artifacts_dir: Path, tmp_path: Path) -> SetupConfig:
    return SetupConfig(
        artifacts_dir=artifacts_dir,
        ios_expo_apps_cache_dir=tmp_path / "expo-cache",
        npx_command="npx",
        npm_command="npm",
        ios_simulator="iPhone 15",
        simulator_settle_seconds=0,
    )


@pytest.fixture
def provisioner(
    setup_config: SetupConfig, fake_runner: FakeRunner, quiet_console: Console
) -> EnvironmentProvisioner:
    logger = SmokeTestLogger(setup_config.smoke_log_path, console=quiet_console)
    return EnvironmentProvisioner(
        setup_config, runner=fake_runner, files=LocalFileStore(), logger=logger
    )


# ---------------------------------------------------------------------------
# Mock httpx
# ---------------------------------------------------------------------------


def sample_manifest() -> dict[str, Any]:
    """A trimmed-down copy of the Expo versions manifest."""
    return {
        "androidUrl": "https://d1ahtucjixef4r.cloudfront.net/Exponent-2.13.0.apk",
        "androidVersion": "2.13.0",
        "iosUrl": "https://dpq5q02fu5f55.cloudfront.net/Exponent-2.13.0.tar.gz",
        "iosVersion": "2.13.0",
        "sdkVersions": {
            "34.0.0": {"facebookReactNativeVersion": "0.59.8"},
            "35.0.0": {"facebookReactNativeVersion": "0.59.10"},
            "33.0.0": {"facebookReactNativeVersion": "0.59.8-rc"},
        },
    }


def make_mock_async_client(
    json_data: Any = None,
    content: bytes = b"",
    get_side_effect: Any = None,
) -> AsyncMock:
    """Build an ``httpx.AsyncClient`` stand-in usable as an async context manager."""
    mock_response = MagicMock()
    mock_response.json.return_value = json_data
    mock_response.content = content
    mock_response.raise_for_status = MagicMock()

    mock_client = AsyncMock()
    if get_side_effect is not None:
        mock_client.get = AsyncMock(side_effect=get_side_effect)
    else:
        mock_client.get = AsyncMock(return_value=mock_response)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


@pytest.fixture
def versions_manifest() -> dict[str, Any]:
    return sample_manifest()


@pytest.fixture
def mock_httpx_client() -> Callable[..., AsyncMock]:
    """Factory fixture returning :func:`make_mock_async_client`."""
    return make_mock_async_client
