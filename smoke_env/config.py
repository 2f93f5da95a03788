"""Smoke environment configuration.

Typed settings for workspace provisioning. Everything that used to be global
state (executable names, package identifiers, cache locations, the version
manifest URL) lives on a single Pydantic v2 model that is built once and
passed to :class:`~smoke_env.provisioner.EnvironmentProvisioner`.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


def _platform_command(name: str) -> str:
    """Return the platform-specific launcher name for a Node CLI."""
    return f"{name}.cmd" if sys.platform == "win32" else name


class SetupConfig(BaseModel):
    """Settings shared by every provisioning operation.

    Instances are usually created by the test harness (or ``from_env``) and
    handed to the provisioner, so tests can inject temporary paths.
    """

    artifacts_dir: Path = Field(default=Path("./artifacts"))
    expo_package_name: str = Field(default="host.exp.exponent")
    expo_bundle_id: str = Field(default="host.exp.Exponent")
    ios_expo_apps_cache_dir: Path = Field(
        default_factory=lambda: Path.home() / ".expo" / "ios-simulator-app-cache"
    )
    npx_command: str = Field(default_factory=lambda: _platform_command("npx"))
    npm_command: str = Field(default_factory=lambda: _platform_command("npm"))
    adb_command: str = Field(default="adb")
    expo_versions_url: str = Field(default="https://exp.host/--/api/v2/versions")
    ios_simulator: str | None = Field(
        default=None, description="Name of the iOS simulator used for Expo tests"
    )
    simulator_settle_seconds: float = Field(
        default=15.0, ge=0, description="Delay after booting the iOS simulator"
    )
    request_timeout: float | None = Field(
        default=None, description="HTTP timeout in seconds; None waits indefinitely"
    )

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @property
    def setup_commands_log_path(self) -> Path:
        """Log file receiving the output of every setup command."""
        return self.artifacts_dir / "SetupEnvironmentCommandsLogs.txt"

    @property
    def smoke_log_path(self) -> Path:
        """Plain-text mirror of the progress lines printed to the console."""
        return self.artifacts_dir / "SmokeTestLogs.txt"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration as JSON (default ``<artifacts>/setup-config.json``)."""
        target = path or (self.artifacts_dir / "setup-config.json")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "SetupConfig":
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "SetupConfig":
        """Build a ``SetupConfig`` from environment variables.

        Recognised variables (all optional):
            SMOKE_ARTIFACTS_DIR, SMOKE_IOS_SIMULATOR, SMOKE_EXPO_VERSIONS_URL,
            SMOKE_SIMULATOR_SETTLE_SECONDS.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("SMOKE_ARTIFACTS_DIR"):
            kwargs["artifacts_dir"] = Path(os.environ["SMOKE_ARTIFACTS_DIR"])
        if os.environ.get("SMOKE_IOS_SIMULATOR"):
            kwargs["ios_simulator"] = os.environ["SMOKE_IOS_SIMULATOR"]
        if os.environ.get("SMOKE_EXPO_VERSIONS_URL"):
            kwargs["expo_versions_url"] = os.environ["SMOKE_EXPO_VERSIONS_URL"]
        if os.environ.get("SMOKE_SIMULATOR_SETTLE_SECONDS"):
            kwargs["simulator_settle_seconds"] = float(
                os.environ["SMOKE_SIMULATOR_SETTLE_SECONDS"]
            )
        return cls(**kwargs)

    def ensure_directories(self) -> None:
        """Create the artifacts directory so log files can be appended to."""
        self.artifacts_dir.mkdir(parents=True, exist_ok=True)
