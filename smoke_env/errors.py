"""Exceptions raised by smoke environment provisioning.

Nothing here is recovered locally: every error is expected to abort the
calling test case and be reported by the test harness.
"""

from __future__ import annotations


class SmokeEnvError(Exception):
    """Base class for provisioning failures."""


class CommandError(SmokeEnvError):
    """Raised when an external command exits with a non-zero code."""

    def __init__(self, message: str, command: str = "", returncode: int = 0, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class LaunchConfigurationNotFoundError(SmokeEnvError):
    """Raised when ``launch.json`` has no configuration with the requested name."""

    def __init__(self, config_name: str) -> None:
        self.config_name = config_name
        super().__init__(f'Couldn\'t find "{config_name}" configuration')


class VersionManifestError(SmokeEnvError):
    """Raised when the Expo version manifest lacks the expected fields."""


class DeviceError(SmokeEnvError):
    """Raised when no suitable emulator or simulator is available."""
