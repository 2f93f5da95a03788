"""smoke-env -- disposable React Native workspaces for extension smoke tests.

Scaffolds React Native, Hermes, Expo, Windows and macOS sample apps, patches
their fixture and config files, drives the emulator/simulator the tests run
on, and removes everything afterwards.

Quick usage::

    from smoke_env import EnvironmentProvisioner, SetupConfig

    provisioner = EnvironmentProvisioner(SetupConfig(artifacts_dir=Path("artifacts")))
    rn_version = await provisioner.get_latest_supported_rn_version_for_expo("35")
"""

from smoke_env.config import SetupConfig
from smoke_env.errors import (
    CommandError,
    DeviceError,
    LaunchConfigurationNotFoundError,
    SmokeEnvError,
    VersionManifestError,
)
from smoke_env.provisioner import EnvironmentProvisioner

__all__ = [
    "CommandError",
    "DeviceError",
    "EnvironmentProvisioner",
    "LaunchConfigurationNotFoundError",
    "SetupConfig",
    "SmokeEnvError",
    "VersionManifestError",
]
