"""Workspace provisioning for React Native smoke tests.

:class:`EnvironmentProvisioner` scaffolds disposable application workspaces
(plain React Native, Hermes, Expo, Windows, macOS), drops test fixtures into
them, patches their config files, drives the emulator/simulator the smoke
tests run against, and tears everything down afterwards.

Every step runs sequentially and assumes success.  Command and filesystem
failures propagate to the caller; a failed multi-step setup can leave the
workspace half-prepared.

Typical usage::

    provisioner = EnvironmentProvisioner(SetupConfig(artifacts_dir=artifacts))
    await provisioner.prepare_react_native_application(
        workspace / "App.js", resources, workspace, "latestRNApp", "ReactNativeSample"
    )
"""

from __future__ import annotations

import asyncio
import json
import os
import re
import signal
from pathlib import Path
from typing import Iterable

from .config import SetupConfig
from .devices import AndroidEmulatorHelper, IosSimulatorHelper
from .errors import LaunchConfigurationNotFoundError
from .expo_client import ExpoClientInstaller
from .logger import SmokeTestLogger
from .runner import CommandRunner, FileStore, LocalFileStore, SubprocessRunner
from .templates import TemplateRenderer
from .utils import dump_json, format_command
from .versions import get_latest_supported_rn_version_for_expo

# ``ps -ax`` lines for GUI apps have no controlling terminal:
#   41004 ??   0:21.34 /Users/u/.../Debug/rn_for_mac_proj.app/Contents/MacOS/rn_for_mac_proj
_MACOS_APP_PID_RE = re.compile(r"^\s*(\d+)\s+\?\?")


class EnvironmentProvisioner:
    """Prepares and tears down disposable app workspaces.

    Attributes:
        config: Explicit setup configuration (executables, package ids, paths).
        runner: Executes external commands.
        files: Reads and writes workspace files.
        logger: Progress logger mirrored to the smoke-test log artifact.
        android: ``adb`` helper for the Android emulator.
        ios: ``simctl`` helper for the configured iOS simulator.
        expo_client: Installs the Expo client on devices.
    """

    def __init__(
        self,
        config: SetupConfig | None = None,
        runner: CommandRunner | None = None,
        files: FileStore | None = None,
        logger: SmokeTestLogger | None = None,
        android: AndroidEmulatorHelper | None = None,
        ios: IosSimulatorHelper | None = None,
        expo_client: ExpoClientInstaller | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config or SetupConfig()
        self.runner = runner or SubprocessRunner()
        self.files = files or LocalFileStore()
        self.logger = logger or SmokeTestLogger(self.config.smoke_log_path)
        self.android = android or AndroidEmulatorHelper(self.runner, self.config.adb_command)
        self.ios = ios or IosSimulatorHelper(self.runner, self.config.ios_simulator)
        self.expo_client = expo_client or ExpoClientInstaller(
            self.config, self.android, self.ios, self.logger
        )
        self.renderer = renderer or TemplateRenderer()

    @property
    def commands_log(self) -> Path:
        return self.config.setup_commands_log_path

    # ------------------------------------------------------------------
    # Application scaffolding
    # ------------------------------------------------------------------

    async def prepare_react_native_application(
        self,
        workspace_file: Path,
        resources_dir: Path,
        workspace_dir: Path,
        app_name: str,
        entry_point_folder: str,
        version: str | None = None,
    ) -> None:
        """Create a plain React Native app with ``react-native init``."""
        command = ["react-native", "init", app_name]
        if version:
            command += ["--version", version]
        await self._setup_react_native_application(
            workspace_file, resources_dir, workspace_dir, entry_point_folder, command
        )

    async def prepare_hermes_react_native_application(
        self,
        workspace_file: Path,
        resources_dir: Path,
        workspace_dir: Path,
        app_name: str,
        entry_point_folder: str,
        version: str | None = None,
    ) -> None:
        """Turn an existing RN workspace into the Hermes variant.

        Cleans the Android build, then swaps in the Hermes entry point, the
        test button component and the ``android/app/build.gradle`` that
        enables Hermes.  The workspace must already have an ``android``
        directory.
        """
        android_dir = Path(workspace_dir) / "android"
        command_clean = [str(android_dir / "gradlew"), "clean"]
        self.logger.project_patching_log(f"*** Executing  {format_command(command_clean)} ...")
        await self.runner.run(command_clean, cwd=android_dir, capture=False)

        fixture_dir = Path(resources_dir) / entry_point_folder
        entry_point = fixture_dir / "App.js"
        test_button = fixture_dir / "AppTestButton.js"

        self.logger.project_patching_log(f"*** Copying  {entry_point} into {workspace_file}...")
        self.files.copy_file(entry_point, Path(workspace_file))

        self._copy_gradle_files_to_hermes_app(workspace_dir, resources_dir, entry_point_folder)

        self.logger.project_patching_log(f"*** Copying {test_button} into {workspace_dir}")
        self.files.copy_file(test_button, Path(workspace_dir) / "AppTestButton.js")

    async def prepare_expo_application(
        self,
        workspace_file: Path,
        resources_dir: Path,
        workspace_dir: Path,
        app_name: str,
        sdk_major_version: str | None = None,
    ) -> None:
        """Create an Expo app from the ``tabs`` template."""
        template = f"tabs@sdk-{sdk_major_version}" if sdk_major_version else "tabs"
        command = ["expo", "init", "-t", template, "--name", app_name, app_name]
        self.logger.project_install_log(
            f"*** Creating Expo app via '{format_command(command)}' in {workspace_dir}..."
        )
        await self.runner.run(command, cwd=resources_dir, input="\n", log_file=self.commands_log)

        entry_point = Path(resources_dir) / "ExpoSample" / "App.tsx"
        self._install_fixtures(workspace_file, resources_dir, workspace_dir, entry_point)

    async def prepare_macos_application(self, workspace_dir: Path) -> None:
        """Add the macOS platform to an RN workspace via ``react-native-macos-init``."""
        command = ["npx", "react-native-macos-init"]
        self.logger.project_patching_log(
            "*** Installing the React Native for macOS packages via "
            f"'{format_command(command)}' in {workspace_dir}..."
        )
        await self.runner.run(command, cwd=workspace_dir, log_file=self.commands_log)

    async def add_expo_dependency_to_rn_project(
        self, workspace_dir: Path, version: str | None = None
    ) -> None:
        expo_package = f"expo@{version}" if version else "expo"
        command = [self.config.npm_command, "install", expo_package, "--save-dev"]
        self.logger.project_patching_log(
            f"*** Adding expo dependency to {workspace_dir} via '{format_command(command)}' command..."
        )
        await self.runner.run(command, cwd=workspace_dir, log_file=self.commands_log)

    async def prepare_rnw_application(
        self,
        workspace_file: Path,
        resources_dir: Path,
        workspace_dir: Path,
        app_name: str,
        entry_point_folder: str,
        version: str | None = None,
    ) -> None:
        """Create a React Native for Windows app."""
        npx = self.config.npx_command
        setup_command = [
            npx, "--ignore-existing", "react-native", "init", app_name,
            "--template", f"react-native@^{version}",
        ]
        await self._setup_react_native_application(
            workspace_file, resources_dir, workspace_dir, entry_point_folder, setup_command
        )
        command = [npx, "react-native-windows-init", "--overwrite"]
        self.logger.project_patching_log(
            f"*** Install additional RNW packages using {format_command(command)}"
        )
        await self.runner.run(command, cwd=workspace_dir, log_file=self.commands_log)

    async def install_expo_xdl_package_to_extension_dir(
        self, extension_dir: Path, package_version: str
    ) -> None:
        command = [self.config.npm_command, "install", f"@expo/xdl@{package_version}", "--no-save"]
        self.logger.project_patching_log(
            f"*** Adding @expo/xdl dependency to {extension_dir} via '{format_command(command)}' command..."
        )
        await self.runner.run(command, cwd=extension_dir, log_file=self.commands_log)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def clean_up(
        self,
        test_dir: Path | None,
        user_data_dir: Path | None,
        test_logs_dir: Path | None,
        workspace_paths: Iterable[Path],
        expo_cache_dir: Path | None,
    ) -> None:
        """Delete test directories; paths that are ``None`` or missing are skipped."""
        self.logger.info("\n*** Clean up...")
        self._remove_if_exists(test_dir, "test VS Code directory")
        self._remove_if_exists(user_data_dir, "VS Code temporary user data dir")
        self._remove_if_exists(test_logs_dir, "test logs directory")
        for workspace in workspace_paths:
            self._remove_if_exists(workspace, "test application")
        self._remove_if_exists(expo_cache_dir, "iOS expo app cache directory")

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    async def get_latest_supported_rn_version_for_expo(
        self, sdk_major_version: str | None = None
    ) -> str:
        return await get_latest_supported_rn_version_for_expo(
            sdk_major_version,
            url=self.config.expo_versions_url,
            timeout=self.config.request_timeout,
            logger=self.logger,
        )

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------

    async def install_expo_app_on_android(self) -> None:
        self.logger.info("*** Installing Expo app on Android emulator")
        device = await self.android.get_first_online_device()
        await self.expo_client.install_on_android(device.id)
        await self.android.enable_draw_permit_for_app(self.config.expo_package_name, device.id)

    async def install_expo_app_on_ios(self) -> None:
        self.logger.info("*** Installing Expo app on iOS simulator")
        udid = await self.ios.get_device_udid()
        await self.expo_client.install_on_ios(udid)

    async def run_ios_simulator(self) -> None:
        """Restart the configured simulator from a wiped state."""
        device = self.ios.get_device()
        await self.terminate_ios_simulator()
        await self.ios.erase_simulator(device)
        self.logger.info(f"*** Executing iOS simulator with 'xcrun simctl boot \"{device}\"' command...")
        await self.ios.boot_simulator(device)
        await asyncio.sleep(self.config.simulator_settle_seconds)

    async def terminate_ios_simulator(self) -> None:
        await self.ios.shutdown_simulator(self.ios.get_device())

    async def terminate_macos_app(self, app_name: str) -> None:
        """Send SIGTERM to the running ``<app_name>.app`` process, if any."""
        self.logger.info(f"*** Searching for {app_name} macOS application process")
        result = await self.runner.run(["ps", "-ax"])
        process_line = next(
            (line for line in result.stdout.splitlines() if f"{app_name}.app" in line),
            None,
        )
        if process_line is None:
            return

        match = _MACOS_APP_PID_RE.match(process_line)
        if match:
            pid = int(match.group(1))
            self.logger.info(f"*** Terminating {app_name} macOS application process with PID {pid}")
            os.kill(pid, signal.SIGTERM)

    # ------------------------------------------------------------------
    # File patching
    # ------------------------------------------------------------------

    def patch_expo_settings_file(self, expo_app_path: Path) -> None:
        """Drop ``"https": false`` from ``.expo/settings.json``.

        Works around https://github.com/expo/expo-cli/issues/951.
        """
        settings_path = Path(expo_app_path) / ".expo" / "settings.json"
        if not self.files.exists(settings_path):
            return
        self.logger.project_patching_log(f"*** Patching {settings_path}...")
        content = json.loads(self.files.read_text(settings_path))
        if not isinstance(content, dict):
            return
        if content.get("https") is False:
            self.logger.project_patching_log("*** Deleting https: false line...")
            del content["https"]
            self.files.write_text(settings_path, dump_json(content, indent=2))

    def set_ios_target_to_launch_json(
        self, workspace_dir: Path, config_name: str, target: str | None = None
    ) -> None:
        """Set (or, without *target*, remove) ``target`` on a launch configuration.

        Raises:
            LaunchConfigurationNotFoundError: If no configuration is named
                *config_name*.
        """
        launch_json_path = Path(workspace_dir) / ".vscode" / "launch.json"
        if target:
            self.logger.project_patching_log(
                f'*** Implicitly adding target to "{config_name}" config for {launch_json_path}'
            )
        else:
            self.logger.project_patching_log(
                f'*** Implicitly remove target from "{config_name}" config'
            )

        content = json.loads(self.files.read_text(launch_json_path))
        found = False
        for configuration in content.get("configurations", []):
            if not isinstance(configuration, dict) or configuration.get("name") != config_name:
                continue
            found = True
            if target:
                configuration["target"] = target
            else:
                configuration.pop("target", None)

        if not found:
            raise LaunchConfigurationNotFoundError(config_name)
        self.files.write_text(launch_json_path, dump_json(content, indent=4))

    def patch_metro_config(self, app_path: Path) -> None:
        """Append the Metro cache/watch-folder fragment to ``metro.config.js``.

        The fragment is appended on every call; there is no check for a
        previous patch.
        """
        metro_config_path = Path(app_path) / "metro.config.js"
        self.logger.project_patching_log(f"*** Patching  {metro_config_path}")
        self.files.append_text(metro_config_path, self.renderer.render_metro_patch())
        patched = self.files.read_text(metro_config_path)
        self.logger.project_patching_log(
            f"*** Content of a metro.config.js after patching: {patched}"
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _setup_react_native_application(
        self,
        workspace_file: Path,
        resources_dir: Path,
        workspace_dir: Path,
        entry_point_folder: str,
        setup_command: list[str],
    ) -> None:
        self.logger.project_install_log(
            f"*** Creating RN app via '{format_command(setup_command)}' in {workspace_dir}..."
        )
        await self.runner.run(setup_command, cwd=resources_dir, log_file=self.commands_log)

        entry_point = Path(resources_dir) / entry_point_folder / "App.js"
        self._install_fixtures(workspace_file, resources_dir, workspace_dir, entry_point)

    def _install_fixtures(
        self,
        workspace_file: Path,
        resources_dir: Path,
        workspace_dir: Path,
        entry_point: Path,
    ) -> None:
        """Overwrite the entry point, drop in ``launch.json`` and patch Metro."""
        launch_config = Path(resources_dir) / "launch.json"
        vscode_dir = Path(workspace_dir) / ".vscode"

        self.logger.project_patching_log(f"*** Copying  {entry_point} into {workspace_file}...")
        self.files.copy_file(entry_point, Path(workspace_file))

        if not self.files.exists(vscode_dir):
            self.logger.project_patching_log(f"*** Creating  {vscode_dir}...")
            self.files.make_dir(vscode_dir)

        self.logger.project_patching_log(f"*** Copying  {launch_config} into {vscode_dir}...")
        self.files.copy_file(launch_config, vscode_dir / "launch.json")

        self.patch_metro_config(workspace_dir)

    def _copy_gradle_files_to_hermes_app(
        self, workspace_dir: Path, resources_dir: Path, entry_point_folder: str
    ) -> None:
        app_gradle = Path(workspace_dir) / "android" / "app" / "build.gradle"
        fixture_gradle = Path(resources_dir) / entry_point_folder / "build.gradle"
        self.logger.project_patching_log(f"*** Copying  {fixture_gradle} into {app_gradle}...")
        self.files.copy_file(fixture_gradle, app_gradle)

    def _remove_if_exists(self, path: Path | None, label: str) -> None:
        if path is not None and self.files.exists(Path(path)):
            self.logger.info(f"*** Deleting {label}: {path}")
            self.files.remove_tree(Path(path))
